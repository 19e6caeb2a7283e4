"""Text generation client for optional AI-written recommendation copy"""

import logging
import time
from typing import Any, Dict

import httpx
from pydantic import BaseModel, Field, ValidationError

from spendsense.config import settings
from spendsense.domain.exceptions import CopyGenerationError
from spendsense.domain.guardrails import STANDARD_DISCLOSURE
from spendsense.domain.models import RecommendationContext, RecommendationItem, Signals
from spendsense.domain.recommendations import RecommendationTemplate, TemplateCopyGenerator
from spendsense.infrastructure.observability.metrics import copy_fallback_counter, copy_latency_histogram

logger = logging.getLogger(__name__)

SYSTEM_PROMPT = (
    "You are a helpful financial education assistant. Generate concise, encouraging, and actionable "
    "recommendation copy. Never shame or blame the reader. Keep titles under {title_max} characters "
    "and rationale under {rationale_max} characters. Always end rationale with: '{disclosure}'"
)

AML_REGISTER = (
    "Some of this user's account activity is under routine review. Focus on transparency, keeping "
    "documentation of transfers and deposits, and speaking with a licensed professional. Do not "
    "speculate about wrongdoing."
)


class GeneratedCopy(BaseModel):
    """Structural contract for collaborator output"""

    title: str = Field(min_length=1)
    rationale: str = Field(min_length=1)


def build_prompt(
    template: RecommendationTemplate,
    persona_key: str,
    signals: Signals,
    context: RecommendationContext,
) -> str:
    """User prompt grounded in the same sentence the template would show"""
    situation = template.fact(signals, context)
    register = f"\nTone: {AML_REGISTER}\n" if context.has_aml_alerts else ""

    return f"""Generate a personalized financial recommendation with the following context:

Recommendation Type: {template.id}
User Situation: {situation}.
Persona: {persona_key}
{register}
Return ONLY a JSON object with this exact structure:
{{
  "title": "Action-oriented title",
  "rationale": "Specific reason based on user's numbers. {STANDARD_DISCLOSURE}"
}}"""


class OpenAICopyClient:
    """Client for an OpenAI-compatible chat completions endpoint"""

    def __init__(
        self,
        api_key: str | None = None,
        base_url: str | None = None,
        model: str | None = None,
        timeout: float | None = None,
        max_attempts: int | None = None,
        transport: httpx.BaseTransport | None = None,
    ):
        self.api_key = settings.openai_api_key if api_key is None else api_key
        self.base_url = (base_url or settings.openai_base_url).rstrip("/")
        self.model = model or settings.openai_model
        self.timeout = timeout or settings.copy_timeout_seconds
        self.max_attempts = max_attempts or settings.copy_max_attempts
        self.backoff_base = settings.copy_backoff_base
        self.transport = transport

    def complete_json(self, prompt: str) -> str:
        """
        Request a JSON completion and return the raw message content.

        Retry strategy:
        - Bounded attempts (default 1, i.e. no retry), exponential backoff between them
        - Retries on 5xx errors, timeouts and network failures

        Raises:
            CopyGenerationError: Not configured, exhausted attempts, or unexpected payload
        """
        if not self.api_key:
            raise CopyGenerationError("Text generation API key not configured")

        payload: Dict[str, Any] = {
            "model": self.model,
            "messages": [
                {
                    "role": "system",
                    "content": SYSTEM_PROMPT.format(
                        title_max=settings.copy_title_max_chars,
                        rationale_max=settings.copy_rationale_max_chars,
                        disclosure=STANDARD_DISCLOSURE,
                    ),
                },
                {"role": "user", "content": prompt},
            ],
            "temperature": 0.7,
            "max_tokens": 200,
            "response_format": {"type": "json_object"},
        }

        attempt = 0
        with httpx.Client(timeout=self.timeout, transport=self.transport) as client:
            while True:
                try:
                    with copy_latency_histogram.time():
                        response = client.post(
                            f"{self.base_url}/chat/completions",
                            json=payload,
                            headers={"Authorization": f"Bearer {self.api_key}"},
                        )
                        response.raise_for_status()
                    return response.json()["choices"][0]["message"]["content"]

                except httpx.HTTPStatusError as e:
                    attempt += 1
                    if e.response.status_code < 500 or attempt >= self.max_attempts:
                        raise CopyGenerationError(f"Copy API error: {e.response.status_code}") from e
                except httpx.TimeoutException as e:
                    attempt += 1
                    if attempt >= self.max_attempts:
                        raise CopyGenerationError(f"Copy API timeout after {self.timeout}s") from e
                except httpx.RequestError as e:
                    attempt += 1
                    if attempt >= self.max_attempts:
                        raise CopyGenerationError(f"Copy API unreachable: {e}") from e
                except (KeyError, IndexError, TypeError, ValueError) as e:
                    raise CopyGenerationError(f"Invalid completion payload: {e}") from e

                # Exponential backoff between bounded attempts
                backoff = self.backoff_base * (2 ** (attempt - 1))
                time.sleep(backoff)


def parse_copy(content: str | None) -> GeneratedCopy:
    """
    Validate collaborator output against the copy contract.

    Raises:
        CopyGenerationError: Not JSON, missing fields, over length budget, or disclosure missing
    """
    if not content:
        raise CopyGenerationError("Empty completion")
    try:
        copy = GeneratedCopy.model_validate_json(content)
    except ValidationError as e:
        raise CopyGenerationError(f"Malformed copy: {e.error_count()} validation errors") from e

    title, rationale = copy.title.strip(), copy.rationale.strip()
    if len(title) > settings.copy_title_max_chars:
        raise CopyGenerationError(f"Title exceeds {settings.copy_title_max_chars} characters")
    if len(rationale) > settings.copy_rationale_max_chars:
        raise CopyGenerationError(f"Rationale exceeds {settings.copy_rationale_max_chars} characters")
    if STANDARD_DISCLOSURE not in rationale:
        raise CopyGenerationError("Rationale is missing the standard disclosure")
    return GeneratedCopy(title=title, rationale=rationale)


class AICopyEnhancer:
    """
    Copy generator that asks the collaborator first and falls back to templates.

    Same contract as TemplateCopyGenerator. Any CopyGenerationError (unavailable,
    timed out, malformed) is recovered locally; tone policy is enforced by the
    caller on whatever copy comes back.
    """

    def __init__(
        self,
        client: OpenAICopyClient | None = None,
        fallback: TemplateCopyGenerator | None = None,
    ):
        self.client = client or OpenAICopyClient()
        self.fallback = fallback or TemplateCopyGenerator()

    def generate(
        self,
        template: RecommendationTemplate,
        persona_key: str,
        signals: Signals,
        context: RecommendationContext,
    ) -> RecommendationItem:
        reason = "unavailable"
        try:
            content = self.client.complete_json(build_prompt(template, persona_key, signals, context))
            reason = "malformed"
            copy = parse_copy(content)
        except CopyGenerationError as e:
            copy_fallback_counter.labels(reason=reason).inc()
            logger.warning(f"AI copy fallback for {template.id}: {e}", extra={"recommendation_id": template.id})
            return self.fallback.generate(template, persona_key, signals, context)

        return RecommendationItem(
            id=template.id,
            kind=template.kind,
            title=copy.title,
            rationale=copy.rationale,
            ai_generated=True,
        )
