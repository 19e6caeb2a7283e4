"""Dependency injection for FastAPI endpoints"""

from fastapi import Request
from spendsense.infrastructure.clients.copywriter import AICopyEnhancer, OpenAICopyClient


def get_request_id(request: Request) -> str:
    """Extract request ID from request state"""
    return getattr(request.state, "request_id", "unknown")


def get_copy_enhancer() -> AICopyEnhancer:
    """Provide AI copy enhancer with template fallback"""
    return AICopyEnhancer(client=OpenAICopyClient())
