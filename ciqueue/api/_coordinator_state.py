"""
Request router state for the HTTP adapters.

Provides singleton access to the RequestRouter. Initialized during FastAPI
lifespan (or once per CGI invocation).

Usage:
    from ._coordinator_state import get_router, init_router

    # In lifespan:
    init_router(Settings.from_env())

    # In handlers:
    router = get_router()
"""

import logging
from typing import Optional

from ciqueue.bootstrap import build_service
from ciqueue.infra import Settings

from .auth import Authorizer
from .router import RequestRouter

logger = logging.getLogger(__name__)

# Global router instance
_router: Optional[RequestRouter] = None


def init_router(settings: Settings) -> RequestRouter:
    """
    Initialize the router singleton from settings.

    Returns the existing router if already initialized.
    """
    global _router

    if _router is not None:
        return _router

    authorizer = Authorizer(
        api_token=settings.api_token,
        webhook_header=settings.webhook_header,
        webhook_prefix=settings.webhook_prefix,
    )
    if not settings.api_token and not settings.webhook_prefix:
        logger.warning("No API token or webhook prefix configured; all mutating requests will be refused")

    _router = RequestRouter(build_service(settings), authorizer)
    return _router


def set_router(router: Optional[RequestRouter]) -> None:
    """Replace the router singleton (None resets it)."""
    global _router
    _router = router


def get_router() -> RequestRouter:
    """
    Get the router singleton.

    Raises:
        RuntimeError: If the router is not initialized
    """
    if _router is None:
        raise RuntimeError(
            "Request router not initialized. "
            "Ensure init_router() is called during startup."
        )

    return _router
