"""
HTTP surface: request router, FastAPI app and CGI adapter.
"""

from .auth import Authorizer
from .router import InboundRequest, RequestRouter, Response

__all__ = [
    "Authorizer",
    "InboundRequest",
    "RequestRouter",
    "Response",
]
