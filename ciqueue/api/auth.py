"""
Authorization for mutating requests.

A request is authorized when either:
- it carries `Authorization: Bearer <token>` matching CIQUEUE_API_TOKEN, or
- its webhook header (default User-Agent) starts with the trusted
  webhook sender prefix (default GitHub-Hookshot/)

An empty token or prefix disables that method.
"""

import hmac
from typing import Mapping


class Authorizer:
    """Checks request headers (lower-cased names) against configured secrets."""

    def __init__(
        self,
        api_token: str = "",
        webhook_header: str = "User-Agent",
        webhook_prefix: str = "",
    ):
        self.api_token = api_token
        self.webhook_header = webhook_header.lower()
        self.webhook_prefix = webhook_prefix

    def has_valid_token(self, headers: Mapping[str, str]) -> bool:
        if not self.api_token:
            return False
        scheme, _, credential = headers.get("authorization", "").partition(" ")
        if scheme.lower() != "bearer":
            return False
        return hmac.compare_digest(credential.strip().encode(), self.api_token.encode())

    def is_webhook_sender(self, headers: Mapping[str, str]) -> bool:
        if not self.webhook_prefix:
            return False
        return headers.get(self.webhook_header, "").startswith(self.webhook_prefix)

    def is_authorized(self, headers: Mapping[str, str]) -> bool:
        return self.has_valid_token(headers) or self.is_webhook_sender(headers)
