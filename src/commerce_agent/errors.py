"""Exceptions raised by the commerce agent."""

from __future__ import annotations

from typing import Any, Optional


class CommerceAgentError(Exception):
    """Base exception for all commerce agent errors."""


# ---------------------------------------------------------------------------
# Tool registry
# ---------------------------------------------------------------------------


class DuplicateToolError(CommerceAgentError):
    """Raised when a tool name is registered twice in one registry."""


class UnknownToolError(CommerceAgentError):
    """Raised when invoking a tool that was never registered."""


class ToolValidationError(CommerceAgentError):
    """Raised when tool input does not match the tool's schema.

    ``errors`` holds the structured error list reported by pydantic, one
    dict per failing field.
    """

    def __init__(self, tool_name: str, errors: list[dict[str, Any]]):
        self.tool_name = tool_name
        self.errors = errors
        details = "; ".join(
            f"{'.'.join(str(p) for p in err.get('loc', ())) or '<input>'}: {err.get('msg', 'invalid')}"
            for err in errors
        )
        super().__init__(f"Invalid input for tool '{tool_name}': {details}")


# ---------------------------------------------------------------------------
# Commerce gateway
# ---------------------------------------------------------------------------


class GatewayError(CommerceAgentError):
    """Base exception for commerce gateway failures."""


class GatewayConnectionError(GatewayError):
    """Raised when the commerce API cannot be reached."""


class GatewayTimeoutError(GatewayError):
    """Raised when a commerce API request times out."""


class GatewayResponseError(GatewayError):
    """Raised when the commerce API answers with an error or malformed body."""

    def __init__(self, message: str, status_code: Optional[int] = None, body: Any = None):
        self.status_code = status_code
        self.body = body
        super().__init__(message)


# ---------------------------------------------------------------------------
# Wallet and payment
# ---------------------------------------------------------------------------


class WalletError(CommerceAgentError):
    """Raised when the wallet cannot resolve an address or export its key."""


class PaymentError(CommerceAgentError):
    """Raised when an on-chain payment cannot be built or submitted."""


class CurrencyMismatchError(PaymentError):
    """Raised when the settlement currency differs from the hydrated charge's."""


# ---------------------------------------------------------------------------
# Session lifecycle
# ---------------------------------------------------------------------------


class FatalBootstrapError(CommerceAgentError):
    """Raised when the session cannot be set up. The process must exit."""


class FatalLoopError(CommerceAgentError):
    """Raised when a run-loop turn fails. The process must exit."""
