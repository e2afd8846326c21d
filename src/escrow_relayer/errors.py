"""
Error taxonomy for the escrow relayer.

Every failure a gateway can report is a RelayerError subclass carrying the
HTTP status the API layer answers with and any extra payload fields.
"""

from typing import Any

from web3.exceptions import ContractLogicError


class RelayerError(Exception):
    """Base class for all request-terminating relayer failures."""

    status_code: int = 500

    def __init__(self, message: str, status_code: int | None = None, **extra: Any) -> None:
        super().__init__(message)
        self.message = message
        if status_code is not None:
            self.status_code = status_code
        self.extra: dict[str, Any] = extra

    @property
    def public_message(self) -> str:
        """Message that is safe to return to the caller."""
        return self.message

    def to_payload(self) -> dict[str, Any]:
        return {"error": self.public_message, **self.extra}


class ConfigurationError(RelayerError):
    """The signing identity (or another server-side setting) is unavailable."""

    status_code = 500

    def __init__(self, message: str, public_message: str = "Relayer not configured") -> None:
        super().__init__(message)
        self._public_message = public_message

    @property
    def public_message(self) -> str:
        return self._public_message


class ValidationError(RelayerError):
    """Missing or malformed request input; raised before any network access."""

    status_code = 400


class RateLimitError(RelayerError):
    """The drip has already served this address during the process lifetime."""

    status_code = 429


class AlreadyFundedError(RateLimitError):
    """The recipient already holds at least the minimum balance."""

    status_code = 400

    def __init__(self, message: str, balance: int) -> None:
        super().__init__(message, balance=str(balance))
        self.balance = balance


class ResourceExhaustionError(RelayerError):
    """The relayer cannot currently fund the request."""

    status_code = 503


class ChainError(RelayerError):
    """RPC transport failure or on-chain revert."""

    status_code = 500


class RequestTimeoutError(ChainError):
    """The request did not finish within the configured deadline."""

    status_code = 504


def describe_chain_failure(exc: BaseException, fallback: str = "Relay failed") -> str:
    """
    Extract the most specific human-readable reason from a chain failure.

    Contract revert strings win over JSON-RPC error messages, which win over
    the plain exception text.
    """
    if isinstance(exc, ContractLogicError):
        reason = exc.message or (str(exc.args[0]) if exc.args else "")
        if reason:
            return reason

    match exc.args[0] if exc.args else None:
        case {"message": str() as rpc_message} if rpc_message:
            return rpc_message
        case _:
            pass

    if message := getattr(exc, "message", None):
        return str(message)

    return str(exc) or fallback
