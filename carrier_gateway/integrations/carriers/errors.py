"""
Carrier gateway error taxonomy.

Single-provider operations (one carrier quote, policy lifecycle calls,
webhook signature checks) let these propagate to the caller. The quote
fan-out catches them per provider, logs them and drops that provider from
the aggregate.
"""

from __future__ import annotations

from typing import Any, Optional


class CarrierGatewayError(Exception):
    """Base class for every error raised by the carrier gateway."""

    def __init__(self, message: str, *, provider: Optional[str] = None) -> None:
        super().__init__(message)
        self.provider = provider


class DuplicateProviderError(CarrierGatewayError):
    pass


class UnknownProviderError(CarrierGatewayError):
    def __init__(self, provider: str) -> None:
        super().__init__(f"Carrier '{provider}' is not registered.", provider=provider)


class UnconfiguredProviderError(CarrierGatewayError):
    def __init__(self, provider: str) -> None:
        super().__init__(f"Carrier '{provider}' has no API credential configured.", provider=provider)


class ProviderTimeoutError(CarrierGatewayError):
    pass


class ProviderRateLimitedError(CarrierGatewayError):
    def __init__(self, provider: str, retries: int) -> None:
        super().__init__(
            f"Carrier '{provider}' is still rate limiting after {retries} retries.",
            provider=provider,
        )
        self.retries = retries


class ProviderRequestError(CarrierGatewayError):
    """Non-2xx answer (other than 429) or a transport failure.

    ``status_code`` is ``None`` when the request never got an HTTP answer.
    """

    def __init__(
        self,
        message: str,
        *,
        provider: Optional[str] = None,
        status_code: Optional[int] = None,
        payload: Any = None,
    ) -> None:
        super().__init__(message, provider=provider)
        self.status_code = status_code
        self.payload = payload


class ProviderResponseError(CarrierGatewayError):
    """A 2xx body that cannot be read as the expected contract."""

    def __init__(self, message: str, *, provider: Optional[str] = None, payload: Any = None) -> None:
        super().__init__(message, provider=provider)
        self.payload = payload if payload is not None else {}


class InvalidSignatureError(CarrierGatewayError):
    pass
