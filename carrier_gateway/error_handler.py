"""Error handling helpers for the carrier gateway API."""
from typing import Any, Dict, Optional, Tuple
import logging

from carrier_gateway.integrations.carriers.errors import (
    CarrierGatewayError,
    DuplicateProviderError,
    InvalidSignatureError,
    ProviderRateLimitedError,
    ProviderRequestError,
    ProviderResponseError,
    ProviderTimeoutError,
    UnconfiguredProviderError,
    UnknownProviderError,
)

logger = logging.getLogger(__name__)

_STATUS_BY_ERROR = (
    (UnknownProviderError, 404),
    (UnconfiguredProviderError, 503),
    (ProviderTimeoutError, 504),
    (ProviderRateLimitedError, 429),
    (ProviderRequestError, 502),
    (ProviderResponseError, 502),
    (InvalidSignatureError, 401),
    (DuplicateProviderError, 409),
)


class ErrorHandler:
    def status_for(self, exc: Exception) -> int:
        for error_type, status_code in _STATUS_BY_ERROR:
            if isinstance(exc, error_type):
                return status_code
        if isinstance(exc, ValueError):
            return 400
        return 500

    def handle_exception(self, exc: Exception, context: Optional[Dict[str, Any]] = None) -> Tuple[int, Dict[str, Any]]:
        status_code = self.status_for(exc)
        metadata: Dict[str, Any] = {"error": type(exc).__name__, "context": context or {}}
        if isinstance(exc, CarrierGatewayError) and exc.provider:
            metadata["carrier"] = exc.provider
        if isinstance(exc, ProviderRequestError) and exc.status_code is not None:
            metadata["carrier_status"] = exc.status_code

        if status_code >= 500 and not isinstance(exc, CarrierGatewayError):
            logger.error("Unhandled exception in carrier gateway: %s", exc, exc_info=True)
            message = "An internal error occurred while processing your request. Please try again later."
        else:
            logger.warning("Carrier gateway request failed (%s): %s", status_code, exc)
            message = str(exc)

        return status_code, {"success": False, "message": message, "metadata": metadata}
