"""
Gateway Module for Claims Submission.

External network boundaries live here; everything behind them is
substitutable through the ClearinghouseTransport interface.
"""

from src.gateways.base import (
    GatewayConfig,
    GatewayError,
    ProviderAuthenticationError,
    ProviderTimeoutError,
    ProviderUnavailableError,
    TransportError,
    UnexpectedResponseError,
    with_retry,
)
from src.gateways.clearinghouse_gateway import (
    ClaimTransmission,
    ClearinghouseEndpoint,
    ClearinghouseTransport,
    HttpClearinghouseTransport,
    SimulatedClearinghouseTransport,
    StatusCheckResponse,
    SubmissionResponse,
    create_clearinghouse_transport,
)

__all__ = [
    # Base
    "GatewayConfig",
    "GatewayError",
    "TransportError",
    "ProviderUnavailableError",
    "ProviderTimeoutError",
    "ProviderAuthenticationError",
    "UnexpectedResponseError",
    "with_retry",
    # Clearinghouse
    "ClearinghouseTransport",
    "ClearinghouseEndpoint",
    "ClaimTransmission",
    "SubmissionResponse",
    "StatusCheckResponse",
    "HttpClearinghouseTransport",
    "SimulatedClearinghouseTransport",
    "create_clearinghouse_transport",
]
