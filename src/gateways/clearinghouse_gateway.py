"""
Clearinghouse Transport Gateway.

Delivers encoded claims to a clearinghouse and polls claim status.

Implementations:
- HttpClearinghouseTransport: JSON-over-HTTPS client (httpx) with timeout
  and retry. Claim POSTs retry only when the connection could not be
  established, so a claim is never delivered twice; status GETs retry on
  any transport failure.
- SimulatedClearinghouseTransport: seeded stand-in that reproduces the
  outcome distribution of a live partner (70% accepted, 20% pending,
  10% rejected) for development and tests.
"""

import asyncio
import logging
import random
import uuid
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from decimal import Decimal
from typing import Any, Optional

import httpx

from src.core.config import SubmissionSettings, get_claims_settings
from src.core.enums import ClearinghouseType, SubmissionStatus, TransportMode
from src.gateways.base import (
    GatewayConfig,
    ProviderAuthenticationError,
    ProviderTimeoutError,
    ProviderUnavailableError,
    TransportError,
    UnexpectedResponseError,
    with_retry,
)
from src.models.clearinghouse import ClearinghouseConfig

logger = logging.getLogger(__name__)


# =============================================================================
# Data Models
# =============================================================================


@dataclass(frozen=True)
class ClearinghouseEndpoint:
    """Connectivity details for one configured clearinghouse."""

    clearinghouse_id: uuid.UUID
    name: str
    clearinghouse_type: ClearinghouseType
    api_endpoint: Optional[str] = None
    api_key: Optional[str] = None
    trading_partner_id: Optional[str] = None

    @classmethod
    def from_config(cls, config: ClearinghouseConfig) -> "ClearinghouseEndpoint":
        return cls(
            clearinghouse_id=config.id,
            name=config.name,
            clearinghouse_type=config.clearinghouse_type,
            api_endpoint=config.api_endpoint,
            api_key=config.api_key,
            trading_partner_id=config.trading_partner_id,
        )


@dataclass(frozen=True)
class ClaimTransmission:
    """Claim payload handed to the transport."""

    claim_id: uuid.UUID
    claim_number: str
    total_charges: Decimal
    x12_content: Optional[str] = None
    patient_control_number: Optional[str] = None


@dataclass
class SubmissionResponse:
    """Clearinghouse answer to a claim submission."""

    status: SubmissionStatus
    message: str = ""
    transaction_id: Optional[str] = None
    acknowledgment_code: Optional[str] = None
    raw: dict[str, Any] = field(default_factory=dict)


@dataclass
class StatusCheckResponse:
    """Clearinghouse answer to a status inquiry."""

    status: SubmissionStatus
    status_code: Optional[str] = None
    message: Optional[str] = None
    raw: dict[str, Any] = field(default_factory=dict)


def parse_submission_status(value: Any, provider: Optional[str] = None) -> SubmissionStatus:
    """Convert a partner status string, raising UnexpectedResponseError if unknown."""
    try:
        return SubmissionStatus(str(value).strip().lower())
    except ValueError as e:
        raise UnexpectedResponseError(
            f"Unknown clearinghouse status: {value!r}",
            provider=provider,
            original_error=e,
        ) from e


# =============================================================================
# Transport Interface
# =============================================================================


class ClearinghouseTransport(ABC):
    """Network boundary to a clearinghouse."""

    @abstractmethod
    async def submit(
        self,
        endpoint: ClearinghouseEndpoint,
        transmission: ClaimTransmission,
    ) -> SubmissionResponse:
        """Deliver one claim."""

    @abstractmethod
    async def check_status(
        self,
        endpoint: ClearinghouseEndpoint,
        x12_claim_id: str,
        current_status: SubmissionStatus,
    ) -> StatusCheckResponse:
        """Ask for the current status of a previously submitted claim."""

    async def close(self) -> None:
        """Release transport resources."""
        return None


# =============================================================================
# HTTP Transport
# =============================================================================


class HttpClearinghouseTransport(ClearinghouseTransport):
    """
    Clearinghouse REST client.

    POST {api_endpoint}/claims           -> {status, message, transaction_id, acknowledgment_code}
    GET  {api_endpoint}/claims/{id}/status -> {status, status_code, message}
    """

    def __init__(
        self,
        config: Optional[GatewayConfig] = None,
        client: Optional[httpx.AsyncClient] = None,
    ):
        self.config = config or GatewayConfig()
        self._client = client
        self._owns_client = client is None

        # Connection-establishment failures only: the claim never left
        self._post_claim_with_retry = with_retry(
            max_attempts=self.config.retry_attempts,
            delay=self.config.retry_delay_seconds,
            backoff_factor=self.config.backoff_factor,
            exceptions=(ProviderUnavailableError,),
        )(self._post_claim)
        self._get_status_with_retry = with_retry(
            max_attempts=self.config.retry_attempts,
            delay=self.config.retry_delay_seconds,
            backoff_factor=self.config.backoff_factor,
            exceptions=(TransportError,),
        )(self._get_status)

    @property
    def client(self) -> httpx.AsyncClient:
        if self._client is None:
            self._client = httpx.AsyncClient(timeout=self.config.timeout_seconds)
        return self._client

    async def submit(
        self,
        endpoint: ClearinghouseEndpoint,
        transmission: ClaimTransmission,
    ) -> SubmissionResponse:
        data = await self._post_claim_with_retry(endpoint, transmission)
        status = parse_submission_status(data.get("status"), endpoint.name)
        logger.info(
            f"{endpoint.name}: claim {transmission.claim_id} submitted, status={status.value}"
        )
        return SubmissionResponse(
            status=status,
            message=str(data.get("message") or ""),
            transaction_id=data.get("transaction_id") or data.get("transactionId"),
            acknowledgment_code=data.get("acknowledgment_code") or data.get("acknowledgmentCode"),
            raw=data,
        )

    async def check_status(
        self,
        endpoint: ClearinghouseEndpoint,
        x12_claim_id: str,
        current_status: SubmissionStatus,
    ) -> StatusCheckResponse:
        data = await self._get_status_with_retry(endpoint, x12_claim_id, current_status)
        return StatusCheckResponse(
            status=parse_submission_status(data.get("status"), endpoint.name),
            status_code=data.get("status_code") or data.get("statusCode"),
            message=data.get("message"),
            raw=data,
        )

    async def close(self) -> None:
        if self._client is not None and self._owns_client:
            await self._client.aclose()
            self._client = None

    # =========================================================================
    # Requests
    # =========================================================================

    async def _post_claim(
        self,
        endpoint: ClearinghouseEndpoint,
        transmission: ClaimTransmission,
    ) -> dict[str, Any]:
        payload = {
            "claim_id": str(transmission.claim_id),
            "claim_number": transmission.claim_number,
            "patient_control_number": transmission.patient_control_number,
            "total_charges": f"{transmission.total_charges:.2f}",
            "format": "837P",
            "trading_partner_id": endpoint.trading_partner_id,
            "x12": transmission.x12_content,
        }
        return await self._request("POST", endpoint, "/claims", json=payload)

    async def _get_status(
        self,
        endpoint: ClearinghouseEndpoint,
        x12_claim_id: str,
        current_status: SubmissionStatus,
    ) -> dict[str, Any]:
        return await self._request(
            "GET",
            endpoint,
            f"/claims/{x12_claim_id}/status",
            params={"current_status": current_status.value},
        )

    async def _request(
        self,
        method: str,
        endpoint: ClearinghouseEndpoint,
        path: str,
        **kwargs: Any,
    ) -> dict[str, Any]:
        if not endpoint.api_endpoint:
            raise TransportError(
                f"Clearinghouse {endpoint.name} has no API endpoint configured",
                provider=endpoint.name,
            )

        url = endpoint.api_endpoint.rstrip("/") + path
        headers = {"Accept": "application/json"}
        if endpoint.api_key:
            headers["Authorization"] = f"Bearer {endpoint.api_key}"

        try:
            response = await self.client.request(
                method,
                url,
                headers=headers,
                timeout=self.config.timeout_seconds,
                **kwargs,
            )
        except (httpx.ConnectError, httpx.ConnectTimeout) as e:
            raise ProviderUnavailableError(
                f"Cannot connect to {endpoint.name}: {e}",
                provider=endpoint.name,
                original_error=e,
            ) from e
        except httpx.TimeoutException as e:
            raise ProviderTimeoutError(
                f"{endpoint.name} timed out after {self.config.timeout_seconds}s",
                provider=endpoint.name,
                original_error=e,
            ) from e
        except httpx.HTTPError as e:
            raise TransportError(
                f"{endpoint.name} request failed: {e}",
                provider=endpoint.name,
                original_error=e,
            ) from e

        if response.status_code in (401, 403):
            raise ProviderAuthenticationError(
                f"{endpoint.name} rejected credentials (HTTP {response.status_code})",
                provider=endpoint.name,
                status_code=response.status_code,
            )
        if response.status_code >= 400:
            raise TransportError(
                f"{endpoint.name} returned HTTP {response.status_code}",
                provider=endpoint.name,
                status_code=response.status_code,
            )

        try:
            data = response.json()
        except ValueError as e:
            raise UnexpectedResponseError(
                f"{endpoint.name} returned a non-JSON body",
                provider=endpoint.name,
                original_error=e,
            ) from e
        if not isinstance(data, dict):
            raise UnexpectedResponseError(
                f"{endpoint.name} returned {type(data).__name__}, expected an object",
                provider=endpoint.name,
            )
        return data


# =============================================================================
# Simulated Transport
# =============================================================================


# Status random walk used for status checks
SIMULATED_STATUS_PROGRESSION: dict[SubmissionStatus, list[SubmissionStatus]] = {
    SubmissionStatus.SUBMITTED: [SubmissionStatus.PENDING, SubmissionStatus.ACCEPTED],
    SubmissionStatus.PENDING: [SubmissionStatus.ACCEPTED, SubmissionStatus.PENDED],
    SubmissionStatus.ACCEPTED: [SubmissionStatus.PAID, SubmissionStatus.DENIED],
    SubmissionStatus.PENDED: [SubmissionStatus.ACCEPTED, SubmissionStatus.DENIED],
}

SIMULATED_STATUS_MESSAGES: dict[SubmissionStatus, tuple[str, str]] = {
    SubmissionStatus.PENDING: ("P1", "Claim pending payer review"),
    SubmissionStatus.ACCEPTED: ("A1", "Claim accepted by payer"),
    SubmissionStatus.PENDED: ("P2", "Claim pended - additional information requested"),
    SubmissionStatus.PAID: ("F1", "Claim finalized - payment processed"),
    SubmissionStatus.DENIED: ("D1", "Claim denied - see denial reason codes"),
}


class SimulatedClearinghouseTransport(ClearinghouseTransport):
    """
    Deterministic clearinghouse stand-in.

    Pass a seed (or a random.Random) to make outcomes reproducible.
    """

    def __init__(
        self,
        seed: Optional[int] = None,
        latency_seconds: float = 0.0,
        rng: Optional[random.Random] = None,
    ):
        self._rng = rng or random.Random(seed)
        self.latency_seconds = latency_seconds

    async def submit(
        self,
        endpoint: ClearinghouseEndpoint,
        transmission: ClaimTransmission,
    ) -> SubmissionResponse:
        await self._delay()
        roll = self._rng.random()
        transaction_id = str(uuid.UUID(int=self._rng.getrandbits(128), version=4))

        if roll < 0.7:
            response = SubmissionResponse(
                status=SubmissionStatus.ACCEPTED,
                message=f"Claim accepted by {endpoint.clearinghouse_type.value}",
                transaction_id=transaction_id,
                acknowledgment_code="A",
            )
        elif roll < 0.9:
            response = SubmissionResponse(
                status=SubmissionStatus.PENDING,
                message="Claim received, pending payer review",
                transaction_id=transaction_id,
            )
        else:
            response = SubmissionResponse(
                status=SubmissionStatus.REJECTED,
                message="Claim rejected: Missing required information",
                transaction_id=transaction_id,
                acknowledgment_code="R",
            )

        response.raw = {
            "status": response.status.value,
            "message": response.message,
            "transaction_id": response.transaction_id,
            "acknowledgment_code": response.acknowledgment_code,
        }
        return response

    async def check_status(
        self,
        endpoint: ClearinghouseEndpoint,
        x12_claim_id: str,
        current_status: SubmissionStatus,
    ) -> StatusCheckResponse:
        await self._delay()
        options = SIMULATED_STATUS_PROGRESSION.get(current_status, [current_status])
        next_status = self._rng.choice(options)
        status_code, message = SIMULATED_STATUS_MESSAGES.get(next_status, ("U1", "Status unknown"))
        return StatusCheckResponse(
            status=next_status,
            status_code=status_code,
            message=message,
            raw={"status": next_status.value, "status_code": status_code, "message": message},
        )

    async def _delay(self) -> None:
        if self.latency_seconds > 0:
            await asyncio.sleep(self.latency_seconds)


# =============================================================================
# Factory
# =============================================================================


def create_clearinghouse_transport(
    settings: Optional[SubmissionSettings] = None,
) -> ClearinghouseTransport:
    """Build the transport selected by CLAIMS_TRANSPORT_MODE."""
    settings = settings or get_claims_settings()

    if settings.TRANSPORT_MODE == TransportMode.HTTP:
        return HttpClearinghouseTransport(
            GatewayConfig(
                timeout_seconds=settings.TRANSPORT_TIMEOUT_SECONDS,
                retry_attempts=settings.TRANSPORT_RETRY_ATTEMPTS,
                retry_delay_seconds=settings.TRANSPORT_RETRY_DELAY_SECONDS,
            )
        )

    if settings.is_production:
        logger.warning("Simulated clearinghouse transport selected in production")
    return SimulatedClearinghouseTransport(
        seed=settings.SIMULATED_TRANSPORT_SEED,
        latency_seconds=settings.SIMULATED_TRANSPORT_LATENCY_SECONDS,
    )
