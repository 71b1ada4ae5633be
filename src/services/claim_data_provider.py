"""
Claim Data Provider.

Supplies the billing-ready content (superbill) of an encounter to the
X12 837P generator. The encounter and chart records live outside this
package; deployments implement ClaimDataProvider against their own store.
"""

from abc import ABC, abstractmethod
from typing import Iterable, Optional
from uuid import UUID

from src.services.edi.x12_837_generator import ClaimContent


class ClaimDataProvider(ABC):
    """Source of claim content keyed by encounter or superbill reference."""

    @abstractmethod
    async def fetch(self, tenant_id: UUID, reference: str) -> Optional[ClaimContent]:
        """
        Return claim content for the reference, or None when unknown.

        Diagnoses must already be ordered primary-first and charge line
        diagnosis pointers must index into that order.
        """


class InMemoryClaimDataProvider(ClaimDataProvider):
    """Dictionary-backed provider for development and tests."""

    def __init__(self, contents: Optional[Iterable[tuple[UUID, ClaimContent]]] = None):
        self._contents: dict[tuple[UUID, str], ClaimContent] = {}
        for tenant_id, content in contents or ():
            self.add(tenant_id, content)

    def add(self, tenant_id: UUID, content: ClaimContent) -> None:
        self._contents[(tenant_id, content.reference)] = content

    def remove(self, tenant_id: UUID, reference: str) -> None:
        self._contents.pop((tenant_id, reference), None)

    async def fetch(self, tenant_id: UUID, reference: str) -> Optional[ClaimContent]:
        return self._contents.get((tenant_id, reference))
