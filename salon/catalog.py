# salon/catalog.py
"""Branch service catalog: which services a stylist may sell at a branch, and at what price."""

import logging
from typing import Dict, Iterable, List, Optional

from .models import BranchServiceOffering, ServiceDefinition, StylistServiceCertification
from .schemas import ResolvedService

logger = logging.getLogger(__name__)


def effective_price(offering: BranchServiceOffering, definition: ServiceDefinition) -> float:
    """Branch-discounted price when the branch sets one, otherwise the default."""
    if offering.branch_discounted_price is not None:
        return offering.branch_discounted_price
    return definition.default_price


class BranchCatalog:
    """Offerings of one branch joined with their global service definitions."""

    def __init__(
        self,
        branch_id: str,
        offerings: Iterable[BranchServiceOffering],
        definitions: Dict[str, ServiceDefinition],
    ):
        self.branch_id = branch_id
        self._by_offering: Dict[str, ResolvedService] = {}
        self._by_service: Dict[str, ResolvedService] = {}

        for offering in offerings:
            if offering.branch_id != branch_id:
                continue
            definition = definitions.get(offering.service_id)
            if definition is None:
                logger.warning(
                    "Branch %s offers unknown service %s, skipping", branch_id, offering.service_id
                )
                continue
            resolved = ResolvedService(
                service_id=definition.id,
                name=definition.name,
                description=definition.description,
                price=effective_price(offering, definition),
                workload_units=definition.workload_units,
            )
            self._by_offering[offering.id] = resolved
            self._by_service[definition.id] = resolved

    def __contains__(self, service_id: str) -> bool:
        return service_id in self._by_service

    def get(self, service_id: str) -> Optional[ResolvedService]:
        return self._by_service.get(service_id)

    def price_of(self, service_id: str) -> float:
        service = self._by_service.get(service_id)
        return service.price if service else 0.0

    def workload_of(self, service_id: str) -> int:
        service = self._by_service.get(service_id)
        return service.workload_units if service else 0

    def services_for(self, certifications: Iterable[StylistServiceCertification]) -> List[ResolvedService]:
        # certifications for other branches' offerings simply don't match
        services = []
        seen = set()
        for certification in certifications:
            resolved = self._by_offering.get(certification.branch_service_id)
            if resolved is None or resolved.service_id in seen:
                continue
            seen.add(resolved.service_id)
            services.append(resolved)
        return services


def load_branch_catalog(store, branch_id: str) -> BranchCatalog:
    offerings = store.list_branch_service_offerings(branch_id)
    definitions = store.get_service_definitions(o.service_id for o in offerings)
    return BranchCatalog(branch_id, offerings, definitions)


def resolve_stylist_services(
    store, branch_id: str, stylist_id: str, catalog: Optional[BranchCatalog] = None
) -> List[ResolvedService]:
    catalog = catalog or load_branch_catalog(store, branch_id)
    return catalog.services_for(store.list_stylist_certifications(stylist_id))
