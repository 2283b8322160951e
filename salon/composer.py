# salon/composer.py

from collections import Counter
from datetime import date
from typing import Dict, Iterable, List, Optional, Tuple, Union

from .errors import CapacityExceededError, IncompleteSelectionError, NotFoundError
from .schemas import BookingRequest, ClientInfo, ResolvedService, ServiceStylistPair, StylistAvailability


class BookingComposer:
    """Accumulates (stylist, service) picks against one availability snapshot.

    Selection order is kept: the first pick becomes the first pair of the
    composed booking request. Stylists are picked by display name; when two
    scheduled stylists share a name each is labelled ``"<name> (<stylist_id>)"``.
    A stylist id is accepted wherever a name is.
    """

    def __init__(
        self,
        branch_id: str,
        appointment_date: Union[date, str],
        appointment_time: str,
        availability: Iterable[StylistAvailability],
    ):
        self.branch_id = branch_id
        self.appointment_date = (
            appointment_date.isoformat() if isinstance(appointment_date, date) else appointment_date
        )
        self.appointment_time = appointment_time
        availability = list(availability)
        names = Counter(s.name for s in availability)
        self._stylists: Dict[str, StylistAvailability] = {
            (s.name if names[s.name] == 1 else f"{s.name} ({s.stylist_id})"): s for s in availability
        }
        self._labels = {s.stylist_id: label for label, s in self._stylists.items()}
        self._selected: List[Tuple[str, ResolvedService]] = []

    @property
    def stylists(self) -> List[StylistAvailability]:
        return list(self._stylists.values())

    @property
    def labels(self) -> List[str]:
        return list(self._stylists)

    @property
    def selections(self) -> Dict[str, List[ResolvedService]]:
        grouped: Dict[str, List[ResolvedService]] = {}
        for stylist_name, service in self._selected:
            grouped.setdefault(stylist_name, []).append(service)
        return grouped

    def _index_of(self, stylist_name: str, service_id: str) -> Optional[int]:
        for index, (name, service) in enumerate(self._selected):
            if name == stylist_name and service.service_id == service_id:
                return index
        return None

    def is_selected(self, stylist_name: str, service_id: str) -> bool:
        return self._index_of(stylist_name, service_id) is not None

    def workload_for(self, stylist_name: str) -> int:
        return sum(s.workload_units for name, s in self._selected if name == stylist_name)

    def toggle(self, stylist_name: str, service: Union[ResolvedService, str]) -> bool:
        """Select the pair if it isn't selected, otherwise deselect it.

        Returns True when the pair ends up selected.
        """
        stylist_name = self._labels.get(stylist_name, stylist_name)
        stylist = self._stylists.get(stylist_name)
        if stylist is None:
            raise NotFoundError("Stylist", stylist_name)

        service_id = service if isinstance(service, str) else service.service_id
        index = self._index_of(stylist_name, service_id)
        if index is not None:
            del self._selected[index]
            return False

        offered = next((s for s in stylist.services if s.service_id == service_id), None)
        if offered is None:
            raise NotFoundError("Service", service_id)

        remaining = stylist.remaining_workload - self.workload_for(stylist_name)
        if offered.workload_units > remaining:
            raise CapacityExceededError(
                stylist.stylist_id, self.appointment_date, offered.workload_units, remaining
            )

        self._selected.append((stylist_name, offered))
        return True

    def total(self) -> float:
        return sum(service.price for _, service in self._selected)

    def compose(
        self,
        client_id: Optional[str] = None,
        is_new_client: bool = False,
        new_client_name: str = "",
        client_info: Optional[ClientInfo] = None,
        notes: str = "",
    ) -> BookingRequest:
        if not self._selected:
            raise IncompleteSelectionError()

        return BookingRequest(
            branch_id=self.branch_id,
            appointment_date=self.appointment_date,
            appointment_time=self.appointment_time,
            service_stylist_pairs=[
                ServiceStylistPair(
                    service_id=service.service_id,
                    stylist_id=self._stylists[name].stylist_id,
                )
                for name, service in self._selected
            ],
            client_id=client_id,
            is_new_client=is_new_client,
            new_client_name=new_client_name,
            client_info=client_info,
            notes=notes,
        )
