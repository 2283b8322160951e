# salon/notifications.py
"""Notification trigger points.

Delivery (SMS, email) belongs to an external collaborator; plug one in by
subclassing AppointmentNotifier. The default just logs.
"""

import logging
from enum import Enum
from typing import List, Optional

from pydantic import BaseModel

from .schemas import Appointment

logger = logging.getLogger(__name__)


class NotificationEvent(str, Enum):
    created = "appointment_created"
    confirmed = "appointment_confirmed"
    cancelled = "appointment_cancelled"
    completed = "appointment_completed"


class ContactDetails(BaseModel):
    id: Optional[str] = None
    name: str = ""
    phone: Optional[str] = None
    email: Optional[str] = None


class AppointmentNotifier:
    def notify(
        self,
        event: NotificationEvent,
        appointment: Appointment,
        client: ContactDetails,
        stylists: List[ContactDetails],
    ) -> None:
        raise NotImplementedError


class LoggingNotifier(AppointmentNotifier):
    def notify(self, event, appointment, client, stylists):
        logger.info(
            "Notification %s for appointment %s: client=%s stylists=%s",
            event.value,
            appointment.id,
            client.name or client.id,
            ", ".join(s.name for s in stylists),
        )
