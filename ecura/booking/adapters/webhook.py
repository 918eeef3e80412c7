from typing import Any

import httpx
from loguru import logger

from ecura.domain.exceptions import NotificationDeliveryError
from ecura.domain.models import Appointment, Clinic

DEFAULT_SOURCE = "Ecura Connect CMS"


def build_new_appointment_payload(
    appointment: Appointment, clinic: Clinic, *, source: str = DEFAULT_SOURCE
) -> dict[str, Any]:
    """Flat payload for the automation webhook, one key per mappable field."""
    doctor = clinic.find_doctor(appointment.doctor_id)
    return {
        "source": source,
        "event_type": "new_appointment",
        "appointment_id": appointment.id,
        "clinic_name": clinic.name,
        "clinic_location": clinic.location,
        "doctor_name": doctor.name if doctor else "Unassigned",
        "patient_name": appointment.patient_name,
        "patient_phone": appointment.patient_phone,
        "appointment_date": appointment.date.isoformat(),
        "appointment_time": appointment.time,
        "reason": appointment.reason,
        "created_at": appointment.created_at.isoformat(),
        "status": appointment.status.value,
    }


class WebhookNotifier:
    """Posts new-appointment events to an automation webhook (e.g. Pabbly Connect).

    Any transport error or non-2xx response is a delivery failure.  Nothing
    is retried.
    """

    def __init__(
        self,
        url: str,
        *,
        source: str = DEFAULT_SOURCE,
        timeout: float = 10.0,
    ) -> None:
        self._url = url
        self._source = source
        self._client = httpx.AsyncClient(timeout=timeout)

    async def send_new_appointment(self, appointment: Appointment, clinic: Clinic) -> None:
        if not self._url:
            raise NotificationDeliveryError("No webhook URL configured", appointment.id)

        payload = build_new_appointment_payload(appointment, clinic, source=self._source)
        logger.info("Triggering appointment webhook for {}", appointment.id)
        try:
            resp = await self._client.post(
                self._url,
                headers={"Content-Type": "application/json"},
                json=payload,
            )
            resp.raise_for_status()
        except httpx.HTTPStatusError as exc:
            raise NotificationDeliveryError(
                f"webhook responded with status {exc.response.status_code}", appointment.id
            ) from exc
        except Exception as exc:
            raise NotificationDeliveryError(str(exc) or type(exc).__name__, appointment.id) from exc

    async def close(self) -> None:
        await self._client.aclose()
        logger.info("Webhook notifier closed")
