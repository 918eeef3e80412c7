import json

import httpx
import pytest
from pytest_httpx import HTTPXMock

from ecura.booking.adapters.webhook import WebhookNotifier, build_new_appointment_payload
from ecura.booking.store import ClinicStore
from ecura.domain.exceptions import NotificationDeliveryError
from ecura.domain.models import Appointment, Clinic

URL = "https://connect.pabbly.com/workflow/sendwebhookdata/test-hook"


@pytest.fixture
def appointment(store: ClinicStore) -> Appointment:
    return store.get_appointment("a1")


@pytest.fixture
def clinic(store: ClinicStore) -> Clinic:
    return store.get_clinic("c1")


@pytest.fixture
def notifier() -> WebhookNotifier:
    return WebhookNotifier(URL, timeout=5.0)


class TestBuildNewAppointmentPayload:
    def test_flat_payload(self, appointment: Appointment, clinic: Clinic) -> None:
        payload = build_new_appointment_payload(appointment, clinic)

        assert payload == {
            "source": "Ecura Connect CMS",
            "event_type": "new_appointment",
            "appointment_id": "a1",
            "clinic_name": "Evergreen Family Clinic",
            "clinic_location": "123 Pine St, Seattle",
            "doctor_name": "Dr. Sarah Smith",
            "patient_name": "John Doe",
            "patient_phone": "+1234567890",
            "appointment_date": "2026-03-16",
            "appointment_time": "10:00 AM",
            "reason": "Annual Physical",
            "created_at": appointment.created_at.isoformat(),
            "status": "CONFIRMED",
        }

    def test_unknown_doctor_is_unassigned(self, appointment: Appointment, store: ClinicStore) -> None:
        payload = build_new_appointment_payload(appointment, store.get_clinic("c2"), source="Test")

        assert payload["doctor_name"] == "Unassigned"
        assert payload["source"] == "Test"


class TestWebhookNotifier:
    @pytest.mark.asyncio
    async def test_posts_json_payload(
        self,
        httpx_mock: HTTPXMock,
        notifier: WebhookNotifier,
        appointment: Appointment,
        clinic: Clinic,
    ) -> None:
        httpx_mock.add_response(url=URL, method="POST", json={"status": "success"})

        await notifier.send_new_appointment(appointment, clinic)

        request = httpx_mock.get_request()
        assert request is not None
        assert request.headers["Content-Type"] == "application/json"
        assert json.loads(request.content) == build_new_appointment_payload(appointment, clinic)

    @pytest.mark.asyncio
    async def test_error_status_is_a_delivery_failure(
        self,
        httpx_mock: HTTPXMock,
        notifier: WebhookNotifier,
        appointment: Appointment,
        clinic: Clinic,
    ) -> None:
        httpx_mock.add_response(url=URL, method="POST", status_code=502)

        with pytest.raises(NotificationDeliveryError, match="status 502") as exc_info:
            await notifier.send_new_appointment(appointment, clinic)

        assert exc_info.value.appointment_id == "a1"

    @pytest.mark.asyncio
    async def test_transport_error_is_a_delivery_failure(
        self,
        httpx_mock: HTTPXMock,
        notifier: WebhookNotifier,
        appointment: Appointment,
        clinic: Clinic,
    ) -> None:
        httpx_mock.add_exception(httpx.ConnectError("Connection refused"))

        with pytest.raises(NotificationDeliveryError, match="Connection refused"):
            await notifier.send_new_appointment(appointment, clinic)

    @pytest.mark.asyncio
    async def test_missing_url_fails_without_a_request(
        self, appointment: Appointment, clinic: Clinic
    ) -> None:
        notifier = WebhookNotifier("")

        with pytest.raises(NotificationDeliveryError, match="No webhook URL"):
            await notifier.send_new_appointment(appointment, clinic)

        await notifier.close()

    @pytest.mark.asyncio
    async def test_close(self, notifier: WebhookNotifier) -> None:
        await notifier.close()

        assert notifier._client.is_closed
