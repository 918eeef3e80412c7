import datetime as dt

import pytest

from ecura.booking.lifecycle import AppointmentLifecycle, parse_booking_request
from ecura.booking.store import ClinicStore
from ecura.domain.exceptions import InvalidStateError, NotFoundError, ValidationError
from ecura.domain.models import AppointmentSource, AppointmentStatus, VisitDetails


def _payload(**overrides: object) -> dict[str, object]:
    payload: dict[str, object] = {
        "clinic_id": "c1",
        "doctor_id": "d1",
        "patient_name": "John Doe",
        "patient_phone": "+1234567890",
        "date": "2026-03-16",
        "time": "10:00 AM",
    }
    payload.update(overrides)
    return payload


class TestParseBookingRequest:
    def test_accepts_camel_case_keys(self) -> None:
        request = parse_booking_request(
            {
                "clinicId": "c1",
                "doctorId": "d1",
                "patientName": "Ann",
                "patientPhone": "555",
                "date": "2026-03-16",
                "time": "09:30",
            }
        )

        assert request.clinic_id == "c1"
        assert request.patient_name == "Ann"

    def test_numeric_phone_is_coerced(self) -> None:
        assert parse_booking_request(_payload(patient_phone=5551234)).patient_phone == "5551234"

    @pytest.mark.parametrize(
        "field", ["patient_name", "patient_phone", "clinic_id", "doctor_id", "date", "time"]
    )
    def test_missing_required_field_is_named(self, field: str) -> None:
        payload = _payload()
        del payload[field]

        with pytest.raises(ValidationError) as exc_info:
            parse_booking_request(payload)

        assert exc_info.value.field == field

    @pytest.mark.parametrize("blank", ["", "   ", None])
    def test_blank_values_count_as_missing(self, blank: object) -> None:
        with pytest.raises(ValidationError) as exc_info:
            parse_booking_request(_payload(patient_name=blank))

        assert exc_info.value.field == "patient_name"

    def test_first_missing_field_wins(self) -> None:
        with pytest.raises(ValidationError) as exc_info:
            parse_booking_request({"time": "10:00"})

        assert exc_info.value.field == "patient_name"


class TestAdmitBooking:
    def test_defaults_to_pending_with_general_checkup(
        self, lifecycle: AppointmentLifecycle, store: ClinicStore, now: dt.datetime
    ) -> None:
        appointment = lifecycle.admit_booking(_payload())

        assert appointment.status == AppointmentStatus.PENDING
        assert appointment.reason == "General Checkup"
        assert appointment.source == AppointmentSource.WEB
        assert appointment.date == dt.date(2026, 3, 16)
        assert appointment.created_at == now
        assert store.appointments[0] == appointment

    def test_new_appointments_go_to_the_head(
        self, lifecycle: AppointmentLifecycle, store: ClinicStore
    ) -> None:
        first = lifecycle.admit_booking(_payload(patient_name="A"))
        second = lifecycle.admit_booking(_payload(patient_name="B"))

        assert [a.id for a in store.appointments] == [second.id, first.id, "a2", "a1"]

    def test_ids_are_unique(self, lifecycle: AppointmentLifecycle) -> None:
        ids = {lifecycle.admit_booking(_payload()).id for _ in range(5)}

        assert len(ids) == 5

    def test_explicit_reason_and_status(self, lifecycle: AppointmentLifecycle) -> None:
        appointment = lifecycle.admit_booking(
            _payload(reason="  Flu shot "),
            source=AppointmentSource.WHATSAPP,
            status=AppointmentStatus.CONFIRMED,
        )

        assert appointment.reason == "Flu shot"
        assert appointment.status == AppointmentStatus.CONFIRMED
        assert appointment.source == AppointmentSource.WHATSAPP

    def test_availability_is_not_enforced(self, lifecycle: AppointmentLifecycle) -> None:
        # Thursday is a day off in the default schedule.
        appointment = lifecycle.admit_booking(_payload(date="2026-03-19", time="23:00"))

        assert appointment.date == dt.date(2026, 3, 19)

    @pytest.mark.parametrize(
        "status",
        [AppointmentStatus.CHECKED_IN, AppointmentStatus.CHECKED_OUT, AppointmentStatus.CANCELLED],
    )
    def test_cannot_admit_in_later_status(
        self, lifecycle: AppointmentLifecycle, store: ClinicStore, status: AppointmentStatus
    ) -> None:
        with pytest.raises(InvalidStateError):
            lifecycle.admit_booking(_payload(), status=status)

        assert len(store.appointments) == 2

    def test_malformed_date(self, lifecycle: AppointmentLifecycle, store: ClinicStore) -> None:
        with pytest.raises(ValidationError) as exc_info:
            lifecycle.admit_booking(_payload(date="next monday"))

        assert exc_info.value.field == "date"
        assert len(store.appointments) == 2

    @pytest.mark.parametrize(
        ("overrides", "entity"),
        [
            ({"clinic_id": "c9"}, "clinic"),
            ({"doctor_id": "d9"}, "doctor"),
            ({"doctor_id": "d3"}, "doctor"),
        ],
        ids=["unknown-clinic", "unknown-doctor", "doctor-of-another-clinic"],
    )
    def test_unknown_references_leave_store_unchanged(
        self,
        lifecycle: AppointmentLifecycle,
        store: ClinicStore,
        overrides: dict[str, str],
        entity: str,
    ) -> None:
        before = store.appointments

        with pytest.raises(NotFoundError) as exc_info:
            lifecycle.admit_booking(_payload(**overrides))

        assert exc_info.value.entity == entity
        assert store.appointments == before


class TestTransitions:
    def test_confirm_pending(self, lifecycle: AppointmentLifecycle, store: ClinicStore) -> None:
        updated = lifecycle.confirm("a2")

        assert updated.status == AppointmentStatus.CONFIRMED
        assert store.get_appointment("a2").status == AppointmentStatus.CONFIRMED

    def test_transition_keeps_position(
        self, lifecycle: AppointmentLifecycle, store: ClinicStore
    ) -> None:
        lifecycle.cancel("a1")

        assert [a.id for a in store.appointments] == ["a2", "a1"]

    def test_own_doctor_checks_in(self, lifecycle: AppointmentLifecycle) -> None:
        assert lifecycle.check_in("a1", "d1").status == AppointmentStatus.CHECKED_IN

    def test_pending_can_be_checked_in_directly(self, lifecycle: AppointmentLifecycle) -> None:
        assert lifecycle.check_in("a2", "d3").status == AppointmentStatus.CHECKED_IN

    def test_other_doctor_cannot_check_in(
        self, lifecycle: AppointmentLifecycle, store: ClinicStore
    ) -> None:
        with pytest.raises(InvalidStateError):
            lifecycle.check_in("a1", "d2")

        assert store.get_appointment("a1").status == AppointmentStatus.CONFIRMED

    def test_checkout_requires_a_visit(self, lifecycle: AppointmentLifecycle) -> None:
        lifecycle.check_in("a1", "d1")

        with pytest.raises(InvalidStateError, match="finalize_visit"):
            lifecycle.transition("a1", AppointmentStatus.CHECKED_OUT)

    def test_confirmed_cannot_be_confirmed_again(self, lifecycle: AppointmentLifecycle) -> None:
        with pytest.raises(InvalidStateError):
            lifecycle.confirm("a1")

    def test_checked_in_cannot_be_cancelled(self, lifecycle: AppointmentLifecycle) -> None:
        lifecycle.check_in("a1", "d1")

        with pytest.raises(InvalidStateError):
            lifecycle.cancel("a1")

    def test_unknown_appointment(self, lifecycle: AppointmentLifecycle) -> None:
        with pytest.raises(NotFoundError):
            lifecycle.confirm("nope")

    @pytest.mark.parametrize("target", list(AppointmentStatus))
    def test_cancelled_is_terminal(
        self, lifecycle: AppointmentLifecycle, store: ClinicStore, target: AppointmentStatus
    ) -> None:
        lifecycle.cancel("a2")

        with pytest.raises(InvalidStateError):
            lifecycle.transition("a2", target, acting_doctor_id="d3")

        assert store.get_appointment("a2").status == AppointmentStatus.CANCELLED

    @pytest.mark.parametrize("target", list(AppointmentStatus))
    def test_checked_out_is_terminal(
        self, lifecycle: AppointmentLifecycle, store: ClinicStore, target: AppointmentStatus
    ) -> None:
        lifecycle.check_in("a1", "d1")
        lifecycle.finalize_visit("a1", VisitDetails(diagnosis="Healthy"))

        with pytest.raises(InvalidStateError):
            lifecycle.transition("a1", target, acting_doctor_id="d1")

        assert store.get_appointment("a1").status == AppointmentStatus.CHECKED_OUT
