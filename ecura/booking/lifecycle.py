import datetime as dt
from collections.abc import Callable, Mapping
from typing import Any

from loguru import logger
from pydantic import ValidationError as PydanticValidationError

from ecura.booking.ports import IdGenerator
from ecura.booking.store import ClinicStore
from ecura.booking.visits import build_visit_record
from ecura.domain.exceptions import InvalidStateError, ValidationError
from ecura.domain.models import (
    Appointment,
    AppointmentSource,
    AppointmentStatus,
    BookingRequest,
    VisitDetails,
    VisitRecord,
)
from ecura.scheduling.time_helpers import parse_iso_date

DEFAULT_REASON = "General Checkup"

TERMINAL_STATUSES: frozenset[AppointmentStatus] = frozenset(
    {
        AppointmentStatus.CHECKED_OUT,
        AppointmentStatus.CANCELLED,
        AppointmentStatus.COMPLETED,
    }
)

# CHECKED_IN -> CHECKED_OUT is reachable only through finalize_visit.
_TRANSITIONS: dict[AppointmentStatus, frozenset[AppointmentStatus]] = {
    AppointmentStatus.PENDING: frozenset(
        {AppointmentStatus.CONFIRMED, AppointmentStatus.CANCELLED, AppointmentStatus.CHECKED_IN}
    ),
    AppointmentStatus.CONFIRMED: frozenset(
        {AppointmentStatus.CANCELLED, AppointmentStatus.CHECKED_IN}
    ),
    AppointmentStatus.CHECKED_IN: frozenset({AppointmentStatus.CHECKED_OUT}),
}

_ADMISSION_STATUSES = frozenset({AppointmentStatus.PENDING, AppointmentStatus.CONFIRMED})

_REQUIRED_FIELDS = ("patient_name", "patient_phone", "clinic_id", "doctor_id", "date", "time")


def local_now() -> dt.datetime:
    return dt.datetime.now().astimezone()


def parse_booking_request(payload: BookingRequest | Mapping[str, Any]) -> BookingRequest:
    """Coerce an inbound payload into a ``BookingRequest`` and check required fields.

    Raises:
        ValidationError: Naming the first missing or malformed field.
    """
    if isinstance(payload, BookingRequest):
        request = payload
    else:
        try:
            request = BookingRequest.model_validate(payload)
        except PydanticValidationError as exc:
            error = exc.errors()[0]
            field = ".".join(str(part) for part in error["loc"]) or "request"
            raise ValidationError(field, error["msg"]) from exc

    for field in _REQUIRED_FIELDS:
        if not getattr(request, field).strip():
            raise ValidationError(field, "is required")
    return request


class AppointmentLifecycle:
    """Admits bookings and applies the appointment status state machine.

    Every check runs before the store is touched, so a rejected operation
    leaves all collections unchanged.
    """

    def __init__(
        self,
        store: ClinicStore,
        id_generator: IdGenerator,
        *,
        clock: Callable[[], dt.datetime] = local_now,
        default_reason: str = DEFAULT_REASON,
    ) -> None:
        self._store = store
        self._ids = id_generator
        self._clock = clock
        self._default_reason = default_reason

    def admit_booking(
        self,
        payload: BookingRequest | Mapping[str, Any],
        *,
        source: AppointmentSource = AppointmentSource.WEB,
        status: AppointmentStatus = AppointmentStatus.PENDING,
        id_prefix: str = "apt",
    ) -> Appointment:
        """Create a new appointment at the head of the collection.

        Availability is not consulted here so staff can book
        walk-ins and exceptions; callers wanting strict enforcement check the
        resolver first.

        Raises:
            ValidationError: If a required field is missing or the date is malformed.
            NotFoundError: If the clinic or doctor does not exist.
            InvalidStateError: If ``status`` is not an admission status.
        """
        if status not in _ADMISSION_STATUSES:
            raise InvalidStateError(f"Bookings cannot be admitted as {status.value}")

        request = parse_booking_request(payload)
        date = parse_iso_date(request.date)
        self._store.get_doctor(request.clinic_id.strip(), request.doctor_id.strip())

        reason = (request.reason or "").strip() or self._default_reason
        appointment = Appointment(
            id=self._ids.new_id(id_prefix),
            clinic_id=request.clinic_id.strip(),
            doctor_id=request.doctor_id.strip(),
            patient_name=request.patient_name.strip(),
            patient_phone=request.patient_phone.strip(),
            date=date,
            time=request.time.strip(),
            status=status,
            reason=reason,
            created_at=self._clock(),
            source=source,
        )
        self._store.insert_appointment(appointment)

        logger.info(
            "Appointment admitted: id={}, doctor={}, date={}, status={}, source={}",
            appointment.id,
            appointment.doctor_id,
            appointment.date,
            appointment.status.value,
            appointment.source.value,
        )
        return appointment

    def transition(
        self,
        appointment_id: str,
        status: AppointmentStatus,
        *,
        acting_doctor_id: str | None = None,
    ) -> Appointment:
        """Move an appointment to ``status``.

        Raises:
            NotFoundError: If the appointment does not exist.
            InvalidStateError: If the transition is not allowed from the current
                status, or the check-in is attempted by a different doctor.
        """
        appointment = self._store.get_appointment(appointment_id)
        self._check_transition(appointment, status)

        if status == AppointmentStatus.CHECKED_OUT:
            raise InvalidStateError(
                "Checkout requires a visit record; use finalize_visit", appointment_id
            )
        if status == AppointmentStatus.CHECKED_IN and acting_doctor_id != appointment.doctor_id:
            raise InvalidStateError(
                "Only the appointment's own doctor can check the patient in", appointment_id
            )

        updated = appointment.model_copy(update={"status": status})
        self._store.replace_appointment(updated)
        logger.info(
            "Appointment {} moved {} -> {}", appointment_id, appointment.status.value, status.value
        )
        return updated

    def confirm(self, appointment_id: str) -> Appointment:
        return self.transition(appointment_id, AppointmentStatus.CONFIRMED)

    def cancel(self, appointment_id: str) -> Appointment:
        return self.transition(appointment_id, AppointmentStatus.CANCELLED)

    def check_in(self, appointment_id: str, doctor_id: str) -> Appointment:
        return self.transition(
            appointment_id, AppointmentStatus.CHECKED_IN, acting_doctor_id=doctor_id
        )

    def finalize_visit(
        self,
        appointment_id: str,
        details: VisitDetails,
        *,
        visit_date: dt.date | None = None,
    ) -> VisitRecord:
        """Check the patient out and record the visit as one logical operation.

        Raises:
            NotFoundError: If the appointment does not exist.
            InvalidStateError: If the appointment is not CHECKED_IN or already
                has a visit record.
        """
        appointment = self._store.get_appointment(appointment_id)
        if appointment.status != AppointmentStatus.CHECKED_IN:
            raise InvalidStateError(
                f"Cannot finalize a visit for an appointment that is {appointment.status.value}",
                appointment_id,
            )
        if self._store.visits_for_appointment(appointment_id):
            raise InvalidStateError("Appointment already has a visit record", appointment_id)

        visit = build_visit_record(
            appointment,
            details,
            visit_id=self._ids.new_id("visit"),
            visit_date=visit_date or self._clock().date(),
        )
        self._store.replace_appointment(
            appointment.model_copy(update={"status": AppointmentStatus.CHECKED_OUT})
        )
        self._store.insert_visit(visit)

        logger.info("Visit recorded: id={}, appointment={}", visit.id, appointment_id)
        return visit

    def _check_transition(self, appointment: Appointment, status: AppointmentStatus) -> None:
        current = appointment.status
        if current in TERMINAL_STATUSES:
            raise InvalidStateError(
                f"Appointment is {current.value}; no further transitions are allowed",
                appointment.id,
            )
        if status not in _TRANSITIONS.get(current, frozenset()):
            raise InvalidStateError(
                f"Cannot move appointment from {current.value} to {status.value}",
                appointment.id,
            )
