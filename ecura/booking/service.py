import datetime as dt
import random
from collections.abc import Callable, Mapping
from typing import Any

from loguru import logger
from pydantic import BaseModel, ConfigDict

from ecura.booking.directory import ClinicDirectory
from ecura.booking.ids import UuidIdGenerator
from ecura.booking.lifecycle import AppointmentLifecycle, local_now, parse_booking_request
from ecura.booking.ports import IdGenerator, NotifierProtocol
from ecura.booking.store import ClinicStore
from ecura.config import SchedulingConfig
from ecura.domain.exceptions import BookingError, NotFoundError, SlotUnavailableError, ValidationError
from ecura.domain.models import (
    Appointment,
    AppointmentSource,
    AppointmentStatus,
    BookingRequest,
    Clinic,
    Doctor,
    TimeRange,
    VisitDetails,
    VisitRecord,
    Weekday,
    WeeklySchedule,
)
from ecura.scheduling import availability, editor
from ecura.scheduling.schedule import day_schedule
from ecura.scheduling.time_helpers import hhmm_to_time, parse_clock_time, parse_iso_date, time_to_12h

ALL_SPECIALTIES = "All"
_SIMULATED_PATIENTS = ("Michael Scott", "Dwight Schrute", "Pam Beesly", "Jim Halpert", "Angela Martin")


class BookingOutcome(BaseModel):
    """An admitted appointment and whether its outbound notification went through."""

    model_config = ConfigDict(frozen=True)

    appointment: Appointment
    notified: bool


class ClinicService:
    """Booking core facade: admission policy, lifecycle, schedules and dashboard queries.

    Staff bookings are trusted and may override availability.  Bookings from
    external channels (chat, WhatsApp) are checked against the doctor's
    schedule and existing appointments first, unless
    ``enforce_external_availability`` is switched off.
    """

    def __init__(
        self,
        store: ClinicStore,
        notifier: NotifierProtocol,
        *,
        id_generator: IdGenerator | None = None,
        config: SchedulingConfig | None = None,
        clock: Callable[[], dt.datetime] = local_now,
    ) -> None:
        self._store = store
        self._notifier = notifier
        self._config = config or SchedulingConfig()
        self._clock = clock
        ids = id_generator or UuidIdGenerator()
        self.lifecycle = AppointmentLifecycle(
            store, ids, clock=clock, default_reason=self._config.default_reason
        )
        self.directory = ClinicDirectory(store, ids)

    @property
    def store(self) -> ClinicStore:
        return self._store

    # Availability

    def is_bookable(self, doctor_id: str, date: dt.date | str, time: dt.time | str) -> bool:
        _, doctor = self._store.locate_doctor(doctor_id)
        return availability.is_bookable(doctor.schedule, date, time)

    def next_available_slot(
        self,
        doctor_id: str,
        from_date: dt.date | str | None = None,
        from_time: dt.time | str | None = None,
    ) -> tuple[dt.date, TimeRange] | None:
        _, doctor = self._store.locate_doctor(doctor_id)
        if from_date is None:
            now = self._clock()
            from_date, from_time = now.date(), now.time()
        return availability.next_available_slot(
            doctor.schedule, from_date, from_time, self._config.scan_horizon_days
        )

    def open_slots(self, doctor_id: str, date: dt.date | str) -> list[TimeRange]:
        _, doctor = self._store.locate_doctor(doctor_id)
        return availability.open_slots_for_day(doctor.schedule, date)

    # Admission

    def admit_staff_booking(self, payload: BookingRequest | Mapping[str, Any]) -> Appointment:
        """Direct staff entry: confirmed immediately, availability not enforced."""
        return self.lifecycle.admit_booking(
            payload, source=AppointmentSource.WEB, status=AppointmentStatus.CONFIRMED
        )

    def admit_external_booking(
        self,
        payload: BookingRequest | Mapping[str, Any],
        *,
        source: AppointmentSource = AppointmentSource.WEB,
        id_prefix: str = "apt",
    ) -> Appointment:
        """Admit a booking from an untrusted channel as PENDING.

        Raises:
            ValidationError: If a field is missing or malformed, or the date
                is before today.
            SlotUnavailableError: If the doctor is not working then, or the
                time is already taken.
            NotFoundError: If the clinic or doctor does not exist.
        """
        request = parse_booking_request(payload)
        date = parse_iso_date(request.date)
        if date < self._clock().date():
            raise ValidationError("date", f"{date.isoformat()} is in the past")
        if self._config.enforce_external_availability:
            self._ensure_available(request)
        return self.lifecycle.admit_booking(request, source=source, id_prefix=id_prefix)

    async def book_from_chat(
        self, payload: BookingRequest | Mapping[str, Any], *, clinic_id: str
    ) -> BookingOutcome:
        """Admit a chat-negotiated booking, then notify.

        The conversation's clinic always wins over any clinic id in the
        payload.  Notification failure is reported, never rolled back.
        """
        if isinstance(payload, BookingRequest):
            request: BookingRequest | dict[str, Any] = payload.model_copy(
                update={"clinic_id": clinic_id}
            )
        else:
            request = {k: v for k, v in payload.items() if k not in ("clinicId", "clinic_id")}
            request["clinic_id"] = clinic_id

        appointment = self.admit_external_booking(request, source=AppointmentSource.WEB)
        notified = await self.notify_new_appointment(appointment)
        return BookingOutcome(appointment=appointment, notified=notified)

    def simulate_incoming_whatsapp(self, rng: random.Random | None = None) -> Appointment:
        """Admit a made-up WhatsApp booking two days ahead, at the doctor's first free slot."""
        rng = rng or random.Random()
        clinics = [c for c in self._store.clinics if c.doctors]
        if not clinics:
            raise NotFoundError("doctor", "*")

        clinic = rng.choice(clinics)
        doctor = rng.choice(clinic.doctors)
        target = self._clock().date() + dt.timedelta(days=2)

        for date, slot in availability.iter_open_slots(
            doctor.schedule, target, None, self._config.scan_horizon_days
        ):
            start = hhmm_to_time(slot.start)
            if not self._has_conflict(doctor.id, date, start):
                break
        else:
            raise SlotUnavailableError(
                f"No free slot within {self._config.scan_horizon_days} days", doctor.id
            )

        payload = {
            "clinic_id": clinic.id,
            "doctor_id": doctor.id,
            "patient_name": rng.choice(_SIMULATED_PATIENTS),
            "patient_phone": f"+1{rng.randint(1_000_000_000, 9_999_999_999)}",
            "date": date.isoformat(),
            "time": time_to_12h(start),
            "reason": "Urgent consult via WhatsApp Cloud API",
        }
        appointment = self.admit_external_booking(
            payload, source=AppointmentSource.WHATSAPP, id_prefix="wa"
        )
        logger.info("Simulated WhatsApp booking received: id={}", appointment.id)
        return appointment

    async def notify_new_appointment(self, appointment: Appointment) -> bool:
        """Send the new-appointment notification. Returns False on failure, never raises."""
        try:
            clinic = self._store.get_clinic(appointment.clinic_id)
            await self._notifier.send_new_appointment(appointment, clinic)
        except BookingError as exc:
            logger.warning(
                "Appointment {} admitted but notification failed; manual follow-up may be "
                "required: {}",
                appointment.id,
                exc,
            )
            return False

        logger.info("Notification delivered for appointment {}", appointment.id)
        return True

    # Transitions

    def confirm(self, appointment_id: str) -> Appointment:
        return self.lifecycle.confirm(appointment_id)

    def cancel(self, appointment_id: str) -> Appointment:
        return self.lifecycle.cancel(appointment_id)

    def check_in(self, appointment_id: str, doctor_id: str) -> Appointment:
        return self.lifecycle.check_in(appointment_id, doctor_id)

    def finalize_visit(self, appointment_id: str, details: VisitDetails) -> VisitRecord:
        return self.lifecycle.finalize_visit(appointment_id, details)

    # Schedule editing

    def add_slot(
        self,
        doctor_id: str,
        day: Weekday | str,
        slot: TimeRange | Mapping[str, str] | tuple[str, str],
    ) -> Doctor:
        _, doctor = self._store.locate_doctor(doctor_id)
        schedule = editor.add_slot(doctor.schedule, day, slot)
        self._warn_on_overlaps(doctor_id, schedule, day)
        return self.directory.update_schedule(doctor_id, schedule)

    def remove_slot(self, doctor_id: str, day: Weekday | str, index: int) -> Doctor:
        _, doctor = self._store.locate_doctor(doctor_id)
        return self.directory.update_schedule(
            doctor_id, editor.remove_slot(doctor.schedule, day, index)
        )

    def toggle_day(self, doctor_id: str, day: Weekday | str) -> Doctor:
        _, doctor = self._store.locate_doctor(doctor_id)
        return self.directory.update_schedule(doctor_id, editor.toggle_day(doctor.schedule, day))

    # Queries

    def list_appointments(
        self,
        *,
        status: AppointmentStatus | None = None,
        clinic_id: str | None = None,
        search: str | None = None,
    ) -> list[Appointment]:
        """Most-recent-first appointments matching every given filter.

        ``search`` matches patient name, phone or reason, case-insensitively.
        """
        term = (search or "").strip().lower()
        return [
            a
            for a in self._store.appointments
            if (status is None or a.status == status)
            and (clinic_id is None or a.clinic_id == clinic_id)
            and (
                not term
                or term in a.patient_name.lower()
                or term in a.patient_phone.lower()
                or term in a.reason.lower()
            )
        ]

    def doctor_appointments(self, doctor_id: str) -> list[Appointment]:
        return [a for a in self._store.appointments if a.doctor_id == doctor_id]

    def status_counts(self) -> dict[AppointmentStatus, int]:
        counts = dict.fromkeys(AppointmentStatus, 0)
        for appointment in self._store.appointments:
            counts[appointment.status] += 1
        return counts

    def todays_appointment_count(self, doctor_id: str, today: dt.date | None = None) -> int:
        day = today or self._clock().date()
        return sum(1 for a in self.doctor_appointments(doctor_id) if a.date == day)

    def doctor_visits(self, doctor_id: str) -> list[VisitRecord]:
        return [v for v in self._store.visits if v.doctor_id == doctor_id]

    def clinic_specialties(self) -> list[str]:
        """Category filter options: ``ALL_SPECIALTIES`` then each clinic specialty once."""
        specialties = [ALL_SPECIALTIES]
        for clinic in self._store.clinics:
            specialty = clinic.specialty.strip()
            if specialty and specialty not in specialties:
                specialties.append(specialty)
        return specialties

    def search_clinics(
        self, search: str | None = None, specialty: str | None = None
    ) -> list[Clinic]:
        """Clinics whose name or specialty contains ``search``, case-insensitively.

        A ``specialty`` of None, blank or ``ALL_SPECIALTIES`` does not filter.
        """
        term = (search or "").strip().lower()
        category = (specialty or "").strip()
        if category == ALL_SPECIALTIES:
            category = ""
        return [
            c
            for c in self._store.clinics
            if (not term or term in c.name.lower() or term in c.specialty.lower())
            and (not category or c.specialty == category)
        ]

    def appointment_counts_by_clinic(self) -> dict[str, int]:
        counts = {clinic.id: 0 for clinic in self._store.clinics}
        for appointment in self._store.appointments:
            if appointment.clinic_id in counts:
                counts[appointment.clinic_id] += 1
        return counts

    def source_counts(self) -> dict[AppointmentSource, int]:
        counts = dict.fromkeys(AppointmentSource, 0)
        for appointment in self._store.appointments:
            counts[appointment.source] += 1
        return counts

    async def close(self) -> None:
        await self._notifier.close()

    def _ensure_available(self, request: BookingRequest) -> None:
        date = parse_iso_date(request.date)
        time = parse_clock_time(request.time)
        doctor = self._store.get_doctor(request.clinic_id.strip(), request.doctor_id.strip())

        if not availability.is_bookable(doctor.schedule, date, time):
            suggestion = availability.next_available_slot(
                doctor.schedule, date, time, self._config.scan_horizon_days
            )
            raise SlotUnavailableError(
                f"{doctor.name} is not available on {date:%A} {date.isoformat()} "
                f"at {time_to_12h(time)}",
                doctor.id,
                (suggestion[0], time_to_12h(hhmm_to_time(suggestion[1].start)))
                if suggestion
                else None,
            )
        if self._has_conflict(doctor.id, date, time):
            raise SlotUnavailableError(
                f"{doctor.name} already has an appointment on {date.isoformat()} "
                f"at {time_to_12h(time)}",
                doctor.id,
            )

    def _has_conflict(self, doctor_id: str, date: dt.date, time: dt.time) -> bool:
        for appointment in self._store.appointments:
            if (
                appointment.doctor_id != doctor_id
                or appointment.date != date
                or appointment.status == AppointmentStatus.CANCELLED
            ):
                continue
            try:
                if parse_clock_time(appointment.time) == time:
                    return True
            except ValidationError:
                continue
        return False

    def _warn_on_overlaps(
        self, doctor_id: str, schedule: WeeklySchedule, day: Weekday | str
    ) -> None:
        entry = day_schedule(schedule, day)
        overlaps = editor.find_overlaps(entry) if entry else []
        if overlaps:
            logger.warning(
                "Doctor {} has {} overlapping slot pair(s) on {}: {}",
                doctor_id,
                len(overlaps),
                entry.day.value if entry else day,
                ", ".join(f"{a} / {b}" for a, b in overlaps),
            )
