from collections.abc import Iterable

from ecura.domain.exceptions import NotFoundError
from ecura.domain.models import Appointment, Clinic, Doctor, VisitRecord


class ClinicStore:
    """In-memory owner of clinics, appointments and visit records.

    Appointments and visits are kept most-recent-first: new entries are
    inserted at the head.  Entities are immutable, so updates swap whole
    instances in place.
    """

    def __init__(
        self,
        clinics: Iterable[Clinic] = (),
        appointments: Iterable[Appointment] = (),
        visits: Iterable[VisitRecord] = (),
    ) -> None:
        self._clinics: dict[str, Clinic] = {c.id: c for c in clinics}
        self._appointments: list[Appointment] = list(appointments)
        self._visits: list[VisitRecord] = list(visits)

    # Clinics

    @property
    def clinics(self) -> list[Clinic]:
        return list(self._clinics.values())

    def get_clinic(self, clinic_id: str) -> Clinic:
        clinic = self._clinics.get(clinic_id)
        if clinic is None:
            raise NotFoundError("clinic", clinic_id)
        return clinic

    def save_clinic(self, clinic: Clinic) -> None:
        self._clinics[clinic.id] = clinic

    def remove_clinic(self, clinic_id: str) -> Clinic:
        clinic = self.get_clinic(clinic_id)
        del self._clinics[clinic_id]
        return clinic

    def get_doctor(self, clinic_id: str, doctor_id: str) -> Doctor:
        doctor = self.get_clinic(clinic_id).find_doctor(doctor_id)
        if doctor is None:
            raise NotFoundError("doctor", doctor_id)
        return doctor

    def locate_doctor(self, doctor_id: str) -> tuple[Clinic, Doctor]:
        """Find the clinic that employs ``doctor_id``."""
        for clinic in self._clinics.values():
            doctor = clinic.find_doctor(doctor_id)
            if doctor is not None:
                return clinic, doctor
        raise NotFoundError("doctor", doctor_id)

    # Appointments

    @property
    def appointments(self) -> list[Appointment]:
        return list(self._appointments)

    def get_appointment(self, appointment_id: str) -> Appointment:
        for appointment in self._appointments:
            if appointment.id == appointment_id:
                return appointment
        raise NotFoundError("appointment", appointment_id)

    def insert_appointment(self, appointment: Appointment) -> None:
        self._appointments.insert(0, appointment)

    def replace_appointment(self, appointment: Appointment) -> None:
        for index, existing in enumerate(self._appointments):
            if existing.id == appointment.id:
                self._appointments[index] = appointment
                return
        raise NotFoundError("appointment", appointment.id)

    # Visits

    @property
    def visits(self) -> list[VisitRecord]:
        return list(self._visits)

    def insert_visit(self, visit: VisitRecord) -> None:
        self._visits.insert(0, visit)

    def visits_for_appointment(self, appointment_id: str) -> list[VisitRecord]:
        return [v for v in self._visits if v.appointment_id == appointment_id]
