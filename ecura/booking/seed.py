"""Demo clinics, appointments and visits used by the terminal bot and the tests."""

import datetime as dt

from ecura.booking.store import ClinicStore
from ecura.domain.models import (
    Appointment,
    AppointmentSource,
    AppointmentStatus,
    Clinic,
    Doctor,
    Staff,
    StaffRole,
    VisitRecord,
    Vitals,
)
from ecura.scheduling.schedule import default_weekly_schedule


def demo_clinics() -> list[Clinic]:
    schedule = default_weekly_schedule()
    staff = (
        Staff(
            id="s1",
            name="Nurse Joy",
            role=StaffRole.NURSE,
            email="joy@evergreen.com",
            phone="+123445566",
        ),
        Staff(
            id="s2",
            name="Alice Receptionist",
            role=StaffRole.RECEPTIONIST,
            email="alice@evergreen.com",
            phone="+123445577",
        ),
    )
    return [
        Clinic(
            id="c1",
            name="Evergreen Family Clinic",
            description=(
                "Specializing in comprehensive family care, wellness programs, "
                "and preventive medicine for all ages."
            ),
            location="123 Pine St, Seattle",
            specialty="Family Medicine",
            rating=4.8,
            reviews=124,
            doctors=(
                Doctor(
                    id="d1",
                    name="Dr. Sarah Smith",
                    specialty="General Practitioner",
                    schedule=schedule,
                ),
                Doctor(id="d2", name="Dr. James Wilson", specialty="Pediatrician", schedule=schedule),
            ),
            staff=staff,
        ),
        Clinic(
            id="c2",
            name="City Heart Specialists",
            description=(
                "Leading cardiac care with state-of-the-art diagnostic equipment "
                "and world-class specialists."
            ),
            location="456 Cardiac Ave, New York",
            specialty="Cardiology",
            rating=4.9,
            reviews=89,
            doctors=(
                Doctor(id="d3", name="Dr. Elena Rossi", specialty="Cardiologist", schedule=schedule),
                Doctor(
                    id="d4", name="Dr. Mark Thompson", specialty="Cardiac Surgeon", schedule=schedule
                ),
            ),
        ),
    ]


def demo_store(now: dt.datetime) -> ClinicStore:
    """A store holding the demo clinics plus two of today's appointments and one past visit."""
    today = now.date()
    appointments = [
        Appointment(
            id="a2",
            clinic_id="c2",
            doctor_id="d3",
            patient_name="Jane Smith",
            patient_phone="+1987654321",
            date=today,
            time="02:30 PM",
            status=AppointmentStatus.PENDING,
            reason="Chest pain followup",
            created_at=now - dt.timedelta(hours=12),
            source=AppointmentSource.WHATSAPP,
        ),
        Appointment(
            id="a1",
            clinic_id="c1",
            doctor_id="d1",
            patient_name="John Doe",
            patient_phone="+1234567890",
            date=today,
            time="10:00 AM",
            status=AppointmentStatus.CONFIRMED,
            reason="Annual Physical",
            created_at=now - dt.timedelta(days=1),
            source=AppointmentSource.WEB,
        ),
    ]
    visits = [
        VisitRecord(
            id="v1",
            appointment_id="a0",
            patient_name="John Doe",
            patient_phone="+1234567890",
            doctor_id="d1",
            clinic_id="c1",
            date=today - dt.timedelta(days=30),
            diagnosis="Mild hypertension",
            notes="Patient feels better, BP slightly elevated.",
            treatment="Reduce sodium intake, review in 2 weeks.",
            vitals=Vitals(bp="135/85", weight="82kg", temp="36.6C"),
        )
    ]
    return ClinicStore(clinics=demo_clinics(), appointments=appointments, visits=visits)
