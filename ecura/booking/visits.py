import datetime as dt

from ecura.domain.models import Appointment, VisitDetails, VisitRecord


def build_visit_record(
    appointment: Appointment,
    details: VisitDetails,
    *,
    visit_id: str,
    visit_date: dt.date,
) -> VisitRecord:
    """Snapshot the appointment's patient and ownership into a new visit record."""
    return VisitRecord(
        id=visit_id,
        appointment_id=appointment.id,
        patient_name=appointment.patient_name,
        patient_phone=appointment.patient_phone,
        doctor_id=appointment.doctor_id,
        clinic_id=appointment.clinic_id,
        date=visit_date,
        diagnosis=details.diagnosis,
        treatment=details.treatment,
        notes=details.notes,
        vitals=details.vitals,
    )
