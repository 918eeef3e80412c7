import datetime as dt

from ecura.domain.models import Clinic, Doctor


def _render_schedule(doctor: Doctor) -> str:
    days = []
    for entry in doctor.schedule.days:
        if entry.enabled and entry.slots:
            ranges = ", ".join(str(slot) for slot in entry.slots)
            days.append(f"{entry.day.value} {ranges}")
        else:
            days.append(f"{entry.day.value} unavailable")
    return "; ".join(days)


def build_clinic_context(clinic: Clinic) -> str:
    """Describe the clinic and each doctor's granular weekly schedule for the model."""
    doctors = "\n".join(
        f"- {d.name} (ID: {d.id}, Specialty: {d.specialty}) | Schedule: {_render_schedule(d)}"
        for d in clinic.doctors
    )
    return f"""\
Clinic Name: {clinic.name}
Location: {clinic.location}
Available Doctors:
{doctors or "- none"}
Rating: {clinic.rating} stars"""


def build_system_prompt(clinic_context: str, now: dt.datetime) -> str:
    """Build the system prompt, injecting the clinic context and the current date/time."""
    return f"""\
You are a professional, caring WhatsApp-based medical assistant for the following provider:
{clinic_context}

## Scheduling Rules
- You MUST respect the granular schedules provided for each doctor.
- If a doctor is unavailable on a day, do not offer that day.
- Only offer times that fall within the listed time ranges \
(e.g. if the range is 10:00-12:00, do not offer 01:00 PM).
- If the requested time is outside working hours, suggest the next available slot.
- The booking system re-checks every request; if it rejects one, apologise and offer \
the suggested alternative.

## Tone
- Empathetic: use phrases like "I understand" and "We're here to help."
- WhatsApp style: bold important words like *dates* or *names*.

## Booking Flow
1. Greet the user and identify the clinic.
2. Ask for the patient's full name and phone number.
3. Negotiate the doctor, date and time based on the schedules above.
4. Ask for the reason for the visit.
5. ONLY call `bookAppointment` once you have the name, phone, doctor ID, date and time.

## Formats
- Dates as YYYY-MM-DD, times as HH:MM AM/PM.
- Current date/time: {now:%A} {now:%Y-%m-%d %H:%M}.
"""
