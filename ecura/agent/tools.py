from enum import Enum

from pipecat.adapters.schemas.function_schema import FunctionSchema


class ToolCall(Enum):
    BOOK_APPOINTMENT = "bookAppointment"


BOOK_APPOINTMENT_SCHEMA = FunctionSchema(
    name=ToolCall.BOOK_APPOINTMENT.value,
    description=(
        "Registers a new medical appointment in the system. ONLY call this once "
        "the patient's name, phone number, doctor, date and time are all known."
    ),
    properties={
        "patientName": {
            "type": "string",
            "description": "Full name of the patient.",
        },
        "patientPhone": {
            "type": "string",
            "description": "Contact phone number.",
        },
        "date": {
            "type": "string",
            "description": (
                "Appointment date in ISO 8601 format (YYYY-MM-DD). "
                "Convert any natural language date to this format."
            ),
        },
        "time": {
            "type": "string",
            "description": "Preferred time, e.g. 09:30 AM. Must fall inside the doctor's hours.",
        },
        "doctorId": {
            "type": "string",
            "description": "The specific doctor's unique ID provided in the clinic context.",
        },
        "reason": {
            "type": "string",
            "description": "Brief symptom or reason for the visit.",
        },
    },
    required=["patientName", "patientPhone", "date", "time", "doctorId"],
)
