import datetime as dt
from enum import Enum

from pydantic import AliasChoices, BaseModel, ConfigDict, Field, field_validator

_HHMM_PATTERN = r"^([01]\d|2[0-3]):[0-5]\d$"


class Weekday(str, Enum):
    """Days of the week, in the order a weekly schedule is stored."""

    MONDAY = "Monday"
    TUESDAY = "Tuesday"
    WEDNESDAY = "Wednesday"
    THURSDAY = "Thursday"
    FRIDAY = "Friday"
    SATURDAY = "Saturday"
    SUNDAY = "Sunday"

    @classmethod
    def from_date(cls, date: dt.date) -> "Weekday":
        return list(cls)[date.weekday()]


class AppointmentStatus(str, Enum):
    """Possible states of an appointment."""

    PENDING = "PENDING"
    CONFIRMED = "CONFIRMED"
    CHECKED_IN = "CHECKED_IN"
    CHECKED_OUT = "CHECKED_OUT"
    CANCELLED = "CANCELLED"
    COMPLETED = "COMPLETED"


class AppointmentSource(str, Enum):
    """Channel a booking arrived through."""

    WEB = "WEB"
    WHATSAPP = "WHATSAPP"


class StaffRole(str, Enum):
    NURSE = "NURSE"
    RECEPTIONIST = "RECEPTIONIST"
    ADMIN_ASSISTANT = "ADMIN_ASSISTANT"


class TimeRange(BaseModel):
    """A contiguous working interval within one day, as zero-padded ``HH:MM`` strings.

    Fixed-width formatting makes lexicographic comparison equal to
    chronological comparison.
    """

    model_config = ConfigDict(frozen=True)

    start: str = Field(pattern=_HHMM_PATTERN)
    end: str = Field(pattern=_HHMM_PATTERN)

    @property
    def is_valid(self) -> bool:
        return self.start < self.end

    def __str__(self) -> str:
        return f"{self.start}-{self.end}"


class DaySchedule(BaseModel):
    """One weekday's enabled flag plus its slots (unsorted, possibly overlapping)."""

    model_config = ConfigDict(frozen=True)

    day: Weekday
    enabled: bool = False
    slots: tuple[TimeRange, ...] = ()


class WeeklySchedule(BaseModel):
    """A doctor's recurring availability: exactly one DaySchedule per weekday."""

    model_config = ConfigDict(frozen=True)

    days: tuple[DaySchedule, ...]

    @field_validator("days")
    @classmethod
    def _one_entry_per_weekday(cls, days: tuple[DaySchedule, ...]) -> tuple[DaySchedule, ...]:
        seen = [d.day for d in days]
        if len(seen) != len(Weekday) or set(seen) != set(Weekday):
            raise ValueError("a weekly schedule needs exactly one entry per weekday")
        order = list(Weekday)
        return tuple(sorted(days, key=lambda d: order.index(d.day)))


class Doctor(BaseModel):
    model_config = ConfigDict(frozen=True)

    id: str
    name: str
    specialty: str
    avatar: str = ""
    schedule: WeeklySchedule


class Staff(BaseModel):
    model_config = ConfigDict(frozen=True)

    id: str
    name: str
    role: StaffRole
    email: str = ""
    phone: str = ""
    avatar: str = ""


class Clinic(BaseModel):
    """A clinic and the doctors and staff it exclusively owns."""

    model_config = ConfigDict(frozen=True)

    id: str
    name: str
    location: str
    description: str = ""
    image: str = ""
    specialty: str = ""
    rating: float = 4.5
    reviews: int = 0
    doctors: tuple[Doctor, ...] = ()
    staff: tuple[Staff, ...] = ()

    def find_doctor(self, doctor_id: str) -> Doctor | None:
        return next((d for d in self.doctors if d.id == doctor_id), None)


class BookingRequest(BaseModel):
    """An untrusted inbound booking request.

    Accepts both snake_case keys and the camelCase keys produced by the
    chat collaborator's ``bookAppointment`` function call.  Absent fields
    default to empty strings so that admission can name the missing field.
    """

    model_config = ConfigDict(frozen=True, populate_by_name=True, coerce_numbers_to_str=True)

    clinic_id: str = Field(default="", validation_alias=AliasChoices("clinic_id", "clinicId"))
    doctor_id: str = Field(default="", validation_alias=AliasChoices("doctor_id", "doctorId"))
    patient_name: str = Field(
        default="", validation_alias=AliasChoices("patient_name", "patientName")
    )
    patient_phone: str = Field(
        default="", validation_alias=AliasChoices("patient_phone", "patientPhone")
    )
    date: str = ""
    time: str = ""
    reason: str | None = None

    @field_validator(
        "clinic_id", "doctor_id", "patient_name", "patient_phone", "date", "time", mode="before"
    )
    @classmethod
    def _none_is_blank(cls, value: object) -> object:
        return "" if value is None else value


class Appointment(BaseModel):
    """A booked appointment. Mutated only through status transitions."""

    model_config = ConfigDict(frozen=True)

    id: str
    clinic_id: str
    doctor_id: str
    patient_name: str
    patient_phone: str
    date: dt.date
    time: str
    status: AppointmentStatus = AppointmentStatus.PENDING
    reason: str
    created_at: dt.datetime
    source: AppointmentSource = AppointmentSource.WEB


class Vitals(BaseModel):
    model_config = ConfigDict(frozen=True)

    bp: str = ""
    weight: str = ""
    temp: str = ""


class VisitDetails(BaseModel):
    """Clinical fields captured by the doctor at checkout."""

    model_config = ConfigDict(frozen=True)

    diagnosis: str = ""
    treatment: str = ""
    notes: str = ""
    vitals: Vitals | None = None


class VisitRecord(BaseModel):
    """Immutable clinical record created once, at checkout, from one appointment."""

    model_config = ConfigDict(frozen=True)

    id: str
    appointment_id: str
    patient_name: str
    patient_phone: str
    doctor_id: str
    clinic_id: str
    date: dt.date
    diagnosis: str = ""
    treatment: str = ""
    notes: str = ""
    vitals: Vitals | None = None
