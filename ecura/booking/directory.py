from typing import Any, TypeVar

from loguru import logger
from pydantic import BaseModel
from pydantic import ValidationError as PydanticValidationError

from ecura.booking.ports import IdGenerator
from ecura.booking.store import ClinicStore
from ecura.domain.exceptions import NotFoundError, ValidationError
from ecura.domain.models import Clinic, Doctor, Staff, StaffRole, WeeklySchedule
from ecura.scheduling.schedule import default_weekly_schedule

_CLINIC_PROFILE_FIELDS = frozenset(
    {"name", "location", "description", "image", "specialty", "rating", "reviews"}
)
_DOCTOR_PROFILE_FIELDS = frozenset({"name", "specialty", "avatar"})
_STAFF_PROFILE_FIELDS = frozenset({"name", "role", "email", "phone", "avatar"})


ModelT = TypeVar("ModelT", bound=BaseModel)


def _require_name(name: str, field: str = "name") -> str:
    if not isinstance(name, str) or not name.strip():
        raise ValidationError(field, "is required")
    return name.strip()


def _profile_changes(changes: dict[str, Any], allowed: frozenset[str]) -> dict[str, Any]:
    unknown = sorted(set(changes) - allowed)
    if unknown:
        raise ValidationError(unknown[0], "cannot be changed here")
    if "name" in changes:
        changes = {**changes, "name": _require_name(changes["name"])}
    return changes


def _rebuild(entity: ModelT, changes: dict[str, Any]) -> ModelT:
    """Apply ``changes`` through full model validation.

    Raises:
        ValidationError: Naming the first field pydantic rejected.
    """
    try:
        return type(entity).model_validate({**entity.model_dump(), **changes})
    except PydanticValidationError as exc:
        error = exc.errors()[0]
        field = ".".join(str(part) for part in error["loc"]) or "changes"
        raise ValidationError(field, error["msg"]) from exc


class ClinicDirectory:
    """Clinic, doctor and staff management.

    A clinic owns its doctors and staff outright: removing the clinic removes
    them too.  Appointments and visit records are left untouched.
    """

    def __init__(self, store: ClinicStore, id_generator: IdGenerator) -> None:
        self._store = store
        self._ids = id_generator

    # Clinics

    def create_clinic(
        self,
        name: str,
        location: str,
        *,
        description: str = "",
        image: str = "",
        specialty: str = "",
    ) -> Clinic:
        clinic = Clinic(
            id=self._ids.new_id("clinic"),
            name=_require_name(name),
            location=location.strip(),
            description=description,
            image=image,
            specialty=specialty,
        )
        self._store.save_clinic(clinic)
        logger.info("Clinic created: id={}", clinic.id)
        return clinic

    def update_clinic(self, clinic_id: str, **changes: Any) -> Clinic:
        clinic = self._store.get_clinic(clinic_id)
        updated = _rebuild(clinic, _profile_changes(changes, _CLINIC_PROFILE_FIELDS))
        self._store.save_clinic(updated)
        return updated

    def delete_clinic(self, clinic_id: str) -> Clinic:
        clinic = self._store.remove_clinic(clinic_id)
        logger.info(
            "Clinic deleted: id={} ({} doctors, {} staff removed)",
            clinic_id,
            len(clinic.doctors),
            len(clinic.staff),
        )
        return clinic

    # Doctors

    def add_doctor(
        self,
        clinic_id: str,
        name: str,
        specialty: str,
        *,
        avatar: str = "",
        schedule: WeeklySchedule | None = None,
    ) -> Doctor:
        """Add a doctor to a clinic; without an explicit schedule the default one applies."""
        clinic = self._store.get_clinic(clinic_id)
        doctor = Doctor(
            id=self._ids.new_id("doc"),
            name=_require_name(name),
            specialty=specialty.strip(),
            avatar=avatar,
            schedule=schedule or default_weekly_schedule(),
        )
        self._store.save_clinic(clinic.model_copy(update={"doctors": (*clinic.doctors, doctor)}))
        logger.info("Doctor {} added to clinic {}", doctor.id, clinic_id)
        return doctor

    def update_doctor(
        self, doctor_id: str, *, clinic_id: str | None = None, **changes: Any
    ) -> Doctor:
        """Update a doctor's profile, optionally moving them to ``clinic_id``.

        The schedule travels with the doctor.
        """
        current_clinic, doctor = self._store.locate_doctor(doctor_id)
        updated = _rebuild(doctor, _profile_changes(changes, _DOCTOR_PROFILE_FIELDS))

        if clinic_id is None or clinic_id == current_clinic.id:
            self._replace_doctor(current_clinic, updated)
            return updated

        target = self._store.get_clinic(clinic_id)
        self._store.save_clinic(
            current_clinic.model_copy(
                update={"doctors": tuple(d for d in current_clinic.doctors if d.id != doctor_id)}
            )
        )
        self._store.save_clinic(target.model_copy(update={"doctors": (*target.doctors, updated)}))
        logger.info("Doctor {} moved from clinic {} to {}", doctor_id, current_clinic.id, clinic_id)
        return updated

    def remove_doctor(self, clinic_id: str, doctor_id: str) -> Doctor:
        clinic = self._store.get_clinic(clinic_id)
        doctor = self._store.get_doctor(clinic_id, doctor_id)
        self._store.save_clinic(
            clinic.model_copy(
                update={"doctors": tuple(d for d in clinic.doctors if d.id != doctor_id)}
            )
        )
        logger.info("Doctor {} removed from clinic {}", doctor_id, clinic_id)
        return doctor

    def update_schedule(self, doctor_id: str, schedule: WeeklySchedule) -> Doctor:
        clinic, doctor = self._store.locate_doctor(doctor_id)
        updated = doctor.model_copy(update={"schedule": schedule})
        self._replace_doctor(clinic, updated)
        return updated

    # Staff

    def add_staff(
        self,
        clinic_id: str,
        name: str,
        role: StaffRole | str,
        *,
        email: str = "",
        phone: str = "",
        avatar: str = "",
    ) -> Staff:
        clinic = self._store.get_clinic(clinic_id)
        member = Staff(
            id=self._ids.new_id("staff"),
            name=_require_name(name),
            role=self._parse_role(role),
            email=email,
            phone=phone,
            avatar=avatar,
        )
        self._store.save_clinic(clinic.model_copy(update={"staff": (*clinic.staff, member)}))
        logger.info("Staff member {} added to clinic {}", member.id, clinic_id)
        return member

    def update_staff(self, clinic_id: str, staff_id: str, **changes: Any) -> Staff:
        clinic = self._store.get_clinic(clinic_id)
        member = self._find_staff(clinic, staff_id)
        changes = _profile_changes(changes, _STAFF_PROFILE_FIELDS)
        if "role" in changes:
            changes["role"] = self._parse_role(changes["role"])
        updated = _rebuild(member, changes)
        self._store.save_clinic(
            clinic.model_copy(
                update={"staff": tuple(updated if s.id == staff_id else s for s in clinic.staff)}
            )
        )
        return updated

    def remove_staff(self, clinic_id: str, staff_id: str) -> Staff:
        clinic = self._store.get_clinic(clinic_id)
        member = self._find_staff(clinic, staff_id)
        self._store.save_clinic(
            clinic.model_copy(update={"staff": tuple(s for s in clinic.staff if s.id != staff_id)})
        )
        logger.info("Staff member {} removed from clinic {}", staff_id, clinic_id)
        return member

    def _replace_doctor(self, clinic: Clinic, doctor: Doctor) -> None:
        self._store.save_clinic(
            clinic.model_copy(
                update={"doctors": tuple(doctor if d.id == doctor.id else d for d in clinic.doctors)}
            )
        )

    @staticmethod
    def _find_staff(clinic: Clinic, staff_id: str) -> Staff:
        member = next((s for s in clinic.staff if s.id == staff_id), None)
        if member is None:
            raise NotFoundError("staff", staff_id)
        return member

    @staticmethod
    def _parse_role(role: StaffRole | str) -> StaffRole:
        try:
            return StaffRole(role)
        except ValueError as exc:
            raise ValidationError("role", f"{role!r} is not a staff role") from exc
