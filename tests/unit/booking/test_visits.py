import datetime as dt

import pytest

from ecura.booking.lifecycle import AppointmentLifecycle
from ecura.booking.store import ClinicStore
from ecura.booking.visits import build_visit_record
from ecura.domain.exceptions import InvalidStateError, NotFoundError
from ecura.domain.models import AppointmentStatus, VisitDetails, Vitals


@pytest.fixture
def details() -> VisitDetails:
    return VisitDetails(
        diagnosis="Seasonal flu",
        treatment="Rest and fluids",
        notes="Follow up if fever persists",
        vitals=Vitals(bp="120/80", weight="70kg", temp="37.9C"),
    )


class TestFinalizeVisit:
    def test_checks_out_and_records_the_visit(
        self,
        lifecycle: AppointmentLifecycle,
        store: ClinicStore,
        details: VisitDetails,
        now: dt.datetime,
    ) -> None:
        lifecycle.check_in("a1", "d1")

        visit = lifecycle.finalize_visit("a1", details)

        assert store.get_appointment("a1").status == AppointmentStatus.CHECKED_OUT
        assert store.visits[0] == visit
        assert visit.appointment_id == "a1"
        assert visit.doctor_id == "d1"
        assert visit.clinic_id == "c1"
        assert visit.patient_name == "John Doe"
        assert visit.date == now.date()
        assert visit.vitals == Vitals(bp="120/80", weight="70kg", temp="37.9C")

    def test_visit_ids_are_distinct_from_appointment_ids(
        self, lifecycle: AppointmentLifecycle, details: VisitDetails
    ) -> None:
        lifecycle.check_in("a1", "d1")

        visit = lifecycle.finalize_visit("a1", details)

        assert visit.id == "visit-1"

    def test_explicit_visit_date(
        self, lifecycle: AppointmentLifecycle, details: VisitDetails
    ) -> None:
        lifecycle.check_in("a1", "d1")

        visit = lifecycle.finalize_visit("a1", details, visit_date=dt.date(2026, 3, 17))

        assert visit.date == dt.date(2026, 3, 17)

    def test_only_once(
        self, lifecycle: AppointmentLifecycle, store: ClinicStore, details: VisitDetails
    ) -> None:
        lifecycle.check_in("a1", "d1")
        lifecycle.finalize_visit("a1", details)

        with pytest.raises(InvalidStateError):
            lifecycle.finalize_visit("a1", details)

        assert len(store.visits_for_appointment("a1")) == 1

    @pytest.mark.parametrize("appointment_id", ["a1", "a2"], ids=["confirmed", "pending"])
    def test_requires_check_in(
        self,
        lifecycle: AppointmentLifecycle,
        store: ClinicStore,
        details: VisitDetails,
        appointment_id: str,
    ) -> None:
        before = store.get_appointment(appointment_id).status

        with pytest.raises(InvalidStateError):
            lifecycle.finalize_visit(appointment_id, details)

        assert store.get_appointment(appointment_id).status == before
        assert store.visits_for_appointment(appointment_id) == []

    def test_unknown_appointment(
        self, lifecycle: AppointmentLifecycle, details: VisitDetails
    ) -> None:
        with pytest.raises(NotFoundError):
            lifecycle.finalize_visit("a404", details)

    def test_vitals_are_optional(self, lifecycle: AppointmentLifecycle) -> None:
        lifecycle.check_in("a2", "d3")

        visit = lifecycle.finalize_visit("a2", VisitDetails(diagnosis="Stable"))

        assert visit.vitals is None
        assert visit.treatment == ""


class TestBuildVisitRecord:
    def test_snapshots_patient_details(self, store: ClinicStore, details: VisitDetails) -> None:
        appointment = store.get_appointment("a2")

        visit = build_visit_record(
            appointment, details, visit_id="v9", visit_date=dt.date(2026, 3, 16)
        )

        assert visit.patient_phone == appointment.patient_phone
        assert visit.doctor_id == "d3"
        assert visit.diagnosis == "Seasonal flu"
        assert visit.notes == "Follow up if fever persists"
