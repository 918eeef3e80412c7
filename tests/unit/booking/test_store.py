import pytest

from ecura.booking.ids import SequentialIdGenerator, UuidIdGenerator
from ecura.booking.store import ClinicStore
from ecura.domain.exceptions import NotFoundError


class TestClinicStore:
    def test_get_clinic(self, store: ClinicStore) -> None:
        assert store.get_clinic("c1").name == "Evergreen Family Clinic"

    def test_unknown_clinic(self, store: ClinicStore) -> None:
        with pytest.raises(NotFoundError, match="clinic not found: 'c9'"):
            store.get_clinic("c9")

    def test_locate_doctor_finds_the_owning_clinic(self, store: ClinicStore) -> None:
        clinic, doctor = store.locate_doctor("d4")

        assert clinic.id == "c2"
        assert doctor.name == "Dr. Mark Thompson"

    def test_locate_unknown_doctor(self, store: ClinicStore) -> None:
        with pytest.raises(NotFoundError):
            store.locate_doctor("d9")

    def test_collections_are_copies(self, store: ClinicStore) -> None:
        store.appointments.clear()
        store.visits.clear()

        assert len(store.appointments) == 2
        assert len(store.visits) == 1

    def test_replace_unknown_appointment(self, store: ClinicStore) -> None:
        ghost = store.get_appointment("a1").model_copy(update={"id": "ghost"})

        with pytest.raises(NotFoundError):
            store.replace_appointment(ghost)

    def test_remove_clinic(self, store: ClinicStore) -> None:
        removed = store.remove_clinic("c2")

        assert removed.id == "c2"
        assert [c.id for c in store.clinics] == ["c1"]

    def test_empty_store(self) -> None:
        store = ClinicStore()

        assert store.clinics == []
        assert store.appointments == []


class TestIdGenerators:
    def test_sequential_counts_per_prefix(self) -> None:
        ids = SequentialIdGenerator()

        assert [ids.new_id("apt"), ids.new_id("apt"), ids.new_id("visit")] == [
            "apt-1",
            "apt-2",
            "visit-1",
        ]

    def test_sequential_custom_start(self) -> None:
        assert SequentialIdGenerator(start=100).new_id("doc") == "doc-100"

    def test_uuid_ids_are_prefixed_and_unique(self) -> None:
        ids = UuidIdGenerator()
        generated = {ids.new_id("apt") for _ in range(50)}

        assert len(generated) == 50
        assert all(i.startswith("apt-") for i in generated)
