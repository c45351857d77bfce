"""Tests for the algorithm / workflow / execution repositories."""

from __future__ import annotations

from labrules.core.models import Algorithm, Workflow
from labrules.core.repositories import AlgorithmRepository, ExecutionRepository, WorkflowRepository
from labrules.core.timestamps import generate_id


class TestAlgorithmRepository:
    def test_create_stamps_times(self, store, algorithm_data):
        saved = AlgorithmRepository(store).create(Algorithm.from_dict(algorithm_data))
        assert saved.id
        assert saved.created is not None
        assert saved.last_modified is not None
        assert saved.parameters[0].sub_parameters[0].config.max == 1.1

    def test_create_keeps_valid_id(self, store):
        wanted = generate_id()
        saved = AlgorithmRepository(store).create(Algorithm(name="x", id=wanted))
        assert saved.id == wanted

    def test_get_invalid_id(self, store):
        assert AlgorithmRepository(store).get("bogus") is None

    def test_update_preserves_created(self, store, saved_algorithm):
        repo = AlgorithmRepository(store)
        changed = Algorithm.from_dict(saved_algorithm.to_dict())
        changed.name = "Renamed"
        changed.created = None
        updated = repo.update(saved_algorithm.id, changed)
        assert updated.name == "Renamed"
        assert updated.created == saved_algorithm.created
        assert updated.last_modified >= saved_algorithm.last_modified

    def test_update_missing(self, store):
        assert AlgorithmRepository(store).update(generate_id(), Algorithm(name="x")) is None

    def test_list_search(self, store):
        repo = AlgorithmRepository(store)
        repo.create(Algorithm(name="Blood Analysis"))
        repo.create(Algorithm(name="Urine", description="morning BLOOD-free sample"))
        repo.create(Algorithm(name="Hematology"))
        items, total = repo.list(search="blood")
        assert total == 2
        assert [a.name for a in items] == ["Blood Analysis", "Urine"]

    def test_list_blank_search_returns_all(self, store):
        repo = AlgorithmRepository(store)
        repo.create(Algorithm(name="a"))
        assert repo.list(search="  ")[1] == 1

    def test_get_many_skips_unknown(self, store, saved_algorithm):
        found = AlgorithmRepository(store).get_many([saved_algorithm.id, generate_id(), "bad"])
        assert list(found) == [saved_algorithm.id]

    def test_delete(self, store, saved_algorithm):
        repo = AlgorithmRepository(store)
        assert repo.delete(saved_algorithm.id) is True
        assert repo.delete("bad") is False
        assert repo.count() == 0


class TestWorkflowRepository:
    def test_create_and_get(self, store, saved_algorithm):
        repo = WorkflowRepository(store)
        saved = repo.create(Workflow(name="Daily", algorithm_order=[saved_algorithm.id]))
        assert repo.get(saved.id).algorithm_order == [saved_algorithm.id]

    def test_referencing(self, store, saved_algorithm):
        repo = WorkflowRepository(store)
        repo.create(Workflow(name="uses", algorithm_order=[saved_algorithm.id]))
        repo.create(Workflow(name="other", algorithm_order=[generate_id()]))
        assert [w.name for w in repo.referencing(saved_algorithm.id)] == ["uses"]

    def test_update_and_delete(self, store):
        repo = WorkflowRepository(store)
        saved = repo.create(Workflow(name="Daily", algorithm_order=["a"]))
        updated = repo.update(saved.id, Workflow(name="Nightly", algorithm_order=["b"]))
        assert updated.name == "Nightly"
        assert updated.created == saved.created
        assert repo.delete(saved.id) is True
        assert repo.get(saved.id) is None


class TestExecutionRepository:
    def test_newest_first_with_filters(self, store):
        repo = ExecutionRepository(store)
        repo.save({"kind": "algorithm", "patient_id": "P1", "started_at": "2026-01-01T00:00:00+00:00"})
        repo.save({"kind": "workflow", "patient_id": "P1", "started_at": "2026-01-03T00:00:00+00:00"})
        repo.save({"kind": "algorithm", "patient_id": "P2", "started_at": "2026-01-02T00:00:00+00:00"})

        docs, total = repo.list()
        assert total == 3
        assert [d["started_at"][:10] for d in docs] == ["2026-01-03", "2026-01-02", "2026-01-01"]

        docs, total = repo.list(kind="algorithm", patient_id="P1")
        assert total == 1
        assert docs[0]["started_at"].startswith("2026-01-01")

    def test_get(self, store):
        repo = ExecutionRepository(store)
        doc = repo.save({"kind": "algorithm"})
        assert repo.get(doc["id"])["kind"] == "algorithm"
        assert repo.get("bad") is None
