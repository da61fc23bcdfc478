"""
Tests for durable booking session persistence.
"""

from __future__ import annotations

import json
import tempfile
from datetime import date, timedelta
from pathlib import Path

import pytest

from medrent.application.exceptions import ValidationError
from medrent.application.use_cases.booking_session import BookingSessionUseCase, UnknownSessionError
from medrent.application.use_cases.booking_workflow import BookingWorkflow
from medrent.domain.entities.booking_record import BookingRecord, CustomerInfo, PaymentStatus
from medrent.domain.entities.booking_stage import BookingStage
from medrent.infrastructure.catalog.category_store import CategoryCatalogStore
from medrent.infrastructure.inventory.memory_inventory import build_demo_inventory
from medrent.infrastructure.store.json_store import JsonWorkflowStore
from medrent.infrastructure.store.memory_store import MemoryBookingRepository, MemoryWorkflowStore

START = date(2025, 6, 2)


def _paid_workflow() -> BookingWorkflow:
    workflow = BookingWorkflow(
        availability=build_demo_inventory({"hilton": 0, "johannesburg": 1}),
        catalog=CategoryCatalogStore(),
        repository=MemoryBookingRepository(),
    )
    workflow.select_branch("hilton")
    workflow.select_equipment("wheelchairs")
    workflow.select_dates(START, START + timedelta(days=34))
    workflow.check_availability()
    workflow.accept_quote()
    workflow.submit_customer_info(
        CustomerInfo(name="Sipho", phone="083 000 1111", email="sipho@example.com", address="4 Elm Street")
    )
    workflow.accept_submitted_quote()
    workflow.confirm_payment()
    return workflow


def test_json_store_round_trips_full_record():
    """A confirmed cross-branch booking survives a save and reload unchanged."""
    workflow = _paid_workflow()
    with tempfile.TemporaryDirectory() as tmpdir:
        store = JsonWorkflowStore(data_dir=tmpdir)
        store.save("session-1", workflow.stage, workflow.record)

        stage, record = store.load("session-1")

        assert stage == BookingStage.CONFIRMED
        assert record == workflow.record
        assert record.cross_branch_booking is True
        assert record.pricing.details == workflow.record.pricing.details


def test_json_store_writes_readable_file():
    with tempfile.TemporaryDirectory() as tmpdir:
        store = JsonWorkflowStore(data_dir=tmpdir)
        session_id = store.create_session()

        data = json.loads((Path(tmpdir) / f"{session_id}.json").read_text(encoding="utf-8"))

        assert data["session_id"] == session_id
        assert data["stage"] == "branch_selection"
        assert data["record"]["payment_status"] == "pending"
        assert not list(Path(tmpdir).glob("*.tmp"))


def test_json_store_recovers_from_corrupt_file():
    with tempfile.TemporaryDirectory() as tmpdir:
        store = JsonWorkflowStore(data_dir=tmpdir)
        (Path(tmpdir) / "broken.json").write_text("{not json", encoding="utf-8")

        stage, record = store.load("broken")

        assert stage == BookingStage.BRANCH_SELECTION
        assert record == BookingRecord()


def test_memory_store_tracks_sessions():
    store = MemoryWorkflowStore()
    session_id = store.create_session()

    assert store.exists(session_id)
    assert not store.exists("missing")
    assert store.load(session_id) == (BookingStage.BRANCH_SELECTION, BookingRecord())


def test_repository_commit_is_idempotent_per_quote():
    workflow = _paid_workflow()
    repository = MemoryBookingRepository(prefix="TEST")

    first = repository.commit_booking(workflow.record)
    second = repository.commit_booking(workflow.record)

    assert first == second == "TEST-00001"
    assert len(repository.list_bookings()) == 1
    assert repository.get_booking(first).payment_status == PaymentStatus.PAID


def test_session_use_case_persists_between_requests():
    with tempfile.TemporaryDirectory() as tmpdir:
        uc = BookingSessionUseCase(
            store=JsonWorkflowStore(data_dir=tmpdir),
            availability=build_demo_inventory(),
            catalog=CategoryCatalogStore(),
            repository=MemoryBookingRepository(),
        )
        session_id = uc.start()
        uc.run(session_id, lambda wf: wf.select_branch("johannesburg"))
        uc.run(session_id, lambda wf: wf.select_equipment("walker-frames"))

        stage, record = uc.snapshot(session_id)

        assert stage == BookingStage.DATE_SELECTION
        assert record.branch_id == "johannesburg"
        assert record.category_id == "walker-frames"


def test_session_use_case_keeps_state_after_rejection():
    uc = BookingSessionUseCase(
        store=MemoryWorkflowStore(),
        availability=build_demo_inventory(),
        catalog=CategoryCatalogStore(),
        repository=MemoryBookingRepository(),
    )
    session_id = uc.start()
    uc.run(session_id, lambda wf: wf.select_branch("hilton"))

    with pytest.raises(ValidationError):
        uc.run(session_id, lambda wf: wf.select_equipment("unknown"))

    stage, record = uc.snapshot(session_id)
    assert stage == BookingStage.EQUIPMENT_SELECTION
    assert record.category_id is None


def test_unknown_session_raises():
    uc = BookingSessionUseCase(
        store=MemoryWorkflowStore(),
        availability=build_demo_inventory(),
        catalog=CategoryCatalogStore(),
        repository=MemoryBookingRepository(),
    )

    with pytest.raises(UnknownSessionError):
        uc.workflow("nope")
