"""Tests for the submission slots and the mock submit service"""
import json
import random

import pytest
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

import idcard_portal.db.models  # noqa: F401
from idcard_portal.db.base import Base
from idcard_portal.core.drafts import load_draft, save_draft
from idcard_portal.core.errors import SubmissionFailed
from idcard_portal.core.submissions import (
    MockSubmitService,
    build_submission,
    has_submitted,
    load_employee_record,
    load_last_submitted,
    save_employee_record,
    submit,
)
from idcard_portal.schemas import ApplicationStatus, FormValues
from idcard_portal.storage.keys import DRAFT_KEY, LAST_SUBMITTED_KEY
from idcard_portal.storage.sql import SqlStore


@pytest.mark.asyncio
async def test_submit_writes_every_slot_and_drops_draft(store, service, valid_values):
    save_draft(store, valid_values)

    app = await service.submit(valid_values, employee_no="EMP001")

    assert app.id == "EMP001"
    assert app.status == ApplicationStatus.SUBMITTED
    assert store.get(DRAFT_KEY) is None

    last = json.loads(store.get(LAST_SUBMITTED_KEY))
    assert last["status"] == "Submitted"
    assert last["formData"]["employeeNameEn"] == "Asha Rao"
    assert "submittedAt" in last

    assert store.get("idcard_submitted_EMP001") == "true"
    assert json.loads(store.get("idcard_data_EMP001"))["employeeNameEn"] == "Asha Rao"
    assert has_submitted(store, "EMP001")


@pytest.mark.asyncio
async def test_submit_without_employee_number(store, service):
    app = await service.submit(FormValues(employee_name_en="Nameless"))

    assert app.id.startswith("srv-")
    assert app.employee_no is None
    assert load_last_submitted(store).name == "Nameless"
    assert [k for k in store.keys() if k.startswith("idcard_")] == []


@pytest.mark.asyncio
async def test_simulated_failure_keeps_draft(store, valid_values):
    save_draft(store, valid_values, draft_id="draft-safe")
    failing = MockSubmitService(store, delay_seconds=0, failure_rate=1.0, rng=random.Random(7))

    with pytest.raises(SubmissionFailed):
        await failing.submit(valid_values, employee_no="EMP001")

    assert load_draft(store).id == "draft-safe"
    assert store.get(LAST_SUBMITTED_KEY) is None
    assert not has_submitted(store, "EMP001")


@pytest.mark.asyncio
async def test_storage_failure_is_a_submission_failure(store, service, valid_values):
    save_draft(store, valid_values, draft_id="draft-safe")
    store.fail_writes = True

    with pytest.raises(SubmissionFailed):
        await service.submit(valid_values, employee_no="EMP001")

    assert load_draft(store).id == "draft-safe"


@pytest.mark.asyncio
async def test_module_level_submit_uses_settings(store, valid_values):
    app = await submit(store, valid_values, "EMP001")
    assert app.employee_no == "EMP001"


def test_build_submission_fills_employee_number():
    app = build_submission(FormValues(employee_name_en="Asha Rao", department="Operations"), "EMP002")
    assert app.id == "EMP002"
    assert app.form_data.employee_no == "EMP002"
    assert app.name == "Asha Rao"
    assert app.department == "Operations"


def test_employee_record_wrapper_shape(store):
    store.set("idcard_data_EMP009", json.dumps({"formData": {"employeeNameEn": "Wrapped"}}))
    rec = load_employee_record(store, "EMP009")
    assert rec.form_data.employee_name_en == "Wrapped"
    assert rec.submitted is False


def test_employee_record_marker(store):
    save_employee_record(store, "EMP010", FormValues(employee_name_en="Marked"), submitted=True)
    assert load_employee_record(store, "EMP010").submitted is True

    store.set("idcard_submitted_EMP010", "yes")
    assert load_employee_record(store, "EMP010").submitted is False


def test_unreadable_records(store):
    store.set("idcard_data_EMP011", "[1, 2")
    store.set(LAST_SUBMITTED_KEY, json.dumps({"id": "x"}))
    assert load_employee_record(store, "EMP011") is None
    assert load_last_submitted(store) is None
    assert load_employee_record(store, "not valid!") is None


@pytest.mark.asyncio
async def test_submit_against_sql_store(valid_values):
    engine = create_engine("sqlite://", connect_args={"check_same_thread": False}, poolclass=StaticPool)
    Base.metadata.create_all(bind=engine)
    sql_store = SqlStore(sessionmaker(bind=engine, autoflush=False, autocommit=False))
    save_draft(sql_store, valid_values)

    # the commit runs on a worker thread
    app = await MockSubmitService(sql_store, delay_seconds=0, failure_rate=0).submit(valid_values, "EMP001")

    assert app.id == "EMP001"
    assert sql_store.get(DRAFT_KEY) is None
    assert sql_store.get("idcard_submitted_EMP001") == "true"
    assert load_last_submitted(sql_store).form_data.employee_name_en == "Asha Rao"
