"""Submission codec and the mock submit service.

There is no server behind the portal: "submitting" waits a little to look
like a network round trip, stamps the record, writes it to the
``lastSubmittedApplication`` slot (and the per-employee slots when the
employee number is known) and finally drops the draft.
"""

from __future__ import annotations

import asyncio
import json
import logging
import random
import time
from datetime import datetime

from pydantic import ValidationError
from starlette.concurrency import run_in_threadpool

from idcard_portal.core.config import settings
from idcard_portal.core.errors import StoreUnavailableError, SubmissionFailed
from idcard_portal.schemas import (
    ApplicationStatus,
    EmployeeRecord,
    FormValues,
    SubmittedApplication,
    utcnow,
)
from idcard_portal.storage.base import Store
from idcard_portal.storage.keys import (
    DRAFT_KEY,
    LAST_SUBMITTED_KEY,
    SUBMITTED_MARKER,
    employee_data_key,
    employee_submitted_key,
    normalize_employee_no,
)

logger = logging.getLogger("idcard_portal.submissions")


# ---- Codec ----


def load_last_submitted(store: Store) -> SubmittedApplication | None:
    try:
        raw = store.get(LAST_SUBMITTED_KEY)
    except StoreUnavailableError as exc:
        logger.warning("Last submission not readable: %s", exc)
        return None
    if not raw:
        return None
    try:
        return SubmittedApplication.model_validate_json(raw)
    except ValidationError as exc:
        logger.debug("Ignoring unreadable last submission: %s", exc)
        return None


def write_last_submitted(store: Store, application: SubmittedApplication) -> None:
    """Raises StoreUnavailableError; callers decide whether that is fatal."""
    store.set(LAST_SUBMITTED_KEY, application.to_json())


def load_employee_record(store: Store, employee_no: str | None) -> EmployeeRecord | None:
    emp = normalize_employee_no(employee_no)
    if emp is None:
        return None
    try:
        raw = store.get(employee_data_key(emp))
        marker = store.get(employee_submitted_key(emp))
    except StoreUnavailableError as exc:
        logger.warning("Employee record %s not readable: %s", emp, exc)
        return None
    if not raw:
        return None

    try:
        payload = json.loads(raw)
    except ValueError:
        logger.debug("Ignoring unreadable employee record %s", emp)
        return None
    # either the bare form values or a wrapper carrying them under formData
    if isinstance(payload, dict) and isinstance(payload.get("formData"), dict):
        payload = payload["formData"]
    if not isinstance(payload, dict):
        return None
    try:
        values = FormValues.model_validate(payload)
    except ValidationError as exc:
        logger.debug("Ignoring malformed employee record %s: %s", emp, exc)
        return None
    return EmployeeRecord(employee_no=emp, form_data=values, submitted=(marker == SUBMITTED_MARKER))


def save_employee_record(store: Store, employee_no: str, values: FormValues, *, submitted: bool = False) -> EmployeeRecord:
    """Write the per-employee snapshot; ``submitted`` also sets the marker.

    Raises StoreUnavailableError.
    """
    emp = normalize_employee_no(employee_no)
    if emp is None:
        raise ValueError(f"invalid employee number: {employee_no!r}")
    store.set(employee_data_key(emp), values.to_json())
    if submitted:
        store.set(employee_submitted_key(emp), SUBMITTED_MARKER)
    return EmployeeRecord(employee_no=emp, form_data=values, submitted=submitted)


def has_submitted(store: Store, employee_no: str | None) -> bool:
    emp = normalize_employee_no(employee_no)
    if emp is None:
        return False
    try:
        return store.get(employee_submitted_key(emp)) == SUBMITTED_MARKER
    except StoreUnavailableError:
        return False


def build_submission(values: FormValues, employee_no: str | None, now: datetime | None = None) -> SubmittedApplication:
    emp = normalize_employee_no(employee_no) or normalize_employee_no(values.employee_no)
    if emp and not values.employee_no:
        values = values.merged({"employeeNo": emp})
    return SubmittedApplication(
        id=emp or f"srv-{int(time.time() * 1000)}",
        form_data=values,
        name=values.employee_name_en,
        employee_no=emp or values.employee_no,
        department=values.department,
        status=ApplicationStatus.SUBMITTED,
        submitted_at=now or utcnow(),
    )


def commit_submission(store: Store, application: SubmittedApplication) -> None:
    """Write every slot of a completed submission; the draft goes last.

    If any write is refused the draft is still in place and
    ``SubmissionFailed`` is raised.
    """
    emp = normalize_employee_no(application.employee_no)
    try:
        write_last_submitted(store, application)
        if emp is not None:
            save_employee_record(store, emp, application.form_data, submitted=True)
        store.delete(DRAFT_KEY)
    except StoreUnavailableError as exc:
        logger.warning("Submission %s not stored: %s", application.id, exc)
        raise SubmissionFailed("storage unavailable") from exc


# ---- Mock submit service ----


class MockSubmitService:
    """Pretends to be the submission endpoint.

    The artificial delay runs on the event loop; the store writes happen in
    one go afterwards on a worker thread. The delay cannot be interrupted.
    """

    def __init__(
        self,
        store: Store,
        *,
        delay_seconds: float | None = None,
        failure_rate: float | None = None,
        rng: random.Random | None = None,
    ):
        self.store = store
        self.delay_seconds = settings.SUBMIT_DELAY_MS / 1000.0 if delay_seconds is None else delay_seconds
        self.failure_rate = settings.SUBMIT_FAILURE_RATE if failure_rate is None else failure_rate
        self._rng = rng or random.Random()

    async def submit(self, values: FormValues, employee_no: str | None = None) -> SubmittedApplication:
        if self.delay_seconds > 0:
            await asyncio.sleep(self.delay_seconds)

        if self.failure_rate > 0 and self._rng.random() < self.failure_rate:
            logger.info("Simulated submission failure")
            raise SubmissionFailed("simulated failure")

        application = build_submission(values, employee_no)
        # blocking store I/O
        await run_in_threadpool(commit_submission, self.store, application)
        logger.info("Application %s submitted", application.id)
        return application


async def submit(store: Store, values: FormValues, employee_no: str | None = None) -> SubmittedApplication:
    """Submit with the configured delay and failure rate."""
    return await MockSubmitService(store).submit(values, employee_no=employee_no)
