"""Resolution policy: which stored record the preview/update screens show.

First match wins:

1. the per-employee record for the requested employee number
2. the global draft
3. the last submitted application
4. a fixed example record

Nothing here raises. Missing or unreadable slots just fall through to the
next candidate.
"""

from __future__ import annotations

import logging
from typing import NamedTuple

from idcard_portal.core.config import settings
from idcard_portal.core.drafts import load_draft
from idcard_portal.core.submissions import load_employee_record, load_last_submitted
from idcard_portal.schemas import (
    ApplicationStatus,
    ApplicationView,
    Document,
    Draft,
    EmployeeRecord,
    FormValues,
    SourceLabel,
    SubmittedApplication,
    utcnow,
)
from idcard_portal.storage.base import Store
from idcard_portal.storage.keys import normalize_employee_no

logger = logging.getLogger("idcard_portal.resolution")

EXAMPLE_ID = "example-1"
EXAMPLE_NAME = "John Doe"
EXAMPLE_DEPARTMENT = "Engineering"
EXAMPLE_DOCUMENTS = ("Passport (uploaded)", "Address proof (uploaded)")


class Resolution(NamedTuple):
    record: ApplicationView
    source: SourceLabel


def example_application(employee_no: str | None = None) -> ApplicationView:
    emp = employee_no or settings.DEFAULT_EMPLOYEE_NO
    return ApplicationView(
        id=EXAMPLE_ID,
        form_data=FormValues(employee_name_en=EXAMPLE_NAME, employee_no=emp, department=EXAMPLE_DEPARTMENT),
        name=EXAMPLE_NAME,
        employee_no=emp,
        department=EXAMPLE_DEPARTMENT,
        documents=[Document(name=n) for n in EXAMPLE_DOCUMENTS],
        status=ApplicationStatus.SUBMITTED,
        submitted_at=utcnow(),
    )


def view_from_employee_record(rec: EmployeeRecord) -> ApplicationView:
    fd = rec.form_data
    return ApplicationView(
        id=rec.employee_no,
        form_data=fd,
        name=fd.employee_name_en,
        employee_no=rec.employee_no,
        department=fd.department,
        documents=list(fd.documents),
        status=ApplicationStatus.SUBMITTED if rec.submitted else ApplicationStatus.DRAFT,
    )


def view_from_draft(draft: Draft, employee_no: str | None = None) -> ApplicationView:
    fd = draft.form_data
    return ApplicationView(
        id=draft.id,
        form_data=fd,
        name=fd.employee_name_en,
        employee_no=fd.employee_no or employee_no,
        department=fd.department,
        documents=list(draft.uploaded_files_meta or fd.documents),
        status=ApplicationStatus.DRAFT,
        submitted_at=draft.updated_at,
    )


def view_from_submission(app: SubmittedApplication, employee_no: str | None = None) -> ApplicationView:
    fd = app.form_data
    return ApplicationView(
        id=app.id,
        form_data=fd,
        name=fd.employee_name_en or app.name,
        employee_no=app.employee_no or employee_no,
        department=app.department or fd.department,
        documents=list(fd.documents),
        status=app.status or ApplicationStatus.SUBMITTED,
        submitted_at=app.submitted_at,
    )


def resolve(store: Store, requested_employee_no: str | None = None) -> Resolution:
    emp = normalize_employee_no(requested_employee_no)

    rec = load_employee_record(store, emp) if emp else None
    if rec is not None:
        return Resolution(view_from_employee_record(rec), SourceLabel.PER_EMPLOYEE)

    draft = load_draft(store)
    if draft is not None:
        return Resolution(view_from_draft(draft, emp), SourceLabel.DRAFT)

    last = load_last_submitted(store)
    if last is not None:
        return Resolution(view_from_submission(last, emp), SourceLabel.LAST_SUBMITTED)

    logger.debug("No stored application for %s; using the example record", emp)
    return Resolution(example_application(emp), SourceLabel.EXAMPLE_FALLBACK)
