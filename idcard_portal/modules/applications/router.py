from __future__ import annotations

import logging
from typing import Optional

from fastapi import APIRouter, Depends, Request
from fastapi.responses import HTMLResponse, JSONResponse
from starlette.concurrency import run_in_threadpool
from pydantic.alias_generators import to_camel

from idcard_portal.auth.deps import get_optional_employee
from idcard_portal.core.config import settings
from idcard_portal.core.drafts import clear_draft, load_draft
from idcard_portal.core.errors import StoreUnavailableError
from idcard_portal.core.i18n import get_language, message, source_message
from idcard_portal.core.resolution import resolve
from idcard_portal.core.submissions import MockSubmitService, save_employee_record
from idcard_portal.core.workflow import FormMode, FormSession
from idcard_portal.schemas import CamelModel, Document, FamilyMember, FormValues
from idcard_portal.storage.base import Store
from idcard_portal.storage.deps import get_store
from idcard_portal.storage.keys import normalize_employee_no
from idcard_portal.utils.preview import preview_documents, preview_rows
from idcard_portal.utils.validation import validate_document_sizes, validate_update

logger = logging.getLogger("idcard_portal.applications")

router = APIRouter(tags=["applications"])


class FormIn(CamelModel):
    id: Optional[str] = None
    form_data: FormValues = FormValues()
    uploaded_files_meta: Optional[list[Document]] = None
    family_members: list[FamilyMember] = []
    forwarding_officer: Optional[str] = None
    mode: FormMode = FormMode.APPLY


def get_submit_service(store: Store = Depends(get_store)) -> MockSubmitService:
    return MockSubmitService(store)


def _employee(request: Request, employee: str | None = None) -> str | None:
    """Explicit ``?employee=`` wins over the logged-in employee."""
    return normalize_employee_no(employee) or get_optional_employee(request)


def _accepted_documents(docs: list[Document]) -> tuple[list[Document], list[str]]:
    too_big = set(validate_document_sizes([d.size for d in docs]))
    kept = [d for i, d in enumerate(docs) if i not in too_big]
    rejected = [d.name for i, d in enumerate(docs) if i in too_big]
    if rejected:
        logger.info("Dropping oversized documents: %s", rejected)
    return kept, rejected


def _camel_errors(errors: dict[str, str]) -> dict[str, str]:
    return {(k if "." in k else to_camel(k)): v for k, v in errors.items()}


def _session_from_body(store: Store, service: MockSubmitService, body: FormIn, employee_no: str | None, lang: str) -> tuple[FormSession, list[str]]:
    docs = body.uploaded_files_meta if body.uploaded_files_meta is not None else body.form_data.documents
    kept, rejected = _accepted_documents(list(docs))

    existing = load_draft(store)
    session = FormSession(
        store=store,
        service=service,
        values=body.form_data,
        mode=body.mode,
        employee_no=employee_no,
        language=lang,
        draft_id=body.id or (existing.id if existing else None),
    )
    session.set_documents(kept)
    session.set_family(body.family_members, body.forwarding_officer)
    return session, rejected


# ---- draft ----


@router.get("/api/idcard/draft")
def get_draft(store: Store = Depends(get_store)):
    draft = load_draft(store)
    return {"draft": draft.to_dict() if draft else None}


@router.put("/api/idcard/draft")
def put_draft(
    body: FormIn,
    request: Request,
    store: Store = Depends(get_store),
    service: MockSubmitService = Depends(get_submit_service),
    lang: str = Depends(get_language),
):
    session, rejected = _session_from_body(store, service, body, _employee(request), lang)
    draft = session.save_draft()
    return {
        "ok": True,
        "message": message("draft_saved", lang),
        "draft": draft.to_dict(),
        "rejectedDocuments": rejected,
    }


@router.delete("/api/idcard/draft")
def delete_draft(store: Store = Depends(get_store), lang: str = Depends(get_language)):
    clear_draft(store)
    return {"ok": True, "message": message("draft_cleared", lang)}


# ---- update flow ----


def _form_payload(session: FormSession) -> dict:
    return {
        "formData": session.values.to_dict(),
        "draftId": session.draft_id,
        "uploadedFilesMeta": [d.to_dict() for d in session.uploaded_files_meta],
        "familyMembers": [m.to_dict() for m in session.family_members],
        "forwardingOfficer": session.forwarding_officer,
        "source": session.source.value if session.source else None,
        "state": session.state.value,
        "canSubmit": session.can_submit,
        "statusMessage": session.status_message,
    }


@router.get("/api/idcard/form")
def form_prefill(
    request: Request,
    employee: str | None = None,
    mode: FormMode = FormMode.APPLY,
    store: Store = Depends(get_store),
    service: MockSubmitService = Depends(get_submit_service),
    lang: str = Depends(get_language),
):
    """Initial values for the apply/update form."""
    session = FormSession.open(store, service, employee_no=_employee(request, employee), mode=mode, language=lang)
    return _form_payload(session)


@router.get("/api/idcard/edit/{draft_id}")
def edit_draft(
    draft_id: str,
    request: Request,
    store: Store = Depends(get_store),
    service: MockSubmitService = Depends(get_submit_service),
    lang: str = Depends(get_language),
):
    """Form for the preview's edit link: the draft when ``draft_id`` matches, else empty."""
    session = FormSession.for_draft(store, service, draft_id, employee_no=_employee(request), language=lang)
    return _form_payload(session)


@router.put("/api/idcard/update")
def save_update(
    body: FormIn,
    request: Request,
    store: Store = Depends(get_store),
    service: MockSubmitService = Depends(get_submit_service),
    lang: str = Depends(get_language),
):
    """Update screen "Save": a draft plus, when the employee is known, a per-employee snapshot."""
    employee_no = _employee(request) or normalize_employee_no(body.form_data.employee_no)
    errors = validate_update(body.form_data, language=lang)
    if errors:
        return JSONResponse(
            status_code=422,
            content={"ok": False, "message": message("fix_errors", lang), "errors": _camel_errors(errors)},
        )

    body = body.model_copy(update={"mode": FormMode.UPDATE})
    session, rejected = _session_from_body(store, service, body, employee_no, lang)
    draft = session.save_draft()

    snapshot = False
    if employee_no:
        try:
            save_employee_record(store, employee_no, session.values_with_documents())
            snapshot = True
        except StoreUnavailableError as exc:
            logger.warning("Per-employee snapshot not saved: %s", exc)

    return {
        "ok": True,
        "message": message("saved", lang),
        "draft": draft.to_dict(),
        "employeeSnapshot": snapshot,
        "rejectedDocuments": rejected,
        "navigate": {"view": "dashboard"},
    }


# ---- submit ----


@router.post("/api/idcard")
async def submit_application(
    body: FormIn,
    request: Request,
    store: Store = Depends(get_store),
    service: MockSubmitService = Depends(get_submit_service),
    lang: str = Depends(get_language),
):
    employee_no = _employee(request)
    session, rejected = await run_in_threadpool(_session_from_body, store, service, body, employee_no, lang)

    navigated: list[dict] = []
    session.on_navigate = lambda view, payload: navigated.append({"view": view})

    outcome = await session.submit()
    if outcome.errors:
        return JSONResponse(
            status_code=422,
            content={"ok": False, "message": message("fix_errors", lang), "errors": _camel_errors(outcome.errors)},
        )
    if not outcome.ok:
        return JSONResponse(status_code=502, content={"ok": False, "message": outcome.failure})

    return {
        "ok": True,
        "message": message("submitted", lang),
        "application": outcome.application.to_dict(),
        "rejectedDocuments": rejected,
        "navigate": navigated[-1] if navigated else {"view": "dashboard"},
    }


# ---- resolve / preview ----


def _resolved(request: Request, store: Store, employee: str | None):
    emp = _employee(request, employee) or settings.DEFAULT_EMPLOYEE_NO
    return resolve(store, emp)


@router.get("/api/idcard")
def get_application(
    request: Request,
    employee: str | None = None,
    store: Store = Depends(get_store),
    lang: str = Depends(get_language),
):
    record, source = _resolved(request, store, employee)
    return {"record": record.to_dict(), "source": source.value, "message": source_message(source, lang)}


@router.get("/api/idcard/preview")
def preview_json(
    request: Request,
    employee: str | None = None,
    store: Store = Depends(get_store),
    lang: str = Depends(get_language),
):
    record, source = _resolved(request, store, employee)
    return {
        "source": source.value,
        "message": source_message(source, lang),
        "rows": preview_rows(record, lang),
        "documents": preview_documents(record),
        "editId": record.id,
    }


@router.get("/idcard/preview", response_class=HTMLResponse)
def preview_page(
    request: Request,
    employee: str | None = None,
    store: Store = Depends(get_store),
    lang: str = Depends(get_language),
):
    record, source = _resolved(request, store, employee)
    return request.app.state.templates.TemplateResponse(
        request,
        "idcard/preview.html",
        {
            "lang": lang,
            "source": source.value,
            "source_message": source_message(source, lang),
            "rows": preview_rows(record, lang),
            "documents": preview_documents(record),
            "documents_label": message("documents", lang),
            "no_documents_label": message("no_documents", lang),
            "record": record,
        },
    )
