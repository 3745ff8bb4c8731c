from __future__ import annotations

from fastapi import APIRouter, Depends, Request

from idcard_portal.auth.deps import get_optional_employee
from idcard_portal.core.accounts import load_account
from idcard_portal.core.config import settings
from idcard_portal.core.i18n import get_language, message, source_message
from idcard_portal.core.resolution import resolve
from idcard_portal.core.submissions import has_submitted, load_last_submitted
from idcard_portal.schemas import SourceLabel
from idcard_portal.storage.base import Store
from idcard_portal.storage.deps import get_store
from idcard_portal.storage.keys import normalize_employee_no

router = APIRouter(prefix="/api/dashboard", tags=["dashboard"])


@router.get("")
def dashboard(
    request: Request,
    employee: str | None = None,
    store: Store = Depends(get_store),
    lang: str = Depends(get_language),
):
    emp = normalize_employee_no(employee) or get_optional_employee(request) or settings.DEFAULT_EMPLOYEE_NO
    record, source = resolve(store, emp)

    account = load_account(store, emp)
    name = (account.name if account and account.name else None) or (
        record.name if source != SourceLabel.EXAMPLE_FALLBACK else None
    )
    applied = has_submitted(store, emp) or load_last_submitted(store) is not None

    # "apply" only until something has been submitted; afterwards preview/update
    views = ["preview", "update", "change-password"] if applied else ["apply", "preview", "change-password"]
    return {
        "greeting": message("greeting", lang, name=name or "User"),
        "employeeNo": emp,
        "hasApplied": applied,
        "application": {
            "status": record.status.value if (applied and record.status) else None,
            "submittedAt": record.submitted_at.isoformat() if (applied and record.submitted_at) else None,
            "source": source.value,
            "message": source_message(source, lang),
        },
        "views": views,
    }
