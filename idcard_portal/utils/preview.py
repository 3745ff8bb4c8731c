from __future__ import annotations

from datetime import datetime
from urllib.parse import urlsplit

from idcard_portal.core.i18n import FIELD_LABELS, field_label, message
from idcard_portal.schemas import ApplicationView

EM_DASH = "—"
_LINK_SCHEMES = ("http", "https")


def _display(val) -> str:
    if val is None:
        return EM_DASH
    s = str(val).strip()
    return s if s else EM_DASH


def fmt_date(value: datetime | str | None) -> str:
    if value is None or value == "":
        return EM_DASH
    if isinstance(value, datetime):
        return value.strftime("%d %b %Y")
    try:
        return datetime.fromisoformat(str(value).replace("Z", "+00:00")).strftime("%d %b %Y")
    except ValueError:
        return str(value)


def preview_rows(view: ApplicationView, language: str | None = None) -> list[dict]:
    """Every form field with its label; absent values show an em dash.

    Top-level record fields (name, employee no, department) fill in for
    form fields that are missing, the same way the dashboard preview does.
    """
    fd = view.form_data
    fallbacks = {
        "employee_name_en": view.name,
        "employee_no": view.employee_no,
        "department": view.department,
    }
    rows: list[dict] = []
    for field in FIELD_LABELS:
        val = getattr(fd, field, None)
        if (val is None or val == "") and field in fallbacks:
            val = fallbacks[field]
        rows.append({"field": field, "label": field_label(field, language), "value": _display(val)})

    for key, val in sorted(fd.custom_fields.items()):
        rows.append({"field": key, "label": key, "value": _display(val)})

    rows.append({"field": "status", "label": message("status", language), "value": _display(view.status.value if view.status else None)})
    rows.append({"field": "submitted_at", "label": message("submitted_at", language), "value": fmt_date(view.submitted_at)})
    return rows


def safe_url(url: str | None) -> str | None:
    """``url`` when it is http(s) or relative, else None (no ``javascript:`` links)."""
    if not url:
        return None
    s = url.strip()
    if not s or any(ord(c) < 0x20 or c == "\\" for c in s):
        return None
    try:
        parts = urlsplit(s)
    except ValueError:
        return None
    if parts.scheme:
        return s if parts.scheme.lower() in _LINK_SCHEMES else None
    # no scheme, but a colon before the first slash still reads as one in browsers
    if ":" in s.split("/", 1)[0]:
        return None
    return s


def preview_documents(view: ApplicationView) -> list[dict]:
    docs = view.documents or view.form_data.documents
    return [{"name": d.name, "url": safe_url(d.url)} for d in docs if d.name]
