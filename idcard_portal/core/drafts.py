"""Draft codec: the single ``idcardDraft`` slot.

At most one draft exists. Saving replaces the slot wholesale (last write
wins, no merge); unreadable contents count as "no draft".
"""

from __future__ import annotations

import logging
import uuid
from datetime import datetime
from typing import Iterable

from pydantic import ValidationError

from idcard_portal.core.errors import StoreUnavailableError
from idcard_portal.schemas import Document, Draft, FamilyMember, FormValues, utcnow
from idcard_portal.storage.base import Store
from idcard_portal.storage.keys import DRAFT_KEY

logger = logging.getLogger("idcard_portal.drafts")


def new_draft_id() -> str:
    return f"draft-{uuid.uuid4().hex[:12]}"


def save_draft(
    store: Store,
    values: FormValues,
    *,
    draft_id: str | None = None,
    uploaded_files_meta: Iterable[Document] | None = None,
    family_members: Iterable[FamilyMember] | None = None,
    forwarding_officer: str | None = None,
    now: datetime | None = None,
) -> Draft:
    """Overwrite the draft slot and return what was written.

    A write the store refuses is logged and dropped; the caller still gets
    the draft it asked for.
    """
    draft = Draft(
        id=draft_id or new_draft_id(),
        form_data=values,
        uploaded_files_meta=list(uploaded_files_meta if uploaded_files_meta is not None else values.documents),
        family_members=list(family_members or []),
        forwarding_officer=forwarding_officer or None,
        updated_at=now or utcnow(),
    )
    try:
        store.set(DRAFT_KEY, draft.to_json())
    except StoreUnavailableError as exc:
        logger.warning("Draft not saved, storage unavailable: %s", exc)
    return draft


def load_draft(store: Store) -> Draft | None:
    try:
        raw = store.get(DRAFT_KEY)
    except StoreUnavailableError as exc:
        logger.warning("Draft not readable, storage unavailable: %s", exc)
        return None
    if not raw:
        return None
    try:
        return Draft.model_validate_json(raw)
    except ValidationError as exc:
        logger.debug("Ignoring unreadable draft: %s", exc)
        return None


def clear_draft(store: Store) -> None:
    try:
        store.delete(DRAFT_KEY)
    except StoreUnavailableError as exc:
        logger.warning("Draft not cleared, storage unavailable: %s", exc)
