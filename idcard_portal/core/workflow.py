"""Form session state machine (apply / update screens).

    editing --save_draft--> saving --saved--> editing
    editing --submit--> submitting --submitted--> submitted
                        submitting --failed--> editing

The session starts in ``editing`` seeded by the resolution policy and ends in
``submitted``. Submitting is not cancellable, and while it is in flight the
submit action is unavailable, so one form can never submit twice.
"""

from __future__ import annotations

import enum
import logging
from dataclasses import dataclass, field
from typing import Any, Callable

from idcard_portal.core.drafts import load_draft, save_draft
from idcard_portal.core.errors import InvalidTransition, SubmissionFailed
from idcard_portal.core.i18n import message
from idcard_portal.core.resolution import resolve
from idcard_portal.core.submissions import MockSubmitService
from idcard_portal.schemas import (
    Document,
    Draft,
    FamilyMember,
    FormValues,
    SourceLabel,
    SubmittedApplication,
)
from idcard_portal.storage.base import Store
from idcard_portal.utils.validation import validate_application, validate_update

logger = logging.getLogger("idcard_portal.workflow")


class FormState(str, enum.Enum):
    EDITING = "editing"
    SAVING = "saving"
    SUBMITTING = "submitting"
    SUBMITTED = "submitted"


class FormMode(str, enum.Enum):
    APPLY = "apply"
    UPDATE = "update"


Action = str  # "save_draft" | "saved" | "submit" | "submitted" | "failed"


@dataclass(frozen=True, slots=True)
class Transition:
    """One transition edge in the state machine."""

    from_state: FormState
    action: Action
    to_state: FormState


TRANSITIONS: tuple[Transition, ...] = (
    Transition(FormState.EDITING, "save_draft", FormState.SAVING),
    Transition(FormState.SAVING, "saved", FormState.EDITING),
    Transition(FormState.EDITING, "submit", FormState.SUBMITTING),
    Transition(FormState.SUBMITTING, "submitted", FormState.SUBMITTED),
    Transition(FormState.SUBMITTING, "failed", FormState.EDITING),
)


def get_transition(state: FormState, action: Action) -> Transition:
    for t in TRANSITIONS:
        if t.from_state == state and t.action == action:
            return t
    raise InvalidTransition(f"{action!r} not allowed in state {state.value!r}")


def allowed_actions(state: FormState) -> tuple[Action, ...]:
    return tuple(t.action for t in TRANSITIONS if t.from_state == state)


@dataclass
class SubmitOutcome:
    """Result of ``FormSession.submit``: exactly one of the three cases holds."""

    application: SubmittedApplication | None = None
    errors: dict[str, str] = field(default_factory=dict)
    failure: str | None = None

    @property
    def ok(self) -> bool:
        return self.application is not None


@dataclass
class FormSession:
    store: Store
    service: MockSubmitService
    values: FormValues = field(default_factory=FormValues)
    mode: FormMode = FormMode.APPLY
    employee_no: str | None = None
    language: str | None = None
    source: SourceLabel | None = None
    draft_id: str | None = None
    uploaded_files_meta: list[Document] = field(default_factory=list)
    family_members: list[FamilyMember] = field(default_factory=list)
    forwarding_officer: str | None = None
    state: FormState = FormState.EDITING
    on_navigate: Callable[[str, Any], None] | None = None

    @classmethod
    def open(
        cls,
        store: Store,
        service: MockSubmitService,
        *,
        employee_no: str | None = None,
        mode: FormMode = FormMode.APPLY,
        language: str | None = None,
        on_navigate: Callable[[str, Any], None] | None = None,
    ) -> "FormSession":
        """Start a session prefilled from the resolution policy.

        The example record never prefills a form: an empty form carrying the
        employee number is used instead.
        """
        session = cls(
            store=store,
            service=service,
            mode=mode,
            employee_no=employee_no,
            language=language,
            on_navigate=on_navigate,
        )
        record, source = resolve(store, employee_no)
        session.source = source
        if source == SourceLabel.EXAMPLE_FALLBACK:
            session.values = FormValues(employee_no=employee_no) if employee_no else FormValues()
        else:
            session.values = record.form_data
            session.uploaded_files_meta = list(record.documents)

        if source == SourceLabel.DRAFT:
            draft = load_draft(store)
            if draft is not None:
                session._adopt_draft(draft)
        return session

    @classmethod
    def for_draft(
        cls,
        store: Store,
        service: MockSubmitService,
        draft_id: str,
        *,
        employee_no: str | None = None,
        language: str | None = None,
    ) -> "FormSession":
        """Edit link for one draft: prefilled only when the stored draft has that id.

        Any other id, or no stored draft, gives an empty form.
        """
        session = cls(store=store, service=service, employee_no=employee_no, language=language)
        draft = load_draft(store)
        if draft is not None and draft.id == draft_id:
            session.values = draft.form_data
            session.source = SourceLabel.DRAFT
            session._adopt_draft(draft)
        return session

    def _adopt_draft(self, draft: Draft) -> None:
        self.draft_id = draft.id
        self.uploaded_files_meta = list(draft.uploaded_files_meta)
        self.family_members = list(draft.family_members)
        self.forwarding_officer = draft.forwarding_officer

    def _fire(self, action: Action) -> FormState:
        t = get_transition(self.state, action)
        logger.debug("form %s: %s --%s--> %s", self.mode.value, t.from_state.value, action, t.to_state.value)
        self.state = t.to_state
        return self.state

    def _navigate(self, view: str, payload: Any = None) -> None:
        if self.on_navigate is not None:
            self.on_navigate(view, payload)

    @property
    def can_submit(self) -> bool:
        return "submit" in allowed_actions(self.state)

    @property
    def status_message(self) -> str | None:
        """Transient "Submitting..." notice while a submission is in flight."""
        if self.state == FormState.SUBMITTING:
            return message("submitting", self.language)
        return None

    def values_with_documents(self) -> FormValues:
        """Form values carrying the uploaded documents; those win over ``values.documents``."""
        if self.uploaded_files_meta:
            return self.values.model_copy(update={"documents": list(self.uploaded_files_meta)})
        return self.values

    def _require_editing(self) -> None:
        if self.state != FormState.EDITING:
            raise InvalidTransition(f"form is {self.state.value}, not editing")

    # ---- local edits ----

    def edit(self, **changes: Any) -> FormValues:
        self._require_editing()
        self.values = self.values.merged(changes)
        return self.values

    def replace(self, values: FormValues) -> FormValues:
        self._require_editing()
        self.values = values
        return self.values

    def set_documents(self, documents: list[Document]) -> None:
        self._require_editing()
        self.uploaded_files_meta = list(documents)

    def set_family(self, members: list[FamilyMember], forwarding_officer: str | None = None) -> None:
        self._require_editing()
        self.family_members = list(members)
        self.forwarding_officer = forwarding_officer

    def validate(self) -> dict[str, str]:
        if self.mode == FormMode.UPDATE:
            return validate_update(self.values, language=self.language)
        return validate_application(
            self.values,
            language=self.language,
            family_members=self.family_members,
            forwarding_officer=self.forwarding_officer,
        )

    # ---- transitions ----

    def save_draft(self) -> Draft:
        self._fire("save_draft")
        try:
            draft = save_draft(
                self.store,
                self.values,
                draft_id=self.draft_id,
                uploaded_files_meta=self.uploaded_files_meta,
                family_members=self.family_members,
                forwarding_officer=self.forwarding_officer,
            )
            self.draft_id = draft.id
        finally:
            self._fire("saved")
        return draft

    async def submit(self) -> SubmitOutcome:
        if self.state == FormState.SUBMITTING:
            return SubmitOutcome(failure=message("submit_in_progress", self.language))

        errors = self.validate()
        if errors:
            return SubmitOutcome(errors=errors)

        self._fire("submit")
        try:
            application = await self.service.submit(self.values_with_documents(), employee_no=self.employee_no)
        except SubmissionFailed as exc:
            logger.info("Submission failed: %s", exc)
            self._fire("failed")
            return SubmitOutcome(failure=message("submit_failed", self.language))

        self._fire("submitted")
        self.draft_id = None
        self._navigate("dashboard", application)
        return SubmitOutcome(application=application)
