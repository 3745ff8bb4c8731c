"""Records exchanged with the local store and the HTTP API.

Field names are snake_case in Python and camelCase on the wire, matching the
JSON the browser build keeps in localStorage (``employeeNameEn``,
``formData``, ``uploadedFilesMeta``, ``updatedAt`` ...).
"""

from __future__ import annotations

import enum
from datetime import datetime, timezone
from typing import Any, Optional

from pydantic import BaseModel, ConfigDict, Field, model_validator
from pydantic.alias_generators import to_camel


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


class CamelModel(BaseModel):
    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        coerce_numbers_to_str=True,
    )

    def to_json(self) -> str:
        return self.model_dump_json(by_alias=True, exclude_none=True)

    def to_dict(self) -> dict:
        return self.model_dump(mode="json", by_alias=True, exclude_none=True)


class ApplicationStatus(str, enum.Enum):
    DRAFT = "Draft"
    SUBMITTED = "Submitted"


class SourceLabel(str, enum.Enum):
    """Where a resolved record came from. Surfaced to the user as-is."""

    PER_EMPLOYEE = "per-employee"
    DRAFT = "draft"
    LAST_SUBMITTED = "last-submitted"
    EXAMPLE_FALLBACK = "example-fallback"


class Document(CamelModel):
    name: str
    url: Optional[str] = None
    size: Optional[int] = None
    content_type: Optional[str] = Field(default=None, alias="type")

    @model_validator(mode="before")
    @classmethod
    def _from_plain_name(cls, data: Any) -> Any:
        # older records keep documents as bare strings
        if isinstance(data, str):
            return {"name": data}
        return data


class FamilyMember(CamelModel):
    id: str = ""
    name: str = ""
    relation: str = "Spouse"
    age: str = ""  # date of birth, YYYY-MM-DD
    gender: str = "Male"
    aadhaar: str = ""
    unique_identification_mark: str = ""
    doc: Optional[Document] = None


class FormValues(CamelModel):
    """The user-edited application payload. Every field may be absent."""

    purpose: Optional[str] = None
    department: Optional[str] = None
    unit: Optional[str] = None
    employee_name_en: Optional[str] = None
    employee_name_hi: Optional[str] = None
    employee_no: Optional[str] = None
    designation_en: Optional[str] = None
    designation_hi: Optional[str] = None
    date_of_appointment: Optional[str] = None
    date_of_birth: Optional[str] = None
    nearest_rh: Optional[str] = Field(default=None, alias="nearestRH")
    place_of_work: Optional[str] = None
    pay_level: Optional[str] = None
    email: Optional[str] = None
    mobile_number: Optional[str] = None
    pin_code: Optional[str] = None
    district: Optional[str] = None
    state: Optional[str] = None
    id_card_no: Optional[str] = None
    residential_address: Optional[str] = None
    unique_identification_mark: Optional[str] = None
    office_location: Optional[str] = None
    manager: Optional[str] = None
    employee_type: Optional[str] = None
    gender: Optional[str] = None
    marital_status: Optional[str] = None
    blood_group: Optional[str] = None
    emergency_contact: Optional[str] = None
    photo_url: Optional[str] = None
    notes: Optional[str] = None
    documents: list[Document] = Field(default_factory=list)

    # forward-compatible custom fields
    custom_fields: dict[str, Any] = Field(default_factory=dict)

    @model_validator(mode="before")
    @classmethod
    def _collect_custom_fields(cls, data: Any) -> Any:
        if not isinstance(data, dict):
            return data
        known: set[str] = set()
        for name, f in cls.model_fields.items():
            if name == "custom_fields":
                continue
            known.add(name)
            known.add(f.alias or name)

        custom = {}
        for k in ("custom_fields", "customFields"):
            v = data.get(k)
            if isinstance(v, dict):
                custom.update(v)

        out: dict[str, Any] = {}
        for k, v in data.items():
            if k in ("custom_fields", "customFields"):
                continue
            if k in known:
                out[k] = v
            else:
                custom[k] = v
        out["customFields"] = custom
        return out

    def merged(self, changes: dict[str, Any]) -> "FormValues":
        """Shallow merge of ``changes`` over these values (form prefill semantics)."""
        patch = FormValues.model_validate(changes)
        data = self.to_dict()
        data.update(patch.model_dump(mode="json", by_alias=True, exclude_unset=True))
        data["customFields"] = {**self.custom_fields, **patch.custom_fields}
        return FormValues.model_validate(data)


class Draft(CamelModel):
    id: str
    form_data: FormValues
    uploaded_files_meta: list[Document] = Field(default_factory=list)
    family_members: list[FamilyMember] = Field(default_factory=list)
    forwarding_officer: Optional[str] = None
    updated_at: datetime


class SubmittedApplication(CamelModel):
    id: str
    form_data: FormValues
    name: Optional[str] = None
    employee_no: Optional[str] = None
    department: Optional[str] = None
    status: ApplicationStatus = ApplicationStatus.SUBMITTED
    submitted_at: datetime


class EmployeeRecord(CamelModel):
    employee_no: str
    form_data: FormValues
    submitted: bool = False


class ApplicationView(CamelModel):
    """Normalised record handed to the preview and update screens."""

    id: Optional[str] = None
    form_data: FormValues = Field(default_factory=FormValues)
    name: Optional[str] = None
    employee_no: Optional[str] = None
    department: Optional[str] = None
    documents: list[Document] = Field(default_factory=list)
    status: Optional[ApplicationStatus] = None
    submitted_at: Optional[datetime] = None
