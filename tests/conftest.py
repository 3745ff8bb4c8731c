"""
ID Card Portal - Test Configuration and Fixtures
"""
import os

# Set testing environment before settings are imported
os.environ['STORE_BACKEND'] = 'memory'
os.environ['SUBMIT_DELAY_MS'] = '0'
os.environ['SUBMIT_FAILURE_RATE'] = '0'
os.environ['SECRET_KEY'] = 'test-secret-key-for-testing-only'

import pytest
from fastapi.testclient import TestClient

from idcard_portal.core.submissions import MockSubmitService
from idcard_portal.main import app
from idcard_portal.modules.applications.router import get_submit_service
from idcard_portal.schemas import FamilyMember, FormValues
from idcard_portal.storage.base import MemoryStore
from idcard_portal.storage.deps import get_store


@pytest.fixture
def store() -> MemoryStore:
    """Fresh local record store for each test"""
    return MemoryStore()


@pytest.fixture
def service(store: MemoryStore) -> MockSubmitService:
    return MockSubmitService(store, delay_seconds=0, failure_rate=0)


@pytest.fixture
def client(store: MemoryStore):
    """Test client wired to the in-memory store"""
    app.dependency_overrides[get_store] = lambda: store
    app.dependency_overrides[get_submit_service] = lambda: MockSubmitService(store, delay_seconds=0, failure_rate=0)
    yield TestClient(app)
    app.dependency_overrides.clear()


@pytest.fixture
def form_payload() -> dict:
    """A complete apply form, as the browser sends it"""
    return {
        "purpose": "New Appointment / Transfer",
        "department": "Operations",
        "unit": "Signal Workshop",
        "employeeNameEn": "Asha Rao",
        "employeeNameHi": "आशा राव",
        "employeeNo": "EMP001",
        "designationEn": "Section Engineer",
        "dateOfAppointment": "2015-06-01",
        "residentialAddress": "12 Station Road",
        "email": "asha.rao@example.com",
        "mobileNumber": "9876543210",
        "pinCode": "560001",
        "district": "Bengaluru Urban",
        "state": "Karnataka",
    }


@pytest.fixture
def family_payload() -> list[dict]:
    return [{"id": "m-0", "name": "Ravi Rao", "relation": "Spouse", "age": "1988-04-12", "gender": "Male"}]


@pytest.fixture
def valid_values(form_payload: dict) -> FormValues:
    return FormValues.model_validate(form_payload)


@pytest.fixture
def valid_family(family_payload: list[dict]) -> list[FamilyMember]:
    return [FamilyMember.model_validate(m) for m in family_payload]
