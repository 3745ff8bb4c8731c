"""HTTP tests for the portal API"""
import json

from idcard_portal.core.submissions import MockSubmitService
from idcard_portal.main import app
from idcard_portal.modules.applications.router import get_submit_service
from idcard_portal.storage.keys import DRAFT_KEY, LAST_SUBMITTED_KEY


def _body(form_payload, family_payload, **kw):
    body = {"formData": form_payload, "familyMembers": family_payload, "forwardingOfficer": "Sr. DPO"}
    body.update(kw)
    return body


def _login(client, emp_no="10001", password="Secret@123"):
    client.post(
        "/api/register",
        json={"empNo": emp_no, "name": "Asha Rao", "mobile": "9876543210", "password": password},
    )
    return client.post("/api/login", json={"empNo": emp_no, "password": password})


class TestHealth:
    def test_health(self, client):
        resp = client.get("/health")
        assert resp.status_code == 200
        assert resp.json()["status"] == "ok"
        assert resp.headers["X-Content-Type-Options"] == "nosniff"

    def test_landing(self, client):
        resp = client.get("/")
        assert resp.status_code == 200
        assert "text/html" in resp.headers["content-type"]


class TestDraft:
    def test_save_load_clear(self, client, store, form_payload, family_payload):
        resp = client.put("/api/idcard/draft", json=_body(form_payload, family_payload))
        assert resp.status_code == 200
        assert resp.json()["message"] == "Draft saved"
        draft_id = resp.json()["draft"]["id"]

        loaded = client.get("/api/idcard/draft").json()["draft"]
        assert loaded["id"] == draft_id
        assert loaded["formData"]["employeeNameEn"] == "Asha Rao"

        # saving again keeps the same draft id
        again = client.put("/api/idcard/draft", json=_body(form_payload, family_payload)).json()
        assert again["draft"]["id"] == draft_id

        assert client.delete("/api/idcard/draft").json()["ok"]
        assert client.get("/api/idcard/draft").json()["draft"] is None
        assert client.delete("/api/idcard/draft").status_code == 200

    def test_oversized_documents_are_dropped(self, client, form_payload, family_payload):
        docs = [{"name": "small.pdf", "size": 10}, {"name": "huge.pdf", "size": 50 * 1024 * 1024}]
        resp = client.put("/api/idcard/draft", json=_body(form_payload, family_payload, uploadedFilesMeta=docs))
        data = resp.json()
        assert data["rejectedDocuments"] == ["huge.pdf"]
        assert [d["name"] for d in data["draft"]["uploadedFilesMeta"]] == ["small.pdf"]

    def test_hindi_message(self, client, form_payload, family_payload):
        resp = client.put("/api/idcard/draft?lang=hi", json=_body(form_payload, family_payload))
        assert resp.json()["message"] == "ड्राफ्ट सहेजा गया"


class TestSubmit:
    def test_submit_clears_draft_and_marks_employee(self, client, store, form_payload, family_payload):
        client.put("/api/idcard/draft", json=_body(form_payload, family_payload))

        resp = client.post("/api/idcard", json=_body(form_payload, family_payload))
        assert resp.status_code == 200
        data = resp.json()
        assert data["ok"]
        assert data["navigate"] == {"view": "dashboard"}
        assert data["application"]["status"] == "Submitted"

        assert store.get(DRAFT_KEY) is None
        assert json.loads(store.get(LAST_SUBMITTED_KEY))["formData"]["employeeNameEn"] == "Asha Rao"
        assert store.get("idcard_submitted_EMP001") == "true"

    def test_validation_errors(self, client, store):
        resp = client.post("/api/idcard", json={"formData": {"mobileNumber": "12"}})
        assert resp.status_code == 422
        errors = resp.json()["errors"]
        assert "employeeNameEn" in errors
        assert "mobileNumber" in errors
        assert "forwardingOfficer" in errors
        assert store.keys() == []

    def test_service_failure_keeps_draft(self, client, store, form_payload, family_payload):
        client.put("/api/idcard/draft", json=_body(form_payload, family_payload))
        app.dependency_overrides[get_submit_service] = lambda: MockSubmitService(store, delay_seconds=0, failure_rate=1.0)

        resp = client.post("/api/idcard", json=_body(form_payload, family_payload))
        assert resp.status_code == 502
        assert resp.json()["message"] == "Submission failed. Your draft is safe, please try again."
        assert store.get(DRAFT_KEY) is not None
        assert store.get(LAST_SUBMITTED_KEY) is None


class TestUpdate:
    def test_update_saves_draft_and_snapshot(self, client, store):
        resp = client.put(
            "/api/idcard/update",
            json={"formData": {"employeeNameEn": "Asha Rao", "employeeNo": "EMP002", "department": "Operations"}},
        )
        assert resp.status_code == 200
        assert resp.json()["employeeSnapshot"] is True
        assert store.get("idcard_submitted_EMP002") is None

        data = client.get("/api/idcard?employee=EMP002").json()
        assert data["source"] == "per-employee"
        assert data["record"]["status"] == "Draft"
        assert data["record"]["department"] == "Operations"

    def test_update_keeps_uploaded_documents(self, client):
        resp = client.put(
            "/api/idcard/update",
            json={
                "formData": {"employeeNameEn": "Asha Rao", "employeeNo": "12345"},
                "uploadedFilesMeta": [{"name": "photo.jpg", "size": 2048}],
            },
        )
        assert [d["name"] for d in resp.json()["draft"]["uploadedFilesMeta"]] == ["photo.jpg"]

        data = client.get("/api/idcard?employee=12345").json()
        assert data["source"] == "per-employee"
        assert [d["name"] for d in data["record"]["documents"]] == ["photo.jpg"]

        preview = client.get("/api/idcard/preview?employee=12345").json()
        assert [d["name"] for d in preview["documents"]] == ["photo.jpg"]

        form = client.get("/api/idcard/form?employee=12345&mode=update").json()
        assert [d["name"] for d in form["uploadedFilesMeta"]] == ["photo.jpg"]

    def test_update_requires_name(self, client):
        resp = client.put("/api/idcard/update", json={"formData": {"email": "bad"}})
        assert resp.status_code == 422
        assert set(resp.json()["errors"]) == {"employeeNameEn", "email"}

    def test_form_prefill_from_draft(self, client, form_payload, family_payload):
        client.put("/api/idcard/draft", json=_body(form_payload, family_payload))
        data = client.get("/api/idcard/form?mode=update").json()
        assert data["source"] == "draft"
        assert data["formData"]["employeeNameEn"] == "Asha Rao"
        assert data["forwardingOfficer"] == "Sr. DPO"
        assert data["canSubmit"] is True

    def test_form_prefill_ignores_example(self, client):
        data = client.get("/api/idcard/form?employee=EMP001").json()
        assert data["source"] == "example-fallback"
        assert data["formData"] == {"employeeNo": "EMP001", "documents": [], "customFields": {}}


    def test_form_has_no_status_message_while_editing(self, client):
        data = client.get("/api/idcard/form").json()
        assert data["state"] == "editing"
        assert data["statusMessage"] is None


class TestEditLink:
    def test_matching_draft_id_prefills(self, client, form_payload, family_payload):
        draft_id = client.put("/api/idcard/draft", json=_body(form_payload, family_payload)).json()["draft"]["id"]

        preview = client.get("/api/idcard/preview").json()
        assert preview["editId"] == draft_id

        data = client.get(f"/api/idcard/edit/{draft_id}").json()
        assert data["source"] == "draft"
        assert data["draftId"] == draft_id
        assert data["formData"]["employeeNameEn"] == "Asha Rao"
        assert data["familyMembers"][0]["name"] == "Ravi Rao"

    def test_other_id_gives_empty_form(self, client, form_payload, family_payload):
        client.put("/api/idcard/draft", json=_body(form_payload, family_payload))

        data = client.get("/api/idcard/edit/draft-unknown").json()
        assert data["source"] is None
        assert data["draftId"] is None
        assert data["formData"] == {"documents": [], "customFields": {}}
        assert data["familyMembers"] == []

    def test_no_stored_draft_gives_empty_form(self, client):
        data = client.get("/api/idcard/edit/draft-abc").json()
        assert data["draftId"] is None
        assert data["canSubmit"] is True


class TestResolveAndPreview:
    def test_example_fallback(self, client):
        data = client.get("/api/idcard?employee=EMP001").json()
        assert data["source"] == "example-fallback"
        assert data["record"]["name"] == "John Doe"
        assert data["record"]["department"] == "Engineering"
        assert data["message"] == "Could not fetch live data — showing example data."

    def test_preview_json(self, client, form_payload, family_payload):
        client.post("/api/idcard", json=_body(form_payload, family_payload))
        data = client.get("/api/idcard/preview").json()
        assert data["source"] == "per-employee"
        rows = {r["field"]: r["value"] for r in data["rows"]}
        assert rows["employee_name_en"] == "Asha Rao"
        assert rows["pay_level"] == "—"
        assert rows["status"] == "Submitted"

    def test_preview_page(self, client):
        resp = client.get("/idcard/preview?employee=EMP001")
        assert resp.status_code == 200
        assert "John Doe" in resp.text
        assert 'data-source="example-fallback"' in resp.text
        assert "—" in resp.text

    def test_preview_page_drops_script_links(self, client, form_payload, family_payload):
        docs = [
            {"name": "evil.pdf", "url": "javascript:alert(document.cookie)"},
            {"name": "scan.pdf", "url": "https://files.example.com/scan.pdf"},
        ]
        client.put("/api/idcard/draft", json=_body(form_payload, family_payload, uploadedFilesMeta=docs))

        resp = client.get("/idcard/preview")
        assert resp.status_code == 200
        assert "javascript:" not in resp.text
        assert "evil.pdf" in resp.text
        assert 'href="https://files.example.com/scan.pdf"' in resp.text

        documents = client.get("/api/idcard/preview").json()["documents"]
        assert documents[0] == {"name": "evil.pdf", "url": None}

    def test_preview_page_in_hindi(self, client):
        resp = client.get("/idcard/preview?employee=EMP001&lang=hi")
        assert "आवेदन पूर्वावलोकन" in resp.text


class TestDashboard:
    def test_before_and_after_submission(self, client, form_payload, family_payload):
        data = client.get("/api/dashboard").json()
        assert data["hasApplied"] is False
        assert data["greeting"] == "Hi, User"
        assert "apply" in data["views"]
        assert data["application"]["status"] is None

        client.post("/api/idcard", json=_body(form_payload, family_payload))

        data = client.get("/api/dashboard").json()
        assert data["hasApplied"] is True
        assert data["greeting"] == "Hi, Asha Rao"
        assert data["application"]["status"] == "Submitted"
        assert "apply" not in data["views"]


class TestAuth:
    def test_register_reports_password_strength(self, client):
        resp = client.post(
            "/api/register",
            json={"empNo": "10002", "name": "Ravi", "mobile": "9876543210", "password": "weakpass"},
        )
        assert resp.status_code == 400
        assert resp.json()["passwordStrength"] == 2
        assert "password" in resp.json()["errors"]

        resp = client.post(
            "/api/register",
            json={"empNo": "10002", "name": "Ravi", "mobile": "9876543210", "password": "Secret@123"},
        )
        assert resp.status_code == 200
        assert resp.json()["passwordStrength"] == 5

    def test_login_sets_session(self, client):
        resp = _login(client)
        assert resp.status_code == 200
        assert resp.json()["navigate"] == {"view": "dashboard"}
        assert "sid" in resp.cookies

        data = client.get("/api/dashboard").json()
        assert data["employeeNo"] == "10001"
        assert data["greeting"] == "Hi, Asha Rao"

    def test_bad_login(self, client):
        _login(client)
        resp = client.post("/api/login", json={"empNo": "10001", "password": "Wrong@123"})
        assert resp.status_code == 401
        assert resp.json()["ok"] is False

    def test_change_password(self, client):
        _login(client)
        resp = client.post(
            "/api/change-password",
            json={"currentPassword": "Secret@123", "newPassword": "NewPass@1", "confirmPassword": "NewPass@1"},
        )
        assert resp.status_code == 200
        assert resp.json()["message"] == "Password updated successfully!"

        resp = client.post("/api/login", json={"empNo": "10001", "password": "NewPass@1"})
        assert resp.status_code == 200

    def test_change_password_wrong_current(self, client):
        _login(client)
        resp = client.post(
            "/api/change-password",
            json={"currentPassword": "Nope@1234", "newPassword": "NewPass@1", "confirmPassword": "NewPass@1"},
        )
        assert resp.status_code == 400
        assert resp.json()["message"] == "Failed to update password"

    def test_change_password_needs_login(self, client):
        resp = client.post("/api/change-password", json={"currentPassword": "x", "newPassword": "y"})
        assert resp.status_code == 401
        assert resp.json()["navigate"] == {"view": "login-options"}

    def test_otp_login(self, client):
        assert client.post("/api/otp/request", json={"empNo": "10001", "mobile": "9876543210"}).json()["otpLength"] == 6
        assert client.post("/api/otp/verify", json={"empNo": "10001", "otp": "12"}).status_code == 401
        assert client.post("/api/otp/verify", json={"empNo": "10001", "otp": "123456"}).status_code == 200

    def test_forgot_password(self, client):
        _login(client)
        assert client.post("/api/forgot-password/otp", json={"empNo": "10001"}).json()["ok"] is True
        assert client.post("/api/forgot-password/otp", json={"empNo": "EMP1"}).status_code == 400
        resp = client.post(
            "/api/forgot-password/reset",
            json={"empNo": "10001", "otp": "123456", "newPassword": "Reset@123", "confirmPassword": "Reset@123"},
        )
        assert resp.status_code == 200
        assert resp.json()["navigate"] == {"view": "login-password"}

    def test_logout(self, client):
        _login(client)
        assert client.post("/api/logout").json()["navigate"] == {"view": "landing"}
