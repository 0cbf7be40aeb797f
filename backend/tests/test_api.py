"""API tests against a temporary SQLite database.

Run with: pytest backend/tests/test_api.py -v
"""

from io import BytesIO

import pytest
from openpyxl import load_workbook
from sqlalchemy.exc import OperationalError
from sqlalchemy.ext.asyncio import AsyncSession

from loanportal.config import settings
from loanportal.services.export_service import XLSX_CONTENT_TYPE


def _inspection_payload(**kw):
    payload = {
        "date": "2025-01-07",
        "loan_account_number": "LA-001",
        "customer_name": "Ravi Kumar",
        "loan_amount": 250000,
        "location": "Mysuru",
        "bob_region": "BENGALURU REGION",
        "our_region": "BANGALORE",
        "zone": "BENGALURU ZONE",
    }
    payload.update(kw)
    return payload


def _payout_payload(**kw):
    payload = {
        "month": "2025-01",
        "customer_name": "Ravi Kumar",
        "location": "Mysuru",
        "financier": "BOB",
        "our_region": "BANGALORE",
        "loan_amount": 500000,
        "payout_percentage": 2,
    }
    payload.update(kw)
    return payload


def _fail_flush(monkeypatch):
    async def flush(self, objects=None):
        raise OperationalError("INSERT", {}, Exception("disk full"))
    monkeypatch.setattr(AsyncSession, "flush", flush)


def _fail_reads_from(monkeypatch, table: str):
    original = AsyncSession.execute

    async def execute(self, statement, *args, **kwargs):
        if table in str(statement):
            raise OperationalError(str(statement), {}, Exception("database is locked"))
        return await original(self, statement, *args, **kwargs)
    monkeypatch.setattr(AsyncSession, "execute", execute)


# ── Health / auth ──────────────────────────────────────────────────

class TestAuth:

    def test_health(self, client):
        resp = client.get("/api/health")
        assert resp.status_code == 200
        assert resp.json()["status"] == "healthy"

    def test_login_and_me(self, client, admin_headers):
        resp = client.get("/api/auth/me", headers=admin_headers)
        assert resp.status_code == 200
        data = resp.json()
        assert data["email"] == settings.seed_admin_email
        assert data["role"] == "ADMIN"
        assert data["is_admin"] is True

    def test_wrong_password(self, client):
        resp = client.post("/api/auth/login", json={
            "email": settings.seed_admin_email, "password": "not-the-password",
        })
        assert resp.status_code == 401
        assert resp.json()["detail"] == "Invalid login credentials"

    def test_unknown_user(self, client):
        resp = client.post("/api/auth/login", json={"email": "nobody@example.com", "password": "whatever"})
        assert resp.status_code == 401

    def test_me_requires_token(self, client):
        assert client.get("/api/auth/me").status_code == 401

    def test_refresh_issues_new_pair(self, client):
        login = client.post("/api/auth/login", json={
            "email": settings.seed_admin_email, "password": settings.seed_admin_password,
        }).json()
        resp = client.post("/api/auth/refresh", json={"refresh_token": login["refresh_token"]})
        assert resp.status_code == 200
        me = client.get("/api/auth/me", headers={"Authorization": f"Bearer {resp.json()['access_token']}"})
        assert me.status_code == 200

    def test_access_token_is_not_a_refresh_token(self, client):
        login = client.post("/api/auth/login", json={
            "email": settings.seed_admin_email, "password": settings.seed_admin_password,
        }).json()
        resp = client.post("/api/auth/refresh", json={"refresh_token": login["access_token"]})
        assert resp.status_code == 401

    def test_suspended_user_cannot_sign_in(self, client, admin_headers):
        created = client.post("/api/users", headers=admin_headers, json={
            "email": "temp@example.com", "password": "secret123", "full_name": "Temp Agent",
        }).json()
        resp = client.patch(f"/api/users/{created['id']}", headers=admin_headers, json={"status": "suspended"})
        assert resp.status_code == 200
        assert resp.json()["is_active"] is False

        resp = client.post("/api/auth/login", json={"email": "temp@example.com", "password": "secret123"})
        assert resp.status_code == 403


# ── Users ──────────────────────────────────────────────────────────

class TestUsers:

    def test_any_user_can_list(self, client, agent, headers_for):
        resp = client.get("/api/users", headers=headers_for(agent))
        assert resp.status_code == 200
        names = {u["full_name"] for u in resp.json()}
        assert {"Agent One", settings.seed_admin_name} <= names

    def test_admin_creates_field_agent_by_default(self, client, admin_headers):
        resp = client.post("/api/users", headers=admin_headers, json={
            "email": "new@example.com", "password": "secret123", "full_name": "New Agent",
        })
        assert resp.status_code == 201
        assert resp.json()["role"] == "FIELD_AGENT"
        assert resp.json()["is_admin"] is False

    def test_duplicate_email_rejected(self, client, admin_headers, agent):
        resp = client.post("/api/users", headers=admin_headers, json={
            "email": agent.email, "password": "secret123", "full_name": "Dup",
        })
        assert resp.status_code == 400

    def test_weak_password_rejected(self, client, admin_headers):
        resp = client.post("/api/users", headers=admin_headers, json={
            "email": "weak@example.com", "password": "123", "full_name": "Weak",
        })
        assert resp.status_code == 400

    def test_agent_cannot_create_or_update(self, client, agent, other_agent, headers_for):
        headers = headers_for(agent)
        resp = client.post("/api/users", headers=headers, json={
            "email": "x@example.com", "password": "secret123", "full_name": "X",
        })
        assert resp.status_code == 403
        resp = client.patch(f"/api/users/{other_agent.id}", headers=headers, json={"role": "ADMIN"})
        assert resp.status_code == 403

    def test_admin_promotes_user(self, client, admin_headers, agent, headers_for):
        resp = client.patch(f"/api/users/{agent.id}", headers=admin_headers, json={"role": "ADMIN"})
        assert resp.status_code == 200
        me = client.get("/api/auth/me", headers=headers_for(agent)).json()
        assert me["is_admin"] is True


# ── Inspection reports ─────────────────────────────────────────────

class TestInspections:

    def test_create_sets_creator(self, client, agent, headers_for):
        resp = client.post("/api/inspections", headers=headers_for(agent), json=_inspection_payload())
        assert resp.status_code == 201
        data = resp.json()
        assert data["created_by_user_id"] == agent.id
        assert data["creator_name"] == "Agent One"
        assert data["state"] == "Karnataka"
        assert data["lar_remarks"] == "YES"
        assert data["payment_status"] == "Pending"

    def test_negative_loan_amount_rejected(self, client, agent, headers_for):
        resp = client.post("/api/inspections", headers=headers_for(agent),
                           json=_inspection_payload(loan_amount=-1))
        assert resp.status_code == 422

    def test_agents_only_see_their_own(self, client, agent, other_agent, headers_for, admin_headers):
        client.post("/api/inspections", headers=headers_for(agent), json=_inspection_payload())
        theirs = client.post("/api/inspections", headers=headers_for(other_agent),
                             json=_inspection_payload(customer_name="Someone Else")).json()

        mine = client.get("/api/inspections", headers=headers_for(agent)).json()
        assert [r["customer_name"] for r in mine] == ["Ravi Kumar"]

        resp = client.get(f"/api/inspections/{theirs['id']}", headers=headers_for(agent))
        assert resp.status_code == 404

        everything = client.get("/api/inspections", headers=admin_headers).json()
        assert len(everything) == 2

    def test_list_filters_and_order(self, client, agent, headers_for):
        headers = headers_for(agent)
        client.post("/api/inspections", headers=headers, json=_inspection_payload(date="2025-01-05"))
        client.post("/api/inspections", headers=headers,
                    json=_inspection_payload(date="2025-02-01", payment_status="Paid"))
        client.post("/api/inspections", headers=headers, json=_inspection_payload(date="2025-01-20"))

        dates = [r["date"] for r in client.get("/api/inspections", headers=headers).json()]
        assert dates == ["2025-02-01", "2025-01-20", "2025-01-05"]

        resp = client.get("/api/inspections", headers=headers, params={"payment_status": "Paid"})
        assert [r["date"] for r in resp.json()] == ["2025-02-01"]

        resp = client.get("/api/inspections", headers=headers,
                          params={"start_date": "2025-01-10", "end_date": "2025-01-31"})
        assert [r["date"] for r in resp.json()] == ["2025-01-20"]

    def test_only_creator_or_admin_can_edit(self, client, agent, other_agent, headers_for, admin_headers):
        report = client.post("/api/inspections", headers=headers_for(agent), json=_inspection_payload()).json()
        url = f"/api/inspections/{report['id']}"

        resp = client.put(url, headers=headers_for(other_agent), json=_inspection_payload(location="Hassan"))
        assert resp.status_code == 403

        resp = client.put(url, headers=headers_for(agent), json=_inspection_payload(invoice_status="Raised"))
        assert resp.status_code == 200
        assert resp.json()["invoice_status"] == "Raised"

        resp = client.put(url, headers=admin_headers, json=_inspection_payload(invoice_status="Cleared"))
        assert resp.status_code == 200
        assert resp.json()["invoice_status"] == "Cleared"
        assert resp.json()["created_by_user_id"] == agent.id

    def test_missing_report(self, client, admin_headers):
        assert client.get("/api/inspections/9999", headers=admin_headers).status_code == 404
        resp = client.put("/api/inspections/9999", headers=admin_headers, json=_inspection_payload())
        assert resp.status_code == 404

    def test_export(self, client, agent, headers_for):
        client.post("/api/inspections", headers=headers_for(agent), json=_inspection_payload())
        resp = client.get("/api/inspections/export", headers=headers_for(agent))
        assert resp.status_code == 200
        assert resp.headers["content-type"] == XLSX_CONTENT_TYPE
        assert 'filename="Inspection_Reports.xlsx"' in resp.headers["content-disposition"]
        assert resp.content[:2] == b"PK"

    def test_email_link_is_admin_only(self, client, agent, headers_for, admin_headers):
        assert client.get("/api/inspections/email-link", headers=headers_for(agent)).status_code == 403
        resp = client.get("/api/inspections/email-link", headers=admin_headers)
        assert resp.status_code == 200
        data = resp.json()
        assert data["mailto"].startswith(f"mailto:{settings.report_mail_recipient}?subject=Field%20Inspection%20Report")
        assert data["export_url"] == "/api/inspections/export"
        assert "attach" in data["note"]


# ── Payout reports ─────────────────────────────────────────────────

class TestPayouts:

    def test_create_computes_amounts(self, client, agent, headers_for):
        resp = client.post("/api/payouts", headers=headers_for(agent),
                           json=_payout_payload(amount_paid=1, nett_amount=1))
        assert resp.status_code == 201
        data = resp.json()
        assert data["amount_paid"] == pytest.approx(10000)
        assert data["less_tds"] == pytest.approx(1000)
        assert data["nett_amount"] == pytest.approx(9000)
        assert data["payment_status"] == "Pending"

    def test_update_recomputes(self, client, agent, headers_for):
        headers = headers_for(agent)
        report = client.post("/api/payouts", headers=headers, json=_payout_payload()).json()
        resp = client.put(f"/api/payouts/{report['id']}", headers=headers,
                          json=_payout_payload(loan_amount=300000, payout_percentage=1,
                                               payment_status="PAID ON 07-02-2025"))
        assert resp.status_code == 200
        data = resp.json()
        assert data["nett_amount"] == pytest.approx(2700)
        assert data["payment_status"] == "PAID ON 07-02-2025"

    def test_calculate_preview(self, client, agent, headers_for):
        resp = client.post("/api/payouts/calculate", headers=headers_for(agent),
                           json={"loan_amount": 500000, "payout_percentage": 2})
        assert resp.status_code == 200
        assert resp.json() == pytest.approx({"amount_paid": 10000, "less_tds": 1000, "nett_amount": 9000})

        rounded = client.post("/api/payouts/calculate", headers=headers_for(agent),
                              json={"loan_amount": 100000, "payout_percentage": 1.2345})
        assert rounded.json() == pytest.approx({"amount_paid": 1235, "less_tds": 123.5, "nett_amount": 1111.5})

    def test_stored_row_matches_rounded_inputs(self, client, agent, headers_for):
        headers = headers_for(agent)
        created = client.post("/api/payouts", headers=headers,
                              json=_payout_payload(loan_amount=100000, payout_percentage=1.2345))
        assert created.status_code == 201

        stored = client.get(f"/api/payouts/{created.json()['id']}", headers=headers).json()
        assert stored["loan_amount"] == 100000
        assert stored["payout_percentage"] == pytest.approx(1.235)
        assert stored["amount_paid"] == pytest.approx(stored["loan_amount"] * stored["payout_percentage"] / 100)
        assert stored["less_tds"] == pytest.approx(stored["amount_paid"] * 0.1)
        assert stored["nett_amount"] == pytest.approx(stored["amount_paid"] - stored["less_tds"])

    def test_invalid_month_rejected(self, client, agent, headers_for):
        resp = client.post("/api/payouts", headers=headers_for(agent), json=_payout_payload(month="2025-13"))
        assert resp.status_code == 422

    def test_scoped_list_latest_month_first(self, client, agent, other_agent, headers_for):
        client.post("/api/payouts", headers=headers_for(agent), json=_payout_payload(month="2024-12"))
        client.post("/api/payouts", headers=headers_for(agent), json=_payout_payload(month="2025-02"))
        client.post("/api/payouts", headers=headers_for(other_agent), json=_payout_payload(customer_name="Other"))

        rows = client.get("/api/payouts", headers=headers_for(agent)).json()
        assert [r["month"] for r in rows] == ["2025-02", "2024-12"]
        assert all(r["created_by_user_id"] == agent.id for r in rows)

    def test_other_agent_cannot_edit(self, client, agent, other_agent, headers_for):
        report = client.post("/api/payouts", headers=headers_for(agent), json=_payout_payload()).json()
        resp = client.put(f"/api/payouts/{report['id']}", headers=headers_for(other_agent), json=_payout_payload())
        assert resp.status_code == 403

    def test_export_and_email_link(self, client, admin_headers):
        client.post("/api/payouts", headers=admin_headers, json=_payout_payload())
        resp = client.get("/api/payouts/export", headers=admin_headers)
        assert resp.status_code == 200
        assert 'filename="Payout_Reports.xlsx"' in resp.headers["content-disposition"]

        link = client.get("/api/payouts/email-link", headers=admin_headers).json()
        assert "subject=Payout%20Report" in link["mailto"]
        assert "body=Attached%20is%20the%20payout%20report." in link["mailto"]


# ── Dashboard ──────────────────────────────────────────────────────

class TestDashboard:

    def test_inspection_tab(self, client, agent, headers_for):
        headers = headers_for(agent)
        client.post("/api/inspections", headers=headers, json=_inspection_payload())
        client.post("/api/inspections", headers=headers,
                    json=_inspection_payload(date="2025-01-08", loan_amount=100000, lar_remarks="No",
                                             bob_region="PUNE REGION", our_region="PUNE",
                                             invoice_status="Cleared"))

        data = client.get("/api/dashboard", headers=headers).json()
        assert data["tab"] == "inspection"
        assert data["record_count"] == 2
        assert data["kpis"]["total_inspections"] == 2
        assert data["kpis"]["pending_reports"] == 1
        assert data["display"]["inspection_volume"] == "₹3.50 L"
        assert data["display"]["positive_rate"] == "50% Rate"
        assert [p["name"] for p in data["trend"]] == ["07 Jan", "08 Jan"]
        assert {p["name"] for p in data["category"]} == {"BENGALURU", "PUNE"}
        assert sum(p["value"] for p in data["status"]) == 2

    def test_region_and_date_filters(self, client, agent, headers_for):
        headers = headers_for(agent)
        client.post("/api/inspections", headers=headers, json=_inspection_payload())
        client.post("/api/inspections", headers=headers,
                    json=_inspection_payload(date="2025-03-01", our_region="PUNE", bob_region="PUNE REGION"))

        data = client.get("/api/dashboard", headers=headers, params={"region": "PUNE"}).json()
        assert data["record_count"] == 1
        assert data["filters"]["region"] == "PUNE"

        data = client.get("/api/dashboard", headers=headers, params={"start_date": "2025-02-01"}).json()
        assert data["record_count"] == 1
        assert data["filters"]["start_date"] == "2025-02-01"

    def test_empty_dashboard(self, client, agent, headers_for):
        data = client.get("/api/dashboard", headers=headers_for(agent)).json()
        assert data["record_count"] == 0
        assert data["display"]["positive_rate"] == "0% Rate"
        assert data["trend"] == []

    def test_payout_tab_is_scoped(self, client, agent, other_agent, headers_for):
        client.post("/api/payouts", headers=headers_for(agent), json=_payout_payload())
        client.post("/api/payouts", headers=headers_for(other_agent),
                    json=_payout_payload(loan_amount=20_000_000, payment_status="Paid"))

        data = client.get("/api/dashboard", headers=headers_for(agent), params={"tab": "payout"}).json()
        assert data["kpis"]["total_payout_amount"] == 500000
        assert data["kpis"]["total_nett_paid"] == pytest.approx(9000)
        assert data["kpis"]["pending_payouts"] == 1
        assert data["display"]["total_payout_amount"] == "₹5.00 L"
        assert data["display"]["total_nett_paid"] == "₹9,000"
        assert {p["name"]: p["value"] for p in data["status"]} == {"Paid": 0, "Pending": 1}

    def test_unknown_tab_rejected(self, client, agent, headers_for):
        resp = client.get("/api/dashboard", headers=headers_for(agent), params={"tab": "other"})
        assert resp.status_code == 422


# ── Settings / reference ───────────────────────────────────────────

class TestSettings:

    def test_header_defaults_are_public(self, client):
        resp = client.get("/api/settings/header")
        assert resp.status_code == 200
        assert resp.json()["company_name"] == settings.company_name
        assert resp.json()["id"] is None

    def test_only_admin_updates_header(self, client, agent, headers_for, admin_headers):
        body = {"company_name": "Sridhar Associates", "address": "Bengaluru",
                "contact_email": "office@example.com", "logo_url": ""}
        assert client.put("/api/settings/header", headers=headers_for(agent), json=body).status_code == 403

        first = client.put("/api/settings/header", headers=admin_headers, json=body)
        assert first.status_code == 200
        second = client.put("/api/settings/header", headers=admin_headers,
                            json={**body, "company_name": "Sridhar & Co"})
        assert second.json()["id"] == first.json()["id"]

        assert client.get("/api/settings/header").json()["company_name"] == "Sridhar & Co"

    def test_reference_lists(self, client, agent, headers_for):
        data = client.get("/api/reference", headers=headers_for(agent)).json()
        assert "BENGALURU REGION" in data["bob_regions"]
        assert data["invoice_statuses"] == ["Pending", "Raised", "Cleared"]
        assert data["defaults"]["state"] == "Karnataka"


# ── Error logs ─────────────────────────────────────────────────────

class TestErrorLogs:

    def test_client_errors_are_recorded(self, client, admin_headers):
        assert client.get("/api/inspections/424242", headers=admin_headers).status_code == 404

        resp = client.get("/api/error-logs", headers=admin_headers, params={"search": "424242"})
        assert resp.status_code == 200
        items = resp.json()["items"]
        assert len(items) == 1
        assert items[0]["severity"] == "warning"
        assert items[0]["status_code"] == 404

        resolved = client.patch(f"/api/error-logs/{items[0]['id']}/resolve", headers=admin_headers,
                                json={"resolution_notes": "expected"})
        assert resolved.json()["resolved"] is True

    def test_agents_cannot_read_error_logs(self, client, agent, headers_for):
        assert client.get("/api/error-logs", headers=headers_for(agent)).status_code == 403


# ── Storage failures ───────────────────────────────────────────────

class TestStorageFailures:

    def test_failed_write_returns_500_and_saves_nothing(self, client, agent, headers_for, admin_headers, monkeypatch):
        headers = headers_for(agent)
        with monkeypatch.context() as m:
            _fail_flush(m)
            resp = client.post("/api/payouts", headers=headers, json=_payout_payload())
        assert resp.status_code == 500
        assert resp.json()["detail"].startswith("Error saving report: ")
        assert "disk full" in resp.json()["detail"]

        assert client.get("/api/payouts", headers=headers).json() == []
        logs = client.get("/api/error-logs", headers=admin_headers,
                          params={"search": "OperationalError"}).json()["items"]
        assert any(item["function_name"] == "create_payout" for item in logs)

    def test_failed_inspection_update_keeps_stored_values(self, client, agent, headers_for, monkeypatch):
        headers = headers_for(agent)
        report = client.post("/api/inspections", headers=headers, json=_inspection_payload()).json()
        with monkeypatch.context() as m:
            _fail_flush(m)
            resp = client.put(f"/api/inspections/{report['id']}", headers=headers,
                              json=_inspection_payload(customer_name="Changed"))
        assert resp.status_code == 500
        assert resp.json()["detail"].startswith("Error saving report: ")
        assert client.get(f"/api/inspections/{report['id']}", headers=headers).json()["customer_name"] == "Ravi Kumar"

    def test_failed_list_read_returns_empty(self, client, agent, headers_for, monkeypatch):
        headers = headers_for(agent)
        client.post("/api/inspections", headers=headers, json=_inspection_payload())
        client.post("/api/payouts", headers=headers, json=_payout_payload())

        _fail_reads_from(monkeypatch, "inspection_reports")
        _fail_reads_from(monkeypatch, "payout_reports")
        for path in ("/api/inspections", "/api/payouts"):
            resp = client.get(path, headers=headers)
            assert resp.status_code == 200
            assert resp.json() == []

    def test_failed_dashboard_read_returns_empty_aggregate(self, client, agent, headers_for, monkeypatch):
        headers = headers_for(agent)
        client.post("/api/payouts", headers=headers, json=_payout_payload())

        _fail_reads_from(monkeypatch, "payout_reports")
        resp = client.get("/api/dashboard", headers=headers, params={"tab": "payout"})
        assert resp.status_code == 200
        data = resp.json()
        assert data["record_count"] == 0
        assert data["kpis"]["total_payout_amount"] == 0
        assert data["trend"] == []

    def test_failed_export_read_returns_empty_workbook(self, client, agent, headers_for, monkeypatch):
        headers = headers_for(agent)
        client.post("/api/inspections", headers=headers, json=_inspection_payload())

        _fail_reads_from(monkeypatch, "inspection_reports")
        resp = client.get("/api/inspections/export", headers=headers)
        assert resp.status_code == 200
        assert resp.headers["content-type"] == XLSX_CONTENT_TYPE
        sheet = load_workbook(BytesIO(resp.content)).active
        assert sheet.max_row == 1
        assert sheet.cell(row=1, column=1).value is None
