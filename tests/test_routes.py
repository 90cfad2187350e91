# Overview: Pytest coverage for the JSON API (status codes and payloads).

import pytest


@pytest.fixture
def api(client, headers):
    """Small helper around the test client that injects actor headers."""

    class _Api:
        def post(self, actor, url, json=None):
            return client.post(url, json=json or {}, headers=headers(actor))

        def get(self, actor, url, **params):
            return client.get(url, query_string=params, headers=headers(actor))

    return _Api()


@pytest.fixture
def open_drawers(db_session, api, alice, bob):
    a = api.post(alice, "/api/drawers", {"drawer_name": "Front till"}).get_json()["drawer"]
    b = api.post(bob, "/api/drawers").get_json()["drawer"]
    api.post(alice, f"/api/drawers/{a['id']}/open", {"opening_balance_cents": 100000})
    api.post(bob, f"/api/drawers/{b['id']}/open", {"opening_balance_cents": 20000})
    return a["id"], b["id"]


class TestAuthentication:
    def test_missing_headers_is_401(self, client, db_session):
        response = client.get("/api/drawers")
        assert response.status_code == 401
        assert response.get_json()["code"] == "UNAUTHENTICATED"

    def test_missing_tenant_is_401(self, client, db_session):
        response = client.get("/api/transfers", headers={"X-Actor-Id": "alice"})
        assert response.status_code == 401


class TestHealth:
    def test_health_reports_database(self, client, db_session):
        response = client.get("/api/health")
        assert response.status_code == 200
        body = response.get_json()
        assert body["status"] == "healthy"
        assert body["database"]["details"]["drawers"] == 0


class TestDrawerRoutes:
    def test_create_and_open(self, api, db_session, alice):
        created = api.post(alice, "/api/drawers", {"drawer_name": "Front till", "location_name": "Main floor"})
        assert created.status_code == 201
        drawer = created.get_json()["drawer"]
        assert drawer["status"] == "CLOSED"
        assert drawer["location_name"] == "Main floor"

        opened = api.post(alice, f"/api/drawers/{drawer['id']}/open", {"opening_balance_cents": 5000})
        assert opened.status_code == 200
        assert opened.get_json()["drawer"]["current_balance_cents"] == 5000

    def test_open_with_bad_amount_is_400(self, api, db_session, alice):
        drawer = api.post(alice, "/api/drawers").get_json()["drawer"]
        response = api.post(alice, f"/api/drawers/{drawer['id']}/open", {"opening_balance_cents": "12.50"})
        assert response.status_code == 400
        assert response.get_json()["code"] == "INVALID_AMOUNT"

    def test_record_transaction_and_balance(self, api, alice, open_drawers):
        drawer_id, _ = open_drawers
        posted = api.post(alice, f"/api/drawers/{drawer_id}/transactions", {
            "kind": "SALE_PAYMENT",
            "amount_cents": 2500,
            "reference_type": "sale",
            "reference_id": "S-1",
        })
        assert posted.status_code == 201
        assert posted.get_json()["entry"]["balance_after_cents"] == 102500

        balance = api.get(alice, f"/api/drawers/{drawer_id}/balance")
        assert balance.get_json() == {"drawer_id": drawer_id, "current_balance_cents": 102500}

    def test_overdraw_is_409(self, api, alice, open_drawers):
        drawer_id, _ = open_drawers
        response = api.post(alice, f"/api/drawers/{drawer_id}/transactions", {
            "kind": "BANK_DEPOSIT", "amount_cents": 999999,
        })
        assert response.status_code == 409
        assert response.get_json()["code"] == "INSUFFICIENT_FUNDS"

    def test_not_owner_is_403(self, api, bob, open_drawers):
        drawer_id, _ = open_drawers
        response = api.post(bob, f"/api/drawers/{drawer_id}/close")
        assert response.status_code == 403
        assert response.get_json()["code"] == "UNAUTHORIZED"

    def test_unknown_drawer_is_404(self, api, db_session, alice):
        response = api.get(alice, "/api/drawers/424242")
        assert response.status_code == 404

    def test_suspend_requires_manager(self, api, alice, manager, open_drawers):
        drawer_id, _ = open_drawers
        assert api.post(alice, f"/api/drawers/{drawer_id}/suspend").status_code == 403

        suspended = api.post(manager, f"/api/drawers/{drawer_id}/suspend", {"reason": "audit"})
        assert suspended.status_code == 200
        assert suspended.get_json()["drawer"]["status"] == "SUSPENDED"

        resumed = api.post(manager, f"/api/drawers/{drawer_id}/resume")
        assert resumed.get_json()["drawer"]["status"] == "OPEN"

    def test_list_drawers(self, api, alice, open_drawers):
        response = api.get(alice, "/api/drawers", status="OPEN")
        assert {d["id"] for d in response.get_json()["drawers"]} == set(open_drawers)

    def test_journal_and_summary(self, api, alice, open_drawers):
        drawer_id, _ = open_drawers
        api.post(alice, f"/api/drawers/{drawer_id}/transactions", {"kind": "CHANGE_ISSUED", "amount_cents": 300})

        journal = api.get(alice, f"/api/drawers/{drawer_id}/journal").get_json()["entries"]
        assert [e["kind"] for e in journal] == ["OPENING_BALANCE", "CHANGE_ISSUED"]

        summary = api.get(alice, f"/api/drawers/{drawer_id}/journal/summary").get_json()["summary"]
        assert summary["total_in_cents"] == 100000
        assert summary["total_out_cents"] == 300
        assert summary["closing_balance_cents"] == 99700

    def test_bad_date_range_is_400(self, api, alice, open_drawers):
        drawer_id, _ = open_drawers
        response = api.get(alice, f"/api/drawers/{drawer_id}/journal", start="yesterday")
        assert response.status_code == 400


class TestTransferRoutes:
    def test_drawer_transfer_lifecycle(self, api, alice, bob, open_drawers):
        a_id, b_id = open_drawers
        created = api.post(alice, "/api/transfers/drawer", {
            "from_drawer_id": a_id, "to_drawer_id": b_id, "amount_cents": 40000, "reason": "petty cash",
        })
        assert created.status_code == 201
        transfer = created.get_json()["transfer"]
        assert transfer["status"] == "PENDING"
        assert transfer["reference_number"] == "CT-000001"
        assert transfer["to_drawer_id"] == b_id

        pending = api.get(bob, "/api/transfers/pending").get_json()["transfers"]
        assert [t["id"] for t in pending] == [transfer["id"]]

        resolved = api.post(bob, f"/api/transfers/{transfer['id']}/resolve", {"decision": "APPROVE"})
        assert resolved.status_code == 200
        assert resolved.get_json()["transfer"]["status"] == "APPROVED"

        assert api.get(alice, f"/api/drawers/{a_id}/balance").get_json()["current_balance_cents"] == 60000
        assert api.get(bob, f"/api/drawers/{b_id}/balance").get_json()["current_balance_cents"] == 60000

        again = api.post(bob, f"/api/transfers/{transfer['id']}/resolve", {"decision": "REJECT"})
        assert again.status_code == 409
        assert again.get_json()["code"] == "ALREADY_RESOLVED"
        assert again.get_json()["current_status"] == "APPROVED"

    def test_business_rejection_is_200_with_reason(self, api, alice, bob, open_drawers):
        a_id, b_id = open_drawers
        transfer = api.post(alice, "/api/transfers/drawer", {
            "from_drawer_id": a_id, "to_drawer_id": b_id, "amount_cents": 1000,
        }).get_json()["transfer"]
        api.post(alice, f"/api/drawers/{a_id}/close")

        resolved = api.post(bob, f"/api/transfers/{transfer['id']}/resolve", {"decision": "APPROVE"})
        assert resolved.status_code == 200
        assert resolved.get_json()["transfer"]["status"] == "REJECTED"
        assert resolved.get_json()["transfer"]["rejection_reason"] == "SOURCE_DRAWER_UNAVAILABLE"

    def test_unrelated_cashier_is_403(self, api, alice, carol, open_drawers):
        a_id, b_id = open_drawers
        transfer = api.post(alice, "/api/transfers/drawer", {
            "from_drawer_id": a_id, "to_drawer_id": b_id, "amount_cents": 1000,
        }).get_json()["transfer"]

        response = api.post(carol, f"/api/transfers/{transfer['id']}/resolve", {"decision": "APPROVE"})
        assert response.status_code == 403
        assert api.get(carol, f"/api/transfers/{transfer['id']}").get_json()["transfer"]["status"] == "PENDING"

    def test_missing_decision_is_400(self, api, alice, bob, open_drawers):
        a_id, b_id = open_drawers
        transfer = api.post(alice, "/api/transfers/drawer", {
            "from_drawer_id": a_id, "to_drawer_id": b_id, "amount_cents": 1000,
        }).get_json()["transfer"]
        assert api.post(bob, f"/api/transfers/{transfer['id']}/resolve", {}).status_code == 400

    def test_missing_drawer_id_is_400(self, api, alice, open_drawers):
        response = api.post(alice, "/api/transfers/drawer", {"to_drawer_id": open_drawers[1], "amount_cents": 5})
        assert response.status_code == 400
        assert "from_drawer_id" in response.get_json()["error"]

    def test_account_transfer_and_listing(self, api, alice, manager, open_drawers):
        a_id, _ = open_drawers
        created = api.post(alice, "/api/transfers/account", {
            "from_drawer_id": a_id, "to_external_account_id": "bank-7", "amount_cents": 20000,
        })
        assert created.status_code == 201
        transfer = created.get_json()["transfer"]
        assert transfer["reference_number"] == "AT-000001"

        resolved = api.post(manager, f"/api/transfers/{transfer['id']}/resolve", {"decision": "approve"})
        assert resolved.get_json()["transfer"]["status"] == "APPROVED"
        journal = api.get(alice, f"/api/drawers/{a_id}/journal").get_json()["entries"]
        assert [e["kind"] for e in journal] == ["OPENING_BALANCE"]

        listed = api.get(alice, "/api/transfers", type="ACCOUNT", status="APPROVED").get_json()["transfers"]
        assert [t["id"] for t in listed] == [transfer["id"]]

    def test_cancel(self, api, alice, bob, open_drawers):
        a_id, b_id = open_drawers
        transfer = api.post(alice, "/api/transfers/drawer", {
            "from_drawer_id": a_id, "to_drawer_id": b_id, "amount_cents": 1000,
        }).get_json()["transfer"]

        assert api.post(bob, f"/api/transfers/{transfer['id']}/cancel").status_code == 403
        cancelled = api.post(alice, f"/api/transfers/{transfer['id']}/cancel", {"notes": "wrong drawer"})
        assert cancelled.status_code == 200
        assert cancelled.get_json()["transfer"]["status"] == "CANCELLED"

    def test_other_tenant_gets_404(self, api, alice, outsider_manager, open_drawers):
        a_id, b_id = open_drawers
        transfer = api.post(alice, "/api/transfers/drawer", {
            "from_drawer_id": a_id, "to_drawer_id": b_id, "amount_cents": 1000,
        }).get_json()["transfer"]

        response = api.post(outsider_manager, f"/api/transfers/{transfer['id']}/resolve", {"decision": "APPROVE"})
        assert response.status_code == 404
