"""Integration tests for API routes."""

from __future__ import annotations

import json

import pytest
from fastapi.testclient import TestClient


def _transaction(**overrides):
    data = {
        "type": "expense",
        "amount": 12.5,
        "date": "2024-01-15T10:00:00.000Z",
        "reason": "Lunch out",
        "category": "Food",
        "account_name": "Wallet",
    }
    data.update(overrides)
    return data


class TestHealthEndpoint:
    def test_health_returns_ok(self, client):
        response = client.get("/health")
        assert response.status_code == 200
        assert response.json() == {"status": "ok"}


class TestIdentity:
    def test_missing_identity_is_unauthorized(self, app_client):
        response = app_client.get("/api/transactions")
        assert response.status_code == 401
        assert response.json() == {"detail": "Unauthorized"}

    def test_session_cookie_identifies_user(self, app_client):
        app_client.cookies.set("user", json.dumps({"username": "cookie-user"}, separators=(",", ":")))
        response = app_client.get("/api/auth/me")
        assert response.status_code == 200
        assert response.json()["username"] == "cookie-user"

    def test_invalid_cookie_is_ignored(self, app_client):
        app_client.cookies.set("user", "not-json")
        response = app_client.get("/api/transactions")
        assert response.status_code == 401


class TestTransactionEndpoints:
    def test_list_empty(self, client):
        response = client.get("/api/transactions")
        assert response.status_code == 200
        assert response.json() == []

    def test_create_returns_201_and_generates_id(self, client):
        response = client.post("/api/transactions", json=_transaction())
        assert response.status_code == 201
        data = response.json()
        assert data["id"]
        assert data["date"] == "2024-01-15T10:00:00+00:00"

    def test_create_existing_id_returns_200(self, client):
        first = client.post("/api/transactions", json=_transaction(id="abc"))
        second = client.post("/api/transactions", json=_transaction(id="abc", amount=99))

        assert first.status_code == 201
        assert second.status_code == 200
        stored = client.get("/api/transactions").json()
        assert len(stored) == 1
        assert stored[0]["amount"] == 12.5

    def test_get_single(self, client):
        client.post("/api/transactions", json=_transaction(id="abc"))
        response = client.get("/api/transactions/abc")
        assert response.status_code == 200
        assert response.json()["reason"] == "Lunch out"

    def test_get_single_not_found(self, client):
        assert client.get("/api/transactions/missing").status_code == 404

    def test_update(self, client):
        client.post("/api/transactions", json=_transaction(id="abc"))
        response = client.put("/api/transactions/abc", json=_transaction(id="ignored", amount=15))
        assert response.status_code == 200
        assert response.json()["id"] == "abc"
        assert response.json()["amount"] == 15

    def test_update_not_found(self, client):
        response = client.put("/api/transactions/missing", json=_transaction())
        assert response.status_code == 404

    def test_update_requires_date(self, client):
        client.post("/api/transactions", json=_transaction(id="abc"))
        payload = _transaction(amount=20)
        del payload["date"]

        response = client.put("/api/transactions/abc", json=payload)

        assert response.status_code == 422
        assert client.get("/api/transactions/abc").json()["date"] == "2024-01-15T10:00:00+00:00"

    def test_delete(self, client):
        client.post("/api/transactions", json=_transaction(id="abc"))
        response = client.delete("/api/transactions/abc")
        assert response.status_code == 204
        assert client.get("/api/transactions").json() == []

    def test_delete_not_found(self, client):
        assert client.delete("/api/transactions/missing").status_code == 404

    def test_summary(self, client):
        client.post("/api/transactions", json=_transaction(type="income", amount=100, reason="Gift"))
        client.post("/api/transactions", json=_transaction(amount=40))
        response = client.get("/api/transactions/summary")
        assert response.status_code == 200
        assert response.json() == {"total_income": 100, "total_expenses": 40, "balance": 60, "count": 2}

    @pytest.mark.parametrize(
        "overrides",
        [
            {"amount": 0},
            {"amount": -5},
            {"type": "transfer"},
            {"reason": "x"},
            {"category": ""},
            {"date": "not a date"},
        ],
    )
    def test_validation_errors(self, client, overrides):
        response = client.post("/api/transactions", json=_transaction(**overrides))
        assert response.status_code == 422

    def test_invalid_json_body(self, client):
        response = client.post(
            "/api/transactions",
            content="not valid json",
            headers={"Content-Type": "application/json"},
        )
        assert response.status_code == 422


class TestDebtEndpoints:
    def test_create_and_list(self, client, sample_debt):
        response = client.post("/api/debts", json=sample_debt)
        assert response.status_code == 201
        assert client.get("/api/debts").json()[0]["id"] == "debt-1"

    def test_create_existing_returns_200(self, client, sample_debt):
        client.post("/api/debts", json=sample_debt)
        assert client.post("/api/debts", json=sample_debt).status_code == 200

    def test_update_merges(self, client, sample_debt):
        client.post("/api/debts", json=sample_debt)
        response = client.put("/api/debts/debt-1", json={"reason": "Festival"})
        assert response.status_code == 200
        assert response.json()["reason"] == "Festival"
        assert response.json()["person_name"] == "Sam Lee"

    def test_update_not_found(self, client):
        assert client.put("/api/debts/missing", json={"reason": "Festival"}).status_code == 404

    def test_update_strips_names(self, client, sample_debt):
        client.post("/api/debts", json=sample_debt)
        response = client.put("/api/debts/debt-1", json={"person_name": "  Jo  "})
        assert response.json()["person_name"] == "Jo"

    def test_paid_amount_follows_payments(self, client, sample_debt):
        created = client.post("/api/debts", json={**sample_debt, "paid_amount": 100, "status": "paid"})
        assert created.json()["paid_amount"] == 0
        assert created.json()["status"] == "unpaid"

        client.post("/api/debts/debt-1/payments", json={"amount": 100})
        cleared = client.put("/api/debts/debt-1", json={"payments": []})

        assert cleared.status_code == 200
        assert cleared.json()["paid_amount"] == 0
        assert cleared.json()["status"] == "unpaid"

    def test_delete(self, client, sample_debt):
        client.post("/api/debts", json=sample_debt)
        response = client.delete("/api/debts/debt-1")
        assert response.status_code == 200
        assert response.json() == {"message": "Debt record deleted successfully"}
        assert client.delete("/api/debts/debt-1").status_code == 404

    def test_payment_flow(self, client, sample_debt):
        client.post("/api/debts", json=sample_debt)

        partial = client.post("/api/debts/debt-1/payments", json={"amount": 30, "reason": "First"})
        assert partial.status_code == 201
        assert partial.json()["paid_amount"] == 30
        assert partial.json()["status"] == "unpaid"

        too_much = client.post("/api/debts/debt-1/payments", json={"amount": 80})
        assert too_much.status_code == 400

        rest = client.post("/api/debts/debt-1/payments", json={"amount": 70})
        assert rest.json()["status"] == "paid"
        assert len(rest.json()["payments"]) == 2

    def test_payment_on_missing_record(self, client):
        assert client.post("/api/debts/missing/payments", json={"amount": 1}).status_code == 404

    def test_summary(self, client, sample_debt):
        client.post("/api/debts", json=sample_debt)
        response = client.get("/api/debts/summary")
        assert response.status_code == 200
        assert response.json()["total_owed_to_user"] == 100
        assert response.json()["debtor_count"] == 1

    def test_short_person_name_rejected(self, client, sample_debt):
        response = client.post("/api/debts", json={**sample_debt, "person_name": "S"})
        assert response.status_code == 422


class TestReportEndpoint:
    def test_monthly_report(self, client):
        client.post("/api/transactions", json=_transaction(type="income", amount=200, reason="Salary"))
        client.post("/api/transactions", json=_transaction(amount=50))

        response = client.get("/api/reports/monthly", params={"month": "January", "year": 2024})
        assert response.status_code == 200
        data = response.json()
        assert data["total_income"] == 200
        assert data["total_expenses"] == 50
        assert data["top_categories"] == [{"category": "Food", "amount": 50.0}]

    def test_invalid_month(self, client):
        response = client.get("/api/reports/monthly", params={"month": "Smarch", "year": 2024})
        assert response.status_code == 400


class TestAuthEndpoints:
    signup_payload = {
        "first_name": "Ada",
        "last_name": "Lovelace",
        "username": "ada",
        "mobile": "555-0100",
        "password": "engine42",
    }

    def test_signup(self, app_client):
        response = app_client.post("/api/auth/signup", json=self.signup_payload)
        assert response.status_code == 201
        data = response.json()
        assert data["username"] == "ada"
        assert "password" not in data

    def test_signup_missing_fields(self, app_client):
        response = app_client.post("/api/auth/signup", json={**self.signup_payload, "mobile": ""})
        assert response.status_code == 400
        assert response.json()["detail"] == "All fields are required"

    def test_signup_short_password(self, app_client):
        response = app_client.post("/api/auth/signup", json={**self.signup_payload, "password": "abc"})
        assert response.status_code == 400

    def test_signup_duplicate_username(self, app_client):
        app_client.post("/api/auth/signup", json=self.signup_payload)
        response = app_client.post("/api/auth/signup", json=self.signup_payload)
        assert response.status_code == 409

    def test_login_sets_session_cookie(self, app_client):
        app_client.post("/api/auth/signup", json=self.signup_payload)
        response = app_client.post("/api/auth/login", json={"username": "ada", "password": "engine42"})

        assert response.status_code == 200
        assert "password" not in response.json()
        assert "user" in response.cookies

    def test_login_wrong_password(self, app_client):
        app_client.post("/api/auth/signup", json=self.signup_payload)
        response = app_client.post("/api/auth/login", json={"username": "ada", "password": "wrong-pass"})
        assert response.status_code == 401
        assert response.json()["detail"] == "Invalid credentials"

    def test_login_unknown_user(self, app_client):
        response = app_client.post("/api/auth/login", json={"username": "nobody", "password": "whatever"})
        assert response.status_code == 401

    def test_login_missing_fields(self, app_client):
        response = app_client.post("/api/auth/login", json={"username": "ada"})
        assert response.status_code == 400

    def test_logout_clears_cookie(self, app_client):
        response = app_client.post("/api/auth/logout")
        assert response.status_code == 200
        assert response.json() == {"status": "logged_out"}
        assert "user=" in response.headers["set-cookie"]
        assert "Max-Age=0" in response.headers["set-cookie"]

    def test_me_returns_identity(self, client):
        response = client.get("/api/auth/me")
        assert response.status_code == 200
        assert response.json()["username"] == "test-user"


class TestCORS:
    def test_cors_headers_present(self, client):
        response = client.options(
            "/health",
            headers={
                "Origin": "http://localhost:5173",
                "Access-Control-Request-Method": "GET",
            },
        )
        assert response.status_code == 200
