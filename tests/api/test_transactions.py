"""
Tests for income and outcome endpoints.

Every mutation responds with the confirmed balance of each
account it touched.
"""

from decimal import Decimal


def create_account(client, name="General"):
    return client.post("/accounts", json={"name": name}).json()["id"]


def income(account_id, amount="100.00", category="Offering", **extra):
    body = {
        "account_id": account_id,
        "period_id": 1,
        "date": "2024-03-03",
        "amount": amount,
        "category": category,
    }
    body.update(extra)
    return body


def balances(response):
    return {
        b["account_id"]: Decimal(b["balance"])
        for b in response.json()["balances"]
    }


class TestCreate:

    def test_create_income_returns_balance(self, client):
        account_id = create_account(client)

        response = client.post("/incomes", json=income(account_id))

        assert response.status_code == 201
        data = response.json()
        assert data["transaction"]["category"] == "Offering"
        assert Decimal(data["transaction"]["amount"]) == Decimal("100.00")
        assert balances(response) == {account_id: Decimal("100.00")}

    def test_create_outcome_lowers_balance(self, client):
        account_id = create_account(client)
        client.post("/incomes", json=income(account_id))

        response = client.post(
            "/outcomes", json=income(account_id, "40.00", "fixed")
        )

        assert response.status_code == 201
        assert response.json()["transaction"]["category"] == "Fixed"
        assert balances(response) == {account_id: Decimal("60.00")}

    def test_invalid_category_returns_400(self, client):
        account_id = create_account(client)

        response = client.post(
            "/incomes", json=income(account_id, category="Lottery")
        )

        assert response.status_code == 400
        body = response.json()
        assert body["code"] == "INVALID_CATEGORY"
        assert body["entity"] == "income"
        assert body["field"] == "category"

    def test_tithe_without_counterparty_returns_400(self, client):
        account_id = create_account(client)

        response = client.post(
            "/incomes", json=income(account_id, category="Tithe")
        )

        assert response.status_code == 400
        assert response.json()["code"] == "MISSING_COUNTERPARTY"

    def test_zero_amount_returns_422(self, client):
        account_id = create_account(client)

        response = client.post(
            "/incomes", json=income(account_id, amount="0")
        )
        assert response.status_code == 422

    def test_amount_beyond_column_returns_422(self, client):
        account_id = create_account(client)

        response = client.post(
            "/incomes", json=income(account_id, amount="12345678901234567.89")
        )

        assert response.status_code == 422
        balance = client.get(f"/accounts/{account_id}/balance").json()
        assert Decimal(balance["balance"]) == Decimal("0.00")

    def test_unknown_account_returns_404(self, client):
        response = client.post("/incomes", json=income(999))

        assert response.status_code == 404
        assert response.json()["field"] == "account_id"


class TestUpdateAndDelete:

    def test_update_amount(self, client):
        account_id = create_account(client)
        created = client.post("/incomes", json=income(account_id)).json()
        income_id = created["transaction"]["id"]

        response = client.patch(
            f"/incomes/{income_id}", json={"amount": "60.00"}
        )

        assert response.status_code == 200
        assert balances(response) == {account_id: Decimal("60.00")}

    def test_move_returns_both_balances(self, client):
        general = create_account(client)
        youth = create_account(client, "Youth")
        created = client.post("/incomes", json=income(general)).json()
        income_id = created["transaction"]["id"]

        response = client.patch(
            f"/incomes/{income_id}", json={"account_id": youth}
        )

        assert response.status_code == 200
        assert balances(response) == {
            general: Decimal("0.00"),
            youth: Decimal("100.00"),
        }

    def test_delete_reverses_balance(self, client):
        account_id = create_account(client)
        created = client.post(
            "/outcomes", json=income(account_id, "12.34", "Other")
        ).json()
        outcome_id = created["transaction"]["id"]

        response = client.delete(f"/outcomes/{outcome_id}")

        assert response.status_code == 200
        assert response.json()["transaction"] is None
        assert balances(response) == {account_id: Decimal("0.00")}

    def test_delete_unknown_returns_404(self, client):
        response = client.delete("/incomes/999")

        assert response.status_code == 404
        assert response.json()["code"] == "TRANSACTION_NOT_FOUND"

    def test_get_and_list(self, client):
        account_id = create_account(client)
        created = client.post(
            "/incomes",
            json=income(account_id, category="tithe", counterparty_id=5),
        ).json()
        income_id = created["transaction"]["id"]

        fetched = client.get(f"/incomes/{income_id}").json()
        assert fetched["counterparty_id"] == 5

        listed = client.get("/incomes", params={"counterparty_id": 5}).json()
        assert [t["id"] for t in listed] == [income_id]

        by_date = client.get("/incomes", params={"date": "2024-03-04"}).json()
        assert by_date == []


class TestBulk:

    def test_bulk_create(self, client):
        account_id = create_account(client)

        response = client.post("/incomes/bulk", json={"items": [
            income(account_id, "10.00"),
            income(account_id, "5.50", "Event"),
        ]})

        assert response.status_code == 201
        assert len(response.json()["transactions"]) == 2
        assert balances(response) == {account_id: Decimal("15.50")}

    def test_bulk_rejection_lists_failing_items(self, client):
        account_id = create_account(client)

        response = client.post("/outcomes/bulk", json={"items": [
            income(account_id, "10.00", "Fixed"),
            income(account_id, "10.00", "Salary"),
        ]})

        assert response.status_code == 400
        body = response.json()
        assert body["code"] == "PARTIAL_BATCH_REJECTED"
        assert body["details"][0]["index"] == 1

        balance = client.get(f"/accounts/{account_id}/balance").json()
        assert Decimal(balance["balance"]) == Decimal("0.00")
        assert client.get("/outcomes").json() == []

    def test_empty_bulk_returns_422(self, client):
        response = client.post("/incomes/bulk", json={"items": []})
        assert response.status_code == 422
