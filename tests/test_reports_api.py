from datetime import date
from decimal import Decimal

from sqlalchemy.exc import OperationalError

from hospital_finance.models.ledger import FundType
from hospital_finance.schemas.reports import CategoryRow
from hospital_finance.services.balance_sheet import BalanceSheetService
from hospital_finance.utils.dates import month_start


def test_balance_sheet_endpoint_echoes_date_and_rounds(client, ledger):
    ledger.fund(FundType.fund_in, "1000.50", date(2024, 1, 1))

    response = client.get("/api/v1/reports/balance-sheet", params={"as_on_date": "2024-01-15"})

    assert response.status_code == 200
    body = response.json()
    assert body["filters"] == {"as_on_date": "2024-01-15"}
    assert body["fund"] == 1000.5
    assert body["total_fund_in"] == 1000.5
    assert body["total_fund_out"] == 0
    assert isinstance(body["is_balanced"], bool)


def test_invalid_date_falls_back_to_today(client):
    response = client.get("/api/v1/reports/balance-sheet", params={"as_on_date": "not-a-date"})

    assert response.status_code == 200
    assert response.json()["filters"]["as_on_date"] == date.today().isoformat()


def test_period_defaults_to_current_month(client):
    response = client.get("/api/v1/reports/income-expenditure")

    assert response.status_code == 200
    assert response.json()["filters"] == {
        "from_date": month_start(date.today()).isoformat(),
        "to_date": date.today().isoformat(),
    }


def test_reversed_period_is_swapped(client):
    response = client.get(
        "/api/v1/reports/receipt-payment",
        params={"from_date": "2024-03-31", "to_date": "2024-03-01"},
    )

    assert response.status_code == 200
    assert response.json()["filters"] == {"from_date": "2024-03-01", "to_date": "2024-03-31"}


def test_receipt_payment_export_carries_timestamp(client):
    response = client.get(
        "/api/v1/reports/receipt-payment/export",
        params={"from_date": "2024-03-01", "to_date": "2024-03-31"},
    )

    assert response.status_code == 200
    body = response.json()
    assert body["generated_at"] is not None
    assert body["verification"]["current"]["is_balanced"] is True


def test_expense_drill_down(client, ledger):
    ledger.expense(None, 25, date(2024, 3, 2), label="Courier")

    special = client.get(
        "/api/v1/reports/income-expenditure/expense/special",
        params={"from_date": "2024-03-01", "to_date": "2024-03-31"},
    )
    missing = client.get("/api/v1/reports/income-expenditure/expense/42")
    garbage = client.get("/api/v1/reports/income-expenditure/expense/abc")

    assert special.status_code == 200
    assert special.json()["total"] == 25.0
    assert special.json()["transactions"][0]["category"] == "Courier"
    assert special.json()["transactions"][0]["amount"] == -25.0
    assert missing.status_code == 404
    assert garbage.status_code == 404


def test_expense_drill_down_narrows_to_label(client, ledger):
    ledger.expense(None, 25, date(2024, 3, 2), label="Courier")
    ledger.expense(None, 70, date(2024, 3, 3), label="Stationery")

    response = client.get(
        "/api/v1/reports/income-expenditure/expense/special",
        params={"from_date": "2024-03-01", "to_date": "2024-03-31", "label": "Stationery"},
    )

    assert response.status_code == 200
    assert response.json()["category"] == "Stationery"
    assert response.json()["total"] == 70.0


def test_receipt_and_payment_row_details(client, ledger):
    ledger.fund(FundType.fund_in, 500, date(2024, 3, 4), purpose="Donation")
    ledger.expense(None, 25, date(2024, 3, 2), label="Courier")
    period = {"from_date": "2024-03-01", "to_date": "2024-03-31"}

    receipts = client.get(
        "/api/v1/reports/receipt-payment/receipts/details",
        params={**period, "type": "fund_in", "category": "Donation"},
    )
    payments = client.get(
        "/api/v1/reports/receipt-payment/payments/details",
        params={**period, "type": "special_expense", "category": "Courier"},
    )
    unknown_type = client.get(
        "/api/v1/reports/receipt-payment/payments/details",
        params={**period, "type": "refund", "category": "Courier"},
    )
    missing = client.get(
        "/api/v1/reports/receipt-payment/receipts/details",
        params={**period, "type": "income", "category_id": 42},
    )

    assert receipts.status_code == 200
    assert receipts.json()["total"] == 500.0
    assert receipts.json()["details"][0]["transaction_date"] == "2024-03-04"
    assert payments.status_code == 200
    assert payments.json()["details"][0]["amount"] == 25.0
    assert unknown_type.status_code == 400
    assert missing.status_code == 404


def test_income_drill_down_unknown_category(client):
    response = client.get("/api/v1/reports/income-expenditure/income/7")

    assert response.status_code == 404


def test_optics_stock_endpoint(client, ledger):
    frame = ledger.optics_product(name="Aviator")
    ledger.optics_purchase(frame, 1, 10, date(2024, 3, 1))
    ledger.optics_purchase(frame, 2, "10.01", date(2024, 3, 2))
    ledger.optics_sale(15, date(2024, 3, 3), items=[(frame, 1, 15, 10)])

    response = client.get(
        "/api/v1/reports/optics-stock",
        params={"from_date": "2024-03-01", "to_date": "2024-03-31"},
    )

    assert response.status_code == 200
    body = response.json()
    assert body["lines"]["frames"][0]["available_qty"] == 2
    # 2 units at the weighted average of 10.00666...
    assert body["totals"]["frames"]["available_value"] == 20.01
    assert body["totals"]["frames"]["total_profit"] == 5.0


def test_store_failure_is_a_hard_error(client, monkeypatch):
    def unavailable(self, as_on_date):
        raise OperationalError("SELECT 1", {}, Exception("connection refused"))

    monkeypatch.setattr(BalanceSheetService, "generate", unavailable)

    response = client.get("/api/v1/reports/balance-sheet")

    assert response.status_code == 503
    assert response.json()["detail"] == "Ledger store unavailable"


def test_money_is_rounded_half_up_at_the_boundary():
    row = CategoryRow(serial=1, category="Consultation Fee", current_period=Decimal("10.005"), cumulative=Decimal("2.675"))

    assert row.current_period == 10.01
    assert row.cumulative == 2.68
