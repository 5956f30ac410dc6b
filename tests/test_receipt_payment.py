from datetime import date
from decimal import Decimal

import pytest

from hospital_finance.models.ledger import ExpenseClass, FundType, TransactionOrigin
from hospital_finance.services.receipt_payment import ReceiptPaymentService, verify


FEB_1 = date(2024, 2, 1)
FEB_29 = date(2024, 2, 29)


def _row(rows, particulars):
    return next(row for row in rows if row["particulars"] == particulars)


def _cash_ledger(ledger, account_balance=1500):
    consultation = ledger.income_category("Consultation Fee")
    bills = ledger.expense_category("Utility Bills")
    ledger.account(account_balance)
    ledger.fund(FundType.fund_in, 1000, date(2024, 1, 1), purpose="Capital")
    ledger.income(consultation, 800, date(2024, 2, 10))
    ledger.expense(bills, 300, date(2024, 2, 15))
    ledger.fund(FundType.fund_out, 200, date(2024, 3, 5), purpose="Drawings")


def test_opening_balance_rewinds_live_balance(db, ledger):
    _cash_ledger(ledger)

    totals = ReceiptPaymentService(db).generate(FEB_1, FEB_29)["totals"]

    assert totals["opening_balance"] == Decimal("1200")
    assert totals["current_receipts"] == Decimal("800")
    assert totals["current_payments"] == Decimal("300")
    assert totals["closing_balance"] == Decimal("1700")
    assert totals["cumulative_opening_balance"] == Decimal("0")
    assert totals["cumulative_receipts"] == Decimal("1800")
    assert totals["cumulative_closing_balance"] == Decimal("1500")


def test_unexplained_balance_is_kept_as_opening_adjustment(db, ledger):
    _cash_ledger(ledger, account_balance=2500)

    report = ReceiptPaymentService(db).generate(FEB_1, FEB_29)

    assert report["totals"]["cumulative_opening_balance"] == Decimal("1000")
    assert report["verification"]["cumulative"]["is_balanced"] is True


def test_both_windows_verify(db, ledger):
    _cash_ledger(ledger, account_balance=1234.56)

    verification = ReceiptPaymentService(db).generate(FEB_1, FEB_29)["verification"]

    for window in ("current", "cumulative"):
        check = verification[window]
        assert check["is_balanced"] is True
        assert check["difference"] == Decimal("0")
        assert round(check["receipt_side_total"], 2) == round(check["payment_side_total"], 2)


def test_fund_rows_are_listed_per_purpose(db, ledger):
    _cash_ledger(ledger)

    report = ReceiptPaymentService(db).generate(FEB_1, FEB_29)
    capital = _row(report["receipts"], "Fund In - Capital")

    assert capital["current_period"] == Decimal("0")
    assert capital["cumulative"] == Decimal("1000")
    assert all(not row["particulars"].startswith("Fund Out") for row in report["payments"])


def test_payments_are_cash_basis_including_capital_items(db, ledger):
    asset_purchase = ledger.expense_category("Fixed Asset Purchase", ExpenseClass.capital)
    ledger.expense(asset_purchase, 5000, date(2024, 2, 3), origin=TransactionOrigin.asset_purchase)
    ledger.expense(None, 40, date(2024, 2, 4), label="Courier")

    payments = ReceiptPaymentService(db).payment_rows(FEB_1, FEB_29)

    assert _row(payments, "Fixed Asset Purchase")["current_period"] == Decimal("5000")
    courier = _row(payments, "Courier")
    assert courier["type"] == "special_expense"
    assert courier["current_period"] == Decimal("40")


def test_export_is_stamped(db, ledger):
    _cash_ledger(ledger)

    report = ReceiptPaymentService(db).export(FEB_1, FEB_29)

    assert report["generated_at"] is not None
    assert "generated_at" not in ReceiptPaymentService(db).generate(FEB_1, FEB_29)


def test_verify_compares_at_two_decimals():
    check = verify(Decimal("100.001"), Decimal("50"), Decimal("50"), Decimal("100.004"))

    assert check["is_balanced"] is True
    assert check["difference"] == Decimal("0.00")


def test_row_details_add_up_to_their_rows(db, ledger):
    _cash_ledger(ledger)
    ledger.fund(FundType.fund_in, 250, date(2024, 2, 20), purpose="Donation")
    ledger.income(None, 60, date(2024, 2, 21), label="Scrap Sale")
    ledger.expense(None, 45, date(2024, 2, 22), label="Courier")
    ledger.expense(None, 15, date(2024, 2, 23))
    service = ReceiptPaymentService(db)
    report = service.generate(FEB_1, FEB_29)

    for row in report["receipts"]:
        details = service.receipt_details(row["type"], FEB_1, FEB_29, row["category"], row["category_id"])
        assert details["total"] == row["current_period"]
    for row in report["payments"]:
        details = service.payment_details(row["type"], FEB_1, FEB_29, row["category"], row["category_id"])
        assert details["total"] == row["current_period"]


def test_fund_details_are_newest_first(db, ledger):
    ledger.fund(FundType.fund_in, 100, date(2024, 2, 3), purpose="Donation")
    ledger.fund(FundType.fund_in, 300, date(2024, 2, 12), purpose="Donation")
    ledger.fund(FundType.fund_in, 999, date(2024, 2, 12), purpose="Capital")

    details = ReceiptPaymentService(db).receipt_details("fund_in", FEB_1, FEB_29, category="Donation")

    assert details["category"] == "Donation"
    assert [row["amount"] for row in details["details"]] == [Decimal("300"), Decimal("100")]
    assert details["total"] == Decimal("400")


def test_expense_details_list_absolute_amounts(db, ledger):
    bills = ledger.expense_category("Utility Bills")
    ledger.expense(bills, 300, date(2024, 2, 15))

    details = ReceiptPaymentService(db).payment_details("expense", FEB_1, FEB_29, category_id=bills.id)

    assert details["category"] == "Utility Bills"
    assert details["details"][0]["amount"] == Decimal("300")
    assert details["total"] == Decimal("300")


def test_row_details_reject_bad_requests(db, ledger):
    service = ReceiptPaymentService(db)

    with pytest.raises(ValueError):
        service.receipt_details("fund_out", FEB_1, FEB_29, category="Capital")
    with pytest.raises(ValueError):
        service.payment_details("expense", FEB_1, FEB_29)
    with pytest.raises(ValueError):
        service.payment_details("special_expense", FEB_1, FEB_29)
    assert service.receipt_details("income", FEB_1, FEB_29, category_id=999) is None
