from datetime import date
from decimal import Decimal

from hospital_finance.models.optics import ProductLine
from hospital_finance.services.stock_valuation import StockValuationService, calculate_weighted_average
from hospital_finance.utils.dates import INCEPTION
from hospital_finance.utils.money import q2


JAN_31 = date(2024, 1, 31)


def test_available_value_and_profit_per_product(db, ledger):
    frame = ledger.optics_product(ProductLine.frames, "Aviator")
    ledger.optics_purchase(frame, 10, 50, date(2024, 1, 1))
    ledger.optics_sale(400, date(2024, 1, 10), items=[(frame, 4, 100, 50)])

    [row] = StockValuationService(db).buy_sale_stock_report(ProductLine.frames, INCEPTION, JAN_31)

    assert row["buy_qty"] == 10
    assert row["sale_qty"] == 4
    assert row["sale_total"] == Decimal("400")
    assert row["available_qty"] == 6
    assert row["available_value"] == Decimal("300")
    assert row["total_profit"] == Decimal("200")


def test_stock_is_valued_at_weighted_average_buy_price(db, ledger):
    lens = ledger.optics_product(ProductLine.lenses, "Single Vision")
    ledger.optics_purchase(lens, 10, 50, date(2024, 1, 1))
    ledger.optics_purchase(lens, 10, 70, date(2024, 1, 5))

    totals = StockValuationService(db).line_totals(ProductLine.lenses, None, JAN_31)

    assert totals["available_value"] == Decimal("1200")
    assert totals["total_profit"] == Decimal("0")


def test_inception_window_is_invariant_under_lower_start(db, ledger):
    frame = ledger.optics_product(ProductLine.frames, "Round")
    ledger.optics_purchase(frame, 5, 40, date(2023, 6, 1))
    ledger.optics_sale(90, date(2023, 9, 1), items=[(frame, 1, 90, 40)])
    ledger.optics_sale(95, date(2024, 1, 9), items=[(frame, 1, 95, 40)])
    service = StockValuationService(db)

    from_inception = service.buy_sale_stock_report(ProductLine.frames, INCEPTION, JAN_31)
    from_earlier = service.buy_sale_stock_report(ProductLine.frames, date(1800, 1, 1), JAN_31)
    unbounded = service.buy_sale_stock_report(ProductLine.frames, None, JAN_31)

    assert from_inception == from_earlier == unbounded
    assert from_inception[0]["total_profit"] == Decimal("105")


def test_movements_before_window_feed_opening_stock_only(db, ledger):
    frame = ledger.optics_product(ProductLine.frames, "Square")
    ledger.optics_purchase(frame, 10, 50, date(2024, 1, 1))
    ledger.optics_sale(100, date(2024, 1, 2), items=[(frame, 1, 100, 50)])
    ledger.optics_sale(300, date(2024, 1, 10), items=[(frame, 3, 100, 50)])

    [row] = StockValuationService(db).buy_sale_stock_report(ProductLine.frames, date(2024, 1, 5), JAN_31)

    assert row["before_qty"] == 9
    assert row["buy_qty"] == 0
    assert row["sale_qty"] == 3
    assert row["available_qty"] == 6
    assert row["total_profit"] == Decimal("150")


def test_deleted_optics_sales_do_not_move_stock(db, ledger):
    frame = ledger.optics_product(ProductLine.frames, "Oval")
    ledger.optics_purchase(frame, 2, 50, date(2024, 1, 1))
    ledger.optics_sale(100, date(2024, 1, 10), items=[(frame, 1, 100, 50)], deleted=True)

    [row] = StockValuationService(db).buy_sale_stock_report(ProductLine.frames, None, JAN_31)

    assert row["available_qty"] == 2
    assert row["total_profit"] == Decimal("0")


def test_optics_stock_value_covers_every_line(db, ledger):
    frame = ledger.optics_product(ProductLine.frames, "Frame")
    glasses = ledger.optics_product(ProductLine.complete_glasses, "Reading Glasses")
    ledger.optics_purchase(frame, 2, 100, date(2024, 1, 1))
    ledger.optics_purchase(glasses, 3, 200, date(2024, 1, 1))
    ledger.optics_purchase(glasses, 3, 200, date(2024, 2, 1))

    values = StockValuationService(db).optics_stock_value(JAN_31)

    assert values["frames"] == Decimal("200")
    assert values["lenses"] == Decimal("0")
    assert values["complete_glasses"] == Decimal("600")
    assert values["total"] == Decimal("800")


def test_fitting_on_item_sales_is_carried_by_the_item_rows(db, ledger):
    frame = ledger.optics_product()
    ledger.optics_purchase(frame, 1, 50, date(2024, 1, 1))
    ledger.optics_sale(250, date(2024, 1, 3), items=[(frame, 1, 150, 50)], fitting=100)
    ledger.optics_sale(120, date(2024, 1, 4), fitting=120)
    ledger.optics_sale(80, date(2024, 1, 5), fitting=80, deleted=True)

    service = StockValuationService(db)
    [row] = service.buy_sale_stock_report(ProductLine.frames, None, JAN_31)

    assert row["sale_fitting"] == Decimal("100")
    assert row["sale_discount"] == Decimal("0")
    assert row["total_profit"] == Decimal("200")
    assert service.fitting_charges(None, JAN_31) == Decimal("120")
    assert service.optics_profit(None, JAN_31) == Decimal("320")


def test_discount_and_fitting_split_across_lines_add_up_to_sale_total(db, ledger):
    frame = ledger.optics_product(ProductLine.frames, "Frame")
    lens = ledger.optics_product(ProductLine.lenses, "Lens")
    ledger.optics_purchase(frame, 2, 40, date(2024, 1, 1))
    ledger.optics_purchase(lens, 2, 10, date(2024, 1, 1))
    # Items list at 100 + 50, fitting 30, customer pays 160: 20 off
    ledger.optics_sale(160, date(2024, 1, 5), items=[(frame, 1, 100, 40), (lens, 1, 50, 10)], fitting=30)

    service = StockValuationService(db)
    [frame_row] = service.buy_sale_stock_report(ProductLine.frames, None, JAN_31)
    [lens_row] = service.buy_sale_stock_report(ProductLine.lenses, None, JAN_31)

    assert q2(frame_row["sale_fitting"] + lens_row["sale_fitting"]) == Decimal("30.00")
    assert q2(frame_row["sale_discount"] + lens_row["sale_discount"]) == Decimal("20.00")
    assert q2(frame_row["sale_fitting"]) == Decimal("20.00")
    assert q2(frame_row["sale_discount"]) == Decimal("13.33")
    # 160 collected minus 50 cost
    assert q2(service.optics_profit(None, JAN_31)) == Decimal("110.00")


def test_medicine_stock_value_is_purchases_minus_cogs(db, ledger):
    ledger.medicine_purchase(1000, date(2024, 1, 1))
    ledger.medicine_sale(date(2024, 1, 10), items=[(3, 150, 100)])
    service = StockValuationService(db)

    assert service.medicine_stock_value(date(2024, 1, 5)) == Decimal("1000")
    assert service.medicine_stock_value(JAN_31) == Decimal("700")


def test_medicine_profit_ignores_deleted_sales(db, ledger):
    ledger.medicine_sale(date(2024, 1, 10), items=[(2, 250, 150)])
    ledger.medicine_sale(date(2024, 1, 11), items=[(1, 900, 100)], deleted=True)
    service = StockValuationService(db)

    assert service.medicine_sales_total(None, JAN_31) == Decimal("500")
    assert service.medicine_cogs(None, JAN_31) == Decimal("300")
    assert service.medicine_profit(None, JAN_31) == Decimal("200")


def test_stock_report_lists_all_lines(db, ledger):
    ledger.optics_product(ProductLine.lenses, "Bifocal")

    report = StockValuationService(db).stock_report(None, JAN_31)

    assert set(report["lines"]) == {"frames", "lenses", "complete_glasses"}
    assert len(report["lines"]["lenses"]) == 1
    assert report["totals"]["frames"]["available_value"] == Decimal("0")


def test_weighted_average_with_zero_quantity():
    assert calculate_weighted_average(0, Decimal("0"), 0, Decimal("10")) == Decimal("0.00")
    assert calculate_weighted_average(10, Decimal("50"), 10, Decimal("70")) == Decimal("60")
