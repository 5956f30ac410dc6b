from collections import defaultdict
from datetime import date
from decimal import Decimal
from typing import Dict, List, Optional, Tuple

from sqlalchemy import func, or_
from sqlalchemy.orm import Session

from hospital_finance.logger_config import logger
from hospital_finance.models.medicine import MedicineSale, MedicineSaleItem, MedicineStockPurchase
from hospital_finance.models.optics import (
    MovementType,
    OpticsProduct,
    OpticsSale,
    OpticsStockMovement,
    ProductLine,
)
from hospital_finance.utils.dates import INCEPTION
from hospital_finance.utils.filteration import apply_date_window
from hospital_finance.utils.money import ZERO, to_decimal


# ==================== HELPER FUNCTIONS ====================

def calculate_weighted_average(
    current_qty: int,
    current_avg_price: Decimal,
    new_qty: int,
    new_price: Decimal
) -> Decimal:
    """
    Calculate weighted average price.
    Formula: (old_qty * old_price + new_qty * new_price) / (old_qty + new_qty)
    """
    if current_qty + new_qty == 0:
        logger.warning("Weighted average calculation with zero total quantity")
        return ZERO

    current_value = Decimal(str(current_qty)) * current_avg_price
    new_value = Decimal(str(new_qty)) * new_price
    total_qty = Decimal(str(current_qty + new_qty))

    return (current_value + new_value) / total_qty


def _empty_row(product: OpticsProduct) -> dict:
    return {
        "product_id": product.id,
        "product_name": product.name,
        "product_line": product.product_line.value,
        "before_qty": 0,
        "buy_qty": 0,
        "buy_total": ZERO,
        "sale_qty": 0,
        "sale_total": ZERO,
        "sale_cost": ZERO,
        "sale_fitting": ZERO,
        "sale_discount": ZERO,
        "available_qty": 0,
        "avg_buy_price": ZERO,
    }


def sum_rows(rows: List[dict], key: str) -> Decimal:
    return sum((to_decimal(row[key]) for row in rows), ZERO)


class StockValuationService:
    """
    Buy-sale-stock aggregation for the optics product lines and the
    purchase-minus-COGS valuation of medicine stock.
    """
    def __init__(self, db: Session):
        self.db = db

    # ==================== OPTICS PRODUCT LINES ====================

    def buy_sale_stock_report(
        self,
        product_line: ProductLine,
        from_date: Optional[date] = None,
        to_date: Optional[date] = None,
    ) -> List[dict]:
        """
        Per product: stock held before the window, bought and sold inside it,
        and what is left at to_date. Stock is valued at the moving weighted
        average buy price. from_date=None means since inception.
        """
        from_date = from_date or INCEPTION

        products = (
            self.db.query(OpticsProduct)
            .filter(OpticsProduct.product_line == product_line)
            .order_by(OpticsProduct.name, OpticsProduct.id)
            .all()
        )
        rows: Dict[int, dict] = {product.id: _empty_row(product) for product in products}
        if not rows:
            return []

        query = (
            self.db.query(OpticsStockMovement)
            .join(OpticsProduct, OpticsStockMovement.product_id == OpticsProduct.id)
            .outerjoin(OpticsSale, OpticsStockMovement.optics_sale_id == OpticsSale.id)
            .filter(
                OpticsProduct.product_line == product_line,
                or_(OpticsStockMovement.optics_sale_id.is_(None), OpticsSale.deleted_at.is_(None)),
            )
        )
        query = apply_date_window(query, OpticsStockMovement.movement_date, None, to_date)
        movements = query.order_by(OpticsStockMovement.movement_date, OpticsStockMovement.id).all()
        adjustments = self._sale_adjustments(sorted({
            movement.optics_sale_id
            for movement in movements
            if movement.optics_sale_id is not None and movement.movement_date >= from_date
        }))

        for movement in movements:
            row = rows[movement.product_id]
            qty = movement.quantity
            in_window = movement.movement_date >= from_date

            if movement.movement_type == MovementType.purchase:
                unit_cost = to_decimal(movement.unit_price)
                row["avg_buy_price"] = calculate_weighted_average(
                    max(row["available_qty"], 0), row["avg_buy_price"], qty, unit_cost
                )
                row["available_qty"] += qty
                if in_window:
                    row["buy_qty"] += qty
                    row["buy_total"] += unit_cost * qty
                else:
                    row["before_qty"] += qty
            else:
                cost = to_decimal(movement.buy_price) if movement.buy_price is not None else row["avg_buy_price"]
                row["available_qty"] -= qty
                if in_window:
                    row["sale_qty"] += qty
                    row["sale_total"] += to_decimal(movement.unit_price) * qty
                    row["sale_cost"] += cost * qty
                    fitting, discount = adjustments.get(movement.id, (ZERO, ZERO))
                    row["sale_fitting"] += fitting
                    row["sale_discount"] += discount
                else:
                    row["before_qty"] -= qty

        result = []
        for row in rows.values():
            row["buy_avg_price"] = row["buy_total"] / row["buy_qty"] if row["buy_qty"] else ZERO
            row["available_value"] = row["avg_buy_price"] * row["available_qty"]
            row["total_profit"] = row["sale_total"] + row["sale_fitting"] - row["sale_discount"] - row["sale_cost"]
            result.append(row)

        logger.debug(
            f"{product_line.value} stock report {from_date} .. {to_date}: "
            f"{len(result)} products, {len(movements)} movements"
        )
        return result

    def _sale_adjustments(self, sale_ids) -> Dict[int, Tuple[Decimal, Decimal]]:
        """
        Fitting and discount of each optics sale spread over its stock items
        in proportion to their selling value, keyed by movement id. The last
        item takes the remainder so the shares add up to the sale exactly.
        Discount is whatever total_amount falls short of items plus fitting.
        """
        if not sale_ids:
            return {}

        sales = self.db.query(OpticsSale).filter(OpticsSale.id.in_(sale_ids)).all()
        sale_movements = (
            self.db.query(OpticsStockMovement)
            .filter(
                OpticsStockMovement.optics_sale_id.in_(sale_ids),
                OpticsStockMovement.movement_type == MovementType.sale,
            )
            .order_by(OpticsStockMovement.id)
            .all()
        )
        items_by_sale = defaultdict(list)
        for movement in sale_movements:
            items_by_sale[movement.optics_sale_id].append(movement)

        shares = {}
        for sale in sales:
            items = items_by_sale[sale.id]
            values = [to_decimal(item.unit_price) * item.quantity for item in items]
            items_total = sum(values, ZERO)
            fitting = to_decimal(sale.glass_fitting_price)
            discount = items_total + fitting - to_decimal(sale.total_amount)

            fitting_left, discount_left = fitting, discount
            for index, (item, value) in enumerate(zip(items, values)):
                if index == len(items) - 1:
                    shares[item.id] = (fitting_left, discount_left)
                    continue
                portion = value / items_total if items_total else ZERO
                fitting_share, discount_share = fitting * portion, discount * portion
                shares[item.id] = (fitting_share, discount_share)
                fitting_left -= fitting_share
                discount_left -= discount_share
        return shares

    def line_totals(self, product_line: ProductLine, from_date: Optional[date] = None, to_date: Optional[date] = None) -> dict:
        rows = self.buy_sale_stock_report(product_line, from_date, to_date)
        return {
            "available_value": sum_rows(rows, "available_value"),
            "total_profit": sum_rows(rows, "total_profit"),
        }

    def stock_report(self, from_date: Optional[date], to_date: date) -> dict:
        """Buy-sale-stock rows and line totals for every optics product line."""
        lines, totals = {}, {}
        for line in ProductLine:
            rows = self.buy_sale_stock_report(line, from_date, to_date)
            lines[line.value] = rows
            totals[line.value] = {
                "available_value": sum_rows(rows, "available_value"),
                "total_profit": sum_rows(rows, "total_profit"),
            }
        return {"lines": lines, "totals": totals}

    def optics_stock_value(self, as_on_date: date) -> Dict[str, Decimal]:
        """Available stock value per product line as of the date, plus the total."""
        values = {
            line.value: self.line_totals(line, INCEPTION, as_on_date)["available_value"]
            for line in ProductLine
        }
        values["total"] = sum(values.values(), ZERO)
        return values

    def fitting_charges(self, from_date: Optional[date] = None, to_date: Optional[date] = None) -> Decimal:
        """Glass fitting on optics sales with no stock items. Item sales carry theirs in sale_fitting."""
        query = self.db.query(func.coalesce(func.sum(OpticsSale.glass_fitting_price), 0)).filter(
            OpticsSale.deleted_at.is_(None),
            OpticsSale.glass_fitting_price > 0,
            ~OpticsSale.movements.any(),
        )
        query = apply_date_window(query, OpticsSale.created_at, from_date, to_date)
        return to_decimal(query.scalar())

    def optics_profit(self, from_date: Optional[date] = None, to_date: Optional[date] = None) -> Decimal:
        profit = sum(
            (self.line_totals(line, from_date, to_date)["total_profit"] for line in ProductLine),
            ZERO,
        )
        fitting = self.fitting_charges(from_date, to_date)
        logger.debug(f"Optics profit {from_date or 'inception'} .. {to_date}: items={profit}, fitting={fitting}")
        return profit + fitting

    # ==================== MEDICINE ====================

    def _medicine_sales_query(self, column, from_date: Optional[date], to_date: Optional[date], join_items: bool = False):
        query = self.db.query(func.coalesce(func.sum(column), 0))
        if join_items:
            query = query.select_from(MedicineSaleItem).join(
                MedicineSale, MedicineSaleItem.medicine_sale_id == MedicineSale.id
            )
        query = query.filter(MedicineSale.deleted_at.is_(None))
        return apply_date_window(query, MedicineSale.sale_date, from_date, to_date)

    def medicine_sales_total(self, from_date: Optional[date] = None, to_date: Optional[date] = None) -> Decimal:
        return to_decimal(self._medicine_sales_query(MedicineSale.total_amount, from_date, to_date).scalar())

    def medicine_cogs(self, from_date: Optional[date] = None, to_date: Optional[date] = None) -> Decimal:
        """Cost of goods sold: quantity x buy price of every sold item."""
        query = self._medicine_sales_query(
            MedicineSaleItem.quantity * MedicineSaleItem.buy_price, from_date, to_date, join_items=True
        )
        return to_decimal(query.scalar())

    def medicine_profit(self, from_date: Optional[date] = None, to_date: Optional[date] = None) -> Decimal:
        sales = self.medicine_sales_total(from_date, to_date)
        cogs = self.medicine_cogs(from_date, to_date)
        logger.debug(f"Medicine profit {from_date or 'inception'} .. {to_date}: sales={sales}, cogs={cogs}")
        return sales - cogs

    def medicine_stock_value(self, as_on_date: date) -> Decimal:
        """Purchases received minus cost of goods sold, both on or before the date."""
        query = self.db.query(func.coalesce(func.sum(MedicineStockPurchase.total_amount), 0))
        purchases = to_decimal(
            apply_date_window(query, MedicineStockPurchase.purchase_date, None, as_on_date).scalar()
        )
        return purchases - self.medicine_cogs(None, as_on_date)
