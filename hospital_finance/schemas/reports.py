from datetime import date, datetime
from typing import Annotated, Dict, List, Optional, Union

from pydantic import BaseModel, BeforeValidator

from hospital_finance.models.ledger import TransactionOrigin, TransactionType
from hospital_finance.utils.money import money

# Decimal inside the services, rounded to 2 places only here
Money = Annotated[float, BeforeValidator(money)]


class AsOnFilter(BaseModel):
    as_on_date: date


class PeriodFilter(BaseModel):
    from_date: date
    to_date: date


# ==================== BALANCE SHEET ====================

class BalanceSheetAssets(BaseModel):
    bank_balance: Money
    medicine_stock: Money
    optics_stock: Money
    advance_house_rent: Money
    fixed_assets: Money
    house_security: Money
    optics_receivable: Money
    medicine_receivable: Money
    operation_receivable: Money


class OpticsStockBreakdown(BaseModel):
    frames: Money
    lenses: Money
    complete_glasses: Money
    total: Money


class BalanceSheetLiabilities(BaseModel):
    optics_vendor_due: Money
    medicine_vendor_due: Money
    fixed_asset_purchase_due: Money


class BalanceSheetResponse(BaseModel):
    filters: AsOnFilter
    opening_balance: Money
    assets: BalanceSheetAssets
    optics_stock_breakdown: OpticsStockBreakdown
    liabilities: BalanceSheetLiabilities
    total_assets: Money
    total_liabilities: Money
    total_fund_in: Money
    total_fund_out: Money
    fund: Money
    total_income: Money
    total_expenditure: Money
    net_profit: Money
    total_liabilities_and_equity: Money
    difference: Money
    is_balanced: bool


# ==================== INCOME & EXPENDITURE ====================

class CategoryRow(BaseModel):
    serial: int
    category: str
    category_id: Optional[Union[int, str]] = None
    current_period: Money
    cumulative: Money
    is_active: bool = True
    is_special: bool = False
    is_adjustment: bool = False


class IncomeExpenditureTotals(BaseModel):
    current_income: Money
    cumulative_income: Money
    current_expenditure: Money
    cumulative_expenditure: Money
    current_surplus_deficit: Money
    cumulative_surplus_deficit: Money
    is_current_surplus: bool
    is_cumulative_surplus: bool


class IncomeExpenditureResponse(BaseModel):
    filters: PeriodFilter
    income: List[CategoryRow]
    expenditure: List[CategoryRow]
    totals: IncomeExpenditureTotals


class LedgerTransactionBase(BaseModel):
    id: int
    transaction_no: str
    type: TransactionType
    amount: Money
    category: Optional[str] = None
    origin: TransactionOrigin
    description: Optional[str] = None
    transaction_date: date
    created_by: Optional[str] = None

    class Config:
        from_attributes = True


class CategoryDetailResponse(BaseModel):
    filters: PeriodFilter
    category: str
    category_id: Union[int, str]
    derived_profit: Optional[Money] = None
    transactions: List[LedgerTransactionBase]
    total: Money


# ==================== RECEIPT & PAYMENT ====================

class ParticularsRow(BaseModel):
    serial: int
    particulars: str
    type: str
    category_id: Optional[int] = None
    category: Optional[str] = None
    current_period: Money
    cumulative: Money


class ReceiptPaymentTotals(BaseModel):
    opening_balance: Money
    cumulative_opening_balance: Money
    current_receipts: Money
    cumulative_receipts: Money
    current_payments: Money
    cumulative_payments: Money
    closing_balance: Money
    cumulative_closing_balance: Money


class VerificationWindow(BaseModel):
    receipt_side_total: Money
    payment_side_total: Money
    difference: Money
    is_balanced: bool


class Verification(BaseModel):
    current: VerificationWindow
    cumulative: VerificationWindow


class ReceiptPaymentResponse(BaseModel):
    filters: PeriodFilter
    current_account_balance: Money
    receipts: List[ParticularsRow]
    payments: List[ParticularsRow]
    totals: ReceiptPaymentTotals
    verification: Verification
    generated_at: Optional[datetime] = None


class DetailRow(BaseModel):
    voucher_no: str
    transaction_date: date
    category: Optional[str] = None
    description: Optional[str] = None
    amount: Money


class RowDetailResponse(BaseModel):
    filters: PeriodFilter
    category: str
    type: str
    details: List[DetailRow]
    total: Money


# ==================== OPTICS STOCK ====================

class StockRow(BaseModel):
    product_id: int
    product_name: str
    product_line: str
    before_qty: int
    buy_qty: int
    buy_avg_price: Money
    buy_total: Money
    sale_qty: int
    sale_total: Money
    sale_cost: Money
    sale_fitting: Money
    sale_discount: Money
    available_qty: int
    avg_buy_price: Money
    available_value: Money
    total_profit: Money


class LineTotals(BaseModel):
    available_value: Money
    total_profit: Money


class OpticsStockReportResponse(BaseModel):
    filters: PeriodFilter
    lines: Dict[str, List[StockRow]]
    totals: Dict[str, LineTotals]
