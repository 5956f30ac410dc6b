import enum
import secrets
import string
from sqlalchemy import Boolean, Column, Date, DateTime, Enum, ForeignKey, Integer, Numeric, String, Text
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func
from hospital_finance.core.database import Base


def generate_custom_id(prefix: str, length: int = 8) -> str:
    random_part = ''.join(secrets.choice(string.ascii_uppercase)
                          for _ in range(length))
    return f"{prefix}-{random_part}"


def enum_values(enum_cls):
    """Persist enum values rather than member names."""
    return [member.value for member in enum_cls]


class FundType(str, enum.Enum):
    fund_in = "fund_in"
    fund_out = "fund_out"


class TransactionType(str, enum.Enum):
    income = "income"
    expense = "expense"


class TransactionOrigin(str, enum.Enum):
    """Where a ledger row came from. Replaces matching on description prefixes."""
    manual = "manual"
    sale_payment = "sale_payment"
    vendor_payment = "vendor_payment"
    stock_purchase = "stock_purchase"
    asset_purchase = "asset_purchase"
    prepaid_rent = "prepaid_rent"


# Expense origins that move money into a balance-sheet item rather than spending it
CAPITAL_ORIGINS = (
    TransactionOrigin.vendor_payment,
    TransactionOrigin.stock_purchase,
    TransactionOrigin.asset_purchase,
    TransactionOrigin.prepaid_rent,
)


class DerivedIncome(str, enum.Enum):
    medicine = "medicine"
    optics = "optics"


class ExpenseClass(str, enum.Enum):
    operating = "operating"
    capital = "capital"
    prepaid_rent = "prepaid_rent"
    security_deposit = "security_deposit"


class HospitalAccount(Base):
    """Single row holding the live bank balance."""
    __tablename__ = "hospital_account"

    id = Column(Integer, primary_key=True, autoincrement=True)
    balance = Column(Numeric(15, 2), nullable=False, default=0)
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now())


class FundTransaction(Base):
    __tablename__ = "hospital_fund_transactions"

    id = Column(Integer, primary_key=True, autoincrement=True)
    voucher_no = Column(String(20), unique=True, nullable=False,
                        default=lambda: generate_custom_id("FND"))
    type = Column(Enum(FundType), nullable=False)
    amount = Column(Numeric(15, 2), nullable=False)
    purpose = Column(String(100), nullable=False)
    description = Column(Text, nullable=True)
    date = Column(Date, nullable=False)
    created_at = Column(DateTime(timezone=True), server_default=func.now())


class IncomeCategory(Base):
    __tablename__ = "hospital_income_categories"

    id = Column(Integer, primary_key=True, autoincrement=True)
    name = Column(String(100), unique=True, nullable=False)
    is_active = Column(Boolean, nullable=False, default=True)
    # Set for categories whose income is recomputed as sales minus cost
    derived_income = Column(Enum(DerivedIncome), nullable=True)

    transactions = relationship("LedgerTransaction", back_populates="income_category")


class ExpenseCategory(Base):
    __tablename__ = "hospital_expense_categories"

    id = Column(Integer, primary_key=True, autoincrement=True)
    name = Column(String(100), unique=True, nullable=False)
    is_active = Column(Boolean, nullable=False, default=True)
    expense_class = Column(Enum(ExpenseClass), nullable=False, default=ExpenseClass.operating)

    transactions = relationship("LedgerTransaction", back_populates="expense_category")

    @property
    def is_capital_expenditure(self) -> bool:
        """Balance-sheet items (stock, assets, prepaid rent, deposits) are not operating expenses."""
        return self.expense_class != ExpenseClass.operating


class LedgerTransaction(Base):
    """
    General income/expense ledger. Expense amounts may be stored negative;
    readers always take the absolute value.
    """
    __tablename__ = "hospital_transactions"

    id = Column(Integer, primary_key=True, autoincrement=True)
    transaction_no = Column(String(20), unique=True, nullable=False,
                            default=lambda: generate_custom_id("TXN"))
    type = Column(Enum(TransactionType), nullable=False)
    amount = Column(Numeric(15, 2), nullable=False)
    # Free-text label, used for grouping rows that carry no category
    category = Column(String(100), nullable=True)
    income_category_id = Column(Integer, ForeignKey("hospital_income_categories.id"), nullable=True)
    expense_category_id = Column(Integer, ForeignKey("hospital_expense_categories.id"), nullable=True)
    origin = Column(Enum(TransactionOrigin), nullable=False, default=TransactionOrigin.manual)
    description = Column(Text, nullable=True)
    transaction_date = Column(Date, nullable=False)
    created_by = Column(String(100), nullable=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now())

    income_category = relationship("IncomeCategory", back_populates="transactions")
    expense_category = relationship("ExpenseCategory", back_populates="transactions")
