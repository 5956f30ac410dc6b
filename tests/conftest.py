import os
import sys
from datetime import datetime
from decimal import Decimal

# Tests import `hospital_finance.*`, which requires the repo root on sys.path.
REPO_ROOT = os.path.abspath(os.path.join(os.path.dirname(__file__), ".."))
if REPO_ROOT not in sys.path:
    sys.path.insert(0, REPO_ROOT)

os.environ.setdefault("DATABASE_URL", "sqlite://")

import pytest
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from hospital_finance.core.database import Base
from hospital_finance.models.fixed_asset import (
    AssetStatus,
    FixedAsset,
    FixedAssetVendor,
    FixedAssetVendorPayment,
)
from hospital_finance.models.house_rent import (
    AdvanceHouseRent,
    AdvanceHouseRentDeduction,
    FloorType,
    RentStatus,
)
from hospital_finance.models.ledger import (
    ExpenseCategory,
    ExpenseClass,
    FundTransaction,
    FundType,
    HospitalAccount,
    IncomeCategory,
    LedgerTransaction,
    TransactionOrigin,
    TransactionType,
)
from hospital_finance.models.medicine import (
    MedicineSale,
    MedicineSaleItem,
    MedicineSalePayment,
    MedicineStockPurchase,
)
from hospital_finance.models.operation import OperationBooking
from hospital_finance.models.optics import (
    AdvanceSource,
    MovementType,
    OpticsProduct,
    OpticsSale,
    OpticsSalePayment,
    OpticsStockMovement,
    ProductLine,
)
from hospital_finance.models.vendor import (
    BalanceType,
    MedicineVendor,
    MedicineVendorPayment,
    MedicineVendorTransaction,
    OpticsVendor,
    OpticsVendorTransaction,
    VendorTransactionType,
)


def D(value) -> Decimal:
    return Decimal(str(value))


class LedgerBuilder:
    """Writes ledger rows the way the recording side of the application would."""

    def __init__(self, db):
        self.db = db

    def _add(self, obj):
        self.db.add(obj)
        self.db.flush()
        return obj

    # ---- cash ----

    def account(self, balance):
        return self._add(HospitalAccount(balance=D(balance)))

    def fund(self, fund_type, amount, on, purpose="Capital"):
        return self._add(FundTransaction(type=fund_type, amount=D(amount), purpose=purpose, date=on))

    def income_category(self, name, derived_income=None, is_active=True):
        return self._add(IncomeCategory(name=name, derived_income=derived_income, is_active=is_active))

    def expense_category(self, name, expense_class=ExpenseClass.operating):
        return self._add(ExpenseCategory(name=name, expense_class=expense_class))

    def income(self, category, amount, on, origin=TransactionOrigin.manual, label=None, description=None):
        return self._add(LedgerTransaction(
            type=TransactionType.income, amount=D(amount), transaction_date=on, origin=origin,
            income_category_id=category.id if category else None, category=label, description=description,
        ))

    def expense(self, category, amount, on, origin=TransactionOrigin.manual, label=None, negative=True):
        amount = D(amount)
        return self._add(LedgerTransaction(
            type=TransactionType.expense, amount=-amount if negative else amount, transaction_date=on,
            origin=origin, expense_category_id=category.id if category else None, category=label,
        ))

    # ---- medicine ----

    def medicine_purchase(self, amount, on, quantity=10):
        return self._add(MedicineStockPurchase(
            medicine_name="Paracetamol", quantity=quantity, total_amount=D(amount), purchase_date=on,
        ))

    def medicine_sale(self, on, items, paid=0, total=None, deleted=False):
        """items: (quantity, unit_price, buy_price) tuples."""
        total = D(total) if total is not None else sum((D(unit) * qty for qty, unit, _ in items), Decimal("0"))
        sale = self._add(MedicineSale(
            sale_date=on, total_amount=total, paid_amount=D(paid),
            deleted_at=datetime(2030, 1, 1) if deleted else None,
        ))
        for qty, unit, buy in items:
            self._add(MedicineSaleItem(
                medicine_sale_id=sale.id, medicine_name="Paracetamol", quantity=qty,
                unit_price=D(unit), buy_price=D(buy),
            ))
        return sale

    def medicine_sale_payment(self, sale, amount, on):
        return self._add(MedicineSalePayment(medicine_sale_id=sale.id, amount=D(amount), payment_date=on))

    # ---- optics ----

    def optics_product(self, product_line=ProductLine.frames, name="Frame"):
        return self._add(OpticsProduct(product_line=product_line, name=name))

    def optics_purchase(self, product, quantity, unit_price, on):
        return self._add(OpticsStockMovement(
            product_id=product.id, movement_type=MovementType.purchase, quantity=quantity,
            unit_price=D(unit_price), movement_date=on,
        ))

    def optics_sale(self, total, on, items=(), advance=0, advance_recorded_in=AdvanceSource.ledger,
                    fitting=0, deleted=False):
        """items: (product, quantity, sell_price, buy_price) tuples."""
        sale = self._add(OpticsSale(
            total_amount=D(total), advance_payment=D(advance), advance_recorded_in=advance_recorded_in,
            glass_fitting_price=D(fitting), created_at=datetime.combine(on, datetime.min.time()),
            deleted_at=datetime(2030, 1, 1) if deleted else None,
        ))
        for product, qty, sell, buy in items:
            self._add(OpticsStockMovement(
                product_id=product.id, movement_type=MovementType.sale, quantity=qty,
                unit_price=D(sell), buy_price=D(buy), movement_date=on, optics_sale_id=sale.id,
            ))
        return sale

    def optics_sale_payment(self, sale, amount, on, notes=None):
        return self._add(OpticsSalePayment(
            optics_sale_id=sale.id, amount=D(amount), payment_date=on, notes=notes, payment_method="cash",
        ))

    # ---- vendors ----

    def optics_vendor(self, current_balance, balance_type=BalanceType.due):
        return self._add(OpticsVendor(name="Lens House", current_balance=D(current_balance), balance_type=balance_type))

    def optics_vendor_tx(self, vendor, tx_type, amount, on):
        return self._add(OpticsVendorTransaction(vendor_id=vendor.id, type=tx_type, amount=D(amount), transaction_date=on))

    def medicine_vendor(self, current_balance, balance_type=BalanceType.due):
        return self._add(MedicineVendor(name="Pharma Co", current_balance=D(current_balance), balance_type=balance_type))

    def medicine_vendor_purchase(self, vendor, amount, on):
        return self._add(MedicineVendorTransaction(
            vendor_id=vendor.id, type=VendorTransactionType.purchase, amount=D(amount), transaction_date=on,
        ))

    def medicine_vendor_payment(self, vendor, amount, on):
        return self._add(MedicineVendorPayment(vendor_id=vendor.id, amount=D(amount), payment_date=on))

    # ---- other balance-sheet items ----

    def booking(self, status, due_amount, on, total=None):
        total = D(total) if total is not None else D(due_amount)
        return self._add(OperationBooking(
            patient_name="Patient", total_amount=total, due_amount=D(due_amount), status=status,
            created_at=datetime.combine(on, datetime.min.time()).replace(hour=11),
        ))

    def advance_rent(self, amount, on, floor_type=FloorType.floor_2_3, status=RentStatus.active):
        return self._add(AdvanceHouseRent(
            floor_type=floor_type, advance_amount=D(amount), remaining_amount=D(amount),
            status=status, payment_date=on,
        ))

    def rent_deduction(self, rent, amount, on):
        return self._add(AdvanceHouseRentDeduction(
            advance_house_rent_id=rent.id, month=on.month, year=on.year, amount=D(amount), deduction_date=on,
        ))

    def asset_vendor(self):
        return self._add(FixedAssetVendor(name="MedEquip"))

    def fixed_asset(self, total, paid, on, vendor=None, status=AssetStatus.active):
        return self._add(FixedAsset(
            name="Slit Lamp", total_amount=D(total), paid_amount=D(paid), purchase_date=on,
            vendor_id=vendor.id if vendor else None, status=status,
        ))

    def asset_vendor_payment(self, vendor, amount, on):
        return self._add(FixedAssetVendorPayment(vendor_id=vendor.id, amount=D(amount), payment_date=on))


@pytest.fixture
def engine():
    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    Base.metadata.create_all(bind=engine)
    yield engine
    Base.metadata.drop_all(bind=engine)
    engine.dispose()


@pytest.fixture
def db(engine):
    session = sessionmaker(autocommit=False, autoflush=False, bind=engine)()
    try:
        yield session
    finally:
        session.rollback()
        session.close()


@pytest.fixture
def ledger(db):
    return LedgerBuilder(db)


@pytest.fixture
def client(db):
    from fastapi.testclient import TestClient

    from hospital_finance.core.dependencies import get_report_db
    from hospital_finance.main import app

    def override_get_report_db():
        yield db

    app.dependency_overrides[get_report_db] = override_get_report_db
    with TestClient(app) as test_client:
        yield test_client
    app.dependency_overrides.clear()
