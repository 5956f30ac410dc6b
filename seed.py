from datetime import date, datetime, timedelta
from decimal import Decimal
import random

from faker import Faker

from hospital_finance.core.config import settings
from hospital_finance.core.database import Base, SessionLocal, engine
from hospital_finance.models.fixed_asset import FixedAsset, FixedAssetVendor, FixedAssetVendorPayment
from hospital_finance.models.house_rent import AdvanceHouseRent, AdvanceHouseRentDeduction, FloorType
from hospital_finance.models.ledger import (
    DerivedIncome,
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
from hospital_finance.models.medicine import MedicineSale, MedicineSaleItem, MedicineStockPurchase
from hospital_finance.models.operation import BookingStatus, OperationBooking
from hospital_finance.models.optics import (
    MovementType,
    OpticsProduct,
    OpticsSale,
    OpticsSalePayment,
    OpticsStockMovement,
    ProductLine,
)
from hospital_finance.models.vendor import MedicineVendor, OpticsVendor, OpticsVendorTransaction, VendorTransactionType
from hospital_finance.services.fund_ledger import FundLedgerReader

fake = Faker()
START = date.today().replace(day=1) - timedelta(days=180)


def money(low, high) -> Decimal:
    return Decimal(random.randint(low, high))


def random_day() -> date:
    return fake.date_between(start_date=START, end_date="today")


def income(category, amount, on, origin=TransactionOrigin.manual, description=None):
    return LedgerTransaction(
        type=TransactionType.income, amount=amount, income_category_id=category.id,
        origin=origin, transaction_date=on, description=description, created_by="seed",
    )


def expense(category, amount, on, origin=TransactionOrigin.manual, description=None, label=None):
    # Expenses are stored negative, as the recording side does
    return LedgerTransaction(
        type=TransactionType.expense, amount=-amount, category=label,
        expense_category_id=category.id if category else None,
        origin=origin, transaction_date=on, description=description, created_by="seed",
    )


Base.metadata.create_all(bind=engine)
db = SessionLocal()

try:
    print("🔄 Clearing existing data...")
    for table in reversed(Base.metadata.sorted_tables):
        db.execute(table.delete())
    db.commit()
    print("✅ Data cleared.")

    print("🔄 Creating categories...")
    medicine_income = IncomeCategory(name="Medicine Income", derived_income=DerivedIncome.medicine)
    optics_income = IncomeCategory(name="Optics Income", derived_income=DerivedIncome.optics)
    consultation = IncomeCategory(name="Consultation Fee")
    operation_income = IncomeCategory(name="Operation Income")
    salary = ExpenseCategory(name="Staff Salary")
    utilities = ExpenseCategory(name="Utility Bills")
    medicine_purchase = ExpenseCategory(name="Medicine Purchase", expense_class=ExpenseClass.capital)
    optics_purchase = ExpenseCategory(name="Optics Purchase", expense_class=ExpenseClass.capital)
    asset_purchase = ExpenseCategory(name="Fixed Asset Purchase", expense_class=ExpenseClass.capital)
    advance_rent = ExpenseCategory(name="Advance House Rent", expense_class=ExpenseClass.prepaid_rent)
    security = ExpenseCategory(name="House Security", expense_class=ExpenseClass.security_deposit)
    db.add_all([
        medicine_income, optics_income, consultation, operation_income, salary, utilities,
        medicine_purchase, optics_purchase, asset_purchase, advance_rent, security,
    ])
    db.flush()

    print("🔄 Creating fund movements...")
    db.add(FundTransaction(type=FundType.fund_in, amount=Decimal("500000"), purpose="Owner Capital", date=START))
    for _ in range(3):
        db.add(FundTransaction(type=FundType.fund_out, amount=money(5000, 20000), purpose="Owner Drawings", date=random_day()))

    print("🔄 Creating medicine stock and sales...")
    for _ in range(random.randint(10, 15)):
        on = random_day()
        amount = money(10000, 30000)
        db.add(MedicineStockPurchase(medicine_name=fake.word().title(), quantity=random.randint(50, 200), total_amount=amount, purchase_date=on))
        db.add(expense(medicine_purchase, amount, on, TransactionOrigin.stock_purchase, "Medicine stock purchase"))
    for _ in range(random.randint(40, 60)):
        on = random_day()
        qty = random.randint(1, 5)
        buy = money(20, 80)
        sell = buy + money(5, 40)
        total = sell * qty
        paid = total if random.random() < 0.8 else total - money(1, int(total) // 2)
        sale = MedicineSale(sale_date=on, total_amount=total, paid_amount=paid)
        db.add(sale)
        db.flush()
        db.add(MedicineSaleItem(medicine_sale_id=sale.id, medicine_name=fake.word().title(), quantity=qty, unit_price=sell, buy_price=buy))
        db.add(income(medicine_income, paid, on, TransactionOrigin.sale_payment, f"Medicine Sale: {sale.invoice_number}"))

    print("🔄 Creating optics stock and sales...")
    vendor = OpticsVendor(name=fake.company())
    db.add(vendor)
    db.flush()
    vendor_balance = Decimal("0")
    for line in ProductLine:
        for _ in range(4):
            product = OpticsProduct(product_line=line, name=f"{fake.color_name()} {line.value.replace('_', ' ')}")
            db.add(product)
            db.flush()
            on = START + timedelta(days=random.randint(0, 30))
            qty = random.randint(10, 30)
            cost = money(300, 1500)
            db.add(OpticsStockMovement(product_id=product.id, movement_type=MovementType.purchase, quantity=qty, unit_price=cost, movement_date=on))
            db.add(OpticsVendorTransaction(vendor_id=vendor.id, type=VendorTransactionType.purchase, amount=cost * qty, transaction_date=on))
            vendor_balance += cost * qty

            for _ in range(random.randint(1, 5)):
                sold_on = on + timedelta(days=random.randint(1, 120))
                if sold_on > date.today():
                    continue
                price = cost + money(100, 800)
                sale = OpticsSale(total_amount=price, created_at=datetime.combine(sold_on, datetime.min.time()))
                db.add(sale)
                db.flush()
                db.add(OpticsStockMovement(
                    product_id=product.id, movement_type=MovementType.sale, quantity=1,
                    unit_price=price, buy_price=cost, movement_date=sold_on, optics_sale_id=sale.id,
                ))
                db.add(OpticsSalePayment(optics_sale_id=sale.id, amount=price, payment_method="cash", notes="Advance", payment_date=sold_on))
                db.add(income(optics_income, price, sold_on, TransactionOrigin.sale_payment, f"Invoice {sale.invoice_number}"))

    paid_to_vendor = (vendor_balance / 2).quantize(Decimal("1"))
    paid_on = START + timedelta(days=45)
    db.add(OpticsVendorTransaction(vendor_id=vendor.id, type=VendorTransactionType.payment, amount=paid_to_vendor, transaction_date=paid_on))
    db.add(expense(optics_purchase, paid_to_vendor, paid_on, TransactionOrigin.vendor_payment, "Optics Vendor Payment"))
    vendor.current_balance = vendor_balance - paid_to_vendor
    db.add(MedicineVendor(name=fake.company()))

    print("🔄 Creating consultations, operations and running costs...")
    for _ in range(random.randint(80, 120)):
        db.add(income(consultation, money(500, 1500), random_day()))
    for _ in range(random.randint(5, 10)):
        total = money(20000, 60000)
        advance = money(5000, 15000)
        completed = random.random() < 0.6
        db.add(OperationBooking(
            patient_name=fake.name(), total_amount=total, advance_payment=advance,
            due_amount=total - advance, created_at=fake.date_time_between(start_date=START, end_date="now"),
            status=BookingStatus.completed if completed else BookingStatus.scheduled,
        ))
    for month in range(6):
        on = START + timedelta(days=30 * month + 5)
        db.add(expense(salary, money(60000, 80000), on))
        db.add(expense(utilities, money(5000, 12000), on))
    for _ in range(5):
        db.add(expense(None, money(200, 2000), random_day(), label=random.choice(["Tea & Snacks", "Cleaning", "Stationery"])))

    print("🔄 Creating rent, deposit and fixed assets...")
    rent = AdvanceHouseRent(floor_type=FloorType.floor_2_3, advance_amount=Decimal("240000"), payment_date=START)
    db.add(rent)
    db.add(expense(advance_rent, Decimal("240000"), START, TransactionOrigin.prepaid_rent, "Advance House Rent"))
    db.flush()
    for month in range(6):
        on = START + timedelta(days=30 * month)
        db.add(AdvanceHouseRentDeduction(advance_house_rent_id=rent.id, month=on.month, year=on.year, amount=Decimal("20000"), deduction_date=on))
    db.add(expense(security, Decimal("50000"), START, description="House Security deposit"))

    asset_vendor = FixedAssetVendor(name=fake.company())
    db.add(asset_vendor)
    db.flush()
    db.add(FixedAsset(name="Phaco Machine", total_amount=Decimal("300000"), paid_amount=Decimal("200000"), purchase_date=START, vendor_id=asset_vendor.id))
    db.add(expense(asset_purchase, Decimal("200000"), START, TransactionOrigin.asset_purchase, "Fixed Asset Purchase"))
    db.add(FixedAssetVendorPayment(vendor_id=asset_vendor.id, amount=Decimal("50000"), payment_date=START + timedelta(days=60)))
    db.add(expense(asset_purchase, Decimal("50000"), START + timedelta(days=60), TransactionOrigin.vendor_payment, "Fixed Asset Vendor Payment"))

    db.flush()
    live_balance = FundLedgerReader(db).bank_balance(date.today(), settings.OPENING_BANK_BALANCE)
    db.add(HospitalAccount(balance=live_balance))
    db.commit()
    print("✅ Demo ledger created.")

except Exception as e:
    db.rollback()
    print(f"❌ SEEDING FAILED: {e}")
    raise
finally:
    db.close()
