import enum
from sqlalchemy import Column, Date, DateTime, Enum, ForeignKey, Integer, Numeric, String, Text
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func
from hospital_finance.core.database import Base
from hospital_finance.models.ledger import enum_values


class BalanceType(str, enum.Enum):
    due = "due"          # we owe the vendor
    advance = "advance"  # the vendor holds our money


class VendorTransactionType(str, enum.Enum):
    purchase = "purchase"
    payment = "payment"
    return_ = "return"
    adjustment = "adjustment"


class OpticsVendor(Base):
    __tablename__ = "optics_vendors"

    id = Column(Integer, primary_key=True, autoincrement=True)
    name = Column(String(100), nullable=False)
    opening_balance = Column(Numeric(15, 2), nullable=False, default=0)
    # Live balance, maintained by the purchasing side
    current_balance = Column(Numeric(15, 2), nullable=False, default=0)
    balance_type = Column(Enum(BalanceType), nullable=False, default=BalanceType.due)

    transactions = relationship("OpticsVendorTransaction", back_populates="vendor")


class OpticsVendorTransaction(Base):
    __tablename__ = "optics_vendor_transactions"

    id = Column(Integer, primary_key=True, autoincrement=True)
    vendor_id = Column(Integer, ForeignKey("optics_vendors.id"), nullable=False)
    type = Column(Enum(VendorTransactionType, values_callable=enum_values), nullable=False)
    amount = Column(Numeric(15, 2), nullable=False)
    description = Column(Text, nullable=True)
    transaction_date = Column(Date, nullable=False)

    vendor = relationship("OpticsVendor", back_populates="transactions")


class MedicineVendor(Base):
    __tablename__ = "medicine_vendors"

    id = Column(Integer, primary_key=True, autoincrement=True)
    name = Column(String(100), nullable=False)
    opening_balance = Column(Numeric(15, 2), nullable=False, default=0)
    current_balance = Column(Numeric(15, 2), nullable=False, default=0)
    balance_type = Column(Enum(BalanceType), nullable=False, default=BalanceType.due)

    transactions = relationship("MedicineVendorTransaction", back_populates="vendor")
    payments = relationship("MedicineVendorPayment", back_populates="vendor")


class MedicineVendorTransaction(Base):
    __tablename__ = "medicine_vendor_transactions"

    id = Column(Integer, primary_key=True, autoincrement=True)
    vendor_id = Column(Integer, ForeignKey("medicine_vendors.id"), nullable=False)
    type = Column(Enum(VendorTransactionType, values_callable=enum_values), nullable=False)
    amount = Column(Numeric(15, 2), nullable=False)
    transaction_date = Column(Date, nullable=False)

    vendor = relationship("MedicineVendor", back_populates="transactions")


class MedicineVendorPayment(Base):
    __tablename__ = "medicine_vendor_payments"

    id = Column(Integer, primary_key=True, autoincrement=True)
    vendor_id = Column(Integer, ForeignKey("medicine_vendors.id"), nullable=False)
    amount = Column(Numeric(15, 2), nullable=False)
    payment_date = Column(Date, nullable=False)
    created_at = Column(DateTime(timezone=True), server_default=func.now())

    vendor = relationship("MedicineVendor", back_populates="payments")
