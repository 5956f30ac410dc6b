from sqlalchemy import Column, Date, DateTime, ForeignKey, Integer, Numeric, String
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func
from hospital_finance.core.database import Base
from hospital_finance.models.ledger import generate_custom_id


class MedicineSale(Base):
    __tablename__ = "medicine_sales"

    id = Column(Integer, primary_key=True, autoincrement=True)
    invoice_number = Column(String(20), unique=True, nullable=False,
                            default=lambda: generate_custom_id("MS"))
    sale_date = Column(Date, nullable=False)
    total_amount = Column(Numeric(15, 2), nullable=False)
    # Collected at the counter; later collections are MedicineSalePayment rows
    paid_amount = Column(Numeric(15, 2), nullable=False, default=0)
    deleted_at = Column(DateTime(timezone=True), nullable=True)

    items = relationship("MedicineSaleItem", back_populates="sale")
    payments = relationship("MedicineSalePayment", back_populates="sale")


class MedicineSaleItem(Base):
    __tablename__ = "medicine_sale_items"

    id = Column(Integer, primary_key=True, autoincrement=True)
    medicine_sale_id = Column(Integer, ForeignKey("medicine_sales.id"), nullable=False)
    medicine_name = Column(String(150), nullable=False)
    quantity = Column(Integer, nullable=False)
    unit_price = Column(Numeric(15, 2), nullable=False)
    buy_price = Column(Numeric(15, 2), nullable=False, default=0)

    sale = relationship("MedicineSale", back_populates="items")


class MedicineSalePayment(Base):
    __tablename__ = "medicine_sale_payments"

    id = Column(Integer, primary_key=True, autoincrement=True)
    medicine_sale_id = Column(Integer, ForeignKey("medicine_sales.id"), nullable=False)
    amount = Column(Numeric(15, 2), nullable=False)
    payment_date = Column(Date, nullable=False)

    sale = relationship("MedicineSale", back_populates="payments")


class MedicineStockPurchase(Base):
    """Stock received into the pharmacy, valued at purchase cost."""
    __tablename__ = "medicine_stock_purchases"

    id = Column(Integer, primary_key=True, autoincrement=True)
    medicine_name = Column(String(150), nullable=False)
    quantity = Column(Integer, nullable=False)
    total_amount = Column(Numeric(15, 2), nullable=False)
    purchase_date = Column(Date, nullable=False)
    vendor_id = Column(Integer, ForeignKey("medicine_vendors.id"), nullable=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now())
