import enum
from sqlalchemy import Column, Date, DateTime, Enum, ForeignKey, Integer, Numeric, String, Text
from sqlalchemy.orm import relationship
from hospital_finance.core.database import Base
from hospital_finance.models.ledger import generate_custom_id


class ProductLine(str, enum.Enum):
    frames = "frames"
    lenses = "lenses"
    complete_glasses = "complete_glasses"


class MovementType(str, enum.Enum):
    purchase = "purchase"
    sale = "sale"


class AdvanceSource(str, enum.Enum):
    """Where the advance taken at the counter was recorded."""
    ledger = "ledger"              # as an OpticsSalePayment row
    legacy_field = "legacy_field"  # only in OpticsSale.advance_payment


class OpticsProduct(Base):
    __tablename__ = "optics_products"

    id = Column(Integer, primary_key=True, autoincrement=True)
    product_line = Column(Enum(ProductLine), nullable=False)
    name = Column(String(150), nullable=False)

    movements = relationship("OpticsStockMovement", back_populates="product")


class OpticsStockMovement(Base):
    __tablename__ = "optics_stock_movements"

    id = Column(Integer, primary_key=True, autoincrement=True)
    product_id = Column(Integer, ForeignKey("optics_products.id"), nullable=False)
    movement_type = Column(Enum(MovementType), nullable=False)
    quantity = Column(Integer, nullable=False)
    # Purchase cost for purchases, selling price for sales
    unit_price = Column(Numeric(15, 2), nullable=False)
    # Cost of the unit at the time it was sold
    buy_price = Column(Numeric(15, 2), nullable=True)
    movement_date = Column(Date, nullable=False)
    optics_sale_id = Column(Integer, ForeignKey("optics_sales.id"), nullable=True)

    product = relationship("OpticsProduct", back_populates="movements")
    sale = relationship("OpticsSale", back_populates="movements")


class OpticsSale(Base):
    __tablename__ = "optics_sales"

    id = Column(Integer, primary_key=True, autoincrement=True)
    invoice_number = Column(String(20), unique=True, nullable=False,
                            default=lambda: generate_custom_id("OS"))
    total_amount = Column(Numeric(15, 2), nullable=False)
    advance_payment = Column(Numeric(15, 2), nullable=False, default=0)
    advance_recorded_in = Column(Enum(AdvanceSource), nullable=False, default=AdvanceSource.ledger)
    glass_fitting_price = Column(Numeric(15, 2), nullable=False, default=0)
    created_at = Column(DateTime, nullable=False)
    deleted_at = Column(DateTime(timezone=True), nullable=True)

    movements = relationship("OpticsStockMovement", back_populates="sale")
    payments = relationship("OpticsSalePayment", back_populates="sale")


class OpticsSalePayment(Base):
    __tablename__ = "optics_sale_payments"

    id = Column(Integer, primary_key=True, autoincrement=True)
    optics_sale_id = Column(Integer, ForeignKey("optics_sales.id"), nullable=False)
    amount = Column(Numeric(15, 2), nullable=False)
    payment_method = Column(String(30), nullable=True)
    notes = Column(Text, nullable=True)
    payment_date = Column(Date, nullable=False)

    sale = relationship("OpticsSale", back_populates="payments")
