import enum
from sqlalchemy import Column, Date, DateTime, Enum, ForeignKey, Integer, Numeric, String
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func
from hospital_finance.core.database import Base
from hospital_finance.models.ledger import generate_custom_id


class AssetStatus(str, enum.Enum):
    active = "active"
    fully_paid = "fully_paid"
    inactive = "inactive"


class FixedAssetVendor(Base):
    __tablename__ = "fixed_asset_vendors"

    id = Column(Integer, primary_key=True, autoincrement=True)
    name = Column(String(100), nullable=False)

    assets = relationship("FixedAsset", back_populates="vendor")
    payments = relationship("FixedAssetVendorPayment", back_populates="vendor")


class FixedAsset(Base):
    __tablename__ = "fixed_assets"

    id = Column(Integer, primary_key=True, autoincrement=True)
    asset_number = Column(String(20), unique=True, nullable=False,
                          default=lambda: generate_custom_id("FA"))
    name = Column(String(150), nullable=False)
    total_amount = Column(Numeric(15, 2), nullable=False)
    # Paid at the time of purchase; later instalments are vendor payments
    paid_amount = Column(Numeric(15, 2), nullable=False, default=0)
    purchase_date = Column(Date, nullable=False)
    status = Column(Enum(AssetStatus), nullable=False, default=AssetStatus.active)
    vendor_id = Column(Integer, ForeignKey("fixed_asset_vendors.id"), nullable=True)
    deleted_at = Column(DateTime(timezone=True), nullable=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now())

    vendor = relationship("FixedAssetVendor", back_populates="assets")


class FixedAssetVendorPayment(Base):
    __tablename__ = "fixed_asset_vendor_payments"

    id = Column(Integer, primary_key=True, autoincrement=True)
    vendor_id = Column(Integer, ForeignKey("fixed_asset_vendors.id"), nullable=False)
    amount = Column(Numeric(15, 2), nullable=False)
    payment_date = Column(Date, nullable=False)

    vendor = relationship("FixedAssetVendor", back_populates="payments")
