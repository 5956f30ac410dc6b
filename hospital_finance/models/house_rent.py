import enum
from sqlalchemy import Column, Date, Enum, ForeignKey, Integer, Numeric
from sqlalchemy.orm import relationship
from hospital_finance.core.database import Base
from hospital_finance.models.ledger import enum_values


class FloorType(str, enum.Enum):
    floor_2_3 = "2_3_floor"
    floor_4 = "4_floor"


FLOOR_LABELS = {
    FloorType.floor_2_3: "House Rent (2nd & 3rd Floor)",
    FloorType.floor_4: "House Rent (4th Floor)",
}


class RentStatus(str, enum.Enum):
    active = "active"
    exhausted = "exhausted"
    cancelled = "cancelled"


class AdvanceHouseRent(Base):
    """Rent paid in advance for a floor; consumed by monthly deductions."""
    __tablename__ = "advance_house_rents"

    id = Column(Integer, primary_key=True, autoincrement=True)
    floor_type = Column(Enum(FloorType, values_callable=enum_values), nullable=False)
    advance_amount = Column(Numeric(15, 2), nullable=False)
    used_amount = Column(Numeric(15, 2), nullable=False, default=0)
    remaining_amount = Column(Numeric(15, 2), nullable=False, default=0)
    status = Column(Enum(RentStatus), nullable=False, default=RentStatus.active)
    payment_date = Column(Date, nullable=False)

    deductions = relationship("AdvanceHouseRentDeduction", back_populates="advance")


class AdvanceHouseRentDeduction(Base):
    __tablename__ = "advance_house_rent_deductions"

    id = Column(Integer, primary_key=True, autoincrement=True)
    advance_house_rent_id = Column(Integer, ForeignKey("advance_house_rents.id"), nullable=False)
    month = Column(Integer, nullable=False)
    year = Column(Integer, nullable=False)
    amount = Column(Numeric(15, 2), nullable=False)
    deduction_date = Column(Date, nullable=False)

    advance = relationship("AdvanceHouseRent", back_populates="deductions")
