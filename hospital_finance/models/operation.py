import enum
from sqlalchemy import Column, DateTime, Enum, Integer, Numeric, String
from hospital_finance.core.database import Base
from hospital_finance.models.ledger import generate_custom_id


class BookingStatus(str, enum.Enum):
    scheduled = "scheduled"
    completed = "completed"
    cancelled = "cancelled"
    rescheduled = "rescheduled"


class OperationBooking(Base):
    __tablename__ = "operation_bookings"

    id = Column(Integer, primary_key=True, autoincrement=True)
    booking_no = Column(String(20), unique=True, nullable=False,
                        default=lambda: generate_custom_id("OP"))
    patient_name = Column(String(150), nullable=True)
    total_amount = Column(Numeric(15, 2), nullable=False)
    advance_payment = Column(Numeric(15, 2), nullable=False, default=0)
    due_amount = Column(Numeric(15, 2), nullable=False, default=0)
    status = Column(Enum(BookingStatus), nullable=False, default=BookingStatus.scheduled)
    created_at = Column(DateTime, nullable=False)
