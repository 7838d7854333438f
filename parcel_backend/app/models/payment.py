"""
Payment database model.

Immutable record of a confirmed checkout. NO updates or deletions allowed.
"""

from sqlalchemy import Column, String, Float, DateTime
from parcel_backend.app.db.session import Base
from parcel_backend.app.db.defaults import generate_id, utcnow


class Payment(Base):
    """
    Payment model.
    
    The unique constraint on transaction_id makes confirmation idempotent
    even when two requests race past the application-level check.
    """
    __tablename__ = "payments"
    
    id = Column(String(32), primary_key=True, default=generate_id)
    
    amount = Column(Float, nullable=False)
    currency = Column(String(10), nullable=False)
    payer_name = Column(String(255), nullable=True)
    customer_email = Column(String(255), nullable=True, index=True)
    
    parcel_id = Column(String(32), nullable=False, index=True)
    parcel_name = Column(String(255), nullable=True)
    
    transaction_id = Column(String(255), unique=True, nullable=False, index=True)
    payment_status = Column(String(50), nullable=False)
    tracking_id = Column(String(32), nullable=False, index=True)
    
    # Immutable - no updated_at
    paid_at = Column(DateTime(timezone=True), default=utcnow, nullable=False, index=True)
    
    def __repr__(self):
        return f"<Payment(id={self.id}, transaction='{self.transaction_id}', amount={self.amount})>"
