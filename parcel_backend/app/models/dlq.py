"""
Dead Letter Queue (DLQ) Model.

Stores side-channel writes (tracking log appends) that failed, for replay.
"""

from sqlalchemy import Column, Integer, String, Text, DateTime, JSON, Enum
from parcel_backend.app.db.session import Base
from parcel_backend.app.db.defaults import generate_id, utcnow
import enum


class DLQStatus(str, enum.Enum):
    FAILED = "FAILED"
    RETRYING = "RETRYING"
    PROCESSED = "PROCESSED"
    ARCHIVED = "ARCHIVED"  # Gave up


class DeadLetterQueue(Base):
    """
    Dead Letter Queue table.
    Captures failed side-channel writes.
    """
    __tablename__ = "dead_letter_queue"
    
    id = Column(String(32), primary_key=True, default=generate_id)
    
    task_name = Column(String(100), nullable=False, index=True)
    error_message = Column(Text, nullable=False)
    payload = Column(JSON, nullable=True)  # Task arguments
    
    status = Column(Enum(DLQStatus), default=DLQStatus.FAILED, nullable=False, index=True)
    retry_count = Column(Integer, default=0, nullable=False)
    
    created_at = Column(DateTime(timezone=True), default=utcnow, nullable=False)
    last_retry_at = Column(DateTime(timezone=True), nullable=True)
    
    def __repr__(self):
        return f"<DLQ(id={self.id}, task='{self.task_name}', status='{self.status}')>"
