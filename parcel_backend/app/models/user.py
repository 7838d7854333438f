"""
User database model.

Users are created on first sign-in and identified by their verified email.
"""

from sqlalchemy import Column, String, DateTime, Enum
from parcel_backend.app.db.session import Base
from parcel_backend.app.db.defaults import generate_id, utcnow
from parcel_backend.app.models.enums import UserRole, enum_values


class User(Base):
    """
    User model.
    
    The role drives access control; it is only ever changed by an admin
    or by approving the user's rider application.
    """
    __tablename__ = "users"
    
    id = Column(String(32), primary_key=True, default=generate_id)
    email = Column(String(255), unique=True, index=True, nullable=False)
    name = Column(String(255), nullable=True)
    photo_url = Column(String(1024), nullable=True)
    
    role = Column(
        Enum(UserRole, name="user_role", values_callable=enum_values),
        default=UserRole.USER,
        nullable=False,
    )
    
    created_at = Column(DateTime(timezone=True), default=utcnow, nullable=False, index=True)
    last_login_at = Column(DateTime(timezone=True), default=utcnow, nullable=True)
    
    def __repr__(self):
        return f"<User(id={self.id}, email='{self.email}', role='{self.role.value}')>"
