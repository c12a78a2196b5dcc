"""
User database model.

Users sign up with a phone number and carry two vehicle collections.
Vehicle lists are stored as JSON documents: [{"id": ..., "regNumber": ...}].
"""

from sqlalchemy import Column, Integer, String, Boolean, DateTime, JSON
from sqlalchemy.sql import func
from tripsync.app.db.session import Base


class User(Base):
    """
    User model for authentication and profile data.
    """
    __tablename__ = "users"

    id = Column(Integer, primary_key=True, index=True, autoincrement=True)
    phone = Column(String(20), unique=True, index=True, nullable=False)
    name = Column(String(100), nullable=False)
    hashed_password = Column(String(255), nullable=False)
    is_active = Column(Boolean, default=True, nullable=False)

    # Vehicle collections (ids unique within each list)
    two_wheelers = Column(JSON, default=list, nullable=False)
    four_wheelers = Column(JSON, default=list, nullable=False)

    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now(), nullable=False)

    def __repr__(self):
        return f"<User(id={self.id}, phone='{self.phone}', name='{self.name}')>"
