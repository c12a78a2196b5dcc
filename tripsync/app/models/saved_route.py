"""
Saved route database model.

(user_id, origin, destination) identifies a saved route; the client toggles
routes on and off by that pair.
"""

from sqlalchemy import Column, Integer, String, ForeignKey, DateTime, UniqueConstraint
from sqlalchemy.sql import func
from tripsync.app.db.session import Base


class SavedRoute(Base):
    """
    Saved route model.
    """
    __tablename__ = "saved_routes"
    __table_args__ = (
        UniqueConstraint("user_id", "origin", "destination", name="uq_saved_route_pair"),
    )

    id = Column(Integer, primary_key=True, index=True, autoincrement=True)
    user_id = Column(Integer, ForeignKey('users.id'), nullable=False, index=True)

    origin = Column(String(500), nullable=False)
    destination = Column(String(500), nullable=False)
    stay = Column(String(500), nullable=True)

    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)

    def __repr__(self):
        return f"<SavedRoute(id={self.id}, origin='{self.origin}', destination='{self.destination}')>"
