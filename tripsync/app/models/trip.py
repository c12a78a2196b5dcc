"""
Trip database model.

A trip belongs to one user. Stops are kept inline as an ordered JSON list
in visit order: [{"location": {"lat": .., "lng": ..}, "name": .., "stopover": true}].
"""

from sqlalchemy import Column, Integer, String, ForeignKey, DateTime, Date, Enum, JSON
from sqlalchemy.sql import func
from tripsync.app.db.session import Base
from tripsync.app.models.trip_enums import TripStatus, TripType


class Trip(Base):
    """
    Trip model.
    """
    __tablename__ = "trips"

    id = Column(Integer, primary_key=True, index=True, autoincrement=True)

    # Ownership - Trip belongs to the user who created it
    user_id = Column(Integer, ForeignKey('users.id'), nullable=False, index=True)

    origin = Column(String(500), nullable=False)
    destination = Column(String(500), nullable=False)
    start_date = Column(Date, nullable=False)
    start_time = Column(String(20), nullable=False)

    # Vehicle registration number or a free-form custom vehicle
    vehicle = Column(String(100), nullable=True)
    custom_vehicle = Column(JSON, nullable=True)

    travelers = Column(Integer, default=1, nullable=False)
    trip_type = Column(Enum(TripType), default=TripType.ONE_WAY, nullable=False)
    status = Column(Enum(TripStatus), default=TripStatus.PLANNED, nullable=False, index=True)

    stops = Column(JSON, default=list, nullable=False)

    # Timestamps
    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False, index=True)
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now(), nullable=False)

    def __repr__(self):
        return f"<Trip(id={self.id}, origin='{self.origin}', destination='{self.destination}', status='{self.status.value}')>"
