"""
Trip-related enumerations.
"""

import enum


class TripType(str, enum.Enum):
    """Trip type enumeration."""
    ONE_WAY = "one-way"
    ROUND_TRIP = "round-trip"


class TripStatus(str, enum.Enum):
    """Trip status enumeration."""
    PLANNED = "planned"  # Saved, not started
    ACTIVE = "active"  # Navigation in progress
    COMPLETED = "completed"  # Finished; only status may change afterwards
    CANCELLED = "cancelled"  # Trip cancelled
