"""
Trip-related enumerations.
"""

import enum


class TripStatus(str, enum.Enum):
    """Trip status enumeration."""
    ONGOING = "ongoing"  # Driver is on the road, points are being appended
    COMPLETED = "completed"  # Terminal, summary fields populated
