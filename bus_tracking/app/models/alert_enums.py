"""
Alert-related enumerations.
"""

import enum


class AlertType(str, enum.Enum):
    OVERSPEED = "overspeed"
    OUT_OF_ROUTE = "out_of_route"
    OTHER = "other"


class AlertSeverity(str, enum.Enum):
    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"
