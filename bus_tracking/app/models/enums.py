"""
User roles enumeration.

Defines the role types known to the tracking backend.
"""

import enum


class UserRole(str, enum.Enum):
    """
    User role enumeration.
    
    Roles:
        ADMIN: Operator watching the live map, trips and alerts
        DRIVER: Bus driver submitting GPS samples and running trips
    """
    ADMIN = "ADMIN"
    DRIVER = "DRIVER"
