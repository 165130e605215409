"""Ride Group Model - Membership status values read from ``ride_members``."""

from enum import Enum


class MemberStatus(str, Enum):
    """Status of a membership row. Only joined members take part in surveys."""
    JOINED = "joined"
    INVITED = "invited"
