"""RideHub Routers Package"""

from ridehub.routers import (
    surveys,
    reputation,
    ratings,
    meeting_points,
    notifications,
    scheduler,
)

__all__ = [
    "surveys",
    "reputation",
    "ratings",
    "meeting_points",
    "notifications",
    "scheduler",
]
