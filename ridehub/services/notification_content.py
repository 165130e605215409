"""
RideHub Notification Content

Short, friendly notification copy. No emojis.
Multiple variants for the nudges members see most often.
"""

import random
from typing import List


def pick(messages: List[str]) -> str:
    """Pick a random message from a list."""
    return random.choice(messages)


def money(amount: float) -> str:
    """Format a dollar amount the way the payment screens show it."""
    return f"${amount:.2f}"


# =============================================================================
# ATTENDANCE SURVEY - Sent once when a ride's survey opens
# =============================================================================
SURVEY_OPEN_TITLES = [
    "Rate your ride companions",
    "Who made it?",
    "Quick check-in on your ride",
]

SURVEY_OPEN_BODIES = [
    "Your ride to {event} has ended. Please confirm who showed up.",
    "Tell us who was in the car for {event}. It takes ten seconds.",
    "Help keep ratings honest: mark who joined the ride to {event}.",
]


# =============================================================================
# ATTENDANCE SURVEY REMINDER - Sent once to non-responders
# =============================================================================
SURVEY_REMINDER_TITLES = [
    "Reminder: rate your ride companions",
    "Still waiting on your answer",
]

SURVEY_REMINDER_BODIES = [
    "Please confirm who showed up for {event}. Your response is needed!",
    "The attendance survey for {event} closes soon. Who was there?",
]


# =============================================================================
# PAYMENT SHARE - Sent to confirmed attendees when a payment already exists
# =============================================================================
PAYMENT_SHARE_TITLE = "Payment Request"
PAYMENT_SHARE_BODY = (
    "{payer} paid {amount}. Your share is {share}. Please pay via Venmo."
)


# =============================================================================
# MEETING POINT TIE
# =============================================================================
MEETING_POINT_TIE_TITLE = "Meeting point is tied"
MEETING_POINT_TIE_BODY = (
    "{options} are tied. Cast a vote to break the tie."
)
