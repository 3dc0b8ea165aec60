"""Status enum for maintenance urgency levels."""

from enum import Enum


class Status(Enum):
    """Prediction status categories. Lower value = more urgent."""

    OVERDUE = 1
    DUE_SOON = 2  # Due within the reminder window
    OK = 3
