"""
Enumeration types used across ORM models.

This module centralizes all enum definitions to ensure consistency
across the application and make them easy to import. Values are stored as
plain strings in the database; the enums define the accepted vocabulary.
"""

import enum


class RuleType(str, enum.Enum):
    """
    Kinds of work schedule blocks.

    Attributes:
        WORK: Regular working block
        OVERTIME: After-hours block, bookable only with consent
        LUNCH: Lunch break
        BREAK: Short break
        UNAVAILABLE: Blocked time
    """
    WORK = "work"
    OVERTIME = "overtime"
    LUNCH = "lunch"
    BREAK = "break"
    UNAVAILABLE = "unavailable"


class AppointmentStatus(str, enum.Enum):
    """
    Lifecycle status of an appointment.

    Attributes:
        SCHEDULED: Placed on the calendar
        COMPLETED: Done (manually, by timer, or auto-completed)
        DELAYED: Past its slot without completion
        RESCHEDULED: Moved by the user
        CANCELLED: Cancelled; never occupies a slot
    """
    SCHEDULED = "scheduled"
    COMPLETED = "completed"
    DELAYED = "delayed"
    RESCHEDULED = "rescheduled"
    CANCELLED = "cancelled"


class TimerState(str, enum.Enum):
    """State of the per-appointment work timer."""
    STOPPED = "stopped"
    RUNNING = "running"
    PAUSED = "paused"


class Violation(str, enum.Enum):
    """
    Why an appointment falls outside regular working hours.

    Attributes:
        WEEKEND: Saturday or Sunday
        LUNCH_BREAK: Overlaps a lunch block
        AFTER_HOURS: Inside an overtime-eligible (encaixe) block
        OUTSIDE_HOURS: Break, unavailable or uncovered time
    """
    WEEKEND = "weekend"
    LUNCH_BREAK = "lunch_break"
    AFTER_HOURS = "after_hours"
    OUTSIDE_HOURS = "outside_hours"


class RecurrencePattern(str, enum.Enum):
    """Recurrence units."""
    DAILY = "daily"
    WEEKLY = "weekly"
    MONTHLY = "monthly"
    YEARLY = "yearly"
