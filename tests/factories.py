"""
Test data builders.
"""

from datetime import date

from agenda.models import Appointment

FRIDAY = date(2025, 8, 8)
SATURDAY = date(2025, 8, 9)
SUNDAY = date(2025, 8, 10)
MONDAY = date(2025, 8, 11)
TUESDAY = date(2025, 8, 12)
WEDNESDAY = date(2025, 8, 13)
THURSDAY = date(2025, 8, 14)


def make_appointment(id, day, start_time, duration, **overrides):
    """Unsaved appointment for pure conflict checks."""
    start_h, start_m = (int(part) for part in start_time.split(":"))
    end = start_h * 60 + start_m + duration
    values = dict(
        id=id,
        title=f"Appointment {id}",
        date=day,
        start_time=start_time,
        duration_minutes=duration,
        end_time=f"{end // 60:02d}:{end % 60:02d}",
        status="scheduled",
        is_recurring_template=False,
    )
    values.update(overrides)
    return Appointment(**values)


def appointment_fields(day, start_time="09:00", duration=60, **extra):
    fields = {
        "title": f"Meeting {day.isoformat()} {start_time}",
        "date": day.isoformat(),
        "start_time": start_time,
        "duration_minutes": duration,
    }
    fields.update(extra)
    return fields
