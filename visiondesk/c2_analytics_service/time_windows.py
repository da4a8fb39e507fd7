"""Look-back windows used by analytics queries."""

from datetime import datetime, timedelta
from typing import Optional, Union

from visiondesk.c1_status_enums import TimeFrame
from visiondesk.core.errors import ValidationError


def parse_time_frame(value: Optional[Union[str, TimeFrame]], default: str = TimeFrame.THIRTY_DAYS.value) -> TimeFrame:
    """Turn ``7d``/``30d``/``90d``/``1y`` into a ``TimeFrame``; ``None`` means ``default``."""
    if value is None or value == "":
        value = default
    try:
        return TimeFrame(getattr(value, "value", value))
    except ValueError:
        allowed = ", ".join(tf.value for tf in TimeFrame)
        raise ValidationError(
            f"Invalid time frame: {value}",
            errors=[{"field": "timeFrame", "message": f"Must be one of: {allowed}"}],
        )


def window_start(time_frame: TimeFrame, now: Optional[datetime] = None) -> datetime:
    """Inclusive lower bound of the window ending at ``now``."""
    now = now or datetime.utcnow()
    return now - timedelta(days=time_frame.days)
