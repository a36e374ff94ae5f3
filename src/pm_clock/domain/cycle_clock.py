"""Market trading-cycle clock.

Every market trades in a daily cycle that opens at a fixed hour (default 16:00)
in a fixed bias timezone (default UTC+5) and closes at the market's own draw
time. Draw times earlier than the opening hour fall after midnight: they belong
to the next calendar day but the same trading cycle.

    cycle_start = most recent H:00 at or before now
    cycle_end   = cycle_start.date + draw_time  (+1 day if draw hour < H)
    open        iff cycle_start <= now < cycle_end

All inputs and outputs are UTC instants; the bias is applied only here.
Pure and stateless.
"""

import re
from dataclasses import dataclass
from datetime import datetime, time, timedelta, timezone

from src.pm_common.datetime_utils import ensure_utc

DEFAULT_START_HOUR = 16
DEFAULT_UTC_OFFSET_HOURS = 5

_DRAW_TIME_RE = re.compile(r"^(\d{1,2}):(\d{2})$")


def parse_draw_time(draw_time: str) -> time:
    """Parse a wall-clock 'HH:MM' string."""
    match = _DRAW_TIME_RE.match(draw_time.strip())
    if match is None:
        raise ValueError(f"Draw time must be HH:MM, got {draw_time!r}")
    hour, minute = int(match.group(1)), int(match.group(2))
    if hour > 23 or minute > 59:
        raise ValueError(f"Draw time out of range: {draw_time!r}")
    return time(hour, minute)


def validate_draw_time(draw_time: str, start_hour: int = DEFAULT_START_HOUR) -> time:
    """Market configuration check: a draw in the opening hour itself is degenerate."""
    parsed = parse_draw_time(draw_time)
    if parsed.hour == start_hour:
        raise ValueError(
            f"Draw time {draw_time} falls in the cycle opening hour {start_hour:02d}:00"
        )
    return parsed


@dataclass(frozen=True)
class CycleWindow:
    cycle_start: datetime
    cycle_end: datetime

    def contains(self, now: datetime) -> bool:
        return self.cycle_start <= ensure_utc(now) < self.cycle_end


@dataclass(frozen=True)
class MarketCycleClock:
    start_hour: int = DEFAULT_START_HOUR
    utc_offset_hours: int = DEFAULT_UTC_OFFSET_HOURS

    def __post_init__(self) -> None:
        if not (0 <= self.start_hour <= 23):
            raise ValueError(f"start_hour must be 0-23, got {self.start_hour}")

    @property
    def bias(self) -> timezone:
        return timezone(timedelta(hours=self.utc_offset_hours))

    def window(self, draw_time: str | time, now: datetime) -> CycleWindow:
        draw = parse_draw_time(draw_time) if isinstance(draw_time, str) else draw_time
        local_now = ensure_utc(now).astimezone(self.bias)

        start = local_now.replace(hour=self.start_hour, minute=0, second=0, microsecond=0)
        if local_now.hour < self.start_hour:
            start -= timedelta(days=1)

        end = datetime.combine(start.date(), draw, tzinfo=self.bias)
        if draw.hour < self.start_hour:
            end += timedelta(days=1)

        return CycleWindow(
            cycle_start=start.astimezone(timezone.utc),
            cycle_end=end.astimezone(timezone.utc),
        )

    def is_open(self, draw_time: str | time, now: datetime) -> bool:
        return self.window(draw_time, now).contains(now)

    def seconds_until_close(self, draw_time: str | time, now: datetime) -> int:
        """Whole seconds left in the current cycle, 0 when the market is closed."""
        window = self.window(draw_time, now)
        if not window.contains(now):
            return 0
        return int((window.cycle_end - ensure_utc(now)).total_seconds())

    def next_cycle_start(self, now: datetime) -> datetime:
        """The next opening instant strictly after ``now``."""
        local_now = ensure_utc(now).astimezone(self.bias)
        candidate = local_now.replace(
            hour=self.start_hour, minute=0, second=0, microsecond=0
        )
        if candidate <= local_now:
            candidate += timedelta(days=1)
        return candidate.astimezone(timezone.utc)
