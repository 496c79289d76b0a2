from __future__ import annotations

import collections
import logging
from datetime import date, datetime, time, timedelta
from enum import Enum
from typing import Optional, Tuple

from .errors import (BadCharacter, BadRepeaterUnit, DayNameTooLong, InvalidDate,
                     InvalidDateComponents, InvalidDay, InvalidMonth,
                     InvalidRepeaterCount, InvalidStartEnd, InvalidTime,
                     InvalidYear, NotAscii, RangeInRange, TooShort)

DAY_NAMES = ("Mon", "Tue", "Wed", "Thu", "Fri", "Sat", "Sun")
TIME_FORMAT = "%H:%M"
RANGE_SEPARATOR = "--"
# `<YYYY-MM-DD>`
MIN_TIMESTAMP_LENGTH = 12

DateTime = collections.namedtuple("DateTime", ("date", "time"))
RepeatResult = collections.namedtuple("RepeatResult", ("timestamp", "repeated"))
TimestampApplies = collections.namedtuple("TimestampApplies", ("kind", "start", "end"))


class RepeaterUnit(Enum):
    DAY = "d"
    WEEK = "w"
    MONTH = "m"
    YEAR = "y"


class Repeater(collections.namedtuple("Repeater", ("count", "unit"))):
    def to_raw(self) -> str:
        return "+{}{}".format(self.count, self.unit.value)


class TimestampWhen(Enum):
    PAST = 1
    PRESENT = 2
    FUTURE = 3


class AppliesKind(Enum):
    """
    How a timestamp covers a given day.
    """
    NONE = 0
    ALL_DAY = 1
    # Starts and ends on this day, both at known times
    BLOCK = 2
    # Starts on this day at a known time
    START = 3
    # Ends on this day at a known time
    END = 4


class _Location(Enum):
    START = 1
    DAY_NAME = 2
    TIME = 3
    REPEATER = 4


def in_range_mod(x: int, end: Optional[int], modulus: int) -> Tuple[bool, int]:
    """
    Checks whether `x`, taken modulo `modulus`, falls within `[0, end]`.

    Without an `end` only exact multiples of `modulus` match. Negative inputs
    never match (the first repeat has not happened yet).
    """
    if x < 0 or (end is not None and end < 0):
        return False, 0

    normalised = x % modulus
    if end is not None:
        return 0 <= normalised <= end, normalised
    return normalised == 0, normalised


def month_index(d: date) -> int:
    return d.year * 12 + (d.month - 1)


def year_ordinal(d: date) -> int:
    # Comparable within a year regardless of leap days
    return (d.month - 1) * 100 + (d.day - 1)


def add_months(d: date, months: int, day: int) -> Optional[date]:
    index = month_index(d) + months
    try:
        return date(index // 12, index % 12 + 1, day)
    except ValueError:
        return None


class Timestamp:
    """
    An Org-style timestamp: a start date (with an optional time), an optional
    end, an optional repeater and the active/inactive bracket style.

    Timestamps are treated as values: every transformation returns a new one.
    """

    def __init__(
        self,
        start: DateTime,
        end: Optional[DateTime] = None,
        repeater: Optional[Repeater] = None,
        active: bool = True,
    ):
        self.start = start
        self.end = end
        self.repeater = repeater
        self.active = active

    def __eq__(self, other):
        if not isinstance(other, Timestamp):
            return False
        return (
            (self.start == other.start)
            and (self.end == other.end)
            and (self.repeater == other.repeater)
            and (self.active == other.active)
        )

    def __hash__(self):
        return hash((self.start, self.end, self.repeater, self.active))

    def __repr__(self):
        return "Timestamp({})".format(self.to_raw())

    @classmethod
    def from_date(cls, d: date, t: Optional[time] = None, active: bool = True) -> Timestamp:
        return cls(DateTime(d, t), active=active)

    @classmethod
    def from_datetime(cls, dt: datetime, active: bool = True) -> Timestamp:
        return cls(DateTime(dt.date(), dt.time().replace(second=0, microsecond=0)), active=active)

    ## Parsing
    @classmethod
    def parse(cls, raw: str) -> Timestamp:
        raw = raw.strip()

        if RANGE_SEPARATOR in raw:
            start_raw, end_raw = raw.split(RANGE_SEPARATOR, 1)
            start = cls.parse(start_raw)
            end = cls.parse(end_raw)
            if start.end is not None or end.end is not None:
                raise RangeInRange(raw)

            return cls(
                start.start,
                end=end.start,
                repeater=start.repeater,
                active=start.active or end.active,
            )

        if not raw.isascii():
            raise NotAscii(raw)
        if len(raw) < MIN_TIMESTAMP_LENGTH:
            raise TooShort(raw)

        if raw.startswith("<") and raw.endswith(">"):
            active = True
        elif raw.startswith("[") and raw.endswith("]"):
            active = False
        else:
            raise InvalidStartEnd(raw)

        inner = raw[1:-1]
        start_date = parse_date(inner[:10])
        remaining = inner[10:]

        day_name = ""
        repeater_count = ""
        repeater = None
        start_time = ""
        end_time = None

        loc = _Location.START
        i = 0
        while i < len(remaining):
            c = remaining[i]
            next_c = remaining[i + 1] if i + 1 < len(remaining) else None

            if loc == _Location.START:
                if c == " ":
                    pass
                elif c.isalpha():
                    loc = _Location.DAY_NAME
                    continue
                elif c.isdigit():
                    loc = _Location.TIME
                    continue
                elif c == "+":
                    loc = _Location.REPEATER
                else:
                    raise BadCharacter(c, raw)

            elif loc == _Location.DAY_NAME:
                if c == " ":
                    if next_c is None:
                        pass
                    elif next_c.isdigit():
                        loc = _Location.TIME
                    elif next_c == "+":
                        loc = _Location.REPEATER
                        i += 1
                    else:
                        raise BadCharacter(next_c, raw)
                elif c.isalpha() and len(day_name) < 3:
                    day_name += c
                elif c.isalpha():
                    raise DayNameTooLong(raw)
                else:
                    raise BadCharacter(c, raw)

            elif loc == _Location.TIME:
                if c == " ":
                    if next_c is None:
                        pass
                    elif next_c == "+":
                        loc = _Location.REPEATER
                    else:
                        raise BadCharacter(next_c, raw)
                elif c.isdigit() or c == ":":
                    if end_time is None:
                        start_time += c
                    else:
                        end_time += c
                elif c == "-" and end_time is None:
                    end_time = ""
                else:
                    raise BadCharacter(c, raw)

            elif loc == _Location.REPEATER:
                if repeater is not None:
                    if c != " ":
                        raise BadCharacter(c, raw)
                elif c.isdigit():
                    repeater_count += c
                elif c.isalpha():
                    if not repeater_count or int(repeater_count) == 0:
                        raise InvalidRepeaterCount(repeater_count)
                    try:
                        unit = RepeaterUnit(c)
                    except ValueError:
                        raise BadRepeaterUnit(c)
                    repeater = Repeater(int(repeater_count), unit)
                elif c != "+":
                    raise BadCharacter(c, raw)

            i += 1

        if loc == _Location.REPEATER and repeater is None:
            raise InvalidRepeaterCount(repeater_count)

        if day_name and day_name.lower() != DAY_NAMES[start_date.weekday()].lower():
            logging.warning(
                "Day name {} does not match {}, it will be rewritten".format(
                    day_name, start_date.isoformat()
                )
            )

        start = DateTime(start_date, parse_time(start_time) if start_time else None)
        end = None
        if end_time is not None:
            end = DateTime(start_date, parse_time(end_time))

        return cls(start, end=end, repeater=repeater, active=active)

    ## Printing
    def to_raw(self) -> str:
        opening, closing = ("<", ">") if self.active else ("[", "]")
        base = dump_datetime(self.start)

        if self.end is not None:
            # `HH:MM-HH:MM` needs a start time to hang the end time from
            if self.end.date == self.start.date and (self.start.time is not None or self.end.time is None):
                if self.end.time is not None:
                    base += "-" + self.end.time.strftime(TIME_FORMAT)
            else:
                if self.repeater is not None:
                    base += " " + self.repeater.to_raw()
                return "{o}{start}{c}{sep}{o}{end}{c}".format(
                    o=opening,
                    c=closing,
                    start=base,
                    sep=RANGE_SEPARATOR,
                    end=dump_datetime(self.end),
                )

        if self.repeater is not None:
            base += " " + self.repeater.to_raw()
        return opening + base + closing

    ## Querying
    def includes_date(self, d: date) -> bool:
        """
        Whether this timestamp, or any of its repeats, covers the given date.
        """
        if self.repeater is None:
            if self.end is not None:
                return self.start.date <= d <= self.end.date
            return d == self.start.date

        start = self.start.date
        end = self.end.date if self.end is not None else None
        unit = self.repeater.unit
        count = self.repeater.count

        if unit in (RepeaterUnit.DAY, RepeaterUnit.WEEK):
            period = count * 7 if unit == RepeaterUnit.WEEK else count
            end_days = (end - start).days if end is not None else None
            return in_range_mod((d - start).days, end_days, period)[0]

        if unit == RepeaterUnit.MONTH:
            offset, day_key = month_index, (lambda x: x.day)
        else:
            offset, day_key = (lambda x: x.year), year_ordinal

        end_units = offset(end) - offset(start) if end is not None else None
        in_range, normalised = in_range_mod(offset(d) - offset(start), end_units, count)
        if not in_range:
            return False

        if normalised == 0:
            if end is None:
                return day_key(d) == day_key(start)
            if end_units == 0:
                return day_key(start) <= day_key(d) <= day_key(end)
            return day_key(start) <= day_key(d)
        if end_units == normalised:
            return day_key(d) <= day_key(end)
        return True

    def when(self, d: date) -> TimestampWhen:
        """
        Where the given date sits relative to this timestamp, ignoring repeats.
        """
        last = self.end.date if self.end is not None else self.start.date
        if d < self.start.date:
            return TimestampWhen.FUTURE
        if last < d:
            return TimestampWhen.PAST
        return TimestampWhen.PRESENT

    def applies(self, d: date) -> TimestampApplies:
        if not self.includes_date(d):
            return TimestampApplies(AppliesKind.NONE, None, None)

        start_time = self.start.time
        if self.end is None:
            return _applies_start(start_time)

        end_time = self.end.time
        if start_time is None and end_time is None:
            return TimestampApplies(AppliesKind.ALL_DAY, None, None)

        if self.start.date == self.end.date:
            if start_time is not None and end_time is not None:
                return TimestampApplies(AppliesKind.BLOCK, start_time, end_time)
            if start_time is not None:
                return TimestampApplies(AppliesKind.START, start_time, None)
            return TimestampApplies(AppliesKind.END, None, end_time)

        # Multi-day range: only the first and last days have times
        if Timestamp(self.start, repeater=self.repeater, active=self.active).includes_date(d):
            return _applies_start(start_time)
        if Timestamp(self.end, repeater=self.repeater, active=self.active).includes_date(d):
            if end_time is not None:
                return TimestampApplies(AppliesKind.END, None, end_time)
        return TimestampApplies(AppliesKind.ALL_DAY, None, None)

    ## Repeats
    def get_next_repeat(self, after: date) -> Optional[date]:
        """
        First date on or after `after` on which this timestamp starts again.

        Returns the start date if `after` precedes it, or None if the timestamp
        has no repeater. Monthly and yearly repeats skip periods in which the
        start day does not exist (for example the 31st, or the 29th of February).
        """
        start = self.start.date
        if after < start:
            return start
        if self.repeater is None:
            return None

        count = self.repeater.count
        unit = self.repeater.unit

        if unit in (RepeaterUnit.DAY, RepeaterUnit.WEEK):
            period = count * 7 if unit == RepeaterUnit.WEEK else count
            days_diff = (after - start).days
            if days_diff % period == 0:
                return after
            return start + timedelta(days=period * (days_diff // period + 1))

        if unit == RepeaterUnit.MONTH:
            months_diff = month_index(after) - month_index(start)
            if months_diff % count == 0:
                if after.day == start.day:
                    return after
                if after.day < start.day:
                    candidate = add_months(start, months_diff, start.day)
                    if candidate is not None:
                        return candidate
            return self._next_existing(months_diff // count + 1, lambda n: add_months(start, n * count, start.day))

        years_diff = after.year - start.year
        if years_diff % count == 0:
            if year_ordinal(after) == year_ordinal(start):
                return after
            if year_ordinal(after) < year_ordinal(start):
                candidate = _replace_year(start, after.year)
                if candidate is not None:
                    return candidate
        return self._next_existing(years_diff // count + 1, lambda n: _replace_year(start, start.year + n * count))

    @staticmethod
    def _next_existing(repeats: int, build):
        while True:
            candidate = build(repeats)
            if candidate is not None:
                return candidate
            repeats += 1

    def next_repeat_after(self, after: date) -> RepeatResult:
        """
        Moves this timestamp to its next repeat on or after `after`, keeping
        times and the distance between start and end.

        The result is tagged `repeated=False` (holding this same timestamp) when
        there is no repeater.
        """
        if self.repeater is None:
            return RepeatResult(self, False)

        next_date = self.get_next_repeat(after)
        end = None
        if self.end is not None:
            end = DateTime(next_date + (self.end.date - self.start.date), self.end.time)

        return RepeatResult(
            Timestamp(
                DateTime(next_date, self.start.time),
                end=end,
                repeater=self.repeater,
                active=self.active,
            ),
            True,
        )

    def next_repeat(self) -> RepeatResult:
        return self.next_repeat_after(self.start.date + timedelta(days=1))


def _applies_start(start_time: Optional[time]) -> TimestampApplies:
    if start_time is not None:
        return TimestampApplies(AppliesKind.START, start_time, None)
    return TimestampApplies(AppliesKind.ALL_DAY, None, None)


def _replace_year(d: date, year: int) -> Optional[date]:
    try:
        return d.replace(year=year)
    except ValueError:
        return None


def parse_date(value: str) -> date:
    parts = value.split("-")
    if len(parts) != 3:
        raise InvalidDate(value)

    year, month, day = parts
    if not year.isdigit():
        raise InvalidYear(year)
    if not month.isdigit():
        raise InvalidMonth(month)
    if not day.isdigit():
        raise InvalidDay(day)

    try:
        return date(int(year), int(month), int(day))
    except ValueError:
        raise InvalidDateComponents(int(year), int(month), int(day))


def parse_time(value: str) -> time:
    try:
        return datetime.strptime(value, TIME_FORMAT).time()
    except ValueError:
        raise InvalidTime(value)


def dump_datetime(dt: DateTime) -> str:
    result = "{} {}".format(dt.date.isoformat(), DAY_NAMES[dt.date.weekday()])
    if dt.time is not None:
        result += " " + dt.time.strftime(TIME_FORMAT)
    return result
