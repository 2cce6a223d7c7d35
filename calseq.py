# pylint: disable=C0116,C0115,C0114,C0103,R0903
import calendar
import enum
import re
from datetime import MAXYEAR, datetime, timedelta
from itertools import islice, takewhile
from typing import Callable, Iterator, NamedTuple, Optional

# The Gregorian calendar repeats itself every 400 years, a pattern with no
# occurrence for longer than that never occurs again.
HORIZON_YEARS = 400

ONE_DAY = timedelta(days=1)


class CalendarError(ValueError):
    pass


class Grain(enum.Enum):
    DAY = 'Day'
    WEEK = 'Week'
    MONTH = 'Month'
    QUARTER = 'Quarter'
    YEAR = 'Year'


class Range(NamedTuple):
    start: datetime
    end: datetime
    grain: Grain


Seq = Callable[[datetime], Iterator[Range]]


WEEKDAYS = {
    'monday': 0, 'mon': 0,
    'tuesday': 1, 'tues': 1, 'tue': 1,
    'wednesday': 2, 'wed': 2,
    'thursday': 3, 'thurs': 3, 'thur': 3, 'thu': 3,
    'friday': 4, 'fri': 4,
    'saturday': 5, 'sat': 5,
    'sunday': 6, 'sun': 6,
}

MONTHS = {
    'january': 1, 'jan': 1,
    'february': 2, 'feb': 2,
    'march': 3, 'mar': 3,
    'april': 4, 'apr': 4,
    'may': 5,
    'june': 6, 'jun': 6,
    'july': 7, 'jul': 7,
    'august': 8, 'aug': 8,
    'september': 9, 'sept': 9, 'sep': 9,
    'october': 10, 'oct': 10,
    'november': 11, 'nov': 11,
    'december': 12, 'dec': 12,
}

_UNIT_ORDINALS = ['first', 'second', 'third', 'fourth', 'fifth',
                  'sixth', 'seventh', 'eighth', 'ninth']
_TEEN_ORDINALS = ['tenth', 'eleventh', 'twelfth', 'thirteenth',
                  'fourteenth', 'fifteenth', 'sixteenth', 'seventeenth',
                  'eighteenth', 'nineteenth', 'twentieth']

ORDINALS = dict(
    [(word, i + 1) for i, word in enumerate(_UNIT_ORDINALS + _TEEN_ORDINALS)]
    + [(f'twenty-{word}', 21 + i) for i, word in enumerate(_UNIT_ORDINALS)]
    + [('thirtieth', 30), ('thirty-first', 31)]
)

SHORT_ORDINAL = r'0*[1-9]\d*(?:st|nd|rd|th)'


def ordinal(word: str) -> Optional[int]:
    return ORDINALS.get(word)


def short_ordinal(word: str) -> Optional[int]:
    if re.fullmatch(SHORT_ORDINAL, word):
        return int(word[:-2])
    return None


def weekday_number(word: str) -> Optional[int]:
    return WEEKDAYS.get(word)


def month_number(word: str) -> Optional[int]:
    return MONTHS.get(word)


def midnight(dt: datetime) -> datetime:
    return dt.replace(hour=0, minute=0, second=0, microsecond=0)


def add_months(dt: datetime, months: int) -> datetime:
    index = dt.year * 12 + dt.month - 1 + months
    y, m0 = divmod(index, 12)
    if not 1 <= y <= MAXYEAR:
        raise CalendarError('date out of range')
    dom = min(dt.day, calendar.monthrange(y, m0 + 1)[1])
    return dt.replace(year=y, month=m0 + 1, day=dom)


def _horizon(since: datetime) -> datetime:
    y = since.year + HORIZON_YEARS + 1
    return datetime.max if y > MAXYEAR else datetime(y, 1, 1)


def _stepping(first: datetime, step: Callable[[datetime], datetime]) -> Iterator[datetime]:
    start = first
    while True:
        yield start
        try:
            start = step(start)
        except (OverflowError, CalendarError):
            return


def _periods(first, step, grain) -> Iterator[Range]:
    starts = _stepping(first, step)
    start = next(starts)
    # a period whose end is past the calendar is never yielded
    for end in starts:
        yield Range(start, end, grain)
        start = end


def day() -> Seq:
    def seq(reftime):
        return _periods(midnight(reftime), lambda d: d + ONE_DAY, Grain.DAY)
    return seq


def week() -> Seq:
    def seq(reftime):
        d0 = midnight(reftime)
        try:
            # Sunday as start
            first = d0 - timedelta(days=(d0.weekday() + 1) % 7)
        except OverflowError as e:
            raise CalendarError('date out of range') from e
        return _periods(first, lambda d: d + timedelta(days=7), Grain.WEEK)
    return seq


def month() -> Seq:
    def seq(reftime):
        first = midnight(reftime).replace(day=1)
        return _periods(first, lambda d: add_months(d, 1), Grain.MONTH)
    return seq


def quarter() -> Seq:
    def seq(reftime):
        first = midnight(reftime).replace(day=1, month=(reftime.month - 1) // 3 * 3 + 1)
        return _periods(first, lambda d: add_months(d, 3), Grain.QUARTER)
    return seq


def year() -> Seq:
    def seq(reftime):
        first = midnight(reftime).replace(day=1, month=1)
        return _periods(first, lambda d: add_months(d, 12), Grain.YEAR)
    return seq


def weekend() -> Seq:
    def seq(reftime):
        d0 = midnight(reftime)
        try:
            if d0.weekday() == 6:
                saturday = d0 - ONE_DAY
            else:
                saturday = d0 + timedelta(days=5 - d0.weekday())
        except OverflowError as e:
            raise CalendarError('date out of range') from e
        return (Range(sat, sat + 2 * ONE_DAY, Grain.WEEK)
                for sat in _stepping(saturday, lambda d: d + timedelta(days=7)))
    return seq


def only(r: Range) -> Seq:
    def seq(reftime): # pylint: disable=W0613
        return iter([r])
    return seq


def day_of_week(dow: int) -> Seq:
    def seq(reftime):
        return (r for r in day()(reftime) if r.start.weekday() == dow)
    return seq


def month_of_year(moy: int) -> Seq:
    def seq(reftime):
        return (r for r in month()(reftime) if r.start.month == moy)
    return seq


def _within(inner: Seq, period: Range) -> Iterator[Range]:
    return takewhile(lambda r: r.start < period.end, inner(period.start))


def nth_of(n: int, inner: Seq, outer: Seq) -> Seq:
    """Nth occurrence of `inner` inside every occurrence of `outer`, counting
    from the inner occurrence that contains the outer one's start."""
    def seq(reftime):
        limit = _horizon(reftime)
        for period in outer(reftime):
            if period.start >= limit:
                return
            found = next(islice(_within(inner, period), n - 1, None), None)
            if found is not None:
                yield found
                limit = _horizon(found.start)
    return seq


def last_of(n: int, inner: Seq, outer: Seq) -> Seq:
    def seq(reftime):
        limit = _horizon(reftime)
        for period in outer(reftime):
            if period.start >= limit:
                return
            occurrences = list(_within(inner, period))
            if len(occurrences) >= n:
                yield occurrences[-n]
                limit = _horizon(occurrences[-n].start)
    return seq


def intersect(a: Seq, b: Seq) -> Seq:
    """Occurrences of one sequence lying within an occurrence of the other."""
    def seq(reftime):
        limit = _horizon(reftime)
        astream, bstream = a(reftime), b(reftime)
        x, y = next(astream, None), next(bstream, None)
        while x is not None and y is not None:
            if max(x.start, y.start) >= limit:
                return
            if x.end <= y.start:
                x = next(astream, None)
            elif y.end <= x.start:
                y = next(bstream, None)
            elif y.start <= x.start and x.end <= y.end:
                yield x
                limit = _horizon(x.start)
                x = next(astream, None)
            elif x.start <= y.start and y.end <= x.end:
                yield y
                limit = _horizon(y.start)
                y = next(bstream, None)
            elif x.end <= y.end:
                x = next(astream, None)
            else:
                y = next(bstream, None)
    return seq


def this(s: Seq, reftime: datetime) -> Range:
    r = next(s(reftime), None)
    if r is None:
        raise CalendarError('no such time')
    return r


def next_(s: Seq, n: int, reftime: datetime) -> Range:
    upcoming = (r for r in s(reftime) if r.start > reftime)
    r = next(islice(upcoming, n - 1, None), None)
    if r is None:
        raise CalendarError('no such time')
    return r


def shift(r: Range, n: int, grain: Grain) -> Range:
    try:
        if grain == Grain.DAY:
            start = r.start + timedelta(days=n)
        elif grain == Grain.WEEK:
            start = r.start + timedelta(days=7 * n)
        elif grain == Grain.MONTH:
            start = add_months(r.start, n)
        elif grain == Grain.QUARTER:
            start = add_months(r.start, 3 * n)
        elif grain == Grain.YEAR:
            start = add_months(r.start, 12 * n)
        else:
            raise NotImplementedError(grain)
        return Range(start, start + (r.end - r.start), r.grain)
    except OverflowError as e:
        raise CalendarError('date out of range') from e


def a_year(y: int) -> Range:
    return Range(datetime(y, 1, 1), datetime(y + 1, 1, 1), Grain.YEAR)


def from_grain(grain: Grain) -> Seq:
    return {
        Grain.DAY: day,
        Grain.WEEK: week,
        Grain.MONTH: month,
        Grain.QUARTER: quarter,
        Grain.YEAR: year,
    }[grain]()
