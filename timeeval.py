# pylint: disable=C0116,C0115,C0114,C0103,R0903
from datetime import datetime
from itertools import dropwhile, takewhile
from typing import Tuple

from lark import Token, Tree

import calseq
from calseq import Grain, Range


def num(leaf: Token) -> int:
    if leaf.type in ('ORDINAL', 'DAY_OF_MONTH'):
        return calseq.ordinal(leaf.value) or calseq.short_ordinal(leaf.value)
    elif leaf.type in ('YEAR', 'NUMBER'):
        return int(leaf.value)
    raise NotImplementedError(leaf.type)


def seq(node) -> calseq.Seq:
    if isinstance(node, Token):
        if node.type == 'DAY_OF_WEEK':
            return calseq.day_of_week(calseq.weekday_number(node.value))
        elif node.type == 'NAMED_MONTH':
            return calseq.month_of_year(calseq.month_number(node.value))
        elif node.type == 'DAY_OF_MONTH':
            return calseq.nth_of(num(node), calseq.day(), calseq.month())
        raise NotImplementedError(node.type)

    if node.data in ('month_seq', 'weekday_seq', 'monthday_seq',
                     'duration_cycle', 'named_cycle', 'intersect_one'):
        child, = node.children
        return seq(child)
    elif node.data == 'days':
        return calseq.day()
    elif node.data == 'weeks':
        return calseq.week()
    elif node.data == 'months':
        return calseq.month()
    elif node.data == 'quarters':
        return calseq.quarter()
    elif node.data == 'years':
        return calseq.year()
    elif node.data == 'weekends':
        return calseq.weekend()
    elif node.data == 'intersect_chain':
        intersect, cycle = node.children
        return calseq.intersect(seq(intersect), seq(cycle))
    raise NotImplementedError(node.data)


def semi_seq(anchor: calseq.Seq, nth: Tree) -> calseq.Seq:
    if nth.data == 'nth_of':
        _, ordinal, cycle, _ = nth.children
        return calseq.nth_of(num(ordinal), seq(cycle), anchor)
    elif nth.data == 'last_of':
        _, _, cycle, _ = nth.children
        return calseq.last_of(1, seq(cycle), anchor)
    raise NotImplementedError(nth.data)


def calc_duration(reftime: datetime, n_duration: Tree) -> Tuple[int, Grain]:
    if n_duration.data == 'a_duration':
        _, duration = n_duration.children
        count = 1
    elif n_duration.data == 'number_duration':
        number, duration = n_duration.children
        count = num(number)
    else:
        raise NotImplementedError(n_duration.data)
    # a unit's grain comes from a concrete occurrence of it
    return count, calseq.this(seq(duration), reftime).grain


def _shifted_day(reftime, n_duration, anchor, sign):
    n, grain = calc_duration(reftime, n_duration)
    base = calseq.this(calseq.day(), anchor)
    return calseq.shift(base, sign * n, grain)


def eval_range(reftime: datetime, node: Tree) -> Range:
    data, children = node.data, node.children

    if data == 'today':
        return calseq.this(calseq.day(), reftime)
    elif data == 'tomorrow':
        return calseq.next_(calseq.day(), 1, reftime)
    elif data == 'year':
        return calseq.a_year(num(children[0]))
    elif data == 'named_range':
        return calseq.this(seq(children[0]), reftime)
    elif data == 'the_monthday':
        return calseq.this(seq(children[1]), reftime)
    elif data == 'this_cycle':
        return calseq.this(seq(children[1]), reftime)
    elif data == 'next_cycle':
        return calseq.next_(seq(children[2]), 1, reftime)
    elif data == 'cycle_after_next':
        return calseq.next_(seq(children[1]), 2, reftime)

    elif data == 'intersect_year':
        intersect, year = children
        y = calseq.a_year(num(year))
        return calseq.this(seq(intersect), y.start)
    elif data == 'intersect_cycle':
        intersect, cycle = children
        return calseq.this(calseq.intersect(seq(intersect), seq(cycle)), reftime)
    elif data == 'monthday_of_range':
        _, day_of_month, _, inner = children
        outer = eval_range(reftime, inner)
        return calseq.this(seq(day_of_month), outer.start)

    elif data == 'in_duration':
        return _shifted_day(reftime, children[1], reftime, 1)
    elif data == 'duration_ago':
        return _shifted_day(reftime, children[0], reftime, -1)
    elif data in ('duration_after', 'duration_before'):
        n_duration, _, inner = children
        base = eval_range(reftime, inner)
        sign = 1 if data == 'duration_after' else -1
        return _shifted_day(reftime, n_duration, base.start, sign)

    elif data == 'nth_range':
        nth, inner = children
        outer = eval_range(reftime, inner)
        # the selection is made inside the inner range's own grain
        anchor = calseq.from_grain(outer.grain)
        if calseq.this(anchor, outer.start) != outer:
            # weekends are not whole weeks
            anchor = calseq.only(outer)
        return calseq.this(semi_seq(anchor, nth), outer.start)
    elif data == 'nth_duration':
        nth, _, duration = children
        return calseq.this(semi_seq(seq(duration), nth), reftime)

    raise NotImplementedError(data)


def count_between(s: calseq.Seq, lower: datetime, upper: datetime) -> int:
    """Occurrences starting at or after `lower` and strictly before `upper`."""
    occurrences = dropwhile(lambda r: r.start < lower, s(lower))
    return sum(1 for _ in takewhile(lambda r: r.start < upper, occurrences))


def eval_timediff(reftime: datetime, node: Tree) -> int:
    if node.data == 'until':
        cycle, _, target = node.children
        target = eval_range(reftime, target)
        return count_between(seq(cycle), reftime, target.start)
    elif node.data in ('between', 'from_to'):
        cycle, _, first, _, last = node.children
        t0 = eval_range(reftime, first)
        t1 = eval_range(reftime, last)
        return count_between(seq(cycle), t0.start, t1.start)
    raise NotImplementedError(node.data)
