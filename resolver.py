# pylint: disable=C0116,C0115,C0114,C0103,R0903
import logging
import re
from datetime import datetime, timedelta
from typing import List, NamedTuple, Tuple, Union

from lark import Lark, Tree
from lark.exceptions import UnexpectedInput
from lark.visitors import CollapseAmbiguities

import calseq
import timeeval
import timegrammar
from calseq import Grain, Range

logger = logging.getLogger(__name__)

DELIMITERS = re.compile(r'[\s,]+')


class Count(NamedTuple):
    value: int


class Error(NamedTuple):
    message: str


Result = Union[Range, Count, Error]


def tokenize(text: str) -> List[str]:
    return [lexeme for lexeme in DELIMITERS.split(text.lower()) if lexeme]


def _day(dt: datetime) -> str:
    return f'{dt:%a, %b} {dt.day:>2} {dt.year}'


def describe(result: Result) -> str:
    if isinstance(result, Range):
        if result.grain == Grain.DAY:
            return _day(result.start)
        last = result.end - timedelta(microseconds=1)
        return f'{result.grain.value}: {_day(result.start)} - {_day(last)}'
    elif isinstance(result, Count):
        return str(result.value)
    elif isinstance(result, Error):
        return result.message
    raise NotImplementedError(type(result))


class TimeResolver:
    def __init__(self):
        self.grammar = timegrammar.build_grammar()
        self.parser = Lark(
            self.grammar.to_lark(),
            start=timegrammar.lark_name(self.grammar.start),
            parser='earley',
            lexer='dynamic',
            ambiguity='explicit',
        )

    def tokens(self, text: str) -> List[Tuple[str, List[str]]]:
        return [(lexeme, self.grammar.classify(lexeme)) for lexeme in tokenize(text)]

    def parse(self, text: str) -> List[Tree]:
        """All derivations of `text`. Raises lark's UnexpectedInput when the
        text is not a time expression."""
        tree = self.parser.parse(' '.join(tokenize(text)))
        return CollapseAmbiguities().transform(tree)

    def evaluate(self, reftime: datetime, text: str) -> Result:
        try:
            trees = self.parse(text)
        except UnexpectedInput as e:
            logger.debug('Failed to parse %r: %s', text, e)
            return Error('parse error')

        if len(trees) > 1:
            for tree in trees:
                logger.debug('Derivation of %r:\n%s', text, tree.pretty())
            return Error('ambiguous parse')

        expr, = trees
        node, = expr.children
        try:
            if expr.data == 'range_expr':
                return timeeval.eval_range(reftime, node)
            elif expr.data == 'timediff_expr':
                return Count(timeeval.eval_timediff(reftime, node))
        except calseq.CalendarError as e:
            logger.debug('No time for %r at %s: %s', text, reftime, e)
            return Error(str(e))
        raise NotImplementedError(expr.data)
