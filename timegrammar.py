# pylint: disable=C0116,C0115,C0114,C0103,R0903
import re
from typing import Dict, List, NamedTuple, Optional, Tuple

import calseq

# Nonterminals allowed to derive the empty string
OPTIONAL_PREFIXES = ('<the>',)

STOP_WORDS = [
    'today', 'tomorrow',
    'days?', 'weeks?', 'months?', 'quarters?', 'years?', 'weekends?',
    'this', 'next', 'of', 'the', '(of|in)', 'before', 'after', 'last',
    'until', 'from', 'to', 'and', 'between', 'in', 'a', 'ago',
]


class GrammarError(Exception):
    pass


class Terminal(NamedTuple):
    symbol: str
    pattern: str

    @property
    def name(self):
        return lark_name(self.symbol).upper()

    def matches(self, lexeme: str) -> bool:
        return re.fullmatch(self.pattern, lexeme) is not None


class Production(NamedTuple):
    lhs: str
    rhs: Tuple[str, ...]
    variant: Optional[str]

    @property
    def signature(self):
        return ' '.join([self.lhs, '->'] + list(self.rhs))


def lark_name(symbol: str) -> str:
    name = re.sub(r'\W+', '_', symbol.strip('<>')).strip('_').lower()
    if not name:
        raise GrammarError(f"Can't name symbol {symbol!r}")
    return name


def _alternatives(words) -> str:
    return '|'.join(sorted(words, key=lambda w: (-len(w), w)))


class Grammar(NamedTuple):
    terminals: Tuple[Terminal, ...]
    nonterminals: Tuple[str, ...]
    productions: Tuple[Production, ...]
    start: str

    def variants(self):
        return {p.variant for p in self.productions if p.variant}

    def classify(self, lexeme: str) -> List[str]:
        return [t.symbol for t in self.terminals if t.matches(lexeme)]

    def to_lark(self) -> str:
        lines = []
        for nt in self.nonterminals:
            alternatives = []
            for p in self.productions:
                if p.lhs != nt:
                    continue
                body = ' '.join(self._lark_symbol(s) for s in p.rhs)
                if p.variant:
                    body = f'{body} -> {p.variant}'.strip()
                alternatives.append(body)
            lines.append(f'{lark_name(nt)}: ' + '\n    | '.join(alternatives))
        lines.append('')
        for t in self.terminals:
            # a terminal spans one whole whitespace-delimited lexeme
            lines.append(f'{t.name}: /(?<!\\S)(?:{t.pattern})(?!\\S)/')
        lines.append('')
        lines.append('%import common.WS')
        lines.append('%ignore WS')
        return '\n'.join(lines) + '\n'

    def _lark_symbol(self, symbol):
        for t in self.terminals:
            if t.symbol == symbol:
                return t.name
        return lark_name(symbol)


class GrammarBuilder:
    def __init__(self, optional=OPTIONAL_PREFIXES):
        self.optional = tuple(optional)
        self.terminals: Dict[str, Terminal] = {}
        self.nonterminals: List[str] = []
        self.productions: List[Production] = []

    def terminal(self, symbol: str, pattern: Optional[str] = None):
        """Declares a terminal. Without a pattern the symbol itself is the
        regular expression a lexeme has to match in full."""
        terminal = Terminal(symbol, symbol if pattern is None else pattern)
        clash = [t for t in self.terminals.values()
                 if t.name == terminal.name and t.symbol != symbol]
        if clash:
            raise GrammarError(f'Terminals {clash[0].symbol!r} and {symbol!r} share a name')
        self.terminals[symbol] = terminal
        return self

    def nonterminal(self, symbol: str):
        if symbol in self.terminals:
            raise GrammarError(f'{symbol!r} is already a terminal')
        if symbol not in self.nonterminals:
            self.nonterminals.append(symbol)
        return self

    def rule(self, lhs: str, rhs, variant: Optional[str] = None):
        production = Production(lhs, tuple(rhs), variant)
        if production not in self.productions:
            self.productions.append(production)
        return self

    def into_grammar(self, start: str) -> Grammar:
        if start not in self.nonterminals:
            raise GrammarError(f'Unknown start symbol {start!r}')
        variants = set()
        for p in self.productions:
            if p.lhs not in self.nonterminals:
                raise GrammarError(f'Undeclared nonterminal {p.lhs!r} in {p.signature!r}')
            for symbol in p.rhs:
                if symbol not in self.terminals and symbol not in self.nonterminals:
                    raise GrammarError(f'Undeclared symbol {symbol!r} in {p.signature!r}')
            if not p.rhs and p.lhs not in self.optional:
                raise GrammarError(f'{p.lhs!r} may not derive the empty string')
            if p.variant:
                if p.variant in variants:
                    raise GrammarError(f'Duplicate variant {p.variant!r}')
                variants.add(p.variant)
        for nt in self.nonterminals:
            if not any(p.lhs == nt for p in self.productions):
                raise GrammarError(f'Nonterminal {nt!r} has no productions')
        return Grammar(
            terminals=tuple(self.terminals.values()),
            nonterminals=tuple(self.nonterminals),
            productions=tuple(self.productions),
            start=start,
        )


def build_grammar() -> Grammar:
    gb = GrammarBuilder()
    for sw in STOP_WORDS:
        gb.terminal(sw)

    ordinal_words = _alternatives(calseq.ORDINALS)
    dom_words = _alternatives(w for w, n in calseq.ORDINALS.items() if 0 < n < 32)
    gb.terminal('<number>', r'[+-]?\d+')
    gb.terminal('<ordinal>', f'{ordinal_words}|{calseq.SHORT_ORDINAL}')
    gb.terminal('<day-of-week>', _alternatives(calseq.WEEKDAYS))
    gb.terminal('<day-of-month>', f'{dom_words}|0*(?:[1-9]|[12]\\d|3[01])(?:st|nd|rd|th)')
    gb.terminal('<named-month>', _alternatives(calseq.MONTHS))
    # 999 < year < 2101
    gb.terminal('<year>', r'0*(?:1\d{3}|20\d{2}|2100)')

    gb.nonterminal('<start>')

    gb.nonterminal('<the>')
    gb.rule('<the>', ['the'])
    gb.rule('<the>', [])

    gb.nonterminal('<named-seq>')
    gb.rule('<named-seq>', ['<named-month>'], 'month_seq')
    gb.rule('<named-seq>', ['<day-of-week>'], 'weekday_seq')
    gb.rule('<named-seq>', ['<day-of-month>'], 'monthday_seq')

    gb.nonterminal('<duration>')
    gb.rule('<duration>', ['days?'], 'days')
    gb.rule('<duration>', ['weeks?'], 'weeks')
    gb.rule('<duration>', ['months?'], 'months')
    gb.rule('<duration>', ['quarters?'], 'quarters')
    gb.rule('<duration>', ['years?'], 'years')

    gb.nonterminal('<cycle>')
    gb.rule('<cycle>', ['weekends?'], 'weekends')
    gb.rule('<cycle>', ['<duration>'], 'duration_cycle')
    gb.rule('<cycle>', ['<named-seq>'], 'named_cycle')

    gb.nonterminal('<range>')
    gb.rule('<range>', ['today'], 'today')
    gb.rule('<range>', ['tomorrow'], 'tomorrow')
    gb.rule('<range>', ['<year>'], 'year')
    gb.rule('<range>', ['<named-seq>'], 'named_range')
    gb.rule('<range>', ['<the>', '<day-of-month>'], 'the_monthday')

    gb.rule('<range>', ['this', '<cycle>'], 'this_cycle')
    gb.rule('<range>', ['<the>', 'next', '<cycle>'], 'next_cycle')
    # no "before last" counterpart
    gb.rule('<range>', ['<the>', '<cycle>', 'after', 'next'], 'cycle_after_next')

    gb.nonterminal('<nth>')
    gb.rule('<nth>', ['<the>', '<ordinal>', '<cycle>', '(of|in)'], 'nth_of')
    gb.rule('<nth>', ['<the>', 'last', '<cycle>', '(of|in)'], 'last_of')
    gb.rule('<range>', ['<nth>', '<range>'], 'nth_range')
    gb.rule('<range>', ['<nth>', '<the>', '<duration>'], 'nth_duration')

    gb.nonterminal('<intersect>')
    gb.rule('<intersect>', ['<cycle>'], 'intersect_one')
    gb.rule('<intersect>', ['<intersect>', '<cycle>'], 'intersect_chain')
    gb.rule('<range>', ['<intersect>', '<cycle>'], 'intersect_cycle')
    gb.rule('<range>', ['<intersect>', '<year>'], 'intersect_year')
    gb.rule('<range>', ['<the>', '<day-of-month>', 'of', '<range>'], 'monthday_of_range')

    gb.nonterminal('<n-duration>')
    gb.rule('<n-duration>', ['a', '<duration>'], 'a_duration')
    gb.rule('<n-duration>', ['<number>', '<duration>'], 'number_duration')
    gb.rule('<range>', ['in', '<n-duration>'], 'in_duration')
    gb.rule('<range>', ['<n-duration>', 'ago'], 'duration_ago')
    gb.rule('<range>', ['<n-duration>', 'after', '<range>'], 'duration_after')
    gb.rule('<range>', ['<n-duration>', 'before', '<range>'], 'duration_before')

    gb.nonterminal('<timediff>')
    gb.rule('<timediff>', ['<cycle>', 'until', '<range>'], 'until')
    gb.rule('<timediff>', ['<cycle>', 'between', '<range>', 'and', '<range>'], 'between')
    gb.rule('<timediff>', ['<cycle>', 'from', '<range>', 'to', '<range>'], 'from_to')

    gb.rule('<start>', ['<range>'], 'range_expr')
    gb.rule('<start>', ['<timediff>'], 'timediff_expr')

    return gb.into_grammar('<start>')
