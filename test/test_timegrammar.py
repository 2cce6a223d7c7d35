# pylint: disable=C0116,C0115,C0114,C0103,R0903
import pytest
from lark import Tree
from lark.exceptions import UnexpectedInput

import resolver
import timegrammar
from timegrammar import GrammarBuilder, GrammarError

RESOLVER = resolver.TimeResolver()


def test_build_grammar_is_deterministic():
    assert timegrammar.build_grammar() == timegrammar.build_grammar()
    assert timegrammar.build_grammar().to_lark() == timegrammar.build_grammar().to_lark()

def test_undeclared_symbol():
    gb = GrammarBuilder()
    gb.nonterminal('<range>')
    gb.rule('<range>', ['today'])
    with pytest.raises(GrammarError):
        gb.into_grammar('<range>')

def test_undeclared_lhs():
    gb = GrammarBuilder()
    gb.terminal('today')
    gb.nonterminal('<range>')
    gb.rule('<range>', ['today'])
    gb.rule('<when>', ['<range>'])
    with pytest.raises(GrammarError):
        gb.into_grammar('<range>')

def test_unknown_start_symbol():
    gb = GrammarBuilder()
    gb.terminal('today')
    gb.nonterminal('<range>')
    gb.rule('<range>', ['today'])
    with pytest.raises(GrammarError):
        gb.into_grammar('<start>')

def test_empty_production_only_for_optional_prefix():
    gb = GrammarBuilder()
    gb.terminal('the')
    gb.nonterminal('<the>')
    gb.rule('<the>', [])
    gb.rule('<the>', ['the'])
    gb.nonterminal('<range>')
    gb.rule('<range>', [])
    with pytest.raises(GrammarError):
        gb.into_grammar('<the>')

def test_nonterminal_without_productions():
    gb = GrammarBuilder()
    gb.terminal('today')
    gb.nonterminal('<range>')
    gb.nonterminal('<cycle>')
    gb.rule('<range>', ['today'])
    with pytest.raises(GrammarError):
        gb.into_grammar('<range>')

def test_duplicate_variant():
    gb = GrammarBuilder()
    gb.terminal('today')
    gb.terminal('tomorrow')
    gb.nonterminal('<range>')
    gb.rule('<range>', ['today'], 'day')
    gb.rule('<range>', ['tomorrow'], 'day')
    with pytest.raises(GrammarError):
        gb.into_grammar('<range>')

def test_terminal_names_must_not_clash():
    gb = GrammarBuilder()
    gb.terminal('weeks?')
    with pytest.raises(GrammarError):
        gb.terminal('weeks')

def test_repeated_declarations_are_idempotent():
    gb = GrammarBuilder()
    gb.terminal('today')
    gb.nonterminal('<range>')
    gb.nonterminal('<range>')
    gb.rule('<range>', ['today'], 'today')
    gb.rule('<range>', ['today'], 'today')
    grammar = gb.into_grammar('<range>')
    assert len(grammar.nonterminals) == 1
    assert len(grammar.productions) == 1
    assert grammar.productions[0].signature == '<range> -> today'

def test_lark_rendering():
    gb = GrammarBuilder()
    gb.terminal('the')
    gb.terminal('days?')
    gb.nonterminal('<the>')
    gb.rule('<the>', ['the'])
    gb.rule('<the>', [])
    gb.nonterminal('<n-duration>')
    gb.rule('<n-duration>', ['<the>', 'days?'], 'the_days')
    text = gb.into_grammar('<n-duration>').to_lark()
    assert 'the: THE\n    | \n' in text
    assert 'n_duration: the DAYS -> the_days\n' in text
    assert 'DAYS: /(?<!\\S)(?:days?)(?!\\S)/\n' in text

def test_classify():
    grammar = timegrammar.build_grammar()
    assert grammar.classify('12th') == ['<ordinal>', '<day-of-month>']
    assert grammar.classify('thirty-first') == ['<ordinal>', '<day-of-month>']
    assert grammar.classify('32nd') == ['<ordinal>']
    assert grammar.classify('2002') == ['<number>', '<year>']
    assert grammar.classify('999') == ['<number>']
    assert grammar.classify('2101') == ['<number>']
    assert grammar.classify('in') == ['(of|in)', 'in']
    assert grammar.classify('weeks') == ['weeks?']
    assert grammar.classify('may') == ['<named-month>']
    assert grammar.classify('monday') == ['<day-of-week>']
    assert grammar.classify('blursday') == []

def test_parse_next_monday():
    trees = RESOLVER.parse('next monday')
    assert len(trees) == 1

    expr, = trees
    assert expr.data == 'range_expr'
    next_cycle, = expr.children
    assert next_cycle.data == 'next_cycle'

    the, next_word, cycle = next_cycle.children
    assert the.data == 'the'
    assert the.children == []
    assert next_word.type == 'NEXT'
    assert cycle.data == 'named_cycle'

    named_seq, = cycle.children
    assert named_seq.data == 'weekday_seq'
    weekday, = named_seq.children
    assert weekday.type == 'DAY_OF_WEEK'
    assert weekday.value == 'monday'

def test_parse_nth_of_range():
    expr, = RESOLVER.parse('the 3rd mon of june')
    nth_range, = expr.children
    assert nth_range.data == 'nth_range'

    nth, inner = nth_range.children
    assert nth.data == 'nth_of'
    the, ordinal, cycle, of = nth.children
    assert the.children[0].type == 'THE'
    assert ordinal.type == 'ORDINAL'
    assert ordinal.value == '3rd'
    assert cycle.data == 'named_cycle'
    assert of.type == 'OF_IN'
    assert inner.data == 'named_range'

def test_parse_timediff():
    expr, = RESOLVER.parse('weeks between today and 2018')
    assert expr.data == 'timediff_expr'
    between, = expr.children
    assert between.data == 'between'
    assert [c.data for c in between.children if isinstance(c, Tree)] == ['duration_cycle', 'today', 'year']

def test_parse_bare_day_of_month_is_ambiguous():
    trees = RESOLVER.parse('12th')
    assert sorted(t.children[0].data for t in trees) == ['named_range', 'the_monthday']

def test_parse_ignores_case_and_commas():
    expr, = RESOLVER.parse('Friday, 18th')
    assert expr.children[0].data == 'intersect_cycle'

def test_parse_rejects_partial_words():
    with pytest.raises(UnexpectedInput):
        RESOLVER.parse('monthly')

def test_parse_error():
    with pytest.raises(UnexpectedInput):
        RESOLVER.parse('next blursday')

def test_no_before_last():
    with pytest.raises(UnexpectedInput):
        RESOLVER.parse('tue before last')

def test_parse_terminals_span_whole_lexemes():
    with pytest.raises(UnexpectedInput):
        RESOLVER.parse('2-3 days ago')
    with pytest.raises(UnexpectedInput):
        RESOLVER.parse('in 3+ days')
