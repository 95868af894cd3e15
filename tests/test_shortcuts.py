# tests/test_shortcuts.py
from schemas import ShortcutDefinition
from shortcuts import convert_by_shortcut, expand, fill_pattern, is_candidate, match_pattern


def sc(name, inp, out):
    return ShortcutDefinition(name=name, input_pattern=inp, output_pattern=out)


def test_is_candidate():
    assert is_candidate("@t ?name")
    assert not is_candidate("@t")
    assert not is_candidate("t ?name")
    assert not is_candidate("")


def test_match_pattern_binds_placeholders_between_literals():
    assert match_pattern("Bo at home", "%who% at %where%") == {"who": "Bo", "where": "home"}


def test_match_pattern_requires_literals_in_order():
    assert match_pattern("Bo home", "%who% at %where%") is None
    assert match_pattern("x Bo", "y %who%") is None


def test_match_pattern_leading_literal_and_trailing_remainder():
    assert match_pattern("in 3 days", "in %n% days") == {"n": "3"}
    assert match_pattern("in 3 days and more", "in %n% days") == {"n": "3"}


def test_matched_values_are_the_consumed_substrings():
    text = "lunch with Al at noon"
    values = match_pattern(text, "%what% with %who% at %when%")
    assert values == {"what": "lunch", "who": "Al", "when": "noon"}
    assert fill_pattern("%what% with %who% at %when%", values) == text


def test_fill_pattern_unbound_placeholder():
    assert fill_pattern("@t +a %x% +b %y%", {"x": "1"}) is None


def test_convert_by_shortcut():
    shortcut = sc("v", "%who% at %where%", "@visits +person %who% +place %where%")
    assert convert_by_shortcut("@v Bo at home", shortcut) == "@visits +person Bo +place home"
    assert convert_by_shortcut("@v Bo", shortcut) is None


def test_expand_chains_shortcuts():
    shortcuts = [
        sc("older", "%age%", "@q %age%"),
        sc("q", "%age%", "@t ?name >age %age%"),
    ]
    assert expand("@older 30", shortcuts) == "@t ?name >age 30"


def test_expand_tries_shortcuts_in_table_order():
    shortcuts = [
        sc("s", "%a% to %b%", "@t +from %a% +to %b%"),
        sc("s", "%a%", "@t +note %a%"),
    ]
    assert expand("@s x to y", shortcuts) == "@t +from x +to y"
    assert expand("@s hello", shortcuts) == "@t +note hello"


def test_expand_keeps_message_when_nothing_matches():
    shortcuts = [sc("v", "%who% at %where%", "@visits +person %who% +place %where%")]
    assert expand("@v nobody", shortcuts) == "@v nobody"
    assert expand("@t ?name", shortcuts) == "@t ?name"


def test_expand_ignores_output_that_is_not_a_command():
    shortcuts = [sc("x", "%a%", "plain %a%")]
    assert expand("@x 1", shortcuts) == "@x 1"


def test_expand_terminates_on_self_reference():
    shortcuts = [sc("loop", "%a%", "@loop %a%")]
    assert expand("@loop again", shortcuts) == "@loop again"
