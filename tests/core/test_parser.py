# tests/core/test_parser.py
import pytest

from neuroshell.core.errors import ParseError
from neuroshell.core.parser import (
    format_command_line,
    join_continuation_lines,
    needs_continuation,
    parse_command_line,
    strip_modifiers,
)
from neuroshell.model import ParseMode


def raw_for(*names):
    """A parse-mode lookup that declares the given commands as Raw."""
    return lambda name: ParseMode.RAW if name in names else ParseMode.KEY_VALUE


def test_parse_options_and_input():
    """A bracket right after the name becomes options, the rest is input."""
    result = parse_command_line(r"\cmd[k=v] text")
    assert result.name == "cmd"
    assert result.args == {"k": "v"}
    assert result.input == "text"
    assert result.parse_mode == ParseMode.KEY_VALUE


def test_parse_command_without_bracket_has_empty_args():
    result = parse_command_line(r"\help")
    assert result.args == {}
    assert result.input == ""


def test_parse_trims_values_and_leading_input_whitespace():
    result = parse_command_line(r"\cmd[ a = 1 ,  b=two ]    hello world")
    assert result.args == {"a": "1", "b": "two"}
    assert result.input == "hello world"


def test_parse_quoted_values_keep_commas_and_spaces():
    result = parse_command_line(r"""\cmd[msg="a, b", other='x y'] go""")
    assert result.args == {"msg": "a, b", "other": "x y"}


def test_parse_escaped_quotes_inside_quoted_value():
    result = parse_command_line(r'\cmd[msg="say \"hi\"", path="C:\\tmp"]')
    assert result.args["msg"] == 'say "hi"'
    assert result.args["path"] == "C:\\tmp"


def test_parse_unknown_escape_is_kept_verbatim():
    result = parse_command_line(r'\cmd[msg="line\nbreak"]')
    assert result.args["msg"] == "line\\nbreak"


def test_parse_apostrophe_inside_bare_value():
    result = parse_command_line(r"\cmd[note=don't panic] ok")
    assert result.args == {"note": "don't panic"}
    assert result.input == "ok"


def test_parse_array_value_preserves_order_and_duplicates():
    result = parse_command_line(r"\cmd[tags=[a, b; c, a]] x")
    assert result.args["tags"] == ["a", "b", "c", "a"]
    assert result.input == "x"


def test_parse_array_with_quoted_items():
    result = parse_command_line(r"""\cmd[tags=["x, y", 'z]', w], n=1]""")
    assert result.args["tags"] == ["x, y", "z]", "w"]
    assert result.args["n"] == "1"


def test_parse_empty_entries_are_skipped():
    result = parse_command_line(r"\cmd[a=1,,b=2,]")
    assert result.args == {"a": "1", "b": "2"}


def test_parse_duplicate_key_last_wins():
    result = parse_command_line(r"\cmd[a=1, a=2]")
    assert result.args == {"a": "2"}


def test_parse_unknown_keys_are_accepted():
    result = parse_command_line(r"\echo[whatever=1] hi")
    assert result.args == {"whatever": "1"}


def test_parse_bracket_must_follow_name_directly():
    result = parse_command_line(r"\cmd [a=1] rest")
    assert result.args == {}
    assert result.input == "[a=1] rest"


def test_parse_bare_key_is_rejected():
    with pytest.raises(ParseError) as excinfo:
        parse_command_line(r"\cmd[flag] x")
    assert excinfo.value.position == 5


def test_parse_empty_key_is_rejected():
    with pytest.raises(ParseError):
        parse_command_line(r"\cmd[=value]")


def test_parse_unterminated_bracket_names_its_position():
    with pytest.raises(ParseError) as excinfo:
        parse_command_line(r"\cmd[a=1 text")
    assert excinfo.value.position == 4
    assert "position 4" in str(excinfo.value)


def test_parse_unterminated_quote_names_its_position():
    with pytest.raises(ParseError) as excinfo:
        parse_command_line(r'\cmd[a="x] y')
    assert excinfo.value.position == 7


@pytest.mark.parametrize("line", [r"\9abc", "\\", r"\-x"])
def test_parse_invalid_command_name(line):
    with pytest.raises(ParseError):
        parse_command_line(line)


def test_parse_invalid_character_in_name():
    with pytest.raises(ParseError) as excinfo:
        parse_command_line(r"\cm!d x")
    assert excinfo.value.position == 3


def test_parse_empty_line_is_rejected():
    with pytest.raises(ParseError):
        parse_command_line("   ")


def test_parse_raw_mode_skips_bracket_parsing():
    result = parse_command_line(r"\config[a=b]   set x 1", parse_mode_lookup=raw_for("config"))
    assert result.parse_mode == ParseMode.RAW
    assert result.args == {}
    assert result.input == "[a=b]   set x 1"


def test_parse_raw_mode_never_fails_on_brackets():
    result = parse_command_line(r"\config [unclosed", parse_mode_lookup=raw_for("config"))
    assert result.input == "[unclosed"


def test_parse_text_without_backslash_goes_to_default_command():
    result = parse_command_line("hello [there], world")
    assert result.name == "echo"
    assert result.input == "hello [there], world"
    assert result.args == {}

    custom = parse_command_line("hi", default_command="send")
    assert custom.name == "send"


def test_parse_keeps_original_text():
    line = r"  \cmd[a=1] x"
    assert parse_command_line(line).original_text == line


def test_parse_hyphenated_and_underscored_names():
    assert parse_command_line(r"\model-new[provider=x] m").name == "model-new"
    assert parse_command_line(r"\_private").name == "_private"


# --- Modifiers and continuation ---

def test_strip_modifiers_in_any_order():
    assert strip_modifiers(r"\silent \try \cmd x") == (r"\cmd x", True, True)
    assert strip_modifiers(r"\try \cmd") == (r"\cmd", False, True)
    assert strip_modifiers(r"\cmd") == (r"\cmd", False, False)


def test_strip_modifiers_requires_a_word_boundary():
    assert strip_modifiers(r"\silently") == (r"\silently", False, False)
    assert strip_modifiers(r"\trying x") == (r"\trying x", False, False)


def test_needs_continuation():
    assert needs_continuation(r"\cmd[a=1, ...")
    assert needs_continuation("text ...   ")
    assert not needs_continuation("text .. ")


def test_join_continuation_lines():
    lines = [r"\cmd[a=1, ...", "  b=2] some ...", "text", r"\other"]
    assert join_continuation_lines(lines) == [r"\cmd[a=1, b=2] some text", r"\other"]


def test_join_continuation_lines_flushes_dangling_continuation():
    assert join_continuation_lines(["hello ..."]) == ["hello"]


def test_continued_bracket_parses_as_one_command():
    logical = join_continuation_lines([r"\cmd[a=1, ...", "b=2] done"])[0]
    assert parse_command_line(logical).args == {"a": "1", "b": "2"}


# --- Round trip ---

@pytest.mark.parametrize("line", [
    r"\cmd[k=v] text",
    r"""\cmd[msg="a, \"b\"", tags=[x, "y z"]] payload here""",
    r"\cmd[path='C:\\dir'] x",
    r"\solo",
])
def test_format_then_parse_is_idempotent(line):
    first = parse_command_line(line)
    second = parse_command_line(format_command_line(first))
    assert (second.name, second.args, second.input) == (first.name, first.args, first.input)
    assert format_command_line(second) == format_command_line(first)
