# tests/core/test_interpolation.py
import pytest

from neuroshell.core.interpolation import Interpolator, is_macro_line
from neuroshell.model import ParsedCommand


@pytest.fixture
def variables():
    return {
        "name": "world",
        "b": "x",
        "a_x": "done",
        "greeting": "hello ${name}",
    }


@pytest.fixture
def interpolator(variables):
    return Interpolator(variables.get)


def test_text_without_references_is_unchanged(interpolator):
    text = "price is $5 and {braces} stay }"
    assert interpolator.expand(text) == text


def test_missing_variable_expands_to_empty_string():
    assert Interpolator({}.get).expand("[${missing}]") == "[]"


def test_simple_reference(interpolator):
    assert interpolator.expand("hi ${name}!") == "hi world!"


def test_nested_reference_resolves_inside_out(interpolator):
    assert interpolator.expand("${a_${b}}") == "done"


def test_nested_reference_in_single_pass(interpolator):
    assert interpolator.expand_once("${a_${b}}") == "done"


def test_values_are_rescanned_in_later_passes(interpolator):
    assert interpolator.expand_once("${greeting}") == "hello ${name}"
    assert interpolator.expand("${greeting}") == "hello world"


def test_self_reference_terminates():
    store = {"a": "${a}"}
    assert Interpolator(store.get).expand("${a}") == "${a}"


def test_growing_reference_stops_at_pass_limit():
    store = {"a": "x${a}"}
    result = Interpolator(store.get, max_iterations=10).expand("${a}")
    assert result == "x" * 10 + "${a}"


def test_pass_limit_returns_partial_result():
    store = {"a": "${b}", "b": "end"}
    assert Interpolator(store.get, max_iterations=1).expand("${a}") == "${b}"
    assert Interpolator(store.get, max_iterations=2).expand("${a}") == "end"


def test_unterminated_reference_is_kept_literally(interpolator):
    assert interpolator.expand("cost ${name") == "cost ${name"
    assert interpolator.expand("${name} and ${oops") == "world and ${oops"


def test_stray_closing_brace_passes_through(interpolator):
    assert interpolator.expand("a } ${name}") == "a } world"


def test_expand_args_handles_lists_elementwise(interpolator):
    args = {"to": "${name}", "tags": ["${b}", "plain", "${missing}"]}
    assert interpolator.expand_args(args) == {"to": "world", "tags": ["x", "plain", ""]}


def test_expand_command_keeps_name_and_scopes_options():
    interpolator = Interpolator({"y": "2"}.get)
    parsed = ParsedCommand(name="echo", args={"x": "1"}, input="hello ${x} ${y}")
    expanded = interpolator.expand_command(parsed)
    assert expanded.name == "echo"
    assert expanded.input == "hello 1 2"
    assert parsed.input == "hello ${x} ${y}"


def test_option_scope_shadows_store_only_for_input():
    interpolator = Interpolator({"x": "store", "v": "${x}"}.get)
    parsed = ParsedCommand(name="echo", args={"x": "opt", "copy": "${x}"}, input="${x}")
    expanded = interpolator.expand_command(parsed)
    assert expanded.args["copy"] == "store"
    assert expanded.input == "opt"


def test_is_macro_line():
    assert is_macro_line("${cmd} hello")
    assert is_macro_line("  ${cmd}")
    assert not is_macro_line(r"\echo ${cmd}")
