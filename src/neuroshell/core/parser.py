# src/neuroshell/core/parser.py
import logging
import re
from typing import Callable, Dict, Iterable, List, Optional, Tuple

from neuroshell.core.errors import ParseError
from neuroshell.model import ArgValue, ParseMode, ParsedCommand

logger = logging.getLogger(__name__)

_NAME_PREFIX = re.compile(r"[a-zA-Z_][a-zA-Z0-9_-]*")
MODIFIER_PATTERN = re.compile(r"^\\(silent|try)(?=\s|$)\s*")

CONTINUATION_MARKER = "..."
COMMENT_PREFIX = "%%"
DEFAULT_COMMAND = "echo"

_QUOTES = ("\"", "'")
_VALUE_OPENERS = ("=", "[", ",", ";")

ParseModeLookup = Callable[[str], ParseMode]


# --- Line level helpers ---

def is_comment(line: str) -> bool:
    return line.lstrip().startswith(COMMENT_PREFIX)


def strip_modifiers(line: str) -> Tuple[str, bool, bool]:
    """
    Removes leading `\\silent` / `\\try` prefixes in any order and any number.

    Returns:
        (command, silent, try_)
    """
    text = line.strip()
    silent = try_ = False
    while True:
        m = MODIFIER_PATTERN.match(text)
        if not m:
            break
        if m.group(1) == "silent":
            silent = True
        else:
            try_ = True
        text = text[m.end():]
    return text, silent, try_


def needs_continuation(text: str) -> bool:
    """True if the physical line ends with the continuation marker."""
    return text.rstrip().endswith(CONTINUATION_MARKER)


def join_continuation_lines(lines: Iterable[str]) -> List[str]:
    """
    Folds physical lines into logical lines. A line ending in `...` continues
    on the next line; the marker becomes a single space.
    """
    logical: List[str] = []
    pending: List[str] = []
    for raw in lines:
        line = raw.rstrip("\r\n")
        if needs_continuation(line):
            pending.append(line.rstrip()[:-len(CONTINUATION_MARKER)].strip())
            continue
        if pending:
            pending.append(line.strip())
            logical.append(" ".join(part for part in pending if part))
            pending = []
        else:
            logical.append(line)
    if pending:
        # Input ended while still continuing
        logical.append(" ".join(part for part in pending if part))
    return logical


# --- Scanning ---

def _opens_quote(text: str, i: int, floor: int) -> bool:
    """A quote character only opens a string at the start of a value."""
    j = i - 1
    while j >= floor and text[j].isspace():
        j -= 1
    return j < floor or text[j] in _VALUE_OPENERS


def _find_bracket_end(text: str, start: int, offset: int = 0) -> int:
    """Returns the index of the `]` matching the `[` at `start`."""
    depth = 0
    quote: Optional[str] = None
    quote_pos = -1
    i = start
    while i < len(text):
        ch = text[i]
        if quote:
            if ch == "\\" and i + 1 < len(text):
                i += 2
                continue
            if ch == quote:
                quote = None
        elif ch in _QUOTES and _opens_quote(text, i, start):
            quote = ch
            quote_pos = i
        elif ch == "[":
            depth += 1
        elif ch == "]":
            depth -= 1
            if depth == 0:
                return i
        i += 1
    if quote:
        raise ParseError("unterminated quote", offset + quote_pos)
    raise ParseError("unterminated bracket", offset + start)


def _split_top_level(text: str, separators: str, offset: int = 0) -> List[Tuple[str, int]]:
    """
    Splits on separator characters that are outside quotes and nested brackets.
    Each part is returned with its absolute start position.
    """
    parts: List[Tuple[str, int]] = []
    depth = 0
    quote: Optional[str] = None
    start = 0
    i = 0
    while i < len(text):
        ch = text[i]
        if quote:
            if ch == "\\" and i + 1 < len(text):
                i += 2
                continue
            if ch == quote:
                quote = None
        elif ch in _QUOTES and _opens_quote(text, i, 0):
            quote = ch
        elif ch == "[":
            depth += 1
        elif ch == "]":
            depth -= 1
        elif ch in separators and depth == 0:
            parts.append((text[start:i], offset + start))
            start = i + 1
        i += 1
    parts.append((text[start:], offset + start))
    return parts


def _read_quoted(text: str, position: int) -> str:
    """Unquotes a complete quoted value; `\\"`, `\\'` and `\\\\` are unescaped."""
    quote = text[0]
    out: List[str] = []
    i = 1
    while i < len(text):
        ch = text[i]
        if ch == "\\" and i + 1 < len(text):
            nxt = text[i + 1]
            if nxt in _QUOTES or nxt == "\\":
                out.append(nxt)
            else:
                out.append(ch + nxt)
            i += 2
            continue
        if ch == quote:
            if text[i + 1:].strip():
                raise ParseError("unexpected text after quoted value", position + i + 1)
            return "".join(out)
        out.append(ch)
        i += 1
    raise ParseError("unterminated quote", position)


def _unquote(text: str, position: int) -> str:
    if text and text[0] in _QUOTES:
        return _read_quoted(text, position)
    return text


def parse_array_value(text: str, position: int = 0) -> List[str]:
    """Parses `[a, b; c]` into an ordered list; empty unquoted items are skipped."""
    inner = text[1:-1]
    items: List[str] = []
    for part, pos in _split_top_level(inner, ",;", position + 1):
        stripped = part.strip()
        if not stripped:
            continue
        lead = len(part) - len(part.lstrip())
        items.append(_unquote(stripped, pos + lead))
    return items


def _parse_value(text: str, position: int) -> ArgValue:
    if not text:
        return ""
    if text[0] in _QUOTES:
        return _read_quoted(text, position)
    if text[0] == "[":
        end = _find_bracket_end(text, 0, position)
        if text[end + 1:].strip():
            raise ParseError("unexpected text after array value", position + end + 1)
        return parse_array_value(text[:end + 1], position)
    return text


def parse_options(text: str, offset: int = 0) -> Dict[str, ArgValue]:
    """
    Parses the inside of an option bracket (`k=v, k2="v 2", k3=[a,b]`).
    Bare keys and empty keys are rejected; the last duplicate key wins.
    """
    args: Dict[str, ArgValue] = {}
    for part, pos in _split_top_level(text, ",", offset):
        stripped = part.strip()
        if not stripped:
            continue
        lead = len(part) - len(part.lstrip())
        eq = stripped.find("=")
        if eq < 0:
            raise ParseError(f"expected key=value, got '{stripped}'", pos + lead)
        key = stripped[:eq].strip()
        if not key:
            raise ParseError("empty option key", pos + lead)
        raw_value = stripped[eq + 1:]
        value_lead = len(raw_value) - len(raw_value.lstrip())
        args[key] = _parse_value(raw_value.strip(), pos + lead + eq + 1 + value_lead)
    return args


# --- Command level ---

def parse_command_line(
        line: str,
        parse_mode_lookup: Optional[ParseModeLookup] = None,
        default_command: str = DEFAULT_COMMAND,
) -> ParsedCommand:
    """
    Parses one logical command line.

    Lines without a leading backslash are routed to `default_command` with
    the whole text as input. The parse mode of the named command is looked
    up before any bracket parsing happens.

    Raises:
        ParseError: on an empty line, an invalid command name, or a
            malformed option bracket.
    """
    offset = len(line) - len(line.lstrip())
    text = line.strip()
    if not text:
        raise ParseError("empty command line", 0)

    def mode_of(name: str) -> ParseMode:
        return parse_mode_lookup(name) if parse_mode_lookup else ParseMode.KEY_VALUE

    if not text.startswith("\\"):
        return ParsedCommand(
            name=default_command,
            input=text,
            parse_mode=mode_of(default_command),
            original_text=line,
        )

    m = _NAME_PREFIX.match(text, 1)
    if not m:
        raise ParseError("invalid command name", offset + 1)
    name = m.group(0)
    i = m.end()
    if i < len(text) and not (text[i].isspace() or text[i] == "["):
        raise ParseError(f"invalid character {text[i]!r} in command name", offset + i)

    mode = mode_of(name)
    args: Dict[str, ArgValue] = {}
    rest = text[i:]

    if mode == ParseMode.KEY_VALUE and rest.startswith("["):
        end = _find_bracket_end(text, i, offset)
        args = parse_options(text[i + 1:end], offset + i + 1)
        rest = text[end + 1:]

    parsed = ParsedCommand(
        name=name,
        args=args,
        input=rest.lstrip(),
        parse_mode=mode,
        original_text=line,
    )
    logger.debug("Parsed '%s' -> name=%s args=%s", line, parsed.name, parsed.args)
    return parsed


def _quote(value: str) -> str:
    return '"' + value.replace("\\", "\\\\").replace('"', '\\"') + '"'


def format_command_line(cmd: ParsedCommand) -> str:
    """
    Serializes a ParsedCommand back into command syntax; parsing the result
    yields an equal name, args and input.
    """
    parts = ["\\" + cmd.name]
    if cmd.args and cmd.parse_mode == ParseMode.KEY_VALUE:
        options = []
        for key, value in cmd.args.items():
            if isinstance(value, list):
                rendered = "[" + ", ".join(_quote(v) for v in value) + "]"
            else:
                rendered = _quote(value)
            options.append(f"{key}={rendered}")
        parts.append("[" + ", ".join(options) + "]")
    line = "".join(parts)
    if cmd.input:
        line += " " + cmd.input
    return line
