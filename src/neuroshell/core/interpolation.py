# src/neuroshell/core/interpolation.py
import logging
from typing import Callable, Dict, List, Optional

from neuroshell.model import ArgValue, ParsedCommand

logger = logging.getLogger(__name__)

OPEN_MARK = "${"
CLOSE_MARK = "}"
DEFAULT_MAX_ITERATIONS = 10

VariableLookup = Callable[[str], Optional[str]]


class Interpolator:
    """
    Expands `${name}` references against a variable lookup.

    A single pass is stack based, so `${a_${b}}` resolves `b` first and then
    the composed name. Text produced by a substitution is not rescanned in the
    same pass; `expand()` repeats passes until the text settles or the pass
    limit is hit. Missing variables expand to the empty string.
    """

    def __init__(self, lookup: VariableLookup, max_iterations: int = DEFAULT_MAX_ITERATIONS):
        self._lookup = lookup
        self.max_iterations = max(1, int(max_iterations))

    @staticmethod
    def has_variables(text: str) -> bool:
        return OPEN_MARK in text

    def _resolve(self, name: str, scope: Optional[Dict[str, str]] = None) -> str:
        if scope and name in scope:
            return scope[name]
        value = self._lookup(name)
        if value is None:
            logger.debug("Variable '%s' is not set; expanding to empty string.", name)
            return ""
        return str(value)

    def expand_once(self, text: str, scope: Optional[Dict[str, str]] = None) -> str:
        """
        One left-to-right pass. Unterminated `${` is kept literally. Names in
        `scope` shadow the variable lookup.
        """
        # Each frame holds the text collected since its `${`.
        frames: List[List[str]] = [[]]
        i = 0
        n = len(text)
        while i < n:
            if text.startswith(OPEN_MARK, i):
                frames.append([])
                i += len(OPEN_MARK)
                continue
            ch = text[i]
            if ch == CLOSE_MARK and len(frames) > 1:
                name = "".join(frames.pop())
                frames[-1].append(self._resolve(name, scope))
            else:
                frames[-1].append(ch)
            i += 1

        # Reopen whatever never closed
        while len(frames) > 1:
            dangling = "".join(frames.pop())
            frames[-1].append(OPEN_MARK + dangling)
        return "".join(frames[0])

    def expand(self, text: str, scope: Optional[Dict[str, str]] = None) -> str:
        """
        Repeats passes until nothing changes, no reference remains, or
        `max_iterations` passes ran. Always returns; never raises.
        """
        if not text or not self.has_variables(text):
            return text
        current = text
        for _ in range(self.max_iterations):
            expanded = self.expand_once(current, scope)
            if expanded == current:
                return expanded
            current = expanded
            if not self.has_variables(current):
                return current
        logger.debug(
            "Interpolation stopped after %d passes; returning partial result.",
            self.max_iterations,
        )
        return current

    def expand_value(self, value: ArgValue) -> ArgValue:
        if isinstance(value, list):
            return [self.expand(item) for item in value]
        return self.expand(value)

    def expand_args(self, args: Dict[str, ArgValue]) -> Dict[str, ArgValue]:
        return {key: self.expand_value(value) for key, value in args.items()}

    def expand_command(self, parsed: ParsedCommand) -> ParsedCommand:
        """
        Returns a copy with interpolated option values and input; the name is
        untouched. String options are in scope while the input expands, so
        `\\echo[x=1] ${x}` sees x=1.
        """
        args = self.expand_args(parsed.args)
        scope = {key: value for key, value in args.items() if isinstance(value, str)}
        return parsed.model_copy(update={
            "args": args,
            "input": self.expand(parsed.input, scope),
        })


def is_macro_line(line: str) -> bool:
    """A line whose first token is a reference is expanded as a whole before parsing."""
    return line.lstrip().startswith(OPEN_MARK)
