"""Wildcard pattern compilation.

Translates glob-style patterns into anchored regular expressions:

- ``**`` matches any run of characters, path separators included; ``**/``
  additionally matches zero leading segments, so ``**/x`` matches ``x``.
- ``*`` matches any run of characters within one path segment.
- ``?`` matches one character other than the separator.
- ``[...]`` is a character class, ``[!...]`` its negation.
- ``{a,b}`` is an alternation. Commas only separate alternatives inside braces;
  elsewhere they are literal.
"""

from __future__ import annotations

import re
from dataclasses import dataclass

SEPARATOR = "/"


class PatternError(ValueError):
    """Raised when a wildcard pattern cannot be compiled."""


def _class_end(pattern: str, start: int) -> int:
    """Return the index of the ``]`` closing the class opened at ``start``."""
    end = pattern.find("]", start + 1)
    if end == -1:
        raise PatternError(f"Unclosed '[' at position {start} in {pattern!r}")
    return end


def wildcard_to_regex(pattern: str) -> str:
    """Translate a wildcard pattern into an anchored regular expression."""
    parts: list[str] = ["^"]
    depth = 0
    i = 0
    while i < len(pattern):
        char = pattern[i]
        if char == "*":
            if pattern.startswith("**" + SEPARATOR, i):
                parts.append(f"(?:.*{SEPARATOR})?")
                i += 3
                continue
            if pattern.startswith("**", i):
                parts.append(".*")
                i += 2
                continue
            parts.append(f"[^{SEPARATOR}]*")
        elif char == "?":
            parts.append(f"[^{SEPARATOR}]")
        elif char == "[":
            end = _class_end(pattern, i)
            body = pattern[i + 1 : end]
            if body.startswith("!"):
                body = "^" + body[1:]
            parts.append(f"[{body}]")
            i = end + 1
            continue
        elif char == "]":
            raise PatternError(f"Unmatched ']' at position {i} in {pattern!r}")
        elif char == "{":
            depth += 1
            parts.append("(?:")
        elif char == "}":
            if depth == 0:
                raise PatternError(f"Unmatched '}}' at position {i} in {pattern!r}")
            depth -= 1
            parts.append(")")
        elif char == "," and depth:
            parts.append("|")
        else:
            parts.append(re.escape(char))
        i += 1

    if depth:
        raise PatternError(f"Unclosed '{{' in {pattern!r}")
    parts.append(r"\Z")
    return "".join(parts)


@dataclass(frozen=True, slots=True)
class GlobMatcher:
    """A compiled wildcard pattern matching whole strings."""

    pattern: str
    regex: re.Pattern[str]

    def matches(self, candidate: str) -> bool:
        return self.regex.match(candidate) is not None


def compile_wildcard(pattern: str) -> GlobMatcher:
    """Compile ``pattern`` into a matcher, raising PatternError if it is malformed."""
    expression = wildcard_to_regex(pattern)
    try:
        regex = re.compile(expression, re.DOTALL)
    except re.error as exc:
        raise PatternError(f"Invalid wildcard pattern {pattern!r}: {exc}") from exc
    return GlobMatcher(pattern=pattern, regex=regex)
