"""
URI templates and the compiled path patterns used to match request paths.

Template grammar:

- literal characters, matched verbatim
- ``{name}``: a variable matching exactly one path segment (``[^/]+``)
- ``{name: regex}``: a variable matching the supplied sub-expression

Templates are normalized before compiling: a leading ``/`` is added and a
trailing ``/`` removed, so ``"users/"``, ``"/users"`` and ``"users"`` all
compile to the same pattern and ``"/"`` compiles to the empty template.
"""

import functools
import re
from dataclasses import dataclass
from enum import Enum
from typing import Dict, List, Optional, Tuple

_VARIABLE_NAME = re.compile(r"^[A-Za-z_][\w.\-]*$")

# Regex used for a variable without an explicit expression
_DEFAULT_VARIABLE_REGEX = "[^/]+"


def normalize_template(template: Optional[str]) -> str:
    """Normalize a path template.

    Examples:
        normalize_template("users") -> "/users"
        normalize_template("/users/") -> "/users"
        normalize_template("/") -> ""
        normalize_template(None) -> ""
    """
    if not template:
        return ""
    if not template.startswith("/"):
        template = "/" + template
    if template.endswith("/"):
        template = template.rstrip("/")
    return template


class UriTemplate:
    """A parsed URI template.

    Holds the normalized template string, the regular expression it compiles
    to and the metadata needed to order templates by specificity.
    """

    def __init__(self, template: Optional[str]):
        self.template = normalize_template(template)

        # Variable names in order of appearance (duplicates included)
        self.variables: List[str] = []
        self.explicit_regexes = 0
        self.literal_characters = 0
        self._group_names: Dict[str, str] = {}

        self.regex = self._parse(self.template)

    def _parse(self, template: str) -> str:
        parts: List[str] = []
        literal: List[str] = []
        i = 0
        while i < len(template):
            char = template[i]
            if char == "{":
                if literal:
                    parts.append(re.escape("".join(literal)))
                    literal = []
                end = self._find_closing_brace(template, i)
                parts.append(self._variable_regex(template[i + 1:end]))
                i = end + 1
                continue
            if char == "}":
                raise ValueError(f"Unbalanced '}}' at position {i} in template '{template}'")
            literal.append(char)
            self.literal_characters += 1
            i += 1

        if literal:
            parts.append(re.escape("".join(literal)))
        return "".join(parts)

    @staticmethod
    def _find_closing_brace(template: str, start: int) -> int:
        # Braces may nest inside an explicit expression, e.g. {id: [0-9]{3}}
        depth = 0
        for i in range(start, len(template)):
            if template[i] == "{":
                depth += 1
            elif template[i] == "}":
                depth -= 1
                if depth == 0:
                    return i
        raise ValueError(f"Unbalanced '{{' at position {start} in template '{template}'")

    def _variable_regex(self, declaration: str) -> str:
        if ":" in declaration:
            name, expression = declaration.split(":", 1)
            name = name.strip()
            expression = expression.strip()
            if not expression:
                raise ValueError(f"Empty expression for template variable '{name}'")
            try:
                re.compile(expression)
            except re.error as e:
                raise ValueError(f"Invalid expression for template variable '{name}': {e}") from e
            self.explicit_regexes += 1
        else:
            name = declaration.strip()
            expression = _DEFAULT_VARIABLE_REGEX

        if not _VARIABLE_NAME.match(name):
            raise ValueError(f"Invalid template variable name '{name}'")

        self.variables.append(name)

        # A repeated variable must match the same value again
        if name in self._group_names:
            return f"(?P={self._group_names[name]})"

        group = f"_v{len(self._group_names)}"
        self._group_names[name] = group
        return f"(?P<{group}>{expression})"

    @property
    def variable_names(self) -> Tuple[str, ...]:
        """Distinct variable names in order of first appearance."""
        return tuple(self._group_names)

    def group_name(self, variable: str) -> str:
        return self._group_names[variable]

    def __eq__(self, other):
        if not isinstance(other, UriTemplate):
            return NotImplemented
        return self.template == other.template

    def __hash__(self):
        return hash(self.template)

    def __repr__(self):
        return f"UriTemplate({self.template!r})"


class RightHandPath(Enum):
    """How a pattern treats the part of the path left after its template."""

    # Nothing may follow except an optional trailing slash
    END_OF_PATH = "end_of_path"
    # Same regex as END_OF_PATH; used by sub-resource methods that must consume the whole remainder
    ZERO_SEGMENTS = "zero_segments"
    # Any remainder is captured for further matching
    ZERO_OR_MORE_SEGMENTS = "zero_or_more_segments"

    @property
    def regex(self) -> str:
        if self is RightHandPath.ZERO_OR_MORE_SEGMENTS:
            return "(?P<_rhp>/.*)?"
        return "(?P<_rhp>/)?"


@dataclass(frozen=True)
class PathMatch:
    """Result of matching a path against a PathPattern."""

    values: Dict[str, str]
    matched_path: str
    right_hand_path: str

    @property
    def is_complete(self) -> bool:
        """True when the remainder holds no further segments."""
        return self.right_hand_path in ("", "/")


class PathPattern:
    """A URI template compiled into a matcher with a right-hand path capture mode.

    Patterns are immutable and compiled once, so they can be shared between
    threads.
    """

    def __init__(self, template: Optional[str], right_hand_path: RightHandPath = RightHandPath.ZERO_OR_MORE_SEGMENTS):
        self._template = template if isinstance(template, UriTemplate) else UriTemplate(template)
        self._right_hand_path = right_hand_path
        self._regex = re.compile(f"{self._template.regex}{right_hand_path.regex}")

    @property
    def template(self) -> UriTemplate:
        return self._template

    @property
    def right_hand_path(self) -> RightHandPath:
        return self._right_hand_path

    @property
    def regex(self) -> str:
        return self._regex.pattern

    @property
    def variable_names(self) -> Tuple[str, ...]:
        return self._template.variable_names

    def match(self, path: str) -> Optional[PathMatch]:
        """Match a (remaining) request path.

        Args:
            path: Path to match, e.g. ``"/users/123/orders"``

        Returns:
            PathMatch with the captured template values and the right-hand
            remainder, or None if the path does not match
        """
        if path is None:
            path = ""
        m = self._regex.fullmatch(path)
        if m is None:
            return None

        values = {name: m.group(self._template.group_name(name)) for name in self._template.variable_names}
        right_hand = m.group("_rhp") or ""
        return PathMatch(
            values=values,
            matched_path=path[:len(path) - len(right_hand)],
            right_hand_path=right_hand,
        )

    def __eq__(self, other):
        if not isinstance(other, PathPattern):
            return NotImplemented
        return self._template == other._template and self._right_hand_path is other._right_hand_path

    def __hash__(self):
        return hash((self._template, self._right_hand_path))

    def __repr__(self):
        return f"PathPattern({self._template.template!r}, {self._right_hand_path.name})"


def compare_patterns(p1: PathPattern, p2: PathPattern) -> int:
    """Order patterns from most to least specific.

    More literal characters first, then more template variables, then more
    explicit expressions, then the regex text in descending order so that the
    ordering is total and deterministic.
    """
    t1, t2 = p1.template, p2.template
    i = t2.literal_characters - t1.literal_characters
    if i != 0:
        return i
    i = len(t2.variables) - len(t1.variables)
    if i != 0:
        return i
    i = t2.explicit_regexes - t1.explicit_regexes
    if i != 0:
        return i
    if p1.regex == p2.regex:
        return 0
    return 1 if p1.regex < p2.regex else -1


specificity_key = functools.cmp_to_key(compare_patterns)


def sort_patterns(patterns):
    """Return the patterns sorted from most to least specific."""
    return sorted(patterns, key=specificity_key)


END_OF_PATH_PATTERN = PathPattern("", RightHandPath.END_OF_PATH)
OPEN_ROOT_PATH_PATTERN = PathPattern("", RightHandPath.ZERO_OR_MORE_SEGMENTS)
