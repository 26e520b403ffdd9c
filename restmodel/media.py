"""
Media type values used by consuming and producing resource methods.
"""

import re
from dataclasses import dataclass, field
from typing import Iterable, List, Tuple, Union

_TOKEN = re.compile(r"^[!#$%&'*+.^_`|~0-9A-Za-z-]+$")

WILDCARD = "*"


@dataclass(frozen=True)
class MediaType:
    """An immutable ``type/subtype; name=value`` media type.

    Type, subtype and parameter names are kept lower-cased so that equality
    follows the case-insensitive comparison rules of RFC 7231. Parameter
    values keep their original case.
    """

    type: str = WILDCARD
    subtype: str = WILDCARD
    parameters: Tuple[Tuple[str, str], ...] = field(default=())

    @classmethod
    def value_of(cls, value: str) -> "MediaType":
        """Parse a single media type string.

        Args:
            value: Media type such as ``"text/plain"`` or ``"application/json; charset=utf-8"``.
                A bare ``"*"`` is accepted as ``"*/*"``.

        Returns:
            The parsed MediaType

        Raises:
            ValueError: If the string is not a valid media type
        """
        if value is None:
            raise ValueError("Media type must not be None")

        parts = value.split(";")
        full_type = parts[0].strip()
        if full_type == WILDCARD:
            full_type = "*/*"

        if full_type.count("/") != 1:
            raise ValueError(f"Invalid media type: '{value}'")

        main_type, sub_type = (p.strip() for p in full_type.split("/"))
        if not _TOKEN.match(main_type) or not _TOKEN.match(sub_type):
            raise ValueError(f"Invalid media type: '{value}'")

        params: List[Tuple[str, str]] = []
        for part in parts[1:]:
            part = part.strip()
            if not part:
                continue
            if "=" not in part:
                raise ValueError(f"Invalid media type parameter '{part}' in '{value}'")
            name, param_value = part.split("=", 1)
            name = name.strip()
            param_value = param_value.strip()
            # Remove quotes if present
            if len(param_value) >= 2 and param_value.startswith('"') and param_value.endswith('"'):
                param_value = param_value[1:-1]
            if not _TOKEN.match(name):
                raise ValueError(f"Invalid media type parameter '{part}' in '{value}'")
            params.append((name.lower(), param_value))

        return cls(main_type.lower(), sub_type.lower(), tuple(params))

    @property
    def is_wildcard_type(self) -> bool:
        return self.type == WILDCARD

    @property
    def is_wildcard_subtype(self) -> bool:
        return self.subtype == WILDCARD

    def is_compatible(self, other: "MediaType") -> bool:
        """Check whether two media types match, taking wildcards into account."""
        if self.is_wildcard_type or other.is_wildcard_type:
            return True
        if self.type != other.type:
            return False
        return self.is_wildcard_subtype or other.is_wildcard_subtype or self.subtype == other.subtype

    def __str__(self) -> str:
        rendered = f"{self.type}/{self.subtype}"
        for name, value in self.parameters:
            rendered += f"; {name}={value}"
        return rendered


MediaTypeLike = Union[str, MediaType]

WILDCARD_TYPE = MediaType()
TEXT_PLAIN = MediaType("text", "plain")
APPLICATION_JSON = MediaType("application", "json")


def create_from(*values: Union[MediaTypeLike, Iterable[MediaTypeLike]]) -> List[MediaType]:
    """Create a list of media types from strings, MediaType values or iterables of either.

    Strings may hold a comma separated list (``"text/plain, text/html"``).
    Order is preserved and duplicates are kept.

    Examples:
        create_from("text/plain") -> [text/plain]
        create_from("text/plain,text/html") -> [text/plain, text/html]
        create_from(["text/plain"], APPLICATION_JSON) -> [text/plain, application/json]
    """
    result: List[MediaType] = []
    for value in values:
        if isinstance(value, MediaType):
            result.append(value)
        elif isinstance(value, str):
            for item in value.split(","):
                item = item.strip()
                if item:
                    result.append(MediaType.value_of(item))
        elif value is None:
            continue
        else:
            result.extend(create_from(*value))
    return result
