"""
Parameter binding model.

Handler parameters declare where their value comes from with markers in
``typing.Annotated``::

    def get_user(self,
                 user_id: Annotated[int, PathParam("id")],
                 verbose: Annotated[bool, QueryParam("verbose"), DefaultValue("false")],
                 body: UserUpdate):
        ...

A parameter without a source marker binds to the request entity.
"""

import inspect
from dataclasses import dataclass
from enum import Enum
from typing import Any, Iterable, List, Optional, Tuple

from .reflection import resolve_generic_type, split_annotated


class ParameterSource(Enum):
    """Where a parameter value is taken from."""

    PATH = "path"
    QUERY = "query"
    HEADER = "header"
    MATRIX = "matrix"
    COOKIE = "cookie"
    FORM = "form"
    CONTEXT = "context"
    ENTITY = "entity"
    UNKNOWN = "unknown"


# Sources that read a named value from the request
NAMED_SOURCES = frozenset({
    ParameterSource.PATH,
    ParameterSource.QUERY,
    ParameterSource.HEADER,
    ParameterSource.MATRIX,
    ParameterSource.COOKIE,
    ParameterSource.FORM,
})


class SourceMarker:
    """Base class for parameter source markers."""

    source: ParameterSource = ParameterSource.UNKNOWN

    def __init__(self, name: str = ""):
        self.name = name

    def __eq__(self, other):
        return type(self) is type(other) and self.name == other.name

    def __hash__(self):
        return hash((type(self), self.name))

    def __repr__(self):
        return f"{type(self).__name__}({self.name!r})"


class PathParam(SourceMarker):
    source = ParameterSource.PATH


class QueryParam(SourceMarker):
    source = ParameterSource.QUERY


class HeaderParam(SourceMarker):
    source = ParameterSource.HEADER


class MatrixParam(SourceMarker):
    source = ParameterSource.MATRIX


class CookieParam(SourceMarker):
    source = ParameterSource.COOKIE


class FormParam(SourceMarker):
    source = ParameterSource.FORM


class Context(SourceMarker):
    """Injects a request-scoped framework object (request, URI info, headers)."""

    source = ParameterSource.CONTEXT


class Encoded:
    """Disables automatic decoding of a single parameter value."""

    def __eq__(self, other):
        return isinstance(other, Encoded)

    def __hash__(self):
        return hash(Encoded)

    def __repr__(self):
        return "Encoded()"


class DefaultValue:
    """Value used when the request does not carry the parameter."""

    def __init__(self, value: str):
        self.value = value

    def __eq__(self, other):
        return isinstance(other, DefaultValue) and self.value == other.value

    def __hash__(self):
        return hash((DefaultValue, self.value))

    def __repr__(self):
        return f"DefaultValue({self.value!r})"


def has_source_marker(annotations: Iterable[Any]) -> bool:
    """Check whether any of the annotations is a parameter marker."""
    return any(isinstance(a, (SourceMarker, Encoded, DefaultValue)) for a in annotations)


def declares_source(annotations: Iterable[Any]) -> bool:
    """Check whether the annotations name a parameter source (so the parameter is not the entity)."""
    return any(isinstance(a, SourceMarker) for a in annotations)


@dataclass(frozen=True)
class Parameter:
    """A resolved handler parameter binding."""

    name: str
    source: ParameterSource
    source_name: Optional[str]
    raw_type: Any
    type: Any
    encoded: bool = False
    default_value: Optional[str] = None
    annotations: Tuple[Any, ...] = ()

    @property
    def is_qualified(self) -> bool:
        """True when the parameter declares its source explicitly."""
        return self.source is not ParameterSource.ENTITY

    @classmethod
    def create(
        cls,
        concrete_class: type,
        name: str,
        declared_type: Any,
        encoded: bool = False,
        annotations: Iterable[Any] = (),
    ) -> "Parameter":
        """Create a parameter binding.

        Args:
            concrete_class: The handler class, used to resolve type variables
            name: Parameter (or field) name
            declared_type: Declared annotation, possibly ``Annotated[...]``
            encoded: Keep values encoded unless a marker says otherwise
            annotations: Extra markers declared outside of the type

        Returns:
            Parameter with its source resolved. Conflicting source markers
            resolve to ``ParameterSource.UNKNOWN``; no marker resolves to
            ``ParameterSource.ENTITY``.
        """
        base_type, metadata = split_annotated(declared_type)
        markers = list(metadata) + list(annotations)

        sources = [m for m in markers if isinstance(m, SourceMarker)]
        if not sources:
            source = ParameterSource.ENTITY
            source_name = None
        elif len(sources) == 1:
            source = sources[0].source
            source_name = sources[0].name
        else:
            source = ParameterSource.UNKNOWN
            source_name = None

        if source is ParameterSource.CONTEXT:
            source_name = None

        default_value = None
        for marker in markers:
            if isinstance(marker, Encoded):
                encoded = True
            elif isinstance(marker, DefaultValue):
                default_value = marker.value

        if base_type is inspect.Parameter.empty:
            base_type = Any
        resolved = resolve_generic_type(concrete_class, base_type)

        return cls(
            name=name,
            source=source,
            source_name=source_name,
            raw_type=resolved.raw_class,
            type=resolved.type,
            encoded=encoded,
            default_value=default_value,
            annotations=tuple(markers),
        )


def create_parameters(concrete_class: type, declared: List[Tuple[str, Any]], encoded: bool = False) -> List[Parameter]:
    """Create parameter bindings for a list of ``(name, annotation)`` pairs, keeping their order."""
    return [Parameter.create(concrete_class, name, annotation, encoded) for name, annotation in declared]
