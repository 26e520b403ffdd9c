"""
Model of a method available on a resource: a resource method, a
sub-resource method or a sub-resource locator.
"""

import logging
from dataclasses import dataclass, field
from datetime import timedelta
from enum import Enum
from typing import TYPE_CHECKING, Any, Callable, Iterable, List, Optional, Tuple, Union

from .classifier import EndpointKind, classify
from .exceptions import ConfigurationError
from .invocable import APPLY_INFLECTOR_METHOD, Inflector, Invocable, MethodHandler, inflector_apply_method
from .media import MediaType, create_from
from .pattern import PathPattern

if TYPE_CHECKING:
    from .resource import ResourceBuilder

# Set up logger for this module
logger = logging.getLogger(__name__)

# Suspend timeout meaning "never time out"
NEVER = 0


class TimeUnit(Enum):
    """Units for the declarative suspend timeout."""

    NANOSECONDS = "nanoseconds"
    MICROSECONDS = "microseconds"
    MILLISECONDS = "milliseconds"
    SECONDS = "seconds"
    MINUTES = "minutes"
    HOURS = "hours"
    DAYS = "days"

    def to_timedelta(self, value: float) -> timedelta:
        if self is TimeUnit.NANOSECONDS:
            return timedelta(microseconds=value / 1000)
        return timedelta(**{self.value: value})


@dataclass(frozen=True)
class ResourceMethod:
    """Immutable model of a resource method, sub-resource method or sub-resource locator."""

    kind: EndpointKind
    http_method: Optional[str]
    path: str
    path_pattern: PathPattern
    invocable: Invocable
    consumed_types: Tuple[MediaType, ...] = field(default=())
    produced_types: Tuple[MediaType, ...] = field(default=())
    suspended: bool = False
    suspend_timeout: float = NEVER
    suspend_timeout_unit: TimeUnit = TimeUnit.MILLISECONDS

    @classmethod
    def create(
        cls,
        http_method: Optional[str],
        path: str,
        invocable: Invocable,
        consumed_types: Iterable[MediaType] = (),
        produced_types: Iterable[MediaType] = (),
        suspended: bool = False,
        suspend_timeout: float = NEVER,
        suspend_timeout_unit: TimeUnit = TimeUnit.MILLISECONDS,
    ) -> "ResourceMethod":
        """Classify the method and compile its path pattern.

        Raises:
            ClassificationError: If the HTTP method / path combination is invalid
        """
        kind = classify(http_method, path)
        return cls(
            kind=kind,
            http_method=http_method.upper() if http_method is not None else None,
            path=path,
            path_pattern=kind.create_pattern_for(path),
            invocable=invocable,
            consumed_types=tuple(consumed_types),
            produced_types=tuple(produced_types),
            suspended=suspended,
            suspend_timeout=suspend_timeout,
            suspend_timeout_unit=suspend_timeout_unit,
        )

    @property
    def suspend_timeout_delta(self) -> Optional[timedelta]:
        """The suspend timeout as a timedelta, or None when it never times out."""
        if not self.suspended or self.suspend_timeout == NEVER:
            return None
        return self.suspend_timeout_unit.to_timedelta(self.suspend_timeout)

    def components(self) -> List[Any]:
        return [self.invocable]

    def accept(self, visitor) -> None:
        visitor.visit_resource_method(self)

    def __str__(self):
        return (
            f"ResourceMethod{{httpMethod={self.http_method}, path={self.path}, "
            f"consumedTypes={[str(t) for t in self.consumed_types]}, "
            f"producedTypes={[str(t) for t in self.produced_types]}, suspended={self.suspended}, "
            f"suspendTimeout={self.suspend_timeout}, suspendTimeoutUnit={self.suspend_timeout_unit.name}}}"
        )


MediaTypes = Union[str, MediaType, Iterable[Union[str, MediaType]]]


class ResourceMethodBuilder:
    """Resource method model builder.

    Builders are created by ``ResourceBuilder.add_method()`` and stay pending
    in their parent until built. Calling ``build()`` is optional: the parent
    builds every pending method when the resource itself is built.
    """

    def __init__(self, parent: "ResourceBuilder", token: object):
        self._parent = parent
        self._token = token

        self._http_method: Optional[str] = None
        self._path = ""

        self._consumed_types: List[MediaType] = []
        self._produced_types: List[MediaType] = []

        self._suspended = False
        self._suspend_timeout: float = NEVER
        self._suspend_timeout_unit = TimeUnit.MILLISECONDS

        self._handler: Optional[MethodHandler] = None
        self._definition_method: Optional[Callable] = None
        self._handling_method: Optional[Callable] = None
        self._encoded_params = False

    def http_method(self, name: Optional[str]) -> "ResourceMethodBuilder":
        """Set the associated HTTP method name."""
        self._http_method = name
        return self

    def path(self, path: Optional[str]) -> "ResourceMethodBuilder":
        """Set the method routing path. None is treated as an empty path."""
        self._path = path if path is not None else ""
        return self

    def produces(self, *types: MediaTypes) -> "ResourceMethodBuilder":
        """Add produced media types, in call order."""
        self._produced_types.extend(create_from(*types))
        return self

    def consumes(self, *types: MediaTypes) -> "ResourceMethodBuilder":
        """Add consumed media types, in call order."""
        self._consumed_types.extend(create_from(*types))
        return self

    def suspended(self, timeout: float, unit: TimeUnit = TimeUnit.MILLISECONDS) -> "ResourceMethodBuilder":
        """Mark the method for suspending with the given timeout.

        The timeout is only recorded on the model; the dispatcher enforces it.
        """
        self._suspended = True
        self._suspend_timeout = timeout
        self._suspend_timeout_unit = unit
        return self

    def encoded_parameters(self, value: bool) -> "ResourceMethodBuilder":
        """If True, parameter values will not be automatically decoded."""
        self._encoded_params = value
        return self

    def handled_by(self, handler: Any, method: Optional[Callable] = None) -> "ResourceMethodBuilder":
        """Define the handler binding.

        Args:
            handler: One of
                - a handler class: a new instance is created for every request
                - a handler instance: shared between requests
                - an Inflector instance or Inflector subclass, with ``method`` omitted
            method: The handling function. For inflectors it defaults to the
                concrete ``apply`` override, with parameters and response type
                taken from ``Inflector.apply``.

        Raises:
            ConfigurationError: If ``method`` is omitted for a handler that is not an Inflector
        """
        if method is None:
            is_inflector = (
                issubclass(handler, Inflector) if isinstance(handler, type) else isinstance(handler, Inflector)
            )
            if not is_inflector:
                raise ConfigurationError(
                    f"A handling method is required for handler {handler!r} that is not an Inflector"
                )
            self._definition_method = APPLY_INFLECTOR_METHOD
            self._handling_method = inflector_apply_method(handler)
        else:
            self._definition_method = method
            self._handling_method = method

        self._handler = MethodHandler.create(handler)
        return self

    def build(self) -> ResourceMethod:
        """Build the resource method model and register it with the parent resource builder.

        Raises:
            ConfigurationError: If no handler binding was defined
            ClassificationError: If the HTTP method / path combination is invalid
            InternalConsistencyError: If this builder was already built
        """
        if self._handler is None or self._definition_method is None:
            raise ConfigurationError(
                f"No handler defined for resource method (httpMethod={self._http_method}, path='{self._path}')"
            )

        invocable = Invocable.create(
            self._handler, self._definition_method, self._encoded_params, handling_method=self._handling_method
        )

        method = ResourceMethod.create(
            http_method=self._http_method,
            path=self._path,
            invocable=invocable,
            consumed_types=self._consumed_types,
            produced_types=self._produced_types,
            suspended=self._suspended,
            suspend_timeout=self._suspend_timeout,
            suspend_timeout_unit=self._suspend_timeout_unit,
        )

        self._parent.complete(self._token, method)
        logger.debug(f"Built {method.kind.name} {method.http_method or '*'} '{method.path}'")

        return method
