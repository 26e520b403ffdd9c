"""
Invocable model: a handler bound to a handling method, with its resolved
response type and parameter bindings.
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import Annotated, Any, Callable, Generic, List, Optional, Tuple, TypeVar

from .exceptions import ParameterBindingError
from .parameters import Context, Parameter, ParameterSource, create_parameters
from .reflection import (
    ClassTypePair,
    declared_parameters,
    declared_return_type,
    resolve_generic_type,
)

DataT = TypeVar("DataT")
ResultT = TypeVar("ResultT")


class Inflector(ABC, Generic[DataT, ResultT]):
    """A single-method handler that turns request data into a result."""

    @abstractmethod
    def apply(self, data: Annotated[DataT, Context()]) -> ResultT:
        raise NotImplementedError


APPLY_INFLECTOR_METHOD = Inflector.apply


def inflector_apply_method(handler: Any) -> Callable:
    """Return the concrete ``apply`` override of an Inflector class or instance."""
    inflector_class = handler if isinstance(handler, type) else type(handler)
    return inflector_class.apply


class MethodHandler(ABC):
    """Provides the handler instance a handling method is invoked on."""

    @property
    @abstractmethod
    def handler_class(self) -> type:
        """The concrete handler class."""

    @abstractmethod
    def get_instance(self) -> Any:
        """Return the instance to invoke the handling method on."""

    @staticmethod
    def create(handler: Any) -> "MethodHandler":
        """Create a class-based handler for a class, or an instance-based one otherwise."""
        if isinstance(handler, type):
            return ClassBasedMethodHandler(handler)
        return InstanceBasedMethodHandler(handler)


class ClassBasedMethodHandler(MethodHandler):
    """Creates a new handler instance for every invocation."""

    def __init__(self, handler_class: type):
        self._handler_class = handler_class

    @property
    def handler_class(self) -> type:
        return self._handler_class

    def get_instance(self) -> Any:
        return self._handler_class()

    def __eq__(self, other):
        return isinstance(other, ClassBasedMethodHandler) and self._handler_class is other._handler_class

    def __hash__(self):
        return hash(self._handler_class)

    def __repr__(self):
        return f"ClassBasedMethodHandler({self._handler_class.__qualname__})"


class InstanceBasedMethodHandler(MethodHandler):
    """Shares a single handler instance between invocations."""

    def __init__(self, instance: Any):
        self._instance = instance

    @property
    def handler_class(self) -> type:
        return type(self._instance)

    def get_instance(self) -> Any:
        return self._instance

    def __eq__(self, other):
        return isinstance(other, InstanceBasedMethodHandler) and self._instance is other._instance

    def __hash__(self):
        return id(self._instance)

    def __repr__(self):
        return f"InstanceBasedMethodHandler({type(self._instance).__qualname__})"


@dataclass(frozen=True)
class Invocable:
    """A handling method bound to a handler.

    The definition method declares the parameters and the response type,
    which are resolved against the concrete handler class. The handling method
    is the function actually invoked; it differs from the definition method
    when a subclass overrides a generic base method such as ``Inflector.apply``.
    """

    handler: MethodHandler
    definition_method: Callable
    handling_method: Callable
    response_type: ClassTypePair
    parameters: Tuple[Parameter, ...] = field(default=())

    @classmethod
    def create(
        cls,
        handler: MethodHandler,
        definition_method: Callable,
        encoded_parameters: bool = False,
        handling_method: Optional[Callable] = None,
    ) -> "Invocable":
        """Create a new invocable model.

        Args:
            handler: Resource method handler
            definition_method: The function declaring parameters and response type
            encoded_parameters: True if automatic parameter decoding should be disabled
            handling_method: The function to invoke, defaults to ``definition_method``

        Raises:
            ParameterBindingError: If more than one parameter lacks a source marker
        """
        handler_class = handler.handler_class

        parameters = create_parameters(handler_class, declared_parameters(definition_method), encoded_parameters)
        entity_parameters = [p.name for p in parameters if p.source is ParameterSource.ENTITY]
        if len(entity_parameters) > 1:
            raise ParameterBindingError(
                f"Handling method {getattr(definition_method, '__qualname__', definition_method)} declares more than "
                f"one entity parameter: {', '.join(entity_parameters)}. "
                f"Annotate all but one of them with a parameter source.",
                method=definition_method,
            )

        return cls(
            handler=handler,
            definition_method=definition_method,
            handling_method=handling_method if handling_method is not None else definition_method,
            response_type=resolve_generic_type(handler_class, declared_return_type(definition_method)),
            parameters=tuple(parameters),
        )

    def requires_entity(self) -> bool:
        """True if any parameter binds to the request entity."""
        return any(p.source is ParameterSource.ENTITY for p in self.parameters)

    def components(self) -> List[Any]:
        return []

    def accept(self, visitor) -> None:
        visitor.visit_invocable(self)

    def __repr__(self):
        method_name = getattr(self.handling_method, "__qualname__", repr(self.handling_method))
        return (
            f"Invocable(handler={self.handler!r}, handling_method={method_name}, "
            f"parameters={list(self.parameters)!r}, response_type={self.response_type!r})"
        )
