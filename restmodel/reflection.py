"""
Type resolution helpers for handler classes.

A handler may implement a generic base (``Inflector[Request, T]``) whose type
variables are only fixed by a subclass. The helpers here substitute those
variables using the concrete handler class's position in its hierarchy.
"""

import inspect
import logging
import typing
from dataclasses import dataclass
from typing import Any, Callable, Dict, List, Tuple, TypeVar, get_args, get_origin

# Set up logger for this module
logger = logging.getLogger(__name__)

NoneType = type(None)


@dataclass(frozen=True)
class ClassTypePair:
    """A raw class together with the (possibly generic) type it was taken from."""

    raw_class: Any
    type: Any


def split_annotated(annotation: Any) -> Tuple[Any, Tuple[Any, ...]]:
    """Split ``Annotated[T, m1, m2]`` into ``(T, (m1, m2))``.

    Non-annotated types are returned with empty metadata.
    """
    if get_origin(annotation) is typing.Annotated:
        args = get_args(annotation)
        return args[0], tuple(args[1:])
    return annotation, ()


def get_type_hints(obj: Any) -> Dict[str, Any]:
    """Return resolved type hints of a function or class, keeping ``Annotated`` metadata.

    Falls back to the raw annotations when forward references cannot be
    resolved.
    """
    try:
        return typing.get_type_hints(obj, include_extras=True)
    except (NameError, TypeError) as e:
        logger.debug(f"Could not resolve type hints of {obj!r}, using raw annotations: {e}")
        return dict(inspect.get_annotations(obj))


def resolve_type_variables(concrete_class: type) -> Dict[Any, Any]:
    """Map every type variable bound in the hierarchy of ``concrete_class``.

    The MRO is walked from the most derived class upwards so that arguments
    given in terms of a subclass's own type variables are substituted with
    what that subclass was in turn parameterised with.
    """
    mapping: Dict[Any, Any] = {}
    for klass in inspect.getmro(concrete_class):
        for base in klass.__dict__.get("__orig_bases__", ()):
            origin = get_origin(base)
            if origin is None or origin is typing.Generic or origin is typing.Protocol:
                continue
            params = getattr(origin, "__parameters__", ())
            for param, arg in zip(params, get_args(base)):
                if param not in mapping:
                    mapping[param] = substitute(arg, mapping)
    return mapping


def substitute(tp: Any, mapping: Dict[Any, Any]) -> Any:
    """Substitute known type variables inside ``tp``."""
    if isinstance(tp, TypeVar):
        return mapping.get(tp, tp)
    params = getattr(tp, "__parameters__", ())
    if params and not isinstance(tp, type):
        resolved = tuple(mapping.get(p, p) for p in params)
        if resolved != tuple(params):
            return tp[resolved if len(resolved) > 1 else resolved[0]]
    return tp


def raw_class_of(tp: Any) -> Any:
    """Return the raw class for a type annotation.

    Examples:
        raw_class_of(List[str]) -> list
        raw_class_of(None) -> NoneType
        raw_class_of(Annotated[int, ...]) -> int
        raw_class_of(T) -> T's bound, or object
    """
    tp, _ = split_annotated(tp)
    if tp is None:
        return NoneType
    if tp is Any or tp is inspect.Parameter.empty:
        return object
    if isinstance(tp, TypeVar):
        return raw_class_of(tp.__bound__) if tp.__bound__ is not None else object
    origin = get_origin(tp)
    if origin is not None:
        return origin
    if isinstance(tp, type):
        return tp
    return object


def resolve_generic_type(concrete_class: type, generic_type: Any) -> ClassTypePair:
    """Resolve a declared type against the concrete class hierarchy.

    Args:
        concrete_class: The handler class the method is invoked on
        generic_type: The declared (possibly generic) type

    Returns:
        ClassTypePair with the raw class and the resolved type
    """
    if generic_type is inspect.Parameter.empty or generic_type is inspect.Signature.empty:
        return ClassTypePair(object, Any)
    if generic_type is None:
        return ClassTypePair(NoneType, NoneType)

    resolved = substitute(generic_type, resolve_type_variables(concrete_class))
    return ClassTypePair(raw_class_of(resolved), resolved)


def unwrap_method(method: Callable) -> Callable:
    """Return the plain function behind a bound method."""
    return method.__func__ if inspect.ismethod(method) else method


def declared_parameters(method: Callable) -> List[Tuple[str, Any]]:
    """List the bindable parameters of a handling method as ``(name, annotation)`` pairs.

    The first positional parameter is the receiver and is skipped, both for
    plain functions taken from a class and for bound methods. Variadic
    parameters cannot be bound and are skipped as well. Missing annotations
    are reported as ``inspect.Parameter.empty``.
    """
    function = unwrap_method(method)
    hints = get_type_hints(function)
    params = list(inspect.signature(function).parameters.values())

    result = []
    for param in params[1:]:
        if param.kind in (inspect.Parameter.VAR_POSITIONAL, inspect.Parameter.VAR_KEYWORD):
            continue
        result.append((param.name, hints.get(param.name, param.annotation)))
    return result


def declared_return_type(method: Callable) -> Any:
    """Return the declared return annotation of a handling method."""
    function = unwrap_method(method)
    hints = get_type_hints(function)
    if "return" in hints:
        return hints["return"]
    return inspect.signature(function).return_annotation
