"""
Descriptors of the declared metadata of a handler class.

The introspection modeller never reads decorators directly. It asks a
``DescriptorSource`` for class, method and field descriptors, so metadata
can come from the decorators in ``restmodel.annotations`` (the default),
from generated code or from hand-written registrations.
"""

import inspect
import re
from abc import ABC, abstractmethod
from typing import Any, Callable, Dict, List, Optional, Tuple

from pydantic import BaseModel, ConfigDict, Field, field_validator

from .annotations import (
    CONSUMES_ATTR,
    ENCODED_ATTR,
    HTTP_METHOD_ATTR,
    PATH_ATTR,
    PRODUCES_ATTR,
)
from .parameters import has_source_marker
from .reflection import (
    NoneType,
    declared_parameters,
    declared_return_type,
    get_type_hints,
    resolve_generic_type,
    split_annotated,
)

_HTTP_METHOD_TOKEN = re.compile(r"^[!#$%&'*+.^_`|~0-9A-Za-z-]+$")

_METHOD_ATTRS = (HTTP_METHOD_ATTR, PATH_ATTR, CONSUMES_ATTR, PRODUCES_ATTR)


def is_http_method_token(name: str) -> bool:
    """Check whether a declared HTTP method name is a valid token."""
    return bool(_HTTP_METHOD_TOKEN.match(name))


class ParamDescriptor(BaseModel):
    """A declared parameter (or injectable field) of a handler."""

    model_config = ConfigDict(arbitrary_types_allowed=True, frozen=True)

    name: str
    annotations: Tuple[Any, ...] = Field(
        default=(),
        description="Parameter markers declared on the parameter (source, Encoded, DefaultValue)"
    )
    raw_type: Any = object
    generic_type: Any = Field(default_factory=lambda: Any)

    @property
    def is_marked(self) -> bool:
        return has_source_marker(self.annotations)


class MethodDescriptor(BaseModel):
    """Declared metadata of a single handler method."""

    model_config = ConfigDict(arbitrary_types_allowed=True, frozen=True)

    name: str
    http_method: Optional[str] = Field(
        None,
        description="HTTP method the method is bound to, None for locators and plain methods"
    )
    path: Optional[str] = Field(None, description="Declared path template, None if not declared")
    consumes: Optional[List[str]] = Field(None, description="Consumed media types overriding the class defaults")
    produces: Optional[List[str]] = Field(None, description="Produced media types overriding the class defaults")
    is_public: bool = True
    parameters: List[ParamDescriptor] = Field(default_factory=list)
    return_type: Any = Field(default_factory=lambda: Any)
    method: Callable[..., Any]
    declaring_class: Optional[type] = None

    @field_validator("http_method", mode="before")
    @classmethod
    def normalize_http_method(cls, v: Any) -> Any:
        """Normalize the HTTP method to upper case.

        Token syntax is checked by the introspection modeller so that a bad
        declaration is reported as a model issue.
        """
        if v is None:
            return v
        if not isinstance(v, str):
            raise ValueError(f"Invalid HTTP method name: {v!r}")
        return v.upper()

    @property
    def is_setter_shaped(self) -> bool:
        """A ``set*`` method with a single parameter, returning nothing, that is not an endpoint."""
        return (
            self.http_method is None
            and self.path is None
            and self.name.startswith("set")
            and len(self.parameters) == 1
            and self.return_type in (NoneType, None, Any, inspect.Signature.empty)
        )

    def __str__(self):
        owner = self.declaring_class.__qualname__ if self.declaring_class is not None else "?"
        params = ", ".join(p.name for p in self.parameters)
        return f"{owner}.{self.name}({params})"


class FieldDescriptor(BaseModel):
    """An injectable field of a handler class."""

    model_config = ConfigDict(arbitrary_types_allowed=True, frozen=True)

    name: str
    parameter: ParamDescriptor
    declaring_class: Optional[type] = None

    def __str__(self):
        owner = self.declaring_class.__qualname__ if self.declaring_class is not None else "?"
        return f"{owner}.{self.name}"


class ClassDescriptor(BaseModel):
    """Class level declarations of a handler class."""

    model_config = ConfigDict(arbitrary_types_allowed=True, frozen=True)

    annotated_class: type = Field(..., description="The class carrying the declarations")
    path: Optional[str] = None
    consumes: List[str] = Field(default_factory=list)
    produces: List[str] = Field(default_factory=list)
    encoded: bool = False


class DescriptorSource(ABC):
    """Supplies descriptors of a handler class's declared metadata."""

    @abstractmethod
    def describe_class(self, handler_class: type) -> ClassDescriptor:
        """Describe class level declarations."""

    @abstractmethod
    def describe_methods(self, handler_class: type) -> List[MethodDescriptor]:
        """Describe all declared methods, public or not."""

    @abstractmethod
    def describe_fields(self, handler_class: type) -> List[FieldDescriptor]:
        """Describe the injectable fields declared on the class itself."""


def _param_descriptors(handler_class: type, function: Callable) -> List[ParamDescriptor]:
    result = []
    for name, annotation in declared_parameters(function):
        base_type, metadata = split_annotated(annotation)
        resolved = resolve_generic_type(handler_class, base_type)
        result.append(ParamDescriptor(
            name=name,
            annotations=metadata,
            raw_type=resolved.raw_class,
            generic_type=resolved.type,
        ))
    return result


def _declares_metadata(function: Callable) -> bool:
    return any(hasattr(function, attr) for attr in _METHOD_ATTRS)


class AnnotationDescriptorSource(DescriptorSource):
    """Reads the decorators from ``restmodel.annotations``."""

    def get_annotated_resource_class(self, resource_class: type) -> type:
        """Return the class carrying the ``@path`` declaration.

        That is the class itself if it declares a path, else the first direct
        base class declaring one, else the class itself.
        """
        if PATH_ATTR in vars(resource_class):
            return resource_class

        for base in resource_class.__bases__:
            if PATH_ATTR in vars(base):
                return base

        return resource_class

    def describe_class(self, handler_class: type) -> ClassDescriptor:
        annotated = self.get_annotated_resource_class(handler_class)
        declared = vars(annotated)
        return ClassDescriptor(
            annotated_class=annotated,
            path=declared.get(PATH_ATTR),
            consumes=list(declared.get(CONSUMES_ATTR, [])),
            produces=list(declared.get(PRODUCES_ATTR, [])),
            encoded=bool(declared.get(ENCODED_ATTR, False)),
        )

    def describe_methods(self, handler_class: type) -> List[MethodDescriptor]:
        mro = [klass for klass in inspect.getmro(handler_class) if klass is not object]

        # Most derived definition of every name wins
        definitions: Dict[str, Tuple[type, Any]] = {}
        for klass in mro:
            for name, value in vars(klass).items():
                if name not in definitions:
                    definitions[name] = (klass, value)

        descriptors = []
        for name, (klass, value) in definitions.items():
            if name.startswith("__") and name.endswith("__"):
                continue
            if not inspect.isfunction(value):
                continue

            declared = self._find_declarations(mro, name, value)
            descriptors.append(MethodDescriptor(
                name=name,
                http_method=getattr(declared, HTTP_METHOD_ATTR, None),
                path=getattr(declared, PATH_ATTR, None),
                consumes=getattr(declared, CONSUMES_ATTR, None),
                produces=getattr(declared, PRODUCES_ATTR, None),
                is_public=not name.startswith("_"),
                parameters=_param_descriptors(handler_class, value),
                return_type=declared_return_type(value),
                method=value,
                declaring_class=klass,
            ))
        return descriptors

    @staticmethod
    def _find_declarations(mro: List[type], name: str, function: Callable) -> Callable:
        # An undecorated override inherits the declarations of the definition it overrides
        if _declares_metadata(function):
            return function
        for klass in mro:
            candidate = vars(klass).get(name)
            if inspect.isfunction(candidate) and _declares_metadata(candidate):
                return candidate
        return function

    def describe_fields(self, handler_class: type) -> List[FieldDescriptor]:
        own = inspect.get_annotations(handler_class)
        hints = get_type_hints(handler_class)

        descriptors = []
        for name in own:
            annotation = hints.get(name, own[name])
            base_type, metadata = split_annotated(annotation)
            if not has_source_marker(metadata):
                continue
            resolved = resolve_generic_type(handler_class, base_type)
            descriptors.append(FieldDescriptor(
                name=name,
                parameter=ParamDescriptor(
                    name=name,
                    annotations=metadata,
                    raw_type=resolved.raw_class,
                    generic_type=resolved.type,
                ),
                declaring_class=handler_class,
            ))
        return descriptors
