"""
Model of a single resource: a group of resource methods, sub-resource
methods and sub-resource locators under one path template.

Resources can be introspected from decorated handler classes or built
programmatically, and the two can be combined::

    @path("hello")
    class HelloResource:
        @GET
        @produces("text/plain")
        def say_hello(self) -> str:
            return "Hello!"

    issues = []
    builder = Resource.from_class(HelloResource, issues).path("hello2")

    class World(Inflector[Any, str]):
        def apply(self, data):
            return "Hello World!"

    builder.add_method("GET").path("world").produces("text/plain").handled_by(World())

    resource = builder.build()
"""

import inspect
import logging
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Any, Dict, List, Optional, Tuple

from .classifier import EndpointKind
from .exceptions import InternalConsistencyError
from .pattern import OPEN_ROOT_PATH_PATTERN, PathPattern, RightHandPath
from .resource_method import ResourceMethod, ResourceMethodBuilder

if TYPE_CHECKING:
    from .descriptors import DescriptorSource
    from .issues import ModelIssue

# Set up logger for this module
logger = logging.getLogger(__name__)

UNNAMED = "[unnamed]"


@dataclass(frozen=True)
class Resource:
    """Immutable resource model."""

    name: str
    path: Optional[str]
    is_root: bool
    path_pattern: PathPattern
    resource_methods: Tuple[ResourceMethod, ...] = field(default=())
    sub_resource_methods: Tuple[ResourceMethod, ...] = field(default=())
    sub_resource_locators: Tuple[ResourceMethod, ...] = field(default=())

    @classmethod
    def create(
        cls,
        name: str,
        path: Optional[str],
        is_root: bool,
        resource_methods=(),
        sub_resource_methods=(),
        sub_resource_locators=(),
    ) -> "Resource":
        if not is_root or not path:
            pattern = OPEN_ROOT_PATH_PATTERN
        else:
            pattern = PathPattern(path, RightHandPath.ZERO_OR_MORE_SEGMENTS)
        return cls(
            name=name,
            path=path,
            is_root=is_root,
            path_pattern=pattern,
            resource_methods=tuple(resource_methods),
            sub_resource_methods=tuple(sub_resource_methods),
            sub_resource_locators=tuple(sub_resource_locators),
        )

    # Builder factories

    @staticmethod
    def builder(path: Optional[str] = None) -> "ResourceBuilder":
        """Get a new resource model builder.

        Args:
            path: Resource path. When given, the resource is marked as a root
                resource; when omitted the resource is unbound and meant to be
                mounted under a parent.
        """
        builder = ResourceBuilder()
        if path is not None:
            builder.path(path)
        return builder

    @staticmethod
    def builder_from(resource: "Resource") -> "ResourceBuilder":
        """Get a new resource model builder initialized from an existing resource model."""
        builder = ResourceBuilder()
        builder.name(resource.name)
        if resource.is_root:
            builder.path(resource.path)
        builder.merge_with(resource)
        return builder

    @staticmethod
    def from_class(
        resource_class: type,
        issues: List["ModelIssue"],
        source: Optional["DescriptorSource"] = None,
    ) -> "ResourceBuilder":
        """Create a resource model builder by introspecting a decorated handler class.

        The class is checked for acceptability first; an unacceptable class is
        reported as a fatal issue in ``issues``.
        """
        from .introspection import IntrospectionModeller

        return IntrospectionModeller(resource_class, issues, source=source).create_resource_builder(False)

    @staticmethod
    def from_instance(
        resource: Any,
        issues: List["ModelIssue"],
        source: Optional["DescriptorSource"] = None,
    ) -> "ResourceBuilder":
        """Create a resource model builder by introspecting a handler instance.

        The acceptability check is skipped since the instance already exists,
        and the methods are bound to that instance.
        """
        from .introspection import IntrospectionModeller

        return IntrospectionModeller(
            type(resource), issues, source=source, handler_instance=resource
        ).create_resource_builder(True)

    @staticmethod
    def is_acceptable(c: Any) -> bool:
        """Check if the class can be used as a resource handler class.

        Returns False for anything that is not a class, for builtin types,
        abstract classes, protocols and classes defined inside a function.
        """
        if not inspect.isclass(c):
            return False
        if c.__module__ == "builtins":
            return False
        if inspect.isabstract(c) or getattr(c, "_is_protocol", False):
            return False
        if "<locals>" in c.__qualname__:
            return False
        return True

    @staticmethod
    def get_path(resource_class: type) -> Optional[str]:
        """Get the path declared on a resource class, or None if it is not a root resource class."""
        from .descriptors import AnnotationDescriptorSource

        return AnnotationDescriptorSource().describe_class(resource_class).path

    # Model component

    @property
    def all_methods(self) -> Tuple[ResourceMethod, ...]:
        return self.resource_methods + self.sub_resource_methods + self.sub_resource_locators

    def components(self) -> List[ResourceMethod]:
        return list(self.all_methods)

    def accept(self, visitor) -> None:
        visitor.visit_resource(self)

    def __str__(self):
        bound = "[unbound], " if self.path is None else f'"{self.path}", '
        return (
            f"Resource {{{bound}{len(self.resource_methods)} resource methods, "
            f"{len(self.sub_resource_methods)} sub-resource methods, "
            f"{len(self.sub_resource_locators)} sub-resource locators}}"
        )


class ResourceBuilder:
    """Resource model builder.

    Owns its pending method builders until each of them is built; the built
    methods are then filed by kind. Not safe for concurrent use.
    """

    def __init__(self):
        self._name = UNNAMED
        self._path: Optional[str] = None
        # Kept separately because the path itself may be None
        self._is_root = False

        # Pending method builders keyed by their completion token
        self._pending: Dict[object, ResourceMethodBuilder] = {}

        self._resource_methods: List[ResourceMethod] = []
        self._sub_resource_methods: List[ResourceMethod] = []
        self._locators: List[ResourceMethod] = []

    def name(self, name: str) -> "ResourceBuilder":
        """Define the name of the built resource, used for reporting."""
        self._name = name
        return self

    def path(self, path: Optional[str]) -> "ResourceBuilder":
        """Define the path of the built resource.

        Invoking this method marks the resource as a root resource, even when
        the path is None or empty.
        """
        self._path = path
        self._is_root = True
        return self

    @property
    def pending_count(self) -> int:
        return len(self._pending)

    def add_method(self, http_method: Optional[str] = None) -> ResourceMethodBuilder:
        """Add a new method model to the resource.

        Args:
            http_method: HTTP method processed by the method. Omit it for a
                sub-resource locator.

        Returns:
            A new method builder bound to this resource. Calling its
            ``build()`` is optional; pending methods are built together with
            the resource.
        """
        token = object()
        builder = ResourceMethodBuilder(self, token)
        self._pending[token] = builder
        if http_method is not None:
            builder.http_method(http_method)
        return builder

    def merge_with(self, resource: Resource) -> "ResourceBuilder":
        """Merge the methods of a built resource into this builder."""
        self._resource_methods.extend(resource.resource_methods)
        self._sub_resource_methods.extend(resource.sub_resource_methods)
        self._locators.extend(resource.sub_resource_locators)
        return self

    def complete(self, token: object, method: ResourceMethod) -> None:
        """File a method built by one of this resource's pending method builders.

        Raises:
            InternalConsistencyError: If the token does not belong to a pending builder
        """
        if self._pending.pop(token, None) is None:
            raise InternalConsistencyError(
                "ResourceBuilder.complete() invoked from a resource method builder "
                "that is not pending in this resource builder instance."
            )

        if method.kind is EndpointKind.RESOURCE_METHOD:
            self._resource_methods.append(method)
        elif method.kind is EndpointKind.SUB_RESOURCE_METHOD:
            self._sub_resource_methods.append(method)
        else:
            self._locators.append(method)

    def build(self) -> Resource:
        """Build pending methods and return the new (immutable) resource model."""
        # Building a method removes it from the pending dict, so never hold an iterator across builds
        while self._pending:
            next(iter(self._pending.values())).build()

        return Resource.create(
            name=self._name,
            path=self._path,
            is_root=self._is_root,
            resource_methods=self._resource_methods,
            sub_resource_methods=self._sub_resource_methods,
            sub_resource_locators=self._locators,
        )

    def __str__(self):
        bound = "[unbound]" if not self._is_root else f'"{self._path}"'
        return (
            f"ResourceBuilder {{{self._name}, {bound}, {self.pending_count} pending methods, "
            f"{len(self._resource_methods)} resource methods, {len(self._sub_resource_methods)} "
            f"sub-resource methods, {len(self._locators)} sub-resource locators}}"
        )
