"""
Resource model visitor and the basic model validator.
"""

import logging
from typing import Any, List, Optional, Set, Tuple

from .classifier import EndpointKind
from .issues import ModelIssue
from .parameters import NAMED_SOURCES, DefaultValue, Encoded, Parameter, ParameterSource
from .reflection import NoneType

# Set up logger for this module
logger = logging.getLogger(__name__)


class ResourceModelVisitor:
    """Visitor over a resource model tree. Override the nodes you are interested in."""

    def visit_resource(self, resource) -> None:
        pass

    def visit_resource_method(self, method) -> None:
        pass

    def visit_invocable(self, invocable) -> None:
        pass


def walk(component, visitor: ResourceModelVisitor) -> None:
    """Visit a model component and, depth first, all of its components."""
    component.accept(visitor)
    for child in component.components():
        walk(child, visitor)


class BasicValidator(ResourceModelVisitor):
    """Checks a resource model for problems the builders cannot detect on their own.

    Problems are appended to the caller-owned issue list, never raised.
    """

    def __init__(self, issues: Optional[List[ModelIssue]] = None):
        self.issues: List[ModelIssue] = issues if issues is not None else []

    def validate(self, resource) -> List[ModelIssue]:
        """Validate a resource and all of its methods."""
        before = len(self.issues)
        walk(resource, self)
        logger.debug(f"Validated {resource.name}: {len(self.issues) - before} issue(s) found")
        return self.issues

    def _fatal(self, source: Any, message: str) -> None:
        logger.warning(message)
        self.issues.append(ModelIssue(source=source, message=message, fatal=True))

    def _minor(self, source: Any, message: str) -> None:
        logger.debug(message)
        self.issues.append(ModelIssue(source=source, message=message, fatal=False))

    def visit_resource(self, resource) -> None:
        if not resource.all_methods:
            self._minor(resource, f"Resource {resource.name} does not contain any resource methods, "
                                  f"sub-resource methods or sub-resource locators.")

        self._check_ambiguous(resource, resource.resource_methods)
        self._check_ambiguous(resource, resource.sub_resource_methods)

    def _check_ambiguous(self, resource, methods) -> None:
        seen: Set[Tuple[Any, ...]] = set()
        for method in methods:
            key = (
                method.http_method,
                method.path_pattern,
                method.consumed_types,
                method.produced_types,
            )
            if key in seen:
                self._fatal(method, f"Resource {resource.name} declares more than one {method.http_method} "
                                    f"method for path '{method.path}' consuming {list(map(str, method.consumed_types))} "
                                    f"and producing {list(map(str, method.produced_types))}.")
            seen.add(key)

    def visit_resource_method(self, method) -> None:
        invocable = method.invocable
        method_name = getattr(invocable.definition_method, "__qualname__", repr(invocable.definition_method))

        if method.kind is EndpointKind.SUB_RESOURCE_LOCATOR:
            if invocable.requires_entity():
                self._fatal(method, f"Sub-resource locator {method_name} must not declare an entity parameter.")
            if invocable.response_type.raw_class is NoneType:
                self._fatal(method, f"Sub-resource locator {method_name} must return a sub-resource.")
        elif method.http_method == "GET" and invocable.requires_entity():
            self._minor(method, f"GET method {method_name} declares an entity parameter; "
                                f"GET requests are not expected to carry an entity.")

    def visit_invocable(self, invocable) -> None:
        method_name = getattr(invocable.definition_method, "__qualname__", repr(invocable.definition_method))
        for index, parameter in enumerate(invocable.parameters):
            self.validate_parameter(parameter, invocable.definition_method, method_name, str(index + 1))

    def validate_parameter(self, parameter: Parameter, source: Any, name: str, position: str) -> bool:
        """Validate a single parameter binding.

        Args:
            parameter: The parameter to check
            source: The model element reported as the issue source
            name: Name of the method or field, used in messages
            position: Parameter position or field name, used in messages

        Returns:
            True if no fatal issue was found
        """
        if parameter.source is ParameterSource.UNKNOWN:
            self._fatal(source, f"Parameter {position} of {name} declares conflicting parameter sources: "
                                f"{[a for a in parameter.annotations]}.")
            return False

        if parameter.source in NAMED_SOURCES and not parameter.source_name:
            self._fatal(source, f"Parameter {position} of {name} is bound to a {parameter.source.value} "
                                f"value without a name.")
            return False

        if parameter.source in (ParameterSource.ENTITY, ParameterSource.CONTEXT):
            ignored = [a for a in parameter.annotations if isinstance(a, (Encoded, DefaultValue))]
            if ignored:
                self._minor(source, f"Parameter {position} of {name} is a {parameter.source.value} parameter; "
                                    f"{ignored} will be ignored.")

        return True
