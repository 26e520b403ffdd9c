"""
Construction of resource models from decorated handler classes.
"""

import logging
from typing import Any, List, Optional

from .config import ModelSettings
from .descriptors import AnnotationDescriptorSource, DescriptorSource, MethodDescriptor, is_http_method_token
from .issues import ModelIssue, has_fatal_issues, raise_for_fatal
from .media import MediaType, create_from
from .parameters import Parameter, declares_source
from .pattern import UriTemplate
from .resource import Resource, ResourceBuilder
from .validation import BasicValidator

# Set up logger for this module
logger = logging.getLogger(__name__)


class IntrospectionModeller:
    """Builds a resource model builder from the declared metadata of a handler class.

    Declarative problems are reported in the issue list and never raised.
    """

    def __init__(
        self,
        handler_class: type,
        issues: List[ModelIssue],
        source: Optional[DescriptorSource] = None,
        handler_instance: Any = None,
    ):
        """Create a new introspection modeller.

        Args:
            handler_class: Resource (handler) class
            issues: Mutable list of issues, updated with the issues found while
                introspecting the class
            source: Descriptor source, defaults to the decorator-based source
            handler_instance: Existing handler instance to bind the methods to.
                When omitted, a new instance is created for every request.
        """
        self.handler_class = handler_class
        self.issues = issues
        self.source = source or AnnotationDescriptorSource()
        self.handler_instance = handler_instance

    @property
    def _handler(self) -> Any:
        return self.handler_instance if self.handler_instance is not None else self.handler_class

    def _add_fatal_issue(self, source: Any, message: str) -> None:
        logger.warning(message)
        self.issues.append(ModelIssue(source=source, message=message, fatal=True))

    def _add_minor_issue(self, source: Any, message: str) -> None:
        logger.debug(message)
        self.issues.append(ModelIssue(source=source, message=message, fatal=False))

    def create_resource_builder(self, skip_acceptable_check: bool = False) -> ResourceBuilder:
        """Introspect the handler class.

        Args:
            skip_acceptable_check: Skip the acceptability check, used when
                modelling an instance that already exists

        Returns:
            Resource builder populated with the class's resource methods,
            sub-resource methods and sub-resource locators. It is rooted at the
            class path if one is declared, otherwise unbound.
        """
        if not skip_acceptable_check and not Resource.is_acceptable(self.handler_class):
            self._add_fatal_issue(
                self.handler_class,
                f"Class {self._class_name} cannot be instantiated as a resource: it is abstract, "
                f"a protocol, a builtin or a class defined inside a function.",
            )

        methods = self.source.describe_methods(self.handler_class)
        self._check_for_non_public_method_issues(methods)

        class_descriptor = self.source.describe_class(self.handler_class)
        keep_encoded = class_descriptor.encoded
        default_consumed = self._extract_media_types(class_descriptor.consumes, class_descriptor.annotated_class)
        default_produced = self._extract_media_types(class_descriptor.produces, class_descriptor.annotated_class)

        self._check_resource_class_setters(methods, keep_encoded)
        self._check_resource_class_fields(keep_encoded)

        if class_descriptor.path is not None and self._is_valid_template(
                class_descriptor.annotated_class, class_descriptor.path, f"class {self._class_name}"):
            builder = Resource.builder(class_descriptor.path)
        else:
            builder = Resource.builder()
        builder.name(self._class_name)

        self._add_resource_methods(builder, methods, keep_encoded, default_consumed, default_produced)
        self._add_sub_resource_methods(builder, methods, keep_encoded, default_consumed, default_produced)
        self._add_sub_resource_locators(builder, methods, keep_encoded)

        logger.debug(f"New resource builder created by introspection: {builder}")
        return builder

    @property
    def _class_name(self) -> str:
        return f"{self.handler_class.__module__}.{self.handler_class.__qualname__}"

    def _check_for_non_public_method_issues(self, methods: List[MethodDescriptor]) -> None:
        for m in methods:
            if m.is_public:
                continue
            if m.http_method is not None and m.path is None:
                self._add_minor_issue(self.handler_class, f"A resource method, {m}, is not public.")
            elif m.http_method is not None:
                self._add_minor_issue(self.handler_class, f"A sub-resource method, {m}, is not public.")
            elif m.path is not None:
                self._add_minor_issue(self.handler_class, f"A sub-resource locator, {m}, is not public.")

    def _check_resource_class_setters(self, methods: List[MethodDescriptor], encoded: bool) -> None:
        validator = BasicValidator(self.issues)
        for m in methods:
            if not m.is_setter_shaped:
                continue
            p = m.parameters[0]
            if not p.is_marked:
                continue
            parameter = Parameter.create(self.handler_class, p.name, p.generic_type, encoded, p.annotations)
            validator.validate_parameter(parameter, m.method, str(m), "1")

    def _check_resource_class_fields(self, encoded: bool) -> None:
        validator = BasicValidator(self.issues)
        for f in self.source.describe_fields(self.handler_class):
            p = f.parameter
            parameter = Parameter.create(self.handler_class, p.name, p.generic_type, encoded, p.annotations)
            validator.validate_parameter(parameter, f, str(f), f.name)

    def _extract_media_types(self, values: Optional[List[str]], source: Any) -> List[MediaType]:
        if not values:
            return []
        try:
            return create_from(values)
        except ValueError as e:
            self._add_fatal_issue(source, f"Invalid media type declared on {source}: {e}")
            return []

    def _resolve_media_types(self, m: MethodDescriptor, declared: Optional[List[str]],
                             defaults: List[MediaType]) -> Optional[List[MediaType]]:
        # Method declarations override the class defaults, even when empty
        if declared is None:
            return defaults
        try:
            return create_from(declared)
        except ValueError as e:
            self._add_fatal_issue(m.method, f"Invalid media type declared on {m}: {e}")
            return None

    def _is_valid_template(self, source: Any, template: str, owner: str) -> bool:
        try:
            UriTemplate(template)
        except ValueError as e:
            self._add_fatal_issue(source, f"Invalid path template '{template}' declared on {owner}: {e}")
            return False
        return True

    def _is_bindable(self, m: MethodDescriptor) -> bool:
        entity_parameters = [p.name for p in m.parameters if not declares_source(p.annotations)]
        if len(entity_parameters) > 1:
            self._add_fatal_issue(
                m.method,
                f"Method {m} declares more than one entity parameter: {', '.join(entity_parameters)}.",
            )
            return False
        return True

    def _add_resource_methods(self, builder: ResourceBuilder, methods: List[MethodDescriptor], encoded: bool,
                              default_consumed: List[MediaType], default_produced: List[MediaType]) -> None:
        for m in methods:
            if m.http_method is None or m.path is not None:
                continue
            self._add_http_method(builder, m, encoded, default_consumed, default_produced)

    def _add_sub_resource_methods(self, builder: ResourceBuilder, methods: List[MethodDescriptor], encoded: bool,
                                  default_consumed: List[MediaType], default_produced: List[MediaType]) -> None:
        for m in methods:
            if m.http_method is None or m.path is None:
                continue
            self._add_http_method(builder, m, encoded, default_consumed, default_produced)

    def _add_http_method(self, builder: ResourceBuilder, m: MethodDescriptor, encoded: bool,
                         default_consumed: List[MediaType], default_produced: List[MediaType]) -> None:
        if not m.http_method:
            self._add_fatal_issue(m.method, f"Method {m} declares an empty HTTP method name.")
            return
        if not is_http_method_token(m.http_method):
            self._add_fatal_issue(m.method, f"Method {m} declares an invalid HTTP method name: '{m.http_method}'.")
            return
        if m.path is not None and not self._is_valid_template(m.method, m.path, f"method {m}"):
            return

        consumed = self._resolve_media_types(m, m.consumes, default_consumed)
        produced = self._resolve_media_types(m, m.produces, default_produced)
        if consumed is None or produced is None or not self._is_bindable(m):
            return

        method_builder = builder.add_method(m.http_method)
        if m.path is not None:
            method_builder.path(m.path)
        (method_builder
            .consumes(consumed)
            .produces(produced)
            .encoded_parameters(encoded)
            .handled_by(self._handler, m.method))

    def _add_sub_resource_locators(self, builder: ResourceBuilder, methods: List[MethodDescriptor],
                                   encoded: bool) -> None:
        for m in methods:
            if m.http_method is not None or m.path is None:
                continue
            if not m.path:
                self._add_fatal_issue(m.method, f"Sub-resource locator {m} declares an empty path.")
                continue
            if not self._is_valid_template(m.method, m.path, f"method {m}") or not self._is_bindable(m):
                continue
            (builder.add_method()
                .path(m.path)
                .encoded_parameters(encoded)
                .handled_by(self._handler, m.method))


def build_resource(
    handler: Any,
    issues: Optional[List[ModelIssue]] = None,
    settings: Optional[ModelSettings] = None,
    source: Optional[DescriptorSource] = None,
) -> Resource:
    """Introspect, build and validate the resource model of a handler class or instance.

    Args:
        handler: Handler class, or an existing handler instance
        issues: Mutable list receiving the issues found, a new list is used if omitted
        settings: Build settings, read from the environment if omitted
        source: Descriptor source, defaults to the decorator-based source

    Returns:
        The built resource

    Raises:
        ModelValidationError: In strict mode, if any fatal issue was found
    """
    issues = issues if issues is not None else []
    settings = settings or ModelSettings.from_env()

    if isinstance(handler, type):
        builder = Resource.from_class(handler, issues, source=source)
    else:
        builder = Resource.from_instance(handler, issues, source=source)

    resource = builder.build()

    if settings.validate:
        BasicValidator(issues).validate(resource)

    if issues:
        logger.info(
            f"Resource {resource.name} built with {len(issues)} issue(s)"
            f"{' including fatal ones' if has_fatal_issues(issues) else ''}"
        )

    if settings.strict:
        raise_for_fatal(issues)

    return resource
