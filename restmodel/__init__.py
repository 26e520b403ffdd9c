"""
A resource model compiler for HTTP routing.

Handler classes declare their endpoints with decorators (or are described
programmatically with builders) and are compiled into an immutable tree of
resources, resource methods, sub-resource methods and sub-resource locators,
each carrying a compiled path pattern, its media types and the bound
handling method with its resolved parameters.
"""

from .annotations import (
    DELETE,
    GET,
    HEAD,
    OPTIONS,
    PATCH,
    POST,
    PUT,
    consumes,
    encoded,
    http_method,
    path,
    produces,
)
from .classifier import EndpointKind, classify
from .config import ModelSettings
from .descriptors import AnnotationDescriptorSource, DescriptorSource
from .exceptions import (
    ClassificationError,
    ConfigurationError,
    InternalConsistencyError,
    ModelValidationError,
    ParameterBindingError,
    ResourceModelError,
)
from .introspection import IntrospectionModeller, build_resource
from .invocable import Inflector, Invocable, MethodHandler
from .issues import ModelIssue, has_fatal_issues, raise_for_fatal
from .media import MediaType
from .parameters import (
    Context,
    CookieParam,
    DefaultValue,
    Encoded,
    FormParam,
    HeaderParam,
    MatrixParam,
    Parameter,
    ParameterSource,
    PathParam,
    QueryParam,
)
from .pattern import PathPattern, RightHandPath
from .resource import Resource, ResourceBuilder
from .resource_method import ResourceMethod, ResourceMethodBuilder, TimeUnit
from .validation import BasicValidator, ResourceModelVisitor

__version__ = "0.1.0"
__author__ = "restmodel Contributors"
__license__ = "MIT"

__all__ = [
    "Resource",
    "ResourceBuilder",
    "ResourceMethod",
    "ResourceMethodBuilder",
    "EndpointKind",
    "classify",
    "Invocable",
    "Inflector",
    "MethodHandler",
    "Parameter",
    "ParameterSource",
    "PathParam",
    "QueryParam",
    "HeaderParam",
    "MatrixParam",
    "CookieParam",
    "FormParam",
    "Context",
    "Encoded",
    "DefaultValue",
    "MediaType",
    "PathPattern",
    "RightHandPath",
    "TimeUnit",
    "IntrospectionModeller",
    "build_resource",
    "ModelSettings",
    "DescriptorSource",
    "AnnotationDescriptorSource",
    "ModelIssue",
    "has_fatal_issues",
    "raise_for_fatal",
    "BasicValidator",
    "ResourceModelVisitor",
    "ResourceModelError",
    "ConfigurationError",
    "ParameterBindingError",
    "ClassificationError",
    "InternalConsistencyError",
    "ModelValidationError",
    "GET",
    "POST",
    "PUT",
    "DELETE",
    "PATCH",
    "HEAD",
    "OPTIONS",
    "http_method",
    "path",
    "consumes",
    "produces",
    "encoded",
]
