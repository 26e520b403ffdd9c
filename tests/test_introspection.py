"""Tests for modelling decorated handler classes."""

import logging
from abc import ABC, abstractmethod
from typing import Annotated

import pytest

from restmodel import (
    DELETE,
    GET,
    POST,
    PUT,
    DefaultValue,
    HeaderParam,
    PathParam,
    QueryParam,
    Resource,
    build_resource,
    consumes,
    encoded,
    http_method,
    path,
    produces,
)
from restmodel.classifier import EndpointKind
from restmodel.descriptors import ClassDescriptor, DescriptorSource, MethodDescriptor
from restmodel.invocable import ClassBasedMethodHandler, InstanceBasedMethodHandler
from restmodel.introspection import IntrospectionModeller
from restmodel.issues import has_fatal_issues
from restmodel.media import APPLICATION_JSON, TEXT_PLAIN
from restmodel.parameters import ParameterSource
from restmodel.pattern import PathPattern, RightHandPath

PROPFIND = http_method("propfind")


@path("hello")
class HelloResource:
    @GET
    @produces("text/plain")
    def say_hello(self) -> str:
        return "Hello!"


class OrdersResource:
    @GET
    def list_orders(self) -> list:
        return []


@path("users")
@produces("application/json")
@consumes("application/json")
class UsersResource:

    @GET
    def list_users(self) -> list:
        return []

    @POST
    @consumes("text/plain")
    def create_user(self, body: str) -> dict:
        return {"name": body}

    @GET
    @path("{id}")
    def get_user(self, user_id: Annotated[int, PathParam("id")]) -> dict:
        return {"id": user_id}

    @DELETE
    @path("{id}")
    @produces()
    def delete_user(self, user_id: Annotated[int, PathParam("id")]) -> None:
        pass

    @path("{id}/orders")
    def orders(self, user_id: Annotated[int, PathParam("id")]) -> OrdersResource:
        return OrdersResource()

    def helper(self) -> None:
        pass

    @staticmethod
    def factory():
        return UsersResource()


class AdminUsersResource(UsersResource):
    pass


class BaseGreeting:
    @GET
    @produces("text/plain")
    def greet(self) -> str:
        return "hello"


@path("loud")
class LoudGreeting(BaseGreeting):
    def greet(self) -> str:
        return "HELLO"


@path("private")
class PrivateResource:
    @GET
    def _fetch(self) -> str:
        return ""

    @PUT
    @path("detail")
    def _update(self, body: str) -> str:
        return body

    @path("sub")
    def _locate(self) -> OrdersResource:
        return OrdersResource()

    def _helper(self) -> None:
        pass


@path("ambiguous")
class AmbiguousResource:
    @POST
    def create(self, first: str, second: str) -> str:
        return first + second

    @GET
    def fetch(self) -> str:
        return ""


@path("media")
class BadMediaResource:
    @GET
    @produces("not-a-media-type")
    def fetch(self) -> str:
        return ""

    @GET
    @path("ok")
    def ok(self) -> str:
        return ""


@path("abstract")
class AbstractResource(ABC):
    @GET
    def fetch(self) -> str:
        return ""

    @abstractmethod
    def helper(self):
        pass


@path("injected")
class InjectedResource:
    token: Annotated[str, HeaderParam("X-Token")]
    conflicting: Annotated[str, QueryParam("q"), HeaderParam("h")]
    unnamed: Annotated[str, QueryParam()]
    plain: int

    def set_limit(self, limit: Annotated[int, QueryParam("limit")]) -> None:
        self.limit = limit

    def set_bad(self, value: Annotated[int, PathParam("a"), QueryParam("b")]) -> None:
        self.value = value

    @GET
    def fetch(self) -> str:
        return ""


@encoded
@path("raw")
class RawResource:
    @GET
    @path("{p}")
    def fetch(self,
              p: Annotated[str, PathParam("p")],
              q: Annotated[str, QueryParam("q"), DefaultValue("x")]) -> str:
        return p + q


@path("dav")
class DavResource:
    @PROPFIND
    def properties(self) -> dict:
        return {}


@path("verbs")
class BadVerbResource:
    @http_method("BAD VERB")
    def broken(self) -> str:
        return ""

    @GET
    def fetch(self) -> str:
        return ""


@path("templates")
class BadTemplateResource:
    @GET
    @path("{id")
    def broken(self) -> str:
        return ""

    @path("{id/children")
    def children(self) -> OrdersResource:
        return OrdersResource()

    @path("")
    def nowhere(self) -> OrdersResource:
        return OrdersResource()

    @GET
    @path("{id}")
    def fetch(self, item_id: Annotated[int, PathParam("id")]) -> str:
        return ""


@path("{id")
class BadRootResource:
    @GET
    def fetch(self) -> str:
        return ""


class PlainHandler:
    def ping(self) -> str:
        return "pong"


class StaticSource(DescriptorSource):
    """Describes PlainHandler without any decorators."""

    def describe_class(self, handler_class):
        return ClassDescriptor(annotated_class=handler_class, path="static", produces=["text/plain"])

    def describe_methods(self, handler_class):
        return [MethodDescriptor(
            name="ping",
            http_method="get",
            method=PlainHandler.ping,
            return_type=str,
            declaring_class=PlainHandler,
        )]

    def describe_fields(self, handler_class):
        return []


def _messages(issues):
    return [issue.message for issue in issues]


class TestIntrospection:
    """Test end-to-end modelling of decorated classes."""

    def test_hello_resource(self, issues):
        resource = Resource.from_class(HelloResource, issues).build()

        assert issues == []
        assert resource.is_root
        assert resource.path == "hello"
        assert resource.name == f"{__name__}.HelloResource"
        assert resource.path_pattern == PathPattern("hello", RightHandPath.ZERO_OR_MORE_SEGMENTS)

        (method,) = resource.resource_methods
        assert method.http_method == "GET"
        assert method.produced_types == (TEXT_PLAIN,)
        assert method.consumed_types == ()
        assert method.invocable.handling_method is HelloResource.say_hello
        assert isinstance(method.invocable.handler, ClassBasedMethodHandler)

    def test_methods_grouped_by_kind(self, issues):
        resource = Resource.from_class(UsersResource, issues).build()

        assert issues == []
        assert [m.invocable.handling_method for m in resource.resource_methods] == [
            UsersResource.list_users, UsersResource.create_user,
        ]
        assert [m.invocable.handling_method for m in resource.sub_resource_methods] == [
            UsersResource.get_user, UsersResource.delete_user,
        ]
        assert [m.invocable.handling_method for m in resource.sub_resource_locators] == [UsersResource.orders]

    def test_class_media_types_are_defaults(self, issues):
        resource = Resource.from_class(UsersResource, issues).build()
        list_users = resource.resource_methods[0]

        assert list_users.consumed_types == (APPLICATION_JSON,)
        assert list_users.produced_types == (APPLICATION_JSON,)

    def test_method_media_types_override_class(self, issues):
        resource = Resource.from_class(UsersResource, issues).build()
        create_user = resource.resource_methods[1]

        assert create_user.consumed_types == (TEXT_PLAIN,)
        assert create_user.produced_types == (APPLICATION_JSON,)

    def test_empty_method_media_types_override_class(self, issues):
        resource = Resource.from_class(UsersResource, issues).build()
        delete_user = resource.sub_resource_methods[1]

        assert delete_user.http_method == "DELETE"
        assert delete_user.produced_types == ()
        assert delete_user.consumed_types == (APPLICATION_JSON,)

    def test_sub_resource_method(self, issues):
        resource = Resource.from_class(UsersResource, issues).build()
        get_user = resource.sub_resource_methods[0]

        assert get_user.kind is EndpointKind.SUB_RESOURCE_METHOD
        assert get_user.path_pattern == PathPattern("{id}", RightHandPath.ZERO_SEGMENTS)
        assert get_user.invocable.parameters[0].source is ParameterSource.PATH
        assert get_user.invocable.parameters[0].raw_type is int

    def test_locator_has_no_media_types(self, issues):
        resource = Resource.from_class(UsersResource, issues).build()
        (orders,) = resource.sub_resource_locators

        assert orders.http_method is None
        assert orders.consumed_types == ()
        assert orders.produced_types == ()
        assert orders.path_pattern.match("/7/orders/12").right_hand_path == "/12"
        assert orders.invocable.response_type.raw_class is OrdersResource

    def test_unrooted_class(self, issues):
        resource = Resource.from_class(OrdersResource, issues).build()

        assert not resource.is_root
        assert resource.path is None
        assert len(resource.resource_methods) == 1

    def test_declarations_read_from_annotated_base(self, issues):
        resource = Resource.from_class(AdminUsersResource, issues).build()

        assert resource.path == "users"
        assert resource.name.endswith("AdminUsersResource")
        assert resource.resource_methods[0].produced_types == (APPLICATION_JSON,)
        assert len(resource.all_methods) == 5

    def test_undecorated_override_inherits_declarations(self, issues):
        resource = Resource.from_class(LoudGreeting, issues).build()

        (method,) = resource.resource_methods
        assert method.http_method == "GET"
        assert method.produced_types == (TEXT_PLAIN,)
        assert method.invocable.handling_method is LoudGreeting.greet

    def test_extension_http_method(self, issues):
        resource = Resource.from_class(DavResource, issues).build()
        assert resource.resource_methods[0].http_method == "PROPFIND"

    def test_encoded_class(self, issues):
        resource = Resource.from_class(RawResource, issues).build()
        p, q = resource.sub_resource_methods[0].invocable.parameters

        assert p.encoded
        assert q.encoded
        assert q.default_value == "x"

    def test_custom_descriptor_source(self, issues):
        resource = Resource.from_class(PlainHandler, issues, source=StaticSource()).build()

        assert resource.path == "static"
        (method,) = resource.resource_methods
        assert method.http_method == "GET"
        assert method.produced_types == (TEXT_PLAIN,)

    def test_from_instance_binds_to_instance(self, issues):
        instance = HelloResource()
        resource = Resource.from_instance(instance, issues).build()

        handler = resource.resource_methods[0].invocable.handler
        assert isinstance(handler, InstanceBasedMethodHandler)
        assert handler.get_instance() is instance

    def test_builder_can_be_extended(self, issues):
        builder = Resource.from_class(HelloResource, issues).path("hello2")
        builder.add_method("GET").path("world").produces("text/plain").handled_by(
            HelloResource, HelloResource.say_hello
        )
        resource = builder.build()

        assert resource.path == "hello2"
        assert len(resource.resource_methods) == 1
        assert resource.sub_resource_methods[0].path == "world"


class TestIntrospectionIssues:
    """Test problems reported while modelling classes."""

    def test_non_public_methods(self, issues):
        resource = Resource.from_class(PrivateResource, issues).build()

        assert not has_fatal_issues(issues)
        messages = _messages(issues)
        assert len(messages) == 3
        assert messages[0].startswith("A resource method")
        assert messages[1].startswith("A sub-resource method")
        assert messages[2].startswith("A sub-resource locator")
        assert all(issue.source is PrivateResource for issue in issues)

        # Still part of the model
        assert len(resource.all_methods) == 3

    def test_ambiguous_entity_parameters(self, issues):
        resource = Resource.from_class(AmbiguousResource, issues).build()

        assert len(issues) == 1
        assert issues[0].fatal
        assert issues[0].source is AmbiguousResource.create
        assert "more than one entity parameter" in issues[0].message
        assert [m.invocable.handling_method for m in resource.resource_methods] == [AmbiguousResource.fetch]

    def test_invalid_media_type(self, issues):
        resource = Resource.from_class(BadMediaResource, issues).build()

        assert has_fatal_issues(issues)
        assert resource.resource_methods == ()
        assert len(resource.sub_resource_methods) == 1

    def test_invalid_http_method_name(self, issues):
        """The method with the malformed verb is skipped, the rest of the class is modelled."""
        resource = Resource.from_class(BadVerbResource, issues).build()

        assert len(issues) == 1
        assert issues[0].fatal
        assert issues[0].source is BadVerbResource.broken
        assert "invalid HTTP method name: 'BAD VERB'" in issues[0].message
        assert [m.invocable.handling_method for m in resource.resource_methods] == [BadVerbResource.fetch]

    def test_invalid_method_and_locator_templates(self, issues):
        resource = Resource.from_class(BadTemplateResource, issues).build()

        assert all(issue.fatal for issue in issues)
        assert [issue.source for issue in issues] == [
            BadTemplateResource.broken,
            BadTemplateResource.children,
            BadTemplateResource.nowhere,
        ]
        messages = _messages(issues)
        assert "Invalid path template '{id'" in messages[0]
        assert "Invalid path template '{id/children'" in messages[1]
        assert "empty path" in messages[2]

        assert [m.path for m in resource.sub_resource_methods] == ["{id}"]
        assert resource.sub_resource_locators == ()

    def test_invalid_class_template(self, issues):
        """A class with a malformed path is modelled as an unbound resource."""
        resource = Resource.from_class(BadRootResource, issues).build()

        assert len(issues) == 1
        assert issues[0].fatal
        assert issues[0].source is BadRootResource
        assert "Invalid path template '{id'" in issues[0].message
        assert not resource.is_root
        assert resource.path is None
        assert len(resource.resource_methods) == 1

    @pytest.mark.parametrize("resource_class", [BadVerbResource, BadTemplateResource, BadRootResource])
    def test_invalid_declarations_do_not_raise(self, clean_env, issues, resource_class):
        resource = build_resource(resource_class, issues)

        assert has_fatal_issues(issues)
        assert isinstance(resource, Resource)

    def test_unacceptable_class(self, issues):
        Resource.from_class(AbstractResource, issues)

        assert len(issues) == 1
        assert issues[0].fatal
        assert issues[0].source is AbstractResource

    def test_local_class(self, issues):
        @path("local")
        class LocalResource:
            @GET
            def fetch(self) -> str:
                return ""

        Resource.from_class(LocalResource, issues)
        assert has_fatal_issues(issues)

    def test_instance_skips_acceptable_check(self, issues):
        @path("local")
        class LocalResource:
            @GET
            def fetch(self) -> str:
                return ""

        resource = Resource.from_instance(LocalResource(), issues).build()

        assert issues == []
        assert len(resource.resource_methods) == 1

    def test_fields_and_setters_validated(self, issues):
        resource = Resource.from_class(InjectedResource, issues).build()

        assert len(issues) == 3
        assert all(issue.fatal for issue in issues)
        messages = " ".join(_messages(issues))
        assert "conflicting" in messages
        assert "without a name" in messages
        assert "set_bad" in messages
        assert len(resource.resource_methods) == 1

    def test_fatal_issues_logged_as_warnings(self, issues, caplog):
        with caplog.at_level(logging.WARNING, logger="restmodel.introspection"):
            Resource.from_class(AmbiguousResource, issues)

        assert "more than one entity parameter" in caplog.text

    def test_modeller_uses_given_issue_list(self, issues):
        IntrospectionModeller(AmbiguousResource, issues).create_resource_builder()
        assert len(issues) == 1

    def test_builder_logged_at_debug(self, issues, caplog):
        with caplog.at_level(logging.DEBUG, logger="restmodel.introspection"):
            Resource.from_class(HelloResource, issues)

        assert "New resource builder created by introspection" in caplog.text


@pytest.mark.parametrize("resource_class", [HelloResource, UsersResource, LoudGreeting, RawResource])
def test_models_are_immutable(resource_class):
    """Built resources are frozen."""
    resource = Resource.from_class(resource_class, []).build()
    with pytest.raises(AttributeError):
        resource.name = "changed"
