"""Tests for model settings and the build_resource entry point."""

import pytest

from restmodel import GET, POST, ModelSettings, build_resource, path
from restmodel.exceptions import ModelValidationError
from restmodel.invocable import InstanceBasedMethodHandler


@path("ping")
class PingResource:
    @GET
    def ping(self) -> str:
        return "pong"


@path("broken")
class BrokenResource:
    @POST
    def create(self, first: str, second: str) -> str:
        return first

    @GET
    def fetch(self) -> str:
        return ""


@path("empty")
class EmptyResource:
    pass


class TestModelSettings:
    """Test resolving settings from arguments and the environment."""

    def test_defaults(self, clean_env):
        settings = ModelSettings.from_env()
        assert settings.strict is False
        assert settings.validate is True

    @pytest.mark.parametrize("value", ["true", "1", "yes", "ON", " True "])
    def test_env_true(self, clean_env, monkeypatch, value):
        monkeypatch.setenv('RESTMODEL_STRICT', value)
        assert ModelSettings.from_env().strict is True

    @pytest.mark.parametrize("value", ["false", "0", "no", "off"])
    def test_env_false(self, clean_env, monkeypatch, value):
        monkeypatch.setenv('RESTMODEL_VALIDATE', value)
        assert ModelSettings.from_env().validate is False

    def test_unrecognized_value_uses_default(self, clean_env, monkeypatch):
        monkeypatch.setenv('RESTMODEL_STRICT', 'maybe')
        assert ModelSettings.from_env().strict is False

    def test_explicit_argument_wins(self, clean_env, monkeypatch):
        monkeypatch.setenv('RESTMODEL_STRICT', 'true')
        monkeypatch.setenv('RESTMODEL_VALIDATE', 'false')

        settings = ModelSettings.from_env(strict=False, validate=True)
        assert settings.strict is False
        assert settings.validate is True


class TestBuildResource:
    """Test the one-call build entry point."""

    def test_build_class(self, clean_env, issues):
        resource = build_resource(PingResource, issues)

        assert issues == []
        assert resource.path == "ping"
        assert len(resource.resource_methods) == 1

    def test_build_instance(self, clean_env):
        instance = PingResource()
        resource = build_resource(instance)

        handler = resource.resource_methods[0].invocable.handler
        assert isinstance(handler, InstanceBasedMethodHandler)
        assert handler.get_instance() is instance

    def test_issues_reported_when_not_strict(self, clean_env, issues):
        resource = build_resource(BrokenResource, issues)

        assert any(issue.fatal for issue in issues)
        assert len(resource.resource_methods) == 1

    def test_strict_raises(self, clean_env):
        with pytest.raises(ModelValidationError) as exc_info:
            build_resource(BrokenResource, settings=ModelSettings(strict=True))

        assert len(exc_info.value.issues) == 1
        assert all(issue.fatal for issue in exc_info.value.issues)

    def test_strict_from_env(self, clean_env, monkeypatch):
        monkeypatch.setenv('RESTMODEL_STRICT', '1')

        with pytest.raises(ModelValidationError):
            build_resource(BrokenResource)

    def test_strict_ignores_minor_issues(self, clean_env, issues):
        resource = build_resource(EmptyResource, issues, settings=ModelSettings(strict=True))

        assert resource.all_methods == ()
        assert len(issues) == 1
        assert not issues[0].fatal

    def test_validation_can_be_disabled(self, clean_env, issues):
        build_resource(EmptyResource, issues, settings=ModelSettings(validate=False))
        assert issues == []
