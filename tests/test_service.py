"""Tests for the generic resource lifecycle."""
from dataclasses import dataclass

import pytest

from conftest import invocations, write_manifest
from tfe2e import config, dig
from tfe2e.errors import ApplyError, ContractViolation, DestroyError, InitError
from tfe2e.service import (
    CREATED,
    DESTROYED,
    INITIALIZED,
    UNINITIALIZED,
    ResourceKind,
    ResourceService,
    new_service,
)

WIDGET_MANIFEST = {
    "variables": {
        "url": {"type": "string", "default": "https://api.openshift.com"},
        "name": {"type": "string"},
        "size": {"type": "number", "default": 1},
        "tags": {"type": "map", "default": None},
    },
    "outputs": {
        "widget_name": "var.name",
        "widget_size": "var.size",
        "endpoint": "var.url",
        "tags": "var.tags",
    },
}


@dataclass
class WidgetArgs:
    url: str = None
    name: str = None
    size: int = None
    tags: dict = None


@dataclass
class WidgetOutput:
    name: str = ""
    size: int = 0
    endpoint: str = ""
    tags: dict = None
    colour: str = ""


WIDGET = ResourceKind(
    name="widget",
    args_type=WidgetArgs,
    output_type=WidgetOutput,
    outputs={
        "name": (("widget_name", "value"), dig.dig_string),
        "size": (("widget_size", "value"), dig.dig_int),
        "endpoint": (("endpoint", "value"), dig.dig_string),
        "tags": (("tags", "value"), dig.dig_map),
        "colour": (("colour", "value"), dig.dig_string),
    },
    manifest="widget",
)


@pytest.fixture
def widget_dir(tmp_path, monkeypatch):
    monkeypatch.setattr(config, "GATEWAY_URL", "https://gateway.example.com")
    monkeypatch.setattr(config, "MANIFESTS_DIR", str(tmp_path))
    return write_manifest(tmp_path / "widget", WIDGET_MANIFEST)


@pytest.fixture
def service(widget_dir):
    return new_service(WIDGET)


class TestLifecycle:
    def test_new_service_is_initialized(self, service, widget_dir):
        assert service.manifest_dir == widget_dir
        assert service.state == INITIALIZED
        assert service.creation_args is None

    def test_create_then_output(self, service):
        service.create(WidgetArgs(name="w1", size=3, tags={"a": "b"}))
        assert service.state == CREATED
        out = service.output()
        assert out == WidgetOutput(name="w1", size=3, endpoint="https://gateway.example.com",
                                   tags={"a": "b"}, colour="")

    def test_missing_output_digs_zero_value(self, service):
        service.create(WidgetArgs(name="w1"))
        out = service.output()
        assert out.tags == {}
        assert out.colour == ""

    def test_endpoint_is_stamped_on_a_copy(self, service):
        args = WidgetArgs(name="w1", url="https://elsewhere.example.com")
        service.create(args)
        assert args.url == "https://elsewhere.example.com"
        assert service.creation_args.url == "https://gateway.example.com"
        argv = invocations(service.manifest_dir)[-1]["argv"]
        assert "url=https://gateway.example.com" in argv

    def test_zero_fields_are_not_sent(self, service):
        service.create(WidgetArgs(name="w1", size=0, tags={}))
        argv = invocations(service.manifest_dir)[-1]["argv"]
        assert not any(a.startswith(("size=", "tags=")) for a in argv)
        assert service.output().size == 1

    def test_extra_args_are_appended(self, service):
        service.create(WidgetArgs(name="w1"), "-var", "size=7")
        assert service.output().size == 7

    def test_destroy_with_remembered_args(self, service):
        service.create(WidgetArgs(name="w1"))
        service.destroy()
        assert service.state == DESTROYED
        argv = invocations(service.manifest_dir)[-1]["argv"]
        assert argv[0] == "destroy"
        assert "name=w1" in argv

    def test_destroy_override(self, service):
        service.create(WidgetArgs(name="w1"))
        service.destroy(WidgetArgs(name="other"))
        argv = invocations(service.manifest_dir)[-1]["argv"]
        assert "name=other" in argv
        assert "url=https://gateway.example.com" in argv

    def test_create_overwrites_remembered_args(self, service):
        service.create(WidgetArgs(name="w1"))
        service.create(WidgetArgs(name="w2"))
        assert service.creation_args.name == "w2"

    def test_destroy_then_create_again(self, service):
        service.create(WidgetArgs(name="w1"))
        service.destroy()
        service.create(WidgetArgs(name="w1"))
        assert service.state == CREATED


class TestContract:
    def test_destroy_without_args_never_spawns(self, service):
        before = len(invocations(service.manifest_dir))
        with pytest.raises(ContractViolation, match="got unset destroy args"):
            service.destroy()
        assert len(invocations(service.manifest_dir)) == before

    def test_destroy_without_args_on_uninitialized_service(self, widget_dir):
        service = ResourceService(WIDGET)
        with pytest.raises(ContractViolation, match="got unset destroy args"):
            service.destroy()
        assert invocations(widget_dir) == []

    def test_create_requires_init(self, widget_dir):
        service = ResourceService(WIDGET)
        assert service.state == UNINITIALIZED
        with pytest.raises(ContractViolation, match="uninitialized"):
            service.create(WidgetArgs(name="w1"))
        assert invocations(widget_dir) == []

    def test_output_requires_create(self, service):
        with pytest.raises(ContractViolation, match="before a successful create"):
            service.output()

    def test_output_after_failed_create(self, service):
        with pytest.raises(ApplyError):
            service.create(WidgetArgs())
        with pytest.raises(ContractViolation):
            service.output()

    def test_wrong_args_type(self, service):
        with pytest.raises(TypeError, match="expects WidgetArgs"):
            service.create({"name": "w1"})


class TestFailures:
    def test_failed_apply_does_not_wedge(self, service):
        with pytest.raises(ApplyError) as exc:
            service.create(WidgetArgs(size=2))
        assert 'The root module input variable "name" is not set' in str(exc.value)
        assert service.state == INITIALIZED
        service.create(WidgetArgs(name="fixed"))
        assert service.state == CREATED
        assert service.output().name == "fixed"

    def test_failed_apply_still_remembers_args(self, service):
        with pytest.raises(ApplyError):
            service.create(WidgetArgs(size=2))
        assert service.creation_args.size == 2

    def test_failed_destroy_keeps_state(self, service):
        service.create(WidgetArgs(name="w1"))
        with pytest.raises(DestroyError):
            service.destroy(WidgetArgs(size=2))
        assert service.state == CREATED

    def test_init_failure(self, tmp_path):
        empty = tmp_path / "empty"
        empty.mkdir()
        service = ResourceService(WIDGET, manifest_dir=str(empty))
        with pytest.raises(InitError):
            service.init()
        assert service.state == UNINITIALIZED

    def test_reinit_elsewhere(self, service, tmp_path):
        other = write_manifest(tmp_path / "other", WIDGET_MANIFEST)
        service.init(other)
        assert service.manifest_dir == other
        assert service.state == INITIALIZED
