"""
Tests for request components.
"""

import json

import httpx
import pytest

from part_fuzzer.fuzzing.components import (
    BodyComponent,
    CookieComponent,
    HeaderComponent,
    PathComponent,
    QueryComponent,
    component_names,
    new_component,
)
from part_fuzzer.fuzzing.engine import RuleEngine
from part_fuzzer.fuzzing.errors import BuildError, InvalidKeyError
from part_fuzzer.fuzzing.models import ExecuteRuleInput
from part_fuzzer.fuzzing.placement import RuleType
from part_fuzzer.fuzzing.rule import Rule


class TestQueryComponent:
    """Test query string parsing and rebuilding."""

    @pytest.fixture
    def component(self):
        component = QueryComponent()
        component.parse(httpx.Request("GET", "http://example.com/p?a=1&b=2&a=3"))
        return component

    def test_iterate_in_order(self, component):
        assert list(component.iterate()) == [("a", "1"), ("b", "2")]

    def test_set_value_and_rebuild(self, component):
        component.set_value("a", "x y")
        request = component.rebuild()

        assert request.url.params.get_list("a") == ["x y", "3"]
        assert request.url.params["b"] == "2"
        assert request.url.path == "/p"

    def test_rebuild_leaves_base_request_untouched(self, component):
        base_url = str(component.request.url)
        component.set_value("b", "changed")
        component.rebuild()
        assert str(component.request.url) == base_url

    def test_unknown_key(self, component):
        with pytest.raises(InvalidKeyError) as exc_info:
            component.set_value("missing", "x")
        assert exc_info.value.key == "missing"

    def test_no_parameters(self):
        assert QueryComponent().parse(httpx.Request("GET", "http://example.com/")) is False

    def test_rebuild_without_parse(self):
        with pytest.raises(BuildError):
            QueryComponent().rebuild()


class TestHeaderComponent:
    """Test header parsing and rebuilding."""

    @pytest.fixture
    def component(self):
        component = HeaderComponent()
        component.parse(httpx.Request(
            "GET",
            "http://example.com/",
            headers={"X-Test": "1", "User-Agent": "ua", "Cookie": "a=1"}
        ))
        return component

    def test_transport_headers_are_skipped(self, component):
        keys = [key.lower() for key in component.keys()]
        assert keys == ["x-test", "user-agent"]

    def test_set_value_is_case_insensitive(self, component):
        component.set_value("x-test", "2")
        request = component.rebuild()

        assert request.headers["X-Test"] == "2"
        assert request.headers["host"] == "example.com"
        assert request.headers["cookie"] == "a=1"

    def test_unencodable_value_fails_rebuild(self, component):
        component.set_value("X-Test", "☃")
        with pytest.raises(BuildError):
            component.rebuild()


class TestCookieComponent:
    """Test cookie parsing and rebuilding."""

    def test_round_trip_with_change(self):
        component = CookieComponent()
        assert component.parse(httpx.Request(
            "GET", "http://example.com/", headers={"Cookie": "a=1; b=2"}
        ))
        assert list(component.iterate()) == [("a", "1"), ("b", "2")]

        component.set_value("b", "x")
        assert component.rebuild().headers["cookie"] == "a=1; b=x"

    def test_no_cookie_header(self):
        assert CookieComponent().parse(httpx.Request("GET", "http://example.com/")) is False


class TestPathComponent:
    """Test path segment handling."""

    @pytest.fixture
    def component(self):
        component = PathComponent()
        component.parse(httpx.Request("GET", "http://example.com/api/users/42?q=1"))
        return component

    def test_segments_keyed_by_position(self, component):
        assert list(component.iterate()) == [("1", "api"), ("2", "users"), ("3", "42")]

    def test_set_value_and_rebuild(self, component):
        component.set_value("3", "43'")
        request = component.rebuild()

        assert request.url.path == "/api/users/43'"
        assert request.url.params["q"] == "1"

    def test_slash_stays_in_segment(self, component):
        component.set_value("2", "../etc")
        request = component.rebuild()
        assert request.url.raw_path.startswith(b"/api/..%2Fetc/42")

    @pytest.mark.parametrize("key", ["0", "4", "name"])
    def test_invalid_keys(self, component, key):
        with pytest.raises(InvalidKeyError):
            component.set_value(key, "x")

    def test_root_path_has_no_parts(self):
        assert PathComponent().parse(httpx.Request("GET", "http://example.com/")) is False


class TestBodyComponent:
    """Test JSON and form bodies."""

    @pytest.fixture
    def json_component(self):
        body = {"user": {"name": "bob", "age": 3}, "tags": ["a"], "empty": {}}
        component = BodyComponent()
        component.parse(httpx.Request(
            "POST",
            "http://example.com/",
            headers={"Content-Type": "application/json"},
            content=json.dumps(body).encode()
        ))
        return component

    def test_json_keys_are_flattened(self, json_component):
        assert list(json_component.iterate()) == [
            ("user.name", "bob"),
            ("user.age", 3),
            ("tags.0", "a"),
        ]

    def test_json_set_value_and_rebuild(self, json_component):
        json_component.set_value("user.name", "x'")
        json_component.set_value("tags.0", "y")
        request = json_component.rebuild()

        body = json.loads(request.content)
        assert body["user"] == {"name": "x'", "age": 3}
        assert body["tags"] == ["y"]
        assert request.headers["content-length"] == str(len(request.content))

    def test_json_restore_keeps_type(self, json_component):
        json_component.set_value("user.age", "3'")
        json_component.set_value("user.age", 3)
        assert json.loads(json_component.rebuild().content)["user"]["age"] == 3

    @pytest.mark.parametrize("key", ["user.missing", "tags.5", "tags.x", "user.name.deeper"])
    def test_json_invalid_keys(self, json_component, key):
        with pytest.raises(InvalidKeyError):
            json_component.set_value(key, "x")

    def test_form_body(self):
        component = BodyComponent()
        assert component.parse(httpx.Request(
            "POST",
            "http://example.com/",
            headers={"Content-Type": "application/x-www-form-urlencoded"},
            content=b"a=1&b=2"
        ))
        component.set_value("a", "x y")
        assert component.rebuild().content == b"a=x+y&b=2"

    def test_repeated_form_field_exposed_once(self):
        component = BodyComponent()
        component.parse(httpx.Request(
            "POST",
            "http://example.com/",
            headers={"Content-Type": "application/x-www-form-urlencoded"},
            content=b"a=1&a=2&b=3"
        ))
        assert list(component.iterate()) == [("a", "1"), ("b", "3")]

        component.set_value("a", "1X")
        assert component.rebuild().content == b"a=1X&a=2&b=3"

    def test_repeated_form_field_single_mode(self, collector):
        component = BodyComponent()
        component.parse(httpx.Request(
            "POST",
            "http://example.com/",
            headers={"Content-Type": "application/x-www-form-urlencoded"},
            content=b"a=1&a=2"
        ))

        RuleEngine().execute_rule(
            Rule(RuleType.POSTFIX, ["X"]), ExecuteRuleInput(callback=collector), "X", component
        )

        assert [r.request.content for r in collector.requests] == [b"a=1X&a=2"]
        assert component.form == [["a", "1"], ["a", "2"]]

    def test_unsupported_bodies(self):
        assert BodyComponent().parse(httpx.Request("GET", "http://example.com/")) is False
        assert BodyComponent().parse(httpx.Request(
            "POST", "http://example.com/", headers={"Content-Type": "text/plain"}, content=b"hello"
        )) is False
        assert BodyComponent().parse(httpx.Request(
            "POST", "http://example.com/", headers={"Content-Type": "application/json"}, content=b"{bad"
        )) is False


class TestRegistry:
    """Test component lookup."""

    def test_request_part_expands_to_all(self):
        assert component_names("request") == ["query", "header", "cookie", "body", "path"]

    def test_single_part(self):
        assert component_names("header") == ["header"]
        assert isinstance(new_component("header"), HeaderComponent)

    def test_unknown_part(self):
        with pytest.raises(ValueError):
            component_names("trailer")


class TestRestoreAfterSingleMode:
    """Every component reads back its original state after a single-mode run."""

    @pytest.mark.parametrize("component_class, request_args", [
        (QueryComponent, {"url": "http://example.com/p?a=1&b=2&a=3"}),
        (HeaderComponent, {"url": "http://example.com/", "headers": {"X-Test": "1", "Accept": "*/*"}}),
        (CookieComponent, {"url": "http://example.com/", "headers": {"Cookie": "a=1; b=2"}}),
        (PathComponent, {"url": "http://example.com/api/users/42"}),
        (BodyComponent, {
            "url": "http://example.com/",
            "headers": {"Content-Type": "application/x-www-form-urlencoded"},
            "content": b"a=1&a=2&b=3",
        }),
        (BodyComponent, {
            "url": "http://example.com/",
            "headers": {"Content-Type": "application/json"},
            "content": b'{"user": {"name": "bob", "age": 3}, "tags": ["a", "b"]}',
        }),
    ])
    def test_state_restored(self, component_class, request_args, collector):
        component = component_class()
        assert component.parse(httpx.Request("POST", **request_args))
        parts_before = list(component.iterate())
        rebuilt_before = component.rebuild()

        RuleEngine().execute_rule(
            Rule(RuleType.POSTFIX, ["X"]), ExecuteRuleInput(callback=collector), "X", component
        )

        assert len(collector.requests) == len(parts_before)
        assert list(component.iterate()) == parts_before
        rebuilt_after = component.rebuild()
        assert rebuilt_after.url == rebuilt_before.url
        assert rebuilt_after.headers.raw == rebuilt_before.headers.raw
        assert rebuilt_after.content == rebuilt_before.content
