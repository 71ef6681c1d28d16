"""
Tests for request construction.

Header precedence, URL resolution, body encoding and the malformed JSON guard.
"""

import json

import pytest

from apidebug.schemas.catalog import ApiEntry, Catalog, ExecutionOverrides
from apidebug.services import content_type as mime
from apidebug.services.request_builder import (
    MalformedBody,
    ResolvedRequest,
    StructuredBody,
    TextBody,
    append_query,
    build_request,
    merge_headers,
    resolve_body,
    resolve_url,
)


@pytest.fixture
def catalog():
    return Catalog(baseUrl="https://api.example.com", headers={"Accept": "application/json", "X-Shared": "1"})


class TestUrlAndQuery:

    def test_relative_url_gets_base(self):
        assert resolve_url("/users", "https://h") == "https://h/users"

    def test_absolute_url_is_kept(self):
        assert resolve_url("http://other/x", "https://h") == "http://other/x"

    def test_query_appended_with_question_mark(self):
        assert append_query("https://h/u", {"page": 1, "q": "a b"}) == "https://h/u?page=1&q=a+b"

    def test_query_appended_with_ampersand_when_url_has_query(self):
        assert append_query("https://h/u?x=1", {"page": 2}) == "https://h/u?x=1&page=2"

    def test_query_skips_none_values(self):
        assert append_query("https://h/u", {"page": None}) == "https://h/u"
        assert append_query("https://h/u", {"page": None, "limit": 5}) == "https://h/u?limit=5"


class TestHeaders:

    def test_later_layers_win(self):
        merged = merge_headers({"A": "1", "B": "1"}, {"B": "2"}, {"C": 3})
        assert merged == {"A": "1", "B": "2", "C": "3"}

    def test_precedence_catalog_entry_override(self, catalog):
        entry = ApiEntry(url="/u", header={"X-Shared": "entry", "X-Entry": "e"})
        overrides = ExecutionOverrides(headers={"X-Shared": "override"})
        built = build_request(entry, overrides, catalog)
        assert built.headers["X-Shared"] == "override"
        assert built.headers["X-Entry"] == "e"
        assert built.headers["Accept"] == "application/json"


class TestBody:

    def test_get_never_sends_a_body(self, catalog):
        entry = ApiEntry(url="/u", method="GET", body={"a": 1})
        built = build_request(entry, None, catalog)
        assert isinstance(built, ResolvedRequest)
        assert built.body is None

    def test_object_body_is_json(self, catalog):
        entry = ApiEntry(url="/u", method="POST", body={"name": "x"})
        built = build_request(entry, None, catalog)
        assert json.loads(built.body) == {"name": "x"}
        assert built.headers["Content-Type"] == mime.JSON

    def test_object_body_as_form(self, catalog):
        entry = ApiEntry(url="/u", method="PUT", body={"a": 1, "b": None, "c": "x y"}, contentType=mime.FORM)
        built = build_request(entry, None, catalog)
        assert built.body == "a=1&c=x+y"
        assert built.headers["Content-Type"] == mime.FORM

    def test_string_body_uses_inferred_type(self, catalog):
        entry = ApiEntry(url="/u", method="POST", body="a=1&b=2")
        built = build_request(entry, None, catalog)
        assert built.body == "a=1&b=2"
        assert built.headers["Content-Type"] == mime.FORM

    def test_explicit_content_type_wins_for_strings(self, catalog):
        entry = ApiEntry(url="/u", method="POST", body="<a/>", contentType="text/xml")
        built = build_request(entry, None, catalog)
        assert built.headers["Content-Type"] == "text/xml"

    def test_content_type_header_replaced_case_insensitively(self):
        catalog = Catalog(headers={"content-type": "application/json"})
        entry = ApiEntry(url="https://h/u", method="POST", body="hello")
        built = build_request(entry, None, catalog)
        assert "content-type" not in built.headers
        assert built.headers["Content-Type"] == mime.TEXT

    def test_malformed_json_string_is_signalled(self, catalog):
        entry = ApiEntry(url="/u", method="POST", body='{"name": ')
        built = build_request(entry, None, catalog)
        assert isinstance(built, MalformedBody)
        result = built.to_dict(index=3)
        assert result["success"] is False
        assert result["needsCorrection"] is True
        assert result["index"] == 3
        assert "api_execute" in result["suggestion"]

    def test_force_content_type(self, catalog):
        entry = ApiEntry(url="/login", method="POST", body="user=a&pass=b")
        built = build_request(entry, None, catalog, force_content_type=mime.JSON)
        assert built.headers["Content-Type"] == mime.JSON
        assert built.body == "user=a&pass=b"


class TestOverrides:

    def test_non_none_override_replaces_entry_value(self, catalog):
        entry = ApiEntry(url="/u", method="GET", query={"page": 1})
        overrides = ExecutionOverrides(method="post", query={"page": 2}, body={"x": 1})
        built = build_request(entry, overrides, catalog)
        assert built.method == "POST"
        assert built.url == "https://api.example.com/u?page=2"
        assert json.loads(built.body) == {"x": 1}

    def test_empty_overrides_keep_entry(self, catalog):
        entry = ApiEntry(url="/u", method="delete")
        built = build_request(entry, ExecutionOverrides(), catalog)
        assert built.method == "DELETE"
        assert built.url == "https://api.example.com/u"


def test_resolve_body_variants():
    assert resolve_body("hello", None) == TextBody("hello", mime.TEXT)
    assert resolve_body({"a": 1}, None) == StructuredBody({"a": 1}, mime.JSON)
    assert resolve_body({"a": 1}, mime.FORM) == StructuredBody({"a": 1}, mime.FORM)
