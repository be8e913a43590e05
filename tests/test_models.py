"""Tests for data models."""

import json

import pytest
from pydantic import TypeAdapter, ValidationError

from clob_proxy.models import (
    ErrorResponse,
    HealthStatus,
    InboundRequest,
    JsonBody,
    RawBody,
    RequestBody,
)


class TestRequestBody:
    """Tests for the body union."""

    def test_raw_body(self):
        body = RawBody(data=b"\x00\x01raw")

        assert body.encode() == b"\x00\x01raw"
        assert not body.is_empty()
        assert RawBody().is_empty()

    def test_json_body_compact_and_deterministic(self):
        body = JsonBody(value={"b": [1, 2], "a": "é", "c": None})

        assert body.encode() == '{"b":[1,2],"a":"é","c":null}'.encode("utf-8")
        assert body.encode() == body.encode()

    @pytest.mark.parametrize(
        "value",
        [
            {"a": 1},
            [1, 2.5, -0.0001, 1e-7, 12345678901234567890],
            {"nested": {"list": [True, False, None, "x"]}, "unicode": "日本"},
            "plain string",
            0,
            None,
        ],
    )
    def test_json_body_round_trip(self, value):
        """Encoding never changes the decoded value."""
        assert json.loads(JsonBody(value=value).encode()) == value

    def test_json_body_rejects_nan(self):
        with pytest.raises(ValueError):
            JsonBody(value=float("nan")).encode()

    def test_json_body_never_empty(self):
        assert not JsonBody(value=None).is_empty()

    def test_discriminated_union(self):
        adapter = TypeAdapter(RequestBody)

        assert isinstance(adapter.validate_python({"kind": "json", "value": [1]}), JsonBody)
        assert isinstance(adapter.validate_python({"kind": "raw", "data": b"x"}), RawBody)
        with pytest.raises(ValidationError):
            adapter.validate_python({"kind": "xml"})


class TestInboundRequest:
    """Tests for InboundRequest."""

    def test_defaults(self):
        request = InboundRequest(method="post", path="/order?x=1")

        assert request.method == "POST"
        assert request.path == "/order?x=1"
        assert request.headers == []
        assert request.body == RawBody()

    def test_frozen(self):
        request = InboundRequest(method="GET", path="/")

        with pytest.raises(ValidationError):
            request.path = "/other"


class TestResponseModels:
    """Tests for response models."""

    def test_health_defaults_to_ok(self):
        status = HealthStatus(region="eu", target="https://clob.polymarket.com")

        assert status.model_dump() == {
            "status": "ok",
            "region": "eu",
            "target": "https://clob.polymarket.com",
        }

    def test_error_without_detail(self):
        assert ErrorResponse(error="x").model_dump(exclude_none=True) == {"error": "x"}
