"""Data models for the CLOB proxy."""

import json
from typing import Annotated, Any, Literal

from pydantic import BaseModel, ConfigDict, Field, field_validator


class RawBody(BaseModel):
    """Request body forwarded exactly as received."""

    model_config = ConfigDict(frozen=True)

    kind: Literal["raw"] = "raw"
    data: bytes = Field(b"", description="Body bytes")

    def is_empty(self) -> bool:
        return not self.data

    def encode(self) -> bytes:
        return self.data


class JsonBody(BaseModel):
    """Request body decoded to a JSON value and re-encoded canonically on send."""

    model_config = ConfigDict(frozen=True)

    kind: Literal["json"] = "json"
    value: Any = Field(None, description="Decoded JSON value")

    def is_empty(self) -> bool:
        return False

    def encode(self) -> bytes:
        return json.dumps(
            self.value, ensure_ascii=False, separators=(",", ":"), allow_nan=False
        ).encode("utf-8")


RequestBody = Annotated[RawBody | JsonBody, Field(discriminator="kind")]


class InboundRequest(BaseModel):
    """A request received from a caller, ready to be forwarded."""

    model_config = ConfigDict(frozen=True)

    method: str = Field(..., description="HTTP method")
    path: str = Field(..., description="Raw path and query string")
    headers: list[tuple[str, str]] = Field(
        default_factory=list, description="Header pairs in arrival order"
    )
    body: RequestBody = Field(default_factory=RawBody, description="Request body")

    @field_validator("method")
    @classmethod
    def _upper_method(cls, value: str) -> str:
        return value.upper()


class HealthStatus(BaseModel):
    """Liveness report."""

    status: str = Field("ok", description="Liveness flag")
    region: str = Field(..., description="Region the proxy runs in")
    target: str = Field(..., description="Configured upstream base URL")


class ErrorResponse(BaseModel):
    """Body of every error produced by the proxy itself."""

    error: str = Field(..., description="Error marker")
    detail: str | None = Field(None, description="Failure detail")
