"""
Pydantic schemas for the proxy API.

Only used for documentation: responses are raw bytes, plain text or a
bare JSON string, and errors share ``ErrorResponse``.
"""
from pydantic import BaseModel, Field
from typing import Dict


class ErrorResponse(BaseModel):
    """Body returned for every failed request."""

    error: str = Field(
        ...,
        description="Human-readable error message",
        examples=["forbidden"],
    )
    kind: str = Field(
        ...,
        description=(
            "Error kind: MissingCredential, InvalidAddress, Forbidden, "
            "NotFound, StorageReadFailed or StorageWriteFailed"
        ),
        examples=["Forbidden"],
    )

    model_config = {
        "json_schema_extra": {
            "examples": [
                {"error": "forbidden", "kind": "Forbidden"},
                {"error": "prefix is required", "kind": "InvalidAddress"},
            ]
        }
    }


class HealthResponse(BaseModel):
    """Readiness status with per-component checks."""

    status: str = Field(..., examples=["healthy"])
    checks: Dict[str, str] = Field(..., examples=[{"storage": "ok"}])


ERROR_RESPONSES = {
    400: {
        "model": ErrorResponse,
        "description": "Missing credential, invalid address or storage failure",
    },
    401: {
        "model": ErrorResponse,
        "description": "The API key's groups may not perform this method on the resource",
    },
}
