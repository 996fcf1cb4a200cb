"""API schemas.

Pydantic models documenting the response envelope in the OpenAPI schema.
Request bodies are validated by the catalog payload schemas.
"""

from datetime import datetime
from typing import Any

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel


class HealthResponse(BaseModel):
    """Health check response schema."""

    status: str
    service: str
    version: str


class ReadinessResponse(BaseModel):
    """Readiness probe response schema."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    status: str = Field(..., description="ready or degraded")
    categories: int = Field(..., description="Stored categories")
    products: int = Field(..., description="Stored products")
    cycle_ids: list[int] | None = Field(
        default=None, description="Categories caught in a parent cycle"
    )


class SuccessEnvelope(BaseModel):
    """Successful operation result."""

    success: bool = Field(default=True, description="Always true")
    data: Any = Field(default=None, description="Operation payload")
    message: str | None = Field(default=None, description="Human-readable message")
    timestamp: datetime = Field(..., description="When the result was produced")


class ErrorEnvelope(BaseModel):
    """Failed operation result.

    All API errors follow this format for consistency.
    """

    success: bool = Field(default=False, description="Always false")
    error: str = Field(..., description="Machine-readable error code")
    message: str | None = Field(default=None, description="Human-readable error message")
    details: dict[str, Any] | None = Field(default=None, description="Additional error context")
    timestamp: datetime = Field(..., description="When the result was produced")


ERROR_RESPONSES: dict[int | str, dict[str, Any]] = {
    400: {"model": ErrorEnvelope, "description": "Validation error"},
    404: {"model": ErrorEnvelope, "description": "Entity not found"},
    409: {"model": ErrorEnvelope, "description": "Referential conflict"},
    500: {"model": ErrorEnvelope, "description": "Unexpected error"},
}
