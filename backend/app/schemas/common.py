"""
Parcel Server - Shared Response Schemas
========================================

What:  Result envelopes shared by every resource, plus error and health
       payloads.
How:   Field names are snake_case in Python and camelCase on the wire
       (aliases); FastAPI serializes response models by alias.

The write results keep the shape the web client already consumes:
    insert -> {"acknowledged": true, "insertedId": "..."}
    delete -> {"acknowledged": true, "deletedCount": 0 | 1}
    update -> {"acknowledged": true, "matchedCount": n, "modifiedCount": n}
"""

from typing import Any, Dict, Optional

from pydantic import BaseModel, Field

ALIASED = {"populate_by_name": True}


class InsertResult(BaseModel):
    acknowledged: bool = Field(default=True)
    inserted_id: str = Field(alias="insertedId", description="Generated document id")

    model_config = ALIASED


class DeleteResult(BaseModel):
    acknowledged: bool = Field(default=True)
    deleted_count: int = Field(
        alias="deletedCount",
        ge=0,
        description="0 when nothing matched the id, 1 when the document was removed",
    )

    model_config = ALIASED


class UpdateResult(BaseModel):
    acknowledged: bool = Field(default=True)
    matched_count: int = Field(alias="matchedCount", ge=0)
    modified_count: int = Field(alias="modifiedCount", ge=0)

    model_config = ALIASED


class ErrorResponse(BaseModel):
    """
    Standardized error body for every non-2xx response.

    Example:
        {
            "error": "not_found",
            "message": "parcel with ID '...' was not found",
            "request_id": "1a2b3c4d"
        }
    """
    error: str = Field(description="Machine-readable error code")
    message: str = Field(description="Human-readable error description")
    details: Optional[dict] = Field(default=None, description="Additional error context")
    request_id: Optional[str] = Field(default=None, description="Request correlation ID")


class HealthResponse(BaseModel):
    """Returned by GET /health for load balancers and monitoring."""
    status: str = Field(description="Overall service status: healthy, degraded, unhealthy")
    version: str = Field(description="Application version")
    database: str = Field(description="Database connectivity: connected, disconnected")
    payment_gateway: str = Field(description="Gateway circuit: available, circuit_open, not_configured")
    uptime_seconds: float = Field(description="Seconds since service started")


def extra_fields(payload: BaseModel) -> Dict[str, Any]:
    """Fields the client sent beyond the declared schema, minus any _id."""
    extras = dict(payload.model_extra or {})
    extras.pop("_id", None)
    return extras
