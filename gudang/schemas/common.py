"""
Gudang Common Schemas
Shared Pydantic models for the response envelope
"""
from typing import Any, Optional

from pydantic import BaseModel, ConfigDict, Field


class ErrorResponse(BaseModel):
    """
    Standard error envelope

    error carries the failure kind: not_found, validation_failure,
    persistence_failure or upstream_failure.
    """
    success: bool = Field(False, description="Always false")
    error: str = Field(..., description="Failure kind")
    message: str = Field(..., description="Human-readable error message")

    model_config = ConfigDict(
        json_schema_extra={
            "example": {
                "success": False,
                "error": "validation_failure",
                "message": "Cannot transfer movement 7 with status Diambil",
            }
        }
    )


class ORMModel(BaseModel):
    model_config = ConfigDict(from_attributes=True)


def ok(data: Any = None, message: Optional[str] = None) -> dict:
    """Wrap a payload in the success envelope"""
    body = {"success": True, "data": data}
    if message:
        body["message"] = message
    return body
