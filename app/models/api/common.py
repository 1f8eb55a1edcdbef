"""
Response envelope shared by the JSON API.
"""

from typing import Generic, TypeVar

from pydantic import BaseModel, Field

T = TypeVar("T")


class ApiResponse(BaseModel, Generic[T]):
    """Every /api response is wrapped as {success, data, error}."""

    success: bool = Field(..., description="Whether the operation succeeded")
    data: T | None = Field(default=None, description="Payload on success")
    error: str | None = Field(default=None, description="Error message on failure")

    @classmethod
    def ok(cls, data: T) -> "ApiResponse[T]":
        return cls(success=True, data=data)

    @classmethod
    def fail(cls, error: str) -> "ApiResponse[T]":
        return cls(success=False, error=error)
