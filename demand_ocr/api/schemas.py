"""Pydantic request/response schemas for the FastAPI endpoints."""

from typing import Literal

from pydantic import BaseModel, ConfigDict, Field


class SubmitRequest(BaseModel):
    """Request body posted by the demand sheet form.

    Fields are optional at the schema level so that missing values are
    reported with the service's own 400 message instead of a 422.
    Numeric values (e.g. a numeric store id) are accepted as strings.
    """

    model_config = ConfigDict(populate_by_name=True, coerce_numbers_to_str=True)

    store_id: str | None = Field(default=None, alias="storeId")
    date: str | None = None
    image: str | None = None
    mime_type: str | None = Field(default=None, alias="mimeType")
    filename: str | None = None


class SuccessResponse(BaseModel):
    """Rows were appended to the sheet."""

    status: Literal["success"] = "success"
    message: str
    rows_added: int


class WarningResponse(BaseModel):
    """The sheet was processed but no rows were recognized."""

    status: Literal["warning"] = "warning"
    message: str
    rows_added: Literal[0] = 0


class ErrorResponse(BaseModel):
    """A downstream failure aborted the submission."""

    status: Literal["error"] = "error"
    message: str
    details: str


class ValidationErrorResponse(BaseModel):
    """The request was missing required fields."""

    error: str


class CatalogResponse(BaseModel):
    """Ordered list of recognized item names."""

    items: list[str]
    count: int


class HealthResponse(BaseModel):
    """Response schema for the health check endpoint."""

    status: str
    version: str
    staging_mode: str
    catalog_size: int
