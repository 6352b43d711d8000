"""Shared schema types: error envelope."""

from pydantic import BaseModel


class ErrorResponse(BaseModel):
    success: bool = False
    message: str
    field: str | None = None


ERROR_RESPONSES: dict[int | str, dict] = {
    400: {"model": ErrorResponse, "description": "Invalid input or unpaid session"},
    404: {"model": ErrorResponse, "description": "Donation not found"},
    500: {"model": ErrorResponse, "description": "Storage, rendering or processor failure"},
}
