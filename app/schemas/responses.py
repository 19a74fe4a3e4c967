"""Standardized API Response Schemas"""

import math
from typing import Any, Generic, TypeVar, Optional
from pydantic import BaseModel, Field


T = TypeVar('T')


class SuccessResponse(BaseModel, Generic[T]):
    """
    Standard success response envelope.

    Example:
        {
            "success": true,
            "data": {"id": "...", "total": "3960.00", "status": "unpaid"},
            "message": "Payment created successfully"
        }
    """
    success: bool = True
    data: Optional[T] = None
    message: str = "Operation successful"


class ErrorDetail(BaseModel):
    """Error details structure. ``details`` carries field errors for validation failures."""
    code: str
    message: str
    details: Optional[Any] = None


class ErrorResponse(BaseModel):
    """
    Standard error response envelope. ``code`` is the engine error code.

    Example:
        {
            "success": false,
            "error": {
                "code": "ILLEGAL_TRANSITION",
                "message": "Cannot move payment from 'paid' to 'unpaid'"
            }
        }
    """
    success: bool = False
    error: ErrorDetail


class PaginationMeta(BaseModel):
    """Pagination metadata"""
    page: int = Field(..., ge=1, description="Current page number")
    page_size: int = Field(..., ge=1, le=100, description="Items per page")
    total: int = Field(..., ge=0, description="Total number of items")
    total_pages: int = Field(..., ge=0, description="Total number of pages")

    @classmethod
    def build(cls, page: int, page_size: int, total: int) -> "PaginationMeta":
        return cls(
            page=page,
            page_size=page_size,
            total=total,
            total_pages=math.ceil(total / page_size) if total else 0,
        )


class PaginatedResponse(BaseModel, Generic[T]):
    """
    Paginated response with metadata. Income listings page by 10 by default.

    Example:
        {
            "success": true,
            "data": [...],
            "meta": {"page": 1, "page_size": 10, "total": 23, "total_pages": 3},
            "message": "Operation successful"
        }
    """
    success: bool = True
    data: list[T]
    meta: PaginationMeta
    message: str = "Operation successful"
