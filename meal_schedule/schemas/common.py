from typing import Generic, TypeVar, Optional
from pydantic import BaseModel, Field

T = TypeVar('T')

class ApiResponse(BaseModel, Generic[T]):
    """Common API response envelope"""
    success: bool = Field(description="Whether the request succeeded")
    data: Optional[T] = Field(None, description="Response payload")
    message: Optional[str] = Field(None, description="Response message")
    error_code: Optional[str] = Field(None, description="Error code")

class ErrorResponse(BaseModel):
    """Error response envelope"""
    success: bool = Field(False, description="Request failed")
    message: str = Field(description="Error message")
    error_code: str = Field(description="Error code")
    details: dict = Field(default_factory=dict, description="Error details")

    model_config = {
        "json_schema_extra": {
            "example": {
                "success": False,
                "message": "Schedule was modified by someone else, reload before saving",
                "error_code": "VERSION_CONFLICT",
                "details": {"current_version": 4}
            }
        }
    }
