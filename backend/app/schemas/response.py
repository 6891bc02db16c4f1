"""Generic API response schemas"""

from pydantic import BaseModel
from typing import Optional, Any, Dict, List


class MessageResponse(BaseModel):
    """Plain confirmation message"""
    message: str


class ErrorResponse(BaseModel):
    """Generic API error response"""
    success: bool = False
    error: str
    details: Optional[Any] = None
    errors: Optional[List[str]] = None
    path: Optional[str] = None
    timestamp: Optional[str] = None


class HealthResponse(BaseModel):
    """Health check response"""
    status: str
    version: str
    timestamp: str
    readiness: Dict[str, Any]
