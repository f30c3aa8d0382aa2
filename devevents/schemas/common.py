"""
Common Pydantic schemas
"""

from typing import Optional
from pydantic import BaseModel

class MessageResponse(BaseModel):
    """Envelope shared by every API response"""
    message: str

class ErrorResponse(MessageResponse):
    """Error response schema"""
    error: str
    error_code: Optional[str] = None
