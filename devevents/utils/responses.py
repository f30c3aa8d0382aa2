"""
Standardized response utilities
"""

from typing import Any, Optional
from fastapi.encoders import jsonable_encoder
from fastapi.responses import JSONResponse

from devevents.schemas.common import ErrorResponse

def success_response(
    message: str,
    status_code: int = 200,
    **payload: Any
) -> JSONResponse:
    """Create a success response: {"message": ..., "<key>": <payload>}"""
    content = {"message": message}
    content.update(payload)
    return JSONResponse(
        content=jsonable_encoder(content),
        status_code=status_code
    )

def error_response(
    message: str,
    error: str,
    error_code: Optional[str] = None,
    status_code: int = 400
) -> JSONResponse:
    """Create standardized error response"""
    response = ErrorResponse(
        message=message,
        error=error,
        error_code=error_code
    )
    return JSONResponse(
        content=response.model_dump(),
        status_code=status_code
    )
