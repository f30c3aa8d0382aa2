"""
Pydantic schemas package
"""

from .common import *
from .event import *
from .booking import *

__all__ = [
    "MessageResponse",
    "ErrorResponse",
    "EventRecord",
    "EventUpdate",
    "BookingCreate",
    "BookingRecord",
]
