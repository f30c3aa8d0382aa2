"""
FastAPI dependency providers wiring stores into the record managers
"""

from typing import Iterator, Optional

from fastapi import Depends
from sqlalchemy.orm import Session

from devevents.core.db import get_db
from devevents.services.booking_service import BookingService
from devevents.services.event_service import EventService
from devevents.services.firebase_client import get_firestore_client
from devevents.services.repositories import (
    FirestoreBookingRepo,
    FirestoreEventRepo,
    SqlBookingRepo,
    SqlEventRepo,
    use_firestore,
)


def get_store_session() -> Iterator[Optional[Session]]:
    """SQL session for the request, or None when Firestore is the store"""
    if use_firestore():
        yield None
        return
    yield from get_db()


def get_event_repo(db: Optional[Session] = Depends(get_store_session)):
    if use_firestore():
        return FirestoreEventRepo(get_firestore_client())
    return SqlEventRepo(db)


def get_booking_repo(db: Optional[Session] = Depends(get_store_session)):
    if use_firestore():
        return FirestoreBookingRepo(get_firestore_client())
    return SqlBookingRepo(db)


def get_event_service(event_repo=Depends(get_event_repo)) -> EventService:
    return EventService(event_repo)


def get_booking_service(
    event_repo=Depends(get_event_repo),
    booking_repo=Depends(get_booking_repo),
) -> BookingService:
    return BookingService(event_repo, booking_repo)
