"""
Repository layer abstracting storage (SQLAlchemy vs Firebase Firestore).

Repositories only persist and fetch already-normalized data. Uniqueness of
event slugs and of bookings per event is enforced here by the store itself:
a unique constraint for SQL, document ids written with create() for
Firestore. A violation surfaces as DuplicateKeyError.
"""

from __future__ import annotations

import logging
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional

from firebase_admin import firestore
from google.api_core.exceptions import AlreadyExists
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from devevents.core.config import settings
from devevents.core.exceptions import DuplicateKeyError
from devevents.models import Booking, Event
from devevents.schemas.booking import BookingRecord
from devevents.schemas.event import EventRecord

logger = logging.getLogger(__name__)

EVENTS_COLLECTION = "events"
EVENT_SLUGS_COLLECTION = "event_slugs"
BOOKINGS_COLLECTION = "bookings"


def use_firestore() -> bool:
    return settings.USE_FIREBASE is True


def _is_unique_violation(error: IntegrityError) -> bool:
    message = str(error.orig).lower()
    return "unique" in message or "duplicate" in message


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


# -------- Event repository --------

class SqlEventRepo:
    def __init__(self, db: Session):
        self.db = db

    def get(self, event_id: str) -> Optional[EventRecord]:
        event = self.db.get(Event, event_id)
        return EventRecord.model_validate(event) if event else None

    def get_by_slug(self, slug: str) -> Optional[EventRecord]:
        event = self.db.query(Event).filter(Event.slug == slug).first()
        return EventRecord.model_validate(event) if event else None

    def exists(self, event_id: str) -> bool:
        return self.db.query(Event.id).filter(Event.id == event_id).first() is not None

    def slug_exists(self, slug: str, exclude_id: Optional[str] = None) -> bool:
        query = self.db.query(Event.id).filter(Event.slug == slug)
        if exclude_id:
            query = query.filter(Event.id != exclude_id)
        return query.first() is not None

    def list_recent(self) -> List[EventRecord]:
        events = self.db.query(Event).order_by(Event.created_at.desc()).all()
        return [EventRecord.model_validate(e) for e in events]

    def insert(self, data: Dict[str, Any]) -> EventRecord:
        event = Event(**data)
        self.db.add(event)
        self._commit()
        self.db.refresh(event)
        return EventRecord.model_validate(event)

    def update(self, event_id: str, data: Dict[str, Any]) -> Optional[EventRecord]:
        event = self.db.get(Event, event_id)
        if not event:
            return None
        for field, value in data.items():
            setattr(event, field, value)
        self._commit()
        self.db.refresh(event)
        return EventRecord.model_validate(event)

    def _commit(self) -> None:
        try:
            self.db.commit()
        except IntegrityError as e:
            self.db.rollback()
            if _is_unique_violation(e):
                raise DuplicateKeyError("slug") from e
            raise


class FirestoreEventRepo:
    """Events live in events/{auto id}; event_slugs/{slug} reserves each slug."""

    def __init__(self, fs):
        self.fs = fs

    def _events(self):
        return self.fs.collection(EVENTS_COLLECTION)

    def _slugs(self):
        return self.fs.collection(EVENT_SLUGS_COLLECTION)

    @staticmethod
    def _to_record(doc) -> EventRecord:
        data = doc.to_dict()
        data["id"] = doc.id
        return EventRecord(**data)

    def get(self, event_id: str) -> Optional[EventRecord]:
        doc = self._events().document(event_id).get()
        return self._to_record(doc) if doc.exists else None

    def get_by_slug(self, slug: str) -> Optional[EventRecord]:
        reservation = self._slugs().document(slug).get()
        if not reservation.exists:
            return None
        return self.get(reservation.to_dict()["event_id"])

    def exists(self, event_id: str) -> bool:
        return self._events().document(event_id).get().exists

    def slug_exists(self, slug: str, exclude_id: Optional[str] = None) -> bool:
        reservation = self._slugs().document(slug).get()
        if not reservation.exists:
            return False
        return reservation.to_dict().get("event_id") != exclude_id

    def list_recent(self) -> List[EventRecord]:
        docs = self._events().order_by("created_at", direction=firestore.Query.DESCENDING).stream()
        return [self._to_record(d) for d in docs]

    def insert(self, data: Dict[str, Any]) -> EventRecord:
        now = _utcnow()
        event_ref = self._events().document()
        doc = {**data, "created_at": now, "updated_at": now}

        batch = self.fs.batch()
        batch.create(self._slugs().document(data["slug"]), {"event_id": event_ref.id})
        batch.create(event_ref, doc)
        try:
            batch.commit()
        except AlreadyExists as e:
            raise DuplicateKeyError("slug") from e

        return EventRecord(id=event_ref.id, **doc)

    def update(self, event_id: str, data: Dict[str, Any]) -> Optional[EventRecord]:
        event_ref = self._events().document(event_id)
        snapshot = event_ref.get()
        if not snapshot.exists:
            return None

        current = snapshot.to_dict()
        changes = {**data, "updated_at": _utcnow()}

        batch = self.fs.batch()
        new_slug = data.get("slug")
        old_slug = current.get("slug")
        if new_slug and new_slug != old_slug:
            batch.create(self._slugs().document(new_slug), {"event_id": event_id})
            if old_slug:
                batch.delete(self._slugs().document(old_slug))
        batch.update(event_ref, changes)
        try:
            batch.commit()
        except AlreadyExists as e:
            raise DuplicateKeyError("slug") from e

        return EventRecord(id=event_id, **{**current, **changes})


# -------- Booking repository --------

class SqlBookingRepo:
    def __init__(self, db: Session):
        self.db = db

    def get_by_event(self, event_id: str) -> Optional[BookingRecord]:
        booking = self.db.query(Booking).filter(Booking.event_id == event_id).first()
        return BookingRecord.model_validate(booking) if booking else None

    def exists_for_event(self, event_id: str) -> bool:
        return self.db.query(Booking.id).filter(Booking.event_id == event_id).first() is not None

    def insert(self, event_id: str, email: str) -> BookingRecord:
        booking = Booking(event_id=event_id, email=email)
        self.db.add(booking)
        try:
            self.db.commit()
        except IntegrityError as e:
            self.db.rollback()
            if _is_unique_violation(e):
                raise DuplicateKeyError("event_id") from e
            raise
        self.db.refresh(booking)
        return BookingRecord.model_validate(booking)


class FirestoreBookingRepo:
    """Bookings are keyed by event id: bookings/{event_id}."""

    def __init__(self, fs):
        self.fs = fs

    def _bookings(self):
        return self.fs.collection(BOOKINGS_COLLECTION)

    def get_by_event(self, event_id: str) -> Optional[BookingRecord]:
        doc = self._bookings().document(event_id).get()
        if not doc.exists:
            return None
        data = doc.to_dict()
        data["id"] = doc.id
        return BookingRecord(**data)

    def exists_for_event(self, event_id: str) -> bool:
        return self._bookings().document(event_id).get().exists

    def insert(self, event_id: str, email: str) -> BookingRecord:
        now = _utcnow()
        doc = {"event_id": event_id, "email": email, "created_at": now, "updated_at": now}
        try:
            # create() fails if the document exists: one booking per event
            self._bookings().document(event_id).create(doc)
        except AlreadyExists as e:
            raise DuplicateKeyError("event_id") from e
        return BookingRecord(id=event_id, **doc)
