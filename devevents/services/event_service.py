"""
Event record manager: slug assignment, normalization and persistence
"""

import logging
import secrets
import string
from typing import Any, Dict, List, Mapping, Optional

from devevents.core.config import settings
from devevents.core.exceptions import (
    DuplicateKeyError,
    EventNotFoundError,
    SlugGenerationError,
    ValidationError,
)
from devevents.schemas.event import EVENT_LIST_FIELDS, EVENT_TEXT_FIELDS, EventRecord
from devevents.services.normalization import generate_slug, normalize_event

logger = logging.getLogger(__name__)

SLUG_SUFFIX_ALPHABET = string.ascii_lowercase + string.digits


def random_suffix(length: int) -> str:
    return "".join(secrets.choice(SLUG_SUFFIX_ALPHABET) for _ in range(length))


class EventService:
    """Service for event operations

    The slug pre-check is advisory only. Two concurrent creations can both
    see a free slug; the store's unique index rejects the loser, which is
    then retried with a new suffix like any other collision.
    """

    def __init__(
        self,
        repo,
        max_attempts: Optional[int] = None,
        suffix_length: Optional[int] = None,
    ):
        self.repo = repo
        self.max_attempts = max_attempts or settings.SLUG_MAX_ATTEMPTS
        self.suffix_length = suffix_length or settings.SLUG_SUFFIX_LENGTH

    def create(self, fields: Mapping[str, Any]) -> EventRecord:
        """Validate, normalize and persist a new event"""
        data = normalize_event(fields)
        event = self._write_with_unique_slug(data)
        logger.info(f"Event created: {event.slug} ({event.id})")
        return event

    def update(self, event_id: str, changes: Mapping[str, Any]) -> EventRecord:
        """Apply a partial update; the slug only changes with the title"""
        current = self.get(event_id)

        merged = current.model_dump(include=set(EVENT_TEXT_FIELDS + EVENT_LIST_FIELDS))
        for field, value in changes.items():
            if value is not None:
                merged[field] = value
        data = normalize_event(merged)

        if data["title"] == current.title and current.slug:
            data["slug"] = current.slug
            event = self.repo.update(event_id, data)
        else:
            event = self._write_with_unique_slug(data, event_id=event_id)

        if event is None:
            raise EventNotFoundError()
        logger.info(f"Event updated: {event.slug} ({event.id})")
        return event

    def get(self, event_id: str) -> EventRecord:
        event = self.repo.get(event_id)
        if not event:
            raise EventNotFoundError()
        return event

    def get_by_slug(self, slug: str) -> EventRecord:
        event = self.repo.get_by_slug(slug)
        if not event:
            raise EventNotFoundError(f"Event '{slug}' not found")
        return event

    def list_events(self) -> List[EventRecord]:
        """All events, most recently created first"""
        return self.repo.list_recent()

    def _candidate_slugs(self, base: str):
        yield base
        for _ in range(self.max_attempts - 1):
            yield f"{base}-{random_suffix(self.suffix_length)}"

    def _write_with_unique_slug(
        self, data: Dict[str, Any], event_id: Optional[str] = None
    ) -> Optional[EventRecord]:
        base = generate_slug(data["title"])
        if not base:
            raise ValidationError("Title must contain at least one letter or digit.")

        for slug in self._candidate_slugs(base):
            if self.repo.slug_exists(slug, exclude_id=event_id):
                logger.warning(f"Slug collision on '{slug}', retrying with a suffix")
                continue

            record = {**data, "slug": slug}
            try:
                if event_id:
                    return self.repo.update(event_id, record)
                return self.repo.insert(record)
            except DuplicateKeyError:
                logger.warning(f"Slug '{slug}' was taken concurrently, retrying with a suffix")

        raise SlugGenerationError(
            f"Could not generate a unique slug for '{data['title']}' after {self.max_attempts} attempts"
        )
