"""
Event API routes
"""

import logging

from fastapi import APIRouter, Depends, Request
from starlette.concurrency import run_in_threadpool
from starlette.datastructures import UploadFile

from devevents.api.dependencies import get_event_service
from devevents.core.config import settings
from devevents.core.exceptions import ValidationError
from devevents.schemas.event import EVENT_LIST_FIELDS, EventUpdate
from devevents.services.asset_service import get_asset_uploader
from devevents.services.event_service import EventService
from devevents.utils.responses import success_response

logger = logging.getLogger(__name__)

router = APIRouter()

@router.post("/events")
async def create_event(
    request: Request,
    service: EventService = Depends(get_event_service),
    uploader=Depends(get_asset_uploader)
):
    """Create an event from multipart form data, uploading its image"""
    form = await request.form()

    fields = {}
    for key in form.keys():
        if key == "image":
            continue
        values = form.getlist(key)
        fields[key] = values if key in EVENT_LIST_FIELDS else values[-1]

    image = form.get("image")
    if isinstance(image, UploadFile):
        content = await image.read()
        fields["image"] = await run_in_threadpool(uploader.upload, content, image.filename, image.content_type)
    elif isinstance(image, str) and image.strip():
        fields["image"] = image
    elif settings.REQUIRE_EVENT_IMAGE:
        raise ValidationError("Image file is required")

    event = await run_in_threadpool(service.create, fields)

    return success_response(
        message="Event created successfully",
        event=event,
        status_code=201
    )

@router.get("/events")
def list_events(service: EventService = Depends(get_event_service)):
    """List events, newest first"""
    return success_response(
        message="Events fetched successfully",
        events=service.list_events()
    )

@router.get("/events/{slug}")
def get_event(slug: str, service: EventService = Depends(get_event_service)):
    """Get a single event by slug"""
    return success_response(
        message="Event fetched successfully",
        event=service.get_by_slug(slug)
    )

@router.patch("/events/{slug}")
def update_event(
    slug: str,
    changes: EventUpdate,
    service: EventService = Depends(get_event_service)
):
    """Update an event; its slug changes only when the title does"""
    current = service.get_by_slug(slug)
    event = service.update(current.id, changes.model_dump(exclude_unset=True))
    return success_response(
        message="Event updated successfully",
        event=event
    )
