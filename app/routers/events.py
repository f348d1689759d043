"""Subscriber hook the message bus delivers movie events to."""

import logging

from fastapi import APIRouter

from app.models import ActionResult, MovieUpdateEvent
from app.services.events import MOVIE_UPDATED_TOPIC

logger = logging.getLogger(__name__)
router = APIRouter(prefix="/events", tags=["events"])


@router.post(f"/{MOVIE_UPDATED_TOPIC}", response_model=ActionResult, response_model_exclude_none=True)
def movie_updated(event: MovieUpdateEvent):
    """
    Receive a ``movie.updated`` event from the bus.

    Not called in-process by the publisher; external subscribers bind to the
    same topic independently.
    """
    logger.info(
        "Received %s id=%d name=%r directorId=%d",
        MOVIE_UPDATED_TOPIC, event.id, event.name, event.director_id,
    )
    return ActionResult()
