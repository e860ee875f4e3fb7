"""Informational notifications emitted by the rating engine.

These are plain events for a presentation layer to relay (chat broadcast,
scoreboard refresh). They never signal errors.
"""

from __future__ import annotations

import logging
from collections.abc import Callable
from dataclasses import dataclass

from beaconelo.elo.constants import display_rating

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class PlayerRegistered:
    """A player was seen for the first time and given a starting skill."""

    player: str
    skill: float

    @property
    def message(self) -> str:
        return f"New player: {self.player} (rating: {display_rating(self.skill)})"


@dataclass(frozen=True)
class RatingsUpdated:
    """A decisive match result was applied to the ratings."""

    loss: float
    players: tuple[str, ...]

    @property
    def message(self) -> str:
        return f"Ratings updated! Loss: {self.loss:.3f}"


RatingEvent = PlayerRegistered | RatingsUpdated
EventListener = Callable[[RatingEvent], None]


class EventDispatcher:
    """Fan-out of rating events to subscribed callables."""

    def __init__(self) -> None:
        self._listeners: list[EventListener] = []

    def subscribe(self, listener: EventListener) -> None:
        if listener in self._listeners:
            raise ValueError("listener is already subscribed")
        self._listeners.append(listener)

    def unsubscribe(self, listener: EventListener) -> None:
        self._listeners.remove(listener)

    def emit(self, event: RatingEvent) -> None:
        logger.info(event.message)
        for listener in list(self._listeners):
            try:
                listener(event)
            except Exception:
                # A broken presentation hook must not abort a rating update
                logger.exception("Rating event listener %r failed on %r", listener, event)
