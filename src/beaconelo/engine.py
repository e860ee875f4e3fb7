"""Collaborator-facing rating engine.

Wires the store, learner and balancer together behind one object and
serialises calls, so a match-result update (including its save) always
finishes before a later query can see the new state.
"""

from __future__ import annotations

import logging
import threading
from collections.abc import Iterable
from pathlib import Path

from beaconelo.config import Settings, get_settings
from beaconelo.elo.balancer import BalancedMatch, MatchBalancer
from beaconelo.elo.calculator import Team, Winner, red_win_probability
from beaconelo.elo.constants import DEFAULT_MAX_ROSTER_SIZE
from beaconelo.elo.events import EventDispatcher, EventListener
from beaconelo.elo.learner import OnlineLearner
from beaconelo.elo.store import RatingStore

logger = logging.getLogger(__name__)


class RatingEngine:
    """
    Skill ratings and balanced matchmaking for red vs blue games.

    Usage:
        engine = RatingEngine.from_settings()
        engine.subscribe(lambda event: broadcast(event.message))

        match = engine.balance(["Steve", "Alex", "Notch", "Herobrine"])
        ...
        loss = engine.update(match.red_team, match.blue_team, Winner.RED)
    """

    def __init__(self, store: RatingStore, max_roster_size: int | None = DEFAULT_MAX_ROSTER_SIZE):
        self.store = store
        self.learner = OnlineLearner(store)
        self.balancer = MatchBalancer(store, max_roster_size=max_roster_size)
        self._lock = threading.RLock()

    @classmethod
    def open(
        cls,
        path: Path | str,
        max_roster_size: int | None = DEFAULT_MAX_ROSTER_SIZE,
    ) -> "RatingEngine":
        """Create an engine on a ratings file and load whatever it holds."""
        store = RatingStore(path, events=EventDispatcher())
        store.load()
        return cls(store, max_roster_size=max_roster_size)

    @classmethod
    def from_settings(cls, settings: Settings | None = None) -> "RatingEngine":
        settings = settings or get_settings()
        return cls.open(settings.ratings_file, max_roster_size=settings.max_roster_size)

    def subscribe(self, listener: EventListener) -> None:
        """Receive PlayerRegistered / RatingsUpdated notifications."""
        self.store.events.subscribe(listener)

    def get_skill(self, player: str) -> float:
        with self._lock:
            return self.store.get_skill(player)

    def get_parameters(self) -> tuple[float, float]:
        with self._lock:
            return self.store.get_parameters()

    def has_player(self, player: str) -> bool:
        with self._lock:
            return self.store.has_player(player)

    def leaderboard(self) -> list[tuple[str, float]]:
        with self._lock:
            return self.store.leaderboard()

    def win_probability(self, red_team: Team, blue_team: Team) -> float:
        """Predicted probability that red beats blue with these rosters and handicaps."""
        with self._lock:
            players = {member.player for member in (*red_team, *blue_team)}
            skills = {player: self.store.get_skill(player) for player in players}
            alpha, beta = self.store.get_parameters()
            return red_win_probability(red_team, blue_team, skills, alpha, beta)

    def update(self, red_team: Team, blue_team: Team, winner: Winner | str) -> float:
        with self._lock:
            loss = self.learner.update(red_team, blue_team, winner)
        logger.info("Applied result winner=%s loss=%.4f", Winner(winner).value, loss)
        return loss

    def balance(self, players: Iterable[str]) -> BalancedMatch:
        with self._lock:
            return self.balancer.balance(players)

    def __repr__(self) -> str:
        alpha, beta = self.store.get_parameters()
        return (
            f"RatingEngine(alpha={alpha:.3f}, beta={beta:.3f}, "
            f"players={self.store.player_count})"
        )
