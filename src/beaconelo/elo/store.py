"""
Durable storage for player skills and the global model parameters.

Everything is kept in log space (log skill, log alpha, log beta) so that the
values exposed to callers are always exp(...) and therefore strictly positive.

The on-disk format is a single JSON record:

    {
      "logAlpha": 0.693...,
      "logBeta": -0.405...,
      "logPlayerRatings": {"Steve": 0.0, "Alex": -0.12}
    }

The file is rewritten in full on every save. On load, each field falls back to
its default independently when it is missing or malformed, so a damaged file
can never leave the store half-initialised. Inside the ratings map a bad entry
is dropped on its own and the other players keep their ratings.
"""

from __future__ import annotations

import json
import logging
import math
import os
from pathlib import Path
from typing import Any

from pydantic import (
    BaseModel,
    ConfigDict,
    Field,
    FiniteFloat,
    ValidationError,
    TypeAdapter,
    ValidationInfo,
    ValidatorFunctionWrapHandler,
    field_validator,
)

from beaconelo.elo.constants import (
    DEFAULT_LOG_ALPHA,
    DEFAULT_LOG_BETA,
    DEFAULT_LOG_SKILL,
)
from beaconelo.elo.events import EventDispatcher, PlayerRegistered

logger = logging.getLogger(__name__)

_LOG_SKILL = TypeAdapter(FiniteFloat)


class RatingState(BaseModel):
    """Serialised form of the store (field names match the JSON keys via aliases)."""

    model_config = ConfigDict(populate_by_name=True)

    log_alpha: FiniteFloat = Field(default=DEFAULT_LOG_ALPHA, alias="logAlpha")
    log_beta: FiniteFloat = Field(default=DEFAULT_LOG_BETA, alias="logBeta")
    log_player_ratings: dict[str, FiniteFloat] = Field(
        default_factory=dict,
        alias="logPlayerRatings",
    )

    @field_validator("log_alpha", "log_beta", "log_player_ratings", mode="wrap")
    @classmethod
    def fall_back_to_default(
        cls,
        value: Any,
        handler: ValidatorFunctionWrapHandler,
        info: ValidationInfo,
    ) -> Any:
        """Replace a malformed field with its default instead of failing the whole record."""
        try:
            return handler(value)
        except ValidationError as exc:
            logger.warning(
                "Ignoring malformed '%s' in ratings file (%s); using default",
                info.field_name,
                exc.errors()[0]["msg"],
            )
            return cls.model_fields[info.field_name].get_default(call_default_factory=True)

    @field_validator("log_player_ratings", mode="before")
    @classmethod
    def drop_malformed_ratings(cls, value: Any) -> Any:
        """Drop individual bad entries so one damaged rating doesn't cost the rest."""
        if not isinstance(value, dict):
            return value

        kept = {}
        for player, log_skill in value.items():
            try:
                kept[player] = _LOG_SKILL.validate_python(log_skill)
            except ValidationError as exc:
                logger.warning(
                    "Ignoring malformed rating for '%s' in ratings file (%s)",
                    player,
                    exc.errors()[0]["msg"],
                )
        return kept


class RatingStore:
    """
    Player skill table plus alpha/beta, backed by a JSON file.

    Usage:
        store = RatingStore(Path("data/elo_ratings.json"))
        store.load()

        skill = store.get_skill("Steve")   # registers Steve if unknown
        alpha, beta = store.get_parameters()
    """

    def __init__(self, path: Path | str, events: EventDispatcher | None = None):
        self.path = Path(path)
        self.events = events or EventDispatcher()
        self._log_alpha = DEFAULT_LOG_ALPHA
        self._log_beta = DEFAULT_LOG_BETA
        self._log_ratings: dict[str, float] = {}

    # ------------------------------------------------------------------
    # Players
    # ------------------------------------------------------------------

    def get_log_skill(self, player: str) -> float:
        """Get a player's log skill, registering them first if unknown."""
        if player not in self._log_ratings:
            self._register(player)
        return self._log_ratings[player]

    def get_skill(self, player: str) -> float:
        return math.exp(self.get_log_skill(player))

    def set_log_skill(self, player: str, log_skill: float) -> None:
        if not math.isfinite(log_skill):
            raise ValueError(f"log skill for '{player}' must be finite, got {log_skill}")
        self._log_ratings[player] = log_skill

    def set_skill(self, player: str, skill: float) -> None:
        if not skill > 0.0:
            raise ValueError(f"skill for '{player}' must be positive, got {skill}")
        self.set_log_skill(player, math.log(skill))

    def has_player(self, player: str) -> bool:
        return player in self._log_ratings

    @property
    def player_count(self) -> int:
        return len(self._log_ratings)

    def skills(self) -> dict[str, float]:
        """Snapshot of every known player's skill."""
        return {player: math.exp(value) for player, value in self._log_ratings.items()}

    def leaderboard(self) -> list[tuple[str, float]]:
        """All players sorted by skill, strongest first (ties broken by name)."""
        return sorted(self.skills().items(), key=lambda item: (-item[1], item[0]))

    def _register(self, player: str) -> None:
        # First player ever starts at the default; everyone after that starts
        # no better than the weakest known player.
        if self._log_ratings:
            log_skill = min(self._log_ratings.values())
        else:
            log_skill = DEFAULT_LOG_SKILL

        self._log_ratings[player] = log_skill
        self.persist()
        self.events.emit(PlayerRegistered(player=player, skill=math.exp(log_skill)))

    # ------------------------------------------------------------------
    # Model parameters
    # ------------------------------------------------------------------

    def get_parameters(self) -> tuple[float, float]:
        """Return (alpha, beta)."""
        return math.exp(self._log_alpha), math.exp(self._log_beta)

    def log_parameters(self) -> tuple[float, float]:
        """Return (log alpha, log beta)."""
        return self._log_alpha, self._log_beta

    def set_log_parameters(self, log_alpha: float, log_beta: float) -> None:
        if not (math.isfinite(log_alpha) and math.isfinite(log_beta)):
            raise ValueError(f"log parameters must be finite, got ({log_alpha}, {log_beta})")
        self._log_alpha = log_alpha
        self._log_beta = log_beta

    def set_parameters(self, alpha: float, beta: float) -> None:
        if not (alpha > 0.0 and beta > 0.0):
            raise ValueError(f"alpha and beta must be positive, got ({alpha}, {beta})")
        self.set_log_parameters(math.log(alpha), math.log(beta))

    # ------------------------------------------------------------------
    # Persistence
    # ------------------------------------------------------------------

    def snapshot(self) -> RatingState:
        return RatingState(
            log_alpha=self._log_alpha,
            log_beta=self._log_beta,
            log_player_ratings=dict(self._log_ratings),
        )

    def persist(self) -> bool:
        """
        Write the whole state to disk.

        The file is written next to its destination and then swapped in, so a
        crash mid-write never leaves a truncated ratings file behind.

        Returns:
            True on success. On failure the error is logged and the in-memory
            state stays authoritative until the next successful save.
        """
        payload = self.snapshot().model_dump(by_alias=True)
        tmp_path = self.path.with_name(self.path.name + ".tmp")
        try:
            self.path.parent.mkdir(parents=True, exist_ok=True)
            tmp_path.write_text(json.dumps(payload, indent=2) + "\n", encoding="utf-8")
            os.replace(tmp_path, self.path)
        except OSError as exc:
            logger.warning("Failed to save ELO ratings to %s: %s", self.path, exc)
            return False
        return True

    def load(self) -> bool:
        """
        Replace the in-memory state with the contents of the ratings file.

        A missing file is normal (fresh install) and leaves the defaults in
        place. An unreadable or undecodable file is reported and also leaves
        the current state untouched.

        Returns:
            True if a file was read and applied.
        """
        if not self.path.exists():
            logger.info("No ratings file at %s; starting with defaults", self.path)
            return False

        try:
            raw = json.loads(self.path.read_text(encoding="utf-8"))
            state = RatingState.model_validate(raw)
        except (OSError, ValueError) as exc:
            # json.JSONDecodeError and pydantic's ValidationError are both ValueErrors
            logger.warning("Failed to load ELO ratings from %s: %s", self.path, exc)
            return False

        self._log_alpha = state.log_alpha
        self._log_beta = state.log_beta
        self._log_ratings = dict(state.log_player_ratings)
        logger.info("Loaded ELO ratings for %d players", len(self._log_ratings))
        return True

    def __repr__(self) -> str:
        alpha, beta = self.get_parameters()
        return (
            f"<RatingStore(path={str(self.path)!r}, alpha={alpha:.3f}, "
            f"beta={beta:.3f}, players={self.player_count})>"
        )
