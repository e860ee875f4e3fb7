"""
Team power and win probability for red vs blue matches.

The model:
  Effective skill: e_i = skill_i / (1 - level_i / 5)^beta
  Team power:      P = (sum_i e_i)^alpha
  Win probability: P(red wins) = P_red / (P_red + P_blue)
  Loss:            -log(P(winner) + 1e-10)

Where:
  skill_i = Player i's latent skill (always positive)
  level_i = Handicap level 0-4 assigned to player i for this match
  alpha   = Team-power concentration exponent
  beta    = Handicap sensitivity exponent

A handicap raises a player's effective skill: it is a comeback buff given to
the weaker side, not a penalty.

Everything here is pure. Callers pass in skills and parameters explicitly so
the learner can evaluate perturbed values without touching the store.
"""

from __future__ import annotations

import math
from collections.abc import Mapping, Sequence
from dataclasses import dataclass
from enum import Enum

from beaconelo.elo.constants import HANDICAP_SCALE, LOSS_EPSILON, MAX_HANDICAP


class Winner(str, Enum):
    """Observed outcome of a match."""

    RED = "red"
    BLUE = "blue"
    TIE = "tie"


@dataclass(frozen=True)
class PlayerHandicap:
    """A player and the handicap level they carry for one match."""

    player: str
    level: int = 0

    def __post_init__(self) -> None:
        if not 0 <= self.level <= MAX_HANDICAP:
            raise ValueError(
                f"handicap level must be between 0 and {MAX_HANDICAP}, got {self.level} "
                f"for player '{self.player}'"
            )

    def with_level(self, level: int) -> "PlayerHandicap":
        return PlayerHandicap(self.player, level)

    def __str__(self) -> str:
        if self.level > 0:
            return f"{self.player}:{self.level}"
        return self.player


Team = Sequence[PlayerHandicap]


def effective_skill(skill: float, level: int, beta: float) -> float:
    """Skill of one player after applying their handicap level."""
    divisor = (1.0 - level / HANDICAP_SCALE) ** beta
    return skill / divisor


def team_power(
    team: Team,
    skills: Mapping[str, float],
    alpha: float,
    beta: float,
) -> float:
    """
    Calculate a team's power.

    Args:
        team: Players with their handicap levels
        skills: Skill lookup covering every player in the team
        alpha: Concentration exponent
        beta: Handicap sensitivity exponent

    Returns:
        (sum of effective skills)^alpha, or 0.0 for an empty team
    """
    total = 0.0
    for member in team:
        total += effective_skill(skills[member.player], member.level, beta)
    return total**alpha


def win_probability(power_red: float, power_blue: float) -> float:
    """
    Probability that the red side wins, given both sides' power.

    Raises:
        ValueError: If both powers are zero (two empty teams), where the
                    probability is undefined.
    """
    total = power_red + power_blue
    if total <= 0.0:
        raise ValueError("win probability is undefined when both teams are empty")
    return power_red / total


def red_win_probability(
    red_team: Team,
    blue_team: Team,
    skills: Mapping[str, float],
    alpha: float,
    beta: float,
) -> float:
    """Convenience wrapper: team power for both sides, then win probability."""
    return win_probability(
        team_power(red_team, skills, alpha, beta),
        team_power(blue_team, skills, alpha, beta),
    )


def match_loss(
    red_team: Team,
    blue_team: Team,
    winner: Winner,
    skills: Mapping[str, float],
    alpha: float,
    beta: float,
) -> float:
    """
    Surprisal of the observed result: -log(P(winner) + eps).

    A tie carries no information and has zero loss.
    """
    if winner is Winner.TIE:
        return 0.0

    p_red = red_win_probability(red_team, blue_team, skills, alpha, beta)
    if winner is Winner.RED:
        return -math.log(p_red + LOSS_EPSILON)
    return -math.log(1.0 - p_red + LOSS_EPSILON)


def roster(*players: str | tuple[str, int]) -> list[PlayerHandicap]:
    """
    Build a team from bare names or (name, level) pairs.

    Example:
        roster("Steve", ("Alex", 2))  # -> [Steve, Alex:2]
    """
    members = []
    for entry in players:
        if isinstance(entry, tuple):
            members.append(PlayerHandicap(*entry))
        else:
            members.append(PlayerHandicap(entry))
    return members
