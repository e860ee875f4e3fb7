"""
Balanced team assignment with handicap escalation.

Two stages:

1. Even split: try every way of putting floor(n/2) players on red (the rest on
   blue), all at handicap 0, and keep the split whose red win probability is
   closest to 50%. Ties go to the first split in lexicographic index order.

2. Handicaps: if that split is not already within 0.1% of even, walk the
   disfavoured team weakest-first in round-robin, raising one player's handicap
   by one level at a time. As soon as the disfavoured side reaches 50% or more,
   keep whichever of the last two states is closer to 50% and stop. If every
   disfavoured player is at the maximum level, stop with that state.

The split search is exhaustive (C(n, n/2) candidates), so roster size is
capped rather than silently switching to a heuristic that would pick
different teams.
"""

from __future__ import annotations

import logging
from collections.abc import Iterable, Mapping
from dataclasses import dataclass
from itertools import combinations

from beaconelo.elo.calculator import PlayerHandicap, Team, red_win_probability
from beaconelo.elo.constants import BALANCE_TOLERANCE, DEFAULT_MAX_ROSTER_SIZE, MAX_HANDICAP
from beaconelo.elo.store import RatingStore

logger = logging.getLogger(__name__)


class RosterTooLargeError(ValueError):
    """Roster exceeds the ceiling for the exhaustive split search."""


@dataclass(frozen=True)
class BalancedMatch:
    """Result of a balancing run, always reported red first."""

    red_team: tuple[PlayerHandicap, ...]
    blue_team: tuple[PlayerHandicap, ...]
    p_red_wins: float

    @property
    def handicaps(self) -> dict[str, int]:
        """Handicap level per player (0 for unhandicapped players)."""
        return {member.player: member.level for member in (*self.red_team, *self.blue_team)}

    def __str__(self) -> str:
        red = ", ".join(str(member) for member in self.red_team)
        blue = ", ".join(str(member) for member in self.blue_team)
        return f"Red [{red}] vs Blue [{blue}] (P(red wins) = {self.p_red_wins:.1%})"


class MatchBalancer:
    """
    Finds the most even red/blue split for a roster.

    Usage:
        balancer = MatchBalancer(store)
        match = balancer.balance(["Steve", "Alex", "Notch", "Herobrine"])
        print(match)
    """

    def __init__(self, store: RatingStore, max_roster_size: int | None = DEFAULT_MAX_ROSTER_SIZE):
        self.store = store
        self.max_roster_size = max_roster_size

    def balance(self, players: Iterable[str]) -> BalancedMatch:
        """
        Compute balanced teams for the given players.

        Unknown players are registered first (bootstrap rule). A single-player
        roster is allowed and leaves red empty.

        Args:
            players: Player ids; duplicates are ignored, order is kept

        Returns:
            BalancedMatch with both rosters and the predicted red win probability

        Raises:
            ValueError: If the roster is empty
            RosterTooLargeError: If the roster exceeds max_roster_size
        """
        roster = list(dict.fromkeys(players))
        if not roster:
            raise ValueError("cannot balance an empty roster")
        if self.max_roster_size is not None and len(roster) > self.max_roster_size:
            raise RosterTooLargeError(
                f"roster of {len(roster)} players exceeds the limit of {self.max_roster_size}"
            )

        skills = {player: self.store.get_skill(player) for player in roster}
        alpha, beta = self.store.get_parameters()

        red, blue, p_red = self._best_even_split(roster, skills, alpha, beta)
        logger.debug("Best even split: red=%s blue=%s p_red=%.4f", red, blue, p_red)

        if abs(p_red - 0.5) < BALANCE_TOLERANCE:
            return BalancedMatch(tuple(red), tuple(blue), p_red)

        red_disfavored = p_red < 0.5
        disfavored, favored = (red, blue) if red_disfavored else (blue, red)
        if not disfavored:
            # Nobody to hand a handicap to (single-player roster)
            return BalancedMatch(tuple(red), tuple(blue), p_red)

        # Weakest first; sorted() is stable so equal skills keep split order
        disfavored = sorted(disfavored, key=lambda member: skills[member.player])
        disfavored, p_red = self._escalate_handicaps(
            disfavored, favored, red_disfavored, p_red, skills, alpha, beta
        )

        if red_disfavored:
            return BalancedMatch(tuple(disfavored), tuple(favored), p_red)
        return BalancedMatch(tuple(favored), tuple(disfavored), p_red)

    @staticmethod
    def _best_even_split(
        roster: list[str],
        skills: Mapping[str, float],
        alpha: float,
        beta: float,
    ) -> tuple[list[PlayerHandicap], list[PlayerHandicap], float]:
        n = len(roster)

        def splits():
            for red_indices in combinations(range(n), n // 2):
                chosen = set(red_indices)
                red = [PlayerHandicap(roster[i]) for i in range(n) if i in chosen]
                blue = [PlayerHandicap(roster[i]) for i in range(n) if i not in chosen]
                yield red, blue, red_win_probability(red, blue, skills, alpha, beta)

        # min() keeps the first of equally close splits
        return min(splits(), key=lambda split: abs(split[2] - 0.5))

    @staticmethod
    def _escalate_handicaps(
        disfavored: list[PlayerHandicap],
        favored: Team,
        red_disfavored: bool,
        p_red: float,
        skills: Mapping[str, float],
        alpha: float,
        beta: float,
    ) -> tuple[list[PlayerHandicap], float]:
        """Round-robin handicap increments with a one-step backtrack."""

        def red_probability(team: list[PlayerHandicap]) -> float:
            if red_disfavored:
                return red_win_probability(team, favored, skills, alpha, beta)
            return red_win_probability(favored, team, skills, alpha, beta)

        def disfavored_probability(p: float) -> float:
            return p if red_disfavored else 1.0 - p

        team = list(disfavored)
        prev_team = list(team)
        prev_p_red = p_red
        cursor = 0

        while True:
            current = team[cursor]
            if current.level >= MAX_HANDICAP:
                cursor = (cursor + 1) % len(team)
                if all(member.level >= MAX_HANDICAP for member in team):
                    logger.debug("All disfavoured players at max handicap; cannot fully balance")
                    return team, prev_p_red
                continue

            team[cursor] = current.with_level(current.level + 1)
            new_p_red = red_probability(team)
            new_p = disfavored_probability(new_p_red)
            logger.debug("Raised %s -> p_disfavoured=%.4f", team[cursor], new_p)

            if new_p >= 0.5:
                prev_diff = abs(disfavored_probability(prev_p_red) - 0.5)
                new_diff = abs(new_p - 0.5)
                if prev_diff < new_diff:
                    return prev_team, prev_p_red
                return team, new_p_red

            prev_team = list(team)
            prev_p_red = new_p_red
            cursor = (cursor + 1) % len(team)
