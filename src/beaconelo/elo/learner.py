"""
Online learning of skills and model parameters from match results.

After each decisive match we take one gradient-descent step on the match's
surprisal, over:
  - log(alpha)
  - log(beta)
  - log(skill) of every player who took part

Gradients are estimated with a symmetric finite difference:
  grad(theta) = (loss(theta + eps) - loss(theta - eps)) / (2 * eps)
  theta      <- theta - learning_rate * grad(theta)

Updates are sequential: alpha first, then beta using the new alpha, then each
player in order of first appearance, each seeing the values already updated
before it. Players outside the match are never touched, so there is never any
need for a full batch re-optimisation.
"""

from __future__ import annotations

import logging
import math
from collections.abc import Callable

from beaconelo.elo.calculator import Team, Winner, match_loss
from beaconelo.elo.constants import FD_EPSILON, LEARNING_RATE
from beaconelo.elo.events import RatingsUpdated
from beaconelo.elo.store import RatingStore

logger = logging.getLogger(__name__)


def _central_difference(loss_at: Callable[[float], float], theta: float, epsilon: float) -> float:
    return (loss_at(theta + epsilon) - loss_at(theta - epsilon)) / (2.0 * epsilon)


class OnlineLearner:
    """
    Applies one finite-difference gradient step per completed match.

    Usage:
        learner = OnlineLearner(store)
        loss = learner.update(
            red_team=[PlayerHandicap("Steve"), PlayerHandicap("Alex", 2)],
            blue_team=[PlayerHandicap("Notch")],
            winner=Winner.BLUE,
        )
    """

    def __init__(
        self,
        store: RatingStore,
        learning_rate: float = LEARNING_RATE,
        epsilon: float = FD_EPSILON,
    ):
        self.store = store
        self.learning_rate = learning_rate
        self.epsilon = epsilon

    def update(self, red_team: Team, blue_team: Team, winner: Winner | str) -> float:
        """
        Update ratings from a match result.

        Args:
            red_team: Red players with the handicap levels they played with
            blue_team: Blue players with the handicap levels they played with
            winner: Winner.RED, Winner.BLUE or Winner.TIE (or their string values)

        Returns:
            The loss of the result under the ratings *before* this update.
            A tie changes nothing and returns 0.0.

        Raises:
            ValueError: If winner is not a known outcome, or both teams are empty
        """
        winner = Winner(winner)
        if winner is Winner.TIE:
            return 0.0
        if not red_team and not blue_team:
            raise ValueError("cannot update ratings for a match with no players")

        players = _distinct_players(red_team, blue_team)
        log_skills = {player: self.store.get_log_skill(player) for player in players}
        log_alpha, log_beta = self.store.log_parameters()

        def loss(la: float, lb: float) -> float:
            skills = {player: math.exp(value) for player, value in log_skills.items()}
            return match_loss(red_team, blue_team, winner, skills, math.exp(la), math.exp(lb))

        current_loss = loss(log_alpha, log_beta)

        grad_alpha = _central_difference(lambda t: loss(t, log_beta), log_alpha, self.epsilon)
        log_alpha -= self.learning_rate * grad_alpha

        grad_beta = _central_difference(lambda t: loss(log_alpha, t), log_beta, self.epsilon)
        log_beta -= self.learning_rate * grad_beta

        for player in players:
            original = log_skills[player]

            def loss_at(t: float, player: str = player) -> float:
                log_skills[player] = t
                return loss(log_alpha, log_beta)

            grad = _central_difference(loss_at, original, self.epsilon)
            log_skills[player] = original - self.learning_rate * grad
            logger.debug(
                "%s: log skill %.5f -> %.5f (grad=%.5f)",
                player,
                original,
                log_skills[player],
                grad,
            )

        self.store.set_log_parameters(log_alpha, log_beta)
        for player, value in log_skills.items():
            self.store.set_log_skill(player, value)
        self.store.persist()

        self.store.events.emit(RatingsUpdated(loss=current_loss, players=tuple(players)))
        return current_loss


def _distinct_players(red_team: Team, blue_team: Team) -> list[str]:
    """Player ids in order of first appearance, red roster first."""
    seen: dict[str, None] = {}
    for member in (*red_team, *blue_team):
        seen.setdefault(member.player, None)
    return list(seen)
