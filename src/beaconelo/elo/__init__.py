"""
Rating model and matchmaking.

Implements the red vs blue team model with:
- Team power from handicap-adjusted player skills
- Win probability as a ratio of team powers
- Online finite-difference gradient updates after each match
- Exhaustive even-split search plus round-robin handicap escalation
- JSON persistence with per-field fallback to defaults
"""

from beaconelo.elo.balancer import BalancedMatch, MatchBalancer, RosterTooLargeError
from beaconelo.elo.calculator import (
    PlayerHandicap,
    Winner,
    match_loss,
    red_win_probability,
    roster,
    team_power,
    win_probability,
)
from beaconelo.elo.constants import display_rating
from beaconelo.elo.events import EventDispatcher, PlayerRegistered, RatingsUpdated
from beaconelo.elo.learner import OnlineLearner
from beaconelo.elo.store import RatingState, RatingStore

__all__ = [
    "BalancedMatch",
    "EventDispatcher",
    "MatchBalancer",
    "OnlineLearner",
    "PlayerHandicap",
    "PlayerRegistered",
    "RatingState",
    "RatingStore",
    "RatingsUpdated",
    "RosterTooLargeError",
    "Winner",
    "display_rating",
    "match_loss",
    "red_win_probability",
    "roster",
    "team_power",
    "win_probability",
]
