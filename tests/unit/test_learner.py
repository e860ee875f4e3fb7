"""
Unit tests for the online learner.

Tests the gradient step to ensure:
- Ties change nothing
- A decisive result lowers the loss of that same match
- Winners gain, losers drop, bystanders are untouched
- Updates are saved and announced
"""

import json
import math

import pytest

from beaconelo.elo.calculator import Winner, match_loss, roster
from beaconelo.elo.events import RatingsUpdated
from beaconelo.elo.learner import OnlineLearner
from beaconelo.elo.store import RatingStore


def _loss(store, red, blue, winner):
    skills = {m.player: store.get_skill(m.player) for m in (*red, *blue)}
    alpha, beta = store.get_parameters()
    return match_loss(red, blue, winner, skills, alpha, beta)


class TestTie:
    def test_tie_changes_nothing(self, seeded_store):
        before_skills = seeded_store.skills()
        before_params = seeded_store.log_parameters()

        loss = OnlineLearner(seeded_store).update(roster("alice"), roster("bob"), Winner.TIE)

        assert loss == 0.0
        assert seeded_store.skills() == before_skills
        assert seeded_store.log_parameters() == before_params

    def test_tie_does_not_register_players(self, store):
        OnlineLearner(store).update(roster("x"), roster("y"), "tie")
        assert store.player_count == 0


class TestDecisiveUpdate:
    @pytest.mark.parametrize("winner", [Winner.RED, Winner.BLUE])
    def test_loss_decreases_for_same_match(self, seeded_store, winner):
        red = roster("alice", ("bob", 2))
        blue = roster("dave")
        learner = OnlineLearner(seeded_store)

        before = _loss(seeded_store, red, blue, winner)
        returned = learner.update(red, blue, winner)
        after = _loss(seeded_store, red, blue, winner)

        assert returned == pytest.approx(before)
        assert after < before

    def test_returns_pre_update_loss(self, store):
        loss = OnlineLearner(store).update(roster("a"), roster("b"), Winner.RED)
        # Both bootstrap at 1.0, so the match was a coin flip
        assert loss == pytest.approx(math.log(2.0))

    def test_winner_gains_loser_drops(self, seeded_store):
        OnlineLearner(seeded_store).update(roster("alice"), roster("bob"), Winner.BLUE)

        assert seeded_store.get_skill("bob") > 1.0
        assert seeded_store.get_skill("alice") < 1.0

    def test_even_one_vs_one_leaves_parameters(self, store):
        """With identical skills and no handicaps, alpha and beta have zero gradient."""
        before = store.log_parameters()
        OnlineLearner(store).update(roster("a"), roster("b"), Winner.RED)
        assert store.log_parameters() == pytest.approx(before)

    def test_handicapped_upset_moves_beta(self, seeded_store):
        _, beta_before = seeded_store.log_parameters()
        OnlineLearner(seeded_store).update(
            roster(("alice", 4), ("bob", 4)), roster("carol"), Winner.RED
        )
        _, beta_after = seeded_store.log_parameters()
        # Handicapped side won: a stronger handicap effect explains it better
        assert beta_after > beta_before

    def test_bystanders_untouched(self, seeded_store):
        OnlineLearner(seeded_store).update(roster("alice"), roster("bob"), Winner.RED)
        assert seeded_store.get_skill("carol") == pytest.approx(4.0)
        assert seeded_store.get_skill("dave") == pytest.approx(2.0)

    def test_unknown_players_are_bootstrapped(self, seeded_store):
        OnlineLearner(seeded_store).update(roster("newbie"), roster("alice"), Winner.BLUE)
        assert seeded_store.has_player("newbie")

    def test_player_listed_twice_updated_once(self, seeded_store, received_events):
        OnlineLearner(seeded_store).update(roster("alice", "alice"), roster("bob"), Winner.RED)
        assert received_events[-1].players == ("alice", "bob")

    def test_custom_learning_rate_scales_step(self, ratings_path):
        slow = RatingStore(ratings_path.with_name("slow.json"))
        fast = RatingStore(ratings_path.with_name("fast.json"))

        OnlineLearner(slow, learning_rate=0.01).update(roster("a"), roster("b"), Winner.RED)
        OnlineLearner(fast, learning_rate=0.1).update(roster("a"), roster("b"), Winner.RED)

        assert 0.0 < math.log(slow.get_skill("a")) < math.log(fast.get_skill("a"))


class TestSideEffects:
    def test_update_is_saved(self, seeded_store, ratings_path):
        OnlineLearner(seeded_store).update(roster("alice"), roster("carol"), Winner.RED)

        saved = json.loads(ratings_path.read_text(encoding="utf-8"))
        assert saved["logPlayerRatings"]["alice"] == pytest.approx(
            seeded_store.get_log_skill("alice")
        )
        assert (saved["logAlpha"], saved["logBeta"]) == pytest.approx(seeded_store.log_parameters())

    def test_update_emits_event(self, seeded_store, received_events):
        loss = OnlineLearner(seeded_store).update(roster("alice"), roster("bob"), Winner.RED)

        assert received_events == [RatingsUpdated(loss=loss, players=("alice", "bob"))]
        assert received_events[0].message == f"Ratings updated! Loss: {loss:.3f}"


class TestInvalidInput:
    def test_unknown_winner_rejected(self, seeded_store):
        with pytest.raises(ValueError):
            OnlineLearner(seeded_store).update(roster("alice"), roster("bob"), "purple")

    def test_no_players_rejected(self, store):
        with pytest.raises(ValueError):
            OnlineLearner(store).update([], [], Winner.RED)


def _reference_step(red, blue, winner, log_skills, log_alpha, log_beta, sequential=True):
    """One hand-rolled learner step: alpha, then beta, then each player in turn."""
    eps, rate = 1e-4, 0.1

    def loss(logs, la, lb):
        alpha, beta = math.exp(la), math.exp(lb)

        def power(team):
            total = 0.0
            for m in team:
                total += math.exp(logs[m.player]) / (1.0 - m.level / 5.0) ** beta
            return total**alpha

        p_red = power(red) / (power(red) + power(blue))
        p_winner = p_red if winner is Winner.RED else 1.0 - p_red
        return -math.log(p_winner + 1e-10)

    def step(f, theta):
        return theta - rate * (f(theta + eps) - f(theta - eps)) / (2.0 * eps)

    log_alpha = step(lambda t: loss(log_skills, t, log_beta), log_alpha)
    log_beta = step(lambda t: loss(log_skills, log_alpha, t), log_beta)

    start = dict(log_skills)
    updated = dict(log_skills)
    for player in log_skills:
        seen = updated if sequential else start
        updated[player] = step(lambda t: loss({**seen, player: t}, log_alpha, log_beta), start[player])
    return log_alpha, log_beta, updated


class TestStepValues:
    """Exact values of one step, pinning the order the parameters are updated in."""

    @pytest.mark.parametrize("winner", [Winner.RED, Winner.BLUE])
    def test_matches_sequential_reference(self, seeded_store, winner):
        red = roster(("alice", 2), "bob")
        blue = roster("dave", ("carol", 1))
        log_skills = {
            player: seeded_store.get_log_skill(player)
            for player in ("alice", "bob", "dave", "carol")
        }
        log_alpha, log_beta = seeded_store.log_parameters()

        expected_alpha, expected_beta, expected_skills = _reference_step(
            red, blue, winner, log_skills, log_alpha, log_beta
        )
        OnlineLearner(seeded_store).update(red, blue, winner)

        got_alpha, got_beta = seeded_store.log_parameters()
        assert got_alpha == pytest.approx(expected_alpha, abs=1e-12)
        assert got_beta == pytest.approx(expected_beta, abs=1e-12)
        for player, expected in expected_skills.items():
            assert seeded_store.get_log_skill(player) == pytest.approx(expected, abs=1e-12)

    def test_later_players_see_earlier_updates(self, seeded_store):
        red = roster(("alice", 2), "bob")
        blue = roster("dave", ("carol", 1))
        log_skills = {
            player: seeded_store.get_log_skill(player)
            for player in ("alice", "bob", "dave", "carol")
        }
        log_alpha, log_beta = seeded_store.log_parameters()

        *_, simultaneous = _reference_step(
            red, blue, Winner.RED, log_skills, log_alpha, log_beta, sequential=False
        )
        OnlineLearner(seeded_store).update(red, blue, Winner.RED)

        # The first player is identical either way; everyone after differs
        assert seeded_store.get_log_skill("alice") == pytest.approx(
            simultaneous["alice"], abs=1e-12
        )
        assert seeded_store.get_log_skill("carol") != pytest.approx(
            simultaneous["carol"], abs=1e-9
        )
