"""
beaconelo - Skill ratings and team balancing for Beacon War

Tracks a latent skill per player, predicts win probability for any red vs
blue split, learns from each match result, and proposes the most even teams
(with comeback handicaps) for a roster.

Main components:
- elo: Rating model, online learner, balancer and JSON rating store
- engine: Single entry point for the game server
- config: Environment-driven settings
"""

__version__ = "1.0.0"
