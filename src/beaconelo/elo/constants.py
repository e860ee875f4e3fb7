"""
Rating model constants.

The model has two global hyperparameters, both learned online alongside the
player skills:

alpha: Team-power concentration exponent
  - Higher alpha = the stronger team is favoured more heavily
  - alpha = 1 means power is just the sum of effective skills

beta: Handicap sensitivity exponent
  - Controls how much a handicap level boosts a player's effective skill
  - Effective skill = skill / (1 - level/5)^beta

Both are stored in log space so that additive gradient steps can never make
them negative. The same holds for every player skill.
"""

import math

# Default hyperparameters for a fresh ratings file
DEFAULT_ALPHA = 2.0
DEFAULT_BETA = 1.0 / 1.5  # ~0.667

# Skill given to the very first player ever registered.
# Later players start at the lowest skill currently held.
DEFAULT_SKILL = 1.0

DEFAULT_LOG_ALPHA = math.log(DEFAULT_ALPHA)
DEFAULT_LOG_BETA = math.log(DEFAULT_BETA)
DEFAULT_LOG_SKILL = math.log(DEFAULT_SKILL)

# Gradient descent: symmetric finite-difference step and learning rate
FD_EPSILON = 1e-4
LEARNING_RATE = 0.1

# Guard against log(0) when the observed winner had zero predicted chance
LOSS_EPSILON = 1e-10

# Handicap levels run 0..MAX_HANDICAP; the divisor is (1 - level/HANDICAP_SCALE)
MAX_HANDICAP = 4
HANDICAP_SCALE = 5.0

# Balancer: a split this close to 50% needs no handicaps
BALANCE_TOLERANCE = 0.001

# Default ceiling on roster size for the exhaustive split search.
# C(16, 8) = 12870 splits, which is still instant.
DEFAULT_MAX_ROSTER_SIZE = 16

# Skills are shown to players multiplied by this factor (1.0 -> 1000)
DISPLAY_SCALE = 1000


def display_rating(skill: float) -> int:
    """
    Convert an internal skill value into the integer shown to players.

    Example:
        display_rating(1.0)    # -> 1000
        display_rating(0.8734) # -> 873
    """
    return int(skill * DISPLAY_SCALE)
