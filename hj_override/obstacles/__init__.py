"""
Obstacle Module for HJ Override

- obstacle: safe sets placed in the global state space, with collision footprints
- scape: union of obstacles with destroyed / undetected flags and random detection masks

Usage:
    >>> from hj_override.obstacles import RoundObstacle, Obstaclescape, MaskedObstaclescape
    >>>
    >>> scape = MaskedObstaclescape(Obstaclescape([RoundObstacle(0, 0, 1.8, palette)]))
    >>> v = scape.value(set_id, state)
    >>> p = scape.gradient(set_id, state)
    >>> contact, index = scape.collision_value(state)
"""

from .obstacle import ROUND_COLLISION_SCALE, BoxObstacle, Obstacle, RoundObstacle
from .scape import DEFAULT_DETECTION_PROBABILITY, SAFE_SENTINEL, MaskedObstaclescape, Obstaclescape

__all__ = [
    "DEFAULT_DETECTION_PROBABILITY",
    "ROUND_COLLISION_SCALE",
    "SAFE_SENTINEL",
    "BoxObstacle",
    "MaskedObstaclescape",
    "Obstacle",
    "Obstaclescape",
    "RoundObstacle",
]
