"""
Control Module for HJ Override

- trackers: nominal goal-tracking controllers (PD, Dubins steering)
- safe: bang-bang worst-case-optimal avoidance input
- intervention: supervisor switching between tracking and override

Usage:
    >>> from hj_override.control import DubinsTracker, InterventionController
    >>>
    >>> tracker = DubinsTracker(max_u=1.0, setpoint=[1.0, -4.0])
    >>> controller = InterventionController(car, safe_set, 1.0, tracker, trigger_level=0.55)
    >>> u = controller.compute(x)
"""

from .intervention import ControlMode, InterventionController, LegibleController, PaletteInterventionController
from .safe import SafeController
from .trackers import ConcatController, DubinsTracker, PDController, ZeroController

__all__ = [
    # Trackers
    "ConcatController",
    # Intervention
    "ControlMode",
    "DubinsTracker",
    "InterventionController",
    "LegibleController",
    "PDController",
    "PaletteInterventionController",
    # Safety
    "SafeController",
    "ZeroController",
]
