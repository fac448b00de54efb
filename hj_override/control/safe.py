"""
Worst-Case-Optimal Safety Controller

Given the safety value gradient p = ∇V(x) as co-state, the input that
pushes the value up fastest over the box |u_i| <= max_u maximizes the
Hamiltonian p · B(x) u. The maximizer is bang-bang per input:

    u_i = +max_u   if B(x)[:, i] · p > 0
    u_i = -max_u   if B(x)[:, i] · p < 0
    u_i = 0        if B(x)[:, i] · p = 0
"""

from __future__ import annotations

import numpy as np
from numpy.typing import ArrayLike, NDArray

from ..dynamics import ControlAffineDynamics
from ..errors import check_dimension


class SafeController:
    """
    Bang-bang avoidance controller.

    Example:
        >>> safer = SafeController(DubinsCar(), max_u=1.0)
        >>> u = safer.get_control(x, gradient)
    """

    def __init__(self, dynamics: ControlAffineDynamics, max_u: float):
        if max_u < 0:
            raise ValueError(f"max_u must be non-negative, got {max_u}")
        self.dynamics = dynamics
        self.max_u = float(max_u)

    def hamiltonian_coefficients(self, x: ArrayLike, gradient: ArrayLike) -> NDArray:
        """B(x)^T p, one coefficient per control input."""
        x = np.asarray(x, dtype=float)
        gradient = np.asarray(gradient, dtype=float).reshape(-1)
        check_dimension(gradient, self.dynamics.n_state, "gradient")
        return self.dynamics.control_matrix(x).T @ gradient

    def get_control(self, x: ArrayLike, gradient: ArrayLike) -> NDArray:
        """
        Compute the worst-case-optimal input.

        Args:
            x: Current state (n_state,)
            gradient: Safety value gradient at x (n_state,)

        Returns:
            Control (n_control,)
        """
        return self.max_u * np.sign(self.hamiltonian_coefficients(x, gradient))
