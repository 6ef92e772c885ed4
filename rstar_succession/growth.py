"""Per-capita growth of a species as a function of the shared resource.

    r = m (R - R*)

Positive when the resource exceeds the species' requirement R*, negative
below it, zero at R = R*. Works elementwise on numpy arrays, so one call
evaluates every species at once.
"""

from __future__ import annotations

from typing import Union

import numpy as np

ArrayLike = Union[float, np.ndarray]


def percapita_growth(m: ArrayLike, R: ArrayLike, R_star: ArrayLike) -> ArrayLike:
    """Instantaneous per-capita growth rate, (1/N) dN/dt.

    Defined for all real inputs; no validation is performed.

    Args:
        m: Growth-rate sensitivity (scalar or (k,) array).
        R: Current resource level.
        R_star: Minimum resource requirement (scalar or (k,) array).

    Returns:
        m * (R - R_star), broadcast over the inputs.
    """
    return m * (R - R_star)
