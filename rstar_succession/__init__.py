"""R*-Succession: resource-ratio succession among competing species.

A deterministic ODE model of several species drawing down one shared,
depletable resource:
  - Per-capita growth r_i = m_i (R - R*_i)
  - Resource R = R_max - sum_i u_i N_i, derived from populations, never integrated
  - Fixed-step classical RK4 integration over a uniform time grid
  - The species with the lowest R* persists at the lowest resource level
    and ultimately displaces the others (Tilman's resource-ratio hypothesis)
"""

__version__ = "0.1.0"
