"""R*-Succession visualization library.

Modules:
  - style: Dark theme colours and helpers
  - trajectories: Populations, resource, growth rates, composition (4 plots)
"""

from rstar_succession.viz.style import (  # noqa: F401
    DARK_BG,
    DARK_PANEL,
    GRID_COLOR,
    RESOURCE_COLOR,
    SPECIES_COLORS,
    TEXT_COLOR,
    apply_dark_theme,
    dark_figure,
    save_figure,
    species_color,
)

from rstar_succession.viz.trajectories import (  # noqa: F401
    plot_growth_rates,
    plot_population_shares,
    plot_population_trajectories,
    plot_resource_trajectory,
)
