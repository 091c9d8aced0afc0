"""Visualization module for Lander.

Provides plotting functions for:
- Descent profiles (speed limit and thrust mix vs altitude)
- Landing telemetry (altitude, vertical speed vs setpoint, thrust command)

All plots use matplotlib with a consistent, professional style.
"""

import matplotlib.pyplot as plt
import numpy as np
from beartype import beartype
from matplotlib.figure import Figure

from lander.gnc.guidance.profile import DescentProfile
from lander.telemetry import TelemetryRecorder

# =============================================================================
# Plot Style Configuration
# =============================================================================

COLORS = {
    "primary": "#2E86AB",  # Steel blue
    "secondary": "#A23B72",  # Berry
    "accent": "#F18F01",  # Orange
    "neutral": "#454545",  # Dark gray
    "grid": "#CCCCCC",  # Grid lines
    "text": "#333333",  # Text color
}

DEFAULT_FIGSIZE = (12.0, 6.0)


def _setup_style() -> None:
    """Configure matplotlib style for consistent appearance."""
    plt.rcParams.update(
        {
            "font.family": "sans-serif",
            "font.sans-serif": ["Helvetica", "Arial", "DejaVu Sans"],
            "font.size": 11,
            "axes.titlesize": 14,
            "axes.labelsize": 12,
            "axes.linewidth": 1.2,
            "axes.edgecolor": COLORS["text"],
            "axes.labelcolor": COLORS["text"],
            "xtick.labelsize": 10,
            "ytick.labelsize": 10,
            "legend.fontsize": 10,
            "grid.alpha": 0.5,
        }
    )


# =============================================================================
# Descent Profile
# =============================================================================


@beartype
def plot_descent_profile(
    profile: DescentProfile,
    max_altitude: float | None = None,
    figsize: tuple[float, float] = DEFAULT_FIGSIZE,
) -> Figure:
    """Plot the speed limit and thrust mix of a descent profile.

    Args:
        profile: Computed profile
        max_altitude: Upper altitude of the plots [m] (default: whole table)
        figsize: Figure size

    Returns:
        matplotlib Figure with two subplots
    """
    _setup_style()
    altitude_km = profile.altitude_sl / 1000.0

    fig, (ax1, ax2) = plt.subplots(1, 2, figsize=figsize, sharey=True)

    ax1.plot(profile.vertical_speed, altitude_km, color=COLORS["primary"], linewidth=2)
    ax1.set_xlabel("Descent speed limit (m/s)")
    ax1.set_ylabel("Altitude above sea level (km)")
    ax1.set_title("Speed vs Altitude")
    ax1.grid(True, alpha=0.3)

    # Stacked shares, altitude kept on the vertical axis
    ax2.fill_betweenx(altitude_km, 0, profile.atmospheric_ratio,
                      color=COLORS["primary"], alpha=0.8, label="Atmospheric")
    electric_top = profile.atmospheric_ratio + profile.electric_ratio
    ax2.fill_betweenx(altitude_km, profile.atmospheric_ratio, electric_top,
                      color=COLORS["accent"], alpha=0.8, label="Electric")
    ax2.fill_betweenx(altitude_km, electric_top, electric_top + profile.hydrogen_ratio,
                      color=COLORS["secondary"], alpha=0.8, label="Hydrogen")
    ax2.set_xlabel("Share of thrust")
    ax2.set_title("Thrust Mix")
    ax2.set_xlim(0, 1)
    ax2.grid(True, alpha=0.3)
    ax2.legend(loc="upper right")

    if max_altitude is not None:
        ax1.set_ylim(0, max_altitude / 1000.0)

    status = "valid" if profile.valid else "INVALID"
    fig.suptitle(f"Descent Profile ({status})", fontsize=14, y=1.02)
    fig.tight_layout()
    return fig


# =============================================================================
# Landing Telemetry
# =============================================================================


@beartype
def plot_landing_telemetry(
    telemetry: TelemetryRecorder,
    figsize: tuple[float, float] = (12.0, 9.0),
) -> Figure:
    """Plot altitude, vertical speed tracking and thrust command over time.

    Expects the plant channels ``time``, ``altitude`` and ``vertical_speed``
    and the guidance channels ``vspeed_sp`` and ``twr_wanted``.

    Args:
        telemetry: Recorded run
        figsize: Figure size

    Returns:
        matplotlib Figure with three stacked subplots
    """
    _setup_style()
    t = telemetry.channel("time")

    fig, (ax1, ax2, ax3) = plt.subplots(3, 1, figsize=figsize, sharex=True)

    ax1.plot(t, telemetry.channel("altitude"), color=COLORS["primary"], linewidth=2)
    ax1.set_ylabel("Altitude (m)")
    ax1.set_title("Altitude")
    ax1.grid(True, alpha=0.3)

    ax2.plot(t, telemetry.channel("vertical_speed"), color=COLORS["primary"],
             linewidth=2, label="Measured")
    ax2.plot(t, telemetry.channel("vspeed_sp"), color=COLORS["secondary"],
             linestyle="--", linewidth=1.5, label="Setpoint")
    ax2.set_ylabel("Vertical speed (m/s)")
    ax2.set_title("Vertical Speed Tracking")
    ax2.grid(True, alpha=0.3)
    ax2.legend()

    ax3.plot(t, telemetry.channel("twr_wanted"), color=COLORS["accent"], linewidth=1.5)
    ax3.axhline(y=1.0, color=COLORS["neutral"], linestyle=":", alpha=0.7, label="Hover")
    ax3.set_xlabel("Time (s)")
    ax3.set_ylabel("Commanded LWR")
    ax3.set_title("Lift-to-Weight Command")
    ax3.grid(True, alpha=0.3)
    ax3.legend()

    if len(t) > 0:
        ax3.set_xlim(float(np.min(t)), float(np.max(t)))

    fig.tight_layout()
    return fig
