"""
Visualization components for import progress.

Renders a paced progress bar per resource type: a filled bar for the
current value, a vertical pacer line at the target threshold, and a colour
scheme that flips when the value runs past the pacer. The poller only
depends on the ProgressVisualizer protocol; the console and Streamlit
renderers below implement it.
"""

import logging
import sys
from dataclasses import dataclass
from typing import Dict, Optional, Protocol, TextIO

import altair as alt
import pandas as pd
import streamlit as st

logger = logging.getLogger(__name__)

# Color scheme
COLORS = {
    'on_pace_value': '#1aa33c',   # Green
    'over_pace_value': '#d1311f',  # Red
    'on_pace_pacer': '#a5281a',
    'over_pace_pacer': '#d0d622',
    'border': '#CCC',
}

DEFAULT_BAR_HEIGHT = 96
VALUE_X_OFFSET = 2


@dataclass(frozen=True)
class PacedBar:
    """Values behind one paced progress bar."""
    value: float
    pacer: float
    max: float

    @property
    def on_pace(self) -> bool:
        return self.value <= self.pacer

    @property
    def value_fraction(self) -> float:
        """Filled share of the bar, clamped to the container."""
        if self.max <= 0:
            return 1.0
        return max(0.0, min(self.value / self.max, 1.0))

    @property
    def pacer_fraction(self) -> float:
        if self.max <= 0:
            return 1.0
        return max(0.0, min(self.pacer / self.max, 1.0))


class ProgressVisualizer(Protocol):
    """Anything that can draw a paced bar into a named container."""

    def render(self, container_key: str, bar: PacedBar) -> None:
        ...


def pace_colors(bar: PacedBar) -> Dict[str, str]:
    """Return the value and pacer colours for a bar."""
    if bar.on_pace:
        return {'value': COLORS['on_pace_value'], 'pacer': COLORS['on_pace_pacer']}
    return {'value': COLORS['over_pace_value'], 'pacer': COLORS['over_pace_pacer']}


def bar_geometry(bar: PacedBar, width: float, height: float = DEFAULT_BAR_HEIGHT) -> Dict[str, float]:
    """
    Compute pixel geometry for a bar drawn in a width x height box.

    The value rectangle is inset by VALUE_X_OFFSET on both sides and never
    grows past the available width; the pacer line spans the full height.
    """
    available_width = width - (VALUE_X_OFFSET * 2)
    value_y_offset = 4
    return {
        'value_x': VALUE_X_OFFSET,
        'value_y': value_y_offset,
        'value_width': available_width * bar.value_fraction,
        'value_height': height - (value_y_offset * 2),
        'pacer_x': width * bar.pacer_fraction,
    }


def format_bar_text(container_key: str, bar: PacedBar, width: int = 30) -> str:
    """Render a bar as a single line of text with a pacer marker."""
    filled = int(round(width * bar.value_fraction))
    cells = ['#'] * filled + ['.'] * (width - filled)
    pacer_cell = min(int(round(width * bar.pacer_fraction)), width - 1)
    if bar.pacer_fraction < 1.0:
        cells[pacer_cell] = '|'
    label = 'on pace' if bar.on_pace else 'over pace'
    return f"{container_key:<12} [{''.join(cells)}] {bar.value:g}/{bar.max:g} ({label})"


class ConsoleProgressVisualizer:
    """Writes one text bar per resource type to a stream."""

    def __init__(self, stream: Optional[TextIO] = None, width: int = 30):
        self.stream = stream or sys.stdout
        self.width = width

    def render(self, container_key: str, bar: PacedBar) -> None:
        print(format_bar_text(container_key, bar, self.width), file=self.stream)


def create_paced_bar_chart(bar: PacedBar, height: int = 40) -> alt.Chart:
    """
    Create an Altair chart for a paced progress bar.

    Args:
        bar: Values to draw
        height: Chart height in pixels

    Returns:
        Layered Altair chart (value bar plus pacer rule)
    """
    colors = pace_colors(bar)
    domain_max = bar.max if bar.max > 0 else 1
    value_df = pd.DataFrame([{'value': min(max(bar.value, 0), domain_max)}])
    pacer_df = pd.DataFrame([{'pacer': min(max(bar.pacer, 0), domain_max)}])
    scale = alt.Scale(domain=[0, domain_max])

    value_bar = alt.Chart(value_df).mark_bar(color=colors['value']).encode(
        x=alt.X('value:Q', scale=scale, axis=None)
    )
    pacer_rule = alt.Chart(pacer_df).mark_rule(color=colors['pacer'], strokeWidth=4).encode(
        x=alt.X('pacer:Q', scale=scale)
    )

    return alt.layer(value_bar, pacer_rule).properties(
        height=height
    ).configure_view(
        stroke=COLORS['border'],
        strokeWidth=2
    )


class StreamlitProgressVisualizer:
    """Draws each resource bar into its own Streamlit placeholder."""

    def __init__(self, container=None):
        self.container = container or st.container()
        self._placeholders: Dict[str, object] = {}

    def render(self, container_key: str, bar: PacedBar) -> None:
        if container_key not in self._placeholders:
            with self.container:
                st.caption(container_key.title())
                self._placeholders[container_key] = st.empty()
        placeholder = self._placeholders[container_key]
        placeholder.altair_chart(create_paced_bar_chart(bar), width="stretch")
