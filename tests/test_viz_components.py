"""
Tests for paced progress bar components.
"""

import io

import altair as alt
from unittest.mock import MagicMock, patch

from viz_components import (
    COLORS,
    ConsoleProgressVisualizer,
    StreamlitProgressVisualizer,
    PacedBar,
    bar_geometry,
    create_paced_bar_chart,
    format_bar_text,
    pace_colors,
)


class TestPaceColors:
    """Test the on pace / over pace colour rule."""

    def test_value_at_pacer_is_on_pace(self):
        colors = pace_colors(PacedBar(value=5, pacer=5, max=10))
        assert colors == {'value': COLORS['on_pace_value'], 'pacer': COLORS['on_pace_pacer']}

    def test_value_past_pacer_is_over_pace(self):
        colors = pace_colors(PacedBar(value=6, pacer=5, max=10))
        assert colors == {'value': COLORS['over_pace_value'], 'pacer': COLORS['over_pace_pacer']}


class TestGeometry:
    """Test bar geometry."""

    def test_value_width_is_clamped(self):
        geometry = bar_geometry(PacedBar(value=20, pacer=10, max=10), width=104)
        assert geometry['value_width'] == 100
        assert geometry['pacer_x'] == 104

    def test_half_full(self):
        geometry = bar_geometry(PacedBar(value=5, pacer=10, max=10), width=104, height=96)
        assert geometry['value_width'] == 50
        assert geometry['value_height'] == 88

    def test_zero_max_draws_full_bar(self):
        bar = PacedBar(value=0, pacer=0, max=0)
        assert bar.value_fraction == 1.0
        assert bar.pacer_fraction == 1.0


class TestTextRendering:
    """Test console rendering."""

    def test_format_bar_text(self):
        line = format_bar_text("account", PacedBar(value=2, pacer=4, max=4), width=10)
        assert line.startswith("account")
        assert "[#####.....]" in line
        assert "2/4 (on pace)" in line

    def test_pacer_marker_inside_bar(self):
        line = format_bar_text("budget", PacedBar(value=1, pacer=2, max=4), width=8)
        assert "[##..|...]" in line

    def test_console_visualizer_writes_a_line_per_render(self):
        stream = io.StringIO()
        visualizer = ConsoleProgressVisualizer(stream=stream, width=10)

        visualizer.render("account", PacedBar(value=1, pacer=1, max=1))
        visualizer.render("budget", PacedBar(value=0, pacer=1, max=1))

        lines = stream.getvalue().splitlines()
        assert len(lines) == 2
        assert lines[0].startswith("account")
        assert lines[1].startswith("budget")


def test_create_paced_bar_chart():
    chart = create_paced_bar_chart(PacedBar(value=3, pacer=5, max=5))
    assert isinstance(chart, alt.LayerChart)
    chart_dict = chart.to_dict()
    assert len(chart_dict['layer']) == 2


def test_streamlit_visualizer_reuses_placeholder_per_key():
    with patch("viz_components.st") as mock_st:
        placeholder = MagicMock()
        mock_st.empty.return_value = placeholder
        visualizer = StreamlitProgressVisualizer(container=MagicMock())

        visualizer.render("account", PacedBar(value=1, pacer=2, max=2))
        visualizer.render("account", PacedBar(value=2, pacer=2, max=2))

    mock_st.empty.assert_called_once()
    assert placeholder.altair_chart.call_count == 2
    assert placeholder.altair_chart.call_args.kwargs == {'width': 'stretch'}
