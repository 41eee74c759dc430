"""Presentation helpers for a VolumeTable: heat-map colors and text output."""

from __future__ import annotations

from decimal import Decimal

import pandas as pd

from volumeseasonality.models.table import VolumeTable

NO_DATA_COLOR = "#000000"

# (threshold, color), checked top down; the last entry is the floor.
DAY_COLORS: tuple[tuple[float, str], ...] = (
    (15, "#F9D662"),
    (12, "#E8C652"),
    (10, "#C4A968"),
    (8, "#9B8B7A"),
    (6, "#7B8EBF"),
    (4, "#5B6FA5"),
    (float("-inf"), "#3B508B"),
)

AVERAGE_COLORS: tuple[tuple[float, str], ...] = (
    (12, "#FDB750"),
    (9, "#C89F5F"),
    (7, "#9B8B7A"),
    (5, "#6B7DB5"),
    (float("-inf"), "#4A5F8F"),
)


def color_for_value(value: Decimal | None, is_average: bool = False) -> str:
    """Background color for a cell; averages use a softer scale."""
    if value is None:
        return NO_DATA_COLOR
    scale = AVERAGE_COLORS if is_average else DAY_COLORS
    for threshold, color in scale:
        if value >= threshold:
            return color
    return scale[-1][1]


def text_color_for_value(value: Decimal | None) -> str:
    if value is not None and value > 10:
        return "#000000"
    return "#FFFFFF"


def to_frame(table: VolumeTable) -> pd.DataFrame:
    """One row per table row, one string column per interval."""
    records = table.to_records()
    return pd.DataFrame(
        [[r["percentages"][k] for k in table.intervals] for r in records],
        index=pd.Index([r["label"] for r in records], name="Date"),
        columns=list(table.intervals),
        dtype=object,
    )


def format_table(table: VolumeTable) -> str:
    """Plain-text table; "no data" cells are blank."""
    return to_frame(table).fillna("").to_string()
