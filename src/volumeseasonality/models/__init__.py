"""Volume seasonality models."""

from volumeseasonality.models.bar import Bar
from volumeseasonality.models.table import AverageRow, DayDistribution, VolumeTable

__all__ = [
    "Bar",
    "DayDistribution",
    "AverageRow",
    "VolumeTable",
]
