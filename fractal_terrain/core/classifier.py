"""
Terrain coloring by normalized height.

This module implements:
- Global height range computed once per terrain and passed explicitly
- Six terrain bands from deep water to snow with fixed thresholds
- Linear RGB blending in a narrow zone around each threshold
"""

from dataclasses import dataclass
from enum import IntEnum
from typing import Dict, Optional, Sequence, Tuple, Union

import numpy as np
import structlog

logger = structlog.get_logger()

Color = Tuple[float, float, float]

# Normalized height used for every cell of a flat terrain
FLAT_NORMALIZED_HEIGHT = 0.5


class TerrainBand(IntEnum):
    """Terrain bands ordered from lowest to highest."""

    DEEP_WATER = 0
    SHALLOW_WATER = 1
    SAND = 2
    GRASS = 3
    MOUNTAIN = 4
    SNOW = 5


BAND_NAMES = {
    TerrainBand.DEEP_WATER: "Deep Water",
    TerrainBand.SHALLOW_WATER: "Shallow Water",
    TerrainBand.SAND: "Sand",
    TerrainBand.GRASS: "Grass",
    TerrainBand.MOUNTAIN: "Mountain",
    TerrainBand.SNOW: "Snow",
}

BAND_COLORS: Dict[TerrainBand, Color] = {
    TerrainBand.DEEP_WATER: (0.0, 0.0, 0.5),
    TerrainBand.SHALLOW_WATER: (0.0, 0.0, 0.8),
    TerrainBand.SAND: (0.76, 0.7, 0.5),
    TerrainBand.GRASS: (0.0, 0.6, 0.0),
    TerrainBand.MOUNTAIN: (0.5, 0.35, 0.05),
    TerrainBand.SNOW: (1.0, 1.0, 1.0),
}

# Upper edge of each band except snow, as a fraction of the height range
BAND_THRESHOLDS = (0.20, 0.30, 0.40, 0.60, 0.80)

# Half-width of the blend zone around each threshold
BLEND_WIDTH = 0.03


@dataclass(frozen=True)
class HeightRange:
    """Global minimum and maximum height of a terrain."""

    minimum: float
    maximum: float

    @classmethod
    def from_heights(cls, heights: np.ndarray) -> "HeightRange":
        """Scan a height array once for its extremes."""
        heights = np.asarray(heights)
        if heights.size == 0:
            raise ValueError("Cannot compute the height range of an empty grid")
        return cls(float(np.min(heights)), float(np.max(heights)))

    @property
    def span(self) -> float:
        return self.maximum - self.minimum

    @property
    def is_flat(self) -> bool:
        return self.span == 0.0

    def normalize(self, height: Union[float, np.ndarray]) -> Union[float, np.ndarray]:
        """
        Map heights into [0, 1].

        A flat range has no scale, so every height maps to
        FLAT_NORMALIZED_HEIGHT instead of dividing by zero.
        """
        if self.is_flat:
            if np.ndim(height) == 0:
                return FLAT_NORMALIZED_HEIGHT
            return np.full(np.shape(height), FLAT_NORMALIZED_HEIGHT)
        if np.ndim(height) == 0:
            return (float(height) - self.minimum) / self.span
        return (np.asarray(height, dtype=np.float64) - self.minimum) / self.span


class HeightClassifier:
    """
    Maps heights to band colors with smooth transitions between bands.

    The band ladder is stored as a piecewise-linear table: every threshold
    contributes a knot at ``t - w`` carrying the lower band's color and one
    at ``t + w`` carrying the upper band's color. Between the knots of one
    threshold the color blends linearly; between knots of neighbouring
    thresholds it stays at the pure band color.
    """

    def __init__(
        self,
        colors: Optional[Dict[TerrainBand, Color]] = None,
        thresholds: Sequence[float] = BAND_THRESHOLDS,
        blend_width: float = BLEND_WIDTH,
    ):
        self.colors = dict(colors) if colors is not None else dict(BAND_COLORS)
        self.thresholds = tuple(thresholds)
        self.blend_width = blend_width

        if len(self.thresholds) != len(TerrainBand) - 1:
            raise ValueError(
                f"Expected {len(TerrainBand) - 1} thresholds, got {len(self.thresholds)}"
            )

        knots = []
        knot_colors = []
        for band, threshold in zip(TerrainBand, self.thresholds):
            knots.extend([threshold - blend_width, threshold + blend_width])
            knot_colors.extend([self.colors[band], self.colors[TerrainBand(band + 1)]])

        self._knots = np.array(knots)
        if np.any(np.diff(self._knots) <= 0):
            raise ValueError("Blend zones must not overlap")
        self._knot_colors = np.array(knot_colors, dtype=np.float64)

    def _interpolate(self, normalized: np.ndarray) -> np.ndarray:
        channels = [
            np.interp(normalized, self._knots, self._knot_colors[:, i]) for i in range(3)
        ]
        return np.stack(channels, axis=-1)

    def color_at(self, normalized: float) -> Color:
        """Color for a height already normalized into [0, 1]."""
        r, g, b = self._interpolate(np.asarray(float(normalized)))
        return (float(r), float(g), float(b))

    def color_for(self, height: float, height_range: HeightRange) -> Color:
        """Color for a raw height given the terrain's height range."""
        return self.color_at(height_range.normalize(height))

    def colorize(self, heights: np.ndarray, height_range: HeightRange) -> np.ndarray:
        """Colors for an array of raw heights, with a trailing RGB axis."""
        return self._interpolate(height_range.normalize(heights))

    def band_for(self, normalized: float) -> TerrainBand:
        """Band whose threshold interval contains a normalized height."""
        return TerrainBand(int(np.searchsorted(self.thresholds, normalized, side="right")))

    def classify(self, heights: np.ndarray, height_range: HeightRange) -> np.ndarray:
        """Band index for every height."""
        normalized = height_range.normalize(heights)
        return np.searchsorted(self.thresholds, normalized, side="right")

    def band_coverage(
        self, heights: np.ndarray, height_range: HeightRange
    ) -> Dict[TerrainBand, float]:
        """Fraction of cells falling in each band."""
        bands = np.asarray(self.classify(heights, height_range)).ravel()
        counts = np.bincount(bands, minlength=len(TerrainBand))
        total = max(bands.size, 1)
        return {band: float(counts[band]) / total for band in TerrainBand}
