"""
Fractal height field generation by recursive midpoint displacement.

This module implements the diamond-square algorithm over a square grid of
size 2^n + 1. Each stage halves the step size and shrinks the displacement
amplitude by 0.5^H per stage, where H = 3 - D is the Hurst exponent derived
from the fractal dimension D. Every sub-pass is vectorized with NumPy; no
cell written by a sub-pass is read by the same sub-pass, so the result is
identical to the point-by-point formulation.
"""

from pathlib import Path
from typing import Optional, Union

import numpy as np
import structlog
from pydantic import BaseModel, ConfigDict, Field

from .classifier import HeightRange
from .gaussian import GaussianSampler

logger = structlog.get_logger()

MIN_DIMENSION = 2.0
MAX_DIMENSION = 3.0


class GenerationParameters(BaseModel):
    """Inputs for one terrain generation run."""

    model_config = ConfigDict(frozen=True)

    n: int = Field(..., ge=1, description="Grid exponent, grid size is 2^n + 1")
    dimension: float = Field(
        ...,
        ge=MIN_DIMENSION,
        le=MAX_DIMENSION,
        allow_inf_nan=False,
        description="Fractal dimension D (roughness)",
    )
    seed: int = Field(0, description="Random seed")
    sigma: float = Field(
        1.0, ge=0.0, allow_inf_nan=False, description="Initial displacement standard deviation"
    )

    @property
    def size(self) -> int:
        """Number of grid points along each axis."""
        return (1 << self.n) + 1

    @property
    def hurst(self) -> float:
        """Hurst exponent H = 3 - D."""
        return 3.0 - self.dimension

    @property
    def decay_factor(self) -> float:
        """Amplitude factor applied twice per stage."""
        return 0.5 ** (0.5 * self.hurst)


class TerrainGrid:
    """
    A generated height field and the parameters that produced it.

    Heights are indexed ``[row, col]``. The array is read-only; callers
    that need to modify heights must copy it.
    """

    def __init__(self, heights: np.ndarray, params: Optional[GenerationParameters] = None):
        heights = np.array(heights, dtype=np.float64)
        if heights.ndim != 2 or heights.shape[0] != heights.shape[1]:
            raise ValueError(f"Terrain heights must be a square 2D array, got {heights.shape}")

        self.heights = heights
        self.heights.flags.writeable = False
        self.params = params

    @property
    def size(self) -> int:
        return self.heights.shape[0]

    def is_complete(self) -> bool:
        """True when no cell still holds the unset sentinel."""
        return not np.isnan(self.heights).any()

    def height_range(self) -> HeightRange:
        """Global minimum and maximum height."""
        return HeightRange.from_heights(self.heights)

    def normalized(self) -> np.ndarray:
        """Heights rescaled to [0, 1]; a flat grid maps to 0.5 everywhere."""
        return self.height_range().normalize(self.heights)

    def roughness(self) -> float:
        """Variance of adjacent-cell height differences along both axes."""
        diffs = np.concatenate(
            [np.diff(self.heights, axis=0).ravel(), np.diff(self.heights, axis=1).ravel()]
        )
        return float(np.var(diffs))

    def save(self, filename: Union[str, Path]) -> None:
        """Save the heights to a NumPy ``.npy`` file."""
        np.save(filename, self.heights)
        logger.info("Saved terrain heights", filename=str(filename), size=self.size)

    @classmethod
    def load(cls, filename: Union[str, Path]) -> "TerrainGrid":
        """Load heights previously written by ``save``."""
        return cls(np.load(filename))


class DisplacementGrid:
    """
    Runs the staged diamond-square refinement for one set of parameters.

    The grid starts filled with NaN so that any cell the refinement misses
    is detectable afterwards. ``generate()`` may be called repeatedly; each
    call reseeds the sampler and rebuilds the grid from scratch.
    """

    def __init__(self, params: GenerationParameters, sampler: Optional[GaussianSampler] = None):
        """
        Initialize the generator.

        Args:
            params: Generation parameters
            sampler: Optional sampler to draw from; reseeded with params.seed
        """
        self.params = params
        self.size = params.size
        self.sampler = sampler if sampler is not None else GaussianSampler(params.seed)
        self.grid = None
        self.delta = params.sigma
        self._terrain = None

    @property
    def terrain(self) -> TerrainGrid:
        if self._terrain is None:
            raise ValueError("Terrain must be generated before it can be accessed")
        return self._terrain

    def generate(self) -> TerrainGrid:
        """Run initialization and every refinement stage, returning the frozen grid."""
        p = self.params
        logger.info(
            "Generating fractal terrain",
            n=p.n,
            dimension=p.dimension,
            seed=p.seed,
            sigma=p.sigma,
            size=self.size,
        )

        self.sampler.seed(p.seed)
        self.grid = np.full((self.size, self.size), np.nan, dtype=np.float64)
        self._init_corners()

        N = self.size - 1
        step = N
        half = N // 2
        for stage in range(1, p.n + 1):
            self._run_stage(step, half)
            logger.debug("Completed stage", stage=stage, step=step, delta=self.delta)
            step //= 2
            half //= 2

        self._terrain = TerrainGrid(self.grid, p)
        self.grid = None

        logger.info(
            "Terrain generation complete",
            size=self.size,
            deviates=self.sampler.call_count,
            min_height=float(self._terrain.heights.min()),
            max_height=float(self._terrain.heights.max()),
        )
        return self._terrain

    def _init_corners(self) -> None:
        """Assign the four corners independently, in fixed order."""
        N = self.size - 1
        self.delta = self.params.sigma
        for row, col in ((0, 0), (0, N), (N, 0), (N, N)):
            self.grid[row, col] = self.delta * self.sampler.next()

    def _decay(self) -> None:
        self.delta *= self.params.decay_factor

    def _displace(self, rows: np.ndarray, cols: np.ndarray, base: np.ndarray) -> None:
        """Set ``grid[rows x cols]`` to ``base`` plus fresh displacements."""
        self.grid[np.ix_(rows, cols)] = base + self.delta * self.sampler.sample(base.shape)

    def _jitter(self, rows: np.ndarray, cols: np.ndarray) -> None:
        """Add a fresh displacement to already-set points."""
        idx = np.ix_(rows, cols)
        self.grid[idx] += self.delta * self.sampler.sample((len(rows), len(cols)))

    def _run_stage(self, step: int, half: int) -> None:
        """
        Run one refinement stage.

        Order within a stage is fixed: diamond centers, lattice jitter,
        edge midpoints on the boundary, interior edge midpoints (offset rows
        first, then offset columns), then lattice and center jitter.
        """
        N = self.size - 1
        lattice = np.arange(0, N + 1, step)
        offset = np.arange(half, N, step)
        inner = np.arange(step, N, step)

        self._decay()
        self._diamond_step(offset, half)
        self._jitter(lattice, lattice)

        self._decay()
        self._square_step_boundary(offset, half)
        self._square_step_interior(offset, inner, half)

        self._jitter(lattice, lattice)
        self._jitter(offset, offset)

    def _diamond_step(self, offset: np.ndarray, half: int) -> None:
        """Cell centers take the mean of their four diagonal corners."""
        g = self.grid
        r = offset[:, None]
        c = offset[None, :]
        mean = (
            g[r + half, c + half]
            + g[r + half, c - half]
            + g[r - half, c + half]
            + g[r - half, c - half]
        ) / 4.0
        self._displace(offset, offset, mean)

    def _square_step_boundary(self, offset: np.ndarray, half: int) -> None:
        """
        Edge midpoints on the grid border take the mean of their three
        on-grid neighbours. Per midpoint the draws go bottom, top, left,
        right.
        """
        g = self.grid
        N = self.size - 1
        noise = self.delta * self.sampler.sample((len(offset), 4))

        bottom = (g[offset + half, 0] + g[offset - half, 0] + g[offset, half]) / 3.0
        top = (g[offset + half, N] + g[offset - half, N] + g[offset, N - half]) / 3.0
        left = (g[0, offset + half] + g[0, offset - half] + g[half, offset]) / 3.0
        right = (g[N, offset + half] + g[N, offset - half] + g[N - half, offset]) / 3.0

        g[offset, 0] = bottom + noise[:, 0]
        g[offset, N] = top + noise[:, 1]
        g[0, offset] = left + noise[:, 2]
        g[N, offset] = right + noise[:, 3]

    def _square_step_interior(self, offset: np.ndarray, inner: np.ndarray, half: int) -> None:
        """Interior edge midpoints take the mean of their four axis neighbours."""
        g = self.grid
        for rows, cols in ((offset, inner), (inner, offset)):
            r = rows[:, None]
            c = cols[None, :]
            mean = (
                g[r, c + half]
                + g[r, c - half]
                + g[r + half, c]
                + g[r - half, c]
            ) / 4.0
            self._displace(rows, cols, mean)


def generate_terrain(
    n: int, dimension: float, seed: int = 0, sigma: float = 1.0
) -> TerrainGrid:
    """Generate a terrain grid from scalar parameters."""
    params = GenerationParameters(n=n, dimension=dimension, seed=seed, sigma=sigma)
    return DisplacementGrid(params).generate()
