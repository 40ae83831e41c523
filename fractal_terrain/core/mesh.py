"""
Triangle mesh construction from a generated terrain grid.

The mesh is built as plain NumPy arrays so that the geometry can be
inspected and tested independently of any file encoding.
"""

from dataclasses import dataclass
from typing import Optional

import numpy as np
import structlog

from .classifier import HeightClassifier, HeightRange
from .displacement import TerrainGrid

logger = structlog.get_logger()

# World-space size of the terrain footprint along x and y
DEFAULT_EXTENT = 100.0


@dataclass
class TerrainMesh:
    """Vertex positions, per-vertex colors and triangle indices."""

    positions: np.ndarray  # (V, 3) x, y, z
    colors: np.ndarray  # (V, 3) r, g, b in [0, 1]
    triangles: np.ndarray  # (T, 3) vertex indices
    height_range: HeightRange

    @property
    def vertex_count(self) -> int:
        return len(self.positions)

    @property
    def triangle_count(self) -> int:
        return len(self.triangles)


def grid_triangles(size: int) -> np.ndarray:
    """
    Two triangles per grid cell over a row-major vertex layout.

    For the cell with lower-left vertex v0 the triangles are
    (v0, v1, v2) and (v1, v3, v2), where v1 is right of v0, v2 is above
    v0 and v3 is above v1.
    """
    rows, cols = np.meshgrid(np.arange(size - 1), np.arange(size - 1), indexing="ij")
    v0 = (rows * size + cols).ravel()
    v1 = v0 + 1
    v2 = v0 + size
    v3 = v2 + 1

    triangles = np.empty((2 * len(v0), 3), dtype=np.int64)
    triangles[0::2] = np.column_stack([v0, v1, v2])
    triangles[1::2] = np.column_stack([v1, v3, v2])
    return triangles


def build_mesh(
    terrain: TerrainGrid,
    height_range: Optional[HeightRange] = None,
    classifier: Optional[HeightClassifier] = None,
    extent: float = DEFAULT_EXTENT,
) -> TerrainMesh:
    """
    Flatten a terrain grid into a colored triangle mesh.

    Args:
        terrain: Fully generated terrain grid
        height_range: Precomputed height range; scanned from the grid if omitted
        classifier: Height classifier; the default palette if omitted
        extent: World coordinate of the far corner along x and y

    Returns:
        TerrainMesh with size^2 vertices and 2 * (size - 1)^2 triangles
    """
    if not terrain.is_complete():
        raise ValueError("Terrain must be fully generated before building a mesh")

    size = terrain.size
    if height_range is None:
        height_range = terrain.height_range()
    if classifier is None:
        classifier = HeightClassifier()

    scale = extent / (size - 1)
    rows, cols = np.meshgrid(np.arange(size), np.arange(size), indexing="ij")
    positions = np.column_stack(
        [cols.ravel() * scale, rows.ravel() * scale, terrain.heights.ravel()]
    )
    colors = classifier.colorize(terrain.heights, height_range).reshape(-1, 3)
    triangles = grid_triangles(size)

    logger.debug(
        "Built terrain mesh",
        vertices=len(positions),
        triangles=len(triangles),
        extent=extent,
    )
    return TerrainMesh(
        positions=positions,
        colors=colors,
        triangles=triangles,
        height_range=height_range,
    )
