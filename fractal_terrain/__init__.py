"""
Fractal terrain generation by midpoint displacement with RD scene export.
"""

from .core import (
    DisplacementGrid,
    GaussianSampler,
    GenerationParameters,
    HeightClassifier,
    HeightRange,
    TerrainBand,
    TerrainGrid,
    TerrainMesh,
    build_mesh,
    generate_terrain,
)
from .export import SceneExportError, export_scene, render_scene, scene_filename

__version__ = "0.1.0"

__all__ = ['DisplacementGrid', 'GaussianSampler', 'GenerationParameters',
           'HeightClassifier', 'HeightRange', 'TerrainBand', 'TerrainGrid',
           'TerrainMesh', 'build_mesh', 'generate_terrain',
           'SceneExportError', 'export_scene', 'render_scene', 'scene_filename']
