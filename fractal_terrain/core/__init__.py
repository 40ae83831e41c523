"""
Core terrain generation functionality.
"""

from .gaussian import GaussianSampler
from .classifier import HeightClassifier, HeightRange, TerrainBand, BAND_COLORS
from .displacement import DisplacementGrid, GenerationParameters, TerrainGrid, generate_terrain
from .mesh import TerrainMesh, build_mesh

__all__ = ['GaussianSampler', 'HeightClassifier', 'HeightRange', 'TerrainBand', 'BAND_COLORS',
           'DisplacementGrid', 'GenerationParameters', 'TerrainGrid', 'generate_terrain',
           'TerrainMesh', 'build_mesh']
