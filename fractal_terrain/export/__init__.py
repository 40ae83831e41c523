"""
Scene file export.
"""

from .rd_writer import SceneExportError, SceneOptions, export_scene, render_scene, scene_filename

__all__ = ['SceneExportError', 'SceneOptions', 'export_scene', 'render_scene', 'scene_filename']
