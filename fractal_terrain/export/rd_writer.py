"""
RD scene export for terrain meshes.

Writes a complete RD scene: parameter comments, display and camera setup,
lighting, a matte surface and one ``PolySet "PC"`` holding the terrain.
The whole file is built in memory and moved into place in one step, so a
failed export never leaves a partial file behind.
"""

import os
import tempfile
from dataclasses import dataclass
from pathlib import Path
from typing import List, Optional, Union

import structlog

from ..core.displacement import GenerationParameters
from ..core.mesh import TerrainMesh

logger = structlog.get_logger()

# Terminator the renderer expects after every face's vertex indices
FACE_TERMINATOR = -1


class SceneExportError(RuntimeError):
    """Raised when a scene file cannot be written."""


@dataclass
class SceneOptions:
    """Display, camera and lighting preamble of the scene."""

    title: str = "Fractal Terrain"
    image_width: int = 800
    image_height: int = 600
    camera_eye: tuple = (150, 150, 50)
    camera_at: tuple = (50, 50, -18)
    camera_up: tuple = (0, 0, 1)
    camera_fov: float = 38
    ambient_light: tuple = (0.6, 0.6, 0.6, 1.0)
    far_lights: tuple = (
        ((0, 0, 1), (1.0, 1.0, 1.0), 1.0),
        ((1, 1, -1), (0.7, 0.7, 0.7), 0.5),
    )
    surface: str = "matte"
    ka: float = 0.8
    kd: float = 0.7


def _fmt(value) -> str:
    return f"{value:g}"


def _fixed(value) -> str:
    # Intensities keep one decimal place, e.g. "1.0"
    return f"{value:.1f}"


def _join(values) -> str:
    return " ".join(_fmt(v) for v in values)


def scene_filename(params: GenerationParameters) -> str:
    """
    Build a traceable file name such as ``t7d2_5s123.rd``.

    Encodes n, D to one decimal with the point replaced by an underscore,
    and the seed modulo 1000.
    """
    dimension = f"{params.dimension:.1f}".replace(".", "_")
    return f"t{params.n}d{dimension}s{params.seed % 1000}.rd"


def _preamble(params: GenerationParameters, mesh: TerrainMesh, scene: SceneOptions) -> List[str]:
    lines = [
        "# Fractal Terrain PolySet",
        f"# Generated with parameters: n={params.n} D={_fmt(params.dimension)} "
        f"seed={params.seed} sigma={_fmt(params.sigma)}",
        f"# Height range: min={_fmt(mesh.height_range.minimum)} "
        f"max={_fmt(mesh.height_range.maximum)}",
        "",
        f'Display "{scene.title}" "Screen" "rgbdouble"',
        f"Format {scene.image_width} {scene.image_height}",
        "",
        "# Camera Settings",
        f"CameraEye {_join(scene.camera_eye)}",
        f"CameraAt {_join(scene.camera_at)}",
        f"CameraUp {_join(scene.camera_up)}",
        f"CameraFOV {_fmt(scene.camera_fov)}",
        "",
        "WorldBegin",
        "# Lighting Settings",
        "AmbientLight " + " ".join(_fixed(v) for v in scene.ambient_light),
    ]
    for direction, color, intensity in scene.far_lights:
        lines.append(
            f"FarLight {_join(direction)} "
            + " ".join(_fixed(v) for v in color)
            + f" {_fixed(intensity)}"
        )
    lines.extend(
        [
            "",
            "# Surface settings",
            f'Surface "{scene.surface}"',
            f"Ka {_fmt(scene.ka)}",
            f"Kd {_fmt(scene.kd)}",
            "",
        ]
    )
    return lines


def render_scene(
    mesh: TerrainMesh,
    params: GenerationParameters,
    scene: Optional[SceneOptions] = None,
) -> str:
    """Encode a terrain mesh as RD scene text."""
    if scene is None:
        scene = SceneOptions()

    lines = _preamble(params, mesh, scene)
    lines.append('PolySet "PC"')
    lines.append(f"{mesh.vertex_count} {mesh.triangle_count}")

    for position, color in zip(mesh.positions.tolist(), mesh.colors.tolist()):
        lines.append(f"{_join(position)} {_join(color)}")

    for i0, i1, i2 in mesh.triangles.tolist():
        lines.append(f"{i0} {i1} {i2} {FACE_TERMINATOR}")

    lines.append("WorldEnd")
    return "\n".join(lines) + "\n"


def export_scene(
    mesh: TerrainMesh,
    params: GenerationParameters,
    path: Union[str, Path],
    scene: Optional[SceneOptions] = None,
) -> Path:
    """
    Write the scene for ``mesh`` to ``path`` atomically.

    Args:
        mesh: Terrain mesh to export
        params: Parameters recorded in the header comments
        path: Destination file; its directory must already exist
        scene: Display, camera and lighting preamble

    Returns:
        The destination path

    Raises:
        SceneExportError: If the file cannot be written. Nothing is left at
            ``path`` unless it already existed, in which case it is unchanged.
    """
    path = Path(path)
    text = render_scene(mesh, params, scene)

    tmp_name = None
    try:
        with tempfile.NamedTemporaryFile(
            "w",
            encoding="utf-8",
            dir=path.parent,
            prefix=f".{path.name}.",
            suffix=".tmp",
            delete=False,
        ) as tmp:
            tmp_name = tmp.name
            tmp.write(text)
        os.chmod(tmp_name, 0o644)
        os.replace(tmp_name, path)
    except OSError as e:
        if tmp_name is not None and os.path.exists(tmp_name):
            os.unlink(tmp_name)
        logger.error("Scene export failed", path=str(path), error=str(e))
        raise SceneExportError(f"Could not write scene file {path}: {e}") from e

    logger.info(
        "Terrain exported",
        path=str(path),
        vertices=mesh.vertex_count,
        triangles=mesh.triangle_count,
    )
    return path
