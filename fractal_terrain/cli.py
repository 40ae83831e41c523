"""Command line entry point: generate a fractal terrain and export it as an RD scene."""

import argparse
import math
from pathlib import Path
from typing import Callable, List, Optional

import structlog
from pydantic import ValidationError

from .config import settings
from .core.classifier import BAND_NAMES, HeightClassifier
from .core.displacement import (
    MAX_DIMENSION,
    MIN_DIMENSION,
    DisplacementGrid,
    GenerationParameters,
)
from .core.mesh import build_mesh
from .export.rd_writer import SceneExportError, SceneOptions, export_scene, scene_filename
from .log_config import configure_logging

logger = structlog.get_logger()


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="fractal-terrain",
        description="Generate fractal terrain by midpoint displacement and export an RD scene",
    )
    parser.add_argument("-n", "--exponent", type=int, help="Grid exponent, grid size is 2^n + 1")
    parser.add_argument("-D", "--dimension", type=float, help="Fractal dimension (2.0-3.0)")
    parser.add_argument("--seed", type=int, help="Random seed")
    parser.add_argument("--sigma", type=float, help="Initial standard deviation")
    parser.add_argument("-o", "--output", help="Output file (default: derived from parameters)")
    parser.add_argument("--output-dir", default=None, help="Directory for the derived file name")
    parser.add_argument("--save-heights", help="Also save the raw height grid as .npy")
    parser.add_argument(
        "-i", "--interactive", action="store_true", help="Prompt for parameters not given"
    )
    parser.add_argument("--log-level", default=None, help="Logging level")
    parser.add_argument("--log-format", default=None, choices=["plain", "json"])
    return parser


def _ask(prompt: str, convert: Callable, input_fn: Callable, default=None,
         accept: Optional[Callable] = None, retry: str = ""):
    """Prompt until the answer converts and passes ``accept``."""
    answer = input_fn(prompt)
    while True:
        if answer.strip() == "" and default is not None:
            return default
        try:
            value = convert(answer)
        except ValueError:
            answer = input_fn("Please enter a number: ")
            continue
        if accept is None or accept(value):
            return value
        answer = input_fn(retry)


def prompt_parameters(
    args: argparse.Namespace,
    input_fn: Callable = input,
) -> argparse.Namespace:
    """
    Fill in parameters missing from ``args`` interactively.

    An empty answer keeps the configured default. A fractal dimension
    outside [2.0, 3.0] is asked for again rather than clamped.
    """
    if args.exponent is None:
        args.exponent = _ask(
            "Enter n (grid size will be 2^n + 1): ", int, input_fn,
            default=settings.default_exponent,
            accept=lambda v: 1 <= v <= settings.max_exponent,
            retry=f"n must be between 1 and {settings.max_exponent}. Try again: ",
        )
    if args.dimension is None:
        args.dimension = _ask(
            f"Enter D (fractal dimension {MIN_DIMENSION}-{MAX_DIMENSION}): ", float, input_fn,
            default=settings.default_dimension,
            accept=lambda v: MIN_DIMENSION <= v <= MAX_DIMENSION,
            retry=f"D must be between {MIN_DIMENSION} and {MAX_DIMENSION}. Try again: ",
        )
    if args.seed is None:
        args.seed = _ask(
            "Enter seed value: ", int, input_fn, default=settings.default_seed
        )
    if args.sigma is None:
        args.sigma = _ask(
            "Enter sigma (initial standard deviation): ", float, input_fn,
            default=settings.default_sigma,
            accept=lambda v: math.isfinite(v) and v >= 0,
            retry="sigma must be a non-negative number. Try again: ",
        )
    return args


def _apply_defaults(args: argparse.Namespace) -> argparse.Namespace:
    if args.exponent is None:
        args.exponent = settings.default_exponent
    if args.dimension is None:
        args.dimension = settings.default_dimension
    if args.seed is None:
        args.seed = settings.default_seed
    if args.sigma is None:
        args.sigma = settings.default_sigma
    return args


def run(params: GenerationParameters, output: Path,
        save_heights: Optional[Path] = None) -> Path:
    """Generate, color and export one terrain."""
    terrain = DisplacementGrid(params).generate()
    height_range = terrain.height_range()
    classifier = HeightClassifier()

    coverage = classifier.band_coverage(terrain.heights, height_range)
    logger.info(
        "Terrain composition",
        **{BAND_NAMES[band].lower().replace(" ", "_"): round(share, 4)
           for band, share in coverage.items()},
    )

    if save_heights is not None:
        terrain.save(save_heights)

    mesh = build_mesh(terrain, height_range=height_range, classifier=classifier)
    scene = SceneOptions(image_width=settings.image_width, image_height=settings.image_height)
    return export_scene(mesh, params, output, scene=scene)


def main(argv: Optional[List[str]] = None, input_fn: Callable = input) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)

    configure_logging(args.log_level or settings.log_level,
                      args.log_format or settings.log_format)

    if args.interactive:
        args = prompt_parameters(args, input_fn=input_fn)
    else:
        args = _apply_defaults(args)

    if args.exponent > settings.max_exponent:
        parser.error(f"n must not exceed {settings.max_exponent}")

    try:
        params = GenerationParameters(
            n=args.exponent, dimension=args.dimension, seed=args.seed, sigma=args.sigma
        )
    except ValidationError as e:
        errors = "; ".join(f"{err['loc'][0]}: {err['msg']}" for err in e.errors())
        parser.error(f"invalid parameters: {errors}")

    if args.output:
        output = Path(args.output)
    else:
        output_dir = Path(args.output_dir or settings.output_dir)
        try:
            output_dir.mkdir(parents=True, exist_ok=True)
        except OSError as e:
            logger.error("Cannot create output directory", path=str(output_dir), error=str(e))
            return 1
        output = output_dir / scene_filename(params)

    try:
        path = run(params, output, Path(args.save_heights) if args.save_heights else None)
    except SceneExportError as e:
        logger.error("Terrain export failed", error=str(e))
        return 1

    print(f"Terrain successfully exported to {path}")
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
