"""Entrypoints: connected-component extraction for callers and the CLI.

Usage:
    cckit-extract-components scans/ \
        --output-dir components/ \
        --octree-level 8 \
        --min-component-size 100 \
        --max-number-components 100 \
        --random-colors \
        --log-level INFO
"""
from __future__ import annotations

import argparse
import logging
from pathlib import Path
from typing import Iterable, List, Optional, Tuple

from cckit.common.cli import add_config_arg, add_log_level_arg, parse_args_with_config, setup_logging
from cckit.common.logging import CountingHandler
from cckit.connected_components.application.use_case import ExtractComponentsFromFilesUseCase
from cckit.connected_components.domain.entities import Entity, PointCloud
from cckit.connected_components.domain.model import (
    DEFAULT_MAX_NUMBER_COMPONENTS,
    DEFAULT_MIN_COMPONENT_SIZE,
    DEFAULT_OCTREE_LEVEL,
    ExtractionParameters,
    ExtractionResult,
)
from cckit.connected_components.domain.services import ExtractionOrchestrator
from cckit.connected_components.domain.strategies import (
    BackendComponentLabeler,
    BackendComponentMaterializer,
    StableComponentSizeRanker,
)
from cckit.connected_components.infrastructure.engine_adapter import (
    NumpyCloudFactory,
    OctreeIndexProvider,
    OctreeLabelingEngine,
    RandomColorGenerator,
)
from cckit.connected_components.infrastructure.filesystem import (
    FilesystemCloudSource,
    FilesystemComponentRepository,
)
from cckit.exceptions.exceptions import ExtractionPreconditionError


def build_orchestrator(*, seed: Optional[int] = None, six_connexity: bool = False) -> ExtractionOrchestrator:
    """Composition root for the extraction domain service.

    Args:
        seed: Seed for random component colors (None: non-deterministic).
        six_connexity: Label with 6-connexity instead of 26.
    """
    # Infrastructure: geometry engine (numpy/scipy)
    index_provider = OctreeIndexProvider()
    engine = OctreeLabelingEngine(six_connexity=six_connexity)
    factory = NumpyCloudFactory()
    colors = RandomColorGenerator.seeded(seed)

    # Domain: default strategy implementations (depend on ports only)
    labeler = BackendComponentLabeler(engine=engine)
    ranker = StableComponentSizeRanker()
    materializer = BackendComponentMaterializer(factory=factory, colors=colors)

    return ExtractionOrchestrator(
        index_provider=index_provider,
        labeler=labeler,
        ranker=ranker,
        materializer=materializer,
    )


def extract_connected_components(
    entities: Iterable[Entity],
    octree_level: int = DEFAULT_OCTREE_LEVEL,
    min_component_size: int = DEFAULT_MIN_COMPONENT_SIZE,
    max_number_components: int = DEFAULT_MAX_NUMBER_COMPONENTS,
    random_colors: bool = False,
    *,
    seed: Optional[int] = None,
    six_connexity: bool = False,
) -> Tuple[int, List[PointCloud]]:
    """Extract connected components from the point clouds among `entities`.

    Args:
        entities: Clouds and other entities; non point clouds are ignored.
        octree_level: Octree level used for labeling (0-255, usable up to 21).
        min_component_size: Components with fewer points are dropped.
        max_number_components: Stop the whole batch when one cloud yields more
            qualifying components than this.
        random_colors: Paint each component with one random color.
        seed: Seed for the random colors.
        six_connexity: Label with 6-connexity instead of 26.

    Returns:
        (number of clouds processed, list of component clouds). Components
        are named CC#0, CC#1, ... per source cloud, largest first.
    """
    parameters = ExtractionParameters(
        octree_level=octree_level,
        min_component_size=min_component_size,
        max_number_components=max_number_components,
        random_colors=random_colors,
    )
    orchestrator = build_orchestrator(seed=seed, six_connexity=six_connexity)
    return orchestrator.extract(entities, parameters).as_tuple()


def extract_connected_components_from_files(
    *,
    input_path: Path,
    output_folder: Optional[Path] = None,
    parameters: ExtractionParameters = ExtractionParameters(),
    seed: Optional[int] = None,
    six_connexity: bool = False,
    summary_filename: str = "extraction_summary.json",
) -> ExtractionResult:
    """Composition root for file-based extraction.

    Reads every cloud file at `input_path` and, when `output_folder` is
    given, writes the components and a JSON summary there.
    """
    use_case = ExtractComponentsFromFilesUseCase(
        cloud_source=FilesystemCloudSource(),
        orchestrator=build_orchestrator(seed=seed, six_connexity=six_connexity),
        component_repo=FilesystemComponentRepository(summary_filename=summary_filename),
    )
    return use_case.run(
        input_path=Path(input_path),
        parameters=parameters,
        output_folder=Path(output_folder) if output_folder else None,
    )


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        description="Extract connected components from point clouds using an octree"
    )
    add_config_arg(parser)
    add_log_level_arg(parser)
    parser.add_argument(
        "input", nargs="?", help="Point cloud file or folder of cloud files (PCD/PLY/XYZ)")
    parser.add_argument(
        "--output-dir",
        type=str,
        default=None,
        help="Folder receiving one PLY per component and a JSON summary",
    )
    parser.add_argument(
        "--octree-level",
        type=int,
        default=DEFAULT_OCTREE_LEVEL,
        help="Octree level used for labeling (coarser levels merge nearby points)",
    )
    parser.add_argument(
        "--min-component-size",
        type=int,
        default=DEFAULT_MIN_COMPONENT_SIZE,
        help="Minimum number of points per extracted component",
    )
    parser.add_argument(
        "--max-number-components",
        type=int,
        default=DEFAULT_MAX_NUMBER_COMPONENTS,
        help="Abort when a cloud yields more components than this",
    )
    parser.add_argument(
        "--random-colors",
        action="store_true",
        help="Paint each component with a random color",
    )
    parser.add_argument(
        "--six-connexity",
        action="store_true",
        help="Only cells sharing a face are connected",
    )
    parser.add_argument(
        "--seed", type=int, default=None, help="Seed for random colors")
    return parser


def main(argv: Optional[list] = None) -> int:
    def _defaults_from_cfg(cfg):
        return dict(
            input=cfg.paths.input_path or None,
            output_dir=cfg.paths.output_dir,
            log_level=cfg.logging.level,
            octree_level=cfg.extraction.octree_level,
            min_component_size=cfg.extraction.min_component_size,
            max_number_components=cfg.extraction.max_number_components,
            random_colors=cfg.extraction.random_colors,
            six_connexity=cfg.extraction.six_connexity,
            seed=cfg.extraction.seed,
        )

    args, cfg = parse_args_with_config(build_parser, _defaults_from_cfg, argv)
    setup_logging(args.log_level)

    if not args.input:
        logging.error("No input given (positional argument or paths.input_path in the config)")
        return 1

    counter = CountingHandler()
    logging.getLogger().addHandler(counter)
    try:
        parameters = ExtractionParameters(
            octree_level=args.octree_level,
            min_component_size=args.min_component_size,
            max_number_components=args.max_number_components,
            random_colors=args.random_colors,
        )
        extract_connected_components_from_files(
            input_path=Path(args.input),
            output_folder=Path(args.output_dir) if args.output_dir else None,
            parameters=parameters,
            seed=args.seed,
            six_connexity=args.six_connexity,
            summary_filename=cfg.paths.summary_filename,
        )
    except ExtractionPreconditionError as e:
        logging.error("%s: %s", e.code, str(e))
    except ValueError as e:
        logging.error("Invalid parameters: %s", e)
    finally:
        logging.getLogger().removeHandler(counter)

    logging.info("Finished with %d warning(s) and %d error(s)", counter.warnings, counter.errors)
    return 1 if counter.has_errors else 0


if __name__ == "__main__":
    raise SystemExit(main())
