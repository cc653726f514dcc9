import logging

import pytest

from cckit.common.cli import parse_args_with_config
from cckit.common.config import Config, load_config
from cckit.common.logging import CountingHandler
from cckit.connected_components.entrypoints.extract_connected_components import build_parser, main

from conftest import TEST_LEVEL, make_blob_cloud


CONFIG_YAML = """
paths:
  input_path: scans/
  output_dir: components/
logging:
  level: DEBUG
extraction:
  octree_level: 6
  min_component_size: 50
  random_colors: true
  seed: 3
"""


def _defaults(cfg):
    return dict(
        input=cfg.paths.input_path or None,
        output_dir=cfg.paths.output_dir,
        log_level=cfg.logging.level,
        octree_level=cfg.extraction.octree_level,
        min_component_size=cfg.extraction.min_component_size,
        random_colors=cfg.extraction.random_colors,
        seed=cfg.extraction.seed,
    )


def test_missing_config_gives_defaults(tmp_path):
    assert load_config(None) == Config()
    assert load_config(str(tmp_path / "missing.yaml")) == Config()


def test_config_sections_override_defaults(tmp_path):
    path = tmp_path / "cfg.yaml"
    path.write_text(CONFIG_YAML)

    cfg = load_config(str(path))

    assert cfg.paths.input_path == "scans/"
    assert cfg.paths.summary_filename == "extraction_summary.json"
    assert cfg.logging.level == "DEBUG"
    assert cfg.extraction.octree_level == 6
    assert cfg.extraction.max_number_components == 100
    assert cfg.extraction.random_colors is True


def test_explicit_flags_win_over_config(tmp_path):
    path = tmp_path / "cfg.yaml"
    path.write_text(CONFIG_YAML)

    args, _ = parse_args_with_config(
        build_parser, _defaults, ["--config", str(path), "--octree-level", "9"])

    assert args.input == "scans/"
    assert args.octree_level == 9
    assert args.min_component_size == 50
    assert args.random_colors is True
    assert args.seed == 3


def test_parser_defaults():
    args = build_parser().parse_args(["in.ply"])
    assert (args.octree_level, args.min_component_size, args.max_number_components) == (8, 100, 100)
    assert not args.random_colors and not args.six_connexity
    assert args.log_level is None


def test_counting_handler():
    handler = CountingHandler()
    logger = logging.getLogger("cckit.test.counting")
    logger.addHandler(handler)
    try:
        logger.warning("w")
        logger.error("e")
        logger.critical("c")
    finally:
        logger.removeHandler(handler)
    assert (handler.warnings, handler.errors, handler.has_errors) == (1, 2, True)
    handler.reset()
    assert not handler.has_errors


# ---------------------------------------------------------------------
# main()
# ---------------------------------------------------------------------

def test_main_without_input_fails():
    assert main([]) == 1


def test_main_missing_input_fails(tmp_path):
    assert main([str(tmp_path / "nope")]) == 1


def test_main_invalid_parameters_fail(tmp_path):
    assert main([str(tmp_path), "--octree-level", "300"]) == 1


def test_main_writes_components(tmp_path):
    pytest.importorskip("open3d")
    from cckit.connected_components.infrastructure.backend._io import write_point_cloud

    scans = tmp_path / "scans"
    scans.mkdir()
    write_point_cloud(str(scans / "scan.ply"), make_blob_cloud([150, 300], name="scan"))
    out = tmp_path / "out"

    code = main([str(scans), "--output-dir", str(out), "--octree-level", str(TEST_LEVEL), "--random-colors"])

    assert code == 0
    assert (out / "scan" / "CC_0.ply").is_file()
    assert (out / "extraction_summary.json").is_file()
