import argparse
import logging
from typing import Callable, Optional, Tuple

from cckit.common.config import Config, load_config

LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"


def add_config_arg(parser: argparse.ArgumentParser) -> None:
    parser.add_argument("--config", help="YAML config; its values become flag defaults")


def add_log_level_arg(parser: argparse.ArgumentParser) -> None:
    parser.add_argument("--log-level", default=None, help="DEBUG, INFO, WARNING or ERROR")


def parse_args_with_config(build_parser: Callable[[], argparse.ArgumentParser],
                           defaults_from_cfg: Callable[[Config], dict],
                           argv: Optional[list] = None) -> Tuple[argparse.Namespace, Config]:
    """Parse `argv` with defaults taken from the `--config` file; explicit flags win."""
    parser = build_parser()
    known, _ = parser.parse_known_args(argv)
    cfg = load_config(known.config)
    parser.set_defaults(**defaults_from_cfg(cfg))
    return parser.parse_args(argv), cfg


def setup_logging(log_level: str) -> None:
    logging.basicConfig(level=getattr(logging, log_level.upper(), logging.INFO), format=LOG_FORMAT)
