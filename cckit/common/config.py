import os
import yaml
from dataclasses import dataclass, replace
from typing import Optional


def _read(path: str):
    with open(path, "r") as f:
        return yaml.safe_load(f)


@dataclass(frozen=True)
class Paths:
    input_path: str = ""
    output_dir: Optional[str] = None
    summary_filename: str = "extraction_summary.json"

@dataclass(frozen=True)
class Logging:
    level: str = "INFO"

@dataclass(frozen=True)
class Extraction:
    octree_level: int = 8
    min_component_size: int = 100
    max_number_components: int = 100
    random_colors: bool = False
    six_connexity: bool = False
    seed: Optional[int] = None


@dataclass(frozen=True)
class Config:
    paths: Paths = Paths()
    logging: Logging = Logging()
    extraction: Extraction = Extraction()

def load_config(path: Optional[str]) -> Config:
    cfg = Config()
    if path and os.path.isfile(path):
        data = _read(path) or {}
        paths = replace(cfg.paths, **(data.get("paths", {}) or {}))
        logging = replace(cfg.logging, **(data.get("logging", {}) or {}))
        extraction = replace(cfg.extraction, **(data.get("extraction", {}) or {}))
        cfg = replace(cfg, paths=paths, logging=logging, extraction=extraction)
    return cfg
