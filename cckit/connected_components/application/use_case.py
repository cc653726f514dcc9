"""Application layer: use cases for connected-component extraction."""
from __future__ import annotations

import logging
from dataclasses import dataclass
from pathlib import Path
from typing import List, Optional

from cckit.connected_components.domain.entities import PointCloud
from cckit.connected_components.domain.model import ExtractionParameters, ExtractionResult
from cckit.connected_components.domain.services import ExtractionOrchestrator
from cckit.connected_components.ports import CloudSource, ComponentRepository
from cckit.exceptions.exceptions import ExtractionPreconditionError


@dataclass(frozen=True)
class ExtractComponentsFromFilesUseCase:
    """Use case: extract connected components from cloud files on disk.

    This is an application service that orchestrates:
    - File enumeration and loading (via CloudSource port)
    - Extraction (via ExtractionOrchestrator domain service)
    - Persistence (via optional ComponentRepository port)
    """

    cloud_source: CloudSource
    orchestrator: ExtractionOrchestrator
    component_repo: Optional[ComponentRepository] = None

    def run(
        self,
        *,
        input_path: Path,
        parameters: ExtractionParameters = ExtractionParameters(),
        output_folder: Optional[Path] = None,
    ) -> ExtractionResult:
        """Load every cloud at `input_path`, extract, and optionally persist.

        Args:
            input_path: A cloud file, or a folder holding cloud files.
            parameters: Extraction settings.
            output_folder: Where components are written (needs a repository).

        Raises:
            ExtractionPreconditionError: If the input is missing or holds no readable cloud.
        """
        input_path = Path(input_path)
        if not input_path.exists():
            raise ExtractionPreconditionError(
                "INPUT_NOT_FOUND", f"Input path not found: {input_path}", str(input_path))

        files = self.cloud_source.list(path=input_path)
        if not files:
            raise ExtractionPreconditionError(
                "NO_CLOUD_FILES", f"No point cloud file found in {input_path}", str(input_path))
        logging.info("Found %d cloud file(s)", len(files))

        clouds: List[PointCloud] = []
        for path in files:
            try:
                clouds.append(self.cloud_source.load(path=path))
            except RuntimeError as exc:
                logging.warning("Skipping %s: %s", path, exc)

        if not clouds:
            raise ExtractionPreconditionError(
                "NO_READABLE_CLOUD", f"No readable point cloud in {input_path}", str(input_path))

        result = self.orchestrator.extract(clouds, parameters)
        logging.info(
            "Done. %d cloud(s) processed, %d component(s) extracted",
            result.processed_cloud_count, len(result.components),
        )

        if self.component_repo is not None and output_folder is not None:
            self.component_repo.save(result=result, folder=Path(output_folder))

        return result
