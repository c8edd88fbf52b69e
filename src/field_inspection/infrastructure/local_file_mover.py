"""Filesystem implementation of the FileMover interface."""

import shutil
from pathlib import Path

from field_inspection.exceptions import FileMoveError
from field_inspection.infrastructure.interfaces import FileMover
from field_inspection.logging import setup_logging

logger = setup_logging()


class LocalFileMover(FileMover):
    """Moves captured files into the app's media directory."""

    def move(self, source: str, destination: Path) -> str:
        try:
            destination.parent.mkdir(parents=True, exist_ok=True)
            shutil.move(source, destination)
        except OSError as e:
            logger.exception(
                "File move failed",
                extra={"source": source, "destination": str(destination)},
            )
            raise FileMoveError(source, str(destination), e) from e

        logger.info("File saved", extra={"destination": str(destination)})
        return str(destination)
