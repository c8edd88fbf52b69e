"""Abstract interface for relocating captured files."""

from abc import ABC, abstractmethod
from pathlib import Path


class FileMover(ABC):
    """Moves device temporary files into durable app storage."""

    @abstractmethod
    def move(self, source: str, destination: Path) -> str:
        """
        Moves a file.

        Args:
            source: Path of the temporary file.
            destination: Target path inside durable storage.

        Returns:
            The durable location of the file.

        Raises:
            FileMoveError: If the file could not be moved.
        """
        pass
