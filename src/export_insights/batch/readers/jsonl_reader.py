"""
Line reader for JSON Lines bulk-export files.
"""

from pathlib import Path
from typing import Iterator

from export_insights.observability.logger import get_logger

logger = get_logger(__name__)


class InputUnavailableError(RuntimeError):
    """Raised when the export file cannot be opened or read at all."""

    def __init__(self, path: str | Path, reason: str):
        self.path = str(path)
        self.reason = reason
        super().__init__(f"Cannot read export {self.path}: {reason}")


class JsonLinesReader:
    """
    Yields the raw text lines of a ``.jsonl`` export.

    Lines are yielded lazily and the file is closed when iteration ends.
    Each call to ``lines`` re-reads the file from the start.
    """

    def __init__(self, file_path: str | Path, encoding: str = "utf-8"):
        """
        Initialize the reader.

        Args:
            file_path: Path to the export file
            encoding: Text encoding of the file

        Raises:
            InputUnavailableError: If the path does not exist or is not a file
        """
        self.file_path = Path(file_path)
        self.encoding = encoding

        if not self.file_path.exists():
            raise InputUnavailableError(self.file_path, "file not found")
        if not self.file_path.is_file():
            raise InputUnavailableError(self.file_path, "not a regular file")

    def lines(self) -> Iterator[str]:
        """
        Yield each line without its trailing newline.

        Undecodable bytes are replaced so that one corrupt line shows up as
        a malformed record instead of aborting the run.

        Raises:
            InputUnavailableError: If the file cannot be opened
        """
        try:
            handle = open(self.file_path, encoding=self.encoding, errors="replace")
        except OSError as e:
            raise InputUnavailableError(self.file_path, e.strerror or str(e)) from e

        logger.info(f"Reading export {self.file_path}")
        with handle:
            for line in handle:
                yield line.rstrip("\r\n")

    def __iter__(self) -> Iterator[str]:
        return self.lines()
