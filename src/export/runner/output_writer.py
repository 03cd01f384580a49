"""
Output writer: drains the fan-in channel into a newline-delimited file.
"""

import logging
from pathlib import Path
from typing import Optional, TextIO

from ..core.exceptions import SinkError
from .channel import FanInChannel


logger = logging.getLogger(__name__)


class OutputWriter:
    """
    Writes every document of every batch as one line, in arrival order.

    The file is created (or truncated) by open(), which the runner calls
    before any worker starts, so an unwritable path fails the run before
    a single request is made.
    """

    def __init__(self, output_path: Path, encoding: str = "utf-8"):
        self.output_path = Path(output_path)
        self.encoding = encoding
        self.documents_written = 0
        self.batches_written = 0
        self._file: Optional[TextIO] = None

    def open(self) -> None:
        """
        Create or truncate the output file.

        Raises:
            SinkError: if the file cannot be created
        """
        try:
            self._file = open(self.output_path, "w", encoding=self.encoding, newline="\n")
        except OSError as e:
            raise SinkError(f"Cannot create output file {self.output_path}: {e}")
        logger.info(f"Writing documents to: {self.output_path}")

    def drain(self, channel: FanInChannel) -> None:
        """
        Consume batches until the channel is closed.

        On any failure the channel is aborted so producers stop blocking.

        Raises:
            SinkError: if the output cannot be written
        """
        if self._file is None:
            self.open()

        try:
            for batch in channel:
                for document in batch.documents:
                    self._file.write(document)
                    self._file.write("\n")
                self.documents_written += len(batch.documents)
                self.batches_written += 1
            self._file.close()
        except OSError as e:
            channel.abort(f"output write failed: {e}")
            self.close()
            raise SinkError(f"Cannot write output file {self.output_path}: {e}")
        except Exception as e:
            channel.abort(f"output writer crashed: {e}")
            self.close()
            raise
        self._file = None

        logger.info(
            f"Wrote {self.documents_written} documents "
            f"({self.batches_written} batches) to {self.output_path}"
        )

    def close(self) -> None:
        """Close the file if still open; after a failure the original error wins."""
        if self._file is None:
            return
        try:
            self._file.close()
        except OSError as e:
            logger.debug(f"Ignoring error while closing {self.output_path}: {e}")
        self._file = None
