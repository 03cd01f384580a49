"""
Export runner: parallel sliced scroll export into a single file.

This module wires the pieces of a run together:
- plans one query per slice
- runs one ScrollWorker per slice on a ThreadPoolExecutor sized to the
  slice count
- runs the OutputWriter on its own thread, draining a FanInChannel whose
  capacity equals the slice count
- runs a completion thread that waits for every worker and only then
  closes the channel
- collects per-slice results and errors into an ExportResult
"""

import logging
import threading
import uuid
from concurrent.futures import Future, ThreadPoolExecutor, wait
from dataclasses import dataclass
from datetime import datetime, timezone
from pathlib import Path
from typing import Callable, Dict, List, Optional

from ..core.connector import ScrollConnector
from ..core.exceptions import ExportError, SinkError
from ..core.models import ExportResult, Query, SliceStatus
from ..progress.base import NullProgressTracker, ProgressTracker, SliceProgress
from .channel import FanInChannel
from .output_writer import OutputWriter
from .scroll_worker import ScrollWorker
from .slice_planner import plan


logger = logging.getLogger(__name__)


@dataclass
class RunnerConfig:
    """
    Configuration for the export runner.

    Attributes:
        index: Index (or pattern) to export
        slices: Number of parallel slices, and the channel capacity
        scroll_ttl: Scroll keep-alive sent with every request
        page_size: Optional page size hint for the initial search
        clear_scroll: Release scroll sessions when a slice ends
    """
    index: str
    slices: int = 1
    scroll_ttl: str = "1m"
    page_size: Optional[int] = None
    clear_scroll: bool = True


class ExportRunner:
    """
    Runs one sliced export from query to output file.

    Each worker gets its own connector from `connector_factory`, so HTTP
    sessions are never shared between threads.
    """

    def __init__(
        self,
        connector_factory: Callable[[], ScrollConnector],
        output_path: Path,
        config: RunnerConfig,
        progress: Optional[ProgressTracker] = None,
    ):
        """
        Initialize the export runner.

        Args:
            connector_factory: Builds one connector per worker
            output_path: File the documents are written to
            config: Runner configuration
            progress: Progress tracker (discards updates if not provided)
        """
        self.connector_factory = connector_factory
        self.output_path = Path(output_path)
        self.config = config
        self.progress = progress or NullProgressTracker()

        self._writer_error: Optional[BaseException] = None

    def run(self, query: Query, run_id: Optional[str] = None) -> ExportResult:
        """
        Export every document matching `query`.

        Blocks until all workers and the writer have finished. Failures
        do not raise; they are reported on the returned result.

        Args:
            query: Search body
            run_id: Optional run identifier (auto-generated if not provided)

        Returns:
            ExportResult with per-slice results and the overall status
        """
        if run_id is None:
            run_id = str(uuid.uuid4())

        queries = plan(query, self.config.slices)
        slices = len(queries)

        logger.info(f"Starting export run: {run_id}")
        logger.info(
            f"Configuration: index={self.config.index}, slices={slices}, "
            f"scroll_ttl={self.config.scroll_ttl}, page_size={self.config.page_size}"
        )

        result = ExportResult(run_id=run_id, started_at=datetime.now(timezone.utc))

        writer = OutputWriter(self.output_path)
        try:
            writer.open()
        except SinkError as e:
            logger.error(f"Export run {run_id} aborted: {e}")
            result.errors.append(str(e))
            return self._finalize(result)

        channel = FanInChannel(capacity=slices)
        self._writer_error = None

        self.progress.start()
        writer_thread = threading.Thread(
            target=self._writer_loop, args=(writer, channel), name="export-writer"
        )
        writer_thread.start()

        executor = ThreadPoolExecutor(max_workers=slices, thread_name_prefix="scroll-worker")
        workers: Dict[Future, ScrollWorker] = {}
        try:
            try:
                for slice_id, slice_query in enumerate(queries):
                    worker = ScrollWorker(
                        slice_id=slice_id,
                        query=slice_query,
                        index=self.config.index,
                        connector=self.connector_factory(),
                        channel=channel,
                        progress=SliceProgress(slice_id, self.progress),
                        scroll_ttl=self.config.scroll_ttl,
                        page_size=self.config.page_size,
                        clear_scroll=self.config.clear_scroll,
                        run_id=run_id,
                    )
                    workers[executor.submit(self._worker_loop, worker)] = worker
            except Exception as e:
                # Slices already submitted still run to completion
                logger.exception(f"Failed to start slice {len(workers)}: {e}")
                result.errors.append(f"slice {len(workers)}: could not start: {e}")

            closer = threading.Thread(
                target=self._close_when_done,
                args=(list(workers), channel),
                name="export-closer",
            )
            closer.start()
            closer.join()
        finally:
            executor.shutdown(wait=True)
            if not channel.closed:
                # Closer never ran; let the writer finish
                channel.close()
            writer_thread.join()
            self.progress.join()

        self._collect(result, workers, writer)
        return self._finalize(result)

    def _worker_loop(self, worker: ScrollWorker) -> None:
        try:
            worker.run()
        except ExportError:
            raise
        except Exception as e:
            # Not an ExportError, so the worker did not record it
            logger.exception(f"Worker {worker.slice_id} crashed: {e}")
            worker.result.status = SliceStatus.FAILED
            worker.result.error_message = str(e)
            worker.progress.fail(str(e))
            raise
        finally:
            worker.connector.close()

    def _writer_loop(self, writer: OutputWriter, channel: FanInChannel) -> None:
        try:
            writer.drain(channel)
        except Exception as e:
            logger.error(f"Output writer failed: {e}")
            self._writer_error = e

    def _close_when_done(self, futures: List[Future], channel: FanInChannel) -> None:
        """Barrier: close the channel only after every worker has ended."""
        wait(futures)
        channel.close()

    def _collect(
        self,
        result: ExportResult,
        workers: Dict[Future, ScrollWorker],
        writer: OutputWriter,
    ) -> None:
        for future, worker in workers.items():
            slice_result = worker.result
            error = future.exception()
            if error is not None:
                result.errors.append(f"slice {worker.slice_id}: {error}")
            result.slices[worker.slice_id] = slice_result

        if self._writer_error is not None:
            result.errors.append(f"writer: {self._writer_error}")

        result.documents_written = writer.documents_written
        result.batches_written = writer.batches_written

    def _finalize(self, result: ExportResult) -> ExportResult:
        result.ended_at = datetime.now(timezone.utc)
        result.status = "failed" if result.errors else "completed"

        logger.info(f"Run {result.status}: {result.run_id}")
        logger.info(
            f"Metrics: documents_written={result.documents_written}, "
            f"batches_written={result.batches_written}, "
            f"slices={len(result.slices)}, errors={len(result.errors)}"
        )
        return result
