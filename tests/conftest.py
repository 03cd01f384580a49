"""
Shared test fixtures and configuration for pytest.
"""

import logging
import sys
from pathlib import Path

import pytest

# Add src directory to path for imports
sys.path.insert(0, str(Path(__file__).parent.parent / "src"))


logger = logging.getLogger(__name__)


# ============================================================================
# Pytest hooks
# ============================================================================

def pytest_configure(config):
    """Configure pytest with custom markers."""
    config.addinivalue_line("markers", "unit: Unit tests (no external dependencies)")
    config.addinivalue_line("markers", "slow: Tests that take a long time to run")


# ============================================================================
# Fixtures
# ============================================================================

@pytest.fixture
def match_all_query():
    """A minimal query body."""
    return {"query": {"match_all": {}}, "sort": ["_doc"]}


@pytest.fixture
def three_doc_pages():
    """Pages of one slice: two documents, then one, then exhausted."""
    return {0: [["a", "b"], ["c"]]}


@pytest.fixture
def fake_connector(three_doc_pages):
    """Fixture providing a fake connector serving one slice."""
    from export.connectors.fake_connector import FakeScrollConnector

    connector = FakeScrollConnector(pages=three_doc_pages)
    yield connector
    connector.close()


@pytest.fixture
def output_path(tmp_path):
    """Path of the export output file."""
    return tmp_path / "out.jsonl"


@pytest.fixture
def recording_tracker():
    """Progress tracker that keeps every update it receives."""
    import threading
    from export.progress.base import ProgressTracker

    class RecordingTracker(ProgressTracker):
        def __init__(self):
            self.updates = []
            self.started = False
            self.joined = False
            self._lock = threading.Lock()

        def start(self):
            self.started = True

        def update(self, update):
            with self._lock:
                self.updates.append(update)

        def join(self):
            self.joined = True

        def for_worker(self, worker_id):
            return [u for u in self.updates if u.worker_id == worker_id]

    return RecordingTracker()
