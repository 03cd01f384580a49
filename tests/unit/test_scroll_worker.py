"""
Unit tests for the scroll worker.

The worker runs against the in-memory fake connector; batches are
collected from a channel that is large enough never to block.
"""

import pytest
from unittest.mock import Mock

from export.connectors.fake_connector import FakeScrollConnector
from export.core.exceptions import ChannelClosedError, ProtocolError, TransportError
from export.core.models import Page, SliceStatus
from export.progress.base import SliceProgress
from export.runner.channel import FanInChannel
from export.runner.scroll_worker import ScrollWorker


def _drain(channel):
    channel.close()
    return list(channel)


@pytest.fixture
def channel():
    return FanInChannel(capacity=100)


def make_worker(connector, channel, tracker, slice_id=0, query=None, **kwargs):
    return ScrollWorker(
        slice_id=slice_id,
        query=query or {"query": {"match_all": {}}},
        index="logs",
        connector=connector,
        channel=channel,
        progress=SliceProgress(slice_id, tracker),
        **kwargs,
    )


class TestScrollWorker:
    """Tests for the pagination loop."""

    def test_fetches_all_pages_in_order(self, fake_connector, channel, recording_tracker):
        worker = make_worker(fake_connector, channel, recording_tracker, scroll_ttl="5m")

        result = worker.run()

        batches = _drain(channel)
        assert [b.documents for b in batches] == [["a", "b"], ["c"]]
        assert result.status == SliceStatus.FINISHED
        assert result.pages_fetched == 3
        assert result.documents_fetched == 3
        assert result.total == 3

    def test_request_sequence_follows_scroll_protocol(self, fake_connector, channel, recording_tracker):
        """One search, then scroll calls echoing the latest scroll id."""
        worker = make_worker(
            fake_connector, channel, recording_tracker, scroll_ttl="2m", page_size=500
        )

        worker.run()

        history = fake_connector.request_history
        assert [r["kind"] for r in history] == ["search", "scroll", "scroll"]
        assert history[0]["index"] == "logs"
        assert history[0]["scroll_ttl"] == "2m"
        assert history[0]["size"] == 500
        assert history[1]["scroll_id"] == "scroll-0-1"
        assert history[2]["scroll_id"] == "scroll-0-2"
        assert all(r["scroll_ttl"] == "2m" for r in history)

    def test_progress_sequence(self, fake_connector, channel, recording_tracker):
        worker = make_worker(fake_connector, channel, recording_tracker)

        worker.run()

        updates = recording_tracker.for_worker(0)
        assert [u.status for u in updates] == [
            SliceStatus.RUNNING,
            SliceStatus.RUNNING,
            SliceStatus.RUNNING,
            SliceStatus.FINISHED,
        ]
        assert [u.position for u in updates] == [0, 2, 3, 3]
        assert all(u.total == 3 for u in updates)
        assert updates[-1].message == "Finished."

    def test_empty_first_page_is_still_sent(self, channel, recording_tracker):
        """A slice with no documents sends exactly one empty batch."""
        connector = FakeScrollConnector(pages={0: []})
        worker = make_worker(connector, channel, recording_tracker)

        result = worker.run()

        batches = _drain(channel)
        assert len(batches) == 1
        assert batches[0].documents == []
        assert result.status == SliceStatus.FINISHED
        assert [r["kind"] for r in connector.request_history] == ["search"]

    def test_terminal_empty_page_is_not_sent(self, fake_connector, channel, recording_tracker):
        make_worker(fake_connector, channel, recording_tracker).run()

        assert all(len(b) > 0 for b in _drain(channel))

    def test_first_page_total_is_authoritative(self, channel, recording_tracker):
        """Later pages reporting a different total do not change the row length."""
        connector = Mock()
        connector.search.return_value = Page(documents=["a"], scroll_id="s1", total=10)
        connector.scroll.side_effect = [
            Page(documents=["b"], scroll_id="s2", total=99),
            Page(documents=[], scroll_id="s3", total=99),
        ]
        worker = make_worker(connector, channel, recording_tracker)

        result = worker.run()

        assert result.total == 10
        assert {u.total for u in recording_tracker.for_worker(0)} == {10}

    def test_latest_scroll_id_is_used(self, channel, recording_tracker):
        connector = Mock()
        connector.search.return_value = Page(documents=["a"], scroll_id="s1", total=2)
        connector.scroll.side_effect = [
            Page(documents=["b"], scroll_id="s2", total=2),
            Page(documents=[], scroll_id="s3", total=2),
        ]

        make_worker(connector, channel, recording_tracker).run()

        assert [c.args[0] for c in connector.scroll.call_args_list] == ["s1", "s2"]
        connector.clear_scroll.assert_called_once_with("s3")

    def test_initial_protocol_error_fails_slice(self, channel, recording_tracker):
        connector = FakeScrollConnector(pages={0: [["a"]]}, error_slices={0}, error_status=503)
        worker = make_worker(connector, channel, recording_tracker)

        with pytest.raises(ProtocolError) as exc_info:
            worker.run()

        assert exc_info.value.status_code == 503
        assert worker.result.status == SliceStatus.FAILED
        assert "503" in worker.result.error_message
        assert _drain(channel) == []

        last = recording_tracker.for_worker(0)[-1]
        assert last.status == SliceStatus.FAILED
        assert last.message.startswith("Failed:")

    def test_mid_scroll_transport_error_stops_without_retry(self, channel, recording_tracker):
        connector = FakeScrollConnector(
            pages={0: [["a"], ["b"], ["c"]]}, fail_on_page={0: 2}
        )
        worker = make_worker(connector, channel, recording_tracker)

        with pytest.raises(TransportError):
            worker.run()

        assert [b.documents for b in _drain(channel)] == [["a"], ["b"]]
        assert [r["kind"] for r in connector.request_history] == ["search", "scroll", "scroll"]
        assert worker.result.status == SliceStatus.FAILED

    def test_closed_channel_fails_slice(self, fake_connector, recording_tracker):
        channel = FanInChannel(capacity=1)
        channel.abort("writer gone")
        worker = make_worker(fake_connector, channel, recording_tracker)

        with pytest.raises(ChannelClosedError):
            worker.run()

        assert worker.result.status == SliceStatus.FAILED

    def test_scroll_released_on_success(self, fake_connector, channel, recording_tracker):
        make_worker(fake_connector, channel, recording_tracker).run()

        assert fake_connector.cleared == ["scroll-0-3"]

    def test_scroll_released_on_failure(self, channel, recording_tracker):
        connector = FakeScrollConnector(pages={0: [["a"], ["b"]]}, fail_on_page={0: 1})

        with pytest.raises(TransportError):
            make_worker(connector, channel, recording_tracker).run()

        assert connector.cleared == ["scroll-0-1"]

    def test_clear_scroll_can_be_disabled(self, fake_connector, channel, recording_tracker):
        make_worker(fake_connector, channel, recording_tracker, clear_scroll=False).run()

        assert fake_connector.cleared == []

    def test_release_failure_does_not_fail_slice(self, channel, recording_tracker):
        connector = Mock()
        connector.search.return_value = Page(documents=[], scroll_id="s1", total=0)
        connector.clear_scroll.side_effect = TransportError("connection refused")

        result = make_worker(connector, channel, recording_tracker).run()

        assert result.status == SliceStatus.FINISHED

    def test_slice_query_selects_fake_slice(self, channel, recording_tracker):
        connector = FakeScrollConnector(pages={0: [["x"]], 1: [["y"], ["z"]]})
        query = {"query": {"match_all": {}}, "slice": {"id": 1, "max": 2}}

        result = make_worker(connector, channel, recording_tracker, slice_id=1, query=query).run()

        assert [b.documents for b in _drain(channel)] == [["y"], ["z"]]
        assert result.slice_id == 1
