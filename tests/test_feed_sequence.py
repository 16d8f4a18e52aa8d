"""
Unit Tests for the ordered record cursor and the Feed contract

Tests verify:
- Records sorted by time, ties keep discovery order
- Forward-only cursor, terminal state is sticky
- emit() before first next() is a no-op
- close() is idempotent
"""

from cruisereplay.feeds import Feed, FeedSequence, RecordCursor, TimestampedRecord, ZERO_TIME

from conftest import RecordingSink, at, make_feed


class TestRecordCursor:

    def test_sorted_regardless_of_discovery_order(self):
        cursor = RecordCursor([
            TimestampedRecord(at(30), "c"),
            TimestampedRecord(at(10), "a"),
            TimestampedRecord(at(20), "b"),
        ])
        assert [r.payload for r in cursor.records] == ["a", "b", "c"]

    def test_stable_for_equal_times(self):
        """Ties preserve discovery order."""
        cursor = RecordCursor([
            TimestampedRecord(at(5), "first"),
            TimestampedRecord(at(1), "early"),
            TimestampedRecord(at(5), "second"),
            TimestampedRecord(at(5), "third"),
        ])
        assert [r.payload for r in cursor.records] == ["early", "first", "second", "third"]

    def test_starts_before_first(self):
        cursor = RecordCursor([TimestampedRecord(at(0), "a")])
        assert cursor.current() is None
        assert cursor.position == -1

    def test_advance_until_exhausted(self):
        cursor = RecordCursor([TimestampedRecord(at(0), "a"), TimestampedRecord(at(1), "b")])
        assert cursor.advance()
        assert cursor.current().payload == "a"
        assert cursor.advance()
        assert cursor.current().payload == "b"
        assert not cursor.advance()
        # Terminal state is sticky
        assert not cursor.advance()
        assert cursor.position == len(cursor)

    def test_empty_earliest_is_zero(self):
        assert RecordCursor([]).earliest() == ZERO_TIME

    def test_earliest_known_skips_zero_time(self):
        cursor = RecordCursor([
            TimestampedRecord(at(9), "b"),
            TimestampedRecord(ZERO_TIME, "bad"),
        ])
        assert cursor.earliest() == ZERO_TIME
        assert cursor.earliest_known() == at(9)

    def test_earliest_known_all_zero(self):
        cursor = RecordCursor([TimestampedRecord(ZERO_TIME, "bad")])
        assert cursor.earliest_known() == ZERO_TIME


class TestFeed:

    def test_satisfies_protocol(self):
        feed, _ = make_feed("x", [0])
        assert isinstance(feed, FeedSequence)

    def test_earliest_and_len(self):
        feed, _ = make_feed("x", [7, 3, 5])
        assert feed.earliest() == at(3)
        assert len(feed) == 3

    def test_time_before_first_next(self):
        feed, _ = make_feed("x", [0])
        assert feed.time() is None

    def test_time_follows_cursor(self):
        feed, _ = make_feed("x", [2, 1])
        feed.next()
        assert feed.time() == at(1)
        feed.next()
        assert feed.time() == at(2)

    def test_emit_before_first_next_is_noop(self):
        feed, sink = make_feed("x", [0])
        feed.emit()
        assert sink.emitted == []

    def test_emit_current_record(self):
        feed, sink = make_feed("x", [0, 1])
        feed.next()
        feed.emit()
        assert sink.payloads == ["x:0"]

    def test_close_idempotent(self):
        sink = RecordingSink()
        feed = Feed("x", [], sink)
        feed.close()
        feed.close()
        assert sink.close_calls == 1

    def test_warnings_are_copied(self):
        feed, _ = make_feed("x", [])
        feed.warnings().append("mutated")
        assert feed.warnings() == []
