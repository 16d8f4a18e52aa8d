"""
Unit Tests for EVT / SFL discovery, ingestion and emission.
"""

import os

import pytest

from cruisereplay.errors import EmitError, FeedLoadError
from cruisereplay.feeds import (
    ZERO_TIME,
    TimestampedRecord,
    find_evt_files,
    find_sfl_files,
    load_evt,
    load_sfl,
)
from cruisereplay.feeds.sinks import DailyAppendSink

from conftest import at

SFL_HEADER = "FILE\tFILE_DURATION\tLAT\tLON"


def touch(path, data=b""):
    os.makedirs(os.path.dirname(path), exist_ok=True)
    with open(path, "wb") as f:
        f.write(data)
    return str(path)


def sfl_line(ts, name="x"):
    return f"{ts}\t{name}\t21.3\t-157.8"


def drain(feed):
    while feed.next():
        feed.emit()


class TestDiscovery:

    def test_finds_plain_and_gz_recursively(self, tmp_path):
        a = touch(tmp_path / "2021_121" / "2021-05-01T10-00-00+00-00")
        b = touch(tmp_path / "2021_121" / "2021-05-01T10-03-00+00-00.gz")
        c = touch(tmp_path / "deep" / "er" / "2021-05-02T00-00-00-07-00")
        touch(tmp_path / "2021_121" / "2021-05-01T10-00-00+00-00.sfl")
        touch(tmp_path / "README.txt")

        found = find_evt_files(str(tmp_path))
        assert sorted(found) == sorted([a, b, c])

    def test_sfl_pattern(self, tmp_path):
        s = touch(tmp_path / "2021-05-01T10-00-00+00-00.sfl")
        touch(tmp_path / "2021-05-01T10-00-00+00-00")
        assert find_sfl_files(str(tmp_path)) == [s]

    def test_missing_root_is_fatal(self, tmp_path):
        with pytest.raises(FeedLoadError):
            find_evt_files(str(tmp_path / "nope"))

    def test_empty_root(self, tmp_path):
        assert find_evt_files(str(tmp_path)) == []


class TestEvtFeed:

    def test_sorted_by_filename_time(self, tmp_path):
        late = touch(tmp_path / "in" / "2021-05-01T10-00-05+00-00")
        early = touch(tmp_path / "in" / "z" / "2021-05-01T10-00-00+00-00")
        feed = load_evt([late, early], str(tmp_path / "out"))

        assert [r.payload for r in feed.records()] == [early, late]
        assert feed.earliest() == at(0)
        assert feed.warnings() == []

    def test_bad_timestamp_warns_and_sorts_first(self, tmp_path):
        """Malformed name is kept at the zero time, other files untouched."""
        good = touch(tmp_path / "2021-05-01T10-00-05+00-00")
        bad = touch(tmp_path / "2021-19-01T10-00-05+00-00")
        feed = load_evt([good, bad], str(tmp_path / "out"))

        assert len(feed) == 2
        assert len(feed.warnings()) == 1
        assert "bad timestamp" in str(feed.warnings()[0])
        first, second = feed.records()
        assert first.time == ZERO_TIME and first.payload == bad
        assert second.time == at(5) and second.payload == good

    def test_emit_copies_into_day_bucket(self, tmp_path):
        src = touch(tmp_path / "in" / "2021-05-01T10-00-05+00-00.gz", b"\x1f\x8b\x00evt")
        out = tmp_path / "out"
        feed = load_evt([src], str(out))
        drain(feed)

        dst = out / "datafiles" / "evt" / "2021_121" / "2021-05-01T10-00-05+00-00.gz"
        assert dst.read_bytes() == b"\x1f\x8b\x00evt"

    def test_emit_missing_source_raises_emit_error(self, tmp_path):
        feed = load_evt([str(tmp_path / "2021-05-01T10-00-05+00-00")], str(tmp_path / "out"))
        feed.next()
        with pytest.raises(EmitError):
            feed.emit()


class TestSflFeed:

    def write_sfl(self, path, lines):
        return touch(path, ("\n".join([SFL_HEADER] + lines) + "\n").encode())

    def test_header_prepended_to_second_line_only(self, tmp_path):
        f = self.write_sfl(tmp_path / "2021-05-01T10-00-00+00-00.sfl", [
            sfl_line("2021-05-01T10:00:00+00:00", "a"),
            sfl_line("2021-05-01T10:03:00+00:00", "b"),
        ])
        feed = load_sfl([f], str(tmp_path / "out"))

        first, second = feed.records()
        assert first.payload == SFL_HEADER + "\r\n" + sfl_line("2021-05-01T10:00:00+00:00", "a")
        assert second.payload == sfl_line("2021-05-01T10:03:00+00:00", "b")

    def test_offset_ignored_time_forced_utc(self, tmp_path):
        f = self.write_sfl(tmp_path / "2021-05-01T10-00-00+00-00.sfl", [
            sfl_line("2021-05-01T10:00:07-07:00"),
        ])
        feed = load_sfl([f], str(tmp_path / "out"))
        assert feed.earliest() == at(7)

    def test_hyphen_separated_time_column(self, tmp_path):
        """SeaFlow also writes the file-name style time in the first column."""
        f = self.write_sfl(tmp_path / "2021-05-01T10-00-00+00-00.sfl", [
            sfl_line("2021-05-01T10-00-07+00-00"),
        ])
        feed = load_sfl([f], str(tmp_path / "out"))

        assert len(feed) == 1
        assert feed.warnings() == []
        assert feed.earliest() == at(7)

    def test_malformed_line_isolated(self, tmp_path):
        """One bad line yields one warning and every other line survives."""
        f = self.write_sfl(tmp_path / "2021-05-01T10-00-00+00-00.sfl", [
            sfl_line("2021-05-01T10:00:00+00:00", "a"),
            "garbage without tabs",
            sfl_line("2021-05-01T10:06:00+00:00", "c"),
        ])
        feed = load_sfl([f], str(tmp_path / "out"))

        assert len(feed) == 2
        assert len(feed.warnings()) == 1
        assert ":3" in str(feed.warnings()[0])

    def test_unparsable_timestamp_of_right_width(self, tmp_path):
        f = self.write_sfl(tmp_path / "2021-05-01T10-00-00+00-00.sfl", [
            sfl_line("2021-05-01T99:00:00+00:00"),
            sfl_line("2021-05-01T10:00:01+00:00"),
        ])
        feed = load_sfl([f], str(tmp_path / "out"))
        assert len(feed) == 1
        assert "could not parse timestamp" in str(feed.warnings()[0])

    def test_lines_from_all_files_sorted_together(self, tmp_path):
        f1 = self.write_sfl(tmp_path / "2021-05-01T10-00-00+00-00.sfl", [
            sfl_line("2021-05-01T10:00:00+00:00", "a1"),
            sfl_line("2021-05-01T10:06:00+00:00", "a2"),
        ])
        f2 = self.write_sfl(tmp_path / "2021-05-01T10-03-00+00-00.sfl", [
            sfl_line("2021-05-01T10:03:00+00:00", "b1"),
        ])
        feed = load_sfl([f1, f2], str(tmp_path / "out"))
        names = [r.payload.split("\n")[-1].split("\t")[1] for r in feed.records()]
        assert names == ["a1", "b1", "a2"]

    def test_missing_file_is_fatal(self, tmp_path):
        with pytest.raises(FeedLoadError):
            load_sfl([str(tmp_path / "2021-05-01T10-00-00+00-00.sfl")], str(tmp_path))

    def test_emit_appends_to_source_copy(self, tmp_path):
        f1 = self.write_sfl(tmp_path / "in" / "2021-05-01T10-00-00+00-00.sfl", [
            sfl_line("2021-05-01T10:00:00+00:00", "a1"),
            sfl_line("2021-05-01T10:06:00+00:00", "a2"),
        ])
        f2 = self.write_sfl(tmp_path / "in" / "2021-05-02T00-00-00+00-00.sfl", [
            sfl_line("2021-05-02T00:00:00+00:00", "b1"),
        ])
        out = tmp_path / "out"
        feed = load_sfl([f1, f2], str(out))
        drain(feed)
        feed.close()

        bucket = out / "datafiles" / "evt"
        day1 = (bucket / "2021_121" / "2021-05-01T10-00-00+00-00.sfl").read_bytes().decode()
        day2 = (bucket / "2021_122" / "2021-05-02T00-00-00+00-00.sfl").read_bytes().decode()
        assert day1 == (
            SFL_HEADER + "\r\n"
            + sfl_line("2021-05-01T10:00:00+00:00", "a1") + "\r\n"
            + sfl_line("2021-05-01T10:06:00+00:00", "a2") + "\r\n"
        )
        assert day2 == SFL_HEADER + "\r\n" + sfl_line("2021-05-02T00:00:00+00:00", "b1") + "\r\n"


class TestDailyAppendSink:

    def test_switches_files_and_reopens(self, tmp_path):
        sink = DailyAppendSink("sfl", str(tmp_path))
        a = "/in/2021-05-01T10-00-00+00-00.sfl"
        b = "/in/2021-05-01T11-00-00+00-00.sfl"
        sink.emit(TimestampedRecord(at(0), "one", source=a))
        sink.emit(TimestampedRecord(at(1), "two", source=b))
        sink.emit(TimestampedRecord(at(2), "three", source=a))
        sink.close()
        sink.close()

        bucket = tmp_path / "datafiles" / "evt" / "2021_121"
        assert (bucket / os.path.basename(a)).read_bytes() == b"one\r\nthree\r\n"
        assert (bucket / os.path.basename(b)).read_bytes() == b"two\r\n"

    def test_unparsable_source_name(self, tmp_path):
        sink = DailyAppendSink("sfl", str(tmp_path))
        with pytest.raises(EmitError):
            sink.emit(TimestampedRecord(at(0), "x", source="/in/whatever.sfl"))
