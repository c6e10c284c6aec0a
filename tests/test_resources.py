"""Tests for the regions dump: parsing, staleness and downloading."""

import datetime
import gzip
import io
import os
from unittest import mock

import pytest
import urllib3

from quorate.exceptions import ResourceError, TransportError
from quorate.models import RegionDump
from quorate.resources import (
    DailyResource,
    DumpManager,
    download_file,
    last_generation,
    parse_regions,
)

from tests import fakes


class Raw(io.BytesIO):
    """Stands in for a urllib3 response body."""


RECORDS = [("The Pacific", 100, 200), ("Lazarus", 105, 210), ("Osiris", 110, 230)]


class TestParseRegions:
    def test_records_in_dump_order(self):
        regions = list(parse_regions(io.BytesIO(fakes.dump_xml(RECORDS))))
        assert regions == [
            RegionDump("The Pacific", 100, 200),
            RegionDump("Lazarus", 105, 210),
            RegionDump("Osiris", 110, 230),
        ]

    def test_is_lazy(self):
        regions = parse_regions(io.BytesIO(fakes.dump_xml(RECORDS)))
        assert next(regions).name == "The Pacific"

    def test_empty_update_times_are_zero(self):
        data = b"<REGIONS><REGION><NAME>New</NAME><LASTMINORUPDATE></LASTMINORUPDATE>" \
            b"<LASTMAJORUPDATE>7</LASTMAJORUPDATE></REGION></REGIONS>"
        assert list(parse_regions(io.BytesIO(data))) == [RegionDump("New", 0, 7)]

    def test_malformed_dump(self):
        with pytest.raises(ResourceError):
            list(parse_regions(io.BytesIO(b"<REGIONS><REGION><NAME>cut")))

    def test_empty_stream(self):
        with pytest.raises(ResourceError):
            list(parse_regions(io.BytesIO(b"")))


class TestStaleness:
    def test_last_generation_same_day(self):
        now = datetime.datetime(2024, 5, 2, 9, 30)
        assert last_generation(datetime.time(hour=6), now) == datetime.datetime(2024, 5, 2, 6)

    def test_last_generation_previous_day(self):
        now = datetime.datetime(2024, 5, 2, 5, 59)
        assert last_generation(datetime.time(hour=6), now) == datetime.datetime(2024, 5, 1, 6)

    def test_daily_resource_outdated(self):
        resource = DailyResource("url", "name", datetime.time(hour=6))
        now = datetime.datetime(2024, 5, 2, 9)
        assert resource.outdated(datetime.datetime(2024, 5, 2, 5), now)
        assert not resource.outdated(datetime.datetime(2024, 5, 2, 7), now)


class TestDumpManager:
    def write_dump(self, path):
        with gzip.open(path, "wb") as file:
            file.write(fakes.dump_xml(RECORDS))

    def test_reads_gzipped_dump(self, tmp_path):
        location = str(tmp_path / "regions.xml.gz")
        self.write_dump(location)
        names = [region.name for region in DumpManager("agent", location).regions()]
        assert names == ["The Pacific", "Lazarus", "Osiris"]

    def test_reads_plain_dump(self, tmp_path):
        location = tmp_path / "regions.xml"
        location.write_bytes(fakes.dump_xml(RECORDS))
        assert len(list(DumpManager("agent", str(location)).regions())) == 3

    def test_downloads_when_missing(self, tmp_path):
        manager = DumpManager("agent", str(tmp_path / "regions.xml.gz"))
        with mock.patch.object(manager, "download") as download:
            manager.update(False)
        download.assert_called_once()

    @pytest.mark.parametrize("redownload, expected", [(True, 1), (False, 0)])
    def test_explicit_choice_for_existing_dump(self, tmp_path, redownload, expected):
        location = str(tmp_path / "regions.xml.gz")
        self.write_dump(location)
        manager = DumpManager("agent", location)
        with mock.patch.object(manager, "download") as download:
            manager.update(redownload)
        assert download.call_count == expected

    def test_redownloads_outdated_dump(self, tmp_path):
        location = str(tmp_path / "regions.xml.gz")
        self.write_dump(location)
        # Two days old is always before the last generation
        old = (datetime.datetime.now() - datetime.timedelta(days=2)).timestamp()
        os.utime(location, (old, old))
        manager = DumpManager("agent", location)
        with mock.patch.object(manager, "download") as download:
            manager.update()
        download.assert_called_once()

    def test_download_sends_user_agent(self, tmp_path):
        target = str(tmp_path / "out.gz")
        with mock.patch("quorate.resources.requests.get") as get:
            get.return_value.__enter__.return_value.status_code = 200
            get.return_value.__enter__.return_value.raw = Raw(b"data")
            download_file("https://example.invalid/regions.xml.gz", target, headers={"User-Agent": "agent"})
        assert get.call_args.kwargs["headers"] == {"User-Agent": "agent"}
        with open(target, "rb") as file:
            assert file.read() == b"data"

    def test_download_bad_status(self, tmp_path):
        with mock.patch("quorate.resources.requests.get") as get:
            get.return_value.__enter__.return_value.status_code = 503
            with pytest.raises(TransportError):
                download_file("https://example.invalid/x", str(tmp_path / "x"), headers={})

    def test_interrupted_download_leaves_no_file(self, tmp_path):
        target = tmp_path / "regions.xml.gz"
        raw = mock.Mock()
        raw.read.side_effect = [b"\x1f\x8b partial", urllib3.exceptions.ProtocolError("reset")]
        with mock.patch("quorate.resources.requests.get") as get:
            get.return_value.__enter__.return_value.status_code = 200
            get.return_value.__enter__.return_value.raw = raw
            with pytest.raises(TransportError):
                download_file("https://example.invalid/regions.xml.gz", str(target), headers={})
        assert list(tmp_path.iterdir()) == []

    def test_interrupted_download_keeps_previous_dump(self, tmp_path):
        location = str(tmp_path / "regions.xml.gz")
        self.write_dump(location)
        raw = mock.Mock()
        raw.read.side_effect = [b"\x1f\x8b partial", urllib3.exceptions.ProtocolError("reset")]
        manager = DumpManager("agent", location)
        with mock.patch("quorate.resources.requests.get") as get:
            get.return_value.__enter__.return_value.status_code = 200
            get.return_value.__enter__.return_value.raw = raw
            with pytest.raises(TransportError):
                manager.update(True)
        assert [region.name for region in manager.regions()] == ["The Pacific", "Lazarus", "Osiris"]
        assert os.listdir(tmp_path) == ["regions.xml.gz"]

    def test_bad_status_leaves_no_file(self, tmp_path):
        with mock.patch("quorate.resources.requests.get") as get:
            get.return_value.__enter__.return_value.status_code = 503
            with pytest.raises(TransportError):
                download_file("https://example.invalid/x", str(tmp_path / "x"), headers={})
        assert list(tmp_path.iterdir()) == []

    def test_truncated_gzip(self, tmp_path):
        whole = tmp_path / "whole.xml.gz"
        self.write_dump(str(whole))
        data = whole.read_bytes()
        location = tmp_path / "regions.xml.gz"
        location.write_bytes(data[: len(data) // 2])
        with pytest.raises(ResourceError):
            list(DumpManager("agent", str(location)).regions())

    def test_not_gzip(self, tmp_path):
        location = tmp_path / "regions.xml.gz"
        location.write_bytes(b"<html><body>Service unavailable</body></html>")
        with pytest.raises(ResourceError):
            list(DumpManager("agent", str(location)).regions())

    def test_missing_file(self, tmp_path):
        with pytest.raises(ResourceError):
            list(DumpManager("agent", str(tmp_path / "absent.xml")).regions())
