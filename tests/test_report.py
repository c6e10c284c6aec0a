"""Tests for the output files."""

import pytest

from quorate.models import Candidate
from quorate.report import duration_string, raid_file, trigger_list, write_reports
from quorate.triggers import TriggerResult


@pytest.mark.parametrize(
    "seconds, expected",
    [(0, "0s"), (45, "45s"), (61, "1m1s"), (3600, "1h0m0s"), (3725, "1h2m5s"), (-90, "-1m30s")],
)
def test_duration_string(seconds, expected):
    assert duration_string(seconds) == expected


@pytest.fixture
def result():
    direct = Candidate("region_a", "del_a", 1100, triggerRegion="trig_a", triggerTime=1094)
    deltip = Candidate(
        "region_b", "del_b", 1200, secondNation="tipper", triggerRegion="trig_b", triggerTime=1190
    )
    ghost = Candidate("ghost", "del_c", 1150)
    return TriggerResult(
        firstRegion="first", firstTime=1000, candidates=[direct, ghost, deltip], missing=[ghost]
    )


def test_trigger_list_skips_unmatched(result):
    assert trigger_list(result) == "trig_a\ntrig_b\n"


def test_raid_file(result):
    assert raid_file(result) == (
        "1) https://www.nationstates.net/region=region_a (1m40s)\n"
        "\ta) https://www.nationstates.net/template-overall=none/region=trig_a (6s)\n\n"
        "2) https://www.nationstates.net/region=region_b (3m20s)\n"
        "ENDORSE: https://www.nationstates.net/nation=tipper\n"
        "\ta) https://www.nationstates.net/template-overall=none/region=trig_b (10s)\n\n"
    )


def test_write_reports(tmp_path, result):
    write_reports(result, str(tmp_path / "out"))
    assert (tmp_path / "out" / "trigger_list.txt").read_text() == "trig_a\ntrig_b\n"
    assert (tmp_path / "out" / "raidFile.txt").read_text().startswith("1) ")
