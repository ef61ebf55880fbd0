import time

import pytest

from nagplug import check_clock
from nagplug.check_clock import get_timedelta, main
from nagplug.thresholds import Status


@pytest.fixture
def frozen_clock(monkeypatch):
    monkeypatch.setattr(check_clock.time, "time", lambda: 1000.0)


def test_timedelta_against_now_is_small():
    delta = get_timedelta(int(time.time()))
    assert abs(delta) <= 1


def test_timedelta_sign(frozen_clock):
    assert get_timedelta(1000) == 0
    assert get_timedelta(1001) < 0
    assert get_timedelta(999) > 0


def test_timedelta_verbose_output(frozen_clock, capsys):
    get_timedelta(1000, verbose=True)
    out = capsys.readouterr().out
    assert "Seconds since the Epoch: 1000" in out
    assert "Delta: 0" in out


def test_ok_status(frozen_clock, capsys):
    status = main(["-w", "60", "-c", "120", "--refclock", "940"])
    assert status == Status.OK
    assert capsys.readouterr().out == "clock OK - time delta 60s | clock_delta=60\n"


def test_warning_status(frozen_clock, capsys):
    status = main(["-w", "60", "-c", "120", "-r", "1090"])
    assert status == Status.WARNING
    assert "clock WARNING" in capsys.readouterr().out


def test_critical_status(frozen_clock, capsys):
    status = main(["-w", "60", "-c", "120", "-r", "500"])
    assert status == Status.CRITICAL
    assert "clock_delta=500" in capsys.readouterr().out


def test_no_thresholds_is_ok(frozen_clock):
    assert main(["-r", "1"]) == Status.OK


def test_missing_refclock_prints_usage(capsys):
    assert main([]) == Status.UNKNOWN
    assert "Usage:" in capsys.readouterr().err


def test_bad_refclock(capsys):
    assert main(["-r", "abc"]) == Status.UNKNOWN
    assert "requires an integer" in capsys.readouterr().err


def test_unparseable_threshold(frozen_clock, capsys):
    assert main(["-r", "1000", "-w", "20:10"]) == Status.UNKNOWN
    assert "Usage:" in capsys.readouterr().err


def test_unknown_option(capsys):
    assert main(["--bogus"]) == Status.UNKNOWN
    assert "Usage:" in capsys.readouterr().err


def test_help(capsys):
    assert main(["--help"]) == Status.OK
    assert "--refclock" in capsys.readouterr().out