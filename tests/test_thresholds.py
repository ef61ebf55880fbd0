import pytest

from nagplug.thresholds import (
    AlertOn,
    PluginError,
    Range,
    Status,
    ThresholdError,
    Thresholds,
    parse_range,
    set_thresholds,
    thresholds_expressed_as_percentages,
)


@pytest.mark.parametrize(
    "status, text, value",
    [
        (Status.OK, "OK", 0),
        (Status.WARNING, "WARNING", 1),
        (Status.CRITICAL, "CRITICAL", 2),
        (Status.UNKNOWN, "UNKNOWN", 3),
        (Status.DEPENDENT, "DEPENDENT", 4),
    ],
)
def test_status_text_and_value(status, text, value):
    assert status.text == text
    assert int(status) == value


def test_plugin_error_default_status():
    err = PluginError("boom")
    assert err.status is Status.UNKNOWN
    assert err.message == "boom"


def test_parse_single_value_is_end():
    rng = parse_range("10")
    assert rng.start == 0.0
    assert rng.start_infinity is False
    assert rng.end == 10.0
    assert rng.end_infinity is False
    assert rng.alert_on is AlertOn.OUTSIDE


def test_parse_open_end():
    rng = parse_range("10:")
    assert rng.start == 10.0
    assert rng.end_infinity is True


def test_parse_negative_infinity_start():
    rng = parse_range("~:10")
    assert rng.start_infinity is True
    assert rng.end == 10.0


def test_parse_inside_range():
    rng = parse_range("@10:20")
    assert rng.alert_on is AlertOn.INSIDE
    assert (rng.start, rng.end) == (10.0, 20.0)


def test_parse_percent_suffix_ignored():
    rng = parse_range("20%:")
    assert rng.start == 20.0
    assert rng.end_infinity is True


def test_parse_start_after_end_fails():
    with pytest.raises(ThresholdError):
        parse_range("20:10")


def test_check_outside_range():
    rng = parse_range("10")
    assert rng.check(5) is False
    assert rng.check(10) is False
    assert rng.check(11) is True
    assert rng.check(-1) is True


def test_check_inside_range():
    rng = parse_range("@10:20")
    assert rng.check(15) is True
    assert rng.check(25) is False


def test_check_open_ranges():
    assert parse_range("10:").check(9) is True
    assert parse_range("10:").check(100) is False
    assert parse_range("~:10").check(-1000) is False
    assert parse_range("~:10").check(11) is True


def test_check_both_infinite_never_alerts():
    rng = Range(start_infinity=True, end_infinity=True)
    assert rng.check(1e12) is False
    assert parse_range("~:").check(-5) is False


def test_thresholds_status():
    th = set_thresholds("10", "20")
    assert th.status(5) is Status.OK
    assert th.status(15) is Status.WARNING
    assert th.status(25) is Status.CRITICAL


def test_thresholds_empty_is_ok():
    assert Thresholds().status(1e9) is Status.OK


def test_set_thresholds_only_critical():
    th = set_thresholds(None, "20")
    assert th.warning is None
    assert th.status(15) is Status.OK
    assert th.status(21) is Status.CRITICAL


def test_set_thresholds_unparseable():
    with pytest.raises(ThresholdError):
        set_thresholds("20:10", None)
    with pytest.raises(ThresholdError):
        set_thresholds(None, "5:1")


def test_percentages():
    assert thresholds_expressed_as_percentages("20%", "10%") is True
    assert thresholds_expressed_as_percentages("20", "10%") is False
    assert thresholds_expressed_as_percentages("20%", "10") is False
    assert thresholds_expressed_as_percentages(None, None) is True
    assert thresholds_expressed_as_percentages(None, "5%") is True