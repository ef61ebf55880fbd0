import pytest

from nagplug.perfdata import (
    G_SHIFT,
    K_SHIFT,
    M_SHIFT,
    perfdata_limit,
    perfdata_limit_converted,
    unit_convert,
)
from nagplug.thresholds import parse_range, set_thresholds


@pytest.mark.parametrize(
    "warning, critical, base, shift, percent, expect_w, expect_c",
    [
        ("20%:", "10%:", 16302692, K_SHIFT, True, 3260538, 1630269),
        ("20%:", "10%:", 16302692, M_SHIFT, True, 3184, 1592),
        ("20%:", "10%:", 16302692, G_SHIFT, True, 3, 1),
        ("80%", "90%", 16302692, K_SHIFT, True, 13042153, 14672422),
        ("80%", "90%", 16302692, M_SHIFT, True, 12736, 14328),
        ("80%", "90%", 16302692, G_SHIFT, True, 12, 13),
    ],
)
def test_perfdata_limit_converted(warning, critical, base, shift, percent, expect_w, expect_c):
    th = set_thresholds(warning, critical)
    assert perfdata_limit_converted(th.warning, base, shift, percent) == expect_w
    assert perfdata_limit_converted(th.critical, base, shift, percent) == expect_c


def test_no_threshold_gives_no_limit():
    assert perfdata_limit(None, 100, False) is None
    assert perfdata_limit_converted(None, 100, K_SHIFT, False) is None


def test_inside_range_gives_no_limit():
    assert perfdata_limit(parse_range("@10:20"), 100, False) is None


def test_start_infinity_gives_no_limit():
    assert perfdata_limit(parse_range("~:10"), 100, False) is None


def test_limit_without_percent():
    assert perfdata_limit(parse_range("10"), 100, False) == 1000
    assert perfdata_limit(parse_range("10:"), 100, False) == 1000


def test_unit_convert():
    assert unit_convert(2048, M_SHIFT) == 2
    assert unit_convert(2048, K_SHIFT) == 2048