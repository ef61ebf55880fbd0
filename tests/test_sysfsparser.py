import errno
import os

import pytest

from nagplug import sysfsparser
from nagplug.sysfsparser import (
    CpuFreq,
    Thermal,
    check_for_sysfs,
    linelookup_numeric,
    path_exists,
    read_first_line,
    read_value,
    scan_entries,
)
from nagplug.thresholds import PluginError


def _write(path, text):
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(text)


# -- generic helpers -------------------------------------------------------


def test_path_exists(tmp_path):
    target = tmp_path / "here"
    target.write_text("x")
    assert path_exists(str(target)) is True
    assert path_exists(str(tmp_path / "missing")) is False


def test_read_first_line_strips_newline(tmp_path):
    target = tmp_path / "f"
    target.write_text("performance\nsecond\n")
    assert read_first_line(str(target)) == "performance"


def test_read_first_line_missing_or_empty(tmp_path):
    empty = tmp_path / "empty"
    empty.write_text("")
    assert read_first_line(str(empty)) is None
    assert read_first_line(str(tmp_path / "nope")) is None


@pytest.mark.parametrize(
    "text, expected",
    [
        ("  42\n", 42),
        ("0x10\n", 16),
        ("010\n", 8),
        ("abc\n", 0),
        ("99999999999999999999999\n", 0),
    ],
)
def test_read_value(tmp_path, text, expected):
    target = tmp_path / "value"
    target.write_text(text)
    assert read_value(str(target)) == expected


def test_read_value_missing_file(tmp_path):
    assert read_value(str(tmp_path / "missing")) == 0


def test_linelookup_numeric_matches():
    assert linelookup_numeric("MemTotal 123456", "MemTotal") == 123456
    assert linelookup_numeric("Offset\t-17", "Offset") == -17


@pytest.mark.parametrize(
    "line",
    ["", "MemTotal", "MemTotal:123", "MemFree 12"],
)
def test_linelookup_numeric_rejects(line):
    assert linelookup_numeric(line, "MemTotal") is None


def test_scan_entries_filters_by_kind(tmp_path):
    (tmp_path / "adir").mkdir()
    (tmp_path / "afile").write_text("")
    os.symlink("afile", tmp_path / "alink")

    dirs = sorted(e.name for e in scan_entries(str(tmp_path), {"dir"}))
    files = sorted(e.name for e in scan_entries(str(tmp_path), ["file", "symlink"]))
    assert dirs == ["adir"]
    assert files == ["afile", "alink"]


def test_scan_entries_errors(tmp_path):
    with pytest.raises(PluginError):
        scan_entries(str(tmp_path / "missing"), {"dir"})
    with pytest.raises(ValueError):
        scan_entries(str(tmp_path), {"socketish"})


def test_check_for_sysfs_not_mounted(tmp_path, monkeypatch):
    mounts = tmp_path / "mounts"
    mounts.write_text("proc /proc proc rw 0 0\ntmpfs /sys tmpfs rw 0 0\n")
    monkeypatch.setattr(sysfsparser, "_MOUNTS", str(mounts))
    with pytest.raises(PluginError, match="not mounted"):
        check_for_sysfs()


def test_check_for_sysfs_unreadable_mounts(tmp_path, monkeypatch):
    monkeypatch.setattr(sysfsparser, "_MOUNTS", str(tmp_path / "missing"))
    with pytest.raises(PluginError):
        check_for_sysfs()


# -- cpufreq ---------------------------------------------------------------


@pytest.fixture
def cpu_root(tmp_path):
    base = tmp_path / "cpu0" / "cpufreq"
    _write(base / "cpuinfo_min_freq", "800000\n")
    _write(base / "cpuinfo_max_freq", "3400000\n")
    _write(base / "scaling_cur_freq", "1200000\n")
    _write(base / "cpuinfo_transition_latency", "4294967295\n")
    _write(base / "scaling_driver", "intel_pstate\n")
    _write(base / "scaling_governor", "powersave\n")
    _write(base / "scaling_available_governors", "performance powersave\n")
    _write(base / "scaling_available_frequencies", "3400000 2800000 800000\n")
    return tmp_path


def test_cpufreq_values(cpu_root):
    freq = CpuFreq(0, str(cpu_root))
    assert freq.hardware_limits() == (800000, 3400000)
    assert freq.current_freq() == 1200000
    assert freq.transition_latency() == 4294967295
    assert freq.driver() == "intel_pstate"
    assert freq.governor() == "powersave"
    assert freq.available_governors() == "performance powersave"
    assert freq.available_freqs() == "3400000 2800000 800000"


def test_cpufreq_missing_cpu(cpu_root):
    freq = CpuFreq(7, str(cpu_root))
    assert freq.current_freq() == 0
    assert freq.driver() is None
    with pytest.raises(OSError) as info:
        freq.hardware_limits()
    assert info.value.errno == errno.ENODEV


def test_cpufreq_missing_max(cpu_root):
    (cpu_root / "cpu0" / "cpufreq" / "cpuinfo_max_freq").unlink()
    with pytest.raises(OSError) as info:
        CpuFreq(0, str(cpu_root)).hardware_limits()
    assert info.value.errno == errno.ENODEV


# -- thermal ---------------------------------------------------------------


@pytest.fixture
def thermal_root(tmp_path):
    zone0 = tmp_path / "thermal_zone0"
    _write(zone0 / "temp", "45000\n")
    _write(zone0 / "type", "acpitz\n")
    _write(zone0 / "trip_point_0_type", "passive\n")
    _write(zone0 / "trip_point_0_temp", "90000\n")
    _write(zone0 / "trip_point_1_type", "critical\n")
    _write(zone0 / "trip_point_1_temp", "98000\n")
    _write(zone0 / "device" / "path", "\\_TZ_.THM0\n")
    zone1 = tmp_path / "thermal_zone1"
    _write(zone1 / "temp", "52000\n")
    _write(zone1 / "type", "x86_pkg_temp\n")
    _write(tmp_path / "cooling_device0" / "type", "Processor\n")
    return tmp_path


def test_thermal_kernel_support(thermal_root, tmp_path):
    assert Thermal(str(thermal_root)).kernel_support() is True
    assert Thermal(str(tmp_path / "absent")).kernel_support() is False


def test_thermal_critical_temperature(thermal_root):
    thermal = Thermal(str(thermal_root))
    assert thermal.critical_temperature(0) == 98000
    assert thermal.critical_temperature(1) == -1


def test_thermal_device(thermal_root):
    thermal = Thermal(str(thermal_root))
    assert thermal.device(0) == "THM0"
    assert thermal.device(1) == "Virtual device"


def test_thermal_temperature_hottest(thermal_root):
    assert Thermal(str(thermal_root)).temperature() == (52000, 1, "x86_pkg_temp")


def test_thermal_temperature_selected(thermal_root):
    assert Thermal(str(thermal_root)).temperature(0) == (45000, 0, "acpitz")


def test_thermal_temperature_unknown_zone(thermal_root):
    with pytest.raises(PluginError, match="zone '5'"):
        Thermal(str(thermal_root)).temperature(5)


def test_thermal_temperature_no_zones(tmp_path):
    with pytest.raises(PluginError, match="no thermal information has been found"):
        Thermal(str(tmp_path)).temperature()


def test_thermal_without_support(tmp_path):
    thermal = Thermal(str(tmp_path / "absent"))
    with pytest.raises(PluginError, match="no ACPI thermal support"):
        thermal.temperature()
    with pytest.raises(PluginError, match="no ACPI thermal support"):
        thermal.list_all()


def test_thermal_list_all(thermal_root, capsys):
    lines = Thermal(str(thermal_root)).list_all()
    out = capsys.readouterr().out
    assert lines[0] == (
        f"Thermal zones reported by the linux kernel ({thermal_root}):"
    )
    assert len(lines) == 3
    assert lines[1].startswith(' - zone  0 [THM0], type "acpitz"')
    assert lines[1].endswith("98°C")
    assert lines[2] == ' - zone  1 [Virtual device], type "x86_pkg_temp"'
    assert out.splitlines() == lines