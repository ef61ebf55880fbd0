# nagplug

Building blocks for Nagios-compatible monitoring plugins on Linux, together with
one ready-made plugin, `check_clock`.

The package needs Python 3.10 or later and has no third-party dependencies.
Most modules read Linux-specific files (`/proc`, `/sys`) or use rtnetlink, so
they are meant to run on Linux.

## Installing

```
pip install .
```

To run the tests:

```
pip install ".[test]"
pytest
```

## The `check_clock` plugin

`check_clock` reports how far the local clock is from a reference clock. The
reference is given in seconds since the Epoch, usually by the Nagios poller.

```
check_clock -w 60 -c 120 --refclock "$(date '+%s')"
```

Options:

- `-r`, `--refclock COUNTER`: the reference clock, in seconds since the Epoch (required)
- `-w`, `--warning COUNTER`: warning threshold
- `-c`, `--critical COUNTER`: critical threshold
- `-v`, `--verbose`: print the local Epoch seconds and the computed delta
- `-h`, `--help`: print the usage text and exit
- `-V`, `--version`: print the program name and exit

The thresholds are compared with the absolute value of the delta. The plugin
prints one status line with perfdata, for example:

```
clock OK - time delta 0s | clock_delta=0
```

Its exit code is the Nagios state: 0 OK, 1 WARNING, 2 CRITICAL, 3 UNKNOWN. A
missing `--refclock`, a bad option or an unparseable threshold prints the usage
text to standard error and exits with 3.

The same entry point is available as `nagplug.check_clock.main(argv)`, which
returns the state instead of exiting.

## Library modules

- `nagplug.thresholds`: `Status` (the Nagios states), `PluginError` (an error
  carrying the state a plugin should end with) and `ThresholdError`.
  `parse_range` turns range strings such as `10`, `10:`, `~:10` or `@10:20`
  into `Range` objects; `Range.check` tells whether a value raises an alert.
  `set_thresholds` builds `Thresholds`, whose `status` method returns a
  `Status`. `thresholds_expressed_as_percentages` checks for `%` signs.
- `nagplug.perfdata`: `perfdata_limit` and `perfdata_limit_converted` turn a
  threshold into an absolute limit on a base value (optionally as a
  percentage, and scaled with `K_SHIFT`, `M_SHIFT` or `G_SHIFT`); they return
  `None` for ranges that set no upper limit.
- `nagplug.xstrton`: `age_to_seconds("2h")`, `size_to_bytes("10M")` (decimal
  multiples) and `parse_int`. Bad input raises `ConversionError`.
- `nagplug.url_encode`: `url_encode`, form-style encoding with lowercase hex
  and `+` for spaces.
- `nagplug.progname`: `set_program_name` derives a `ProgramName` (full and
  short name) from `argv[0]`.
- `nagplug.procparser`: `procparser` reads wanted rows from a name/value file;
  `linelookup` extracts the value of a `name: value` line.
- `nagplug.vminfo`: `read_vmem` returns a `VMem` with the counters of
  `/proc/vmstat` (falling back on `/proc/stat` for paging and swapping). The
  vmstat path can be overridden with the `NPL_TEST_PATH_PROCVMSTAT`
  environment variable. `page_size` returns the memory page size.
- `nagplug.pressure`: Pressure Stall Information. `read_cpu_pressure`,
  `read_io_pressure` and `read_memory_pressure` sample the pressure file twice,
  `delay` seconds apart, and return the first reading (`PsiLine` or
  `PsiTwoLines`) and the starvation per second.
- `nagplug.processes`: `procs_list_getall` counts processes, or threads, per
  user and returns a `ProcessList` of `UserProcs` entries, each with the
  user's `RLIMIT_NPROC` limits.
- `nagplug.tcpinfo`: `TcpTable` counts sockets per `TcpState` from
  `/proc/net/tcp` and `/proc/net/tcp6`; `decode_address` turns the kernel's hex
  addresses into text.
- `nagplug.sysfsparser`: sysfs helpers (`check_for_sysfs`, `read_first_line`,
  `read_value`, `scan_entries`, `linelookup_numeric`), CPU frequency scaling
  settings (`CpuFreq`) and thermal zones (`Thermal`: hottest or selected zone
  temperature, critical trip points, a printed listing).
- `nagplug.iflink`: `netinfo_snapshot` lists network interfaces through
  rtnetlink as `Interface` objects with flags, `IfStats` counters, speed and
  `Duplex`. Link speed and duplex are read from `/sys/class/net`.
- `nagplug.netinfo`: `netinfo` takes one snapshot, or two `seconds` apart and
  turns the counters into per-second rates (`rate_stats`); the `Option` flags
  choose which interfaces and metrics count. `debug_lines` and
  `print_ifname_debug` describe the interfaces and their metrics.

Diagnostic messages from `nagplug.iflink` and `nagplug.netinfo` go to the
standard `logging` module at debug level.

```python
from nagplug.thresholds import set_thresholds

limits = set_thresholds("80", "90")
print(limits.status(95).name)   # CRITICAL
```

## What it does not do

`check_clock` is the only command. The memory, pressure, process, TCP,
temperature, CPU frequency and network modules are library code: there are no
plugins built on them, so turning their readings into plugin output is left to
the caller.