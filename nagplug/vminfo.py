"""Virtual memory statistics read from /proc/vmstat (and /proc/stat)."""

from __future__ import annotations

import os
import re
from dataclasses import dataclass, fields

from .procparser import procparser

__all__ = ["PROC_STAT", "VMem", "vmstat_path", "page_size", "read_vmem"]

PROC_STAT = "/proc/stat"
_DEFAULT_VMSTAT = "/proc/vmstat"
_VMSTAT_ENV = "NPL_TEST_PATH_PROCVMSTAT"

_PAGE_LINE = re.compile(r"page\s*\+?(\d+)\s*\+?(\d+)")
_SWAP_LINE = re.compile(r"swap\s*\+?(\d+)\s*\+?(\d+)")


@dataclass
class VMem:
    """Counters found in /proc/vmstat; absent counters are zero."""

    nr_dirty: int = 0
    nr_writeback: int = 0
    nr_pagecache: int = 0
    nr_page_table_pages: int = 0
    nr_reverse_maps: int = 0
    nr_mapped: int = 0
    nr_slab: int = 0
    pgpgin: int = 0
    pgpgout: int = 0
    pswpin: int = 0
    pswpout: int = 0
    pgalloc: int = 0
    pgfree: int = 0
    pgactivate: int = 0
    pgdeactivate: int = 0
    pgfault: int = 0
    pgmajfault: int = 0
    pgscan: int = 0
    pgrefill: int = 0
    pgsteal: int = 0
    kswapd_steal: int = 0
    pageoutrun: int = 0
    allocstall: int = 0
    pgrotated: int = 0
    pgalloc_dma: int = 0
    pgalloc_dma32: int = 0
    pgalloc_high: int = 0
    pgalloc_normal: int = 0
    pgrefill_dma: int = 0
    pgrefill_dma32: int = 0
    pgrefill_high: int = 0
    pgrefill_normal: int = 0
    pgscan_direct_dma: int = 0
    pgscan_direct_dma32: int = 0
    pgscan_direct_high: int = 0
    pgscan_direct_normal: int = 0
    pgscan_kswapd_dma: int = 0
    pgscan_kswapd_dma32: int = 0
    pgscan_kswapd_high: int = 0
    pgscan_kswapd_normal: int = 0
    pgsteal_dma: int = 0
    pgsteal_dma32: int = 0
    pgsteal_high: int = 0
    pgsteal_normal: int = 0
    pgsteal_direct_dma: int = 0
    pgsteal_direct_dma32: int = 0
    pgsteal_direct_high: int = 0
    pgsteal_direct_normal: int = 0
    kswapd_inodesteal: int = 0
    nr_unstable: int = 0
    pginodesteal: int = 0
    slabs_scanned: int = 0

    def pgscand(self) -> int:
        """Pages scanned by direct reclaim (dma, high and normal zones)."""
        return (
            self.pgscan_direct_dma
            + self.pgscan_direct_high
            + self.pgscan_direct_normal
        )

    def pgscank(self) -> int:
        """Pages scanned by kswapd (dma, high and normal zones)."""
        return (
            self.pgscan_kswapd_dma
            + self.pgscan_kswapd_high
            + self.pgscan_kswapd_normal
        )

    def _all_zones(self, prefix: str) -> int:
        return sum(
            getattr(self, f"{prefix}_{zone}")
            for zone in ("dma", "dma32", "normal", "high")
        )


_VMSTAT_NAMES = frozenset(field.name for field in fields(VMem))


def vmstat_path() -> str:
    """Path of the vmstat file, overridable through the environment."""
    return os.environ.get(_VMSTAT_ENV) or _DEFAULT_VMSTAT


def page_size() -> int:
    """The memory page size in bytes."""
    return os.sysconf("SC_PAGESIZE")


def _read_stat_fallback(vm: VMem, stat: str, found_pgpg: bool, found_pswp: bool) -> None:
    """Take paging and swapping counters from /proc/stat (old kernels)."""
    try:
        with open(stat, encoding="utf-8", errors="replace") as handle:
            for line in handle:
                if match := _PAGE_LINE.match(line):
                    vm.pgpgin, vm.pgpgout = map(int, match.groups())
                    found_pgpg = True
                elif match := _SWAP_LINE.match(line):
                    vm.pswpin, vm.pswpout = map(int, match.groups())
                    found_pswp = True
                if found_pgpg and found_pswp:
                    break
    except OSError:
        pass

    if not found_pgpg:
        vm.pgpgin = vm.pgpgout = 0
    if not found_pswp:
        vm.pswpin = vm.pswpout = 0


def read_vmem(vmstat: str | None = None, stat: str = PROC_STAT) -> VMem:
    """Read the virtual memory counters from ``vmstat`` (default vmstat_path())."""
    values = procparser(vmstat if vmstat is not None else vmstat_path(), _VMSTAT_NAMES, " ")
    vm = VMem(**values)

    if not vm.pgalloc:
        vm.pgalloc = vm._all_zones("pgalloc")
    if not vm.pgrefill:
        vm.pgrefill = vm._all_zones("pgrefill")
    if not vm.pgscan:
        vm.pgscan = vm._all_zones("pgscan_direct") + vm._all_zones("pgscan_kswapd")
    if not vm.pgsteal:
        vm.pgsteal = vm._all_zones("pgsteal")

    have_pgpg = "pgpgin" in values
    have_pswp = "pswpin" in values
    if have_pgpg and have_pswp:
        return vm

    _read_stat_fallback(vm, stat, have_pgpg, have_pswp and not have_pgpg)
    return vm