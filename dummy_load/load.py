"""
Per-request resource consumption: jitter/clamp math, page touching,
busy-work and the duty-cycle CPU scheduler.

Everything here is stateless apart from the process-wide random generator.
"""

import math
import os
import random
import time
from typing import NamedTuple, Optional

PAGE_SIZE = 4096
SLICE_WINDOW_NS = 10_000_000  # 10ms

CPU_RANGE = (0.0, 100.0)
MEM_RANGE_MB = (0.0, 1024.0)
TIME_RANGE_MS = (0.0, 60_000.0)  # guard upper bound, wider than the 0-1000ms flag range


def new_rng() -> random.Random:
    """Return a generator seeded from the clock and pid."""
    return random.Random(time.time_ns() ^ os.getpid())


_rng = new_rng()


class LoadTargets(NamedTuple):
    cpu_percent: float
    mem_mb: int
    time_ms: int


# --- Jitter / Clamp ---
def apply_jitter(value: float, jitter: float, rng: Optional[random.Random] = None) -> float:
    """Scale value by a random factor in [1 - jitter, 1 + jitter]."""
    if jitter <= 0:
        return value
    rng = rng or _rng
    scale = 1 + rng.uniform(-1.0, 1.0) * jitter
    return value * scale


def clamp(value: float, low: float, high: float) -> float:
    if value < low:
        return low
    if value > high:
        return high
    return value


def round_half_away(value: float) -> int:
    return int(math.copysign(math.floor(abs(value) + 0.5), value))


def jittered_targets(settings, rng: Optional[random.Random] = None) -> LoadTargets:
    """Jitter then clamp each baseline target, one independent draw per target."""
    cpu = clamp(apply_jitter(settings.cpu, settings.jitter, rng), *CPU_RANGE)
    mem = int(clamp(apply_jitter(float(settings.mem), settings.jitter, rng), *MEM_RANGE_MB))
    time_ms = round_half_away(clamp(apply_jitter(float(settings.time), settings.jitter, rng), *TIME_RANGE_MS))
    return LoadTargets(cpu_percent=cpu, mem_mb=mem, time_ms=time_ms)


# --- Memory ---
def touch_pages(buf: bytearray) -> None:
    """Write one byte per 4KiB page so the allocation is physically committed."""
    size = len(buf)
    for i in range(0, size, PAGE_SIZE):
        buf[i] = 1
    if size > 0:
        buf[size - 1] = 1


# --- CPU ---
def busy_for(seconds: float) -> float:
    """Burn CPU for ~seconds with floating-point work in a tight loop.

    Returns the accumulator so the loop's result is used.
    """
    deadline = time.perf_counter() + seconds
    x = 0.0001
    while time.perf_counter() < deadline:
        x = x * 1.0000001 + math.sqrt(x + 1.2345)
        if x > 1e9:
            x = 0.0001
    return x


def cpu_load_for_duration(percent: float, total: float) -> None:
    """Keep ~percent of one core busy over total seconds, returning at ~total wall time.

    Below 100% the load is a duty cycle: each 10ms slice is busy for
    percent/100 of its length and asleep for the rest. The last slice is
    truncated to whatever remains.
    """
    if total <= 0:
        return
    if percent <= 0:
        time.sleep(total)
        return
    if percent >= 100:
        busy_for(total)
        return

    total_ns = round(total * 1e9)
    elapsed_ns = 0
    while elapsed_ns < total_ns:
        win = min(SLICE_WINDOW_NS, total_ns - elapsed_ns)
        busy = int(win * (percent / 100.0))
        idle = win - busy

        if busy > 0:
            busy_for(busy / 1e9)
        if idle > 0:
            time.sleep(idle / 1e9)
        elapsed_ns += win
