"""Simulated system metrics for the super-admin monitor.

There is no telemetry endpoint on the backend, so samples are synthesised: a
slow sine wave gives the CPU line a recognisable shape and uniform noise is
layered on top. Every channel keeps a rolling window of the 60 most recent
points, and a single asyncio task drives the sampling.
"""

import asyncio
from collections import deque
from dataclasses import dataclass
from datetime import datetime
from datetime import timezone
import math
import random
import time
from typing import Callable, Iterator, Optional, Protocol

from loguru import logger

CHART_CAPACITY = 60
SEED_POINTS = 10
CHANNELS = ("cpu", "memory", "storage", "network", "database", "application", "security")


@dataclass(frozen=True)
class CpuMetrics:
    usage: float
    cores: int
    threads: int
    temperature: float
    frequency: float


@dataclass(frozen=True)
class MemoryMetrics:
    total: float
    used: float
    available: float
    usage: float


@dataclass(frozen=True)
class StorageMetrics:
    total: float
    used: float
    available: float
    usage: float


@dataclass(frozen=True)
class NetworkMetrics:
    upload: float
    download: float
    connections: int


@dataclass(frozen=True)
class DatabaseMetrics:
    response_time: float
    connections: int
    size: float
    last_backup: datetime


@dataclass(frozen=True)
class ApplicationMetrics:
    active_users: int
    active_students: int
    active_lecturers: int
    api_response_time: float
    error_rate: float


@dataclass(frozen=True)
class SecurityMetrics:
    failed_logins: int
    ssl_status: str
    firewall_status: str
    last_security_scan: datetime


@dataclass(frozen=True)
class SystemMetricsSample:
    cpu: CpuMetrics
    memory: MemoryMetrics
    storage: StorageMetrics
    network: NetworkMetrics
    database: DatabaseMetrics
    application: ApplicationMetrics
    security: SecurityMetrics

    def channel_values(self) -> dict[str, float]:
        """The single value each chart channel plots for this sample."""
        return {
            "cpu": self.cpu.usage,
            "memory": self.memory.usage,
            "storage": self.storage.usage,
            "network": self.network.upload + self.network.download,
            "database": self.database.response_time,
            "application": self.application.api_response_time,
            "security": float(self.security.failed_logins),
        }


def generate_sample(now: Optional[float] = None, rng: Optional[random.Random] = None) -> SystemMetricsSample:
    """Synthesises one metrics sample.

    Args:
        now: Wall-clock time in seconds since the epoch. Defaults to `time.time()`.
        rng: Source of uniform noise. Defaults to the module-level generator.
    """
    now = time.time() if now is None else now
    r = (rng or random).random
    now_ms = now * 1000
    base = 20 + math.sin(now_ms / 10000) * 30

    memory_used = 8 + r() * 4
    storage_used = 256 + r() * 50

    return SystemMetricsSample(
        cpu=CpuMetrics(
            usage=max(0.0, min(100.0, base + r() * 20)),
            cores=8,
            threads=16,
            temperature=40 + r() * 20,
            frequency=2.4 + r() * 1.2,
        ),
        memory=MemoryMetrics(
            total=16, used=memory_used, available=16 - memory_used, usage=50 + r() * 30
        ),
        storage=StorageMetrics(
            total=512, used=storage_used, available=512 - storage_used, usage=50 + r() * 20
        ),
        network=NetworkMetrics(
            upload=r() * 10, download=r() * 15, connections=math.floor(r() * 100)
        ),
        database=DatabaseMetrics(
            response_time=50 + r() * 100,
            connections=10 + math.floor(r() * 50),
            size=2.5 + r() * 1.5,
            last_backup=datetime.fromtimestamp(now - r() * 86400, tz=timezone.utc),
        ),
        application=ApplicationMetrics(
            active_users=20 + math.floor(r() * 30),
            active_students=15 + math.floor(r() * 25),
            active_lecturers=5 + math.floor(r() * 10),
            api_response_time=100 + r() * 200,
            error_rate=r() * 2,
        ),
        security=SecurityMetrics(
            failed_logins=math.floor(r() * 5),
            ssl_status="valid",
            firewall_status="active",
            last_security_scan=datetime.fromtimestamp(now - r() * 604800, tz=timezone.utc),
        ),
    )


class Sampler(Protocol):
    def sample(self) -> SystemMetricsSample: ...


class SimulatedSampler:
    """Default sampler. Swap in a real telemetry source by implementing `Sampler`."""

    def __init__(self, rng: Optional[random.Random] = None):
        self.rng = rng or random.Random()

    def sample(self) -> SystemMetricsSample:
        return generate_sample(rng=self.rng)


@dataclass(frozen=True)
class ChartPoint:
    timestamp: int  # ms since epoch
    value: float


class RingBuffer:
    """Fixed-capacity sequence keeping only the most recent items, oldest first."""

    def __init__(self, capacity: int = CHART_CAPACITY):
        self._items: deque[ChartPoint] = deque(maxlen=capacity)

    @property
    def capacity(self) -> int:
        return self._items.maxlen or 0

    def append(self, point: ChartPoint):
        self._items.append(point)

    def clear(self):
        self._items.clear()

    def values(self) -> list[float]:
        return [p.value for p in self._items]

    def __len__(self) -> int:
        return len(self._items)

    def __iter__(self) -> Iterator[ChartPoint]:
        return iter(self._items)

    def __getitem__(self, index: int) -> ChartPoint:
        return self._items[index]


class MetricsChart:
    """One rolling buffer per chart channel.

    Every sample is recorded into every channel, whichever one is being looked
    at, so switching channels never shows a gap.
    """

    def __init__(self, capacity: int = CHART_CAPACITY):
        self.buffers = {name: RingBuffer(capacity) for name in CHANNELS}

    def record(self, sample: SystemMetricsSample, timestamp: Optional[int] = None):
        timestamp = int(time.time() * 1000) if timestamp is None else timestamp
        for name, value in sample.channel_values().items():
            self.buffers[name].append(ChartPoint(timestamp, value))

    def seed(self, sample: SystemMetricsSample, now: Optional[int] = None, rng: Optional[random.Random] = None):
        """Pre-fills each channel with ten jittered points one second apart, ending before `now`."""
        now = int(time.time() * 1000) if now is None else now
        r = (rng or random).random
        values = sample.channel_values()
        jitter: dict[str, Callable[[], float]] = {
            "cpu": lambda: r() * 10 - 5,
            "memory": lambda: r() * 10 - 5,
            "storage": lambda: r() * 10 - 5,
            "network": lambda: r() * 5,
            "database": lambda: r() * 20 - 10,
            "application": lambda: r() * 30 - 15,
            "security": lambda: r() * 2,
        }
        for name in CHANNELS:
            buffer = self.buffers[name]
            buffer.clear()
            for i in range(SEED_POINTS):
                timestamp = now - (SEED_POINTS - i) * 1000
                buffer.append(ChartPoint(timestamp, values[name] + jitter[name]()))

    def __getitem__(self, channel: str) -> RingBuffer:
        return self.buffers[channel]


def render_chart(points: RingBuffer | list[ChartPoint]) -> Optional[list[tuple[float, float]]]:
    """Projects a buffer onto a 100x100 viewport, normalised on its own min/max.

    Returns None for an empty buffer (the chart shows a loading placeholder).
    Higher values have smaller y, as in screen coordinates. A flat series uses
    a range of 1 and sits on the bottom edge.
    """
    values = [p.value for p in points]
    if not values:
        return None

    lo, hi = min(values), max(values)
    span = (hi - lo) or 1
    last = len(values) - 1
    coords = []
    for index, value in enumerate(values):
        x = index / last * 100 if last else 0.0
        y = 100 - (value - lo) / span * 100
        coords.append((x, y))
    return coords


def polyline_points(coords: list[tuple[float, float]]) -> str:
    """`x,y x,y ...` as used by an SVG polyline."""
    return " ".join(f"{x:g},{y:g}" for x, y in coords)


def sparkline(points: RingBuffer | list[ChartPoint], width: int = 60) -> str:
    """Text rendering of a buffer for the terminal monitor."""
    coords = render_chart(points)
    if coords is None:
        return "Loading chart data..."
    blocks = " ▁▂▃▄▅▆▇█"
    chars = []
    for _, y in coords[-width:]:
        level = round((100 - y) / 100 * (len(blocks) - 1))
        chars.append(blocks[level])
    return "".join(chars)


class MetricsMonitor:
    """Drives sampling on the running event loop.

    At most one ticker task exists: `start()` cancels the current one before
    creating another, and `stop()` cancels and awaits it. Used as an async
    context manager the ticker is always stopped on exit.
    """

    def __init__(
        self,
        sampler: Optional[Sampler] = None,
        chart: Optional[MetricsChart] = None,
        interval: float = 1.0,
        on_sample: Optional[Callable[[SystemMetricsSample], None]] = None,
    ):
        self.sampler = sampler or SimulatedSampler()
        self.chart = chart or MetricsChart()
        self.interval = interval
        self.on_sample = on_sample
        self.latest: Optional[SystemMetricsSample] = None
        self._task: Optional[asyncio.Task] = None

    @property
    def is_running(self) -> bool:
        return self._task is not None and not self._task.done()

    def start(self):
        if self._task is not None:
            self._task.cancel()
        self._task = asyncio.create_task(self._run())
        logger.info(f"System monitoring started (every {self.interval}s).")

    async def stop(self):
        task, self._task = self._task, None
        if task is None:
            return
        task.cancel()
        try:
            await task
        except asyncio.CancelledError:
            pass
        logger.info("System monitoring stopped.")

    def tick(self) -> SystemMetricsSample:
        """Takes one sample and records it on every channel."""
        sample = self.sampler.sample()
        self.latest = sample
        self.chart.record(sample)
        if self.on_sample is not None:
            self.on_sample(sample)
        return sample

    async def _run(self):
        while True:
            await asyncio.sleep(self.interval)
            self.tick()

    async def __aenter__(self) -> "MetricsMonitor":
        self.start()
        return self

    async def __aexit__(self, exc_type, exc, tb):
        await self.stop()
