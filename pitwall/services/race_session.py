"""
Race session: owns one simulation, its viewers and its start/stop/reset
lifecycle, and fans each tick's snapshot out to every viewer.
"""
import asyncio
import contextlib
import random
import time
from typing import Any, Callable, Protocol

from pitwall.core.logging import get_logger
from pitwall.schemas.race import (
    DriverProfile,
    PlayerInfo,
    RaceConfig,
    RaceSnapshot,
    SessionMessage,
    WeatherInfo,
)
from pitwall.services.engineer_service import race_start_commentary
from pitwall.services.leaderboard import OvertakeDetector, build_leaderboard
from pitwall.services.llm_client import LLMClient
from pitwall.services.race_setup import build_session_message
from pitwall.services.simulation import RaceSimulation

logger = get_logger(__name__)


class Observer(Protocol):
    """Anything that accepts JSON pushes, e.g. a Starlette WebSocket."""

    async def send_json(self, data: Any) -> None:
        ...


class RaceSession:
    """
    One race instance.

    Ticks run on a single asyncio task under a per-session lock, so driver
    state has exactly one writer and ticks never overlap. The latest snapshot
    is an immutable model replaced by reference after each tick; readers get
    either the previous or the new one, never a mix.

    Args:
        session_id: Registry key of this session
        config: Race configuration
        profiles: Driver profiles in any order
        player: The player-controlled driver
        llm_client: Used for race start commentary; None disables it
        weather: Conditions reported in the session descriptor
        rng: Random source for the simulation
        clock: Monotonic clock in seconds
        commentary_timeout: Upper bound for the commentary request
    """

    def __init__(
        self,
        session_id: str,
        config: RaceConfig,
        profiles: list[DriverProfile],
        player: PlayerInfo,
        llm_client: LLMClient | None = None,
        weather: WeatherInfo | None = None,
        rng: random.Random | None = None,
        clock: Callable[[], float] = time.monotonic,
        commentary_timeout: float | None = None,
    ):
        self.session_id = session_id
        self.config = config
        self.player = player
        self.llm_client = llm_client
        self.commentary_timeout = commentary_timeout
        self.simulation = RaceSimulation(
            config, profiles, player.name, player.telemetry_model, rng
        )
        self.session_message: SessionMessage = build_session_message(
            config, self.simulation.profiles, player, weather
        )
        self.overtakes = OvertakeDetector()
        self.observers: set[Observer] = set()
        self.latest_snapshot: RaceSnapshot | None = None
        self.commentary: str | None = None
        self.race_time = 0.0

        self._clock = clock
        self._race_start = 0.0
        self._lock = asyncio.Lock()
        self._task: asyncio.Task | None = None
        self._background: set[asyncio.Task] = set()

    def __repr__(self) -> str:
        return f"<RaceSession(id={self.session_id!r}, running={self.running}, viewers={len(self.observers)})>"

    @property
    def running(self) -> bool:
        return self._task is not None and not self._task.done()

    # === Lifecycle ===

    async def start(self) -> bool:
        """
        Arm the tick timer. No-op when already running.

        A stopped race resumes with its clock where it was left. At the very
        start of a race the commentary request is launched on its own task;
        the first tick never waits for it.

        Returns:
            True if the timer was armed by this call
        """
        if self.running:
            return False

        is_race_start = self.race_time == 0.0
        self._race_start = self._clock() - self.race_time
        self._task = asyncio.create_task(self._run(), name=f"race-{self.session_id}")
        logger.info(f"Session {self.session_id}: race {'started' if is_race_start else 'resumed'}")

        if is_race_start and self.llm_client is not None:
            self._spawn(self._fetch_commentary())
        return True

    async def stop(self) -> bool:
        """
        Disarm the tick timer and keep the race state.

        When this returns no further tick will run.

        Returns:
            True if a running timer was stopped
        """
        task, self._task = self._task, None
        if task is None or task.done():
            return False

        task.cancel()
        # Called from inside a tick (last viewer dropped mid-broadcast):
        # the cancellation lands at the loop's next await.
        if task is not asyncio.current_task():
            with contextlib.suppress(asyncio.CancelledError):
                await task

        logger.info(f"Session {self.session_id}: race stopped at {self.race_time:.2f}s")
        return True

    async def reset(self) -> None:
        """Stop, rebuild every driver from its profile and re-send the session descriptor."""
        await self.stop()
        self._cancel_background()
        async with self._lock:
            self.simulation.reset()
            self.overtakes.reset()
            self.latest_snapshot = None
            self.commentary = None
            self.race_time = 0.0
        logger.info(f"Session {self.session_id}: race reset")
        await self.broadcast(self.session_payload())

    async def close(self) -> None:
        """Tear the session down: stop ticking and drop pending background work."""
        await self.stop()
        self._cancel_background()
        self.observers.clear()

    # === Viewers ===

    async def attach(self, observer: Observer) -> None:
        """Register a viewer and send it the session descriptor right away."""
        self.observers.add(observer)
        logger.info(f"Session {self.session_id}: viewer attached ({len(self.observers)} connected)")
        try:
            await observer.send_json(self.session_payload())
        except Exception as e:
            logger.warning(f"Session {self.session_id}: failed to greet viewer: {e!r}")
            await self.detach(observer)

    async def detach(self, observer: Observer) -> None:
        """Unregister a viewer; the race stops when nobody is watching."""
        if observer not in self.observers:
            return
        self.observers.discard(observer)
        logger.info(f"Session {self.session_id}: viewer detached ({len(self.observers)} connected)")

        if not self.observers and self.running:
            logger.info(f"Session {self.session_id}: no viewers left, stopping")
            await self.stop()

    async def broadcast(self, message: dict) -> None:
        """Best-effort push to every viewer; a failing viewer is detached."""
        failed = []
        for observer in list(self.observers):
            try:
                await observer.send_json(message)
            except Exception as e:
                logger.warning(f"Session {self.session_id}: send failed, dropping viewer: {e!r}")
                failed.append(observer)

        for observer in failed:
            await self.detach(observer)

    def session_payload(self) -> dict:
        return self.session_message.model_dump(mode="json", by_alias=True)

    # === Ticking ===

    async def tick(self) -> RaceSnapshot:
        """
        Advance the race by one step, publish and broadcast the snapshot.

        Returns:
            The new latest snapshot
        """
        async with self._lock:
            self.race_time = self._clock() - self._race_start
            self.simulation.advance(self.race_time)

            leaderboard = build_leaderboard(self.simulation.drivers, self.config)
            snapshot = RaceSnapshot(
                race_time=round(self.race_time, 2),
                leaderboard=leaderboard,
                player_telemetry=self.simulation.player_telemetry(self.race_time),
                overtakes=self.overtakes.detect(leaderboard),
                finished=self.simulation.finished,
            )
            self.latest_snapshot = snapshot

            await self.broadcast(snapshot.model_dump(mode="json", by_alias=True))
        return snapshot

    async def _run(self) -> None:
        period = self.config.tick_period_s
        while True:
            await asyncio.sleep(period)
            try:
                snapshot = await self.tick()
            except Exception as e:
                logger.error(f"Session {self.session_id}: tick failed: {e!r}")
                continue

            if snapshot.finished:
                logger.info(f"Session {self.session_id}: chequered flag at {snapshot.race_time:.2f}s")
                self._task = None
                return

    # === Commentary ===

    def _spawn(self, coro) -> None:
        task = asyncio.create_task(coro)
        self._background.add(task)
        task.add_done_callback(self._background.discard)

    def _cancel_background(self) -> None:
        # A pending commentary belongs to the race that requested it
        for task in list(self._background):
            task.cancel()

    async def _fetch_commentary(self) -> None:
        self.commentary = await race_start_commentary(
            self.simulation.profiles, self.llm_client, timeout=self.commentary_timeout
        )
