"""
Supervisor for a single child process.

Spawns the configured command, probes its health every check interval and
restarts it when a probe fails. Consecutive restarts are bounded by
max_retries (-1 for unlimited); a healthy probe resets the count. The
interval wait is cut short by stop(), after which no further restart is
attempted.
"""

import asyncio
import logging
import subprocess
from typing import Optional

import httpx

from .config import Config, config as default_config
from .health import check_command, check_http, check_process
from .models import HealthCheckKind, SupervisionConfig, SupervisorState

logger = logging.getLogger(__name__)


class SupervisorError(Exception):
    """Base class for errors that end supervision."""


class SpawnError(SupervisorError):
    """The child process could not be started."""


class MaxRetriesReached(SupervisorError):
    """The retry budget is exhausted; the supervisor gave up."""

    def __init__(self, max_retries: int):
        super().__init__(f"Max retries reached ({max_retries})")
        self.max_retries = max_retries


class Supervisor:
    """Owns one child process and drives the health-check/restart loop."""

    def __init__(
        self,
        supervision: SupervisionConfig,
        settings: Optional[Config] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        self.supervision = supervision
        self.settings = settings or default_config
        self._transport = transport
        self._process: Optional[subprocess.Popen] = None
        self._retry_count = 0
        self._state = SupervisorState.IDLE
        self._cancel = asyncio.Event()
        self._lock = asyncio.Lock()

    @property
    def state(self) -> SupervisorState:
        return self._state

    @property
    def retry_count(self) -> int:
        return self._retry_count

    @property
    def pid(self) -> Optional[int]:
        return self._process.pid if self._process else None

    @property
    def cancelled(self) -> bool:
        return self._cancel.is_set()

    async def start(self):
        """Spawn the child and supervise it until stopped or out of retries.

        Raises SpawnError if the command cannot be started and
        MaxRetriesReached when the retry budget runs out. Returns normally
        after stop().
        """
        if self.cancelled:
            logger.info("Supervisor already stopped, not starting")
            return

        async with self._lock:
            await self.start_process()
        self._state = SupervisorState.RUNNING
        await self.monitor()

    async def start_process(self):
        """Spawn the command, inheriting our stdout/stderr.

        Callers must hold the lock and have killed any previous child.
        """
        argv = list(self.supervision.command)
        try:
            self._process = subprocess.Popen(argv)
        except OSError as e:
            raise SpawnError(f"Failed to start {argv[0]}: {e}") from e

        logger.info(f"Started {' '.join(argv)} with PID {self._process.pid}")

        # Give the process a moment before the first probe can race it
        await asyncio.sleep(self.settings.startup_grace_seconds)

    async def check_health(self) -> bool:
        """Run the configured probe. Never raises."""
        kind = self.supervision.health_check_kind
        try:
            if kind is HealthCheckKind.HTTP:
                return await check_http(
                    self.supervision.health_check_url,
                    self.supervision.expected_status_codes,
                    timeout=self.settings.http_timeout,
                    transport=self._transport,
                )
            if kind is HealthCheckKind.COMMAND:
                return await check_command(self.supervision.health_check_command)
            return check_process(self._process)
        except Exception as e:
            logger.error(f"Unexpected error during {kind.value} health check: {e}")
            return False

    async def stop(self):
        """Cancel supervision and kill the child. Safe to call repeatedly."""
        if not self._cancel.is_set():
            logger.info("Stopping supervisor")
        self._cancel.set()

        async with self._lock:
            await self._kill_process()
            if self._state is not SupervisorState.FAILED:
                self._state = SupervisorState.STOPPED

    async def monitor(self):
        """Health-check loop. Returns on stop(), raises MaxRetriesReached."""
        while True:
            if await self._wait_cancelled(self.supervision.check_interval_seconds):
                return

            self._state = SupervisorState.PROBING
            healthy = await self.check_health()

            if self.cancelled:
                return

            if healthy:
                self._retry_count = 0
                self._state = SupervisorState.RUNNING
                continue

            logger.warning("Health check failed")

            if not self.supervision.unlimited_retries and self._retry_count >= self.supervision.max_retries:
                logger.error("Max retries reached. Exiting...")
                self._state = SupervisorState.FAILED
                await self.stop()
                raise MaxRetriesReached(self.supervision.max_retries)

            self._retry_count += 1
            limit = "∞" if self.supervision.unlimited_retries else self.supervision.max_retries
            logger.info(f"Attempting restart ({self._retry_count}/{limit})")

            self._state = SupervisorState.RESTARTING
            async with self._lock:
                # stop() may have landed while we waited for the lock
                if self.cancelled:
                    return
                await self._kill_process()
                await self.start_process()
            self._state = SupervisorState.RUNNING

    async def _wait_cancelled(self, timeout: float) -> bool:
        """Wait up to `timeout` seconds, returning early if stop() is called.

        Returns True if supervision has been cancelled.
        """
        if self._cancel.is_set():
            return True
        try:
            await asyncio.wait_for(self._cancel.wait(), timeout)
        except asyncio.TimeoutError:
            pass
        return self._cancel.is_set()

    async def _kill_process(self):
        """Terminate the current child, escalating to SIGKILL. Errors are swallowed."""
        process = self._process
        if process is None or process.poll() is not None:
            return

        try:
            process.terminate()
        except OSError:
            return

        try:
            await asyncio.to_thread(process.wait, timeout=self.settings.kill_timeout)
        except subprocess.TimeoutExpired:
            logger.warning(f"PID {process.pid} did not stop gracefully, forcing kill")
            try:
                process.kill()
                await asyncio.to_thread(process.wait, timeout=5)
            except (OSError, subprocess.TimeoutExpired):
                pass
