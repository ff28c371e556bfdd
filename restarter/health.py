"""
Health check strategies.

Each probe returns a plain boolean verdict and never raises: transport
errors, non-matching statuses, failing commands and dead processes all
count as unhealthy.
"""

import asyncio
import logging
import subprocess
from typing import Optional

import httpx

logger = logging.getLogger(__name__)


def status_is_healthy(status_code: int, expected: Optional[frozenset[int]] = None) -> bool:
    """An explicit set of codes replaces the default 2xx rule entirely."""
    if expected is not None:
        return status_code in expected
    return 200 <= status_code <= 299


async def check_http(
    url: str,
    expected: Optional[frozenset[int]] = None,
    timeout: float = 10.0,
    transport: Optional[httpx.AsyncBaseTransport] = None,
) -> bool:
    """Issue a single GET to `url` and judge the response status."""
    try:
        async with httpx.AsyncClient(timeout=timeout, transport=transport) as client:
            # Streamed so the body is never read; leaving the block releases it
            async with client.stream("GET", url) as response:
                healthy = status_is_healthy(response.status_code, expected)
                if not healthy:
                    logger.warning(f"Health check {url} returned {response.status_code}")
                return healthy
    except (httpx.HTTPError, httpx.InvalidURL) as e:
        logger.warning(f"Health check {url} failed: {e}")
        return False


async def check_command(argv: tuple[str, ...]) -> bool:
    """Run a health-check command; healthy iff it exits 0."""
    try:
        result = await asyncio.to_thread(
            subprocess.run,
            list(argv),
            stdout=subprocess.DEVNULL,
            stderr=subprocess.DEVNULL,
        )
    except OSError as e:
        logger.warning(f"Could not run health check command {argv[0]}: {e}")
        return False

    if result.returncode != 0:
        logger.warning(f"Health check command exited with {result.returncode}")
    return result.returncode == 0


def check_process(process: Optional[subprocess.Popen]) -> bool:
    """Non-blocking liveness check of a spawned process."""
    if process is None:
        return False
    return process.poll() is None
