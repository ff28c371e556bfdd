"""
Restarter - keep a single long-running process alive.

Launches a child process, periodically checks its health (HTTP probe,
health-check command, or plain liveness) and restarts it when unhealthy,
up to a configurable retry budget.
"""

__version__ = "0.1.0"
__author__ = "Philip Orange <git@philiporange.com>"
