"""Shared logging helpers for the operator."""

from __future__ import annotations

import logging

_NOISY_LOGGERS = ("kubernetes.client.rest", "urllib3.connectionpool")


def configure_logging(*, level: int = logging.INFO, force: bool = False) -> None:
    """Initialise the root logger once with sensible defaults.

    Parameters mirror ``logging.basicConfig`` with a simplified contract: we default
    to INFO level and a terse format suitable for container output. Pass
    ``force=True`` to reconfigure during tests or specialised entry points.

    The Kubernetes client logs every request at DEBUG; those loggers are capped at
    INFO so ``--verbose`` shows reconcile decisions rather than wire traffic.
    """

    logging.basicConfig(
        level=level,
        format="%(asctime)s %(levelname)s [%(name)s] %(message)s",
        datefmt="%H:%M:%S",
        force=force,
    )
    for name in _NOISY_LOGGERS:
        logging.getLogger(name).setLevel(max(level, logging.INFO))
