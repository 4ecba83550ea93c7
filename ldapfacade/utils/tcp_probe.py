from __future__ import annotations

import logging
import socket

logger = logging.getLogger(__name__)


def tcp_probe(address: str, port: int, timeout_s: float) -> bool:
    """Fast TCP connect probe (best-effort)."""
    try:
        with socket.create_connection((address, int(port)), timeout=float(timeout_s)):
            return True
    except OSError as e:
        logger.debug("TCP probe %s:%s failed: %s", address, port, e)
        return False
