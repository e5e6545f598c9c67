from __future__ import annotations

import logging
import os
import secrets

logger = logging.getLogger(__name__)

TOKEN_BYTES = 16  # 32 hex chars


def _terminate() -> None:
    os._exit(70)


def new_token() -> str:
    """
    Capability token: 128 bits from the OS CSPRNG as lowercase hex.

    There is no fallback source. If the OS cannot provide secure randomness
    the process is terminated.
    """
    try:
        return secrets.token_hex(TOKEN_BYTES)
    except (NotImplementedError, OSError):
        logger.critical("Secure random source unavailable; terminating.")
        _terminate()
        raise
