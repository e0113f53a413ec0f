from __future__ import annotations

import logging

from cvpilot.config import get_settings

_NOISY_LOGGERS = ("httpx", "httpcore", "openai")

_LOG_CONFIGURED = False


def configure_logging(level: str | None = None) -> None:
    """Configure root logging once; later calls only adjust the level when given one."""
    global _LOG_CONFIGURED
    if _LOG_CONFIGURED:
        if level:
            logging.getLogger().setLevel(_resolve_level(level))
        return

    settings = get_settings()
    logging.basicConfig(
        level=_resolve_level(level or settings.log_level),
        format="%(asctime)s %(levelname)s [%(name)s] %(message)s",
    )
    for name in _NOISY_LOGGERS:
        logging.getLogger(name).setLevel(logging.WARNING)
    _LOG_CONFIGURED = True


def _resolve_level(name: str) -> int:
    return getattr(logging, name.upper(), logging.INFO)
