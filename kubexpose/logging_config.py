"""
Logging configuration with optional suppression of per-tick poll logs
"""

import logging
import logging.config
import os
from typing import Any, Dict, Optional


class PollTickFilter(logging.Filter):
    """Filter to suppress the per-tick records emitted while polling."""

    def __init__(self, show_ticks: bool = False):
        super().__init__()
        self.show_ticks = show_ticks

    def filter(self, record: logging.LogRecord) -> bool:
        """Drop records tagged as poll ticks unless ticks are enabled."""
        if getattr(record, "poll_tick", False):
            return self.show_ticks
        return True


def get_logging_config(level: Optional[str] = None) -> Dict[str, Any]:
    """Get logging configuration with poll tick suppression."""
    level = (level or os.environ.get("LOG_LEVEL", "INFO")).upper()
    show_ticks = os.environ.get("KUBEXPOSE_LOG_POLL_TICKS", "false").lower() == "true"

    return {
        "version": 1,
        "disable_existing_loggers": False,
        "filters": {
            "poll_tick_filter": {
                "()": PollTickFilter,
                "show_ticks": show_ticks,
            }
        },
        "formatters": {
            "default": {
                "format": "%(asctime)s - %(name)s - %(levelname)s - %(message)s"
            }
        },
        "handlers": {
            "default": {
                "class": "logging.StreamHandler",
                "formatter": "default",
                "stream": "ext://sys.stdout"
            },
            "poller": {
                "class": "logging.StreamHandler",
                "formatter": "default",
                "stream": "ext://sys.stdout",
                "filters": ["poll_tick_filter"]  # Apply filter to tick logs
            }
        },
        "loggers": {
            "kubexpose": {
                "handlers": ["default"],
                "level": level,
                "propagate": False
            },
            "kubexpose.poller": {
                "handlers": ["poller"],
                "level": level,
                "propagate": False
            }
        },
        "root": {
            "level": level,
            "handlers": ["default"]
        }
    }


def configure_logging(level: Optional[str] = None) -> None:
    """Apply the kubexpose logging configuration."""
    logging.config.dictConfig(get_logging_config(level))
