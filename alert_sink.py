"""
Ordered queue of user-facing notifications for one import cycle.
"""

import enum
import logging
from dataclasses import dataclass
from typing import Iterator, List

logger = logging.getLogger(__name__)


class AlertLevel(enum.Enum):
    """Severity of an alert; values match the page's alert styles."""
    INFO = "info"
    SUCCESS = "success"
    DANGER = "danger"


_LOG_LEVELS = {
    AlertLevel.INFO: logging.INFO,
    AlertLevel.SUCCESS: logging.INFO,
    AlertLevel.DANGER: logging.ERROR,
}


@dataclass(frozen=True)
class Alert:
    message: str
    level: AlertLevel = AlertLevel.INFO


class AlertSink:
    """
    Append-only alert sequence.

    Alerts are kept in push order and are only dropped by ``clear()``, which
    the tracker calls when a new submission starts. Identical consecutive
    alerts are kept as-is.
    """

    def __init__(self) -> None:
        self._alerts: List[Alert] = []

    def push(self, alert: Alert) -> None:
        self._alerts.append(alert)
        logger.log(_LOG_LEVELS[alert.level], f"[{alert.level.value}] {alert.message}")

    def info(self, message: str) -> None:
        self.push(Alert(message, AlertLevel.INFO))

    def success(self, message: str) -> None:
        self.push(Alert(message, AlertLevel.SUCCESS))

    def danger(self, message: str) -> None:
        self.push(Alert(message, AlertLevel.DANGER))

    def clear(self) -> None:
        self._alerts.clear()

    def all(self) -> List[Alert]:
        """Return a copy of the alerts in push order."""
        return list(self._alerts)

    def __len__(self) -> int:
        return len(self._alerts)

    def __iter__(self) -> Iterator[Alert]:
        return iter(self.all())
