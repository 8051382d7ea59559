"""Side channel for conversions the destination format cannot represent exactly."""
from __future__ import annotations

import logging
import threading
from typing import Any, Mapping, Protocol

from pydantic import BaseModel, ConfigDict, Field

logger = logging.getLogger(__name__)


class ConversionLogger(Protocol):
    """Anything exposing ``warn(message, context)`` can receive lossy notices."""

    def warn(self, message: str, context: Mapping[str, Any]) -> None:
        ...


class LossyConversionNotice(BaseModel):
    """One recorded lossy conversion."""

    model_config = ConfigDict(frozen=True)

    message: str
    context: dict[str, Any] = Field(default_factory=dict)

    @property
    def step_index(self) -> int | None:
        return self.context.get("step_index")


class LoggingConversionLogger:
    """Forward lossy notices to a standard library logger at WARNING."""

    def __init__(self, target: logging.Logger | None = None) -> None:
        self._logger = target or logger

    def warn(self, message: str, context: Mapping[str, Any]) -> None:
        self._logger.warning("%s | %s", message, dict(context))


class RecordingConversionLogger:
    """Keep every notice in arrival order.

    Appends are guarded by a lock so the same instance can be shared by callers
    converting steps concurrently.
    """

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._notices: list[LossyConversionNotice] = []

    def warn(self, message: str, context: Mapping[str, Any]) -> None:
        notice = LossyConversionNotice(message=message, context=dict(context))
        with self._lock:
            self._notices.append(notice)

    @property
    def notices(self) -> tuple[LossyConversionNotice, ...]:
        with self._lock:
            return tuple(self._notices)

    @property
    def messages(self) -> list[str]:
        return [notice.message for notice in self.notices]

    def __len__(self) -> int:
        with self._lock:
            return len(self._notices)


def report_lossy(
    conversion_logger: ConversionLogger | None, message: str, **context: Any
) -> None:
    """Emit a lossy notice; dropped silently when no logger was injected."""
    if conversion_logger is None:
        return
    conversion_logger.warn(message, context)
