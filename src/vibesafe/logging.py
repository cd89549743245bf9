from __future__ import annotations

import json
import sys
import threading
import time
from contextlib import contextmanager
from datetime import datetime, timezone
from typing import Any, Dict, Iterator, Mapping, Optional, TextIO

LEVELS = {"debug": 10, "info": 20, "warning": 30, "error": 40}
SENSITIVE_KEY_PARTS = ("token", "secret", "password", "api_key", "apikey")
REDACTED = "***"


def is_sensitive_key(key: str) -> bool:
    lowered = key.lower()
    return any(part in lowered for part in SENSITIVE_KEY_PARTS)


def redact(fields: Mapping[str, Any]) -> Dict[str, Any]:
    """Replace values of sensitive-looking keys, descending into nested mappings."""
    cleaned: Dict[str, Any] = {}
    for key, value in fields.items():
        if is_sensitive_key(key):
            cleaned[key] = REDACTED
        elif isinstance(value, Mapping):
            cleaned[key] = redact(value)
        else:
            cleaned[key] = value
    return cleaned


class ScanLogger:
    """JSON-lines logger for scan runs.

    Every record carries the run id plus any fields bound with ``bind``.
    File scans log from worker threads, so writes are serialized.
    """

    def __init__(
        self,
        run_id: str,
        *,
        stream: Optional[TextIO] = None,
        level: str = "debug",
        context: Optional[Mapping[str, Any]] = None,
        _lock: Optional[threading.Lock] = None,
    ):
        if level not in LEVELS:
            raise ValueError(f"Unknown log level: {level}")
        self.run_id = run_id
        self.level = level
        self.context: Dict[str, Any] = dict(context or {})
        self._stream = stream
        self._lock = _lock or threading.Lock()

    def bind(self, **context: Any) -> "ScanLogger":
        """Child logger sharing this one's stream, adding ``context`` to every record."""
        return ScanLogger(
            self.run_id,
            stream=self._stream,
            level=self.level,
            context={**self.context, **context},
            _lock=self._lock,
        )

    def debug(self, message: str, **kwargs: Any) -> None:
        self._emit("debug", message, **kwargs)

    def info(self, message: str, **kwargs: Any) -> None:
        self._emit("info", message, **kwargs)

    def warning(self, message: str, **kwargs: Any) -> None:
        self._emit("warning", message, **kwargs)

    def error(self, message: str, **kwargs: Any) -> None:
        self._emit("error", message, **kwargs)

    @contextmanager
    def stage(self, name: str) -> Iterator[None]:
        """Log ``stage_start``/``stage_end`` around a block, with its wall time."""
        started = time.perf_counter()
        self.info("stage_start", stage=name)
        status = "ok"
        try:
            yield
        except Exception as exc:
            status = "error"
            self.error("stage_error", stage=name, error=f"{type(exc).__name__}: {exc}")
            raise
        finally:
            elapsed_ms = int((time.perf_counter() - started) * 1000)
            self.info("stage_end", stage=name, duration_ms=elapsed_ms, status=status)

    def _emit(self, level: str, message: str, **kwargs: Any) -> None:
        if LEVELS[level] < LEVELS[self.level]:
            return
        record: Dict[str, Any] = {
            "timestamp": datetime.now(timezone.utc).isoformat(),
            "level": level,
            "run_id": self.run_id,
            "message": message,
        }
        record.update(redact({**self.context, **kwargs}))
        line = json.dumps(record, ensure_ascii=False, default=str)

        stream = self._stream or sys.stderr
        with self._lock:
            stream.write(line + "\n")
            stream.flush()


class NullLogger(ScanLogger):
    """Discards every record."""

    def __init__(self) -> None:
        super().__init__("null")

    def bind(self, **context: Any) -> "ScanLogger":
        return self

    def _emit(self, level: str, message: str, **kwargs: Any) -> None:
        return None
