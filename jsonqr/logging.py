"""jsonqr structured logging: audit events, warning side-channel and call tracing.

Every structured record carries an ``event`` tag and a ``ctx`` dict; traced
calls add ``duration_ms``. The library only emits records. Handlers are
installed by entry points through :func:`setup_logging`.
"""

import functools
import json
import logging
import time
import traceback
from datetime import datetime, timezone

ROOT_LOGGER = "jsonqr"

# Between WARNING (30) and ERROR (40)
AUDIT = 35
logging.addLevelName(AUDIT, "AUDIT")


def _truncate(value: object, max_len: int = 80) -> str:
    s = str(value)
    return s if len(s) <= max_len else s[:max_len] + "..."


def _summarize(value: object) -> str:
    """Short, image-safe description of an argument or return value."""
    kind = type(value).__name__
    if isinstance(value, (bytes, bytearray, list, tuple)):
        return f"{kind}[{len(value)}]"
    if isinstance(value, dict):
        return f"dict[{len(value)} keys]"
    if isinstance(value, (str, int, float, bool)) or value is None:
        return _truncate(repr(value))
    return f"<{kind}>"


def _structured(record: logging.LogRecord) -> dict:
    """The event/duration/ctx/msg fields shared by both formatters."""
    fields = {}
    event = getattr(record, "event", None)
    if event is not None:
        fields["event"] = event
    if hasattr(record, "duration_ms"):
        fields["duration_ms"] = round(record.duration_ms, 2)
    if getattr(record, "ctx", None):
        fields["ctx"] = record.ctx
    elif event is None and record.getMessage():
        fields["msg"] = record.getMessage()
    return fields


def _traceback(record: logging.LogRecord) -> str | None:
    if record.exc_info and record.exc_info[1]:
        return "".join(traceback.format_exception(*record.exc_info))
    return None


class JsonFormatter(logging.Formatter):
    """One JSON object per line."""

    def format(self, record):
        ts = datetime.fromtimestamp(record.created, tz=timezone.utc)
        entry = {
            "ts": ts.isoformat(timespec="milliseconds").replace("+00:00", "Z"),
            "level": record.levelname,
            "src": record.name,
            **_structured(record),
        }
        tb = _traceback(record)
        if tb:
            entry["traceback"] = tb.splitlines()
        return json.dumps(entry, default=str)


class ConsoleFormatter(logging.Formatter):
    """Colored single-line output for terminals."""

    COLORS = {
        "DEBUG": "\033[36m",
        "INFO": "\033[32m",
        "AUDIT": "\033[35m",
        "WARNING": "\033[33m",
        "ERROR": "\033[31m",
    }
    RESET = "\033[0m"

    def format(self, record):
        ts = datetime.fromtimestamp(record.created, tz=timezone.utc)
        color = self.COLORS.get(record.levelname, "")
        line = [ts.strftime("%H:%M:%S"), f"{color}{record.levelname:7s}{self.RESET}", record.name]

        fields = _structured(record)
        if "event" in fields:
            line.append(fields["event"])
        if "duration_ms" in fields:
            line.append(f"{fields['duration_ms']:.1f}ms")
        line.extend(f"{k}={_truncate(v)}" for k, v in fields.get("ctx", {}).items())
        if "msg" in fields:
            line.append(fields["msg"])

        text = " ".join(line)
        tb = _traceback(record)
        return f"{text}\n{tb}" if tb else text


def setup_logging(level: str = "INFO", log_file: str | None = None, json_format: bool = False):
    """Install handlers on the ``jsonqr`` logger, replacing any from an earlier call.

    Args:
        level: DEBUG, INFO, AUDIT, WARNING or ERROR.
        log_file: Also write JSON lines to this path.
        json_format: Use JSON lines on the console as well.
    """
    root = logging.getLogger(ROOT_LOGGER)
    resolved = logging.getLevelName(level.upper())
    root.setLevel(resolved if isinstance(resolved, int) else logging.INFO)
    for handler in root.handlers:
        handler.close()
    root.handlers.clear()

    console = logging.StreamHandler()
    console.setFormatter(JsonFormatter() if json_format else ConsoleFormatter())
    root.addHandler(console)

    if log_file:
        file_handler = logging.FileHandler(log_file)
        file_handler.setFormatter(JsonFormatter())
        root.addHandler(file_handler)


def get_logger(module_name: str) -> logging.Logger:
    return logging.getLogger(f"{ROOT_LOGGER}.{module_name}")


def _emit(log: logging.Logger, level: int, event: str, ctx: dict,
          duration_ms: float | None = None, exc_info=None):
    if not log.isEnabledFor(level):
        return
    record = log.makeRecord(log.name, level, "", 0, "", (), exc_info)
    record.event = event
    record.ctx = ctx
    if duration_ms is not None:
        record.duration_ms = duration_ms
    log.handle(record)


def audit(event: str, logger: logging.Logger | None = None, **context):
    """Emit an AUDIT-level structured entry such as ``qr.generated``."""
    _emit(logger or logging.getLogger(ROOT_LOGGER), AUDIT, event, context)


def warn(event: str, logger: logging.Logger | None = None, **context):
    """Emit a WARNING-level structured entry for a non-fatal degradation.

    Callers capture or silence these through ordinary logging configuration
    of the ``jsonqr`` logger.
    """
    _emit(logger or logging.getLogger(ROOT_LOGGER), logging.WARNING, event, context)


def trace(func=None, *, logger_name: str | None = None, expected: tuple = ()):
    """Log a call's entry (DEBUG), completion with timing (INFO) and failure.

    Failures are re-raised. Exceptions listed in ``expected`` are ordinary
    outcomes for the caller to report, so they are logged at DEBUG without a
    traceback; anything else is logged at ERROR with one.
    """
    def decorator(fn):
        log = get_logger(logger_name or fn.__module__.removeprefix(f"{ROOT_LOGGER}."))
        name = fn.__qualname__

        @functools.wraps(fn)
        def wrapper(*args, **kwargs):
            if log.isEnabledFor(logging.DEBUG):
                _emit(log, logging.DEBUG, f"{name}.enter", {
                    "args": [_summarize(a) for a in args],
                    "kwargs": {k: _summarize(v) for k, v in kwargs.items()},
                })

            start = time.perf_counter()
            try:
                result = fn(*args, **kwargs)
            except expected as e:
                _emit(log, logging.DEBUG, f"{name}.rejected",
                      {"error": type(e).__name__, "message": _truncate(e)},
                      duration_ms=(time.perf_counter() - start) * 1000)
                raise
            except Exception as e:
                _emit(log, logging.ERROR, f"{name}.error", {"error": type(e).__name__},
                      duration_ms=(time.perf_counter() - start) * 1000,
                      exc_info=(type(e), e, e.__traceback__))
                raise

            _emit(log, logging.INFO, f"{name}.done", {"result": _summarize(result)},
                  duration_ms=(time.perf_counter() - start) * 1000)
            return result

        return wrapper

    if func is not None:
        return decorator(func)
    return decorator
