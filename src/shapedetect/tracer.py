"""
Hierarchical runtime tracing for shapedetect.

Detection runs are followed stage by stage through nested spans with timing.
Span depth is kept per thread, so contour workers running in a thread pool
nest under their own spans and are tagged with their thread name.
"""

import functools
import hashlib
import json
import sys
import threading
import time
from contextlib import contextmanager
from datetime import datetime

from shapedetect.config import TracingConfig


class Tracer:
    """
    Hierarchical tracer for structured detection logging.

    Settings come from a TracingConfig. Lines go to stderr and, when a file
    path is configured, to that file; JSON records follow each text line when
    json_output is set.
    """

    LEVELS = {"ERROR": 0, "WARN": 1, "INFO": 2, "DEBUG": 3}

    def __init__(self):
        self.settings = TracingConfig()
        self._handle = None
        self._local = threading.local()
        self._lock = threading.Lock()

    @property
    def enabled(self):
        return self.settings.enabled

    def configure(self, settings):
        """Apply new settings, reopening the trace file if needed."""
        self.close()
        self.settings = settings
        if settings.enabled and settings.file_path:
            self._handle = open(settings.file_path, "w", encoding="utf-8")

    def close(self):
        """Close the trace file if one is open."""
        with self._lock:
            if self._handle:
                self._handle.close()
                self._handle = None

    def _stack(self):
        stack = getattr(self._local, "stack", None)
        if stack is None:
            stack = []
            self._local.stack = stack
        return stack

    def _should_log(self, level):
        if not self.settings.enabled:
            return False
        threshold = self.LEVELS.get(self.settings.level.upper(), 2)
        return self.LEVELS.get(level, 2) <= threshold

    def _emit(self, level, module, func, message, meta=None):
        if not self._should_log(level):
            return

        now = datetime.now()
        record = {
            "timestamp": now.strftime("%H:%M:%S.") + f"{now.microsecond // 1000:03d}",
            "level": level,
            "depth": len(self._stack()),
            "thread": threading.current_thread().name,
            "module": module,
            "function": func,
            "message": message,
        }

        location = f"{module}:{func}" if func else module
        line = f"{record['timestamp']} {level:<5} {'  ' * record['depth']}{location}  {message}"
        if record["thread"] != "MainThread":
            line += f"  [{record['thread']}]"

        lines = [line]
        if self.settings.json_output:
            record["meta"] = {k: summarize(v) for k, v in (meta or {}).items()}
            lines.append(json.dumps(record))

        with self._lock:
            for text in lines:
                print(text, file=sys.stderr)
                if self._handle:
                    self._handle.write(text + "\n")
            if self._handle:
                self._handle.flush()

    @contextmanager
    def span(self, name, module="", **meta):
        """
        Context manager for a traced span.

        Logs start and end with elapsed milliseconds. Exceptions are logged
        at ERROR and re-raised.
        """
        if not self.settings.enabled:
            yield
            return

        details = " ".join(f"{k}={summarize(v)}" for k, v in meta.items())
        self._emit("INFO", module, name, f"start {details}".strip(), meta)

        stack = self._stack()
        stack.append((module, name))
        start = time.perf_counter()
        try:
            yield
        except Exception as e:
            stack.pop()
            elapsed = (time.perf_counter() - start) * 1000
            self._emit("ERROR", module, name, f"failed dt={elapsed:.0f}ms error={type(e).__name__}: {str(e)[:100]}")
            raise
        stack.pop()
        elapsed = (time.perf_counter() - start) * 1000
        self._emit("INFO", module, name, f"end ok dt={elapsed:.0f}ms")

    def event(self, message, level="INFO", **meta):
        """Log a one-off event attributed to the innermost open span."""
        if not self._should_log(level):
            return

        stack = self._stack()
        module, func = stack[-1] if stack else ("", "")
        details = " ".join(f"{k}={summarize(v)}" for k, v in meta.items())
        self._emit(level, module, func, f"{message} {details}".strip(), meta)


def summarize(obj, max_len=200):
    """
    Summarize an object for logging.

    Returns a compact string that never exceeds max_len chars. Rasters,
    contours and detection candidates get short domain-specific forms.
    """
    try:
        result = _describe(obj)
    except Exception:
        result = f"<{type(obj).__name__}>"
    if len(result) > max_len:
        return result[:max_len - 3] + "..."
    return result


def _describe(obj):
    import numpy as np

    from shapedetect.models import CircleCandidate, RectangleCandidate

    if obj is None:
        return "None"

    type_name = type(obj).__name__

    if isinstance(obj, np.ndarray):
        # (N, 2) integer arrays are contours
        if obj.ndim == 2 and obj.shape[1] == 2 and obj.dtype.kind in "iu":
            return f"contour(n={obj.shape[0]})"
        shape = "x".join(str(s) for s in obj.shape)
        if obj.ndim == 2 and obj.dtype == np.uint8:
            return f"raster({obj.dtype},{shape},fg={int(np.count_nonzero(obj))})"
        digest = hashlib.md5(obj.tobytes() if 0 < obj.size < 1000 else shape.encode()).hexdigest()[:8]
        return f"ndarray({obj.dtype},{shape},h={digest})"

    if isinstance(obj, RectangleCandidate):
        return f"rect(c={obj.center.as_tuple()},{obj.width}x{obj.height},a={obj.angle:.3f})"

    if isinstance(obj, CircleCandidate):
        return f"circle(c={obj.center.as_tuple()},r={obj.radius},conf={obj.confidence:.2f})"

    if hasattr(obj, "model_dump"):
        items = list(obj.model_dump().items())[:4]
        return f"{type_name}(" + ",".join(f"{k}={v}" for k, v in items) + ")"

    if hasattr(obj, "__dataclass_fields__"):
        return f"{type_name}(fields={list(obj.__dataclass_fields__)[:4]}...)"

    if isinstance(obj, str):
        if len(obj) > 50:
            return f"str(len={len(obj)},h={hashlib.md5(obj.encode()).hexdigest()[:8]})"
        return repr(obj)

    if isinstance(obj, (list, tuple)):
        if not obj:
            return f"{type_name}(len=0)"
        return f"{type_name}(len={len(obj)},first={type(obj[0]).__name__})"

    if isinstance(obj, dict):
        keys = ",".join(str(k) for k in list(obj)[:5])
        return f"dict(len={len(obj)},keys=[{keys}])"

    if isinstance(obj, float):
        return f"{obj:.4g}"

    if isinstance(obj, int):
        return str(obj)

    return f"<{type_name}>"


def trace(label=None, arg_names=None):
    """
    Decorator to trace function execution.

    Wraps a function in a span named after label (or the function). Keyword
    arguments listed in arg_names are summarized into the start line.
    """
    def decorator(func):
        module = func.__module__.rsplit(".", 1)[-1] if func.__module__ else ""
        name = label or func.__name__

        @functools.wraps(func)
        def wrapper(*args, **kwargs):
            if not _tracer.enabled:
                return func(*args, **kwargs)

            meta = {k: kwargs[k] for k in (arg_names or ()) if k in kwargs}
            with _tracer.span(name, module=module, **meta):
                return func(*args, **kwargs)

        return wrapper
    return decorator


_tracer = Tracer()


def get_tracer():
    """Get the global tracer instance."""
    return _tracer


def configure_tracer(enabled=False, level="INFO", file_path=None, json_output=False):
    """Configure the global tracer."""
    _tracer.configure(TracingConfig(
        enabled=enabled,
        level=level.upper(),
        file_path=file_path,
        json_output=json_output,
    ))
