"""
Console logging for Polyglot Tutor.

Every line carries a wall-clock time, the seconds since startup and a
colored category tag:

    ENV   settings, .env loading, API key status
    API   calls to the model service
    CHAT  conversation sessions and their turns
    UI    navigation and tool state transitions
    TASK  background requests
    OK / WARN / ERR / INFO / DBG   everything else

Usage:
    from polyglot_tutor.logger import logger

    logger.api_call("generate_content (quiz)", model="gpt-4o-mini")
    logger.ui_transition("QuizController: loading", "result-shown")
    logger.task_error("WritingController request #2", str(e), exc_info=True)

Set POLYGLOT_DEBUG=0 to silence it (see config.load_settings).
"""

import sys
import threading
import time
import traceback
from datetime import datetime
from typing import Dict, Optional, TextIO

# Status glyphs (✓ ✗ →) would fail on consoles with a legacy code page
for _stream in (sys.stdout, sys.stderr):
    if hasattr(_stream, "reconfigure"):
        _stream.reconfigure(encoding="utf-8")


class Ansi:
    RESET = "\033[0m"
    BOLD = "\033[1m"
    DIM = "\033[2m"

    RED = "\033[31m"
    GREEN = "\033[32m"
    YELLOW = "\033[33m"
    BLUE = "\033[34m"
    MAGENTA = "\033[35m"
    CYAN = "\033[36m"
    WHITE = "\033[37m"

    BRIGHT_RED = "\033[91m"
    BRIGHT_GREEN = "\033[92m"
    BRIGHT_YELLOW = "\033[93m"
    BRIGHT_BLUE = "\033[94m"
    BRIGHT_CYAN = "\033[96m"


# Default color per category tag
CATEGORY_COLORS: Dict[str, str] = {
    "ENV": Ansi.MAGENTA,
    "API": Ansi.CYAN,
    "CHAT": Ansi.YELLOW,
    "UI": Ansi.BLUE,
    "TASK": Ansi.WHITE,
    "OK": Ansi.BRIGHT_GREEN,
    "WARN": Ansi.BRIGHT_YELLOW,
    "ERR": Ansi.BRIGHT_RED,
    "INFO": Ansi.WHITE,
    "DBG": Ansi.DIM,
}

CHAT_PREVIEW_CHARS = 60


class DebugLogger:
    """
    Categorized, color-coded console logger.

    Requests run on background threads, so writes go through a lock to
    keep multi-line entries from interleaving.
    """

    def __init__(self, enabled: bool = True, stream: Optional[TextIO] = None):
        self.enabled = enabled
        self._stream = stream
        self._started = datetime.now()
        self._lock = threading.Lock()

    @property
    def stream(self) -> TextIO:
        return self._stream or sys.stdout

    def _stamp(self) -> str:
        now = datetime.now()
        uptime = (now - self._started).total_seconds()
        return f"{now:%H:%M:%S}.{now.microsecond // 1000:03d} (+{uptime:>6.1f}s)"

    def _write(self, lines, stream: Optional[TextIO] = None) -> None:
        out = stream or self.stream
        with self._lock:
            for line in lines:
                print(line, file=out, flush=True)

    def _log(self, category: str, message: str, color: Optional[str] = None, exc_info: bool = False) -> None:
        if not self.enabled:
            return

        stamp = self._stamp()
        tag = f"{color or CATEGORY_COLORS[category]}{Ansi.BOLD}[{category:>4}]{Ansi.RESET}"
        indent = f"{Ansi.DIM}{' ' * (len(stamp) + 8)}{Ansi.RESET}"

        first, *rest = message.split("\n")
        lines = [f"{Ansi.DIM}{stamp}{Ansi.RESET} {tag} {first}"]
        lines.extend(f"{indent}{line}" for line in rest)
        self._write(lines)

        if exc_info:
            trace = [line for line in traceback.format_exc().splitlines() if line.strip()]
            self._write([f"{indent}{Ansi.RED}{line}{Ansi.RESET}" for line in trace], stream=sys.stderr)

    # === ENV ===
    def env(self, message: str, **kwargs) -> None:
        self._log("ENV", message, **kwargs)

    def env_success(self, message: str, **kwargs) -> None:
        self._log("ENV", f"✓ {message}", Ansi.GREEN, **kwargs)

    def env_error(self, message: str, **kwargs) -> None:
        self._log("ENV", f"✗ {message}", Ansi.RED, **kwargs)

    # === API ===
    def api_call(self, endpoint: str, model: Optional[str] = None, **kwargs) -> None:
        """Log an outgoing model request."""
        suffix = f" (model: {model})" if model else ""
        self._log("API", f"→ {endpoint}{suffix}", **kwargs)

    def api_response(self, endpoint: str, duration_ms: Optional[float] = None, **kwargs) -> None:
        suffix = f" ({duration_ms:.0f}ms)" if duration_ms else ""
        self._log("API", f"← {endpoint}{suffix}", Ansi.BRIGHT_CYAN, **kwargs)

    def api_error(self, message: str, **kwargs) -> None:
        self._log("API", f"✗ {message}", Ansi.BRIGHT_RED, **kwargs)

    # === CHAT ===
    def chat(self, message: str, **kwargs) -> None:
        self._log("CHAT", message, **kwargs)

    def chat_turn(self, role: str, text: str, **kwargs) -> None:
        """Log one transcript message, shortened for the console."""
        if len(text) > CHAT_PREVIEW_CHARS:
            text = text[:CHAT_PREVIEW_CHARS] + "..."
        self._log("CHAT", f"{role}: \"{text}\"", **kwargs)

    # === UI ===
    def ui(self, message: str, **kwargs) -> None:
        self._log("UI", message, **kwargs)

    def ui_transition(self, from_state: str, to_state: str, **kwargs) -> None:
        self._log("UI", f"{from_state} → {to_state}", Ansi.BRIGHT_BLUE, **kwargs)

    # === TASK ===
    def task_start(self, task_name: str, **kwargs) -> None:
        self._log("TASK", f"⚡ {task_name}", **kwargs)

    def task_complete(self, task_name: str, duration_ms: Optional[float] = None, **kwargs) -> None:
        suffix = f" ({duration_ms:.0f}ms)" if duration_ms else ""
        self._log("TASK", f"✓ {task_name} done{suffix}", Ansi.BRIGHT_GREEN, **kwargs)

    def task_error(self, task_name: str, error: str, **kwargs) -> None:
        self._log("TASK", f"✗ {task_name} failed: {error}", Ansi.BRIGHT_RED, **kwargs)

    # === General ===
    def success(self, message: str, **kwargs) -> None:
        self._log("OK", f"✓ {message}", **kwargs)

    def warning(self, message: str, **kwargs) -> None:
        self._log("WARN", f"⚠ {message}", **kwargs)

    def error(self, message: str, **kwargs) -> None:
        self._log("ERR", f"✗ {message}", **kwargs)

    def info(self, message: str, **kwargs) -> None:
        self._log("INFO", message, **kwargs)

    def debug(self, message: str, **kwargs) -> None:
        self._log("DBG", message, **kwargs)

    # === Layout ===
    def separator(self, title: Optional[str] = None) -> None:
        if not self.enabled:
            return
        rule = f"{'─' * 20} {title} {'─' * 20}" if title else "─" * 60
        self._write(["", f"{Ansi.DIM}{rule}{Ansi.RESET}", ""])

    def banner(self, text: str) -> None:
        if not self.enabled:
            return
        width = max(60, len(text) + 4)
        inner = text.center(width - 2)
        self._write([
            "",
            f"{Ansi.BRIGHT_CYAN}╔{'═' * (width - 2)}╗{Ansi.RESET}",
            f"{Ansi.BRIGHT_CYAN}║{Ansi.BOLD}{inner}{Ansi.RESET}{Ansi.BRIGHT_CYAN}║{Ansi.RESET}",
            f"{Ansi.BRIGHT_CYAN}╚{'═' * (width - 2)}╝{Ansi.RESET}",
            "",
        ])


logger = DebugLogger(enabled=True)


class Timer:
    """Context manager that records elapsed wall time in milliseconds."""

    def __init__(self):
        self._started: Optional[float] = None
        self.duration_ms: float = 0

    def __enter__(self) -> "Timer":
        self._started = time.perf_counter()
        return self

    def __exit__(self, *exc) -> None:
        if self._started is not None:
            self.duration_ms = (time.perf_counter() - self._started) * 1000
