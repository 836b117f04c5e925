"""
Centralized Logger with Rich Console
====================================
Every module logs through the static `Logger` with a leading [SOURCE] tag.

Usage:
    from poolpilot.shared.system.logging import Logger

    Logger.info("[BATCH] 25 instructions -> 3 transactions")
    Logger.success("[SUBMIT] tx number 1 of 3 landed")
    Logger.warning("[ASSEMBLER] Tx number 2 is 1300 bytes")
    Logger.section("Sending Instructions")

Console lines go through Rich; the same records go to a per-run rotating
file in Settings.LOG_DIR, which is only created on the first write.
"""

import logging
import os
from datetime import datetime
from logging.handlers import RotatingFileHandler
from typing import Optional, Tuple

from rich.console import Console
from rich.text import Text

from poolpilot.config.settings import Settings

_RUN_ID = datetime.now().strftime("%Y%m%d_%H%M%S")
_MAX_LOG_BYTES = 5 * 1024 * 1024

_file_logger: Optional[logging.Logger] = None
_console = Console()


# =============================================================================
# SOURCE ICONS
# =============================================================================

SOURCE_ICONS = {
    "SYSTEM": "🛸",
    "BATCH": "📦",
    "ASSEMBLER": "🧱",
    "SUBMIT": "🚀",
    "FEE": "⛽",
    "CONFIG": "⚙️",
    "PROOF": "🌳",
    "CLI": "💻",
}

# level -> (rich style, file level)
LEVELS = {
    "DEBUG": ("dim", logging.DEBUG),
    "INFO": ("cyan", logging.INFO),
    "SUCCESS": ("green bold", logging.INFO),
    "WARNING": ("yellow", logging.WARNING),
    "ERROR": ("red bold", logging.ERROR),
    "CRITICAL": ("red bold reverse", logging.CRITICAL),
}


def _get_file_logger() -> logging.Logger:
    global _file_logger
    if _file_logger is None:
        os.makedirs(Settings.LOG_DIR, exist_ok=True)
        handler = RotatingFileHandler(
            os.path.join(Settings.LOG_DIR, f"poolpilot_{_RUN_ID}.log"),
            maxBytes=_MAX_LOG_BYTES,
            backupCount=3,
            encoding="utf-8",
        )
        handler.setFormatter(
            logging.Formatter("%(asctime)s [%(levelname)s] %(message)s", datefmt="%Y-%m-%d %H:%M:%S")
        )
        _file_logger = logging.getLogger("poolpilot")
        _file_logger.setLevel(logging.DEBUG)
        _file_logger.propagate = False
        _file_logger.addHandler(handler)
    return _file_logger


# =============================================================================
# LOGGER CLASS
# =============================================================================

class Logger:
    """
    Static logger shared by the whole package.

    A message starting with "[TAG]" is attributed to source TAG and gets
    that source's icon; anything else is attributed to SYSTEM. DEBUG lines
    reach the console only when POOLPILOT_LOG_LEVEL=DEBUG.
    """

    _silent_mode = Settings.SILENT_MODE

    @staticmethod
    def _split_source(message: str) -> Tuple[str, str]:
        text = message.strip()
        if text.startswith("[") and "]" in text:
            end = text.index("]")
            tag = text[1:end].upper()
            if 0 < len(tag) < 15:
                return tag, text[end + 1:].strip()
        return "SYSTEM", message

    @staticmethod
    def _console_line(level: str, source: str, message: str) -> Text:
        now = datetime.now()
        style = LEVELS[level][0]
        icon = SOURCE_ICONS.get(source, "")

        line = Text()
        line.append(f"{now:%H:%M:%S}.{now.microsecond // 1000:03d} ", style="dim")
        line.append(f"| {level:<8} ", style=style)
        line.append(f"| {source[:10]:<10} | ", style="dim")
        line.append(f"{icon} {message}" if icon else message)
        return line

    @staticmethod
    def _emit(level: str, message: str, prefix: str = "") -> None:
        source, msg = Logger._split_source(message)
        if prefix:
            msg = f"{prefix} {msg}"

        show = not Logger._silent_mode and (level != "DEBUG" or Settings.LOG_LEVEL == "DEBUG")
        if show:
            _console.print(Logger._console_line(level, source, msg))

        _get_file_logger().log(LEVELS[level][1], f"[{source}] {msg}")

    # =========================================================================
    # PUBLIC API
    # =========================================================================

    @staticmethod
    def debug(message: str) -> None:
        Logger._emit("DEBUG", message)

    @staticmethod
    def info(message: str, icon: str = "") -> None:
        Logger._emit("INFO", message, prefix=icon)

    @staticmethod
    def success(message: str) -> None:
        Logger._emit("SUCCESS", message, prefix="✅")

    @staticmethod
    def warning(message: str) -> None:
        Logger._emit("WARNING", message)

    @staticmethod
    def error(message: str) -> None:
        Logger._emit("ERROR", message)

    @staticmethod
    def critical(message: str) -> None:
        Logger._emit("CRITICAL", message, prefix="🛑")

    @staticmethod
    def section(title: str) -> None:
        """Print a section rule."""
        if not Logger._silent_mode:
            _console.print()
            _console.rule(f"[bold magenta]{title}[/]", style="dim")
        _get_file_logger().info(f"[SYSTEM] === {title} ===")

    @staticmethod
    def set_silent(silent: bool) -> None:
        """Enable/disable console output (the file log is unaffected)."""
        Logger._silent_mode = silent
