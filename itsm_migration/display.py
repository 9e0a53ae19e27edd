"""
Console output and progress tracking for the migration phases.
Provides the rich logging setup and a per-record progress display.
"""

import logging
from collections import deque
from collections.abc import Iterable, Iterator
from pathlib import Path
from typing import Any, Generic, Protocol, TypeVar, cast

from rich.console import Console, Group
from rich.live import Live
from rich.logging import RichHandler
from rich.panel import Panel
from rich.progress import BarColumn, Progress, TextColumn
from rich.table import Table
from rich.text import Text
from rich.theme import Theme

T = TypeVar("T")

SUCCESS_LEVEL = 25
NOTICE_LEVEL = 21


class ExtendedLogger(Protocol):
    def debug(self, msg: str, *args: Any, **kwargs: Any) -> None: ...
    def info(self, msg: str, *args: Any, **kwargs: Any) -> None: ...
    def warning(self, msg: str, *args: Any, **kwargs: Any) -> None: ...
    def error(self, msg: str, *args: Any, **kwargs: Any) -> None: ...
    def critical(self, msg: str, *args: Any, **kwargs: Any) -> None: ...
    def success(self, msg: str, *args: Any, **kwargs: Any) -> None: ...
    def notice(self, msg: str, *args: Any, **kwargs: Any) -> None: ...
    def exception(self, msg: str, *args: Any, **kwargs: Any) -> None: ...


LOGGING_THEME = Theme(
    {
        "logging.level.debug": "dim",
        "logging.level.info": "blue",
        "logging.level.notice": "cyan",
        "logging.level.warning": "bold yellow",
        "logging.level.error": "bold red",
        "logging.level.critical": "bold red on white",
        "logging.level.success": "bold green",
    }
)

console = Console(theme=LOGGING_THEME)

rich_handler = RichHandler(
    console=console,
    rich_tracebacks=True,
    tracebacks_show_locals=False,
    markup=False,
    show_time=True,
    show_level=True,
    log_time_format="[%X]",
)


def _success(self: logging.Logger, message: str, *args: Any, **kwargs: Any) -> None:
    if self.isEnabledFor(SUCCESS_LEVEL):
        self._log(SUCCESS_LEVEL, message, args, stacklevel=2, **kwargs)


def _notice(self: logging.Logger, message: str, *args: Any, **kwargs: Any) -> None:
    if self.isEnabledFor(NOTICE_LEVEL):
        self._log(NOTICE_LEVEL, message, args, stacklevel=2, **kwargs)


def _register_levels() -> None:
    logging.addLevelName(SUCCESS_LEVEL, "SUCCESS")
    logging.addLevelName(NOTICE_LEVEL, "NOTICE")
    setattr(logging.Logger, "success", _success)
    setattr(logging.Logger, "notice", _notice)


_register_levels()


def get_logger(name: str = "itsm_migration") -> ExtendedLogger:
    """Return a logger with the SUCCESS and NOTICE helpers available."""
    return cast(ExtendedLogger, logging.getLogger(name))


def configure_logging(
    level: str = "INFO", log_file: str | Path | None = None
) -> ExtendedLogger:
    """
    Configure logging with rich formatting.

    Args:
        level: Logging level (DEBUG, INFO, NOTICE, SUCCESS, WARNING, ERROR, CRITICAL)
        log_file: Optional path to a log file

    Returns:
        Configured logger instance
    """
    match level.upper():
        case "NOTICE":
            numeric_level = NOTICE_LEVEL
        case "SUCCESS":
            numeric_level = SUCCESS_LEVEL
        case other:
            numeric_level = getattr(logging, other, logging.INFO)

    handlers: list[logging.Handler] = [rich_handler]

    if log_file:
        log_path = Path(log_file)
        log_path.parent.mkdir(parents=True, exist_ok=True)

        file_handler = logging.FileHandler(log_path, encoding="utf-8")
        file_handler.setFormatter(
            logging.Formatter(
                "%(asctime)s.%(msecs)03d - %(name)s - %(levelname)s - %(message)s"
            )
        )
        file_handler.setLevel(numeric_level)
        handlers.append(file_handler)

    logging.basicConfig(
        level=numeric_level,
        format="%(message)s",
        datefmt="[%X]",
        handlers=handlers,
        force=True,
    )

    logger = get_logger()
    logger.debug("Rich logging configured")
    if log_file:
        logger.debug("Log file: %s", log_file)

    return logger


class ProgressTracker(Generic[T]):
    """
    Progress bar for one migration phase with a rolling log of the most
    recently processed records below it.
    """

    def __init__(
        self,
        description: str,
        total: int,
        log_title: str = "Recent records",
        max_log_items: int = 5,
    ):
        self.description = description
        self.total = total
        self.log_title = log_title
        self.progress = Progress(
            TextColumn("[bold blue]{task.description}"),
            BarColumn(),
            TextColumn("[progress.percentage]{task.percentage:>3.0f}%"),
            TextColumn("({task.completed}/{task.total})"),
            console=console,
        )
        self.task_id = self.progress.add_task(description, total=total)
        self.recent_items: deque[str] = deque(maxlen=max_log_items)
        self.processed_count = 0
        self.live: Live | None = None

    def __enter__(self) -> "ProgressTracker[T]":
        self.live = Live(
            console=console,
            refresh_per_second=4,
            transient=True,
            vertical_overflow="ellipsis",
        )
        self.live.__enter__()
        self._update_display()
        return self

    def __exit__(self, exc_type, exc_val, exc_tb) -> None:
        if self.live:
            self.live.__exit__(exc_type, exc_val, exc_tb)
            self.live = None

    def add_log_item(self, item: str) -> None:
        """Add an item to the rolling log."""
        self.recent_items.append(item)
        self._update_display()

    def increment(self, advance: int = 1, description: str | None = None) -> None:
        """Advance the progress bar, optionally replacing its description."""
        self.processed_count += advance
        if description:
            self.progress.update(
                self.task_id, completed=self.processed_count, description=description
            )
        else:
            self.progress.update(self.task_id, completed=self.processed_count)
        self._update_display()

    def _update_display(self) -> None:
        if not self.live:
            return

        if not self.recent_items:
            self.live.update(self.progress)
            return

        log_table = Table.grid(padding=(0, 1))
        log_table.add_column()
        log_table.add_row(Text(f"{self.log_title}:", style="bold yellow"))
        for item in self.recent_items:
            log_table.add_row(Text(f"  - {item}"))

        panel = Panel.fit(
            Group(self.progress, log_table),
            title=self.description,
            border_style="blue",
        )
        self.live.update(panel)

    def track(self, iterable: Iterable[T]) -> Iterator[T]:
        """Yield items from the iterable, advancing the bar after each one."""
        for item in iterable:
            yield item
            self.increment()
