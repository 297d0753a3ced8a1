"""
Unified logging utilities for ResoNote.

All entrypoints (CLI, API) should call configure_logging() once at startup.
Each CLI invocation and each playlist request runs under its own run id,
held in a context variable so concurrent API requests do not share one.
"""
import logging
import os
import sys
import time
import uuid
from contextlib import contextmanager
from contextvars import ContextVar
from pathlib import Path
from typing import Any, Callable, Iterator, List, Optional, Sequence

_logging_configured = False
_run_id: ContextVar[Optional[str]] = ContextVar("resonote_run_id", default=None)

_HANDLER_TAG = "_resonote_handler"
_BASE_FMT = '%(asctime)s | %(levelname)-5s | %(name)s'
_CONSOLE_FMT = _BASE_FMT + ' | %(message)s'
_CONSOLE_FMT_WITH_RUN_ID = _BASE_FMT + ' | run_id=%(run_id)s | %(message)s'
_FILE_FMT = _BASE_FMT + ' | %(funcName)s:%(lineno)d | run_id=%(run_id)s | %(message)s'

# Third-party loggers that are too chatty at INFO
_QUIET_LOGGERS = ('uvicorn.access', 'httpx', 'multipart')


class RunIdFilter(logging.Filter):
    """Stamp each record with the run id of the context that emitted it."""

    def filter(self, record: logging.LogRecord) -> bool:
        record.run_id = _run_id.get() or "-"
        return True


def new_run_id() -> str:
    return uuid.uuid4().hex[:8]


def set_run_id(run_id: Optional[str]) -> None:
    """Set the run id for the current context (a whole CLI process, or one thread)."""
    _run_id.set(run_id)


@contextmanager
def run_context(run_id: Optional[str] = None) -> Iterator[str]:
    """
    Scope a run id to a block; the previous id is restored on exit.

    Usage:
        with run_context() as run_id:
            generator.generate(...)
    """
    run_id = run_id or new_run_id()
    token = _run_id.set(run_id)
    try:
        yield run_id
    finally:
        _run_id.reset(token)


def _tagged_handler(handler: logging.Handler, level: int, fmt: str, datefmt: str) -> logging.Handler:
    handler.setLevel(level)
    handler.setFormatter(logging.Formatter(fmt, datefmt=datefmt))
    handler.addFilter(RunIdFilter())
    setattr(handler, _HANDLER_TAG, True)
    return handler


def configure_logging(
    level: str = 'INFO',
    log_file: Optional[str] = None,
    file_level: str = 'DEBUG',
    force: bool = False,
    run_id: Optional[str] = None,
    console: bool = True,
    show_run_id: bool = False,
) -> None:
    """
    Install ResoNote's console and file handlers on the root logger.

    Repeated calls are no-ops unless ``force`` is set. ``LOG_LEVEL`` and
    ``LOG_FILE`` override ``level`` and ``log_file``. Console output goes to
    stderr so command results on stdout stay machine-readable; the run id is
    shown there with ``show_run_id`` or at DEBUG, and always in the file.
    """
    global _logging_configured

    if run_id:
        set_run_id(run_id)

    if _logging_configured and not force:
        return

    level = os.getenv('LOG_LEVEL', level).upper()
    log_file = log_file if log_file is not None else os.getenv('LOG_FILE')

    root = logging.getLogger()
    root.setLevel(logging.DEBUG)
    for handler in [h for h in root.handlers if getattr(h, _HANDLER_TAG, False)]:
        root.removeHandler(handler)

    if console:
        console_fmt = _CONSOLE_FMT_WITH_RUN_ID if (show_run_id or level == 'DEBUG') else _CONSOLE_FMT
        root.addHandler(_tagged_handler(
            logging.StreamHandler(sys.stderr),
            getattr(logging, level, logging.INFO),
            console_fmt,
            '%H:%M:%S',
        ))

    if log_file:
        Path(log_file).parent.mkdir(parents=True, exist_ok=True)
        root.addHandler(_tagged_handler(
            logging.FileHandler(log_file, encoding='utf-8'),
            getattr(logging, file_level.upper(), logging.DEBUG),
            _FILE_FMT,
            '%Y-%m-%d %H:%M:%S',
        ))

    for name in _QUIET_LOGGERS:
        logging.getLogger(name).setLevel(logging.WARNING)

    _logging_configured = True
    logging.getLogger(__name__).debug(
        f"Logging configured: level={level}, file={log_file or 'none'}, run_id={_run_id.get() or '-'}"
    )


def _format_elapsed(seconds: float) -> str:
    if seconds < 1:
        return f"{seconds * 1000:.0f}ms"
    if seconds < 60:
        return f"{seconds:.1f}s"
    minutes, rest = divmod(seconds, 60)
    return f"{int(minutes)}m {rest:.0f}s"


@contextmanager
def stage_timer(stage_name: str, logger: Optional[logging.Logger] = None) -> Iterator[None]:
    """Log how long a block took ("Corpus load completed in 120ms"), even if it raises."""
    logger = logger or logging.getLogger(__name__)
    logger.debug(f"{stage_name} starting...")
    start = time.perf_counter()
    try:
        yield
    finally:
        logger.info(f"{stage_name} completed in {_format_elapsed(time.perf_counter() - start)}")


def format_count(n: int, singular: str, plural: Optional[str] = None) -> str:
    """'1 track', '1,204 tracks'."""
    word = singular if n == 1 else (plural or f"{singular}s")
    return f"{n:,} {word}"


def truncate_list(items: Sequence[Any], max_items: int = 3, format_fn: Callable[[Any], str] = str) -> str:
    """'Song A, Song B, Song C (+2 more)'; '(none)' for an empty list."""
    if not items:
        return "(none)"
    shown: List[str] = [format_fn(item) for item in items[:max_items]]
    hidden = len(items) - len(shown)
    suffix = f" (+{hidden} more)" if hidden > 0 else ""
    return ', '.join(shown) + suffix


def add_logging_args(parser) -> None:
    """Add --log-level, --debug, --quiet, --log-file and --show-run-id to a parser."""
    group = parser.add_argument_group('logging')
    group.add_argument('--log-level', choices=['DEBUG', 'INFO', 'WARNING', 'ERROR'], default='INFO',
                       help='Console log level (default: INFO)')
    group.add_argument('--debug', action='store_true', help='Same as --log-level DEBUG')
    group.add_argument('--quiet', action='store_true', help='Same as --log-level WARNING')
    group.add_argument('--log-file', metavar='PATH', help='Also write DEBUG logs to this file')
    group.add_argument('--show-run-id', action='store_true',
                       help='Show the run id on the console (the log file always has it)')


def resolve_log_level(args) -> str:
    """--debug wins over --quiet, which wins over --log-level."""
    if getattr(args, 'debug', False):
        return 'DEBUG'
    if getattr(args, 'quiet', False):
        return 'WARNING'
    return getattr(args, 'log_level', 'INFO')
