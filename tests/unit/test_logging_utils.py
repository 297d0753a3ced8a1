"""Tests for logging utilities."""
import argparse
import io
import logging
import sys
import threading
from pathlib import Path

import pytest

ROOT_DIR = Path(__file__).resolve().parent.parent.parent
sys.path.insert(0, str(ROOT_DIR))

import resonote.logging_utils as logging_utils
from resonote.logging_utils import (
    add_logging_args,
    configure_logging,
    format_count,
    resolve_log_level,
    run_context,
    set_run_id,
    stage_timer,
    truncate_list,
)


@pytest.fixture(autouse=True)
def reset_logging_state(monkeypatch):
    monkeypatch.delenv("LOG_LEVEL", raising=False)
    monkeypatch.delenv("LOG_FILE", raising=False)
    monkeypatch.setattr(logging_utils, "_logging_configured", False)
    yield
    root = logging.getLogger()
    for handler in root.handlers[:]:
        if getattr(handler, logging_utils._HANDLER_TAG, False):
            handler.close()
            root.removeHandler(handler)
    set_run_id(None)


class TestConfigureLogging:
    """Tests for configure_logging function."""

    def test_configure_logging_basic(self):
        configure_logging(level='DEBUG', force=True)

        root = logging.getLogger()
        assert root.level == logging.DEBUG
        assert any(getattr(h, logging_utils._HANDLER_TAG, False) for h in root.handlers)

    def test_configure_logging_with_file(self, tmp_path):
        log_file = tmp_path / "logs" / "resonote.log"
        set_run_id("abc123")
        configure_logging(level='INFO', log_file=str(log_file), force=True)

        logging.getLogger('test_file').info('Test message')
        for handler in logging.getLogger().handlers:
            handler.flush()

        content = log_file.read_text(encoding='utf-8')
        assert 'Test message' in content
        assert 'run_id=abc123' in content

    def test_configure_logging_idempotent(self):
        configure_logging(level='INFO', force=True)
        handler_count = len(logging.getLogger().handlers)

        # Second call should not add handlers
        configure_logging(level='DEBUG')
        assert len(logging.getLogger().handlers) == handler_count

    def test_quiet_suppresses_info(self, monkeypatch):
        buf = io.StringIO()
        monkeypatch.setattr(logging_utils.sys, "stderr", buf)
        configure_logging(level="WARNING", console=True, force=True)

        logger = logging.getLogger("quiet_test")
        logger.info("info hidden")
        logger.warning("warn shown")

        output = buf.getvalue()
        assert "info hidden" not in output
        assert "warn shown" in output


class _RecordCollector(logging.Handler):
    def __init__(self):
        super().__init__()
        self.records = []
        self.addFilter(logging_utils.RunIdFilter())

    def emit(self, record):
        self.records.append(record)


@pytest.fixture()
def collector():
    handler = _RecordCollector()
    logger = logging.getLogger("run_id_test")
    logger.addHandler(handler)
    logger.setLevel(logging.INFO)
    yield handler
    logger.removeHandler(handler)


class TestRunContext:
    """Tests for run id scoping."""

    def test_run_context_restores_previous_id(self, collector):
        logger = logging.getLogger("run_id_test")
        set_run_id("outer")
        with run_context("inner") as run_id:
            assert run_id == "inner"
            logger.info("inside")
        logger.info("after")

        assert [r.run_id for r in collector.records] == ["inner", "outer"]

    def test_run_context_generates_id(self):
        with run_context() as run_id:
            assert len(run_id) == 8

    def test_concurrent_runs_keep_their_own_id(self, collector):
        logger = logging.getLogger("run_id_test")
        barrier = threading.Barrier(4)

        def work(run_id):
            with run_context(run_id):
                barrier.wait()
                logger.info(run_id)

        threads = [threading.Thread(target=work, args=(f"run{i}",)) for i in range(4)]
        for thread in threads:
            thread.start()
        for thread in threads:
            thread.join()

        assert len(collector.records) == 4
        assert all(r.getMessage() == r.run_id for r in collector.records)


class TestStageTimer:
    """Tests for stage_timer context manager."""

    def test_stage_timer_logs_completion(self, caplog):
        test_logger = logging.getLogger('test_stage_timer_norm')
        with caplog.at_level(logging.INFO, logger='test_stage_timer_norm'):
            with stage_timer("Corpus load", logger=test_logger):
                pass
        assert 'Corpus load completed' in caplog.text

    def test_stage_timer_logs_on_exception(self, caplog):
        test_logger = logging.getLogger('test_stage_timer_exc')
        with caplog.at_level(logging.INFO, logger='test_stage_timer_exc'):
            with pytest.raises(ValueError):
                with stage_timer("Failing stage", logger=test_logger):
                    raise ValueError("Test error")
        assert 'Failing stage completed' in caplog.text


class TestFormatCount:
    """Tests for format_count function."""

    def test_format_count_singular(self):
        assert format_count(1, 'track') == '1 track'

    def test_format_count_plural(self):
        assert format_count(5, 'track') == '5 tracks'

    def test_format_count_zero(self):
        assert format_count(0, 'track') == '0 tracks'

    def test_format_count_custom_plural(self):
        assert format_count(5, 'category', 'categories') == '5 categories'

    def test_format_count_with_commas(self):
        assert format_count(1000, 'track') == '1,000 tracks'


class TestTruncateList:
    """Tests for truncate_list function."""

    def test_truncate_empty_list(self):
        assert truncate_list([]) == '(none)'

    def test_truncate_short_list(self):
        assert truncate_list(['a', 'b']) == 'a, b'

    def test_truncate_long_list(self):
        result = truncate_list(['a', 'b', 'c', 'd', 'e'], max_items=3)
        assert result == 'a, b, c (+2 more)'

    def test_truncate_with_format_fn(self):
        result = truncate_list([1, 2, 3], format_fn=lambda x: f'#{x}')
        assert result == '#1, #2, #3'


class TestLoggingArgs:
    """Tests for CLI argument helpers."""

    def test_add_logging_args(self):
        parser = argparse.ArgumentParser()
        add_logging_args(parser)

        args = parser.parse_args(['--log-level', 'DEBUG', '--log-file', 'test.log'])
        assert args.log_level == 'DEBUG'
        assert args.log_file == 'test.log'

    def test_resolve_log_level_priority(self):
        parser = argparse.ArgumentParser()
        add_logging_args(parser)

        assert resolve_log_level(parser.parse_args([])) == 'INFO'
        assert resolve_log_level(parser.parse_args(['--quiet'])) == 'WARNING'
        assert resolve_log_level(parser.parse_args(['--debug', '--quiet'])) == 'DEBUG'
