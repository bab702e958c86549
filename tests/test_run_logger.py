"""Unit tests for RunLogger."""
import sys
from pathlib import Path

# Add backend to path
sys.path.insert(0, str(Path(__file__).parent.parent / "backend"))

import json
import logging
import pytest
from services.run_logger import RunLogger


@pytest.fixture
def temp_log_file(tmp_path):
    """Create a temporary log file path."""
    return str(tmp_path / "test_runs.jsonl")


@pytest.fixture
def run_logger(temp_log_file):
    """Create a RunLogger instance with temporary log file."""
    logger = RunLogger(run_id="run-42", log_file_path=temp_log_file)
    yield logger
    logger.close()


def read_entries(path):
    with open(path, 'r') as f:
        return [json.loads(line) for line in f]


def test_log_creates_file(run_logger, temp_log_file):
    """Test that logging creates the log file."""
    run_logger.info("question_received", length=27)
    assert Path(temp_log_file).exists()


def test_log_json_format(run_logger, temp_log_file):
    """Test that log entries are in JSON Lines format."""
    run_logger.warning("retry", operation="answer", attempt=1, error_class="rate_limit", delay_s=0.5)

    entry = read_entries(temp_log_file)[0]

    assert "timestamp" in entry
    assert entry["run_id"] == "run-42"
    assert entry["level"] == "warning"
    assert entry["event"] == "retry"
    assert entry["operation"] == "answer"
    assert entry["attempt"] == 1
    assert entry["delay_s"] == 0.5


def test_multiple_entries_in_order(run_logger, temp_log_file):
    """Test that multiple log entries are written in order."""
    for i in range(5):
        run_logger.info("step", index=i)

    entries = read_entries(temp_log_file)

    assert [entry["index"] for entry in entries] == list(range(5))


def test_events_kept_in_memory():
    """Test that events are recorded without a file."""
    logger = RunLogger()

    logger.warning("augmentation_skipped", mode="hyde")
    logger.info("answered", cached=False)
    logger.warning("augmentation_skipped", mode="multi_query")

    assert len(logger.events) == 3
    assert [e["mode"] for e in logger.events_named("augmentation_skipped")] == ["hyde", "multi_query"]
    assert logger.events_named("missing") == []


def test_generated_run_ids_differ():
    assert RunLogger().run_id != RunLogger().run_id


def test_unknown_level_rejected():
    with pytest.raises(ValueError, match="Unknown log level"):
        RunLogger().log("fatal", "event")


def test_forwards_to_standard_logging(caplog):
    """Test that events reach the target logger with structured fields."""
    logger = RunLogger(run_id="abc", target=logging.getLogger("test.run"))

    with caplog.at_level(logging.DEBUG, logger="test.run"):
        logger.error("retries_exhausted", operation="embed")

    record = caplog.records[-1]
    assert record.levelno == logging.ERROR
    assert "[abc] retries_exhausted operation=embed" in record.getMessage()
    assert record.fields == {"run_id": "abc", "event": "retries_exhausted", "operation": "embed"}


def test_log_directory_creation(tmp_path):
    """Test that log directory is created if it doesn't exist."""
    log_file = tmp_path / "nested" / "dir" / "runs.jsonl"

    with RunLogger(log_file_path=str(log_file)) as logger:
        logger.info("answered")

    assert log_file.exists()
    assert logger._file is None


def test_non_json_values_serialized(run_logger, temp_log_file):
    run_logger.info("paths", path=Path("index/store.json"))
    assert read_entries(temp_log_file)[0]["path"] == "index/store.json"
