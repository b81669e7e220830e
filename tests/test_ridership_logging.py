import logging
from pathlib import Path

import pytest

from scripts.ridership_eda.ridership_eda_report import setup_logging


def test_setup_logging_writes_log_file(tmp_path: Path) -> None:
    log_file = tmp_path / "logs" / "run.log"
    setup_logging("debug", log_file=log_file)
    logging.getLogger("ridership.test").info("hello %s", "file")
    for handler in logging.getLogger().handlers:
        handler.flush()

    assert logging.getLogger().level == logging.DEBUG
    assert "hello file" in log_file.read_text(encoding="utf-8")
    # matplotlib stays at INFO or above even when the root is at DEBUG
    assert logging.getLogger("matplotlib").level == logging.INFO
    setup_logging(logging.INFO)


def test_setup_logging_rejects_unknown_level() -> None:
    with pytest.raises(ValueError, match="Unknown log level"):
        setup_logging("chatty")
