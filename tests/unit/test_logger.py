"""Unit tests for logging setup and the exception hierarchy."""

import logging
from collections.abc import Generator

import pytest
from colorama import Fore, Style

from config import ConfigurationManager
from invoice_parser.utils.exceptions import (
    CriticalError,
    DocumentAccessError,
    InvoiceParserError,
    RecoverableError,
    RoutingError,
    StructuralMismatchError,
)
from invoice_parser.utils.logger import (
    LOGGER_NAMESPACE,
    ColoredFormatter,
    get_logger,
    log_stage,
    setup_logger,
    setup_logger_from_config,
)


@pytest.fixture
def app_logger() -> Generator[logging.Logger, None, None]:
    """Application logger, restored after the test."""
    app_logger = logging.getLogger(LOGGER_NAMESPACE)
    handlers, level, propagate = list(app_logger.handlers), app_logger.level, app_logger.propagate
    yield app_logger
    for handler in app_logger.handlers:
        handler.close()
    app_logger.handlers[:] = handlers
    app_logger.setLevel(level)
    app_logger.propagate = propagate


def test_get_logger_uses_namespace() -> None:
    """Test that module loggers live under the application namespace."""
    assert get_logger("invoice_parser.pipeline").name == "invoice_parser.pipeline"
    assert get_logger("tests").name == "invoice_parser.tests"


def test_colored_formatter_colors_level_name() -> None:
    """Test that only the level name is colored and the record is restored."""
    record = logging.LogRecord("invoice_parser", logging.WARNING, __file__, 1, "degraded", None, None)

    formatted = ColoredFormatter("%(levelname)s %(message)s").format(record)

    assert formatted == f"{Fore.YELLOW}WARNING{Style.RESET_ALL} degraded"
    assert record.levelname == "WARNING"


def test_log_stage_records_timing_on_failure() -> None:
    """Test that a failing stage still records its elapsed time."""
    timings = {}

    with log_stage(get_logger("tests"), "classification", timings):
        pass
    with pytest.raises(RuntimeError):
        with log_stage(get_logger("tests"), "routing", timings):
            raise RuntimeError("no route")

    assert set(timings) == {"classification", "routing"}
    assert all(value >= 0 for value in timings.values())


def test_setup_logger_writes_rotating_file(app_logger: logging.Logger, tmp_path) -> None:
    """Test that file logging writes uncolored records."""
    log_file = tmp_path / "logs" / "parser.log"

    setup_logger(level="DEBUG", log_file=str(log_file), colorize=False)
    get_logger("tests").debug("stage timing recorded")

    for handler in app_logger.handlers:
        handler.flush()
    content = log_file.read_text(encoding="utf-8")
    assert "stage timing recorded" in content
    assert Fore.CYAN not in content
    assert len(app_logger.handlers) == 2


def test_setup_logger_from_config(app_logger: logging.Logger) -> None:
    """Test that the logging section of the configuration is applied."""
    ConfigurationManager().override({"logging": {"level": "WARNING"}})

    configured = setup_logger_from_config()

    assert configured.level == logging.WARNING
    assert isinstance(configured.handlers[0].formatter, ColoredFormatter)


def test_exception_hierarchy() -> None:
    """Test the recoverable and critical branches of the hierarchy."""
    assert issubclass(DocumentAccessError, CriticalError)
    assert issubclass(RoutingError, RecoverableError)
    assert issubclass(StructuralMismatchError, InvoiceParserError)

    error = DocumentAccessError("invoice.pdf", "permission denied")
    assert str(error).startswith("File not found or unreadable: invoice.pdf")
    assert error.details["source"] == "invoice.pdf"
