# -*- coding: utf-8 -*-
"""Tests for configuration loading and logging setup."""

import json
import logging

import pytest

from geobridge.core import config
from geobridge.core.logging_config import get_module_logger, setup_logging


@pytest.fixture
def restore_config():
    """Restore the configuration sections changed by a test."""
    saved = {name: dict(section) for name, section in config._SECTIONS.items()}
    yield
    for name, section in config._SECTIONS.items():
        section.clear()
        section.update(saved[name])


def test_load_config_overlays_sections(tmp_path, restore_config):
    """Values from the file replace the defaults, other keys are kept."""
    path = tmp_path / "config.json"
    path.write_text(json.dumps({"contour": {"n_levels": 4}, "RASTER_DRIVERS": {".bil": "EHdr"}}))

    sections = config.load_config(str(path))

    assert config.CONTOUR_CONFIG["n_levels"] == 4
    assert config.CONTOUR_CONFIG["min_vertices"] == 2
    assert config.RASTER_DRIVERS[".bil"] == "EHdr"
    assert set(sections) == {"contour", "raster_drivers"}


def test_load_config_errors(tmp_path, restore_config):
    """Unknown sections and malformed files are rejected."""
    with pytest.raises(FileNotFoundError):
        config.load_config(str(tmp_path / "missing.json"))

    path = tmp_path / "bad.json"
    path.write_text(json.dumps({"unknown": {}}))
    with pytest.raises(ValueError):
        config.load_config(str(path))

    path.write_text(json.dumps([1, 2]))
    with pytest.raises(ValueError):
        config.load_config(str(path))

    path.write_text(json.dumps({"extract": 3}))
    with pytest.raises(ValueError):
        config.load_config(str(path))


def test_module_logger_names():
    """Module loggers are children of the package logger."""
    assert get_module_logger("geobridge.ops.crop").name == "geobridge.ops.crop"
    assert get_module_logger("scripts").name == "geobridge.scripts"


def test_setup_logging(tmp_path):
    """Logging writes to a file when asked and rejects unknown levels."""
    log_file = tmp_path / "logs" / "run.log"
    logger = setup_logging(log_level="DEBUG", log_file=str(log_file), module_name="geobridge_test_logging")
    try:
        assert logger.level == logging.DEBUG
        logger.info("hello")
        for handler in logger.handlers:
            handler.flush()
        assert "hello" in log_file.read_text()

        again = setup_logging(log_level="WARNING", module_name="geobridge_test_logging")
        assert again is logger
        assert len(logger.handlers) == 2
        assert logger.level == logging.WARNING
    finally:
        for handler in list(logger.handlers):
            handler.close()
            logger.removeHandler(handler)

    with pytest.raises(ValueError):
        setup_logging(log_level="LOUD", module_name="geobridge_test_logging")
