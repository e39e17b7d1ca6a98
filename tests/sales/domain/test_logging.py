"""Tests for structlog configuration."""

from unittest.mock import patch

import structlog
from sales.config import Settings
from sales.utils import logging as sales_logging


def _renderer(monkeypatch, **kwargs):
    monkeypatch.setattr(sales_logging, "_configured", False)
    with patch.object(structlog, "configure") as configure:
        sales_logging.configure_logging(**kwargs)
    return configure.call_args.kwargs["processors"][-1]


def test_console_renderer_by_default(monkeypatch):
    monkeypatch.setenv("SALES_LOG_JSON", "true")
    assert isinstance(_renderer(monkeypatch), structlog.dev.ConsoleRenderer)


def test_json_renderer_when_requested(monkeypatch):
    assert isinstance(_renderer(monkeypatch, json_output=True), structlog.processors.JSONRenderer)


def test_settings_are_the_only_source_of_the_json_flag(monkeypatch):
    monkeypatch.setenv("SALES_LOG_JSON", "on")
    settings = Settings.from_env()
    assert settings.log_json is True
    assert isinstance(_renderer(monkeypatch, json_output=settings.log_json), structlog.processors.JSONRenderer)


def test_configures_once(monkeypatch):
    monkeypatch.setattr(sales_logging, "_configured", True)
    with patch.object(structlog, "configure") as configure:
        sales_logging.configure_logging(json_output=True)
    configure.assert_not_called()
