"""Logging configuration for the service."""

from __future__ import annotations

import logging

from portfolio_api.config import settings

AUDIT_LOGGER_NAME = "portfolio_api.audit"


def configure_logging() -> None:
    logging.basicConfig(
        level=getattr(logging, settings.log_level.upper(), logging.INFO),
        format="%(asctime)s %(levelname)s %(name)s %(message)s",
    )


def get_audit_logger() -> logging.Logger:
    return logging.getLogger(AUDIT_LOGGER_NAME)
