"""Telemetry: logging, metrics and terminal reporting."""

from dexarb.telemetry.logger import AsyncLogger, setup_logging
from dexarb.telemetry.metrics import MetricsCollector
from dexarb.telemetry.reporter import OpportunityReporter


__all__ = ["AsyncLogger", "MetricsCollector", "OpportunityReporter", "setup_logging"]
