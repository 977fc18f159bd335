"""Logging configuration for workload_redeployer."""

from workload_redeployer.logging.config import configure_logging

__all__ = ["configure_logging"]
