"""Utility modules for Kalshi Brackets."""

from kalshi_brackets.utils.logging import setup_logging, get_logger

__all__ = ["setup_logging", "get_logger"]
