"""Structured logging for dirguard."""

from .structured import JsonlLogger, LogLevel, create_logger

__all__ = [
    "JsonlLogger",
    "LogLevel",
    "create_logger",
]
