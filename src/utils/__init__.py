"""
PySoundboard Utilities Module

Utility functions and helpers:
- logger: Logging configuration
"""
from .logger import logger, LOGGER_NAME

__all__ = ['logger', 'LOGGER_NAME']
