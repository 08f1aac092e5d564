"""
Utility functions
"""
from supportiq.utils.logger import setup_logger, get_logger
from supportiq.utils.text import extract_keywords, extract_theme_keywords, format_theme

__all__ = [
    "setup_logger",
    "get_logger",
    "extract_keywords",
    "extract_theme_keywords",
    "format_theme",
]
