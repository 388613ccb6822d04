#!/usr/bin/env python
# -*- coding: utf-8 -*-

"""
Utility Module for Persistent HTTP Server
-----------------------------------------
Contains helper functions used throughout the server:
- Logging setup (colored console output, rotating log file)
- HTTP date formatting and parsing
- Path containment checks for the document root
"""

import os
import time
import calendar
import logging
from logging.handlers import RotatingFileHandler

import colorama
from colorama import Fore, Style

colorama.init(autoreset=True)

LOG_FORMAT = '%(asctime)s - %(name)s - %(levelname)s - %(message)s'
LOG_DATE_FORMAT = '%Y-%m-%d %H:%M:%S'

# Format used for If-Modified-Since, Date and Last-Modified values
HTTP_DATE_FORMAT = '%a, %d %b %Y %H:%M:%S %Z'


class ColoredFormatter(logging.Formatter):
    """Formatter for colored log output."""

    FORMATS = {
        logging.DEBUG: Fore.CYAN + LOG_FORMAT + Style.RESET_ALL,
        logging.INFO: Fore.GREEN + LOG_FORMAT + Style.RESET_ALL,
        logging.WARNING: Fore.YELLOW + LOG_FORMAT + Style.RESET_ALL,
        logging.ERROR: Fore.RED + LOG_FORMAT + Style.RESET_ALL,
        logging.CRITICAL: Fore.RED + Style.BRIGHT + LOG_FORMAT + Style.RESET_ALL
    }

    def format(self, record):
        log_fmt = self.FORMATS.get(record.levelno, self.FORMATS[logging.INFO])
        formatter = logging.Formatter(log_fmt, datefmt=LOG_DATE_FORMAT)
        return formatter.format(record)


def setup_logging(log_level='INFO', log_file=None, max_size=10485760, backup_count=5, use_colored_logging=True):
    """
    Set up logging configuration.

    Args:
        log_level: Logging level (default: INFO)
        log_file: Log file path (default: None, console only)
        max_size: Maximum log file size in bytes (default: 10MB)
        backup_count: Number of backup logs to keep (default: 5)
        use_colored_logging: Whether to use colored logging in console (default: True)

    Returns:
        logging.Logger: Root logger instance
    """
    log_level_value = getattr(logging, log_level.upper(), logging.INFO)

    logging.basicConfig(
        level=log_level_value,
        format=LOG_FORMAT,
        datefmt=LOG_DATE_FORMAT
    )

    root_logger = logging.getLogger()
    root_logger.setLevel(log_level_value)

    # Remove existing handlers
    for handler in root_logger.handlers[:]:
        root_logger.removeHandler(handler)

    if log_file:
        try:
            file_handler = RotatingFileHandler(
                log_file,
                maxBytes=max_size,
                backupCount=backup_count
            )
        except OSError as e:
            print(f"Error setting up log file: {e}")
        else:
            file_handler.setFormatter(logging.Formatter(LOG_FORMAT, datefmt=LOG_DATE_FORMAT))
            root_logger.addHandler(file_handler)

    console_handler = logging.StreamHandler()

    if use_colored_logging:
        console_handler.setFormatter(ColoredFormatter())
    else:
        console_handler.setFormatter(logging.Formatter(LOG_FORMAT, datefmt=LOG_DATE_FORMAT))

    root_logger.addHandler(console_handler)
    return root_logger


def is_path_safe(base_path, target_path):
    """
    Check if a path is safe (doesn't escape the base directory).

    Args:
        base_path: Base directory path
        target_path: Target path to check

    Returns:
        bool: True if path is safe, False otherwise
    """
    base_path = os.path.normpath(os.path.abspath(base_path))
    target_path = os.path.normpath(os.path.abspath(target_path))

    try:
        return os.path.commonpath([base_path, target_path]) == base_path
    except ValueError:
        # Different drives on Windows
        return False


def is_valid_root(path):
    """
    Check that a document root exists and is a directory or a regular file.

    Args:
        path: Document root path

    Returns:
        bool: True if the path can be served from
    """
    return os.path.isdir(path) or os.path.isfile(path)


def parse_http_date(date_string):
    """
    Parse an HTTP date string.

    The value is read as UTC regardless of the zone name it carries.

    Args:
        date_string: HTTP date string (e.g. "Sun, 06 Nov 1994 08:49:37 GMT")

    Returns:
        int: UNIX timestamp or None if parsing failed
    """
    try:
        time_struct = time.strptime(date_string.strip(), HTTP_DATE_FORMAT)
    except ValueError:
        return None

    return calendar.timegm(time_struct)


def format_http_date(timestamp=None):
    """
    Format a timestamp as an HTTP date string.

    Args:
        timestamp: UNIX timestamp (default: current time)

    Returns:
        str: HTTP date string in GMT
    """
    if timestamp is None:
        timestamp = time.time()
    return time.strftime('%a, %d %b %Y %H:%M:%S GMT', time.gmtime(timestamp))
