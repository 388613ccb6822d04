#!/usr/bin/env python
# -*- coding: utf-8 -*-

"""
Persistent HTTP Server
----------------------
A small HTTP/1.x server that serves static files from a document root,
keeping each client connection open for further requests until it goes idle.

The package provides:
- Incremental request parsing over a persistent connection
- Conditional GET (If-Modified-Since)
- MIME type resolution for common static files
- An idle timeout per connection
- Configuration from JSON files and command-line arguments
"""

__version__ = '1.0.0'

from .server import WebServer
from .config import ServerConfig
from .connection import Connection, ConnectionPhase
from .errors import BadRequestError, FatalStartupError, HeaderOverflowError
from .utils import setup_logging

# Make these classes available at the package level
__all__ = [
    'WebServer',
    'ServerConfig',
    'Connection',
    'ConnectionPhase',
    'BadRequestError',
    'FatalStartupError',
    'HeaderOverflowError',
    'setup_logging'
]
