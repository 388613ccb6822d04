#!/usr/bin/env python
# -*- coding: utf-8 -*-

"""
HTTP Response Generation
------------------------
Assembles the bytes sent back for a completed request: status line,
header block, blank line and, for 200 responses, the whole file.
"""

import os
import logging

from .mime import get_mime_type
from .utils import format_http_date

# Sent as-is for malformed request or header lines
BAD_REQUEST_RESPONSE = b"HTTP/1.0 400 Bad Request\nConnection: keep-alive\n"

# Written just before an idle connection is closed
TIMEOUT_NOTICE = b"\nConnection to server lost\n"

LAST_MODIFIED = 'Last-Modified'
LEGACY_LAST_MODIFIED = 'Last modified'

logger = logging.getLogger('ResponseGenerator')


def generate_header_lines(status, request, keep_alive=True, legacy_last_modified=True):
    """
    Generate the header lines for a response.

    Args:
        status: ResponseStatus for the request
        request: Completed Request
        keep_alive: Whether the connection stays open after the response
        legacy_last_modified: Use the 'Last modified' header name on 200
            responses instead of 'Last-Modified'

    Returns:
        list: (name, value) tuples in the order they are sent
    """
    connection = 'Keep-Alive' if keep_alive else 'close'
    headers = []

    if status.code == 304:
        headers.append((LAST_MODIFIED, format_http_date(os.path.getmtime(request.path))))
    elif status.code == 405:
        headers.append(('Allow', 'GET'))
    elif status.code == 200:
        try:
            stat_result = os.stat(request.path)
        except OSError as e:
            logger.error(f"Error reading metadata for {request.path}: {e}")
        else:
            headers.extend([
                ('Content-Length', str(stat_result.st_size)),
                ('Content-Type', get_mime_type(request.path)),
                ('Date', format_http_date()),
                (LEGACY_LAST_MODIFIED if legacy_last_modified else LAST_MODIFIED,
                 format_http_date(stat_result.st_mtime)),
            ])

    headers.append(('Connection', connection))
    return headers


def read_body(path):
    """
    Read a file in one pass.

    Returns:
        bytes: File contents, or None if the file could not be read
    """
    try:
        with open(path, 'rb') as f:
            return f.read()
    except OSError as e:
        logger.error(f"Error reading file {path}: {e}")
        return None


def generate_response(status, request, keep_alive=True, legacy_last_modified=True):
    """
    Generate the complete response for a request.

    Args:
        status: ResponseStatus for the request
        request: Completed Request
        keep_alive: Whether the connection stays open after the response
        legacy_last_modified: See generate_header_lines

    Returns:
        bytes: Response bytes ready to be written to the client
    """
    header_lines = generate_header_lines(status, request, keep_alive, legacy_last_modified)

    response = status.status_line
    for name, value in header_lines:
        response += f"{name}: {value}\r\n"
    response += "\r\n"

    response = response.encode('utf-8', 'surrogateescape')

    if status.code == 200:
        body = read_body(request.path)
        if body is not None:
            response += body

    return response
