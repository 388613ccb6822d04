#!/usr/bin/env python
# -*- coding: utf-8 -*-

"""
Status Decision
---------------
Chooses the response status for a completed request. Checks run in a
fixed order and the first match wins:

1. Method other than GET             -> 405
2. Version not HTTP/1.0 or HTTP/1.1  -> 505
3. Resolved path does not exist      -> 404
4. If-Modified-Since and unchanged   -> 304
5. Otherwise                         -> 200
"""

import os
import logging
from dataclasses import dataclass

from .utils import is_path_safe, parse_http_date

# HTTP status codes with descriptions
HTTP_STATUS = {
    200: 'OK',
    304: 'Not Modified',
    404: 'Not Found',
    405: 'Method Not Allowed',
    505: 'HTTP Version Not Supported'
}

SUPPORTED_VERSIONS = ('HTTP/1.0', 'HTTP/1.1')
RESPONSE_VERSION = 'HTTP/1.1'

logger = logging.getLogger('StatusDecider')


@dataclass(frozen=True)
class ResponseStatus:
    """
    Protocol version, status code and reason phrase of a response
    """
    version: str
    code: int
    reason: str = ''

    def __post_init__(self):
        if not self.reason:
            object.__setattr__(self, 'reason', HTTP_STATUS[self.code])

    @property
    def status_line(self) -> str:
        return f"{self.version} {self.code} {self.reason}\r\n"


def is_modified_since(request, mtime):
    """
    Evaluate a conditional GET.

    Args:
        request: Request whose headers may hold If-Modified-Since
        mtime: Last modification time of the resolved file (epoch seconds)

    Returns:
        bool: False only when the header parses and the file is not newer
        than it. A missing or unparseable header counts as modified.
    """
    header_value = request.headers.get('If-Modified-Since')
    if header_value is None:
        return True

    since = parse_http_date(header_value)
    if since is None:
        logger.debug(f"Ignoring unparseable If-Modified-Since: {header_value!r}")
        return True

    if int(mtime) > since:
        logger.debug(f"Compared Modified Time: {int(mtime)} with Specified Time: {since}")
        return True

    return False


def decide_status(request, document_root=None):
    """
    Decide the response status for a completed request.

    Args:
        request: Completed Request
        document_root: When given, paths resolving outside of it are
            reported as not found

    Returns:
        ResponseStatus: The chosen status
    """
    version = request.version if request.version in SUPPORTED_VERSIONS else RESPONSE_VERSION

    if request.method != 'GET':
        code = 405
    elif request.version not in SUPPORTED_VERSIONS:
        code = 505
    elif not os.path.exists(request.path) or (
            document_root is not None and not is_path_safe(document_root, request.path)):
        code = 404
    elif 'If-Modified-Since' in request.headers and not is_modified_since(request, os.path.getmtime(request.path)):
        code = 304
    else:
        code = 200

    status = ResponseStatus(version, code)
    logger.info(f"{status.code}: {status.reason}")
    return status
