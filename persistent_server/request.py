#!/usr/bin/env python
# -*- coding: utf-8 -*-

"""
HTTP Request Parsing
--------------------
Builds a Request from the lines of a request as they arrive on a
connection: first the request line, then zero or more header lines,
then a terminator.
"""

import logging

from .errors import BadRequestError, HeaderOverflowError

DEFAULT_VERSION = 'HTTP/1.1'
DEFAULT_MAX_HEADERS = 6
INDEX_RESOURCE = '/index.html'


class Headers:
    """
    Ordered mapping of header name to value with a fixed capacity.

    Names keep the case the client sent them in; lookups ignore case.
    Setting a name that is already stored replaces its value and does not
    use up capacity. A ``capacity`` of None means unbounded.
    """

    def __init__(self, capacity=DEFAULT_MAX_HEADERS):
        self.capacity = capacity
        self._entries = {}

    def add(self, name, value):
        """
        Store a header.

        Raises:
            HeaderOverflowError: If ``name`` is new and the mapping is full
        """
        key = name.lower()
        if key not in self._entries and self.capacity is not None and len(self._entries) >= self.capacity:
            raise HeaderOverflowError(name, self.capacity)
        self._entries[key] = (name, value)

    def get(self, name, default=None):
        entry = self._entries.get(name.lower())
        return entry[1] if entry else default

    def items(self):
        return list(self._entries.values())

    def clear(self):
        self._entries.clear()

    def __contains__(self, name):
        return name.lower() in self._entries

    def __len__(self):
        return len(self._entries)

    def __iter__(self):
        return (name for name, _ in self._entries.values())

    def __repr__(self):
        return f"Headers({dict(self.items())!r})"


class Request:
    """
    A single HTTP request being read from a connection.

    The same instance is reused for every request on a connection and is
    reset after each request/response cycle.
    """

    def __init__(self, max_headers=DEFAULT_MAX_HEADERS):
        self.headers = Headers(max_headers)
        self.reset()

    def reset(self):
        """Blank all fields and clear the headers."""
        self.method = ''
        self.resource = ''
        self.path = ''
        self.version = DEFAULT_VERSION
        self.headers.clear()
        self.dropped_headers = 0

    @property
    def wants_close(self):
        """True if the client asked for the connection to be closed."""
        return self.headers.get('Connection', '').strip().lower() == 'close'

    def __repr__(self):
        return f"Request({self.method!r}, {self.resource!r}, {self.version!r})"


def strip_line_ending(line):
    """Remove a trailing LF or CRLF."""
    if line.endswith('\n'):
        line = line[:-1]
    if line.endswith('\r'):
        line = line[:-1]
    return line


def is_header_terminator(line):
    """
    Check whether a line ends the header section of a request.

    An empty line ends the headers. So does a line starting with ``GET``,
    which is taken as the next request arriving before the current one
    was terminated.
    """
    return strip_line_ending(line) == '' or line.startswith('GET')


class RequestParser:
    """
    Parses request lines and header lines into a Request.

    Resolved paths are the document root concatenated with the resource
    exactly as the client sent it.
    """

    def __init__(self, document_root):
        self.document_root = document_root
        self.logger = logging.getLogger('RequestParser')

    def parse_request_line(self, line, request):
        """
        Parse a request line into ``request``.

        Args:
            line: Request line, with or without its line ending
            request: Request to populate

        Returns:
            int: Number of tokens found on the line

        Raises:
            BadRequestError: If the line is empty or has more than three tokens
        """
        tokens = line.split()

        if not tokens:
            raise BadRequestError(line, "Empty request line")
        if len(tokens) > 3:
            raise BadRequestError(line, "Too many tokens in request line")

        request.method = tokens[0]
        request.resource = tokens[1] if len(tokens) > 1 else ''
        request.version = tokens[2] if len(tokens) > 2 else DEFAULT_VERSION

        if request.resource == '/':
            request.resource = INDEX_RESOURCE

        request.path = f"{self.document_root}{request.resource}"

        self.logger.debug(f"Method: {request.method} Path: {request.path} Version: {request.version}")
        return len(tokens)

    def parse_header_line(self, line, request):
        """
        Parse a ``Name: value`` header line and store it on ``request``.

        Only one leading space is removed from the value. When the request
        already holds as many headers as it can, the header is dropped and
        counted in ``request.dropped_headers``.

        Raises:
            BadRequestError: If the line is a single character or has no colon
        """
        content = strip_line_ending(line)

        if len(content) <= 1:
            raise BadRequestError(line, "Header line too short")

        name, sep, value = content.partition(':')
        if not sep:
            raise BadRequestError(line, "Header line without colon")

        if value.startswith(' '):
            value = value[1:]

        try:
            request.headers.add(name, value)
        except HeaderOverflowError as e:
            request.dropped_headers += 1
            self.logger.warning(str(e))
