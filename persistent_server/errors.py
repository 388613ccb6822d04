#!/usr/bin/env python
# -*- coding: utf-8 -*-

"""
Error Types for Persistent HTTP Server
--------------------------------------
Exceptions raised by the request parser and the server lifecycle.

Method, version, existence and freshness outcomes are not exceptions; they
are expressed as status codes by the status decider.
"""


class ServerError(Exception):
    """Base class for all server errors."""


class BadRequestError(ServerError):
    """
    A request line or header line could not be parsed.

    The connection answers with the literal 400 response and stays open.
    """

    def __init__(self, line, reason="Malformed line"):
        self.line = line
        self.reason = reason
        super().__init__(f"{reason}: {line!r}")


class HeaderOverflowError(ServerError):
    """A request carried more distinct headers than the configured capacity."""

    def __init__(self, name, capacity):
        self.name = name
        self.capacity = capacity
        super().__init__(f"Header capacity of {capacity} reached, dropping {name!r}")


class FatalStartupError(ServerError):
    """The server cannot start (invalid document root or socket setup failure)."""
