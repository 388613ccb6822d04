#!/usr/bin/env python
# -*- coding: utf-8 -*-

"""
Connection State Machine
------------------------
Serves any number of requests over one client connection until the client
goes quiet for longer than the idle timeout, closes its end, or asks for
the connection to be closed.

Phases:
    AWAITING_REQUEST_LINE -> AWAITING_HEADERS -> (respond) -> AWAITING_REQUEST_LINE
    any phase -> CLOSED
"""

import enum
import time
import socket
import logging

from .errors import BadRequestError
from .request import Request, RequestParser, is_header_terminator
from .response import BAD_REQUEST_RESPONSE, TIMEOUT_NOTICE, generate_response
from .status import decide_status


class ConnectionPhase(enum.Enum):
    AWAITING_REQUEST_LINE = 'awaiting_request_line'
    AWAITING_HEADERS = 'awaiting_headers'
    CLOSED = 'closed'


class Connection:
    """
    A single client connection.

    Bytes read from the socket are split into lines and fed through the
    request parser; each completed request is answered immediately.
    """

    def __init__(self, client_socket, client_address, server_config, clock=time.monotonic):
        """
        Initialize the connection.

        Args:
            client_socket: Connected client socket
            client_address: Client address tuple (ip, port)
            server_config: ServerConfig instance
            clock: Monotonic clock in seconds, used for the idle timeout
        """
        self.socket = client_socket
        self.address = client_address
        self.config = server_config
        self.clock = clock
        self.logger = logging.getLogger('Connection')

        self.parser = RequestParser(self.config.document_root)
        self.request = Request(self.config.max_headers)
        self.phase = ConnectionPhase.AWAITING_REQUEST_LINE
        self.close_requested = False
        self.last_activity = self._now_ms()
        self._buffer = b''

        self.stats = {
            'requests': 0,
            'bad_requests': 0,
            'status_2xx': 0,
            'status_3xx': 0,
            'status_4xx': 0,
            'status_5xx': 0
        }

    @property
    def peer(self):
        if isinstance(self.address, tuple) and len(self.address) >= 2:
            return f"{self.address[0]}:{self.address[1]}"
        return str(self.address)

    @property
    def is_closed(self):
        return self.phase is ConnectionPhase.CLOSED

    def _now_ms(self):
        return int(self.clock() * 1000)

    def touch(self):
        """Reset the idle timer."""
        self.last_activity = self._now_ms()

    def idle_ms(self):
        """Milliseconds since bytes were last received."""
        return self._now_ms() - self.last_activity

    def remaining_timeout(self):
        """Seconds left before the connection times out."""
        return self.config.idle_timeout - self.idle_ms() / 1000.0

    def serve(self):
        """
        Serve requests until the connection times out or is closed.

        Reads block for at most the time left before the idle timeout.
        """
        while not self.is_closed:
            remaining = self.remaining_timeout()
            if remaining <= 0:
                self.time_out()
                break

            try:
                self.socket.settimeout(remaining)
                data = self.socket.recv(self.config.recv_buffer_size)
            except socket.timeout:
                continue
            except OSError as e:
                self.logger.warning(f"Connection error from {self.peer}: {e}")
                self.close()
                break

            if not data:
                self.logger.info(f"Connection closed by {self.peer}")
                self.close()
                break

            output = self.feed(data)

            try:
                if output:
                    self.send(output)
            except OSError as e:
                self.logger.warning(f"Error sending response to {self.peer}: {e}")
                self.close()
                break

            if self.close_requested:
                self.logger.info(f"Closing connection to {self.peer} on client request")
                self.close()

    def feed(self, data):
        """
        Consume bytes received from the client.

        Args:
            data: Raw bytes as read from the socket

        Returns:
            bytes: Everything that should be written back to the client
        """
        self.touch()
        self.logger.debug(f"{self.peer}: {data!r}")
        self._buffer += data
        output = []

        while not self.close_requested:
            newline = self._buffer.find(b'\n')
            if newline == -1:
                break
            raw_line, self._buffer = self._buffer[:newline + 1], self._buffer[newline + 1:]
            output.append(self.handle_line(raw_line.decode('utf-8', 'surrogateescape')))

        if len(self._buffer) > self.config.max_line_length:
            self.logger.warning(f"Line from {self.peer} exceeds {self.config.max_line_length} bytes")
            self._buffer = b''
            output.append(self._bad_request(BadRequestError('', "Line too long")))

        return b''.join(output)

    def handle_line(self, line):
        """
        Advance the state machine by one line.

        Args:
            line: A single line, including its line ending

        Returns:
            bytes: Response bytes produced by this line (may be empty)
        """
        if self.phase is ConnectionPhase.AWAITING_REQUEST_LINE:
            try:
                self.parser.parse_request_line(line, self.request)
            except BadRequestError as e:
                self.request.reset()
                return self._bad_request(e)
            self.phase = ConnectionPhase.AWAITING_HEADERS
            return b''

        if self.phase is ConnectionPhase.AWAITING_HEADERS:
            if is_header_terminator(line):
                response = self.dispatch()
                if line.startswith('GET') and not self.close_requested:
                    response += self.handle_line(line)
                return response

            try:
                self.parser.parse_header_line(line, self.request)
            except BadRequestError as e:
                return self._bad_request(e)
            return b''

        return b''

    def dispatch(self):
        """
        Answer the completed request and get ready for the next one.

        Returns:
            bytes: The generated response
        """
        request = self.request

        for name, value in request.headers.items():
            self.logger.debug(f"{name}: {value}")

        document_root = self.config.document_root if self.config.restrict_to_root else None
        status = decide_status(request, document_root)

        keep_alive = not (self.config.honor_connection_close and request.wants_close)
        response = generate_response(
            status,
            request,
            keep_alive=keep_alive,
            legacy_last_modified=self.config.legacy_last_modified_header
        )

        self.logger.info(f"{self.peer} - {request.method} {request.resource} {request.version} - {status.code}")
        self.stats['requests'] += 1
        self.stats[f"status_{status.code // 100}xx"] += 1

        self.close_requested = not keep_alive
        request.reset()
        self.phase = ConnectionPhase.AWAITING_REQUEST_LINE
        return response

    def _bad_request(self, error):
        self.logger.warning(f"Bad request from {self.peer}: {error}")
        self.stats['bad_requests'] += 1
        return BAD_REQUEST_RESPONSE

    def send(self, data):
        """
        Write bytes to the client.

        Writes are bounded by the send timeout, not by the idle deadline
        used for reads.
        """
        self.socket.settimeout(self.config.send_timeout)
        self.socket.sendall(data)

    def time_out(self):
        """Write the timeout notice and close the connection."""
        self.logger.info(f"Connection timed out: {self.peer}")
        try:
            self.send(TIMEOUT_NOTICE)
        except OSError as e:
            self.logger.warning(f"Could not send timeout notice to {self.peer}: {e}")
        self.close()

    def close(self):
        """Close the connection."""
        if self.is_closed:
            return
        self.phase = ConnectionPhase.CLOSED
        try:
            self.socket.close()
        except OSError as e:
            self.logger.debug(f"Error closing socket for {self.peer}: {e}")
