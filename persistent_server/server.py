#!/usr/bin/env python
# -*- coding: utf-8 -*-

"""
Persistent HTTP Server Main Module
----------------------------------
Listens on a TCP port and serves one client connection at a time. A
connection is served until it times out or is closed before the next one
is accepted.
"""

import os
import sys
import time
import socket
import signal
import logging

from .config import ServerConfig
from .connection import Connection
from .errors import FatalStartupError
from .utils import is_valid_root

# How often the accept loop wakes up to check for shutdown
ACCEPT_POLL_INTERVAL = 0.5


class WebServer:
    """
    Web server class that accepts connections and serves them sequentially.
    """

    def __init__(self, config_file=None, **kwargs):
        """
        Initialize the web server.

        Args:
            config_file: Path to the configuration file
            **kwargs: Additional configuration parameters that override config file
        """
        self.config = ServerConfig(config_file, **kwargs)
        self.logger = logging.getLogger('WebServer')

        self.server_socket = None
        self.is_running = False
        self.start_time = time.time()

        self.connections_served = 0
        self.totals = {
            'requests': 0,
            'bad_requests': 0,
            'status_2xx': 0,
            'status_3xx': 0,
            'status_4xx': 0,
            'status_5xx': 0
        }

    def install_signal_handlers(self):
        """Shut down gracefully on SIGINT and SIGTERM."""
        signal.signal(signal.SIGINT, self._signal_handler)
        signal.signal(signal.SIGTERM, self._signal_handler)

    def _signal_handler(self, sig, frame):
        """
        Handle termination signals gracefully.

        Args:
            sig: Signal number
            frame: Current stack frame
        """
        self.logger.info(f"Received signal {sig}, shutting down...")
        self.shutdown()
        sys.exit(0)

    @property
    def server_address(self):
        """Address the server socket is bound to, or None before start()."""
        if self.server_socket is None:
            return None
        return self.server_socket.getsockname()

    def start(self):
        """
        Validate the document root, then bind and listen.

        Returns:
            bool: True once the server is listening

        Raises:
            FatalStartupError: If the document root is invalid or the socket
                cannot be set up
        """
        if self.is_running:
            self.logger.warning("Server is already running")
            return True

        document_root = self.config.document_root
        if not document_root or not is_valid_root(document_root):
            raise FatalStartupError(f"Invalid path: {document_root}")

        try:
            self.server_socket = socket.socket(socket.AF_INET, socket.SOCK_STREAM)
            self.server_socket.setsockopt(socket.SOL_SOCKET, socket.SO_REUSEADDR, 1)
            self.server_socket.bind((self.config.host, self.config.port))
            self.server_socket.listen(self.config.connection_queue)
            self.server_socket.settimeout(ACCEPT_POLL_INTERVAL)
        except OSError as e:
            if self.server_socket:
                self.server_socket.close()
                self.server_socket = None
            raise FatalStartupError(
                f"Error starting server on {self.config.host}:{self.config.port}: {e}"
            ) from e

        self.is_running = True
        host, port = self.server_address[:2]
        self.logger.info(f"{self.config.server_name} started")
        self.logger.info(f"Now serving {os.path.abspath(document_root)} at {host} on port {port}")
        return True

    def serve_forever(self):
        """
        Accept and serve connections one at a time until shut down.
        """
        listening_logged = False

        while self.is_running:
            if not listening_logged:
                self.logger.info("Listening for connections...")
                listening_logged = True

            server_socket = self.server_socket
            if server_socket is None:
                break

            try:
                client_socket, client_address = server_socket.accept()
            except socket.timeout:
                continue
            except OSError as e:
                if self.is_running:
                    self.logger.error(f"Error accepting connection: {e}")
                    # Sleep a bit to prevent CPU spinning on repeated errors
                    time.sleep(0.1)
                continue

            self.handle_connection(client_socket, client_address)
            listening_logged = False

    def handle_connection(self, client_socket, client_address):
        """
        Serve a single client connection to completion.

        Args:
            client_socket: Client socket object
            client_address: Client address tuple (ip, port)
        """
        self.logger.info(f"Received connection from {client_address[0]}")
        connection = Connection(client_socket, client_address, self.config)

        try:
            connection.serve()
        finally:
            connection.close()
            self.connections_served += 1
            for key, value in connection.stats.items():
                self.totals[key] += value

    def shutdown(self):
        """
        Shut down the web server.
        """
        if not self.is_running:
            return

        self.logger.info("Shutting down server...")
        self.is_running = False

        if self.server_socket:
            self.server_socket.close()
            self.server_socket = None

        self.logger.info("Server shutdown complete")

    @property
    def stats(self):
        """
        Get server statistics.

        Returns:
            dict: Server statistics
        """
        uptime = time.time() - self.start_time

        stats = {
            'uptime': uptime,
            'uptime_formatted': self._format_uptime(uptime),
            'connections_served': self.connections_served,
            'total_requests': self.totals['requests']
        }
        stats.update({key: value for key, value in self.totals.items() if key != 'requests'})
        return stats

    def _format_uptime(self, seconds):
        """
        Format uptime in seconds to human readable format.

        Args:
            seconds: Uptime in seconds

        Returns:
            str: Formatted uptime
        """
        days, remainder = divmod(seconds, 86400)
        hours, remainder = divmod(remainder, 3600)
        minutes, seconds = divmod(remainder, 60)

        parts = []
        if days > 0:
            parts.append(f"{int(days)}d")
        if hours > 0 or days > 0:
            parts.append(f"{int(hours)}h")
        if minutes > 0 or hours > 0 or days > 0:
            parts.append(f"{int(minutes)}m")
        parts.append(f"{int(seconds)}s")

        return " ".join(parts)
