"""Tests for the connection state machine."""

import os
import socket
import sys
import threading
import time

import pytest

from persistent_server.config import ServerConfig
from persistent_server.connection import Connection, ConnectionPhase
from persistent_server.response import BAD_REQUEST_RESPONSE, TIMEOUT_NOTICE

from support import INDEX_HTML, NOTES_TXT, read_until_closed


class FakeClock:
    def __init__(self, now=100.0):
        self.now = now

    def __call__(self):
        return self.now


def responses(data):
    """Split concatenated responses on their status lines."""
    parts = data.split(b"HTTP/1.")
    return [b"HTTP/1." + part for part in parts if part]


class TestFeed:
    def test_request_line_waits_for_headers(self, connection):
        assert connection.feed(b"GET / HTTP/1.1\r\n") == b""
        assert connection.phase is ConnectionPhase.AWAITING_HEADERS
        assert connection.request.resource == "/index.html"

    def test_blank_line_dispatches(self, connection):
        connection.feed(b"GET / HTTP/1.1\r\n")
        response = connection.feed(b"\r\n")
        assert response.startswith(b"HTTP/1.1 200 OK\r\n")
        assert f"Content-Length: {len(INDEX_HTML)}\r\n".encode() in response
        assert response.endswith(INDEX_HTML)
        assert connection.phase is ConnectionPhase.AWAITING_REQUEST_LINE

    def test_request_is_reset_after_dispatch(self, connection):
        connection.feed(b"GET /notes.txt HTTP/1.1\r\nAccept: */*\r\n\r\n")
        assert connection.request.method == ""
        assert len(connection.request.headers) == 0

    def test_several_lines_in_one_read(self, connection):
        response = connection.feed(b"GET /notes.txt HTTP/1.0\r\nHost: localhost\r\n\r\n")
        assert response.startswith(b"HTTP/1.0 200 OK\r\n")
        assert response.endswith(NOTES_TXT)

    def test_line_split_across_reads(self, connection):
        assert connection.feed(b"GET /notes") == b""
        assert connection.phase is ConnectionPhase.AWAITING_REQUEST_LINE
        assert connection.feed(b".txt HTTP/1.1\r\n") == b""
        assert connection.feed(b"\n").endswith(NOTES_TXT)

    def test_headers_are_stored(self, connection):
        connection.feed(b"GET / HTTP/1.1\r\nAccept: text/html\r\n")
        assert connection.request.headers.get("Accept") == "text/html"

    def test_seventh_header_is_dropped(self, connection):
        connection.feed(b"GET / HTTP/1.1\r\n")
        for i in range(7):
            connection.feed(f"X-Header-{i}: {i}\r\n".encode())
        assert len(connection.request.headers) == 6
        assert connection.request.dropped_headers == 1

    def test_too_many_tokens_is_bad_request(self, connection):
        assert connection.feed(b"GET / HTTP/1.1 extra\r\n") == BAD_REQUEST_RESPONSE
        assert connection.phase is ConnectionPhase.AWAITING_REQUEST_LINE
        assert connection.stats["bad_requests"] == 1

    def test_blank_request_line_is_bad_request(self, connection):
        assert connection.feed(b"\r\n") == BAD_REQUEST_RESPONSE
        assert connection.phase is ConnectionPhase.AWAITING_REQUEST_LINE

    def test_short_header_line_is_bad_request(self, connection):
        connection.feed(b"GET / HTTP/1.1\r\n")
        assert connection.feed(b"x\r\n") == BAD_REQUEST_RESPONSE
        assert connection.phase is ConnectionPhase.AWAITING_HEADERS

    def test_request_survives_bad_header_line(self, connection):
        connection.feed(b"GET / HTTP/1.1\r\n")
        connection.feed(b"garbage\r\n")
        assert connection.feed(b"\r\n").startswith(b"HTTP/1.1 200 OK\r\n")

    @pytest.mark.skipif(sys.getfilesystemencoding().lower() != "utf-8", reason="needs a UTF-8 filesystem encoding")
    def test_non_utf8_resource_is_served(self, connection, document_root):
        (document_root / os.fsdecode(b"caf\xe9.txt")).write_bytes(NOTES_TXT)
        response = connection.feed(b"GET /caf\xe9.txt HTTP/1.1\r\n\r\n")
        assert response.startswith(b"HTTP/1.1 200 OK\r\n")
        assert b"Content-Type: text/plain\r\n" in response
        assert response.endswith(NOTES_TXT)

    def test_get_line_terminates_headers(self, connection):
        data = connection.feed(
            b"GET /notes.txt HTTP/1.1\r\n"
            b"GET /missing.html HTTP/1.1\r\n"
            b"\r\n"
        )
        first, second = responses(data)
        assert first.startswith(b"HTTP/1.1 200 OK\r\n")
        assert first.endswith(NOTES_TXT)
        assert second == b"HTTP/1.1 404 Not Found\r\nConnection: Keep-Alive\r\n\r\n"

    def test_status_outcomes(self, connection):
        data = connection.feed(
            b"POST / HTTP/1.1\r\n\r\n"
            b"GET / HTTP/0.9\r\n\r\n"
            b"GET /missing HTTP/1.1\r\n\r\n"
        )
        assert [r.split(b"\r\n", 1)[0] for r in responses(data)] == [
            b"HTTP/1.1 405 Method Not Allowed",
            b"HTTP/1.1 505 HTTP Version Not Supported",
            b"HTTP/1.1 404 Not Found",
        ]
        assert connection.stats["requests"] == 3
        assert connection.stats["status_4xx"] == 2
        assert connection.stats["status_5xx"] == 1

    def test_connection_close_is_honored(self, connection):
        response = connection.feed(
            b"GET / HTTP/1.1\r\nConnection: close\r\n\r\n"
            b"GET /notes.txt HTTP/1.1\r\n\r\n"
        )
        assert b"Connection: close\r\n" in response
        assert response.endswith(INDEX_HTML)
        assert connection.close_requested

    def test_connection_close_can_be_ignored(self, socket_pair, document_root):
        config = ServerConfig(document_root=str(document_root), honor_connection_close=False)
        connection = Connection(socket_pair[0], ("127.0.0.1", 1), config)
        response = connection.feed(b"GET / HTTP/1.1\r\nConnection: close\r\n\r\n")
        assert b"Connection: Keep-Alive\r\n" in response
        assert not connection.close_requested

    def test_restrict_to_root(self, socket_pair, document_root):
        config = ServerConfig(document_root=str(document_root / "assets"), restrict_to_root=True)
        connection = Connection(socket_pair[0], ("127.0.0.1", 1), config)
        response = connection.feed(b"GET /../notes.txt HTTP/1.1\r\n\r\n")
        assert response.startswith(b"HTTP/1.1 404 Not Found\r\n")

    def test_overlong_line_is_bad_request(self, socket_pair, document_root):
        config = ServerConfig(document_root=str(document_root), max_line_length=16)
        connection = Connection(socket_pair[0], ("127.0.0.1", 1), config)
        assert connection.feed(b"GET /" + b"a" * 32) == BAD_REQUEST_RESPONSE
        assert connection.feed(b"GET / HTTP/1.1\r\n\r\n").startswith(b"HTTP/1.1 200 OK")


class TestIdleTimer:
    def test_feed_resets_idle_timer(self, socket_pair, config):
        clock = FakeClock()
        connection = Connection(socket_pair[0], ("127.0.0.1", 1), config, clock=clock)
        clock.now += 0.25
        assert connection.idle_ms() == 250
        connection.feed(b"GET / HTTP/1.1\r\n")
        assert connection.idle_ms() == 0

    def test_remaining_timeout(self, socket_pair, config):
        clock = FakeClock()
        connection = Connection(socket_pair[0], ("127.0.0.1", 1), config, clock=clock)
        clock.now += 0.125
        assert abs(connection.remaining_timeout() - 0.175) < 1e-3

    def test_expired_timer_closes_without_reading(self, socket_pair, config):
        server_side, client_side = socket_pair
        clock = FakeClock()
        connection = Connection(server_side, ("127.0.0.1", 1), config, clock=clock)
        clock.now += 11
        connection.serve()
        assert connection.is_closed
        assert read_until_closed(client_side) == TIMEOUT_NOTICE


class TestServe:
    def test_idle_connection_times_out(self, socket_pair, connection):
        _, client_side = socket_pair
        started = time.monotonic()
        connection.serve()
        assert time.monotonic() - started >= 0.2
        assert connection.is_closed
        assert read_until_closed(client_side) == TIMEOUT_NOTICE

    def test_incomplete_request_gets_no_response(self, socket_pair, connection):
        _, client_side = socket_pair
        client_side.sendall(b"GET / HTTP/1.1\r\nAccept: */*\r\n")
        connection.serve()
        assert read_until_closed(client_side) == TIMEOUT_NOTICE

    def test_response_then_timeout(self, socket_pair, connection):
        _, client_side = socket_pair
        client_side.sendall(b"GET / HTTP/1.1\r\n\r\n")
        connection.serve()
        data = read_until_closed(client_side)
        assert data.startswith(b"HTTP/1.1 200 OK\r\n")
        assert data.endswith(INDEX_HTML + TIMEOUT_NOTICE)

    def test_connection_close_ends_serving(self, socket_pair, connection):
        _, client_side = socket_pair
        client_side.sendall(b"GET /notes.txt HTTP/1.1\r\nConnection: close\r\n\r\n")
        connection.serve()
        data = read_until_closed(client_side)
        assert data.endswith(NOTES_TXT)
        assert TIMEOUT_NOTICE not in data

    def test_peer_close_ends_serving(self, socket_pair, connection):
        _, client_side = socket_pair
        client_side.sendall(b"GET / HTTP/1.1\r\n\r\n")
        client_side.shutdown(socket.SHUT_WR)
        connection.serve()
        assert connection.is_closed
        data = read_until_closed(client_side)
        assert data.endswith(INDEX_HTML)
        assert TIMEOUT_NOTICE not in data

    def test_large_body_sent_late_in_idle_window(self, socket_pair, document_root):
        payload = b"x" * (8 * 1024 * 1024)
        (document_root / "big.txt").write_bytes(payload)
        server_side, client_side = socket_pair
        clock = FakeClock()
        config = ServerConfig(document_root=str(document_root), idle_timeout=10)
        connection = Connection(server_side, ("127.0.0.1", 1), config, clock=clock)
        clock.now += 9.95
        client_side.sendall(b"GET /big.txt HTTP/1.1\r\nConnection: close\r\n\r\n")

        received = []

        def slow_reader():
            time.sleep(0.3)
            received.append(read_until_closed(client_side, timeout=10))

        reader = threading.Thread(target=slow_reader)
        reader.start()
        connection.serve()
        reader.join(timeout=15)

        head, _, body = received[0].partition(b"\r\n\r\n")
        assert head.startswith(b"HTTP/1.1 200 OK\r\n")
        assert f"Content-Length: {len(payload)}".encode() in head
        assert len(body) == len(payload)
