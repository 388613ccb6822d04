"""Shared fixtures for the persistent server tests."""

import os
import socket

import pytest

from persistent_server.config import ServerConfig
from persistent_server.connection import Connection

from support import FILE_MTIME, INDEX_HTML, NOTES_TXT, STYLE_CSS


@pytest.fixture
def document_root(tmp_path):
    """A document root holding a few static files with a known mtime."""
    root = tmp_path / "htdocs"
    root.mkdir()
    (root / "index.html").write_bytes(INDEX_HTML)
    (root / "style.css").write_bytes(STYLE_CSS)
    (root / "notes.txt").write_bytes(NOTES_TXT)
    (root / "assets").mkdir()
    for path in root.rglob("*"):
        os.utime(path, (FILE_MTIME, FILE_MTIME))
    return root


@pytest.fixture
def config(document_root):
    return ServerConfig(document_root=str(document_root), idle_timeout=0.3)


@pytest.fixture
def socket_pair():
    server_side, client_side = socket.socketpair()
    yield server_side, client_side
    server_side.close()
    client_side.close()


@pytest.fixture
def connection(socket_pair, config):
    server_side, _ = socket_pair
    return Connection(server_side, ("127.0.0.1", 54321), config)

