"""Shared test data and socket helpers."""

INDEX_HTML = b"<html><body><h1>It works</h1></body></html>\n"
STYLE_CSS = b"body { color: black; }\n"
NOTES_TXT = b"plain text notes\n"

# Fixed modification time for served files: Sun, 09 Sep 2001 01:46:40 GMT
FILE_MTIME = 1_000_000_000


def read_until_closed(sock, timeout=5.0):
    """Read from ``sock`` until the peer closes it."""
    sock.settimeout(timeout)
    chunks = []
    while True:
        data = sock.recv(65536)
        if not data:
            break
        chunks.append(data)
    return b"".join(chunks)
