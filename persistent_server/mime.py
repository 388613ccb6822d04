#!/usr/bin/env python
# -*- coding: utf-8 -*-

"""
MIME Type Resolution
--------------------
Maps a file name's extension to the content type sent in the
``Content-Type`` response header.
"""

# Supported file extensions
MIME_TYPES = {
    '.html': 'text/html',
    '.txt': 'text/plain',
    '.css': 'text/css',
    '.js': 'text/javascript',
    '.jpg': 'image/jpeg',
}


def get_mime_type(filename):
    """
    Get the MIME type for a file name.

    The extension is everything from the last '.' onwards and is matched
    exactly (case-sensitive). Unknown or missing extensions fall back to the
    file name itself, which is what existing clients of this server receive.

    Args:
        filename: File name or path

    Returns:
        str: MIME type, or ``filename`` when the extension is not supported
    """
    dot = filename.rfind('.')
    if dot == -1:
        return filename

    return MIME_TYPES.get(filename[dot:], filename)
