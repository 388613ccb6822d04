#!/usr/bin/env python
# -*- coding: utf-8 -*-

"""
Persistent HTTP Server
----------------------
Command-line entry point. Serves the files under a document root on the
given port.

Usage: run.py port document_root [options]
"""

import sys
import logging
import argparse

from persistent_server.config import ServerConfig
from persistent_server.errors import FatalStartupError
from persistent_server.server import WebServer
from persistent_server.utils import setup_logging


def build_parser():
    """
    Build the command-line argument parser.
    """
    parser = argparse.ArgumentParser(description='Persistent HTTP Server')

    parser.add_argument('port', type=int, help='Port to listen on')
    parser.add_argument('document_root', type=str, help='Directory to serve files from')

    parser.add_argument('-H', '--host', type=str, help='Host address to bind to')
    parser.add_argument('-c', '--config', type=str, help='Path to configuration file')

    # Connection behavior options
    parser.add_argument('--timeout', type=float, dest='idle_timeout',
                        help='Seconds a connection may stay idle before it is closed')
    parser.add_argument('--max-headers', type=int,
                        help='Maximum number of headers stored per request')
    parser.add_argument('--restrict-to-root', action='store_true', default=None,
                        help='Answer 404 for paths resolving outside the document root')

    # Logging options
    parser.add_argument('--log-level', type=str, choices=['DEBUG', 'INFO', 'WARNING', 'ERROR', 'CRITICAL'],
                        help='Logging level')
    parser.add_argument('--log-file', type=str, help='Path to log file')
    parser.add_argument('--no-color', action='store_true', help='Disable colored logging')

    return parser


def configure_logging(config):
    """
    Set up logging from a ServerConfig.
    """
    setup_logging(
        log_level=config.log_level,
        log_file=config.log_file,
        max_size=config.log_max_size,
        backup_count=config.log_backup_count,
        use_colored_logging=config.colored_logging
    )


def main(argv=None):
    """
    Main entry point for the server.
    """
    args = build_parser().parse_args(argv)

    # Convert arguments to dictionary, excluding None values
    config_args = {k: v for k, v in vars(args).items() if v is not None}
    config_file = config_args.pop('config', None)

    # Special handling for boolean flags
    if config_args.pop('no_color', False):
        config_args['colored_logging'] = False

    # Log with command-line settings while the configuration file is read
    configure_logging(ServerConfig(**config_args))

    server = WebServer(config_file=config_file, **config_args)
    if config_file:
        configure_logging(server.config)

    logger = logging.getLogger('WebServer')

    try:
        server.start()
    except FatalStartupError as e:
        logger.critical(str(e))
        return 1

    server.install_signal_handlers()

    try:
        server.serve_forever()
    finally:
        server.shutdown()

    return 0


if __name__ == '__main__':
    sys.exit(main())
