#!/usr/bin/env python
# -*- coding: utf-8 -*-

"""
Configuration Module for Persistent HTTP Server
-----------------------------------------------
Handles loading and managing server configuration from various sources:
- Default configuration
- Configuration file (JSON)
- Command-line arguments (applied by run.py as keyword overrides)
"""

import os
import json
import logging


class ServerConfig:
    """
    Server configuration manager.

    Loads and provides access to server configuration settings from various sources,
    with the following precedence (highest to lowest):
    1. Command-line arguments
    2. Configuration file
    3. Default values
    """

    # Default configuration settings
    DEFAULT_CONFIG = {
        "host": "0.0.0.0",
        "port": 8000,
        "document_root": "htdocs",
        "idle_timeout": 10,
        "send_timeout": 30,  # None means block until written
        "max_headers": 6,  # None means unbounded
        "recv_buffer_size": 1024,
        "max_line_length": 8192,
        "connection_queue": 5,
        "honor_connection_close": True,
        "restrict_to_root": False,
        "legacy_last_modified_header": True,
        "log_level": "INFO",
        "log_file": None,
        "log_max_size": 10485760,  # 10 MB
        "log_backup_count": 5,
        "colored_logging": True,
        "server_name": "Persistent Server/1.0"
    }

    def __init__(self, config_file=None, **kwargs):
        """
        Initialize the configuration with values from file and kwargs.

        Args:
            config_file: Path to the configuration file
            **kwargs: Additional configuration parameters that override file values
        """
        self._config = self.DEFAULT_CONFIG.copy()
        self.logger = logging.getLogger('ServerConfig')

        if config_file:
            self.load_from_file(config_file)

        for key, value in kwargs.items():
            self._config[key] = value

    def load_from_file(self, config_path="config.json"):
        """
        Load configuration from a JSON file.

        Args:
            config_path: Path to the configuration file (default: config.json)

        Returns:
            bool: True if loaded successfully, False otherwise
        """
        if not os.path.exists(config_path):
            self.logger.warning(f"Configuration file {config_path} not found. Using defaults.")
            return False

        try:
            with open(config_path, 'r') as f:
                file_config = json.load(f)
        except (OSError, json.JSONDecodeError) as e:
            self.logger.error(f"Error loading configuration: {e}")
            return False

        if not isinstance(file_config, dict):
            self.logger.error(f"Configuration file {config_path} must contain a JSON object")
            return False

        self._config.update(file_config)
        self.logger.info(f"Loaded configuration from {config_path}")
        return True

    def save_to_file(self, config_path="config.json"):
        """
        Save current configuration to a JSON file.

        Args:
            config_path: Path to save the configuration file (default: config.json)

        Returns:
            bool: True if saved successfully, False otherwise
        """
        try:
            with open(config_path, 'w') as f:
                json.dump(self._config, f, indent=4)
        except OSError as e:
            self.logger.error(f"Error saving configuration: {e}")
            return False

        self.logger.info(f"Configuration saved to {config_path}")
        return True

    def get(self, key, default=None):
        """
        Get a configuration value.

        Args:
            key: Configuration key
            default: Default value if key is not found

        Returns:
            Value for the key or default if not found
        """
        return self._config.get(key, default)

    def set(self, key, value):
        """
        Set a configuration value.

        Args:
            key: Configuration key
            value: Value to set
        """
        self._config[key] = value

    def get_all(self):
        """
        Get all configuration values.

        Returns:
            dict: All configuration values
        """
        return self._config.copy()

    # Property accessors for common configuration values
    @property
    def host(self):
        return self.get('host')

    @property
    def port(self):
        return self.get('port')

    @property
    def document_root(self):
        return self.get('document_root')

    @property
    def idle_timeout(self):
        return self.get('idle_timeout', 10)

    @property
    def send_timeout(self):
        return self.get('send_timeout', 30)

    @property
    def max_headers(self):
        return self.get('max_headers')

    @property
    def recv_buffer_size(self):
        return self.get('recv_buffer_size', 1024)

    @property
    def max_line_length(self):
        return self.get('max_line_length', 8192)

    @property
    def connection_queue(self):
        return self.get('connection_queue', 5)

    @property
    def honor_connection_close(self):
        return self.get('honor_connection_close', True)

    @property
    def restrict_to_root(self):
        return self.get('restrict_to_root', False)

    @property
    def legacy_last_modified_header(self):
        return self.get('legacy_last_modified_header', True)

    @property
    def log_level(self):
        return self.get('log_level')

    @property
    def log_file(self):
        return self.get('log_file')

    @property
    def log_max_size(self):
        return self.get('log_max_size')

    @property
    def log_backup_count(self):
        return self.get('log_backup_count')

    @property
    def colored_logging(self):
        return self.get('colored_logging')

    @property
    def server_name(self):
        return self.get('server_name', 'Persistent Server/1.0')
