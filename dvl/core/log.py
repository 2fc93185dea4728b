#!/usr/bin/env python

"""
@package dvl.core.log
@file dvl/core/log.py
@brief Logging setup for the driver packages.

Every module grabs its logger at import time:

    from dvl.core.log import get_logger
    log = get_logger()

The first call loads the logging configuration (a dictConfig in YAML) from
dvl/core/log_config.yml, or from the file named by DVL_LOG_CONFIG.
"""

__license__ = 'Apache 2.0'

import logging
import logging.config
import os

import yaml

LOGGER_NAME = 'dvl'
LOG_CONFIG_ENV = 'DVL_LOG_CONFIG'
DEFAULT_LOG_CONFIG = os.path.join(os.path.dirname(__file__), 'log_config.yml')


class LoggerManager(object):
    """
    Configures the python logging system once per process.
    """
    _configured = False

    @classmethod
    def init(cls, config_file=None, force=False):
        if cls._configured and not force:
            return

        config_file = config_file or os.environ.get(LOG_CONFIG_ENV) or DEFAULT_LOG_CONFIG
        try:
            with open(config_file) as fh:
                config = yaml.safe_load(fh)
            logging.config.dictConfig(config)
        except (IOError, OSError, ValueError, yaml.YAMLError) as e:
            logging.basicConfig(level=logging.INFO)
            logging.getLogger(LOGGER_NAME).warning('Unable to load logging config %s: %s', config_file, e)

        cls._configured = True

    @staticmethod
    def set_level(level):
        """
        Change the level of the driver logger, e.g. from a command line switch.
        @param level a logging level name ('DEBUG') or number
        """
        if isinstance(level, str):
            level = level.upper()
        logging.getLogger(LOGGER_NAME).setLevel(level)


def get_logger():
    LoggerManager.init()
    return logging.getLogger(LOGGER_NAME)
