"""
Component logging for InstallerIntegrity.

This module provides a factory to create log functions with a component name,
eliminating the need to set up a logger in every module. All functions route
to the stdlib logger "InstallerIntegrity.<component>", so handlers and levels
are configured once in shared.logging_config.

Usage:
    from shared.log import create_logger
    log_trace, log_debug, log_info, log_warn, log_error = create_logger("Engine")
    log_info("Checking 42 library files")  # -> InstallerIntegrity.Engine INFO ...
"""

import logging

TRACE = 5
logging.addLevelName(TRACE, "TRACE")

ROOT_LOGGER_NAME = "InstallerIntegrity"


def create_logger(component: str = ""):
    """Create log functions for a component.

    Args:
        component: Component name suffix. If provided, the logger is
                   "InstallerIntegrity.{component}", otherwise "InstallerIntegrity".

    Returns:
        Tuple of (log_trace, log_debug, log_info, log_warn, log_error) functions.
    """
    name = f"{ROOT_LOGGER_NAME}.{component}" if component else ROOT_LOGGER_NAME
    logger = logging.getLogger(name)

    def log_trace(msg): logger.log(TRACE, msg)
    def log_debug(msg): logger.debug(msg)
    def log_info(msg): logger.info(msg)
    def log_warn(msg): logger.warning(msg)
    def log_error(msg): logger.error(msg)

    return log_trace, log_debug, log_info, log_warn, log_error
