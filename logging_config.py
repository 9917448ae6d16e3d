#!/usr/bin/env python3
"""
Logging Configuration for the Parking Monitor
Console output plus rotating log files for the availability monitor
"""

import os
import logging
import logging.handlers
from datetime import datetime
from typing import Optional

# Read production mode setting
PRODUCTION_MODE = os.getenv('PRODUCTION_MODE', 'false').lower() == 'true'

# Define the log directory to be a fixed 'latest_log'
LOG_DIR = os.getenv(
    'LOG_DIR',
    os.path.join(os.path.dirname(os.path.abspath(__file__)), 'logs', 'latest_log'),
)

COMPONENT_LOGGERS = (
    'Main',
    'TriggerScheduler',
    'AvailabilityTracker',
    'SnapshotNormalizer',
    'SnapshotSource',
    'TelegramNotifier',
    'LoggingNotifier',
)


def setup_logging(production_mode: Optional[bool] = None, log_dir: Optional[str] = None) -> None:
    """
    Set up logging with a console handler and rotating file handlers.
    Handlers installed by a previous call are replaced.
    """
    production = PRODUCTION_MODE if production_mode is None else production_mode
    directory = log_dir or LOG_DIR

    # Ensure the log directory exists
    os.makedirs(directory, exist_ok=True)

    main_log_file = os.path.join(directory, 'monitor.log')
    debug_log_file = os.path.join(directory, 'monitor_debug.log')
    error_log_file = os.path.join(directory, 'monitor_errors.log')

    # Root logger configuration - adjust based on production mode
    root_logger = logging.getLogger()
    if production:
        root_logger.setLevel(logging.WARNING)  # Only warnings and errors from unnamed loggers
    else:
        root_logger.setLevel(logging.DEBUG)

    # Clear existing handlers
    for handler in list(root_logger.handlers):
        root_logger.removeHandler(handler)
        handler.close()

    # Detailed formatter with file, line, and function information
    detailed_formatter = logging.Formatter(
        '%(asctime)s - %(name)s - %(levelname)s - [%(filename)s:%(lineno)d in %(funcName)s()] - %(message)s',
        datefmt='%Y-%m-%d %H:%M:%S'
    )

    # Console formatter (less detailed for readability)
    console_formatter = logging.Formatter(
        '%(asctime)s - %(name)s - %(levelname)s - %(message)s',
        datefmt='%H:%M:%S'
    )

    console_handler = logging.StreamHandler()
    console_handler.setLevel(logging.INFO)
    console_handler.setFormatter(console_formatter)
    root_logger.addHandler(console_handler)

    main_file_handler = logging.handlers.RotatingFileHandler(
        main_log_file,
        maxBytes=10*1024*1024,  # 10MB
        backupCount=5,
        encoding='utf-8'
    )
    main_file_handler.setLevel(logging.INFO)
    main_file_handler.setFormatter(detailed_formatter)
    root_logger.addHandler(main_file_handler)

    # Debug log file handler - only enabled in development mode
    if not production:
        debug_file_handler = logging.handlers.RotatingFileHandler(
            debug_log_file,
            maxBytes=50*1024*1024,  # 50MB
            backupCount=3,
            encoding='utf-8'
        )
        debug_file_handler.setLevel(logging.DEBUG)
        debug_file_handler.setFormatter(detailed_formatter)
        root_logger.addHandler(debug_file_handler)

    # Error log file handler - ERROR and above
    error_file_handler = logging.handlers.RotatingFileHandler(
        error_log_file,
        maxBytes=5*1024*1024,  # 5MB
        backupCount=5,
        encoding='utf-8'
    )
    error_file_handler.setLevel(logging.ERROR)
    error_file_handler.setFormatter(detailed_formatter)
    root_logger.addHandler(error_file_handler)

    component_level = logging.INFO if production else logging.DEBUG
    for name in COMPONENT_LOGGERS:
        logging.getLogger(name).setLevel(component_level)

    # Reduce noise from external libraries
    logging.getLogger('asyncio').setLevel(logging.WARNING)
    logging.getLogger('httpx').setLevel(logging.WARNING)
    logging.getLogger('httpcore').setLevel(logging.WARNING)
    logging.getLogger('telegram').setLevel(logging.INFO)

    root_logger.info("=" * 80)
    root_logger.info(f"Parking Monitor Logging Initialized - {datetime.now()}")
    root_logger.info(f"Production Mode: {'ON' if production else 'OFF'}")
    root_logger.info(f"Main log: {main_log_file}")
    if not production:
        root_logger.info(f"Debug log: {debug_log_file}")
    root_logger.info(f"Error log: {error_log_file}")
    root_logger.info("=" * 80)

