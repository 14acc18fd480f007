# Author: PB & Claude
# Maintainer: PB
# Original date: 2025.06.01
# License: (c) HRDAG, 2025, GPL-2 or newer
#
# ------
# src/vaultwal/system/logging_setup.py

import sys
from pathlib import Path

from loguru import logger

from vaultwal.config.manager import UserConfig, load_merged_user_config

LOG_FILE_NAME = "vaultwal.log"


def setup_logging(debug: bool = False, user_config: UserConfig | None = None) -> Path | None:
    """Setup loguru logging for the entire application.

    Configures:
    - Console output: WARNING+ (DEBUG+ with debug=True)
    - File output: DEBUG+ if local_log is configured in user config

    Returns:
        Path of the log file, or None when file logging is off
    """
    logger.remove()

    logger.add(
        sys.stderr,
        level="DEBUG" if debug else "WARNING",
        format="<level>{level}</level>: {message}",
        colorize=True
    )

    try:
        if user_config is None:
            user_config = load_merged_user_config()
        if not user_config.local_log:
            return None

        log_dir = Path(user_config.local_log).expanduser()
        log_dir.mkdir(parents=True, exist_ok=True)
        log_file = log_dir / LOG_FILE_NAME

        logger.add(
            log_file,
            level="DEBUG",
            format="{time:YYYY-MM-DD HH:mm:ss.SSS} | {level: <8} | {name}:{function}:{line} - {message}",
            rotation="10 MB",
            retention="30 days",
            compression="gz"
        )
        logger.debug(f"File logging enabled: {log_file}")
        return log_file

    except Exception as e:
        # Don't fail the entire application if logging setup fails
        logger.warning(f"Failed to setup file logging: {e}")
        return None
