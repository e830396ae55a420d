"""
Logging utilities for the PKGBUILD customizer
"""

import logging
import sys


def setup_logging(debug_mode=False, log_file=None):
    """Setup logging configuration"""
    level = logging.DEBUG if debug_mode else logging.INFO

    handlers = [logging.StreamHandler(sys.stderr)]
    if log_file:
        handlers.append(logging.FileHandler(log_file))

    logging.basicConfig(
        level=level,
        format='[%(asctime)s] %(levelname)s: %(message)s',
        datefmt='%H:%M:%S',
        handlers=handlers,
        force=True
    )

    return logging.getLogger('pkgbuild_custom')


class DebugLogger:
    """Progress logger that bypasses the standard logger in debug mode"""

    def __init__(self, debug_mode=False, logger=None):
        self.debug_mode = debug_mode
        self.logger = logger or logging.getLogger('pkgbuild_custom')

    def log(self, message):
        """Log a progress message"""
        if self.debug_mode:
            print(f"🔧 [DEBUG] {message}", file=sys.stderr, flush=True)
        else:
            self.logger.debug(message)
