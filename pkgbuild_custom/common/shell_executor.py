"""
Shell Executor Module - Runs external commands for descriptor evaluation
"""

import os
import subprocess
import logging
import sys
from pathlib import Path

logger = logging.getLogger(__name__)


class ShellExecutor:
    """Runs external commands with logging, timeout and a controlled environment"""

    def __init__(self, debug_mode: bool = False):
        self.debug_mode = debug_mode

    @staticmethod
    def minimal_env():
        """Environment with only what a sourced PKGBUILD may rely on"""
        return {
            'PATH': os.environ.get('PATH', '/usr/local/bin:/usr/bin:/bin'),
            'HOME': os.environ.get('HOME', '/'),
            'LC_ALL': 'C',
        }

    def run_command(self, cmd, cwd=None, check=True, timeout=60, env=None):
        """
        Run command and capture its output as text

        Args:
            cmd: Argument list (never passed through a shell)
            cwd: Working directory, defaults to the current one
            check: Raise CalledProcessError on non-zero exit
            timeout: Seconds before the command is killed
            env: Full environment to use instead of os.environ

        Returns:
            subprocess.CompletedProcess
        """
        if self.debug_mode:
            print(f"🔧 [SHELL DEBUG] RUNNING COMMAND: {cmd}", file=sys.stderr, flush=True)

        if cwd is None:
            cwd = Path.cwd()

        if env is None:
            env = os.environ.copy()
            env['LC_ALL'] = 'C'

        try:
            result = subprocess.run(
                cmd,
                cwd=cwd,
                capture_output=True,
                text=True,
                encoding='utf-8',
                check=check,
                env=env,
                timeout=timeout
            )
        except subprocess.TimeoutExpired:
            logger.error(f"⚠️ Command timed out after {timeout} seconds: {cmd}")
            raise

        if self.debug_mode:
            if result.stderr:
                print(f"🔧 [SHELL DEBUG] STDERR:\n{result.stderr}", file=sys.stderr, flush=True)
            print(f"🔧 [SHELL DEBUG] EXIT CODE: {result.returncode}", file=sys.stderr, flush=True)

        return result
