"""Subprocess execution service for ecrpush."""

import os
import subprocess
from typing import Dict, Iterable, List, Optional

from ecrpush.errors import PusherError

MASK = "******"


class CommandRunner:
    """Runs external commands with consistent error handling."""

    def __init__(self, logger, default_timeout: Optional[float] = None):
        self.logger = logger
        self.default_timeout = default_timeout

    def run(
        self,
        cmd: List[str],
        check: bool = True,
        capture_output: bool = False,
        timeout: Optional[float] = None,
        input_text: Optional[str] = None,
        env: Optional[Dict[str, str]] = None,
        secrets: Optional[Iterable[str]] = None,
        log_output: bool = True,
    ) -> subprocess.CompletedProcess:
        cmd_str = self.format_command(cmd, secrets)
        self.logger.debug("Executing: %s", cmd_str)

        effective_timeout = timeout if timeout is not None else self.default_timeout
        run_env = None
        if env:
            run_env = dict(os.environ)
            run_env.update(env)

        try:
            result = subprocess.run(
                cmd,
                text=True,
                capture_output=capture_output,
                timeout=effective_timeout,
                input=input_text,
                env=run_env,
            )
        except FileNotFoundError as exc:
            raise PusherError(
                f"Required command not found: {cmd[0]}. Please install it and try again."
            ) from exc
        except subprocess.TimeoutExpired as exc:
            raise PusherError(f"Command timed out after {effective_timeout}s: {cmd_str}") from exc
        except OSError as exc:
            raise PusherError(f"Failed to execute command: {cmd_str}. {exc}") from exc

        if capture_output and log_output and result.stdout:
            self.logger.debug("Command output: %s", result.stdout.strip())

        if result.returncode == 0:
            return result

        stderr = (result.stderr or "").strip() if capture_output else ""
        message = f"Command failed ({result.returncode}): {cmd_str}"
        if stderr:
            message = f"{message}\n{stderr}"

        if check:
            raise PusherError(message)

        self.logger.debug(message)
        return result

    @staticmethod
    def format_command(cmd: List[str], secrets: Optional[Iterable[str]] = None) -> str:
        cmd_str = " ".join(cmd)
        for secret in secrets or ():
            if secret:
                cmd_str = cmd_str.replace(secret, MASK)
        return cmd_str
