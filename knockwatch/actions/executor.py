"""Runs the command bound to a matched knock rule.

Commands go through the shell so rules can use pipes and redirection. The
placeholder `%IP%` is replaced with the (shell-quoted) client address and the
client and rule name are exported as `KNOCK_CLIENT` / `KNOCK_RULE`.
"""
from __future__ import annotations

import logging
import os
import shlex
import subprocess
from typing import Callable, Optional

from knockwatch.detection.sequence_detector import KnockMatch

logger = logging.getLogger(__name__)

IP_PLACEHOLDER = '%IP%'


def render_command(command: str, client: str) -> str:
    return command.replace(IP_PLACEHOLDER, shlex.quote(client))


class CommandExecutor:
    def __init__(self, timeout: float = 30.0, runner: Callable = subprocess.run):
        self.timeout = timeout
        self._run = runner

    def run(self, match: KnockMatch) -> Optional[int]:
        """Execute the rule's command; return its exit code or None on failure."""
        if not match.command.strip():
            logger.debug("Rule '%s' has no command; nothing to run", match.name)
            return None

        cmd = render_command(match.command, match.client)
        env = dict(os.environ, KNOCK_CLIENT=match.client, KNOCK_RULE=match.name)
        logger.info("Running command for rule '%s' (client %s): %s", match.name, match.client, cmd)

        try:
            result = self._run(cmd, shell=True, env=env, capture_output=True, text=True, timeout=self.timeout)
        except subprocess.TimeoutExpired:
            logger.warning("Command for rule '%s' timed out after %ss", match.name, self.timeout)
            return None
        except OSError as e:
            logger.warning("Command for rule '%s' could not be started: %s", match.name, e)
            return None

        if result.returncode != 0:
            logger.warning("Command for rule '%s' exited with %d: %s",
                           match.name, result.returncode, (result.stderr or '').strip())
        else:
            logger.info("Command for rule '%s' completed", match.name)
        return result.returncode
