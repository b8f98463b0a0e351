"""
Source backed by a spawned capture process (tcpdump, local or over ssh).
"""
import logging
import subprocess
from typing import BinaryIO, List, Optional

from .icapture_source import ISource

logger = logging.getLogger(__name__)


class CommandSource(ISource):
    """
    Runs ``argv`` and reads the pcap stream from its stdout.

    The child's stderr is inherited, so tcpdump/ssh messages and prompts
    show up on our stderr untouched.
    """

    def __init__(self, description: str, argv: List[str], close_timeout: float = 5.0):
        super().__init__(description)
        self.argv = list(argv)
        self.close_timeout = close_timeout
        self.process: Optional[subprocess.Popen] = None

    @property
    def returncode(self) -> Optional[int]:
        return self.process.returncode if self.process else None

    def open(self) -> BinaryIO:
        """
        Spawn the process (once).

        Raises:
            OSError: If the process cannot be started
        """
        if self.process is None:
            logger.info("[%s] start", self.description)
            try:
                self.process = subprocess.Popen(self.argv, stdout=subprocess.PIPE)
            except OSError as e:
                logger.error("[%s] %s failed: %s", self.description, self.argv, e)
                raise
        return self.process.stdout

    def terminate(self):
        """Stop the process without waiting for its stream to drain."""
        if self.process is not None and self.process.poll() is None:
            self.process.terminate()

    def close(self):
        if self.process is None:
            return
        if self.process.stdout and not self.process.stdout.closed:
            self.process.stdout.close()
        try:
            self.process.wait(timeout=self.close_timeout)
        except subprocess.TimeoutExpired:
            logger.warning("[%s] process still running after stream closed, terminating",
                           self.description)
            self.process.terminate()
            self.process.wait()
        logger.info("[%s] process exited with code %s", self.description,
                    self.process.returncode)


def ssh_source(host: str, command: str) -> CommandSource:
    """Run ``command`` on ``host`` over ssh."""
    return CommandSource(host, ["ssh", host, command])


def shell_source(command: str) -> CommandSource:
    """Run ``command`` through the local shell."""
    return CommandSource(command, ["sh", "-c", command])
