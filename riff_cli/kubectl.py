"""
kubectl wrapper

Runs kubectl with an argument list and either captures its output or
streams it line by line. Every call is attempted exactly once; failures
surface as KubectlError and are never retried.
"""

import asyncio
import shutil
from typing import Callable, List, Optional

import structlog

logger = structlog.get_logger(__name__)

READ_CHUNK_SIZE = 64 * 1024


class KubectlError(Exception):
    """Raised when kubectl cannot be run or exits with an error"""
    pass


class Kubectl:
    """Executes kubectl commands"""

    def __init__(self, binary: str = "kubectl"):
        self.binary = binary
        self._kubectl_path: Optional[str] = None

    @property
    def kubectl_path(self) -> str:
        """Find and cache kubectl executable path"""
        if self._kubectl_path is None:
            path = shutil.which(self.binary)
            if path is None:
                raise KubectlError(f"{self.binary} not found in PATH")
            self._kubectl_path = path
        return self._kubectl_path

    async def exec_for_string(self, args: List[str], combine_output: bool = False) -> str:
        """Run kubectl to completion and return its output

        Args:
            args: kubectl arguments
            combine_output: Capture stderr together with stdout

        Raises:
            KubectlError: When kubectl cannot start or exits non-zero
        """
        cmd = [self.kubectl_path] + list(args)
        logger.debug("Running kubectl command", cmd=cmd)

        try:
            process = await asyncio.create_subprocess_exec(
                *cmd,
                stdout=asyncio.subprocess.PIPE,
                stderr=asyncio.subprocess.STDOUT if combine_output else asyncio.subprocess.PIPE,
            )
        except OSError as e:
            raise KubectlError(f"failed to start kubectl: {e}") from e

        stdout, stderr = await process.communicate()
        output = stdout.decode(errors="replace") if stdout else ""

        if process.returncode != 0:
            message = output if combine_output else (stderr.decode(errors="replace") if stderr else "")
            message = message.strip() or f"kubectl exited with status {process.returncode}"
            logger.debug("kubectl command failed", cmd=cmd, returncode=process.returncode)
            raise KubectlError(message)

        return output

    async def follow(self, args: List[str], on_line: Callable[[str], None]) -> None:
        """Run a long-lived kubectl command, handing over stdout line by line

        Lines are read by a separate task while this coroutine waits for the
        process, so each line reaches on_line as soon as kubectl writes it.
        Cancelling the coroutine terminates kubectl; the process is reaped
        and the pipe drained on every exit path.

        Raises:
            KubectlError: When kubectl cannot start or exits non-zero
        """
        cmd = [self.kubectl_path] + list(args)
        logger.debug("Following kubectl command", cmd=cmd)

        try:
            process = await asyncio.create_subprocess_exec(
                *cmd,
                stdout=asyncio.subprocess.PIPE,
            )
        except OSError as e:
            raise KubectlError(f"failed to start kubectl: {e}") from e

        reader = asyncio.create_task(self._pump_lines(process.stdout, on_line))
        try:
            await asyncio.gather(reader, process.wait())
        finally:
            if process.returncode is None:
                logger.debug("Terminating kubectl", pid=process.pid)
                process.terminate()
                await process.wait()
            if not reader.done():
                reader.cancel()
                await asyncio.gather(reader, return_exceptions=True)

        if process.returncode != 0:
            raise KubectlError(f"kubectl exited with status {process.returncode}")

    @staticmethod
    async def _pump_lines(stream: asyncio.StreamReader, on_line: Callable[[str], None]) -> None:
        # readline() is bounded by the stream limit; log lines are not
        pending = bytearray()
        while True:
            chunk = await stream.read(READ_CHUNK_SIZE)
            if not chunk:
                break
            pending.extend(chunk)
            if b"\n" not in chunk:
                continue
            *lines, rest = pending.split(b"\n")
            for line in lines:
                on_line(_decode_line(line))
            pending = bytearray(rest)
        if pending:
            on_line(_decode_line(pending))


def _decode_line(line: bytes) -> str:
    return bytes(line).decode(errors="replace").rstrip("\r")
