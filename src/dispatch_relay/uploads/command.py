# src/dispatch_relay/uploads/command.py

from __future__ import annotations

import asyncio
import logging
import shlex

from ..errors import RelayError

logger = logging.getLogger(__name__)


class UploadCommandError(RelayError):
    def __init__(self, argv: list[str], exit_code: int, stderr: str) -> None:
        self.argv = argv
        self.exit_code = exit_code
        self.stderr = stderr
        super().__init__(f"Upload command exited with {exit_code}: {stderr.strip()[:500]}")


async def _terminate_process(process: asyncio.subprocess.Process, timeout: float = 2.0) -> None:
    if process.returncode is not None:
        return
    try:
        process.terminate()
    except ProcessLookupError:
        return
    try:
        await asyncio.wait_for(process.wait(), timeout)
    except TimeoutError:
        try:
            process.kill()
        except ProcessLookupError:
            return
        await process.wait()


class CommandUploader:
    """
    Hand an artifact to an external upload tool.

    The configured command is split with shlex and the artifact path and title
    are appended as the last two arguments, e.g.

        RELAY_UPLOAD_COMMAND="node upload.js --headless"
        -> node upload.js --headless /data/task-T9.mp4 "My title"
    """

    def __init__(self, command: str) -> None:
        self.argv = shlex.split(command)
        if not self.argv:
            raise ValueError("upload command is empty")

    async def upload(self, output_path: str, title: str) -> None:
        argv = [*self.argv, output_path, title]
        logger.info("Uploading %s via %s", output_path, self.argv[0])

        process = await asyncio.create_subprocess_exec(
            *argv,
            stdout=asyncio.subprocess.PIPE,
            stderr=asyncio.subprocess.PIPE,
        )
        try:
            stdout, stderr = await process.communicate()
        except (asyncio.CancelledError, Exception):
            logger.warning("Upload of %s interrupted; terminating pid %s", output_path, process.pid)
            await _terminate_process(process)
            raise

        out = stdout.decode("utf-8", errors="replace").strip()
        if out:
            logger.debug("Upload command output: %s", out)

        if process.returncode != 0:
            raise UploadCommandError(argv, process.returncode or -1, stderr.decode("utf-8", errors="replace"))

        logger.info("Uploaded %s", output_path)
