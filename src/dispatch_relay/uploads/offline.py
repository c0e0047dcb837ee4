# src/dispatch_relay/uploads/offline.py

from __future__ import annotations

import logging

logger = logging.getLogger(__name__)


class LoggingUploader:
    """
    Uploader used for demos and dry runs when no upload command is configured.
    Records what would have been uploaded and does nothing else.
    """

    def __init__(self) -> None:
        self.uploaded: list[tuple[str, str]] = []

    async def upload(self, output_path: str, title: str) -> None:
        self.uploaded.append((output_path, title))
        logger.info("Upload (dry run): %s title=%r", output_path, title)
