"""Storage abstraction for staged evidence artifacts.

Submitters may attach evidence (typically a photo of the score sheet) to a
pending submission. The upload path stages the file under the evidence root
and stores its reference on the submission. Once the submission has been
approved or rejected the staged file is no longer needed and is released.
"""

from pathlib import Path
from typing import Protocol

import structlog

logger = structlog.get_logger()


class EvidenceStorage(Protocol):
    """Protocol for releasing staged evidence artifacts."""

    def release_artifact(self, reference: str) -> None: ...


class LocalEvidenceStorage:
    """Staged evidence files on the local filesystem, addressed relative to one root."""

    def __init__(self, evidence_dir: str) -> None:
        self._evidence_dir = Path(evidence_dir).resolve()

    def release_artifact(self, reference: str) -> None:
        """Delete the staged file for reference.

        Releasing an artifact that is already gone is a no-op. Rejects path
        traversal attempts that would resolve outside the evidence root.
        """
        target = (self._evidence_dir / reference).resolve()
        if not target.is_relative_to(self._evidence_dir) or target == self._evidence_dir:
            raise ValueError(f"Path traversal rejected: '{reference}' resolves outside evidence directory")

        existed = target.exists()
        target.unlink(missing_ok=True)
        logger.info("released evidence artifact", reference=reference, existed=existed)
