"""JSONL file sink — appends job outcomes to a local file.

One JSON object per line, in completion order.  Writes are serialized
with a lock so concurrent jobs never interleave lines.
"""

from __future__ import annotations

import json
import logging
import threading
from pathlib import Path
from typing import Any

from carto_ci.models.jobs import JobOutcome

logger = logging.getLogger(__name__)


class JsonlFileSink:
    """Appends outcomes to *path*.

    Parameters
    ----------
    path:
        Target file.  Parent directories are created on construction.
    """

    def __init__(self, path: Path | str) -> None:
        self._path = Path(path)
        self._path.parent.mkdir(parents=True, exist_ok=True)
        self._lock = threading.Lock()

    @property
    def sink_name(self) -> str:
        return "jsonl_file"

    @property
    def path(self) -> Path:
        return self._path

    def accept(self, outcome: JobOutcome) -> None:
        line = json.dumps(outcome.model_dump(mode="json"), sort_keys=True)
        with self._lock:
            with self._path.open("a", encoding="utf-8") as fh:
                fh.write(line + "\n")
        logger.debug("JsonlFileSink: wrote %s to %s", outcome.job_id, self._path)

    def read_outcomes(self) -> list[dict[str, Any]]:
        """Read back every recorded outcome."""
        if not self._path.exists():
            return []
        with self._path.open(encoding="utf-8") as fh:
            return [json.loads(line) for line in fh if line.strip()]
