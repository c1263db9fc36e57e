"""Byte-level removal of the automation fingerprint from driver binaries.

Stock chromedriver builds embed ``cdc_`` followed by an 18 character
identifier. Anti-bot scripts look for that identifier in the page, so every
occurrence is overwritten with random letters. The binary keeps its size and
every other byte, so it stays a valid executable.
"""

import logging
import os
import random
import string
from dataclasses import dataclass
from pathlib import Path

logger = logging.getLogger(__name__)

MARKER = b"cdc_"
PATCH_WINDOW = 18

_REPLACEMENT_CHARS = (string.ascii_lowercase + string.ascii_uppercase).encode("ascii")


@dataclass(frozen=True)
class PatchResult:
    """Patched buffer plus the number of marker sites rewritten."""

    data: bytes
    patch_count: int


def find_markers(data: bytes) -> list[int]:
    """Return the offset of every occurrence of the marker."""
    positions = []
    start = data.find(MARKER)
    while start != -1:
        positions.append(start)
        start = data.find(MARKER, start + 1)
    return positions


class PatchEngine:
    """Scrambles the bytes following each automation marker."""

    def __init__(self, rng: random.Random | None = None):
        self._rng = rng or random.SystemRandom()

    def patch(self, raw: bytes) -> PatchResult:
        """Overwrite ``[i+4, i+22)`` after every marker at ``i``.

        Offsets are collected on the unmodified input, so markers closer than
        22 bytes apart are all patched. Writes are clipped at the buffer end.
        """
        positions = find_markers(raw)
        if not positions:
            logger.info("No automation markers found, driver left as is")
            return PatchResult(raw, 0)

        buffer = bytearray(raw)
        end = len(buffer)
        for pos in positions:
            window_start = pos + len(MARKER)
            window_end = min(window_start + PATCH_WINDOW, end)
            for offset in range(window_start, window_end):
                buffer[offset] = self._rng.choice(_REPLACEMENT_CHARS)

        logger.info(f"Patched {len(positions)} automation markers")
        return PatchResult(bytes(buffer), len(positions))

    def patch_file(self, original_path: Path, patched_path: Path) -> bool:
        """Write a patched copy of ``original_path`` to ``patched_path``.

        The original file is never modified. If ``patched_path`` already
        exists nothing is done.

        Returns
        -------
            True if a new patched file was written

        """
        if patched_path.exists():
            logger.info(f"Patched driver already present at {patched_path}")
            return False

        result = self.patch(original_path.read_bytes())

        temp_path = patched_path.with_name(patched_path.name + ".tmp")
        temp_path.write_bytes(result.data)
        if os.name != "nt":
            temp_path.chmod(0o755)
        temp_path.replace(patched_path)

        logger.info(f"Wrote patched driver to '{patched_path}'")
        return True
