"""Byte-bounded grouping of source files for judge extraction calls."""

from __future__ import annotations

from dataclasses import dataclass
from typing import List, Sequence

DEFAULT_MAX_BATCH_BYTES = 100_000


@dataclass(frozen=True)
class FileBlob:
    """A source file wrapped with a filename header, ready to send to the judge."""

    path: str
    text: str

    @classmethod
    def wrap(cls, path: str, content: str) -> "FileBlob":
        return cls(path=path, text=f"=== File: {path} ===\n{content}")

    @property
    def size(self) -> int:
        return len(self.text.encode("utf-8"))


def batch_files(blobs: Sequence[FileBlob], max_bytes: int) -> List[List[FileBlob]]:
    """Split blobs into ordered batches whose combined size stays within max_bytes.

    Greedy first-fit: files are never split, so a file larger than the
    ceiling is emitted alone in its own batch.
    """
    if max_bytes <= 0:
        raise ValueError("max_bytes must be positive")

    batches: List[List[FileBlob]] = []
    current: List[FileBlob] = []
    current_size = 0

    for blob in blobs:
        size = blob.size
        if size > max_bytes:
            if current:
                batches.append(current)
                current, current_size = [], 0
            batches.append([blob])
            continue
        if current and current_size + size > max_bytes:
            batches.append(current)
            current, current_size = [], 0
        current.append(blob)
        current_size += size

    if current:
        batches.append(current)
    return batches


def join_batch(batch: Sequence[FileBlob]) -> str:
    """Combine a batch into the single text payload sent to the judge."""
    return "\n\n".join(blob.text for blob in batch)


__all__ = ["DEFAULT_MAX_BATCH_BYTES", "FileBlob", "batch_files", "join_batch"]
