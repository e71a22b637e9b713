"""Fixed-size character windows with overlap.

Documents are split into windows of ``size`` characters where consecutive
windows share ``overlap`` characters, so a sentence that straddles a
boundary is fully contained in at least one chunk.

    text:    |--------- window 1 ---------|
                               |--------- window 2 ---------|
                               <- overlap ->

Windows are produced lazily: :class:`CharWindows` is an iterable that
re-slices the text on every iteration, so it can be consumed more than once
without holding all chunks in memory.
"""

from __future__ import annotations

from collections.abc import Iterator

DEFAULT_CHUNK_SIZE = 1200
DEFAULT_CHUNK_OVERLAP = 150


class CharWindows:
    """Restartable iterable over the overlapping windows of one text."""

    def __init__(self, text: str, size: int, overlap: int) -> None:
        if size < 1:
            raise ValueError("size must be at least 1")
        if overlap < 0:
            raise ValueError("overlap must not be negative")
        self._text = text if text and text.strip() else ""
        self._size = size
        # A step of at least one character guarantees termination even
        # when overlap >= size.
        self._step = max(1, size - overlap)

    def __iter__(self) -> Iterator[str]:
        text = self._text
        length = len(text)
        start = 0
        while start < length:
            end = min(start + self._size, length)
            yield text[start:end]
            if end >= length:
                return
            start += self._step

    def __len__(self) -> int:
        length = len(self._text)
        if length == 0:
            return 0
        if length <= self._size:
            return 1
        # Windows start at 0, step, 2*step, ...; the last one reaches the end.
        return -(-(length - self._size) // self._step) + 1


def chunk_by_chars(
    text: str,
    size: int = DEFAULT_CHUNK_SIZE,
    overlap: int = DEFAULT_CHUNK_OVERLAP,
) -> CharWindows:
    """Split *text* into windows of *size* characters sharing *overlap* characters.

    Blank input yields no windows.
    """
    return CharWindows(text, size, overlap)


class TextChunker:
    """Chunker bound to the configured window size and overlap.

    Parameters
    ----------
    chunk_size:
        Characters per window (default 1200).
    overlap:
        Characters shared by consecutive windows (default 150).
    """

    def __init__(
        self,
        chunk_size: int = DEFAULT_CHUNK_SIZE,
        overlap: int = DEFAULT_CHUNK_OVERLAP,
    ) -> None:
        self._chunk_size = chunk_size
        self._overlap = overlap

    @property
    def chunk_size(self) -> int:
        return self._chunk_size

    @property
    def overlap(self) -> int:
        return self._overlap

    def chunk(self, text: str) -> CharWindows:
        return chunk_by_chars(text, self._chunk_size, self._overlap)
