from __future__ import annotations
from collections import Counter
from typing import NamedTuple
import logging
import weakref

from pngscan.ihdr import ImageDescriptor
from pngscan.ranges import ScanLineLayoutError, ScanLineRanges


logger = logging.getLogger(__name__)

# ids of the buffer objects currently held by an open ScanLinesMut
_claimed_buffers: set[int] = set()
# ids of the buffer objects being read by unexhausted ScanLines, with a count per buffer
_buffer_readers: Counter[int] = Counter()


def _byte_view(buffer) -> memoryview:
    view = memoryview(buffer)
    if view.format != "B" or view.ndim != 1:
        view = view.cast("B")
    return view


def _buffer_key(view: memoryview) -> int:
    # Views of views all report the exporting object as .obj
    return id(view.obj)


class ScanLine(NamedTuple):
    """A scan line of a PNG image."""
    # The filter type used to encode this scan line (0-4), not validated
    filter: int
    # The scan line's bytes, still encoded with `filter`
    data: memoryview
    # The Adam7 pass if the image is interlaced
    pass_: int | None
    # Position of the filter byte in the buffer
    offset: int = 0

    @property
    def pass_number(self) -> int | None:
        return self.pass_

    def __bytes__(self) -> bytes:
        return bytes([self.filter]) + self.data.tobytes()


class ScanLineMut(NamedTuple):
    """A scan line of a PNG image whose data can be written in place."""
    filter: int
    data: memoryview
    pass_: int | None
    offset: int
    # The whole scan line, filter byte included
    line: memoryview

    @property
    def pass_number(self) -> int | None:
        return self.pass_

    def set_filter(self, filter_byte: int) -> ScanLineMut:
        self.line[0] = filter_byte
        return self._replace(filter=filter_byte)

    def __bytes__(self) -> bytes:
        return self.line.tobytes()


def _release_reader(key: int):
    _buffer_readers[key] -= 1
    if _buffer_readers[key] <= 0:
        del _buffer_readers[key]


class ScanLines:
    """
    Iterator over the scan lines of a decompressed PNG data stream.

    Any number of these may read the same buffer at once. Scan line data is
    handed out as read-only memoryview slices, so nothing is copied.

    Until it is exhausted or closed, a ScanLines counts as a reader of its buffer
    and no ScanLinesMut can be opened over it.

    Raises:
        BufferError: The buffer is held by an open ScanLinesMut.
    """

    def __init__(self, descriptor: ImageDescriptor, buffer) -> None:
        view = _byte_view(buffer)
        key = _buffer_key(view)
        if key in _claimed_buffers:
            raise BufferError("Buffer is being mutated by an open ScanLinesMut.")
        self.iter = ScanLineRanges(descriptor, view.nbytes)
        self.raw_data: memoryview | None = view.toreadonly()
        self.offset = 0

        _buffer_readers[key] += 1
        self._release = weakref.finalize(self, _release_reader, key)

    def __iter__(self) -> ScanLines:
        return self

    def __next__(self) -> ScanLine:
        if self.raw_data is None:
            raise StopIteration
        try:
            length, pass_ = next(self.iter)
        except (StopIteration, ScanLineLayoutError):
            self.close()
            raise

        line, self.raw_data = self.raw_data[:length], self.raw_data[length:]
        scan_line = ScanLine(filter=line[0], data=line[1:], pass_=pass_, offset=self.offset)
        self.offset += length
        return scan_line

    @property
    def closed(self) -> bool:
        return not self._release.alive

    def close(self):
        self.raw_data = None
        if self._release.alive:
            self._release()

    def __enter__(self) -> ScanLines:
        return self

    def __exit__(self, *_) -> None:
        self.close()


class ScanLinesMut:
    """
    Iterator over the scan lines of a decompressed PNG data stream, with writable data.

    Holds whatever is left of the buffer as a single view. Each step splits that view
    into this scan line and the rest, and only keeps the rest, so no two scan lines
    handed out ever share a byte and none is visited twice.

    The buffer belongs to this iterator until it is exhausted or closed: a second
    ScanLinesMut or a ScanLines over the same buffer object raises BufferError,
    and so does opening one while a ScanLines is still reading the buffer. Python cannot stop the caller from making their own overlapping views of the
    buffer, so don't. A bytearray can't be resized while scan lines are alive.

    Raises:
        TypeError: The buffer is read-only.
        BufferError: The buffer is already held by another open ScanLinesMut or an open ScanLines.
    """

    def __init__(self, descriptor: ImageDescriptor, buffer) -> None:
        view = _byte_view(buffer)
        if view.readonly:
            raise TypeError(
                f"ScanLinesMut needs a writable buffer such as a bytearray. Got {type(buffer).__name__}"
            )
        key = _buffer_key(view)
        if key in _claimed_buffers:
            raise BufferError("Buffer is already being mutated by an open ScanLinesMut.")
        if _buffer_readers[key] > 0:
            raise BufferError(f"Buffer is being read by {_buffer_readers[key]} open ScanLines.")

        self.iter = ScanLineRanges(descriptor, view.nbytes)
        self.raw_data: memoryview | None = view
        self.offset = 0
        self.total = view.nbytes

        _claimed_buffers.add(key)
        self._release = weakref.finalize(self, _claimed_buffers.discard, key)
        logger.debug(f"Claimed buffer of {self.total} bytes for in-place scan-line access")

    def __iter__(self) -> ScanLinesMut:
        return self

    def __next__(self) -> ScanLineMut:
        if self.raw_data is None:
            raise StopIteration
        try:
            length, pass_ = next(self.iter)
        except (StopIteration, ScanLineLayoutError):
            self.close()
            raise

        remaining, self.raw_data = self.raw_data, None
        assert self.offset + remaining.nbytes == self.total, (
            f"Remaining view is out of step: {self.offset=} {remaining.nbytes=} {self.total=}"
        )
        head, self.raw_data = remaining[:length], remaining[length:]

        scan_line = ScanLineMut(
            filter=head[0],
            data=head[1:],
            pass_=pass_,
            offset=self.offset,
            line=head,
        )
        self.offset += length
        return scan_line

    @property
    def closed(self) -> bool:
        return not self._release.alive

    def close(self):
        self.raw_data = None
        if self._release.alive:
            self._release()
            logger.debug(f"Released buffer after {self.offset} of {self.total} bytes")

    def __enter__(self) -> ScanLinesMut:
        return self

    def __exit__(self, *_) -> None:
        self.close()
