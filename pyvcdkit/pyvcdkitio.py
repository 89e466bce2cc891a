# Copyright (C) 2026  Chris Lalancette <clalancette@gmail.com>

# This library is free software; you can redistribute it and/or
# modify it under the terms of the GNU Lesser General Public
# License as published by the Free Software Foundation;
# version 2.1 of the License.

# This library is distributed in the hope that it will be useful,
# but WITHOUT ANY WARRANTY; without even the implied warranty of
# MERCHANTABILITY or FITNESS FOR A PARTICULAR PURPOSE.  See the GNU
# Lesser General Public License for more details.

# You should have received a copy of the GNU Lesser General Public
# License along with this library; if not, write to the Free Software
# Foundation, Inc., 51 Franklin Street, Fifth Floor, Boston, MA  02110-1301  USA

"""PyVcdKitIO class."""

import io

from pyvcdkit import pyvcdkitexception

# For mypy annotations
if False:  # pylint: disable=using-constant-test
    import array  # NOQA pylint: disable=unused-import
    from mmap import mmap  # NOQA pylint: disable=unused-import
    from typing import Any, List, Optional, Tuple, Union  # NOQA pylint: disable=unused-import


class PyVcdKitIO(io.RawIOBase):
    """
    The class that implements the user-facing python io-style stream over the
    contents of a file on a UDF image.  The contents are the concatenation
    of one or more extents of the image, in order, or a blob of data that
    was embedded in the File Entry itself.  Since the images are only
    readable, this is only a readable stream.
    """
    __slots__ = ('_source', '_extents', '_inline_data', '_length', '_offset',
                 '_open')

    def __init__(self, source, extents, inline_data=None):
        # type: (Any, List[Tuple[int, int]], Optional[bytes]) -> None
        super(PyVcdKitIO, self).__init__()  # pylint: disable=super-with-arguments
        # _extents is a list of (absolute byte offset, length) tuples into
        # _source.  _offset is the logical offset of this stream into the
        # concatenated contents.
        self._source = source
        self._extents = list(extents)
        self._inline_data = inline_data
        if inline_data is not None:
            self._length = len(inline_data)
        else:
            self._length = sum([length for (offset_unused, length) in self._extents])
        self._offset = 0
        self._open = True

    def __enter__(self):
        return self

    def _check_open(self):
        # type: () -> None
        if not self._open:
            raise pyvcdkitexception.PyVcdKitInvalidInput('I/O operation on closed file.')

    def _read_range(self, start, size):
        # type: (int, int) -> bytes
        """
        Internal method to read size bytes starting at the logical offset
        start, crossing extent boundaries as needed.

        Parameters:
         start - The logical offset to start reading at.
         size - The number of bytes to read.
        Returns:
         The bytes that were read.
        """
        if self._inline_data is not None:
            return self._inline_data[start:start + size]

        chunks = []
        extent_start = 0
        left = size
        for (abs_offset, length) in self._extents:
            extent_end = extent_start + length
            if left > 0 and start < extent_end:
                within = start - extent_start
                readsize = min(length - within, left)
                data = self._source.read_at(abs_offset + within, readsize)
                if len(data) != readsize:
                    raise pyvcdkitexception.PyVcdKitUnexpectedEOF('unexpected end of data: wanted %d bytes at offset %d, got %d' % (readsize, abs_offset + within, len(data)))
                chunks.append(data)
                start += readsize
                left -= readsize
            extent_start = extent_end

        return b''.join(chunks)

    def read(self, size=None):
        # type: (Optional[int]) -> bytes
        """
        Read and return up to size bytes.

        Parameters:
         size - Optional parameter to read size number of bytes; if None or
                negative, all remaining bytes in the file will be read
        Returns:
         The number of bytes requested or the rest of the data left in the file,
         whichever is smaller.  If the file is at or past EOF, returns an empty
         bytestring.
        """
        self._check_open()

        if self._offset >= self._length:
            return b''

        if size is None or size < 0:
            return self.readall()

        readsize = min(self._length - self._offset, size)
        data = self._read_range(self._offset, readsize)
        self._offset += readsize

        return data

    def readall(self):
        # type: () -> bytes
        """
        Read and return the remaining bytes in the file.

        Parameters:
         None.
        Returns:
         The rest of the data left in the file.  If the file is at or past EOF,
         returns an empty bytestring.
        """
        self._check_open()

        readsize = self._length - self._offset
        if readsize > 0:
            data = self._read_range(self._offset, readsize)
            self._offset += readsize
        else:
            data = b''

        return data

    def readinto(self, b):
        # type: (Union[bytearray, memoryview, array.array[Any], mmap]) -> int
        self._check_open()

        readsize = self._length - self._offset
        if readsize > 0:
            m = memoryview(b).cast('B')
            readsize = min(readsize, len(m))
            data = self._read_range(self._offset, readsize)
            n = len(data)
            m[:n] = data
            self._offset += n
        else:
            n = 0

        return n

    def seek(self, offset, whence=0):
        # type: (int, int) -> int
        """
        Change the stream position to byte offset offset.  The offset is
        interpreted relative to the position indicated by whence.  Valid values
        for whence are:

        * 0 -- start of stream (the default); offset should be zero or positive
        * 1 -- current stream position; offset may be negative
        * 2 -- end of stream; offset is usually negative

        Parameters:
         offset - The byte offset to seek to.
         whence - The position in the file to start from (0 for start, 1 for
                  current, 2 for end)
        Returns:
         The new absolute position.
        """
        self._check_open()

        if isinstance(offset, float):
            raise pyvcdkitexception.PyVcdKitInvalidInput('an integer is required')

        if whence == 0:
            if offset < 0:
                raise pyvcdkitexception.PyVcdKitInvalidInput('Invalid offset value (must be positive)')
            self._offset = offset
        elif whence == 1:
            if self._offset + offset < 0:
                raise pyvcdkitexception.PyVcdKitInvalidInput('Invalid offset value (cannot seek before start of file)')
            self._offset += offset
        elif whence == 2:
            if offset < 0 and abs(offset) > self._length:
                raise pyvcdkitexception.PyVcdKitInvalidInput('Invalid offset value (cannot seek before start of file)')
            self._offset = self._length + offset
        else:
            raise pyvcdkitexception.PyVcdKitInvalidInput('Invalid value for whence (options are 0, 1, and 2)')

        return self._offset

    def tell(self):
        # type: () -> int
        """
        Return the current stream position.

        Parameters:
         None.
        Returns:
         The current stream position.
        """
        self._check_open()
        return self._offset

    def length(self):
        # type: () -> int
        """
        Return the length of the current file.

        Parameters:
         None.
        Returns:
         The length of the file.
        """
        self._check_open()
        return self._length

    def readable(self):
        # type: () -> bool
        self._check_open()
        return True

    def seekable(self):
        # type: () -> bool
        self._check_open()
        return True

    def close(self):
        # type: () -> None
        """
        Close this file stream.

        Parameters:
         None.
        Returns:
         Nothing.
        """
        self._open = False
        super(PyVcdKitIO, self).close()  # pylint: disable=super-with-arguments

    def __exit__(self, *args):
        self.close()
