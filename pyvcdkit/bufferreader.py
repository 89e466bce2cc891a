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

"""
A cursor over an in-memory buffer, with decoders for the fixed and
variable width fields found in ECMA-167 structures.
"""

import datetime
import struct

from pyvcdkit import pyvcdkitexception

# For mypy annotations
if False:  # pylint: disable=using-constant-test
    from typing import Optional  # NOQA pylint: disable=unused-import

# The first byte of a d-character field (ECMA-167, Part 1, 7.2.12) selects
# how the rest of the field is encoded.
DCHAR_ENCODING_TYPE_8 = 8
DCHAR_ENCODING_TYPE_16 = 16

_DCHAR_CODECS = {
    DCHAR_ENCODING_TYPE_8: 'latin-1',
    DCHAR_ENCODING_TYPE_16: 'utf-16_be',
}


class BufferReader(object):
    """
    A class that reads little-endian fields out of a bytes buffer while
    tracking the current offset.  Every read checks that enough data is
    left; running off the end of the buffer is an error, never a short
    read.
    """
    __slots__ = ('_buf', '_offset')

    TIMESTAMP_FMT = '<2sHBBBBB3s'

    def __init__(self, data):
        # type: (bytes) -> None
        self._buf = bytes(data)
        self._offset = 0

    @property
    def offset(self):
        # type: () -> int
        """The current offset into the buffer."""
        return self._offset

    def __len__(self):
        # type: () -> int
        return len(self._buf)

    def eof(self):
        # type: () -> bool
        """
        Determine whether the whole buffer has been consumed.

        Parameters:
         None.
        Returns:
         True if the offset is at or past the end of the buffer, False
         otherwise.
        """
        return self._offset >= len(self._buf)

    def remaining(self):
        # type: () -> int
        """
        Get the number of bytes left to read.

        Parameters:
         None.
        Returns:
         The number of bytes between the current offset and the end of the
         buffer.
        """
        return max(len(self._buf) - self._offset, 0)

    def _advance(self, size):
        # type: (int) -> int
        """
        Internal method to move the offset forward by size bytes.

        Parameters:
         size - The number of bytes to move forward.
        Returns:
         The offset before moving.
        """
        if size < 0:
            raise pyvcdkitexception.PyVcdKitInternalError('Cannot read a negative number of bytes')
        start = self._offset
        if start + size > len(self._buf):
            raise pyvcdkitexception.PyVcdKitUnexpectedEOF('unexpected end of data: wanted %d bytes at offset %d, buffer is %d bytes' % (size, start, len(self._buf)))
        self._offset += size
        return start

    def skip(self, size):
        # type: (int) -> None
        """
        Skip over reserved or uninteresting bytes.

        Parameters:
         size - The number of bytes to skip.
        Returns:
         Nothing.
        """
        self._advance(size)

    def read_bytes(self, size):
        # type: (int) -> bytes
        """
        Read a blob of bytes.

        Parameters:
         size - The number of bytes to read.
        Returns:
         The bytes that were read.
        """
        start = self._advance(size)
        return self._buf[start:self._offset]

    def unpack(self, fmt):
        # type: (str) -> tuple
        """
        Decode a struct format at the current offset and advance past it.

        Parameters:
         fmt - The struct format string to decode.
        Returns:
         The tuple of decoded values.
        """
        start = self._advance(struct.calcsize(fmt))
        return struct.unpack_from(fmt, self._buf, start)

    def peek_uint16(self):
        # type: () -> int
        """
        Read a little-endian 16-bit integer without moving the offset.

        Parameters:
         None.
        Returns:
         The integer at the current offset.
        """
        if self._offset + 2 > len(self._buf):
            raise pyvcdkitexception.PyVcdKitUnexpectedEOF()
        return struct.unpack_from('<H', self._buf, self._offset)[0]

    def peek_bytes(self, size):
        # type: (int) -> bytes
        """
        Get the next size bytes without moving the offset.

        Parameters:
         size - The number of bytes to look at.
        Returns:
         The bytes at the current offset.
        """
        if self._offset + size > len(self._buf):
            raise pyvcdkitexception.PyVcdKitUnexpectedEOF('unexpected end of data: wanted %d bytes at offset %d, buffer is %d bytes' % (size, self._offset, len(self._buf)))
        return self._buf[self._offset:self._offset + size]

    def read_uint8(self):
        # type: () -> int
        return self.unpack('<B')[0]

    def read_uint16(self):
        # type: () -> int
        return self.unpack('<H')[0]

    def read_uint32(self):
        # type: () -> int
        return self.unpack('<L')[0]

    def read_uint64(self):
        # type: () -> int
        return self.unpack('<Q')[0]

    def read_uint48(self):
        # type: () -> int
        """
        Read a 6 byte little-endian integer, zero-extended to 64 bits.

        Parameters:
         None.
        Returns:
         The integer that was read.
        """
        return struct.unpack('<Q', self.read_bytes(6) + b'\x00\x00')[0]

    def read_string(self, size):
        # type: (int) -> str
        """
        Read a fixed-length field as a string, one character per byte.

        Parameters:
         size - The size of the field.
        Returns:
         The field contents.
        """
        if size == 0:
            return ''
        return self.read_bytes(size).decode('latin-1')

    def read_dstring(self, size):
        # type: (int) -> str
        """
        Read a dstring (ECMA-167, Part 1, 7.2.12), a fixed-size field whose
        last byte holds the length of the recorded string.  The first byte of
        the string is the compression ID, and only 8-bit characters are
        supported.

        Parameters:
         size - The full size of the field.
        Returns:
         The decoded string; empty if nothing was recorded.
        """
        if size == 0:
            return ''
        field = self.read_bytes(size)
        length = field[-1]
        if length == 0:
            return ''

        if length > size - 1:
            raise pyvcdkitexception.PyVcdKitInvalidImage('dstring length %d does not fit in a field of %d bytes' % (length, size))

        compression_id = field[0]
        if compression_id != DCHAR_ENCODING_TYPE_8:
            raise pyvcdkitexception.PyVcdKitInvalidImage('expecting character length to be 8 bit long, compression ID was %d' % (compression_id))

        return field[1:length].decode('latin-1')

    def read_dcharacters(self, length):
        # type: (int) -> str
        """
        Read a d-character field such as a File Identifier.  The first byte
        selects 8-bit or 16-bit (big-endian) characters.

        Parameters:
         length - The length of the field, including the encoding byte.
        Returns:
         The decoded string.
        """
        if length == 0:
            return ''
        encoding_type = self.read_uint8()
        data = self.read_bytes(length - 1)

        codec = _DCHAR_CODECS.get(encoding_type)
        if codec is None:
            raise pyvcdkitexception.PyVcdKitInvalidImage('unsupported string encoding type %d' % (encoding_type))

        try:
            return data.decode(codec)
        except UnicodeDecodeError as err:
            raise pyvcdkitexception.PyVcdKitInvalidImage('undecodable file identifier: %s' % (err))

    def read_timestamp(self):
        # type: () -> Optional[datetime.datetime]
        """
        Read a timestamp (ECMA-167, Part 1, 7.3).  The type and timezone and
        the sub-second fields are skipped; the result is in UTC.  Fields out of
        their range carry into the next larger one, so month 0 is December of
        the year before and day 0 is the last day of the month before.

        Parameters:
         None.
        Returns:
         A datetime object, or None if the timestamp was never recorded or
         falls outside the years datetime can hold.
        """
        (type_and_tz_unused, year, month, day, hour, minute, second,
         subsecond_unused) = self.unpack(self.TIMESTAMP_FMT)

        if year == 0 and month == 0 and day == 0 and hour == 0 and minute == 0 and second == 0:
            return None

        (carry_year, month_index) = divmod(year * 12 + month - 1, 12)
        if not datetime.MINYEAR <= carry_year <= datetime.MAXYEAR:
            return None

        try:
            return datetime.datetime(carry_year, month_index + 1, 1,
                                     tzinfo=datetime.timezone.utc) + datetime.timedelta(days=day - 1,
                                                                                        hours=hour,
                                                                                        minutes=minute,
                                                                                        seconds=second)
        except OverflowError:
            return None
