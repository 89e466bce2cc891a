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

"""Various utilities for pyvcdkit."""

import io

from pyvcdkit import pyvcdkitexception

# For mypy annotations
if False:  # pylint: disable=using-constant-test
    from typing import BinaryIO  # NOQA pylint: disable=unused-import


def ceiling_div(numer, denom):
    # type: (int, int) -> int
    """
    A function to do ceiling division; that is, dividing numerator by denominator
    and taking the ceiling.

    Parameters:
     numer - The numerator for the division.
     denom - The denominator for the division.
    Returns:
     The ceiling after dividing numerator by denominator.
    """
    # Upside-down floor division.
    return -(-numer // denom)


def copy_data(data_length, blocksize, infp, outfp):
    # type: (int, int, BinaryIO, BinaryIO) -> None
    """
    A utility function to copy data from the input file object to the output
    file object.

    Parameters:
     data_length - The amount of data to copy.
     blocksize - How much data to copy per iteration.
     infp - The file object to copy data from.
     outfp - The file object to copy data to.
    Returns:
     Nothing.
    """
    left = data_length
    readsize = blocksize
    while left > 0:
        if left < readsize:
            readsize = left
        data = infp.read(readsize)
        if len(data) != readsize:
            raise pyvcdkitexception.PyVcdKitUnexpectedEOF('unexpected end of data: wanted %d bytes, got %d' % (readsize, len(data)))
        outfp.write(data)
        left -= readsize


def file_object_supports_binary(fp):
    # type: (BinaryIO) -> bool
    """
    A function to check whether a file-like object supports binary mode.

    Parameters:
     fp - The file-like object to check for binary mode support.
    Returns:
     True if the file-like object supports binary mode, False otherwise.
    """
    if hasattr(fp, 'mode'):
        return 'b' in fp.mode

    return isinstance(fp, (io.RawIOBase, io.BufferedIOBase))


class FileReaderAt(object):
    """
    A class that gives a seekable binary file object the random-access
    read_at() interface the image reader consumes.
    """
    __slots__ = ('_fp',)

    def __init__(self, fp):
        # type: (BinaryIO) -> None
        if not file_object_supports_binary(fp):
            raise pyvcdkitexception.PyVcdKitInvalidInput('The file to open must be in binary mode (add "b" to the open flags)')
        self._fp = fp

    def read_at(self, offset, length):
        # type: (int, int) -> bytes
        """
        Read exactly length bytes starting at the absolute offset.

        Parameters:
         offset - The absolute offset into the file.
         length - The number of bytes to read.
        Returns:
         The bytes that were read.
        """
        self._fp.seek(offset)
        data = self._fp.read(length)
        if len(data) != length:
            raise pyvcdkitexception.PyVcdKitUnexpectedEOF('unexpected end of data: wanted %d bytes at offset %d, got %d' % (length, offset, len(data)))
        return data
