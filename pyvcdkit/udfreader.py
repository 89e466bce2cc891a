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
Main read-only interface to a UDF image: open the image, walk its directory
tree and read the contents of its files.
"""

import logging
import stat
import struct

from pyvcdkit import bufferreader
from pyvcdkit import cdrom
from pyvcdkit import perms
from pyvcdkit import pyvcdkitexception
from pyvcdkit import pyvcdkitio
from pyvcdkit import udf
from pyvcdkit import utils

# For mypy annotations
if False:  # pylint: disable=using-constant-test
    import datetime  # NOQA pylint: disable=unused-import
    from typing import Any, BinaryIO, List, Optional, Tuple  # NOQA pylint: disable=unused-import

LOGGER = logging.getLogger(__name__)

# Errors that can come out of decoding a malformed image without passing
# through one of our own checks.
_DECODING_FAULTS = (struct.error, ValueError, IndexError)


class FileInfo(object):
    """
    A class representing one file or directory on a UDF image.  The root
    directory has no File Identifier and no parent.
    """
    __slots__ = ('_entry', '_fid', '_logical_volume', '_parent', '_path')

    def __init__(self, entry, logical_volume, fid=None, parent=None, path=''):
        # type: (udf.UDFFileEntry, udf.UDFLogicalVolumeDescriptor, Optional[udf.UDFFileIdentifierDescriptor], Optional[FileInfo], str) -> None
        self._entry = entry
        self._logical_volume = logical_volume
        self._fid = fid
        self._parent = parent
        self._path = path

    def name(self):
        # type: () -> str
        """
        Get the name of this entry.

        Parameters:
         None.
        Returns:
         The Logical Volume Identifier for the root, the File Identifier for
         everything else.
        """
        if self._fid is None:
            return self._logical_volume.logical_vol_ident
        return self._fid.fi

    def path(self):
        # type: () -> str
        """
        Get the slash-separated path of this entry from the root.  The root
        itself has the empty path.

        Parameters:
         None.
        Returns:
         The path of this entry.
        """
        return self._path

    def size(self):
        # type: () -> int
        return self._entry.info_len

    def mode(self):
        # type: () -> perms.FileMode
        return self._entry.perms

    def file_mode(self):
        # type: () -> int
        """
        Get the permissions of this entry as a POSIX mode, with the directory
        bit set for directories.

        Parameters:
         None.
        Returns:
         The POSIX mode of this entry.
        """
        mode = perms.from_file_mode(self._entry.perms)
        if self.is_dir():
            mode |= stat.S_IFDIR
        return mode

    def mod_time(self):
        # type: () -> Optional[datetime.datetime]
        return self._entry.mod_time

    def access_time(self):
        # type: () -> Optional[datetime.datetime]
        return self._entry.access_time

    def uid(self):
        # type: () -> int
        return self._entry.uid

    def gid(self):
        # type: () -> int
        return self._entry.gid

    def link_count(self):
        # type: () -> int
        return self._entry.file_link_count

    def is_root(self):
        # type: () -> bool
        return self._fid is None

    def is_dir(self):
        # type: () -> bool
        return self._entry.is_dir()

    def parent(self):
        # type: () -> Optional[FileInfo]
        return self._parent

    def file_entry(self):
        # type: () -> udf.UDFFileEntry
        return self._entry

    def file_identifier(self):
        # type: () -> Optional[udf.UDFFileIdentifierDescriptor]
        return self._fid

    def __repr__(self):
        # type: () -> str
        return 'FileInfo(path=%r, is_dir=%s, size=%d)' % (self._path, self.is_dir(), self.size())


class ImageReader(object):
    """The main class for reading the UDF file system of a disk image."""
    __slots__ = ('_initialized', '_source', '_managing_fp', '_fp',
                 'cdrom_descriptors', 'anchor', 'main_descriptors',
                 'primary_volume', 'partition', 'logical_volume', 'file_set')

    def __init__(self):
        # type: () -> None
        self._initialize()

    def _initialize(self):
        # type: () -> None
        """
        An internal method to re-initialize the object.  Called from
        __init__, close, and when opening an image fails.

        Parameters:
         None.
        Returns:
         Nothing.
        """
        self._initialized = False
        self._source = None  # type: Any
        self._managing_fp = False
        self._fp = None  # type: Optional[BinaryIO]
        self.cdrom_descriptors = cdrom.CdromDescriptorList()
        self.anchor = None  # type: Optional[udf.UDFAnchorVolumeDescriptorPointer]
        self.main_descriptors = udf.UDFDescriptorList()
        self.primary_volume = None  # type: Optional[udf.UDFPrimaryVolumeDescriptor]
        self.partition = None  # type: Optional[udf.UDFPartitionDescriptor]
        self.logical_volume = None  # type: Optional[udf.UDFLogicalVolumeDescriptor]
        self.file_set = None  # type: Optional[udf.UDFFileSetDescriptor]

    def _read(self, offset, size):
        # type: (int, int) -> bufferreader.BufferReader
        """
        Internal method to read size bytes at an absolute offset of the
        image.

        Parameters:
         offset - The absolute byte offset to read from.
         size - The number of bytes to read.
        Returns:
         A BufferReader over the data.
        """
        data = self._source.read_at(offset, size)
        if len(data) != size:
            raise pyvcdkitexception.PyVcdKitUnexpectedEOF('unexpected end of data: wanted %d bytes at offset %d, got %d' % (size, offset, len(data)))
        return bufferreader.BufferReader(data)

    def _read_sectors(self, sector, count):
        # type: (int, int) -> bufferreader.BufferReader
        return self._read(sector * udf.SECTOR_SIZE, count * udf.SECTOR_SIZE)

    def _read_descriptor_from_sector(self, sector, tag_ident):
        # type: (int, int) -> Any
        """
        Internal method to parse the descriptor stored at a sector, which
        must carry the given tag identifier.

        Parameters:
         sector - The absolute sector to read.
         tag_ident - The expected tag identifier.
        Returns:
         The parsed descriptor.
        """
        desc = udf.parse_descriptor(self._read_sectors(sector, 1))
        if desc.TAG_IDENT != tag_ident:
            raise pyvcdkitexception.PyVcdKitInvalidImage('expected descriptor with tag ID %d but was %d at sector %d' % (tag_ident, desc.TAG_IDENT, sector))
        return desc

    def _read_cdrom_descriptor_sequence(self, sector):
        # type: (int) -> cdrom.CdromDescriptorList
        """
        Internal method to read the CD-ROM volume descriptors, one per sector,
        up to and including the Terminal descriptor.

        Parameters:
         sector - The sector the sequence starts at.
        Returns:
         The list of descriptors.
        """
        descriptors = cdrom.CdromDescriptorList()
        while True:
            desc = cdrom.parse_cdrom_volume_descriptor(self._read_sectors(sector, 1))
            descriptors.append(desc)
            if desc.identifier == cdrom.CDROM_VOLUME_IDENTIFIER_TEA01:
                break
            sector += 1
        return descriptors

    def _read_descriptor_sequence(self, extent):
        # type: (udf.UDFExtentAD) -> udf.UDFDescriptorList
        """
        Internal method to read a volume descriptor sequence, one descriptor
        per sector, up to and including the Terminating Descriptor.

        Parameters:
         extent - The extent where the sequence starts.
        Returns:
         The list of descriptors.
        """
        descriptors = udf.UDFDescriptorList()
        sector = extent.location
        while True:
            desc = udf.parse_descriptor(self._read_sectors(sector, 1))
            descriptors.append(desc)
            if desc.TAG_IDENT == udf.TAG_TERMINATING_DESCRIPTOR:
                break
            sector += 1
        return descriptors

    def _open_source(self, source):
        # type: (Any) -> None
        """
        An internal method to parse the volume structures of an image.

        Parameters:
         source - An object with a read_at(offset, length) method.
        Returns:
         Nothing.
        """
        self._source = source

        self.cdrom_descriptors = self._read_cdrom_descriptor_sequence(cdrom.CDROM_VOLUME_DESCRIPTOR_SECTOR)
        LOGGER.debug('Read %d CD-ROM volume descriptors', len(self.cdrom_descriptors))
        if not self.cdrom_descriptors.has_any_identifier(cdrom.CDROM_VOLUME_IDENTIFIER_NSR02,
                                                         cdrom.CDROM_VOLUME_IDENTIFIER_NSR03):
            raise pyvcdkitexception.PyVcdKitInvalidImage('unsupported image format')

        self.anchor = self._read_descriptor_from_sector(udf.ANCHOR_VOLUME_DESCRIPTOR_SECTOR,
                                                        udf.TAG_ANCHOR_VOLUME_DESCRIPTOR_POINTER)
        self.main_descriptors = self._read_descriptor_sequence(self.anchor.main_vd)
        LOGGER.debug('Read %d descriptors from the main volume descriptor sequence at sector %d',
                     len(self.main_descriptors), self.anchor.main_vd.location)

        self.primary_volume = self.main_descriptors.get(udf.TAG_PRIMARY_VOLUME_DESCRIPTOR)
        self.partition = self.main_descriptors.get(udf.TAG_PARTITION_DESCRIPTOR)
        self.logical_volume = self.main_descriptors.get(udf.TAG_LOGICAL_VOLUME_DESCRIPTOR)
        self.file_set = self._read_descriptor_from_sector(self.partition.part_start_location,
                                                          udf.TAG_FILE_SET_DESCRIPTOR)

    def _open_fp(self, source):
        # type: (Any) -> None
        """
        An internal method to open an image, leaving this object untouched if
        anything goes wrong.

        Parameters:
         source - An object with a read_at(offset, length) method, or a
                  seekable binary file object.
        Returns:
         Nothing.
        """
        if not hasattr(source, 'read_at'):
            source = utils.FileReaderAt(source)

        LOGGER.debug('Opening UDF image')
        try:
            self._open_source(source)
        except _DECODING_FAULTS as err:
            self._initialize()
            raise pyvcdkitexception.PyVcdKitInvalidImage(str(err))
        except Exception:
            self._initialize()
            raise

        self._initialized = True

    def open(self, filename):
        # type: (str) -> None
        """
        Open up an existing image for reading.

        Parameters:
         filename - The filename containing the image to open up.
        Returns:
         Nothing.
        """
        if self._initialized:
            raise pyvcdkitexception.PyVcdKitInvalidInput('This object already has an image; either close it or create a new object')

        fp = open(filename, 'rb')  # pylint: disable=consider-using-with
        try:
            self._open_fp(fp)
        except Exception:
            fp.close()
            raise
        self._managing_fp = True
        self._fp = fp

    def open_fp(self, source):
        # type: (Any) -> None
        """
        Open up an existing image for reading.  Note that the source passed
        in here must stay usable for the lifetime of this object, as the
        ImageReader reads directories and files from it on demand.  To have
        ImageReader manage this automatically, use 'open' instead.

        Parameters:
         source - An object with a read_at(offset, length) method, or a
                  seekable binary file object.
        Returns:
         Nothing.
        """
        if self._initialized:
            raise pyvcdkitexception.PyVcdKitInvalidInput('This object already has an image; either close it or create a new object')

        self._open_fp(source)

    def close(self):
        # type: () -> None
        """
        Close the image, closing the underlying file if this object opened it.

        Parameters:
         None.
        Returns:
         Nothing.
        """
        if not self._initialized:
            raise pyvcdkitexception.PyVcdKitInvalidInput('This object is not initialized; call either open() or open_fp() first')

        if self._managing_fp and self._fp is not None:
            self._fp.close()
        self._initialize()

    def absolute_sector(self, location):
        # type: (int) -> int
        """
        Translate a partition-relative logical block into an absolute sector.

        Parameters:
         location - The logical block number inside the partition.
        Returns:
         The absolute sector on the image.
        """
        if not self._initialized:
            raise pyvcdkitexception.PyVcdKitInvalidInput('This object is not initialized; call either open() or open_fp() first')

        return self.partition.part_start_location + location

    def absolute_offset(self, location):
        # type: (int) -> int
        """
        Translate a partition-relative logical block into an absolute byte
        offset.

        Parameters:
         location - The logical block number inside the partition.
        Returns:
         The absolute byte offset on the image.
        """
        if not self._initialized:
            raise pyvcdkitexception.PyVcdKitInvalidInput('This object is not initialized; call either open() or open_fp() first')

        return udf.SECTOR_SIZE * self.absolute_sector(location)

    @staticmethod
    def _ad_location(alloc_desc):
        # type: (Any) -> int
        if isinstance(alloc_desc, udf.UDFLongAD):
            return alloc_desc.log_block_num
        return alloc_desc.location

    def _read_file_entry(self, location):
        # type: (int) -> udf.UDFFileEntry
        return self._read_descriptor_from_sector(self.absolute_sector(location),
                                                 udf.TAG_FILE_ENTRY)

    def root_dir(self):
        # type: () -> FileInfo
        """
        Get the root directory of the image.

        Parameters:
         None.
        Returns:
         The FileInfo for the root directory.
        """
        if not self._initialized:
            raise pyvcdkitexception.PyVcdKitInvalidInput('This object is not initialized; call either open() or open_fp() first')

        try:
            entry = self._read_file_entry(self.file_set.root_dir_icb.log_block_num)
        except _DECODING_FAULTS as err:
            raise pyvcdkitexception.PyVcdKitInvalidImage('unable to read UDF root directory: %s' % (err))

        return FileInfo(entry, self.logical_volume)

    def _read_fids(self, reader, size, parent, children):
        # type: (bufferreader.BufferReader, int, FileInfo, List[FileInfo]) -> None
        """
        Internal method to decode the File Identifier Descriptors in the
        first size bytes of reader, appending a FileInfo for each real entry
        to children.

        Parameters:
         reader - The BufferReader over the directory data.
         size - The number of bytes of directory data.
         parent - The FileInfo of the directory being read.
         children - The list to append the new entries to.
        Returns:
         Nothing.
        """
        while reader.offset < size:
            fid = udf.parse_descriptor_with_tag(reader, udf.TAG_FILE_IDENTIFIER_DESCRIPTOR)
            if not fid.fi or fid.is_parent():
                continue

            entry = self._read_file_entry(fid.icb.log_block_num)
            if parent.is_root():
                path = fid.fi
            else:
                path = parent.path() + '/' + fid.fi

            children.append(FileInfo(entry, self.logical_volume, fid, parent, path))

    def read_dir(self, parent):
        # type: (FileInfo) -> List[FileInfo]
        """
        Get the entries of a directory, in the order they are recorded.  Entries
        with an empty File Identifier and the parent entry are left out; named
        entries marked deleted are listed, and can be told apart with
        file_identifier().is_deleted().

        Parameters:
         parent - The FileInfo of the directory to read.
        Returns:
         A list of FileInfo objects, one per entry.
        """
        if not self._initialized:
            raise pyvcdkitexception.PyVcdKitInvalidInput('This object is not initialized; call either open() or open_fp() first')

        if not parent.is_dir():
            raise pyvcdkitexception.PyVcdKitInvalidInput('entry %s is not a directory' % (parent.name()))

        entry = parent.file_entry()
        children = []  # type: List[FileInfo]
        try:
            if entry.inline_data is not None:
                self._read_fids(bufferreader.BufferReader(entry.inline_data),
                                len(entry.inline_data), parent, children)
            for alloc_desc in entry.alloc_descs:
                num_sectors = utils.ceiling_div(alloc_desc.length, udf.SECTOR_SIZE)
                reader = self._read_sectors(self.absolute_sector(self._ad_location(alloc_desc)),
                                            num_sectors)
                self._read_fids(reader, alloc_desc.length, parent, children)
        except _DECODING_FAULTS as err:
            raise pyvcdkitexception.PyVcdKitInvalidImage('unable to read UDF directory: %s' % (err))

        LOGGER.debug('Read %d entries from directory %r', len(children), parent.path())
        return children

    def open_file(self, file_info):
        # type: (FileInfo) -> pyvcdkitio.PyVcdKitIO
        """
        Open the contents of a file for reading.  The returned stream
        concatenates the extents of the file in the order they are recorded.

        Parameters:
         file_info - The FileInfo of the file to read.
        Returns:
         A PyVcdKitIO object for the file contents.
        """
        if not self._initialized:
            raise pyvcdkitexception.PyVcdKitInvalidInput('This object is not initialized; call either open() or open_fp() first')

        if file_info.is_dir():
            raise pyvcdkitexception.PyVcdKitInvalidInput('entry %s is not a file' % (file_info.name()))

        entry = file_info.file_entry()
        if entry.inline_data is not None:
            return pyvcdkitio.PyVcdKitIO(self._source, [], entry.inline_data)

        try:
            extents = [(self.absolute_offset(self._ad_location(alloc_desc)), alloc_desc.length)
                       for alloc_desc in entry.alloc_descs]
        except _DECODING_FAULTS as err:
            raise pyvcdkitexception.PyVcdKitInvalidImage('unable to open UDF file: %s' % (err))

        return pyvcdkitio.PyVcdKitIO(self._source, extents)

    def lookup(self, path):
        # type: (str) -> FileInfo
        """
        Find an entry by its slash-separated path from the root.

        Parameters:
         path - The path to look up; the empty path and '/' are the root.
        Returns:
         The FileInfo for the entry.
        """
        if not self._initialized:
            raise pyvcdkitexception.PyVcdKitInvalidInput('This object is not initialized; call either open() or open_fp() first')

        current = self.root_dir()
        for component in path.split('/'):
            if not component:
                continue
            if not current.is_dir():
                raise pyvcdkitexception.PyVcdKitInvalidInput('entry %s is not a directory' % (current.name()))
            for child in self.read_dir(current):
                if child.name() == component:
                    current = child
                    break
            else:
                raise pyvcdkitexception.PyVcdKitInvalidInput('Could not find path %s' % (path))

        return current


def open_image(source):
    # type: (Any) -> ImageReader
    """
    Open a UDF image for reading.

    Parameters:
     source - An object with a read_at(offset, length) method, or a seekable
              binary file object, that stays usable while the image is read.
    Returns:
     An ImageReader for the image.
    """
    reader = ImageReader()
    reader.open_fp(source)
    return reader
