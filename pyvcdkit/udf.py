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

"""Classes to decode the UDF (ECMA-167) descriptors of a disk image."""

from pyvcdkit import perms
from pyvcdkit import pyvcdkitexception

# For mypy annotations
if False:  # pylint: disable=using-constant-test
    from typing import List, Optional  # NOQA pylint: disable=unused-import
    from pyvcdkit import bufferreader  # NOQA pylint: disable=unused-import

SECTOR_SIZE = 2048
ANCHOR_VOLUME_DESCRIPTOR_SECTOR = 256
TAG_SIZE = 16
ENTITY_ID_SIZE = 32

TAG_PRIMARY_VOLUME_DESCRIPTOR = 0x0001
TAG_ANCHOR_VOLUME_DESCRIPTOR_POINTER = 0x0002
TAG_VOLUME_DESCRIPTOR_POINTER = 0x0003
TAG_IMPLEMENTATION_USE_VOLUME_DESCRIPTOR = 0x0004
TAG_PARTITION_DESCRIPTOR = 0x0005
TAG_LOGICAL_VOLUME_DESCRIPTOR = 0x0006
TAG_UNALLOCATED_SPACE_DESCRIPTOR = 0x0007
TAG_TERMINATING_DESCRIPTOR = 0x0008
TAG_LOGICAL_VOLUME_INTEGRITY_DESCRIPTOR = 0x0009
TAG_FILE_SET_DESCRIPTOR = 0x0100
TAG_FILE_IDENTIFIER_DESCRIPTOR = 0x0101
TAG_ALLOCATION_EXTENT_DESCRIPTOR = 0x0102
TAG_INDIRECT_ENTRY = 0x0103
TAG_TERMINAL_ENTRY = 0x0104
TAG_FILE_ENTRY = 0x0105
TAG_EXTENDED_ATTRIBUTE_HEADER_DESCRIPTOR = 0x0106
TAG_UNALLOCATED_SPACE_ENTRY = 0x0107
TAG_SPACE_BITMAP_DESCRIPTOR = 0x0108
TAG_PARTITION_INTEGRITY_ENTRY = 0x0109
TAG_EXTENDED_FILE_ENTRY = 0x010a

# ICB file types (ECMA-167, Part 4, 14.6.6).
FILE_TYPE_UNALLOCATED = 1
FILE_TYPE_PARTITION_INTEGRITY = 2
FILE_TYPE_INDIRECT = 3
FILE_TYPE_DIRECTORY = 4
FILE_TYPE_BYTES = 5
FILE_TYPE_BLOCK_DEVICE = 6
FILE_TYPE_CHARACTER_DEVICE = 7
FILE_TYPE_EXTENDED_ATTRIBUTES = 8
FILE_TYPE_FIFO = 9
FILE_TYPE_SOCKET = 10
FILE_TYPE_TERMINAL_ENTRY = 11
FILE_TYPE_SYMLINK = 12
FILE_TYPE_STREAM_DIRECTORY = 13

# File characteristics (ECMA-167, Part 4, 14.4.3).
FILE_CHARACTERISTIC_HIDDEN = 1 << 0
FILE_CHARACTERISTIC_DIRECTORY = 1 << 1
FILE_CHARACTERISTIC_DELETED = 1 << 2
FILE_CHARACTERISTIC_PARENT = 1 << 3
FILE_CHARACTERISTIC_METADATA = 1 << 4

# Bits 0-2 of the ICB tag flags say how a File Entry records its data.
AD_TYPE_SHORT = 0
AD_TYPE_LONG = 1
AD_TYPE_EXTENDED = 2
AD_TYPE_INLINE = 3

ENTITY_IDENTIFIER_OSTA_COMPLIANT = b'*OSTA UDF Compliant'

# This is the CRC CCITT table generated with a polynomial of 0x11021 and
# 16-bits.  The following code will re-generate the table:
#
# def _bytecrc(crc, poly, n):
#    mask = 1<<(n-1)
#    for i in range(8):
#        if crc & mask:
#            crc = (crc << 1) ^ poly
#        else:
#            crc = crc << 1
#    mask = (1<<n) - 1
#    crc = crc & mask
#    return crc
#
# def _mkTable(poly, n):
#    mask = (1<<n) - 1
#    poly = poly & mask
#    table = [_bytecrc(i<<(n-8),poly,n) for i in range(256)]
#    return table

crc_ccitt_table = (0, 4129, 8258, 12387, 16516, 20645, 24774, 28903, 33032,
                   37161, 41290, 45419, 49548, 53677, 57806, 61935, 4657, 528,
                   12915, 8786, 21173, 17044, 29431, 25302, 37689, 33560, 45947,
                   41818, 54205, 50076, 62463, 58334, 9314, 13379, 1056, 5121,
                   25830, 29895, 17572, 21637, 42346, 46411, 34088, 38153,
                   58862, 62927, 50604, 54669, 13907, 9842, 5649, 1584, 30423,
                   26358, 22165, 18100, 46939, 42874, 38681, 34616, 63455, 59390,
                   55197, 51132, 18628, 22757, 26758, 30887, 2112, 6241, 10242,
                   14371, 51660, 55789, 59790, 63919, 35144, 39273, 43274, 47403,
                   23285, 19156, 31415, 27286, 6769, 2640, 14899, 10770, 56317,
                   52188, 64447, 60318, 39801, 35672, 47931, 43802, 27814, 31879,
                   19684, 23749, 11298, 15363, 3168, 7233, 60846, 64911, 52716,
                   56781, 44330, 48395, 36200, 40265, 32407, 28342, 24277, 20212,
                   15891, 11826, 7761, 3696, 65439, 61374, 57309, 53244, 48923,
                   44858, 40793, 36728, 37256, 33193, 45514, 41451, 53516, 49453,
                   61774, 57711, 4224, 161, 12482, 8419, 20484, 16421, 28742,
                   24679, 33721, 37784, 41979, 46042, 49981, 54044, 58239, 62302,
                   689, 4752, 8947, 13010, 16949, 21012, 25207, 29270, 46570,
                   42443, 38312, 34185, 62830, 58703, 54572, 50445, 13538, 9411,
                   5280, 1153, 29798, 25671, 21540, 17413, 42971, 47098, 34713,
                   38840, 59231, 63358, 50973, 55100, 9939, 14066, 1681, 5808,
                   26199, 30326, 17941, 22068, 55628, 51565, 63758, 59695,
                   39368, 35305, 47498, 43435, 22596, 18533, 30726, 26663, 6336,
                   2273, 14466, 10403, 52093, 56156, 60223, 64286, 35833, 39896,
                   43963, 48026, 19061, 23124, 27191, 31254, 2801, 6864, 10931,
                   14994, 64814, 60687, 56684, 52557, 48554, 44427, 40424, 36297,
                   31782, 27655, 23652, 19525, 15522, 11395, 7392, 3265, 61215,
                   65342, 53085, 57212, 44955, 49082, 36825, 40952, 28183, 32310,
                   20053, 24180, 11923, 16050, 3793, 7920)


def crc_ccitt(data):
    # type: (bytes) -> int
    """
    Calculate the CRC over a range of bytes using the CCITT polynomial.

    Parameters:
     data - The array of bytes to calculate the CRC over.
    Returns:
     The CCITT CRC of the data.
    """
    crc = 0
    for x in data:
        crc = crc_ccitt_table[x ^ ((crc >> 8) & 0xFF)] ^ ((crc << 8) & 0xFF00)

    return crc


def compute_tag_checksum(data):
    # type: (bytes) -> int
    """
    Compute the Descriptor Tag checksum, the sum modulo 256 of bytes 0-3 and
    5-15 of the tag.

    Parameters:
     data - The 16 bytes of the tag.
    Returns:
     The checksum.
    """
    csum = 0
    for byte in data[:TAG_SIZE]:
        csum += byte
    csum -= data[4]

    return csum % 256


class UDFTag(object):
    """A class representing a UDF Descriptor Tag (ECMA-167, Part 3, 7.2)."""
    __slots__ = ('_initialized', 'tag_ident', 'desc_version', 'tag_checksum',
                 'tag_serial_number', 'desc_crc', 'desc_crc_length',
                 'tag_location')

    FMT = '<HHBBHHHL'

    def __init__(self):
        # type: () -> None
        self._initialized = False

    def parse(self, reader):
        # type: (bufferreader.BufferReader) -> None
        """
        Parse a UDF Descriptor Tag from the reader, checking its checksum and
        the CRC of the descriptor body that follows it.

        Parameters:
         reader - The BufferReader positioned at the start of the tag.
        Returns:
         Nothing.
        """
        if self._initialized:
            raise pyvcdkitexception.PyVcdKitInternalError('UDF Tag already initialized')

        raw = reader.peek_bytes(TAG_SIZE)
        (self.tag_ident, self.desc_version, self.tag_checksum, reserved,
         self.tag_serial_number, self.desc_crc, self.desc_crc_length,
         self.tag_location) = reader.unpack(self.FMT)

        if reserved != 0:
            raise pyvcdkitexception.PyVcdKitInvalidImage('Reserved data not 0!')

        if compute_tag_checksum(raw) != self.tag_checksum:
            raise pyvcdkitexception.PyVcdKitInvalidImage('Tag checksum does not match!')

        if self.desc_version not in (2, 3):
            raise pyvcdkitexception.PyVcdKitInvalidImage('Tag version not 2 or 3')

        if self.desc_crc != crc_ccitt(reader.peek_bytes(self.desc_crc_length)):
            raise pyvcdkitexception.PyVcdKitInvalidImage('Tag CRC does not match!')

        self._initialized = True


def _parse_tag(reader, expected):
    # type: (bufferreader.BufferReader, int) -> UDFTag
    """
    Internal function to parse the tag at the start of a descriptor, making
    sure it identifies the expected kind of descriptor.

    Parameters:
     reader - The BufferReader positioned at the start of the descriptor.
     expected - The tag identifier the descriptor must carry.
    Returns:
     The parsed UDFTag.
    """
    desc_tag = UDFTag()
    desc_tag.parse(reader)
    if desc_tag.tag_ident != expected:
        raise pyvcdkitexception.PyVcdKitInvalidImage('expected descriptor with tag ID %d but was %d' % (expected, desc_tag.tag_ident))
    return desc_tag


class UDFExtentAD(object):
    """A class representing a UDF Extent Descriptor (ECMA-167, Part 3, 7.1)."""
    __slots__ = ('length', 'location')

    FMT = '<LL'

    def __init__(self, length=0, location=0):
        # type: (int, int) -> None
        self.length = length
        self.location = location

    def parse(self, reader):
        # type: (bufferreader.BufferReader) -> None
        (self.length, self.location) = reader.unpack(self.FMT)

    def __eq__(self, other):
        # type: (object) -> bool
        if not isinstance(other, UDFExtentAD):
            return NotImplemented
        return self.length == other.length and self.location == other.location

    def __repr__(self):
        # type: () -> str
        return 'UDFExtentAD(length=%d, location=%d)' % (self.length, self.location)


class UDFShortAD(object):
    """
    A class representing a UDF Short Allocation Descriptor (ECMA-167, Part 4,
    14.14.1).  The top two bits of the recorded length are the extent type.
    """
    __slots__ = ('length', 'extent_type', 'location')

    FMT = '<LL'

    def __init__(self, length=0, location=0, extent_type=0):
        # type: (int, int, int) -> None
        self.length = length
        self.location = location
        self.extent_type = extent_type

    def parse(self, reader):
        # type: (bufferreader.BufferReader) -> None
        (length, self.location) = reader.unpack(self.FMT)
        self.extent_type = (length & 0xc0000000) >> 30
        self.length = length & 0x3fffffff

    def __repr__(self):
        # type: () -> str
        return 'UDFShortAD(length=%d, location=%d)' % (self.length, self.location)


class UDFLongAD(object):
    """
    A class representing a UDF Long Allocation Descriptor (ECMA-167, Part 4,
    14.14.2).  The location is the 6 byte lb_addr taken as a single integer,
    so the partition reference number sits in its upper 16 bits.
    """
    __slots__ = ('length', 'extent_type', 'location')

    def __init__(self, length=0, location=0, extent_type=0):
        # type: (int, int, int) -> None
        self.length = length
        self.location = location
        self.extent_type = extent_type

    def parse(self, reader):
        # type: (bufferreader.BufferReader) -> None
        length = reader.read_uint32()
        self.extent_type = (length & 0xc0000000) >> 30
        self.length = length & 0x3fffffff
        self.location = reader.read_uint48()
        reader.skip(6)  # Implementation Use

    @property
    def log_block_num(self):
        # type: () -> int
        return self.location & 0xffffffff

    @property
    def part_ref_num(self):
        # type: () -> int
        return self.location >> 32

    def __repr__(self):
        # type: () -> str
        return 'UDFLongAD(length=%d, location=%d)' % (self.length, self.location)


class UDFEntityID(object):
    """A class representing a UDF Entity ID (ECMA-167, Part 1, 7.4)."""
    __slots__ = ('flags', 'identifier', 'suffix')

    FMT = '<B23s8s'

    def parse(self, reader):
        # type: (bufferreader.BufferReader) -> None
        (self.flags, self.identifier, self.suffix) = reader.unpack(self.FMT)

    def identifier_string(self):
        # type: () -> str
        """
        Get the identifier with the trailing zero padding removed.

        Parameters:
         None.
        Returns:
         The identifier as a string.
        """
        return self.identifier.rstrip(b'\x00').decode('latin-1')


class UDFCharspec(object):
    """A class representing a UDF charspec (ECMA-167, Part 1, 7.2.1)."""
    __slots__ = ('set_type', 'set_information')

    FMT = '<B63s'

    def parse(self, reader):
        # type: (bufferreader.BufferReader) -> None
        (self.set_type, self.set_information) = reader.unpack(self.FMT)


class UDFImplementationUse(object):
    """An Entity ID followed by implementation specific data."""
    __slots__ = ('entity', 'implementation')

    def parse(self, reader, size):
        # type: (bufferreader.BufferReader, int) -> None
        """
        Parse the Implementation Use area from the reader.

        Parameters:
         reader - The BufferReader positioned at the area.
         size - The full size of the area, including the Entity ID.
        Returns:
         Nothing.
        """
        self.entity = UDFEntityID()
        self.entity.parse(reader)
        self.implementation = b''
        size -= ENTITY_ID_SIZE
        if size > 0:
            self.implementation = reader.read_bytes(size)


class UDFLVInformation(object):
    """The Logical Volume Information of an Implementation Use Volume Descriptor (UDF 2.60, 2.2.7.2)."""
    __slots__ = ('lvi_charset', 'logical_vol_ident', 'lv_info1', 'lv_info2',
                 'lv_info3', 'impl_ident', 'implementation_use')

    def parse(self, reader):
        # type: (bufferreader.BufferReader) -> None
        self.lvi_charset = UDFCharspec()
        self.lvi_charset.parse(reader)
        self.logical_vol_ident = reader.read_dstring(128)
        self.lv_info1 = reader.read_dstring(36)
        self.lv_info2 = reader.read_dstring(36)
        self.lv_info3 = reader.read_dstring(36)
        self.impl_ident = UDFEntityID()
        self.impl_ident.parse(reader)
        self.implementation_use = reader.read_bytes(128)


class UDFAnchorVolumeDescriptorPointer(object):
    """A class representing a UDF Anchor Volume Descriptor Pointer (ECMA-167, Part 3, 10.2)."""
    __slots__ = ('desc_tag', 'main_vd', 'reserve_vd')

    TAG_IDENT = TAG_ANCHOR_VOLUME_DESCRIPTOR_POINTER

    def parse(self, reader):
        # type: (bufferreader.BufferReader) -> None
        """
        Parse a UDF Anchor Volume Descriptor Pointer from the reader.

        Parameters:
         reader - The BufferReader positioned at the start of the descriptor.
        Returns:
         Nothing.
        """
        self.desc_tag = _parse_tag(reader, self.TAG_IDENT)
        self.main_vd = UDFExtentAD()
        self.main_vd.parse(reader)
        self.reserve_vd = UDFExtentAD()
        self.reserve_vd.parse(reader)
        reader.skip(480)  # Reserved


class UDFVolumeDescriptorPointer(object):
    """A class representing a UDF Volume Descriptor Pointer (ECMA-167, Part 3, 10.3)."""
    __slots__ = ('desc_tag', 'vol_desc_seqnum', 'next_vol_desc_seq_extent')

    TAG_IDENT = TAG_VOLUME_DESCRIPTOR_POINTER

    def parse(self, reader):
        # type: (bufferreader.BufferReader) -> None
        self.desc_tag = _parse_tag(reader, self.TAG_IDENT)
        self.vol_desc_seqnum = reader.read_uint32()
        self.next_vol_desc_seq_extent = UDFExtentAD()
        self.next_vol_desc_seq_extent.parse(reader)
        reader.skip(484)  # Reserved


class UDFPrimaryVolumeDescriptor(object):
    """A class representing a UDF Primary Volume Descriptor (ECMA-167, Part 3, 10.1)."""
    __slots__ = ('desc_tag', 'vol_desc_seqnum', 'desc_num', 'vol_ident',
                 'vol_seqnum', 'max_vol_seqnum', 'interchange_level',
                 'max_interchange_level', 'char_set_list',
                 'max_char_set_list', 'vol_set_ident', 'desc_char_set',
                 'explanatory_char_set', 'vol_abstract', 'vol_copyright',
                 'app_ident', 'recording_date', 'impl_ident',
                 'implementation_use', 'predecessor_vol_desc_location',
                 'flags')

    TAG_IDENT = TAG_PRIMARY_VOLUME_DESCRIPTOR

    def parse(self, reader):
        # type: (bufferreader.BufferReader) -> None
        """
        Parse a UDF Primary Volume Descriptor from the reader.

        Parameters:
         reader - The BufferReader positioned at the start of the descriptor.
        Returns:
         Nothing.
        """
        self.desc_tag = _parse_tag(reader, self.TAG_IDENT)
        self.vol_desc_seqnum = reader.read_uint32()
        self.desc_num = reader.read_uint32()
        self.vol_ident = reader.read_dstring(32)
        (self.vol_seqnum, self.max_vol_seqnum, self.interchange_level,
         self.max_interchange_level, self.char_set_list,
         self.max_char_set_list) = reader.unpack('<HHHHLL')
        self.vol_set_ident = reader.read_dstring(128)
        self.desc_char_set = UDFCharspec()
        self.desc_char_set.parse(reader)
        self.explanatory_char_set = UDFCharspec()
        self.explanatory_char_set.parse(reader)
        self.vol_abstract = UDFExtentAD()
        self.vol_abstract.parse(reader)
        self.vol_copyright = UDFExtentAD()
        self.vol_copyright.parse(reader)
        self.app_ident = UDFEntityID()
        self.app_ident.parse(reader)
        self.recording_date = reader.read_timestamp()
        self.impl_ident = UDFEntityID()
        self.impl_ident.parse(reader)
        self.implementation_use = reader.read_bytes(64)
        self.predecessor_vol_desc_location = reader.read_uint32()
        self.flags = reader.read_uint16()
        reader.skip(22)  # Reserved


class UDFImplementationUseVolumeDescriptor(object):
    """A class representing a UDF Implementation Use Volume Descriptor (ECMA-167, Part 3, 10.4)."""
    __slots__ = ('desc_tag', 'vol_desc_seqnum', 'impl_ident',
                 'implementation_use')

    TAG_IDENT = TAG_IMPLEMENTATION_USE_VOLUME_DESCRIPTOR

    def parse(self, reader):
        # type: (bufferreader.BufferReader) -> None
        self.desc_tag = _parse_tag(reader, self.TAG_IDENT)
        self.vol_desc_seqnum = reader.read_uint32()
        self.impl_ident = UDFEntityID()
        self.impl_ident.parse(reader)
        self.implementation_use = UDFLVInformation()
        self.implementation_use.parse(reader)


class UDFPartitionDescriptor(object):
    """
    A class representing a UDF Partition Descriptor (ECMA-167, Part 3, 10.5).
    Every partition-relative location in the file system is turned into an
    absolute sector by adding part_start_location.
    """
    __slots__ = ('desc_tag', 'vol_desc_seqnum', 'part_flags', 'part_num',
                 'part_contents', 'part_contents_use', 'access_type',
                 'part_start_location', 'part_length', 'impl_ident',
                 'implementation_use')

    TAG_IDENT = TAG_PARTITION_DESCRIPTOR

    def parse(self, reader):
        # type: (bufferreader.BufferReader) -> None
        """
        Parse a UDF Partition Descriptor from the reader.

        Parameters:
         reader - The BufferReader positioned at the start of the descriptor.
        Returns:
         Nothing.
        """
        self.desc_tag = _parse_tag(reader, self.TAG_IDENT)
        (self.vol_desc_seqnum, self.part_flags,
         self.part_num) = reader.unpack('<LHH')
        self.part_contents = UDFEntityID()
        self.part_contents.parse(reader)
        self.part_contents_use = reader.read_bytes(128)
        (self.access_type, self.part_start_location,
         self.part_length) = reader.unpack('<LLL')
        self.impl_ident = UDFEntityID()
        self.impl_ident.parse(reader)
        self.implementation_use = reader.read_bytes(128)
        reader.skip(156)  # Reserved


class UDFPartitionMap(object):
    """
    A class representing a UDF Type 1 Partition Map (ECMA-167, Part 3,
    10.7.2), the only kind supported.
    """
    __slots__ = ('map_type', 'map_length', 'vol_seqnum', 'part_num')

    def parse(self, reader):
        # type: (bufferreader.BufferReader) -> None
        """
        Parse a Partition Map from the reader.

        Parameters:
         reader - The BufferReader positioned at the start of the map.
        Returns:
         Nothing.
        """
        self.map_type = reader.read_uint8()
        if self.map_type != 1:
            raise pyvcdkitexception.PyVcdKitInvalidImage('unsupported partition map type %d' % (self.map_type))
        self.map_length = reader.read_uint8()
        if self.map_length != 6:
            raise pyvcdkitexception.PyVcdKitInvalidImage('expected partition map 1 to be 6 bytes long but was %d' % (self.map_length))
        (self.vol_seqnum, self.part_num) = reader.unpack('<HH')


class UDFLogicalVolumeDescriptor(object):
    """A class representing a UDF Logical Volume Descriptor (ECMA-167, Part 3, 10.6)."""
    __slots__ = ('desc_tag', 'vol_desc_seqnum', 'desc_char_set',
                 'logical_vol_ident', 'logical_block_size', 'domain_ident',
                 'logical_volume_contents_use', 'map_table_length',
                 'num_partition_maps', 'impl_ident', 'implementation_use',
                 'integrity_sequence', 'partition_maps')

    TAG_IDENT = TAG_LOGICAL_VOLUME_DESCRIPTOR

    def parse(self, reader):
        # type: (bufferreader.BufferReader) -> None
        """
        Parse a UDF Logical Volume Descriptor from the reader.

        Parameters:
         reader - The BufferReader positioned at the start of the descriptor.
        Returns:
         Nothing.
        """
        self.desc_tag = _parse_tag(reader, self.TAG_IDENT)
        self.vol_desc_seqnum = reader.read_uint32()
        self.desc_char_set = UDFCharspec()
        self.desc_char_set.parse(reader)
        self.logical_vol_ident = reader.read_dstring(128)
        self.logical_block_size = reader.read_uint32()
        if self.logical_block_size != SECTOR_SIZE:
            raise pyvcdkitexception.PyVcdKitInvalidImage('Volume Descriptor block size is not %d' % (SECTOR_SIZE))
        self.domain_ident = UDFEntityID()
        self.domain_ident.parse(reader)
        self.logical_volume_contents_use = UDFLongAD()
        self.logical_volume_contents_use.parse(reader)
        (self.map_table_length,
         self.num_partition_maps) = reader.unpack('<LL')
        self.impl_ident = UDFEntityID()
        self.impl_ident.parse(reader)
        self.implementation_use = reader.read_bytes(128)
        self.integrity_sequence = UDFExtentAD()
        self.integrity_sequence.parse(reader)

        self.partition_maps = []  # type: List[UDFPartitionMap]
        for p_unused in range(self.num_partition_maps):
            partition_map = UDFPartitionMap()
            partition_map.parse(reader)
            self.partition_maps.append(partition_map)


class UDFUnallocatedSpaceDescriptor(object):
    """A class representing a UDF Unallocated Space Descriptor (ECMA-167, Part 3, 10.8)."""
    __slots__ = ('desc_tag', 'vol_desc_seqnum', 'num_alloc_descs',
                 'alloc_descs')

    TAG_IDENT = TAG_UNALLOCATED_SPACE_DESCRIPTOR

    def parse(self, reader):
        # type: (bufferreader.BufferReader) -> None
        self.desc_tag = _parse_tag(reader, self.TAG_IDENT)
        (self.vol_desc_seqnum, self.num_alloc_descs) = reader.unpack('<LL')
        self.alloc_descs = []  # type: List[UDFExtentAD]
        for i_unused in range(self.num_alloc_descs):
            extent = UDFExtentAD()
            extent.parse(reader)
            self.alloc_descs.append(extent)


class UDFTerminatingDescriptor(object):
    """A class representing a UDF Terminating Descriptor (ECMA-167, Part 3, 10.9)."""
    __slots__ = ('desc_tag',)

    TAG_IDENT = TAG_TERMINATING_DESCRIPTOR

    def parse(self, reader):
        # type: (bufferreader.BufferReader) -> None
        self.desc_tag = _parse_tag(reader, self.TAG_IDENT)
        reader.skip(496)  # Reserved


class UDFLogicalVolumeHeaderDescriptor(object):
    """A class representing a UDF Logical Volume Header Descriptor (ECMA-167, Part 4, 14.15)."""
    __slots__ = ('unique_id',)

    def parse(self, reader):
        # type: (bufferreader.BufferReader) -> None
        self.unique_id = reader.read_uint64()
        reader.skip(24)  # Reserved


class UDFLogicalVolumeIntegrityDescriptor(object):
    """A class representing a UDF Logical Volume Integrity Descriptor (ECMA-167, Part 3, 10.10)."""
    __slots__ = ('desc_tag', 'recording_date', 'integrity_type',
                 'next_integrity_extent', 'logical_volume_contents_use',
                 'num_partitions', 'length_impl_use', 'free_space_table',
                 'size_table', 'implementation_use')

    TAG_IDENT = TAG_LOGICAL_VOLUME_INTEGRITY_DESCRIPTOR

    def parse(self, reader):
        # type: (bufferreader.BufferReader) -> None
        """
        Parse a UDF Logical Volume Integrity Descriptor from the reader.

        Parameters:
         reader - The BufferReader positioned at the start of the descriptor.
        Returns:
         Nothing.
        """
        self.desc_tag = _parse_tag(reader, self.TAG_IDENT)
        self.recording_date = reader.read_timestamp()
        self.integrity_type = reader.read_uint32()
        self.next_integrity_extent = UDFExtentAD()
        self.next_integrity_extent.parse(reader)
        self.logical_volume_contents_use = UDFLogicalVolumeHeaderDescriptor()
        self.logical_volume_contents_use.parse(reader)
        (self.num_partitions, self.length_impl_use) = reader.unpack('<LL')
        self.free_space_table = [reader.read_uint32() for i_unused in range(self.num_partitions)]
        self.size_table = [reader.read_uint32() for i_unused in range(self.num_partitions)]
        self.implementation_use = UDFImplementationUse()
        self.implementation_use.parse(reader, self.length_impl_use)


class UDFFileSetDescriptor(object):
    """A class representing a UDF File Set Descriptor (ECMA-167, Part 4, 14.1)."""
    __slots__ = ('desc_tag', 'recording_date', 'interchange_level',
                 'max_interchange_level', 'char_set_list',
                 'max_char_set_list', 'file_set_num', 'file_set_desc_num',
                 'log_vol_char_set', 'log_vol_ident', 'file_set_char_set',
                 'file_set_ident', 'copyright_file_ident',
                 'abstract_file_ident', 'root_dir_icb', 'domain_ident',
                 'next_extent', 'system_stream_dir_icb')

    TAG_IDENT = TAG_FILE_SET_DESCRIPTOR

    def parse(self, reader):
        # type: (bufferreader.BufferReader) -> None
        """
        Parse a UDF File Set Descriptor from the reader.

        Parameters:
         reader - The BufferReader positioned at the start of the descriptor.
        Returns:
         Nothing.
        """
        self.desc_tag = _parse_tag(reader, self.TAG_IDENT)
        self.recording_date = reader.read_timestamp()
        (self.interchange_level, self.max_interchange_level,
         self.char_set_list, self.max_char_set_list, self.file_set_num,
         self.file_set_desc_num) = reader.unpack('<HHLLLL')
        self.log_vol_char_set = UDFCharspec()
        self.log_vol_char_set.parse(reader)
        self.log_vol_ident = reader.read_dstring(128)
        self.file_set_char_set = UDFCharspec()
        self.file_set_char_set.parse(reader)
        self.file_set_ident = reader.read_dstring(32)
        self.copyright_file_ident = reader.read_dstring(32)
        self.abstract_file_ident = reader.read_dstring(32)
        self.root_dir_icb = UDFLongAD()
        self.root_dir_icb.parse(reader)
        self.domain_ident = UDFEntityID()
        self.domain_ident.parse(reader)
        self.next_extent = UDFLongAD()
        self.next_extent.parse(reader)
        self.system_stream_dir_icb = UDFLongAD()
        self.system_stream_dir_icb.parse(reader)
        reader.skip(32)  # Reserved


class UDFLBAddr(object):
    """A class representing a UDF Logical Block Address (ECMA-167, Part 4, 7.1)."""
    __slots__ = ('logical_block_num', 'part_ref_num')

    FMT = '<LH'

    def parse(self, reader):
        # type: (bufferreader.BufferReader) -> None
        (self.logical_block_num, self.part_ref_num) = reader.unpack(self.FMT)


class UDFICBTag(object):
    """A class representing a UDF ICB Tag (ECMA-167, Part 4, 14.6)."""
    __slots__ = ('prior_num_direct_entries', 'strategy_type',
                 'strategy_param', 'max_num_entries', 'file_type',
                 'parent_icb', 'flags')

    def parse(self, reader):
        # type: (bufferreader.BufferReader) -> None
        (self.prior_num_direct_entries, self.strategy_type,
         self.strategy_param, self.max_num_entries, reserved_unused,
         self.file_type) = reader.unpack('<LHHHBB')
        self.parent_icb = UDFLBAddr()
        self.parent_icb.parse(reader)
        self.flags = reader.read_uint16()

    def ad_type(self):
        # type: () -> int
        """The kind of allocation descriptors, bits 0-2 of the flags."""
        return self.flags & 0x7


class UDFFileEntry(object):
    """A class representing a UDF File Entry (ECMA-167, Part 4, 14.9)."""
    __slots__ = ('desc_tag', 'icb_tag', 'uid', 'gid', 'perms',
                 'file_link_count', 'record_format', 'record_display_attrs',
                 'record_len', 'info_len', 'log_block_recorded',
                 'access_time', 'mod_time', 'attr_time', 'checkpoint',
                 'extended_attr_icb', 'impl_ident', 'unique_id',
                 'len_extended_attrs', 'len_alloc_descs', 'extended_attrs',
                 'alloc_descs', 'inline_data')

    TAG_IDENT = TAG_FILE_ENTRY

    def parse(self, reader):
        # type: (bufferreader.BufferReader) -> None
        """
        Parse a UDF File Entry from the reader.

        Parameters:
         reader - The BufferReader positioned at the start of the descriptor.
        Returns:
         Nothing.
        """
        self.desc_tag = _parse_tag(reader, self.TAG_IDENT)
        self.icb_tag = UDFICBTag()
        self.icb_tag.parse(reader)
        (self.uid, self.gid, permissions, self.file_link_count,
         self.record_format, self.record_display_attrs, self.record_len,
         self.info_len, self.log_block_recorded) = reader.unpack('<LLLHBBLQQ')
        self.perms = perms.FileMode(permissions)
        self.access_time = reader.read_timestamp()
        self.mod_time = reader.read_timestamp()
        self.attr_time = reader.read_timestamp()
        self.checkpoint = reader.read_uint32()
        self.extended_attr_icb = UDFLongAD()
        self.extended_attr_icb.parse(reader)
        self.impl_ident = UDFEntityID()
        self.impl_ident.parse(reader)
        (self.unique_id, self.len_extended_attrs,
         self.len_alloc_descs) = reader.unpack('<QLL')
        self.extended_attrs = reader.read_bytes(self.len_extended_attrs)

        self.alloc_descs = []  # type: List[object]
        self.inline_data = None  # type: Optional[bytes]

        ad_type = self.icb_tag.ad_type()
        if ad_type == AD_TYPE_SHORT:
            for i_unused in range(self.len_alloc_descs // 8):
                short_ad = UDFShortAD()
                short_ad.parse(reader)
                self.alloc_descs.append(short_ad)
        elif ad_type == AD_TYPE_LONG:
            for i_unused in range(self.len_alloc_descs // 16):
                long_ad = UDFLongAD()
                long_ad.parse(reader)
                self.alloc_descs.append(long_ad)
        elif ad_type == AD_TYPE_INLINE:
            self.inline_data = reader.read_bytes(self.len_alloc_descs)
        else:
            raise pyvcdkitexception.PyVcdKitInvalidImage('unsupported allocation descriptor type %d' % (ad_type))

    def is_dir(self):
        # type: () -> bool
        return self.icb_tag.file_type == FILE_TYPE_DIRECTORY


class UDFFileIdentifierDescriptor(object):
    """A class representing a UDF File Identifier Descriptor (ECMA-167, Part 4, 14.4)."""
    __slots__ = ('desc_tag', 'file_version_num', 'file_characteristics',
                 'len_fi', 'icb', 'len_impl_use', 'impl_use', 'fi')

    TAG_IDENT = TAG_FILE_IDENTIFIER_DESCRIPTOR

    @staticmethod
    def pad(val):
        # type: (int) -> int
        """
        A static method to calculate the amount of padding necessary for a
        UDF File Identifer Descriptor.

        Parameters:
         val - The amount of non-padded space the descriptor uses.
        Returns:
         The amount of padding to reach the next multiple of 4 bytes.
        """
        return (4 * ((val + 3) // 4)) - val

    def parse(self, reader):
        # type: (bufferreader.BufferReader) -> None
        """
        Parse a UDF File Identifier Descriptor from the reader, leaving the
        reader just after its padding.

        Parameters:
         reader - The BufferReader positioned at the start of the descriptor.
        Returns:
         Nothing.
        """
        start = reader.offset
        self.desc_tag = _parse_tag(reader, self.TAG_IDENT)
        (self.file_version_num, self.file_characteristics,
         self.len_fi) = reader.unpack('<HBB')
        self.icb = UDFLongAD()
        self.icb.parse(reader)
        self.len_impl_use = reader.read_uint16()
        self.impl_use = reader.read_bytes(self.len_impl_use)
        self.fi = reader.read_dcharacters(self.len_fi)

        reader.skip(self.pad(reader.offset - start))

    def has_flags(self, mask):
        # type: (int) -> bool
        """
        Determine whether all the given characteristic bits are set.

        Parameters:
         mask - The FILE_CHARACTERISTIC_* bits to test.
        Returns:
         True if every bit in mask is set, False otherwise.
        """
        return self.file_characteristics & mask == mask

    def is_hidden(self):
        # type: () -> bool
        return self.has_flags(FILE_CHARACTERISTIC_HIDDEN)

    def is_dir(self):
        # type: () -> bool
        return self.has_flags(FILE_CHARACTERISTIC_DIRECTORY)

    def is_deleted(self):
        # type: () -> bool
        return self.has_flags(FILE_CHARACTERISTIC_DELETED)

    def is_parent(self):
        # type: () -> bool
        return self.has_flags(FILE_CHARACTERISTIC_PARENT)

    def is_metadata(self):
        # type: () -> bool
        return self.has_flags(FILE_CHARACTERISTIC_METADATA)


_DESCRIPTOR_CLASSES = {
    TAG_PRIMARY_VOLUME_DESCRIPTOR: UDFPrimaryVolumeDescriptor,
    TAG_ANCHOR_VOLUME_DESCRIPTOR_POINTER: UDFAnchorVolumeDescriptorPointer,
    TAG_VOLUME_DESCRIPTOR_POINTER: UDFVolumeDescriptorPointer,
    TAG_IMPLEMENTATION_USE_VOLUME_DESCRIPTOR: UDFImplementationUseVolumeDescriptor,
    TAG_PARTITION_DESCRIPTOR: UDFPartitionDescriptor,
    TAG_LOGICAL_VOLUME_DESCRIPTOR: UDFLogicalVolumeDescriptor,
    TAG_UNALLOCATED_SPACE_DESCRIPTOR: UDFUnallocatedSpaceDescriptor,
    TAG_TERMINATING_DESCRIPTOR: UDFTerminatingDescriptor,
    TAG_LOGICAL_VOLUME_INTEGRITY_DESCRIPTOR: UDFLogicalVolumeIntegrityDescriptor,
    TAG_FILE_SET_DESCRIPTOR: UDFFileSetDescriptor,
    TAG_FILE_IDENTIFIER_DESCRIPTOR: UDFFileIdentifierDescriptor,
    TAG_FILE_ENTRY: UDFFileEntry,
}


def new_descriptor(tag_ident):
    # type: (int) -> object
    """
    Create an empty descriptor object for a tag identifier.

    Parameters:
     tag_ident - The tag identifier of the descriptor.
    Returns:
     An unparsed descriptor object of the matching class.
    """
    cls = _DESCRIPTOR_CLASSES.get(tag_ident)
    if cls is None:
        raise pyvcdkitexception.PyVcdKitInvalidImage('unexpected tag identifier %d' % (tag_ident))
    return cls()


def parse_descriptor(reader):
    # type: (bufferreader.BufferReader) -> object
    """
    Parse the descriptor at the reader's offset.  The tag identifier is
    peeked to pick the class, and the descriptor then parses from the same
    offset, tag included.

    Parameters:
     reader - The BufferReader positioned at the start of the descriptor.
    Returns:
     The parsed descriptor object.
    """
    desc = new_descriptor(reader.peek_uint16())
    desc.parse(reader)
    return desc


def parse_descriptor_with_tag(reader, tag_ident):
    # type: (bufferreader.BufferReader, int) -> object
    """
    Parse the descriptor at the reader's offset, which must carry the given
    tag identifier.

    Parameters:
     reader - The BufferReader positioned at the start of the descriptor.
     tag_ident - The expected tag identifier.
    Returns:
     The parsed descriptor object.
    """
    desc = parse_descriptor(reader)
    if desc.TAG_IDENT != tag_ident:
        raise pyvcdkitexception.PyVcdKitInvalidImage('expected descriptor with tag ID %d but was %d' % (tag_ident, desc.TAG_IDENT))
    return desc


class UDFDescriptorList(list):
    """An ordered list of parsed descriptors, with lookup by tag identifier."""

    def find(self, tag_ident):
        # type: (int) -> Optional[object]
        for desc in self:
            if desc.TAG_IDENT == tag_ident:
                return desc
        return None

    def get(self, tag_ident):
        # type: (int) -> object
        desc = self.find(tag_ident)
        if desc is None:
            raise pyvcdkitexception.PyVcdKitInvalidImage('descriptor with ID %d does not exist in sequence' % (tag_ident))
        return desc
