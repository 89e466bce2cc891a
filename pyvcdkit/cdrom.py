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
Classes for the CD-ROM style Volume Recognition Sequence (ECMA-167, Part 2)
that precedes the UDF structures on a disk image.
"""

from pyvcdkit import pyvcdkitexception

# For mypy annotations
if False:  # pylint: disable=using-constant-test
    from typing import Optional  # NOQA pylint: disable=unused-import
    from pyvcdkit import bufferreader  # NOQA pylint: disable=unused-import

CDROM_VOLUME_DESCRIPTOR_SECTOR = 16

CDROM_VOLUME_IDENTIFIER_BEA01 = 'BEA01'
CDROM_VOLUME_IDENTIFIER_BOOT2 = 'BOOT2'
CDROM_VOLUME_IDENTIFIER_CD001 = 'CD001'
CDROM_VOLUME_IDENTIFIER_CDW02 = 'CDW02'
CDROM_VOLUME_IDENTIFIER_NSR02 = 'NSR02'
CDROM_VOLUME_IDENTIFIER_NSR03 = 'NSR03'
CDROM_VOLUME_IDENTIFIER_TEA01 = 'TEA01'


class CdromVolumeDescriptorHeader(object):
    """
    A class representing the header shared by all Volume Structures
    (ECMA-167, Part 2, 9.1).
    """
    __slots__ = ('_initialized', 'descriptor_type', 'identifier', 'version')

    FMT = '<B5sB'

    def __init__(self):
        # type: () -> None
        self._initialized = False

    def parse(self, reader):
        # type: (bufferreader.BufferReader) -> None
        """
        Parse a Volume Structure header from the reader.

        Parameters:
         reader - The BufferReader positioned at the start of the structure.
        Returns:
         Nothing.
        """
        if self._initialized:
            raise pyvcdkitexception.PyVcdKitInternalError('CDROM Volume Descriptor Header already initialized')

        (self.descriptor_type, identifier,
         self.version) = reader.unpack(self.FMT)
        self.identifier = identifier.decode('latin-1')

        self._initialized = True


class _CdromVolumeDescriptor(object):
    """The parts shared by every kind of Volume Structure."""
    __slots__ = ('header',)

    def __init__(self, header):
        # type: (CdromVolumeDescriptorHeader) -> None
        self.header = header

    @property
    def identifier(self):
        # type: () -> str
        return self.header.identifier

    @property
    def descriptor_type(self):
        # type: () -> int
        return self.header.descriptor_type

    def __repr__(self):
        # type: () -> str
        return '%s(%r)' % (self.__class__.__name__, self.header.identifier)


class CdromExtendedAreaVolumeDescriptor(_CdromVolumeDescriptor):
    """A Beginning Extended Area Descriptor (ECMA-167, Part 2, 9.2)."""
    __slots__ = ()


class CdromBootVolumeDescriptor(_CdromVolumeDescriptor):
    """A Boot Descriptor (ECMA-167, Part 2, 9.4)."""
    __slots__ = ()


class CdromCdwVolumeDescriptor(_CdromVolumeDescriptor):
    """An ISO 9660 (CD001) or ECMA-168 (CDW02) descriptor."""
    __slots__ = ()


class CdromNsrVolumeDescriptor(_CdromVolumeDescriptor):
    """An NSR Descriptor, announcing ECMA-167 content (Part 3, 9.1)."""
    __slots__ = ()


class CdromTerminalVolumeDescriptor(_CdromVolumeDescriptor):
    """A Terminating Extended Area Descriptor (ECMA-167, Part 2, 9.3)."""
    __slots__ = ()


_CDROM_DESCRIPTOR_CLASSES = {
    CDROM_VOLUME_IDENTIFIER_BEA01: CdromExtendedAreaVolumeDescriptor,
    CDROM_VOLUME_IDENTIFIER_BOOT2: CdromBootVolumeDescriptor,
    CDROM_VOLUME_IDENTIFIER_CD001: CdromCdwVolumeDescriptor,
    CDROM_VOLUME_IDENTIFIER_CDW02: CdromCdwVolumeDescriptor,
    CDROM_VOLUME_IDENTIFIER_NSR02: CdromNsrVolumeDescriptor,
    CDROM_VOLUME_IDENTIFIER_NSR03: CdromNsrVolumeDescriptor,
    CDROM_VOLUME_IDENTIFIER_TEA01: CdromTerminalVolumeDescriptor,
}


def parse_cdrom_volume_descriptor(reader):
    # type: (bufferreader.BufferReader) -> _CdromVolumeDescriptor
    """
    Parse one Volume Structure and build the class matching its identifier.

    Parameters:
     reader - The BufferReader positioned at the start of the structure.
    Returns:
     The Volume Structure object.
    """
    header = CdromVolumeDescriptorHeader()
    header.parse(reader)

    cls = _CDROM_DESCRIPTOR_CLASSES.get(header.identifier)
    if cls is None:
        raise pyvcdkitexception.PyVcdKitInvalidImage("unrecognized file system '%s'" % (header.identifier))

    return cls(header)


class CdromDescriptorList(list):
    """An ordered list of Volume Structures, with lookup helpers."""

    def has_any_identifier(self, *identifiers):
        # type: (str) -> bool
        """
        Determine whether any descriptor in the list has one of the given
        identifiers.

        Parameters:
         identifiers - The identifiers to look for.
        Returns:
         True if at least one descriptor matches, False otherwise.
        """
        for desc in self:
            if desc.identifier in identifiers:
                return True
        return False

    def find_by_type(self, descriptor_type):
        # type: (int) -> Optional[_CdromVolumeDescriptor]
        for desc in self:
            if desc.descriptor_type == descriptor_type:
                return desc
        return None

    def get_by_type(self, descriptor_type):
        # type: (int) -> _CdromVolumeDescriptor
        desc = self.find_by_type(descriptor_type)
        if desc is None:
            raise pyvcdkitexception.PyVcdKitInvalidImage('CDROM descriptor with type %d does not exist in sequence' % (descriptor_type))
        return desc

    def find_by_identifier(self, identifier):
        # type: (str) -> Optional[_CdromVolumeDescriptor]
        for desc in self:
            if desc.identifier == identifier:
                return desc
        return None

    def get_by_identifier(self, identifier):
        # type: (str) -> _CdromVolumeDescriptor
        desc = self.find_by_identifier(identifier)
        if desc is None:
            raise pyvcdkitexception.PyVcdKitInvalidImage('CDROM descriptor with identifier %s does not exist in sequence' % (identifier))
        return desc
