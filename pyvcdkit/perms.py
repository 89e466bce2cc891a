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
The UDF File Entry permission bitmap (ECMA-167, Part 4, 14.9.5).

The 15 used bits are three groups of five; from the least significant bit,
the groups are other, group and owner.  Inside each group the bits are
execute, write, read, change attributes and delete.
"""

FILE_PERM_EXECUTE = 1 << 0
FILE_PERM_WRITE = 1 << 1
FILE_PERM_READ = 1 << 2
FILE_PERM_CHANGE = 1 << 3
FILE_PERM_DELETE = 1 << 4

FILE_MODE_OTHER_OFFSET = 0
FILE_MODE_GROUP_OFFSET = 5
FILE_MODE_OWNER_OFFSET = 10

FILE_MODE_OTHER_MASK = 0x1f << FILE_MODE_OTHER_OFFSET
FILE_MODE_GROUP_MASK = 0x1f << FILE_MODE_GROUP_OFFSET
FILE_MODE_OWNER_MASK = 0x1f << FILE_MODE_OWNER_OFFSET


def to_file_mode(mode):
    # type: (int) -> FileMode
    """
    Convert a POSIX mode into the UDF permission bitmap.  Only the rwx bits
    of each class are carried over.

    Parameters:
     mode - The POSIX mode; any file type bits are ignored.
    Returns:
     The UDF FileMode.
    """
    mode &= 0o777
    ret = mode & 0o7
    ret |= ((mode >> 3) & 0o7) << FILE_MODE_GROUP_OFFSET
    ret |= ((mode >> 6) & 0o7) << FILE_MODE_OWNER_OFFSET
    return FileMode(ret)


def from_file_mode(mode):
    # type: (int) -> int
    """
    Convert a UDF permission bitmap into a POSIX mode.  The change attribute
    and delete bits have no POSIX equivalent and are dropped.

    Parameters:
     mode - The UDF permission bitmap.
    Returns:
     The POSIX permission bits (0 to 0o777).
    """
    ret = mode & 0o7
    ret |= ((mode >> FILE_MODE_GROUP_OFFSET) & 0o7) << 3
    ret |= ((mode >> FILE_MODE_OWNER_OFFSET) & 0o7) << 6
    return ret


class FileMode(int):
    """An int holding a UDF permission bitmap, with per-class helpers."""

    def _has(self, offset, perms):
        # type: (int, int) -> bool
        return (self >> offset) & perms == perms

    def _set(self, offset, perms):
        # type: (int, int) -> FileMode
        return FileMode(self | (perms << offset))

    def _unset(self, offset, perms):
        # type: (int, int) -> FileMode
        return FileMode(self & ~(perms << offset))

    def other(self):
        # type: () -> FileMode
        return FileMode(self & FILE_MODE_OTHER_MASK)

    def has_other(self, perms):
        # type: (int) -> bool
        return self._has(FILE_MODE_OTHER_OFFSET, perms)

    def set_other(self, perms):
        # type: (int) -> FileMode
        return self._set(FILE_MODE_OTHER_OFFSET, perms)

    def unset_other(self, perms):
        # type: (int) -> FileMode
        return self._unset(FILE_MODE_OTHER_OFFSET, perms)

    def group(self):
        # type: () -> FileMode
        return FileMode(self & FILE_MODE_GROUP_MASK)

    def has_group(self, perms):
        # type: (int) -> bool
        return self._has(FILE_MODE_GROUP_OFFSET, perms)

    def set_group(self, perms):
        # type: (int) -> FileMode
        return self._set(FILE_MODE_GROUP_OFFSET, perms)

    def unset_group(self, perms):
        # type: (int) -> FileMode
        return self._unset(FILE_MODE_GROUP_OFFSET, perms)

    def owner(self):
        # type: () -> FileMode
        return FileMode(self & FILE_MODE_OWNER_MASK)

    def has_owner(self, perms):
        # type: (int) -> bool
        return self._has(FILE_MODE_OWNER_OFFSET, perms)

    def set_owner(self, perms):
        # type: (int) -> FileMode
        return self._set(FILE_MODE_OWNER_OFFSET, perms)

    def unset_owner(self, perms):
        # type: (int) -> FileMode
        return self._unset(FILE_MODE_OWNER_OFFSET, perms)

    def to_posix(self):
        # type: () -> int
        return from_file_mode(self)

    def __repr__(self):
        # type: () -> str
        return 'FileMode(0x%04x)' % (int(self))
