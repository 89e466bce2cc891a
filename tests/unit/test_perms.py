import pytest
import os
import sys
import struct

prefix = '.'
for i in range(0, 3):
    if os.path.isdir(os.path.join(prefix, 'pyvcdkit')):
        sys.path.insert(0, prefix)
        break
    else:
        prefix = '../' + prefix

import pyvcdkit.perms

def test_perms_round_trip():
    for mode in range(0, 0o777 + 1):
        assert(pyvcdkit.perms.from_file_mode(pyvcdkit.perms.to_file_mode(mode)) == mode)

def test_perms_to_file_mode_layout():
    fm = pyvcdkit.perms.to_file_mode(0o751)
    assert(fm == (0x7 << 10) | (0x5 << 5) | 0x1)
    assert(fm.has_owner(pyvcdkit.perms.FILE_PERM_READ | pyvcdkit.perms.FILE_PERM_WRITE | pyvcdkit.perms.FILE_PERM_EXECUTE))
    assert(fm.has_group(pyvcdkit.perms.FILE_PERM_READ | pyvcdkit.perms.FILE_PERM_EXECUTE))
    assert(not fm.has_group(pyvcdkit.perms.FILE_PERM_WRITE))
    assert(fm.has_other(pyvcdkit.perms.FILE_PERM_EXECUTE))
    assert(not fm.has_other(pyvcdkit.perms.FILE_PERM_READ))

def test_perms_to_file_mode_ignores_type_bits():
    assert(pyvcdkit.perms.to_file_mode(0o40755) == pyvcdkit.perms.to_file_mode(0o755))

def test_perms_from_file_mode_drops_change_and_delete():
    mode = pyvcdkit.perms.FileMode(0x7fff)
    assert(pyvcdkit.perms.from_file_mode(mode) == 0o777)
    assert(mode.to_posix() == 0o777)

def test_perms_classes():
    mode = pyvcdkit.perms.FileMode(0x7fff)
    assert(mode.owner() == pyvcdkit.perms.FILE_MODE_OWNER_MASK)
    assert(mode.group() == pyvcdkit.perms.FILE_MODE_GROUP_MASK)
    assert(mode.other() == pyvcdkit.perms.FILE_MODE_OTHER_MASK)

def test_perms_set_and_unset():
    mode = pyvcdkit.perms.FileMode(0)
    mode = mode.set_owner(pyvcdkit.perms.FILE_PERM_READ | pyvcdkit.perms.FILE_PERM_DELETE)
    mode = mode.set_group(pyvcdkit.perms.FILE_PERM_CHANGE)
    mode = mode.set_other(pyvcdkit.perms.FILE_PERM_WRITE)
    assert(isinstance(mode, pyvcdkit.perms.FileMode))
    assert(mode == (0x14 << 10) | (0x8 << 5) | 0x2)

    mode = mode.unset_owner(pyvcdkit.perms.FILE_PERM_DELETE)
    mode = mode.unset_group(pyvcdkit.perms.FILE_PERM_CHANGE)
    mode = mode.unset_other(pyvcdkit.perms.FILE_PERM_WRITE)
    assert(mode == 0x4 << 10)
    assert(mode.to_posix() == 0o400)

def test_perms_repr():
    assert(repr(pyvcdkit.perms.FileMode(0x1ce7)) == 'FileMode(0x1ce7)')
