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
A table of locks indexed by key, for serializing work among collaborators
that agree on the keys they serialize on.
"""

import logging
import threading

from pyvcdkit import pyvcdkitexception

# For mypy annotations
if False:  # pylint: disable=using-constant-test
    from typing import Dict  # NOQA pylint: disable=unused-import

LOGGER = logging.getLogger(__name__)


class _KeyedLock(object):
    """A lock plus the number of callers holding or waiting on it."""
    __slots__ = ('lock', 'users')

    def __init__(self):
        # type: () -> None
        self.lock = threading.Lock()
        self.users = 0


class _LockedContext(object):
    """Context manager holding the lock of one key of a MutexKV."""
    __slots__ = ('_mutexkv', '_key')

    def __init__(self, mutexkv, key):
        # type: (MutexKV, str) -> None
        self._mutexkv = mutexkv
        self._key = key

    def __enter__(self):
        self._mutexkv.lock(self._key)
        return self

    def __exit__(self, *args):
        self._mutexkv.unlock(self._key)


class MutexKV(object):
    """
    A class that hands out one lock per key.  The caller that locks a key is
    responsible for unlocking that same key.  Locks stay in the table until
    discard() is called for their key.
    """
    __slots__ = ('_lock', '_store', '_silent')

    def __init__(self, silent=False):
        # type: (bool) -> None
        self._lock = threading.Lock()
        self._store = {}  # type: Dict[str, _KeyedLock]
        self._silent = silent

    def lock(self, key):
        # type: (str) -> None
        """
        Lock the given key, waiting for any other holder to unlock it first.

        Parameters:
         key - The key to lock.
        Returns:
         Nothing.
        """
        with self._lock:
            entry = self._store.get(key)
            if entry is None:
                entry = _KeyedLock()
                self._store[key] = entry
            entry.users += 1

        if not self._silent:
            LOGGER.debug('Locking %r', key)
        entry.lock.acquire()  # pylint: disable=consider-using-with
        if not self._silent:
            LOGGER.debug('Locked %r', key)

    def unlock(self, key):
        # type: (str) -> None
        """
        Unlock the given key, which the caller must have locked.

        Parameters:
         key - The key to unlock.
        Returns:
         Nothing.
        """
        with self._lock:
            entry = self._store.get(key)
            if entry is None or not entry.lock.locked():
                raise pyvcdkitexception.PyVcdKitInvalidInput('Key %r is not locked' % (key))

        if not self._silent:
            LOGGER.debug('Unlocking %r', key)
        entry.lock.release()
        with self._lock:
            entry.users -= 1
        if not self._silent:
            LOGGER.debug('Unlocked %r', key)

    def locked(self, key):
        # type: (str) -> _LockedContext
        """
        Get a context manager that holds the lock for key while it is active.

        Parameters:
         key - The key to lock.
        Returns:
         The context manager.
        """
        return _LockedContext(self, key)

    def discard(self, key):
        # type: (str) -> bool
        """
        Remove the lock for key from the table, provided that nobody holds or
        waits on it.

        Parameters:
         key - The key whose lock should be removed.
        Returns:
         True if the lock was removed, False if it is in use or unknown.
        """
        with self._lock:
            entry = self._store.get(key)
            if entry is None or entry.users > 0:
                return False
            del self._store[key]
            return True

    def __len__(self):
        # type: () -> int
        with self._lock:
            return len(self._store)
