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
A scheduler that collects one item from each of a known number of callers
and then runs a single function over all the items, exactly once.

Every caller contributes under a shared global_id, each with its own
item_id.  Callers keep calling run_when_ready() until they get a terminal
outcome; the call that completes the collection runs the function, and
every later call gets the same memoized result.  Collection timeouts are
only noticed when a caller calls in; nothing sweeps abandoned operations,
so callers that give up should call forget() or evict_finished().
"""

import collections
import enum
import logging
import time

from pyvcdkit import mutexkv
from pyvcdkit import pyvcdkitexception

# For mypy annotations
if False:  # pylint: disable=using-constant-test
    from typing import Any, Callable, Dict, List, Optional  # NOQA pylint: disable=unused-import

LOGGER = logging.getLogger(__name__)


class Outcome(enum.Enum):
    """The outcomes of a call to run_when_ready()."""
    DONE = 'done'
    WAITING = 'waiting'
    RUN_TIMEOUT = 'run-timeout'
    COLLECTION_TIMEOUT = 'collection-timeout'
    FAIL = 'fail'
    RUNNING = 'running'

    def is_terminal(self):
        # type: () -> bool
        """
        Determine whether a caller that got this outcome should stop calling.

        Parameters:
         None.
        Returns:
         True for DONE, FAIL and both timeouts, False otherwise.
        """
        return self not in (Outcome.WAITING, Outcome.RUNNING)


ParallelInput = collections.namedtuple('ParallelInput',
                                       ['global_id', 'item_id', 'how_many',
                                        'item', 'run', 'client',
                                        'collection_timeout', 'run_timeout'],
                                       defaults=(None, 0, 0))
ParallelInput.__doc__ = """
What each caller passes to the scheduler.  run(client, global_id, items) is
called once with the dict of every item_id to its item, and either returns
the result or raises.  Timeouts are in seconds; 0 means wait forever.
"""

ParallelResult = collections.namedtuple('ParallelResult',
                                        ['outcome', 'result', 'error'])


class _ParallelInfo(object):
    """The state of one operation, shared by all of its callers."""
    __slots__ = ('items', 'how_many', 'collection_timeout', 'is_running',
                 'finished', 'result', 'error', 'collection_start_time',
                 'run_start_time', 'run_end_time')

    def __init__(self, how_many, collection_timeout, now):
        # type: (int, float, float) -> None
        self.items = {}  # type: Dict[str, Any]
        self.how_many = how_many
        self.collection_timeout = collection_timeout
        self.is_running = False
        self.finished = False
        self.result = None  # type: Any
        self.error = None  # type: Optional[Exception]
        self.collection_start_time = now
        self.run_start_time = 0.0
        self.run_end_time = 0.0


class ParallelScheduler(object):
    """
    A class that coordinates any number of operations, each identified by a
    global_id.  Each operation has its own lock, so unrelated operations
    never wait on each other.
    """
    __slots__ = ('_clock', '_locks', '_operations')

    def __init__(self, clock=time.monotonic, silent=True):
        # type: (Callable[[], float], bool) -> None
        self._clock = clock
        self._locks = mutexkv.MutexKV(silent=silent)
        self._operations = {}  # type: Dict[str, _ParallelInfo]

    @staticmethod
    def _validate(parallel_input, info):
        # type: (ParallelInput, Optional[_ParallelInfo]) -> Optional[str]
        """
        Internal method to check a caller's input against the operation it
        contributes to.

        Parameters:
         parallel_input - The caller's input.
         info - The state of the operation, or None if it is new.
        Returns:
         A description of what is wrong, or None if the input is valid.
        """
        if not parallel_input.how_many or parallel_input.how_many < 0:
            return 'how_many must be a positive number for %s' % (parallel_input.global_id)

        if info is None:
            return None

        if parallel_input.how_many != info.how_many:
            return 'how_many %d for item %s does not match %d for %s' % (parallel_input.how_many,
                                                                          parallel_input.item_id,
                                                                          info.how_many,
                                                                          parallel_input.global_id)

        if parallel_input.collection_timeout and parallel_input.collection_timeout != info.collection_timeout:
            return 'collection_timeout %s for item %s does not match %s for %s' % (parallel_input.collection_timeout,
                                                                                    parallel_input.item_id,
                                                                                    info.collection_timeout,
                                                                                    parallel_input.global_id)

        return None

    def _run(self, parallel_input, info):
        # type: (ParallelInput, _ParallelInfo) -> ParallelResult
        """
        Internal method to run the operation's function.  Called with the
        operation's lock held; the lock is released while the function runs.
        Exceptions from the function are memoized; anything that is not an
        Exception (KeyboardInterrupt, SystemExit) propagates and leaves the
        operation ready to run again.

        Parameters:
         parallel_input - The input of the caller that completed the collection.
         info - The state of the operation.
        Returns:
         The DONE result.
        """
        global_id = parallel_input.global_id
        info.is_running = True
        info.run_start_time = self._clock()
        items = dict(info.items)
        LOGGER.debug('running %s with %d items', global_id, len(items))

        self._locks.unlock(global_id)
        result = None
        error = None  # type: Optional[Exception]
        completed = False
        try:
            result = parallel_input.run(parallel_input.client, global_id, items)
            completed = True
        except Exception as err:  # pylint: disable=broad-except
            LOGGER.debug('run of %s raised %r', global_id, err)
            error = err
            completed = True
        finally:
            self._locks.lock(global_id)
            if not completed:
                # Interrupted; nothing is memoized and a later call runs again.
                info.is_running = False

        info.result = result
        info.error = error
        info.finished = True
        info.run_end_time = self._clock()
        return ParallelResult(Outcome.DONE, result, error)

    def run_when_ready(self, parallel_input):
        # type: (ParallelInput) -> ParallelResult
        """
        Contribute an item to an operation, and run the operation if this
        item completes the collection.

        Parameters:
         parallel_input - The ParallelInput for this caller.
        Returns:
         A ParallelResult; the result and error are only set for DONE, and
         the error is a PyVcdKitInvalidInput for FAIL.
        """
        global_id = parallel_input.global_id
        with self._locks.locked(global_id):
            info = self._operations.get(global_id)
            LOGGER.debug('entering run_when_ready: %s - %s (%d)', global_id,
                         parallel_input.item_id, len(info.items) if info is not None else 0)

            problem = self._validate(parallel_input, info)
            if problem is not None:
                LOGGER.debug('exiting run_when_ready: %s - %s - outcome: %s', global_id,
                             parallel_input.item_id, Outcome.FAIL.value)
                return ParallelResult(Outcome.FAIL, None,
                                      pyvcdkitexception.PyVcdKitInvalidInput(problem))

            if info is None:
                info = _ParallelInfo(parallel_input.how_many,
                                     parallel_input.collection_timeout,
                                     self._clock())
                self._operations[global_id] = info
                LOGGER.debug('initializing %s - %s', global_id, parallel_input.item_id)

            if len(info.items) < info.how_many:
                if parallel_input.collection_timeout and self._clock() - info.collection_start_time > parallel_input.collection_timeout:
                    outcome = Outcome.COLLECTION_TIMEOUT
                    LOGGER.debug('exiting run_when_ready: %s - %s - outcome: %s', global_id,
                                 parallel_input.item_id, outcome.value)
                    return ParallelResult(outcome, None, None)

                if parallel_input.item_id not in info.items:
                    info.items[parallel_input.item_id] = parallel_input.item
                    LOGGER.debug('adding item: %s - %s (%d)', global_id,
                                 parallel_input.item_id, len(info.items))

                if len(info.items) < info.how_many:
                    LOGGER.debug('exiting run_when_ready: %s - %s - outcome: %s', global_id,
                                 parallel_input.item_id, Outcome.WAITING.value)
                    return ParallelResult(Outcome.WAITING, None, None)

            if info.finished:
                outcome = Outcome.DONE
                ret = ParallelResult(outcome, info.result, info.error)
            elif info.is_running:
                if parallel_input.run_timeout and self._clock() - info.run_start_time > parallel_input.run_timeout:
                    outcome = Outcome.RUN_TIMEOUT
                else:
                    outcome = Outcome.RUNNING
                ret = ParallelResult(outcome, None, None)
            else:
                ret = self._run(parallel_input, info)
                outcome = ret.outcome

            LOGGER.debug('exiting run_when_ready: %s - %s - outcome: %s', global_id,
                         parallel_input.item_id, outcome.value)
            return ret

    def forget(self, global_id):
        # type: (str) -> bool
        """
        Drop the state of an operation, and its lock, so that the global_id
        can be reused.

        Parameters:
         global_id - The operation to drop.
        Returns:
         True if the operation existed, False otherwise.
        """
        with self._locks.locked(global_id):
            info = self._operations.get(global_id)
            if info is not None and info.is_running and not info.finished:
                raise pyvcdkitexception.PyVcdKitInvalidInput('Cannot forget %s while it is running' % (global_id))
            existed = self._operations.pop(global_id, None) is not None

        self._locks.discard(global_id)
        return existed

    def evict_finished(self, max_age):
        # type: (float) -> List[str]
        """
        Drop the state of every operation that finished running at least
        max_age seconds ago.

        Parameters:
         max_age - The minimum age, in seconds, of the operations to drop.
        Returns:
         The list of global_ids that were dropped.
        """
        evicted = []
        for global_id in list(self._operations.keys()):
            with self._locks.locked(global_id):
                info = self._operations.get(global_id)
                if info is None or not info.finished:
                    continue
                if self._clock() - info.run_end_time < max_age:
                    continue
                del self._operations[global_id]
            self._locks.discard(global_id)
            evicted.append(global_id)

        LOGGER.debug('evicted %d finished operations', len(evicted))
        return evicted

    def operation_count(self):
        # type: () -> int
        return len(self._operations)


_DEFAULT_SCHEDULER = ParallelScheduler()


def run_when_ready(parallel_input):
    # type: (ParallelInput) -> ParallelResult
    """
    Contribute to an operation of the process-wide scheduler.  See
    ParallelScheduler.run_when_ready().
    """
    return _DEFAULT_SCHEDULER.run_when_ready(parallel_input)


def run_until_done(scheduler, parallel_input, interval=0.01):
    # type: (ParallelScheduler, ParallelInput, float) -> ParallelResult
    """
    Call run_when_ready() until the outcome is terminal.

    Parameters:
     scheduler - The ParallelScheduler to contribute to.
     parallel_input - The ParallelInput for this caller.
     interval - How long, in seconds, to sleep between calls.
    Returns:
     The terminal ParallelResult.
    """
    while True:
        ret = scheduler.run_when_ready(parallel_input)
        if ret.outcome.is_terminal():
            return ret
        time.sleep(interval)
