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

import threading

import pyvcdkit.parallel
import pyvcdkit.pyvcdkitexception

class FakeClock(object):
    def __init__(self, now=0.0):
        self.now = now

    def __call__(self):
        return self.now

class Counter(object):
    def __init__(self, result=None, error=None):
        self.calls = []
        self.result = result
        self.error = error
        self.lock = threading.Lock()

    def __call__(self, client, global_id, items):
        with self.lock:
            self.calls.append((client, global_id, dict(items)))
        if self.error is not None:
            raise self.error
        return self.result

def make_input(run, item_id, how_many=2, global_id='op', **kwargs):
    return pyvcdkit.parallel.ParallelInput(global_id=global_id, item_id=item_id,
                                           how_many=how_many, item='item-' + item_id,
                                           run=run, **kwargs)

def test_outcome_is_terminal():
    assert(pyvcdkit.parallel.Outcome.DONE.is_terminal())
    assert(pyvcdkit.parallel.Outcome.FAIL.is_terminal())
    assert(pyvcdkit.parallel.Outcome.RUN_TIMEOUT.is_terminal())
    assert(pyvcdkit.parallel.Outcome.COLLECTION_TIMEOUT.is_terminal())
    assert(not pyvcdkit.parallel.Outcome.WAITING.is_terminal())
    assert(not pyvcdkit.parallel.Outcome.RUNNING.is_terminal())

def test_input_defaults():
    pinput = make_input(None, 'a')
    assert(pinput.client is None)
    assert(pinput.collection_timeout == 0)
    assert(pinput.run_timeout == 0)

def test_single_item():
    run = Counter(result='answer')
    scheduler = pyvcdkit.parallel.ParallelScheduler(clock=FakeClock())
    ret = scheduler.run_when_ready(make_input(run, 'a', how_many=1, client='client'))
    assert(ret.outcome == pyvcdkit.parallel.Outcome.DONE)
    assert(ret.result == 'answer')
    assert(ret.error is None)
    assert(run.calls == [('client', 'op', {'a': 'item-a'})])

def test_collect_then_run():
    run = Counter(result='answer')
    scheduler = pyvcdkit.parallel.ParallelScheduler(clock=FakeClock())
    ret = scheduler.run_when_ready(make_input(run, 'a', how_many=3))
    assert(ret == pyvcdkit.parallel.ParallelResult(pyvcdkit.parallel.Outcome.WAITING, None, None))
    ret = scheduler.run_when_ready(make_input(run, 'b', how_many=3))
    assert(ret.outcome == pyvcdkit.parallel.Outcome.WAITING)
    # A repeated item does not count twice.
    ret = scheduler.run_when_ready(make_input(run, 'a', how_many=3))
    assert(ret.outcome == pyvcdkit.parallel.Outcome.WAITING)
    assert(run.calls == [])

    ret = scheduler.run_when_ready(make_input(run, 'c', how_many=3))
    assert(ret.outcome == pyvcdkit.parallel.Outcome.DONE)
    assert(ret.result == 'answer')
    assert(run.calls == [(None, 'op', {'a': 'item-a', 'b': 'item-b', 'c': 'item-c'})])

def test_late_arrival_replays_result():
    result = object()
    run = Counter(result=result)
    scheduler = pyvcdkit.parallel.ParallelScheduler(clock=FakeClock())
    scheduler.run_when_ready(make_input(run, 'a'))
    first = scheduler.run_when_ready(make_input(run, 'b'))
    assert(first.result is result)

    for item_id in ('a', 'b', 'z'):
        ret = scheduler.run_when_ready(make_input(run, item_id))
        assert(ret.outcome == pyvcdkit.parallel.Outcome.DONE)
        assert(ret.result is result)
    assert(len(run.calls) == 1)

def test_run_error_memoized():
    error = ValueError('boom')
    run = Counter(error=error)
    scheduler = pyvcdkit.parallel.ParallelScheduler(clock=FakeClock())
    ret = scheduler.run_when_ready(make_input(run, 'a', how_many=1))
    assert(ret.outcome == pyvcdkit.parallel.Outcome.DONE)
    assert(ret.result is None)
    assert(ret.error is error)

    ret = scheduler.run_when_ready(make_input(run, 'b', how_many=1))
    assert(ret.outcome == pyvcdkit.parallel.Outcome.DONE)
    assert(ret.error is error)
    assert(len(run.calls) == 1)

def test_how_many_zero():
    run = Counter()
    scheduler = pyvcdkit.parallel.ParallelScheduler(clock=FakeClock())
    ret = scheduler.run_when_ready(make_input(run, 'a', how_many=0))
    assert(ret.outcome == pyvcdkit.parallel.Outcome.FAIL)
    assert(isinstance(ret.error, pyvcdkit.pyvcdkitexception.PyVcdKitInvalidInput))
    assert(str(ret.error) == 'how_many must be a positive number for op')
    assert(scheduler.operation_count() == 0)

def test_how_many_mismatch():
    run = Counter(result='answer')
    scheduler = pyvcdkit.parallel.ParallelScheduler(clock=FakeClock())
    scheduler.run_when_ready(make_input(run, 'a', how_many=2))
    ret = scheduler.run_when_ready(make_input(run, 'b', how_many=3))
    assert(ret.outcome == pyvcdkit.parallel.Outcome.FAIL)
    assert(str(ret.error) == 'how_many 3 for item b does not match 2 for op')

    # The rejected call did not record its item.
    ret = scheduler.run_when_ready(make_input(run, 'c', how_many=2))
    assert(ret.outcome == pyvcdkit.parallel.Outcome.DONE)
    assert(run.calls == [(None, 'op', {'a': 'item-a', 'c': 'item-c'})])

def test_collection_timeout_mismatch():
    run = Counter()
    scheduler = pyvcdkit.parallel.ParallelScheduler(clock=FakeClock())
    scheduler.run_when_ready(make_input(run, 'a', collection_timeout=5))
    ret = scheduler.run_when_ready(make_input(run, 'b', collection_timeout=6))
    assert(ret.outcome == pyvcdkit.parallel.Outcome.FAIL)
    assert(str(ret.error) == 'collection_timeout 6 for item b does not match 5 for op')

    # A caller that sets no collection timeout is not checked against it.
    ret = scheduler.run_when_ready(make_input(run, 'b'))
    assert(ret.outcome == pyvcdkit.parallel.Outcome.DONE)

def test_collection_timeout():
    clock = FakeClock(100.0)
    run = Counter(result='answer')
    scheduler = pyvcdkit.parallel.ParallelScheduler(clock=clock)
    ret = scheduler.run_when_ready(make_input(run, 'a', how_many=3, collection_timeout=10))
    assert(ret.outcome == pyvcdkit.parallel.Outcome.WAITING)

    clock.now = 105.0
    ret = scheduler.run_when_ready(make_input(run, 'b', how_many=3, collection_timeout=10))
    assert(ret.outcome == pyvcdkit.parallel.Outcome.WAITING)

    clock.now = 111.0
    ret = scheduler.run_when_ready(make_input(run, 'c', how_many=3, collection_timeout=10))
    assert(ret == pyvcdkit.parallel.ParallelResult(pyvcdkit.parallel.Outcome.COLLECTION_TIMEOUT, None, None))

    # The timed out item was not recorded, and the operation can still finish.
    ret = scheduler.run_when_ready(make_input(run, 'd', how_many=3))
    assert(ret.outcome == pyvcdkit.parallel.Outcome.DONE)
    assert(run.calls == [(None, 'op', {'a': 'item-a', 'b': 'item-b', 'd': 'item-d'})])

def test_run_timeout_and_running():
    clock = FakeClock()
    started = threading.Event()
    release = threading.Event()

    def run(client, global_id, items):
        started.set()
        release.wait(10)
        return 'slow'

    scheduler = pyvcdkit.parallel.ParallelScheduler(clock=clock)
    scheduler.run_when_ready(make_input(run, 'a', run_timeout=5))
    results = []
    t = threading.Thread(target=lambda: results.append(scheduler.run_when_ready(make_input(run, 'b', run_timeout=5))))
    t.start()
    assert(started.wait(10))

    ret = scheduler.run_when_ready(make_input(run, 'a', run_timeout=5))
    assert(ret.outcome == pyvcdkit.parallel.Outcome.RUNNING)

    clock.now = 6.0
    ret = scheduler.run_when_ready(make_input(run, 'a', run_timeout=5))
    assert(ret.outcome == pyvcdkit.parallel.Outcome.RUN_TIMEOUT)
    ret = scheduler.run_when_ready(make_input(run, 'a'))
    assert(ret.outcome == pyvcdkit.parallel.Outcome.RUNNING)

    with pytest.raises(pyvcdkit.pyvcdkitexception.PyVcdKitInvalidInput) as excinfo:
        scheduler.forget('op')
    assert(str(excinfo.value) == 'Cannot forget op while it is running')

    release.set()
    t.join(10)
    assert(results[0].outcome == pyvcdkit.parallel.Outcome.DONE)
    assert(results[0].result == 'slow')

    ret = scheduler.run_when_ready(make_input(run, 'a', run_timeout=5))
    assert(ret.outcome == pyvcdkit.parallel.Outcome.DONE)
    assert(ret.result == 'slow')

def test_concurrent_single_execution():
    count = 8
    run = Counter()
    run.result = object()
    scheduler = pyvcdkit.parallel.ParallelScheduler()
    barrier = threading.Barrier(count)
    results = [None] * count

    def worker(index):
        barrier.wait()
        pinput = make_input(run, 'item%d' % (index), how_many=count)
        results[index] = pyvcdkit.parallel.run_until_done(scheduler, pinput, interval=0.001)

    threads = [threading.Thread(target=worker, args=(i,)) for i in range(count)]
    for t in threads:
        t.start()
    for t in threads:
        t.join(30)

    assert(len(run.calls) == 1)
    assert(len(run.calls[0][2]) == count)
    for ret in results:
        assert(ret.outcome == pyvcdkit.parallel.Outcome.DONE)
        assert(ret.result is run.result)

def test_independent_operations():
    run = Counter(result='answer')
    scheduler = pyvcdkit.parallel.ParallelScheduler(clock=FakeClock())
    scheduler.run_when_ready(make_input(run, 'a', global_id='one'))
    ret = scheduler.run_when_ready(make_input(run, 'a', global_id='two', how_many=1))
    assert(ret.outcome == pyvcdkit.parallel.Outcome.DONE)
    assert(scheduler.operation_count() == 2)
    ret = scheduler.run_when_ready(make_input(run, 'b', global_id='one', how_many=3))
    assert(ret.outcome == pyvcdkit.parallel.Outcome.FAIL)

def test_forget():
    run = Counter(result='answer')
    scheduler = pyvcdkit.parallel.ParallelScheduler(clock=FakeClock())
    assert(not scheduler.forget('op'))
    scheduler.run_when_ready(make_input(run, 'a', how_many=1))
    assert(scheduler.operation_count() == 1)
    assert(scheduler.forget('op'))
    assert(scheduler.operation_count() == 0)

    # The global id can be reused with a different count.
    ret = scheduler.run_when_ready(make_input(run, 'a', how_many=2))
    assert(ret.outcome == pyvcdkit.parallel.Outcome.WAITING)
    assert(len(run.calls) == 1)

def test_evict_finished():
    clock = FakeClock(50.0)
    run = Counter(result='answer')
    scheduler = pyvcdkit.parallel.ParallelScheduler(clock=clock)
    scheduler.run_when_ready(make_input(run, 'a', global_id='done', how_many=1))
    scheduler.run_when_ready(make_input(run, 'a', global_id='waiting'))

    clock.now = 55.0
    assert(scheduler.evict_finished(10) == [])
    clock.now = 60.0
    assert(scheduler.evict_finished(10) == ['done'])
    assert(scheduler.operation_count() == 1)
    assert(scheduler.evict_finished(0) == [])

def test_module_run_when_ready():
    run = Counter(result='answer')
    pinput = make_input(run, 'a', global_id='test_module_run_when_ready', how_many=1)
    ret = pyvcdkit.parallel.run_when_ready(pinput)
    assert(ret.outcome == pyvcdkit.parallel.Outcome.DONE)
    assert(ret.result == 'answer')
    assert(pyvcdkit.parallel._DEFAULT_SCHEDULER.forget('test_module_run_when_ready'))

def test_run_until_done_fail():
    scheduler = pyvcdkit.parallel.ParallelScheduler()
    ret = pyvcdkit.parallel.run_until_done(scheduler, make_input(Counter(), 'a', how_many=0))
    assert(ret.outcome == pyvcdkit.parallel.Outcome.FAIL)

class Interrupted(BaseException):
    pass

def test_run_interrupted():
    run = Counter(error=Interrupted())
    scheduler = pyvcdkit.parallel.ParallelScheduler(clock=FakeClock())
    scheduler.run_when_ready(make_input(run, 'a'))
    with pytest.raises(Interrupted):
        scheduler.run_when_ready(make_input(run, 'b'))

    # Nothing was memoized, so the next call runs the function again.
    run.error = None
    run.result = 'answer'
    ret = scheduler.run_when_ready(make_input(run, 'a'))
    assert(ret.outcome == pyvcdkit.parallel.Outcome.DONE)
    assert(ret.result == 'answer')
    assert(len(run.calls) == 2)

def test_forget_after_interrupted_run():
    run = Counter(error=Interrupted())
    scheduler = pyvcdkit.parallel.ParallelScheduler(clock=FakeClock())
    with pytest.raises(Interrupted):
        scheduler.run_when_ready(make_input(run, 'a', how_many=1))
    assert(scheduler.forget('op'))
    assert(scheduler.operation_count() == 0)
