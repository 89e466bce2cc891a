# This is a simple program to show how to use the pyvcdkit parallel scheduler
# to collect one item from each of several threads and then run a single
# function over all of the items, exactly once.

# Import standard python modules.
import threading

# Import the scheduler.
from pyvcdkit import parallel

WORKERS = 4


def total(client, global_id, items):
    # Called exactly once, with the dict of every item_id to its item.
    print('Running %s over %d items' % (global_id, len(items)))
    return sum(items.values())


scheduler = parallel.ParallelScheduler()


def worker(index):
    pinput = parallel.ParallelInput(global_id='sum', item_id='worker%d' % (index),
                                    how_many=WORKERS, item=index * 10, run=total,
                                    collection_timeout=30)
    # Keep contributing until the outcome is terminal.  Every worker gets the
    # same memoized result.
    ret = parallel.run_until_done(scheduler, pinput)
    print('worker%d: %s %s' % (index, ret.outcome.value, ret.result))


threads = [threading.Thread(target=worker, args=(i,)) for i in range(WORKERS)]
for t in threads:
    t.start()
for t in threads:
    t.join()

# Drop the finished operation so that its state does not stay around.
scheduler.forget('sum')
