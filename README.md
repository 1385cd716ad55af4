# zinxtools

Thread-safe building blocks for server programs, using only the standard
library:

- `zinxtools.hashing`: the 32-bit FNV-1 hash (`Fnv32Hash`, `default_hash()`).
- `zinxtools.shardmap`: `ShardLockMap`, a string-keyed map split over
  several locked shards (32 by default) so that concurrent access does not
  contend on one lock.
- `zinxtools.snowflake`: `IDWorker`, a snowflake-style 64-bit ID generator
  (millisecond timestamp, 10-bit worker id, 12-bit per-millisecond sequence).
- `zinxtools.delayfunc`: `DelayFunc`, a callable stored with its arguments.
- `zinxtools.timer`: `Timer`, a one-shot timer with millisecond precision.
- `zinxtools.timewheel`: `TimeWheel`, a hierarchical timing wheel.
- `zinxtools.scheduler`: `TimerScheduler` and
  `new_auto_exec_timer_scheduler()`, which drive hour, minute and second
  wheels.
- `zinxtools.rotating_writer`: `RotatingWriter`, a log file writer that
  rotates by day and by size and zips old files, plus the helpers
  `zip_to_file()` and `zip_path()`.

## Installation

```
pip install .
```

## Sharded map

```python
from zinxtools.shardmap import ShardLockMap

m = ShardLockMap()
m.set("user", "alice")
m.set_nx("user", "bob")        # False: the key already exists
print(m.get("user"))           # alice
print(len(m), "user" in m)     # 1 True
print(m.to_json())             # {"user":"alice"}
m.update_from_json('{"a": 1}')
print(m.pop("a"))              # 1
```

`ShardLockMap(hasher=None, shard_count=32)` takes any object with a
`sum(key)` method returning an unsigned 32-bit integer. Other operations:
`mset`, `has`, `remove`, `remove_cb`, `clear`, `is_empty`, `count`, `keys`,
`items` (a plain dict copy), `iter_buffered` (an iterator of `Entry(key,
value)` over a snapshot) and `iter_cb`.

## Snowflake IDs

```python
from zinxtools.snowflake import IDWorker

worker = IDWorker(1)           # worker id 0..1023, otherwise ValueError
print(worker.next_id())
```

`next_id()` raises `ClockMovedBackwardsError` if the system clock goes back
past the last issued ID.

## Timers and the scheduler

```python
from zinxtools.delayfunc import DelayFunc
from zinxtools.scheduler import new_auto_exec_timer_scheduler

def greet(name):
    print("hello", name)

scheduler = new_auto_exec_timer_scheduler()
tid = scheduler.create_timer_after(DelayFunc(greet, ["world"]), 2.0)
# scheduler.cancel_timer(tid) would stop it from firing
# scheduler.stop() stops the background threads
```

`DelayFunc.call()` logs an exception raised by the function instead of
propagating it. `Timer.after(delay_func, seconds).run()` calls a function
once on a background thread.

A `TimerScheduler` places timers on an hour wheel linked to a minute wheel
and a second wheel, each turning on its own thread. After `start()`, due
functions are put on `trigger_queue()`; the auto-exec scheduler also calls
each of them on its own thread. A `TimeWheel` can be used directly:
`add_timer`, `remove_timer`, `add_time_wheel`, `tick`, `run`, `stop` and
`get_timer_within(seconds)`.

## Rotating log writer

```python
from zinxtools.rotating_writer import RotatingWriter

with RotatingWriter("logs/app.log", max_age=31, max_size=64 * 1024 * 1024) as out:
    out.write(b"service started\n")
```

The writer appends to the file, rotating when the day changes or the size
limit would be reached. A rotated file is zipped next to the live one as
`app.<YYYY-mm-dd-HHMMSS.ffffff>.zip`; on a day change archives older than
`max_age` days are deleted. With `console=True` each write is echoed to
standard error. Buffered data is flushed every 5 seconds in the background.

## What this package does not do

It provides components only: there is no network server, no command-line
tool and no persistent storage beyond the log files written by
`RotatingWriter`.

## Running the tests

```
pip install ".[test]"
pytest
```