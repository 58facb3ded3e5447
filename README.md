# acid

Building blocks for RPC and Raft-based services. It is written in pure Python
and has no third-party dependencies.

## Modules

### `acid.serializer`

`Serializer` is a growable byte buffer with a read/write position. It raises
`SerializationError` when a value cannot be written or the data cannot be read.

- 8- and 16-bit integers, `bool`, `float` and `double` are written as fixed-width
  big-endian values.
- 32- and 64-bit integers are varints. Signed values are zigzag-encoded first.
- Strings and byte blobs are written as a varint length followed by the bytes.
- There are typed methods such as `write_int32` and `read_int32`,
  `write_string` and `read_string`, and `write_raw` and `read_raw`.
- `write(value, spec)` and `read(spec)` handle composite values described by a
  spec. A spec can be:
  - a scalar name such as `"int32"` or `"string"`;
  - a Python type (`bool`, `int`, `float`, `str`, `bytes`);
  - a tuple: `("list", e)`, `("set", e)`, `("map", k, v)`, `("multimap", k, v)`,
    `("pair", k, v)` or `("tuple", ...)`;
  - a class that has `serialize` and a `deserialize` classmethod.
- When writing, the spec may be left out and is then inferred from the value.

### `acid.protocol`

`Protocol` is the RPC wire frame, a frozen dataclass. `MsgType` lists the
message types, and `ProtocolError` is raised for frames that cannot be decoded.

- The frame starts with an 11-byte big-endian header: magic `0xCC`, version,
  type, a 32-bit sequence id and a 32-bit content length. The content follows
  the header.
- `Protocol.create(msg_type, content, sequence_id)` builds a frame.
- `Protocol.heartbeat()` builds a heartbeat frame.
- `encode()` returns the header and the content; `encode_meta()` returns the
  header alone.
- The classmethods `decode(data)` and `decode_meta(data)` read a frame back.

### `acid.rpc`

`RpcState` holds the call states: `SUCCESS`, `FAIL`, `NO_MATCH`, `NO_METHOD`,
`CLOSED` and `TIMEOUT`.

`Result` carries a call's `code`, `msg` and `val`.

- `Result.success()` and `Result.fail()` build results; `valid()` tells whether
  the call succeeded.
- `serialize(serializer, spec)` always writes the value.
- `Result.deserialize(serializer, spec)` reads the value only when the code is
  `SUCCESS`.

### `acid.route_strategy`

Client-side load balancing.

- `query_strategy(strategy)` takes `Strategy.RANDOM`, `Strategy.POLLING` or
  `Strategy.HASH_IP`. Every call returns a fresh polling strategy; the random
  and hash strategies are shared.
- Every strategy has `select(items)`, which raises `ValueError` on an empty list.
- `HashIPRouteStrategy` hashes the local host address, as reported by
  `get_local_host()` for interface `eth0`. When no address is found it picks at
  random.

### `acid.sync`

Thread synchronisation primitives.

- `Channel(capacity)` is a bounded FIFO.
  - `push` blocks while the channel is full and `pop` blocks while it is empty.
  - `close()` discards anything still buffered and wakes all waiters.
  - On a closed channel, `push` and `pop` raise `ChannelClosed`.
  - Iterating over a channel yields items until it is closed.
- `CountDownLatch(count)` has `count_down()`, `wait(timeout)` and `count`.
- `Semaphore(num)` has `wait()` and `notify()` and works as a context manager.

### `acid.raft_messages`

Raft data and RPC messages. Every one is a dataclass with
`serialize(serializer)` and a `deserialize(serializer)` classmethod.

- Records: `Entry`, `EntryType`, `Snapshot`, `SnapshotMetadata` and `HardState`.
- Storage status codes: `StorageError`.
- Vote messages: `RequestVoteArgs` and `RequestVoteReply`.
- Replication messages: `AppendEntriesArgs` and `AppendEntriesReply`.
- Snapshot messages: `InstallSnapshotArgs` and `InstallSnapshotReply`.

### `acid.util`

Smaller helpers.

- `deferred(func)` is a context manager that runs `func` when the block exits.
- Byte order:
  - `byte_swap(value, size)`;
  - `endian_cast`, `host_to_network` and `network_to_host`.
- Bits:
  - `create_mask(bits, width)` returns a host-part mask;
  - `count_bytes(value)` counts the set bits of a value.
- Clocks: `current_ms()` and `current_us()`.
- Stack traces: `backtrace(size, skip)` and `backtrace_to_string(size, skip, prefix)`.
- Formatting: `group_thousands(number)`.
- `TimeMeasure` times a block. Used as a context manager, it prints a report
  when the block exits.

## Examples

Round-trip a Raft entry:

```python
from acid.serializer import Serializer
from acid.raft_messages import Entry

s = Serializer()
Entry(index=1, term=2, data=b"set x 1").serialize(s)
s.reset()
assert Entry.deserialize(s).term == 2
```

Pass values between threads:

```python
import threading
from acid.sync import Channel

chan = Channel(5)

def produce():
    for i in range(10):
        chan.push(i)

threading.Thread(target=produce).start()
print([chan.pop() for _ in range(10)])  # [0, 1, ..., 9]
chan.close()
```

Round-robin routing:

```python
from acid.route_strategy import Strategy, query_strategy

strategy = query_strategy(Strategy.POLLING)
print([strategy.select([1, 2, 3]) for _ in range(4)])  # [1, 2, 3, 1]
```

## What it does not do

These modules provide message formats and helpers only. There are no sockets
and no RPC client, server, connection pool or service registry. There is no
Raft node, no log or storage implementation and no snapshot files on disk.
Sending frames, running elections and persisting state are left to the
application.

## Running the tests

```
pip install -e ".[test]"
pytest
```