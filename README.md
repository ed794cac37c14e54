# hlpseudopeer

Asynchronous block sources that deliver decoded EVM blocks by height. Blocks
come from one of three places:

- a **local archive** of `.rmp.lz4` files (LZ4 frames of MessagePack) laid out
  as `<millions>/<thousands>/<height>.rmp.lz4` (`hlpseudopeer.local.LocalBlockSource`);
- the **hourly files written by hl-node**, one JSON `[timestamp, block]` pair
  per line under `hourly/<YYYYMMDD>/<hour>`
  (`hlpseudopeer.hl_node.HlNodeBlockSource`), which are followed as they grow
  and fall back to another source when a block has not shown up in time;
- an **in-memory LRU cache** of up to 100 000 blocks in front of any other
  source (`hlpseudopeer.cached.CachedBlockSource`).

Every source implements `hlpseudopeer.source.BlockSource`:

- `await collect_block(height)` returns the block at that height as a dict;
  when it is not available it raises `BlockNotFoundError` (a `LookupError`);
- `await find_latest_block_number()` returns the highest height available, or
  `None`;
- `recommended_chunk_size()` returns how many blocks to fetch per batch
  (1000 for the local archive);
- `polling_interval()` returns the delay in seconds before asking again
  (0.025 by default).

## Reading from a local archive

```python
import asyncio

from hlpseudopeer.cached import CachedBlockSource
from hlpseudopeer.local import LocalBlockSource


async def show_latest() -> None:
    source = CachedBlockSource(LocalBlockSource("/data/evm-blocks"))
    latest = await source.find_latest_block_number()
    if latest is not None:
        block = await source.collect_block(latest)
        print(latest, block)


asyncio.run(show_latest())
```

`find_latest_block_number()` walks the highest-numbered directory at each of
the two levels and then picks the highest-numbered file.

## Following hl-node

`HlNodeBlockSource(fallback, args)` reads the hourly files under `args.root`.
A block it cannot find there is taken from `fallback`, but only when it is not
newer than the last block served, or when at least `args.fallback_threshold`
seconds have passed since that block was served; otherwise `collect_block`
raises `BlockNotFoundError` so that hl-node has the chance to catch up.

```python
import asyncio

from hlpseudopeer.hl_node import HlNodeBlockSource, HlNodeBlockSourceArgs
from hlpseudopeer.local import LocalBlockSource


async def follow() -> None:
    args = HlNodeBlockSourceArgs(
        root="/data/hl/evm_blocks_and_receipts",
        fallback_threshold=5.0,
    )
    async with HlNodeBlockSource(LocalBlockSource("/data/evm-blocks"), args) as source:
        await source.start(1_000_000)
        print(await source.collect_block(1_000_000))


asyncio.run(follow())
```

`start(next_block_number)` records which hourly file holds each height from
that number on (block data is loaded lazily, a file at a time) and starts a
background task that tails the newest hourly file, moving on to the next hour
as time passes. `close()`, or leaving the `async with` block, stops that task.
`find_latest_block_number()` reads the last complete line of the newest hourly
file, and asks the fallback when there is none.

## Configuration from command-line arguments

`hlpseudopeer.cli.parse_block_source_args(argv)` parses these options into a
`BlockSourceArgs`; `build_parser()` returns the underlying
`argparse.ArgumentParser`.

| Option | Meaning |
| --- | --- |
| `--block-source` (alias `--ingest-dir`) | a directory, or `s3://<bucket>` |
| `--s3` | the chain's official S3 bucket |
| `--local` | `~/hl/data/evm_blocks_and_receipts` |
| `--local-ingest-dir` | the hl-node output directory to follow |
| `--s3.polling-interval` | polling interval in milliseconds (default 25) |
| `--local.fallback-threshold` | hl-node fallback threshold in milliseconds (default 5000) |

```python
from hlpseudopeer.cli import parse_block_source_args

config = parse_block_source_args(["--block-source", "/data/evm-blocks"]).parse()
```

`BlockSourceArgs.parse()` returns a `hlpseudopeer.config.BlockSourceConfig`
whose `source_type` is one of `S3DefaultSource`, `S3Source` or `LocalSource`,
with intervals converted to seconds. `--s3` takes precedence over `--local`,
which takes precedence over `--block-source`; giving none of them raises
`ValueError`. With `--local-ingest-dir`, the configuration also carries
`HlNodeBlockSourceArgs`, and
`await config.create_block_source_from_node(next_block_number, fallback)`
returns a started `HlNodeBlockSource` in front of `fallback` (or `fallback`
itself when no hl-node directory is configured).

## Smaller pieces

- `hlpseudopeer.paths.rmp_path(height)` gives the archive path of a block, and
  `name_with_largest_number(files, is_dir)` picks the highest-numbered entry
  of a listing.
- `hlpseudopeer.bimap.LruBiMap(limit)` maps keys to values and back, evicting
  the least recently inserted key once `limit` keys are held.
- `hlpseudopeer.scan.scan_hour_file(path, last_line, options)` reads an hourly
  file from line `last_line` on into blocks and contiguous height ranges;
  `line_to_evm_block(line)` decodes a single line.
- `hlpseudopeer.file_ops` lists the hourly files in time order
  (`all_hourly_files`, `find_latest_hourly_file`) and reads the last complete
  block of a file (`read_last_block_from_file`).
- `hlpseudopeer.blocks_cache.LocalBlocksCache` holds loaded blocks and the
  file that holds each range of heights.
- `hlpseudopeer.timeutils` converts between `.../YYYYMMDD/H` paths and UTC
  datetimes.

## What this package does not do

- It does not read blocks from S3. `S3DefaultSource` and `S3Source` only
  describe such a source in a configuration; no block source for them is
  included.
- It does not connect to peers or serve blocks over a network, and it installs
  no command: the block sources are a library for a program that does.