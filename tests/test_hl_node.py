import asyncio
import json
from contextlib import asynccontextmanager
from datetime import datetime, timezone
from pathlib import Path

import pytest

from hlpseudopeer.blocks_cache import LocalBlocksCache
from hlpseudopeer.file_ops import HOURLY_SUBDIR
from hlpseudopeer.hl_node import (
    CACHE_SIZE,
    HlNodeBlockSource,
    HlNodeBlockSourceArgs,
    backfill_local_blocks,
)
from hlpseudopeer.local import LocalBlockSource
from hlpseudopeer.scan import ScanResult
from hlpseudopeer.source import BlockNotFoundError, BlockSource
from hlpseudopeer.timeutils import date_from_datetime

FALLBACK_THRESHOLD_FOR_TEST = 0.5
ZERO_HASH = "0x" + "00" * 32


def empty_block(number, timestamp, extra_data):
    header = {
        "parent_hash": ZERO_HASH,
        "ommers_hash": ZERO_HASH,
        "beneficiary": "0x" + "00" * 20,
        "state_root": ZERO_HASH,
        "transactions_root": ZERO_HASH,
        "receipts_root": ZERO_HASH,
        "logs_bloom": "0x" + "00" * 256,
        "difficulty": "0x0",
        "number": number,
        "gas_limit": 0,
        "gas_used": 0,
        "timestamp": timestamp,
        "extra_data": "0x" + extra_data.hex(),
        "mix_hash": ZERO_HASH,
        "nonce": "0x0000000000000000",
        "base_fee_per_gas": None,
        "withdrawals_root": None,
        "blob_gas_used": None,
        "excess_blob_gas": None,
        "parent_beacon_block_root": None,
        "requests_hash": None,
    }
    block = {
        "block": {
            "Reth115": {
                "header": {"header": header, "hash": ZERO_HASH},
                "body": {"transactions": [], "ommers": [], "withdrawals": None},
            }
        },
        "receipts": [],
        "system_txs": [],
        "read_precompile_calls": [],
        "highest_precompile_address": None,
    }
    return str(timestamp), block


def line_of(entry):
    return json.dumps(list(entry)) + "\n"


def scan_result_from_single_block(block):
    height = block["block"]["Reth115"]["header"]["header"]["number"]
    return ScanResult(
        path=Path("/nonexistent-block"),
        next_expected_height=height + 1,
        new_blocks=[block],
        new_block_ranges=[(height, height)],
    )


class _StaticSource(BlockSource):
    def __init__(self, blocks=None, latest=None, chunk=1000):
        self.blocks = dict(blocks or {})
        self.latest = latest
        self.chunk = chunk

    async def collect_block(self, height):
        if height not in self.blocks:
            raise BlockNotFoundError(height)
        return self.blocks[height]

    async def find_latest_block_number(self):
        return self.latest

    def recommended_chunk_size(self):
        return self.chunk


def _current_hour_file(root: Path) -> Path:
    now = datetime.now(timezone.utc)
    path = root / HOURLY_SUBDIR / date_from_datetime(now) / str(now.hour)
    path.parent.mkdir(parents=True, exist_ok=True)
    return path


@asynccontextmanager
async def block_source_hierarchy(tmp_path):
    fallback_source = HlNodeBlockSource(
        LocalBlockSource("/nonexistent"),
        HlNodeBlockSourceArgs(Path("/nonexistent"), FALLBACK_THRESHOLD_FOR_TEST),
    )
    await fallback_source.start(1000000)
    block_hl_node_0 = empty_block(1000000, 1722633600, b"hl-node")
    block_hl_node_1 = empty_block(1000001, 1722633600, b"hl-node")
    block_fallback_1 = empty_block(1000001, 1722633600, b"fallback")

    hour_file = _current_hour_file(tmp_path)
    hour_file.write_text(line_of(block_hl_node_0))

    block_source = HlNodeBlockSource(
        fallback_source,
        HlNodeBlockSourceArgs(tmp_path, FALLBACK_THRESHOLD_FOR_TEST),
    )
    await block_source.start(1000000)
    fallback_source.local_blocks_cache.load_scan_result(
        scan_result_from_single_block(block_fallback_1[1])
    )
    try:
        yield {
            "block_source": block_source,
            "file": hour_file,
            "current_block": block_hl_node_0,
            "future_block_hl_node": block_hl_node_1,
            "future_block_fallback": block_fallback_1,
        }
    finally:
        await block_source.close()
        await fallback_source.close()


def _append(path: Path, entry) -> None:
    with path.open("a", encoding="utf-8") as handle:
        handle.write(line_of(entry))


@pytest.mark.asyncio
async def test_update_last_fetch_no_fallback(tmp_path):
    async with block_source_hierarchy(tmp_path) as h:
        source = h["block_source"]
        assert await source.collect_block(1000000) == h["current_block"][1]

        with pytest.raises(BlockNotFoundError):
            await source.collect_block(1000001)

        _append(h["file"], h["future_block_hl_node"])
        await asyncio.sleep(0.1)

        assert await source.collect_block(1000001) == h["future_block_hl_node"][1]


@pytest.mark.asyncio
async def test_update_last_fetch_fallback(tmp_path):
    async with block_source_hierarchy(tmp_path) as h:
        source = h["block_source"]
        assert await source.collect_block(1000000) == h["current_block"][1]

        await asyncio.sleep(FALLBACK_THRESHOLD_FOR_TEST)

        _append(h["file"], h["future_block_fallback"])
        assert await source.collect_block(1000001) == h["future_block_fallback"][1]


def test_backfill_records_paths_from_cutoff(tmp_path):
    late = tmp_path / HOURLY_SUBDIR / "20250729" / "22"
    early = tmp_path / HOURLY_SUBDIR / "20250729" / "21"
    late.parent.mkdir(parents=True)
    early.write_text(line_of(empty_block(100, 1, b"")) + line_of(empty_block(101, 1, b"")))
    late.write_text(
        line_of(empty_block(9735057, 2, b"")) + line_of(empty_block(9735058, 2, b""))
    )

    cache = LocalBlocksCache(CACHE_SIZE)
    backfill_local_blocks(tmp_path, cache, 1000000)

    assert cache.get_path_for_height(9735058) == tmp_path / HOURLY_SUBDIR / "20250729" / "22"
    assert cache.get_path_for_height(100) is None
    assert cache.get_block(9735058) is None


@pytest.mark.asyncio
async def test_find_latest_block_number_reads_last_line(tmp_path):
    hour_file = tmp_path / HOURLY_SUBDIR / "20250101" / "3"
    hour_file.parent.mkdir(parents=True)
    hour_file.write_text("".join(line_of(empty_block(n, 1, b"")) for n in (5, 6, 7)))
    source = HlNodeBlockSource(
        _StaticSource(latest=1), HlNodeBlockSourceArgs(tmp_path, FALLBACK_THRESHOLD_FOR_TEST)
    )
    assert await source.find_latest_block_number() == 7


@pytest.mark.asyncio
async def test_find_latest_block_number_falls_back_without_files(tmp_path):
    source = HlNodeBlockSource(
        _StaticSource(latest=42), HlNodeBlockSourceArgs(tmp_path, FALLBACK_THRESHOLD_FOR_TEST)
    )
    assert await source.find_latest_block_number() == 42


@pytest.mark.asyncio
async def test_collect_uses_fallback_when_nothing_local(tmp_path):
    block = empty_block(55, 1, b"fallback")[1]
    source = HlNodeBlockSource(
        _StaticSource({55: block}),
        HlNodeBlockSourceArgs(tmp_path, FALLBACK_THRESHOLD_FOR_TEST),
    )
    async with source:
        await source.start(1)
        assert await source.collect_block(55) == block


@pytest.mark.asyncio
async def test_start_twice_is_rejected(tmp_path):
    source = HlNodeBlockSource(
        _StaticSource(), HlNodeBlockSourceArgs(tmp_path, FALLBACK_THRESHOLD_FOR_TEST)
    )
    async with source:
        await source.start(1)
        with pytest.raises(RuntimeError):
            await source.start(1)


def test_chunk_size_comes_from_fallback(tmp_path):
    source = HlNodeBlockSource(
        _StaticSource(chunk=1000), HlNodeBlockSourceArgs(tmp_path, FALLBACK_THRESHOLD_FOR_TEST)
    )
    assert source.recommended_chunk_size() == 1000
    assert source.args.root == tmp_path