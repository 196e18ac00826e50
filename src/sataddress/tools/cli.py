#!/usr/bin/env python3
"""sataddress management CLI — load, dump and summarize the record store.

The store is selected by the usual ``SATADDRESS_*`` settings:

    # Load address records from a JSON fixture (list of records)
    sataddress-cli db init <fixture.json>

    # Write every stored record to a JSON file
    sataddress-cli db dump <file.json>

    # Print usage totals and the ten most active addresses
    sataddress-cli stats
"""

from __future__ import annotations

import asyncio
import json
import sys
from pathlib import Path

from pydantic import TypeAdapter

from sataddress.config.settings import AppConfig
from sataddress.models.record import AddressRecord
from sataddress.stats import generate_stats
from sataddress.store.client import RecordStore

_RECORDS = TypeAdapter(list[AddressRecord])

TOP_USERS = 10


async def _open_store(config: AppConfig) -> RecordStore:
    store = RecordStore(config.store)
    await store.connect()
    return store


async def _cmd_db_init(config: AppConfig, path: Path) -> None:
    """Insert every record of a fixture file, replacing existing keys."""
    records = _RECORDS.validate_json(path.read_bytes())
    store = await _open_store(config)
    try:
        for record in records:
            existed = await store.insert(record.name, record.domain, record)
            print(f"[{'Updated' if existed else 'Added'}] {record.key}")
    finally:
        await store.close()
    print(f"[OK] Fixture loaded successfully ({len(records)} records)")


async def _cmd_db_dump(config: AppConfig, path: Path) -> None:
    """Write all stored records to *path* as a JSON list."""
    store = await _open_store(config)
    try:
        records = [record async for record in store.iter_records()]
    finally:
        await store.close()
    path.write_bytes(_RECORDS.dump_json(records, indent=2))
    print(f"Dumped {len(records)} records to {path}")


async def _cmd_stats(config: AppConfig) -> None:
    """Print the summary table and the most active addresses."""
    store = await _open_store(config)
    try:
        report = await generate_stats(store)
    finally:
        await store.close()

    print("Summary of app operations")
    print("-" * 40)
    print(f"  {'Invoices generated':<24}{report.invoices:>14,}")
    print(f"  {'API calls':<24}{report.calls:>14,}")
    print(f"  {'API edits':<24}{report.edits:>14,}")
    print()
    print(
        f"Per user operations, ordered desc, top {TOP_USERS}. "
        f"Total users: {len(report.data)}"
    )
    print("-" * 80)
    print(f"  {'User name':<40}{'Invoices':>12}{'Calls':>12}{'Edits':>12}")
    for key, stats in report.top(TOP_USERS):
        print(
            f"  {key:<40}{stats.invoices.num:>12,}{stats.calls.num:>12,}{stats.edits.num:>12,}"
        )


def main(argv: list[str] | None = None) -> None:
    """CLI entry point."""
    args = sys.argv[1:] if argv is None else argv
    if not args:
        print(__doc__)
        sys.exit(1)

    config = AppConfig()
    cmd = args[0].lower()

    if cmd == "db":
        if len(args) < 3 or args[1] not in ("init", "dump"):
            print("Usage: sataddress-cli db init|dump <file.json>")
            sys.exit(1)
        path = Path(args[2])
        if args[1] == "init":
            if not path.exists():
                print(f"Fixture not found: {path}")
                sys.exit(1)
            asyncio.run(_cmd_db_init(config, path))
        else:
            asyncio.run(_cmd_db_dump(config, path))
    elif cmd == "stats":
        asyncio.run(_cmd_stats(config))
    else:
        print(f"Unknown command: {cmd}")
        print(__doc__)
        sys.exit(1)


if __name__ == "__main__":
    main()
