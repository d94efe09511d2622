"""CLI for Android UI hierarchy capture: python -m batdroid"""

from __future__ import annotations

import argparse
import json
import logging
import sys
import time

from batdroid._base import CommandError
from batdroid.adb import AdbRunner
from batdroid.devices import DeviceError, list_devices, resolve_device
from batdroid.format import (
    DEFAULT_COMPACT_DEPTH,
    DEFAULT_FLAT_DEPTH,
    count_nodes,
    flatten_hierarchy,
    serialize_compact,
    serialize_json,
)
from batdroid.hierarchy import DUMP_TIMEOUT, DumpError, get_ui_hierarchy


def main() -> None:
    parser = argparse.ArgumentParser(
        description="batdroid: dump an Android device's UI hierarchy via adb"
    )
    parser.add_argument("--device", type=str, default=None, help="Device serial (adb -s)")
    parser.add_argument(
        "--depth",
        type=int,
        default=None,
        help=f"Max tree depth (default: {DEFAULT_COMPACT_DEPTH} compact, {DEFAULT_FLAT_DEPTH} flat)",
    )
    parser.add_argument("--json", action="store_true", help="Print JSON instead of compact text")
    parser.add_argument("--flat", action="store_true", help="With --json, print a flat list")
    parser.add_argument("--json-out", type=str, default=None, help="Write nested JSON to file")
    parser.add_argument("--compact-out", type=str, default=None, help="Write compact text to file")
    parser.add_argument(
        "--timeout", type=float, default=DUMP_TIMEOUT, help="Dump timeout in seconds"
    )
    parser.add_argument("--devices", action="store_true", help="List devices and exit")
    parser.add_argument(
        "--verbose",
        action="store_true",
        help="Print diagnostics (timing, node counts, sizes)",
    )
    args = parser.parse_args()
    verbose = args.verbose

    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(levelname)s %(name)s: %(message)s",
    )

    base = AdbRunner()
    try:
        if args.devices:
            for device in list_devices(base):
                print(f"{device.id:24s} {device.status:12s} {device.type:9s} {device.model}")
            return

        runner = base.for_device(resolve_device(base, args.device))
        if verbose:
            print(f"=== batdroid UI dump ({runner.device_id}) ===")

        t0 = time.perf_counter()
        tree = get_ui_hierarchy(runner, timeout=args.timeout)
        t_dump = (time.perf_counter() - t0) * 1000
    except (CommandError, DumpError, DeviceError) as exc:
        print(f"error: {exc}", file=sys.stderr)
        sys.exit(1)

    if verbose:
        print(f"Captured {count_nodes(tree)} nodes ({len(tree)} roots) in {t_dump:.1f} ms")

    # -- Output to stdout --
    if args.json:
        if args.flat:
            depth = DEFAULT_FLAT_DEPTH if args.depth is None else args.depth
            print(serialize_json(flatten_hierarchy(tree, max_depth=depth)))
        else:
            print(serialize_json(tree))
    else:
        depth = DEFAULT_COMPACT_DEPTH if args.depth is None else args.depth
        print(serialize_compact(tree, max_depth=depth))

    # -- File output options --
    if args.json_out:
        with open(args.json_out, "w", encoding="utf-8") as f:
            json.dump([e.to_dict() for e in tree], f, indent=2, ensure_ascii=False)
        if verbose:
            json_kb = len(serialize_json(tree)) / 1024
            print(f"JSON written to {args.json_out} ({json_kb:.1f} KB)")

    if args.compact_out:
        depth = DEFAULT_COMPACT_DEPTH if args.depth is None else args.depth
        compact_str = serialize_compact(tree, max_depth=depth)
        with open(args.compact_out, "w", encoding="utf-8") as f:
            f.write(compact_str + "\n")
        if verbose:
            json_kb = len(serialize_json(tree)) / 1024
            compact_kb = len(compact_str) / 1024
            ratio = (1 - compact_kb / json_kb) * 100 if json_kb > 0 else 0
            print(
                f"Compact written to {args.compact_out} ({compact_kb:.1f} KB, {ratio:.0f}% smaller)"
            )


if __name__ == "__main__":
    main()
