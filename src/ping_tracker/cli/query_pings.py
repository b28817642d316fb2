import argparse
import json
import sys
from pathlib import Path

from ..query.range_query import query_pings
from ..storage.ping_store import SqlitePingStore
from ..utils.time_utils import InvalidTimeToken, resolve_date, resolve_window


def main(argv=None):
    parser = argparse.ArgumentParser(
        description="Query pings from a SQLite ping store without running the server."
    )
    parser.add_argument("device_id", help="Device id, or 'all' for every device")
    parser.add_argument("start", help="YYYY-MM-DD date, or epoch seconds when END is given")
    parser.add_argument("end", nargs="?", help="Optional end bound (date or epoch seconds)")
    parser.add_argument("--store-file", type=Path, default=Path("data/pings.sqlite3"))
    args = parser.parse_args(argv)

    if not args.store_file.exists():
        raise FileNotFoundError(f"Ping store file not found: {args.store_file}")

    try:
        if args.end is None:
            window = resolve_date(args.start)
        else:
            window = resolve_window(args.start, args.end)
    except InvalidTimeToken as e:
        print(str(e), file=sys.stderr)
        return 2

    store = SqlitePingStore(args.store_file)
    try:
        result = query_pings(store, args.device_id, window)
    finally:
        store.close()

    print(json.dumps(result.payload(), indent=2))
    return 1 if result.bad_request else 0


if __name__ == "__main__":
    sys.exit(main())
