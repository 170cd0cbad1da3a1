from __future__ import annotations

import argparse

from market_ops.main import create_app


def main() -> None:
    parser = argparse.ArgumentParser(description="Delete old dashboard change events.")
    parser.add_argument("--days", type=int, default=1)
    args = parser.parse_args()

    app = create_app()
    deleted = app.extensions["market_ops"].realtime_service.prune(days=args.days)
    print(f"OK: deleted {deleted} change event(s)")


if __name__ == "__main__":
    main()
