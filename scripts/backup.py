"""Back up the database with `mysqldump`, and optionally the uploads folder.

Needs the MySQL client tools on PATH.
"""

from __future__ import annotations

import argparse
import importlib
import shutil
import subprocess
from datetime import datetime
from pathlib import Path

from dotenv import load_dotenv

from market_ops.config import get_settings_module


def main() -> None:
    parser = argparse.ArgumentParser(description=__doc__)
    parser.add_argument("--with-uploads", action="store_true", help="Also archive UPLOAD_FOLDER as a .zip")
    args = parser.parse_args()

    load_dotenv(override=False)
    settings = importlib.import_module(get_settings_module())
    db = settings.DB_CONFIG

    out_dir = Path(__file__).resolve().parents[1] / "backups"
    out_dir.mkdir(parents=True, exist_ok=True)

    ts = datetime.now().strftime("%Y%m%d_%H%M%S")
    out_file = out_dir / f"{db['database']}_{ts}.sql"

    cmd = [
        "mysqldump",
        f"-h{db['host']}",
        f"-P{db.get('port', 3306)}",
        f"-u{db['user']}",
        f"-p{db['password']}",
        "--routines",
        "--triggers",
        db["database"],
    ]

    try:
        with out_file.open("wb") as f:
            subprocess.run(cmd, stdout=f, stderr=subprocess.PIPE, check=True)
        print(f"OK: Backup created: {out_file}")
    except FileNotFoundError:
        raise SystemExit("`mysqldump` not found. Install the MySQL client tools first.")

    if args.with_uploads:
        uploads = Path(getattr(settings, "UPLOAD_FOLDER", "uploads"))
        if uploads.is_dir():
            archive = shutil.make_archive(str(out_dir / f"uploads_{ts}"), "zip", root_dir=uploads)
            print(f"OK: Uploads archived: {archive}")


if __name__ == "__main__":
    main()
