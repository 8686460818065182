from __future__ import annotations

import argparse
import importlib
import sys
from pathlib import Path

REPO_ROOT = Path(__file__).resolve().parents[1]
if str(REPO_ROOT) not in sys.path:
    sys.path.insert(0, str(REPO_ROOT))

from config import get_settings_module

from src.pass_registry.pass_registry.database.bootstrap import ensure_admin_user


def main() -> None:
    settings = importlib.import_module(get_settings_module())
    db_config = dict(settings.DB_CONFIG)

    parser = argparse.ArgumentParser(description="Create the bootstrap admin account.")
    parser.add_argument("--username", default=getattr(settings, "ADMIN_USERNAME", "admin"))
    parser.add_argument("--password", default=getattr(settings, "ADMIN_PASSWORD", "admin123"))
    parser.add_argument("--name", default="Administrator")
    args = parser.parse_args()

    created = ensure_admin_user(db_config, username=args.username, password=args.password, name=args.name)
    print(f"OK: admin '{args.username}' {'created' if created else 'already exists'} in {db_config.get('database')}")


if __name__ == "__main__":
    main()
