from __future__ import annotations

import argparse
import importlib
import sys
from pathlib import Path

REPO_ROOT = Path(__file__).resolve().parents[1]
if str(REPO_ROOT) not in sys.path:
    sys.path.insert(0, str(REPO_ROOT))

from config import get_settings_module

from src.pass_registry.pass_registry.common.log import setup_logging
from src.pass_registry.pass_registry.database.bootstrap import apply_schema, ensure_admin_user, list_tables


def main() -> None:
    parser = argparse.ArgumentParser(description="Create the pass registry tables (passes, users).")
    parser.add_argument("--settings", default=get_settings_module(), help="settings module, e.g. config.production")
    parser.add_argument("--schema", default=str(REPO_ROOT / "database" / "schema.sql"))
    parser.add_argument("--with-admin", action="store_true", help="also create the bootstrap admin account")
    args = parser.parse_args()

    settings = importlib.import_module(args.settings)
    setup_logging(getattr(settings, "LOG_LEVEL", "INFO"))
    db_config = dict(settings.DB_CONFIG)

    apply_schema(db_config, schema_path=args.schema)
    if args.with_admin:
        ensure_admin_user(
            db_config,
            username=getattr(settings, "ADMIN_USERNAME", "admin"),
            password=getattr(settings, "ADMIN_PASSWORD", "admin123"),
        )

    missing = {"passes", "users"} - set(list_tables(db_config))
    if missing:
        sys.exit(f"Schema incomplete, missing tables: {', '.join(sorted(missing))}")
    print(f"Pass registry schema ready in {db_config.get('database')}")


if __name__ == "__main__":
    main()
