#!/usr/bin/env python3
"""One-off server registration without a running game server.

Useful when provisioning a new box: creates the tables if asked and writes the
server_info row with the same settings the plugin would use.

Run:
  cd services/bancheck
  python -m scripts.register_server --config path/to/BanCheckPlugin.json

Optional env vars:
  SERVER_KEY (or whatever Registration.ServerKeyEnvVar names)
  DB_HOST, DB_PORT, DB_USER, DB_PASSWORD, DB_NAME
"""

import argparse
import asyncio
import logging
import os
import sys
from pathlib import Path


# Ensure imports work when executed as a script/module
sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from bancheck.services.registration import ServerRegistrar  # noqa: E402
from bancheck.settings import load_or_create_config, resolve_connection_string  # noqa: E402
from bancheck.stores.ban_repository import BanRepository  # noqa: E402
from bancheck.stores.postgres import Database  # noqa: E402


def _parse_args(argv: list[str] | None = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Register this game server in server_info")
    parser.add_argument("--config", type=Path, required=True, help="Path to BanCheckPlugin.json")
    parser.add_argument("--create-tables", action="store_true", help="CREATE TABLE IF NOT EXISTS first")
    return parser.parse_args(argv)


async def main(argv: list[str] | None = None) -> int:
    args = _parse_args(argv)
    config = load_or_create_config(args.config)

    db = Database(resolve_connection_string(config))
    db.init()
    try:
        repository = BanRepository(db)
        if args.create_tables or config.registration.auto_create_tables:
            await repository.ensure_tables()
            print("Tables ensured")

        registrar = ServerRegistrar(repository, config)
        ok = await registrar.register()
        print(f"Registration {'ok' if ok else 'skipped or failed'} (key={registrar.resolve_server_key() or '-'})")
        return 0 if ok else 1
    finally:
        await db.close()


if __name__ == "__main__":
    logging.basicConfig(level=logging.INFO)
    raise SystemExit(asyncio.run(main()))
