#!/usr/bin/env python3
"""
Create the users / generated_docs tables in the Postgres DB configured in .env.

Usage:
    python tools/init_schema.py            # apply the schema
    python tools/init_schema.py --print    # only print the SQL
"""

import sys

from project_paths import load_env
from preamble.config import Settings
from preamble.errors import PreambleError
from preamble.services.db import SCHEMA_SQL, DocumentStore


def main(argv=None):
    argv = sys.argv[1:] if argv is None else argv
    if "--print" in argv:
        print(SCHEMA_SQL)
        return 0

    load_env()
    settings = Settings()
    if not settings.DATABASE_URL:
        print("[ERROR] DATABASE_URL is not set")
        return 1

    store = DocumentStore(settings.DATABASE_URL, settings.DATABASE_PASSWORD, maxconn=1)
    try:
        store.ensure_schema()
    except PreambleError as e:
        print(f"[ERROR] Schema creation failed: {e}")
        return 1
    finally:
        store.close()

    print("[OK] Schema is in place.")
    return 0


if __name__ == "__main__":
    sys.exit(main())
