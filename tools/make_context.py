#!/usr/bin/env python3
"""
Print the context Preamble would send to the model for a repo URL or ZIP.

Usage:
    python tools/make_context.py https://github.com/owner/repo
    python tools/make_context.py project.zip --budget
"""

import argparse
import logging
import os
import sys
from pathlib import Path

from project_paths import load_env
from preamble.context import budget_context, materialize_archive, materialize_github
from preamble.errors import PreambleError
from preamble.services.github import GitHubClient


def build_context(source: str) -> str:
    if Path(source).is_file():
        return materialize_archive(Path(source).read_bytes())
    client = GitHubClient(os.getenv("GITHUB_TOKEN") or None)
    return materialize_github(source, client)


def main(argv=None):
    ap = argparse.ArgumentParser(description=__doc__, formatter_class=argparse.RawDescriptionHelpFormatter)
    ap.add_argument("source", help="GitHub URL or path to a .zip file")
    ap.add_argument("--budget", action="store_true", help="apply the 25k character budget")
    ap.add_argument("-o", "--output", help="write to file instead of stdout")
    args = ap.parse_args(argv)

    load_env()
    logging.basicConfig(level=logging.INFO, format="%(levelname)s %(name)s: %(message)s", stream=sys.stderr)

    try:
        context = build_context(args.source)
        if args.budget:
            context = budget_context(context)
    except PreambleError as e:
        print(f"[ERROR] {e}", file=sys.stderr)
        return 1

    if args.output:
        Path(args.output).write_text(context, encoding="utf-8")
        print(f"Wrote {len(context)} chars to {args.output}", file=sys.stderr)
    else:
        sys.stdout.write(context)
    return 0


if __name__ == "__main__":
    sys.exit(main())
