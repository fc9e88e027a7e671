#!/usr/bin/env python3
"""
Local notification runner.

Fires one blob notification through the relay handler against the
downstream URL configured in .env (or the environment), without
deploying anything.

Usage:
    python run_local.py --trigger my-container/path/to/file.txt
    python run_local.py --uri http://127.0.0.1:10000/devstoreaccount1/my-container/file.txt
    python run_local.py --trigger my-container/a.json --file ./a.json
"""

import argparse
import json
import sys
from pathlib import Path

project_root = Path(__file__).parent
sys.path.insert(0, str(project_root / "src"))

from delivery.errors import RelayError  # noqa: E402
from handlers.blob_watcher import handler  # noqa: E402


def main():
    parser = argparse.ArgumentParser(
        description="Relay a single blob notification to the downstream endpoint"
    )
    source = parser.add_mutually_exclusive_group(required=True)
    source.add_argument(
        "--trigger",
        type=str,
        help="Blob trigger descriptor, <container>/<path>"
    )
    source.add_argument(
        "--uri",
        type=str,
        help="Blob URI, scheme://host/<account>/<container>/<path>"
    )
    parser.add_argument(
        "--file",
        type=Path,
        default=None,
        help="Local file used as the blob content (size only)"
    )

    args = parser.parse_args()

    env_file = project_root / ".env"
    if not env_file.exists():
        print("WARNING: .env file not found, using environment variables only.")

    metadata = {"blobTrigger": args.trigger} if args.trigger else {"uri": args.uri}
    blob = args.file.read_bytes() if args.file else None

    try:
        result = handler({"blob": blob, "triggerMetadata": metadata}, None)
    except RelayError as e:
        print(f"ERROR: {type(e).__name__}: {e}")
        sys.exit(1)

    print(json.dumps(result))


if __name__ == "__main__":
    main()
