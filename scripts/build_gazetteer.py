from __future__ import annotations

import argparse
from pathlib import Path

from place_standardizer.config import ConfigError, get_settings, load_rules
from place_standardizer.store.local import build_local_store


def main() -> None:
    settings = get_settings()
    parser = argparse.ArgumentParser(description="Build the local read-only gazetteer file.")
    parser.add_argument("--dataset", default=settings.store.dataset_dir)
    parser.add_argument("--out", default=settings.store.local_db_path)
    parser.add_argument("--rules", default=settings.rules_path)
    args = parser.parse_args()

    try:
        stats = build_local_store(Path(args.dataset), Path(args.out), load_rules(args.rules))
    except ConfigError as e:
        raise SystemExit(str(e))
    print(f"Built gazetteer {args.out}: {stats['places']} places, {stats['words']} words")


if __name__ == "__main__":
    main()
