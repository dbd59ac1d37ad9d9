"""CLI entrypoint for place_standardizer."""

from __future__ import annotations

import argparse
import json
import time
from pathlib import Path

from place_standardizer.logging_config import setup_logging
from place_standardizer.models import Mode


def main() -> None:
    setup_logging()

    parser = argparse.ArgumentParser(prog="place-standardizer")
    sub = parser.add_subparsers(dest="command", required=True)

    sub.add_parser("serve")

    std_parser = sub.add_parser("standardize")
    std_parser.add_argument("text")
    std_parser.add_argument("--default-country", default=None)
    std_parser.add_argument("--mode", choices=[m.value for m in Mode], default=Mode.BEST.value)
    std_parser.add_argument("--num-results", type=int, default=1)

    build_parser = sub.add_parser("build")
    build_parser.add_argument("--dataset", type=Path, default=None)
    build_parser.add_argument("--out", type=Path, default=None)

    eval_parser = sub.add_parser("evaluate")
    eval_parser.add_argument("cases", type=Path, help="JSON object mapping input text to expected full name")
    eval_parser.add_argument("--default-country", default=None)
    eval_parser.add_argument("--show-diffs", action="store_true")

    args = parser.parse_args()

    if args.command == "serve":
        _serve()
    elif args.command == "standardize":
        _standardize_once(args.text, args.default_country, Mode(args.mode), args.num_results)
    elif args.command == "build":
        _build(args.dataset, args.out)
    elif args.command == "evaluate":
        _evaluate(args.cases, args.default_country, args.show_diffs)


def _serve() -> None:
    import uvicorn

    from place_standardizer.config import get_settings

    settings = get_settings()
    uvicorn.run(
        "place_standardizer.api:app",
        host=settings.api.host,
        port=settings.api.port,
        reload=(settings.env == "development"),
        log_level=settings.log_level.lower(),
    )


def _standardize_once(text: str, default_country: str | None, mode: Mode, num_results: int) -> None:
    from place_standardizer.diagnostics import LoggingErrorHandler
    from place_standardizer.engine import Standardizer

    engine = Standardizer.from_settings(error_handler=LoggingErrorHandler())
    try:
        results = engine.resolve(text, default_country=default_country, mode=mode, num_results=num_results)
        out = [
            {
                "id": r.place.id,
                "full_name": engine.full_name(r.place),
                "score": round(r.score, 4),
            }
            for r in results
        ]
        print(json.dumps(out, ensure_ascii=False, indent=2))
    finally:
        engine.close()


def _build(dataset: Path | None, out: Path | None) -> None:
    from place_standardizer.config import get_settings, load_rules
    from place_standardizer.store.local import build_local_store

    settings = get_settings()
    stats = build_local_store(
        dataset or Path(settings.store.dataset_dir),
        out or Path(settings.store.local_db_path),
        load_rules(settings.rules_path),
    )
    print(f"Gazetteer built: {stats}")


def _evaluate(cases_path: Path, default_country: str | None, show_diffs: bool) -> None:
    from place_standardizer.diagnostics import DiagnosticCounter
    from place_standardizer.engine import Standardizer

    cases: dict[str, str] = json.loads(cases_path.read_text(encoding="utf-8"))
    counter = DiagnosticCounter()
    engine = Standardizer.from_settings(error_handler=counter)

    identical = 0
    diffs: list[tuple[str, str, str]] = []
    start = time.perf_counter()
    try:
        for text, expected in cases.items():
            place = engine.resolve_place(text, default_country)
            actual = engine.full_name(place) if place is not None else ""
            if actual == expected:
                identical += 1
            else:
                diffs.append((text, expected, actual))
    finally:
        engine.close()
    elapsed = time.perf_counter() - start

    print(f"Identical: {identical}")
    print(f"Diff:      {len(diffs)}")
    print(f"Elapsed:   {elapsed:.2f}s")
    for kind, count in sorted(counter.snapshot().items()):
        print(f"  {kind}: {count}")
    if show_diffs:
        for text, expected, actual in diffs:
            print(f"\n{text}\n  expected: {expected}\n  actual:   {actual}")


if __name__ == "__main__":
    main()
