import argparse
import json
import logging
import sys
from pathlib import Path
from typing import List

if __package__ in {None, ""}:
    sys.path.insert(0, str(Path(__file__).resolve().parents[1]))
    __package__ = "doctors"

from . import storage
from .filters import filter_doctors
from .language import normalize_language
from .models import FilterSelection, NormalizationStrategy
from .normalizer import count_distinct_ids, normalize_records
from .presentation import doctor_card
from .vocabulary import build_vocabulary, default_city

DEFAULT_INPUT = Path("data/doctors.json")


def _load(args: argparse.Namespace):
    if args.url:
        records = storage.fetch_records(args.url, timeout=args.timeout)
    else:
        records = storage.load_records(args.input)
    return records, normalize_records(records, args.strategy)


def _write_json(data, output: Path | None) -> None:
    text = json.dumps(data, ensure_ascii=False, indent=2)
    if output is None:
        sys.stdout.buffer.write(text.encode("utf-8") + b"\n")
    else:
        output.write_text(text, encoding="utf-8")


def stats(args: argparse.Namespace) -> None:
    """Show row, id and entity counts."""

    records, doctors = _load(args)
    languages: dict[str, int] = {}
    for doctor in doctors:
        for lang in doctor.languages():
            languages[lang] = languages.get(lang, 0) + 1

    print(f"Rows: {len(records)}")
    print(f"Distinct ids: {count_distinct_ids(records)}")
    print(f"Doctors ({args.strategy.value}): {len(doctors)}")
    for lang, n in sorted(languages.items()):
        print(f"  {lang}: {n}")


def vocab(args: argparse.Namespace) -> None:
    """Print the filter options for one language as JSON."""

    _, doctors = _load(args)
    lang = normalize_language(args.lang)
    vocabulary = build_vocabulary(doctors, lang, use_fallback=not args.exact)
    data = vocabulary.to_dict()
    data["default_city"] = default_city(vocabulary, lang)
    _write_json(data, args.output)


def filter_cmd(args: argparse.Namespace) -> None:
    """Filter the list and print the matching cards."""

    _, doctors = _load(args)
    lang = normalize_language(args.lang)
    selection = FilterSelection(
        query=args.query or "",
        specialty=args.specialty or "",
        city=args.city or "",
        district=args.district or "",
        area=args.area or "",
    )
    result = filter_doctors(doctors, selection)
    logging.info("%s von %s Ärzten passen", len(result), len(doctors))
    _write_json([doctor_card(d, lang) for d in result], args.output)


def export(args: argparse.Namespace) -> None:
    """Export the normalized doctors as JSON."""

    _, doctors = _load(args)
    rows = [d.to_dict() for d in doctors]
    if args.output is None:
        _write_json(rows, None)
    else:
        storage.save_records(rows, args.output)


def main(argv: List[str] | None = None) -> None:
    parser = argparse.ArgumentParser(description="Doctor directory utility")
    parser.add_argument("-v", "--verbose", action="count", default=0, help="increase verbosity")
    parser.add_argument("--log-file", type=Path, default=None, help="write logs to this file")

    common = argparse.ArgumentParser(add_help=False)
    common.add_argument("--input", type=Path, default=DEFAULT_INPUT, help="JSON file with raw rows")
    common.add_argument("--url", default=None, help="load rows from this URL instead of --input")
    common.add_argument("--timeout", type=float, default=storage.DEFAULT_TIMEOUT)
    common.add_argument(
        "--strategy",
        type=NormalizationStrategy.parse,
        default=NormalizationStrategy.GROUPED,
        help="grouped (one entry per doc_id) or per_row",
    )
    common.add_argument("--output", type=Path, default=None, help="output file (defaults to stdout)")

    sub = parser.add_subparsers(dest="command", required=True)

    p = sub.add_parser("stats", parents=[common], help="show statistics")
    p.set_defaults(func=stats)

    p = sub.add_parser("vocab", parents=[common], help="show filter options")
    p.add_argument("--lang", default="en")
    p.add_argument("--exact", action="store_true", help="no fallback to other languages")
    p.set_defaults(func=vocab)

    p = sub.add_parser("filter", parents=[common], help="filter doctors")
    p.add_argument("--lang", default="en")
    p.add_argument("-q", "--query", default="")
    p.add_argument("--specialty", default="")
    p.add_argument("--city", default="")
    p.add_argument("--district", default="")
    p.add_argument("--area", default="")
    p.set_defaults(func=filter_cmd)

    p = sub.add_parser("export", parents=[common], help="export normalized doctors")
    p.set_defaults(func=export)

    args = parser.parse_args(argv)

    level = logging.WARNING
    if args.verbose == 1:
        level = logging.INFO
    elif args.verbose >= 2:
        level = logging.DEBUG

    handlers: list[logging.Handler] = [logging.StreamHandler()]
    if args.log_file:
        handlers.append(logging.FileHandler(args.log_file, encoding="utf-8"))

    logging.basicConfig(level=level, format="%(levelname)s: %(message)s", handlers=handlers)

    try:
        args.func(args)
    except storage.DataLoadError as exc:
        logging.error("%s", exc)
        raise SystemExit(f"error loading data: {exc}")


if __name__ == "__main__":
    main()
