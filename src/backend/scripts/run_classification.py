from __future__ import annotations

import argparse
import json
import logging
import os
import sys
from datetime import date
from pathlib import Path

from dotenv import load_dotenv


def _ensure_backend_on_path() -> None:
    backend_dir = Path(__file__).resolve().parents[1]
    if str(backend_dir) not in sys.path:
        sys.path.insert(0, str(backend_dir))


_ensure_backend_on_path()

from common.classification_engine import (  # noqa: E402
    ClassificationEngine,
    ClassificationRunner,
    InMemoryArchiveNumberGenerator,
    ReceiptFields,
    RuleStore,
)
from common.classification_engine.config import load_config  # noqa: E402
from common.classification_engine.models import ClassificationRunReport  # noqa: E402
from common.classification_engine.registry import seed_system_rules  # noqa: E402

logger = logging.getLogger(__name__)


def _load_json(path: Path):
    with path.open(encoding="utf-8") as handle:
        return json.load(handle)


def load_receipts(path: Path) -> list[ReceiptFields]:
    """Receipts file: a JSON list of field bags, or ``{"receipts": [...]}``.

    Each entry is either ``{"receipt_id": ..., "values": {...}}`` or a flat
    mapping of field keys; a flat mapping may carry ``id``/``receipt_id``.
    """
    raw = _load_json(path)
    if isinstance(raw, dict):
        raw = raw.get("receipts", [])
    receipts = []
    for index, entry in enumerate(raw, 1):
        if "values" in entry:
            receipts.append(ReceiptFields.model_validate(entry))
            continue
        values = dict(entry)
        receipt_id = values.pop("receipt_id", None) or values.pop("id", None) or str(index)
        receipts.append(ReceiptFields(receipt_id=str(receipt_id), values=values))
    return receipts


def load_rule_store(rules_path: Path | None, config) -> RuleStore:
    if rules_path is not None and rules_path.exists():
        return RuleStore.load(rules_path, config=config)
    store = RuleStore(config=config)
    seed_system_rules(store)
    if rules_path is not None:
        store.save(rules_path)
        logger.info("seeded system rules into %s", rules_path)
    return store


def default_archive_numbers_path(rules_path: Path | None) -> Path | None:
    if rules_path is None:
        return None
    return rules_path.with_name(f"{rules_path.stem}.archive_numbers.json")


def load_archive_numbers(path: Path | None) -> list[str]:
    """Archive numbers already issued: a JSON list, or ``{"archive_numbers": [...]}``."""
    if path is None or not path.exists():
        return []
    raw = _load_json(path)
    if isinstance(raw, dict):
        raw = raw.get("archive_numbers", [])
    return [str(number) for number in raw]


def save_archive_numbers(path: Path, numbers: list[str]) -> None:
    with path.open("w", encoding="utf-8") as handle:
        json.dump({"archive_numbers": sorted(set(numbers))}, handle, indent=2)


def run_classification(
    receipts_path: Path,
    *,
    rules_path: Path | None = None,
    config_path: Path | None = None,
    max_workers: int = 1,
    existing_archive_numbers: list[str] | None = None,
    archive_numbers_path: Path | None = None,
    as_of: date | None = None,
) -> ClassificationRunReport:
    """Classify a receipts file.

    When `archive_numbers_path` is given, numbering resumes after the numbers
    recorded there and the newly issued ones are written back, so repeated
    runs never reuse a number.
    """
    config = load_config(config_path)
    store = load_rule_store(rules_path, config)
    existing = load_archive_numbers(archive_numbers_path) + list(existing_archive_numbers or ())
    engine = ClassificationEngine(
        config=config,
        archive_numbers=InMemoryArchiveNumberGenerator(existing),
    )
    runner = ClassificationRunner(store.enabled_snapshot(), engine=engine, max_workers=max_workers)
    report = runner.run(load_receipts(receipts_path), as_of=as_of)

    if archive_numbers_path is not None:
        issued = [
            res.directive.archive_number
            for res in report.results
            if res.directive is not None and res.directive.archive_number
        ]
        save_archive_numbers(archive_numbers_path, existing + issued)
        if issued:
            logger.info("recorded %d new archive numbers in %s", len(issued), archive_numbers_path)
    return report


def _write_markdown(report: ClassificationRunReport, out_path: Path) -> None:
    lines = [
        f"# Classification run {report.run_id}",
        "",
        f"Generated at: {report.generated_at.isoformat()}",
        f"Rules evaluated: {report.rule_count}",
        "",
        "## Totals",
    ]
    for key, count in report.totals.items():
        lines.append(f"- {key}: {count}")
    for rule_id, count in sorted(report.by_rule.items()):
        lines.append(f"- rule {rule_id}: {count}")
    lines.append("")
    lines.append("## Results")
    for res in report.results:
        lines.append("")
        heading = res.rule_name if res.matched else "unmatched"
        lines.append(f"### {res.receipt_id}: {heading}")
        if res.directive is not None:
            for key, value in res.directive.assignments().items():
                lines.append(f"- {key}: {value}")
            if res.directive.archive is not None:
                lines.append(f"- archive path: {res.directive.archive.path or '(default)'}")
        if res.diagnostics:
            lines.append("- Diagnostics:")
            for diag in res.diagnostics:
                lines.append(f"  - [{diag.kind.value}] {diag.rule_id or '-'}: {diag.message}")
    out_path.write_text("\n".join(lines) + "\n", encoding="utf-8")


def _env_path(name: str) -> Path | None:
    value = os.getenv(name, "").strip()
    return Path(value) if value else None


def main(argv: list[str] | None = None) -> int:
    load_dotenv()
    parser = argparse.ArgumentParser(description="Auto-classify receipts with the stored classification rules.")
    parser.add_argument("receipts", type=Path, help="JSON file with receipt field bags.")
    parser.add_argument(
        "--rules",
        type=Path,
        default=_env_path("CLASSIFY_RULES_PATH"),
        help="Rule store JSON (default: $CLASSIFY_RULES_PATH). Seeded with system rules if missing.",
    )
    parser.add_argument(
        "--config",
        type=Path,
        default=_env_path("CLASSIFY_CONFIG_PATH"),
        help="Engine config JSON (default: $CLASSIFY_CONFIG_PATH).",
    )
    parser.add_argument(
        "--archive-numbers",
        type=Path,
        default=_env_path("CLASSIFY_ARCHIVE_NUMBERS_PATH"),
        help=(
            "JSON file of archive numbers already issued; updated after the run "
            "(default: $CLASSIFY_ARCHIVE_NUMBERS_PATH, else <rules>.archive_numbers.json)."
        ),
    )
    # A string default goes through `type`, so a bad env value is a usage error.
    parser.add_argument(
        "--workers",
        type=int,
        default=os.getenv("CLASSIFY_MAX_WORKERS", "").strip() or "1",
        help="Parallel workers (default: $CLASSIFY_MAX_WORKERS or 1).",
    )
    parser.add_argument("--as-of", type=date.fromisoformat, default=None, help="Fallback date for archive periods.")
    parser.add_argument("--out", type=Path, default=None, help="Write the report here instead of stdout.")
    parser.add_argument("--format", choices=("json", "markdown"), default="json")
    parser.add_argument("--verbose", action="store_true")
    args = parser.parse_args(argv)

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.INFO,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    report = run_classification(
        args.receipts,
        rules_path=args.rules,
        config_path=args.config,
        max_workers=args.workers,
        archive_numbers_path=args.archive_numbers or default_archive_numbers_path(args.rules),
        as_of=args.as_of,
    )

    if args.format == "markdown":
        if args.out is None:
            parser.error("--format markdown requires --out")
        _write_markdown(report, args.out)
    elif args.out is not None:
        args.out.write_text(report.model_dump_json(indent=2), encoding="utf-8")
    else:
        print(report.model_dump_json(indent=2))

    logger.info(
        "classified %d receipts: %d matched, %d unmatched, %d diagnostics",
        len(report.results),
        report.totals.get("matched", 0),
        report.totals.get("unmatched", 0),
        report.diagnostic_count,
    )
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
