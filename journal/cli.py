"""CLI entry point for maintenance of the trip store.

Usage:
    python -m journal.cli migrate [--dry-run]
    python -m journal.cli validate [--id TRIP_ID]
    python -m journal.cli list
    python -m journal.cli backups [--trip-id TRIP_ID] [--verify]
"""

from __future__ import annotations

import argparse
import json
import logging
import sys
from pathlib import Path

from journal.persistence.config import StoreConfig
from journal.persistence.document_store import TripDocumentStore
from journal.persistence.errors import PersistenceError
from journal.persistence.migrations import CURRENT_SCHEMA_VERSION, migrate, needs_migration
from journal.services.boundary_validator import validate

logger = logging.getLogger(__name__)


def _migrate(store: TripDocumentStore, args: argparse.Namespace) -> int:
    upgraded = failed = 0
    for trip_id in store.trip_ids():
        try:
            raw = store.load_raw(trip_id)
            if not needs_migration(raw):
                continue
            document = migrate(raw)
            if args.dry_run:
                logger.info(
                    "Would migrate trip %s from v%s to v%d",
                    trip_id, raw.get("schemaVersion"), CURRENT_SCHEMA_VERSION,
                )
            else:
                store.save(document)
                logger.info("Migrated trip %s to v%d", trip_id, CURRENT_SCHEMA_VERSION)
            upgraded += 1
        except PersistenceError as exc:
            logger.error("Cannot migrate trip %s: %s", trip_id, exc)
            failed += 1
    logger.info("%d trip(s) migrated, %d failed", upgraded, failed)
    return 1 if failed else 0


def _validate(store: TripDocumentStore, args: argparse.Namespace) -> int:
    trip_ids = [args.id] if args.id else store.trip_ids()
    invalid = 0
    for trip_id in trip_ids:
        try:
            result = validate(store.load(trip_id))
        except PersistenceError as exc:
            logger.error("Cannot load trip %s: %s", trip_id, exc)
            invalid += 1
            continue
        if result.is_valid:
            logger.info("Trip %s is valid", trip_id)
            continue
        invalid += 1
        for issue in result.errors:
            logger.warning("Trip %s: [%s] %s", trip_id, issue.type.value, issue.message)
    return 1 if invalid else 0


def _list(store: TripDocumentStore, args: argparse.Namespace) -> int:
    summaries = [s.to_document() for s in store.list_trips()]
    print(json.dumps(summaries, indent=2, ensure_ascii=False))
    return 0


def _backups(store: TripDocumentStore, args: argparse.Namespace) -> int:
    catalog = store.backups
    rows = []
    for record in catalog.list_backups(args.trip_id):
        row = record.to_document()
        if args.verify:
            row["integrityOk"] = catalog.verify_integrity(record.id)
        rows.append(row)
    print(json.dumps(rows, indent=2, ensure_ascii=False))
    if args.verify and not all(row["integrityOk"] for row in rows):
        return 1
    return 0


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="Travel journal trip store maintenance")
    parser.add_argument("--data-dir", type=Path, help="Trip directory (default: $TRAVEL_JOURNAL_DATA_DIR)")
    parser.add_argument("--backup-dir", type=Path, help="Backup directory (default: <data-dir>/backups)")
    parser.add_argument("-v", "--verbose", action="store_true")
    commands = parser.add_subparsers(dest="command", required=True)

    migrate_cmd = commands.add_parser("migrate", help="Upgrade every stored trip to the current schema")
    migrate_cmd.add_argument("--dry-run", action="store_true", help="Report without writing")
    migrate_cmd.set_defaults(handler=_migrate)

    validate_cmd = commands.add_parser("validate", help="Check referential integrity")
    validate_cmd.add_argument("--id", help="Only this trip")
    validate_cmd.set_defaults(handler=_validate)

    list_cmd = commands.add_parser("list", help="Print trip summaries as JSON")
    list_cmd.set_defaults(handler=_list)

    backups_cmd = commands.add_parser("backups", help="Print backups of deleted trips as JSON")
    backups_cmd.add_argument("--trip-id", help="Only backups of this trip")
    backups_cmd.add_argument("--verify", action="store_true", help="Re-check checksums")
    backups_cmd.set_defaults(handler=_backups)
    return parser


def main(argv: list[str] | None = None) -> int:
    args = build_parser().parse_args(argv)

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.INFO,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    config = StoreConfig.from_env()
    if args.data_dir or args.backup_dir:
        config = config.model_copy(update={
            k: v for k, v in (("data_dir", args.data_dir), ("backup_dir", args.backup_dir)) if v
        })
    store = TripDocumentStore(config)
    return args.handler(store, args)


if __name__ == "__main__":
    sys.exit(main())
