"""Entry point: python -m versioning

Operator commands for landing versions.

Usage:
    python -m versioning list <landing_id>
    python -m versioning create <landing_id> [-m DESCRIPTION]
    python -m versioning diff <landing_id> <version_id> [--compare-to previous|current]
    python -m versioning rollback <landing_id> <version_id>
    python -m versioning tag <landing_id> <version_id> [TAG]   # omit TAG to clear
    python -m versioning delete <landing_id> <version_id>
    python -m versioning purge <landing_id>
    python -m versioning migrate                                # backfill pointers/counters
"""

from __future__ import annotations

import argparse
import asyncio
import logging
import sys

from sqlalchemy import select, func

from src.database import async_session, init_db
from src.entities.landing import Landing
from src.entities.version import Version
from src.entities.version_counter import VersionCounter
from versioning.audit import AuditAction, record_audit
from versioning.diff import format_diff
from versioning.errors import VersioningError
from versioning.rollback import rollback
from versioning.store import COMPARE_CURRENT, COMPARE_PREVIOUS, SnapshotStore, purge_landing

ACTOR = "cli"


def _print_version(v: Version) -> None:
    tag = f" [{v.tag}]" if v.tag else ""
    print(
        f"  v{v.sequence_number:<4} {v.id}  {v.created_at:%Y-%m-%d %H:%M:%S}  "
        f"{v.size_bytes:>9} B{tag}  {v.description}"
    )


async def cmd_list(store: SnapshotStore, args) -> None:
    landing = await store.get_landing(args.landing_id)
    versions = await store.list_versions(landing.id)
    print(f"Landing {landing.id} ({landing.slug}) — {len(versions)} version(s), "
          f"current: v{landing.current_version_number or '-'}")
    for v in versions:
        _print_version(v)


async def cmd_create(store: SnapshotStore, args) -> None:
    landing = await store.get_landing(args.landing_id)
    version = await store.create_snapshot(landing, args.message, actor=ACTOR)
    if version is None:
        print(f"ERROR: landing {landing.id} has no live files to snapshot")
        sys.exit(1)
    print("Created:")
    _print_version(version)


async def cmd_diff(store: SnapshotStore, args) -> None:
    landing = await store.get_landing(args.landing_id)
    version, label, diffs = await store.compare(landing, args.version_id, args.compare_to)
    print(f"v{version.sequence_number} vs {label}: {len(diffs)} file(s) changed")
    if diffs:
        print(format_diff(diffs))


async def cmd_rollback(store: SnapshotStore, args) -> None:
    landing = await store.get_landing(args.landing_id)
    result = await rollback(store, landing, args.version_id, actor=ACTOR)
    print(result.message)
    if result.backup is not None:
        print(f"Previous state saved as v{result.backup.sequence_number} ({result.backup.id})")


async def cmd_tag(store: SnapshotStore, args) -> None:
    version = await store.update_metadata(
        args.landing_id, args.version_id, {"tag": args.tag}, actor=ACTOR
    )
    state = f"tagged '{version.tag}'" if version.tag else "untagged"
    print(f"v{version.sequence_number} is now {state}")


async def cmd_delete(store: SnapshotStore, args) -> None:
    await store.delete_version(args.landing_id, args.version_id, actor=ACTOR)
    print(f"Deleted {args.version_id}")


async def cmd_purge(store: SnapshotStore, args) -> None:
    landing = await store.get_landing(args.landing_id)
    removed = await purge_landing(store.db, landing, store.archives)
    print(f"Removed {removed} version(s) of landing {landing.id}")


async def cmd_migrate(store: SnapshotStore, args) -> None:
    """Give every landing a current-version pointer and a sequence counter."""
    db = store.db
    landings = list((await db.execute(select(Landing).order_by(Landing.id))).scalars().all())
    migrated = 0

    for landing in landings:
        name = landing.name
        orphans = await store.sweep_orphans(landing.id)
        if orphans:
            print(f"  Removed {len(orphans)} orphan archive(s) for \"{name}\"")

        if await db.get(VersionCounter, landing.id) is None:
            highest = await db.scalar(
                select(func.max(Version.sequence_number)).where(Version.landing_id == landing.id)
            )
            if highest:
                db.add(VersionCounter(landing_id=landing.id, last_sequence=highest))
                await db.commit()
                print(f"  Seeded counter for \"{name}\" at {highest}")

        if landing.current_version_id and landing.current_version_number:
            print(f"  Skipping \"{name}\" - already has version tracking")
            continue

        versions = await store.list_versions(landing.id)
        if versions:
            latest = versions[0]
            landing.current_version_id = latest.id
            landing.current_version_number = latest.sequence_number
            record_audit(
                db, landing.id, AuditAction.MIGRATE, ACTOR,
                details=f"Pointed at existing version {latest.sequence_number}",
                version_ids=[latest.id],
            )
            await db.commit()
            print(f"  Updated \"{name}\" to point to existing version {latest.sequence_number}")
        else:
            try:
                initial = await store.create_snapshot(
                    landing, "Initial version - migration", actor=ACTOR
                )
            except OSError as e:
                print(f"  Failed to create version for \"{name}\": {e}")
                continue
            if initial is None:
                print(f"  Skipping \"{name}\" - no live files")
                continue
            print(f"  Created initial version for \"{name}\" - v{initial.sequence_number}")
        migrated += 1

    print(f"Migration completed. {migrated} landing(s) processed.")


COMMANDS = {
    "list": cmd_list,
    "create": cmd_create,
    "diff": cmd_diff,
    "rollback": cmd_rollback,
    "tag": cmd_tag,
    "delete": cmd_delete,
    "purge": cmd_purge,
    "migrate": cmd_migrate,
}


async def main(args) -> int:
    await init_db()
    async with async_session() as db:
        store = SnapshotStore(db)
        try:
            await COMMANDS[args.command](store, args)
        except VersioningError as e:
            print(f"ERROR: {e}")
            return 1
    return 0


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="Landing version snapshots, diffs and rollback")
    sub = parser.add_subparsers(dest="command", required=True)

    p = sub.add_parser("list", help="List versions newest first")
    p.add_argument("landing_id")

    p = sub.add_parser("create", help="Snapshot the landing's live files")
    p.add_argument("landing_id")
    p.add_argument("-m", "--message", default="Manual snapshot", help="Version description")

    p = sub.add_parser("diff", help="Diff a version against its predecessor or the live files")
    p.add_argument("landing_id")
    p.add_argument("version_id")
    p.add_argument(
        "--compare-to",
        choices=[COMPARE_PREVIOUS, COMPARE_CURRENT],
        default=COMPARE_CURRENT,
    )

    p = sub.add_parser("rollback", help="Restore the landing to a version")
    p.add_argument("landing_id")
    p.add_argument("version_id")

    p = sub.add_parser("tag", help="Protect a version with a tag, or clear it")
    p.add_argument("landing_id")
    p.add_argument("version_id")
    p.add_argument("tag", nargs="?", default=None)

    p = sub.add_parser("delete", help="Delete an untagged version")
    p.add_argument("landing_id")
    p.add_argument("version_id")

    p = sub.add_parser("purge", help="Remove every version of a landing, tagged or not")
    p.add_argument("landing_id")

    sub.add_parser("migrate", help="Backfill current-version pointers and sequence counters")
    return parser


def cli():
    logging.basicConfig(level=logging.INFO)
    args = build_parser().parse_args()
    sys.exit(asyncio.run(main(args)))


if __name__ == "__main__":
    cli()
