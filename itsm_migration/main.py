"""Command-line entry point for the ITSM work-item migration.

Each phase can run on its own, reading and writing the Diff Table, or all
phases can run in order through ``migrate``.
"""

import argparse
import sys
from pathlib import Path
from typing import TYPE_CHECKING

from itsm_migration.config import logger, update_from_cli_args

if TYPE_CHECKING:
    from itsm_migration.clients.itsm_client import ItsmClient
    from itsm_migration.migrations.base_migration import BaseMigration
    from itsm_migration.utils.record_reader import RecordSource

# Migration modules are imported inside the command handlers so that CLI
# options reach the configuration before any phase reads it.

WORK_ITEM_TYPES = ("incident", "service_request")


def _add_common_options(parser: argparse.ArgumentParser) -> None:
    parser.add_argument(
        "--delimiter",
        help="Field delimiter of the source CSV files (default from config, usually ',')",
    )
    parser.add_argument(
        "--log-level",
        choices=["DEBUG", "INFO", "NOTICE", "WARNING", "ERROR"],
        type=str.upper,
        help="Console and file log level",
    )
    parser.add_argument(
        "--continue-on-error",
        action="store_true",
        help="Keep processing the next record after a creation failure",
    )


def _add_surrogate_options(parser: argparse.ArgumentParser, *, affected_user: bool = True) -> None:
    if affected_user:
        parser.add_argument(
            "--affected-user-surrogate",
            required=True,
            metavar="NAME",
            help="Display name of the user related when AffectedUser cannot be found",
        )
    parser.add_argument(
        "--assigned-to-surrogate",
        required=True,
        metavar="NAME",
        help="Display name of the user related when AssignedTo cannot be found",
    )


def _add_activity_options(parser: argparse.ArgumentParser) -> None:
    parser.add_argument("--manual-activities", type=Path, metavar="CSV")
    parser.add_argument("--review-activities", type=Path, metavar="CSV")
    parser.add_argument("--parallel-activities", type=Path, metavar="CSV")
    parser.add_argument(
        "--activity-diff-table",
        type=Path,
        metavar="CSV",
        help="Also record old->new activity identifiers in this file",
    )


def build_parser() -> argparse.ArgumentParser:
    """Create the argument parser with one subcommand per phase."""
    parser = argparse.ArgumentParser(
        prog="itsmm",
        description="Migrate legacy ITSM work items into a target ticketing instance",
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )
    subparsers = parser.add_subparsers(dest="command", help="Commands")

    validate_parser = subparsers.add_parser(
        "validate",
        help="Check enumeration values of the given exports against the target, write nothing",
    )
    validate_parser.add_argument("--incidents", type=Path, metavar="CSV")
    validate_parser.add_argument("--service-requests", type=Path, metavar="CSV")
    validate_parser.add_argument("--manual-activities", type=Path, metavar="CSV")
    validate_parser.add_argument("--review-activities", type=Path, metavar="CSV")
    validate_parser.add_argument("--parallel-activities", type=Path, metavar="CSV")
    _add_common_options(validate_parser)

    for command, label in (("incidents", "Incidents"), ("service-requests", "Service Requests")):
        work_item_parser = subparsers.add_parser(command, help=f"Create {label} and record them in the Diff Table")
        work_item_parser.add_argument("--source", type=Path, required=True, metavar="CSV")
        work_item_parser.add_argument("--diff-table", type=Path, required=True, metavar="CSV")
        work_item_parser.add_argument(
            "--keep-ids",
            action="store_true",
            help="Send legacy identifiers to the target instead of letting it number new items",
        )
        _add_surrogate_options(work_item_parser)
        if command == "service-requests":
            _add_activity_options(work_item_parser)
        _add_common_options(work_item_parser)

    logs_parser = subparsers.add_parser("activity-logs", help="Attach comment logs to migrated work items")
    logs_parser.add_argument("--source", type=Path, required=True, metavar="CSV")
    logs_parser.add_argument("--diff-table", type=Path, required=True, metavar="CSV")
    logs_parser.add_argument(
        "--work-item-type",
        choices=WORK_ITEM_TYPES,
        help="Parent type of every row (inferred from the related-id column when omitted)",
    )
    _add_common_options(logs_parser)

    activities_parser = subparsers.add_parser(
        "sub-activities",
        help="Create Manual, Review and Parallel activities under migrated Service Requests",
    )
    activities_parser.add_argument("--diff-table", type=Path, required=True, metavar="CSV")
    activities_parser.add_argument("--keep-ids", action="store_true")
    _add_activity_options(activities_parser)
    _add_surrogate_options(activities_parser, affected_user=False)
    _add_common_options(activities_parser)

    attachments_parser = subparsers.add_parser("attachments", help="Upload per-work-item attachment folders")
    attachments_parser.add_argument("--root", type=Path, required=True, metavar="DIR")
    attachments_parser.add_argument("--diff-table", type=Path, required=True, metavar="CSV")
    attachments_parser.add_argument("--work-item-type", choices=WORK_ITEM_TYPES)
    attachments_parser.add_argument(
        "--max-size",
        type=int,
        metavar="BYTES",
        help="Skip files larger than this (0 for no limit)",
    )
    _add_common_options(attachments_parser)

    migrate_parser = subparsers.add_parser("migrate", help="Run every phase in order")
    migrate_parser.add_argument("--diff-table", type=Path, required=True, metavar="CSV")
    migrate_parser.add_argument("--incidents", type=Path, metavar="CSV")
    migrate_parser.add_argument("--service-requests", type=Path, metavar="CSV")
    migrate_parser.add_argument(
        "--activity-logs",
        type=Path,
        nargs="+",
        default=[],
        metavar="CSV",
    )
    migrate_parser.add_argument("--manual-activities", type=Path, metavar="CSV")
    migrate_parser.add_argument("--review-activities", type=Path, metavar="CSV")
    migrate_parser.add_argument("--parallel-activities", type=Path, metavar="CSV")
    migrate_parser.add_argument(
        "--attachments",
        type=Path,
        required=True,
        metavar="DIR",
        help="Attachment root with one folder per legacy id (may be empty)",
    )
    migrate_parser.add_argument(
        "--components",
        nargs="+",
        choices=["incidents", "service_requests", "activity_logs", "sub_activities", "attachments"],
        help="Run only these phases (enumeration validation always runs)",
    )
    migrate_parser.add_argument("--keep-ids", action="store_true")
    _add_surrogate_options(migrate_parser)
    _add_common_options(migrate_parser)

    return parser


def _read(path: Path | None, name: str = "") -> "RecordSource":
    from itsm_migration import config  # noqa: PLC0415
    from itsm_migration.utils.record_reader import RecordSource  # noqa: PLC0415

    if path is None:
        return RecordSource.empty(name)
    return RecordSource.from_file(
        path,
        delimiter=str(config.migration_config.get("csv_delimiter", ",")),
        encoding=str(config.migration_config.get("csv_encoding", "utf-8-sig")),
    )


def _build_component(args: argparse.Namespace, client: "ItsmClient") -> "BaseMigration":
    """Construct the single phase a subcommand runs."""
    from itsm_migration.mappings.diff_table import DiffTable  # noqa: PLC0415
    from itsm_migration.migrations.activity_log_migration import ActivityLogMigration  # noqa: PLC0415
    from itsm_migration.migrations.attachments_migration import AttachmentsMigration  # noqa: PLC0415
    from itsm_migration.migrations.enum_validation import EnumValidator  # noqa: PLC0415
    from itsm_migration.migrations.incident_migration import IncidentMigration  # noqa: PLC0415
    from itsm_migration.migrations.service_request_migration import ServiceRequestMigration  # noqa: PLC0415
    from itsm_migration.migrations.sub_activity_migration import SubActivityMigration  # noqa: PLC0415

    def activity_table() -> DiffTable | None:
        path = getattr(args, "activity_diff_table", None)
        return DiffTable.open(path) if path else None

    match args.command:
        case "validate":
            named = {
                "incident": args.incidents,
                "service_request": args.service_requests,
                "manual": args.manual_activities,
                "review": args.review_activities,
                "parallel": args.parallel_activities,
            }
            return EnumValidator(client, {kind: _read(path, kind) for kind, path in named.items() if path})
        case "incidents":
            return IncidentMigration(
                client,
                _read(args.source),
                DiffTable.open(args.diff_table),
                affected_user_surrogate=args.affected_user_surrogate,
                assigned_to_surrogate=args.assigned_to_surrogate,
            )
        case "service-requests":
            diff_table = DiffTable.open(args.diff_table)
            sub_activities = None
            if args.manual_activities or args.review_activities or args.parallel_activities:
                sub_activities = SubActivityMigration(
                    client,
                    diff_table,
                    manual=_read(args.manual_activities, "manual"),
                    review=_read(args.review_activities, "review"),
                    parallel=_read(args.parallel_activities, "parallel"),
                    assigned_to_surrogate=args.assigned_to_surrogate,
                    activity_diff_table=activity_table(),
                )
            return ServiceRequestMigration(
                client,
                _read(args.source),
                diff_table,
                affected_user_surrogate=args.affected_user_surrogate,
                assigned_to_surrogate=args.assigned_to_surrogate,
                sub_activities=sub_activities,
            )
        case "activity-logs":
            return ActivityLogMigration(
                client,
                _read(args.source),
                DiffTable.load(args.diff_table),
                work_item_type=args.work_item_type,
            )
        case "sub-activities":
            return SubActivityMigration(
                client,
                DiffTable.load(args.diff_table),
                manual=_read(args.manual_activities, "manual"),
                review=_read(args.review_activities, "review"),
                parallel=_read(args.parallel_activities, "parallel"),
                assigned_to_surrogate=args.assigned_to_surrogate,
                activity_diff_table=activity_table(),
            )
        case "attachments":
            return AttachmentsMigration(
                client,
                args.root,
                DiffTable.load(args.diff_table),
                work_item_type=args.work_item_type,
                max_size=args.max_size,
            )
        case _:
            msg = f"Unknown command: {args.command}"
            raise ValueError(msg)


def run_single(args: argparse.Namespace) -> int:
    """Run one phase and save its result; return the process exit code."""
    from itsm_migration.clients.itsm_client import ItsmClient  # noqa: PLC0415
    from itsm_migration.migration import print_component_header, save_results  # noqa: PLC0415
    from itsm_migration.models import MigrationResult  # noqa: PLC0415

    component = _build_component(args, ItsmClient())
    results = MigrationResult()
    print_component_header(component.COMPONENT_NAME)
    results.record(component.COMPONENT_NAME, component.run())
    save_results(results)
    return 0 if results.overall["status"] == "success" else 1


def run_all(args: argparse.Namespace) -> int:
    """Run every phase through the orchestrator; return the process exit code."""
    from itsm_migration.migration import run_migration  # noqa: PLC0415
    from itsm_migration.type_definitions import SourceFiles  # noqa: PLC0415

    files = SourceFiles(
        diff_table=args.diff_table,
        incidents=args.incidents,
        service_requests=args.service_requests,
        activity_logs=list(args.activity_logs),
        manual_activities=args.manual_activities,
        review_activities=args.review_activities,
        parallel_activities=args.parallel_activities,
        attachments=args.attachments,
    )
    result = run_migration(
        files,
        affected_user_surrogate=args.affected_user_surrogate,
        assigned_to_surrogate=args.assigned_to_surrogate,
        components=args.components,
    )
    return 0 if result.overall.get("status") == "success" else 1


def main(argv: list[str] | None = None) -> None:
    """Parse arguments and execute the appropriate command."""
    parser = build_parser()
    args = parser.parse_args(argv)

    if args.command is None:
        parser.print_help()
        sys.exit(1)

    update_from_cli_args(args)

    from itsm_migration.config import validate_config  # noqa: PLC0415

    if not validate_config():
        sys.exit(1)

    if args.command == "migrate":
        sys.exit(run_all(args))
    sys.exit(run_single(args))


def cli() -> None:
    """Console-script entry point: run ``main`` and turn failures into exit codes."""
    from itsm_migration.clients.exceptions import AuthenticationError, ClientError  # noqa: PLC0415
    from itsm_migration.models import MigrationError  # noqa: PLC0415

    try:
        main()
    except KeyboardInterrupt:
        logger.info("Migration interrupted by user")
        sys.exit(1)
    except (FileNotFoundError, PermissionError) as e:
        logger.error("File system error: %s", e)
        sys.exit(1)
    except AuthenticationError as e:
        logger.error("Target rejected the credentials: %s", e)
        sys.exit(1)
    except (ClientError, ConnectionError, TimeoutError) as e:
        logger.error("Target connectivity error: %s", e)
        sys.exit(1)
    except MigrationError as e:
        logger.error("Migration error: %s", e)
        sys.exit(1)
    except Exception as e:  # noqa: BLE001
        logger.exception("Unexpected error occurred during migration: %s", e)
        sys.exit(1)


if __name__ == "__main__":
    cli()
