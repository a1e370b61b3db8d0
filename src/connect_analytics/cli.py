"""
Command line entry point for the cross-account analytics tooling.

Subcommands:
    recreate-links   Delete and recreate all resource links
    grant-lambda     Grant DESCRIBE on all resource links to the Lambda role
    grant-select     Grant producer SELECT and consumer DESCRIBE for key tables
    export-metadata  Export column metadata of all tables to CSV
    verify           Run post-deployment smoke checks
    invoke-export    Invoke the export Lambda
    query            Run an Athena query in the consumer database
"""

import argparse
import json
import sys
from typing import Callable, Dict, List, Optional

from .athena.query import AthenaQueryRunner, check_cross_account_access
from .catalog.resource_links import ResourceLinkManager
from .config import config, resolve_consumer_account_id, resolve_producer_account_id
from .lambda_export.invoke import invoke_export_function
from .metadata.export import TableMetadataExporter
from .permissions.lakeformation import LakeFormationPermissions
from .permissions.prerequisites import check_prerequisites, validate_current_state
from .results import BatchResult
from .tables import CONNECT_TABLES, KEY_TABLES
from .utils.logger import get_logger
from .verification.deployment import DeploymentVerifier

logger = get_logger(__name__)


def _log_banner(title: str) -> None:
    logger.info("=" * 78)
    logger.info(title)
    logger.info("=" * 78)


def _log_batch(result: BatchResult) -> None:
    logger.info(f"=== Summary: {result.operation} ({result.total} items) ===", extra=result.to_dict())
    logger.info(f"✅ Successful: {len(result.succeeded)}")
    logger.info(f"❌ Failed: {len(result.failed)}")
    if result.skipped:
        logger.info(f"⏭  Skipped: {len(result.skipped)}")
    for name in result.failed:
        logger.warning(f"  - {name}")


def _confirm(prompt: str) -> bool:
    reply = input(f"{prompt} (y/N): ").strip().lower()
    return reply in ('y', 'yes')


def cmd_recreate_links(args: argparse.Namespace) -> int:
    producer_account_id = resolve_producer_account_id()
    manager = ResourceLinkManager(producer_catalog_id=producer_account_id, region=args.region)

    result = manager.recreate_links(args.tables or CONNECT_TABLES)
    _log_batch(result)

    logger.info("Done! Verifying first table...")
    info = manager.describe_link("users")
    if info:
        logger.info(json.dumps(info, default=str))
    logger.info("All resource links recreated. AWS Glue will auto-populate schemas via RAM share.")

    return 0 if result.all_succeeded else 1


def cmd_grant_lambda(args: argparse.Namespace) -> int:
    consumer_account_id = resolve_consumer_account_id()
    role_arn = config.lambda_.role_arn(consumer_account_id)

    _log_banner("Granting Lambda Permissions")
    logger.info(f"Consumer Account: {consumer_account_id}")
    logger.info(f"Lambda Role: {role_arn}")
    logger.info(f"Database: {config.catalog.consumer_database}")

    permissions = LakeFormationPermissions(
        principal_arn=role_arn,
        consumer_account_id=consumer_account_id,
        region=args.region,
        delay_seconds=0
    )
    result = permissions.grant_describe_on_links(args.tables or CONNECT_TABLES)
    _log_batch(result)

    if not result.all_succeeded:
        logger.warning("⚠️  Some permissions failed. Check AWS Console for details.")
        logger.warning("You may need to grant permissions manually for failed tables.")
        return 1

    logger.info("🎉 All permissions granted successfully!")
    if args.skip_invoke:
        return 0

    ok, _ = invoke_export_function(region=args.region)
    return 0 if ok else 1


def cmd_grant_select(args: argparse.Namespace) -> int:
    consumer_account_id = resolve_consumer_account_id()
    producer_account_id = resolve_producer_account_id()
    role_arn = config.lambda_.role_arn(consumer_account_id)

    if not check_prerequisites(config.lambda_.role_name, consumer_account_id, region=args.region):
        return 1

    _log_banner("Automated Cross-Account SELECT Permissions")
    logger.info(f"Producer Account: {producer_account_id}")
    logger.info(f"Consumer Account: {consumer_account_id}")
    logger.info(f"Region: {args.region or config.aws.region}")
    logger.info(f"Test Mode: {args.test}")
    logger.info(f"Dry Run: {args.dry_run}")

    manager = ResourceLinkManager(producer_catalog_id=producer_account_id, region=args.region)
    permissions = LakeFormationPermissions(
        principal_arn=role_arn,
        consumer_account_id=consumer_account_id,
        producer_account_id=producer_account_id,
        region=args.region,
        dry_run=args.dry_run,
        link_manager=manager
    )

    validate_current_state(manager, permissions, test_mode=args.test)

    if args.test:
        logger.info("Test mode complete - no changes made")
        return 0

    if not args.dry_run and not args.yes:
        logger.warning("This will modify Lake Formation permissions")
        if not _confirm("Do you want to continue?"):
            logger.info("Operation cancelled")
            return 0

    tables = args.tables or KEY_TABLES
    select_result = permissions.grant_select_on_producer_tables(tables)
    describe_result = permissions.grant_describe_on_existing_links(tables)
    _log_batch(select_result)
    _log_batch(describe_result)

    if args.dry_run:
        logger.info("Dry run complete - no changes made")
        return 0

    access_ok = check_cross_account_access(
        AthenaQueryRunner(database=config.catalog.consumer_database, region=args.region)
    )
    logger.info("Automated permission setup complete!")
    logger.info(
        f"Verify permissions with: aws lakeformation list-permissions "
        f"--principal 'DataLakePrincipalIdentifier={role_arn}'"
    )

    combined = select_result.merge(describe_result)
    return 0 if combined.all_succeeded and access_ok else 1


def cmd_export_metadata(args: argparse.Namespace) -> int:
    exporter = TableMetadataExporter(region=args.region)
    if not exporter.validate_access():
        return 1

    summary = exporter.export(args.tables or CONNECT_TABLES, output_file=args.output)
    if summary.all_succeeded:
        logger.info(f"🎉 Export completed successfully! Metadata saved to: {summary.output_file}")
        return 0

    logger.warning(
        f"⚠ Export completed with some issues. Success rate: "
        f"{len(summary.succeeded)}/{summary.requested} tables processed"
    )
    return 1


def cmd_verify(args: argparse.Namespace) -> int:
    verifier = DeploymentVerifier(
        producer_account_id=resolve_producer_account_id(working_dir=args.terraform_dir),
        terraform_dir=args.terraform_dir
    )
    summary = verifier.run()
    for check in verifier.failed_checks():
        logger.error(f"Failed check [{check['section']}] {check['name']}: {check['message']}")
    return 0 if summary.succeeded else 1


def cmd_invoke_export(args: argparse.Namespace) -> int:
    payload = {'table': args.table} if args.table else {}
    ok, _ = invoke_export_function(args.function_name, payload, region=args.region)
    return 0 if ok else 1


def cmd_query(args: argparse.Namespace) -> int:
    runner = AthenaQueryRunner(region=args.region)
    rows = runner.run(args.sql)
    print(json.dumps(rows, indent=2))
    return 0


COMMANDS: Dict[str, Callable[[argparse.Namespace], int]] = {
    'recreate-links': cmd_recreate_links,
    'grant-lambda': cmd_grant_lambda,
    'grant-select': cmd_grant_select,
    'export-metadata': cmd_export_metadata,
    'verify': cmd_verify,
    'invoke-export': cmd_invoke_export,
    'query': cmd_query,
}


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog='connect-analytics',
        description='Cross-account Amazon Connect analytics automation'
    )
    parser.add_argument('--region', type=str, default=None, help='AWS region (default: from config)')
    subparsers = parser.add_subparsers(dest='command', required=True)

    def add_tables_option(sub: argparse.ArgumentParser) -> None:
        sub.add_argument('--tables', nargs='+', help='Limit the run to these tables')

    recreate = subparsers.add_parser('recreate-links', help='Delete and recreate all resource links')
    add_tables_option(recreate)

    grant_lambda = subparsers.add_parser('grant-lambda', help='Grant DESCRIBE on resource links to the Lambda role')
    add_tables_option(grant_lambda)
    grant_lambda.add_argument('--skip-invoke', action='store_true', help='Do not test-invoke the Lambda afterwards')

    grant_select = subparsers.add_parser('grant-select', help='Grant cross-account SELECT permissions')
    add_tables_option(grant_select)
    grant_select.add_argument('--test', action='store_true', help='Only validate current permissions')
    grant_select.add_argument('--dry-run', action='store_true', help='Show grants without executing them')
    grant_select.add_argument('--yes', '-y', action='store_true', help='Do not ask for confirmation')

    export = subparsers.add_parser('export-metadata', help='Export table metadata to CSV')
    add_tables_option(export)
    export.add_argument('--output', type=str, default=None, help='Output CSV file')

    verify = subparsers.add_parser('verify', help='Verify the deployment')
    verify.add_argument('--terraform-dir', type=str, default=None, help='Terraform root module directory')

    invoke = subparsers.add_parser('invoke-export', help='Invoke the export Lambda')
    invoke.add_argument('--function-name', type=str, default=None, help='Lambda function name')
    invoke.add_argument('--table', type=str, default=None, help='Resource link to export (e.g. contacts_link)')

    query = subparsers.add_parser('query', help='Run an Athena query')
    query.add_argument('sql', type=str, help='SQL to execute')

    return parser


def main(argv: Optional[List[str]] = None) -> int:
    """Main entry point for the CLI."""
    args = build_parser().parse_args(argv)

    try:
        return COMMANDS[args.command](args)
    except KeyboardInterrupt:
        logger.info("Operation cancelled")
        return 130
    except Exception as e:
        logger.error(f"{args.command} failed: {e}", exc_info=True)
        return 1


if __name__ == '__main__':
    sys.exit(main())
