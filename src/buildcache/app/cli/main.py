"""CLI main entry point."""

import json
import os
import sys
from pathlib import Path
from typing import Any

import click

from ... import __version__
from ...adapters import (
    FsStorageAdapter,
    LoggingMetricsAdapter,
    NoopMetricsAdapter,
    S3StorageAdapter,
    StdLoggerAdapter,
    UtcClockAdapter,
    archive_for_filename,
)
from ...core import (
    CacheConfig,
    CacheService,
    FlushResult,
    PartialFlushError,
    RebuildSummary,
    RestoreSummary,
)
from ...ports import LoggerPort, MetricsPort, StoragePort


def create_storage(config: CacheConfig) -> StoragePort:
    """Create the storage adapter selected by config."""
    if config.storage_backend == "filesystem":
        return FsStorageAdapter(Path(config.storage_root or "."))
    return S3StorageAdapter(
        endpoint_url=config.endpoint_url,
        region=config.region,
        access_key=config.access_key,
        secret_key=config.secret_key,
    )


def create_metrics(config: CacheConfig) -> MetricsPort:
    if config.metrics_type == "noop":
        return NoopMetricsAdapter()
    return LoggingMetricsAdapter()


def create_service(config: CacheConfig, logger: LoggerPort) -> CacheService:
    """Create service with wired adapters."""
    return CacheService(
        storage=create_storage(config),
        archiver=archive_for_filename(config.filename),
        clock=UtcClockAdapter(),
        logger=logger,
        metrics=create_metrics(config),
        delete_workers=config.delete_workers,
    )


def summary_to_dict(result: RebuildSummary | RestoreSummary | FlushResult) -> dict[str, Any]:
    """Render an operation result as the JSON summary printed on success."""
    if isinstance(result, RebuildSummary):
        return {
            "operation": "rebuild",
            "key": result.key,
            "mounts": result.mounts,
            "members": result.members,
            "archive_size": result.archive_size,
            "duration": round(result.duration, 3),
        }
    if isinstance(result, RestoreSummary):
        return {
            "operation": "restore",
            "key": result.key,
            "cache_miss": result.cache_miss,
            "used_fallback": result.used_fallback,
            "restored": len(result.restored),
            "archive_size": result.archive_size,
            "duration": round(result.duration, 3),
        }
    return {
        "operation": "flush",
        "prefix": result.prefix,
        "max_age_days": result.max_age_days,
        "deleted": result.deleted_count,
        "failed": result.failed_count,
        "retained": result.retained_count,
        "errors": result.errors,
        "duration": round(result.duration, 3),
    }


def _split_mounts(ctx: click.Context, param: click.Parameter, value: tuple[str, ...]) -> list[str]:
    # PLUGIN_MOUNT arrives comma separated from drone
    mounts: list[str] = []
    for item in value:
        mounts.extend(part.strip() for part in item.split(",") if part.strip())
    return mounts


@click.command()
@click.option("--filename", envvar="PLUGIN_FILENAME", help="Filename for the cache")
@click.option("--path", envvar="PLUGIN_PATH", help="Storage path of the cache")
@click.option("--fallback-path", envvar="PLUGIN_FALLBACK_PATH", help="Path tried on restore when path is missing")
@click.option("--flush-path", envvar="PLUGIN_FLUSH_PATH", help="Prefix to flush old caches from")
@click.option(
    "--mount",
    "mounts",
    multiple=True,
    envvar="PLUGIN_MOUNT",
    callback=_split_mounts,
    help="Cache directories (repeatable or comma separated)",
)
@click.option("--rebuild", is_flag=True, envvar="PLUGIN_REBUILD", help="Rebuild the cache directories")
@click.option("--restore", is_flag=True, envvar="PLUGIN_RESTORE", help="Restore the cache directories")
@click.option("--flush", is_flag=True, envvar="PLUGIN_FLUSH", help="Flush the cache")
@click.option(
    "--flush-age",
    default="30",
    show_default=True,
    envvar="PLUGIN_FLUSH_AGE",
    help="Flush cache files older than # days",
)
@click.option("--debug", is_flag=True, envvar="PLUGIN_DEBUG", help="Enable debug logging")
@click.option("--repo-owner", envvar=["PLUGIN_BUCKET", "DRONE_REPO_OWNER"], help="Repository owner (bucket)")
@click.option("--repo-name", envvar="DRONE_REPO_NAME", help="Repository name")
@click.option(
    "--commit-branch",
    default="master",
    show_default=True,
    envvar="DRONE_COMMIT_BRANCH",
    help="Git commit branch",
)
@click.option("--server", envvar=["PLUGIN_SERVER", "CACHE_S3_SERVER"], help="S3 server URL")
@click.option("--access-key", envvar=["PLUGIN_ACCESS_KEY", "CACHE_S3_ACCESS_KEY"], help="S3 access key")
@click.option("--secret-key", envvar=["PLUGIN_SECRET_KEY", "CACHE_S3_SECRET_KEY"], help="S3 secret key")
@click.option("--region", envvar=["PLUGIN_REGION", "CACHE_S3_REGION"], help="S3 region")
@click.version_option(version=__version__, prog_name="buildcache")
def cli(
    filename: str | None,
    path: str | None,
    fallback_path: str | None,
    flush_path: str | None,
    mounts: list[str],
    rebuild: bool,
    restore: bool,
    flush: bool,
    flush_age: str,
    debug: bool,
    repo_owner: str | None,
    repo_name: str | None,
    commit_branch: str,
    server: str | None,
    access_key: str | None,
    secret_key: str | None,
    region: str | None,
) -> None:
    """buildcache - Rebuild, restore or flush a CI build cache."""
    log_level = "DEBUG" if debug else os.environ.get("BC_LOG_LEVEL", "INFO")
    logger = StdLoggerAdapter(level=log_level)

    try:
        config = CacheConfig.from_options(
            rebuild=rebuild,
            restore=restore,
            flush=flush,
            mounts=mounts,
            filename=filename,
            path=path,
            fallback_path=fallback_path,
            flush_path=flush_path,
            flush_age=flush_age,
            owner=repo_owner,
            repo=repo_name,
            branch=commit_branch,
            server=server,
            access_key=access_key,
            secret_key=secret_key,
            region=region,
            logger=logger,
        )
        service = create_service(config, logger)
        result = service.execute(config)

    except PartialFlushError as e:
        click.echo(json.dumps(summary_to_dict(e.result), indent=2))
        click.echo(f"Error: {e}", err=True)
        sys.exit(1)

    except Exception as e:
        click.echo(f"Error: {e}", err=True)
        sys.exit(1)

    click.echo(json.dumps(summary_to_dict(result), indent=2))


def main() -> None:
    """Main entry point."""
    cli()
