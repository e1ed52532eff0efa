#!/usr/bin/env python3
"""
InstallerIntegrity - patch-safety checks for an installer build.

Compares the file and registry library of the last release with the current
WiX manifest sources and built files, and reports anything that would make
an incremental patch fail. Run from (or point at) the installer directory:

    python InstallerIntegrity.py Release
    python InstallerIntegrity.py Debug --silent --installer-dir /src/project/Installer

Exit status:
    0  Run completed (the report, if any, lists the problems)
    1  Fatal environment error (missing manifest, corrupt library, ...)
    2  --strict was given and the report contains errors
"""

import argparse
import sys
from pathlib import Path
from typing import Optional

from shared.log import create_logger

log_trace, log_debug, log_info, log_warn, log_error = create_logger("Main")

EXIT_OK = 0
EXIT_FATAL = 1
EXIT_ERRORS = 2


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="InstallerIntegrity",
        description="Check that the current installer build can still be shipped as a patch.",
    )
    parser.add_argument(
        "build_type", nargs="?", default=None,
        help="Build flavor substituted for ${config} in library paths (default: Release)",
    )
    parser.add_argument(
        "--silent", action="store_true", default=None,
        help="Do not print the report when it is not emailed",
    )
    parser.add_argument("--installer-dir", type=Path, default=None, help="Installer directory (default: .)")
    parser.add_argument(
        "--log-level", default=None, choices=["trace", "debug", "info", "warning", "error"],
        help="Logging verbosity",
    )
    parser.add_argument("--json-logs", action="store_true", default=None, help="Emit structured JSON log lines")
    parser.add_argument("--workers", type=int, default=None, help="Worker threads for file checks")
    parser.add_argument("--report-json", action="store_true", default=None, help="Also write a JSON report")
    parser.add_argument(
        "--strict", action="store_true",
        help="Exit with status 2 when the report contains errors",
    )
    return parser


def run_integrity_check(settings, git_client=None, delivery=None):
    """
    Run a complete integrity check.

    Args:
        settings: IntegritySettings for this run
        git_client: Source control client (default: GitClient from settings)
        delivery: ReportDelivery (default: built from settings and config)

    Returns:
        IntegrityResult

    Raises:
        FatalEnvironmentError: The environment is unusable; nothing was checked
    """
    from library.snapshot import load_library_snapshot
    from manifest.index import ManifestIndex
    from probe.file_probe import FileProbe
    from reconciliation.engine import IntegrityEngine
    from reporting.delivery import ReportDelivery, remove_stale_report
    from shared_lib.git_client import GitClient
    from shared_lib.path_mapper import BuildPathMapper, resolve_project_root
    from validation.config import load_installer_config

    # Removed first: a fatal run must not leave the previous report in place
    if delivery is None:
        remove_stale_report(settings)
    else:
        delivery.remove_stale_report()

    installer_dir = Path(settings.installer_dir)
    project_root = resolve_project_root(installer_dir)
    log_info(f"Project root: {project_root}, build type: {settings.build_type}")

    config = load_installer_config(str(installer_dir / settings.config_file))
    config.log_config()

    if delivery is None:
        delivery = ReportDelivery(settings, config)

    manifest = ManifestIndex.load(
        installer_dir,
        primary=settings.manifest_sources,
        overlays=[settings.corrections_source] if settings.corrections_source else [],
    )
    library = load_library_snapshot(
        installer_dir / settings.file_library,
        installer_dir / settings.reg_library,
    )

    if git_client is None:
        git_client = GitClient(settings.git_executable, timeout=settings.git_timeout)

    cache = None
    if settings.probe_cache_dir is not None:
        from probe.cache import ProbeCache
        cache = ProbeCache(str(settings.probe_cache_dir))

    try:
        engine = IntegrityEngine(
            manifest=manifest,
            library=library,
            config=config,
            path_mapper=BuildPathMapper(project_root, settings.build_type),
            probe=FileProbe(cache=cache),
            source_control=git_client,
            max_workers=settings.max_workers,
            dist_files_dir=project_root / settings.dist_files_dir,
        )
        result = engine.run()
    finally:
        if cache is not None:
            stats = cache.get_stats()
            log_debug(f"Probe cache: {stats['hits']} hits, {stats['misses']} misses")
            cache.close()

    header = delivery.build_header(git_client, project_root) if not result.log.is_empty else ""
    delivery.deliver(result.log, header)
    return result


def main(argv: Optional[list] = None) -> int:
    """Command-line entry point; returns the process exit status."""
    args = build_parser().parse_args(argv)

    from shared.logging_config import configure_logging
    from shared.settings import get_settings
    from validation.errors import FatalEnvironmentError

    settings = get_settings(
        build_type=args.build_type,
        silent=args.silent,
        installer_dir=args.installer_dir,
        log_level=args.log_level,
        json_logs=args.json_logs,
        max_workers=args.workers,
        report_json=args.report_json,
    )
    configure_logging(settings.log_level, json_output=settings.json_logs)

    try:
        result = run_integrity_check(settings)
    except FatalEnvironmentError as e:
        log_error(f"Integrity check aborted: {e}")
        return EXIT_FATAL

    if args.strict and result.error_count:
        log_warn(f"{result.error_count} integrity error(s) found")
        return EXIT_ERRORS
    return EXIT_OK


if __name__ == "__main__":
    try:
        sys.exit(main())
    except KeyboardInterrupt:
        sys.exit(130)
