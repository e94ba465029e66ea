"""
CLI interface for the zone view factor tools.
"""
import argparse
import os
import sys
import time
from typing import List, Optional

from colorama import Fore, init

from config.logging import LoggingConfig
from config.settings import ConfigManager
from data.loader import DataLoadError, WorkspaceLoader, apply_view_factor_table, read_view_factor_table
from models.entities import EntityKind
from utils.epjson_handler import EPJSONHandler
from utils.logging_config import get_logger
from utils.sentry_config import add_breadcrumb, capture_exception_with_context, initialize_sentry
from version import get_version

logger = get_logger(__name__)
init(autoreset=True)


class CliInterface:
    """Command line interface for inspecting and editing zone view factors."""

    def __init__(self, settings=None):
        self.settings = settings or ConfigManager.get_instance().settings
        self.loader = WorkspaceLoader()

    def status_update(self, message: str) -> None:
        """
        Print status messages with color coding.

        Args:
            message: Status message to print
        """
        lowered = message.lower()
        try:
            if "error" in lowered or "failed" in lowered:
                print(Fore.RED + message)
            elif "success" in lowered or "completed" in lowered:
                print(Fore.GREEN + message)
            elif "warning" in lowered:
                print(Fore.YELLOW + message)
            else:
                print(Fore.WHITE + message)
        except UnicodeEncodeError:
            print(f"[STATUS] {message.encode('ascii', 'replace').decode('ascii')}")

    def build_parser(self) -> argparse.ArgumentParser:
        parser = argparse.ArgumentParser(
            prog="zone-view-factors",
            description="Inspect and edit EnergyPlus user view factors by surface name."
        )
        parser.add_argument("--version", action="version", version=f"%(prog)s {get_version()}")
        parser.add_argument(
            "--log-level",
            type=str.upper,
            choices=["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"],
            default=None,
            help="Console log level (default: from settings)"
        )
        subparsers = parser.add_subparsers(dest="command", required=True)

        summary = subparsers.add_parser("summary", help="List zones and their view factors")
        self._add_input_arguments(summary)

        validate = subparsers.add_parser("validate", help="Report loading problems and view factor sums above 1")
        self._add_input_arguments(validate)
        validate.add_argument(
            "--tolerance",
            type=float,
            default=None,
            help="Allowed excess over 1 for outgoing view factor sums (default: from settings)"
        )

        import_csv = subparsers.add_parser("import-csv", help="Add view factors from a CSV table")
        self._add_input_arguments(import_csv)
        import_csv.add_argument("csv_file", help="CSV with zone, from_surface, to_surface, view_factor columns")
        import_csv.add_argument(
            "-o", "--output",
            default=None,
            help="Output EPJSON path (default: <input>_view_factors.epJSON in the output directory)"
        )
        return parser

    @staticmethod
    def _add_input_arguments(parser: argparse.ArgumentParser) -> None:
        parser.add_argument("input_file", help="Path to the input .epJSON or .idf file")
        parser.add_argument(
            "--idd",
            required=False,
            help="Path to the Energy+.idd file (required for IDF files)"
        )

    def run(self, argv: Optional[List[str]] = None) -> int:
        """
        Run the command line interface.

        Returns:
            Process exit code
        """
        args = self.build_parser().parse_args(argv)

        try:
            LoggingConfig.setup_logging(
                log_level=args.log_level or self.settings.get("log_level", "INFO"),
                log_dir=self.settings.get("log_dir", "logs"),
            )
        except ValueError as e:
            self.status_update(f"Error: {e}")
            return 1
        initialize_sentry()
        add_breadcrumb(f"Running {args.command}", category="cli", data={"input_file": args.input_file})

        start_time = time.time()
        try:
            workspace, epjson_data = self.loader.load_file(args.input_file, idd_path=args.idd)
            self.settings.add_recent_file(os.path.abspath(args.input_file))

            if args.command == "summary":
                exit_code = self.summary(workspace)
            elif args.command == "validate":
                exit_code = self.validate(workspace, args.tolerance)
            else:
                exit_code = self.import_csv(workspace, epjson_data, args.input_file, args.csv_file, args.output)
        except (FileNotFoundError, DataLoadError) as e:
            self.status_update(f"Error: {e}")
            return 1
        except Exception as e:
            logger.error(f"An unexpected error occurred in CLI mode: {e}", exc_info=True)
            capture_exception_with_context(e, command=args.command)
            self.status_update(f"An unexpected error occurred: {e}")
            return 1

        logger.info(f"{args.command} finished in {time.time() - start_time:.2f}s")
        return exit_code

    def summary(self, workspace) -> int:
        zones = workspace.objects_of_kind(EntityKind.ZONE)
        self.status_update(f"{workspace.name}: {len(zones)} zones")
        for zone in zones:
            participants = workspace.participants_in_zone(zone)
            relation = workspace.relation_for(zone)
            count = relation.number_of_view_factors() if relation is not None else 0
            print(f"  {zone.name}: {len(participants)} surfaces, {count} view factors")
            if relation is None:
                continue
            for view_factor in relation.view_factors():
                print(f"    {view_factor.from_surface.name} -> {view_factor.to_surface.name}: "
                      f"{view_factor.view_factor:g}")
        return 0

    def validate(self, workspace, tolerance: Optional[float] = None) -> int:
        if tolerance is None:
            tolerance = float(self.settings.get("view_factor_sum_tolerance", 1e-3))

        problems = list(self.loader.errors)
        for relation in workspace.relations():
            if relation.has_stale_references():
                problems.append(f"{relation.brief_description()} references objects that no longer exist")

        warnings = []
        if self.settings.get("warn_on_view_factor_sums", True):
            for relation in workspace.relations():
                warnings.extend(relation.view_factor_sum_warnings(tolerance))

        for problem in problems:
            self.status_update(f"Error: {problem}")
        for warning in warnings:
            self.status_update(f"Warning: {warning}")

        if problems or warnings:
            self.status_update(f"Validation failed: {len(problems)} errors, {len(warnings)} warnings")
            return 1
        self.status_update("Validation completed successfully")
        return 0

    def import_csv(self, workspace, epjson_data, input_file: str, csv_file: str,
                   output: Optional[str] = None) -> int:
        frame = read_view_factor_table(csv_file)
        results = apply_view_factor_table(workspace, frame)

        for zone_name, ok in results.items():
            if ok:
                self.status_update(f"{zone_name}: view factors added successfully")
            else:
                self.status_update(f"Warning: {zone_name}: some view factors were skipped, see log")

        if output is None:
            base_name = os.path.splitext(os.path.basename(input_file))[0]
            output = os.path.join(self.settings.get("last_output_directory", "output"),
                                  f"{base_name}_view_factors.epJSON")

        handler = EPJSONHandler()
        handler.save_epjson(handler.export_view_factors(workspace, epjson_data), output)
        self.status_update(f"Export completed: {output}")
        return 0 if all(results.values()) else 1


def run_cli(argv: Optional[List[str]] = None) -> None:
    """Entry point for CLI interface."""
    sys.exit(CliInterface().run(argv))
