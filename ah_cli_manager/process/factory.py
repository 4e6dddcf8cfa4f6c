"""
Builds the Aura Helper CLI invocations for every supported operation.
"""

import logging
import sys
import uuid
from enum import Enum
from typing import Any, Callable

from ah_cli_manager.exceptions import OSNotSupportedError

from .handler import CLIProcess, ProgressCallback

log = logging.getLogger(__name__)

AURA_HELPER_COMMAND = "aura-helper"
NPM_COMMAND = "npm"
NPM_PACKAGE = "aura-helper-framework"
SUPPORTED_PLATFORMS = ("win32", "linux", "darwin")


class OperationKind(str, Enum):
    """Every kind of process the manager can spawn."""

    COMPRESS_FILE = "compress_file"
    COMPRESS_FOLDER = "compress_folder"
    ORG_COMPARE = "org_compare"
    ORG_COMPARE_BETWEEN = "org_compare_between"
    DESCRIBE_METADATA = "describe_metadata"
    RETRIEVE_SPECIAL = "retrieve_special"
    LOAD_PERMISSIONS = "load_permissions"
    PACKAGE_GENERATOR = "package_generator"
    IGNORE = "ignore"
    REPAIR_DEPENDENCIES = "repair_dependencies"
    IS_INSTALLED = "is_installed"
    VERSION = "version"
    UPDATE = "update"
    UPDATE_NPM = "update_npm"


def _flag(args: list[str], name: str, enabled: Any) -> None:
    if enabled:
        args.append(name)


def _option(args: list[str], name: str, value: Any) -> None:
    if value is not None and value != "":
        args.extend([name, str(value)])


def _types_option(args: list[str], types: list[str] | None) -> None:
    """Adds `--type a,b` or `--all` when no selection was made."""
    if types:
        args.extend(["--type", ",".join(types)])
    else:
        args.append("--all")


def _xml_options(args: list[str], options: dict[str, Any]) -> None:
    _flag(args, "--compress", options.get("compress"))
    _option(args, "--sort-order", options.get("sort_order"))


class ProcessFactory:
    """
    Creates CLIProcess handles for Aura Helper CLI.

    `create()` is the single entry point: it takes the operation kind, the
    working directory, an options dict and a progress callback.
    """

    def __init__(self, command: str = AURA_HELPER_COMMAND, npm_command: str = NPM_COMMAND):
        self.command = command
        self.npm_command = npm_command
        self._builders: dict[OperationKind, Callable[[str, dict[str, Any]], list[str]]] = {
            OperationKind.COMPRESS_FILE: self._compress_file_args,
            OperationKind.COMPRESS_FOLDER: self._compress_folder_args,
            OperationKind.ORG_COMPARE: self._org_compare_args,
            OperationKind.ORG_COMPARE_BETWEEN: self._org_compare_between_args,
            OperationKind.DESCRIBE_METADATA: self._describe_args,
            OperationKind.RETRIEVE_SPECIAL: self._retrieve_special_args,
            OperationKind.LOAD_PERMISSIONS: self._load_permissions_args,
            OperationKind.PACKAGE_GENERATOR: self._package_generator_args,
            OperationKind.IGNORE: self._ignore_args,
            OperationKind.REPAIR_DEPENDENCIES: self._repair_dependencies_args,
        }

    @staticmethod
    def check_platform() -> None:
        if not sys.platform.startswith(SUPPORTED_PLATFORMS):
            raise OSNotSupportedError(
                f"Operative system '{sys.platform}' is not supported by Aura Helper CLI"
            )

    def create(
        self,
        kind: OperationKind,
        cwd: str | None = None,
        options: dict[str, Any] | None = None,
        on_progress: ProgressCallback | None = None,
    ) -> CLIProcess:
        """
        Builds the process for an operation.

        Raises:
            OSNotSupportedError: On platforms Aura Helper CLI does not run on.
            ValueError: If the operation kind is unknown.
        """
        self.check_platform()
        kind = OperationKind(kind)
        options = options or {}
        name = f"{kind.value}-{uuid.uuid4().hex[:8]}"

        if kind is OperationKind.IS_INSTALLED or kind is OperationKind.VERSION:
            return CLIProcess(self.command, ["--version"], cwd=cwd, name=name)
        if kind is OperationKind.UPDATE:
            return CLIProcess(self.command, ["update"], cwd=cwd, name=name)
        if kind is OperationKind.UPDATE_NPM:
            return CLIProcess(
                self.npm_command,
                ["update", "-g", NPM_PACKAGE],
                cwd=cwd,
                name=name,
            )

        args = self._builders[kind](cwd, options)
        if on_progress is not None:
            args.extend(["--progress", "json"])
        args.append("--json")
        log.debug(f"Built {kind.value} process: {args}")
        return CLIProcess(self.command, args, cwd=cwd, on_progress=on_progress, name=name)

    def _compress_file_args(self, cwd: str, options: dict[str, Any]) -> list[str]:
        args = ["metadata:local:compress", "--root", cwd, "--file", *options.get("files", [])]
        _option(args, "--sort-order", options.get("sort_order"))
        return args

    def _compress_folder_args(self, cwd: str, options: dict[str, Any]) -> list[str]:
        args = ["metadata:local:compress", "--root", cwd, "--folder", options["folder"]]
        _option(args, "--sort-order", options.get("sort_order"))
        return args

    def _org_compare_args(self, cwd: str, options: dict[str, Any]) -> list[str]:
        args = ["metadata:org:compare", "--root", cwd]
        _option(args, "--api-version", options.get("api_version"))
        return args

    def _org_compare_between_args(self, cwd: str, options: dict[str, Any]) -> list[str]:
        args = ["metadata:org:compare:between", "--root", cwd]
        _option(args, "--source", options.get("source"))
        _option(args, "--target", options.get("target"))
        _option(args, "--api-version", options.get("api_version"))
        return args

    def _describe_args(self, cwd: str, options: dict[str, Any]) -> list[str]:
        command = "metadata:org:describe" if options.get("from_org") else "metadata:local:describe"
        args = [command, "--root", cwd]
        _types_option(args, options.get("types"))
        _flag(args, "--download-all", options.get("from_org") and options.get("download_all"))
        _flag(args, "--group-global-actions", options.get("group_global_actions"))
        _option(args, "--api-version", options.get("api_version"))
        return args

    def _retrieve_special_args(self, cwd: str, options: dict[str, Any]) -> list[str]:
        if options.get("from_org"):
            command = "metadata:org:retrieve:special"
        else:
            command = "metadata:local:retrieve:special"
        args = [command, "--root", cwd]
        _types_option(args, options.get("types"))
        _flag(args, "--include-org", options.get("include_org"))
        _flag(args, "--download-all", options.get("download_all"))
        _xml_options(args, options)
        _option(args, "--api-version", options.get("api_version"))
        return args

    def _load_permissions_args(self, cwd: str, options: dict[str, Any]) -> list[str]:
        args = ["metadata:org:permissions", "--root", cwd]
        _option(args, "--api-version", options.get("api_version"))
        return args

    def _package_generator_args(self, cwd: str, options: dict[str, Any]) -> list[str]:
        args = ["metadata:local:package:create", "--root", cwd]
        _option(args, "--output-path", options.get("output_path"))
        _option(args, "--create-type", options.get("create_type"))
        _option(args, "--create-from", options.get("create_from"))
        _option(args, "--source", options.get("source"))
        _option(args, "--target", options.get("target"))
        _option(args, "--delete-order", options.get("delete_order"))
        if options.get("use_ignore"):
            args.append("--use-ignore")
            _option(args, "--ignore-file", options.get("ignore_file"))
        _flag(args, "--explicit", options.get("explicit"))
        _option(args, "--api-version", options.get("api_version"))
        return args

    def _ignore_args(self, cwd: str, options: dict[str, Any]) -> list[str]:
        args = ["metadata:local:ignore", "--root", cwd]
        _types_option(args, options.get("types"))
        _option(args, "--ignore-file", options.get("ignore_file"))
        _xml_options(args, options)
        return args

    def _repair_dependencies_args(self, cwd: str, options: dict[str, Any]) -> list[str]:
        args = ["metadata:local:repair", "--root", cwd]
        _types_option(args, options.get("types"))
        _flag(args, "--only-check", options.get("only_check"))
        if options.get("use_ignore"):
            args.append("--use-ignore")
            _option(args, "--ignore-file", options.get("ignore_file"))
        _xml_options(args, options)
        return args
