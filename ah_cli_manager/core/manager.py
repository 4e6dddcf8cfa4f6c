"""
The CLI Manager: configures, runs and tracks Aura Helper CLI processes.
"""

import logging
import time
from contextlib import contextmanager
from pathlib import Path
from typing import Any, Callable, Iterator

from pydantic import ValidationError as PydanticValidationError

from ah_cli_manager.exceptions import (
    DataNotFoundError,
    OperationInProgressError,
    OperationNotSupportedError,
    ProcessError,
    ToolNotInstalledError,
    ValidationError,
    WrongDatatypeError,
)
from ah_cli_manager.models.config import CREATE_TYPES, DELETE_ORDERS, ManagerConfig
from ah_cli_manager.models.metadata import MetadataType, deserialize_metadata_types
from ah_cli_manager.models.results import (
    CLIProgress,
    CLIResponse,
    DependenciesCheckResponse,
    PackageGeneratorResult,
    RetrieveResult,
)
from ah_cli_manager.process.factory import OperationKind, ProcessFactory
from ah_cli_manager.process.handler import run_process
from ah_cli_manager.utils.formatting import force_list, strip_version_prefix
from ah_cli_manager.utils.structured_logger import create_structured_logger
from ah_cli_manager.utils.validator import is_file, validate_file_path, validate_folder_path

from .events import EventChannel, ManagerEvent
from .responses import ToolOutcome, handle_response
from .state import (
    ManagerState,
    add_process,
    discard_process,
    end_operation,
    kill_processes,
    start_operation,
)
from .transformer import transform_types_to_cli_input

log = logging.getLogger(__name__)

MetadataSelection = str | list[str] | dict[str, MetadataType | dict] | None


def _result_of(value: Any) -> Any:
    """The `result` of a CLIResponse, or the pass-through value itself."""
    if isinstance(value, CLIResponse):
        return value.result
    return value


def _require_text(value: Any, label: str) -> str:
    if not isinstance(value, str) or not value.strip():
        raise WrongDatatypeError(f"{label} must be a non-empty string, got {value!r}")
    return value


def _check_choice(value: str | None, choices: tuple[str, ...], label: str) -> str | None:
    if value is not None and value not in choices:
        raise ValidationError(f"{label} must be one of: {', '.join(choices)}. Got {value!r}")
    return value


class CLIManager:
    """
    Runs Aura Helper CLI operations and reports their progress.

    The setters return the manager so it can be configured fluently:

        manager = CLIManager("./project").set_api_version(58).set_compress_files(True)
        manager.on_progress(lambda progress: print(progress.message))
        types = await manager.describe_local_metadata(["CustomObject"])

    Only one operation may run at a time unless `set_allow_concurrence(True)`
    is used. Every operation is a coroutine that returns its result or raises.
    """

    def __init__(
        self,
        project_folder: str | Path | None = None,
        api_version: str | int | float | None = None,
        namespace_prefix: str | None = None,
        *,
        config: ManagerConfig | None = None,
        process_factory: ProcessFactory | None = None,
        log_dir: Path | None = None,
    ):
        if config is None:
            config = self._build_config(
                project_folder=project_folder,
                api_version=api_version,
                namespace_prefix=namespace_prefix,
            )
        self.config = config
        self._factory = process_factory or ProcessFactory()
        self._state = ManagerState()
        self._events = EventChannel()
        self._logger, self._operation_log, self._process_log = create_structured_logger(
            log_dir, enable_json=log_dir is not None
        )
        self._logger.set_session_context(manager_id=id(self))

    @classmethod
    def from_config(cls, config: ManagerConfig, **kwargs) -> "CLIManager":
        """Creates a manager from an already validated configuration."""
        return cls(config=config.model_copy(), **kwargs)

    @staticmethod
    def _build_config(**values) -> ManagerConfig:
        try:
            return ManagerConfig(**values)
        except PydanticValidationError as e:
            raise WrongDatatypeError(f"Invalid manager settings:\n{e}") from e

    def __repr__(self) -> str:
        return (
            f"CLIManager(project_folder={self.config.project_folder!r}, "
            f"api_version={self.config.api_version!r}, in_progress={self.in_progress})"
        )

    # --- Configuration (builder setters) ---

    def _set(self, **values: Any) -> "CLIManager":
        # The current config is kept untouched when the new values are rejected
        try:
            self.config = ManagerConfig.model_validate({**self.config.model_dump(), **values})
        except PydanticValidationError as e:
            raise WrongDatatypeError(f"Invalid manager setting:\n{e}") from e
        return self

    def set_project_folder(self, project_folder: str | Path | None) -> "CLIManager":
        """Sets the local project root folder. './' when None."""
        return self._set(project_folder=project_folder)

    def set_api_version(self, api_version: str | int | float | None) -> "CLIManager":
        return self._set(api_version=api_version)

    def set_namespace_prefix(self, namespace_prefix: str | None) -> "CLIManager":
        return self._set(namespace_prefix=namespace_prefix)

    def set_compress_files(self, compress_files: bool) -> "CLIManager":
        """Sets whether files written by the tool are compressed."""
        return self._set(compress_files=compress_files)

    def set_sort_order(self, sort_order: str | None) -> "CLIManager":
        """Sets the XML sort order used when compressing."""
        return self._set(sort_order=sort_order)

    def set_ignore_file(self, ignore_file: str | Path | None) -> "CLIManager":
        """Sets the ignore file. None reverts to `<project_folder>/.ahignore.json`."""
        return self._set(ignore_file=ignore_file)

    def set_output_path(self, output_path: str | Path | None) -> "CLIManager":
        """Sets the folder where generated files are written."""
        return self._set(output_path=output_path)

    def set_allow_concurrence(self, allow_concurrence: bool) -> "CLIManager":
        """Allows starting operations while another one is running."""
        return self._set(allow_concurrence=allow_concurrence)

    @property
    def project_folder(self) -> str:
        return self.config.project_folder

    @property
    def api_version(self) -> str | None:
        return self.config.api_version

    @property
    def namespace_prefix(self) -> str:
        return self.config.namespace_prefix

    @property
    def compress_files(self) -> bool:
        return self.config.compress_files

    @property
    def sort_order(self) -> str | None:
        return self.config.sort_order

    @property
    def ignore_file(self) -> str:
        return self.config.resolved_ignore_file

    @property
    def output_path(self) -> str | None:
        return self.config.output_path

    @property
    def in_progress(self) -> bool:
        return self._state.in_progress

    @property
    def aborted(self) -> bool:
        return self._state.aborted

    @property
    def active_processes(self) -> tuple[str, ...]:
        """Names of the processes currently registered."""
        return tuple(self._state.processes)

    # --- Events ---

    def on_progress(self, callback: Callable[[CLIProgress], Any]) -> "CLIManager":
        """Registers a callback for every progress payload of the running process."""
        self._events.on(ManagerEvent.PROGRESS, callback)
        return self

    def on_abort(self, callback: Callable[[], Any]) -> "CLIManager":
        """Registers a callback called after `abort_process()` killed the processes."""
        self._events.on(ManagerEvent.ABORT, callback)
        return self

    def remove_listener(self, event: ManagerEvent | str, callback: Callable) -> "CLIManager":
        self._events.off(ManagerEvent(event), callback)
        return self

    def abort_process(self) -> None:
        """
        Kills every running process and emits the abort event.

        Running operations are not settled here; they raise ProcessKilledError
        once their process is gone.
        """
        self._state.aborted = True
        killed = kill_processes(self._state)
        self._operation_log.operation_aborted(killed)
        self._events.emit(ManagerEvent.ABORT)

    def _emit_progress(self, progress: Any) -> None:
        self._events.emit(ManagerEvent.PROGRESS, progress)

    # --- Execution helpers ---

    @contextmanager
    def _operation(self, name: str) -> Iterator[None]:
        exclusive = not self.config.allow_concurrence
        try:
            start_operation(self._state, allow_concurrence=not exclusive)
        except OperationInProgressError as e:
            self._operation_log.operation_rejected(name, str(e))
            raise

        started = time.monotonic()
        self._operation_log.operation_started(name, self.config.project_folder)
        try:
            yield
        except BaseException as e:
            self._operation_log.operation_failed(name, e, time.monotonic() - started)
            raise
        else:
            self._operation_log.operation_completed(name, time.monotonic() - started)
        finally:
            if exclusive:
                end_operation(self._state)

    async def _run(
        self,
        kind: OperationKind,
        options: dict[str, Any] | None = None,
        in_project: bool = True,
        with_progress: bool = True,
    ) -> ToolOutcome:
        """Builds the process for `kind`, registers it and waits for its outcome."""
        cwd = validate_folder_path(self.config.project_folder) if in_project else None
        process = self._factory.create(
            kind,
            cwd,
            options or {},
            self._emit_progress if with_progress else None,
        )

        add_process(self._state, process)
        self._process_log.process_started(process.name, getattr(process, "command_line", None))
        started = time.monotonic()
        try:
            outcome = await run_process(process)
        except BaseException as e:
            self._process_log.process_failed(process.name, e)
            raise
        finally:
            discard_process(self._state, process)
        self._process_log.process_finished(
            process.name, outcome.kind.value, time.monotonic() - started
        )
        return outcome

    def _xml_options(self) -> dict[str, Any]:
        return {"compress": self.config.compress_files, "sort_order": self.config.sort_order}

    # --- Operations ---

    async def compress(
        self, files_or_folders: str | Path | list[str | Path], sort_order: str | None = None
    ) -> None:
        """
        Compresses (sorts and re-indents) XML files.

        Accepts one file, several files, or exactly one folder (compressed with
        its subfolders).

        Raises:
            DataNotFoundError: If no path was given.
            OperationNotSupportedError: If files and folders are mixed, or more
                than one folder is given.
            PathValidationError: If a path does not exist.
        """
        with self._operation("compress"):
            files: list[str] = []
            folders: list[str] = []
            for path in force_list(files_or_folders):
                if is_file(path):
                    files.append(validate_file_path(path))
                else:
                    folders.append(validate_folder_path(path))

            if not files and not folders:
                raise DataNotFoundError("Not files or folders selected to compress")
            if files and folders:
                raise OperationNotSupportedError(
                    "Can't compress files and folders at the same time. "
                    "Please, add only folders or files to compress"
                )
            if len(folders) > 1:
                raise OperationNotSupportedError(
                    "Can't compress more than one folder at the same time."
                )

            sort_order = sort_order or self.config.sort_order
            if files:
                outcome = await self._run(
                    OperationKind.COMPRESS_FILE, {"files": files, "sort_order": sort_order}
                )
            else:
                outcome = await self._run(
                    OperationKind.COMPRESS_FOLDER,
                    {"folder": folders[0], "sort_order": sort_order},
                )
            handle_response(outcome)

    async def compare_with_org(self) -> dict[str, MetadataType]:
        """Returns the metadata that exists in the project org but not locally."""
        with self._operation("compare_with_org"):
            outcome = await self._run(
                OperationKind.ORG_COMPARE, {"api_version": self.config.api_version}
            )
            return deserialize_metadata_types(_result_of(handle_response(outcome)))

    async def compare_org_between(
        self, source_or_target: str, target: str | None = None
    ) -> dict[str, MetadataType]:
        """
        Returns the metadata that exists on `target` and not on `source`.

        With a single argument, the source is the project's own org and the
        argument is the target.
        """
        source: str | None = source_or_target
        if source and not target:
            target = source_or_target
            source = None
        with self._operation("compare_org_between"):
            _require_text(target, "Target org")
            outcome = await self._run(
                OperationKind.ORG_COMPARE_BETWEEN,
                {"source": source, "target": target, "api_version": self.config.api_version},
            )
            return deserialize_metadata_types(_result_of(handle_response(outcome)))

    async def describe_local_metadata(
        self, types: list[str] | None = None, group_global_actions: bool = False
    ) -> dict[str, MetadataType]:
        """Describes all (or the given) metadata types of the local project."""
        with self._operation("describe_local_metadata"):
            outcome = await self._run(
                OperationKind.DESCRIBE_METADATA,
                {
                    "from_org": False,
                    "types": transform_types_to_cli_input(types, only_types=True),
                    "api_version": self.config.api_version,
                    "group_global_actions": group_global_actions,
                },
            )
            return deserialize_metadata_types(_result_of(handle_response(outcome)))

    async def describe_org_metadata(
        self,
        types: list[str] | None = None,
        download_all: bool = False,
        group_global_actions: bool = False,
    ) -> dict[str, MetadataType]:
        """
        Describes all (or the given) metadata types of the project org.

        `download_all` includes the metadata of every namespace, not only the
        org's own.
        """
        with self._operation("describe_org_metadata"):
            outcome = await self._run(
                OperationKind.DESCRIBE_METADATA,
                {
                    "from_org": True,
                    "download_all": download_all,
                    "types": transform_types_to_cli_input(types, only_types=True),
                    "api_version": self.config.api_version,
                    "group_global_actions": group_global_actions,
                },
            )
            return deserialize_metadata_types(_result_of(handle_response(outcome)))

    async def _retrieve_special(
        self, name: str, types: MetadataSelection, options: dict[str, Any]
    ) -> RetrieveResult:
        with self._operation(name):
            outcome = await self._run(
                OperationKind.RETRIEVE_SPECIAL,
                {
                    "types": transform_types_to_cli_input(types),
                    "api_version": self.config.api_version,
                    **self._xml_options(),
                    **options,
                },
            )
            return RetrieveResult.model_validate(_result_of(handle_response(outcome)) or {})

    async def retrieve_local_special_metadata(
        self, types: MetadataSelection = None
    ) -> RetrieveResult:
        """Retrieves special types (profiles, permission sets...) from the local project."""
        return await self._retrieve_special(
            "retrieve_local_special_metadata", types, {"from_org": False}
        )

    async def retrieve_org_special_metadata(
        self, types: MetadataSelection = None, download_all: bool = False
    ) -> RetrieveResult:
        """Retrieves special types from the project org."""
        return await self._retrieve_special(
            "retrieve_org_special_metadata",
            types,
            {"from_org": True, "download_all": download_all},
        )

    async def retrieve_mixed_special_metadata(
        self, types: MetadataSelection = None, download_all: bool = False
    ) -> RetrieveResult:
        """Retrieves special types that exist locally, including their org data."""
        return await self._retrieve_special(
            "retrieve_mixed_special_metadata",
            types,
            {"from_org": False, "include_org": True, "download_all": download_all},
        )

    async def load_user_permissions(self) -> list[str]:
        """Returns the API names of every user permission available in the project org."""
        with self._operation("load_user_permissions"):
            outcome = await self._run(
                OperationKind.LOAD_PERMISSIONS, {"api_version": self.config.api_version}
            )
            return list(_result_of(handle_response(outcome)) or [])

    async def _create_package(self, options: dict[str, Any]) -> PackageGeneratorResult:
        _check_choice(options.get("create_type"), CREATE_TYPES, "Create type")
        _check_choice(options.get("delete_order"), DELETE_ORDERS, "Delete order")
        outcome = await self._run(
            OperationKind.PACKAGE_GENERATOR,
            {
                "output_path": self.config.output_path,
                "ignore_file": self.ignore_file,
                "api_version": self.config.api_version,
                **options,
            },
        )
        return PackageGeneratorResult.model_validate(_result_of(handle_response(outcome)) or {})

    async def create_package_from_git(
        self,
        source: str,
        target: str | None = None,
        create_type: str | None = None,
        delete_order: str | None = None,
        use_ignore: bool = False,
    ) -> PackageGeneratorResult:
        """Creates package/destructive files from the git changes between two refs."""
        with self._operation("create_package_from_git"):
            _require_text(source, "Source branch, tag or commit")
            return await self._create_package(
                {
                    "create_from": "git",
                    "create_type": create_type,
                    "source": source,
                    "target": target,
                    "delete_order": delete_order,
                    "use_ignore": use_ignore,
                    "explicit": True,
                },
            )

    async def create_package_from_json(
        self,
        source: str | Path,
        create_type: str | None = None,
        delete_order: str | None = None,
        use_ignore: bool = False,
        explicit: bool = True,
    ) -> PackageGeneratorResult:
        """Creates a package or destructive file from a Metadata JSON file."""
        with self._operation("create_package_from_json"):
            return await self._create_package(
                {
                    "create_from": "json",
                    "create_type": create_type,
                    "source": validate_file_path(source),
                    "delete_order": delete_order,
                    "use_ignore": use_ignore,
                    "explicit": explicit,
                },
            )

    async def create_package_from_other_packages(
        self,
        source: str | Path | list[str | Path],
        create_type: str | None = None,
        delete_order: str | None = None,
        use_ignore: bool = False,
    ) -> PackageGeneratorResult:
        """Merges existing package or destructive files into new ones."""
        with self._operation("create_package_from_other_packages"):
            paths = transform_types_to_cli_input(
                [str(path) if isinstance(path, Path) else path for path in force_list(source)],
                only_types=True,
            )
            if not paths:
                raise DataNotFoundError("Not package files selected to merge")
            return await self._create_package(
                {
                    "create_from": "package",
                    "create_type": create_type,
                    "source": ",".join(validate_file_path(path) for path in paths),
                    "delete_order": delete_order,
                    "use_ignore": use_ignore,
                    "explicit": True,
                },
            )

    async def ignore_metadata(self, types: list[str] | None = None) -> None:
        """Applies the ignore file to all (or the given) metadata types of the project."""
        with self._operation("ignore_metadata"):
            outcome = await self._run(
                OperationKind.IGNORE,
                {
                    "types": transform_types_to_cli_input(types, only_types=True),
                    "ignore_file": self.ignore_file,
                    **self._xml_options(),
                },
            )
            handle_response(outcome)

    async def repair_dependencies(
        self,
        types: MetadataSelection = None,
        only_check: bool = False,
        use_ignore: bool = False,
    ) -> dict[str, Any] | dict[str, list[DependenciesCheckResponse]] | None:
        """
        Repairs (or only checks) broken metadata dependencies of the project.

        Returns:
            The tool's repair report, or with `only_check` the errors found
            grouped by metadata type. None when the tool returned no result.
        """
        with self._operation("repair_dependencies"):
            outcome = await self._run(
                OperationKind.REPAIR_DEPENDENCIES,
                {
                    "types": transform_types_to_cli_input(types),
                    "use_ignore": use_ignore,
                    "only_check": only_check,
                    "ignore_file": self.ignore_file,
                    **self._xml_options(),
                },
            )
            result = _result_of(handle_response(outcome))
            if result is None:
                return None
            if only_check and isinstance(result, dict):
                return {
                    type_name: [
                        DependenciesCheckResponse.model_validate(error)
                        for error in force_list(errors)
                    ]
                    for type_name, errors in result.items()
                }
            return result

    async def is_cli_installed(self) -> bool:
        """True if Aura Helper CLI can be launched on this system."""
        with self._operation("is_cli_installed"):
            try:
                await self._run(OperationKind.IS_INSTALLED, in_project=False, with_progress=False)
            except (ToolNotInstalledError, ProcessError) as e:
                log.debug(f"Aura Helper CLI is not available: {e}")
                return False
            return True

    async def get_cli_version(self) -> str:
        """Returns the installed Aura Helper CLI version, e.g. '4.1.0'."""
        with self._operation("get_cli_version"):
            outcome = await self._run(OperationKind.VERSION, in_project=False, with_progress=False)
            value = handle_response(outcome)
            if isinstance(value, CLIResponse):
                value = value.result or value.message
            return strip_version_prefix(value)

    async def update_cli(self) -> Any:
        """Updates Aura Helper CLI with its own updater and returns its output."""
        with self._operation("update_cli"):
            outcome = await self._run(OperationKind.UPDATE, in_project=False, with_progress=False)
            return outcome.raw

    async def update_cli_with_npm(self) -> Any:
        """Updates Aura Helper CLI through npm and returns npm's output."""
        with self._operation("update_cli_with_npm"):
            outcome = await self._run(
                OperationKind.UPDATE_NPM, in_project=False, with_progress=False
            )
            return outcome.raw

    def close(self) -> None:
        """Closes the JSON event log, if one was opened."""
        self._logger.close()
