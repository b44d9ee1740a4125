"""Client for the Perforce (``p4``) command-line tool.

Wraps ``p4`` commands using :class:`~p4cmd.runners.command.CommandRunner`
and returns typed entities inside a
:class:`~p4cmd.p4.outcome.CommandOutcome`. Every command runs with
``-ztag`` so that its output can be decoded record by record.
"""

from __future__ import annotations

from collections.abc import Callable, Iterable, Sequence
from typing import TypeVar

from p4cmd.config import P4Config
from p4cmd.exceptions import (
    IOFailureError,
    SchemaViolationError,
    TaggedParseError,
    ToolNotFoundError,
)
from p4cmd.logging import get_logger
from p4cmd.p4 import commands
from p4cmd.p4.classify import classify, diagnostic_lines
from p4cmd.p4.decoder import (
    CHANGELIST,
    CLIENT_SPEC,
    DEPOT_DIR,
    DEPOT_FILE,
    FILE_STAT,
    SYNCED_FILE,
    USER,
    WHERE_MAPPING,
    EntitySchema,
    decode_all,
    decode_submit,
)
from p4cmd.p4.models import (
    Changelist,
    ChangelistStatus,
    ClientSpec,
    DepotDir,
    DepotFile,
    FileStat,
    PrintedFile,
    SubmitResult,
    SyncedFile,
    User,
    WhereMapping,
)
from p4cmd.p4.outcome import CommandOutcome
from p4cmd.p4.printed import parse_print
from p4cmd.runners.command import CommandRunner
from p4cmd.runners.models import Invocation
from p4cmd.tagged import tokenize

__all__ = ["P4Client"]

logger = get_logger(__name__)

T = TypeVar("T")


class P4Client:
    """Typed wrapper around the ``p4`` CLI.

    Each operation builds an invocation, runs it, classifies the exit
    status and decodes the tagged output. Failures of the tool are
    returned as ``CommandOutcome.failed`` rather than raised; only caller
    mistakes (invalid arguments, a missing working directory) raise.

    Args:
        config: Connection settings. Loaded from the environment and
            config files if not provided.
        runner: Optional pre-configured CommandRunner. Created from
            ``config`` if not provided.

    Example:
        ```python
        client = P4Client(P4Config(port="perforce:1666", user="alice"))
        outcome = client.changes("//depot/main/...", max_results=5)
        for change in outcome.unwrap():
            print(change.number, change.user, change.description)
        ```
    """

    def __init__(
        self,
        config: P4Config | None = None,
        runner: CommandRunner | None = None,
    ) -> None:
        self._config = config or P4Config()
        self._runner = runner or CommandRunner(
            self._config.executable,
            global_args=self._config.global_args(),
            cwd=self._config.cwd,
            env=self._config.env,
            encoding=self._config.encoding,
        )

    @property
    def config(self) -> P4Config:
        """Settings this client was built from."""
        return self._config

    @property
    def runner(self) -> CommandRunner:
        """Runner executing the commands."""
        return self._runner

    # =====================================================================
    # Internal helpers
    # =====================================================================

    def _execute(
        self,
        invocation: Invocation,
        parse: Callable[[bytes], Sequence[T]],
    ) -> CommandOutcome[T]:
        """Run an invocation and parse its stdout into items.

        Args:
            invocation: What to run.
            parse: Turns the raw stdout into entities.

        Returns:
            The items, or the error that stopped the command.

        Raises:
            WorkingDirectoryError: If the working directory does not exist.
        """
        subcommand = invocation.subcommand
        try:
            result = self._runner.run(invocation)
        except (ToolNotFoundError, IOFailureError) as e:
            logger.warning("p4_command_error", subcommand=subcommand, error=e.message)
            return CommandOutcome.failed(e)

        error = classify(result, subcommand=subcommand, encoding=self._config.encoding)
        if error is not None:
            logger.info(
                "p4_command_failed",
                subcommand=subcommand,
                code=error.code,
                error=error.message,
            )
            return CommandOutcome.failed(error)

        messages = diagnostic_lines(result, encoding=self._config.encoding)
        for message in messages:
            logger.warning("p4_command_warning", subcommand=subcommand, message=message)

        try:
            items = parse(result.stdout)
        except (TaggedParseError, SchemaViolationError) as e:
            if e.command is None:
                e.command = subcommand
            logger.warning(
                "p4_output_invalid",
                subcommand=subcommand,
                error_type=type(e).__name__,
                error=e.message,
            )
            return CommandOutcome.failed(e)
        return CommandOutcome.ok(items, messages)

    def _text(self, data: bytes) -> str:
        return data.decode(self._config.encoding, errors="replace")

    def _query(self, invocation: Invocation, schema: EntitySchema) -> CommandOutcome:
        """Run a command whose records all decode with one schema."""
        skip_invalid = self._config.skip_invalid_records
        return self._execute(
            invocation,
            lambda data: decode_all(
                tokenize(self._text(data)), schema, skip_invalid=skip_invalid
            ),
        )

    # =====================================================================
    # Lifecycle
    # =====================================================================

    def verify_available(self) -> bool:
        """Check if ``p4`` can be launched.

        Returns:
            True if ``p4 -V`` succeeds. No server connection is made.
        """
        try:
            result = self._runner.run(Invocation("-V"))
        except (ToolNotFoundError, IOFailureError) as e:
            logger.warning("p4_not_available", error=e.message)
            return False
        if result.success:
            version = result.stdout_text(self._config.encoding).strip().splitlines()
            logger.debug("p4_available", version=version[-1] if version else "")
            return True
        logger.warning(
            "p4_not_available",
            stderr=result.stderr_text(self._config.encoding).strip(),
        )
        return False

    # =====================================================================
    # Changelists
    # =====================================================================

    def changes(
        self,
        files: str | Iterable[str] = (),
        *,
        status: ChangelistStatus | str | None = None,
        user: str | None = None,
        client: str | None = None,
        max_results: int | None = None,
        long_output: bool = True,
        follow_integrations: bool = False,
    ) -> CommandOutcome[Changelist]:
        """List changelists, most recent first (``p4 changes``)."""
        invocation = commands.changes_args(
            files,
            status=status,
            user=user,
            client=client,
            max_results=max_results,
            long_output=long_output,
            follow_integrations=follow_integrations,
        )
        return self._query(invocation, CHANGELIST)

    def describe(self, change: int, *, shelved: bool = False) -> CommandOutcome[Changelist]:
        """Describe one changelist with its files and jobs (``p4 describe -s``).

        Args:
            change: Changelist number.
            shelved: Describe the shelved files instead of the submitted or
                opened ones.

        Returns:
            Outcome holding a single :class:`Changelist`.
        """
        return self._query(commands.describe_args(change, shelved=shelved), CHANGELIST)

    def submit(
        self,
        *,
        description: str | None = None,
        change: int | None = None,
        files: str | Iterable[str] = (),
    ) -> CommandOutcome[SubmitResult]:
        """Submit the default changelist or a numbered one (``p4 submit``).

        Returns:
            Outcome holding a single :class:`SubmitResult`.
        """
        invocation = commands.submit_args(
            description=description, change=change, files=files
        )
        outcome = self._execute(
            invocation, lambda data: (decode_submit(tokenize(self._text(data))),)
        )
        if outcome.success:
            result = outcome.items[0]
            logger.info(
                "p4_submitted",
                change=result.change,
                submitted_change=result.submitted_change,
                files=len(result.files),
            )
        return outcome

    # =====================================================================
    # Files
    # =====================================================================

    def fstat(
        self, files: str | Iterable[str], *, max_results: int | None = None
    ) -> CommandOutcome[FileStat]:
        """Status of files in the depot and the workspace (``p4 fstat``)."""
        return self._query(
            commands.fstat_args(files, max_results=max_results), FILE_STAT
        )

    def files(
        self,
        files: str | Iterable[str],
        *,
        all_revisions: bool = False,
        syncable_only: bool = False,
        ignore_case: bool = False,
        max_results: int | None = None,
    ) -> CommandOutcome[DepotFile]:
        """List depot file revisions (``p4 files``)."""
        invocation = commands.files_args(
            files,
            all_revisions=all_revisions,
            syncable_only=syncable_only,
            ignore_case=ignore_case,
            max_results=max_results,
        )
        return self._query(invocation, DEPOT_FILE)

    def dirs(
        self,
        dirs: str | Iterable[str],
        *,
        client_only: bool = False,
        stream: str | None = None,
        include_deleted: bool = False,
        include_synced: bool = False,
        ignore_case: bool = False,
    ) -> CommandOutcome[DepotDir]:
        """List depot subdirectories (``p4 dirs``)."""
        invocation = commands.dirs_args(
            dirs,
            client_only=client_only,
            stream=stream,
            include_deleted=include_deleted,
            include_synced=include_synced,
            ignore_case=ignore_case,
        )
        return self._query(invocation, DEPOT_DIR)

    def where(self, files: str | Iterable[str] = ()) -> CommandOutcome[WhereMapping]:
        """Show how files map through the client view (``p4 where``)."""
        return self._query(commands.where_args(files), WHERE_MAPPING)

    def print(
        self,
        files: str | Iterable[str],
        *,
        all_revisions: bool = False,
        keyword_expansion: bool = True,
        max_files: int | None = None,
    ) -> CommandOutcome[PrintedFile]:
        """Retrieve depot file contents without syncing (``p4 print``).

        By default the head revision is printed; a revision specifier or
        range in ``files`` selects others.

        Returns:
            Outcome holding one :class:`PrintedFile` per printed revision,
            content as raw bytes.
        """
        invocation = commands.print_args(
            files,
            all_revisions=all_revisions,
            keyword_expansion=keyword_expansion,
            max_files=max_files,
        )
        skip_invalid = self._config.skip_invalid_records
        return self._execute(
            invocation,
            lambda data: parse_print(
                data, encoding=self._config.encoding, skip_invalid=skip_invalid
            ),
        )

    def sync(
        self,
        files: str | Iterable[str] = (),
        *,
        force: bool = False,
        preview: bool = False,
        server_only: bool = False,
        client_only: bool = False,
        verify: bool = False,
        max_files: int | None = None,
        parallel: int | None = None,
    ) -> CommandOutcome[SyncedFile]:
        """Synchronize the workspace with the depot (``p4 sync``).

        "File(s) up-to-date." is reported on stderr with exit status 0 and
        ends up in ``messages`` of an empty successful outcome.
        """
        invocation = commands.sync_args(
            files,
            force=force,
            preview=preview,
            server_only=server_only,
            client_only=client_only,
            verify=verify,
            max_files=max_files,
            parallel=parallel,
        )
        outcome = self._query(invocation, SYNCED_FILE)
        if outcome.success:
            logger.info("p4_synced", files=len(outcome.items), preview=preview)
        return outcome

    # =====================================================================
    # Workspaces and users
    # =====================================================================

    def client_spec(self, name: str | None = None) -> CommandOutcome[ClientSpec]:
        """Read a client workspace spec (``p4 client -o``).

        Args:
            name: Workspace name. Defaults to the current client.
        """
        return self._query(commands.client_read_args(name), CLIENT_SPEC)

    def save_client(self, spec: ClientSpec) -> CommandOutcome[str]:
        """Create or update a client workspace (``p4 client -i``).

        Returns:
            Outcome holding the lines p4 printed, e.g.
            ``"Client alice-main saved."``.
        """
        outcome = self._execute(
            commands.client_write_args(spec),
            lambda data: tuple(
                line.strip() for line in self._text(data).splitlines() if line.strip()
            ),
        )
        if outcome.success:
            logger.info("p4_client_saved", client=spec.name)
        return outcome

    def clients(
        self,
        *,
        user: str | None = None,
        name_filter: str | None = None,
        max_results: int | None = None,
    ) -> CommandOutcome[ClientSpec]:
        """List client workspaces (``p4 clients``)."""
        invocation = commands.clients_args(
            user=user, name_filter=name_filter, max_results=max_results
        )
        return self._query(invocation, CLIENT_SPEC)

    def users(
        self, users: str | Iterable[str] = (), *, max_results: int | None = None
    ) -> CommandOutcome[User]:
        """List users (``p4 users``)."""
        return self._query(commands.users_args(users, max_results=max_results), USER)
