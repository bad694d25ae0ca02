"""Run a resolved extension as a child process."""

from __future__ import annotations

import asyncio
import contextlib
import json
import os
import re
import shlex
from typing import Any, Mapping, Sequence

from utils import get_logger

from .errors import ExecutionError, UsageError
from .types import CommandPath, ExecutionContext, ExtensionSource, ScriptType, format_path

logger = get_logger(__name__)

ENV_PREFIX = "RC_"

# Interpreter used when the sidecar does not name a runner
RUNNERS: dict[ScriptType, str] = {
    ScriptType.JS: "node",
    ScriptType.TS: "node",
    ScriptType.SH: "bash",
    ScriptType.PY: "python3",
    ScriptType.RB: "ruby",
    ScriptType.PHP: "php",
}

# Arguments some runners need before the script path
RUNNER_LEADING_ARGS: dict[str, tuple[str, ...]] = {
    "deno": ("run", "-A"),
    "bun": ("run",),
}

# Flags rc consumes itself; never forwarded to scripts
GLOBAL_FLAGS = frozenset({"--verbose", "-v", "--debug"})

_ENV_NAME_RE = re.compile(r"[^A-Za-z0-9]")


def option_env_name(name: str) -> str:
    """``dry-run`` -> ``RC_DRY_RUN``."""
    return ENV_PREFIX + _ENV_NAME_RE.sub("_", name).upper()


def format_env_value(value: Any) -> str:
    if isinstance(value, bool):
        return "true" if value else "false"
    return str(value)


def declared_flags(source: ExtensionSource) -> frozenset[str]:
    """Flags the command declares for its own options."""
    flags = set()
    for option in source.descriptor.options:
        flags.add(f"--{option.name}")
        if option.short:
            flags.add(f"-{option.short}")
    return frozenset(flags)


def strip_global_flags(args: Sequence[str], keep: frozenset[str] = frozenset()) -> list[str]:
    """Drop rc's global flags, except those listed in ``keep``."""
    stripped = GLOBAL_FLAGS - keep
    return [arg for arg in args if arg not in stripped]


def resolve_runner(source: ExtensionSource) -> list[str]:
    """Runner argv prefix (interpreter plus leading arguments).

    Raises:
        UsageError: If the source is a virtual namespace node
    """
    descriptor = source.descriptor
    if descriptor.is_virtual:
        raise UsageError(
            f"'{format_path(source.path)}' is a command group, not a command. "
            "Run one of its subcommands instead."
        )

    metadata = descriptor.metadata
    if metadata and metadata.runner:
        runner = shlex.split(metadata.runner)
    else:
        runner = [RUNNERS[descriptor.script_type]]

    if len(runner) == 1:
        leading = RUNNER_LEADING_ARGS.get(os.path.basename(runner[0]), ())
        runner.extend(leading)
    return runner


def build_environment(
    source: ExtensionSource,
    options: Mapping[str, Any],
    invoked_path: CommandPath | None = None,
) -> dict[str, str]:
    """Variables added on top of the parent environment.

    ``RC_COMMAND`` carries the path as typed, so an alias reports itself.
    """
    env = {
        "RC_COMMAND": format_path(invoked_path or source.path),
        "RC_SCRIPT_PATH": source.descriptor.script_path,
        "RC_SCRIPT_TYPE": source.descriptor.script_type.value,
    }
    for name, value in options.items():
        if value is None or value == "":
            continue
        env[option_env_name(name)] = format_env_value(value)
    return env


def build_arguments(
    source: ExtensionSource, runner: Sequence[str], args: Sequence[str]
) -> list[str]:
    return [
        *runner,
        source.descriptor.script_path,
        *strip_global_flags(args, declared_flags(source)),
    ]


class CommandExecutor:
    """Spawn extension scripts and report their outcome."""

    def __init__(self, base_env: Mapping[str, str] | None = None) -> None:
        """Initialize the executor.

        Args:
            base_env: Environment the overlay is applied to (default: os.environ)
        """
        self._base_env = base_env

    def prepare(
        self,
        source: ExtensionSource,
        options: Mapping[str, Any],
        args: Sequence[str] = (),
        invoked_path: CommandPath | None = None,
    ) -> tuple[list[str], ExecutionContext]:
        """Build the argv and execution context without spawning anything."""
        runner = resolve_runner(source)
        env = build_environment(source, options, invoked_path)
        context = ExecutionContext(
            command=env["RC_COMMAND"],
            options={k: v for k, v in options.items() if v is not None},
            args=strip_global_flags(args, declared_flags(source)),
            env=env,
        )
        return build_arguments(source, runner, args), context

    async def execute(
        self,
        source: ExtensionSource,
        options: Mapping[str, Any],
        args: Sequence[str] = (),
        invoked_path: CommandPath | None = None,
    ) -> int:
        """Run the script and wait for it.

        stdout/stderr are inherited. With passContext, the context JSON is
        written to stdin, which is then closed; otherwise stdin is inherited.

        Args:
            source: Resolved table entry
            options: Parsed option values by option name
            args: Residual command-line arguments for the script
            invoked_path: Path the user typed (differs from source.path for aliases)

        Returns:
            0 on success

        Raises:
            UsageError: If the source is a virtual node
            ExecutionError: If the process cannot be spawned or exits non-zero
        """
        argv, context = self.prepare(source, options, args, invoked_path)
        metadata = source.descriptor.metadata
        pass_context = bool(metadata and metadata.pass_context)

        logger.debug(f"Executing {context.command}: {argv}")
        logger.debug(f"Environment overlay: {json.dumps(context.env, indent=2)}")

        base_env = os.environ if self._base_env is None else self._base_env
        try:
            process = await asyncio.create_subprocess_exec(
                *argv,
                stdin=asyncio.subprocess.PIPE if pass_context else None,
                env={**base_env, **context.env},
            )
        except OSError as e:
            logger.debug(f"Spawn failed for {context.command}: {e}")
            raise ExecutionError(context.command, os_error=e) from e

        if pass_context and process.stdin is not None:
            payload = json.dumps(context.to_dict()).encode("utf-8")
            # A script that exits without reading its input is not an error
            with contextlib.suppress(BrokenPipeError, ConnectionResetError):
                process.stdin.write(payload)
                await process.stdin.drain()
            process.stdin.close()
            with contextlib.suppress(BrokenPipeError, ConnectionResetError):
                await process.stdin.wait_closed()

        returncode = await process.wait()
        logger.debug(f"Process for {context.command} exited with code {returncode}")
        if returncode != 0:
            raise ExecutionError(context.command, exit_code=returncode)
        return returncode
