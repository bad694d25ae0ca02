"""Main entry point for rc."""

import argparse
import asyncio
import importlib.metadata
import logging
import os
import sys
from typing import Any, Sequence

from config import Config, ensure_config
from extensions import (
    CommandExecutor,
    ConfigurationError,
    ExecutionError,
    ExtensionLoader,
    ExtensionSource,
    OptionType,
    ResolvedCommandTable,
    UsageError,
    WrapperSynthesizer,
    match_command,
)
from extensions.completion import generate_completion_script, get_suggestions
from extensions.executor import declared_flags, strip_global_flags
from extensions.types import CommandPath, format_path
from extensions.wrapper import aliasable_namespaces
from utils import get_log_file_path, get_logger, setup_logger, terminal_ui
from utils.runtime import ensure_runtime_dirs, get_all_dirs

logger = get_logger(__name__)

BUILTIN_COMMANDS = {
    "help": "Show every available command",
    "conflicts": "List extensions that override each other",
    "completion": "Print a shell completion script (bash, zsh, fish)",
    "alias": "Create a direct symlink alias for a command",
    "wrap": "Generate wrapper scripts for aliasable namespaces",
    "config": "Show configuration, or write a default file with --init",
}

# Spellings that turn on verbose logging after the command path; `-v` may belong to the command
VERBOSE_WORDS = ("--verbose", "--debug")


def _version() -> str:
    try:
        return importlib.metadata.version("rc-cli")
    except importlib.metadata.PackageNotFoundError:
        return "dev"


def _is_rc_program(name: str) -> bool:
    return name in ("rc", "rc.exe") or name.endswith(".py")


def _parse_number(value: str):
    try:
        number = float(value)
    except ValueError:
        raise argparse.ArgumentTypeError(f"invalid number: {value!r}") from None
    return int(number) if number.is_integer() else number


def build_parser() -> argparse.ArgumentParser:
    """Parser for the global flags; everything from the first word on is kept verbatim."""
    parser = argparse.ArgumentParser(
        prog="rc",
        description="Run your scripts as commands, grouped by directory",
        epilog="Built-in commands: "
        + ", ".join(BUILTIN_COMMANDS)
        + ". Run `rc help` to list extensions.",
    )
    parser.add_argument("--version", "-V", action="version", version=f"rc {_version()}")
    parser.add_argument(
        "--verbose",
        "-v",
        action="store_true",
        help="Enable verbose logging to the console and the rc log directory",
    )
    parser.add_argument("--debug", action="store_true", help="Same as --verbose")
    parser.add_argument("--complete", action="store_true", help=argparse.SUPPRESS)
    parser.add_argument("words", nargs=argparse.REMAINDER, help="Command path and arguments")
    return parser


def build_command_parser(
    source: ExtensionSource, invoked_path: CommandPath
) -> argparse.ArgumentParser:
    """Parser for one extension's declared options.

    Args:
        source: Resolved table entry
        invoked_path: Command path as typed (used in usage messages)
    """
    parser = argparse.ArgumentParser(
        prog=f"rc {format_path(invoked_path)}",
        description=source.descriptor.description,
        conflict_handler="resolve",
        allow_abbrev=False,
    )
    for option in source.descriptor.options:
        flags = [f"--{option.name}"]
        if option.short:
            flags.append(f"-{option.short}")
        kwargs: dict[str, Any] = {
            "dest": option.name,
            "help": option.description,
            "default": option.default,
        }
        if option.type is OptionType.BOOLEAN:
            kwargs["action"] = argparse.BooleanOptionalAction if option.default else "store_true"
        else:
            kwargs["type"] = _parse_number if option.type is OptionType.NUMBER else str
            kwargs["required"] = option.required and option.default is None
            if option.suggestions:
                kwargs["metavar"] = "{" + ",".join(option.suggestions) + "}"
        parser.add_argument(*flags, **kwargs)
    return parser


def parse_command_options(
    source: ExtensionSource, invoked_path: CommandPath, args: Sequence[str]
) -> tuple[dict[str, Any], list[str]]:
    """Read declared option values out of ``args``.

    Returns the options map and the arguments for the script: every token
    of ``args`` except rc's global flags, declared options included.

    Raises:
        SystemExit: With status 2 on a malformed or missing required option
    """
    script_args = strip_global_flags(args, declared_flags(source))
    parser = build_command_parser(source, invoked_path)
    namespace, _ = parser.parse_known_args(script_args)
    options = {
        option.name: getattr(namespace, option.name) for option in source.descriptor.options
    }
    return options, script_args


def _setup_logging(verbose: bool) -> None:
    if verbose:
        ensure_runtime_dirs(create_logs=True)
        setup_logger(log_to_console=True, console_level=logging.DEBUG)
    elif Config.ENABLE_LOGGING:
        setup_logger(log_to_file=False, log_to_console=True, console_level=logging.WARNING)
    for message in Config.DEPRECATIONS:
        logger.warning(message)


def _run_command(
    source: ExtensionSource, invoked_path: CommandPath, args: Sequence[str]
) -> int:
    options, script_args = parse_command_options(source, invoked_path, args)
    logger.debug(f"Options for {format_path(invoked_path)}: {options}, args: {script_args}")
    return asyncio.run(CommandExecutor().execute(source, options, script_args, invoked_path))


def _dispatch_extension(table: ResolvedCommandTable, words: list[str]) -> int:
    source, consumed = match_command(table, words)
    if source is not None and not source.descriptor.is_virtual:
        return _run_command(source, tuple(words[:consumed]), words[consumed:])

    namespace = tuple(words[:consumed])
    rest = words[consumed:]
    if consumed and (not rest or rest[0] in ("-h", "--help")):
        terminal_ui.print_namespace_help(table, namespace)
        return 0
    if consumed:
        raise UsageError(
            f"Unknown command 'rc {format_path(namespace + (rest[0],))}'. "
            f"Run `rc {format_path(namespace)}` to list its subcommands."
        )
    raise UsageError(f"Unknown command '{words[0]}'. Run `rc help` to list available commands.")


def _dispatch_program_alias(table: ResolvedCommandTable, name: str, args: list[str]) -> int:
    """Run the single command whose last segment is ``name`` (rc invoked via a symlink)."""
    matches = [source for source in table.ending_with(name) if not source.descriptor.is_virtual]
    if not matches:
        raise UsageError(f"No command ending with '{name}' found")
    if len(matches) > 1:
        listing = "\n".join(f"  rc {format_path(source.path)}" for source in matches)
        raise UsageError(
            f"Multiple commands end with '{name}':\n{listing}\n"
            "Be more specific or use the full rc command."
        )
    source = matches[0]
    return _run_command(source, source.path, args)


def _run_help(table: ResolvedCommandTable) -> int:
    terminal_ui.print_header("Available Commands", f"{len(table)} commands from extensions")
    terminal_ui.print_command_table(table)
    terminal_ui.console.print()
    terminal_ui.print_command_tree(table)
    terminal_ui.console.print()
    terminal_ui.print_config({f"rc {name}": text for name, text in BUILTIN_COMMANDS.items()})
    return 0


def _run_completion(args: list[str]) -> int:
    parser = argparse.ArgumentParser(prog="rc completion")
    parser.add_argument("shell", help="Shell type (bash, zsh, fish)")
    parsed = parser.parse_args(args)
    print(generate_completion_script(parsed.shell))
    return 0


def _run_alias(table: ResolvedCommandTable, args: list[str], self_binary: str) -> int:
    parser = argparse.ArgumentParser(prog="rc alias")
    parser.add_argument("command", nargs="+", help="Command path to alias, e.g. `gen uuid`")
    path = tuple(parser.parse_args(args).command)

    source = table.get(path)
    if source is None:
        available = ", ".join(format_path(p) for p in table.paths()[:5])
        raise UsageError(f"Command 'rc {format_path(path)}' not found. Available: {available}")
    if source.descriptor.is_virtual or table.is_namespace(path):
        raise UsageError(
            f"Cannot alias command group 'rc {format_path(path)}'. "
            "Alias one of its subcommands instead."
        )

    alias_name = path[-1]
    alias_path = os.path.join(os.path.dirname(self_binary), alias_name)
    if os.path.lexists(alias_path):
        terminal_ui.print_info(f"Alias '{alias_name}' already exists: {alias_path}")
        terminal_ui.console.print(f"  Remove it first with: rm {alias_path}")
        return 0

    try:
        os.symlink(self_binary, alias_path)
    except OSError as e:
        raise UsageError(f"Failed to create alias '{alias_name}': {e}") from e
    terminal_ui.print_success(f"Created alias: {alias_name} -> {alias_path}")
    terminal_ui.console.print(f"  '{alias_name}' now runs 'rc {format_path(path)}'")
    return 0


def _on_path(directory: str) -> bool:
    target = os.path.realpath(directory)
    for entry in os.environ.get("PATH", "").split(os.pathsep):
        if entry and os.path.realpath(entry) == target:
            return True
    return False


async def _synthesize_wrappers(
    table: ResolvedCommandTable, namespaces: list[CommandPath], self_binary: str
) -> None:
    synthesizer = WrapperSynthesizer(Config.WRAPPERS_DIR)
    for namespace in namespaces:
        artifact = await synthesizer.synthesize(namespace, table, self_binary)
        terminal_ui.print_success(
            f"Wrote {artifact.script_path} ({', '.join(artifact.subcommands)})"
        )
        target = synthesizer.pass_through_target(artifact)
        if target:
            terminal_ui.print_info(f"Other '{artifact.name}' subcommands pass through to {target}")
        else:
            terminal_ui.print_warning(
                f"No system '{artifact.name}' found on PATH; unknown subcommands will fail"
            )


def _run_wrap(table: ResolvedCommandTable, args: list[str], self_binary: str) -> int:
    parser = argparse.ArgumentParser(prog="rc wrap")
    parser.add_argument("namespace", nargs="*", help="Namespace to wrap (default: all aliasable)")
    parser.add_argument("--list", action="store_true", help="List aliasable namespaces")
    parsed = parser.parse_args(args)

    if parsed.list:
        terminal_ui.print_wrap_candidates(
            table, aliasable_namespaces(table), Config.WRAPPERS_DIR
        )
        return 0

    if parsed.namespace:
        namespaces = [tuple(parsed.namespace)]
    else:
        namespaces = aliasable_namespaces(table)
        if not namespaces:
            terminal_ui.print_info("No namespace is marked aliasable; nothing to wrap")
            return 0

    asyncio.run(_synthesize_wrappers(table, namespaces, self_binary))
    if not _on_path(Config.WRAPPERS_DIR):
        terminal_ui.print_warning(
            f"{Config.WRAPPERS_DIR} is not on your PATH. Add it before the system "
            "directories so the wrappers take effect."
        )
    return 0


def _run_config(args: list[str]) -> int:
    parser = argparse.ArgumentParser(prog="rc config")
    parser.add_argument("--init", action="store_true", help="Write a default config file")
    parsed = parser.parse_args(args)

    if parsed.init:
        if ensure_config():
            terminal_ui.print_success(f"Wrote default configuration to {Config.CONFIG_FILE}")
        else:
            terminal_ui.print_info(f"Configuration already exists: {Config.CONFIG_FILE}")
        return 0

    terminal_ui.print_header("rc Configuration", Config.CONFIG_FILE)
    terminal_ui.print_config(
        {
            "Extension directories": Config.EXTENSIONS_DIRS,
            "Wrappers directory": Config.WRAPPERS_DIR,
            "Theme": Config.THEME,
            "Console warnings": Config.ENABLE_LOGGING,
            "Log level": Config.LOG_LEVEL,
        }
    )
    terminal_ui.print_config(get_all_dirs())
    return 0


def _dispatch(words: list[str], self_binary: str) -> int:
    loader = ExtensionLoader()
    if not words:
        table = loader.load()
        terminal_ui.print_header("rc", "Run `rc help` for every command and its source")
        terminal_ui.print_command_tree(table)
        return 0

    name, rest = words[0], words[1:]
    if name == "config":
        return _run_config(rest)
    if name == "completion":
        return _run_completion(rest)

    table = loader.load()
    if name == "help":
        return _run_help(table)
    if name == "conflicts":
        terminal_ui.print_conflicts(table.conflicts)
        return 0
    if name == "alias":
        return _run_alias(table, rest, self_binary)
    if name == "wrap":
        return _run_wrap(table, rest, self_binary)
    return _dispatch_extension(table, words)


def main(argv: Sequence[str] | None = None, prog_name: str | None = None) -> int:
    """Main CLI entry point.

    Args:
        argv: Arguments without the program name (default: sys.argv[1:])
        prog_name: Name rc was invoked as (default: basename of sys.argv[0]
                   when argv is not given, otherwise "rc")

    Returns:
        Process exit status
    """
    if argv is None:
        argv = sys.argv[1:]
        if prog_name is None:
            prog_name = os.path.basename(sys.argv[0])
    argv = list(argv)
    prog_name = prog_name or "rc"
    self_binary = os.path.abspath(sys.argv[0])

    if not _is_rc_program(prog_name):
        _setup_logging(verbose=any(arg in VERBOSE_WORDS for arg in argv))
        try:
            table = ExtensionLoader().load()
            return _dispatch_program_alias(table, prog_name, argv)
        except UsageError as e:
            terminal_ui.print_error(str(e), title="Usage Error")
            return 2
        except ExecutionError as e:
            return _report_execution_error(e)
        except KeyboardInterrupt:
            return 130

    args = build_parser().parse_args(argv)

    # Completion output must stay machine-readable: no logging, no styling
    if args.complete:
        table = ExtensionLoader().load()
        for suggestion in get_suggestions(table, args.words):
            print(suggestion.text)
        return 0

    verbose = args.verbose or args.debug or any(word in VERBOSE_WORDS for word in args.words)
    _setup_logging(verbose)

    try:
        Config.validate()
    except ValueError as e:
        terminal_ui.print_error(str(e), title="Configuration Error")
        return 1

    try:
        return _dispatch(list(args.words), self_binary)
    except UsageError as e:
        terminal_ui.print_error(str(e), title="Usage Error")
        return 2
    except ConfigurationError as e:
        terminal_ui.print_error(str(e), title="Configuration Error")
        return 1
    except ExecutionError as e:
        return _report_execution_error(e)
    except KeyboardInterrupt:
        return 130
    finally:
        log_file = get_log_file_path()
        if verbose and log_file:
            terminal_ui.print_log_location(log_file)


def _report_execution_error(error: ExecutionError) -> int:
    if error.os_error is not None:
        terminal_ui.print_error(str(error), title="Execution Error")
    else:
        # The script has already reported its own failure
        logger.info(str(error))
    return error.exit_status


if __name__ == "__main__":
    sys.exit(main())
