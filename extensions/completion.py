"""Shell completion for resolved commands."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Sequence

from .errors import UsageError
from .types import ResolvedCommandTable


@dataclass(frozen=True)
class CompletionSuggestion:
    text: str
    description: str | None = None
    kind: str = "command"  # "command", "option" or "value"


def _option_for_flag(source, flag: str):
    for option in source.descriptor.options:
        if flag == f"--{option.name}" or (option.short and flag == f"-{option.short}"):
            return option
    return None


def get_suggestions(
    table: ResolvedCommandTable, words: Sequence[str]
) -> list[CompletionSuggestion]:
    """Suggestions for the words typed so far (without the program name).

    - no words: top-level names
    - a namespace prefix: the names one level below it
    - an exact leaf: its options, or the suggestion list of the option
      named by the last word
    """
    words = [word for word in words if word not in ("--complete", "--")]

    # Split off option words typed after the command path
    path_words: list[str] = []
    for word in words:
        if word.startswith("-"):
            break
        path_words.append(word)
    path = tuple(path_words)

    if not words:
        return [CompletionSuggestion(name) for name in table.children(())]

    if len(path) == len(words) and table.is_namespace(path):
        suggestions = []
        for name in table.children(path):
            child = table.get(path + (name,))
            description = child.descriptor.description if child else None
            suggestions.append(CompletionSuggestion(name, description))
        return suggestions

    source = table.get(path)
    if source is None:
        return []

    if words[-1].startswith("-"):
        option = _option_for_flag(source, words[-1])
        if option is not None and option.suggestions:
            return [
                CompletionSuggestion(value, option.description, "value")
                for value in option.suggestions
            ]

    suggestions = []
    for option in source.descriptor.options:
        suggestions.append(CompletionSuggestion(f"--{option.name}", option.description, "option"))
        if option.short:
            suggestions.append(
                CompletionSuggestion(f"-{option.short}", option.description, "option")
            )
    return suggestions


_ZSH_COMPLETION = """\
#compdef rc

_rc() {
    local -a suggestions
    suggestions=(${(f)"$(rc --complete -- ${words[2,CURRENT-1]})"})
    compadd -a suggestions
}

compdef _rc rc
"""

_BASH_COMPLETION = """\
_rc_completion() {
    local cur opts
    COMPREPLY=()
    cur="${COMP_WORDS[COMP_CWORD]}"
    opts=$(rc --complete -- "${COMP_WORDS[@]:1:COMP_CWORD-1}")
    COMPREPLY=( $(compgen -W "$opts" -- "$cur") )
}

complete -F _rc_completion rc
"""

_FISH_COMPLETION = """\
function __fish_rc_complete
    set -l cmd (commandline -opc)
    rc --complete -- $cmd[2..-1]
end

complete -c rc -f -a "(__fish_rc_complete)"
"""

COMPLETION_SCRIPTS = {
    "bash": _BASH_COMPLETION,
    "zsh": _ZSH_COMPLETION,
    "fish": _FISH_COMPLETION,
}


def generate_completion_script(shell: str) -> str:
    """Completion script for ``shell`` (bash, zsh or fish).

    Raises:
        UsageError: If the shell is not supported
    """
    script = COMPLETION_SCRIPTS.get(shell.lower())
    if script is None:
        raise UsageError(
            f"Unsupported shell: {shell}. Supported: {', '.join(sorted(COMPLETION_SCRIPTS))}"
        )
    return script
