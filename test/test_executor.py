"""Tests for command execution."""

import json

import pytest

from extensions.aliases import expand_aliases
from extensions.errors import ExecutionError, UsageError
from extensions.executor import (
    CommandExecutor,
    build_environment,
    format_env_value,
    option_env_name,
    resolve_runner,
)
from extensions.resolver import merge_roots
from extensions.types import (
    ExtensionSource,
    MetadataDocument,
    OptionDeclaration,
    OptionType,
    ScriptDescriptor,
    ScriptType,
)

CONTEXT_SCRIPT = """\
import json
import os
import sys

context = json.load(sys.stdin)
with open(sys.argv[1], "w") as f:
    json.dump({"context": context, "env": os.environ.get("RC_ENV")}, f)
"""


def _source(script_type=ScriptType.SH, runner=None, path=("t",)):
    metadata = MetadataDocument(runner=runner) if runner else None
    return ExtensionSource(
        path=path,
        descriptor=ScriptDescriptor(f"/x/{path[-1]}", script_type, metadata),
        source_dir="/x",
        priority=0,
    )


def test_option_env_name():
    assert option_env_name("env") == "RC_ENV"
    assert option_env_name("dry-run") == "RC_DRY_RUN"
    assert option_env_name("api.key") == "RC_API_KEY"


def test_format_env_value():
    assert format_env_value(True) == "true"
    assert format_env_value(False) == "false"
    assert format_env_value(3) == "3"


def test_build_environment_skips_unset_options():
    source = _source(path=("gen", "uuid"))

    env = build_environment(source, {"count": 2, "name": None, "label": "", "force": False})

    assert env == {
        "RC_COMMAND": "gen uuid",
        "RC_SCRIPT_PATH": "/x/uuid",
        "RC_SCRIPT_TYPE": "sh",
        "RC_COUNT": "2",
        "RC_FORCE": "false",
    }


class TestResolveRunner:
    """Tests for runner selection."""

    def test_defaults_by_script_type(self):
        assert resolve_runner(_source(ScriptType.JS)) == ["node"]
        assert resolve_runner(_source(ScriptType.TS)) == ["node"]
        assert resolve_runner(_source(ScriptType.SH)) == ["bash"]
        assert resolve_runner(_source(ScriptType.PY)) == ["python3"]
        assert resolve_runner(_source(ScriptType.RB)) == ["ruby"]
        assert resolve_runner(_source(ScriptType.PHP)) == ["php"]

    def test_metadata_runner_is_split(self):
        assert resolve_runner(_source(runner="python3 -u")) == ["python3", "-u"]

    def test_leading_args_for_known_runners(self):
        assert resolve_runner(_source(ScriptType.TS, runner="deno")) == ["deno", "run", "-A"]
        assert resolve_runner(_source(ScriptType.TS, runner="bun")) == ["bun", "run"]

    def test_virtual_node_cannot_run(self):
        with pytest.raises(UsageError, match="command group"):
            resolve_runner(_source(ScriptType.VIRTUAL))


def test_prepare_strips_global_flags():
    executor = CommandExecutor()

    argv, context = executor.prepare(_source(), {}, ["--verbose", "a", "-v", "--debug", "b"])

    assert argv == ["bash", "/x/t", "a", "b"]
    assert context.args == ["a", "b"]



def test_prepare_keeps_declared_short_v():
    invert = OptionDeclaration("invert", OptionType.BOOLEAN, short="v")
    source = ExtensionSource(
        path=("grep",),
        descriptor=ScriptDescriptor(
            "/x/grep", ScriptType.SH, MetadataDocument(options=(invert,))
        ),
        source_dir="/x",
        priority=0,
    )

    argv, context = CommandExecutor().prepare(source, {"invert": True}, ["-v", "--debug", "pat"])

    assert argv == ["bash", "/x/grep", "-v", "pat"]
    assert context.args == ["-v", "pat"]


def test_alias_routing_equivalence(make_tree):
    root = make_tree(
        "ext",
        {"npm/show-scripts.sh": "", "npm/show-scripts.yaml": {"aliases": ["ss"]}},
    )
    table = expand_aliases(merge_roots([root]))
    executor = CommandExecutor()
    options = {"filter": "test"}

    original = table.get(("npm", "show-scripts"))
    alias = table.get(("npm", "ss"))
    argv_a, ctx_a = executor.prepare(original, options, ["x"], ("npm", "show-scripts"))
    argv_b, ctx_b = executor.prepare(alias, options, ["x"], ("npm", "ss"))

    assert original.descriptor is alias.descriptor
    assert argv_a == argv_b
    assert ctx_a.env.pop("RC_COMMAND") == "npm show-scripts"
    assert ctx_b.env.pop("RC_COMMAND") == "npm ss"
    assert ctx_a.env == ctx_b.env


async def test_pass_context_execution(make_tree, py_runner, tmp_path):
    root = make_tree(
        "ext",
        {
            "ctx.py": CONTEXT_SCRIPT,
            "ctx.yaml": {
                "runner": py_runner,
                "passContext": True,
                "options": [{"name": "env"}],
            },
        },
    )
    source = merge_roots([root]).get(("ctx",))
    out_file = tmp_path / "out.json"

    code = await CommandExecutor().execute(source, {"env": "prod"}, [str(out_file)])

    assert code == 0
    result = json.loads(out_file.read_text())
    assert result["env"] == "prod"
    assert result["context"]["options"] == {"env": "prod"}
    assert result["context"]["command"] == "ctx"
    assert result["context"]["args"] == [str(out_file)]
    assert result["context"]["env"]["RC_ENV"] == "prod"


async def test_script_ignoring_stdin_still_succeeds(make_tree, py_runner):
    root = make_tree(
        "ext",
        {"quiet.py": "pass\n", "quiet.yaml": {"runner": py_runner, "passContext": True}},
    )
    source = merge_roots([root]).get(("quiet",))

    assert await CommandExecutor().execute(source, {}) == 0


async def test_environment_reaches_script(make_tree, py_runner, tmp_path):
    script = (
        "import os, sys\n"
        "keys = ['RC_COMMAND', 'RC_SCRIPT_TYPE', 'RC_DRY_RUN', 'INHERITED']\n"
        "open(sys.argv[1], 'w').write('\\n'.join(os.environ.get(k, '') for k in keys))\n"
    )
    root = make_tree("ext", {"env/show.py": script, "env/show.yaml": {"runner": py_runner}})
    source = merge_roots([root]).get(("env", "show"))
    out_file = tmp_path / "env.txt"

    executor = CommandExecutor(base_env={"INHERITED": "yes", "PATH": "/usr/bin:/bin"})
    await executor.execute(source, {"dry-run": True}, [str(out_file)])

    assert out_file.read_text().splitlines() == ["env show", "py", "true", "yes"]


async def test_non_zero_exit_raises(make_tree, py_runner):
    root = make_tree(
        "ext", {"fail.py": "import sys\nsys.exit(3)\n", "fail.yaml": {"runner": py_runner}}
    )
    source = merge_roots([root]).get(("fail",))

    with pytest.raises(ExecutionError) as exc_info:
        await CommandExecutor().execute(source, {})

    assert exc_info.value.exit_code == 3
    assert exc_info.value.exit_status == 3


async def test_missing_runner_raises_with_127(make_tree):
    root = make_tree(
        "ext", {"t.sh": "", "t.yaml": {"runner": "rc-test-no-such-runner-4f1c"}}
    )
    source = merge_roots([root]).get(("t",))

    with pytest.raises(ExecutionError) as exc_info:
        await CommandExecutor().execute(source, {})

    assert isinstance(exc_info.value.os_error, FileNotFoundError)
    assert isinstance(exc_info.value.__cause__, FileNotFoundError)
    assert exc_info.value.exit_status == 127


def test_signal_exit_status():
    assert ExecutionError("t", exit_code=-15).exit_status == 143
    assert ExecutionError("t", os_error=PermissionError("denied")).exit_status == 126


async def test_executing_virtual_node_fails(make_tree):
    root = make_tree("ext", {"aws/aws.yaml": {"description": "AWS"}, "aws/s3.sh": ""})
    source = merge_roots([root]).get(("aws",))

    with pytest.raises(UsageError):
        await CommandExecutor().execute(source, {})
