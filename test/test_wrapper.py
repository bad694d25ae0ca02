"""Tests for wrapper synthesis."""

import asyncio
import os
import stat

import pytest
import pytest_asyncio

from extensions.errors import ConfigurationError
from extensions.resolver import merge_roots
from extensions.scanner import scan
from extensions.wrapper import (
    WrapperSynthesizer,
    aliasable_namespaces,
    find_real_binary,
    render_wrapper,
)

TOOL = "zzrcfaketool"

needs_sh = pytest.mark.skipif(not os.path.exists("/bin/sh"), reason="requires /bin/sh")


def _write_executable(path, body):
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(f"#!/bin/sh\n{body}\n")
    path.chmod(0o755)
    return str(path)


@pytest.fixture
def tool_table(make_tree):
    root = make_tree(
        "ext",
        {
            f"{TOOL}/{TOOL}.yaml": {"description": "Fake tool helpers", "aliasable": True},
            f"{TOOL}/hello.sh": "",
            f"{TOOL}/cleanup.py": "",
            "solo/run.sh": "",
        },
    )
    return merge_roots([root])


def test_render_is_deterministic():
    first = render_wrapper(("git",), ["sync", "cleanup", "sync"], "/usr/local/bin/rc")
    second = render_wrapper(("git",), ["cleanup", "sync"], "/usr/local/bin/rc")

    assert first == second
    assert "cleanup|sync)" in first
    assert "RC_BIN=/usr/local/bin/rc" in first


def test_render_quotes_unsafe_values():
    script = render_wrapper(("git",), ["it's"], "/opt/my tools/rc")

    assert "RC_BIN='/opt/my tools/rc'" in script
    assert "'it'\"'\"'s'" in script


def test_aliasable_namespaces(tool_table):
    assert aliasable_namespaces(tool_table) == [(TOOL,)]


def test_plan_lists_subcommands(tool_table, tmp_path):
    synthesizer = WrapperSynthesizer(str(tmp_path / "wrappers"))

    artifact = synthesizer.plan((TOOL,), tool_table, "/bin/rc")

    assert artifact.name == TOOL
    assert artifact.subcommands == ("cleanup", "hello")
    assert artifact.script_path == str(tmp_path / "wrappers" / TOOL)
    assert artifact.metadata_path == str(tmp_path / "wrappers" / f"{TOOL}.yaml")


def test_unknown_namespace_raises_with_available(tool_table, tmp_path):
    synthesizer = WrapperSynthesizer(str(tmp_path))

    with pytest.raises(ConfigurationError) as exc_info:
        synthesizer.plan(("nope",), tool_table, "/bin/rc")

    assert "does not resolve" in str(exc_info.value)
    assert exc_info.value.available == ["solo", TOOL]
    assert f"Resolvable namespaces: solo, {TOOL}" in str(exc_info.value)


def test_leaf_command_is_not_a_namespace(tool_table, tmp_path):
    with pytest.raises(ConfigurationError, match="is a command"):
        WrapperSynthesizer(str(tmp_path)).plan(("solo", "run"), tool_table, "/bin/rc")


async def test_synthesize_writes_executable_artifacts(tool_table, tmp_path):
    wrappers = tmp_path / "wrappers"
    synthesizer = WrapperSynthesizer(str(wrappers))

    artifact = await synthesizer.synthesize((TOOL,), tool_table, "/bin/rc")
    first_bytes = (wrappers / TOOL).read_bytes()
    await synthesizer.synthesize((TOOL,), tool_table, "/bin/rc")

    mode = os.stat(artifact.script_path).st_mode
    assert mode & stat.S_IXUSR
    assert (wrappers / TOOL).read_bytes() == first_bytes
    assert "aliasable: true" in (wrappers / f"{TOOL}.yaml").read_text()
    assert not (wrappers / f"{TOOL}.tmp").exists()


async def test_wrappers_dir_is_inert_when_scanned(tool_table, tmp_path):
    wrappers = tmp_path / "wrappers"
    await WrapperSynthesizer(str(wrappers)).synthesize((TOOL,), tool_table, "/bin/rc")

    assert scan(str(wrappers)) == []


def test_find_real_binary_skips_wrapper_dir(tmp_path):
    wrappers = tmp_path / "wrappers"
    system = tmp_path / "system"
    _write_executable(wrappers / TOOL, "exit 0")
    real = _write_executable(system / TOOL, "exit 0")
    path_env = os.pathsep.join([str(wrappers), str(system)])

    found = find_real_binary(TOOL, path_env, exclude_dir=str(wrappers))

    assert found == real


def test_find_real_binary_missing(tmp_path):
    wrappers = tmp_path / "wrappers"
    _write_executable(wrappers / TOOL, "exit 0")

    assert find_real_binary(TOOL, str(wrappers), exclude_dir=str(wrappers)) is None


async def _run(argv, path_env):
    process = await asyncio.create_subprocess_exec(
        *argv,
        stdout=asyncio.subprocess.PIPE,
        stderr=asyncio.subprocess.PIPE,
        env={"PATH": path_env},
    )
    stdout, stderr = await process.communicate()
    return process.returncode, stdout.decode(), stderr.decode()


@needs_sh
class TestInstalledWrapper:
    """Run the generated script with a controlled PATH."""

    @pytest_asyncio.fixture
    async def installed(self, tool_table, tmp_path):
        fake_rc = _write_executable(tmp_path / "bin" / "rc", 'echo "rc $*"')
        wrappers = tmp_path / "wrappers"
        synthesizer = WrapperSynthesizer(str(wrappers))
        artifact = await synthesizer.synthesize((TOOL,), tool_table, fake_rc)
        return artifact, synthesizer

    async def test_custom_subcommand_routes_to_rc(self, installed, tmp_path):
        artifact, _ = installed
        path_env = os.pathsep.join([os.path.dirname(artifact.script_path), "/usr/bin", "/bin"])

        code, out, _ = await _run([artifact.script_path, "hello", "--x"], path_env)

        assert code == 0
        assert out.strip() == f"rc {TOOL} hello --x"

    async def test_no_arguments_routes_to_rc(self, installed):
        artifact, _ = installed
        code, out, _ = await _run([artifact.script_path], "/usr/bin:/bin")

        assert code == 0
        assert out.strip() == f"rc {TOOL}"

    async def test_other_subcommand_passes_through(self, installed, tmp_path):
        artifact, synthesizer = installed
        real = _write_executable(tmp_path / "system" / TOOL, 'echo "real $*"')
        wrappers_dir = os.path.dirname(artifact.script_path)
        # Wrapper directory listed twice and first: it must never pick itself
        path_env = os.pathsep.join(
            [wrappers_dir, str(tmp_path / "system"), wrappers_dir, "/usr/bin", "/bin"]
        )

        code, out, _ = await _run([artifact.script_path, "status", "-s"], path_env)

        assert code == 0
        assert out.strip() == "real status -s"
        assert synthesizer.pass_through_target(artifact, path_env) == real

    async def test_no_real_binary_exits_127(self, installed):
        artifact, synthesizer = installed
        path_env = os.pathsep.join([os.path.dirname(artifact.script_path), "/usr/bin", "/bin"])

        code, _, err = await _run([artifact.script_path, "status"], path_env)

        assert code == 127
        assert "Custom subcommands" in err
        assert "hello" in err
        assert synthesizer.pass_through_target(artifact, path_env) is None
