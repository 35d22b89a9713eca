"""Tests for splitcheck.execution.process - ProcessRunner."""

from __future__ import annotations

import io
import sys
from pathlib import Path

import pytest

from splitcheck.execution.process import ProcessRunner, SpawnError


def _script(tmp_path: Path, body: str) -> list[str]:
    path = tmp_path / "child.py"
    path.write_text(body, encoding="utf-8")
    return [sys.executable, str(path)]


class TestProcessRunner:
    """Spawning, streaming, exit codes."""

    @pytest.mark.asyncio
    async def test_captures_both_streams(self, tmp_path: Path) -> None:
        command = _script(
            tmp_path,
            "import sys\n"
            "print('out line')\n"
            "sys.stdout.flush()\n"
            "print('err line', file=sys.stderr)\n",
        )
        runner = ProcessRunner(echo=False)
        result = await runner.run(command, tmp_path)

        assert result.exit_code == 0
        assert result.stdout == "out line\n"
        assert result.stderr == "err line\n"
        assert "out line" in result.combined_output
        assert "err line" in result.combined_output
        assert result.timed_out is False
        assert result.duration_seconds >= 0

    @pytest.mark.asyncio
    async def test_nonzero_exit_is_data(self, tmp_path: Path) -> None:
        command = _script(tmp_path, "import sys\nsys.exit(3)\n")
        result = await ProcessRunner(echo=False).run(command, tmp_path)
        assert result.exit_code == 3

    @pytest.mark.asyncio
    async def test_echoes_to_given_streams(self, tmp_path: Path) -> None:
        command = _script(tmp_path, "print('hello')\n")
        out = io.StringIO()
        runner = ProcessRunner(stdout=out, stderr=io.StringIO())
        await runner.run(command, tmp_path)
        assert out.getvalue() == "hello\n"

    @pytest.mark.asyncio
    async def test_utf8_glyphs_survive(self, tmp_path: Path) -> None:
        command = _script(
            tmp_path,
            "import sys\nsys.stdout.reconfigure(encoding='utf-8')\nprint('\\u2713 ok')\n",
        )
        result = await ProcessRunner(echo=False).run(command, tmp_path)
        assert result.stdout == "✓ ok\n"

    @pytest.mark.asyncio
    async def test_env_is_layered_on_inherited(self, tmp_path: Path) -> None:
        command = _script(
            tmp_path, "import os\nprint(os.environ['SPLITCHECK_TEST_VAR'])\n"
        )
        result = await ProcessRunner(echo=False).run(
            command, tmp_path, env={"SPLITCHECK_TEST_VAR": "layered"}
        )
        assert result.stdout.strip() == "layered"

    @pytest.mark.asyncio
    async def test_runs_in_cwd(self, tmp_path: Path) -> None:
        command = _script(tmp_path, "import os\nprint(os.getcwd())\n")
        workdir = tmp_path / "work"
        workdir.mkdir()
        result = await ProcessRunner(echo=False).run(command, workdir)
        assert Path(result.stdout.strip()).resolve() == workdir.resolve()

    @pytest.mark.asyncio
    async def test_missing_executable_raises_spawn_error(self, tmp_path: Path) -> None:
        with pytest.raises(SpawnError) as exc_info:
            await ProcessRunner(echo=False).run(
                ["splitcheck-no-such-runner-binary"], tmp_path
            )
        assert exc_info.value.command == ["splitcheck-no-such-runner-binary"]
        assert exc_info.value.cwd == tmp_path

    @pytest.mark.asyncio
    async def test_empty_command_rejected(self, tmp_path: Path) -> None:
        with pytest.raises(ValueError):
            await ProcessRunner(echo=False).run([], tmp_path)

    @pytest.mark.asyncio
    async def test_timeout_kills_and_flags(self, tmp_path: Path) -> None:
        command = _script(
            tmp_path,
            "import sys, time\nprint('started')\nsys.stdout.flush()\ntime.sleep(30)\n",
        )
        result = await ProcessRunner(timeout=1, echo=False).run(command, tmp_path)
        assert result.timed_out is True
        assert result.exit_code != 0
        assert "started" in result.stdout
        assert result.duration_seconds < 20
