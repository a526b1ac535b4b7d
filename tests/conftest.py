"""Test configuration and fixtures for NaK tests."""

import io
import logging
import tempfile
from pathlib import Path
from typing import Generator, Iterable, List

import pytest
from click.testing import CliRunner
from rich.console import Console

from nak.core import lib_logger
from nak.core.config import NakConfig
from nak.logic.context import AppContext


class ScriptedInput:
    """Prompt reader that replays a fixed list of answers.

    Running out of answers raises EOFError, the same as a closed stdin, so a
    test with too few answers fails instead of hanging.
    """

    def __init__(self, answers: Iterable[str] = ()):
        self.answers: List[str] = list(answers)
        self.prompts: List[str] = []

    def feed(self, *answers: str) -> None:
        self.answers.extend(answers)

    def __call__(self, prompt: str) -> str:
        self.prompts.append(prompt)
        if not self.answers:
            raise EOFError(f"No scripted answer for prompt: {prompt!r}")
        return self.answers.pop(0)

    @property
    def remaining(self) -> int:
        return len(self.answers)


class FakeClock:
    """Manually advanced time source."""

    def __init__(self, start: float = 1_000_000.0):
        self.now = start

    def advance(self, seconds: float) -> None:
        self.now += seconds

    def __call__(self) -> float:
        return self.now


@pytest.fixture
def temp_dir() -> Generator[Path, None, None]:
    """Create a temporary directory for tests."""
    with tempfile.TemporaryDirectory() as temp_dir:
        yield Path(temp_dir)


@pytest.fixture
def fake_home(temp_dir: Path, monkeypatch) -> Path:
    """Point HOME at a temporary directory and clear XDG overrides."""
    home = temp_dir / "home"
    home.mkdir()
    monkeypatch.setenv("HOME", str(home))
    monkeypatch.delenv("XDG_CONFIG_HOME", raising=False)
    monkeypatch.delenv("XDG_DATA_HOME", raising=False)
    return home


@pytest.fixture
def test_config(temp_dir: Path) -> NakConfig:
    """Create test configuration with temporary paths."""
    return NakConfig(
        config_dir=temp_dir / "config",
        log_file=temp_dir / "logs" / "nak.log",
    )


@pytest.fixture
def console() -> Console:
    """Console writing to a buffer; read it back with ``console.file.getvalue()``."""
    return Console(file=io.StringIO(), width=120, color_system=None, force_terminal=False)


@pytest.fixture
def scripted_input() -> ScriptedInput:
    return ScriptedInput()


@pytest.fixture
def fake_clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def app_context(test_config: NakConfig, console: Console, scripted_input: ScriptedInput,
                fake_home: Path) -> AppContext:
    """Fully wired application context driven by scripted input."""
    ctx = AppContext.create(test_config, console=console, reader=scripted_input)
    ctx.config_store.ensure_exists()
    ctx.reload_cached_values()
    return ctx


@pytest.fixture
def cli_runner() -> CliRunner:
    """Create CLI runner for testing Click commands."""
    return CliRunner()


@pytest.fixture(autouse=True)
def reset_logging() -> Generator[None, None, None]:
    """Undo any logging setup a test performed."""
    yield
    manager = lib_logger.get_logging_manager()
    if manager is not None:
        manager.shutdown()
    lib_logger._logging_manager = None
    logging.getLogger("nak").propagate = True
