from pathlib import Path
from typing import Callable, Dict, List, Optional

import pytest

from autoload.config.environment import Environment
from autoload.loader.registry import LoadRegistry
from autoload.loader.search_path import SearchPath


class FakeEnvironment:
    """In-memory configuration provider."""

    def __init__(
        self,
        modulepaths: Optional[Dict[str, List[str]]] = None,
        libdirs: Optional[List[str]] = None,
        initialized: bool = True,
        default: str = "production",
    ):
        self.modulepaths = modulepaths or {}
        self.libdirs = libdirs or []
        self.initialized = initialized
        self.default = default
        self.modulepath_calls: List[str] = []

    def is_initialized(self) -> bool:
        return self.initialized

    def get_environment_name(self, env: Optional[str] = None) -> str:
        return env or self.default

    def get_modulepath(self, env: Optional[str] = None) -> List[str]:
        name = self.get_environment_name(env)
        self.modulepath_calls.append(name)
        return list(self.modulepaths.get(name, []))

    def get_libdirs(self) -> List[str]:
        return list(self.libdirs)


class RecordingExecutor:
    """Executor that records calls instead of running files."""

    def __init__(self, error: Optional[BaseException] = None):
        self.calls: List[tuple[str, bool]] = []
        self.error = error
        self.on_call: Optional[Callable[[str, bool], None]] = None

    def __call__(self, path: str, wrap: bool) -> None:
        self.calls.append((path, wrap))
        if self.on_call is not None:
            self.on_call(path, wrap)
        if self.error is not None:
            raise self.error

    @property
    def paths(self) -> List[str]:
        return [path for path, _ in self.calls]


def write_unit(directory: Path, name: str, content: str = "") -> Path:
    path = directory / f"{name}.py"
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(content)
    return path


@pytest.fixture(autouse=True)
def reset_state():
    """Reset configuration and the process-wide registry around each test."""
    Environment.reset()
    LoadRegistry.reset_instance()
    yield
    Environment.reset()
    LoadRegistry.reset_instance()


@pytest.fixture
def dir_a(tmp_path) -> Path:
    path = tmp_path / "a"
    path.mkdir()
    return path


@pytest.fixture
def dir_b(tmp_path) -> Path:
    path = tmp_path / "b"
    path.mkdir()
    return path


@pytest.fixture
def executor() -> RecordingExecutor:
    return RecordingExecutor()


@pytest.fixture
def registry(dir_a, dir_b, executor) -> LoadRegistry:
    """Registry searching dir_a before dir_b, with a recording executor."""
    search_path = SearchPath(
        environment=FakeEnvironment(), load_path=[str(dir_a), str(dir_b)]
    )
    return LoadRegistry(search_path=search_path, executor=executor)


@pytest.fixture
def make_unit() -> Callable[..., Path]:
    return write_unit


@pytest.fixture
def fake_environment() -> type[FakeEnvironment]:
    return FakeEnvironment


@pytest.fixture
def recording_executor() -> type[RecordingExecutor]:
    return RecordingExecutor
