from collections.abc import Callable
from pathlib import Path

import pytest
import yaml
from rich.console import Console

from oasvault.cli import create_app
from oasvault.document import JsonObject


@pytest.fixture
def oasvault_cli(
    console: Console, storage_root: Path, monkeypatch: pytest.MonkeyPatch
) -> Callable[..., int]:
    """Run the CLI against ``storage_root`` and return the exit code.

    Runs from an empty working directory so no ``oasvault.toml`` is picked up.
    """
    workdir = storage_root.parent / "cwd"
    workdir.mkdir(parents=True, exist_ok=True)
    monkeypatch.chdir(workdir)
    monkeypatch.delenv("OASVAULT_CONFIG", raising=False)

    def _run(*args: str) -> int:
        app = create_app(console=console, error_console=console)
        try:
            app.meta(["--root", str(storage_root), *args])
        except SystemExit as e:
            return e.code if isinstance(e.code, int) else 1
        else:
            return 0

    return _run


@pytest.fixture
def seed_file(tmp_path: Path, petstore: JsonObject) -> Path:
    """The petstore written as a YAML file."""
    path = tmp_path / "petstore.yaml"
    _ = path.write_text(yaml.safe_dump(petstore, sort_keys=False))
    return path
