"""Pytest fixtures for integration tests.

Provides a respx-mocked Gerrit server and matching configuration so the
connector, facade and CLI can be exercised through the real httpx stack
without network access.
"""

from __future__ import annotations

from pathlib import Path
from typing import Iterator

import pytest
import respx

from gerrit_bridge.config import GerritConfig

GERRIT_HOST = "gerrit.example.com"
BASE_URL = f"http://{GERRIT_HOST}:8080"
PROJECT = "sonar-plugin"
BRANCH = "master"
CHANGE_ID = "I8473b95934b5732ac55d26311a706c9c2bde9940"
REVISION_ID = "674ac754f91e64a0efb8087e59a176484bd534d1"
REVISION_PATH = f"/a/changes/{PROJECT}~{BRANCH}~{CHANGE_ID}/revisions/{REVISION_ID}"

FILES_BODY = (
    ")]}'\n"
    '{"/COMMIT_MSG": {"status": "A", "lines_inserted": 7, "size_delta": 551, "size": 551},'
    ' "core/src/main/java/org/example/Foo.java": {"lines_inserted": 5, "lines_deleted": 3},'
    ' "README.md": {"lines_inserted": 1}}'
)


@pytest.fixture
def gerrit_config() -> GerritConfig:
    """Connection settings pointing at the mocked server."""
    return GerritConfig(
        host=GERRIT_HOST,
        port=8080,
        username="sonar",
        password="secret",
        auth_scheme="basic",
    )


@pytest.fixture
def gerrit_mock() -> Iterator[respx.MockRouter]:
    """Mock the Gerrit REST API.

    Yields:
        respx router scoped to the mocked server's base URL
    """
    with respx.mock(base_url=BASE_URL, assert_all_called=False) as mock:
        yield mock


@pytest.fixture
def config_file(tmp_path: Path) -> Path:
    """Write a TOML configuration for the CLI tests.

    Logs go to a file so command output stays clean.
    """
    path = tmp_path / "gerrit-bridge.toml"
    log_file = tmp_path / "logs" / "gerrit-bridge.log"
    path.write_text(
        f"""
[gerrit]
host = "{GERRIT_HOST}"
port = 8080
username = "sonar"
password = "secret"
auth_scheme = "basic"

[logging]
level = "DEBUG"
format = "json"
file = "{log_file.as_posix()}"
"""
    )
    return path
