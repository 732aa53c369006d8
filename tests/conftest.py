from collections.abc import Callable
from pathlib import Path
from typing import Any

import pytest

from mapant_worker.config import WorkerConfig


@pytest.fixture(autouse=True)
def clean_env(monkeypatch: pytest.MonkeyPatch) -> None:
    """Keep host MAPANT_* variables out of the tests."""
    for name in (
        "MAPANT_API_WORKER_ID",
        "MAPANT_API_TOKEN",
        "MAPANT_API_BASE_URL",
        "MAPANT_API_TIMEOUT_SECONDS",
        "MAPANT_NO_JOB_RETRY_SECONDS",
        "MAPANT_FAILED_JOB_DELAY_SECONDS",
        "MAPANT_WORK_DIR",
        "MAPANT_CASSINI_USE_DOCKER",
        "MAPANT_CASSINI_DOCKER_IMAGE",
        "MAPANT_CASSINI_COMMAND",
        "MAPANT_LOG_LEVEL",
        "MAPANT_LOG_FILE",
    ):
        monkeypatch.delenv(name, raising=False)


@pytest.fixture
def make_config(tmp_path: Path) -> Callable[..., WorkerConfig]:
    def factory(**overrides: Any) -> WorkerConfig:
        values: dict[str, Any] = {
            "api_worker_id": "worker-42",
            "api_token": "s3cret",
            "api_base_url": "https://mapant.test/api",
            "work_dir": tmp_path,
        }
        values.update(overrides)
        return WorkerConfig(_env_file=None, **values)

    return factory
