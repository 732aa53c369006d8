import logging
from pathlib import Path

import pytest

from mapant_worker import cli
from mapant_worker.worker import CycleOutcome, Worker


def test_help_exits_successfully(capsys: pytest.CaptureFixture[str]) -> None:
    with pytest.raises(SystemExit) as exc_info:
        cli.main(["--help"])

    assert exc_info.value.code == cli.EXIT_CODES["success"]
    assert "MAPANT_API_WORKER_ID" in capsys.readouterr().out


def test_unknown_option_is_rejected() -> None:
    with pytest.raises(SystemExit) as exc_info:
        cli.main(["--threads=3"])

    assert exc_info.value.code == cli.EXIT_CODES["validation"]


def test_missing_credentials_fail_before_any_cycle(
    monkeypatch: pytest.MonkeyPatch, tmp_path: Path
) -> None:
    monkeypatch.chdir(tmp_path)  # no .env file

    def fail_run(self: Worker) -> CycleOutcome:
        raise AssertionError("worker must not start")

    monkeypatch.setattr(Worker, "run", fail_run)

    with pytest.raises(SystemExit) as exc_info:
        cli.main([])

    assert exc_info.value.code == cli.EXIT_CODES["validation"]


@pytest.mark.parametrize(
    ("outcome", "code"),
    [
        (CycleOutcome.COMPLETED, 0),
        (CycleOutcome.NO_JOB, 0),
        (CycleOutcome.TRANSPORT_FAILED, 1),
        (CycleOutcome.DECODE_FAILED, 1),
    ],
)
def test_once_mode_exit_codes(
    monkeypatch: pytest.MonkeyPatch, tmp_path: Path, outcome: CycleOutcome, code: int
) -> None:
    monkeypatch.chdir(tmp_path)
    monkeypatch.setenv("MAPANT_API_WORKER_ID", "worker-1")
    monkeypatch.setenv("MAPANT_API_TOKEN", "token")
    monkeypatch.setattr(Worker, "run_once", lambda self: outcome)

    with pytest.raises(SystemExit) as exc_info:
        cli.main(["--once"])

    assert exc_info.value.code == code


def test_configure_logging_writes_log_file(tmp_path: Path) -> None:
    log_file = tmp_path / "worker.log"
    cli.configure_logging("INFO", str(log_file))
    logging.getLogger("mapant_worker.test").info("hello from test")

    for handler in logging.getLogger().handlers:
        handler.flush()
    assert "hello from test" in log_file.read_text()

    cli.configure_logging()


def test_unwritable_log_file_is_a_configuration_error(
    monkeypatch: pytest.MonkeyPatch, tmp_path: Path
) -> None:
    monkeypatch.chdir(tmp_path)
    monkeypatch.setenv("MAPANT_API_WORKER_ID", "worker-1")
    monkeypatch.setenv("MAPANT_API_TOKEN", "token")
    monkeypatch.setenv("MAPANT_LOG_FILE", str(tmp_path / "no-such-dir" / "worker.log"))

    def fail_run_once(self: Worker) -> CycleOutcome:
        raise AssertionError("worker must not start")

    monkeypatch.setattr(Worker, "run_once", fail_run_once)

    with pytest.raises(SystemExit) as exc_info:
        cli.main(["--once"])

    assert exc_info.value.code == cli.EXIT_CODES["validation"]
