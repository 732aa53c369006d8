"""Invocations of the cassini processing tool and the tar archiver."""

import os
from pathlib import Path

from . import process
from .config import WorkerConfig
from .process import ExecutionResult


def cassini_argv(config: WorkerConfig, *args: str) -> list[str]:
    """Build the full cassini command line for the configured deployment."""
    if config.cassini_use_docker:
        work_dir = os.path.abspath(config.work_dir)
        return [
            "docker",
            "run",
            "--rm",
            "-v",
            f"{work_dir}:/app",
            config.cassini_docker_image,
            *args,
        ]
    return [config.cassini_command, *args]


def run_cassini(config: WorkerConfig, *args: str) -> ExecutionResult:
    """Run a cassini subcommand from the work directory."""
    command, *rest = cassini_argv(config, *args)
    return process.run(command, rest, cwd=config.work_dir)


def compress_dir(
    input_dir: str | Path,
    output_dir: str | Path,
    file_name: str,
    *,
    cwd: str | Path | None = None,
) -> tuple[Path, ExecutionResult]:
    """
    Pack a directory into ``{output_dir}/{file_name}.tar.bz2``.

    Returns:
        Archive path and the archiver's execution result
    """
    archive_path = Path(output_dir) / f"{file_name}.tar.bz2"
    result = process.run("tar", ["-cjvf", str(archive_path), str(input_dir)], cwd=cwd)
    return archive_path, result
