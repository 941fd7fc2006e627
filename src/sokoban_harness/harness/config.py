"""Sokoban harness configuration."""

import os

from dotenv import find_dotenv
from pydantic import PositiveFloat, PositiveInt
from pydantic_settings import BaseSettings, SettingsConfigDict

# Determine the environment file path, or None if not found
ENV_FILE = find_dotenv() or None


class HarnessConfig(BaseSettings):
    """Configuration settings for a harness batch."""

    max_workers: PositiveInt | None = None
    """Maximum number of solver processes running at once. If None (default), uses os.cpu_count()."""

    timeout: PositiveFloat = 10.0
    """Seconds a solver process may run on one level before it is killed. Default: 10."""

    max_instances: PositiveInt | None = None
    """Only run the first this-many levels of the corpus. If None (default), run all of them."""

    corpus_path: str = "test.data"
    """Path to the corpus file with `;LEVEL <n>` sections."""

    solver_command: list[str] = ["java", "-cp", "temp/out.sokoban", "Main"]
    """Command (argv list) that starts the solver. Set as a JSON list in the environment."""

    log_dir: str = "logs"
    """Directory for per-run log files."""

    new_session: bool = True
    """Start each solver in its own session so a timeout kills its whole process group.

    Only used on POSIX.  Default: True.
    """

    model_config = SettingsConfigDict(
        env_file=ENV_FILE,
        env_file_encoding="utf-8",
        env_prefix="HARNESS_",
        extra="ignore",
    )

    def effective_workers(self) -> int:
        """The concurrency limit, resolving None to the CPU count."""
        return self.max_workers or os.cpu_count() or 1


config = HarnessConfig()
