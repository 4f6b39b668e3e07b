"""Pytest configuration and fixtures for Chorus tests."""

import os
import tempfile
from pathlib import Path
from typing import Generator

import pytest

from chorus.config import Settings, reset_settings


@pytest.fixture
def temp_dir() -> Generator[Path, None, None]:
    """Create a temporary directory for tests."""
    with tempfile.TemporaryDirectory() as tmpdir:
        yield Path(tmpdir)


@pytest.fixture
def temp_config_file(temp_dir: Path) -> Path:
    """Create a temporary config file."""
    config_path = temp_dir / "config.yaml"
    config_path.write_text(
        """
conversation:
  max_rounds: 4
  admin_name: Moderator
  termination_marker: "DONE"
  speaker_selection: constrained
  allowed_speakers:
    - alice
    - bob

compaction:
  max_messages: 12
  strategy: bookend
  preserve_functions: false

logging:
  level: debug
  log_file: "{log_path}"
""".format(log_path=str(temp_dir / "chorus.log").replace("\\", "/"))
    )
    return config_path


@pytest.fixture
def test_settings() -> Settings:
    """Create test settings with defaults."""
    reset_settings()
    return Settings()


@pytest.fixture
def clean_env() -> Generator[None, None, None]:
    """Clean CHORUS_* environment variables for testing."""
    original = {k: v for k, v in os.environ.items() if k.startswith("CHORUS_")}
    for var in original:
        del os.environ[var]

    reset_settings()

    yield

    for var in [k for k in os.environ if k.startswith("CHORUS_")]:
        del os.environ[var]
    os.environ.update(original)

    reset_settings()
