from pathlib import Path

import pytest

from linkrate.config import LinkrateConfig, load_config
from linkrate.telemetry import TelemetryPublisher


@pytest.fixture
def config(tmp_path: Path) -> LinkrateConfig:
    """Default configuration that never touches the user's config file."""
    return load_config(tmp_path / "linkrate.cfg")


@pytest.fixture
def publisher() -> TelemetryPublisher:
    return TelemetryPublisher()


@pytest.fixture
def rates() -> list[int]:
    return []
