from __future__ import annotations

import json
from pathlib import Path

import pytest

from roomdiff.config import ComparisonConfig, EndpointConfig

DATA_DIR = Path(__file__).resolve().parent / "data"


@pytest.fixture(scope="session")
def room_state_payload() -> list[dict[str, object]]:
    path = DATA_DIR / "matrix" / "room_state.json"
    with path.open(encoding="utf-8") as handle:
        return json.load(handle)


@pytest.fixture
def endpoint_config() -> EndpointConfig:
    return EndpointConfig(url="https://matrix.a.example", access_token="secret-a", name="a")


@pytest.fixture
def comparison_config() -> ComparisonConfig:
    return ComparisonConfig(
        endpoints=(
            EndpointConfig(url="https://matrix.a.example", access_token="secret-a"),
            EndpointConfig(url="https://matrix.b.example", access_token="secret-b"),
        ),
        timeout_seconds=1.0,
    )
