"""Pytest fixtures for timeline context tests."""
import pytest
from pathlib import Path


@pytest.fixture
def sample_yaml_file() -> Path:
    return Path(__file__).parent / "res" / "timeline.yaml"


@pytest.fixture
def sample_seqinfo_file() -> Path:
    return Path(__file__).parent / "res" / "seqinfo.ini"
