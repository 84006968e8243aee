"""Common pytest configuration."""

from __future__ import annotations

from pathlib import Path

import pytest

from tests.helpers.fakes import SAMPLE_SRT, EchoTranslationClient


@pytest.fixture
def anyio_backend() -> str:
    """Force asyncio backend for anyio-powered tests.

    Returns:
        str: The backend name.
    """
    return "asyncio"


@pytest.fixture
def echo_client() -> EchoTranslationClient:
    """Provide an echoing translation client.

    Returns:
        EchoTranslationClient: Fresh fake client.
    """
    return EchoTranslationClient()


@pytest.fixture
def sample_srt_path(tmp_path: Path) -> Path:
    """Write a small two-cue SRT file.

    Returns:
        Path: Path to the subtitle file.
    """
    path = tmp_path / "episode.srt"
    path.write_text(SAMPLE_SRT, encoding="utf-8", newline="")
    return path
