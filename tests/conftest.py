"""Shared fixtures."""

from __future__ import annotations

from pathlib import Path

import pytest

from switchboard.config import Settings
from switchboard.engine.registry import HandlerRegistry
from switchboard.models import HandlerDescriptor


@pytest.fixture
def anyio_backend() -> str:
    return "asyncio"


@pytest.fixture
def settings(tmp_path: Path) -> Settings:
    return Settings(data_dir=tmp_path, default_timeout=2.0)


@pytest.fixture
def infra_registry() -> HandlerRegistry:
    """Terraform + AKS handlers with no declared dependency."""
    return HandlerRegistry(
        [
            HandlerDescriptor(name="A", triggers=frozenset({"terraform"}), domains=frozenset({"infra"})),
            HandlerDescriptor(
                name="B", triggers=frozenset({"kubernetes", "aks"}), domains=frozenset({"k8s"})
            ),
        ]
    )
