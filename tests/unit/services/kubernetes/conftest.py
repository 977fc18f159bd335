"""Shared fixtures for Kubernetes service tests."""

from __future__ import annotations

from collections.abc import Callable
from typing import Any
from unittest.mock import MagicMock

import pytest

from workload_redeployer.integrations.kubernetes.client import KubernetesClient


@pytest.fixture
def mock_k8s_client() -> MagicMock:
    """Create a mock Kubernetes client with API sub-mocks.

    Error translation is the real implementation and the retry decorator is
    a pass-through, so services behave as they would against a live client.
    """
    mock_client = MagicMock()
    mock_client.timeout = 30
    mock_client.translate_api_exception.side_effect = KubernetesClient.translate_api_exception
    mock_client.make_retry_decorator.return_value = lambda fn: fn
    return mock_client


@pytest.fixture
def api_exception() -> Callable[..., Exception]:
    """Build a kubernetes ApiException with the given HTTP status."""
    from kubernetes.client import ApiException

    def _make(status: int, reason: str = "") -> Any:
        return ApiException(status=status, reason=reason)

    return _make
