"""Fixtures for integration tests."""

import pytest

from hyperbench.orchestrator import BenchmarkOrchestrator


@pytest.fixture
def orchestrator() -> BenchmarkOrchestrator:
    """Orchestrator with short timeouts that checks the observed payload."""
    return BenchmarkOrchestrator(timeout=0.5, ready_timeout=5.0, verify_payload=True)
