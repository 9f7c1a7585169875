"""Pytest fixtures shared across the capview test suite."""

import pytest

from tests.helpers import NOW, sample_payload


@pytest.fixture
def now():
    """Fixed reference time for recency-dependent tests."""
    return NOW


@pytest.fixture
def payload():
    """Small hypergraph payload with a meta-capability and a child."""
    return sample_payload()


@pytest.fixture
def ingested(payload):
    """The sample payload after ingestion."""
    from capview.graph.ingest import ingest

    return ingest(payload)


@pytest.fixture
def session():
    """Fresh session state."""
    from capview.session import SessionState

    return SessionState()
