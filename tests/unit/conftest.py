"""
Unit test fixtures: factory-built models.
"""

import pytest

from tests.factories.model_factories import make_run_status, make_queue_message


@pytest.fixture
def run_status_data():
    """Return randomized run status field data."""
    return make_run_status()


@pytest.fixture
def queue_message_data():
    """Return randomized run queue payload."""
    return make_queue_message()
