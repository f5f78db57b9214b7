"""
Shared pytest fixtures for agenda-engine tests.
"""

import pytest
from freezegun import freeze_time


@pytest.fixture
def frozen_time():
    """
    Freezes the clock at Tuesday 2024-03-05 10:20 for tests of the
    wall-clock display flags.
    """
    with freeze_time("2024-03-05 10:20:00") as frozen:
        yield frozen
