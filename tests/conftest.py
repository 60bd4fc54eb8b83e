import pytest

from tests.test_utils import RaceScenario


@pytest.fixture
def scenario():
    """Factory fixture to create scenarios."""

    def _builder(participants_config, dice_rolls=None, draws=None, **kwargs):
        return RaceScenario(participants_config, dice_rolls, draws, **kwargs)

    return _builder
