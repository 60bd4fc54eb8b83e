import pytest

from kartsim.catalog import ParticipantTemplate
from kartsim.core.boosts import (
    Boost,
    HandlingBoost,
    Invincibility,
    PowerBoost,
    SpeedBoost,
)
from kartsim.core.state import Participant
from tests.test_utils import TEST_BOOSTS, ParticipantConfig


def _speed(magnitude: int, rounds: int = 2) -> SpeedBoost:
    return SpeedBoost(
        template_id="mushroom",
        name="Mushroom",
        glyph="🍄",
        magnitude=magnitude,
        remaining_rounds=rounds,
    )


def test_from_template_copies_identity_and_attributes():
    template = ParticipantTemplate(
        id="toad",
        name="Toad",
        glyph="🍄",
        speed=5,
        handling=3,
        power=1,
        specialty="speed",
    )

    participant = Participant.from_template(template)

    assert participant.id == "toad"
    assert participant.repr == "🍄 Toad"
    assert participant.total_skill == 9
    assert participant.specialty == "speed"
    assert participant.score == 0
    assert participant.boosts == []


def test_effective_values_without_boosts_are_base_values():
    p = ParticipantConfig("mario", speed=4, handling=3, power=2).build()

    assert p.effective_speed() == 4
    assert p.effective_handling() == 3
    assert p.effective_power() == 2


def test_boosts_of_same_kind_stack_additively():
    p = ParticipantConfig("mario", speed=3).build()
    p.apply_boost(_speed(2))
    p.apply_boost(_speed(1))

    assert p.effective_speed() == 6
    # Other attributes are untouched
    assert p.effective_handling() == 3
    assert p.effective_power() == 3


def test_effective_value_is_floored_at_one():
    """A Lightning on a slow driver must not push speed below 1."""
    p = ParticipantConfig("bowser", speed=2).build()
    p.apply_boost(_speed(-2))
    assert p.effective_speed() == 1

    p.apply_boost(_speed(-2))
    assert p.effective_speed() == 1


def test_handling_and_power_boosts():
    p = ParticipantConfig("peach", handling=5, power=2).build()
    p.apply_boost(HandlingBoost("banana", "Banana Peel", "🍌", 2, 2))
    p.apply_boost(PowerBoost("green-shell", "Green Shell", "🐢", 2, 2))

    assert p.effective_handling() == 7
    assert p.effective_power() == 4


def test_invincibility_is_tracked_but_does_not_change_attributes():
    p = ParticipantConfig("yoshi").build()
    assert not p.is_invincible()

    p.apply_boost(Invincibility("star", "Super Star", "⭐", 3, 2))

    assert p.is_invincible()
    assert p.effective_speed() == 3
    assert p.effective_power() == 3


def test_apply_boost_counts_consumed_boosts():
    p = ParticipantConfig("luigi").build()
    p.apply_boost(_speed(1))
    p.apply_boost(_speed(1))

    assert p.stats.boosts_consumed == 2
    assert len(p.boosts) == 2


def test_tick_boosts_removes_boost_on_the_round_it_reaches_zero():
    p = ParticipantConfig("mario").build()
    short = _speed(2, rounds=1)
    long = _speed(1, rounds=3)
    p.apply_boost(short)
    p.apply_boost(long)

    p.tick_boosts()
    assert p.boosts == [long]
    assert long.remaining_rounds == 2

    p.tick_boosts()
    assert long.remaining_rounds == 1

    p.tick_boosts()
    assert p.boosts == []
    assert p.effective_speed() == 3


def test_add_score_rejects_negative_points():
    p = ParticipantConfig("wario").build()
    p.add_score(5)
    p.add_score(0)
    assert p.score == 5

    with pytest.raises(ValueError, match="negative"):
        p.add_score(-1)
    assert p.score == 5


def test_reset_for_race_clears_race_scoped_state():
    p = ParticipantConfig("toad", speed=5).build()
    p.add_score(12)
    p.position = 2
    p.laps_completed = 1
    p.apply_boost(_speed(2))
    p.stats.confrontations_won = 3

    p.reset_for_race()

    assert p.score == 0
    assert p.position == 0
    assert p.laps_completed == 0
    assert p.boosts == []
    assert p.stats.boosts_consumed == 0
    assert p.stats.confrontations_won == 0
    # Identity survives
    assert p.speed == 5


def test_str_shows_score():
    p = ParticipantConfig("mario", name="Mario").build()
    p.add_score(7)
    assert str(p) == "🏎️ Mario (7 pts)"


@pytest.mark.parametrize(
    ("template_id", "expected_cls"),
    [
        ("mushroom", SpeedBoost),
        ("banana", HandlingBoost),
        ("green-shell", PowerBoost),
        ("star", Invincibility),
    ],
)
def test_boost_from_template_picks_effect_class(template_id, expected_cls):
    template = next(t for t in TEST_BOOSTS if t.id == template_id)

    boost = Boost.from_template(template)

    assert isinstance(boost, expected_cls)
    assert boost.effect == template.effect
    assert boost.remaining_rounds == template.duration
    assert boost.magnitude == template.magnitude
    assert not boost.expired
