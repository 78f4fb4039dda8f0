"""Badge catalog shape tests."""

from __future__ import annotations

from collections import Counter

from focusflow.gamification.badge_definitions import (
    BADGE_DEFINITIONS,
    BADGES_BY_TYPE,
    get_badge_definition,
    get_badges_by_rarity,
    get_total_badge_count,
)
from focusflow.gamification.schemas import BadgeRarity
from focusflow.gamification.trigger_engine import BADGE_RULES


class TestBadgeCatalog:
    """Catalog integrity."""

    def test_types_are_unique(self):
        counts = Counter(d["type"] for d in BADGE_DEFINITIONS)
        assert [t for t, n in counts.items() if n > 1] == []

    def test_every_badge_has_a_rule(self):
        missing = [t for t in BADGES_BY_TYPE if t not in BADGE_RULES]
        assert missing == []

    def test_no_orphan_rules(self):
        assert [t for t in BADGE_RULES if t not in BADGES_BY_TYPE] == []

    def test_total_count(self):
        assert get_total_badge_count() == len(BADGES_BY_TYPE)
        assert get_total_badge_count() >= 100

    def test_lookup(self):
        definition = get_badge_definition("first_focus")
        assert definition.name == "First Steps"
        assert definition.rarity == BadgeRarity.COMMON
        assert get_badge_definition("does_not_exist") is None

    def test_by_rarity(self):
        legendary = get_badges_by_rarity("legendary")
        assert "centurion" in legendary
        assert "first_focus" not in legendary
        total = sum(len(get_badges_by_rarity(r)) for r in BadgeRarity)
        assert total == get_total_badge_count()
