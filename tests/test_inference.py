"""Tests for keyword-driven metadata defaults and profile inference."""

import pytest

from brain.inference import classify, default_metadata, is_accessibility_related, update_profile
from brain.models import PREFERENCE, STRENGTHEN, TIME_BASED, Entity, UserProfile

from conftest import T0


def _entity(name, entity_type="note", *observations):
    return Entity(name=name, entity_type=entity_type, observations=list(observations))


# ---------------------------------------------------------------------------
# Metadata defaults
# ---------------------------------------------------------------------------


class TestDefaultMetadata:
    def test_preference_keywords(self):
        meta = default_metadata(_entity("Dave_Shell", "user_preference", "Dave uses ZSH for all command line work"), T0)
        assert meta.importance_pattern == PREFERENCE
        assert meta.resonance == 0.9
        assert meta.is_user_preference is True
        assert meta.trust == 0.5

    @pytest.mark.parametrize("text", ["prefers tabs", "likes dark mode", "requires captions", "working style: async"])
    def test_every_preference_keyword_family(self, text):
        assert default_metadata(_entity("X", "note", text)).importance_pattern == PREFERENCE

    def test_relationship_keywords(self):
        meta = default_metadata(_entity("Pairing", "note", "Good rapport with the backend folks"), T0)
        assert meta.importance_pattern == STRENGTHEN
        assert meta.resonance == 0.7
        assert meta.is_user_preference is False

    def test_relationship_entity_type(self):
        meta = default_metadata(_entity("Alice_And_Bob", "Partnership", "meet on fridays"), T0)
        assert meta.importance_pattern == STRENGTHEN

    def test_preference_wins_over_relationship(self):
        meta = default_metadata(_entity("Team_Lead", "team", "prefers written updates"), T0)
        assert meta.importance_pattern == PREFERENCE
        assert meta.resonance == 0.9

    def test_fallback_is_time_based(self):
        meta = default_metadata(_entity("Quarterly_Report", "document", "Revenue grew"), T0)
        assert meta.importance_pattern == TIME_BASED
        assert meta.resonance == 0.5
        assert meta.is_user_preference is False
        assert meta.accessibility_flag is False

    def test_accessibility_flag_is_independent_of_pattern(self):
        pref = _entity("Sarah", "accessibility", "Needs slow pace responses")
        plain = _entity("Audit", "document", "Checked cognitive load of the onboarding flow")
        assert default_metadata(pref).accessibility_flag is True
        assert default_metadata(pref).importance_pattern == PREFERENCE
        assert default_metadata(plain).accessibility_flag is True
        assert default_metadata(plain).importance_pattern == TIME_BASED

    def test_keyword_match_is_case_insensitive(self):
        assert is_accessibility_related(_entity("X", "note", "Uses a SCREEN READER"))

    def test_timestamps_use_given_time(self):
        meta = default_metadata(_entity("X"), T0)
        assert meta.created_at == T0.isoformat()
        assert meta.last_updated == T0.isoformat()
        assert meta.last_accessed is None

    def test_classify_returns_none_for_fallback(self):
        assert classify(_entity("Plain", "thing", "nothing special")) is None


# ---------------------------------------------------------------------------
# Profile inference
# ---------------------------------------------------------------------------


class TestUpdateProfile:
    def test_shell_detected(self):
        profile = UserProfile()
        update_profile(profile, [_entity("Dave_Shell", "user_preference", "Dave uses ZSH")])
        assert profile.preferred_shell == "zsh"

    def test_shell_rule_order_decides_within_an_entity(self):
        profile = UserProfile()
        update_profile(profile, [_entity("Shells", "note", "moved from bash to zsh")])
        assert profile.preferred_shell == "zsh"

    def test_last_entity_wins_across_batch(self):
        profile = UserProfile()
        update_profile(profile, [_entity("A", "note", "uses fish"), _entity("B", "note", "uses powershell")])
        assert profile.preferred_shell == "powershell"

    def test_entity_type_is_not_scanned(self):
        profile = UserProfile()
        update_profile(profile, [_entity("Config", "zsh_config", "aliases")])
        assert profile.preferred_shell == "unknown"

    def test_accessibility_and_communication_tags(self):
        profile = UserProfile()
        update_profile(profile, [
            _entity("Sarah", "accessibility", "uses screen reader software", "needs slow pace"),
            _entity("Style", "note", "wants thorough but brief answers"),
        ])
        assert profile.accessibility_needs == ["screen-reader", "slow-pace"]
        assert profile.communication_prefs == ["detailed", "concise"]

    def test_tags_are_not_duplicated_or_removed(self):
        profile = UserProfile(accessibility_needs=["screen-reader"])
        update_profile(profile, [_entity("X", "note", "vision impaired")])
        update_profile(profile, [_entity("Y", "note", "nothing relevant")])
        assert profile.accessibility_needs == ["screen-reader"]
