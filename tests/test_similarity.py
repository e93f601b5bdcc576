"""Tests for title normalization and similarity matching."""

from nova_dream.missions.similarity import (
    MissionMatcher,
    levenshtein_distance,
    normalize_title,
    similarity,
)
from nova_dream.models.config import ReconcileConfig
from nova_dream.models.mission import StoredMission


def _mission(mission_id: str, title: str) -> StoredMission:
    return StoredMission(id=mission_id, project_id="proj_1", title=title)


class TestNormalization:
    def test_case_punctuation_and_spaces(self):
        assert normalize_title("Call  the Client!") == normalize_title("call the client")
        assert normalize_title("  Launch: MVP (v1)  ") == "launch mvp v1"

    def test_accents_are_kept(self):
        assert normalize_title("Créer la boutique") == "créer la boutique"


class TestSimilarity:
    def test_levenshtein(self):
        assert levenshtein_distance("kitten", "sitting") == 3
        assert levenshtein_distance("", "abc") == 3
        assert levenshtein_distance("abc", "abc") == 0

    def test_similarity_uses_longer_length(self):
        assert similarity("abcd", "abc") == 0.75
        assert similarity("", "") == 1.0
        assert similarity("abc", "") == 0.0

    def test_exact_threshold(self):
        a = "abcdefghijklmnopqrst"
        b = "abcdefghijklmnopq123"
        assert similarity(a, b) == 0.85


class TestMissionMatcher:
    def setup_method(self):
        self.matcher = MissionMatcher()

    def test_exact_match_short_circuits(self):
        missions = [_mission("m1", "Call the client")]
        match = self.matcher.find_match("CALL the client!!", missions)
        assert match.exact is True
        assert match.mission.id == "m1"

    def test_exact_match_beats_earlier_fuzzy_candidate(self):
        missions = [_mission("m1", "Set up landing pages"), _mission("m2", "Set up landing page")]
        match = self.matcher.find_match("set up landing page", missions)
        assert match.mission.id == "m2"
        assert match.exact is True

    def test_match_at_threshold(self):
        missions = [_mission("m1", "abcdefghijklmnopq123")]
        match = self.matcher.find_match("abcdefghijklmnopqrst", missions)
        assert match is not None
        assert match.score == 0.85

    def test_no_match_below_threshold(self):
        # 200 chars with 31 edits: similarity 0.845
        base = "a" * 200
        edited = "b" * 31 + "a" * 169
        assert similarity(base, edited) < 0.85
        assert self.matcher.find_match(base, [_mission("m1", edited)]) is None

    def test_threshold_is_configurable(self):
        strict = MissionMatcher(ReconcileConfig(similarity_threshold=0.850001))
        missions = [_mission("m1", "abcdefghijklmnopq123")]
        assert strict.find_match("abcdefghijklmnopqrst", missions) is None

    def test_best_score_wins(self):
        missions = [
            _mission("m1", "Write the sales page copy"),
            _mission("m2", "Write the sales page copyy"),
            _mission("m3", "Write the sales pages copy"),
        ]
        match = self.matcher.find_match("Write the sales page copyx", missions)
        assert match.mission.id in ("m1", "m2")
        # m1 and m2 tie at one edit; the first encountered is kept
        assert match.mission.id == "m1"

    def test_excluded_missions_are_skipped(self):
        missions = [_mission("m1", "Call the client")]
        assert self.matcher.find_match("Call the client", missions, exclude_ids={"m1"}) is None
