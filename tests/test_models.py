"""Tests for candidate and ranking models."""

from __future__ import annotations

from otv.models import Candidate, RankedCandidate, Score, Verdict


class TestCandidateFromDict:
    """Test parsing candidate-store records."""

    def test_camel_case_fields(self):
        candidate = Candidate.from_dict(
            {
                "stash": "stash-1",
                "name": "alpha",
                "discoveredAt": 1000,
                "onlineSince": 2000,
                "offlineSince": 0,
                "offlineAccumulated": 60000,
                "version": "0.9.39",
                "spanInclusion": 0.4,
                "unclaimedEras": [90, 91],
                "kusamaStash": "ksm-1",
                "skipSelfStake": True,
            }
        )
        assert candidate.name == "alpha"
        assert candidate.discovered_at == 1000
        assert candidate.offline_accumulated == 60000
        assert candidate.span_inclusion == 0.4
        assert candidate.unclaimed_eras == (90, 91)
        assert candidate.unclaimed_count == 2
        assert candidate.kusama_stash == "ksm-1"
        assert candidate.skip_self_stake is True

    def test_missing_fields_default_to_zero(self):
        candidate = Candidate.from_dict({"stash": "stash-1", "bonded": None, "kusamaStash": ""})
        assert candidate.bonded == 0
        assert candidate.rank == 0
        assert candidate.unclaimed_eras is None
        assert candidate.unclaimed_count == 0
        assert candidate.kusama_stash is None

    def test_numeric_version_becomes_string(self):
        candidate = Candidate.from_dict({"stash": "stash-1", "version": 939})
        assert candidate.version == "939"
        assert Candidate.from_dict({"stash": "stash-1"}).version is None


class TestVerdict:
    """Test verdict constructors."""

    def test_ok(self):
        assert Verdict.ok().valid
        assert Verdict.ok().reason == ""

    def test_invalid(self):
        verdict = Verdict.invalid("offline")
        assert not verdict.valid
        assert verdict.reason == "offline"


class TestRankedCandidate:
    """Test the ranked projection."""

    def test_to_dict_nests_score(self):
        score = Score(
            inclusion=1, span_inclusion=2, discovered=3, nominated=4, rank=5,
            unclaimed=6, bonded=7, faults=8, offline=9,
            aggregate=45, randomness=1.01, total=45.45, updated=123,
        )
        ranked = RankedCandidate.from_candidate(Candidate(stash="s", name="n", unclaimed_eras=(1,)), score)
        d = ranked.to_dict()
        assert d["stash"] == "s"
        assert d["aggregate"]["total"] == 45.45
        assert d["aggregate"]["spanInclusion"] == 2
        assert d["unclaimedEras"] == [1]
