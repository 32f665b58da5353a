"""Unit tests for player ranks."""

import math

import pytest

from ttclub.progression.ranks import (
    FALLBACK_RANK_LABEL,
    RANK_ORDER,
    RANKS,
    calculate_rank,
    format_rank,
    get_rank_by_id,
    get_rank_by_name,
    get_rank_progress,
    group_players_by_rank,
)


class TestRankTable:
    """Test the rank definitions themselves."""

    def test_six_ranks_in_order(self):
        """Test that ranks are ordered by id with rising requirements."""
        assert [rank.name for rank in RANK_ORDER] == [
            "Rekrut",
            "Bronze",
            "Silber",
            "Gold",
            "Platin",
            "Champion",
        ]
        assert [rank.id for rank in RANK_ORDER] == list(range(6))

        for lower, higher in zip(RANK_ORDER, RANK_ORDER[1:]):
            assert higher.min_elo > lower.min_elo
            assert higher.min_xp > lower.min_xp

    def test_required_fields(self):
        """Test that every rank has emoji, color and description."""
        for rank in RANK_ORDER:
            assert rank.emoji
            assert rank.description
            assert rank.color.startswith("#")
            assert len(rank.color) == 7

    def test_rekrut_is_onboarding(self):
        """Test the onboarding and basic-exercise flags."""
        assert RANKS["REKRUT"].is_onboarding
        assert RANKS["REKRUT"].min_elo == 800
        assert RANKS["REKRUT"].min_xp == 0
        assert RANKS["BRONZE"].requires_grundlagen
        assert RANKS["BRONZE"].grundlagen_required == 5

    def test_to_dict(self):
        """Test serialization of a rank."""
        data = RANKS["GOLD"].to_dict()
        assert data["name"] == "Gold"
        assert data["min_elo"] == 1200
        assert data["min_xp"] == 500


class TestCalculateRank:
    """Test rank calculation from Elo and XP."""

    def test_new_player_is_rekrut(self):
        """Test defaults for a fresh player."""
        assert calculate_rank(800, 0).name == "Rekrut"
        assert calculate_rank().name == "Rekrut"
        assert calculate_rank(None, None).name == "Rekrut"

    def test_nan_falls_back_to_defaults(self):
        """Test that NaN inputs are treated as missing."""
        assert calculate_rank(math.nan, math.nan).name == "Rekrut"

    def test_below_every_threshold(self):
        """Test that low Elo still yields Rekrut."""
        assert calculate_rank(700, 0).name == "Rekrut"
        assert calculate_rank(-100, 0).name == "Rekrut"
        assert calculate_rank(0, 10000).name == "Rekrut"

    @pytest.mark.parametrize(
        "elo,xp,expected",
        [
            (850, 50, "Bronze"),
            (1000, 100, "Bronze"),
            (1000, 200, "Silber"),
            (1100, 500, "Silber"),
            (1200, 500, "Gold"),
            (1400, 800, "Gold"),
            (1400, 1000, "Platin"),
            (1600, 1500, "Platin"),
            (1600, 1800, "Champion"),
            (2500, 10000, "Champion"),
        ],
    )
    def test_requires_both_thresholds(self, elo, xp, expected):
        """Test that a rank needs Elo AND XP."""
        assert calculate_rank(elo, xp).name == expected

    def test_xp_alone_is_not_enough(self):
        """Test that lots of XP cannot replace Elo."""
        assert calculate_rank(849, 5000).name == "Rekrut"
        assert calculate_rank(999, 5000).name == "Bronze"

    def test_grundlagen_requirement(self):
        """Test the basic-exercise requirement for Bronze."""
        assert calculate_rank(900, 100, grundlagen_count=3).name == "Rekrut"
        assert calculate_rank(900, 100, grundlagen_count=5).name == "Bronze"
        # Not tracked: requirement is not enforced
        assert calculate_rank(900, 100).name == "Bronze"

    def test_monotonic_in_elo_and_xp(self):
        """Test that more Elo or more XP never lowers the rank."""
        for elo in range(600, 2000, 50):
            for xp in range(0, 2500, 100):
                rank_id = calculate_rank(elo, xp).id
                assert calculate_rank(elo + 50, xp).id >= rank_id
                assert calculate_rank(elo, xp + 100).id >= rank_id


class TestRankProgress:
    """Test progress towards the next rank."""

    def test_progress_to_next_rank(self):
        """Test percentages and remaining amounts."""
        progress = get_rank_progress(900, 66)

        assert progress.current_rank.name == "Bronze"
        assert progress.next_rank.name == "Silber"
        assert progress.elo_progress == 90
        assert progress.xp_progress == 33
        assert progress.elo_needed == 100
        assert progress.xp_needed == 134
        assert not progress.is_max_rank

    def test_new_player_progress(self):
        """Test progress of a fresh player towards Bronze."""
        progress = get_rank_progress(None, None)

        assert progress.current_rank.name == "Rekrut"
        assert progress.next_rank.name == "Bronze"
        assert progress.elo_needed == 50
        assert progress.xp_needed == 50
        assert progress.xp_progress == 0

    def test_max_rank(self):
        """Test that the highest rank is complete."""
        progress = get_rank_progress(2000, 5000)

        assert progress.current_rank.name == "Champion"
        assert progress.next_rank is None
        assert progress.is_max_rank
        assert progress.elo_progress == 100
        assert progress.xp_progress == 100
        assert progress.elo_needed == 0
        assert progress.xp_needed == 0

    def test_progress_is_clamped(self):
        """Test that percentages stay within 0-100."""
        low = get_rank_progress(-100, 0)
        assert low.elo_progress == 0

        # Enough Elo for Gold but XP keeps the player at Bronze
        high = get_rank_progress(1300, 60)
        assert high.current_rank.name == "Bronze"
        assert high.elo_progress == 100
        assert high.elo_needed == 0
        assert 0 <= high.xp_progress <= 100

    def test_grundlagen_progress(self):
        """Test basic-exercise progress towards Bronze."""
        progress = get_rank_progress(900, 100, grundlagen_count=2)

        assert progress.current_rank.name == "Rekrut"
        assert progress.next_rank.name == "Bronze"
        assert progress.grundlagen_needed == 3
        assert progress.grundlagen_progress == 40

    def test_to_dict(self):
        """Test serialization of progress."""
        data = get_rank_progress(900, 66).to_dict()
        assert data["current_rank"]["name"] == "Bronze"
        assert data["next_rank"]["name"] == "Silber"


class TestRankLookup:
    """Test lookups and formatting."""

    def test_get_rank_by_id(self):
        """Test lookup by id."""
        assert get_rank_by_id(0).name == "Rekrut"
        assert get_rank_by_id(3).name == "Gold"
        assert get_rank_by_id(5).name == "Champion"

    @pytest.mark.parametrize("value", [6, -1, None, "3", True, 2.5])
    def test_get_rank_by_id_unknown(self, value):
        """Test that unknown ids give None."""
        assert get_rank_by_id(value) is None

    def test_get_rank_by_name(self):
        """Test case-insensitive lookup by name."""
        assert get_rank_by_name("GOLD").name == "Gold"
        assert get_rank_by_name("silber").name == "Silber"
        assert get_rank_by_name("Champion").id == 5

    @pytest.mark.parametrize("value", ["unknown", "", None, 3])
    def test_get_rank_by_name_unknown(self, value):
        """Test that unknown names give None."""
        assert get_rank_by_name(value) is None

    def test_format_rank(self):
        """Test display strings."""
        assert format_rank(RANKS["GOLD"]) == "🥇 Gold"
        assert format_rank(RANKS["REKRUT"]) == "🔰 Rekrut"
        assert format_rank(None) == FALLBACK_RANK_LABEL


class TestGroupPlayers:
    """Test grouping players into rank buckets."""

    def test_group_players_by_rank(self):
        """Test that every bucket exists and players keep their data."""
        players = [
            {"id": "a", "eloRating": 800, "xp": 0},
            {"id": "b", "eloRating": 1250, "xp": 600},
            {"id": "c", "elo_rating": 1300, "xp": 700},
            {"id": "d", "eloRating": 900, "xp": 100, "grundlagenCompleted": 2},
            {"id": "e"},
        ]

        grouped = group_players_by_rank(players)

        assert set(grouped) == {0, 1, 2, 3, 4, 5}
        assert [p["id"] for p in grouped[0]] == ["a", "e"]
        assert [p["id"] for p in grouped[1]] == ["d"]
        assert [p["id"] for p in grouped[3]] == ["b", "c"]
        assert grouped[5] == []
        assert grouped[3][0]["rank"].name == "Gold"
        assert grouped[3][0]["xp"] == 600
        assert grouped[1][0]["grundlagenCompleted"] == 2

    def test_bucket_matches_calculate_rank(self):
        """Test that extra fields never change the bucket."""
        players = [
            {"eloRating": 900, "xp": 100, "grundlagenCompleted": 0},
            {"eloRating": 1100, "xp": 300, "grundlagenCompleted": 4, "club": "TTC"},
            {"eloRating": 1700, "xp": 2000, "grundlagenCompleted": None},
        ]

        grouped = group_players_by_rank(players)

        for player in players:
            expected = calculate_rank(player["eloRating"], player["xp"]).id
            assert any(p["eloRating"] == player["eloRating"] for p in grouped[expected])

    def test_grundlagen_opt_in(self):
        """Test the basic-exercise requirement when explicitly requested."""
        players = [
            {"id": "short", "eloRating": 900, "xp": 100, "grundlagenCompleted": 2},
            {"id": "done", "eloRating": 900, "xp": 100, "grundlagenCompleted": 5},
            {"id": "untracked", "eloRating": 900, "xp": 100},
        ]

        grouped = group_players_by_rank(players, use_grundlagen=True)

        assert [p["id"] for p in grouped[0]] == ["short"]
        assert [p["id"] for p in grouped[1]] == ["done", "untracked"]

    def test_elo_rating_fallback_key(self):
        """Test that a null eloRating falls back to elo_rating."""
        grouped = group_players_by_rank([{"eloRating": None, "elo_rating": 1250, "xp": 600}])

        assert len(grouped[3]) == 1
        assert grouped[3][0]["rank"].name == "Gold"

    def test_input_not_mutated(self):
        """Test that the input records are left untouched."""
        player = {"id": "a", "eloRating": 1000, "xp": 200}
        group_players_by_rank([player])
        assert "rank" not in player

    def test_empty_input(self):
        """Test grouping nobody."""
        grouped = group_players_by_rank([])
        assert all(bucket == [] for bucket in grouped.values())
