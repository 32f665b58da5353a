"""Player progression: ranks from Elo and XP."""

from ttclub.progression.ranks import (
    RANK_ORDER,
    RANKS,
    Rank,
    RankProgress,
    calculate_rank,
    format_rank,
    get_rank_by_id,
    get_rank_by_name,
    get_rank_progress,
    group_players_by_rank,
)

__all__ = [
    "RANKS",
    "RANK_ORDER",
    "Rank",
    "RankProgress",
    "calculate_rank",
    "format_rank",
    "get_rank_by_id",
    "get_rank_by_name",
    "get_rank_progress",
    "group_players_by_rank",
]
