"""Permanent player ranks based on Elo rating and experience points (XP).

A rank is reached only when BOTH its Elo and XP requirements are met. Elo
ratings start at 800, so a new player sits at Rekrut.
"""

import math
from dataclasses import asdict, dataclass
from typing import Any, Dict, Iterable, List, Mapping, Optional

from ttclub.utils.geometry import round_half_up

DEFAULT_ELO = 800
DEFAULT_XP = 0

# Shown when no rank is known
FALLBACK_RANK_LABEL = "🎖️ Rekrut"


@dataclass(frozen=True)
class Rank:
    """A rank tier and its requirements."""

    id: int
    name: str
    emoji: str
    color: str  # 6-digit hex, e.g. "#CD7F32"
    min_elo: int
    min_xp: int
    description: str
    is_onboarding: bool = False
    requires_grundlagen: bool = False
    grundlagen_required: int = 0  # basic exercises needed, when tracked

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


@dataclass(frozen=True)
class RankProgress:
    """Progress of a player towards the next rank."""

    current_rank: Rank
    next_rank: Optional[Rank]  # None at the highest rank, check is_max_rank
    elo_progress: int  # 0-100
    xp_progress: int  # 0-100
    elo_needed: float
    xp_needed: float
    is_max_rank: bool
    grundlagen_needed: int = 0
    grundlagen_progress: int = 100

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


RANKS: Dict[str, Rank] = {
    "REKRUT": Rank(
        id=0,
        name="Rekrut",
        emoji="🔰",
        color="#9CA3AF",
        min_elo=800,
        min_xp=0,
        description="Willkommen! Absolviere 5 Grundlagen-Übungen.",
        is_onboarding=True,
    ),
    "BRONZE": Rank(
        id=1,
        name="Bronze",
        emoji="🥉",
        color="#CD7F32",
        min_elo=850,
        min_xp=50,
        description="Du hast die Grundlagen gemeistert!",
        requires_grundlagen=True,
        grundlagen_required=5,
    ),
    "SILBER": Rank(
        id=2,
        name="Silber",
        emoji="🥈",
        color="#C0C0C0",
        min_elo=1000,
        min_xp=200,
        description="Du bist auf dem besten Weg!",
    ),
    "GOLD": Rank(
        id=3,
        name="Gold",
        emoji="🥇",
        color="#FFD700",
        min_elo=1200,
        min_xp=500,
        description="Ein echter Champion!",
    ),
    "PLATIN": Rank(
        id=4,
        name="Platin",
        emoji="💎",
        color="#E5E4E2",
        min_elo=1400,
        min_xp=1000,
        description="Du gehörst zur Elite!",
    ),
    "CHAMPION": Rank(
        id=5,
        name="Champion",
        emoji="👑",
        color="#9333EA",
        min_elo=1600,
        min_xp=1800,
        description="Der höchste Rang - du bist ein Vereinsmeister!",
    ),
}

# Lowest to highest; rank lookup walks this from the top
RANK_ORDER: List[Rank] = sorted(RANKS.values(), key=lambda rank: rank.id)


def _value_or_default(value: Optional[float], default: float) -> float:
    if value is None or (isinstance(value, float) and math.isnan(value)):
        return default
    return value


def _progress(current: float, threshold: float) -> int:
    """Percentage of ``threshold`` reached, as an integer 0-100."""
    if threshold == 0:
        return 100 if current > 0 else 0
    return round_half_up(min(100.0, max(0.0, current / threshold * 100)))


def _meets(rank: Rank, elo: float, xp: float, grundlagen_count: Optional[int]) -> bool:
    if elo < rank.min_elo or xp < rank.min_xp:
        return False
    # The basic-exercise requirement only applies when the count is tracked
    if rank.requires_grundlagen and grundlagen_count is not None:
        return grundlagen_count >= rank.grundlagen_required
    return True


def calculate_rank(
    elo_rating: Optional[float] = None,
    xp: Optional[float] = None,
    grundlagen_count: Optional[int] = None,
) -> Rank:
    """Return the highest rank whose Elo AND XP requirements are met.

    Args:
        elo_rating: Current Elo rating (None = 800).
        xp: Total experience points (None = 0).
        grundlagen_count: Completed basic exercises; None skips that requirement.

    Returns:
        Rank. Players below every threshold (e.g. Elo under 800) get Rekrut.
    """
    elo = _value_or_default(elo_rating, DEFAULT_ELO)
    total_xp = _value_or_default(xp, DEFAULT_XP)

    for rank in reversed(RANK_ORDER):
        if _meets(rank, elo, total_xp, grundlagen_count):
            return rank

    return RANKS["REKRUT"]


def get_rank_progress(
    elo_rating: Optional[float] = None,
    xp: Optional[float] = None,
    grundlagen_count: Optional[int] = None,
) -> RankProgress:
    """Compute the current rank and the progress towards the next one.

    Args:
        elo_rating: Current Elo rating (None = 800).
        xp: Total experience points (None = 0).
        grundlagen_count: Completed basic exercises, if tracked.

    Returns:
        RankProgress. At the highest rank everything is complete and
        ``next_rank`` is None.
    """
    current_rank = calculate_rank(elo_rating, xp, grundlagen_count)
    current_index = RANK_ORDER.index(current_rank)

    if current_index == len(RANK_ORDER) - 1:
        return RankProgress(
            current_rank=current_rank,
            next_rank=None,
            elo_progress=100,
            xp_progress=100,
            elo_needed=0,
            xp_needed=0,
            is_max_rank=True,
        )

    next_rank = RANK_ORDER[current_index + 1]
    elo = _value_or_default(elo_rating, DEFAULT_ELO)
    total_xp = _value_or_default(xp, DEFAULT_XP)

    grundlagen_needed = 0
    grundlagen_progress = 100
    if next_rank.requires_grundlagen and grundlagen_count is not None:
        grundlagen_needed = max(0, next_rank.grundlagen_required - grundlagen_count)
        grundlagen_progress = _progress(grundlagen_count, next_rank.grundlagen_required)

    return RankProgress(
        current_rank=current_rank,
        next_rank=next_rank,
        elo_progress=_progress(elo, next_rank.min_elo),
        xp_progress=_progress(total_xp, next_rank.min_xp),
        elo_needed=max(0, next_rank.min_elo - elo),
        xp_needed=max(0, next_rank.min_xp - total_xp),
        is_max_rank=False,
        grundlagen_needed=grundlagen_needed,
        grundlagen_progress=grundlagen_progress,
    )


def get_rank_by_id(rank_id: Any) -> Optional[Rank]:
    """Rank with the given id, or None for anything that is not a known id."""
    if isinstance(rank_id, bool) or not isinstance(rank_id, (int, float)):
        return None
    for rank in RANK_ORDER:
        if rank.id == rank_id:
            return rank
    return None


def get_rank_by_name(name: Any) -> Optional[Rank]:
    """Rank by symbolic name, case-insensitive ("silber", "SILBER")."""
    if not isinstance(name, str) or not name:
        return None
    return RANKS.get(name.upper())


def format_rank(rank: Optional[Rank]) -> str:
    """Display string like "🥇 Gold"."""
    if rank is None:
        return FALLBACK_RANK_LABEL
    return f"{rank.emoji} {rank.name}"


def group_players_by_rank(
    players: Iterable[Mapping[str, Any]],
    use_grundlagen: bool = False,
) -> Dict[int, List[Dict[str, Any]]]:
    """Group players into rank buckets.

    Buckets follow Elo and XP only, unless ``use_grundlagen`` is set.

    Args:
        players: Player records with ``eloRating`` (or ``elo_rating``) and
            ``xp``. Other fields are passed through.
        use_grundlagen: Also apply the basic-exercise requirement, read from
            ``grundlagenCompleted``.

    Returns:
        Mapping of every rank id to a list of player copies with an added
        ``rank`` entry, in input order.
    """
    grouped: Dict[int, List[Dict[str, Any]]] = {rank.id: [] for rank in RANK_ORDER}

    for player in players:
        elo_rating = player.get("eloRating")
        if elo_rating is None:
            elo_rating = player.get("elo_rating")
        grundlagen_count = player.get("grundlagenCompleted") if use_grundlagen else None
        rank = calculate_rank(elo_rating, player.get("xp"), grundlagen_count)
        grouped[rank.id].append({**player, "rank": rank})

    return grouped
