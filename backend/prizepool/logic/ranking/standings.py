"""
Swiss standings: score, Buchholz and Sonneborn-Berger.

Points are multiples of one half, so every sum here is exact in binary floating point and
standings built from the same matches always compare equal regardless of processing order.
"""

from collections import defaultdict
from collections.abc import Iterable, Sequence
from typing import Protocol

from prizepool.models.db.match import MatchResult
from prizepool.models.standings import RankedStanding, Standing
from prizepool.utils.id_types import UserId

WIN_POINTS = 1.0
DRAW_POINTS = 0.5

type RankKey = tuple[float, float, float, int, int]


class ResultedMatch(Protocol):
    @property
    def player1_id(self) -> UserId: ...

    @property
    def player2_id(self) -> UserId | None: ...

    @property
    def result(self) -> MatchResult | None: ...


def build_standings(
    user_ids: Iterable[UserId], matches: Iterable[ResultedMatch]
) -> list[Standing]:
    standings: dict[UserId, Standing] = {user_id: Standing(user_id=user_id) for user_id in user_ids}
    opponents: dict[UserId, set[UserId]] = defaultdict(set)
    # (player, opponent, weight) per game, weight 1 for a win and 0.5 for a draw
    sonneborn_terms: list[tuple[UserId, UserId, float]] = []

    for match in matches:
        if match.result is None:
            continue

        player1 = standings.get(match.player1_id)
        if match.player2_id is None:
            if player1 is not None:
                player1.matches_played += 1
                player1.wins += 1
                player1.points += WIN_POINTS
                player1.had_bye = True
            continue

        player2 = standings.get(match.player2_id)
        if player1 is not None and player2 is not None:
            opponents[player1.user_id].add(player2.user_id)
            opponents[player2.user_id].add(player1.user_id)

        for standing, own_win, own_loss in (
            (player1, MatchResult.PLAYER1, MatchResult.PLAYER2),
            (player2, MatchResult.PLAYER2, MatchResult.PLAYER1),
        ):
            if standing is None:
                continue
            standing.matches_played += 1
            if match.result is own_win:
                standing.wins += 1
                standing.points += WIN_POINTS
            elif match.result is own_loss:
                standing.losses += 1
            else:
                standing.draws += 1
                standing.points += DRAW_POINTS

        if player1 is None or player2 is None:
            continue
        if match.result is MatchResult.PLAYER1:
            sonneborn_terms.append((player1.user_id, player2.user_id, 1.0))
        elif match.result is MatchResult.PLAYER2:
            sonneborn_terms.append((player2.user_id, player1.user_id, 1.0))
        else:
            sonneborn_terms.append((player1.user_id, player2.user_id, 0.5))
            sonneborn_terms.append((player2.user_id, player1.user_id, 0.5))

    for user_id, standing in standings.items():
        standing.buchholz = sum(standings[opponent].points for opponent in opponents[user_id])

    for user_id, opponent_id, weight in sonneborn_terms:
        standings[user_id].sonneborn += standings[opponent_id].points * weight

    return sorted(standings.values(), key=standing_sort_key)


def rank_key(standing: Standing) -> RankKey:
    return (
        standing.points,
        standing.buchholz,
        standing.sonneborn,
        standing.wins,
        standing.losses,
    )


def standing_sort_key(standing: Standing) -> tuple[float, float, float, int, int, int]:
    return (
        -standing.points,
        -standing.buchholz,
        -standing.sonneborn,
        -standing.wins,
        standing.losses,
        int(standing.user_id),
    )


def assign_placements(standings: Sequence[Standing]) -> list[RankedStanding]:
    """
    Players sharing an identical rank key share a placement; the next distinct group is placed
    at its 1-based index (standard competition ranking, e.g. 1, 1, 3).
    """
    ranked: list[RankedStanding] = []
    previous_key: RankKey | None = None
    placement = 0

    for index, standing in enumerate(standings):
        key = rank_key(standing)
        if key != previous_key:
            placement = index + 1
            previous_key = key
        ranked.append(RankedStanding(**standing.model_dump(), placement=placement))

    return ranked


def get_placement(standings: Sequence[Standing], user_id: UserId) -> int | None:
    return next(
        (ranked.placement for ranked in assign_placements(standings) if ranked.user_id == user_id),
        None,
    )
