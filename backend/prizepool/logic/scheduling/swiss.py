"""
Swiss pairing for the next round.

Pairing is a pure function of the entries (in registration order) and the match history,
so the same inputs always yield the same pairings. Nothing here assigns sides or colours:
``player1`` is always the higher-ranked player of a pairing.
"""

import math
from collections import defaultdict
from collections.abc import Sequence

from prizepool.logic.ranking.standings import ResultedMatch, build_standings
from prizepool.models.db.match import MatchResult, MatchStatus, SwissPairing
from prizepool.utils.id_types import UserId

# Upper bound on backtracking steps before falling back to greedy pairing.
PAIRING_SEARCH_BUDGET = 20_000


def get_number_of_swiss_rounds(player_count: int) -> int:
    if player_count <= 1:
        return 0
    return math.ceil(math.log2(player_count)) + 1


def build_opponent_map(matches: Sequence[ResultedMatch]) -> dict[UserId, set[UserId]]:
    opponents: dict[UserId, set[UserId]] = defaultdict(set)
    for match in matches:
        if match.player2_id is None:
            continue
        opponents[match.player1_id].add(match.player2_id)
        opponents[match.player2_id].add(match.player1_id)
    return opponents


def have_played(opponents: dict[UserId, set[UserId]], player_a: UserId, player_b: UserId) -> bool:
    return player_b in opponents.get(player_a, set())


class _SearchBudgetExhausted(Exception):
    pass


def pair_without_rematches(
    players: list[UserId], opponents: dict[UserId, set[UserId]]
) -> list[tuple[UserId, UserId]] | None:
    """
    Depth-first search for a perfect pairing with no rematches.

    The first unpaired player is always matched with the highest-ranked admissible player
    below them, which keeps score groups together. Returns ``None`` when no such pairing
    exists or the search budget is spent.
    """
    steps = 0

    def search(remaining: list[UserId]) -> list[tuple[UserId, UserId]] | None:
        nonlocal steps
        if len(remaining) == 0:
            return []

        top, rest = remaining[0], remaining[1:]
        for index, candidate in enumerate(rest):
            steps += 1
            if steps > PAIRING_SEARCH_BUDGET:
                raise _SearchBudgetExhausted()
            if have_played(opponents, top, candidate):
                continue

            pairings = search(rest[:index] + rest[index + 1 :])
            if pairings is not None:
                return [(top, candidate), *pairings]

        return None

    try:
        return search(players)
    except _SearchBudgetExhausted:
        return None


def pair_greedily(
    players: list[UserId], opponents: dict[UserId, set[UserId]]
) -> list[tuple[UserId, UserId]]:
    """Pair top-down with the first non-opponent, tolerating a repeat when none is left."""
    remaining = list(players)
    pairings: list[tuple[UserId, UserId]] = []

    while len(remaining) > 1:
        top = remaining.pop(0)
        index = next(
            (i for i, candidate in enumerate(remaining) if not have_played(opponents, top, candidate)),
            0,
        )
        pairings.append((top, remaining.pop(index)))

    return pairings


def get_bye_candidates(ordered_players: list[UserId], players_with_bye: set[UserId]) -> list[UserId]:
    """Lowest-ranked players without a bye first; everybody has had one only if unavoidable."""
    without_bye = [user_id for user_id in reversed(ordered_players) if user_id not in players_with_bye]
    if len(without_bye) > 0:
        return without_bye
    return list(reversed(ordered_players))


def generate_swiss_round(
    user_ids: Sequence[UserId],
    matches: Sequence[ResultedMatch],
    round_: int,
) -> list[SwissPairing]:
    if len(matches) == 0:
        ordered_players = list(user_ids)
        players_with_bye: set[UserId] = set()
    else:
        standings = build_standings(user_ids, matches)
        ordered_players = [standing.user_id for standing in standings]
        players_with_bye = {standing.user_id for standing in standings if standing.had_bye}

    opponents = build_opponent_map(matches)
    bye_player: UserId | None = None
    pairings: list[tuple[UserId, UserId]] | None = None

    if len(ordered_players) % 2 == 1:
        candidates = get_bye_candidates(ordered_players, players_with_bye)
        for candidate in candidates:
            pool = [user_id for user_id in ordered_players if user_id != candidate]
            pairings = pair_without_rematches(pool, opponents)
            if pairings is not None:
                bye_player = candidate
                break

        if bye_player is None:
            bye_player = candidates[0]
    else:
        pairings = pair_without_rematches(ordered_players, opponents)

    if pairings is None:
        pool = [user_id for user_id in ordered_players if user_id != bye_player]
        pairings = pair_greedily(pool, opponents)

    result = [
        SwissPairing(round=round_, player1_id=player1_id, player2_id=player2_id)
        for player1_id, player2_id in pairings
    ]
    if bye_player is not None:
        result.append(
            SwissPairing(
                round=round_,
                player1_id=bye_player,
                player2_id=None,
                status=MatchStatus.COMPLETED,
                result=MatchResult.PLAYER1,
            )
        )
    return result
