from prizepool.logic.scheduling.swiss import (
    build_opponent_map,
    generate_swiss_round,
    get_bye_candidates,
    get_number_of_swiss_rounds,
    pair_greedily,
    pair_without_rematches,
)
from prizepool.models.db.match import MatchResult, MatchStatus, SwissPairing
from prizepool.utils.id_types import UserId


def _users(count: int) -> list[UserId]:
    return [UserId(user_id) for user_id in range(1, count + 1)]


def _play(pairings: list[SwissPairing], result: MatchResult = MatchResult.PLAYER1) -> list[SwissPairing]:
    return [
        pairing
        if pairing.status is MatchStatus.COMPLETED
        else pairing.model_copy(update={"status": MatchStatus.COMPLETED, "result": result})
        for pairing in pairings
    ]


def _pair_set(pairing: SwissPairing) -> frozenset[UserId]:
    return frozenset({pairing.player1_id, pairing.player2_id or pairing.player1_id})


def test_number_of_swiss_rounds() -> None:
    assert get_number_of_swiss_rounds(0) == 0
    assert get_number_of_swiss_rounds(1) == 0
    assert get_number_of_swiss_rounds(2) == 2
    assert get_number_of_swiss_rounds(4) == 3
    assert get_number_of_swiss_rounds(5) == 4
    assert get_number_of_swiss_rounds(8) == 4
    assert get_number_of_swiss_rounds(9) == 5


def test_first_round_pairs_in_registration_order() -> None:
    pairings = generate_swiss_round([UserId(5), UserId(3), UserId(9), UserId(1)], [], 1)

    assert [(pairing.player1_id, pairing.player2_id) for pairing in pairings] == [(5, 3), (9, 1)]
    assert all(pairing.round == 1 for pairing in pairings)
    assert all(pairing.status is MatchStatus.SCHEDULED for pairing in pairings)


def test_odd_pool_gives_last_registered_player_a_completed_bye() -> None:
    pairings = generate_swiss_round(_users(5), [], 1)

    byes = [pairing for pairing in pairings if pairing.player2_id is None]
    assert len(byes) == 1
    assert byes[0].player1_id == 5
    assert byes[0].status is MatchStatus.COMPLETED
    assert byes[0].result is MatchResult.PLAYER1


def test_later_rounds_pair_by_score_without_rematches() -> None:
    users = _users(8)
    matches = _play(generate_swiss_round(users, [], 1))
    round2 = generate_swiss_round(users, matches, 2)

    # winners of round one are the odd user ids
    winners = {UserId(1), UserId(3), UserId(5), UserId(7)}
    for pairing in round2:
        assert (pairing.player1_id in winners) == (pairing.player2_id in winners)

    played = {_pair_set(match) for match in matches}
    assert all(_pair_set(pairing) not in played for pairing in round2)


def test_full_tournament_has_no_rematches_and_rotates_byes() -> None:
    users = _users(7)
    matches: list[SwissPairing] = []
    for round_ in range(1, get_number_of_swiss_rounds(len(users)) + 1):
        matches.extend(_play(generate_swiss_round(users, matches, round_), MatchResult.PLAYER2))

    games = [match for match in matches if match.player2_id is not None]
    assert len({_pair_set(match) for match in games}) == len(games)

    bye_receivers = [match.player1_id for match in matches if match.player2_id is None]
    assert len(bye_receivers) == 4
    assert len(set(bye_receivers)) == 4

    for round_ in range(1, 5):
        seen = [
            user_id
            for match in matches
            if match.round == round_
            for user_id in (match.player1_id, match.player2_id)
            if user_id is not None
        ]
        assert sorted(seen) == users


def test_pairing_is_reproducible() -> None:
    users = _users(10)
    matches = _play(generate_swiss_round(users, [], 1), MatchResult.DRAW)
    assert generate_swiss_round(users, matches, 2) == generate_swiss_round(users, matches, 2)


def test_pair_without_rematches_backtracks() -> None:
    players = _users(4)
    # the top pairing 1-2 is already played, as is 3-4
    opponents = build_opponent_map(
        [
            SwissPairing(round=1, player1_id=UserId(1), player2_id=UserId(2)),
            SwissPairing(round=1, player1_id=UserId(4), player2_id=UserId(3)),
        ]
    )
    assert pair_without_rematches(players, opponents) == [(1, 3), (2, 4)]


def test_pair_without_rematches_reports_impossible_pairing() -> None:
    opponents = build_opponent_map(
        [SwissPairing(round=1, player1_id=UserId(1), player2_id=UserId(2))]
    )
    assert pair_without_rematches(_users(2), opponents) is None


def test_fallback_tolerates_a_repeat_pairing() -> None:
    users = _users(2)
    matches = _play(generate_swiss_round(users, [], 1))

    round2 = generate_swiss_round(users, matches, 2)

    assert [(pairing.player1_id, pairing.player2_id) for pairing in round2] == [(1, 2)]
    assert pair_greedily(users, build_opponent_map(matches)) == [(1, 2)]


def test_bye_candidates_skip_players_who_had_a_bye() -> None:
    ordered = _users(5)
    assert get_bye_candidates(ordered, {UserId(5)})[:2] == [4, 3]
    assert get_bye_candidates(ordered, set(ordered)) == [5, 4, 3, 2, 1]
