"""
Seedable tournament simulation for demos and tooling.

Randomness lives only here. Pairing and ranking are deterministic functions of their
inputs, so a simulation with the same seed and players always produces the same tournament.
"""

import random
from collections.abc import Sequence

from pydantic import BaseModel

from prizepool.logic.ranking.standings import assign_placements, build_standings
from prizepool.logic.scheduling.swiss import generate_swiss_round, get_number_of_swiss_rounds
from prizepool.models.db.match import MatchResult, MatchStatus, SwissPairing
from prizepool.models.standings import RankedStanding
from prizepool.utils.id_types import UserId

PLAYER1_WIN_PROBABILITY = 0.45
PLAYER2_WIN_PROBABILITY = 0.45


class ResultSimulator:
    def __init__(self, seed: int | None = None) -> None:
        self.seed = seed
        self._random = random.Random(seed)

    def next_result(self) -> MatchResult:
        roll = self._random.random()
        if roll < PLAYER1_WIN_PROBABILITY:
            return MatchResult.PLAYER1
        if roll < PLAYER1_WIN_PROBABILITY + PLAYER2_WIN_PROBABILITY:
            return MatchResult.PLAYER2
        return MatchResult.DRAW


class SimulatedTournament(BaseModel):
    rounds: int
    matches: list[SwissPairing]
    standings: list[RankedStanding]


def play_round(pairings: Sequence[SwissPairing], simulator: ResultSimulator) -> list[SwissPairing]:
    return [
        pairing
        if pairing.status is MatchStatus.COMPLETED
        else pairing.model_copy(
            update={"status": MatchStatus.COMPLETED, "result": simulator.next_result()}
        )
        for pairing in pairings
    ]


def simulate_swiss_tournament(
    user_ids: Sequence[UserId], simulator: ResultSimulator
) -> SimulatedTournament:
    total_rounds = get_number_of_swiss_rounds(len(user_ids))
    matches: list[SwissPairing] = []
    for round_ in range(1, total_rounds + 1):
        pairings = generate_swiss_round(user_ids, matches, round_)
        matches.extend(play_round(pairings, simulator))

    return SimulatedTournament(
        rounds=total_rounds,
        matches=matches,
        standings=assign_placements(build_standings(user_ids, matches)),
    )
