#!/usr/bin/env python3
import argparse
import asyncio
from decimal import Decimal

from prizepool.database import database
from prizepool.logic.payments.entitlements import compute_entitlement
from prizepool.logic.scheduling.advance import AdvanceOutcome
from prizepool.logic.scheduling.results import report_match_result
from prizepool.logic.simulation import ResultSimulator, simulate_swiss_tournament
from prizepool.models.db.match import MatchStatus
from prizepool.models.db.payout import PayoutScheduleSlot
from prizepool.sql.matches import sql_get_matches
from prizepool.utils.id_types import TournamentId, UserId


def print_offline_simulation(players: int, simulator: ResultSimulator, prize_pool: Decimal) -> None:
    user_ids = [UserId(user_id) for user_id in range(1, players + 1)]
    simulated = simulate_swiss_tournament(user_ids, simulator)
    schedule = [PayoutScheduleSlot(position=1, percent=Decimal(100))]

    print(f"{players} players, {simulated.rounds} rounds, {len(simulated.matches)} matches")
    for standing in simulated.standings:
        entitlement = compute_entitlement(standing.placement, schedule, prize_pool)
        prize = entitlement.amount if entitlement is not None else Decimal("0.00")
        print(
            f"{standing.placement:>3}. player {standing.user_id:<4} "
            f"{standing.points:>4} pts  buchholz {standing.buchholz:>5}  "
            f"sb {standing.sonneborn:>5}  prize {prize}"
        )


async def play_tournament(tournament_id: TournamentId, simulator: ResultSimulator) -> None:
    """Report simulated results round by round until the tournament completes."""
    while True:
        scheduled = [
            match
            for match in await sql_get_matches(tournament_id)
            if match.status is MatchStatus.SCHEDULED
        ]
        if len(scheduled) < 1:
            return

        for match in scheduled:
            _, outcome = await report_match_result(tournament_id, match.id, simulator.next_result())
            if outcome is AdvanceOutcome.TOURNAMENT_COMPLETED:
                print(f"Tournament {tournament_id} completed")
                return
            if outcome is AdvanceOutcome.ROUND_CREATED:
                print(f"Tournament {tournament_id}: next round generated")


async def async_main() -> None:
    parser = argparse.ArgumentParser(
        description=(
            "Simulate a Swiss tournament with seeded random results, either offline or by "
            "reporting results for an in-progress tournament in the database."
        )
    )
    parser.add_argument("--players", type=int, default=8)
    parser.add_argument("--seed", type=int, default=None)
    parser.add_argument("--prize-pool", type=Decimal, default=Decimal("100.00"))
    parser.add_argument(
        "--tournament-id",
        type=int,
        default=None,
        help="Play the scheduled matches of this in-progress tournament instead.",
    )
    args = parser.parse_args()

    simulator = ResultSimulator(args.seed)
    if args.tournament_id is None:
        if args.players < 2:
            raise ValueError("--players must be at least 2")
        print_offline_simulation(args.players, simulator, args.prize_pool)
        return

    await database.connect()
    try:
        await play_tournament(TournamentId(args.tournament_id), simulator)
    finally:
        await database.disconnect()


if __name__ == "__main__":
    asyncio.run(async_main())
