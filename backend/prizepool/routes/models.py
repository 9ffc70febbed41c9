from pydantic import BaseModel

from prizepool.models.db.entry import Entry
from prizepool.models.db.ledger import PrizePoolLedgerEntry
from prizepool.models.db.match import Match
from prizepool.models.db.payout import Payout, PayoutSchedule
from prizepool.models.db.season import SeasonConfig
from prizepool.models.db.tournament import Tournament
from prizepool.models.standings import RankedStanding


class SuccessResponse(BaseModel):
    success: bool = True


class DataResponse[DataT](BaseModel):
    data: DataT


class TournamentResponse(DataResponse[Tournament]):
    pass


class EntryResponse(DataResponse[Entry]):
    pass


class StandingsResponse(DataResponse[list[RankedStanding]]):
    pass


class MatchesResponse(DataResponse[list[Match]]):
    pass


class MatchResultView(BaseModel):
    match: Match
    advance: str


class MatchResultResponse(DataResponse[MatchResultView]):
    pass


class AdvanceResponse(DataResponse[str]):
    pass


class PayoutScheduleResponse(DataResponse[list[PayoutSchedule]]):
    pass


class LedgerResponse(DataResponse[list[PrizePoolLedgerEntry]]):
    pass


class PayoutResponse(DataResponse[Payout]):
    pass


class PayoutsResponse(DataResponse[list[Payout]]):
    pass


class SeasonConfigResponse(DataResponse[SeasonConfig]):
    pass


class WebhookReceivedResponse(BaseModel):
    received: bool = True
