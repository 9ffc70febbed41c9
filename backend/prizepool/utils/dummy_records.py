from decimal import Decimal
from zoneinfo import ZoneInfo

from heliclockter import datetime_utc, timedelta

from prizepool.models.db.account import KycStatus, UserRole
from prizepool.models.db.entry import Entry, EntryStatus
from prizepool.models.db.payout import Payout, PayoutStatus
from prizepool.models.db.tournament import Tournament, TournamentStatus
from prizepool.models.db.user import UserProfile, UserPublic
from prizepool.utils.id_types import EntryId, PayoutId, TournamentId, UserId

DUMMY_MOCK_TIME = datetime_utc(2022, 1, 11, 4, 32, 11, tzinfo=ZoneInfo("UTC"))

DUMMY_TOURNAMENT = Tournament(
    id=TournamentId(1),
    name="Sunday Swiss",
    status=TournamentStatus.REGISTRATION,
    entry_fee=Decimal("10.00"),
    prize_pool=Decimal("0.00"),
    min_players=4,
    max_players=16,
    current_players=0,
    start_date=DUMMY_MOCK_TIME + timedelta(days=1),
    lock_at=DUMMY_MOCK_TIME + timedelta(days=1, minutes=-2),
    created_by=UserId(100),
    created=DUMMY_MOCK_TIME,
)

DUMMY_COMPLETED_TOURNAMENT = DUMMY_TOURNAMENT.model_copy(
    update={
        "status": TournamentStatus.COMPLETED,
        "prize_pool": Decimal("100.00"),
        "current_players": 4,
    }
)

DUMMY_USER = UserPublic(
    id=UserId(1),
    email="player@example.com",
    name="Player One",
    role=UserRole.USER,
    created=DUMMY_MOCK_TIME,
)

DUMMY_ADMIN = UserPublic(
    id=UserId(100),
    email="admin@example.com",
    name="Admin",
    role=UserRole.ADMIN,
    created=DUMMY_MOCK_TIME,
)

DUMMY_VERIFIED_PROFILE = UserProfile(
    user_id=UserId(1),
    kyc_status=KycStatus.VERIFIED,
    kyc_verified_at=DUMMY_MOCK_TIME,
    payment_destination="acct_player_one",
)

DUMMY_ENTRY = Entry(
    id=EntryId(1),
    user_id=UserId(1),
    tournament_id=TournamentId(1),
    status=EntryStatus.CONFIRMED,
    payment_reference="pi_player_one",
    paid_at=DUMMY_MOCK_TIME,
    created=DUMMY_MOCK_TIME,
)

DUMMY_PAYOUT = Payout(
    id=PayoutId(1),
    user_id=UserId(1),
    tournament_id=TournamentId(1),
    amount=Decimal("100.00"),
    entitlement_amount=Decimal("100.00"),
    placement=1,
    status=PayoutStatus.PENDING,
    anti_cheat_hold=False,
    kyc_verified_at=DUMMY_MOCK_TIME,
    created=DUMMY_MOCK_TIME,
)
