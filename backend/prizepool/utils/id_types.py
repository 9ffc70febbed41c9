from typing import NewType

AuditLogId = NewType("AuditLogId", int)
AntiCheatCaseId = NewType("AntiCheatCaseId", int)
EntryId = NewType("EntryId", int)
LedgerEntryId = NewType("LedgerEntryId", int)
MatchId = NewType("MatchId", int)
PayoutId = NewType("PayoutId", int)
PayoutScheduleId = NewType("PayoutScheduleId", int)
TournamentId = NewType("TournamentId", int)
UserId = NewType("UserId", int)
