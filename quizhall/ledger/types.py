from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime


@dataclass(frozen=True, slots=True)
class AttemptSnapshot:
    student_id: int
    quiz_id: int
    score: int
    completed_at: datetime
    cumulative_score: int | None = None


@dataclass(frozen=True, slots=True)
class LeaderboardEntry:
    rank: int
    account_id: int
    username: str
    cumulative_score: int


@dataclass(frozen=True, slots=True)
class RankSnapshot:
    rank: int
    students_total: int
    cumulative_score: int
