"""Session ticket constants shared by the lifecycle and redemption services."""

SESSION_TTL_MS: int = 5 * 60 * 1000
MAX_PENDING_SESSIONS: int = 20
DEFAULT_TOTAL_QUESTIONS: int = 10

PENDING_SESSIONS_KEY: str = "pendingSessions"
SCORES_KEY: str = "scores"
