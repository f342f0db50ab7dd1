"""Global constants for the bracketeer application."""

# Firestore collections
TOURNAMENTS_COLLECTION = "tournaments"
MATCHES_COLLECTION = "matches"
PARTICIPANTS_COLLECTION = "participants"

# Firestore allows at most 500 operations per batched write
FIRESTORE_BATCH_LIMIT = 500

# Bracket rules
MIN_PARTICIPANTS = 2
MIN_PARTICIPANT_NAME_LENGTH = 3

# Round labels, counted back from the final
FINAL_ROUND_NAME = "Final"
SEMI_FINAL_ROUND_NAME = "Semi Finals"
QUARTER_FINAL_ROUND_NAME = "Quarter Finals"

# Score keys for the two player slots
SLOT_SCORE_KEYS = ("player1Score", "player2Score")

# Tournament document rules
MIN_TOURNAMENT_NAME_LENGTH = 3
MAX_TOURNAMENT_NAME_LENGTH = 100
MIN_MAX_PARTICIPANTS = 1
TOURNAMENT_FIELDS = (
    "name",
    "date",
    "status",
    "config",
    "event_winner",
    "createdAt",
    "createdBy",
    "updatedAt",
    "updatedBy",
)
