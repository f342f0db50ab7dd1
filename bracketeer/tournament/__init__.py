"""Tournament blueprint."""

from flask import Blueprint

bp = Blueprint("tournament", __name__, url_prefix="/tournaments")

from . import routes  # noqa: E402, F401
from .bracket import build_bracket  # noqa: E402
from .models import Match, MatchStatus, Participant, Tournament, TournamentStatus  # noqa: E402
from .results import BracketUpdate, apply_result, reset_bracket  # noqa: E402
from .services import TournamentService  # noqa: E402
from .stats import TournamentStats, compute_stats  # noqa: E402

__all__ = [
    "BracketUpdate",
    "Match",
    "MatchStatus",
    "Participant",
    "Tournament",
    "TournamentService",
    "TournamentStats",
    "TournamentStatus",
    "apply_result",
    "build_bracket",
    "compute_stats",
    "reset_bracket",
    "routes",
]
