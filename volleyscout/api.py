"""Public operations on match ledgers.

Every operation takes the match data it works on explicitly; there is no
module-level current match.
"""

from volleyscout.recording.recorder import apply, load
from volleyscout.reporting.query import aggregate, query

__all__ = ["aggregate", "apply", "load", "query"]
