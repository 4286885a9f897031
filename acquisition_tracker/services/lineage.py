import logging
from typing import List, Optional

from ..cancellation import CancellationToken, ensure_token
from ..client import HistorySource
from ..config import MAX_LINEAGE_DEPTH
from ..errors import ResolutionCancelled
from ..models.acquisition import SeasonNode

logger = logging.getLogger(__name__)


async def walk_lineage(
    source: HistorySource,
    league_id: str,
    token: Optional[CancellationToken] = None,
    max_depth: int = MAX_LINEAGE_DEPTH,
) -> List[SeasonNode]:
    """Follow previous-season pointers from ``league_id``; returns oldest season first.

    Visits each league at most once and stops after ``max_depth`` seasons, so a
    cyclic or very long chain still terminates. If the starting league cannot be
    fetched the lineage degrades to that league alone with an empty season label.
    """
    token = ensure_token(token)
    history: List[SeasonNode] = []
    visited = set()
    current_league_id: Optional[str] = league_id

    while current_league_id and len(history) < max_depth and current_league_id not in visited:
        token.raise_if_cancelled()
        visited.add(current_league_id)
        try:
            league = await token.guard(source.get_league(current_league_id))
        except ResolutionCancelled:
            raise
        except Exception as e:
            logger.error("Could not fetch league %s while walking lineage of %s: %s", current_league_id, league_id, e)
            break

        if league is None:
            logger.debug("League %s not found, lineage of %s ends here", current_league_id, league_id)
            break

        history.append(
            SeasonNode(
                league_id=current_league_id,
                season=league.season,
                previous_league_id=league.previous_league_id,
            )
        )
        current_league_id = league.previous_league_id

    if not history:
        return [SeasonNode(league_id=league_id, season="")]

    history.reverse()
    return history
