import logging
from typing import List, Optional, Tuple

from ..models.acquisition import DraftRecord, SeasonData, SeasonNode, StartupClassification
from ..models.sleeper import DraftType

logger = logging.getLogger(__name__)

# Draft ids are opaque, so matching on these substrings can misclassify a draft.
# The rule is kept as-is for compatibility with existing results.
STARTUP_MARKERS = ("startup", "initial")


def draft_sort_key(draft_id: str) -> Tuple[int, int, str]:
    """Ascending draft id as a proxy for draft order: numeric ids first, by value."""
    if draft_id.isdigit():
        return (0, int(draft_id), draft_id)
    return (1, 0, draft_id)


def sort_drafts(drafts: List[DraftRecord]) -> List[DraftRecord]:
    return sorted(drafts, key=lambda d: draft_sort_key(d.draft_id))


def participated(draft: DraftRecord, participant_id: str) -> bool:
    return any(pick.picked_by == participant_id for pick in draft.picks)


def is_named_startup(draft: DraftRecord) -> bool:
    if draft.declared_type == DraftType.STARTUP:
        return True
    draft_id = draft.draft_id.lower()
    return any(marker in draft_id for marker in STARTUP_MARKERS)


def designate_startup_draft(drafts: List[DraftRecord], participant_id: str) -> Optional[str]:
    """Pick the startup draft among the drafts the participant picked in.

    A draft declared or named as a startup wins; otherwise the earliest draft
    the participant took part in is used.
    """
    designated = None
    for draft in sort_drafts(drafts):
        if not participated(draft, participant_id):
            continue
        if is_named_startup(draft):
            return draft.draft_id
        if designated is None:
            designated = draft.draft_id
    return designated


def classify_startup(seasons: List[SeasonData], participant_id: str) -> StartupClassification:
    """Locate the participant's earliest season and the draft that stocked their roster."""
    drafts_before_participant = False
    for season in seasons:
        if season.roster is None:
            if season.drafts:
                drafts_before_participant = True
            continue

        startup_draft_id = designate_startup_draft(season.drafts, participant_id)
        logger.debug(
            "Participant %s first appears in %s (league %s); startup draft %s; earlier drafts: %s",
            participant_id,
            season.node.season,
            season.node.league_id,
            startup_draft_id,
            drafts_before_participant,
        )
        return StartupClassification(
            found_participant=True,
            earliest_season=season.node,
            startup_draft_id=startup_draft_id,
            drafts_before_participant=drafts_before_participant,
        )

    return StartupClassification(drafts_before_participant=drafts_before_participant)


def is_startup_draft(
    classification: StartupClassification,
    node: SeasonNode,
    draft_id: str,
    redraft: bool = False,
) -> bool:
    # Redraft leagues carry no rosters over, so every draft stocks a roster from scratch.
    if redraft:
        return True
    if classification.drafts_before_participant or classification.earliest_season is None:
        return False
    return node == classification.earliest_season and draft_id == classification.startup_draft_id
