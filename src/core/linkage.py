"""
Navigation and propagation over a bracket stored as a flat list of matches
linked by ``next_match_id``.
"""
from typing import Dict, List, Optional

from core.errors import BracketIntegrityError
from core.models import Match


def index_matches(matches: List[Match]) -> Dict[int, Match]:
    """Map match id -> match."""
    return {match.id: match for match in matches}


def get_feeder_matches(matches_by_id: Dict[int, Match], match_id: int) -> List[Match]:
    """Return the matches whose winners feed ``match_id``, in bracket order."""
    feeders = [m for m in matches_by_id.values() if m.next_match_id == match_id]
    return sorted(feeders, key=lambda m: m.match_in_round)


def is_dead_match(matches_by_id: Dict[int, Match], match: Match) -> bool:
    """
    True when ``match`` can never produce a winner.

    A round 1 match is dead when both of its slots are empty. A later match
    is dead when it holds nobody yet and every match feeding it is dead.
    """
    if match.winner_id is not None or match.participant_ids:
        return False
    feeders = get_feeder_matches(matches_by_id, match.id)
    return all(is_dead_match(matches_by_id, feeder) for feeder in feeders)


def is_walkover(matches_by_id: Dict[int, Match], match: Match) -> bool:
    """True for an undecided match holding one participant whose opponent can never arrive."""
    if match.winner_id is not None or len(match.participant_ids) != 1:
        return False
    feeders = get_feeder_matches(matches_by_id, match.id)
    if not feeders:
        return False
    return any(is_dead_match(matches_by_id, feeder) for feeder in feeders)


def place_winner(matches_by_id: Dict[int, Match], match: Match) -> Optional[Match]:
    """
    Move the winner of ``match`` into the first empty slot of its next match.

    Returns the next match, or None when ``match`` is the final.
    Raises BracketIntegrityError if the next match is missing or already full.
    """
    if match.next_match_id is None:
        return None
    next_match = matches_by_id.get(match.next_match_id)
    if next_match is None:
        raise BracketIntegrityError(
            f"Match {match.id} links to missing match {match.next_match_id}")
    if next_match.participant1_id is None:
        next_match.participant1_id = match.winner_id
    elif next_match.participant2_id is None:
        next_match.participant2_id = match.winner_id
    else:
        raise BracketIntegrityError(
            f"Match {next_match.id} is already full; cannot place winner of match {match.id}")
    return next_match


def advance_walkovers(matches_by_id: Dict[int, Match], match: Optional[Match]) -> Optional[Match]:
    """
    Push a lone participant past dead branches, starting at ``match``.

    Returns the last match decided this way, or None when nothing moved.
    """
    decided = None
    while match is not None and is_walkover(matches_by_id, match):
        match.winner_id = match.participant_ids[0]
        decided = match
        match = place_winner(matches_by_id, match)
    return decided
