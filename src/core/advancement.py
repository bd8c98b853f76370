"""
Recording match results and advancing winners through a bracket.
"""
from core.errors import BracketIntegrityError
from core.linkage import index_matches, place_winner, advance_walkovers
from core.models import Match, Tournament, STATUS_COMPLETED


def is_match_playable(tournament: Tournament, match: Match) -> bool:
    """A match can be decided once both participants are known and no winner is recorded."""
    return (tournament.status != STATUS_COMPLETED
            and match.winner_id is None
            and match.participant1_id is not None
            and match.participant2_id is not None)


def select_winner(tournament: Tournament, match_id: int, winner_id: int) -> bool:
    """
    Record ``winner_id`` as the winner of ``match_id`` and advance it.

    The tournament is updated in place. Calls on an unknown or already
    decided match, on a completed tournament, or naming someone who is not
    in the match are ignored and return False.

    When the winner lands in a match whose other side is a dead branch
    (only empty first round matches below it) it advances again straight
    away. Deciding the final completes the tournament.

    Raises:
        BracketIntegrityError: a match on the winner's path is already full
            or links to a missing match. Nothing is modified in that case.
    """
    match = tournament.get_match(match_id)
    if match is None or not is_match_playable(tournament, match):
        return False
    if winner_id not in (match.participant1_id, match.participant2_id):
        return False

    matches_by_id = index_matches(tournament.matches)
    saved = {m.id: (m.participant1_id, m.participant2_id, m.winner_id) for m in tournament.matches}
    try:
        match.winner_id = winner_id
        next_match = place_winner(matches_by_id, match)
        decided = advance_walkovers(matches_by_id, next_match) or match
    except BracketIntegrityError:
        for m in tournament.matches:
            m.participant1_id, m.participant2_id, m.winner_id = saved[m.id]
        raise

    if decided.next_match_id is None:
        tournament.status = STATUS_COMPLETED
        tournament.winner = tournament.get_participant(decided.winner_id)

    return True
