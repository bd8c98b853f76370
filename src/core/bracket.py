"""
Single elimination bracket generation.
"""
import math
import random
from typing import List, Dict, Tuple, Optional

from core.advancement import is_match_playable
from core.linkage import index_matches, place_winner, advance_walkovers, get_feeder_matches, is_dead_match
from core.models import Match, Participant, Tournament, VALID_BRACKET_SIZES

MIN_PARTICIPANTS = 2


def get_round_name(teams_in_round: int) -> str:
    """Get the name of a round based on number of slots in it."""
    if teams_in_round == 2:
        return "Final"
    elif teams_in_round == 4:
        return "Semifinal"
    elif teams_in_round == 8:
        return "Quarterfinal"
    else:
        return f"Round of {teams_in_round}"


def calculate_total_rounds(size: int) -> int:
    """Number of rounds in a bracket of ``size`` slots."""
    return int(math.log2(size))


def parse_participant_names(text: str) -> List[str]:
    """One name per line; surrounding whitespace and blank lines are dropped."""
    if not text:
        return []
    return [line.strip() for line in text.splitlines() if line.strip()]


def validate_bracket_request(name: str, names: List[str], size) -> Tuple[bool, str]:
    """Check tournament creation input. Returns (valid, message)."""
    if not name or not name.strip():
        return False, 'Tournament name is required.'
    if size not in VALID_BRACKET_SIZES:
        return False, f'Bracket size must be one of {", ".join(str(s) for s in VALID_BRACKET_SIZES)}.'
    if len(names) < MIN_PARTICIPANTS:
        return False, f'At least {MIN_PARTICIPANTS} participants are required.'
    if len(names) > size:
        return False, f'Number of participants ({len(names)}) exceeds the bracket size ({size}).'
    return True, ''


def shuffle_participants(participants: List[Participant], rng: Optional[random.Random] = None) -> List[Participant]:
    """
    Return a uniformly random permutation of ``participants``.

    Fisher-Yates: walk from the last index down to 1, swapping each element
    with a random element at or before its own position. The input list is
    left untouched.
    """
    rng = rng or random
    shuffled = list(participants)
    for i in range(len(shuffled) - 1, 0, -1):
        j = rng.randint(0, i)
        shuffled[i], shuffled[j] = shuffled[j], shuffled[i]
    return shuffled


def build_bracket(participants: List[Participant], size: int, rng: Optional[random.Random] = None) -> List[Match]:
    """
    Build every match of a single elimination bracket up front.

    Round 1 pairs the shuffled participants in order; a match with a single
    participant is a bye and is decided immediately. Later rounds start
    empty and are linked so that positions 2k and 2k+1 of a round feed
    position k of the next. Bye winners are then pushed into their next
    match.

    Args:
        participants: 2..size participants
        size: bracket size, one of VALID_BRACKET_SIZES
        rng: optional random.Random for reproducible draws

    Returns:
        Flat list of size - 1 matches, ids assigned sequentially by round
    """
    shuffled = shuffle_participants(participants, rng)
    matches = []
    match_id = 0

    # Round 1
    current_round = []
    for i in range(size // 2):
        p1 = shuffled[i * 2] if i * 2 < len(shuffled) else None
        p2 = shuffled[i * 2 + 1] if i * 2 + 1 < len(shuffled) else None

        winner_id = None
        if p1 is not None and p2 is None:
            winner_id = p1.id
        elif p2 is not None and p1 is None:
            winner_id = p2.id

        current_round.append(Match(
            id=match_id,
            round=1,
            match_in_round=i,
            participant1_id=p1.id if p1 is not None else None,
            participant2_id=p2.id if p2 is not None else None,
            winner_id=winner_id,
        ))
        match_id += 1
    matches.extend(current_round)

    # Later rounds, linking the previous round into each new match
    round_number = 2
    matches_in_round = size // 4
    while matches_in_round >= 1:
        next_round = []
        for i in range(matches_in_round):
            match = Match(id=match_id, round=round_number, match_in_round=i)
            match_id += 1
            current_round[i * 2].next_match_id = match.id
            current_round[i * 2 + 1].next_match_id = match.id
            next_round.append(match)
        matches.extend(next_round)
        current_round = next_round
        matches_in_round //= 2
        round_number += 1

    # Byes were decided before their next match existed
    matches_by_id = index_matches(matches)
    for match in matches:
        if match.round == 1 and match.winner_id is not None:
            next_match = place_winner(matches_by_id, match)
            advance_walkovers(matches_by_id, next_match)

    return matches


def group_matches_by_round(matches: List[Match]) -> Dict[int, List[Match]]:
    """Group matches by round number, each round ordered by position."""
    rounds = {}
    for match in matches:
        rounds.setdefault(match.round, []).append(match)
    return {r: sorted(ms, key=lambda m: m.match_in_round) for r, ms in sorted(rounds.items())}


def get_bracket_display(tournament: Tournament) -> Dict:
    """
    Get bracket data formatted for UI display.
    """
    matches_by_id = index_matches(tournament.matches)
    rounds = []
    byes = 0
    for round_number, round_matches in group_matches_by_round(tournament.matches).items():
        match_views = []
        for match in round_matches:
            is_bye = match.round == 1 and len(match.participant_ids) == 1
            if is_bye:
                byes += 1
            p1 = tournament.get_participant(match.participant1_id)
            p2 = tournament.get_participant(match.participant2_id)
            feeders = get_feeder_matches(matches_by_id, match.id)
            walkover = (match.round > 1 and match.winner_id is not None
                        and any(is_dead_match(matches_by_id, f) for f in feeders))
            match_views.append({
                'id': match.id,
                'round': match.round,
                'match_in_round': match.match_in_round,
                'participant1': p1.to_dict() if p1 else None,
                'participant2': p2.to_dict() if p2 else None,
                'winner_id': match.winner_id,
                'next_match_id': match.next_match_id,
                'is_bye': is_bye,
                'is_walkover': walkover,
                'is_dead': is_dead_match(matches_by_id, match),
                'is_playable': is_match_playable(tournament, match),
            })
        rounds.append({
            'round': round_number,
            'name': get_round_name(len(round_matches) * 2),
            'matches': match_views,
        })

    return {
        'rounds': rounds,
        'size': tournament.size,
        'total_rounds': len(rounds),
        'total_participants': len(tournament.participants),
        'byes': byes,
        'status': tournament.status,
        'champion': tournament.winner.to_dict() if tournament.winner else None,
    }
