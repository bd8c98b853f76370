import argparse
import os
import random
import sys

from core.models import Tournament, create_participants, STATUS_ACTIVE
from core.bracket import build_bracket, parse_participant_names, validate_bracket_request, get_bracket_display
from core.errors import StorageError
from storage import TournamentStore


def load_participant_names(file_path):
    with open(file_path, mode='r', encoding='utf-8') as file:
        return parse_participant_names(file.read())


def format_bracket(tournament):
    """Render a tournament as text, one '# <round>' section per round."""
    bracket_data = get_bracket_display(tournament)
    lines = []
    for round_data in bracket_data['rounds']:
        if lines:
            lines.append('')  # blank line between rounds
        lines.append(f"# {round_data['name']}")
        for match in round_data['matches']:
            names = []
            for participant in (match['participant1'], match['participant2']):
                if participant:
                    names.append(participant['name'])
                elif match['is_bye'] or match['is_dead']:
                    names.append('BYE')
                else:
                    names.append('TBD')
            line = f"{names[0]} vs {names[1]}"
            if match['is_bye'] or match['is_walkover']:
                line += ' (bye)'
            lines.append(line)
    return '\n'.join(lines)


def main(argv=None):
    script_dir = os.path.dirname(__file__)
    base_dir = os.path.dirname(script_dir)

    parser = argparse.ArgumentParser(description='Generate a single elimination bracket.')
    parser.add_argument('participants', help='File with one participant name per line')
    parser.add_argument('--size', type=int, default=8, help='Bracket size: 8, 16 or 32 (default: 8)')
    parser.add_argument('--name', default='Tournament', help='Tournament name')
    parser.add_argument('--seed', type=int, help='Random seed for a reproducible draw')
    parser.add_argument('--save', action='store_true', help='Save the tournament to the data directory')
    args = parser.parse_args(argv)

    names = load_participant_names(args.participants)
    valid, message = validate_bracket_request(args.name, names, args.size)
    if not valid:
        print(f"Error: {message}", file=sys.stderr)
        return 1

    rng = random.Random(args.seed) if args.seed is not None else None
    participants = create_participants(names)
    tournament = Tournament(
        name=args.name,
        size=args.size,
        participants=participants,
        matches=build_bracket(participants, args.size, rng),
        status=STATUS_ACTIVE,
    )

    print(format_bracket(tournament))

    if args.save:
        data_dir = os.environ.get('TOURNAMENT_DATA_DIR', os.path.join(base_dir, 'data'))
        try:
            with TournamentStore(data_dir) as store:
                saved = store.create(tournament)
        except StorageError as e:
            print(f"Error: {e}", file=sys.stderr)
            return 1
        print(f"\nSaved tournament {saved.id}")
    return 0


if __name__ == '__main__':
    sys.exit(main())
