"""
Flask web application for Bracket Manager.
"""
import os
import copy
from flask import Flask, render_template, request, jsonify, redirect, url_for, flash, g, abort
from core.models import Tournament, create_participants, STATUS_ACTIVE
from core.bracket import build_bracket, parse_participant_names, validate_bracket_request, get_bracket_display
from core.advancement import select_winner
from core.errors import BracketIntegrityError, StorageError, TournamentNotFoundError
from storage import TournamentStore

app = Flask(__name__)

BASE_DIR = os.path.dirname(os.path.dirname(__file__))
DATA_DIR = os.environ.get('TOURNAMENT_DATA_DIR', os.path.join(BASE_DIR, 'data'))

SAVE_FAILED_MESSAGE = 'Could not save the result. The bracket was restored to its last saved state.'


def _get_or_create_secret_key() -> bytes:
    """Get SECRET_KEY from env, or generate and persist to file."""
    env_key = os.environ.get('SECRET_KEY')
    if env_key:
        return env_key.encode() if isinstance(env_key, str) else env_key
    key_file = os.path.join(DATA_DIR, '.secret_key')
    if os.path.exists(key_file):
        with open(key_file, 'rb') as f:
            return f.read()
    key = os.urandom(24)
    os.makedirs(os.path.dirname(key_file), exist_ok=True)
    with open(key_file, 'wb') as f:
        f.write(key)
    return key


app.secret_key = _get_or_create_secret_key()


def get_store() -> TournamentStore:
    """Return the tournament store for the current request, opening it on first use."""
    if 'store' not in g:
        g.store = TournamentStore(DATA_DIR).open()
    return g.store


@app.teardown_appcontext
def close_store(exc):
    store = g.pop('store', None)
    if store is not None:
        store.close()


def create_tournament(store: TournamentStore, name: str, names: list, size: int) -> Tournament:
    """Build a bracket for ``names`` and persist it as an active tournament."""
    participants = create_participants(names)
    matches = build_bracket(participants, size)
    tournament = Tournament(
        name=name.strip(),
        size=size,
        participants=participants,
        matches=matches,
        status=STATUS_ACTIVE,
        winner=None,
    )
    return store.create(tournament)


def record_winner(store: TournamentStore, tournament_id: str, match_id: int, winner_id: int) -> tuple:
    """
    Apply a match result and persist it.

    The result is applied to an in-memory copy first; if writing it fails
    the last saved state is returned instead.

    Returns:
        (tournament, applied, error) where error is None unless the write failed
    """
    tournament = store.get(tournament_id)
    snapshot = copy.deepcopy(tournament)

    applied = select_winner(tournament, match_id, winner_id)
    if not applied:
        app.logger.warning(f'Ignored winner {winner_id} for match {match_id} in tournament {tournament_id}')
        return tournament, False, None

    try:
        saved = store.update(tournament_id, {
            'matches': tournament.matches,
            'status': tournament.status,
            'winner': tournament.winner,
        })
    except StorageError as e:
        app.logger.error(f'Failed to save result for tournament {tournament_id}: {e}')
        return snapshot, False, SAVE_FAILED_MESSAGE

    app.logger.info(f'Recorded winner {winner_id} for match {match_id} in tournament {tournament_id}')
    if saved.winner:
        app.logger.info(f'Tournament {tournament_id} completed, champion: {saved.winner.name}')
    return saved, True, None


@app.errorhandler(StorageError)
def handle_storage_error(e):
    app.logger.error(f'Storage error on {request.path}: {e}')
    if request.path.startswith('/api/'):
        return jsonify({'error': 'Tournament storage is unavailable'}), 500
    return 'Tournament storage is unavailable. Please try again.', 500


def _parse_int(value):
    """Integer from a form or JSON value; floats, booleans and other text give None."""
    if isinstance(value, bool):
        return None
    if isinstance(value, int):
        return value
    if isinstance(value, str) and value.strip().isdecimal():
        return int(value.strip())
    return None


@app.route('/')
def index():
    return redirect(url_for('tournaments'))


@app.route('/tournaments')
def tournaments():
    """List all tournaments with the create form."""
    return render_template('tournaments.html', tournaments=get_store().list())


@app.route('/api/tournaments/create', methods=['POST'])
def api_create_tournament():
    """Create a new tournament from the submitted form."""
    name = request.form.get('name', '').strip()
    size = _parse_int(request.form.get('size'))
    names = parse_participant_names(request.form.get('participants', ''))

    valid, message = validate_bracket_request(name, names, size)
    if not valid:
        flash(message, 'error')
        return redirect(url_for('tournaments'))

    try:
        tournament = create_tournament(get_store(), name, names, size)
    except StorageError as e:
        app.logger.error(f'Failed to create tournament "{name}": {e}')
        flash('Could not save the tournament. Please try again.', 'error')
        return redirect(url_for('tournaments'))

    app.logger.info(f'Tournament "{name}" created with {len(names)} participants (size {size})')
    flash(f'Tournament "{name}" created.', 'success')
    return redirect(url_for('bracket', tournament_id=tournament.id))


@app.route('/api/tournaments/delete', methods=['POST'])
def api_delete_tournament():
    """Delete a tournament."""
    tournament_id = request.form.get('id', '').strip()
    if not tournament_id:
        flash('No tournament specified.', 'error')
        return redirect(url_for('tournaments'))

    try:
        get_store().delete(tournament_id)
    except StorageError as e:
        app.logger.error(f'Failed to delete tournament {tournament_id}: {e}')
        flash('Could not delete the tournament.', 'error')
        return redirect(url_for('tournaments'))

    flash('Tournament deleted.', 'success')
    return redirect(url_for('tournaments'))


@app.route('/bracket/<tournament_id>')
def bracket(tournament_id):
    """Display a tournament bracket."""
    try:
        tournament = get_store().get(tournament_id)
    except TournamentNotFoundError:
        abort(404)
    return render_template('bracket.html', tournament=tournament,
                           bracket_data=get_bracket_display(tournament))


@app.route('/bracket/<tournament_id>/select', methods=['POST'])
def bracket_select_winner(tournament_id):
    """Record a winner from the bracket page."""
    match_id = _parse_int(request.form.get('match_id'))
    winner_id = _parse_int(request.form.get('winner_id'))
    if match_id is None or winner_id is None:
        flash('Invalid match selection.', 'error')
        return redirect(url_for('bracket', tournament_id=tournament_id))

    try:
        tournament, applied, error = record_winner(get_store(), tournament_id, match_id, winner_id)
    except TournamentNotFoundError:
        abort(404)
    except BracketIntegrityError as e:
        app.logger.error(f'Bracket integrity error in tournament {tournament_id}: {e}')
        flash('This bracket is inconsistent and cannot accept that result.', 'error')
        return redirect(url_for('bracket', tournament_id=tournament_id))

    if error:
        flash(error, 'error')
    elif applied and tournament.winner:
        flash(f'{tournament.winner.name} wins the tournament!', 'success')
    return redirect(url_for('bracket', tournament_id=tournament_id))


@app.route('/api/tournaments', methods=['GET'])
def api_list_tournaments():
    """JSON list of tournaments, newest first."""
    return jsonify({'tournaments': [t.to_dict() for t in get_store().list()]})


@app.route('/api/tournaments/<tournament_id>', methods=['GET'])
def api_get_tournament(tournament_id):
    """JSON tournament record with bracket display data."""
    try:
        tournament = get_store().get(tournament_id)
    except TournamentNotFoundError:
        return jsonify({'error': 'Tournament not found'}), 404
    return jsonify({
        'tournament': tournament.to_dict(),
        'bracket': get_bracket_display(tournament),
    })


@app.route('/api/tournaments/<tournament_id>/winner', methods=['POST'])
def api_select_winner(tournament_id):
    """API endpoint to record a match winner."""
    data = request.get_json(silent=True) or {}
    match_id = _parse_int(data.get('match_id'))
    winner_id = _parse_int(data.get('winner_id'))
    if match_id is None or winner_id is None:
        return jsonify({'error': 'match_id and winner_id must be integers'}), 400

    try:
        tournament, applied, error = record_winner(get_store(), tournament_id, match_id, winner_id)
    except TournamentNotFoundError:
        return jsonify({'error': 'Tournament not found'}), 404
    except BracketIntegrityError as e:
        app.logger.error(f'Bracket integrity error in tournament {tournament_id}: {e}')
        return jsonify({'error': str(e)}), 409

    if error:
        return jsonify({'error': error, 'tournament': tournament.to_dict()}), 500

    return jsonify({
        'success': True,
        'applied': applied,
        'tournament': tournament.to_dict(),
    })


if __name__ == '__main__':
    app.run(debug=True, port=5000)
