"""
YAML file storage for tournaments.

All tournaments live in a single ``tournaments.yaml`` under the data
directory. Every read-modify-write cycle holds a file lock so the web app
and the command line can share a data directory.
"""
import os
import uuid
import tempfile
import logging
import yaml
from contextlib import contextmanager
from datetime import datetime
from filelock import FileLock, Timeout

from core.errors import StorageError, TournamentNotFoundError
from core.models import Tournament

logger = logging.getLogger(__name__)

TOURNAMENTS_FILENAME = 'tournaments.yaml'
LOCK_TIMEOUT_SECONDS = 10
UPDATABLE_FIELDS = {'name', 'size', 'participants', 'matches', 'status', 'winner'}


def _serialize_value(value):
    if hasattr(value, 'to_dict'):
        return value.to_dict()
    if isinstance(value, list):
        return [_serialize_value(item) for item in value]
    return value


class TournamentStore:
    def __init__(self, data_dir):
        self.data_dir = data_dir
        self.path = os.path.join(data_dir, TOURNAMENTS_FILENAME)
        self._lock = None

    def open(self):
        os.makedirs(self.data_dir, exist_ok=True)
        self._lock = FileLock(os.path.join(self.data_dir, '.lock'), timeout=LOCK_TIMEOUT_SECONDS)
        return self

    def close(self):
        self._lock = None

    @property
    def is_open(self):
        return self._lock is not None

    def __enter__(self):
        return self.open()

    def __exit__(self, exc_type, exc, tb):
        self.close()

    def __repr__(self):
        return f"TournamentStore(data_dir={self.data_dir}, open={self.is_open})"

    def _require_open(self):
        if self._lock is None:
            raise StorageError('Tournament store is not open')

    @contextmanager
    def _locked(self):
        self._require_open()
        try:
            self._lock.acquire()
        except Timeout as e:
            raise StorageError(f'Timed out waiting for lock on {self.data_dir}') from e
        try:
            yield
        finally:
            self._lock.release()

    def _read_records(self) -> list:
        if not os.path.exists(self.path):
            return []
        try:
            with open(self.path, 'r', encoding='utf-8') as f:
                data = yaml.safe_load(f)
        except (OSError, yaml.YAMLError) as e:
            raise StorageError(f'Failed to read {self.path}: {e}') from e
        if not data:
            return []
        if not isinstance(data, dict):
            raise StorageError(f'Unexpected content in {self.path}: expected a mapping')
        records = data.get('tournaments') or []
        if not isinstance(records, list) or not all(isinstance(r, dict) for r in records):
            raise StorageError(f'Unexpected content in {self.path}: tournaments must be a list of records')
        return records

    def _write_records(self, records: list):
        # A failed write leaves the previous file in place
        try:
            content = yaml.safe_dump({'tournaments': records}, default_flow_style=False,
                                     allow_unicode=True, sort_keys=False)
        except yaml.YAMLError as e:
            raise StorageError(f'Failed to serialize tournaments: {e}') from e

        tmp_path = None
        try:
            fd, tmp_path = tempfile.mkstemp(dir=self.data_dir, prefix='.tournaments-', suffix='.tmp')
            with os.fdopen(fd, 'w', encoding='utf-8') as f:
                f.write(content)
            os.replace(tmp_path, self.path)
        except OSError as e:
            if tmp_path and os.path.exists(tmp_path):
                os.remove(tmp_path)
            raise StorageError(f'Failed to write {self.path}: {e}') from e

    def create(self, tournament: Tournament) -> Tournament:
        """Assign an id and creation timestamp, persist, and return the stored record."""
        with self._locked():
            records = self._read_records()
            record = tournament.to_dict()
            record['id'] = str(uuid.uuid4())
            record['created_at'] = datetime.now().isoformat()
            records.insert(0, record)
            self._write_records(records)
        logger.info('Created tournament %s (%s)', record['id'], record['name'])
        return Tournament.from_dict(record)

    def list(self) -> list:
        """All tournaments, most recently created first."""
        with self._locked():
            try:
                records = self._read_records()
            except StorageError as e:
                logger.warning('%s', e)
                return []
        records.sort(key=lambda r: r.get('created_at') or '', reverse=True)
        return [Tournament.from_dict(r) for r in records]

    def get(self, tournament_id: str) -> Tournament:
        with self._locked():
            records = self._read_records()
        for record in records:
            if record.get('id') == tournament_id:
                return Tournament.from_dict(record)
        raise TournamentNotFoundError(f'Tournament not found: {tournament_id}')

    def update(self, tournament_id: str, fields: dict) -> Tournament:
        """Merge ``fields`` into the stored record and return the merged tournament."""
        unknown = set(fields) - UPDATABLE_FIELDS
        if unknown:
            raise ValueError(f'Cannot update fields: {", ".join(sorted(unknown))}')

        with self._locked():
            records = self._read_records()
            for index, record in enumerate(records):
                if record.get('id') == tournament_id:
                    break
            else:
                raise TournamentNotFoundError(f'Tournament not found: {tournament_id}')
            merged = dict(record)
            merged.update({key: _serialize_value(value) for key, value in fields.items()})
            tournament = Tournament.from_dict(merged)
            records[index] = merged
            self._write_records(records)
        return tournament

    def delete(self, tournament_id: str):
        """Remove a tournament. Unknown ids are ignored."""
        with self._locked():
            records = self._read_records()
            remaining = [r for r in records if r.get('id') != tournament_id]
            if len(remaining) != len(records):
                self._write_records(remaining)
                logger.info('Deleted tournament %s', tournament_id)
