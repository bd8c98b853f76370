class BracketError(Exception):
    pass


class BracketIntegrityError(BracketError):
    """A winner was propagated into a match whose slots are both taken."""


class TournamentNotFoundError(BracketError):
    pass


class StorageError(BracketError):
    pass
