STATUS_CONFIGURING = 'configuring'
STATUS_ACTIVE = 'active'
STATUS_COMPLETED = 'completed'
TOURNAMENT_STATUSES = (STATUS_CONFIGURING, STATUS_ACTIVE, STATUS_COMPLETED)
VALID_BRACKET_SIZES = (8, 16, 32)


class Participant:
    def __init__(self, id, name, avatar=None):
        self.id = id
        self.name = name
        self.avatar = avatar

    def to_dict(self):
        data = {'id': self.id, 'name': self.name}
        if self.avatar:
            data['avatar'] = self.avatar
        return data

    @classmethod
    def from_dict(cls, data):
        return cls(id=int(data['id']), name=data['name'], avatar=data.get('avatar'))

    def __eq__(self, other):
        if not isinstance(other, Participant):
            return NotImplemented
        return (self.id, self.name, self.avatar) == (other.id, other.name, other.avatar)

    def __hash__(self):
        return hash((self.id, self.name))

    def __repr__(self):
        return f"Participant(id={self.id}, name={self.name})"


class Match:
    def __init__(self, id, round, match_in_round, participant1_id=None, participant2_id=None,
                 winner_id=None, next_match_id=None):
        self.id = id
        self.round = round
        self.match_in_round = match_in_round
        self.participant1_id = participant1_id
        self.participant2_id = participant2_id
        self.winner_id = winner_id
        self.next_match_id = next_match_id  # None only for the final

    @property
    def participant_ids(self):
        return [pid for pid in (self.participant1_id, self.participant2_id) if pid is not None]

    def to_dict(self):
        return {
            'id': self.id,
            'round': self.round,
            'match_in_round': self.match_in_round,
            'participant1_id': self.participant1_id,
            'participant2_id': self.participant2_id,
            'winner_id': self.winner_id,
            'next_match_id': self.next_match_id,
        }

    @classmethod
    def from_dict(cls, data):
        return cls(
            id=data['id'],
            round=data['round'],
            match_in_round=data['match_in_round'],
            participant1_id=data.get('participant1_id'),
            participant2_id=data.get('participant2_id'),
            winner_id=data.get('winner_id'),
            next_match_id=data.get('next_match_id'),
        )

    def __repr__(self):
        return (f"Match(id={self.id}, round={self.round}, match_in_round={self.match_in_round}, "
                f"participants=({self.participant1_id}, {self.participant2_id}), "
                f"winner={self.winner_id}, next={self.next_match_id})")


class Tournament:
    def __init__(self, name, size, participants, matches, status=STATUS_ACTIVE, winner=None,
                 id=None, created_at=None):
        self.id = id  # assigned by the store
        self.name = name
        self.size = size
        self.participants = participants
        self.matches = matches
        self.status = status
        self.winner = winner
        self.created_at = created_at

    def get_participant(self, participant_id):
        if participant_id is None:
            return None
        for participant in self.participants:
            if participant.id == participant_id:
                return participant
        return None

    def get_match(self, match_id):
        for match in self.matches:
            if match.id == match_id:
                return match
        return None

    @property
    def final_match(self):
        for match in self.matches:
            if match.next_match_id is None:
                return match
        return None

    def to_dict(self):
        return {
            'id': self.id,
            'name': self.name,
            'size': self.size,
            'participants': [p.to_dict() for p in self.participants],
            'matches': [m.to_dict() for m in self.matches],
            'status': self.status,
            'winner': self.winner.to_dict() if self.winner else None,
            'created_at': self.created_at,
        }

    @classmethod
    def from_dict(cls, data):
        status = data.get('status', STATUS_ACTIVE)
        if status not in TOURNAMENT_STATUSES:
            raise ValueError(f"Unknown tournament status: {status}")
        size = int(data['size'])
        if size not in VALID_BRACKET_SIZES:
            raise ValueError(f"Unsupported bracket size: {size}")
        winner = data.get('winner')
        return cls(
            id=data.get('id'),
            name=data['name'],
            size=size,
            participants=[Participant.from_dict(p) for p in data.get('participants') or []],
            matches=[Match.from_dict(m) for m in data.get('matches') or []],
            status=status,
            winner=Participant.from_dict(winner) if winner else None,
            created_at=data.get('created_at'),
        )

    def __repr__(self):
        return f"Tournament(id={self.id}, name={self.name}, size={self.size}, status={self.status})"


def create_participants(names):
    """Turn a list of names into participants with ids 1..n in input order."""
    return [Participant(id=index + 1, name=name) for index, name in enumerate(names)]
