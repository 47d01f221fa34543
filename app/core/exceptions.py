"""Domain errors raised by the progression layer."""


class ProgressionError(Exception):
    """Base class for progression errors."""


class CompletionStoreError(ProgressionError):
    """Source facts could not be retrieved; progress cannot be computed."""


class SportPathNotFoundError(ProgressionError):
    """No published sport path with the requested key."""

    def __init__(self, sport_key: str):
        super().__init__(f"Sport path '{sport_key}' not found")
        self.sport_key = sport_key


class RecordNotFoundError(ProgressionError):
    """A referenced figure, level, training or challenge does not exist."""

    def __init__(self, kind: str, record_id):
        super().__init__(f"{kind} '{record_id}' not found")
        self.kind = kind
        self.record_id = record_id
