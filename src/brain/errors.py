"""Error taxonomy for the memory graph.

    BrainError
    ├── StorageError
    │   ├── LoadError            reading the store failed
    │   └── SaveError            writing the store failed
    ├── UserPreferenceError
    │   └── EntityNotFound       an operation named an entity that does not exist
    └── ScoringError             caller-supplied metadata is invalid

Malformed store lines are not errors: GraphStore.load() skips them.
"""

from __future__ import annotations


class BrainError(Exception):
    code = "BRAIN_ERROR"

    def __init__(self, message: str, code: str | None = None) -> None:
        super().__init__(message)
        if code is not None:
            self.code = code


class StorageError(BrainError):
    code = "STORAGE_ERROR"


class LoadError(StorageError):
    code = "LOAD_ERROR"


class SaveError(StorageError):
    code = "SAVE_ERROR"


class UserPreferenceError(BrainError):
    code = "USER_PREFERENCE_ERROR"


class EntityNotFound(UserPreferenceError):
    def __init__(self, name: str) -> None:
        super().__init__(f"Entity with name {name} not found")
        self.name = name


class ScoringError(BrainError):
    code = "EMOTIONAL_PROCESSING_ERROR"
