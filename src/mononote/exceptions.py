__all__ = [
    "NoteNameTakenError",
    "NoteNotFoundError",
    "RemoteFileExistsError",
    "RemoteFileNotFoundError",
    "RemoteStoreError",
    "SyncStepError",
]


class NoteNameTakenError(ValueError):
    """
    Raised when creating or renaming a note to a name another note already has.
    """

    def __init__(self, name: str):
        self.name = name
        super().__init__(f"A note named {name!r} already exists")


class NoteNotFoundError(LookupError):
    """
    Raised when a note id or name does not resolve to a stored note.
    """


class RemoteStoreError(RuntimeError):
    """
    Raised when the remote store rejects a request.
    """


class RemoteFileNotFoundError(RemoteStoreError):
    """
    Raised when a remote file id or path no longer exists.
    """


class RemoteFileExistsError(RemoteStoreError):
    """
    Raised when an upload or move targets a path another remote file already has.
    """


class SyncStepError(RuntimeError):
    """
    Raised at the end of a reconciliation step when one or more notes failed.

    The remaining notes of the step were still processed; the remaining
    steps of the pass are skipped.
    """

    def __init__(self, step: str, failures: list[str]):
        self.step = step
        self.failures = failures
        super().__init__(f"{step}: {len(failures)} failed ({', '.join(failures[:5])})")
