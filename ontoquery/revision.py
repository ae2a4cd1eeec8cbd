import threading


class RevisionCounter:
    """
    Version of the knowledge base's fact set.
    Incremented once per successful mutation, never reset.
    """
    def __init__(self, start: int = 0):
        if start < 0:
            raise ValueError(f"Revision must be non-negative, got {start}")
        self._value = start
        self._lock = threading.Lock()

    def bump(self) -> int:
        """Increment and return the new revision."""
        with self._lock:
            self._value += 1
            return self._value

    def current(self) -> int:
        with self._lock:
            return self._value

    def __repr__(self) -> str:
        return f"RevisionCounter({self.current()})"
