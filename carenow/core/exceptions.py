"""
Failure types shared by the store, repository, services and API layers.

Every repository operation either returns its value or raises a Failure.
Validation failures are raised before any store access; anything the
store raises is wrapped in a ServerFailure naming the operation.
"""

from typing import Optional


class Failure(Exception):
    """Base failure carrying a human-readable message"""

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message

    def __str__(self) -> str:
        return self.message


class ValidationFailure(Failure):
    """Input rejected before any I/O was attempted"""


class ServerFailure(Failure):
    """The backing store failed"""


class NotFoundFailure(Failure):
    """A requested document does not exist"""


class InvalidJobTransitionError(ValidationFailure):
    """A job action is not allowed from the job's current status"""

    def __init__(self, job_id: str, current: str, action: str):
        super().__init__(f"Cannot {action} job {job_id} while it is {current}")
        self.job_id = job_id
        self.current = current
        self.action = action


class ConcurrentModificationError(ServerFailure):
    """A version-checked write lost against a concurrent writer"""

    def __init__(self, collection: str, doc_id: str, expected_version: Optional[int] = None):
        super().__init__(
            f"Document {collection}/{doc_id} was modified concurrently"
            + (f" (expected version {expected_version})" if expected_version is not None else "")
        )
        self.collection = collection
        self.doc_id = doc_id
        self.expected_version = expected_version


class UnsupportedEarningsWindowError(Failure):
    """Week and month earnings counters are not maintained"""

    def __init__(self, window: str):
        super().__init__(
            f"Earnings window '{window}' is not supported: only 'today' and 'total' counters are maintained"
        )
        self.window = window
