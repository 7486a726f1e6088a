"""Custom exceptions for shopplan."""


class ShopPlanError(Exception):
    """Base exception for all shopplan errors."""


class ReferenceDataError(ShopPlanError):
    """Raised when the reference-data snapshot cannot be loaded.

    No scheduling is attempted after this error.
    """


class ValidationError(ReferenceDataError):
    """Raised when reference data parses but is inconsistent."""


class MissingReferenceError(ValidationError):
    """Raised when a referenced ID does not exist."""


class PersistenceError(ShopPlanError):
    """Raised when the full-replace write of a schedule fails.

    Attributes:
        batch_index: Index of the insert batch that failed, or None if the
            delete phase failed
        delete_completed: True if prior schedule rows were already removed
        inserted_count: Number of rows inserted before the failure
    """

    def __init__(
        self,
        message: str,
        *,
        batch_index: int | None = None,
        delete_completed: bool = False,
        inserted_count: int = 0,
    ) -> None:
        super().__init__(message)
        self.batch_index = batch_index
        self.delete_completed = delete_completed
        self.inserted_count = inserted_count
