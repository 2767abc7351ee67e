"""Errors raised by the recurring training subsystem."""


class RecurringTrainingError(Exception):
    """Base exception for recurring training errors."""


class RecurringTrainingNotFoundError(RecurringTrainingError):
    """Raised when a recurring training template does not exist."""

    def __init__(self, recurring_id: str):
        self.recurring_id = recurring_id
        super().__init__(f"Recurring training not found: {recurring_id}")


class LedgerConflictError(RecurringTrainingError):
    """Raised when the (template, date) pair is already in the instance ledger.

    Happens when two processing runs race between the existence check and the
    insert. The losing run's writes are rolled back.
    """

    def __init__(self, recurring_id: str, scheduled_date: str):
        self.recurring_id = recurring_id
        self.scheduled_date = scheduled_date
        super().__init__(f"Recurring training {recurring_id} already materialized on {scheduled_date}")
