"""Error taxonomy for the planner core."""


class WellnestError(Exception):
    """Base exception for planner errors."""

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class NoCandidatesError(WellnestError):
    """Raised when the candidate pool for a generation call is empty."""

    def __init__(self, message: str = "No recipes available for meal planning"):
        super().__init__(message)


class NotFoundError(WellnestError):
    """Raised when a referenced plan or recipe does not resolve."""

    def __init__(self, resource: str, resource_id: str):
        super().__init__(f"{resource} {resource_id} not found")
        self.resource = resource
        self.resource_id = resource_id


class InvalidInputError(WellnestError):
    """Raised for malformed inputs before any work begins."""


class ConcurrencyConflictError(WellnestError):
    """Raised when two generation calls race for the same household."""

    def __init__(self, household_id: str):
        super().__init__(
            f"Meal plan generation for household {household_id} conflicted "
            "with a concurrent request; retry"
        )
        self.household_id = household_id
