"""
Domain errors for fleet operations.

All of them are raised before any record is written, so a caught
FleetError always means nothing changed.
"""


class FleetError(Exception):
    """Base class for rejected fleet operations"""

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class ValidationError(FleetError):
    """Malformed input (bad plate format, missing field, ...)"""


class ConflictError(FleetError):
    """Uniqueness violation: plate, license, email or phone already used"""


class EligibilityError(FleetError):
    """Assignment, unassignment or deletion not allowed in the current state"""


class NotFoundError(FleetError):
    """Referenced truck, driver or trip does not exist"""
