"""Domain errors raised by the entity store and the rule methods"""


class FixerHubError(Exception):
    """Base class for errors raised below the HTTP layer"""

    status_code = 500

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class ValidationError(FixerHubError):
    """A write violates a schema constraint (required field, enum, range)"""

    status_code = 400


class NotFoundError(FixerHubError):
    """A referenced id does not resolve to a record"""

    status_code = 404

    def __init__(self, resource: str, resource_id=None):
        message = f"{resource} not found"
        if resource_id is not None:
            message = f"{resource} {resource_id} not found"
        super().__init__(message)
        self.resource = resource


class ConstraintViolation(FixerHubError):
    """A uniqueness constraint rejected the write"""

    status_code = 409


class InvalidTransition(FixerHubError):
    """A status change the workflow does not allow"""

    status_code = 400

    def __init__(self, entity: str, current: str, requested: str):
        super().__init__(f"Cannot move {entity} from '{current}' to '{requested}'")
        self.current = current
        self.requested = requested
