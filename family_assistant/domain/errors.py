"""
Domain errors raised by the use-case services.

The chat layer turns these into short replies and the REST layer into
HTTP status codes. Anything else is an internal failure and is reported
generically.
"""


class DomainError(Exception):
    """Base class for expected, user-facing failures."""

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class NotFoundError(DomainError):
    """The requested entity does not exist."""

    def __init__(self, entity: str, entity_id: object):
        super().__init__(f"{entity} #{entity_id} not found.")
        self.entity = entity
        self.entity_id = entity_id


class PermissionDeniedError(DomainError):
    """The acting user may not mutate the entity."""


class ValidationError(DomainError):
    """The request is malformed (bad id, missing text, unknown repeat...)."""


def require_owner(actor_id: int, *allowed_ids, message: str) -> None:
    """
    Raise PermissionDeniedError unless actor_id is one of allowed_ids.

    None entries (an unassigned todo, say) never match.
    """
    if actor_id is None or actor_id not in [i for i in allowed_ids if i is not None]:
        raise PermissionDeniedError(message)
