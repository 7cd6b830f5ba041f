from __future__ import annotations


class HelpdeskError(RuntimeError):
    pass


class NotFoundError(HelpdeskError):
    def __init__(self, entity: str, entity_id: object):
        super().__init__(f"{entity} with ID {entity_id} not found")
        self.entity = entity
        self.entity_id = entity_id


class InactiveActorError(HelpdeskError):
    def __init__(self, user_id: int):
        super().__init__(f"User with ID {user_id} is not active")
        self.user_id = user_id


class InvalidAssignmentError(HelpdeskError):
    pass


class InvalidArgumentError(HelpdeskError):
    pass


class UniqueConstraintViolation(HelpdeskError):
    def __init__(self, field: str, value: object = None):
        detail = f"{field} already exists" if value is None else f"{field} '{value}' already exists"
        super().__init__(detail)
        self.field = field
        self.value = value
