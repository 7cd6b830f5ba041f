from __future__ import annotations

from typing import Literal

from pydantic import BaseModel


UserRole = Literal["CS", "TSO", "NOC"]
CustomerCategory = Literal["broadband", "dedicated", "reseller"]
TicketStatus = Literal["New", "In Progress", "Pending", "Cancel", "Solved"]
IssuePriority = Literal["Low", "Medium", "High", "Critical"]


class ErrorResponse(BaseModel):
    detail: str


def reject_explicit_nulls(model: BaseModel, fields: tuple[str, ...]) -> BaseModel:
    for name in fields:
        if name in model.model_fields_set and getattr(model, name) is None:
            raise ValueError(f"{name} cannot be null")
    return model
