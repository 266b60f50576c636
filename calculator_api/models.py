# calculator_api/models.py

from datetime import datetime
from typing import Any, Optional

from bson import ObjectId
from pydantic import BaseModel, ConfigDict, Field, field_validator

from calculator import Operation


class CalculationPayload(BaseModel):
    """
    Body accepted by the record create and update endpoints.
    Numbers may arrive as JSON numbers or numeric strings. The result is stored
    as given and is never checked against the operands.
    """
    model_config = ConfigDict(allow_inf_nan=False)

    operation: Operation # Must be one of the known operation tags
    num1: float # The first operand
    num2: float = 0.0 # The second operand, 0 for sqrt
    result: float # Stored as given, never recomputed

    def to_document(self) -> dict:
        return {
            "operation": self.operation.value,
            "num1": self.num1,
            "num2": self.num2,
            "result": self.result,
        }


class CalculationRecord(BaseModel):
    """A calculation record as read back from the store."""
    model_config = ConfigDict(populate_by_name=True)

    id: str = Field(alias="_id")
    operation: str
    num1: float
    num2: float = 0.0
    result: float
    timestamp: Optional[datetime] = None
    updatedAt: Optional[datetime] = None

    @field_validator("id", mode="before")
    @classmethod
    def _stringify_object_id(cls, value: Any) -> Any:
        if isinstance(value, ObjectId):
            return str(value)
        return value


class InsertResult(BaseModel):
    """Store metadata returned after a record is created."""
    acknowledged: bool = True
    insertedId: str
