from typing import Dict, List

from pydantic import BaseModel, Field, JsonValue

# A generated record: column name -> any JSON value.
Record = Dict[str, JsonValue]


class CompletionResponse(BaseModel):
    """Expected shape of the model's JSON answer."""

    data: List[Record] = Field(description="Generated records, one object per row.")
