from pydantic import BaseModel, Field
from typing import List, Optional
from pydantic import ConfigDict


class UserContext(BaseModel):
    """User identity and account membership context."""
    user_id: Optional[str] = Field(default=None, description="Unique identifier for the user.")
    account_ids: List[str] = Field(
        default_factory=list,
        description="Accounts the user is a member of. '*' grants access to every account."
    )
    model_config = ConfigDict(extra="ignore")
