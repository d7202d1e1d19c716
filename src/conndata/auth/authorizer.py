from typing import Optional, Protocol

from conndata.common.errors import UnauthorizedError
from conndata.common.logger import get_logger
from .models import UserContext

logger = get_logger(__name__)


class Authorizer(Protocol):
    """Account-membership check supplied by the surrounding control plane."""

    def verify_user_in_account(self, user: Optional[UserContext], account_id: str) -> None:
        """Raise UnauthorizedError unless the user belongs to the account."""
        ...


class AccountMembershipAuthorizer:
    """Authorizes a user by the account ids carried on their UserContext."""

    def verify_user_in_account(self, user: Optional[UserContext], account_id: str) -> None:
        if user is None:
            raise UnauthorizedError("No user on request context.", details={"account_id": account_id})
        if "*" in user.account_ids or account_id in user.account_ids:
            return
        logger.warning(f"AuthZ: user {user.user_id} is not a member of account {account_id}")
        raise UnauthorizedError(
            "User is not a member of the connection's account.",
            details={"account_id": account_id, "user_id": user.user_id},
        )
