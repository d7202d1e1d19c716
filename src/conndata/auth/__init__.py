from .models import UserContext
from .authorizer import Authorizer, AccountMembershipAuthorizer

__all__ = [
    "UserContext",
    "Authorizer",
    "AccountMembershipAuthorizer",
]
