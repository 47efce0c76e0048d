"""Account lifecycle status.

Usage:
    from finauth.domain.enums import UserStatus

    if user.status == UserStatus.SUSPENDED:
        return Failure(error=AccountSuspendedError())
"""

from enum import Enum


class UserStatus(str, Enum):
    """Account lifecycle status.

    Values:
        ACTIVE: Normal account, may sign in.
        INVITED: Created by an invitation, may sign in once a password is set.
        SUSPENDED: Blocked by support. Login and refresh are both refused.
    """

    ACTIVE = "active"
    INVITED = "invited"
    SUSPENDED = "suspended"
