from .user import IUserRepository
from .profile import IProfileRepository
from .server import IServerRepository
from .pool import IPoolRepository
from .contributor import IContributorRepository
from .assignment import IAssignmentRepository

__all__ = [
    "IUserRepository",
    "IProfileRepository",
    "IServerRepository",
    "IPoolRepository",
    "IContributorRepository",
    "IAssignmentRepository",
]
