from .user import User
from .profile import Profile
from .server import Server, SERVER_STATUSES
from .pool import Pool
from .pool_contributor import PoolContributor, CONTRIBUTOR_STATUSES
from .server_pool_assignment import ServerPoolAssignment

__all__ = [
    "User",
    "Profile",
    "Server",
    "Pool",
    "PoolContributor",
    "ServerPoolAssignment",
    "SERVER_STATUSES",
    "CONTRIBUTOR_STATUSES",
]
