from .enums import AccountState, AccessLevel
from .account import Account
from .email import Email
from .namespace import Namespace, PersonalNamespace, Group
from .project import Project
from .member import Member, GroupMember, ProjectMember

__all__ = [
    "AccountState", "AccessLevel",
    "Account", "Email",
    "Namespace", "PersonalNamespace", "Group",
    "Project",
    "Member", "GroupMember", "ProjectMember",
]
