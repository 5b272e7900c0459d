from .account import IAccountRepository
from .email import IEmailRepository
from .namespace import INamespaceRepository
from .project import IProjectRepository
from .member import IMemberRepository
from .transaction import ITransaction

__all__ = [
    "IAccountRepository",
    "IEmailRepository",
    "INamespaceRepository",
    "IProjectRepository",
    "IMemberRepository",
    "ITransaction",
]
