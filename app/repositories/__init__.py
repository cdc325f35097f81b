from app.repositories.auth import AuthRepository
from app.repositories.organizations import OrganizationRepository

__all__ = ["AuthRepository", "OrganizationRepository"]
