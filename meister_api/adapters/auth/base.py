from abc import ABC, abstractmethod

from meister_api.schemas.auth import AuthSession, AuthUser, RegistrationRequest


class AbstractAuthProvider(ABC):
    """Interface for the hosted authentication backend.

    Implementations translate backend failures into AppError subclasses
    (ValidationAppError, AuthenticationAppError, ConflictAppError,
    RateLimitAppError, AuthProviderAppError).
    """

    @abstractmethod
    async def sign_up(self, registration: RegistrationRequest) -> AuthUser:
        """Create a new account; profile fields travel as user metadata."""
        ...

    @abstractmethod
    async def sign_in_with_password(self, email: str, password: str) -> AuthSession:
        """Exchange e-mail and password for a session."""
        ...

    @abstractmethod
    async def send_password_reset(self, email: str, *, redirect_to: str | None = None) -> None:
        """Ask the backend to e-mail a password reset link."""
        ...

    async def aclose(self) -> None:
        """Release network resources held by the provider."""
        return None
