"""Auth service — signup with email verification, login, token refresh.

Signup never creates an account directly: it parks a pending signup in the
one-time-code registry and mails the code. The account exists only once the
code comes back through ``verify_signup``.
"""

from typing import Any, Callable, Mapping, Union

import structlog
from passlib.context import CryptContext

from app.application.services.notification_service import Notifier
from app.application.services.otp_registry import OTPRegistry, SignupPayload, generate_code
from app.application.services.token_service import TokenService
from app.config import get_settings
from app.core.exceptions import (
    DeliveryException,
    DuplicateEmailException,
    EntityNotFoundException,
    InvalidCredentialsException,
    InvalidOrExpiredCodeException,
)
from app.core.validation import parse_model
from app.domain.models.user import User, ROLE_ADMIN, ROLE_USER
from app.domain.repositories.user_repository import UserRepository
from app.domain.schemas.auth import (
    AuthResponse,
    LoginRequest,
    MessageResponse,
    SignupRequest,
    TokenClaims,
    TokenResponse,
    UserRead,
    VerifyOTPRequest,
)

settings = get_settings()
logger = structlog.get_logger(__name__)

pwd_context = CryptContext(schemes=["bcrypt"], deprecated="auto")

# Verified against on unknown emails so both login failures cost one bcrypt check
_DUMMY_HASH = pwd_context.hash("not-a-real-password")

AdminPredicate = Callable[[str], bool]


def hash_password(password: str) -> str:
    return pwd_context.hash(password)


def verify_password(plain_password: str, hashed_password: str) -> bool:
    return pwd_context.verify(plain_password, hashed_password)


def admin_email_predicate(admin_emails: list[str]) -> AdminPredicate:
    """Build the administrative-identity rule from a configured allow-list."""
    allowed = {email.strip().lower() for email in admin_emails if email.strip()}

    def is_admin_identity(email: str) -> bool:
        return email.strip().lower() in allowed

    return is_admin_identity


def claims_for(user: User) -> TokenClaims:
    return TokenClaims(user_id=user.id, email=user.email, role=user.role)


class AuthService:
    def __init__(
        self,
        users: UserRepository,
        registry: OTPRegistry,
        tokens: TokenService,
        notifier: Notifier,
        is_admin_identity: AdminPredicate,
        code_length: int = settings.OTP_LENGTH,
    ):
        self.users = users
        self.registry = registry
        self.tokens = tokens
        self.notifier = notifier
        self.is_admin_identity = is_admin_identity
        self.code_length = code_length

    def signup(self, data: Union[SignupRequest, Mapping[str, Any]]) -> MessageResponse:
        body = parse_model(SignupRequest, data)
        email = str(body.email)

        if self.users.email_exists(email):
            raise DuplicateEmailException()

        code = generate_code(self.code_length)
        self.registry.store(
            email,
            code,
            SignupPayload(
                first_name=body.first_name,
                last_name=body.last_name,
                password_hash=hash_password(body.password),
            ),
        )

        if not self.notifier.send_code(email, code, body.first_name):
            self.registry.discard(email, code)
            logger.error("Verification code delivery failed", email=email)
            raise DeliveryException()

        logger.info("Verification code sent", email=email)
        return MessageResponse(message="OTP sent to your email. Please verify to complete registration.")

    def verify_signup(self, data: Union[VerifyOTPRequest, Mapping[str, Any]]) -> AuthResponse:
        body = parse_model(VerifyOTPRequest, data)
        email = str(body.email)

        payload = self.registry.consume(email, body.otp)
        if payload is None:
            raise InvalidOrExpiredCodeException()

        role = ROLE_ADMIN if self.is_admin_identity(email) else ROLE_USER
        user = self.users.create({
            "email": email,
            "password_hash": payload.password_hash,
            "first_name": payload.first_name,
            "last_name": payload.last_name,
            "role": role,
        })

        logger.info("User account created", user_id=user.id, email=email, role=role)
        return AuthResponse(token=self.tokens.issue(claims_for(user)), user=UserRead.model_validate(user))

    def login(self, data: Union[LoginRequest, Mapping[str, Any]]) -> AuthResponse:
        body = parse_model(LoginRequest, data)
        email = str(body.email)

        user = self.users.get_by_email(email)
        if user is None:
            verify_password(body.password, _DUMMY_HASH)
            logger.info("Login failed", email=email)
            raise InvalidCredentialsException()
        if not verify_password(body.password, user.password_hash):
            logger.info("Login failed", email=email)
            raise InvalidCredentialsException()

        if self.is_admin_identity(user.email) and user.role != ROLE_ADMIN:
            user = self.users.set_role(user, ROLE_ADMIN)
            logger.info("User promoted to admin", user_id=user.id, email=user.email)

        logger.info("User logged in", user_id=user.id)
        return AuthResponse(token=self.tokens.issue(claims_for(user)), user=UserRead.model_validate(user))

    def get_current_user(self, token: str) -> UserRead:
        claims = self.tokens.verify(token)
        user = self.users.get_by_id(claims.user_id)
        if user is None:
            raise EntityNotFoundException("User not found")
        return UserRead.model_validate(user)

    def logout(self, token: str) -> MessageResponse:
        # Tokens are stateless; the client discards its copy
        claims = self.tokens.verify(token)
        logger.info("User logged out", user_id=claims.user_id)
        return MessageResponse(message="Logged out successfully")

    def refresh_token(self, token: str) -> TokenResponse:
        return TokenResponse(token=self.tokens.refresh(token))
