"""User accounts, activation and authentication."""
import logging
from datetime import timedelta
from typing import Optional

from .. import models
from ..errors import DomainError, ErrorKind, failed_validation, not_permitted
from ..filters import USER_SORT_SAFELIST, Filters, Metadata
from ..models import TokenScope, UserRole
from ..notifications import NotificationDispatcher
from ..passwords import DEFAULT_ROUNDS, hash_password_async, password_matches_async
from ..repositories import NotFound, TokenRepository, UserRepository
from ..tokens import generate_token, hash_token, issue_access_token
from ..validator import (
    Validator,
    check_length,
    permitted_value,
    validate_email,
    validate_password_plaintext,
    validate_token_plaintext,
)
from .base import DEFAULT_TIMEOUT, BaseService, translate_store_errors, with_deadline

logger = logging.getLogger("issuetracker-core.services.users")

ROLES = tuple(r.value for r in UserRole)
DUPLICATE_EMAIL = "a user with this email already exists"
INVALID_TOKEN = "invalid or expired activation token"


def validate_user(v: Validator, user: models.User) -> None:
    check_length(v, user.name, "name", 3, 500)
    validate_email(v, user.email)
    v.check(permitted_value(user.role, *ROLES), "role", "must be admin, manager, lead or member")


class UserService(BaseService):
    """Registers, activates, authenticates and manages users."""

    def __init__(
        self,
        users: UserRepository,
        tokens: TokenRepository,
        jwt_secret: str,
        jwt_issuer: str,
        dispatcher: Optional[NotificationDispatcher] = None,
        timeout: float = DEFAULT_TIMEOUT,
        activation_ttl: timedelta = timedelta(days=3),
        access_ttl: timedelta = timedelta(hours=24),
        bcrypt_rounds: int = DEFAULT_ROUNDS,
    ):
        super().__init__(dispatcher, timeout)
        self.users = users
        self.tokens = tokens
        self.jwt_secret = jwt_secret
        self.jwt_issuer = jwt_issuer
        self.activation_ttl = activation_ttl
        self.access_ttl = access_ttl
        self.bcrypt_rounds = bcrypt_rounds

    async def _new_activation_token(self, user: models.User) -> str:
        issued = generate_token(user.id, self.activation_ttl, TokenScope.ACTIVATION)
        await self.tokens.create(
            models.Token(hash=issued.hash, user_id=issued.user_id, expiry=issued.expiry, scope=issued.scope)
        )
        return issued.plaintext

    @with_deadline
    async def create_user(
        self,
        name: str,
        email: str,
        password: str,
        role: Optional[str] = None,
        actor: Optional[models.User] = None,
    ) -> models.User:
        """
        Register a new, unactivated user and email them an activation token.

        Anyone may register as a member. Creating a user with any other role
        requires an admin actor.

        Args:
            name: Display name
            email: Unique email address
            password: Plaintext password, 8 to 72 bytes
            role: Role for the new user; defaults to member
            actor: Authenticated user performing the registration, if any

        Returns:
            The created user

        Raises:
            DomainError: FAILED_VALIDATION or NOT_PERMITTED
        """
        role = role or UserRole.MEMBER.value
        creator = actor.email if actor is not None else email
        user = models.User(
            name=name,
            email=email,
            role=role,
            activated=False,
            created_by=creator,
            modified_by=creator,
            version=1,
        )
        v = Validator()
        validate_user(v, user)
        validate_password_plaintext(v, password)
        v.raise_if_invalid()

        if role != UserRole.MEMBER.value and (actor is None or actor.role != UserRole.ADMIN.value):
            raise not_permitted()

        user.password_hash = await hash_password_async(password, self.bcrypt_rounds)
        with translate_store_errors("email", DUPLICATE_EMAIL):
            user = await self.users.create(user)
        logger.info(f"Created user {user.id} with role '{user.role}'")

        plaintext = await self._new_activation_token(user)
        self.notify(
            user.email,
            "user_welcome",
            {"name": user.name, "userID": str(user.id), "activationToken": plaintext},
        )
        return user

    @with_deadline
    async def get_user(self, user_id: int) -> models.User:
        with translate_store_errors():
            return await self.users.get_by_id(user_id)

    @with_deadline
    async def get_user_by_email(self, email: str) -> models.User:
        with translate_store_errors():
            return await self.users.get_by_email(email)

    @with_deadline
    async def list_users(
        self, filters: Filters, name: str = "", email: str = "", role: str = ""
    ) -> tuple[list[models.User], Metadata]:
        filters = filters.model_copy(update={"sort_safelist": USER_SORT_SAFELIST})
        v = Validator()
        filters.validate_into(v)
        v.raise_if_invalid()
        return await self.users.get_all(name, email, role, filters)

    @with_deadline
    async def update_user(
        self,
        user_id: int,
        actor: models.User,
        name: Optional[str] = None,
        email: Optional[str] = None,
        role: Optional[str] = None,
    ) -> models.User:
        """
        Apply partial profile changes under optimistic concurrency.

        Raises:
            DomainError: NOT_FOUND, FAILED_VALIDATION or EDIT_CONFLICT
        """
        with translate_store_errors():
            user = await self.users.get_by_id(user_id)

        if name is not None:
            user.name = name
        if email is not None:
            user.email = email
        if role is not None:
            user.role = role
        user.modified_by = actor.email

        v = Validator()
        validate_user(v, user)
        v.raise_if_invalid()

        with translate_store_errors("email", DUPLICATE_EMAIL):
            user = await self.users.update(user)
        logger.info(f"Updated user {user.id} to version {user.version}")
        return user

    @with_deadline
    async def delete_user(self, user_id: int) -> None:
        with translate_store_errors():
            await self.users.delete(user_id)
        logger.info(f"Deleted user {user_id}")

    @with_deadline
    async def create_activation_token(self, email: str) -> None:
        """
        Email a fresh activation token to an unactivated user.

        Raises:
            DomainError: FAILED_VALIDATION for an unknown email,
                ALREADY_ACTIVATED if the account is already active
        """
        v = Validator()
        validate_email(v, email)
        v.raise_if_invalid()

        try:
            user = await self.users.get_by_email(email)
        except NotFound as e:
            raise failed_validation({"email": "no matching email address found"}) from e

        if user.activated:
            raise DomainError(ErrorKind.ALREADY_ACTIVATED)

        plaintext = await self._new_activation_token(user)
        self.notify(user.email, "token_activation", {"name": user.name, "activationToken": plaintext})

    @with_deadline
    async def activate_user(self, token_plaintext: str) -> models.User:
        """
        Redeem an activation token.

        The activated flag is written through the versioned update first; the
        user's activation tokens are deleted afterwards as a separate step.

        Raises:
            DomainError: FAILED_VALIDATION for a malformed, unknown, expired or
                wrongly scoped token, ALREADY_ACTIVATED if the account is
                already active, EDIT_CONFLICT on a concurrent change
        """
        v = Validator()
        validate_token_plaintext(v, token_plaintext)
        v.raise_if_invalid()

        try:
            user = await self.tokens.get_user_for_token(TokenScope.ACTIVATION.value, hash_token(token_plaintext))
        except NotFound as e:
            raise failed_validation({"token": INVALID_TOKEN}) from e

        # A token can outlive activation when the deletion step below fails
        if user.activated:
            raise DomainError(ErrorKind.ALREADY_ACTIVATED)

        user.activated = True
        user.modified_by = user.email
        with translate_store_errors():
            user = await self.users.update(user)

        await self.tokens.delete_all_for_user(TokenScope.ACTIVATION.value, user.id)
        logger.info(f"Activated user {user.id}")
        return user

    @with_deadline
    async def authenticate(self, email: str, password: str) -> str:
        """
        Exchange an email and password for a signed bearer credential.

        Raises:
            DomainError: FAILED_VALIDATION for malformed input,
                INVALID_CREDENTIALS for an unknown email or wrong password
        """
        v = Validator()
        validate_email(v, email)
        validate_password_plaintext(v, password)
        v.raise_if_invalid()

        try:
            user = await self.users.get_by_email(email)
        except NotFound as e:
            raise DomainError(ErrorKind.INVALID_CREDENTIALS) from e

        if not await password_matches_async(password, user.password_hash):
            logger.info(f"Failed sign-in for user {user.id}")
            raise DomainError(ErrorKind.INVALID_CREDENTIALS)

        return issue_access_token(user.id, self.jwt_secret, self.jwt_issuer, self.access_ttl)
