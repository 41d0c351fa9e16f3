"""
Account Service - Registration, sign-in and profile management.

An account's id is the owner id carried in its tokens; the time-tracking
services never look at this table.
"""

import asyncio
import logging
from typing import Optional

from sqlalchemy.exc import IntegrityError

from timekeeper.domain.errors import (EmailExistsError, InputValidationError,
                                      InvalidCredentialsError, NotFoundError)
from timekeeper.domain.models import Account
from timekeeper.infra.db import Database
from timekeeper.infra.repository import UserRepository
from timekeeper.infra.security import hash_password, verify_password

logger = logging.getLogger(__name__)


def normalize_email(email: str) -> str:
    return email.strip().lower()


class AccountService:
    def __init__(self, database: Database, hash_rounds: int = 10):
        self.database = database
        self.hash_rounds = hash_rounds

    async def _hash(self, password: str) -> str:
        return await asyncio.to_thread(hash_password, password, self.hash_rounds)

    async def register(self, email: str, password: str, full_name: str) -> Account:
        """
        Create an account with the ``user`` role and the default avatar.

        Raises:
            EmailExistsError: if the email is already registered
        """
        email = normalize_email(email)
        password_hash = await self._hash(password)

        async with self.database.transaction("register account") as session:
            users = UserRepository(session)
            if await users.email_exists(email):
                logger.warning(f"Registration failed - email already exists: {email}")
                raise EmailExistsError(email)
            try:
                account = await users.create(Account(email=email, full_name=full_name),
                                             password_hash)
            except IntegrityError as e:
                # Registered concurrently
                raise EmailExistsError(email) from e

        logger.info(f"Registered account {account.id} ({email})")
        return account

    async def authenticate(self, email: str, password: str) -> Account:
        """
        Check an email/password pair.

        Raises:
            InvalidCredentialsError: for an unknown email or a wrong password
        """
        email = normalize_email(email)
        async with self.database.session("sign in") as session:
            credentials = await UserRepository(session).get_credentials(email)

        if credentials is None:
            logger.info(f"Sign-in failed for unknown email {email}")
            raise InvalidCredentialsError()

        account, password_hash = credentials
        if not await asyncio.to_thread(verify_password, password, password_hash):
            logger.info(f"Sign-in failed for account {account.id}: wrong password")
            raise InvalidCredentialsError()
        return account

    async def get_profile(self, user_id: int) -> Account:
        async with self.database.session("get profile") as session:
            account = await UserRepository(session).get_by_id(user_id)
        if account is None:
            raise NotFoundError("user", user_id)
        return account

    async def update_profile(self, user_id: int, full_name: Optional[str] = None,
                             password: Optional[str] = None,
                             confirm_password: Optional[str] = None) -> bool:
        """
        Change the name and/or password. Empty values are ignored.

        Returns:
            False if there was nothing to change

        Raises:
            InputValidationError: if the password confirmation differs
            NotFoundError: if the account does not exist
        """
        if password and password != confirm_password:
            raise InputValidationError([{
                "type": "value_error",
                "loc": ["body", "confirmPassword"],
                "msg": "Passwords do not match",
            }])

        fields = {}
        if full_name:
            fields["full_name"] = full_name
        if password:
            fields["password_hash"] = await self._hash(password)
        if not fields:
            return False

        async with self.database.transaction("update profile") as session:
            if not await UserRepository(session).update_fields(user_id, **fields):
                raise NotFoundError("user", user_id)

        logger.info(f"Updated profile of account {user_id}: {', '.join(sorted(fields))}")
        return True
