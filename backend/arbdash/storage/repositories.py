"""
Repository pattern implementation for the record store.

One repository per entity. Singleton tables (bot_status, bot_config) are
written with a single INSERT ... ON CONFLICT DO UPDATE against the fixed
singleton key, so concurrent first writers always converge on one row.
"""
from __future__ import annotations

import logging
from typing import Any, Dict, List, Mapping, Optional

from fastapi import Depends
from passlib.context import CryptContext
from sqlalchemy import desc, select
from sqlalchemy.dialects.postgresql import insert as pg_insert
from sqlalchemy.dialects.sqlite import insert as sqlite_insert
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from ..core.exceptions import DuplicateKeyError, StoreError
from .database import get_db_session
from .models import SINGLETON_ID, BotConfig, BotStatus, Transaction, User, utcnow

logger = logging.getLogger(__name__)

pwd_context = CryptContext(schemes=["pbkdf2_sha256"], deprecated="auto")

DEFAULT_TRANSACTION_LIMIT = 10


def _is_unique_violation(exc: IntegrityError) -> bool:
    message = str(exc.orig).lower()
    return "unique" in message or "duplicate key" in message


class BaseRepository:
    """Base repository with common async operations."""

    def __init__(self, session: AsyncSession) -> None:
        """
        Initialize repository with database session.

        Args:
            session: Async database session
        """
        self.session = session

    async def _rollback(self) -> None:
        try:
            await self.session.rollback()
        except SQLAlchemyError as e:
            logger.warning(f"Rollback failed: {e}")


class UserRepository(BaseRepository):
    """Repository for User operations."""

    async def get(self, user_id: int) -> Optional[User]:
        """
        Get user by ID.

        Args:
            user_id: User ID

        Returns:
            User instance or None
        """
        try:
            return await self.session.get(User, user_id)
        except SQLAlchemyError as e:
            logger.error(f"Failed to get user {user_id}: {e}")
            raise StoreError("Failed to fetch user") from e

    async def get_by_username(self, username: str) -> Optional[User]:
        """
        Get user by username.

        Args:
            username: Unique username

        Returns:
            User instance or None
        """
        try:
            result = await self.session.execute(select(User).where(User.username == username))
            return result.scalar_one_or_none()
        except SQLAlchemyError as e:
            logger.error(f"Failed to get user {username!r}: {e}")
            raise StoreError("Failed to fetch user") from e

    async def create_user(self, username: str, password: str, is_admin: bool = False) -> User:
        """
        Create a new user with a hashed password.

        Args:
            username: Unique username
            password: Plain-text password, stored hashed
            is_admin: Admin flag

        Returns:
            Created User instance

        Raises:
            DuplicateKeyError: If the username is taken
        """
        user = User(username=username, password=pwd_context.hash(password), is_admin=is_admin)

        try:
            self.session.add(user)
            await self.session.commit()
            await self.session.refresh(user)
        except IntegrityError as e:
            await self._rollback()
            if _is_unique_violation(e):
                logger.warning(f"Duplicate username: {username!r}")
                raise DuplicateKeyError("Failed to create user") from e
            logger.error(f"Failed to create user {username!r}: {e}")
            raise StoreError("Failed to create user") from e
        except SQLAlchemyError as e:
            await self._rollback()
            logger.error(f"Failed to create user {username!r}: {e}")
            raise StoreError("Failed to create user") from e

        return user

    @staticmethod
    def verify_password(user: User, password: str) -> bool:
        """Check a plain-text password against the stored hash."""
        return pwd_context.verify(password, user.password)


class TransactionRepository(BaseRepository):
    """Repository for Transaction operations."""

    async def list(self, limit: int = DEFAULT_TRANSACTION_LIMIT) -> List[Transaction]:
        """
        Get the most recent transactions, newest first.

        Args:
            limit: Maximum number of rows to return

        Returns:
            List of Transaction instances
        """
        stmt = (
            select(Transaction)
            .order_by(desc(Transaction.date), desc(Transaction.id))
            .limit(limit)
        )
        try:
            result = await self.session.execute(stmt)
            return list(result.scalars().all())
        except SQLAlchemyError as e:
            logger.error(f"Failed to list transactions: {e}")
            raise StoreError("Failed to fetch transactions") from e

    async def create(self, values: Mapping[str, Any]) -> Transaction:
        """
        Create a new transaction record.

        Args:
            values: Column values; ``date`` defaults to now

        Returns:
            Created Transaction instance

        Raises:
            DuplicateKeyError: If ``tx_hash`` already exists
        """
        transaction = Transaction(**values)

        try:
            self.session.add(transaction)
            await self.session.commit()
            await self.session.refresh(transaction)
        except IntegrityError as e:
            await self._rollback()
            if _is_unique_violation(e):
                logger.warning(
                    "Duplicate transaction hash",
                    extra={"extra_data": {"tx_hash": values.get("tx_hash")}},
                )
                raise DuplicateKeyError("Failed to create transaction") from e
            logger.error(f"Failed to create transaction: {e}")
            raise StoreError("Failed to create transaction") from e
        except SQLAlchemyError as e:
            await self._rollback()
            logger.error(f"Failed to create transaction: {e}")
            raise StoreError("Failed to create transaction") from e

        logger.info(
            "Transaction recorded",
            extra={"extra_data": {"tx_hash": transaction.tx_hash, "status": transaction.status}},
        )
        return transaction


class SingletonRepository(BaseRepository):
    """
    Repository for a table that holds at most one row.

    Subclasses set ``model`` and the public error messages.
    """

    model: Any = None
    stamp_updated_at = False
    fetch_error = "Failed to fetch record"
    update_error = "Failed to update record"

    def _insert(self):
        dialect = self.session.get_bind().dialect.name
        if dialect == "postgresql":
            return pg_insert(self.model)
        if dialect == "sqlite":
            return sqlite_insert(self.model)
        raise StoreError(self.update_error, details={"dialect": dialect})

    async def get(self) -> Optional[Any]:
        """
        Get the singleton row.

        Returns:
            The row, or None if it has not been written yet
        """
        stmt = (
            select(self.model)
            .order_by(self.model.id)
            .limit(1)
            .execution_options(populate_existing=True)
        )
        try:
            result = await self.session.execute(stmt)
            return result.scalar_one_or_none()
        except SQLAlchemyError as e:
            logger.error(f"Failed to get {self.model.__tablename__}: {e}")
            raise StoreError(self.fetch_error) from e

    async def upsert(self, values: Mapping[str, Any]) -> Any:
        """
        Insert the singleton row, or apply ``values`` to the existing one.

        Only the given columns are updated; absent columns keep their
        stored value (or take the column default on first insert).

        Args:
            values: Column values to write

        Returns:
            The stored row after the write
        """
        changes: Dict[str, Any] = dict(values)
        if self.stamp_updated_at:
            changes["updated_at"] = utcnow()

        stmt = self._insert().values(id=SINGLETON_ID, **changes)
        if changes:
            stmt = stmt.on_conflict_do_update(index_elements=["id"], set_=changes)
        else:
            stmt = stmt.on_conflict_do_nothing(index_elements=["id"])

        try:
            await self.session.execute(stmt)
            await self.session.commit()
        except SQLAlchemyError as e:
            await self._rollback()
            logger.error(f"Failed to upsert {self.model.__tablename__}: {e}")
            raise StoreError(self.update_error) from e

        record = await self.get()
        logger.info(
            f"{self.model.__tablename__} updated",
            extra={"extra_data": {"fields": sorted(values)}},
        )
        return record


class BotStatusRepository(SingletonRepository):
    """Repository for the bot status singleton."""

    model = BotStatus
    stamp_updated_at = True
    fetch_error = "Failed to fetch bot status"
    update_error = "Failed to update bot status"


class BotConfigRepository(SingletonRepository):
    """Repository for the bot configuration singleton."""

    model = BotConfig
    fetch_error = "Failed to fetch bot configuration"
    update_error = "Failed to update bot configuration"


# Dependency injection functions for FastAPI
def get_user_repository(session: AsyncSession = Depends(get_db_session)) -> UserRepository:
    """FastAPI dependency to get UserRepository instance."""
    return UserRepository(session)


def get_transaction_repository(session: AsyncSession = Depends(get_db_session)) -> TransactionRepository:
    """FastAPI dependency to get TransactionRepository instance."""
    return TransactionRepository(session)


def get_bot_status_repository(session: AsyncSession = Depends(get_db_session)) -> BotStatusRepository:
    """FastAPI dependency to get BotStatusRepository instance."""
    return BotStatusRepository(session)


def get_bot_config_repository(session: AsyncSession = Depends(get_db_session)) -> BotConfigRepository:
    """FastAPI dependency to get BotConfigRepository instance."""
    return BotConfigRepository(session)


__all__ = [
    "DEFAULT_TRANSACTION_LIMIT",
    "BaseRepository",
    "UserRepository",
    "TransactionRepository",
    "SingletonRepository",
    "BotStatusRepository",
    "BotConfigRepository",
    "get_user_repository",
    "get_transaction_repository",
    "get_bot_status_repository",
    "get_bot_config_repository",
]
