import logging
from datetime import datetime, timezone

from databases import Database
from passlib.context import CryptContext
from sqlalchemy import select
from starlette.concurrency import run_in_threadpool

from database import insert_or_skip
from errors import DuplicateUserError, NotFoundError
from models import users, messages
from schemas import User, UserCreate, UserDetail, UserInDB, MessageFrom, MessageTo
from security import get_password_hash

logger = logging.getLogger(__name__)

PROFILE_FIELDS = ("username", "first_name", "last_name", "phone")


def _now() -> datetime:
    return datetime.now(timezone.utc)


def _profile(row) -> User:
    return User(**{field: row[field] for field in PROFILE_FIELDS})


class UserDirectory:
    """User accounts and per-user message summaries over the users/messages tables.

    The store handle and password context are injected; the directory holds no
    other state, so one instance can serve concurrent callers.
    """

    def __init__(self, database: Database, pwd_context: CryptContext):
        self.database = database
        self.pwd_context = pwd_context

    async def _exists(self, username: str) -> bool:
        query = select(users.c.username).where(users.c.username == username)
        return await self.database.fetch_one(query) is not None

    async def register(self, user: UserCreate) -> UserInDB:
        """Create a user; returns username, hashed password and profile fields."""
        if await self._exists(user.username):
            logger.info("registration rejected, username taken: %s", user.username)
            raise DuplicateUserError(user.username)
        hashed_password = await run_in_threadpool(get_password_hash, self.pwd_context, user.password)
        now = _now()
        query = insert_or_skip(
            self.database,
            users,
            username=user.username,
            password=hashed_password,
            first_name=user.first_name,
            last_name=user.last_name,
            phone=user.phone,
            join_at=now,
            last_login_at=now,
        ).returning(users.c.username)
        # a concurrent registration can take the name between the check and the insert
        if await self.database.fetch_one(query) is None:
            logger.info("registration rejected, username taken: %s", user.username)
            raise DuplicateUserError(user.username)
        logger.info("registered user %s", user.username)
        return UserInDB(
            username=user.username,
            password=hashed_password,
            first_name=user.first_name,
            last_name=user.last_name,
            phone=user.phone,
        )

    async def authenticate(self, username: str, password: str) -> bool:
        """Is this username/password valid?

        Unknown usernames return False after a dummy verify, so timing does not
        tell them apart from a wrong password.
        """
        query = select(users.c.password).where(users.c.username == username)
        row = await self.database.fetch_one(query)
        if row is None:
            await run_in_threadpool(self.pwd_context.dummy_verify)
            logger.info("authentication failed for unknown user %s", username)
            return False

        valid, new_hash = await run_in_threadpool(self.pwd_context.verify_and_update, password, row["password"])
        if not valid:
            logger.info("authentication failed for %s", username)
            return False
        if new_hash is not None:
            await self.database.execute(
                users.update().where(users.c.username == username).values(password=new_hash)
            )
            logger.info("upgraded password hash for %s", username)
        return True

    async def update_login_timestamp(self, username: str) -> None:
        query = users.update().where(users.c.username == username).values(last_login_at=_now())
        await self.database.execute(query)
        # users are never deleted, so a missing row means nothing was updated
        if not await self._exists(username):
            raise NotFoundError(f"user does not exist: {username}")

    async def all(self) -> list[User]:
        """Basic info on all users, never passwords or timestamps."""
        query = select(users.c.username, users.c.first_name, users.c.last_name, users.c.phone)
        rows = await self.database.fetch_all(query)
        return [_profile(row) for row in rows]

    async def get(self, username: str) -> UserDetail:
        query = select(
            users.c.username,
            users.c.first_name,
            users.c.last_name,
            users.c.phone,
            users.c.join_at,
            users.c.last_login_at,
        ).where(users.c.username == username)
        row = await self.database.fetch_one(query)
        if row is None:
            raise NotFoundError(f"user does not exist: {username}")
        return UserDetail(
            **_profile(row).model_dump(),
            join_at=row["join_at"],
            last_login_at=row["last_login_at"],
        )

    async def messages_from(self, username: str) -> list[MessageFrom]:
        """Every message sent by this user, with the recipient's profile.

        A known user with nothing sent gets an empty list.
        """
        if not await self._exists(username):
            raise NotFoundError(f"user does not exist: {username}")
        to_user = users.alias("to_user")
        query = (
            select(
                messages.c.id,
                messages.c.body,
                messages.c.sent_at,
                messages.c.read_at,
                to_user.c.username,
                to_user.c.first_name,
                to_user.c.last_name,
                to_user.c.phone,
            )
            .select_from(messages.join(to_user, messages.c.to_username == to_user.c.username))
            .where(messages.c.from_username == username)
            .order_by(messages.c.id)
        )
        rows = await self.database.fetch_all(query)
        return [
            MessageFrom(
                id=row["id"],
                to_user=_profile(row),
                body=row["body"],
                sent_at=row["sent_at"],
                read_at=row["read_at"],
            )
            for row in rows
        ]

    async def messages_to(self, username: str) -> list[MessageTo]:
        """Every message received by this user, with the sender's profile."""
        if not await self._exists(username):
            raise NotFoundError(f"user does not exist: {username}")
        from_user = users.alias("from_user")
        query = (
            select(
                messages.c.id,
                messages.c.body,
                messages.c.sent_at,
                messages.c.read_at,
                from_user.c.username,
                from_user.c.first_name,
                from_user.c.last_name,
                from_user.c.phone,
            )
            .select_from(messages.join(from_user, messages.c.from_username == from_user.c.username))
            .where(messages.c.to_username == username)
            .order_by(messages.c.id)
        )
        rows = await self.database.fetch_all(query)
        return [
            MessageTo(
                id=row["id"],
                from_user=_profile(row),
                body=row["body"],
                sent_at=row["sent_at"],
                read_at=row["read_at"],
            )
            for row in rows
        ]
