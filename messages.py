import logging
from datetime import datetime, timezone

from databases import Database
from sqlalchemy import select

from errors import NotFoundError
from models import users, messages
from schemas import Message, MessageCreate, MessageDetail, MessageRead, User

logger = logging.getLogger(__name__)


class MessageStore:
    """Creates and reads messages between registered users."""

    def __init__(self, database: Database):
        self.database = database

    async def create(self, message: MessageCreate) -> Message:
        sent_at = datetime.now(timezone.utc)
        # users are never deleted, so a passed check holds for the insert
        for username in (message.from_username, message.to_username):
            query = select(users.c.username).where(users.c.username == username)
            if await self.database.fetch_one(query) is None:
                raise NotFoundError(f"user does not exist: {username}")
        query = messages.insert().values(
            from_username=message.from_username,
            to_username=message.to_username,
            body=message.body,
            sent_at=sent_at,
        )
        message_id = await self.database.execute(query)
        logger.info("message %s sent from %s to %s", message_id, message.from_username, message.to_username)
        return Message(
            id=message_id,
            from_username=message.from_username,
            to_username=message.to_username,
            body=message.body,
            sent_at=sent_at,
        )

    async def get(self, message_id: int) -> MessageDetail:
        from_user = users.alias("from_user")
        to_user = users.alias("to_user")
        query = (
            select(
                messages.c.id,
                messages.c.body,
                messages.c.sent_at,
                messages.c.read_at,
                from_user.c.username.label("from_username"),
                from_user.c.first_name.label("from_first_name"),
                from_user.c.last_name.label("from_last_name"),
                from_user.c.phone.label("from_phone"),
                to_user.c.username.label("to_username"),
                to_user.c.first_name.label("to_first_name"),
                to_user.c.last_name.label("to_last_name"),
                to_user.c.phone.label("to_phone"),
            )
            .select_from(
                messages.join(from_user, messages.c.from_username == from_user.c.username)
                .join(to_user, messages.c.to_username == to_user.c.username)
            )
            .where(messages.c.id == message_id)
        )
        row = await self.database.fetch_one(query)
        if row is None:
            raise NotFoundError(f"no such message: {message_id}")
        return MessageDetail(
            id=row["id"],
            from_user=User(
                username=row["from_username"],
                first_name=row["from_first_name"],
                last_name=row["from_last_name"],
                phone=row["from_phone"],
            ),
            to_user=User(
                username=row["to_username"],
                first_name=row["to_first_name"],
                last_name=row["to_last_name"],
                phone=row["to_phone"],
            ),
            body=row["body"],
            sent_at=row["sent_at"],
            read_at=row["read_at"],
        )

    async def mark_read(self, message_id: int) -> MessageRead:
        read_at = datetime.now(timezone.utc)
        query = messages.update().where(messages.c.id == message_id).values(read_at=read_at)
        await self.database.execute(query)
        query = select(messages.c.id).where(messages.c.id == message_id)
        if await self.database.fetch_one(query) is None:
            raise NotFoundError(f"no such message: {message_id}")
        return MessageRead(id=message_id, read_at=read_at)
