import pytest
from pydantic import ValidationError

from errors import NotFoundError
from schemas import MessageCreate


async def test_create_and_get(message_store, alice, bob):
    sent = await message_store.create(MessageCreate(from_username="alice", to_username="bob", body="hello"))

    message = await message_store.get(sent.id)

    assert message.id == sent.id
    assert message.from_user.username == "alice"
    assert message.from_user.phone == "+14155550101"
    assert message.to_user.username == "bob"
    assert message.to_user.first_name == "Bob"
    assert message.body == "hello"
    assert message.read_at is None


async def test_create_assigns_increasing_ids(message_store, alice, bob):
    first = await message_store.create(MessageCreate(from_username="alice", to_username="bob", body="one"))
    second = await message_store.create(MessageCreate(from_username="bob", to_username="alice", body="two"))

    assert second.id > first.id


async def test_create_unknown_recipient(message_store, alice):
    with pytest.raises(NotFoundError) as exc_info:
        await message_store.create(MessageCreate(from_username="alice", to_username="nobody", body="hi"))

    assert "nobody" in exc_info.value.detail


async def test_create_unknown_sender(message_store, bob):
    with pytest.raises(NotFoundError):
        await message_store.create(MessageCreate(from_username="nobody", to_username="bob", body="hi"))


def test_create_rejects_empty_body():
    with pytest.raises(ValidationError):
        MessageCreate(from_username="alice", to_username="bob", body="")


async def test_get_unknown_message(message_store):
    with pytest.raises(NotFoundError) as exc_info:
        await message_store.get(999)

    assert exc_info.value.status_code == 404


async def test_mark_read(message_store, alice, bob):
    sent = await message_store.create(MessageCreate(from_username="alice", to_username="bob", body="hello"))

    result = await message_store.mark_read(sent.id)

    assert result.id == sent.id
    assert (await message_store.get(sent.id)).read_at is not None


async def test_mark_read_unknown_message(message_store):
    with pytest.raises(NotFoundError):
        await message_store.mark_read(999)
