import pytest

from database import create_database, init_schema
from directory import UserDirectory
from messages import MessageStore
from schemas import UserCreate
from security import make_password_context

# lowest cost bcrypt accepts
TEST_WORK_FACTOR = 4


@pytest.fixture
def database_url(tmp_path):
    url = f"sqlite:///{tmp_path / 'messagely.db'}"
    init_schema(url)
    return url


@pytest.fixture
async def database(database_url):
    database = create_database(database_url)
    await database.connect()
    yield database
    await database.disconnect()


@pytest.fixture
def pwd_context():
    return make_password_context(TEST_WORK_FACTOR)


@pytest.fixture
def directory(database, pwd_context):
    return UserDirectory(database, pwd_context)


@pytest.fixture
def message_store(database):
    return MessageStore(database)


@pytest.fixture
def make_user():
    def _make_user(username: str, **overrides) -> UserCreate:
        fields = {
            "username": username,
            "password": f"{username}-password",
            "first_name": username.capitalize(),
            "last_name": "Tester",
            "phone": "+14155550000",
        }
        fields.update(overrides)
        return UserCreate(**fields)

    return _make_user


@pytest.fixture
async def alice(directory, make_user):
    return await directory.register(make_user("alice", phone="+14155550101"))


@pytest.fixture
async def bob(directory, make_user):
    return await directory.register(make_user("bob", phone="+14155550102"))


@pytest.fixture
async def carol(directory, make_user):
    return await directory.register(make_user("carol", phone="+14155550103"))
