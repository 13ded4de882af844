from datetime import datetime, timedelta

import pytest
from fakeredis import FakeAsyncRedis, FakeServer
from httpx import ASGITransport, AsyncClient
from mongomock_motor import AsyncMongoMockClient

from db.db_operation import MongoConnection
from main import create_app
from models.restaurant import RestaurantCreate
from models.user import CurrentUser
from services.admin_service import AuditService
from services.auth_service import AuthService, RefreshTokenBlocklist
from services.menu_service import MenuService
from services.otp_service import OtpChallengeManager
from services.restaurant_service import RestaurantService
from services.user_service import UserService
from settings.config import Settings
from utils.jwt_handler import TokenIssuer
from utils.sms import OtpSender


class FakeClock:
    def __init__(self, start: datetime = datetime(2024, 3, 1, 9, 0, 0)):
        self.now = start

    def __call__(self) -> datetime:
        return self.now

    def advance(self, **kwargs):
        self.now += timedelta(**kwargs)


class RecordingOtpSender(OtpSender):
    def __init__(self):
        self.sent = []

    async def send_otp(self, country_code, phone_number, code, expires_in_minutes):
        self.sent.append((country_code, phone_number, code))

    def last_code(self, country_code: str, phone_number: str) -> str:
        for cc, phone, code in reversed(self.sent):
            if cc == country_code and phone == phone_number:
                return code
        raise AssertionError(f"no OTP sent to {country_code}{phone_number}")


def make_settings(**overrides) -> Settings:
    values = dict(
        _env_file=None,
        ENVIRONMENT="test",
        DB_NAME="khao_test",
        MONGO_TRANSACTIONS=False,
        JWT_SECRET="test-access-secret",
        JWT_REFRESH_SECRET="test-refresh-secret",
        OTP_DEV_BYPASS_CODE=None,
        RATE_LIMIT_REQUESTS=10000,
    )
    values.update(overrides)
    return Settings(**values)


def restaurant_payload(**overrides) -> RestaurantCreate:
    values = dict(
        name="Green Leaf Kitchen",
        owner_name="Somchai Jaidee",
        address="12 Sukhumvit Soi 11",
        city="Bangkok",
        country="th",
        latitude=13.74,
        longitude=100.55,
    )
    values.update(overrides)
    return RestaurantCreate(**values)


def identity_of(user: dict) -> CurrentUser:
    return CurrentUser(
        id=str(user["_id"]),
        role=user["role"],
        country_code=user["country_code"],
        phone_number=user["phone_number"],
    )


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def settings():
    return make_settings()


@pytest.fixture
async def mongo(settings):
    conn = MongoConnection(settings, client=AsyncMongoMockClient())
    await conn.create_indexes()
    return conn


@pytest.fixture
async def redis():
    client = FakeAsyncRedis(server=FakeServer(), decode_responses=True)
    yield client
    await client.aclose()


@pytest.fixture
def sender():
    return RecordingOtpSender()


@pytest.fixture
def tokens(settings, clock):
    return TokenIssuer(settings, clock)


@pytest.fixture
def otp_manager(redis, settings, clock):
    return OtpChallengeManager(redis, settings, clock)


@pytest.fixture
def user_service(mongo, clock):
    return UserService(mongo, clock)


@pytest.fixture
def audit_service(mongo, clock):
    return AuditService(mongo, clock)


@pytest.fixture
def auth_service(user_service, otp_manager, tokens, sender, redis):
    return AuthService(user_service, otp_manager, tokens, sender, RefreshTokenBlocklist(redis))


@pytest.fixture
def restaurant_service(mongo, user_service, audit_service, clock):
    return RestaurantService(mongo, user_service, audit_service, clock)


@pytest.fixture
def menu_service(mongo, restaurant_service, audit_service, clock):
    return MenuService(mongo, restaurant_service, audit_service, clock)


@pytest.fixture
async def owner(user_service):
    user = await user_service.get_or_create("TH", "0812345678")
    return identity_of(user)


@pytest.fixture
async def other_user(user_service):
    user = await user_service.get_or_create("TH", "0899999999")
    return identity_of(user)


@pytest.fixture
async def admin(user_service):
    user = await user_service.ensure_admin("TH", "0800000001")
    return identity_of(user)


@pytest.fixture
async def restaurant(restaurant_service, owner):
    return await restaurant_service.register(owner.id, restaurant_payload())


@pytest.fixture
async def approved_restaurant(restaurant_service, restaurant, admin):
    return await restaurant_service.approve(restaurant["id"], admin)


@pytest.fixture
def app(settings, mongo, redis, clock, sender):
    return create_app(settings, mongo_client=mongo.client, redis=redis, clock=clock, otp_sender=sender)


@pytest.fixture
async def client(app):
    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as c:
        yield c


async def login(client, sender, country_code="TH", phone_number="0812345678") -> dict:
    resp = await client.post("/auth/send-otp", json={"country_code": country_code, "phone_number": phone_number})
    assert resp.status_code == 200, resp.text
    code = sender.last_code(country_code, phone_number)
    resp = await client.post(
        "/auth/verify-otp",
        json={"country_code": country_code, "phone_number": phone_number, "otp": code},
    )
    assert resp.status_code == 200, resp.text
    return resp.json()


def bearer(auth: dict) -> dict:
    return {"Authorization": f"Bearer {auth['access_token']}"}
