"""Pytest configuration and fixtures for the storefront auth core.

Environment is set before app.main is imported: in-memory SQLite (aiosqlite),
cheap bcrypt, rate limits off and a non-secure device cookie. Every test gets
a fresh schema. HTTP tests run against app.main:app through ASGITransport with
the clock and the email notifier overridden. All imports use app.*.
"""

import os

os.environ["DATABASE_URL"] = "sqlite+aiosqlite://"
os.environ["SECRET_KEY"] = "test-secret-key-0123456789abcdef0123456789abcdef"
os.environ["BCRYPT_ROUNDS"] = "4"
os.environ["DEVICE_COOKIE_SECURE"] = "false"
os.environ["RATE_LIMIT_ENABLED"] = "false"
os.environ["EMAIL_BACKEND"] = "log"
os.environ["DATABASE_CREATE_ALL"] = "false"
os.environ.pop("TURNSTILE_SECRET_KEY", None)

import re  # noqa: E402
from collections.abc import AsyncIterator, Awaitable, Callable  # noqa: E402
from datetime import datetime, timedelta  # noqa: E402

import httpx  # noqa: E402
import pytest  # noqa: E402
from httpx import ASGITransport, AsyncClient  # noqa: E402
from sqlalchemy.ext.asyncio import AsyncSession  # noqa: E402

from app.core.config import get_settings  # noqa: E402

get_settings.cache_clear()

from app.api.v1.dependencies import get_clock, get_notification_service  # noqa: E402
from app.application.dtos.user import UserResult  # noqa: E402
from app.domain.enums import OtpPurpose, UserRole  # noqa: E402
from app.infrastructure.persistence import database  # noqa: E402
from app.infrastructure.persistence.repositories import UserRepository  # noqa: E402
from app.main import app  # noqa: E402
from app.shared.utils.datetime import utc_now  # noqa: E402

ACTIVE_PASSWORD = "Ops2026!Pass"
NEW_PASSWORD = "Abc123$5"
DEVICE_COOKIE = "trusted_device"
WRONG_CODE = "00000000"  # below the generated range, never a real code


class MutableClock:
    """Test clock. Starts at the real current time and only moves forward.

    Signed tokens are checked for expiry against the real time, so moving the
    clock back would produce tokens that are already expired.
    """

    def __init__(self) -> None:
        self.now: datetime = utc_now()

    def __call__(self) -> datetime:
        return self.now

    def advance(self, **delta: float) -> datetime:
        self.now += timedelta(**delta)
        return self.now


class CapturingNotifier:
    """Notifier that records (address, code, purpose) instead of sending email."""

    def __init__(self) -> None:
        self.sent: list[tuple[str, str, OtpPurpose]] = []

    async def send(self, address: str, code: str, purpose: OtpPurpose) -> None:
        self.sent.append((address, code, purpose))

    def codes(self, purpose: OtpPurpose | None = None) -> list[str]:
        return [code for _, code, p in self.sent if purpose is None or p is purpose]

    def last_code(self, purpose: OtpPurpose | None = None) -> str:
        codes = self.codes(purpose)
        assert codes, "no code was sent"
        return codes[-1]


def device_cookie_from(response: httpx.Response) -> str | None:
    """Value of the trusted-device cookie set by response, if any."""
    for header in response.headers.get_list("set-cookie"):
        match = re.match(rf"{DEVICE_COOKIE}=([^;]*)", header)
        if match:
            return match.group(1).strip('"')
    return None


async def create_user(**fields: object) -> UserResult:
    """Provision a user through the repository in its own committed transaction."""
    session_factory = database.get_session_factory()
    async with session_factory() as session:
        async with session.begin():
            repo = UserRepository(session, bcrypt_rounds=4)
            return await repo.create_user(**fields)  # type: ignore[arg-type]


@pytest.fixture(autouse=True)
async def fresh_database() -> AsyncIterator[None]:
    """Empty schema per test; the in-memory database lives as long as the engine."""
    await database.dispose_engine()
    await database.create_all()
    yield
    await database.dispose_engine()


@pytest.fixture
async def db_session() -> AsyncIterator[AsyncSession]:
    """Session for repository and service tests."""
    session_factory = database.get_session_factory()
    async with session_factory() as session:
        yield session


@pytest.fixture
def clock() -> MutableClock:
    return MutableClock()


@pytest.fixture
def outbox() -> CapturingNotifier:
    return CapturingNotifier()


@pytest.fixture
async def client(clock: MutableClock, outbox: CapturingNotifier) -> AsyncIterator[AsyncClient]:
    """Async HTTP client against the FastAPI app (ASGI), with test clock and notifier."""
    app.dependency_overrides[get_clock] = lambda: clock
    app.dependency_overrides[get_notification_service] = lambda: outbox
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as ac:
        yield ac
    app.dependency_overrides.clear()


@pytest.fixture
async def seeded_users() -> dict[str, UserResult]:
    """The two provisioned back-office users, both still on their temporary password."""
    return {
        "dev": await create_user(
            username="dev", password="dev2026!Temp", role=UserRole.DEVELOPER
        ),
        "admin": await create_user(
            username="admin", password="admin2026!Temp", role=UserRole.ADMIN
        ),
    }


@pytest.fixture
async def active_user() -> UserResult:
    """User that already completed the first-login setup."""
    return await create_user(
        username="ops",
        password=ACTIVE_PASSWORD,
        role=UserRole.ADMIN,
        email="ops@example.com",
        password_setup_required=False,
    )


@pytest.fixture
async def other_active_user() -> UserResult:
    return await create_user(
        username="sales",
        password=ACTIVE_PASSWORD,
        role=UserRole.CUSTOMER,
        email="sales@example.com",
        password_setup_required=False,
    )


@pytest.fixture
def start_login(
    client: AsyncClient,
) -> Callable[..., Awaitable[httpx.Response]]:
    """POST /api/auth/login, optionally presenting a trusted-device cookie."""

    async def _start(
        username: str, password: str, device_token: str | None = None
    ) -> httpx.Response:
        client.cookies.clear()
        headers = {"Cookie": f"{DEVICE_COOKIE}={device_token}"} if device_token else None
        return await client.post(
            "/api/auth/login",
            json={"username": username, "password": password},
            headers=headers,
        )

    return _start


@pytest.fixture
def sign_in(
    client: AsyncClient,
    outbox: CapturingNotifier,
    start_login: Callable[..., Awaitable[httpx.Response]],
) -> Callable[..., Awaitable[httpx.Response]]:
    """Password login followed by the emailed login code; returns the verify response."""

    async def _sign_in(
        username: str, password: str, *, trust_device: bool = False
    ) -> httpx.Response:
        login = await start_login(username, password)
        assert login.status_code == 200, login.text
        assert login.json()["otpRequired"] is True
        return await client.post(
            "/api/auth/verify-login-otp",
            json={
                "otpPendingToken": login.json()["otpPendingToken"],
                "otp": outbox.last_code(OtpPurpose.LOGIN),
                "trustDevice": trust_device,
            },
        )

    return _sign_in


@pytest.fixture
def start_setup(
    client: AsyncClient,
) -> Callable[..., Awaitable[httpx.Response]]:
    """POST /api/auth/initiate-setup."""

    async def _start(username: str, email: str) -> httpx.Response:
        return await client.post(
            "/api/auth/initiate-setup", json={"username": username, "email": email}
        )

    return _start


@pytest.fixture
def password_setup_token(
    client: AsyncClient,
    outbox: CapturingNotifier,
    start_setup: Callable[..., Awaitable[httpx.Response]],
) -> Callable[..., Awaitable[str]]:
    """Run initiate-setup and verify-setup-otp; return the passwordSetupToken."""

    async def _token(username: str, email: str) -> str:
        started = await start_setup(username, email)
        assert started.status_code == 200, started.text
        verified = await client.post(
            "/api/auth/verify-setup-otp",
            json={
                "setupToken": started.json()["setupToken"],
                "otp": outbox.last_code(OtpPurpose.SETUP),
            },
        )
        assert verified.status_code == 200, verified.text
        return verified.json()["passwordSetupToken"]

    return _token
