import os

# 必须在导入 tripsketch 之前设置，Settings 在导入时读取环境变量
os.environ.setdefault("DATABASE_URL", "sqlite://")
os.environ.setdefault("DB_AUTO_CREATE", "false")
os.environ.setdefault("ADMIN_EMAILS", "admin@trip.com")

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from tripsketch.models.base import Base
from tripsketch.models import user, follow, trip, trip_like  # noqa: F401
from tripsketch.schemas.follow import FollowCreate
from tripsketch.schemas.principal import Principal
from tripsketch.schemas.trip import TripCreate
from tripsketch.schemas.user import UserCreate
from tripsketch.service import trip_svc
from tripsketch.storage.database import get_db, get_notification_dispatcher
from tripsketch.storage.follow.SQLAlchemyFollowRepository import SQLAlchemyFollowRepository
from tripsketch.storage.trip.SQLAlchemyTripRepository import SQLAlchemyTripRepository
from tripsketch.storage.trip_like.SQLAlchemyTripLikeRepository import SQLAlchemyTripLikeRepository
from tripsketch.storage.user.SQLAlchemyUserRepository import SQLAlchemyUserRepository


class FakeDispatcher:
    """记录每次 send 调用，不做真实投递"""

    def __init__(self):
        self.calls = []

    def send(self, recipients, title, body, image_url=None, link=None, ref_id=None, actor_name=None):
        self.calls.append(
            {
                "recipients": list(recipients),
                "title": title,
                "body": body,
                "image_url": image_url,
                "link": link,
                "ref_id": ref_id,
                "actor_name": actor_name,
            }
        )


class BrokenDispatcher:
    def send(self, *args, **kwargs):
        raise RuntimeError("push gateway down")


ALICE = Principal(email="alice@trip.com")
BOB = Principal(email="bob@trip.com")
CAROL = Principal(email="carol@trip.com")
ADMIN = Principal(email="admin@trip.com")


@pytest.fixture
def engine():
    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    Base.metadata.create_all(bind=engine)
    yield engine
    Base.metadata.drop_all(bind=engine)
    engine.dispose()


@pytest.fixture
def db(engine):
    TestingSession = sessionmaker(autocommit=False, autoflush=False, bind=engine)
    session = TestingSession()
    try:
        yield session
    finally:
        session.close()


@pytest.fixture
def user_repo(db):
    return SQLAlchemyUserRepository(db)


@pytest.fixture
def follow_repo(db):
    return SQLAlchemyFollowRepository(db)


@pytest.fixture
def trip_repo(db):
    return SQLAlchemyTripRepository(db)


@pytest.fixture
def like_repo(db):
    return SQLAlchemyTripLikeRepository(db)


@pytest.fixture
def dispatcher():
    return FakeDispatcher()


@pytest.fixture
def users(user_repo):
    """alice / bob / carol / admin 四个用户，只有 bob 和 carol 有推送令牌"""
    user_repo.create_user(UserCreate(email=ALICE.email, nickname="alice"))
    user_repo.create_user(UserCreate(email=BOB.email, nickname="bob", notification_token="ExponentPushToken[bob]"))
    user_repo.create_user(UserCreate(email=CAROL.email, nickname="carol", notification_token="ExponentPushToken[carol]"))
    user_repo.create_user(UserCreate(email=ADMIN.email, nickname="admin"))
    return {"alice": ALICE, "bob": BOB, "carol": CAROL, "admin": ADMIN}


@pytest.fixture
def make_trip(users, user_repo, follow_repo, trip_repo, dispatcher):
    """以指定身份创建旅行，返回 TripOut"""

    def _make(principal=ALICE, **overrides):
        fields = {
            "title": "Jeju spring",
            "content": "Walked the olle trail all day.",
            "hashtag": "#jeju",
            "location": "Jeju",
            "country": "Korea",
            "images": ["https://img.example.com/jeju-1.jpg"],
        }
        fields.update(overrides)
        return trip_svc.create_trip(
            user_repo=user_repo,
            follow_repo=follow_repo,
            trip_repo=trip_repo,
            dispatcher=dispatcher,
            principal=principal,
            data=TripCreate(**fields),
            to_dict=False,
        )

    return _make


@pytest.fixture
def follow(follow_repo):
    def _follow(follower: Principal, followed: Principal):
        return follow_repo.create_follow(
            FollowCreate(follower_email=follower.email, followed_email=followed.email)
        )

    return _follow


@pytest.fixture
def client(db, dispatcher, users):
    from main import app

    def override_get_db():
        yield db

    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[get_notification_dispatcher] = lambda: dispatcher
    try:
        yield TestClient(app)
    finally:
        app.dependency_overrides.clear()


def auth(principal: Principal) -> dict:
    return {"X-Auth-Email": principal.email}
