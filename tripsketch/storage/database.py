from fastapi import BackgroundTasks, Depends
from sqlalchemy import create_engine
from sqlalchemy.orm import Session, sessionmaker

from tripsketch.core.config import settings
from tripsketch.models.base import Base
# 导入所有模型，保证 Base.metadata 完整
from tripsketch.models import user, follow, trip, trip_like  # noqa: F401
from tripsketch.storage.user.SQLAlchemyUserRepository import SQLAlchemyUserRepository
from tripsketch.storage.follow.SQLAlchemyFollowRepository import SQLAlchemyFollowRepository
from tripsketch.storage.trip.SQLAlchemyTripRepository import SQLAlchemyTripRepository
from tripsketch.storage.trip_like.SQLAlchemyTripLikeRepository import SQLAlchemyTripLikeRepository
from tripsketch.notify.PushNotificationDispatcher import PushNotificationDispatcher

DATABASE_URL = settings.database_url

connect_args = {"check_same_thread": False} if DATABASE_URL.startswith("sqlite") else {}
# SQLAlchemy 引擎
engine = create_engine(DATABASE_URL, echo=settings.DB_ECHO, connect_args=connect_args)
SessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)


def init_db() -> None:
    """建表（已存在的表不受影响）"""
    Base.metadata.create_all(bind=engine)


def get_db():
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()

# 未来可以根据配置切换不同的实现
def get_user_repo(db: Session = Depends(get_db)) -> SQLAlchemyUserRepository:
    return SQLAlchemyUserRepository(db)
def get_follow_repo(db: Session = Depends(get_db)) -> SQLAlchemyFollowRepository:
    return SQLAlchemyFollowRepository(db)
def get_trip_repo(db: Session = Depends(get_db)) -> SQLAlchemyTripRepository:
    return SQLAlchemyTripRepository(db)
def get_trip_like_repo(db: Session = Depends(get_db)) -> SQLAlchemyTripLikeRepository:
    return SQLAlchemyTripLikeRepository(db)
def get_notification_dispatcher(
    background_tasks: BackgroundTasks,
    user_repo: SQLAlchemyUserRepository = Depends(get_user_repo),
) -> PushNotificationDispatcher:
    return PushNotificationDispatcher(user_repo, background_tasks)
