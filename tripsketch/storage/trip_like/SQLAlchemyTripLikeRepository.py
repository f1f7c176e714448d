# tripsketch/storage/trip_like/SQLAlchemyTripLikeRepository.py

from typing import List, Optional, Set

from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from tripsketch.models.trip import Trip
from tripsketch.models.trip_like import TripLike
from tripsketch.schemas.trip_like import TripLikeOut
from tripsketch.storage.trip_like.trip_like_interface import ITripLikeRepository
from tripsketch.core.db import transaction
from tripsketch.core.time import now_kst
from tripsketch.core.exceptions import AlreadyLikedError, NotLikedError


class SQLAlchemyTripLikeRepository(ITripLikeRepository):
    """
    使用 SQLAlchemy 实现的旅行点赞仓库
    业务层依赖 ITripLikeRepository 接口，而不是这个具体实现
    """

    def __init__(self, db: Session):
        self.db = db

    # ---------- 内部基础查询 ----------

    def _active_query(self):
        """只查未软删除的点赞"""
        return self.db.query(TripLike).filter(TripLike.deleted_at.is_(None))

    def _admin_query(self):
        """不过滤 deleted_at"""
        return self.db.query(TripLike)

    def _get_record(self, trip_id: str, user_email: str) -> Optional[TripLike]:
        return (
            self._admin_query()
            .filter(TripLike.trip_id == trip_id, TripLike.user_email == user_email)
            .first()
        )

    def _step_likes(self, trip_id: str, step: int) -> None:
        """likes = likes + step，由数据库原子完成"""
        (
            self.db.query(Trip)
            .filter(Trip.tid == trip_id)
            .update({Trip.likes: Trip.likes + step}, synchronize_session=False)
        )

    # ---------- 创建 / 恢复点赞 ----------

    def like(self, trip_id: str, user_email: str) -> TripLikeOut:
        now = now_kst()

        try:
            with transaction(self.db):
                # 情况 1：软删除记录 => 条件更新恢复点赞
                revived = (
                    self._admin_query()
                    .filter(
                        TripLike.trip_id == trip_id,
                        TripLike.user_email == user_email,
                        TripLike.deleted_at.is_not(None),
                    )
                    .update(
                        {TripLike.deleted_at: None, TripLike.created_at: now, TripLike.updated_at: now},
                        synchronize_session=False,
                    )
                )

                if not revived:
                    active = (
                        self._active_query()
                        .filter(TripLike.trip_id == trip_id, TripLike.user_email == user_email)
                        .first()
                    )
                    # 情况 2：已经是有效点赞 => 抛业务异常，通知上层不要重复 +1
                    if active is not None:
                        raise AlreadyLikedError(user_email=user_email, trip_id=trip_id)

                    # 情况 3：全新点赞，唯一约束兜底并发插入
                    self.db.add(
                        TripLike(
                            trip_id=trip_id,
                            user_email=user_email,
                            created_at=now,
                            updated_at=now,
                            deleted_at=None,
                        )
                    )
                    self.db.flush()

                self._step_likes(trip_id, 1)
        except IntegrityError:
            # 只有并发插入撞上唯一约束才算重复点赞，外键等其他约束失败继续上抛
            if self.is_liked(trip_id, user_email):
                raise AlreadyLikedError(user_email=user_email, trip_id=trip_id)
            raise

        return TripLikeOut.model_validate(self._get_record(trip_id, user_email))

    # ---------- 取消点赞（软删） ----------

    def cancel_like(self, trip_id: str, user_email: str) -> TripLikeOut:
        now = now_kst()

        with transaction(self.db):
            cancelled = (
                self._active_query()
                .filter(TripLike.trip_id == trip_id, TripLike.user_email == user_email)
                .update(
                    {TripLike.deleted_at: now, TripLike.updated_at: now},
                    synchronize_session=False,
                )
            )

            if not cancelled:
                if self._get_record(trip_id, user_email) is None:
                    message = f"user {user_email} has not liked trip {trip_id}"
                else:
                    message = f"user {user_email} already unliked trip {trip_id}"
                raise NotLikedError(user_email=user_email, trip_id=trip_id, message=message)

            self._step_likes(trip_id, -1)

        return TripLikeOut.model_validate(self._get_record(trip_id, user_email))

    # ---------- 查询 ----------

    def is_liked(self, trip_id: str, user_email: str) -> bool:
        like = (
            self._active_query()
            .filter(TripLike.trip_id == trip_id, TripLike.user_email == user_email)
            .first()
        )
        return like is not None

    def liked_trip_ids(self, user_email: str, trip_ids: List[str]) -> Set[str]:
        if not trip_ids:
            return set()
        rows = (
            self._active_query()
            .with_entities(TripLike.trip_id)
            .filter(TripLike.user_email == user_email, TripLike.trip_id.in_(set(trip_ids)))
            .all()
        )
        return {row.trip_id for row in rows}

    def count_likes(self, trip_id: str) -> int:
        return self._active_query().filter(TripLike.trip_id == trip_id).count()
