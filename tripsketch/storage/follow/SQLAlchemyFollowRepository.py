from typing import Set

from sqlalchemy.orm import Session

from tripsketch.models.follow import Follow
from tripsketch.schemas.follow import FollowCreate, FollowOut
from tripsketch.storage.follow.follow_interface import IFollowRepository
from tripsketch.core.db import transaction
from tripsketch.core.time import now_kst


class SQLAlchemyFollowRepository(IFollowRepository):
    """
    使用 SQLAlchemy 实现的关注关系仓库
    """

    def __init__(self, db: Session):
        self.db = db

    def _active_query(self):
        """只查询未软删除的关注记录"""
        return self.db.query(Follow).filter(Follow.deleted_at.is_(None))

    def create_follow(self, data: FollowCreate) -> FollowOut:
        """
        创建关注：
        - 如果已存在软删除的记录 => 视为重新关注：deleted_at 置空，created_at 更新为现在
        - 如果已存在未删除记录 => 直接返回
        """
        existing = (
            self.db.query(Follow)
            .filter(
                Follow.follower_email == data.follower_email,
                Follow.followed_email == data.followed_email,
            )
            .first()
        )

        now = now_kst()

        if existing:
            if existing.deleted_at is not None:
                with transaction(self.db):
                    existing.deleted_at = None
                    existing.created_at = now
                self.db.refresh(existing)
            return FollowOut.model_validate(existing)

        follow = Follow(
            follower_email=data.follower_email,
            followed_email=data.followed_email,
            created_at=now,
            deleted_at=None,
        )

        with transaction(self.db):
            self.db.add(follow)

        self.db.refresh(follow)
        return FollowOut.model_validate(follow)

    def cancel_follow(self, data: FollowCreate) -> bool:
        """
        取消关注（软删除）
        """
        follow = (
            self._active_query()
            .filter(
                Follow.follower_email == data.follower_email,
                Follow.followed_email == data.followed_email,
            )
            .first()
        )
        if not follow:
            return False

        with transaction(self.db):
            follow.deleted_at = now_kst()

        return True

    def list_follower_emails(self, email: str) -> Set[str]:
        rows = (
            self._active_query()
            .with_entities(Follow.follower_email)
            .filter(Follow.followed_email == email)
            .all()
        )
        return {row.follower_email for row in rows}

    def list_following_emails(self, email: str) -> Set[str]:
        rows = (
            self._active_query()
            .with_entities(Follow.followed_email)
            .filter(Follow.follower_email == email)
            .all()
        )
        return {row.followed_email for row in rows}
