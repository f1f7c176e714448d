from sqlalchemy import Column, Integer, String, TIMESTAMP, ForeignKey, UniqueConstraint, Index
from tripsketch.models.base import Base
from tripsketch.core.time import now_kst

class Follow(Base):
    """ 用户关注关系表，记录用户关注了哪些用户

        CREATE TABLE IF NOT EXISTS follows (
            _id INT AUTO_INCREMENT PRIMARY KEY,              -- 系统主键（自增）
            follower_email VARCHAR(100) NOT NULL,            -- 关注者 (FK -> users.email)
            followed_email VARCHAR(100) NOT NULL,            -- 被关注者 (FK -> users.email)
            created_at TIMESTAMP DEFAULT CURRENT_TIMESTAMP,  -- 创建时间
            deleted_at TIMESTAMP NULL,                       -- 软删除时间戳（用于取消关注）

            CONSTRAINT uq_user_follow UNIQUE (follower_email, followed_email)
        );
    """

    __tablename__ = "follows"

    _id = Column(Integer, primary_key=True, autoincrement=True)
    # 关注者
    follower_email = Column(String(100), ForeignKey("users.email"), nullable=False)
    # 被关注者
    followed_email = Column(String(100), ForeignKey("users.email"), nullable=False)
    created_at = Column(TIMESTAMP(timezone=True), default=now_kst)
    deleted_at = Column(TIMESTAMP(timezone=True), nullable=True)

    __table_args__ = (
        UniqueConstraint("follower_email", "followed_email", name="uq_user_follow"),
        Index("idx_follow_follower", "follower_email"),
        Index("idx_follow_followed", "followed_email"),
    )
