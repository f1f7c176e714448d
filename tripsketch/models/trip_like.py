from sqlalchemy import Column, Integer, String, TIMESTAMP, ForeignKey, UniqueConstraint, Index
from tripsketch.models.base import Base
from tripsketch.core.time import now_kst
import uuid

class TripLike(Base):
    """ 旅行点赞表。deleted_at 为 NULL 表示当前处于点赞状态，取消点赞为软删除，
        再次点赞时恢复同一行。trips.likes 始终等于本表中有效行的数量。

        CREATE TABLE IF NOT EXISTS trip_likes (
            _id INT AUTO_INCREMENT PRIMARY KEY,              -- 系统主键（自增）
            lid VARCHAR(36) UNIQUE,                          -- 业务主键（UUID）
            trip_id VARCHAR(36) NOT NULL,                    -- 旅行 (FK -> trips.tid)
            user_email VARCHAR(100) NOT NULL,                -- 用户 (FK -> users.email)
            created_at TIMESTAMP DEFAULT CURRENT_TIMESTAMP,  -- 点赞时间
            updated_at TIMESTAMP NOT NULL DEFAULT CURRENT_TIMESTAMP ON UPDATE CURRENT_TIMESTAMP,
            deleted_at TIMESTAMP NULL,                       -- 软删除时间戳（取消点赞）

            CONSTRAINT uq_trip_likes_user_trip UNIQUE (user_email, trip_id)
        );
        CREATE INDEX idx_trip_likes_trip ON trip_likes (trip_id);
    """

    __tablename__ = "trip_likes"

    _id = Column(Integer, primary_key=True, autoincrement=True)
    lid = Column(String(36), unique=True, default=lambda: str(uuid.uuid4()))
    trip_id = Column(String(36), ForeignKey("trips.tid"), nullable=False)
    user_email = Column(String(100), ForeignKey("users.email"), nullable=False)
    created_at = Column(TIMESTAMP(timezone=True), default=now_kst)
    updated_at = Column(TIMESTAMP(timezone=True), default=now_kst, onupdate=now_kst)
    deleted_at = Column(TIMESTAMP(timezone=True), nullable=True)

    __table_args__ = (
        # 每个用户对同一旅行只能有一条点赞记录
        UniqueConstraint("user_email", "trip_id", name="uq_trip_likes_user_trip"),
        Index("idx_trip_likes_trip", "trip_id"),
    )
