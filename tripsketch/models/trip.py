from sqlalchemy import Column, Integer, String, Boolean, TIMESTAMP, Text, JSON, ForeignKey, UniqueConstraint, Index
from tripsketch.models.base import Base
from tripsketch.core.time import now_kst
import uuid

class Trip(Base):
    """ 旅行帖子表，存储旅行内容、可见性以及点赞数 / 浏览数。

        CREATE TABLE IF NOT EXISTS trips (
            _id INT AUTO_INCREMENT PRIMARY KEY,           -- 系统主键ID（自增）
            tid VARCHAR(36) UNIQUE,                       -- 业务主键（UUID）
            email VARCHAR(100) NOT NULL,                  -- 作者 (FK -> users.email)，创建后不可变
            title VARCHAR(200) NOT NULL,                  -- 标题
            content TEXT NOT NULL,                        -- 正文
            location VARCHAR(255),                        -- 地点
            country VARCHAR(100),                         -- 目的地国家
            hashtag VARCHAR(255) NOT NULL,                -- 标签
            images JSON,                                  -- 图片 URL 列表（有序）
            started_at TIMESTAMP NOT NULL,                -- 旅行开始时间
            end_at TIMESTAMP NOT NULL,                    -- 旅行结束时间
            is_public BOOLEAN DEFAULT TRUE,               -- 是否对他人可见
            is_hidden BOOLEAN DEFAULT FALSE,              -- 是否隐藏（软删除 / 处理）
            likes INT DEFAULT 0,                          -- 点赞数（由点赞表维护）
            views INT DEFAULT 0,                          -- 浏览数（每个访客最多计一次）
            created_at TIMESTAMP DEFAULT CURRENT_TIMESTAMP,
            updated_at TIMESTAMP NULL,
            deleted_at TIMESTAMP NULL,

            FOREIGN KEY (email) REFERENCES users(email)
        );

        CREATE INDEX idx_trips_email ON trips (email);
        CREATE INDEX idx_trips_visibility ON trips (is_public, is_hidden);
        CREATE INDEX idx_trips_email_visibility ON trips (email, is_public, is_hidden);
    """

    __tablename__ = "trips"

    # 系统主键：自增，不对外暴露
    _id = Column(Integer, primary_key=True, autoincrement=True)
    # 业务主键：UUID
    tid = Column(String(36), unique=True, nullable=False, default=lambda: str(uuid.uuid4()))

    email = Column(String(100), ForeignKey("users.email"), nullable=False)
    title = Column(String(200), nullable=False)
    content = Column(Text, nullable=False)
    location = Column(String(255), nullable=True)
    country = Column(String(100), nullable=True)
    hashtag = Column(String(255), nullable=False)
    images = Column(JSON, nullable=False, default=list)

    started_at = Column(TIMESTAMP(timezone=True), nullable=False, default=now_kst)
    end_at = Column(TIMESTAMP(timezone=True), nullable=False, default=now_kst)

    is_public = Column(Boolean, nullable=False, default=True)
    is_hidden = Column(Boolean, nullable=False, default=False)

    likes = Column(Integer, nullable=False, default=0)
    views = Column(Integer, nullable=False, default=0)

    created_at = Column(TIMESTAMP(timezone=True), default=now_kst)
    updated_at = Column(TIMESTAMP(timezone=True), nullable=True)
    deleted_at = Column(TIMESTAMP(timezone=True), nullable=True)

    __table_args__ = (
        UniqueConstraint("tid", name="unique_tid"),
        Index("idx_trips_email", "email"),
        Index("idx_trips_visibility", "is_public", "is_hidden"),
        Index("idx_trips_email_visibility", "email", "is_public", "is_hidden"),
    )


class TripView(Base):
    """ 浏览记录表：已计入 views 的访客，同一访客对同一旅行只有一行。

        CREATE TABLE IF NOT EXISTS trip_views (
            _id INT AUTO_INCREMENT PRIMARY KEY,
            trip_id VARCHAR(36) NOT NULL,                    -- FK -> trips.tid
            viewer_email VARCHAR(100) NOT NULL,              -- 访客
            created_at TIMESTAMP DEFAULT CURRENT_TIMESTAMP,

            CONSTRAINT uq_trip_views_trip_viewer UNIQUE (trip_id, viewer_email)
        );
    """

    __tablename__ = "trip_views"

    _id = Column(Integer, primary_key=True, autoincrement=True)
    trip_id = Column(String(36), ForeignKey("trips.tid"), nullable=False)
    viewer_email = Column(String(100), nullable=False)
    created_at = Column(TIMESTAMP(timezone=True), default=now_kst)

    __table_args__ = (
        UniqueConstraint("trip_id", "viewer_email", name="uq_trip_views_trip_viewer"),
    )
