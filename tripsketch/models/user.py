from sqlalchemy import Column, Integer, String, TIMESTAMP
from tripsketch.models.base import Base
from tripsketch.core.time import now_kst

class User(Base):
    """ 用户模型，对应数据库中的 users 表（只保存旅行业务需要的资料）。

        CREATE TABLE IF NOT EXISTS users (
            _id INT AUTO_INCREMENT PRIMARY KEY,        -- 系统主键 ID
            email VARCHAR(100) UNIQUE NOT NULL,        -- 身份标识（网关注入的邮箱）
            nickname VARCHAR(100) UNIQUE NOT NULL,     -- 昵称
            profile_image_url VARCHAR(255),            -- 头像 URL
            notification_token VARCHAR(255),           -- 推送令牌
            created_at TIMESTAMP DEFAULT CURRENT_TIMESTAMP,
            deleted_at TIMESTAMP NULL                  -- 软删除时间戳
        );
    """

    __tablename__ = "users"
    # 系统主键：自增
    _id = Column(Integer, primary_key=True, autoincrement=True)
    email = Column(String(100), unique=True, nullable=False)  # 用户身份
    nickname = Column(String(100), unique=True, nullable=False)  # 用户昵称
    profile_image_url = Column(String(255), nullable=True)  # 用户头像
    notification_token = Column(String(255), nullable=True)  # 推送令牌（Expo）
    created_at = Column(TIMESTAMP(timezone=True), default=now_kst)  # 创建时间
    deleted_at = Column(TIMESTAMP(timezone=True), nullable=True)  # 软删除时间戳
