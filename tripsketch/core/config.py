from typing import List, Optional

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    # 应用
    PROJECT_NAME: str = "TripSketch"
    LOG_LEVEL: str = "INFO"
    LOG_FILE: Optional[str] = None

    # 数据库（DATABASE_URL 存在时优先使用）
    DB_HOST: str = "127.0.0.1"
    DB_PORT: int = 3306
    DB_USER: str = "root"
    DB_PASSWORD: str = ""
    DB_NAME: str = "tripsketch"
    DATABASE_URL: Optional[str] = None
    DB_ECHO: bool = False
    # 启动时自动建表
    DB_AUTO_CREATE: bool = True

    # 网关注入的已认证用户邮箱
    AUTH_HEADER: str = "X-Auth-Email"
    # 逗号分隔的管理员邮箱
    ADMIN_EMAILS: str = ""

    # 推送
    PUSH_API_URL: str = "https://exp.host/--/api/v2/push/send"
    PUSH_TIMEOUT_SECONDS: float = 8.0
    TRIP_LINK_BASE_URL: str = "tripsketch://trip"

    model_config = SettingsConfigDict(env_file=".env", env_file_encoding="utf-8")

    @property
    def database_url(self) -> str:
        if self.DATABASE_URL:
            return self.DATABASE_URL
        return (
            f"mysql+pymysql://{self.DB_USER}:{self.DB_PASSWORD}"
            f"@{self.DB_HOST}:{self.DB_PORT}/{self.DB_NAME}?charset=utf8mb4"
        )

    @property
    def admin_emails(self) -> List[str]:
        return [e.strip() for e in self.ADMIN_EMAILS.split(",") if e.strip()]


settings = Settings()
