from typing import Optional
from pydantic import BaseModel, ConfigDict, EmailStr


class UserCreate(BaseModel):
    """
    创建用户（注册流程在认证服务中完成，这里仅供数据初始化使用）
    """
    email: EmailStr
    nickname: str
    profile_image_url: Optional[str] = None
    notification_token: Optional[str] = None

    model_config = ConfigDict(from_attributes=True, extra="forbid")


class UserOut(BaseModel):
    """
    用户资料：旅行展示时需要的昵称 / 头像，以及推送令牌
    """
    email: str
    nickname: str
    profile_image_url: Optional[str] = None
    notification_token: Optional[str] = None

    model_config = ConfigDict(from_attributes=True)
