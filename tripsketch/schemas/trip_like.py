from typing import Optional
from datetime import datetime

from pydantic import BaseModel, ConfigDict


class TripIdIn(BaseModel):
    """点赞 / 取消点赞 / 切换点赞 的请求体"""
    tid: str

    model_config = ConfigDict(extra="forbid")


class TripLikeOut(BaseModel):
    """
    点赞记录：
    - deleted_at 为 None 表示当前有效
    """
    lid: str
    trip_id: str
    user_email: str
    created_at: datetime
    updated_at: datetime
    deleted_at: Optional[datetime] = None

    model_config = ConfigDict(from_attributes=True)


class TripLikeStateOut(BaseModel):
    """当前访问者对某个旅行的点赞状态 + 最新点赞数"""
    trip_id: str
    is_liked: bool
    likes: int
