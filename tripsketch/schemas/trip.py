from typing import Optional, List
from datetime import datetime
from enum import IntEnum

from pydantic import BaseModel, ConfigDict


# 搜索排序方式
class TripSorting(IntEnum):
    OLDEST = -1       # 最早发布
    LATEST = 1        # 最新发布
    POPULAR = 2       # 点赞最多
    MOST_VIEWED = 3   # 浏览最多


# 创建一篇旅行
class TripCreate(BaseModel):
    """
    创建旅行（作者由登录身份决定，不从请求体传）
    - 旅行日期不传时默认当前时间
    - 默认公开
    """
    title: str
    content: str
    hashtag: str
    location: Optional[str] = None
    country: Optional[str] = None
    images: List[str] = []
    started_at: Optional[datetime] = None
    end_at: Optional[datetime] = None
    is_public: bool = True

    model_config = ConfigDict(from_attributes=True, extra="forbid")


class TripOnlyCreate(BaseModel):
    """
    创建旅行（内部调用插入 trips 表）
    - 日期已由业务层补齐
    """
    email: str
    title: str
    content: str
    hashtag: str
    location: Optional[str] = None
    country: Optional[str] = None
    images: List[str] = []
    started_at: datetime
    end_at: datetime
    is_public: bool = True


class TripUpdate(BaseModel):
    """
    作者更新旅行（整体替换）：
    - tid / 作者 / created_at 不可修改
    - 日期不传时沿用原值，其余字段不传即恢复默认值
    """
    title: str
    content: str
    hashtag: str
    location: Optional[str] = None
    country: Optional[str] = None
    images: List[str] = []
    started_at: Optional[datetime] = None
    end_at: Optional[datetime] = None
    is_public: bool = True

    model_config = ConfigDict(from_attributes=True, extra="forbid")


class TripInDB(BaseModel):
    """
    仓库层返回的旅行实体（包含作者邮箱等内部字段，不直接对外）
    """
    tid: str
    email: str
    title: str
    content: str
    location: Optional[str] = None
    country: Optional[str] = None
    hashtag: str
    images: List[str] = []
    started_at: datetime
    end_at: datetime
    is_public: bool
    is_hidden: bool
    likes: int
    views: int
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None
    deleted_at: Optional[datetime] = None

    model_config = ConfigDict(from_attributes=True)


class BatchTripsInDB(BaseModel):
    total: int
    count: int
    items: List[TripInDB]


# 查看旅行
class TripOut(BaseModel):
    """
    对外返回的旅行信息：
    - email 只在作者本人视角下返回，其他视角为 None
    - is_liked 表示当前访问者是否点赞
    """
    tid: str
    email: Optional[str] = None
    nickname: str
    profile_image_url: Optional[str] = None
    title: str
    content: str
    location: Optional[str] = None
    country: Optional[str] = None
    hashtag: str
    images: List[str] = []
    started_at: datetime
    end_at: datetime
    is_public: bool
    is_hidden: bool
    likes: int
    views: int
    is_liked: bool = False
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None
    deleted_at: Optional[datetime] = None

    model_config = ConfigDict(from_attributes=True)


class BatchTripsOut(BaseModel):
    """
    旅行分页列表返回：
    - total: 满足条件的总数
    - count: 当前页返回的数量
    - items: 旅行列表
    """
    total: int
    count: int
    items: List[TripOut]

    model_config = ConfigDict(from_attributes=True)


class CountryFrequencyOut(BaseModel):
    """某个用户在某个国家的旅行次数"""
    country: str
    count: int
