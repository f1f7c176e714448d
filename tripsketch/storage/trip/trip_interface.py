# tripsketch/storage/trip/trip_interface.py

from typing import Optional, List, Protocol

from tripsketch.schemas.trip import (
    TripOnlyCreate,
    TripUpdate,
    TripInDB,
    BatchTripsInDB,
    TripSorting,
    CountryFrequencyOut,
)


class ITripRepository(Protocol):
    """
    旅行仓库接口协议（数据层抽象接口）
    业务层依赖本接口，而不是具体实现，方便后续替换为不同数据源

    “可见”统一指 is_public = True 且 is_hidden = False
    """

    def create_trip(self, data: TripOnlyCreate) -> TripInDB:
        """
        创建旅行：
        - 分配 tid / created_at
        - likes / views 初始化为 0
        """
        ...

    def get_trip_by_tid(self, tid: str) -> Optional[TripInDB]:
        """按业务主键查询，不做任何可见性过滤（可见性由业务层判断）"""
        ...

    def list_visible_trips(self, page: int, page_size: int) -> BatchTripsInDB:
        """首页 / 访客：所有可见旅行，按创建时间倒序"""
        ...

    def list_trips_by_owner(self, email: str, include_hidden: bool, page: int, page_size: int) -> BatchTripsInDB:
        """
        作者本人查看自己的旅行：
        - 不限制 is_public
        - include_hidden=False 时排除已隐藏的旅行
        """
        ...

    def list_visible_trips_by_owners(self, emails: List[str], page: int, page_size: int) -> BatchTripsInDB:
        """他人视角：指定作者（一个或多个）的可见旅行"""
        ...

    def search_visible_trips(self, keyword: str, sorting: TripSorting, page: int, page_size: int) -> BatchTripsInDB:
        """
        关键字搜索可见旅行：
        - 匹配 标题 / 正文 / 标签 / 地点
        """
        ...

    def count_trips_by_country(self, email: str, visible_only: bool) -> List[CountryFrequencyOut]:
        """
        统计某作者在各国家的旅行数：
        - 按数量倒序，数量相同时按国家名升序
        - country 为空的旅行不计入
        """
        ...

    def list_trips_in_country(self, email: str, country: str, visible_only: bool, page: int, page_size: int) -> BatchTripsInDB:
        ...

    def update_trip(self, tid: str, data: TripUpdate) -> Optional[TripInDB]:
        """
        整体替换可修改字段并写入 updated_at
        - data 中的日期已由业务层补齐
        - 未找到返回 None
        """
        ...

    def soft_delete_trip(self, tid: str) -> Optional[TripInDB]:
        """
        软删除：is_hidden = True，deleted_at = now
        - 点赞数 / 浏览数 / 浏览记录保持不变
        - 未找到返回 None
        """
        ...

    def add_viewer(self, tid: str, viewer_email: str) -> bool:
        """
        记录一次访客浏览：
        - 访客第一次出现 => 写入浏览记录，views 原子 +1，返回 True
        - 已记录过 => 不做任何修改，返回 False
        """
        ...

    #----------------------------------- 管理员用 ----------------------------------------
    def admin_list_all_trips(self, page: int, page_size: int) -> BatchTripsInDB:
        """查看所有旅行（不过滤 is_public / is_hidden）"""
        ...
