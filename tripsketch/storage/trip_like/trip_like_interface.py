# tripsketch/storage/trip_like/trip_like_interface.py

from typing import List, Set, Protocol

from tripsketch.schemas.trip_like import TripLikeOut


class ITripLikeRepository(Protocol):
    """
    旅行点赞仓库接口协议（数据层抽象接口）
    点赞记录的变化与 trips.likes 的增减必须在同一事务内完成
    """

    def like(self, trip_id: str, user_email: str) -> TripLikeOut:
        """
        创建或恢复点赞，同时 trips.likes + 1：
        - 不存在记录 => 新建
        - 存在软删除记录 => 恢复
        - 已是有效点赞 => 抛 AlreadyLikedError，计数不变
        """
        ...

    def cancel_like(self, trip_id: str, user_email: str) -> TripLikeOut:
        """
        取消点赞（软删除），同时 trips.likes - 1：
        - 当前不是点赞状态 => 抛 NotLikedError，计数不变
        """
        ...

    def is_liked(self, trip_id: str, user_email: str) -> bool:
        ...

    def liked_trip_ids(self, user_email: str, trip_ids: List[str]) -> Set[str]:
        """批量判断：trip_ids 中被 user_email 点赞的那些"""
        ...

    def count_likes(self, trip_id: str) -> int:
        """有效点赞记录数"""
        ...
