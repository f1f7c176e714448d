from typing import Set, Protocol

from tripsketch.schemas.follow import FollowCreate, FollowOut


class IFollowRepository(Protocol):
    """
    关注关系仓库接口协议（数据层抽象接口）
    业务层只依赖本接口，不依赖具体 SQLAlchemy 实现
    """

    def create_follow(self, data: FollowCreate) -> FollowOut:
        """
        创建关注关系：
        - 如果之前存在软删除记录，视为“重新关注”，会把 deleted_at 置空
        - 如果已经存在有效记录，直接返回当前记录
        """
        ...

    def cancel_follow(self, data: FollowCreate) -> bool:
        """取消关注（软删除），不存在有效记录则返回 False"""
        ...

    def list_follower_emails(self, email: str) -> Set[str]:
        """谁关注了 email（有效关系），可能包含自身，由调用方过滤"""
        ...

    def list_following_emails(self, email: str) -> Set[str]:
        """email 关注了谁（有效关系）"""
        ...
