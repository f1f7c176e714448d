# domain_exceptions.py
from typing import Optional


class UserNotFound(Exception):
    """
    在需要用户存在的场景下未找到对应用户时抛出：
    - 例如按昵称查看他人的旅行列表
    """

    def __init__(self, identity: Optional[str] = None, message: Optional[str] = None):
        if message:
            self.message = message
        elif identity is not None:
            self.message = f"User '{identity}' not found."
        else:
            self.message = "User not found."

        super().__init__(self.message)


class TripNotFound(Exception):
    """
    找不到旅行：
    - 记录不存在
    - 或记录存在但对当前访问者不可见（隐藏 / 非公开），对外不区分两种情况
    """
    def __init__(self, tid: str | None = None, message: str | None = None):
        if message:
            super().__init__(message)
        else:
            super().__init__(f"trip {tid} not found")


class PermissionDenied(Exception):
    """已登录但不是旅行作者，却尝试修改 / 删除"""
    def __init__(self, message="You do not have permission to modify this trip."):
        super().__init__(message)


class Unauthorized(Exception):
    """需要登录身份的操作没有拿到身份（例如点赞）"""
    def __init__(self, message="Authentication required."):
        super().__init__(message)


class TripValidationError(Exception):
    """创建 / 更新旅行时字段缺失或不合法"""
    def __init__(self, message: str):
        super().__init__(message)


class DataIntegrityError(Exception):
    """
    数据完整性问题：
    - 例如旅行的作者在用户表中已不存在，无法组装昵称
    - 不属于正常的用户可见错误，接口层统一按 500 返回
    """
    def __init__(self, message: str):
        super().__init__(message)


class AlreadyLikedError(Exception):
    """用户已经对该旅行点过赞（未取消），用于阻止重复点赞导致的计数增加"""
    def __init__(self, user_email: str, trip_id: str):
        self.user_email = user_email
        self.trip_id = trip_id
        super().__init__(f"user {user_email} already liked trip {trip_id}")


class NotLikedError(Exception):
    """
    取消点赞操作失败：
    - 情况 1：用户从未对该旅行点赞
    - 情况 2：用户之前点过赞，但已取消（软删除状态）
    """

    def __init__(self, user_email: str, trip_id: str, message: str = None):
        if message is None:
            message = f"user {user_email} has not liked trip {trip_id}"
        self.user_email = user_email
        self.trip_id = trip_id
        super().__init__(message)
