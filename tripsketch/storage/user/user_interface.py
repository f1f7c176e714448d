from typing import Optional, List, Protocol

from tripsketch.schemas.user import UserCreate, UserOut


class IUserRepository(Protocol):
    """
    用户仓库接口协议（数据层抽象接口）
    旅行业务只需要：邮箱 <-> 昵称 的解析，以及推送令牌
    """

    def get_user_by_email(self, email: str) -> Optional[UserOut]:
        """根据身份邮箱查询用户（已过滤软删除）"""
        ...

    def get_user_by_nickname(self, nickname: str) -> Optional[UserOut]:
        """根据昵称查询用户（已过滤软删除）"""
        ...

    def get_users_by_emails(self, emails: List[str]) -> List[UserOut]:
        """批量查询用户，用于列表组装昵称 / 收集推送令牌，不存在的邮箱直接忽略"""
        ...

    def create_user(self, data: UserCreate) -> UserOut:
        ...
