from typing import Optional, List
from sqlalchemy.orm import Session
from tripsketch.models.user import User
from tripsketch.schemas.user import UserCreate, UserOut
from tripsketch.storage.user.user_interface import IUserRepository
from tripsketch.core.db import transaction

class SQLAlchemyUserRepository(IUserRepository):
    """
    使用 SQLAlchemy 实现的用户仓库
    业务层依赖 IUserRepository 接口，而不是这个具体实现
    """

    def __init__(self, db: Session):
        self.db = db

    def _base_query(self):
        """内部封装一个基础查询（过滤软删除）"""
        return self.db.query(User).filter(User.deleted_at.is_(None))

    def get_user_by_email(self, email: str) -> Optional[UserOut]:
        user = self._base_query().filter(User.email == email).first()
        return UserOut.model_validate(user) if user else None

    def get_user_by_nickname(self, nickname: str) -> Optional[UserOut]:
        user = self._base_query().filter(User.nickname == nickname).first()
        return UserOut.model_validate(user) if user else None

    def get_users_by_emails(self, emails: List[str]) -> List[UserOut]:
        if not emails:
            return []
        users = self._base_query().filter(User.email.in_(set(emails))).all()
        return [UserOut.model_validate(u) for u in users]

    def create_user(self, data: UserCreate) -> UserOut:
        user = User(**data.model_dump())

        with transaction(self.db):
            self.db.add(user)

        self.db.refresh(user)
        return UserOut.model_validate(user)
