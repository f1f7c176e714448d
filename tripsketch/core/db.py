from contextlib import contextmanager
from typing import Iterator

from sqlalchemy.orm import Session


@contextmanager
def transaction(db: Session) -> Iterator[Session]:
    """
    仓库层统一的事务边界：
    - 代码块正常结束 => commit
    - 代码块抛出异常 => rollback 后继续向上抛
    """
    try:
        yield db
        db.commit()
    except Exception:
        db.rollback()
        raise
