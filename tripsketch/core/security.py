from typing import Optional

from fastapi import Request

from tripsketch.core.config import settings
from tripsketch.core.exceptions import Unauthorized
from tripsketch.schemas.principal import Principal

# 身份由上游网关校验 JWT 后写入请求头，这里只负责取出，不做任何校验


def get_optional_principal(request: Request) -> Optional[Principal]:
    """
    可匿名访问的接口使用：
    - 有身份 => Principal
    - 无身份 => None（访客）
    """
    email = (request.headers.get(settings.AUTH_HEADER) or "").strip()
    if not email:
        return None
    return Principal(email=email)


def get_current_principal(request: Request) -> Principal:
    """必须登录的接口使用，取不到身份时抛 Unauthorized（由全局处理器转换为 401）"""
    principal = get_optional_principal(request)
    if principal is None:
        raise Unauthorized()
    return principal


def is_admin(principal: Optional[Principal]) -> bool:
    return principal is not None and principal.email in settings.admin_emails
