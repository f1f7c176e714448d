from pydantic import BaseModel, ConfigDict


class Principal(BaseModel):
    """
    已认证的调用者身份：
    - 由接口层从网关注入的请求头中取出，显式传入每个业务函数
    - 业务层不再自己解析身份
    """
    email: str

    model_config = ConfigDict(frozen=True)
