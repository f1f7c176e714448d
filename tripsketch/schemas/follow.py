from pydantic import BaseModel, ConfigDict


class FollowCreate(BaseModel):
    """
    创建关注
    """
    follower_email: str        # 关注者
    followed_email: str        # 被关注者

    model_config = ConfigDict(from_attributes=True, extra="forbid")


class FollowOut(BaseModel):
    follower_email: str
    followed_email: str

    model_config = ConfigDict(from_attributes=True)
