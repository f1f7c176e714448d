from typing import Optional

from fastapi import APIRouter, Depends
from fastapi.encoders import jsonable_encoder

from tripsketch.schemas.principal import Principal
from tripsketch.schemas.trip_like import TripIdIn, TripLikeOut, TripLikeStateOut

from tripsketch.core.biz_response import BizResponse
from tripsketch.core.security import get_optional_principal, get_current_principal
from tripsketch.core.logx import logger

from tripsketch.service import trip_like_svc

from tripsketch.storage.database import get_user_repo, get_trip_repo, get_trip_like_repo
from tripsketch.storage.user.user_interface import IUserRepository
from tripsketch.storage.trip.trip_interface import ITripRepository
from tripsketch.storage.trip_like.trip_like_interface import ITripLikeRepository

from tripsketch.core.exceptions import TripNotFound, UserNotFound, AlreadyLikedError, NotLikedError

trip_likes_router = APIRouter(prefix="/api/trip", tags=["trip-likes"])


# -------------------------- 点赞 -------------------------- #

@trip_likes_router.post("/like", response_model=TripLikeOut)
def like_trip(
    data: TripIdIn,
    principal: Principal = Depends(get_current_principal),
    user_repo: IUserRepository = Depends(get_user_repo),
    trip_repo: ITripRepository = Depends(get_trip_repo),
    like_repo: ITripLikeRepository = Depends(get_trip_like_repo),
):
    """
    点赞旅行：
    - 写入点赞记录 + likes 加一（同一事务）
    - 重复点赞返回 409
    """
    try:
        like = trip_like_svc.like_trip(
            user_repo=user_repo,
            trip_repo=trip_repo,
            like_repo=like_repo,
            principal=principal,
            tid=data.tid,
            to_dict=True,
        )
        return BizResponse(data=jsonable_encoder(like))
    except (TripNotFound, UserNotFound) as e:
        return BizResponse(data=None, msg=str(e), status_code=404)
    except AlreadyLikedError as e:
        logger.info(f"AlreadyLikedError: {e}")
        return BizResponse(data=None, msg=str(e), status_code=409)
    except Exception as e:
        logger.exception("like_trip error")
        return BizResponse(data=None, msg=str(e), status_code=500)


# -------------------------- 取消点赞 -------------------------- #

@trip_likes_router.post("/unlike", response_model=TripLikeOut)
def unlike_trip(
    data: TripIdIn,
    principal: Principal = Depends(get_current_principal),
    user_repo: IUserRepository = Depends(get_user_repo),
    trip_repo: ITripRepository = Depends(get_trip_repo),
    like_repo: ITripLikeRepository = Depends(get_trip_like_repo),
):
    """取消点赞（软删除点赞记录 + likes 减一）"""
    try:
        like = trip_like_svc.unlike_trip(
            user_repo=user_repo,
            trip_repo=trip_repo,
            like_repo=like_repo,
            principal=principal,
            tid=data.tid,
            to_dict=True,
        )
        return BizResponse(data=jsonable_encoder(like))
    except (TripNotFound, UserNotFound) as e:
        return BizResponse(data=None, msg=str(e), status_code=404)
    except NotLikedError as e:
        # 没有点赞就取消，属于客户端错误
        logger.info(f"NotLikedError: {e}")
        return BizResponse(data=None, msg=str(e), status_code=409)
    except Exception as e:
        logger.exception("unlike_trip error")
        return BizResponse(data=None, msg=str(e), status_code=500)


@trip_likes_router.post("/toggle-like", response_model=TripLikeStateOut)
def toggle_trip_like(
    data: TripIdIn,
    principal: Principal = Depends(get_current_principal),
    user_repo: IUserRepository = Depends(get_user_repo),
    trip_repo: ITripRepository = Depends(get_trip_repo),
    like_repo: ITripLikeRepository = Depends(get_trip_like_repo),
):
    """切换点赞状态"""
    try:
        state = trip_like_svc.toggle_trip_like(
            user_repo=user_repo,
            trip_repo=trip_repo,
            like_repo=like_repo,
            principal=principal,
            tid=data.tid,
            to_dict=True,
        )
        return BizResponse(data=state)
    except (TripNotFound, UserNotFound) as e:
        return BizResponse(data=None, msg=str(e), status_code=404)
    except (AlreadyLikedError, NotLikedError) as e:
        # 并发切换时两次请求撞在一起
        logger.info(f"toggle_trip_like conflict: {e}")
        return BizResponse(data=None, msg=str(e), status_code=409)
    except Exception as e:
        logger.exception("toggle_trip_like error")
        return BizResponse(data=None, msg=str(e), status_code=500)


# -------------------------- 查询 -------------------------- #

@trip_likes_router.get("/like/{tid}", response_model=TripLikeStateOut)
def get_like_state(
    tid: str,
    principal: Optional[Principal] = Depends(get_optional_principal),
    trip_repo: ITripRepository = Depends(get_trip_repo),
    like_repo: ITripLikeRepository = Depends(get_trip_like_repo),
):
    """当前访问者是否点赞（访客总是 False）"""
    try:
        state = trip_like_svc.get_like_state(
            trip_repo=trip_repo,
            like_repo=like_repo,
            principal=principal,
            tid=tid,
            to_dict=True,
        )
        return BizResponse(data=state)
    except (TripNotFound, UserNotFound) as e:
        return BizResponse(data=None, msg=str(e), status_code=404)
    except Exception as e:
        logger.exception("get_like_state error")
        return BizResponse(data=None, msg=str(e), status_code=500)
