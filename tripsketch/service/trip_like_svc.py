from typing import Dict, Optional

from tripsketch.schemas.principal import Principal
from tripsketch.schemas.trip import TripInDB
from tripsketch.schemas.trip_like import TripLikeOut, TripLikeStateOut

from tripsketch.storage.trip.trip_interface import ITripRepository
from tripsketch.storage.trip_like.trip_like_interface import ITripLikeRepository
from tripsketch.storage.user.user_interface import IUserRepository

from tripsketch.core.logx import logger
from tripsketch.core.exceptions import (
    TripNotFound,
    Unauthorized,
    UserNotFound,
    AlreadyLikedError,
    NotLikedError,
)


def _require_user(user_repo: IUserRepository, principal: Optional[Principal]) -> Principal:
    """需要登录且用户存在"""
    if principal is None:
        raise Unauthorized()
    if not user_repo.get_user_by_email(principal.email):
        raise UserNotFound(principal.email)
    return principal


def _get_likable_trip(trip_repo: ITripRepository, principal: Principal, tid: str) -> TripInDB:
    """
    点赞前校验旅行：
    - 不存在 => TripNotFound
    - 非作者且旅行隐藏 / 非公开 => 同样 TripNotFound
    """
    trip = trip_repo.get_trip_by_tid(tid)
    if not trip:
        raise TripNotFound(tid=tid)
    if trip.email != principal.email and (trip.is_hidden or not trip.is_public):
        raise TripNotFound(tid=tid)
    return trip


def _state(trip_repo: ITripRepository, like_repo: ITripLikeRepository, principal: Principal, tid: str) -> TripLikeStateOut:
    trip = trip_repo.get_trip_by_tid(tid)
    return TripLikeStateOut(
        trip_id=tid,
        is_liked=like_repo.is_liked(tid, principal.email),
        likes=trip.likes if trip else 0,
    )


#---------------------------------------- 点赞 -----------------------------------------

def like_trip(
    user_repo: IUserRepository,
    trip_repo: ITripRepository,
    like_repo: ITripLikeRepository,
    principal: Optional[Principal],
    tid: str,
    to_dict: bool = True,) -> Dict | TripLikeOut:
    """
    点赞：
    1. 校验登录身份、用户存在、旅行可见
    2. 写入 / 恢复点赞记录，同一事务内 likes + 1
    3. 已经点过赞 => AlreadyLikedError（计数不变）
    """
    principal = _require_user(user_repo, principal)
    _get_likable_trip(trip_repo, principal, tid)

    like = like_repo.like(tid, principal.email)
    logger.info(f"User {principal.email} liked trip {tid}")
    return like.model_dump() if to_dict else like


def unlike_trip(
    user_repo: IUserRepository,
    trip_repo: ITripRepository,
    like_repo: ITripLikeRepository,
    principal: Optional[Principal],
    tid: str,
    to_dict: bool = True,) -> Dict | TripLikeOut:
    """
    取消点赞：
    - 软删除点赞记录，同一事务内 likes - 1
    - 未点赞 / 已取消 => NotLikedError
    """
    principal = _require_user(user_repo, principal)
    _get_likable_trip(trip_repo, principal, tid)

    like = like_repo.cancel_like(tid, principal.email)
    logger.info(f"User {principal.email} unliked trip {tid}")
    return like.model_dump() if to_dict else like


def toggle_trip_like(
    user_repo: IUserRepository,
    trip_repo: ITripRepository,
    like_repo: ITripLikeRepository,
    principal: Optional[Principal],
    tid: str,
    to_dict: bool = True,) -> Dict | TripLikeStateOut:
    """
    切换点赞状态，返回切换后的状态和最新点赞数
    - 读到的状态被并发请求改掉时，按最新状态再切换一次
    """
    principal = _require_user(user_repo, principal)
    _get_likable_trip(trip_repo, principal, tid)

    for attempt in range(2):
        try:
            if like_repo.is_liked(tid, principal.email):
                like_repo.cancel_like(tid, principal.email)
                logger.info(f"User {principal.email} toggled like off for trip {tid}")
            else:
                like_repo.like(tid, principal.email)
                logger.info(f"User {principal.email} toggled like on for trip {tid}")
            break
        except (AlreadyLikedError, NotLikedError) as e:
            if attempt:
                raise
            logger.info(f"toggle on trip {tid} raced, retrying: {e}")

    state = _state(trip_repo, like_repo, principal, tid)
    return state.model_dump() if to_dict else state


#---------------------------------------- 查询 -----------------------------------------

def is_trip_liked(like_repo: ITripLikeRepository, principal: Optional[Principal], tid: str) -> bool:
    """访客一律视为未点赞"""
    if principal is None:
        return False
    return like_repo.is_liked(tid, principal.email)


def get_like_state(
    trip_repo: ITripRepository,
    like_repo: ITripLikeRepository,
    principal: Optional[Principal],
    tid: str,
    to_dict: bool = True,) -> Dict | TripLikeStateOut:
    """当前访问者对旅行的点赞状态（只读，不改变任何数据）"""
    trip = trip_repo.get_trip_by_tid(tid)
    is_owner = principal is not None and trip is not None and trip.email == principal.email
    if not trip or (not is_owner and (trip.is_hidden or not trip.is_public)):
        raise TripNotFound(tid=tid)

    state = TripLikeStateOut(
        trip_id=tid,
        is_liked=is_trip_liked(like_repo, principal, tid),
        likes=trip.likes,
    )
    return state.model_dump() if to_dict else state
