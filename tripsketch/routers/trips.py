from typing import Optional

from fastapi import APIRouter, Depends, Query
from fastapi.encoders import jsonable_encoder

from tripsketch.schemas.principal import Principal
from tripsketch.schemas.trip import (
    TripCreate,
    TripUpdate,
    TripOut,
    BatchTripsOut,
    TripSorting,
)
from tripsketch.core.biz_response import BizResponse
from tripsketch.core.security import get_optional_principal, get_current_principal
from tripsketch.service import trip_svc

from tripsketch.storage.database import (
    get_user_repo,
    get_follow_repo,
    get_trip_repo,
    get_trip_like_repo,
    get_notification_dispatcher,
)
from tripsketch.storage.user.user_interface import IUserRepository
from tripsketch.storage.follow.follow_interface import IFollowRepository
from tripsketch.storage.trip.trip_interface import ITripRepository
from tripsketch.storage.trip_like.trip_like_interface import ITripLikeRepository
from tripsketch.notify.notify_interface import INotificationDispatcher

from tripsketch.core.exceptions import (
    TripNotFound,
    UserNotFound,
    PermissionDenied,
    TripValidationError,
    DataIntegrityError,
)
from tripsketch.core.logx import logger

trips_router = APIRouter(prefix="/api/trip", tags=["trips"])


# --------------------------------- 创建旅行 ---------------------------------
@trips_router.post("/", response_model=TripOut)
def create_trip(
    payload: TripCreate,
    principal: Principal = Depends(get_current_principal),
    user_repo: IUserRepository = Depends(get_user_repo),
    follow_repo: IFollowRepository = Depends(get_follow_repo),
    trip_repo: ITripRepository = Depends(get_trip_repo),
    dispatcher: INotificationDispatcher = Depends(get_notification_dispatcher),
):
    """
    创建旅行：
    - 作者取自登录身份
    - 创建成功后推送给作者的粉丝
    """
    try:
        trip = trip_svc.create_trip(
            user_repo=user_repo,
            follow_repo=follow_repo,
            trip_repo=trip_repo,
            dispatcher=dispatcher,
            principal=principal,
            data=payload,
            to_dict=True,
        )
        return BizResponse(data=trip, status_code=201)
    except UserNotFound as e:
        return BizResponse(data=None, msg=str(e), status_code=404)
    except TripValidationError as e:
        return BizResponse(data=None, msg=str(e), status_code=400)
    except Exception as e:
        logger.exception(e)
        return BizResponse(data=None, msg=str(e), status_code=500)


# --------------------------------- 管理员 ---------------------------------
@trips_router.get("/admin/trips", response_model=BatchTripsOut)
def admin_list_all_trips(
    page: int = Query(0, ge=0),
    page_size: int = Query(10, ge=1, le=100),
    principal: Principal = Depends(get_current_principal),
    user_repo: IUserRepository = Depends(get_user_repo),
    trip_repo: ITripRepository = Depends(get_trip_repo),
    like_repo: ITripLikeRepository = Depends(get_trip_like_repo),
):
    """管理员查看全部旅行（含隐藏 / 非公开）"""
    try:
        result = trip_svc.admin_list_all_trips(
            user_repo=user_repo,
            trip_repo=trip_repo,
            like_repo=like_repo,
            principal=principal,
            page=page,
            page_size=page_size,
            to_dict=True,
        )
        return BizResponse(data=jsonable_encoder(result))
    except PermissionDenied as e:
        return BizResponse(data=None, msg=str(e), status_code=403)
    except Exception as e:
        logger.exception(e)
        return BizResponse(data=None, msg="internal error", status_code=500)


# --------------------------------- 列表 ---------------------------------
@trips_router.get("/trips/myTrips", response_model=BatchTripsOut)
def list_my_trips(
    include_hidden: bool = True,
    page: int = Query(0, ge=0),
    page_size: int = Query(10, ge=1, le=100),
    principal: Principal = Depends(get_current_principal),
    user_repo: IUserRepository = Depends(get_user_repo),
    trip_repo: ITripRepository = Depends(get_trip_repo),
    like_repo: ITripLikeRepository = Depends(get_trip_like_repo),
):
    """我的旅行（作者视角）"""
    try:
        result = trip_svc.list_my_trips(
            user_repo=user_repo,
            trip_repo=trip_repo,
            like_repo=like_repo,
            principal=principal,
            include_hidden=include_hidden,
            page=page,
            page_size=page_size,
            to_dict=True,
        )
        return BizResponse(data=jsonable_encoder(result))
    except Exception as e:
        logger.exception(e)
        return BizResponse(data=None, msg="internal error", status_code=500)


@trips_router.get("/guest/trips", response_model=BatchTripsOut)
def list_guest_trips(
    page: int = Query(0, ge=0),
    page_size: int = Query(10, ge=1, le=100),
    principal: Optional[Principal] = Depends(get_optional_principal),
    user_repo: IUserRepository = Depends(get_user_repo),
    trip_repo: ITripRepository = Depends(get_trip_repo),
    like_repo: ITripLikeRepository = Depends(get_trip_like_repo),
):
    """公开且未隐藏的旅行（访客可访问）"""
    try:
        result = trip_svc.list_visible_trips(
            user_repo=user_repo,
            trip_repo=trip_repo,
            like_repo=like_repo,
            principal=principal,
            page=page,
            page_size=page_size,
            to_dict=True,
        )
        return BizResponse(data=jsonable_encoder(result))
    except Exception as e:
        logger.exception(e)
        return BizResponse(data=None, msg="internal error", status_code=500)


@trips_router.get("/nickname", response_model=BatchTripsOut)
def list_trips_by_nickname(
    nickname: str,
    page: int = Query(0, ge=0),
    page_size: int = Query(10, ge=1, le=100),
    principal: Optional[Principal] = Depends(get_optional_principal),
    user_repo: IUserRepository = Depends(get_user_repo),
    trip_repo: ITripRepository = Depends(get_trip_repo),
    like_repo: ITripLikeRepository = Depends(get_trip_like_repo),
):
    """按昵称查看用户的旅行（本人可看到全部）"""
    try:
        result = trip_svc.list_trips_by_nickname(
            user_repo=user_repo,
            trip_repo=trip_repo,
            like_repo=like_repo,
            principal=principal,
            nickname=nickname,
            page=page,
            page_size=page_size,
            to_dict=True,
        )
        return BizResponse(data=jsonable_encoder(result))
    except UserNotFound as e:
        return BizResponse(data=None, msg=str(e), status_code=404)
    except Exception as e:
        logger.exception(e)
        return BizResponse(data=None, msg="internal error", status_code=500)


@trips_router.get("/list/following", response_model=BatchTripsOut)
def list_following_trips(
    page: int = Query(0, ge=0),
    page_size: int = Query(10, ge=1, le=100),
    principal: Principal = Depends(get_current_principal),
    user_repo: IUserRepository = Depends(get_user_repo),
    follow_repo: IFollowRepository = Depends(get_follow_repo),
    trip_repo: ITripRepository = Depends(get_trip_repo),
    like_repo: ITripLikeRepository = Depends(get_trip_like_repo),
):
    """我关注的用户发布的旅行"""
    try:
        result = trip_svc.list_following_trips(
            user_repo=user_repo,
            follow_repo=follow_repo,
            trip_repo=trip_repo,
            like_repo=like_repo,
            principal=principal,
            page=page,
            page_size=page_size,
            to_dict=True,
        )
        return BizResponse(data=jsonable_encoder(result))
    except Exception as e:
        logger.exception(e)
        return BizResponse(data=None, msg="internal error", status_code=500)


@trips_router.get("/search", response_model=BatchTripsOut)
def search_trips(
    keyword: str,
    sorting: TripSorting = TripSorting.LATEST,
    page: int = Query(0, ge=0),
    page_size: int = Query(10, ge=1, le=100),
    principal: Optional[Principal] = Depends(get_optional_principal),
    user_repo: IUserRepository = Depends(get_user_repo),
    trip_repo: ITripRepository = Depends(get_trip_repo),
    like_repo: ITripLikeRepository = Depends(get_trip_like_repo),
):
    """
    关键字搜索：
    - sorting: -1 最早, 1 最新, 2 点赞最多, 3 浏览最多
    """
    try:
        result = trip_svc.search_trips(
            user_repo=user_repo,
            trip_repo=trip_repo,
            like_repo=like_repo,
            principal=principal,
            keyword=keyword,
            sorting=sorting,
            page=page,
            page_size=page_size,
            to_dict=True,
        )
        return BizResponse(data=jsonable_encoder(result))
    except TripValidationError as e:
        return BizResponse(data=None, msg=str(e), status_code=400)
    except Exception as e:
        logger.exception(e)
        return BizResponse(data=None, msg="internal error", status_code=500)


# --------------------------------- 国家统计 ---------------------------------
@trips_router.get("/nickname/trips/country-frequencies")
def get_country_frequencies(
    nickname: str,
    principal: Optional[Principal] = Depends(get_optional_principal),
    user_repo: IUserRepository = Depends(get_user_repo),
    trip_repo: ITripRepository = Depends(get_trip_repo),
):
    try:
        result = trip_svc.get_country_frequencies(
            user_repo=user_repo,
            trip_repo=trip_repo,
            principal=principal,
            nickname=nickname,
            to_dict=True,
        )
        return BizResponse(data=result)
    except UserNotFound as e:
        return BizResponse(data=None, msg=str(e), status_code=404)
    except Exception as e:
        logger.exception(e)
        return BizResponse(data=None, msg="internal error", status_code=500)


@trips_router.get("/nickname/trips/country/{country}", response_model=BatchTripsOut)
def list_trips_in_country(
    country: str,
    nickname: str,
    page: int = Query(0, ge=0),
    page_size: int = Query(10, ge=1, le=100),
    principal: Optional[Principal] = Depends(get_optional_principal),
    user_repo: IUserRepository = Depends(get_user_repo),
    trip_repo: ITripRepository = Depends(get_trip_repo),
    like_repo: ITripLikeRepository = Depends(get_trip_like_repo),
):
    try:
        result = trip_svc.list_trips_in_country(
            user_repo=user_repo,
            trip_repo=trip_repo,
            like_repo=like_repo,
            principal=principal,
            nickname=nickname,
            country=country,
            page=page,
            page_size=page_size,
            to_dict=True,
        )
        return BizResponse(data=jsonable_encoder(result))
    except UserNotFound as e:
        return BizResponse(data=None, msg=str(e), status_code=404)
    except Exception as e:
        logger.exception(e)
        return BizResponse(data=None, msg="internal error", status_code=500)


# ---------------------------- 单个旅行：查阅，更新，软删 ----------------------------
@trips_router.get("/guest/{tid}", response_model=TripOut)
def get_trip_as_guest(
    tid: str,
    user_repo: IUserRepository = Depends(get_user_repo),
    trip_repo: ITripRepository = Depends(get_trip_repo),
    like_repo: ITripLikeRepository = Depends(get_trip_like_repo),
):
    """
    访客查看旅行：
    - 不携带身份，不计浏览
    """
    try:
        trip = trip_svc.get_trip_by_id(
            user_repo=user_repo,
            trip_repo=trip_repo,
            like_repo=like_repo,
            principal=None,
            tid=tid,
            to_dict=True,
        )
        return BizResponse(data=jsonable_encoder(trip))
    except TripNotFound as e:
        return BizResponse(data=None, msg=str(e), status_code=404)
    except DataIntegrityError:
        return BizResponse(data=None, msg="internal error", status_code=500)
    except Exception as e:
        logger.exception(e)
        return BizResponse(data=None, msg="internal error", status_code=500)


@trips_router.get("/modify/{tid}", response_model=TripOut)
def get_trip_for_update(
    tid: str,
    principal: Principal = Depends(get_current_principal),
    user_repo: IUserRepository = Depends(get_user_repo),
    trip_repo: ITripRepository = Depends(get_trip_repo),
    like_repo: ITripLikeRepository = Depends(get_trip_like_repo),
):
    """编辑页：只有作者本人可以获取"""
    try:
        trip = trip_svc.get_trip_for_update(
            user_repo=user_repo,
            trip_repo=trip_repo,
            like_repo=like_repo,
            principal=principal,
            tid=tid,
            to_dict=True,
        )
        return BizResponse(data=jsonable_encoder(trip))
    except TripNotFound as e:
        return BizResponse(data=None, msg=str(e), status_code=404)
    except PermissionDenied as e:
        return BizResponse(data=None, msg=str(e), status_code=403)
    except DataIntegrityError:
        return BizResponse(data=None, msg="internal error", status_code=500)
    except Exception as e:
        logger.exception(e)
        return BizResponse(data=None, msg="internal error", status_code=500)


@trips_router.get("/{tid}", response_model=TripOut)
def get_trip(
    tid: str,
    principal: Optional[Principal] = Depends(get_optional_principal),
    user_repo: IUserRepository = Depends(get_user_repo),
    trip_repo: ITripRepository = Depends(get_trip_repo),
    like_repo: ITripLikeRepository = Depends(get_trip_like_repo),
):
    """
    查看旅行：
    - 作者本人：可以看到隐藏 / 非公开，不计浏览
    - 其他登录用户：首次查看计一次浏览
    """
    try:
        trip = trip_svc.get_trip_by_id(
            user_repo=user_repo,
            trip_repo=trip_repo,
            like_repo=like_repo,
            principal=principal,
            tid=tid,
            to_dict=True,
        )
        return BizResponse(data=jsonable_encoder(trip))
    except TripNotFound as e:
        return BizResponse(data=None, msg=str(e), status_code=404)
    except DataIntegrityError:
        return BizResponse(data=None, msg="internal error", status_code=500)
    except Exception as e:
        logger.exception(e)
        return BizResponse(data=None, msg="internal error", status_code=500)


@trips_router.patch("/{tid}", response_model=TripOut)
def update_trip(
    tid: str,
    payload: TripUpdate,
    principal: Principal = Depends(get_current_principal),
    user_repo: IUserRepository = Depends(get_user_repo),
    trip_repo: ITripRepository = Depends(get_trip_repo),
    like_repo: ITripLikeRepository = Depends(get_trip_like_repo),
):
    """作者更新旅行"""
    try:
        trip = trip_svc.update_trip(
            user_repo=user_repo,
            trip_repo=trip_repo,
            like_repo=like_repo,
            principal=principal,
            tid=tid,
            data=payload,
            to_dict=True,
        )
        return BizResponse(data=jsonable_encoder(trip))
    except TripNotFound as e:
        return BizResponse(data=None, msg=str(e), status_code=404)
    except PermissionDenied as e:
        return BizResponse(data=None, msg=str(e), status_code=403)
    except TripValidationError as e:
        return BizResponse(data=None, msg=str(e), status_code=400)
    except DataIntegrityError:
        return BizResponse(data=None, msg="internal error", status_code=500)
    except Exception as e:
        logger.exception(e)
        return BizResponse(data=None, msg="internal error", status_code=500)


@trips_router.delete("/{tid}")
def delete_trip(
    tid: str,
    principal: Principal = Depends(get_current_principal),
    trip_repo: ITripRepository = Depends(get_trip_repo),
):
    """
    软删除旅行：
    - 设置 is_hidden / deleted_at，不真正删除记录
    """
    try:
        trip_svc.delete_trip(trip_repo=trip_repo, principal=principal, tid=tid)
        return BizResponse(data=True)
    except TripNotFound as e:
        return BizResponse(data=False, msg=str(e), status_code=404)
    except PermissionDenied as e:
        return BizResponse(data=False, msg=str(e), status_code=403)
    except Exception as e:
        logger.exception(e)
        return BizResponse(data=False, msg="internal error", status_code=500)
