from typing import Dict, List, Optional

from tripsketch.schemas.principal import Principal
from tripsketch.schemas.trip import (
    TripCreate,
    TripOnlyCreate,
    TripUpdate,
    TripInDB,
    TripOut,
    BatchTripsInDB,
    BatchTripsOut,
    TripSorting,
    CountryFrequencyOut,
)
from tripsketch.schemas.user import UserOut

from tripsketch.storage.trip.trip_interface import ITripRepository
from tripsketch.storage.trip_like.trip_like_interface import ITripLikeRepository
from tripsketch.storage.user.user_interface import IUserRepository
from tripsketch.storage.follow.follow_interface import IFollowRepository
from tripsketch.notify.notify_interface import INotificationDispatcher

from tripsketch.core.config import settings
from tripsketch.core.logx import logger
from tripsketch.core.security import is_admin
from tripsketch.core.time import now_kst, as_kst
from tripsketch.core.exceptions import (
    TripNotFound,
    UserNotFound,
    PermissionDenied,
    Unauthorized,
    TripValidationError,
    DataIntegrityError,
)


#---------------------------------------- 视图转换 -----------------------------------------

def _project(trip: TripInDB, owner: UserOut, is_liked: bool, include_email: bool) -> TripOut:
    payload = trip.model_dump()
    if not include_email:
        payload["email"] = None
    return TripOut(
        **payload,
        nickname=owner.nickname,
        profile_image_url=owner.profile_image_url,
        is_liked=is_liked,
    )

def to_owner_view(trip: TripInDB, owner: UserOut, is_liked: bool = False) -> TripOut:
    """作者本人 / 内部视角：包含作者邮箱"""
    return _project(trip, owner, is_liked, include_email=True)

def to_public_view(trip: TripInDB, owner: UserOut, is_liked: bool = False) -> TripOut:
    """他人 / 访客视角：隐去作者邮箱"""
    return _project(trip, owner, is_liked, include_email=False)


def _missing_owner(trip: TripInDB) -> DataIntegrityError:
    logger.error(f"owner {trip.email} of trip {trip.tid} cannot be resolved")
    return DataIntegrityError(f"owner of trip {trip.tid} cannot be resolved")


def from_trip(
    user_repo: IUserRepository,
    like_repo: ITripLikeRepository,
    trip: TripInDB,
    principal: Optional[Principal],
    include_email: bool = False,) -> TripOut:
    """
    实体 -> 对外视图：
    1. 通过用户仓库解析作者昵称（解析不到属于数据问题，抛 DataIntegrityError）
    2. 通过点赞记录判断当前访问者是否点赞
    3. include_email 决定输出作者视角还是公开视角
    """
    owner = user_repo.get_user_by_email(trip.email)
    if not owner:
        raise _missing_owner(trip)

    is_liked = principal is not None and like_repo.is_liked(trip.tid, principal.email)
    view = to_owner_view if include_email else to_public_view
    return view(trip, owner, is_liked)


def _from_batch(
    user_repo: IUserRepository,
    like_repo: ITripLikeRepository,
    batch: BatchTripsInDB,
    principal: Optional[Principal],
    include_email: bool = False,) -> BatchTripsOut:
    """列表版本的 from_trip：作者和点赞状态各批量查一次"""
    owners = {u.email: u for u in user_repo.get_users_by_emails([t.email for t in batch.items])}
    liked = set()
    if principal is not None:
        liked = like_repo.liked_trip_ids(principal.email, [t.tid for t in batch.items])

    view = to_owner_view if include_email else to_public_view
    items: List[TripOut] = []
    for trip in batch.items:
        owner = owners.get(trip.email)
        if owner is None:
            raise _missing_owner(trip)
        items.append(view(trip, owner, trip.tid in liked))

    return BatchTripsOut(total=batch.total, count=len(items), items=items)


#---------------------------------------- 内部校验 -----------------------------------------

def _require_principal(principal: Optional[Principal]) -> Principal:
    if principal is None:
        raise Unauthorized()
    return principal

def _validate_content(title: str, content: str, hashtag: str) -> None:
    for name, value in (("title", title), ("content", content), ("hashtag", hashtag)):
        if not value or not value.strip():
            raise TripValidationError(f"{name} must not be blank")

def _validate_dates(started_at, end_at) -> None:
    if as_kst(end_at) < as_kst(started_at):
        raise TripValidationError("end_at must not be earlier than started_at")

def _is_owner(principal: Optional[Principal], trip: TripInDB) -> bool:
    return principal is not None and principal.email == trip.email

def _get_owned_trip(trip_repo: ITripRepository, principal: Principal, tid: str) -> TripInDB:
    trip = trip_repo.get_trip_by_tid(tid)
    if not trip:
        raise TripNotFound(tid=tid)
    if trip.email != principal.email:
        logger.warning(f"user {principal.email} is not the owner of trip {tid}")
        raise PermissionDenied()
    return trip


#---------------------------------------- 增 -----------------------------------------

def _notify_followers(
    follow_repo: IFollowRepository,
    dispatcher: INotificationDispatcher,
    owner: UserOut,
    trip: TripInDB,) -> None:
    """
    新旅行推送给所有粉丝（排除作者自己）：
    - 尽力而为，任何异常只记录日志，不影响创建结果
    """
    try:
        followers = follow_repo.list_follower_emails(owner.email)
        recipients = sorted(email for email in followers if email != owner.email)
        if not recipients:
            return

        dispatcher.send(
            recipients=recipients,
            title="New trip",
            body=f"{owner.nickname} shared a new trip: {trip.title}",
            image_url=trip.images[0] if trip.images else None,
            link=f"{settings.TRIP_LINK_BASE_URL}/{trip.tid}",
            ref_id=trip.tid,
            actor_name=owner.nickname,
        )
        logger.info(f"Notified {len(recipients)} followers of new trip tid={trip.tid}")
    except Exception:
        logger.exception(f"failed to notify followers of trip tid={trip.tid}")


def create_trip(
    user_repo: IUserRepository,
    follow_repo: IFollowRepository,
    trip_repo: ITripRepository,
    dispatcher: INotificationDispatcher,
    principal: Optional[Principal],
    data: TripCreate,
    to_dict: bool = True,) -> Dict | TripOut:
    """
    创建旅行（业务接口）：
    1. 校验登录身份与作者存在
    2. 校验标题 / 正文 / 标签非空，日期先后
    3. 写入 trips 表（公开、未隐藏、计数为 0）
    4. 推送给粉丝
    5. 返回作者视角的 TripOut
    """
    principal = _require_principal(principal)

    owner = user_repo.get_user_by_email(principal.email)
    if not owner:
        raise UserNotFound(principal.email)

    _validate_content(data.title, data.content, data.hashtag)
    started_at = data.started_at or now_kst()
    end_at = data.end_at or started_at
    _validate_dates(started_at, end_at)

    trip = trip_repo.create_trip(
        TripOnlyCreate(
            email=owner.email,
            title=data.title,
            content=data.content,
            hashtag=data.hashtag,
            location=data.location,
            country=data.country,
            images=data.images,
            started_at=started_at,
            end_at=end_at,
            is_public=data.is_public,
        )
    )
    logger.info(f"Created trip tid={trip.tid} for owner={owner.email}")

    _notify_followers(follow_repo, dispatcher, owner, trip)

    trip_out = to_owner_view(trip, owner)
    return trip_out.model_dump() if to_dict else trip_out


#------------------------------- 用户：查阅，更新，软删 ------------------------------------

def get_trip_by_id(
    user_repo: IUserRepository,
    trip_repo: ITripRepository,
    like_repo: ITripLikeRepository,
    principal: Optional[Principal],
    tid: str,
    to_dict: bool = True,) -> Dict | TripOut:
    """
    获取单个旅行：
    - 不存在 => TripNotFound
    - 非作者访问隐藏 / 非公开旅行 => 同样 TripNotFound（不暴露其存在）
    - 已登录的非作者首次访问 => 记录浏览并 views + 1，之后重复访问不再计数
    """
    trip = trip_repo.get_trip_by_tid(tid)
    if not trip:
        raise TripNotFound(tid=tid)

    is_owner = _is_owner(principal, trip)
    if not is_owner and (trip.is_hidden or not trip.is_public):
        raise TripNotFound(tid=tid)

    if principal is not None and not is_owner:
        if trip_repo.add_viewer(tid, principal.email):
            logger.info(f"Counted view of trip tid={tid} by {principal.email}")
            trip = trip_repo.get_trip_by_tid(tid)

    trip_out = from_trip(user_repo, like_repo, trip, principal, include_email=is_owner)
    return trip_out.model_dump() if to_dict else trip_out


def get_trip_for_update(
    user_repo: IUserRepository,
    trip_repo: ITripRepository,
    like_repo: ITripLikeRepository,
    principal: Optional[Principal],
    tid: str,
    to_dict: bool = True,) -> Dict | TripOut:
    """编辑页使用：只有作者本人可以获取，不计浏览"""
    principal = _require_principal(principal)
    trip = _get_owned_trip(trip_repo, principal, tid)
    trip_out = from_trip(user_repo, like_repo, trip, principal, include_email=True)
    return trip_out.model_dump() if to_dict else trip_out


def update_trip(
    user_repo: IUserRepository,
    trip_repo: ITripRepository,
    like_repo: ITripLikeRepository,
    principal: Optional[Principal],
    tid: str,
    data: TripUpdate,
    to_dict: bool = True,) -> Dict | TripOut:
    """
    作者更新旅行：
    - 整体替换标题 / 正文 / 地点 / 国家 / 标签 / 图片 / 公开状态
    - 日期不传时沿用原值
    - tid / 作者 / created_at 不变
    """
    principal = _require_principal(principal)
    trip = _get_owned_trip(trip_repo, principal, tid)

    _validate_content(data.title, data.content, data.hashtag)
    started_at = data.started_at or trip.started_at
    end_at = data.end_at or trip.end_at
    _validate_dates(started_at, end_at)

    updated = trip_repo.update_trip(
        tid,
        data.model_copy(update={"started_at": started_at, "end_at": end_at}),
    )
    if not updated:
        # 极端情况：上一步还能查到，更新时却失败
        raise TripNotFound(message=f"trip {tid} not found when updating")

    logger.info(f"Updated trip tid={tid} by owner={principal.email}")
    trip_out = from_trip(user_repo, like_repo, updated, principal, include_email=True)
    return trip_out.model_dump() if to_dict else trip_out


def delete_trip(trip_repo: ITripRepository, principal: Optional[Principal], tid: str,) -> None:
    """
    软删除旅行：
    - 仅设置 is_hidden 和 deleted_at，不真正删除记录
    - 点赞数 / 浏览数 / 浏览记录保留
    """
    principal = _require_principal(principal)
    _get_owned_trip(trip_repo, principal, tid)

    deleted = trip_repo.soft_delete_trip(tid)
    if not deleted:
        raise TripNotFound(message=f"trip {tid} not found when deleting")
    logger.info(f"Soft deleted trip tid={tid} at {deleted.deleted_at}")


#------------------------------------- 列表 ------------------------------------------

def list_visible_trips(
    user_repo: IUserRepository,
    trip_repo: ITripRepository,
    like_repo: ITripLikeRepository,
    principal: Optional[Principal],
    page: int = 0,
    page_size: int = 10,
    to_dict: bool = True,) -> Dict | BatchTripsOut:
    """首页 / 访客：所有公开且未隐藏的旅行"""
    batch = trip_repo.list_visible_trips(page=page, page_size=page_size)
    result = _from_batch(user_repo, like_repo, batch, principal)
    return result.model_dump() if to_dict else result


def list_my_trips(
    user_repo: IUserRepository,
    trip_repo: ITripRepository,
    like_repo: ITripLikeRepository,
    principal: Optional[Principal],
    include_hidden: bool = True,
    page: int = 0,
    page_size: int = 10,
    to_dict: bool = True,) -> Dict | BatchTripsOut:
    """作者本人的旅行列表，默认包含隐藏 / 非公开的旅行"""
    principal = _require_principal(principal)
    batch = trip_repo.list_trips_by_owner(
        email=principal.email,
        include_hidden=include_hidden,
        page=page,
        page_size=page_size,
    )
    result = _from_batch(user_repo, like_repo, batch, principal, include_email=True)
    return result.model_dump() if to_dict else result


def list_trips_by_nickname(
    user_repo: IUserRepository,
    trip_repo: ITripRepository,
    like_repo: ITripLikeRepository,
    principal: Optional[Principal],
    nickname: str,
    page: int = 0,
    page_size: int = 10,
    to_dict: bool = True,) -> Dict | BatchTripsOut:
    """
    按昵称查看某个用户的旅行：
    - 本人 => 作者视角（全部）
    - 他人 / 访客 => 仅可见旅行
    """
    author = user_repo.get_user_by_nickname(nickname)
    if not author:
        raise UserNotFound(message=f"user with nickname {nickname} not found")

    if principal is not None and principal.email == author.email:
        batch = trip_repo.list_trips_by_owner(email=author.email, include_hidden=True, page=page, page_size=page_size)
        result = _from_batch(user_repo, like_repo, batch, principal, include_email=True)
    else:
        batch = trip_repo.list_visible_trips_by_owners(emails=[author.email], page=page, page_size=page_size)
        result = _from_batch(user_repo, like_repo, batch, principal)

    return result.model_dump() if to_dict else result


def list_following_trips(
    user_repo: IUserRepository,
    follow_repo: IFollowRepository,
    trip_repo: ITripRepository,
    like_repo: ITripLikeRepository,
    principal: Optional[Principal],
    page: int = 0,
    page_size: int = 10,
    to_dict: bool = True,) -> Dict | BatchTripsOut:
    """我关注的人发布的可见旅行"""
    principal = _require_principal(principal)
    following = follow_repo.list_following_emails(principal.email)
    following.discard(principal.email)

    batch = trip_repo.list_visible_trips_by_owners(emails=sorted(following), page=page, page_size=page_size)
    result = _from_batch(user_repo, like_repo, batch, principal)
    return result.model_dump() if to_dict else result


def search_trips(
    user_repo: IUserRepository,
    trip_repo: ITripRepository,
    like_repo: ITripLikeRepository,
    principal: Optional[Principal],
    keyword: str,
    sorting: TripSorting = TripSorting.LATEST,
    page: int = 0,
    page_size: int = 10,
    to_dict: bool = True,) -> Dict | BatchTripsOut:
    """在可见旅行中按关键字搜索"""
    keyword = (keyword or "").strip()
    if not keyword:
        raise TripValidationError("keyword must not be blank")

    batch = trip_repo.search_visible_trips(keyword=keyword, sorting=sorting, page=page, page_size=page_size)
    result = _from_batch(user_repo, like_repo, batch, principal)
    return result.model_dump() if to_dict else result


#----------------------------------- 国家统计 ----------------------------------------

def _resolve_author(user_repo: IUserRepository, principal: Optional[Principal], nickname: str):
    author = user_repo.get_user_by_nickname(nickname)
    if not author:
        raise UserNotFound(message=f"user with nickname {nickname} not found")
    is_self = principal is not None and principal.email == author.email
    return author, is_self


def get_country_frequencies(
    user_repo: IUserRepository,
    trip_repo: ITripRepository,
    principal: Optional[Principal],
    nickname: str,
    to_dict: bool = True,) -> List[Dict] | List[CountryFrequencyOut]:
    """某个用户去过的国家及次数，按次数倒序"""
    author, is_self = _resolve_author(user_repo, principal, nickname)
    result = trip_repo.count_trips_by_country(email=author.email, visible_only=not is_self)
    return [r.model_dump() for r in result] if to_dict else result


def list_trips_in_country(
    user_repo: IUserRepository,
    trip_repo: ITripRepository,
    like_repo: ITripLikeRepository,
    principal: Optional[Principal],
    nickname: str,
    country: str,
    page: int = 0,
    page_size: int = 10,
    to_dict: bool = True,) -> Dict | BatchTripsOut:
    """某个用户在某个国家的旅行"""
    author, is_self = _resolve_author(user_repo, principal, nickname)
    batch = trip_repo.list_trips_in_country(
        email=author.email,
        country=country,
        visible_only=not is_self,
        page=page,
        page_size=page_size,
    )
    result = _from_batch(user_repo, like_repo, batch, principal, include_email=is_self)
    return result.model_dump() if to_dict else result


#---------------------------------- 管理员：查阅 -------------------------------------

def admin_list_all_trips(
    user_repo: IUserRepository,
    trip_repo: ITripRepository,
    like_repo: ITripLikeRepository,
    principal: Optional[Principal],
    page: int = 0,
    page_size: int = 10,
    to_dict: bool = True,) -> Dict | BatchTripsOut:
    """
    管理员查看所有旅行（含隐藏 / 非公开）
    """
    principal = _require_principal(principal)
    if not is_admin(principal):
        raise PermissionDenied("admin only")

    batch = trip_repo.admin_list_all_trips(page=page, page_size=page_size)
    result = _from_batch(user_repo, like_repo, batch, principal, include_email=True)
    logger.info(
        f"[ADMIN] list all trips page={page}, page_size={page_size}, count={result.count}"
    )
    return result.model_dump() if to_dict else result
