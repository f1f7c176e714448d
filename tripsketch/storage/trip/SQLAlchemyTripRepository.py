from typing import Optional, List

from sqlalchemy import func, or_
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from tripsketch.models.trip import Trip, TripView

from tripsketch.schemas.trip import (
    TripOnlyCreate,
    TripUpdate,
    TripInDB,
    BatchTripsInDB,
    TripSorting,
    CountryFrequencyOut,
)
from tripsketch.storage.trip.trip_interface import ITripRepository
from tripsketch.core.db import transaction
from tripsketch.core.time import now_kst

from tripsketch.core.logx import logger


class SQLAlchemyTripRepository(ITripRepository):
    """
    使用 SQLAlchemy 实现的旅行仓库
    业务层依赖 ITripRepository 抽象接口
    """

    def __init__(self, db: Session):
        self.db = db

    # ---------- 内部基础查询 ----------

    def _viewer_query(self):
        """
        访客 / 其他用户查看旅行时使用：
        - 公开
        - 未隐藏
        """
        return (
            self.db.query(Trip)
            .filter(
                Trip.is_public.is_(True),
                Trip.is_hidden.is_(False),
            )
        )

    def _owner_query(self, email: str, include_hidden: bool = True):
        """
        作者自己查看自己的旅行：
        - 不限制 is_public（仅自己可见的也能看）
        - 默认也不限制 is_hidden
        """
        q = self.db.query(Trip).filter(Trip.email == email)
        if not include_hidden:
            q = q.filter(Trip.is_hidden.is_(False))
        return q

    def _paginate(self, base_q, page: int, page_size: int) -> BatchTripsInDB:
        total = base_q.count()
        trips: List[Trip] = (
            base_q
            .offset(page * page_size)   # page 从 0 开始
            .limit(page_size)
            .all()
        )
        items = [TripInDB.model_validate(trip) for trip in trips]
        return BatchTripsInDB(total=total, count=len(items), items=items)

    def _get_trip_orm(self, tid: str) -> Optional[Trip]:
        return self.db.query(Trip).filter(Trip.tid == tid).first()

    @staticmethod
    def _latest_first(q):
        return q.order_by(Trip.created_at.desc(), Trip._id.desc())

    # ---------- 创建 ----------

    def create_trip(self, data: TripOnlyCreate) -> TripInDB:
        trip = Trip(**data.model_dump())

        with transaction(self.db):
            self.db.add(trip)

        # 刷新以获取 tid / created_at
        self.db.refresh(trip)
        return TripInDB.model_validate(trip)

    # ---------- 查询 ----------

    def get_trip_by_tid(self, tid: str) -> Optional[TripInDB]:
        trip = self._get_trip_orm(tid)
        if not trip:
            return None
        return TripInDB.model_validate(trip)

    def list_visible_trips(self, page: int, page_size: int) -> BatchTripsInDB:
        base_q = self._latest_first(self._viewer_query())
        return self._paginate(base_q, page, page_size)

    def list_trips_by_owner(self, email: str, include_hidden: bool, page: int, page_size: int) -> BatchTripsInDB:
        base_q = self._latest_first(self._owner_query(email, include_hidden=include_hidden))
        return self._paginate(base_q, page, page_size)

    def list_visible_trips_by_owners(self, emails: List[str], page: int, page_size: int) -> BatchTripsInDB:
        if not emails:
            return BatchTripsInDB(total=0, count=0, items=[])
        base_q = self._latest_first(
            self._viewer_query().filter(Trip.email.in_(set(emails)))
        )
        return self._paginate(base_q, page, page_size)

    def search_visible_trips(self, keyword: str, sorting: TripSorting, page: int, page_size: int) -> BatchTripsInDB:
        # 关键字按字面量匹配，% 和 _ 不作为通配符
        base_q = self._viewer_query().filter(
            or_(
                Trip.title.icontains(keyword, autoescape=True),
                Trip.content.icontains(keyword, autoescape=True),
                Trip.hashtag.icontains(keyword, autoescape=True),
                Trip.location.icontains(keyword, autoescape=True),
            )
        )

        if sorting == TripSorting.OLDEST:
            base_q = base_q.order_by(Trip.created_at.asc(), Trip._id.asc())
        elif sorting == TripSorting.POPULAR:
            base_q = base_q.order_by(Trip.likes.desc(), Trip.created_at.desc(), Trip._id.desc())
        elif sorting == TripSorting.MOST_VIEWED:
            base_q = base_q.order_by(Trip.views.desc(), Trip.created_at.desc(), Trip._id.desc())
        else:
            base_q = self._latest_first(base_q)

        return self._paginate(base_q, page, page_size)

    def count_trips_by_country(self, email: str, visible_only: bool) -> List[CountryFrequencyOut]:
        base_q = self._viewer_query() if visible_only else self._owner_query(email)
        trip_count = func.count(Trip._id).label("trip_count")

        rows = (
            base_q
            .with_entities(Trip.country, trip_count)
            .filter(Trip.email == email, Trip.country.is_not(None))
            .group_by(Trip.country)
            .order_by(trip_count.desc(), Trip.country.asc())
            .all()
        )
        return [CountryFrequencyOut(country=row.country, count=row.trip_count) for row in rows]

    def list_trips_in_country(self, email: str, country: str, visible_only: bool, page: int, page_size: int) -> BatchTripsInDB:
        base_q = self._viewer_query() if visible_only else self._owner_query(email)
        base_q = self._latest_first(
            base_q.filter(Trip.email == email, Trip.country == country)
        )
        return self._paginate(base_q, page, page_size)

    # ---------- 更新 / 软删除 ----------

    def update_trip(self, tid: str, data: TripUpdate) -> Optional[TripInDB]:
        trip = self._get_trip_orm(tid)
        if not trip:
            return None

        with transaction(self.db):
            for field, value in data.model_dump().items():
                setattr(trip, field, value)
            trip.updated_at = now_kst()

        self.db.refresh(trip)
        return TripInDB.model_validate(trip)

    def soft_delete_trip(self, tid: str) -> Optional[TripInDB]:
        trip = self._get_trip_orm(tid)
        if not trip:
            return None

        # 重复删除时刷新 deleted_at
        with transaction(self.db):
            trip.is_hidden = True
            trip.deleted_at = now_kst()

        self.db.refresh(trip)
        return TripInDB.model_validate(trip)

    # ---------- 浏览计数 ----------

    def add_viewer(self, tid: str, viewer_email: str) -> bool:
        seen = (
            self.db.query(TripView)
            .filter(TripView.trip_id == tid, TripView.viewer_email == viewer_email)
            .first()
        )
        if seen:
            return False

        # 浏览记录与计数在同一事务内写入，计数使用 views = views + 1 避免丢失并发更新
        try:
            with transaction(self.db):
                self.db.add(TripView(trip_id=tid, viewer_email=viewer_email))
                self.db.flush()
                (
                    self.db.query(Trip)
                    .filter(Trip.tid == tid)
                    .update({Trip.views: Trip.views + 1}, synchronize_session=False)
                )
        except IntegrityError:
            # 并发请求已经写入了同一访客
            logger.debug(f"viewer {viewer_email} already counted for trip {tid}")
            return False

        return True

    # ---------- 管理员 ----------

    def admin_list_all_trips(self, page: int, page_size: int) -> BatchTripsInDB:
        base_q = self._latest_first(self.db.query(Trip))
        return self._paginate(base_q, page, page_size)
