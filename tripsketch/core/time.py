from datetime import datetime, timezone, timedelta

KST = timezone(timedelta(hours=9))

def now_kst():
    """返回韩国标准时间（UTC+9）的当前时间"""
    return datetime.now(KST)

def as_kst(dt: datetime) -> datetime:
    """数据库读出的时间不带时区，按 KST 处理；带时区的统一换算到 KST"""
    if dt.tzinfo is None:
        return dt.replace(tzinfo=KST)
    return dt.astimezone(KST)
