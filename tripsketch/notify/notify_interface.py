# tripsketch/notify/notify_interface.py

from typing import List, Optional, Protocol


class INotificationDispatcher(Protocol):
    """
    推送分发接口协议：
    - recipients 为用户身份（邮箱）
    - 尽力而为、异步投递，调用方不关心返回值也不等待送达
    """

    def send(
        self,
        recipients: List[str],
        title: str,
        body: str,
        image_url: Optional[str] = None,
        link: Optional[str] = None,
        ref_id: Optional[str] = None,
        actor_name: Optional[str] = None,
    ) -> None:
        ...
