# tripsketch/notify/PushNotificationDispatcher.py

from typing import Any, Dict, List, Optional

import httpx
from fastapi import BackgroundTasks

from tripsketch.core.config import settings
from tripsketch.core.logx import logger
from tripsketch.notify.notify_interface import INotificationDispatcher
from tripsketch.storage.user.user_interface import IUserRepository


def build_push_messages(
    tokens: List[str],
    title: str,
    body: str,
    *,
    image_url: Optional[str] = None,
    link: Optional[str] = None,
    ref_id: Optional[str] = None,
    actor_name: Optional[str] = None,
) -> List[Dict[str, Any]]:
    """按 Expo push API 的格式，为每个令牌生成一条消息"""
    data = {k: v for k, v in {"refId": ref_id, "actorName": actor_name, "link": link}.items() if v}
    messages = []
    for token in tokens:
        message: Dict[str, Any] = {
            "to": token,
            "title": title,
            "body": body,
            "sound": "default",
            "data": data,
        }
        if image_url:
            message["richContent"] = {"image": image_url}
        messages.append(message)
    return messages


def deliver_push_messages(messages: List[Dict[str, Any]]) -> bool:
    """
    真正发起 HTTP 请求（在响应返回之后由 BackgroundTasks 执行）
    - 失败只记日志，不向上抛
    """
    if not messages:
        return True
    timeout = httpx.Timeout(settings.PUSH_TIMEOUT_SECONDS, connect=5.0)
    try:
        with httpx.Client(timeout=timeout) as client:
            resp = client.post(settings.PUSH_API_URL, json=messages)
    except httpx.HTTPError:
        logger.exception(f"push delivery failed, messages={len(messages)}")
        return False

    if resp.status_code >= 400:
        logger.warning(f"push delivery rejected: status={resp.status_code}, body={resp.text[:200]}")
        return False

    logger.info(f"push delivered, messages={len(messages)}")
    return True


class PushNotificationDispatcher(INotificationDispatcher):
    """
    基于 Expo push 的分发实现：
    1. 通过用户仓库把邮箱解析为推送令牌（没有令牌的用户跳过）
    2. 组装消息
    3. 交给 BackgroundTasks，在响应发送后投递
    """

    def __init__(self, user_repo: IUserRepository, background_tasks: BackgroundTasks):
        self.user_repo = user_repo
        self.background_tasks = background_tasks

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
        users = self.user_repo.get_users_by_emails(recipients)
        tokens = [u.notification_token for u in users if u.notification_token]
        if not tokens:
            logger.debug(f"no push tokens among {len(recipients)} recipients, ref_id={ref_id}")
            return

        messages = build_push_messages(
            tokens,
            title,
            body,
            image_url=image_url,
            link=link,
            ref_id=ref_id,
            actor_name=actor_name,
        )
        self.background_tasks.add_task(deliver_push_messages, messages)
        logger.info(f"scheduled {len(messages)} push messages, ref_id={ref_id}")
