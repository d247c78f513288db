"""私信发送服务。只写入本地私信记录，不负责投递到远端。"""

import logging
import uuid
from dataclasses import dataclass
from datetime import datetime, timezone
from enum import IntEnum

from returns.result import Failure, Result, Success

from statusgate.auth.domain.models import UserDomain
from statusgate.status.domain.models import Mail
from statusgate.status.infrastructure.repository import ContactRepository, MailRepository

logger = logging.getLogger(__name__)

NO_SUBJECT = "[no subject]"


class SendFailure(IntEnum):
    """发送失败的错误码，原样返回给客户端。"""

    no_recipient = -1
    no_contact = -2


@dataclass(frozen=True)
class ReplyTarget:
    parent_uri: str
    title: str


def default_title(text: str) -> str:
    """未指定标题时取正文前 10 个字符。"""
    return f"{text[:10]}..." if len(text) > 10 else text


class Messenger:
    """私信发送服务。"""

    def __init__(self, mails: MailRepository, contacts: ContactRepository, base_url: str) -> None:
        self.mails = mails
        self.contacts = contacts
        self.base_url = base_url

    async def reply_target(self, uid: int, mail_id: int) -> ReplyTarget | None:
        """被回复私信的会话 URI 与标题。"""
        found = await self.mails.get(uid, mail_id)
        if found is None:
            return None
        mail, _ = found
        return ReplyTarget(mail.parent_uri, mail.title)

    async def send(
        self,
        user: UserDomain,
        contact_id: int,
        body: str,
        title: str = "",
        reply_to: str = "",
    ) -> Result[Mail, SendFailure]:
        """给账户的一个联系人发送私信。

        Args:
            user: 发信账户
            contact_id: 收信人在该账户下的联系人 ID
            body: 正文
            title: 标题，为空时使用默认标题
            reply_to: 所回复会话的 URI，为空时新开会话

        Returns:
            Result[Mail, SendFailure]: 新私信或错误码
        """
        if not contact_id:
            return Failure(SendFailure.no_recipient)

        contact = await self.contacts.get(contact_id)
        own = await self.contacts.get_self(user.id)
        if contact is None or contact.uid != user.id or own is None:
            logger.warning(f"私信收件人不是账户的联系人: uid={user.id}, cid={contact_id}")
            return Failure(SendFailure.no_contact)

        uri = f"{self.base_url}/message/{uuid.uuid4().hex}"
        mail = await self.mails.create(
            uid=user.id,
            contact_id=contact.id,
            from_name=own.name,
            from_url=own.url,
            from_photo=own.micro,
            title=title.strip() or NO_SUBJECT,
            body=body,
            seen=True,
            uri=uri,
            parent_uri=reply_to or uri,
            created=datetime.now(timezone.utc),
        )
        logger.info(f"私信已发送: id={mail.id}, uid={user.id}, cid={contact.id}")
        return Success(mail)
