"""私信端点：收发件箱、会话、发送、删除、标记已读与搜索。"""

import logging

from returns.result import Failure, Success

from statusgate.api.context import ApiResult, RequestContext
from statusgate.api.endpoints.common import listing, requested_id
from statusgate.api.errors import BadRequest
from statusgate.api.registry import DELETE, POST, EndpointRegistry
from statusgate.status.actors import best_contact, strip_internal
from statusgate.status.content import clean_plain_items
from statusgate.status.domain.models import Mail, api_date
from statusgate.status.services.messenger import Messenger, default_title

logger = logging.getLogger(__name__)


def format_message(ctx: RequestContext, mail: Mail, sender: dict, recipient: dict) -> dict:
    """私信视图。"""
    message = {
        "id": mail.id,
        "sender_id": sender.get("id"),
        "text": "",
        "recipient_id": recipient.get("id"),
        "created_at": api_date(mail.created),
        "sender_screen_name": sender.get("screen_name"),
        "recipient_screen_name": recipient.get("screen_name"),
        "sender": strip_internal(sender),
        "recipient": strip_internal(recipient),
        "title": "",
        "friendica_seen": mail.seen,
        "friendica_parent_uri": mail.parent_uri,
    }

    renderer = ctx.transformer.renderer
    plaintext = renderer.render(clean_plain_items(mail.body)).plaintext
    get_text = ctx.query.get("getText")
    # 普通客户端不输出标题，避免与正文混淆
    if get_text:
        message["title"] = mail.title
        if get_text == "html":
            message["text"] = renderer.render(mail.body).html
        elif get_text == "plain":
            message["text"] = plaintext.strip()
    else:
        message["text"] = f"{mail.title}\n{plaintext}"

    if ctx.query.get("getUserObjects") == "false":
        del message["sender"]
        del message["recipient"]
    return message


def _verbose(ctx: RequestContext) -> bool:
    return (ctx.query.get("friendica_verbose") or "false").lower() == "true"


def _outcome(root_element: str, result: str, message: str) -> ApiResult:
    return ApiResult(root_element, {"result": {"result": result, "message": message}})


async def _format_rows(
    ctx: RequestContext,
    rows: list[tuple[Mail, str]],
    user_info: dict,
    inbox: bool = False,
) -> list[dict]:
    """格式化私信列表；按发信地址区分收发双方，对方无法解析的私信跳过。"""
    messages = []
    for mail, contact_nurl in rows:
        try:
            other = await ctx.actors.resolve(ctx.uid, contact_nurl)
        except BadRequest:
            logger.debug(f"私信联系人无法解析，已跳过: {contact_nurl}")
            continue
        if inbox or mail.from_url != user_info["url"]:
            sender, recipient = other, user_info
        else:
            sender, recipient = user_info, other
        messages.append(format_message(ctx, mail, sender, recipient))
    return messages


async def _box(ctx: RequestContext, box: str) -> ApiResult:
    verbose = _verbose(ctx)
    user_id = ctx.param("user_id") or ""
    screen_name = ctx.param("screen_name") or ""

    user_info = await ctx.own_user()

    contact_id = None
    if user_id:
        contact_id = int(user_id) if user_id.isdigit() else 0

    rows = await ctx.mails.box(
        ctx.uid,
        box,
        user_info["url"],
        ctx.window(),
        parent_uri=ctx.query.get("uri", ""),
        contact_id=contact_id,
        screen_name=screen_name,
    )
    if verbose and not rows:
        return _outcome("direct_messages_all", "error", "no mails available")

    messages = await _format_rows(ctx, rows, user_info, inbox=box == "inbox")
    return listing(ctx, "direct-messages", "direct_message", messages, user_info)


async def inbox(ctx: RequestContext) -> ApiResult:
    return await _box(ctx, "inbox")


async def sentbox(ctx: RequestContext) -> ApiResult:
    return await _box(ctx, "sentbox")


async def all_messages(ctx: RequestContext) -> ApiResult:
    return await _box(ctx, "all")


async def conversation(ctx: RequestContext) -> ApiResult:
    return await _box(ctx, "conversation")


async def _recipient(ctx: RequestContext, screen_name: str, user_id: str) -> dict:
    """收信人：screen_name 在账户联系人中查找，否则按公共 ID 解析。"""
    if screen_name:
        contact = best_contact(await ctx.contacts.find_by_nick(screen_name, ctx.uid))
        if contact is None:
            raise BadRequest("User not found.")
        return await ctx.actors.resolve(ctx.uid, contact.url)
    return await ctx.actors.resolve(ctx.uid, user_id)


async def new_message(ctx: RequestContext) -> ApiResult | None:
    """发送私信。发送失败时在 direct_message 中返回错误码。"""
    text = ctx.form.get("text") or ""
    screen_name = ctx.param("screen_name") or ""
    user_id = ctx.param("user_id") or ""
    if not text or not (screen_name or user_id):
        return None

    sender = await ctx.own_user()
    recipient = await _recipient(ctx, screen_name, user_id)

    messenger = Messenger(ctx.mails, ctx.contacts, ctx.settings.base_url)
    reply_to = ""
    replyto_id = ctx.int_param("replyto")
    if replyto_id:
        target = await messenger.reply_target(ctx.uid, replyto_id)
        reply_to, title = (target.parent_uri, target.title) if target else ("", "")
    else:
        title = ctx.param("title") or default_title(text)

    match await messenger.send(ctx.user, recipient["cid"], text, title, reply_to):
        case Success(mail):
            message = format_message(ctx, mail, sender, recipient)
        case Failure(code):
            logger.warning(f"私信发送失败: code={int(code)}")
            message = {"error": int(code)}

    return listing(ctx, "direct-messages", "direct_message", message, sender)


async def destroy(ctx: RequestContext) -> ApiResult:
    """删除私信。

    friendica_verbose=true 时以 result/message 报告结果，
    否则出错返回 400，成功返回被删除的私信。
    """
    verbose = _verbose(ctx)
    mail_id = requested_id(ctx)
    parent_uri = ctx.query.get("friendica_parenturi", "")

    if mail_id == 0:
        if verbose:
            return _outcome(
                "direct_messages_delete", "error", "message id or parenturi not specified"
            )
        raise BadRequest("Message id not specified")

    found = await ctx.mails.get(ctx.uid, mail_id, parent_uri)
    if found is None:
        if verbose:
            return _outcome("direct_messages_delete", "error", "message id not in database")
        raise BadRequest("message id not in database")

    user_info = await ctx.own_user()
    deleted = await _format_rows(ctx, [found], user_info)
    removed = await ctx.mails.delete(ctx.uid, mail_id, parent_uri)
    logger.info(f"私信已删除: id={mail_id}, uid={ctx.uid}, removed={removed}")

    if verbose:
        if removed:
            return _outcome("direct_message_delete", "ok", "message deleted")
        return _outcome("direct_messages_delete", "error", "unknown error")
    return listing(ctx, "direct-messages", "direct_message", deleted[0] if deleted else {}, user_info)


async def set_seen(ctx: RequestContext) -> ApiResult:
    """把私信标记为已读。"""
    mail_id = ctx.int_param("id")
    if mail_id == 0:
        return _outcome("direct_messages_setseen", "error", "message id not specified")

    if await ctx.mails.get(ctx.uid, mail_id) is None:
        return _outcome("direct_messages_setseen", "error", "message id not in database")

    if await ctx.mails.mark_seen(ctx.uid, mail_id):
        return _outcome("direct_message_setseen", "ok", "message set to seen")
    return _outcome("direct_messages_setseen", "error", "unknown error")


async def search(ctx: RequestContext) -> ApiResult:
    """按正文搜索私信。"""
    text = ctx.param("searchstring") or ""
    if not text:
        return _outcome("direct_messages_search", "error", "searchstring not specified")

    rows = await ctx.mails.search(ctx.uid, text)
    if not rows:
        result = {"success": False, "search_results": "nothing found"}
    else:
        user_info = await ctx.own_user()
        result = {"success": True, "search_results": await _format_rows(ctx, rows, user_info)}
    return ApiResult("direct_message_search", {"result": result})


def register(registry: EndpointRegistry) -> None:
    registry.register("direct_messages", inbox, auth=True)
    registry.register("direct_messages/sent", sentbox, auth=True)
    registry.register("direct_messages/all", all_messages, auth=True)
    registry.register("direct_messages/conversation", conversation, auth=True)
    registry.register("direct_messages/new", new_message, auth=True, methods=POST)
    registry.register("direct_messages/destroy", destroy, auth=True, methods=DELETE)
    registry.register("friendica/direct_messages_setseen", set_seen, auth=True)
    registry.register("friendica/direct_messages_search", search, auth=True)
