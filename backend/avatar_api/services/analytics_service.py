"""
Read-only dashboard aggregations over assistants, threads and messages.

Every function takes the list of client ids the caller may see. Soft-deleted
assistants stay in scope since their history remains queryable. Time
bucketing is done in Python so the queries stay portable across databases.
"""
from avatar_api import db
from avatar_api.models.assistant import Assistant
from avatar_api.models.client import Client
from avatar_api.models.group import Group
from avatar_api.models.template import Template
from avatar_api.models.thread import Thread, Message
from avatar_api.models.files import AssistantFile, ThreadFile
from avatar_api.utils.errors import ValidationError
from collections import Counter, defaultdict
from sqlalchemy import func, distinct, or_, and_
import logging

logger = logging.getLogger(__name__)

PERIODS = ("month", "week", "day", "hour")
MOST_ACTIVE_LIMIT = 5


def _iso(value):
    return value.isoformat() if value else None


def _messages_in_scope(*columns, client_ids):
    return db.session.query(*columns).select_from(Message)\
        .join(Thread, Message.thread_id == Thread.id)\
        .join(Assistant, Thread.assistant_id == Assistant.id)\
        .filter(Assistant.client_id.in_(client_ids))


def _bucket(timestamp, period):
    if period == "month":
        return timestamp.strftime('%Y-%m')
    if period == "week":
        return timestamp.strftime('%G-W%V')
    if period == "day":
        return timestamp.strftime('%Y-%m-%d')
    return timestamp.hour


def assistant_activity(client_ids):
    message_count = func.count(Message.id)
    rows = db.session.query(
        Assistant.asst_id,
        Assistant.name,
        Assistant.is_deleted,
        func.count(distinct(Thread.id)).label("thread_count"),
        message_count.label("message_count"),
        func.max(Message.created_at).label("last_activity")
    ).select_from(Assistant)\
        .outerjoin(Thread, Thread.assistant_id == Assistant.id)\
        .outerjoin(Message, Message.thread_id == Thread.id)\
        .filter(Assistant.client_id.in_(client_ids))\
        .group_by(Assistant.id, Assistant.asst_id, Assistant.name, Assistant.is_deleted)\
        .order_by(message_count.desc(), Assistant.id)\
        .all()

    return [{
        "asst_id": row.asst_id,
        "name": row.name,
        "is_deleted": row.is_deleted,
        "thread_count": row.thread_count,
        "message_count": row.message_count,
        "last_activity": _iso(row.last_activity)
    } for row in rows]


def message_volume(client_ids, period="day"):
    """
    Message counts per calendar month, ISO week or day, or per hour of the
    day (all 24 hours reported).
    """
    if period not in PERIODS:
        raise ValidationError(f"period must be one of {', '.join(PERIODS)}")

    timestamps = _messages_in_scope(Message.created_at, client_ids=client_ids).all()
    counts = Counter(_bucket(ts, period) for (ts,) in timestamps if ts)

    if period == "hour":
        return [{"period": hour, "count": counts.get(hour, 0)} for hour in range(24)]
    return [{"period": key, "count": counts[key]} for key in sorted(counts)]


def average_response_time(client_ids):
    """
    Mean seconds between a user message and the next assistant message in
    the same thread, per assistant. Consecutive user messages count from the
    first unanswered one.
    """
    rows = _messages_in_scope(
        Assistant.asst_id, Assistant.name, Message.thread_id, Message.role, Message.created_at,
        client_ids=client_ids
    ).order_by(Message.thread_id, Message.created_at, Message.id).all()

    names = {}
    durations = defaultdict(list)
    pending = {}
    for asst_id, name, thread_id, role, created_at in rows:
        names[asst_id] = name
        if role == "user":
            pending.setdefault(thread_id, created_at)
        elif role == "assistant" and thread_id in pending:
            asked_at = pending.pop(thread_id)
            durations[asst_id].append((created_at - asked_at).total_seconds())

    result = []
    for asst_id, name in names.items():
        samples = durations.get(asst_id, [])
        result.append({
            "asst_id": asst_id,
            "name": name,
            "responses": len(samples),
            "average_seconds": round(sum(samples) / len(samples), 2) if samples else None
        })
    return result


def _thread_rows(client_ids, with_messages_only):
    message_count = func.count(Message.id)
    query = db.session.query(
        Thread.thread_id,
        Assistant.asst_id,
        message_count.label("message_count"),
        func.min(Message.created_at).label("first_message"),
        func.max(Message.created_at).label("last_message")
    ).select_from(Thread)\
        .join(Assistant, Thread.assistant_id == Assistant.id)

    if with_messages_only:
        query = query.join(Message, Message.thread_id == Thread.id)
    else:
        query = query.outerjoin(Message, Message.thread_id == Thread.id)

    return query.filter(Assistant.client_id.in_(client_ids))\
        .group_by(Thread.id, Thread.thread_id, Assistant.asst_id)\
        .order_by(message_count.desc(), Thread.id)


def _thread_dict(row):
    return {
        "thread_id": row.thread_id,
        "asst_id": row.asst_id,
        "message_count": row.message_count,
        "first_message": _iso(row.first_message),
        "last_message": _iso(row.last_message)
    }


def thread_activity(client_ids):
    return [_thread_dict(row) for row in _thread_rows(client_ids, with_messages_only=False).all()]


def most_active_threads(client_ids, limit=MOST_ACTIVE_LIMIT):
    rows = _thread_rows(client_ids, with_messages_only=True).limit(limit).all()
    return [_thread_dict(row) for row in rows]


def dashboard_summary(client_ids):
    assistants = dict(
        db.session.query(Assistant.is_deleted, func.count(Assistant.id))
        .filter(Assistant.client_id.in_(client_ids))
        .group_by(Assistant.is_deleted).all()
    )
    threads = db.session.query(func.count(Thread.id)).select_from(Thread)\
        .join(Assistant, Thread.assistant_id == Assistant.id)\
        .filter(Assistant.client_id.in_(client_ids)).scalar()
    messages = _messages_in_scope(func.count(Message.id), client_ids=client_ids).scalar()
    assistant_files = db.session.query(func.count(AssistantFile.id)).select_from(AssistantFile)\
        .join(Assistant, AssistantFile.assistant_id == Assistant.id)\
        .filter(Assistant.client_id.in_(client_ids)).scalar()
    thread_files = db.session.query(func.count(ThreadFile.id)).select_from(ThreadFile)\
        .join(Thread, ThreadFile.thread_id == Thread.id)\
        .join(Assistant, Thread.assistant_id == Assistant.id)\
        .filter(Assistant.client_id.in_(client_ids)).scalar()

    return {
        "assistants": assistants.get(False, 0),
        "deleted_assistants": assistants.get(True, 0),
        "threads": threads or 0,
        "messages": messages or 0,
        "assistant_files": assistant_files or 0,
        "thread_files": thread_files or 0
    }


def messages_by_role(client_ids):
    rows = _messages_in_scope(Message.role, func.count(Message.id), client_ids=client_ids)\
        .group_by(Message.role).all()
    counts = dict(rows)
    return {"user": counts.get("user", 0), "assistant": counts.get("assistant", 0)}


def template_usage(client_ids, group_id=None):
    """Assistants created from each template visible to the group."""
    usage = func.count(Assistant.id)
    rows = db.session.query(Template.id, Template.name, usage.label("assistant_count"))\
        .select_from(Template)\
        .outerjoin(Assistant, and_(
            Assistant.template_id == Template.id,
            Assistant.client_id.in_(client_ids)
        ))\
        .filter(or_(Template.group_id.is_(None), Template.group_id == group_id))\
        .group_by(Template.id, Template.name)\
        .order_by(usage.desc(), Template.id)\
        .all()
    return [{"template_id": row.id, "name": row.name, "assistant_count": row.assistant_count} for row in rows]


def group_overview():
    users = dict(
        db.session.query(Client.group_id, func.count(Client.id)).group_by(Client.group_id).all()
    )
    assistants = dict(
        db.session.query(Client.group_id, func.count(Assistant.id)).select_from(Client)
        .join(Assistant, Assistant.client_id == Client.id)
        .filter(Assistant.is_deleted == False)
        .group_by(Client.group_id).all()
    )
    messages = dict(
        db.session.query(Client.group_id, func.count(Message.id)).select_from(Client)
        .join(Assistant, Assistant.client_id == Client.id)
        .join(Thread, Thread.assistant_id == Assistant.id)
        .join(Message, Message.thread_id == Thread.id)
        .group_by(Client.group_id).all()
    )

    return [{
        "group_id": group.id,
        "name": group.name,
        "users": users.get(group.id, 0),
        "assistants": assistants.get(group.id, 0),
        "messages": messages.get(group.id, 0)
    } for group in Group.query.order_by(Group.name).all()]
