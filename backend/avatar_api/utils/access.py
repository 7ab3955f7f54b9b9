from avatar_api import db
from avatar_api.models.client import Client
from avatar_api.models.group import Group
from avatar_api.models.assistant import Assistant
from avatar_api.models.thread import Thread
from avatar_api.utils.errors import ForbiddenError, NotFoundError


def can_access_client(user, client):
    if user['role'] == 'admin':
        return True
    if user['role'] == 'group_admin':
        return client.group_name is not None and client.group_name == user['client_group']
    return client.id == user['id']


def get_client_for(user, client_id):
    client = db.session.get(Client, client_id)
    if not client:
        raise NotFoundError("Client not found")
    if not can_access_client(user, client):
        raise ForbiddenError("Not allowed to access this client")
    return client


def get_assistant_for(user, asst_id, include_deleted=False):
    query = Assistant.query.filter_by(asst_id=asst_id)
    if not include_deleted:
        query = query.filter_by(is_deleted=False)
    assistant = query.first()
    if not assistant:
        raise NotFoundError("Assistant not found")
    if not can_access_client(user, assistant.client):
        raise ForbiddenError("Not allowed to access this assistant")
    return assistant


def get_thread_for(user, thread_id):
    thread = Thread.query.filter_by(thread_id=thread_id).first()
    if not thread:
        raise NotFoundError("Thread not found")
    if not can_access_client(user, thread.assistant.client):
        raise ForbiddenError("Not allowed to access this thread")
    return thread


def scoped_client_ids(user, client_id=None, scope=None):
    """
    Client ids a read-only view may cover: an explicit client (access
    checked), the caller's whole group, or the caller alone.
    """
    if client_id is not None:
        return [get_client_for(user, client_id).id]

    if scope == 'group':
        if not user['client_group']:
            return [user['id']]
        rows = Client.query.join(Client.group).filter(Group.name == user["client_group"]).all()
        return [c.id for c in rows]

    return [user['id']]
