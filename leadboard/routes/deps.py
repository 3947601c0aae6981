"""
Request helpers shared by the blueprints.
"""
from flask import current_app, request

from leadboard.config import DEFAULT_USER_ID, USER_HEADER
from leadboard.services.workspace import Workspace


def current_user_id() -> str:
    return (request.headers.get(USER_HEADER) or '').strip() or DEFAULT_USER_ID


def current_workspace() -> Workspace:
    """Hydrate the calling user's workspace from the document store."""
    writer = current_app.extensions['leadboard.writer']
    workspace = Workspace.for_writer(current_user_id(), writer)
    workspace.set_search_query(request.args.get('q', ''))
    return workspace


def json_body() -> dict:
    data = request.get_json(silent=True)
    return data if isinstance(data, dict) else {}
