"""
Filter routes — working filters, condition/dropdown edits, saved filter groups.

Validation failures raise FilterValidationError (400) and unknown ids raise
NotFoundError (404); both are mapped in create_app().
"""
import logging

from flask import Blueprint, jsonify

from leadboard.routes.deps import current_workspace, json_body

logger = logging.getLogger(__name__)

bp = Blueprint('filters', __name__)


def _state(workspace, status=200, **extra):
    body = workspace.filters.to_dict()
    body.update(extra)
    body['count'] = len(workspace.filtered_leads())
    return jsonify(body), status


# ── Working filters ──────────────────────────────────────────────────────────

@bp.route('/api/filters')
def list_filters():
    """Working filters, saved groups and which groups are active."""
    workspace = current_workspace()
    return _state(workspace)


@bp.route('/api/filters', methods=['POST'])
def create_filter():
    """Add a filter; it is saved as its own group and activated."""
    data = json_body()
    workspace = current_workspace()
    group = workspace.filters.add_filter(
        data.get('field'),
        data.get('mode') or data.get('type') or 'search',
        value=data.get('value'),
        name=data.get('name'),
        group_name=data.get('group_name'),
    )
    return _state(workspace, 201, group=group.to_dict(), filter=group.filters[0].to_dict())


@bp.route('/api/filters/<filter_id>', methods=['PUT'])
def update_filter(filter_id):
    data = json_body()
    workspace = current_workspace()
    flt = workspace.filters.edit_filter(
        filter_id,
        field=data.get('field'),
        value=data.get('value'),
        name=data.get('name'),
        clear=bool(data.get('clear')),
    )
    return _state(workspace, filter=flt.to_dict())


@bp.route('/api/filters/<filter_id>', methods=['DELETE'])
def delete_filter(filter_id):
    workspace = current_workspace()
    workspace.filters.remove_filter(filter_id)
    return _state(workspace)


@bp.route('/api/filters/reset', methods=['POST'])
def reset_filters():
    """Clear every filter value, keeping the definitions."""
    workspace = current_workspace()
    workspace.filters.reset_filters()
    return _state(workspace)


# ── Number / date conditions ─────────────────────────────────────────────────

@bp.route('/api/filters/<filter_id>/conditions', methods=['POST'])
def add_condition(filter_id):
    data = json_body()
    if 'value' not in data:
        return jsonify({'error': 'Condition value is required'}), 400
    workspace = current_workspace()
    flt = workspace.filters.add_condition(filter_id, data.get('operator', '='), data['value'])
    return _state(workspace, 201, filter=flt.to_dict())


@bp.route('/api/filters/<filter_id>/conditions/<int:index>', methods=['DELETE'])
def remove_condition(filter_id, index):
    workspace = current_workspace()
    flt = workspace.filters.remove_condition(filter_id, index)
    return _state(workspace, filter=flt.to_dict())


@bp.route('/api/filters/<filter_id>/conditions/<int:index>/toggle', methods=['POST'])
def toggle_condition(filter_id, index):
    workspace = current_workspace()
    flt = workspace.filters.toggle_condition(filter_id, index)
    return _state(workspace, filter=flt.to_dict())


# ── Dropdown selections ──────────────────────────────────────────────────────

@bp.route('/api/filters/<filter_id>/values/toggle', methods=['POST'])
def toggle_value(filter_id):
    data = json_body()
    if 'value' not in data:
        return jsonify({'error': 'value is required'}), 400
    workspace = current_workspace()
    flt = workspace.filters.toggle_value(filter_id, data['value'])
    return _state(workspace, filter=flt.to_dict())


@bp.route('/api/filters/<filter_id>/values/select-all', methods=['POST'])
def select_all_values(filter_id):
    workspace = current_workspace()
    flt = workspace.select_all(filter_id)
    return _state(workspace, filter=flt.to_dict())


# ── Saved groups ─────────────────────────────────────────────────────────────

@bp.route('/api/filter-groups')
def list_groups():
    workspace = current_workspace()
    return jsonify(workspace.filters.to_dict()['groups'])


@bp.route('/api/filter-groups', methods=['POST'])
def save_group():
    """Save existing filters under a new name and activate the group."""
    data = json_body()
    filter_ids = data.get('filter_ids') or []
    if not isinstance(filter_ids, list):
        return jsonify({'error': 'filter_ids must be a list'}), 400
    workspace = current_workspace()
    group = workspace.filters.save_filter_group(data.get('name', ''), filter_ids)
    return _state(workspace, 201, group=group.to_dict())


@bp.route('/api/filter-groups/<group_id>/toggle', methods=['POST'])
def toggle_group(group_id):
    workspace = current_workspace()
    active = workspace.filters.toggle_filter_group(group_id)
    return _state(workspace, active=active)


@bp.route('/api/filter-groups/<group_id>', methods=['DELETE'])
def delete_group(group_id):
    workspace = current_workspace()
    workspace.filters.delete_filter_group(group_id)
    return _state(workspace)
