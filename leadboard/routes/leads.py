"""
Leads routes — filtered listing, import, single-lead edits, schema.
"""
import logging

from flask import Blueprint, jsonify

from leadboard.config import ID_FIELD
from leadboard.models.lead import Lead
from leadboard.routes.deps import current_workspace, json_body
from leadboard.services.schema import format_field_value, parse_field_value
from leadboard.values import is_nan

logger = logging.getLogger(__name__)

bp = Blueprint('leads', __name__)


# ── Listing ──────────────────────────────────────────────────────────────────

@bp.route('/api/leads')
def list_leads():
    """Leads matching the active filters and the ?q= search box."""
    workspace = current_workspace()
    leads = workspace.filtered_leads()
    return jsonify({
        'leads': [lead.to_dict() for lead in leads],
        **workspace.summary(),
    })


# ── Mutations ────────────────────────────────────────────────────────────────

@bp.route('/api/leads/import', methods=['POST'])
def import_leads():
    """Replace the whole collection with imported rows."""
    data = json_body()
    rows = data.get('rows')
    if not isinstance(rows, list):
        return jsonify({'error': 'rows must be a list'}), 400

    workspace = current_workspace()
    leads = workspace.leads.replace_all(rows)
    return jsonify({
        'imported': len(leads),
        'fields': [f.to_dict() for f in workspace.fields()],
    }), 201


@bp.route('/api/leads', methods=['POST'])
def add_lead():
    data = json_body()
    if not data:
        return jsonify({'error': 'Lead body is required'}), 400
    workspace = current_workspace()
    try:
        lead = workspace.leads.add_lead(data)
    except ValueError as e:
        return jsonify({'error': str(e)}), 400
    return jsonify(lead.to_dict()), 201


@bp.route('/api/leads/<lead_id>', methods=['PUT'])
def update_lead(lead_id):
    """Merge edited fields into a lead. Text for number/boolean fields is parsed."""
    data = json_body()
    workspace = current_workspace()
    existing = workspace.leads.find(lead_id)
    if existing is None:
        return jsonify({'error': f'Lead {lead_id} not found'}), 404

    types = {f.name: f.type for f in workspace.fields()}
    fields = {}
    for name, value in data.items():
        if name == ID_FIELD:
            continue
        if isinstance(value, str) and types.get(name) in ('number', 'boolean'):
            parsed = parse_field_value(value, types[name])
            if parsed is not None and not is_nan(parsed):
                value = parsed
        fields[name] = value

    lead = Lead(id=existing.id, fields={**existing.fields, **fields})
    workspace.leads.update_one(lead)
    return jsonify(lead.to_dict())


@bp.route('/api/leads/delete', methods=['POST'])
def delete_leads():
    data = json_body()
    ids = data.get('ids')
    if not isinstance(ids, list):
        return jsonify({'error': 'ids must be a list'}), 400
    workspace = current_workspace()
    removed = workspace.leads.delete_many(ids)
    return jsonify({'deleted': removed, 'total': len(workspace.leads)})


# ── Schema ───────────────────────────────────────────────────────────────────

@bp.route('/api/fields')
def list_fields():
    """Filterable fields inferred from the first lead."""
    workspace = current_workspace()
    return jsonify([f.to_dict() for f in workspace.fields()])


@bp.route('/api/fields/<field_name>/values')
def field_values(field_name):
    """Dropdown candidates for a field, with display labels for the picker."""
    workspace = current_workspace()
    values = workspace.dropdown_candidates(field_name)
    descriptor = workspace.field(field_name)
    field_type = descriptor.type if descriptor else 'string'
    return jsonify({
        'field': field_name,
        'type': field_type,
        'values': values,
        'labels': [format_field_value(v, field_type) for v in values],
    })
