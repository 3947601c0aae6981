"""
LeadCollection — the canonical in-memory lead list for one user.

Mutations (replace_all, add_lead, update_one, delete_many) change the list,
bump `version` for the filtered-view cache, and merge-write the resulting
list under `savedLeads`. Unknown ids are tolerated silently.
"""
import logging
import time
from typing import Any, Dict, Iterable, List, Mapping, Optional, Sequence

from leadboard.config import ID_FIELD, LEADS_KEY
from leadboard.models.lead import Lead
from leadboard.services.document_store import DocumentWriter
from leadboard.values import stringify

logger = logging.getLogger('services.lead_collection')


def _is_blank_row(row: Mapping[str, Any]) -> bool:
    return not any(v not in (None, '') for k, v in row.items() if k != ID_FIELD)


def rows_to_leads(rows: Iterable[Mapping[str, Any]], id_base: Optional[int] = None) -> List[Lead]:
    """
    Normalize raw import rows into leads.

    Rows with no values are dropped. Rows without an id get
    `id_base + position`, id_base defaulting to the current time in ms.
    """
    if id_base is None:
        id_base = int(time.time() * 1000)
    leads = []
    for row in rows:
        if not isinstance(row, Mapping) or _is_blank_row(row):
            continue
        data = dict(row)
        if data.get(ID_FIELD) in (None, ''):
            data[ID_FIELD] = id_base + len(leads)
        leads.append(Lead.from_dict(data))
    return leads


class LeadCollection:

    def __init__(self, user_id: str, writer: DocumentWriter):
        self.user_id = user_id
        self.writer = writer
        self.leads: List[Lead] = []
        self.version = 0

    def __len__(self):
        return len(self.leads)

    def __iter__(self):
        return iter(self.leads)

    # ── Hydration / persistence ───────────────────────────────────────

    def load(self, document: Optional[Dict[str, Any]] = None) -> 'LeadCollection':
        if document is None:
            document = self.writer.read(self.user_id)
        self.leads = [Lead.from_dict(row) for row in document.get(LEADS_KEY) or [] if isinstance(row, Mapping)]
        self._touch()
        logger.debug("Loaded %d leads for user %s", len(self.leads), self.user_id)
        return self

    def _persist(self):
        return self.writer.write(self.user_id, {LEADS_KEY: [lead.to_dict() for lead in self.leads]})

    def _touch(self):
        self.version += 1

    # ── Queries ──────────────────────────────────────────────────────

    def find(self, lead_id) -> Optional[Lead]:
        key = stringify(lead_id)
        for lead in self.leads:
            if lead.key == key:
                return lead
        return None

    # ── Mutations ────────────────────────────────────────────────────

    def replace_all(self, rows: Sequence) -> List[Lead]:
        """Swap in a freshly imported batch (Lead objects or raw row dicts)."""
        if all(isinstance(r, Lead) for r in rows):
            leads = list(rows)
        else:
            leads = rows_to_leads(rows)
        self.leads = leads
        self._touch()
        logger.info("User %s imported %d leads", self.user_id, len(leads))
        self._persist()
        return leads

    def add_lead(self, lead) -> Lead:
        if not isinstance(lead, Lead):
            converted = rows_to_leads([lead], id_base=int(time.time() * 1000))
            if not converted:
                raise ValueError('Lead has no values')
            lead = converted[0]
        self.leads = self.leads + [lead]
        self._touch()
        logger.info("User %s added lead %s", self.user_id, lead.id)
        self._persist()
        return lead

    def update_one(self, lead: Lead) -> bool:
        """Replace the lead with the same id. No-op when the id is unknown."""
        if self.find(lead.id) is None:
            logger.info("User %s update for unknown lead %s ignored", self.user_id, lead.id)
            return False
        self.leads = [lead if existing.key == lead.key else existing for existing in self.leads]
        self._touch()
        logger.info("User %s updated lead %s", self.user_id, lead.id)
        self._persist()
        return True

    def delete_many(self, ids: Iterable) -> int:
        """Remove every lead whose id is listed. Returns how many were removed."""
        doomed = {stringify(i) for i in ids}
        before = len(self.leads)
        self.leads = [lead for lead in self.leads if lead.key not in doomed]
        removed = before - len(self.leads)
        self._touch()
        logger.info("User %s deleted %d leads (%d ids requested)", self.user_id, removed, len(doomed))
        self._persist()
        return removed
