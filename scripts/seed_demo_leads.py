#!/usr/bin/env python3
"""
Seed a user's document with demo leads and a few saved filters.

Creates:
  1. Eight leads with string, number, date and boolean fields
  2. A status dropdown filter (New, Qualified)
  3. A value filter (> 10000) whose condition is switched off
  4. A last-contact date filter saved but left inactive

Usage:
    python scripts/seed_demo_leads.py                # seed user "local"
    python scripts/seed_demo_leads.py --user alice   # seed another user
    python scripts/seed_demo_leads.py --clear        # wipe the user's document first

Requires: DATABASE_URL set (or defaults to sqlite:///local.db), or
DOCUMENT_STORE=redis with Redis running.
"""
import argparse
import logging
import os
import sys

sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from leadboard.config import DEFAULT_USER_ID, DOCUMENT_STORE, FILTERS_KEY, ACTIVE_GROUPS_KEY, LEADS_KEY
from leadboard.database import init_db
from leadboard.logging_config import configure_logging
from leadboard.services.document_store import get_document_store
from leadboard.services.workspace import Workspace

logger = logging.getLogger('scripts.seed_demo_leads')

DEMO_ROWS = [
    {'name': 'Ada Byron', 'company': 'Analytical Co', 'email': 'ada@analytical.example', 'status': 'New',
     'source': 'Referral', 'industry': 'Software', 'value': '42000', 'lastContact': '2026-09-02', 'subscribed': 'true'},
    {'name': 'Grace Hopper', 'company': 'Cobol Labs', 'email': 'grace@cobol.example', 'status': 'Qualified',
     'source': 'Website', 'industry': 'Defense', 'value': '87000', 'lastContact': '2026-08-15', 'subscribed': 'false'},
    {'name': 'Alan Turing', 'company': 'Bombe Ltd', 'email': 'alan@bombe.example', 'status': 'Contacted',
     'source': 'Conference', 'industry': 'Research', 'value': '15500', 'lastContact': '2026-07-30', 'subscribed': 'true'},
    {'name': 'Katherine Johnson', 'company': 'Orbit Partners', 'email': 'kj@orbit.example', 'status': 'New',
     'source': 'Website', 'industry': 'Aerospace', 'value': '9800', 'lastContact': '2026-09-20', 'subscribed': 'true'},
    {'name': 'Edsger Dijkstra', 'company': 'Shortest Path BV', 'email': 'ewd@path.example', 'status': 'Closed',
     'source': 'Referral', 'industry': 'Logistics', 'value': '120000', 'lastContact': '2026-06-11', 'subscribed': 'false'},
    {'name': 'Barbara Liskov', 'company': 'Substitution Inc', 'email': 'bl@subst.example', 'status': 'Qualified',
     'source': 'Cold Call', 'industry': 'Software', 'value': '56000', 'lastContact': '2026-09-05', 'subscribed': 'true'},
    {'name': 'Donald Knuth', 'company': 'TeX Works', 'email': 'dk@tex.example', 'status': 'Lost',
     'source': 'Conference', 'industry': 'Publishing', 'value': '3100', 'lastContact': '2026-05-01', 'subscribed': 'false'},
    {'name': 'Frances Allen', 'company': 'Compiler Group', 'email': 'fa@compile.example', 'status': 'Contacted',
     'source': 'Website', 'industry': 'Software', 'value': '24500', 'lastContact': '2026-08-28', 'subscribed': 'true'},
]


def ensure_schema():
    if DOCUMENT_STORE == 'sql':
        init_db()


def seed(user_id):
    workspace = Workspace.open(user_id, get_document_store())
    workspace.leads.replace_all(DEMO_ROWS)

    workspace.filters.add_filter('status', 'dropdown', value=['New', 'Qualified'])

    value_group = workspace.filters.add_filter('value', 'numberCondition')
    value_filter = value_group.filters[0]
    workspace.filters.add_condition(value_filter.id, '>', 10000)
    workspace.filters.toggle_condition(value_filter.id, 0)

    date_group = workspace.filters.add_filter('lastContact', 'dateCondition',
                                              value=[{'operator': '>=', 'value': '2026-08-01'}])
    workspace.filters.toggle_filter_group(date_group.id)

    summary = workspace.summary()
    logger.info("Seeded user %s: %d leads, %d filters, %d visible",
                user_id, summary['total'], len(workspace.filters.filters), summary['count'])


def clear(user_id):
    store = get_document_store()
    store.merge(user_id, {FILTERS_KEY: [], ACTIVE_GROUPS_KEY: [], LEADS_KEY: []})
    logger.info("Cleared document for user %s", user_id)


def main():
    configure_logging()
    parser = argparse.ArgumentParser(description='Seed demo leads and filters')
    parser.add_argument('--user', default=DEFAULT_USER_ID)
    parser.add_argument('--clear', action='store_true', help='Wipe the user document first')
    args = parser.parse_args()

    ensure_schema()
    if args.clear:
        clear(args.user)
    seed(args.user)


if __name__ == '__main__':
    main()
