"""
Shared fixtures: player pools and an in-memory stand-in for the Supabase client.
"""

import sys
import os
import itertools
sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

import pytest

from planner.models import Player, Gender


def build_players(scores, genders=None, prefix="p"):
    """Players p1..pn with the given scores; all male unless genders is given."""
    genders = genders or [Gender.MALE] * len(scores)
    return [
        Player(id=f"{prefix}{i}", name=f"Player {i}", gender=gender, score=float(score))
        for i, (score, gender) in enumerate(zip(scores, genders), start=1)
    ]


@pytest.fixture
def make_players():
    return build_players


@pytest.fixture
def eight_players():
    return build_players([10, 9, 8, 7, 6, 5, 4, 3])


class FakeResponse:
    def __init__(self, data):
        self.data = data


class FakeQuery:
    """Chainable query against FakeSupabaseClient's tables."""

    def __init__(self, client, table):
        self.client = client
        self.table = table
        self.operation = "select"
        self.payload = None
        self.filters = []

    def select(self, *columns, **kwargs):
        return self

    def order(self, *columns, **kwargs):
        return self

    def insert(self, payload):
        self.operation = "insert"
        self.payload = payload
        return self

    def update(self, payload):
        self.operation = "update"
        self.payload = payload
        return self

    def delete(self):
        self.operation = "delete"
        return self

    def eq(self, column, value):
        self.filters.append((column, value))
        return self

    def execute(self):
        self.client.executed.append((self.table, self.operation, self.payload, list(self.filters)))
        if self.client.fail or (self.table, self.operation) in self.client.fail_on:
            raise RuntimeError("connection refused")

        rows = self.client.tables.setdefault(self.table, [])

        if self.operation == "insert":
            payload = self.payload if isinstance(self.payload, list) else [self.payload]
            inserted = []
            for row in payload:
                row = dict(row)
                row.setdefault("id", f"{self.table}-{next(self.client.ids)}")
                rows.append(row)
                inserted.append(row)
            return FakeResponse(inserted)

        matched = [
            row for row in rows
            if all(str(row.get(column)) == str(value) for column, value in self.filters)
        ]
        if self.operation == "update":
            for row in matched:
                row.update(self.payload)
        elif self.operation == "delete":
            removed = {id(row) for row in matched}
            self.client.tables[self.table] = [row for row in rows if id(row) not in removed]
        return FakeResponse(matched)


class FakeSupabaseClient:
    def __init__(self, tables=None, fail=False, fail_on=()):
        self.tables = tables or {}
        self.fail = fail
        self.fail_on = set(fail_on)  # (table, operation) pairs that raise
        self.executed = []
        self.ids = itertools.count(1)

    def table(self, name):
        return FakeQuery(self, name)


@pytest.fixture
def fake_client():
    return FakeSupabaseClient()
