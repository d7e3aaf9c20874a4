from __future__ import annotations

import asyncio

from conftest import FakeStoreClient, transport_error
from docsync.validator import UNREACHABLE, Validator


P1 = "https://store.test/api/documents/?user=7&page=1"
P2 = "https://store.test/api/documents/?user=7&page=2"
P3 = "https://store.test/api/documents/?user=7&page=3"


def _pages():
    return {
        P1: {"results": [{"status": "success"}, {"status": "error", "canonical_url": "https://store/1"}], "next": P2},
        P2: {"results": [{"status": "pending"}], "next": P3},
        P3: {"results": [{"status": "success"}], "next": None},
    }


def test_counts_non_success_documents_across_pages(events, recording_suspend):
    client = FakeStoreClient(pages=_pages(), events=events)
    failures = asyncio.run(Validator(client, user_id=7, suspend=recording_suspend).validate())
    assert failures == 2
    assert client.page_calls == [P1, P2, P3]
    assert events == [("get", P1), ("sleep", 0.1), ("get", P2), ("sleep", 0.1), ("get", P3)]


def test_looks_up_user_when_not_configured(events, recording_suspend):
    client = FakeStoreClient(pages=_pages(), events=events)
    assert asyncio.run(Validator(client, suspend=recording_suspend).validate()) == 2
    assert events[0] == ("me",)


def test_transport_error_is_reported_as_unreachable(recording_suspend):
    pages = _pages()
    pages[P2] = transport_error(502, "bad gateway")
    client = FakeStoreClient(pages=pages)
    assert asyncio.run(Validator(client, user_id=7, suspend=recording_suspend).validate()) == UNREACHABLE == -1


def test_empty_account_has_no_failures(recording_suspend):
    client = FakeStoreClient()
    assert asyncio.run(Validator(client, user_id=7, suspend=recording_suspend).validate()) == 0
