"""Shared fixtures: SAP payload fixtures, a scripted SAP client and a recording publisher."""

import json
import os
import threading

import pytest

from core.errors import PublishError

FIXTURES_DIR = os.path.join(os.path.dirname(__file__), "fixtures")

BASE_URL = "https://my000000.crm.ondemand.com/sap/c4c/odata/v1"
C4C = f"{BASE_URL}/c4codataapi"
CONTRACT_PRICE_URL = f"{C4C}/ContractCollection('00163E0AC100')/ContractExternalPriceComponent"
CONTRACT_ITEM_URL = f"{C4C}/ContractCollection('00163E0AC100')/ContractItem"
CONTRACT_PARTY_URL = f"{C4C}/ContractCollection('00163E0AC100')/ContractParty"
ITEM_PRICE_URL = f"{C4C}/ContractItemCollection('00163E0AI200')/ContractItemExternalPriceComponent"


def load_fixture(name: str) -> bytes:
    with open(os.path.join(FIXTURES_DIR, name), "rb") as f:
        return f.read()


def empty_result() -> bytes:
    return json.dumps({"d": {"results": []}}).encode()


class FakeSAPClient:
    """Stands in for SAPAPIClient, answering from canned payloads.

    collections maps (collection, kind, value) -> bytes or Exception;
    urls maps a navigation URI -> bytes or Exception. before_fetch, if given,
    is called with the collection name or URL before answering.
    """

    def __init__(self, collections=None, urls=None, before_fetch=None):
        self.collections = collections or {}
        self.urls = urls or {}
        self.before_fetch = before_fetch
        self.calls = []
        self._lock = threading.Lock()

    def _answer(self, label, answer):
        with self._lock:
            self.calls.append(label)
        if self.before_fetch:
            self.before_fetch(label)
        if isinstance(answer, Exception):
            raise answer
        return answer

    def fetch_collection(self, collection, kind, value):
        return self._answer(collection, self.collections[(collection, kind, value)])

    def fetch(self, url):
        return self._answer(url, self.urls[url])


class RecordingPublisher:
    """Thread-safe publisher that keeps every (queue, payload) it receives."""

    def __init__(self, fail_on=None, on_send=None):
        self.sent = []
        self.fail_on = fail_on or set()
        self.on_send = on_send
        self._lock = threading.Lock()

    def send(self, queue, payload):
        if payload["function"] in self.fail_on:
            raise PublishError(f"rejected {payload['function']}")
        with self._lock:
            self.sent.append((queue, payload))
        if self.on_send:
            self.on_send(payload)

    @property
    def functions(self):
        with self._lock:
            return [payload["function"] for _, payload in self.sent]

    @property
    def sent_count(self):
        return len(self.sent)


def contract_urls():
    return {
        CONTRACT_PRICE_URL: load_fixture("contract_external_price_component.json"),
        CONTRACT_ITEM_URL: load_fixture("contract_item.json"),
        CONTRACT_PARTY_URL: load_fixture("contract_party.json"),
        ITEM_PRICE_URL: load_fixture("contract_item_external_price_component.json"),
    }


@pytest.fixture
def sap_client():
    return FakeSAPClient(
        collections={
            ("ContractCollection", "by id", "C100"): load_fixture("contract_collection.json"),
            ("ContractCollection", "by name", "Acme"): load_fixture("contract_collection.json"),
            ("ContractItemCollection", "by id", "I200"): load_fixture("contract_item_collection.json"),
        },
        urls=contract_urls(),
    )


@pytest.fixture
def publisher():
    return RecordingPublisher()
