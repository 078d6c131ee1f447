#!/usr/bin/env python3
"""
Shared test configuration and fixtures for the proposal compositor.
"""

import sys
from pathlib import Path
from unittest.mock import MagicMock

import pytest

# Add project root to path for imports
project_root = Path(__file__).parent.parent
sys.path.insert(0, str(project_root))

from src.compositor.models import ProposalDocument  # noqa: E402
from src.storage.memory_store import InMemoryAssetStore, InMemoryDocumentStore  # noqa: E402


@pytest.fixture(autouse=True)
def _no_network(monkeypatch):
    """Mock boto3 clients and resources so no test talks to AWS."""
    monkeypatch.setenv("NO_NETWORK", "1")
    monkeypatch.setenv("AWS_DEFAULT_REGION", "us-east-2")
    monkeypatch.setattr("boto3.client", lambda *args, **kwargs: MagicMock())
    monkeypatch.setattr("boto3.resource", lambda *args, **kwargs: MagicMock())


def make_site(site_id, **overrides):
    raw = {
        "id": site_id,
        "name": f"Site {site_id}",
        "location": "EDSA Guadalupe",
        "type": "Billboard",
        "price": 1000,
        "traffic": 1500,
        "dimension": {"height": 10, "width": 20},
        "location_visibility": {"value": 2500, "unit": "m"},
        "site_code": f"SC-{site_id}",
        "media": [{"url": f"https://img.example.com/{site_id}.jpg", "is_video": False}],
    }
    raw.update(overrides)
    return raw


def make_document(num_sites=2, layout="1", custom_pages=0, **overrides):
    raw = {
        "id": "proposal-1",
        "title": "Q3 Campaign",
        "proposal_title": "Site Proposals",
        "company_name": "Acme Outdoor",
        "client": {"id": "client-1", "company": "Brand Co", "contact_person": "Dana Cruz"},
        "products": [make_site(f"site-{i + 1}") for i in range(num_sites)],
        "custom_pages": [
            {"id": f"blank-{i + 1}", "type": "blank", "position": 0, "elements": []}
            for i in range(custom_pages)
        ],
        "template_layout": layout,
        "template_size": "A4",
        "template_orientation": "Landscape",
    }
    raw.update(overrides)
    return raw


@pytest.fixture
def raw_document():
    return make_document()


@pytest.fixture
def document(raw_document):
    return ProposalDocument.from_dict(raw_document)


@pytest.fixture
def document_store(raw_document):
    return InMemoryDocumentStore({raw_document["id"]: raw_document})


@pytest.fixture
def asset_store():
    return InMemoryAssetStore()
