"""Shared fixtures for shopbridge tests."""

import json

import pytest

from shopbridge.config import Settings
from shopbridge.loaders.base import DryRunWorkflowClient
from shopbridge.models.schema import (
    Connector,
    ConnectorType,
    Dataflow,
    DataflowType,
    FieldMapping,
    TransformType,
    default_product_mappings,
)
from shopbridge.orchestrator import MigrationOrchestrator
from shopbridge.services.lookup import InMemoryEntityLookup
from shopbridge.services.pipeline import MappingPipeline
from shopbridge.services.transformer import TransformEngine
from shopbridge.storage import DataflowStore, MigrationLogStore


def rule(source, dest, transform=TransformType.NONE, config="", required=False, default=""):
    """Build a field mapping; dict configs are serialized like stored rows."""
    if not isinstance(config, str):
        config = json.dumps(config)
    return FieldMapping(
        source_field=source,
        dest_field=dest,
        is_required=required,
        default_value=default,
        transform_type=transform,
        transform_config=config,
    )


@pytest.fixture
def lookup():
    return InMemoryEntityLookup({
        "manufacturer": {
            "m-1": {"name": "Acme Corp"},
            "m-2": {"country": "DE"},
        },
    })


@pytest.fixture
def engine(lookup):
    return TransformEngine(entity_lookup=lookup)


@pytest.fixture
def pipeline(engine):
    return MappingPipeline(engine)


@pytest.fixture
def shopware_product():
    return {
        "id": "0189a1b2c3",
        "name": "Trail Runner",
        "description": "<p>Light shoe</p>",
        "productNumber": "SW-1001",
        "stock": "42",
        "price": [{"gross": 129.9, "net": 109.16}],
        "active": True,
        "manufacturerId": "m-1",
        "categoryIds": [{"id": "c-1"}, {"id": "c-2"}],
        "media": [
            {"url": "media/shoe.jpg", "alt": "Shoe"},
            {"url": "https://cdn.example.com/side.jpg", "alt": "Side"},
        ],
        "metaTitle": "Trail Runner",
        "weight": "0.85",
        "width": "11.5",
        "height": "abc",
    }


def make_connector(name, connector_type, connector_id):
    return Connector(
        id=connector_id,
        name=name,
        type=connector_type,
        url=f"https://{name}.example.com",
    )


@pytest.fixture
def shopware_connector():
    return make_connector("shopware", ConnectorType.SHOPWARE, 1)


@pytest.fixture
def shopify_connector():
    return make_connector("shopify", ConnectorType.SHOPIFY, 2)


@pytest.fixture
def log_store():
    return MigrationLogStore()


@pytest.fixture
def store(log_store):
    return DataflowStore(log_store)


@pytest.fixture
def product_dataflow(store, shopware_connector, shopify_connector):
    return store.create(Dataflow(
        name="Products",
        type=DataflowType.PRODUCT,
        source_connector=shopware_connector,
        dest_connector=shopify_connector,
        field_mappings=[
            rule("id", "id", TransformType.GRAPHQL_ID,
                 {"resource_type": "Product", "direction": "to_global"}, required=True),
            rule("name", "title", required=True),
        ],
    ))


@pytest.fixture
def workflow():
    return DryRunWorkflowClient()


@pytest.fixture
def orchestrator(store, workflow, lookup):
    return MigrationOrchestrator(
        store=store,
        workflow=workflow,
        entity_lookup=lookup,
        settings=Settings(),
    )


@pytest.fixture
def default_rules():
    return default_product_mappings()
