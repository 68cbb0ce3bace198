"""Shared fixtures: a small shop schema with matching CSV files."""

from __future__ import annotations

from pathlib import Path

import pytest

from csvgraph.core.config import clear_settings_cache
from csvgraph.schema.builder import build_graph
from csvgraph.schema.models import SchemaGraph
from csvgraph.schema.parser import parse_schema

SHOP_SCHEMA = """
-- shop schema
CREATE TABLE customers (
    id INTEGER PRIMARY KEY,
    name VARCHAR(100) NOT NULL
);

CREATE TABLE orders (
    id INTEGER PRIMARY KEY,
    customer_id INTEGER REFERENCES customers(id),
    placed_on DATE
);

CREATE TABLE items (
    id INTEGER,
    order_id INTEGER NOT NULL,
    sku TEXT,
    PRIMARY KEY (id),
    FOREIGN KEY (order_id) REFERENCES orders (id)
);

CREATE INDEX idx_orders_customer ON orders (customer_id);

CREATE TABLE suppliers (
    id INTEGER PRIMARY KEY,
    name TEXT
);
"""

SHOP_CSV = {
    "customers": "id,name\n1,Ann\n2,Bob\n3,Cid\n",
    "orders": "id,customer_id,placed_on\n10,1,2024-01-01\n11,1,2024-01-02\n12,2,2024-01-03\n13,,2024-01-04\n",
    "items": "id,order_id,sku\n100,10,A\n101,10,B\n102,12,C\n103,14,D\n",
    "suppliers": "id,name\n1,Acme\n",
}


def graph_from_sql(text: str, **kwargs) -> SchemaGraph:
    return build_graph(parse_schema(text), **kwargs).graph


@pytest.fixture
def shop_graph() -> SchemaGraph:
    return graph_from_sql(SHOP_SCHEMA)


@pytest.fixture(autouse=True)
def isolated_settings(monkeypatch):
    """Every test starts from default settings."""
    for name in ("CSVGRAPH_HOME", "CSVGRAPH_LOG_LEVEL", "CSVGRAPH_DEFAULT_WEIGHT"):
        monkeypatch.delenv(name, raising=False)
    clear_settings_cache()
    yield
    clear_settings_cache()


@pytest.fixture
def shop_dir(tmp_path: Path, monkeypatch) -> Path:
    """A working directory holding shop.sql and one CSV file per table."""
    (tmp_path / "shop.sql").write_text(SHOP_SCHEMA, encoding="utf-8")
    for table, content in SHOP_CSV.items():
        (tmp_path / f"{table}.csv").write_text(content, encoding="utf-8")
    monkeypatch.chdir(tmp_path)
    return tmp_path
