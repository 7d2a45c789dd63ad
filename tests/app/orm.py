"""ORM 어댑터 모듈"""
from __future__ import annotations

from sqlalchemy import Column, ForeignKey, Integer, MetaData, String, Table
from sqlalchemy.orm import registry, relationship

from tests.app.models import Invoice, InvoiceItem, Order, OrderLine

metadata = MetaData()

order = Table(
    "orders",
    metadata,
    Column("id", String(255), primary_key=True),
    Column("customer", String(255), nullable=False),
)

order_line = Table(
    "order_line",
    metadata,
    Column("id", Integer, primary_key=True, autoincrement=True),
    Column("order_id", ForeignKey("orders.id")),
    Column("sku", String(255), nullable=False),
    Column("qty", Integer, nullable=False),
)

invoice = Table(
    "invoices",
    metadata,
    Column("id", String(255), primary_key=True),
)

invoice_item = Table(
    "invoice_item",
    metadata,
    Column("id", Integer, primary_key=True, autoincrement=True),
    Column("invoice_id", ForeignKey("invoices.id")),
    Column("sku", String(255), nullable=False),
    Column("qty", Integer, nullable=False),
)

mapper_registry = registry(metadata=metadata)
_mapped = False


def start_mappers() -> MetaData:
    """도메인 객체들을 SqlAlchemy ORM 매퍼에 등록합니다. 두 번째 호출부터는 무시됩니다."""
    global _mapped  # pylint: disable=global-statement,invalid-name

    if not _mapped:
        mapper_registry.map_imperatively(OrderLine, order_line)
        mapper_registry.map_imperatively(
            Order, order, properties={"lines": relationship(OrderLine)}
        )
        mapper_registry.map_imperatively(InvoiceItem, invoice_item)
        mapper_registry.map_imperatively(
            Invoice,
            invoice,
            properties={
                "items": relationship(InvoiceItem, cascade="all, delete-orphan")
            },
        )
        _mapped = True

    return metadata
