"""
Shared helpers for tests that need a database.
"""
from datetime import date, datetime, time, timedelta

from sqlalchemy import create_engine, event
from sqlalchemy.orm import sessionmaker

from grocery_inventory.db import _enable_sqlite_foreign_keys
from grocery_inventory.models import (
    Base, Category, InventoryBatch, InventoryTransaction, Product, Supplier
)


def create_test_session():
    """Create an in-memory SQLite database and return (engine, session)."""
    engine = create_engine('sqlite://')
    event.listen(engine, 'connect', _enable_sqlite_foreign_keys)
    Base.metadata.create_all(engine)
    session = sessionmaker(bind=engine)()
    return engine, session


def add_product(session, name='Milk', items_per_case=1, cost_per_case=1.0, reorder_point=0,
                max_stock=0, lead_time_days=None, is_active=True, category=None, supplier=None):
    product = Product(
        name=name,
        items_per_case=items_per_case,
        cost_per_case=cost_per_case,
        reorder_point=reorder_point,
        max_stock=max_stock,
        lead_time_days=lead_time_days,
        is_active=is_active,
        category=category,
        supplier=supplier
    )
    session.add(product)
    session.commit()
    return product


def add_batch(session, product, total_quantity, expiry_date=None,
              received_date=date(2024, 1, 1), location=None):
    batch = InventoryBatch(
        product_id=product.id,
        batch_number=f"TEST-{product.id}-{total_quantity}",
        case_quantity=total_quantity,
        total_quantity=total_quantity,
        expiry_date=expiry_date,
        received_date=received_date,
        location=location
    )
    session.add(batch)
    session.commit()
    return batch


def add_consumption(session, product, quantity, day):
    """Record ``quantity`` units consumed at noon on ``day``."""
    session.add(InventoryTransaction(
        product_id=product.id,
        quantity_change=-quantity,
        reason='sale',
        created_at=datetime.combine(day, time(12, 0))
    ))


def add_daily_consumption(session, product, quantities, end_day):
    """Record one day of consumption per quantity, ending on ``end_day``."""
    start = end_day - timedelta(days=len(quantities) - 1)
    for offset, quantity in enumerate(quantities):
        if quantity:
            add_consumption(session, product, quantity, start + timedelta(days=offset))
    session.commit()


def add_category(session, name, color=None):
    category = Category(name=name, color=color)
    session.add(category)
    session.commit()
    return category


def add_supplier(session, name, is_active=True):
    supplier = Supplier(name=name, is_active=is_active)
    session.add(supplier)
    session.commit()
    return supplier
