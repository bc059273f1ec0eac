# grocery_inventory/models.py
from datetime import datetime

from sqlalchemy import (
    Column, Integer, String, Float, Date, DateTime, Boolean, ForeignKey, Text,
    CheckConstraint, Index
)
from sqlalchemy.orm import declarative_base, relationship
from sqlalchemy.sql import func

Base = declarative_base()


class Category(Base):
    __tablename__ = 'categories'

    id = Column(Integer, primary_key=True)
    name = Column(String(100), nullable=False, unique=True)
    color = Column(String(20))
    icon = Column(String(20))
    created_at = Column(DateTime, server_default=func.now())

    products = relationship("Product", back_populates="category")

    def __repr__(self):
        return f"<Category(id={self.id}, name='{self.name}')>"


class Supplier(Base):
    __tablename__ = 'suppliers'

    id = Column(Integer, primary_key=True)
    name = Column(String(100), nullable=False, unique=True)
    contact_name = Column(String(100))
    phone = Column(String(30))
    email = Column(String(100))
    is_active = Column(Boolean, nullable=False, default=True)
    created_at = Column(DateTime, server_default=func.now())

    products = relationship("Product", back_populates="supplier")

    def __repr__(self):
        return f"<Supplier(id={self.id}, name='{self.name}')>"


class Product(Base):
    __tablename__ = 'products'

    id = Column(Integer, primary_key=True)
    name = Column(String(200), nullable=False)
    sku = Column(String(50))
    barcode = Column(String(50))
    items_per_case = Column(Integer, nullable=False, default=1)
    cost_per_case = Column(Float, nullable=False, default=0.0)
    reorder_point = Column(Integer, nullable=False, default=0)
    max_stock = Column(Integer, nullable=False, default=0)
    lead_time_days = Column(Integer)  # Falls back to BUSINESS_RULES.default_lead_time
    is_active = Column(Boolean, nullable=False, default=True)
    category_id = Column(Integer, ForeignKey('categories.id', ondelete='SET NULL'))
    supplier_id = Column(Integer, ForeignKey('suppliers.id', ondelete='SET NULL'))
    created_at = Column(DateTime, server_default=func.now())

    category = relationship("Category", back_populates="products")
    supplier = relationship("Supplier", back_populates="products")
    batches = relationship(
        "InventoryBatch",
        back_populates="product",
        cascade="all, delete-orphan",
        passive_deletes=True
    )
    transactions = relationship(
        "InventoryTransaction",
        back_populates="product",
        cascade="all, delete-orphan",
        passive_deletes=True
    )

    @property
    def unit_cost(self):
        """Cost of a single item; 0 when the case size is unknown."""
        if not self.items_per_case:
            return 0.0
        return (self.cost_per_case or 0.0) / self.items_per_case

    def __repr__(self):
        return f"<Product(id={self.id}, name='{self.name}')>"


class InventoryBatch(Base):
    __tablename__ = 'inventory_batches'

    id = Column(Integer, primary_key=True)
    product_id = Column(Integer, ForeignKey('products.id', ondelete='CASCADE'), nullable=False)
    batch_number = Column(String(50))
    case_quantity = Column(Integer, nullable=False, default=0)
    total_quantity = Column(Integer, nullable=False, default=0)
    expiry_date = Column(Date)
    location = Column(String(100))
    received_date = Column(Date, nullable=False, server_default=func.current_date())
    notes = Column(Text)

    product = relationship("Product", back_populates="batches")

    __table_args__ = (
        CheckConstraint('total_quantity >= 0', name='ck_batch_total_quantity_non_negative'),
        Index('ix_batches_product_expiry', 'product_id', 'expiry_date'),
    )

    @property
    def is_empty(self):
        return (self.total_quantity or 0) <= 0

    def __repr__(self):
        return f"<InventoryBatch(id={self.id}, product_id={self.product_id}, qty={self.total_quantity})>"


class InventoryTransaction(Base):
    """Quantity ledger; negative changes are consumption."""
    __tablename__ = 'inventory_transactions'

    id = Column(Integer, primary_key=True)
    product_id = Column(Integer, ForeignKey('products.id', ondelete='CASCADE'), nullable=False)
    batch_id = Column(Integer, ForeignKey('inventory_batches.id', ondelete='SET NULL'))
    quantity_change = Column(Integer, nullable=False)
    reason = Column(String(200))
    # Local time, matching the calendar days used for consumption windows
    created_at = Column(DateTime, nullable=False, default=datetime.now, server_default=func.now())

    product = relationship("Product", back_populates="transactions")

    __table_args__ = (
        Index('ix_transactions_product_created', 'product_id', 'created_at'),
    )


class SchemaVersion(Base):
    """Forward-only record of applied schema versions."""
    __tablename__ = 'schema_version'

    version = Column(Integer, primary_key=True)
    description = Column(String(200))
    applied_at = Column(DateTime, nullable=False, server_default=func.now())
