"""
SQLAlchemy ORM models for the Laundry Orders API.

Tables:
    users     — clients and admins
    services  — catalog of laundry services with per-garment prices
    orders    — laundry orders and their lifecycle timestamps
    reports   — issues filed by clients against an order (side channel)
"""
import json
from datetime import datetime

from sqlalchemy import (
    Column, Integer, String, DateTime, Text, ForeignKey, Index,
)

from database import Base
from domain.constants import TIMESTAMP_COLUMNS


class User(Base):
    """Clients place orders; admins move them through the pipeline."""
    __tablename__ = "users"

    id = Column(Integer, primary_key=True, autoincrement=True)
    name = Column(String(100), nullable=False)
    email = Column(String(200), unique=True, nullable=False, index=True)
    role = Column(String(20), nullable=False, default="client")  # "client" | "admin"
    phone = Column(String(20), nullable=True)
    created_at = Column(DateTime, default=datetime.utcnow)


class Service(Base):
    """Catalog entry. Prices are copied into orders at creation time."""
    __tablename__ = "services"

    id = Column(String(100), primary_key=True)  # e.g. "normal_wash"
    name = Column(String(200), nullable=False)
    description = Column(Text, nullable=True)
    price_per_cloth_json = Column(Text, nullable=False, default="{}")  # JSON {garment: price}
    created_at = Column(DateTime, default=datetime.utcnow)

    @property
    def price_per_cloth(self) -> dict[str, int]:
        return json.loads(self.price_per_cloth_json or "{}")


class Order(Base):
    __tablename__ = "orders"

    id = Column(Integer, primary_key=True, autoincrement=True)
    client_id = Column(Integer, ForeignKey("users.id"), nullable=False, index=True)
    client_name = Column(String(100), nullable=True)
    client_phone = Column(String(20), nullable=False)
    delivery_address = Column(Text, nullable=False)
    service = Column(String(200), nullable=False)  # service name, denormalized
    clothes_json = Column(Text, nullable=False)  # JSON {garment: quantity}
    total_cost = Column(Integer, nullable=False)
    status = Column(String(30), nullable=False, default="placed", index=True)
    payment_method = Column(String(10), nullable=False)  # cash | card | upi
    payment_status = Column(String(10), nullable=False, default="pending")  # pending | completed | failed
    notes = Column(Text, nullable=True)

    # Lifecycle timestamps — each set once, on first entry to its stage
    placed_at = Column(DateTime, nullable=False, default=datetime.utcnow, index=True)
    accepted_at = Column(DateTime, nullable=True)
    picked_up_at = Column(DateTime, nullable=True)
    washing_at = Column(DateTime, nullable=True)
    ironing_at = Column(DateTime, nullable=True)
    packing_at = Column(DateTime, nullable=True)
    out_for_delivery_at = Column(DateTime, nullable=True)
    client_confirmed_at = Column(DateTime, nullable=True)
    delivered_at = Column(DateTime, nullable=True)
    rejected_at = Column(DateTime, nullable=True)
    paid_at = Column(DateTime, nullable=True)

    __table_args__ = (
        # For client order history: filter by client_id, order by placed_at DESC
        Index("ix_orders_client_placed", "client_id", "placed_at"),
    )

    @property
    def clothes(self) -> dict[str, int]:
        return json.loads(self.clothes_json or "{}")

    @property
    def timestamps(self) -> dict[str, datetime]:
        """Sparse mapping of timestamp key (e.g. 'acceptedAt') to instant."""
        stamps = {}
        for key, column in TIMESTAMP_COLUMNS.items():
            value = getattr(self, column)
            if value is not None:
                stamps[key] = value
        return stamps


class Report(Base):
    """Issue filed against an order. Not part of the order state machine."""
    __tablename__ = "reports"

    id = Column(Integer, primary_key=True, autoincrement=True)
    order_id = Column(Integer, ForeignKey("orders.id"), nullable=False, index=True)
    client_id = Column(Integer, ForeignKey("users.id"), nullable=False, index=True)
    reason = Column(Text, nullable=False)
    created_at = Column(DateTime, default=datetime.utcnow, index=True)
