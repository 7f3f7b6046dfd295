"""
Domain enums for the order lifecycle, payments and garments.
"""

from enum import Enum


class OrderStatus(str, Enum):
    PLACED = "placed"
    ACCEPTED = "accepted"
    PICKED_UP = "picked-up"
    WASHING = "washing"
    IRONING = "ironing"
    PACKING = "packing"
    OUT_FOR_DELIVERY = "out-for-delivery"
    CLIENT_CONFIRMED = "client-confirmed"
    DELIVERED = "delivered"
    REJECTED = "rejected"


class PaymentMethod(str, Enum):
    CASH = "cash"
    CARD = "card"
    UPI = "upi"


class PaymentStatus(str, Enum):
    PENDING = "pending"
    COMPLETED = "completed"
    FAILED = "failed"


class GarmentKind(str, Enum):
    SHIRT = "shirt"
    PANT = "pant"
    DRESS = "dress"
    JACKET = "jacket"


class UserRole(str, Enum):
    CLIENT = "client"
    ADMIN = "admin"


class StatusCategory(str, Enum):
    """Dashboard buckets used to filter order listings."""
    ALL = "all"
    PENDING = "pending"
    ACTIVE = "active"
    COMPLETED = "completed"
