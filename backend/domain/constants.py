"""
Domain constants used across services/routers.
"""

from domain.enums import OrderStatus, GarmentKind

# Closed set of garment kinds, in display order
GARMENT_KINDS: tuple[GarmentKind, ...] = (
    GarmentKind.SHIRT,
    GarmentKind.PANT,
    GarmentKind.DRESS,
    GarmentKind.JACKET,
)

STATUS_LABELS: dict[OrderStatus, str] = {
    OrderStatus.PLACED: "Order Placed",
    OrderStatus.ACCEPTED: "Order Accepted",
    OrderStatus.PICKED_UP: "Picked Up",
    OrderStatus.WASHING: "Washing",
    OrderStatus.IRONING: "Ironing",
    OrderStatus.PACKING: "Packing",
    OrderStatus.OUT_FOR_DELIVERY: "Out for Delivery",
    OrderStatus.CLIENT_CONFIRMED: "Confirmed by Client",
    OrderStatus.DELIVERED: "Delivered",
    OrderStatus.REJECTED: "Rejected",
}

# Status -> key in the order's sparse timestamp mapping
TIMESTAMP_KEYS: dict[OrderStatus, str] = {
    OrderStatus.PLACED: "placedAt",
    OrderStatus.ACCEPTED: "acceptedAt",
    OrderStatus.PICKED_UP: "pickedUpAt",
    OrderStatus.WASHING: "washingAt",
    OrderStatus.IRONING: "ironingAt",
    OrderStatus.PACKING: "packingAt",
    OrderStatus.OUT_FOR_DELIVERY: "outForDeliveryAt",
    OrderStatus.CLIENT_CONFIRMED: "clientConfirmedAt",
    OrderStatus.DELIVERED: "deliveredAt",
    OrderStatus.REJECTED: "rejectedAt",
}

PAID_AT_KEY = "paidAt"

# Timestamp key -> orders table column
TIMESTAMP_COLUMNS: dict[str, str] = {
    "placedAt": "placed_at",
    "acceptedAt": "accepted_at",
    "pickedUpAt": "picked_up_at",
    "washingAt": "washing_at",
    "ironingAt": "ironing_at",
    "packingAt": "packing_at",
    "outForDeliveryAt": "out_for_delivery_at",
    "clientConfirmedAt": "client_confirmed_at",
    "deliveredAt": "delivered_at",
    "rejectedAt": "rejected_at",
    PAID_AT_KEY: "paid_at",
}

TERMINAL_STATUSES = frozenset({OrderStatus.DELIVERED, OrderStatus.REJECTED})

# Collection names for order subscriptions
ADMIN_ORDERS_COLLECTION = "orders"
CLIENT_ORDERS_COLLECTION = "clients/{client_id}/orders"
