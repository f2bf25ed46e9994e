# ris_core/orders/services.py
from __future__ import annotations

from django.core.exceptions import ValidationError
from django.db import transaction
from django.utils import timezone

from ris_core.orders.models import Order
from ris_core.orders.selectors import OrderSelector


def _actor_id(actor) -> int | None:
    if actor is None or not getattr(actor, "is_authenticated", False):
        return None
    return actor.pk


def require_reason(field: str, reason: str | None) -> str:
    reason = (reason or "").strip()
    if not reason:
        raise ValidationError({field: "A reason is required."})
    return reason


class OrderService:
    """
    Write-model operations for Orders.
    - save_order creates an order or updates its clinical payload
    - lifecycle flags only change through void/unvoid/discontinue/undiscontinue
    - each call is its own transaction; the row is locked while it mutates
    """

    @staticmethod
    def _locked(order_id) -> Order:
        try:
            return Order.objects.select_for_update().get(id=order_id)
        except Order.DoesNotExist:
            raise OrderSelector.NotFound(f"Order {order_id} does not exist.")

    @staticmethod
    @transaction.atomic
    def save_order(*, order: Order) -> Order:
        if order.pk is None:
            order.full_clean()
            order.save()
            return order

        current = OrderService._locked(order.pk)
        for name in Order.PAYLOAD_FIELDS:
            attname = Order._meta.get_field(name).attname
            setattr(current, attname, getattr(order, attname))
        current.full_clean()
        current.save(update_fields=[*Order.PAYLOAD_FIELDS, "updated_at"])
        return current

    @staticmethod
    @transaction.atomic
    def void_order(*, order_id, reason: str, actor=None) -> Order:
        reason = require_reason("void_reason", reason)
        order = OrderService._locked(order_id)

        order.voided = True
        order.void_reason = reason
        order.voided_by_id = _actor_id(actor)
        order.date_voided = timezone.now()
        order.save(update_fields=["voided", "void_reason", "voided_by", "date_voided", "updated_at"])
        return order

    @staticmethod
    @transaction.atomic
    def unvoid_order(*, order_id) -> Order:
        order = OrderService._locked(order_id)

        order.voided = False
        order.void_reason = ""
        order.voided_by_id = None
        order.date_voided = None
        order.save(update_fields=["voided", "void_reason", "voided_by", "date_voided", "updated_at"])
        return order

    @staticmethod
    @transaction.atomic
    def discontinue_order(*, order_id, reason: str, discontinued_date=None, actor=None) -> Order:
        reason = require_reason("discontinued_reason", reason)
        order = OrderService._locked(order_id)

        order.discontinued = True
        order.discontinued_reason = reason
        order.discontinued_date = discontinued_date or timezone.now()
        order.discontinued_by_id = _actor_id(actor)
        order.save(
            update_fields=[
                "discontinued",
                "discontinued_reason",
                "discontinued_date",
                "discontinued_by",
                "updated_at",
            ]
        )
        return order

    @staticmethod
    @transaction.atomic
    def undiscontinue_order(*, order_id) -> Order:
        order = OrderService._locked(order_id)

        order.discontinued = False
        order.discontinued_reason = ""
        order.discontinued_date = None
        order.discontinued_by_id = None
        order.save(
            update_fields=[
                "discontinued",
                "discontinued_reason",
                "discontinued_date",
                "discontinued_by",
                "updated_at",
            ]
        )
        return order
