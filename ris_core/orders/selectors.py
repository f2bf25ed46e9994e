# ris_core/orders/selectors.py
from __future__ import annotations

from ris_core.orders.models import Order


class OrderSelector:
    class NotFound(Exception):
        pass

    @staticmethod
    def get_order(*, order_id) -> Order:
        try:
            return Order.objects.select_related("patient", "orderer").get(id=order_id)
        except Order.DoesNotExist:
            raise OrderSelector.NotFound(f"Order {order_id} does not exist.")
