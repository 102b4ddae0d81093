"""Application service: Show Order use case (query)."""

from __future__ import annotations

from marketplace.application.dto import OrderDTO
from marketplace.domain.exceptions import OrderNotFoundError
from marketplace.domain.model.cart import CustomerContext
from marketplace.domain.repository.unit_of_work import UnitOfWorkFactory


class ShowOrderHandler:

    def __init__(self, uow_factory: UnitOfWorkFactory) -> None:
        self._uow_factory = uow_factory

    def handle(self, order_id: int, customer: CustomerContext | None = None) -> OrderDTO:
        with self._uow_factory() as uow:
            order = uow.orders.get_by_id(order_id)
        # Other customers' orders are indistinguishable from missing ones.
        if order is None or (customer is not None and order.customer_id != customer.id):
            raise OrderNotFoundError(f"Order #{order_id} not found")
        return OrderDTO.from_domain(order)
