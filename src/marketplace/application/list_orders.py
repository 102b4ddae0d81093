"""Application service: List Orders use case (query)."""

from __future__ import annotations

from marketplace.application.dto import OrderDTO
from marketplace.domain.model.cart import CustomerContext
from marketplace.domain.repository.unit_of_work import UnitOfWorkFactory


class ListOrdersHandler:

    def __init__(self, uow_factory: UnitOfWorkFactory) -> None:
        self._uow_factory = uow_factory

    def handle(self, customer: CustomerContext) -> list[OrderDTO]:
        with self._uow_factory() as uow:
            orders = uow.orders.list_for_customer(customer.id)
        return [OrderDTO.from_domain(order) for order in orders]
