"""Order use cases (checkout, historial, administración de estados)."""

from .orders import (
    CreateOrderUseCase,
    GetOrderUseCase,
    ListAllOrdersUseCase,
    ListMyOrdersUseCase,
    OrderLineInput,
    UpdateOrderStatusUseCase,
)

__all__ = [
    "CreateOrderUseCase",
    "GetOrderUseCase",
    "ListAllOrdersUseCase",
    "ListMyOrdersUseCase",
    "OrderLineInput",
    "UpdateOrderStatusUseCase",
]
