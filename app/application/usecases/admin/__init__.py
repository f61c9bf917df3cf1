"""Admin use cases."""

from .admin import (
    AdminDashboardUseCase,
    ChangeUserRoleUseCase,
    DashboardStats,
    ListUsersUseCase,
    RoleChangeTarget,
    TopProduct,
)

__all__ = [
    "AdminDashboardUseCase",
    "ChangeUserRoleUseCase",
    "DashboardStats",
    "ListUsersUseCase",
    "RoleChangeTarget",
    "TopProduct",
]
