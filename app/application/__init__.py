"""
===============================================================================
APPLICATION LAYER (Public API / Exports)
===============================================================================

Expone los puntos de entrada estables de la capa de aplicación:
  - DualStoreAccessor: lecturas con fallback y escrituras con espejo
  - RoleStateSynchronizer: propagación de rol/estado/password a ambos stores
  - guarded: llamada a store con timeout acotado

Nota:
  - Los casos de uso se importan desde `usecases/` subdirectories.
===============================================================================
"""

from .dual_store import STORE_OF_RECORD, DualStoreAccessor
from .role_sync import RoleStateSynchronizer, SyncTarget
from .store_calls import StoreCall, guarded

__all__ = [
    "DualStoreAccessor",
    "RoleStateSynchronizer",
    "STORE_OF_RECORD",
    "StoreCall",
    "SyncTarget",
    "guarded",
]
