"""
Service Layer Module Initialization
"""

from catalog.services.provisioner import StoreProvisioner
from catalog.services.write_service import ProductWriteService
from catalog.services.read_service import ProductReadService
from catalog.services.dispatcher import OperationDispatcher

__all__ = [
    "StoreProvisioner",
    "ProductWriteService",
    "ProductReadService",
    "OperationDispatcher",
]
