"""
API Dependency Injection Module

Provides the dependencies required by FastAPI routes.
"""

from typing import Annotated

from fastapi import Depends, Request

from catalog.config import get_settings
from catalog.services import OperationDispatcher, StoreProvisioner


def get_provisioner(request: Request) -> StoreProvisioner:
    """
    Get the application-wide store provisioner

    Created once in the application lifespan so that store handles are
    shared across requests.
    """
    return request.app.state.provisioner


ProvisionerDep = Annotated[StoreProvisioner, Depends(get_provisioner)]


def get_dispatcher(provisioner: ProvisionerDep) -> OperationDispatcher:
    """Get the operation dispatcher"""
    return OperationDispatcher(get_settings(), provisioner)


DispatcherDep = Annotated[OperationDispatcher, Depends(get_dispatcher)]
