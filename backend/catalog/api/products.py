"""
Product API

Maps HTTP requests onto catalog operations:

POST   /products       -> create  (write, primary store)
GET    /products/{id}  -> get     (read, acceleration cache -> primary store)
PUT    /products/{id}  -> update  (write, primary store)
DELETE /products/{id}  -> delete  (write, primary store)
GET    /products       -> list    (read, acceleration cache -> primary store)
"""

from typing import Optional

from fastapi import APIRouter, Query, status
from fastapi.responses import JSONResponse

from catalog.api.deps import DispatcherDep
from catalog.domain.operation import OperationKind, OperationRequest, OperationResult
from catalog.domain.product import ProductCreate, ProductUpdate

router = APIRouter(
    prefix="/products",
    tags=["Products"],
)

ACCELERATION_HEADER = "X-Using-Acceleration"


def render(result: OperationResult, using_acceleration: bool) -> JSONResponse:
    """
    Build the HTTP response for an operation result

    Args:
        result: Dispatcher result
        using_acceleration: Whether acceleration is configured, sent as a header
    """
    headers = {ACCELERATION_HEADER: "true" if using_acceleration else "false"}

    if result.error is not None:
        return JSONResponse(
            content=result.error.to_dict(),
            status_code=result.error.status_code,
            headers=headers,
        )

    status_code = (
        status.HTTP_201_CREATED if result.kind is OperationKind.CREATE else status.HTTP_200_OK
    )
    return JSONResponse(
        content={**result.body, "metadata": result.metadata.to_dict()},
        status_code=status_code,
        headers=headers,
    )


async def _run(dispatcher: DispatcherDep, request: OperationRequest) -> JSONResponse:
    result = await dispatcher.dispatch(request)
    return render(result, dispatcher.provisioner.is_acceleration_configured())


@router.post("", status_code=status.HTTP_201_CREATED)
async def create_product(data: ProductCreate, dispatcher: DispatcherDep):
    """
    Create Product

    Requires name, category and price.
    """
    return await _run(dispatcher, OperationRequest(kind=OperationKind.CREATE, payload=data))


@router.get("")
async def list_products(
    dispatcher: DispatcherDep,
    category: Optional[str] = Query(None, description="Filter by category"),
    limit: Optional[int] = Query(None, ge=1, description="Max items"),
):
    """
    List Products

    Uses the category index when filtering, otherwise a bounded table scan.
    """
    return await _run(
        dispatcher,
        OperationRequest(kind=OperationKind.LIST, category=category, limit=limit),
    )


@router.get("/{product_id}")
async def get_product(product_id: str, dispatcher: DispatcherDep):
    """
    Get the latest version of a Product
    """
    return await _run(dispatcher, OperationRequest(kind=OperationKind.GET, product_id=product_id))


@router.put("/{product_id}")
async def update_product(product_id: str, data: ProductUpdate, dispatcher: DispatcherDep):
    """
    Update Product

    Without "version" in the body a new version row is written.
    """
    return await _run(
        dispatcher,
        OperationRequest(kind=OperationKind.UPDATE, product_id=product_id, payload=data),
    )


@router.delete("/{product_id}")
async def delete_product(
    product_id: str,
    dispatcher: DispatcherDep,
    version: Optional[int] = Query(None, description="Version to delete, all versions if omitted"),
):
    """
    Delete Product
    """
    return await _run(
        dispatcher,
        OperationRequest(kind=OperationKind.DELETE, product_id=product_id, version=version),
    )
