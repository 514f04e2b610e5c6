from fastapi import APIRouter, Depends, HTTPException, status

from ....domain.errors import NotFound
from ....infrastructure.repositories import CatalogRepository
from ..authz import get_user_id, require_admin
from ..deps import get_catalogs
from ..schemas import CatalogCreate, CatalogOut, ItemCreate, ItemOut

router = APIRouter(prefix="/api/catalogs", tags=["catalogs"])

@router.get("", response_model=list[CatalogOut], dependencies=[Depends(get_user_id)])
def list_catalogs(catalogs: CatalogRepository = Depends(get_catalogs)):
    return [CatalogOut.model_validate(c) for c in catalogs.list_all()]

@router.get("/{catalog_name}/items/{item_index}", response_model=ItemOut, dependencies=[Depends(get_user_id)])
def get_item(catalog_name: str, item_index: int, catalogs: CatalogRepository = Depends(get_catalogs)):
    item = catalogs.get_item(catalog_name, item_index)
    if item is None:
        raise NotFound(f"item {item_index} of {catalog_name!r} not found")
    return ItemOut.model_validate(item)

# --- Admin-only:

@router.post("", response_model=CatalogOut, status_code=status.HTTP_201_CREATED, dependencies=[Depends(require_admin)])
def create_catalog(payload: CatalogCreate, catalogs: CatalogRepository = Depends(get_catalogs)):
    return CatalogOut.model_validate(catalogs.create(payload.name, payload.title))

@router.post("/{catalog_name}/items", response_model=ItemOut, status_code=status.HTTP_201_CREATED,
             dependencies=[Depends(require_admin)])
def append_item(catalog_name: str, payload: ItemCreate, catalogs: CatalogRepository = Depends(get_catalogs)):
    if catalogs.get(catalog_name) is None:
        raise HTTPException(404, "catalog not found")
    return ItemOut.model_validate(catalogs.append_item(catalog_name, payload.key, payload.content))
