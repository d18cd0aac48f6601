from fastapi import APIRouter, Depends
from app.application.service import InvoiceService
from app.application.schemas import InventoryItemCreate, InventoryItemRecord, LowStockAlertRead
from app.domain.errors import BillingError
from .routes import get_invoice_service, http_error

router = APIRouter(prefix="/inventory", tags=["inventory"])

@router.get("/", response_model=list[InventoryItemRecord])
def list_inventory(service: InvoiceService = Depends(get_invoice_service)):
    try:
        return service.list_inventory()
    except BillingError as e:
        raise http_error(e)

@router.post("/", response_model=InventoryItemRecord, status_code=201)
def create_inventory_item(payload: InventoryItemCreate, service: InvoiceService = Depends(get_invoice_service)):
    try:
        return service.add_inventory_item(payload)
    except BillingError as e:
        # duplicate names are reported by the store
        raise http_error(e)

@router.get("/low-stock", response_model=list[LowStockAlertRead])
def low_stock(service: InvoiceService = Depends(get_invoice_service)):
    """Out-of-stock items first, then ascending stock."""
    try:
        return [LowStockAlertRead.model_validate(a) for a in service.low_stock_alerts()]
    except BillingError as e:
        raise http_error(e)
