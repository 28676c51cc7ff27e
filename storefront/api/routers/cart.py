#storefront/api/routers/cart.py
from fastapi import APIRouter, Depends, HTTPException, Query
from sqlalchemy.orm import Session

from storefront.api.dependencies import get_lock_service, get_notification_service, validation_http_error
from storefront.data.database import get_db
from storefront.domain.errors import (
    AuthorizationError,
    CheckoutInProgressError,
    NotFoundError,
    ValidationError,
)
from storefront.domain.schemas import (
    CartItemIn,
    CartItemUpdate,
    CartMutationOut,
    CartOut,
    CheckoutOut,
)
from storefront.services.cart_service import CartService
from storefront.services.checkout_service import CheckoutService
from storefront.services.lock_service import LockService
from storefront.services.notification_service import NotificationService
from storefront.utils.settings import LOW_STOCK_THRESHOLD

router = APIRouter(prefix="/cart", tags=["cart"])


@router.get("/", response_model=CartOut)
def get_cart(user_id: int = Query(...), db: Session = Depends(get_db)):
    try:
        return CartService(db).get_cart(user_id)
    except ValidationError as e:
        raise validation_http_error(e)


@router.post("/", response_model=CartMutationOut)
def add_item(
    payload: CartItemIn,
    user_id: int = Query(...),
    db: Session = Depends(get_db),
):
    svc = CartService(db)
    try:
        cart, message = svc.add_item(user_id, payload.product_id, payload.quantity)
    except ValidationError as e:
        raise validation_http_error(e)
    return {"message": message, "cart": cart}


@router.put("/items/{item_id}", response_model=CartMutationOut)
def update_item(
    item_id: int,
    payload: CartItemUpdate,
    user_id: int = Query(...),
    db: Session = Depends(get_db),
):
    svc = CartService(db)
    try:
        cart = svc.update_item(user_id, item_id, payload.quantity)
    except AuthorizationError:
        raise HTTPException(status_code=403, detail="Forbidden")
    except NotFoundError as e:
        raise HTTPException(status_code=404, detail=str(e))
    except ValidationError as e:
        raise validation_http_error(e)
    return {"message": "Cart item quantity updated.", "cart": cart}


@router.delete("/items/{item_id}", response_model=CartMutationOut)
def remove_item(
    item_id: int,
    user_id: int = Query(...),
    db: Session = Depends(get_db),
):
    svc = CartService(db)
    try:
        cart = svc.remove_item(user_id, item_id)
    except AuthorizationError:
        raise HTTPException(status_code=403, detail="Forbidden")
    except NotFoundError as e:
        raise HTTPException(status_code=404, detail=str(e))
    return {"message": "Item removed from cart.", "cart": cart}


@router.post("/checkout", response_model=CheckoutOut)
def checkout(
    user_id: int = Query(...),
    db: Session = Depends(get_db),
    lock_service: LockService = Depends(get_lock_service),
    notifications: NotificationService = Depends(get_notification_service),
):
    """
    Checkout w jednej transakcji.
    Powiadomienia o niskim stanie kolejkowane dopiero po commit.
    """
    svc = CheckoutService(db, lock_service, low_stock_threshold=LOW_STOCK_THRESHOLD)
    try:
        result = svc.checkout(user_id)
    except CheckoutInProgressError as e:
        raise HTTPException(status_code=409, detail=str(e))
    except ValidationError as e:
        raise validation_http_error(e)

    notifications.dispatch_low_stock(result.low_stock_product_ids, LOW_STOCK_THRESHOLD)

    return {
        "message": "Checkout completed successfully! Thank you for your purchase.",
        "summary": result.summary,
    }
