"""Cart and checkout API views.

Exposes ``CartService`` and ``CheckoutService`` via HTTP using DRF
ViewSets.  The cart belongs to the authenticated user's uid; request
bodies are validated by the Pydantic DTOs and domain exceptions are
translated into HTTP status codes.
"""

from __future__ import annotations

from typing import Optional

from pydantic import ValidationError as PydanticValidationError
from rest_framework import status
from rest_framework.request import Request
from rest_framework.response import Response
from rest_framework.viewsets import ViewSet

from modules.cart.checkout import CheckoutService
from modules.cart.dtos import CartItem, CheckoutDetailsDTO
from modules.cart.exceptions import (
    CartItemNotFound,
    CartPersistenceError,
    EmptyCart,
    PaymentInitializationError,
    PaymentNotConfirmed,
)
from modules.cart.gateways import get_payment_gateway
from modules.cart.serializers import CartSummarySerializer, PaymentSessionSerializer
from modules.cart.services import CartService
from modules.cart.storage import CacheCartStorage
from modules.orders.exceptions import OrderRepositoryError
from modules.orders.repositories import get_order_repository
from modules.orders.serializers import OrderViewSerializer
from modules.orders.services import OrderService
from modules.orders.views import viewer_from_request

NO_UID = {"detail": "Authenticated user has no uid."}
ITEM_NOT_FOUND = {"detail": "Item not in cart."}
CART_UNAVAILABLE = {"detail": "Cart could not be saved. Please retry."}


class _OwnedCartMixin:
    """Resolves the cart of the signed-in customer."""

    def _cart_for(self, request: Request) -> Optional[CartService]:
        viewer = viewer_from_request(request)
        if viewer is None:
            return None
        return CartService(storage=CacheCartStorage(), owner_id=viewer.id)

    def handle_exception(self, exc):
        # Cart storage unreachable while loading the cart.
        if isinstance(exc, CartPersistenceError):
            return Response(CART_UNAVAILABLE, status=status.HTTP_503_SERVICE_UNAVAILABLE)
        return super().handle_exception(exc)


class CartViewSet(_OwnedCartMixin, ViewSet):
    """ViewSet for the signed-in customer's cart."""

    throttle_scope = "cart"

    def summary(self, request: Request) -> Response:
        """GET /api/v1/cart/"""
        cart = self._cart_for(request)
        if cart is None:
            return Response(NO_UID, status=status.HTTP_403_FORBIDDEN)
        return Response(CartSummarySerializer(cart.summary()).data)

    def clear(self, request: Request) -> Response:
        """DELETE /api/v1/cart/"""
        cart = self._cart_for(request)
        if cart is None:
            return Response(NO_UID, status=status.HTTP_403_FORBIDDEN)
        try:
            cart.clear()
        except CartPersistenceError:
            return Response(CART_UNAVAILABLE, status=status.HTTP_503_SERVICE_UNAVAILABLE)
        return Response(status=status.HTTP_204_NO_CONTENT)

    # ------------------------------------------------------------------
    # Lines
    # ------------------------------------------------------------------

    def add_item(self, request: Request) -> Response:
        """POST /api/v1/cart/items/

        Accepts ``{"id", "title", "price", "imageUrl", "qty"}``; ``price``
        may be a number or a currency string.
        """
        cart = self._cart_for(request)
        if cart is None:
            return Response(NO_UID, status=status.HTTP_403_FORBIDDEN)

        data = dict(request.data)
        try:
            qty = int(data.pop("qty", 1))
            item = CartItem.model_validate(data)
            cart.add(item, qty=qty)
        except (PydanticValidationError, ValueError, TypeError) as exc:
            return Response({"detail": str(exc)}, status=status.HTTP_400_BAD_REQUEST)
        except CartPersistenceError:
            return Response(CART_UNAVAILABLE, status=status.HTTP_503_SERVICE_UNAVAILABLE)

        out = CartSummarySerializer(cart.summary())
        return Response(out.data, status=status.HTTP_201_CREATED)

    def increment(self, request: Request, item_id: str) -> Response:
        """POST /api/v1/cart/items/{item_id}/increment/"""
        return self._change(request, item_id, CartService.increment)

    def decrement(self, request: Request, item_id: str) -> Response:
        """POST /api/v1/cart/items/{item_id}/decrement/

        Quantity never drops below 1; use DELETE to drop the line.
        """
        return self._change(request, item_id, CartService.decrement)

    def remove_item(self, request: Request, item_id: str) -> Response:
        """DELETE /api/v1/cart/items/{item_id}/"""
        return self._change(request, item_id, CartService.remove)

    def _change(self, request: Request, item_id: str, command) -> Response:
        cart = self._cart_for(request)
        if cart is None:
            return Response(NO_UID, status=status.HTTP_403_FORBIDDEN)
        try:
            command(cart, item_id)
        except CartItemNotFound:
            return Response(ITEM_NOT_FOUND, status=status.HTTP_404_NOT_FOUND)
        except CartPersistenceError:
            return Response(CART_UNAVAILABLE, status=status.HTTP_503_SERVICE_UNAVAILABLE)
        return Response(CartSummarySerializer(cart.summary()).data)


class CheckoutViewSet(_OwnedCartMixin, ViewSet):
    """ViewSet for paying for the cart."""

    throttle_scope = "checkout"

    def _checkout_for(self, cart: CartService) -> CheckoutService:
        repository = get_order_repository()
        return CheckoutService(
            cart=cart,
            order_service=OrderService(order_repository=repository),
            order_repository=repository,
            gateway=get_payment_gateway(),
        )

    def start(self, request: Request) -> Response:
        """POST /api/v1/checkout/

        Body: delivery details.  Returns the payment link and reference.
        """
        cart = self._cart_for(request)
        if cart is None:
            return Response(NO_UID, status=status.HTTP_403_FORBIDDEN)
        try:
            details = CheckoutDetailsDTO.model_validate(request.data)
        except (PydanticValidationError, ValueError) as exc:
            return Response({"detail": str(exc)}, status=status.HTTP_400_BAD_REQUEST)

        try:
            session = self._checkout_for(cart).start(details)
        except EmptyCart as exc:
            return Response({"detail": str(exc)}, status=status.HTTP_409_CONFLICT)
        except PaymentInitializationError as exc:
            return Response({"detail": str(exc)}, status=status.HTTP_502_BAD_GATEWAY)

        return Response(PaymentSessionSerializer(session).data, status=status.HTTP_201_CREATED)

    def confirm(self, request: Request) -> Response:
        """POST /api/v1/checkout/confirm/

        Body: ``reference``, ``redirect_url`` and the delivery details.
        Replaying a confirmed reference returns the same order.
        """
        cart = self._cart_for(request)
        if cart is None:
            return Response(NO_UID, status=status.HTTP_403_FORBIDDEN)

        reference = request.data.get("reference")
        redirect_url = request.data.get("redirect_url")
        for field, value in (("reference", reference), ("redirect_url", redirect_url)):
            if not value:
                return Response(
                    {"detail": f"Field '{field}' is required."},
                    status=status.HTTP_400_BAD_REQUEST,
                )
        try:
            details = CheckoutDetailsDTO.model_validate(request.data)
        except (PydanticValidationError, ValueError) as exc:
            return Response({"detail": str(exc)}, status=status.HTTP_400_BAD_REQUEST)

        checkout = self._checkout_for(cart)
        try:
            order = checkout.confirm(reference, details, redirect_url=redirect_url)
        except PaymentNotConfirmed as exc:
            return Response({"detail": str(exc)}, status=status.HTTP_402_PAYMENT_REQUIRED)
        except EmptyCart as exc:
            return Response({"detail": str(exc)}, status=status.HTTP_409_CONFLICT)
        except (OrderRepositoryError, CartPersistenceError):
            return Response(
                {"detail": "Order could not be recorded. Please retry."},
                status=status.HTTP_503_SERVICE_UNAVAILABLE,
            )

        view = OrderService(order_repository=get_order_repository()).builder.build(order)
        return Response(OrderViewSerializer(view).data, status=status.HTTP_201_CREATED)
