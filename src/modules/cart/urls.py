"""Cart and checkout URL configuration."""

from __future__ import annotations

from django.urls import path

from modules.cart.views import CartViewSet, CheckoutViewSet

cart = CartViewSet.as_view({"get": "summary", "delete": "clear"})
cart_items = CartViewSet.as_view({"post": "add_item"})
cart_item = CartViewSet.as_view({"delete": "remove_item"})
cart_item_increment = CartViewSet.as_view({"post": "increment"})
cart_item_decrement = CartViewSet.as_view({"post": "decrement"})
checkout_start = CheckoutViewSet.as_view({"post": "start"})
checkout_confirm = CheckoutViewSet.as_view({"post": "confirm"})

urlpatterns = [
    path("cart/", cart, name="cart"),
    path("cart/items/", cart_items, name="cart-items"),
    path("cart/items/<str:item_id>/", cart_item, name="cart-item"),
    path(
        "cart/items/<str:item_id>/increment/",
        cart_item_increment,
        name="cart-item-increment",
    ),
    path(
        "cart/items/<str:item_id>/decrement/",
        cart_item_decrement,
        name="cart-item-decrement",
    ),
    path("checkout/", checkout_start, name="checkout"),
    path("checkout/confirm/", checkout_confirm, name="checkout-confirm"),
]
