"""Cart URL configuration.

The nested session/item routes do not fit a router, so the viewset
actions are bound explicitly.
"""

from __future__ import annotations

from django.urls import path

from modules.cart.views import CartViewSet

cart_detail = CartViewSet.as_view({"get": "retrieve", "delete": "clear"})
cart_items = CartViewSet.as_view({"post": "add_item"})
cart_item_detail = CartViewSet.as_view(
    {"put": "update_item", "patch": "update_item", "delete": "remove_item"}
)

urlpatterns = [
    path("cart/<str:session_id>/", cart_detail, name="cart-detail"),
    path("cart/<str:session_id>/items/", cart_items, name="cart-items"),
    path(
        "cart/<str:session_id>/items/<uuid:item_id>/",
        cart_item_detail,
        name="cart-item-detail",
    ),
]
