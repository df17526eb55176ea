"""Order API views.

Exposes the ``OrderService`` read models via HTTP using a DRF ViewSet.
The authenticated user's ``username`` is their storage-side uid.
Domain exceptions are caught and translated into HTTP status codes; an
access denial returns no order fields at all.
"""

from __future__ import annotations

from typing import Optional

from rest_framework import status
from rest_framework.request import Request
from rest_framework.response import Response
from rest_framework.throttling import BaseThrottle
from rest_framework.viewsets import ViewSet

from modules.orders.dtos import Viewer
from modules.orders.exceptions import (
    OrderAccessDenied,
    OrderNotFound,
    OrderRepositoryError,
)
from modules.orders.repositories import get_order_repository
from modules.orders.serializers import OrderViewSerializer, OrdersOverviewSerializer
from modules.orders.services import OrderService


def viewer_from_request(request: Request) -> Optional[Viewer]:
    user = request.user
    if not getattr(user, "is_authenticated", False):
        return None
    uid = getattr(user, "username", "") or ""
    return Viewer(id=uid) if uid else None


class OrderViewSet(ViewSet):
    """ViewSet for the signed-in customer's orders.

    Uses ``OrderService`` with the configured repository (DIP).
    """

    def __init__(self, **kwargs) -> None:
        super().__init__(**kwargs)
        self._service = OrderService(order_repository=get_order_repository())

    def get_throttles(self) -> list[BaseThrottle]:
        self.throttle_scope = "order_listing" if self.action in {"list", "retrieve"} else None
        return super().get_throttles()

    # ------------------------------------------------------------------
    # List / Retrieve
    # ------------------------------------------------------------------

    def list(self, request: Request) -> Response:
        """GET /api/v1/orders/

        Orders grouped into active/past/cancelled plus the active badge.
        """
        viewer = viewer_from_request(request)
        if viewer is None:
            return Response(
                {"detail": "Authenticated user has no uid."},
                status=status.HTTP_403_FORBIDDEN,
            )
        try:
            overview = self._service.overview_for(viewer)
        except OrderRepositoryError:
            return Response(
                {"detail": "Orders are temporarily unavailable."},
                status=status.HTTP_503_SERVICE_UNAVAILABLE,
            )
        return Response(OrdersOverviewSerializer(overview).data)

    def retrieve(self, request: Request, pk: str | None = None) -> Response:
        """GET /api/v1/orders/{pk}/"""
        if pk is None:
            return Response(
                {"detail": "Order not found."},
                status=status.HTTP_404_NOT_FOUND,
            )
        try:
            view = self._service.get_order_for(pk, viewer_from_request(request))
        except OrderNotFound:
            return Response(
                {"detail": "Order not found."},
                status=status.HTTP_404_NOT_FOUND,
            )
        except OrderAccessDenied:
            return Response(
                {"detail": "You do not have access to this order."},
                status=status.HTTP_403_FORBIDDEN,
            )
        except OrderRepositoryError:
            return Response(
                {"detail": "Orders are temporarily unavailable."},
                status=status.HTTP_503_SERVICE_UNAVAILABLE,
            )
        return Response(OrderViewSerializer(view).data)
