from __future__ import annotations

from datetime import timedelta

from django.contrib.auth import get_user_model
from django.core.management.base import BaseCommand
from django.utils import timezone

from modules.orders.repositories import get_order_repository

DEMO_ORDERS = [
    {
        "productTitle": "Standard Mobile Toilet",
        "status": "processing",
        "type": "buy",
        "total": 154000,
        "age_days": 0,
    },
    {
        "items": [
            {"id": "vip-cabin", "title": "VIP Cabin", "price": "₦250,000", "qty": 1},
            {"id": "hand-wash", "title": "Hand Wash Station", "price": 45000, "qty": 2},
            {"id": "sanitiser", "title": "Sanitiser Refill", "price": 3500, "qty": 4},
        ],
        "status": "in_transit",
        "type": "buy",
        "total": 358000,
        "age_days": 2,
    },
    {
        "productTitle": "Event Toilet Rental (3 units)",
        "status": "waiting_admin_price",
        "type": "rent",
        "rentalStartDate": "2026-12-20",
        "rentalEndDate": "2026-12-27",
        "age_days": 1,
    },
    {
        "productTitle": "Portable Shower Unit",
        "status": "delivered",
        "type": "buy",
        "amount": "NGN 420,000",
        "age_days": 30,
    },
    {
        "productTitle": "Construction Site Toilet",
        "status": "cancelled_by_customer",
        "type": "buy",
        "price": 98000,
        "age_days": 45,
    },
]


class Command(BaseCommand):
    help = "Seed a login and demo orders (one per bucket) for development."

    def add_arguments(self, parser):
        parser.add_argument("--uid", default="demo-customer", help="Customer uid / username.")
        parser.add_argument("--password", default="demo12345")

    def handle(self, *args, **options):
        uid = options["uid"]
        self.stdout.write(f"Seeding development data for {uid}...")

        user_created = self._seed_user(uid, options["password"])
        orders_created = self._seed_orders(uid)

        self.stdout.write(
            self.style.SUCCESS(
                f"Seed completed: users={int(user_created)}, orders={orders_created}"
            )
        )

    def _seed_user(self, uid: str, password: str) -> bool:
        User = get_user_model()
        if User.objects.filter(username=uid).exists():
            return False
        User.objects.create_user(uid, password=password)
        return True

    def _seed_orders(self, uid: str) -> int:
        repository = get_order_repository()
        if repository.list_by_owner(uid):
            self.stdout.write("Orders already present, skipping.")
            return 0
        now = timezone.now()
        for template in DEMO_ORDERS:
            data = dict(template)
            age = data.pop("age_days")
            data["userId"] = uid
            data["createdAt"] = now - timedelta(days=age)
            repository.create(data)
        return len(DEMO_ORDERS)
