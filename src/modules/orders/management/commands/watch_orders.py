from __future__ import annotations

import signal

from django.core.management.base import BaseCommand

from modules.orders.dtos import OrdersOverviewDTO
from modules.orders.repositories import get_order_repository
from modules.orders.store import OrderStore


class Command(BaseCommand):
    help = "Follow one customer's orders live and print the grouped view on every change."

    def add_arguments(self, parser):
        parser.add_argument("uid", help="Customer uid (orders.userId).")
        parser.add_argument(
            "--once",
            action="store_true",
            help="Print the first snapshot and exit.",
        )
        parser.add_argument("--timeout", type=float, default=10.0)

    def handle(self, *args, **options):
        store = OrderStore(
            get_order_repository(),
            owner_id=options["uid"],
            on_change=self._print_overview,
        )
        with store:
            if options["once"]:
                if not store.pump(timeout=options["timeout"], max_events=1):
                    self.stderr.write("No snapshot received.")
                return
            signal.signal(signal.SIGINT, lambda *_: store.stop())
            store.run()

    def _print_overview(self, overview: OrdersOverviewDTO) -> None:
        header = f"Active orders: {overview.badge_count}"
        if overview.stale:
            header += " (stale)"
        self.stdout.write(self.style.SUCCESS(header))
        for bucket, views in overview.groups.model_dump().items():
            self.stdout.write(f"{bucket.title()} ({len(views)})")
            for view in views:
                self.stdout.write(
                    f"  {view['label']} · {view['status']} · {view['total_display']}"
                )
