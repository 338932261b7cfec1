from __future__ import annotations

from decimal import Decimal

import structlog
from django.core.management.base import BaseCommand
from django.db import DatabaseError

from modules.core.exceptions import DomainError
from modules.products.dtos import CreateProductDTO
from modules.products.models import Product
from modules.products.repositories.django_repository import ProductDjangoRepository
from modules.products.services import ProductService

logger = structlog.get_logger(__name__)

SAMPLE_PRODUCTS = [
    ("Wireless Mouse", "Electronics", "24.90", 120, "Ergonomic 2.4GHz mouse."),
    ("Mechanical Keyboard", "Electronics", "89.00", 45, "Hot-swappable switches."),
    ("USB-C Hub", "Electronics", "39.50", 80, "7-in-1 adapter with HDMI."),
    ("Noise Cancelling Headphones", "Electronics", "199.99", 20, "Over-ear, 30h battery."),
    ("Espresso Beans 1kg", "Grocery", "18.75", 200, "Medium roast, whole bean."),
    ("Green Tea Sampler", "Grocery", "12.40", 150, "Twelve loose-leaf varieties."),
    ("Running Shoes", "Sports", "74.95", 60, "Lightweight road trainers."),
    ("Yoga Mat", "Sports", "29.00", 90, "6mm non-slip mat."),
    ("Stainless Water Bottle", "Sports", "15.99", 0, "Insulated, 750ml."),
    ("Python Cookbook", "Books", "44.99", 35, "Recipes for idiomatic Python."),
    ("Desk Lamp", "Home", "32.00", 40, "Dimmable LED with USB port."),
    ("Cast Iron Skillet", "Home", "41.25", 25, "Pre-seasoned, 26cm."),
]


class Command(BaseCommand):
    help = "Seed the catalog with sample products (existing names are skipped)."

    def add_arguments(self, parser):
        parser.add_argument(
            "--limit",
            type=int,
            default=None,
            help="Only seed the first N sample products.",
        )

    def handle(self, *args, **options):
        service = ProductService(repository=ProductDjangoRepository())
        samples = SAMPLE_PRODUCTS[: options["limit"]]
        created = skipped = failed = 0

        self.stdout.write("Seeding catalog...")
        for name, category, price, stock, description in samples:
            if Product.objects.filter(name=name).exists():
                skipped += 1
                continue
            try:
                service.create_product(
                    CreateProductDTO(
                        name=name,
                        category=category,
                        price=Decimal(price),
                        stock_quantity=stock,
                        description=description,
                    )
                )
            except (DomainError, DatabaseError, ValueError) as exc:
                failed += 1
                logger.error("seed.product_failed", name=name, error=str(exc))
                continue
            created += 1

        logger.info("seed.completed", created=created, skipped=skipped, failed=failed)
        self.stdout.write(
            self.style.SUCCESS(
                f"Seed completed: created={created}, skipped={skipped}, failed={failed}"
            )
        )
