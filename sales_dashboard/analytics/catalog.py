"""
Product Catalog and Enrichment

In-store sales only carry a numeric product id. Names and prices come from
static per-location catalog files, each a JSON array of
{Id, Name, SalePrice, CostPrice}.

The catalog is loaded into an immutable snapshot, partitioned by in-store
store id. Reloading builds a new snapshot and swaps it in whole; requests
only ever read a snapshot.
"""

import json
from dataclasses import dataclass, field
from pathlib import Path
from types import MappingProxyType
from typing import Any, Dict, List, Mapping, Optional, Sequence

import structlog
from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator

from sales_dashboard.analytics.facts import ProductSales, TopProduct
from sales_dashboard.analytics.filters import Channel

logger = structlog.get_logger(__name__)

UNKNOWN_PRODUCT_NAME = "Unknown Product [{identifier}]"


class CatalogProduct(BaseModel):
    """One catalog entry"""

    model_config = ConfigDict(populate_by_name=True, frozen=True)

    id: str = Field(alias="Id")
    name: str = Field(alias="Name", min_length=1)
    sale_price: float = Field(alias="SalePrice", strict=True)
    cost_price: float = Field(alias="CostPrice", strict=True)

    @field_validator("id", mode="before")
    @classmethod
    def id_as_text(cls, v: Any) -> str:
        """Ids are numeric in the files but matched as text"""
        if v is None or isinstance(v, (bool, dict, list)):
            raise ValueError("Id must be a number or string")
        return str(v)


@dataclass(frozen=True)
class ProductCatalog:
    """Read-only product lookup, partitioned by in-store store id"""

    partitions: Mapping[str, Mapping[str, CatalogProduct]] = field(
        default_factory=lambda: MappingProxyType({})
    )

    def __len__(self) -> int:
        return sum(len(products) for products in self.partitions.values())

    def lookup(self, product_id: str, store_id: Optional[str] = None) -> Optional[CatalogProduct]:
        """
        Find a product.

        The transaction's own store partition is searched first, then every
        partition in load order.
        """
        if store_id is not None:
            product = self.partitions.get(store_id, {}).get(product_id)
            if product is not None:
                return product

        for products in self.partitions.values():
            product = products.get(product_id)
            if product is not None:
                return product
        return None


def _parse_products(raw: Any, path: Path) -> Dict[str, CatalogProduct]:
    """Validate one catalog file's entries, skipping invalid ones."""
    if not isinstance(raw, list):
        raise ValueError(f"{path.name} does not contain a valid JSON array.")

    products: Dict[str, CatalogProduct] = {}
    for entry in raw:
        try:
            product = CatalogProduct.model_validate(entry)
        except ValidationError as e:
            entry_id = entry.get("Id", "N/A") if isinstance(entry, dict) else "N/A"
            logger.warning(
                "Skipping catalog entry with missing or invalid Id, Name, SalePrice or CostPrice",
                file=path.name,
                product_id=entry_id,
                errors=e.error_count(),
            )
            continue

        # First entry wins on duplicate ids
        products.setdefault(product.id, product)

    return products


def load_catalog(sources: Mapping[str, Path]) -> ProductCatalog:
    """
    Load catalog files into a new snapshot.

    A missing, unreadable or malformed file is logged and leaves its
    partition empty; loading never raises.

    Args:
        sources: In-store store id -> catalog file, in load order

    Returns:
        ProductCatalog snapshot
    """
    partitions: Dict[str, Mapping[str, CatalogProduct]] = {}
    failed: List[str] = []

    for store_id, path in sources.items():
        logger.info("Loading product catalog", store_id=store_id, path=str(path))
        try:
            raw = json.loads(path.read_text(encoding="utf-8"))
            products = _parse_products(raw, path)
        except (OSError, ValueError) as e:
            logger.error("Failed to load product catalog", store_id=store_id, path=str(path), error=str(e))
            failed.append(store_id)
            products = {}

        partitions[store_id] = MappingProxyType(products)
        logger.info("Catalog partition loaded", store_id=store_id, products=len(products))

    catalog = ProductCatalog(partitions=MappingProxyType(partitions))

    if len(catalog) == 0:
        logger.critical(
            "No product details loaded; in-store products will show as unknown",
            sources=[str(path) for path in sources.values()],
        )
    elif failed:
        logger.warning("Product catalog incomplete", failed_partitions=failed, products=len(catalog))
    else:
        logger.info("Product catalog loaded", products=len(catalog))

    return catalog


class CatalogStore:
    """Holds the current catalog snapshot and replaces it atomically on reload."""

    def __init__(self, sources: Mapping[str, Path]):
        self._sources = dict(sources)
        self._snapshot = ProductCatalog()

    @property
    def snapshot(self) -> ProductCatalog:
        return self._snapshot

    def reload(self) -> ProductCatalog:
        snapshot = load_catalog(self._sources)
        self._snapshot = snapshot
        return snapshot


def enrich_products(
    products: Sequence[ProductSales],
    catalog: ProductCatalog,
    store_names: Mapping[str, str],
) -> List[TopProduct]:
    """
    Attach display names and prices to ranked product rows.

    In-store ids are resolved through the catalog; a miss gives a
    placeholder name instead of failing the request. Online rows already
    carry the product name and have no catalog prices.

    Args:
        products: Ranked product partials
        catalog: Current catalog snapshot
        store_names: In-store store id -> logical store name
    """
    enriched = []
    for product in products:
        if product.channel is Channel.ONLINE:
            enriched.append(
                TopProduct(
                    name=product.identifier,
                    channel=product.channel,
                    quantity=product.quantity,
                    revenue=product.revenue,
                )
            )
            continue

        store_name = store_names.get(product.store_id, product.store_id)
        details = catalog.lookup(product.identifier, product.store_id)
        if details is None:
            logger.warning(
                "Product not found in catalog",
                product_id=product.identifier,
                store_id=product.store_id,
            )
            enriched.append(
                TopProduct(
                    name=UNKNOWN_PRODUCT_NAME.format(identifier=product.identifier),
                    channel=product.channel,
                    quantity=product.quantity,
                    revenue=product.revenue,
                    store_name=store_name,
                )
            )
            continue

        enriched.append(
            TopProduct(
                name=details.name,
                channel=product.channel,
                quantity=product.quantity,
                revenue=product.revenue,
                sale_price=details.sale_price,
                cost_price=details.cost_price,
                store_name=store_name,
            )
        )

    return enriched
