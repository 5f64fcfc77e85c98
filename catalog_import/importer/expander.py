"""Attribute/variant expander.

Turns the size and color lists of a product record (or its legacy explicit
variant list) into attribute definitions and purchasable variants, and
writes them for a product.

Options are never diffed against what is stored: every import purges the
product's attributes, attribute values and variants and recreates them.
"""

import secrets
from dataclasses import dataclass, field
from decimal import Decimal
from itertools import product as cartesian
from typing import Any, Iterable

from sqlalchemy import delete, or_, select
from sqlalchemy.ext.asyncio import AsyncSession

from catalog_import.config import settings
from catalog_import.infra.logging import get_logger
from catalog_import.models import (
    ProductAttribute,
    ProductAttributeValue,
    ProductVariant,
    new_id,
)
from catalog_import.schemas.record import (
    AttributeEntry,
    AttributeOption,
    ColorEntry,
    ProductRecord,
    SizeEntry,
)

logger = get_logger(__name__)

SIZE_SLUG = "size"
COLOR_SLUG = "color"
SIZE_ATTRIBUTE_NAME = "Размер"
COLOR_ATTRIBUTE_NAME = "Цвет"
COLOR_SKU_PREFIX_LENGTH = 3


@dataclass(frozen=True)
class VariantSpec:
    """A variant to be created.

    ``options`` maps attribute slug to the option the variant stands for,
    used to bind the variant to its attribute values.
    """

    sku: str
    name: str
    is_default: bool
    is_active: bool
    stock: int
    price: Decimal | None
    sale_price: Decimal | None
    options: dict[str, dict[str, str]] = field(default_factory=dict)
    min_stock: int = 0
    cost_price: Decimal | None = None
    barcode: str | None = None
    weight: Decimal | None = None
    width: Decimal | None = None
    height: Decimal | None = None
    depth: Decimal | None = None


@dataclass(frozen=True)
class ExpansionPlan:
    """Attributes and variants of one product, whatever the input shape."""

    attributes: list[AttributeEntry] = field(default_factory=list)
    variants: list[VariantSpec] = field(default_factory=list)


@dataclass(frozen=True)
class MaterializedOptions:
    """Rows written for a plan."""

    attributes: list[ProductAttribute]
    variants: list[ProductVariant]


def distinct_sizes(sizes: Iterable[SizeEntry]) -> list[SizeEntry]:
    """Sizes with duplicate labels removed, first occurrence wins."""
    seen: set[str] = set()
    result = []
    for size in sizes:
        if size.main in seen:
            continue
        seen.add(size.main)
        result.append(size)
    return result


def usable_colors(colors: Iterable[ColorEntry]) -> list[ColorEntry]:
    """Colors with a non-empty name, duplicates by name removed."""
    seen: set[str] = set()
    result = []
    for color in colors:
        if color.is_blank or color.name in seen:
            continue
        seen.add(color.name)
        result.append(color)
    return result


def color_option(color: ColorEntry) -> AttributeOption:
    metadata = {"hex": color.hex} if color.hex else None
    return AttributeOption(label=color.name, value=color.xml_id or color.name, metadata=metadata)


def build_size_attribute(sizes: Iterable[SizeEntry]) -> AttributeEntry | None:
    """Synthesize the Size attribute, one option per distinct label."""
    options = [AttributeOption(label=s.main, value=s.main) for s in distinct_sizes(sizes)]
    if not options:
        return None
    return AttributeEntry(name=SIZE_ATTRIBUTE_NAME, slug=SIZE_SLUG, type="select", options=options)


def build_color_attribute(colors: Iterable[ColorEntry]) -> AttributeEntry | None:
    """Synthesize the Color attribute; colors without a name are dropped."""
    options = [color_option(c) for c in usable_colors(colors)]
    if not options:
        return None
    return AttributeEntry(name=COLOR_ATTRIBUTE_NAME, slug=COLOR_SLUG, type="color", options=options)


def variant_sku(xml_id: str, size: SizeEntry, color: ColorEntry | None) -> str:
    if color is None:
        return f"{xml_id}-{size.main}"
    return f"{xml_id}-{size.main}-{color.name[:COLOR_SKU_PREFIX_LENGTH]}"


def variant_name(product_name: str, size: SizeEntry, color: ColorEntry | None) -> str:
    if color is None:
        return f"{product_name} - {size.main}"
    return f"{product_name} - {size.main} - {color.name}"


def size_prices(size: SizeEntry, record: ProductRecord) -> tuple[Decimal | None, Decimal | None]:
    """Price and sale price of a size.

    Sizes given as bare labels carry no prices and use the record's.
    """
    if size.price is None:
        return record.price, record.sale_price
    sale_price = size.price_discount if size.price_discount and size.price_discount > 0 else None
    return size.price, sale_price


def expand_matrix(record: ProductRecord, available_stock: int) -> list[VariantSpec]:
    """One variant per size x color pair, or per size when there are no colors."""
    sizes = distinct_sizes(record.sizes)
    colors: list[ColorEntry | None] = list(usable_colors(record.colors)) or [None]

    variants = []
    for size, color in cartesian(sizes, colors):
        purchasable = size.purchasable
        price, sale_price = size_prices(size, record)

        options = {SIZE_SLUG: {"label": size.main, "value": size.main}}
        if color is not None:
            option = color_option(color)
            options[COLOR_SLUG] = {"label": option.label, "value": option.value}

        variants.append(
            VariantSpec(
                sku=variant_sku(record.xml_id, size, color),
                name=variant_name(record.name, size, color),
                is_default=purchasable,
                is_active=purchasable,
                stock=available_stock if purchasable else 0,
                price=price,
                sale_price=sale_price,
                options=options,
            )
        )

    return variants


def expand_legacy(record: ProductRecord, product_id: str) -> list[VariantSpec]:
    """One variant per explicit entry of the legacy format."""
    return [
        VariantSpec(
            sku=entry.sku or f"{product_id}-{secrets.token_hex(3)}",
            name=entry.name or record.name,
            is_default=entry.is_default,
            is_active=entry.is_active,
            stock=entry.stock,
            price=entry.price,
            sale_price=entry.sale_price,
            min_stock=entry.min_stock,
            cost_price=entry.cost_price,
            barcode=entry.barcode,
            weight=entry.weight,
            width=entry.width,
            height=entry.height,
            depth=entry.depth,
        )
        for entry in record.variants
    ]


def expand(
    record: ProductRecord,
    product_id: str,
    existing_attribute_slugs: Iterable[str] = (),
    available_stock: int | None = None,
) -> ExpansionPlan:
    """Build the attributes and variants of a product record.

    Args:
        record: Parsed product record
        product_id: Id of the product the variants belong to
        existing_attribute_slugs: Attribute slugs the product already has;
            Size/Color are only synthesized when their slug is absent
        available_stock: Stock of purchasable variants (settings default)

    Returns:
        ExpansionPlan with attributes first-to-last and variants in
        size-major order
    """
    if available_stock is None:
        available_stock = settings.available_stock

    existing = set(existing_attribute_slugs) | record.attribute_slugs
    attributes = list(record.attributes or [])

    if record.sizes and SIZE_SLUG not in existing:
        size_attribute = build_size_attribute(record.sizes)
        if size_attribute is not None:
            attributes.append(size_attribute)

    if record.colors and COLOR_SLUG not in existing:
        color_attribute = build_color_attribute(record.colors)
        if color_attribute is not None:
            attributes.append(color_attribute)

    shape = record.shape
    if shape == "matrix":
        variants = expand_matrix(record, available_stock)
    elif shape == "legacy":
        variants = expand_legacy(record, product_id)
    else:
        variants = []

    skus = [v.sku for v in variants]
    if len(set(skus)) != len(skus):
        logger.warning(
            "Duplicate variant SKUs generated",
            xml_id=record.xml_id,
            skus=sorted({sku for sku in skus if skus.count(sku) > 1}),
        )

    return ExpansionPlan(attributes=attributes, variants=variants)


async def purge_product_options(session: AsyncSession, product_id: str) -> None:
    """Delete a product's attribute values, variants and attributes.

    Deletes in referential order: values of the product's variants, values
    of the product and its attributes, variants, attributes.
    """
    variant_ids = select(ProductVariant.id).where(ProductVariant.product_id == product_id)
    attribute_ids = select(ProductAttribute.id).where(ProductAttribute.product_id == product_id)
    no_sync = {"synchronize_session": False}

    await session.execute(
        delete(ProductAttributeValue)
        .where(ProductAttributeValue.variant_id.in_(variant_ids))
        .execution_options(**no_sync)
    )
    await session.execute(
        delete(ProductAttributeValue)
        .where(
            or_(
                ProductAttributeValue.product_id == product_id,
                ProductAttributeValue.attribute_id.in_(attribute_ids),
            )
        )
        .execution_options(**no_sync)
    )
    await session.execute(
        delete(ProductVariant)
        .where(ProductVariant.product_id == product_id)
        .execution_options(**no_sync)
    )
    await session.execute(
        delete(ProductAttribute)
        .where(ProductAttribute.product_id == product_id)
        .execution_options(**no_sync)
    )
    logger.debug("Product options purged", product_id=product_id)


def _serialize_options(options: list[AttributeOption]) -> list[dict[str, Any]]:
    return [option.model_dump(exclude_none=True) for option in options]


async def materialize(
    session: AsyncSession,
    product_id: str,
    plan: ExpansionPlan,
) -> MaterializedOptions:
    """Write the attributes, attribute values and variants of a plan.

    Each attribute gets a product-level value holding its option list; each
    variant gets one value per attribute option it stands for.
    """
    attributes: dict[str, ProductAttribute] = {}
    attribute_values: list[ProductAttributeValue] = []
    for sort_order, spec in enumerate(plan.attributes):
        options = _serialize_options(spec.options)
        attribute = ProductAttribute(
            id=new_id(),
            product_id=product_id,
            name=spec.name,
            slug=spec.slug,
            type=spec.type,
            options=options,
            sort_order=sort_order,
        )
        session.add(attribute)
        attribute_values.append(
            ProductAttributeValue(
                id=new_id(),
                attribute_id=attribute.id,
                product_id=product_id,
                value=options,
            )
        )
        attributes.setdefault(spec.slug, attribute)

    await session.flush()
    session.add_all(attribute_values)

    variants: list[ProductVariant] = []
    variant_values: list[ProductAttributeValue] = []
    for spec in plan.variants:
        variant = ProductVariant(
            id=new_id(),
            product_id=product_id,
            sku=spec.sku,
            name=spec.name,
            is_default=spec.is_default,
            is_active=spec.is_active,
            stock=spec.stock,
            min_stock=spec.min_stock,
            price=spec.price,
            sale_price=spec.sale_price,
            cost_price=spec.cost_price,
            barcode=spec.barcode,
            weight=spec.weight,
            width=spec.width,
            height=spec.height,
            depth=spec.depth,
        )
        session.add(variant)
        variants.append(variant)

        for slug, option in spec.options.items():
            attribute = attributes.get(slug)
            if attribute is None:
                continue
            variant_values.append(
                ProductAttributeValue(
                    id=new_id(),
                    attribute_id=attribute.id,
                    variant_id=variant.id,
                    value=option,
                )
            )

    # Variants must exist before the values pointing at them
    await session.flush()
    session.add_all(variant_values)
    await session.flush()

    logger.debug(
        "Product options created",
        product_id=product_id,
        attributes=len(attributes),
        variants=len(variants),
    )

    return MaterializedOptions(attributes=list(attributes.values()), variants=variants)
