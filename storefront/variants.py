# storefront/variants.py
import logging
from typing import Dict, List, Sequence

from .errors import ApiError, StorefrontError, VariantGenerationError
from .models import Attribute, VariantDraft

logger = logging.getLogger(__name__)


def generate_combinations(value_lists: Sequence[Sequence[int]]) -> List[List[int]]:
    """Cartesian product of value ids, built depth first in input order.

    An empty inner list yields no combinations at all. Nothing is capped.
    """
    combinations: List[List[int]] = []

    def build(current: List[int], depth: int) -> None:
        if depth == len(value_lists):
            combinations.append(list(current))
            return
        for value_id in value_lists[depth]:
            current.append(value_id)
            build(current, depth + 1)
            current.pop()

    build([], 0)
    return combinations


def generate_variants(attributes: Sequence[Attribute], selected_attribute_ids: Sequence[int],
                      base_sku: str, price: float) -> List[VariantDraft]:
    if not selected_attribute_ids:
        raise VariantGenerationError("Please select at least one attribute")

    by_id: Dict[int, Attribute] = {a.id: a for a in attributes}
    value_lists = [
        [v.id for v in by_id[attr_id].values] if attr_id in by_id else []
        for attr_id in selected_attribute_ids
    ]
    codes: Dict[int, str] = {}
    for attr in attributes:
        for value in attr.values:
            codes.setdefault(value.id, value.code.upper())

    drafts = []
    for combo in generate_combinations(value_lists):
        sku_parts = [codes.get(value_id, "") for value_id in combo]
        drafts.append(VariantDraft(
            sku=f"{base_sku}-{'-'.join(sku_parts)}",
            price=price,
            stock_quantity=0,
            attribute_values=combo,
        ))
    logger.info("Generated %d variant combinations for %s", len(drafts), base_sku)
    return drafts


def submit_variants(client, product_id: int, drafts: Sequence[VariantDraft]) -> int:
    """Create each draft on the server. Returns how many were created."""
    created = 0
    for draft in drafts:
        try:
            client.create_variant(product_id, {
                "sku": draft.sku,
                "price": draft.price,
                "stock_quantity": draft.stock_quantity,
                "attribute_values": draft.attribute_values,
                "is_active": True,
            })
            created += 1
        except ApiError as e:
            logger.error("Failed to create variant %s: %s", draft.sku, e)
    if drafts and created == 0:
        raise StorefrontError("Failed to create any variants")
    return created


def value_label(attributes: Sequence[Attribute], value_id: int) -> str:
    for attr in attributes:
        for value in attr.values:
            if value.id == value_id:
                return value.value
    return str(value_id)
