# tests/test_variants.py
from unittest import mock

import pytest

from storefront.errors import ApiError, StorefrontError, VariantGenerationError
from storefront.models import Attribute
from storefront.variants import generate_combinations, generate_variants, submit_variants, value_label

COLOR = Attribute.model_validate({"id": 1, "name": "Color", "code": "color", "values": [
    {"id": 1, "value": "Red", "code": "red"},
    {"id": 2, "value": "Blue", "code": "blue"},
]})
SIZE = Attribute.model_validate({"id": 2, "name": "Size", "code": "size", "values": [
    {"id": 3, "value": "Small", "code": "s"},
    {"id": 4, "value": "Medium", "code": "m"},
]})


def test_combinations_follow_input_order():
    assert generate_combinations([[1, 2], [3, 4]]) == [[1, 3], [1, 4], [2, 3], [2, 4]]
    assert generate_combinations([[5]]) == [[5]]
    assert generate_combinations([[1, 2], []]) == []


def test_color_by_size_gives_four_drafts():
    drafts = generate_variants([COLOR, SIZE], [1, 2], "TEE", 20.0)

    assert [d.attribute_values for d in drafts] == [[1, 3], [1, 4], [2, 3], [2, 4]]
    assert [d.sku for d in drafts] == ["TEE-RED-S", "TEE-RED-M", "TEE-BLUE-S", "TEE-BLUE-M"]
    for d in drafts:
        assert d.price == 20.0
        assert d.stock_quantity == 0


def test_selection_order_drives_sku_order():
    drafts = generate_variants([COLOR, SIZE], [2, 1], "TEE", 20.0)
    assert drafts[0].sku == "TEE-S-RED"
    assert drafts[0].attribute_values == [3, 1]


def test_empty_selection_is_rejected():
    with pytest.raises(VariantGenerationError, match="at least one attribute"):
        generate_variants([COLOR, SIZE], [], "TEE", 20.0)


def test_attribute_without_values_yields_nothing():
    empty = Attribute(id=9, name="Material", code="material", values=[])
    assert generate_variants([COLOR, empty], [1, 9], "TEE", 20.0) == []
    assert generate_variants([COLOR], [1, 42], "TEE", 20.0) == []


def test_no_cap_on_combinations():
    lists = [list(range(i * 10, i * 10 + 4)) for i in range(3)]
    assert len(generate_combinations(lists)) == 64


def test_value_label():
    assert value_label([COLOR, SIZE], 4) == "Medium"
    assert value_label([COLOR, SIZE], 77) == "77"


def test_submit_counts_created_variants(storefront):
    storefront.auth.login("admin@example.com", "password")
    attributes = storefront.client.get_attributes()
    drafts = generate_variants(attributes, [1, 2], "TEE", 20.0)
    assert len(drafts) == 9

    assert submit_variants(storefront.client, 1, drafts) == 9
    skus = {v["sku"] for v in storefront.client.get_variants(1)}
    assert "TEE-RED-S" in skus and "TEE-BLACK-L" in skus


def test_submit_reports_partial_failure(storefront):
    storefront.auth.login("admin@example.com", "password")
    drafts = generate_variants(storefront.client.get_attributes(), [2], "JKT", 64.0)
    submit_variants(storefront.client, 2, drafts[:1])

    assert submit_variants(storefront.client, 2, drafts) == 2
    with pytest.raises(StorefrontError, match="Failed to create any variants"):
        submit_variants(storefront.client, 2, drafts)


def test_submit_needs_an_admin(storefront):
    storefront.auth.login("alice@example.com", "password")
    drafts = generate_variants([COLOR], [1], "TEE", 20.0)
    with mock.patch.object(storefront.client, "create_variant",
                           wraps=storefront.client.create_variant) as spy:
        with pytest.raises(StorefrontError):
            submit_variants(storefront.client, 1, drafts)
    assert spy.call_count == 2
    with pytest.raises(ApiError) as exc:
        storefront.client.create_variant(1, drafts[0].model_dump())
    assert exc.value.status_code == 403
