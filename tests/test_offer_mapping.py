import pytest

from utils.offer_mapping import (
    NormalizedVariant,
    is_valid_gtin,
    map_variant_to_offer,
    pick_image,
    strip_html,
    to_micros,
)


def make_variant(**overrides) -> NormalizedVariant:
    fields = dict(
        product_title="Linen Shirt",
        description_html="<p>Soft linen</p>",
        handle="linen-shirt",
        product_image="https://cdn.example.com/product.jpg",
        variant_id="gid://shopify/ProductVariant/4411",
        legacy_id="4411",
        sku=None,
        barcode=None,
        price="15.99",
        currency_code="EUR",
        inventory_quantity=5,
        variant_image=None,
    )
    fields.update(overrides)
    return NormalizedVariant(**fields)


def test_strip_html_removes_tags_and_decodes_entities() -> None:
    assert strip_html("<p>Hello&nbsp;<b>World</b></p>") == "Hello World"


def test_strip_html_handles_empty_values() -> None:
    assert strip_html(None) == ""
    assert strip_html("") == ""
    assert strip_html("  <br/>  ") == ""


def test_strip_html_collapses_multiline_markup() -> None:
    html = "<ul>\n  <li>Cotton &amp; linen</li>\n  <li>Machine wash</li>\n</ul>"
    assert strip_html(html) == "Cotton & linen Machine wash"


@pytest.mark.parametrize(
    "price, micros",
    [("15.99", "15990000"), ("0", "0"), ("10", "10000000"), ("0.01", "10000"), ("1234.5", "1234500000"),
     ("0.0000025", "3"), ("0.0000005", "1"), ("2.0000005", "2000001")],
)
def test_to_micros(price, micros) -> None:
    assert to_micros(price) == micros


def test_to_micros_rejects_non_numeric_price() -> None:
    with pytest.raises(ValueError):
        to_micros("free")
    with pytest.raises(ValueError):
        to_micros("nan")


@pytest.mark.parametrize("price", ["1_5", "15.99 EUR", "$15", "0x1F", "inf", ""])
def test_to_micros_rejects_non_decimal_strings(price) -> None:
    with pytest.raises(ValueError):
        to_micros(price)


def test_pick_image_prefers_variant_image() -> None:
    assert pick_image("v.jpg", "p.jpg") == "v.jpg"
    assert pick_image(None, "p.jpg") == "p.jpg"
    assert pick_image("", None) is None


@pytest.mark.parametrize(
    "value",
    ["12345674", "1234-5674", "4006381333932", "00000000000000"],
)
def test_valid_gtins(value) -> None:
    assert is_valid_gtin(value) is True


@pytest.mark.parametrize(
    "value",
    [None, "", "12345", "00000", "4006381333931", "12345678901", "abcdefgh"],
)
def test_invalid_gtins(value) -> None:
    assert is_valid_gtin(value) is False


def test_availability_follows_inventory() -> None:
    out_of_stock = map_variant_to_offer(make_variant(inventory_quantity=0), "https://shop.example.com")
    in_stock = map_variant_to_offer(make_variant(inventory_quantity=5), "https://shop.example.com")
    assert out_of_stock.attributes["availability"] == "OUT_OF_STOCK"
    assert in_stock.attributes["availability"] == "IN_STOCK"


def test_offer_id_uses_trimmed_sku() -> None:
    offer = map_variant_to_offer(make_variant(sku=" ABC "), "https://shop.example.com")
    assert offer.offer_id == "ABC"


@pytest.mark.parametrize("sku", ["", "   ", None])
def test_offer_id_falls_back_to_legacy_id(sku) -> None:
    offer = map_variant_to_offer(make_variant(sku=sku), "https://shop.example.com")
    assert offer.offer_id == "4411"


def test_link_strips_trailing_slashes_from_domain() -> None:
    offer = map_variant_to_offer(make_variant(), "https://shop.example.com//")
    assert offer.link == "https://shop.example.com/products/linen-shirt?variant=4411"
    assert offer.attributes["link"] == offer.link


def test_mapped_attributes() -> None:
    offer = map_variant_to_offer(
        make_variant(barcode="4006-381333932", variant_image="https://cdn.example.com/variant.jpg"),
        "https://shop.example.com",
    )
    assert offer.attributes == {
        "title": "Linen Shirt",
        "description": "Soft linen",
        "link": "https://shop.example.com/products/linen-shirt?variant=4411",
        "imageLink": "https://cdn.example.com/variant.jpg",
        "availability": "IN_STOCK",
        "condition": "NEW",
        "price": {"amountMicros": "15990000", "currencyCode": "EUR"},
        "gtins": ["4006381333932"],
    }


def test_invalid_barcode_and_missing_images_are_omitted() -> None:
    offer = map_variant_to_offer(
        make_variant(barcode="12345", product_image=None, variant_image=None),
        "https://shop.example.com",
    )
    assert "gtins" not in offer.attributes
    assert "imageLink" not in offer.attributes


def test_product_input_body_has_no_data_source() -> None:
    offer = map_variant_to_offer(make_variant(sku="SKU-1"), "https://shop.example.com")
    body = offer.to_product_input("en", "US")
    assert body["offerId"] == "SKU-1"
    assert body["contentLanguage"] == "en"
    assert body["feedLabel"] == "US"
    assert body["productAttributes"] is offer.attributes
    assert "dataSource" not in body
