import pytest

from tableqr.errors import ValidationError
from tableqr.links import build_menu_url, download_filename, encode, qr_service_url
from tableqr.models import ScopeKind, TargetRef


def test_table_link():
    record = encode("R1", ScopeKind.TABLE, "5")
    assert record.url == "/restaurant/R1/menu?table=5"
    assert record.title == "Table 5"
    assert record.name == "Table 5"
    assert record.target is None
    assert record.table_label == "5"


def test_category_link():
    record = encode("R1", ScopeKind.CATEGORY, "5", TargetRef(id="C9", display_name="Drinks"))
    assert record.url == "/restaurant/R1/menu?table=5&category=C9"
    assert record.title == "Table 5 - Drinks"
    assert record.name == "Drinks (Table 5)"


def test_item_link_with_base_url():
    record = encode(
        "R1",
        ScopeKind.ITEM,
        "A1",
        TargetRef(id="I7", display_name="Jollof Rice"),
        base_url="https://menu.example.com/waiter/",
    )
    assert record.url == "https://menu.example.com/waiter/restaurant/R1/menu?table=A1&item=I7"
    assert record.title == "Table A1 - Jollof Rice"
    assert record.name == "Jollof Rice (Table A1)"


def test_encoding_is_deterministic():
    target = TargetRef(id="C9", display_name="Drinks")
    first = encode("R1", ScopeKind.CATEGORY, "5", target)
    second = encode("R1", ScopeKind.CATEGORY, "5", target)
    assert first.url == second.url
    assert first.title == second.title
    assert first.name == second.name
    assert first.id != second.id


def test_table_label_is_trimmed_and_reserved_chars_encoded():
    record = encode("R1", ScopeKind.TABLE, "  Patio & Bar ")
    assert record.table_label == "Patio & Bar"
    assert record.url == "/restaurant/R1/menu?table=Patio+%26+Bar"
    assert record.title == "Table Patio & Bar"


def test_table_scope_ignores_target():
    record = encode("R1", ScopeKind.TABLE, "5", TargetRef(id="C9", display_name="Drinks"))
    assert record.target is None
    assert record.url == "/restaurant/R1/menu?table=5"


@pytest.mark.parametrize("label", ["", "   ", None])
def test_blank_table_label_rejected(label):
    with pytest.raises(ValidationError):
        encode("R1", ScopeKind.TABLE, label)


@pytest.mark.parametrize("scope", [ScopeKind.CATEGORY, ScopeKind.ITEM])
def test_scoped_link_requires_target(scope):
    with pytest.raises(ValidationError):
        encode("R1", scope, "5")
    with pytest.raises(ValidationError):
        encode("R1", scope, "5", TargetRef(id="", display_name="Drinks"))


def test_restaurant_id_required():
    with pytest.raises(ValidationError):
        encode("", ScopeKind.TABLE, "5")


def test_validation_error_is_a_value_error():
    assert issubclass(ValidationError, ValueError)


def test_build_menu_url_parameter_order():
    url = build_menu_url("R1", ScopeKind.ITEM, "5", TargetRef(id="I1", display_name="Tea"))
    assert url.index("table=") < url.index("item=")


def test_download_filename():
    assert download_filename("Table 5") == "qr-table-5.png"
    assert download_filename("Table 5 - Drinks") == "qr-table-5---drinks.png"
    assert download_filename("Café Été") == "qr-caf---t-.png"


def test_qr_service_url():
    url = qr_service_url("/restaurant/R1/menu?table=5&item=I1", 400, margin=10, service_url="https://qr.test/")
    assert url == (
        "https://qr.test/?size=400x400"
        "&data=%2Frestaurant%2FR1%2Fmenu%3Ftable%3D5%26item%3DI1"
        "&margin=10"
    )
