# tests/test_forms.py
from productsync.forms import parse_product_form, validate_credentials
from productsync.models import Product, Session
from productsync.session import SessionCache


def test_valid_form_builds_a_product():
    product, errors = parse_product_form(" Pen ", "1.50", "10", "Hogar", "u1")
    assert errors == {}
    assert product == Product(user_id="u1", name="Pen", price=1.5, stock=10, category="Hogar")


def test_every_bad_field_is_reported():
    product, errors = parse_product_form("", "abc", "1.5", " ", "u1")
    assert product is None
    assert set(errors) == {"name", "price", "stock", "category"}


def test_negative_and_non_finite_numbers_are_rejected():
    _, errors = parse_product_form("Pen", "-1", "-2", "Hogar", "u1")
    assert set(errors) == {"price", "stock"}
    _, errors = parse_product_form("Pen", "nan", "1", "Hogar", "u1")
    assert set(errors) == {"price"}


def test_edit_keeps_the_product_id():
    product, _ = parse_product_form("Pen", "2", "1", "Otros", "u1", product_id="a")
    assert product.id == "a"
    assert "id" not in product.to_document()


def test_credentials():
    assert validate_credentials("a@b.c", "secret1") is None
    assert validate_credentials("", "secret1") == "Email must not be empty"
    assert validate_credentials("a@b.c", "") == "Password must not be empty"
    assert validate_credentials("a@b.c", "secret1", "") == "Confirm your password"
    assert validate_credentials("a@b.c", "secret1", "secret2") == "Passwords do not match"


def test_session_cache_round_trip(tmp_path):
    cache = SessionCache(str(tmp_path / "nested" / "session.json"))
    assert cache.load() is None
    cache.save(Session(uid="u1", email="a@b.c", token="t"))
    assert cache.load().uid == "u1"
    cache.clear()
    cache.clear()
    assert cache.load() is None


def test_corrupt_session_file_is_ignored(tmp_path):
    path = tmp_path / "session.json"
    path.write_text("{not json")
    assert SessionCache(str(path)).load() is None
