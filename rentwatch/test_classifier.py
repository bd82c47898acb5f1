"""
Tests for the listing business rules.
"""
from rentwatch.classifier import Classifier, DEFAULT_PREDICATES, owner_ok, phone_ok
from rentwatch.config import Settings
from rentwatch.models import Listing


def make_listing(**kwargs):
    base = dict(item_id="1", url="https://lalafo.kg/x/1", price=40000, rooms=2, locality="Бишкек")
    base.update(kwargs)
    return Listing(**base)


def test_qualifying_listing_passes():
    assert Classifier(Settings()).is_qualifying(make_listing())


def test_price_ceiling_is_inclusive():
    classifier = Classifier(Settings(max_price=50000))
    assert classifier.is_qualifying(make_listing(price=50000))
    assert not classifier.is_qualifying(make_listing(price=50001))


def test_allowed_rooms():
    classifier = Classifier(Settings())
    assert classifier.is_qualifying(make_listing(rooms=1))
    assert classifier.is_qualifying(make_listing(rooms=2))
    assert not classifier.is_qualifying(make_listing(rooms=3))
    assert not classifier.is_qualifying(make_listing(rooms=None))


def test_missing_fields_fail_their_rule():
    classifier = Classifier(Settings())
    assert classifier.rejection_reason(make_listing(locality=None)) == "locality_ok"
    assert classifier.rejection_reason(make_listing(price=None)) == "price_ok"
    assert classifier.rejection_reason(make_listing(rooms=None)) == "rooms_ok"


def test_locality_variants_case_insensitive_substring():
    classifier = Classifier(Settings())
    assert classifier.is_qualifying(make_listing(locality="г. БИШКЕК, Октябрьский р-н"))
    assert classifier.is_qualifying(make_listing(locality="Bishkek"))
    assert classifier.is_qualifying(make_listing(locality="Бiшкек"))
    assert not classifier.is_qualifying(make_listing(locality="Ош"))


def test_owner_and_phone_rules_are_pass_through():
    settings = Settings()
    listing = make_listing(owner="agency", phone=None)
    assert owner_ok(listing, settings)
    assert phone_ok(listing, settings)
    assert owner_ok in DEFAULT_PREDICATES and phone_ok in DEFAULT_PREDICATES


def test_custom_predicates_can_be_plugged_in():
    def has_phone(listing, settings):
        return listing.phone is not None

    classifier = Classifier(Settings(), predicates=list(DEFAULT_PREDICATES) + [has_phone])
    assert not classifier.is_qualifying(make_listing(phone=None))
    assert classifier.rejection_reason(make_listing(phone=None)) == "has_phone"
    assert classifier.is_qualifying(make_listing(phone="996555123456"))
