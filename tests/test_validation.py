"""Unit tests for payload validation and form expansion."""

from schemas import CampgroundIn, ReviewIn
from validation import expand_form, validate


def test_valid_campground_returns_model():
    result = validate(CampgroundIn, {"campground": {"title": "Pine Ridge", "location": "CO", "price": "25"}}, "campground")

    assert result.ok
    assert result.violations == []
    assert isinstance(result.value, CampgroundIn)
    assert result.value.price == 25.0


def test_payload_without_label_key_is_the_entity():
    result = validate(ReviewIn, {"rating": 5, "body": "Great"}, "review")

    assert result.ok
    assert result.value.body == "Great"


def test_every_missing_field_is_reported():
    result = validate(CampgroundIn, {}, "campground")

    assert not result.ok
    assert result.value is None
    assert result.violations == [
        '"campground.title" is required',
        '"campground.location" is required',
        '"campground.price" is required',
    ]


def test_whitespace_only_strings_count_as_empty():
    result = validate(ReviewIn, {"review": {"rating": 3, "body": "   "}}, "review")

    assert result.violations == ['"review.body" is not allowed to be empty']


def test_non_object_entity_is_rejected():
    result = validate(CampgroundIn, {"campground": "Pine Ridge"}, "campground")
    assert result.violations == ['"campground" must be of type object']

    result = validate(CampgroundIn, ["Pine Ridge"], "campground")
    assert result.violations == ['"campground" must be of type object']


def test_wrong_types_are_described():
    result = validate(CampgroundIn, {"title": 7, "location": "CO", "price": "cheap"}, "campground")

    assert result.violations == [
        '"campground.title" must be a string',
        '"campground.price" must be a number',
    ]


def test_expand_form_nests_bracket_keys():
    data = expand_form(
        [
            ("campground[title]", "Pine Ridge"),
            ("campground[price]", "25"),
            ("review[rating]", "5"),
            ("plain", "value"),
        ]
    )

    assert data == {
        "campground": {"title": "Pine Ridge", "price": "25"},
        "review": {"rating": "5"},
        "plain": "value",
    }


def test_expand_form_bracket_key_replaces_plain_value():
    assert expand_form([("campground", "x"), ("campground[title]", "Pine Ridge")]) == {
        "campground": {"title": "Pine Ridge"}
    }


def test_booleans_are_not_numbers():
    result = validate(CampgroundIn, {"title": "Pine Ridge", "location": "CO", "price": False}, "campground")
    assert result.violations == ['"campground.price" must be a number']

    result = validate(ReviewIn, {"review": {"rating": True, "body": "Great"}}, "review")
    assert result.violations == ['"review.rating" must be a number']


def test_numeric_strings_from_forms_still_coerce():
    result = validate(ReviewIn, {"review": {"rating": "4", "body": "Great"}}, "review")

    assert result.ok
    assert result.value.rating == 4


def test_keys_beside_the_entity_are_reported_with_entity_violations():
    result = validate(ReviewIn, {"review": {"rating": 9, "body": "Great"}, "junk": 1}, "review")

    assert result.value is None
    assert result.violations == [
        '"review.rating" must be less than or equal to 5',
        '"junk" is not allowed',
    ]
