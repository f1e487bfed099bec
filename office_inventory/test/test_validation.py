"""
Tests for the shared input checks
"""

import pytest

from office_inventory.buisness.core.errors import ValidationError
from office_inventory.buisness.core.validation import non_negative_quantity, optional_id, positive_quantity


@pytest.mark.parametrize('value, expected', [(3, 3), ('3', 3), (' 12 ', 12)])
def test_positive_quantity_accepts_whole_numbers(value, expected):
    assert positive_quantity(value) == expected


@pytest.mark.parametrize('value', ['--5', '-', '+-1', '', ' ', '1.5', 'abc', 1.5, None, True, [1]])
def test_malformed_quantity_is_a_validation_error(value):
    """Anything that is not a plain whole number is rejected with ValidationError"""
    with pytest.raises(ValidationError):
        positive_quantity(value)
    with pytest.raises(ValidationError):
        non_negative_quantity(value)


@pytest.mark.parametrize('value, expected', [
    (None, None),
    ('', None),
    ('  ', None),
    (0, None),
    ('0', None),
    (7, 7),
    ('7', 7),
])
def test_optional_id(value, expected):
    assert optional_id(value) == expected


@pytest.mark.parametrize('value', ['abc', '--1', '-3', -3, 2.5, False])
def test_malformed_id_is_a_validation_error(value):
    with pytest.raises(ValidationError):
        optional_id(value, 'held_by_user_id')
