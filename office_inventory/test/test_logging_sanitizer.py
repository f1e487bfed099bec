"""
Test the logging sanitizer utility.
PINs and other secrets must never reach the log files.
"""

from office_inventory.utils.logging_sanitizer import sanitize_dict, SENSITIVE_FIELDS


def test_pin_fields_redacted():
    """PIN login and PIN change payloads"""
    result = sanitize_dict({'user_id': 3, 'pin': '1234'})
    assert result['user_id'] == 3, "user_id should not be redacted"
    assert result['pin'] == '[REDACTED]', "pin should be redacted"

    result = sanitize_dict({'new_pin': '9876', 'name': 'Alice Moreno'})
    assert result['new_pin'] == '[REDACTED]', "new_pin should be redacted"
    assert result['name'] == 'Alice Moreno'


def test_case_insensitive():
    result = sanitize_dict({'PIN': '1234', 'Pin': '5678', 'Token': 'abc'})
    assert all(value == '[REDACTED]' for value in result.values())


def test_nested_values():
    data = {
        'user': {'name': 'Bob Chen', 'pin': '4444'},
        'items': [{'item_id': 1, 'quantity': 2}, {'api_key': 'xyz'}],
        'unit_ids': [1, 2, 3],
    }
    result = sanitize_dict(data)
    assert result['user'] == {'name': 'Bob Chen', 'pin': '[REDACTED]'}
    assert result['items'][0] == {'item_id': 1, 'quantity': 2}
    assert result['items'][1]['api_key'] == '[REDACTED]'
    assert result['unit_ids'] == [1, 2, 3]


def test_custom_redaction_text_and_input_untouched():
    data = {'pin': '1234'}
    result = sanitize_dict(data, redact_text='***')
    assert result['pin'] == '***'
    assert data['pin'] == '1234', "Original dictionary should not be modified"


def test_empty_input():
    assert sanitize_dict({}) == {}
    assert sanitize_dict(None) is None


def test_sensitive_fields_cover_pins():
    assert {'pin', 'new_pin', 'pin_hash'} <= SENSITIVE_FIELDS
