import re
from datetime import datetime

import pytest

from apps.api.utils.reference_numbers import (
    REFERENCE_PATTERN,
    generate_reference_number,
    is_reference_number,
    reference_prefix,
)


@pytest.mark.parametrize('document_type,prefix', [
    ('zone_clearance', 'ZC'),
    ('indigency', 'BI'),
    ('clearance', 'BC'),
])
def test_prefix_depends_only_on_document_type(document_type, prefix):
    ref = generate_reference_number(document_type, now=datetime(2024, 12, 10, 2, 0))
    assert ref.startswith(f'{prefix}-20241210-')
    assert REFERENCE_PATTERN.match(ref)


def test_date_is_local_calendar_day():
    # 17:30 UTC on the 9th is already the 10th in Manila
    ref = generate_reference_number('zone_clearance', now=datetime(2024, 12, 9, 17, 30))
    assert re.match(r'^ZC-20241210-\d{4}$', ref)

    ref = generate_reference_number('zone_clearance', now=datetime(2024, 12, 9, 17, 30), utc_offset_hours=0)
    assert ref.startswith('ZC-20241209-')


def test_unknown_document_type_is_rejected():
    with pytest.raises(ValueError):
        reference_prefix('business_permit')


def test_is_reference_number_ignores_case_and_whitespace():
    assert is_reference_number(' zc-20241210-0042 ')
    assert not is_reference_number('ZC-2024121-0042')
    assert not is_reference_number('XX-20241210-0042')
    assert not is_reference_number(None)
