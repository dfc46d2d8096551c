import pytest
from orderease.shared.errors import ValidationFailed
from orderease.shared.pagination import MAX_PAGE_SIZE, validate_paging


def test_limit_and_offset():
    assert validate_paging(1, 10) == (10, 0)
    assert validate_paging(3, 25) == (25, 50)


@pytest.mark.parametrize("page, page_size", [(0, 10), (-1, 10), (1, 0), (1, MAX_PAGE_SIZE + 1), (None, 10)])
def test_out_of_range_paging_is_rejected(page, page_size):
    with pytest.raises(ValidationFailed):
        validate_paging(page, page_size)
