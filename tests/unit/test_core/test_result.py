import pytest

from dyntable.core.result import PagedResult, total_pages_for


@pytest.mark.parametrize(
    ("total_records", "page_size", "expected"),
    [(45, 20, 3), (40, 20, 2), (0, 20, 0), (1, 20, 1), (20, 1, 20), (10**18 + 1, 10**9, 10**9 + 1)],
)
def test_total_pages_for(total_records: int, page_size: int, expected: int) -> None:
    assert total_pages_for(total_records, page_size) == expected


def test_paged_result_iterates_items() -> None:
    result = PagedResult(items=iter([{"ID": 1}, {"ID": 2}]), total_records=2, total_pages=1)

    assert [record["ID"] for record in result] == [1, 2]
    assert result.total_records == 2
    assert result.total_pages == 1
