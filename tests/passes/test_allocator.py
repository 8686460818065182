from __future__ import annotations

import pytest

from src.pass_registry.pass_registry.core.enums import PassCategory
from src.pass_registry.pass_registry.core.exceptions import ValidationError
from src.pass_registry.pass_registry.passes.allocator import PassIdAllocator, highest_pass_id, parse_pass_id


@pytest.mark.parametrize(
    "value, expected",
    [
        (1040, 1040),
        ("1041", 1041),
        (" 47 ", 47),
        (12.0, 12),
        (12.5, None),
        ("abc", None),
        ("", None),
        (None, None),
        (True, None),
    ],
)
def test_parse_pass_id(value, expected):
    assert parse_pass_id(value) == expected


def test_highest_pass_id_ignores_malformed_values():
    assert highest_pass_id([1039, "1040", "bad", None]) == 1040
    assert highest_pass_id([]) == 0


def test_empty_cargo_starts_after_legacy_watermark(pass_repo):
    alloc = PassIdAllocator(pass_repo)
    assert alloc.allocate_next_id(PassCategory.CARGO) == 1039


def test_empty_landside_starts_after_legacy_watermark(pass_repo):
    alloc = PassIdAllocator(pass_repo)
    assert alloc.allocate_next_id(PassCategory.LANDSIDE) == 47


def test_next_id_is_max_stored_plus_one(pass_repo):
    pass_repo.seed(pass_id=1039, cnic="11111-1111111-1")
    pass_repo.seed(pass_id="1040", cnic="11111-1111111-2")
    pass_repo.seed(pass_id="bad", cnic="11111-1111111-3")

    assert PassIdAllocator(pass_repo).allocate_next_id(PassCategory.CARGO) == 1041


def test_stored_ids_below_floor_do_not_lower_it(pass_repo):
    pass_repo.seed(pass_id=5, cnic="11111-1111111-1")
    pass_repo.seed(pass_id=900, cnic="11111-1111111-2")

    assert PassIdAllocator(pass_repo).allocate_next_id(PassCategory.CARGO) == 1039


def test_categories_are_independent(pass_repo):
    pass_repo.seed(category="cargo", pass_id=2000, cnic="11111-1111111-1")

    alloc = PassIdAllocator(pass_repo)
    assert alloc.allocate_next_id(PassCategory.LANDSIDE) == 47
    assert alloc.allocate_next_id(PassCategory.CARGO) == 2001


def test_base_offsets_can_be_overridden(pass_repo):
    alloc = PassIdAllocator(pass_repo, base_offsets={"landside": 100})
    assert alloc.allocate_next_id(PassCategory.LANDSIDE) == 101
    assert alloc.base_offset(PassCategory.CARGO) == 1038


def test_unknown_category_is_rejected(pass_repo):
    with pytest.raises(ValidationError):
        PassIdAllocator(pass_repo).base_offset("airside")


def test_allocation_is_monotonic_as_passes_are_stored(pass_repo):
    alloc = PassIdAllocator(pass_repo)
    seen = []
    for i in range(3):
        n = alloc.allocate_next_id(PassCategory.CARGO)
        pass_repo.seed(pass_id=n, cnic=f"22222-222222{i}-2")
        seen.append(n)

    assert seen == [1039, 1040, 1041]
