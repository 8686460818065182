from __future__ import annotations

import pytest

from src.pass_registry.pass_registry.core.enums import PassCategory
from src.pass_registry.pass_registry.core.exceptions import ConflictError
from src.pass_registry.pass_registry.passes.guard import BatchTracker, UniquenessGuard
from src.pass_registry.pass_registry.passes.model import IdentityKey


def test_check_cnic_rejects_taken_cnic(pass_repo):
    pass_repo.seed(cnic="35202-1234567-1")
    guard = UniquenessGuard(pass_repo)

    with pytest.raises(ConflictError) as exc:
        guard.check_cnic("35202-1234567-1")
    assert str(exc.value) == "CNIC 35202-1234567-1 already exists."


def test_check_cnic_ignores_the_record_being_edited(pass_repo):
    record = pass_repo.seed(cnic="35202-1234567-1")
    UniquenessGuard(pass_repo).check_cnic("35202-1234567-1", exclude_id=record.id)


def test_pass_id_is_unique_per_category_only(pass_repo):
    pass_repo.seed(category="cargo", pass_id=1050)
    guard = UniquenessGuard(pass_repo)

    guard.check_pass_id(PassCategory.LANDSIDE, 1050)
    with pytest.raises(ConflictError) as exc:
        guard.check_pass_id(PassCategory.CARGO, 1050)
    assert str(exc.value) == "Pass ID 1050 already exists for category 'cargo'."


def test_check_reports_cnic_before_pass_id(pass_repo):
    pass_repo.seed(category="cargo", pass_id=1050, cnic="35202-1234567-1")

    with pytest.raises(ConflictError) as exc:
        UniquenessGuard(pass_repo).check(PassCategory.CARGO, 1050, "35202-1234567-1")
    assert "CNIC" in str(exc.value)


def test_batch_tracker_is_seeded_with_one_fetch(pass_repo):
    pass_repo.seed(category="cargo", pass_id=1039, cnic="11111-1111111-1")
    pass_repo.seed(category="landside", pass_id="junk", cnic="11111-1111111-2")

    tracker = UniquenessGuard(pass_repo).new_batch_tracker()

    assert pass_repo.identity_fetches == 1
    assert tracker.cnic_taken("11111-1111111-2")
    assert tracker.conflict(PassCategory.CARGO, 1039, "99999-9999999-9") == (
        "Pass ID 1039 already exists for category 'cargo'."
    )
    assert tracker.conflict(PassCategory.LANDSIDE, 1039, "99999-9999999-9") is None


def test_batch_tracker_sees_accepted_rows():
    tracker = BatchTracker([IdentityKey(category="cargo", pass_id="1039", cnic="11111-1111111-1")])

    assert tracker.conflict(PassCategory.CARGO, 1040, "22222-2222222-2") is None
    tracker.accept(PassCategory.CARGO, 1040, "22222-2222222-2")

    assert tracker.conflict(PassCategory.LANDSIDE, 50, "22222-2222222-2") == "CNIC 22222-2222222-2 already exists."
    assert tracker.conflict(PassCategory.CARGO, 1040, "33333-3333333-3") is not None


def test_batch_tracker_can_report_pass_id_first():
    tracker = BatchTracker([IdentityKey(category="cargo", pass_id=500, cnic="11111-1111111-1")])

    assert tracker.conflict(PassCategory.CARGO, 500, "11111-1111111-1") == "CNIC 11111-1111111-1 already exists."
    assert tracker.conflict(PassCategory.CARGO, 500, "11111-1111111-1", pass_id_first=True) == (
        "Pass ID 500 already exists for category 'cargo'."
    )
    assert tracker.conflict(PassCategory.CARGO, 501, "11111-1111111-1", pass_id_first=True) == (
        "CNIC 11111-1111111-1 already exists."
    )
