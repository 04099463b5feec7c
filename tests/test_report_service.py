"""Tests for the report lifecycle and its authorization rules."""

import pytest

from app.core.exceptions import (
    EntityNotFoundException,
    ForbiddenException,
    InvalidStateException,
    StoreException,
    ValidationException,
)
from app.infrastructure.blob_store import MediaFile

BRIBERY = {
    "type": "red-flag",
    "title": "Bribery at checkpoint",
    "description": "Officer requested payment to allow passage",
    "location": None,
}


def photo(name="photo.jpg", size=10):
    return MediaFile(filename=name, content_type="image/jpeg", data=b"x" * size)


@pytest.fixture
def draft(report_service, alice):
    return report_service.create_report(alice, BRIBERY)


def test_create_starts_as_draft(report_service, alice):
    report = report_service.create_report(alice, BRIBERY)

    assert report.status == "draft"
    assert report.user_id == alice.user_id
    assert report.location is None
    assert report.media == []
    assert report.user.first_name == "Alice"


def test_create_with_location_and_media(report_service, alice, blob_store):
    report = report_service.create_report(
        alice,
        {**BRIBERY, "location": {"lat": 0.3476, "lng": 32.5825}},
        [photo("a.jpg"), photo("b.jpg")],
    )

    assert report.location.lat == pytest.approx(0.3476)
    assert report.media == ["blob://1/a.jpg", "blob://2/b.jpg"]
    assert len(blob_store.stored) == 2


@pytest.mark.parametrize("payload", [
    {"title": "t", "description": "d"},
    {"type": "complaint", "title": "t", "description": "d"},
    {"type": "red-flag", "description": "d"},
    {"type": "red-flag", "title": "t"},
    {"type": "red-flag", "title": "  ", "description": "d"},
    {"type": "intervention", "title": "t", "description": "d", "location": {"lat": 91, "lng": 0}},
])
def test_create_validation(report_service, alice, payload):
    with pytest.raises(ValidationException):
        report_service.create_report(alice, payload)


def test_create_rejects_bad_media_before_storing(report_service, alice, blob_store):
    bad = MediaFile(filename="notes.pdf", content_type="application/pdf", data=b"%PDF")

    with pytest.raises(ValidationException):
        report_service.create_report(alice, BRIBERY, [photo(), bad])
    assert blob_store.stored == []
    assert report_service.list_reports(alice) == []


def test_owner_and_admin_can_read(report_service, draft, alice, admin):
    assert report_service.get_report(alice, draft.id).id == draft.id
    assert report_service.get_report(admin, draft.id).id == draft.id


def test_other_user_cannot_read(report_service, draft, bob):
    with pytest.raises(ForbiddenException):
        report_service.get_report(bob, draft.id)


def test_read_missing_report(report_service, alice):
    with pytest.raises(EntityNotFoundException):
        report_service.get_report(alice, "no-such-id")


def test_list_scopes_by_role(report_service, alice, bob, admin):
    report_service.create_report(alice, BRIBERY)
    report_service.create_report(bob, {**BRIBERY, "type": "intervention", "title": "Broken bridge"})

    assert [r.user_id for r in report_service.list_reports(alice)] == [alice.user_id]
    assert [r.user_id for r in report_service.list_reports(bob)] == [bob.user_id]
    assert len(report_service.list_reports(admin)) == 2


def test_list_filters(report_service, alice, admin):
    first = report_service.create_report(alice, BRIBERY)
    report_service.create_report(alice, {**BRIBERY, "type": "intervention", "title": "Broken bridge"})
    report_service.set_status(admin, first.id, {"status": "rejected"})

    assert [r.id for r in report_service.list_reports(alice, {"status": "rejected"})] == [first.id]
    assert [r.title for r in report_service.list_reports(admin, {"type": "intervention"})] == ["Broken bridge"]
    with pytest.raises(ValidationException):
        report_service.list_reports(alice, {"status": "archived"})


def test_list_newest_first(report_service, alice):
    older = report_service.create_report(alice, BRIBERY)
    newer = report_service.create_report(alice, {**BRIBERY, "title": "Second"})

    assert [r.id for r in report_service.list_reports(alice)] == [newer.id, older.id]


def test_list_user_reports(report_service, alice, bob, admin):
    report_service.create_report(alice, BRIBERY)

    assert len(report_service.list_user_reports(alice, alice.user_id)) == 1
    assert len(report_service.list_user_reports(admin, alice.user_id)) == 1
    with pytest.raises(ForbiddenException):
        report_service.list_user_reports(bob, alice.user_id)


def test_owner_updates_draft(report_service, draft, alice):
    updated = report_service.update_report(alice, draft.id, {"title": "Bribery at Nakawa checkpoint"})

    assert updated.title == "Bribery at Nakawa checkpoint"
    assert updated.description == BRIBERY["description"]
    assert updated.status == "draft"


def test_update_sets_and_clears_location(report_service, draft, alice):
    located = report_service.update_report(alice, draft.id, {"location": {"lat": 1.5, "lng": 30.2}})
    assert located.location.lng == pytest.approx(30.2)

    untouched = report_service.update_report(alice, draft.id, {"title": "Still located"})
    assert untouched.location is not None

    cleared = report_service.update_report(alice, draft.id, {"location": None})
    assert cleared.location is None


def test_update_appends_media(report_service, alice):
    report = report_service.create_report(alice, BRIBERY, [photo("a.jpg")])

    updated = report_service.update_report(alice, report.id, {}, [photo("b.jpg")])

    assert updated.media == ["blob://1/a.jpg", "blob://2/b.jpg"]


def test_update_retained_media_drops_omitted(report_service, alice):
    report = report_service.create_report(alice, BRIBERY, [photo("a.jpg"), photo("b.jpg")])

    updated = report_service.update_report(
        alice, report.id, {"retained_media": ["blob://2/b.jpg"]}, [photo("c.jpg")],
    )

    assert updated.media == ["blob://2/b.jpg", "blob://3/c.jpg"]


def test_update_retained_media_must_belong_to_report(report_service, alice):
    report = report_service.create_report(alice, BRIBERY, [photo("a.jpg")])

    with pytest.raises(ValidationException):
        report_service.update_report(alice, report.id, {"retained_media": ["/uploads/elsewhere.jpg"]})


def test_update_validation(report_service, draft, alice):
    with pytest.raises(ValidationException):
        report_service.update_report(alice, draft.id, {"title": ""})


def test_other_user_cannot_mutate(report_service, draft, bob):
    with pytest.raises(ForbiddenException):
        report_service.update_report(bob, draft.id, {"title": "Hijacked"})
    with pytest.raises(ForbiddenException):
        report_service.delete_report(bob, draft.id)


def test_admin_cannot_edit_content(report_service, draft, admin):
    with pytest.raises(ForbiddenException):
        report_service.update_report(admin, draft.id, {"title": "Edited by admin"})


def test_owner_deletes_draft(report_service, draft, alice):
    report_service.delete_report(alice, draft.id)

    with pytest.raises(EntityNotFoundException):
        report_service.get_report(alice, draft.id)
    with pytest.raises(EntityNotFoundException):
        report_service.delete_report(alice, draft.id)


def test_lifecycle_after_admin_review(report_service, draft, alice, admin):
    reviewed = report_service.set_status(admin, draft.id, {"status": "under-investigation"})
    assert reviewed.status == "under-investigation"
    assert report_service.get_report(alice, draft.id).status == "under-investigation"

    with pytest.raises(InvalidStateException):
        report_service.update_report(alice, draft.id, {"title": "Too late"})
    with pytest.raises(InvalidStateException):
        report_service.delete_report(alice, draft.id)

    resolved = report_service.set_status(admin, draft.id, {"status": "resolved"})
    assert resolved.status == "resolved"
    assert report_service.get_report(alice, draft.id).title == BRIBERY["title"]


def test_other_user_mutating_reviewed_report_is_forbidden(report_service, draft, bob, admin):
    report_service.set_status(admin, draft.id, {"status": "rejected"})

    with pytest.raises(ForbiddenException):
        report_service.delete_report(bob, draft.id)


def test_set_status_requires_admin(report_service, draft, alice):
    with pytest.raises(ForbiddenException):
        report_service.set_status(alice, draft.id, {"status": "resolved"})


def test_set_status_forbidden_before_validation(report_service, draft, bob):
    with pytest.raises(ForbiddenException):
        report_service.set_status(bob, draft.id, {"status": "draft"})


@pytest.mark.parametrize("status", ["draft", "closed", ""])
def test_set_status_rejects_unknown_target(report_service, draft, admin, status):
    with pytest.raises(ValidationException):
        report_service.set_status(admin, draft.id, {"status": status})


def test_set_status_missing_report(report_service, admin):
    with pytest.raises(EntityNotFoundException):
        report_service.set_status(admin, "no-such-id", {"status": "resolved"})


def test_set_status_notifies_owner(report_service, draft, admin, notifier):
    report_service.set_status(admin, draft.id, {"status": "under-investigation"})

    assert notifier.status_changes == [(
        "alice@example.com",
        "Alice Nakato",
        "Bribery at checkpoint",
        "draft",
        "under-investigation",
    )]


def test_set_status_to_same_value_does_not_notify(report_service, draft, admin, notifier):
    report_service.set_status(admin, draft.id, {"status": "rejected"})
    report_service.set_status(admin, draft.id, {"status": "rejected"})

    assert len(notifier.status_changes) == 1


def test_failed_notice_does_not_block_status_change(report_service, draft, alice, admin, notifier):
    notifier.deliver_status = False

    report_service.set_status(admin, draft.id, {"status": "resolved"})

    assert report_service.get_report(alice, draft.id).status == "resolved"


def test_promoted_user_acts_as_admin_immediately(report_service, draft, bob, user_repo):
    user_repo.set_role(user_repo.get_by_id(bob.user_id), "admin")

    # bob's claims still say "user"; the stored role decides
    assert report_service.get_report(bob, draft.id).id == draft.id


def test_update_losing_draft_race_removes_new_media(report_service, report_repo, draft, alice, blob_store, monkeypatch):
    monkeypatch.setattr(report_repo, "update_if_draft", lambda *args, **kwargs: None)

    with pytest.raises(InvalidStateException):
        report_service.update_report(alice, draft.id, {}, [photo("p.jpg")])

    assert blob_store.stored == []
    assert blob_store.deleted == ["blob://1/p.jpg"]


def test_create_store_failure_removes_media(report_service, report_repo, alice, blob_store, monkeypatch):
    def fail(*args, **kwargs):
        raise StoreException()

    monkeypatch.setattr(report_repo, "create", fail)

    with pytest.raises(StoreException):
        report_service.create_report(alice, BRIBERY, [photo("p.jpg"), photo("q.jpg")])

    assert blob_store.stored == []


def test_successful_update_keeps_media(report_service, draft, alice, blob_store):
    report_service.update_report(alice, draft.id, {}, [photo("p.jpg")])

    assert blob_store.deleted == []
    assert len(blob_store.stored) == 1
