"""Tests for reconciling partial resume updates against the loaded resume."""

from __future__ import annotations

import copy
from datetime import UTC, datetime

import pytest

from resume_builder.errors import MalformedPayloadError, ValidationFailedError
from resume_builder.services.reconcile import (
    ALREADY_UPLOADED,
    RESUME_FIELDS,
    FieldKind,
    mark_for_deletion,
    reconcile,
)

NOW = datetime(2024, 1, 1, tzinfo=UTC)


def _resume(**overrides):
    root = {
        "id": "r1",
        "user_id": "u1",
        "title": "Backend",
        "description": None,
        "hobbies": None,
        "personal_info": None,
        "experiences": [],
        "education": [],
        "skills": [],
        "spoken_languages": [],
        "supplementary_skills": [],
        "inserted_at": NOW,
        "updated_at": NOW,
    }
    root.update(overrides)
    return root


def _full_payload_from(root):
    """Build a payload that resends every association exactly as stored."""
    payload = {}
    for name, kind in RESUME_FIELDS:
        if kind is FieldKind.LIST_ASSOC:
            payload[name] = [dict(r) for r in root[name]]
        elif kind is FieldKind.SINGLE_ASSOC and root[name]:
            payload[name] = dict(root[name])
    return payload


def test_mark_for_deletion_copies_record():
    """The marker sets the delete flag on a copy and leaves the input alone."""
    record = {"id": "e1", "company_name": "Acme"}

    marked = mark_for_deletion(record)

    assert marked == {"id": "e1", "company_name": "Acme", "delete": True}
    assert "delete" not in record
    assert marked is not record


class TestUntouchedKeys:
    """Keys absent from the payload carry over from the loaded resume."""

    def test_omitted_personal_info_is_kept(self):
        root = _resume(personal_info={"id": "p1", "first_name": "Amy"})

        result = reconcile(root, {})

        assert result["personal_info"] == {"id": "p1", "first_name": "Amy"}

    def test_omitted_list_is_kept(self):
        experiences = [{"id": "e1", "company_name": "Acme"}, {"id": "e2", "company_name": "Beta"}]
        root = _resume(experiences=experiences)

        result = reconcile(root, {"title": "New"})

        assert result["experiences"] == experiences
        assert all("delete" not in r for r in result["experiences"])

    def test_empty_and_omitted_associations_are_left_out(self):
        result = reconcile(_resume(), {"title": "New"})

        for name in ("personal_info", "experiences", "education", "skills"):
            assert name not in result

    def test_scalars_and_metadata(self):
        later = datetime(2024, 6, 1, tzinfo=UTC)
        root = _resume(description="old")

        result = reconcile(root, {"title": "New", "updated_at": later})

        assert result["title"] == "New"
        assert result["description"] == "old"
        assert result["inserted_at"] == NOW
        assert result["updated_at"] == later
        assert result["id"] == "r1"

    def test_explicit_none_scalar_wins(self):
        result = reconcile(_resume(description="old"), {"description": None})

        assert result["description"] is None

    def test_unknown_keys_are_ignored(self):
        result = reconcile(_resume(), {"nickname": "x"})

        assert "nickname" not in result

    def test_output_follows_declared_field_order(self):
        root = _resume(experiences=[{"id": "e1"}], personal_info={"id": "p1"})

        result = reconcile(root, {})

        declared = [name for name, _ in RESUME_FIELDS]
        assert list(result) == [name for name in declared if name in result]


class TestSingleAssociation:
    def test_supplied_record_inherits_existing_id(self):
        root = _resume(personal_info={"id": "p1", "first_name": "Amy"})

        result = reconcile(root, {"personal_info": {"first_name": "Ann"}})

        assert result["personal_info"] == {"first_name": "Ann", "id": "p1"}

    def test_supplied_id_is_overridden_by_existing_one(self):
        root = _resume(personal_info={"id": "p1"})

        result = reconcile(root, {"personal_info": {"id": "other", "last_name": "Lee"}})

        assert result["personal_info"]["id"] == "p1"

    @pytest.mark.parametrize("cleared", [None, {}])
    def test_cleared_record_is_marked_for_deletion(self, cleared):
        root = _resume(personal_info={"id": "p1", "first_name": "Amy"})

        result = reconcile(root, {"personal_info": cleared})

        assert result["personal_info"] == {"id": "p1", "first_name": "Amy", "delete": True}

    def test_already_uploaded_photo_is_stripped(self):
        root = _resume(personal_info={"id": "p1", "photo": "http://cdn/p1.png"})

        result = reconcile(root, {"personal_info": {"photo": ALREADY_UPLOADED}})

        assert result["personal_info"] == {"id": "p1"}

    def test_upload_descriptor_photo_is_stripped(self):
        root = _resume(personal_info={"id": "p1"})
        photo = {"file_name": "me.png", "content_type": "image/png"}

        result = reconcile(root, {"personal_info": {"photo": photo, "first_name": "Amy"}})

        assert result["personal_info"] == {"id": "p1", "first_name": "Amy"}

    def test_new_photo_is_kept(self):
        root = _resume(personal_info={"id": "p1", "photo": "old.png"})

        result = reconcile(root, {"personal_info": {"photo": "new.png"}})

        assert result["personal_info"] == {"id": "p1", "photo": "new.png"}

    def test_creation_when_nothing_stored(self):
        result = reconcile(_resume(), {"personal_info": {"first_name": "Amy"}})

        assert result["personal_info"] == {"first_name": "Amy"}

    def test_clearing_when_nothing_stored_passes_through(self):
        result = reconcile(_resume(), {"personal_info": None})

        assert result["personal_info"] is None

    def test_non_mapping_is_rejected(self):
        with pytest.raises(MalformedPayloadError) as exc_info:
            reconcile(_resume(personal_info={"id": "p1"}), {"personal_info": "Amy"})

        assert exc_info.value.errors == {"personal_info": ["must be an object"]}


class TestListAssociation:
    def test_empty_list_marks_every_record(self):
        root = _resume(experiences=[{"id": "e1", "company_name": "Acme"}])

        result = reconcile(root, {"experiences": []})

        assert result["experiences"] == [{"id": "e1", "company_name": "Acme", "delete": True}]

    @pytest.mark.parametrize("cleared", [None, [None]])
    def test_none_clears_every_record(self, cleared):
        root = _resume(skills=[{"id": "s1"}, {"id": "s2"}])

        result = reconcile(root, {"skills": cleared})

        assert result["skills"] == [{"id": "s1", "delete": True}, {"id": "s2", "delete": True}]

    def test_pure_creation_adds_no_id(self):
        result = reconcile(_resume(), {"education": [{"school": "MIT", "course": "BSc"}]})

        assert result["education"] == [{"school": "MIT", "course": "BSc"}]

    def test_clearing_an_empty_list(self):
        result = reconcile(_resume(), {"education": [None]})

        assert result["education"] == []

    def test_mixed_update_delete_and_create(self):
        root = _resume(
            experiences=[
                {"id": "e1", "company_name": "Acme", "position": "Dev"},
                {"id": "e2", "company_name": "Beta", "position": "Lead"},
            ]
        )
        payload = {
            "experiences": [
                {"id": "e2", "company_name": "Beta Corp"},
                {"company_name": "Gamma", "position": "CTO"},
            ]
        }

        result = reconcile(root, payload)

        assert result["experiences"] == [
            {"id": "e1", "company_name": "Acme", "position": "Dev", "delete": True},
            {"id": "e2", "company_name": "Beta Corp"},
            {"company_name": "Gamma", "position": "CTO"},
        ]

    def test_payload_version_wins_without_field_merge(self):
        root = _resume(skills=[{"id": "s1", "description": "Python", "index": 0}])

        result = reconcile(root, {"skills": [{"id": "s1", "index": 3}]})

        assert result["skills"] == [{"id": "s1", "index": 3}]

    def test_ids_are_compared_as_strings(self):
        root = _resume(skills=[{"id": "7", "description": "Go"}])

        result = reconcile(root, {"skills": [{"id": 7, "description": "Rust"}]})

        assert result["skills"] == [{"id": 7, "description": "Rust"}]

    def test_unknown_ids_are_dropped(self, caplog):
        root = _resume(skills=[{"id": "s1", "description": "Go"}])
        payload = {"skills": [{"id": "s1"}, {"id": "ghost", "description": "?"}]}

        with caplog.at_level("WARNING", logger="resume_builder.services.reconcile"):
            result = reconcile(root, payload)

        assert result["skills"] == [{"id": "s1"}]
        assert "ghost" in caplog.text

    def test_unknown_ids_are_dropped_from_empty_section(self, caplog):
        payload = {"skills": [{"id": "ghost", "description": "Py"}, {"description": "Go"}]}

        with caplog.at_level("WARNING", logger="resume_builder.services.reconcile"):
            result = reconcile(_resume(), payload)

        assert result["skills"] == [{"description": "Go"}]
        assert "ghost" in caplog.text

    def test_explicit_null_id_is_a_creation(self):
        root = _resume(skills=[{"id": "s1", "description": "Go"}])

        result = reconcile(root, {"skills": [{"id": "s1"}, {"id": None, "description": "Py"}]})

        assert result["skills"] == [{"id": "s1"}, {"id": None, "description": "Py"}]

    def test_non_mapping_entry_is_rejected(self):
        root = _resume(skills=[{"id": "s1"}])

        with pytest.raises(MalformedPayloadError) as exc_info:
            reconcile(root, {"skills": [{"id": "s1"}, "Python"]})

        assert exc_info.value.errors == {"skills.1": ["must be an object"]}
        assert isinstance(exc_info.value, ValidationFailedError)

    def test_non_list_is_rejected(self):
        with pytest.raises(MalformedPayloadError):
            reconcile(_resume(skills=[{"id": "s1"}]), {"skills": {"id": "s1"}})

    def test_every_unreferenced_record_is_marked(self):
        existing = [{"id": f"e{i}"} for i in range(5)]
        root = _resume(experiences=existing)

        result = reconcile(root, {"experiences": [{"id": "e1"}, {"id": "e3"}]})

        marked = {r["id"] for r in result["experiences"] if r.get("delete")}
        kept = {r["id"] for r in result["experiences"] if not r.get("delete")}
        assert marked == {"e0", "e2", "e4"}
        assert kept == {"e1", "e3"}


class TestEmbedded:
    def test_omitted_hobbies_are_copied(self):
        hobbies = [{"id": "h1", "description": "Chess", "index": 0}]
        root = _resume(hobbies=hobbies)

        result = reconcile(root, {})

        assert result["hobbies"] == hobbies
        assert result["hobbies"][0] is not hobbies[0]

    def test_supplied_hobbies_replace_stored_list(self):
        root = _resume(
            hobbies=[
                {"id": "h1", "description": "Chess"},
                {"id": "h2", "description": "Golf"},
            ]
        )

        result = reconcile(root, {"hobbies": [{"id": "h2", "description": "Mini golf"}]})

        assert result["hobbies"] == [{"id": "h2", "description": "Mini golf"}]

    def test_supplied_hobbies_without_ids_replace_stored_list(self):
        root = _resume(hobbies=[{"id": "h1", "description": "Chess"}])

        result = reconcile(root, {"hobbies": [{"description": "Hiking"}]})

        assert result["hobbies"] == [{"description": "Hiking"}]

    @pytest.mark.parametrize("cleared", [None, []])
    def test_supplied_empty_hobbies_clear_stored_list(self, cleared):
        root = _resume(hobbies=[{"id": "h1", "description": "Chess"}])

        result = reconcile(root, {"hobbies": cleared})

        assert result["hobbies"] == cleared

    def test_structure_inherits_id(self):
        fields = (("settings", FieldKind.EMBEDDED),)

        result = reconcile(
            {"settings": {"id": "cfg", "theme": "dark"}},
            {"settings": {"theme": "light"}},
            fields,
        )

        assert result == {"settings": {"theme": "light", "id": "cfg"}}

    def test_hobbies_when_nothing_stored(self):
        result = reconcile(_resume(), {"hobbies": [{"description": "Chess"}]})

        assert result["hobbies"] == [{"description": "Chess"}]


def test_full_payload_is_idempotent():
    """Resending every association unchanged yields the stored associations."""
    root = _resume(
        personal_info={"id": "p1", "first_name": "Amy"},
        experiences=[{"id": "e1", "company_name": "Acme"}, {"id": "e2", "company_name": "B"}],
        skills=[{"id": "s1", "description": "Python"}],
    )

    result = reconcile(root, _full_payload_from(root))

    for name, kind in RESUME_FIELDS:
        if kind in (FieldKind.LIST_ASSOC, FieldKind.SINGLE_ASSOC) and root[name]:
            assert result[name] == root[name]
    assert "delete" not in str(result)


def test_inputs_are_not_mutated():
    root = _resume(
        personal_info={"id": "p1", "photo": "x.png"},
        experiences=[{"id": "e1"}],
        hobbies=[{"id": "h1"}],
    )
    payload = {
        "personal_info": {"photo": ALREADY_UPLOADED},
        "experiences": [{"company_name": "New"}],
        "hobbies": [{"description": "Chess"}],
    }
    root_before = copy.deepcopy(root)
    payload_before = copy.deepcopy(payload)

    reconcile(root, payload)

    assert root == root_before
    assert payload == payload_before
