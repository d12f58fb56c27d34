"""Unit tests for the identifier resolver."""

import pytest

from emailmaster.cache import EmailCache
from emailmaster.identity import IdentityStore, format_reference, resolve, resolve_identifier
from emailmaster.models import EmailRecord, IdentityMapping


@pytest.fixture
def indexed() -> tuple[list[EmailRecord], IdentityMapping]:
    ids = ["aaaa1111bbbb", "ccc2222", "ddd3333"]
    mapping = IdentityMapping()
    emails = []
    for uid in ids:
        index = mapping.allocate(uid)
        emails.append(EmailRecord(id=uid, unique_id=uid, assigned_index=index, subject=f"subject {uid}"))
    return emails, mapping


class TestResolve:
    def test_numeric_token_is_an_index(self, indexed) -> None:
        result = resolve("2", *indexed)

        assert result.success
        assert result.email is not None
        assert result.email.unique_id == "ccc2222"
        assert result.index == 2

    def test_full_unique_id(self, indexed) -> None:
        result = resolve("aaaa1111bbbb", *indexed)

        assert result.success
        assert result.index == 1
        assert result.unique_id == "aaaa1111bbbb"

    def test_eight_character_prefix(self, indexed) -> None:
        result = resolve("aaaa1111", *indexed)

        assert result.success
        assert result.index == 1

    def test_unknown_token_not_found(self, indexed) -> None:
        result = resolve("zzzz", *indexed)

        assert not result.success
        assert result.email is None
        assert result.error == 'Email not found: zzzz. Use "emailmaster list" to see available emails.'

    def test_short_prefix_is_not_matched(self, indexed) -> None:
        assert not resolve("aaaa", *indexed).success

    def test_index_without_cached_email_is_not_found(self, indexed) -> None:
        assert not resolve("7", *indexed).success

    def test_whitespace_is_ignored(self, indexed) -> None:
        assert resolve(" 3 ", *indexed).index == 3

    def test_empty_token(self, indexed) -> None:
        result = resolve("   ", *indexed)

        assert not result.success
        assert result.error

    def test_ambiguous_prefix_lists_candidates(self) -> None:
        mapping = IdentityMapping()
        emails = []
        for uid in ["18c2f0a1aaaa", "18c2f0a1bbbb"]:
            emails.append(EmailRecord(id=uid, unique_id=uid, assigned_index=mapping.allocate(uid)))

        result = resolve("18c2f0a1", emails, mapping)

        assert not result.success
        assert "Ambiguous" in (result.error or "")
        assert result.candidates == ("18c2f0a1aaaa", "18c2f0a1bbbb")

    def test_exact_match_wins_over_prefix(self) -> None:
        mapping = IdentityMapping()
        emails = []
        for uid in ["abcdefgh", "abcdefgh123"]:
            emails.append(EmailRecord(id=uid, unique_id=uid, assigned_index=mapping.allocate(uid)))

        result = resolve("abcdefgh", emails, mapping)

        assert result.success
        assert result.index == 1

    def test_numeric_unique_id_with_index_disabled(self) -> None:
        mapping = IdentityMapping()
        uid = "12345678901"
        emails = [EmailRecord(id=uid, unique_id=uid, assigned_index=mapping.allocate(uid))]

        assert not resolve(uid, emails, mapping).success
        assert resolve(uid, emails, mapping, allow_index=False).index == 1


class TestResolveIdentifier:
    def test_no_cache_yet(self, settings) -> None:
        result = resolve_identifier("1", EmailCache(settings.data_dir), IdentityStore(settings.data_dir))

        assert not result.success
        assert result.error == 'No emails found. Run "emailmaster fetch" first.'

    def test_resolves_against_persisted_state(self, settings, make_email) -> None:
        store = IdentityStore(settings.data_dir)
        cache = EmailCache(settings.data_dir)
        annotated, _ = store.assign_indices([make_email(id="m1"), make_email(id="m2", subject="Second")])
        cache.save(annotated)

        result = resolve_identifier("2", cache, store)

        assert result.success
        assert result.email is not None
        assert result.email.subject == "Second"


def test_format_reference() -> None:
    email = EmailRecord(id="18c2f0a1b2c3", unique_id="18c2f0a1b2c3", assigned_index=3)

    assert format_reference(email) == "#3 (ID: 18c2f0a1...)"
    assert format_reference(EmailRecord(id="x")) == "Unknown"
