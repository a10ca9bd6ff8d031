from __future__ import annotations

from typing import TYPE_CHECKING

import pytest

from signalsmith.adapters.contactout import (
    ContactOutAPIError,
    ContactOutDirectoryLookup,
    ContactOutProfile,
    ContactOutSearchResponse,
    pick_match,
)
from signalsmith.adapters.contactout.lookup import SKIPPED_NO_COMPANY
from signalsmith.domain.errors import ExternalLookupError

if TYPE_CHECKING:
    from collections.abc import Sequence

    from signalsmith.config.directory import DirectoryConfig

    Answers = dict[tuple[str | None, str | None], list[dict[str, object]]]


def _profile(
    name: str, company: str = "Acme Holdings", vanity: str | None = None
) -> dict[str, object]:
    return {
        "full_name": name,
        "title": "Chief Executive Officer",
        "company": {"name": company},
        "li_vanity": vanity or name.lower().replace(" ", "-"),
    }


class FakeContactOutClient:
    """Answers searches from a table keyed by (name, seniority)."""

    def __init__(self, answers: Answers) -> None:
        self.answers = answers
        self.calls: list[dict[str, object]] = []
        self.failing_seniority: set[str | None] = set()

    def search_people(
        self,
        *,
        name: str | None = None,
        companies: Sequence[str] = (),
        seniority: Sequence[str] = (),
    ) -> ContactOutSearchResponse:
        level = seniority[0] if seniority else None
        self.calls.append({"name": name, "companies": list(companies), "seniority": level})
        if level in self.failing_seniority:
            raise ContactOutAPIError("ContactOut API error: 503", status_code=503)
        profiles = self.answers.get((name, level), [])
        return ContactOutSearchResponse.model_validate({"profiles": profiles})


def _lookup(
    directory_config: DirectoryConfig, client: FakeContactOutClient
) -> ContactOutDirectoryLookup:
    return ContactOutDirectoryLookup(
        config=directory_config,
        client=client,  # type: ignore[arg-type]
    )


def test_pick_match_rejects_people_at_different_companies() -> None:
    jane = ContactOutProfile.model_validate(_profile("Jane Smith"))
    jane_elsewhere = ContactOutProfile.model_validate(_profile("Jane Smith", "Globex"))
    jane_again = ContactOutProfile.model_validate(_profile("Jane Smith", "ACME HOLDINGS"))

    assert pick_match([]) is None
    assert pick_match([jane]) is jane
    assert pick_match([jane, jane_elsewhere]) is None
    assert pick_match([jane, jane_again]) is jane


def test_search_by_name_requires_company(directory_config: DirectoryConfig) -> None:
    client = FakeContactOutClient({})

    result = _lookup(directory_config, client).search_by_name("Jane Smith", "  ")

    assert not result.found
    assert result.search_attempts == (SKIPPED_NO_COMPANY,)
    assert client.calls == []


def test_search_by_name_tries_name_variations(directory_config: DirectoryConfig) -> None:
    client = FakeContactOutClient({("Jane Smith", None): [_profile("Jane Smith")]})

    lookup = _lookup(directory_config, client)

    result = lookup.search_by_name("Dr. Jane Smith", "Acme Holdings Inc")

    assert result.found
    assert result.record is not None
    assert result.record.linkedin_url == "https://www.linkedin.com/in/jane-smith"
    assert [call["name"] for call in client.calls] == ["Dr. Jane Smith", "Jane Smith"]
    assert client.calls[0]["companies"] == ["Acme Holdings Inc", "Acme Holdings"]
    assert len(result.search_attempts) == 2


def test_search_by_name_skips_ambiguous_results(directory_config: DirectoryConfig) -> None:
    client = FakeContactOutClient(
        {("John Doe", None): [_profile("John Doe"), _profile("John Doe", "Globex", "jd-2")]}
    )

    result = _lookup(directory_config, client).search_by_name("John Doe", "Acme Holdings")

    assert not result.found
    assert result.record is None


def test_search_by_name_failure_propagates_as_lookup_error(
    directory_config: DirectoryConfig,
) -> None:
    client = FakeContactOutClient({})
    client.failing_seniority.add(None)

    with pytest.raises(ExternalLookupError):
        _lookup(directory_config, client).search_by_name("Jane Smith", "Acme Holdings")


def test_search_by_organization_limits_each_tier(directory_config: DirectoryConfig) -> None:
    client = FakeContactOutClient(
        {
            (None, "CXO"): [
                _profile("Jane Smith"),
                _profile("Ann Lee"),
                _profile("Bob Stone"),
            ],
            (None, "VP"): [_profile("Jane Smith"), _profile("John Doe")],
        }
    )

    result = _lookup(directory_config, client).search_by_organization(
        "Acme Holdings Inc",
        name_variants=["Acme"],
        seniority_limits=[("CXO", 2), ("VP", 2)],
    )

    assert result.found
    assert [record.full_name for record in result.executives] == [
        "Jane Smith",
        "Ann Lee",
        "John Doe",
    ]
    assert result.company_variations == ("Acme Holdings Inc", "Acme", "Acme Holdings")
    assert [call["seniority"] for call in client.calls] == ["CXO", "VP"]


def test_search_by_organization_skips_failed_tier(directory_config: DirectoryConfig) -> None:
    client = FakeContactOutClient({(None, "VP"): [_profile("John Doe")]})
    client.failing_seniority.add("CXO")

    result = _lookup(directory_config, client).search_by_organization(
        "Acme Holdings", seniority_limits=[("CXO", 2), ("VP", 2)]
    )

    assert [record.full_name for record in result.executives] == ["John Doe"]
