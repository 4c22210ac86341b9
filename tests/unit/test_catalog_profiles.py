"""Unit tests for the document catalog and SmartScore profile tables"""

import pytest

from credit_committee.domain.catalog import get_document_categories, get_required_documents
from credit_committee.domain.exceptions import UnknownProfileError
from credit_committee.domain.models import ProjectType
from credit_committee.domain.operation import BorrowerProfile
from credit_committee.domain.profiles import PillarKey, get_all_score_profiles, get_score_profile


@pytest.mark.parametrize(
    "project_type,size,first_id",
    [(ProjectType.DEVELOPER, 18, "promo-01"), (ProjectType.TRADER, 15, "march-01"), (ProjectType.BASELINE, 11, "base-01")],
)
def test_catalog_sizes(project_type, size, first_id):
    docs = get_required_documents(project_type)
    assert len(docs) == size
    assert docs[0].id == first_id
    assert len({d.id for d in docs}) == size


def test_catalog_accepts_raw_strings_and_falls_back_to_baseline():
    assert get_required_documents("marchand") == get_required_documents(ProjectType.TRADER)
    assert get_required_documents("hotellerie") == get_required_documents(ProjectType.BASELINE)


def test_catalog_returns_a_copy():
    docs = get_required_documents(ProjectType.BASELINE)
    docs.clear()
    assert len(get_required_documents(ProjectType.BASELINE)) == 11


def test_document_categories_in_catalog_order():
    assert get_document_categories(ProjectType.BASELINE) == [
        "Juridique",
        "Financier",
        "Acquisition",
        "Technique",
        "Assurance",
    ]


@pytest.mark.parametrize("profile", get_all_score_profiles(), ids=lambda p: p.profile.value)
def test_profile_weights_sum_to_100(profile):
    assert profile.total_points == 100


@pytest.mark.parametrize("profile", get_all_score_profiles(), ids=lambda p: p.profile.value)
def test_profile_covers_every_pillar_once(profile):
    assert [p.key for p in profile.pillars] == list(PillarKey)


def test_profile_thresholds_are_decreasing():
    for profile in get_all_score_profiles():
        t = profile.thresholds
        assert t.a > t.b > t.c > t.d > 0


def test_individual_profile_configuration():
    profile = get_score_profile(BorrowerProfile.INDIVIDUAL)
    assert profile.thresholds.a == 80
    assert profile.blocker_penalty == 6
    assert profile.warn_penalty == 2


def test_unknown_profile_raises():
    with pytest.raises(UnknownProfileError) as exc:
        get_score_profile("hotelier")
    assert exc.value.profile == "hotelier"
