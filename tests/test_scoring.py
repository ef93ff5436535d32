import pytest
from sqlalchemy import update

from fixerhub.domain.certifications.scoring import CertificationScoring, calculated_level
from fixerhub.errors import ValidationError
from fixerhub.models import User


@pytest.mark.parametrize(
    "points, level",
    [
        (0, "bronze"),
        (49, "bronze"),
        (50, "silver"),
        (149, "silver"),
        (150, "gold"),
        (299, "gold"),
        (300, "platinum"),
        (499, "platinum"),
        (500, "diamond"),
        (5000, "diamond"),
    ],
)
def test_calculated_level_thresholds(points, level):
    assert calculated_level(points) == level


def test_calculated_certification_level_property(make_user):
    user = make_user("service_provider", certification_points=160)
    assert user.calculated_certification_level == "gold"


def test_add_points_updates_level_and_verified_count(db, provider):
    CertificationScoring.add_certification_points(db, provider, 60)

    assert provider.certification_points == 60
    assert provider.certification_level == "silver"
    assert provider.verified_certifications == 1
    assert provider.total_certifications == 0


def test_remove_points_floors_at_zero(db, provider):
    CertificationScoring.add_certification_points(db, provider, 20)
    CertificationScoring.remove_certification_points(db, provider, 50)

    assert provider.certification_points == 0
    assert provider.verified_certifications == 0
    assert provider.certification_level == "bronze"


def test_verified_count_never_negative(db, provider):
    CertificationScoring.remove_certification_points(db, provider, 10)
    assert provider.verified_certifications == 0
    assert provider.certification_points == 0


def test_add_then_remove_restores_points_and_level(db, provider):
    CertificationScoring.add_certification_points(db, provider, 40)
    CertificationScoring.add_certification_points(db, provider, 120)
    assert provider.certification_level == "gold"

    CertificationScoring.remove_certification_points(db, provider, 120)

    assert provider.certification_points == 40
    assert provider.certification_level == "bronze"
    assert provider.verified_certifications == 1


def test_negative_points_rejected(db, provider):
    with pytest.raises(ValidationError):
        CertificationScoring.add_certification_points(db, provider, -5)
    db.refresh(provider)
    assert provider.certification_points == 0


def test_update_level_recomputes_from_stored_points(db, provider):
    db.execute(
        update(User)
        .where(User.id == provider.id)
        .values(certification_points=320)
        .execution_options(synchronize_session=False)
    )
    CertificationScoring.update_level(db, provider)

    assert provider.certification_level == "platinum"


def test_award_reads_current_row_not_stale_instance(db, provider):
    # Another writer adds points after this session loaded the provider
    db.execute(
        update(User)
        .where(User.id == provider.id)
        .values(certification_points=User.certification_points + 30)
        .execution_options(synchronize_session=False)
    )
    assert provider.certification_points == 0

    CertificationScoring.add_certification_points(db, provider, 25)

    assert provider.certification_points == 55
    assert provider.certification_level == "silver"


def test_uncommitted_award_rolls_back_with_transaction(db, provider):
    CertificationScoring.add_certification_points(db, provider, 80, commit=False)
    assert provider.certification_points == 80

    db.rollback()
    db.refresh(provider)

    assert provider.certification_points == 0
    assert provider.certification_level == "bronze"


def test_profile_picture_points(db, provider):
    CertificationScoring.add_profile_picture_points(db, provider, 25)
    assert provider.profile_picture_points == 25

    CertificationScoring.remove_profile_picture_points(db, provider, 40)
    assert provider.profile_picture_points == 0
    # Picture points never touch the certification level
    assert provider.certification_points == 0
    assert provider.certification_level == "bronze"


def test_adjust_total_certifications_floors_at_zero(db, provider):
    CertificationScoring.adjust_total_certifications(db, provider, 2)
    assert provider.total_certifications == 2

    CertificationScoring.adjust_total_certifications(db, provider, -5)
    assert provider.total_certifications == 0
