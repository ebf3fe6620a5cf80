"""Move-in workflow: ordering of checks, atomicity and agreement numbering."""
from datetime import date
from decimal import Decimal

import pytest

from models import Lease, LeaseStatus, Payment, PaymentStatus, PropertyUnit, UnitStatus, UserRole
from schemas.lease import LeaseTermsInput
from services.exceptions import ConflictError, ForbiddenError, NotFoundError, ValidationError
from services.lease_service import LeaseService
from tests.conftest import caller, move_in_request


def _unit(db, unit_id):
    return db.query(PropertyUnit).filter(PropertyUnit.id == unit_id).one()


def test_move_in_creates_lease_schedule_and_occupies_unit(db, seed, generator):
    owner = caller(seed.owner, UserRole.OWNER)
    result = LeaseService.move_in(db, owner, seed.property, seed.unit_a, move_in_request(seed.tenant), generator)
    db.commit()

    lease = result.lease
    assert lease.status == LeaseStatus.ACTIVE
    assert lease.agreement_number == "LA-000001"
    assert lease.owner_id == seed.owner
    assert lease.security_deposit == Decimal("2000.00")
    assert lease.advance_payment == Decimal("0")
    assert result.payments_created == 12
    assert result.agreement_path == lease.agreement_pdf_path
    assert len(generator.generated) == 1

    unit = _unit(db, seed.unit_a)
    assert unit.status == UnitStatus.OCCUPIED
    assert unit.tenant_id == seed.tenant

    payments = db.query(Payment).filter(Payment.lease_id == lease.id).order_by(Payment.due_date).all()
    assert len(payments) == 12
    assert all(p.status == PaymentStatus.PENDING for p in payments)
    assert payments[0].due_date == date(2025, 1, 1)
    assert payments[0].unit_number == "101"


def test_move_in_applies_default_terms(db, seed, generator):
    result = LeaseService.move_in(
        db, caller(seed.admin, UserRole.ADMIN), seed.property, seed.unit_a, move_in_request(seed.tenant), generator
    )
    assert result.lease.terms == {
        "late_fee_amount": Decimal("50"),
        "late_fee_after_days": 5,
        "notice_period_days": 30,
        "pet_allowed": False,
        "smoking_allowed": False,
    }


def test_move_in_coerces_submitted_terms(db, seed, generator):
    terms = LeaseTermsInput(late_fee_amount="75", late_fee_after_days=0, notice_period_days="60", pet_allowed="true")
    request = move_in_request(seed.tenant, terms=terms)
    result = LeaseService.move_in(db, caller(seed.owner, UserRole.OWNER), seed.property, seed.unit_a, request, generator)

    terms = result.lease.terms
    assert terms["late_fee_amount"] == Decimal("75")
    assert terms["late_fee_after_days"] == 5
    assert terms["notice_period_days"] == 60
    assert terms["pet_allowed"] is True
    assert terms["smoking_allowed"] is False


def test_move_in_into_occupied_unit_conflicts(db, seed, generator):
    owner = caller(seed.owner, UserRole.OWNER)
    LeaseService.move_in(db, owner, seed.property, seed.unit_a, move_in_request(seed.tenant), generator)
    db.commit()

    with pytest.raises(ConflictError, match="Unit is not available for move-in"):
        LeaseService.move_in(db, owner, seed.property, seed.unit_a, move_in_request(seed.tenant2), generator)
    db.rollback()

    assert db.query(Lease).count() == 1
    assert _unit(db, seed.unit_a).tenant_id == seed.tenant


def test_move_in_into_maintenance_unit_conflicts(db, seed, generator):
    with pytest.raises(ConflictError):
        LeaseService.move_in(
            db, caller(seed.owner, UserRole.OWNER), seed.property, seed.unit_c, move_in_request(seed.tenant), generator
        )
    db.rollback()
    assert db.query(Lease).count() == 0
    assert _unit(db, seed.unit_c).status == UnitStatus.MAINTENANCE


def test_occupy_unit_is_compare_and_swap(db, seed):
    unit = _unit(db, seed.unit_b)
    LeaseService._occupy_unit(db, unit, seed.tenant)
    assert unit.status == UnitStatus.OCCUPIED

    # A second writer that read the unit while it was still available loses
    with pytest.raises(ConflictError):
        LeaseService._occupy_unit(db, unit, seed.tenant2)
    assert _unit(db, seed.unit_b).tenant_id == seed.tenant


def test_tenant_cannot_move_in(db, seed, generator):
    with pytest.raises(ForbiddenError):
        LeaseService.move_in(
            db, caller(seed.tenant, UserRole.TENANT), seed.property, seed.unit_a, move_in_request(seed.tenant), generator
        )


def test_end_before_start_is_rejected(db, seed, generator):
    request = move_in_request(seed.tenant, lease_start_date=date(2025, 2, 1), lease_end_date=date(2025, 1, 1))
    with pytest.raises(ValidationError):
        LeaseService.move_in(db, caller(seed.owner, UserRole.OWNER), seed.property, seed.unit_a, request, generator)
    assert db.query(Lease).count() == 0


def test_validation_precedes_lookup(db, seed, generator):
    # Bad dates on a property that does not exist: the input check wins
    request = move_in_request(seed.tenant, lease_start_date=date(2025, 2, 1), lease_end_date=date(2025, 1, 1))
    with pytest.raises(ValidationError):
        LeaseService.move_in(db, caller(seed.admin, UserRole.ADMIN), 9999, seed.unit_a, request, generator)


def test_missing_property(db, seed, generator):
    with pytest.raises(NotFoundError, match="Property not found"):
        LeaseService.move_in(
            db, caller(seed.admin, UserRole.ADMIN), 9999, seed.unit_a, move_in_request(seed.tenant), generator
        )


def test_owner_cannot_move_into_someone_elses_property(db, seed, generator):
    with pytest.raises(ForbiddenError):
        LeaseService.move_in(
            db, caller(seed.owner, UserRole.OWNER), seed.other_property, seed.unit_d, move_in_request(seed.tenant), generator
        )


def test_unit_must_belong_to_property(db, seed, generator):
    with pytest.raises(NotFoundError, match="Unit not found"):
        LeaseService.move_in(
            db, caller(seed.admin, UserRole.ADMIN), seed.property, seed.unit_d, move_in_request(seed.tenant), generator
        )


def test_tenant_must_have_tenant_role(db, seed, generator):
    with pytest.raises(NotFoundError, match="Tenant not found"):
        LeaseService.move_in(
            db, caller(seed.owner, UserRole.OWNER), seed.property, seed.unit_a, move_in_request(seed.owner), generator
        )
    db.rollback()
    assert _unit(db, seed.unit_a).status == UnitStatus.AVAILABLE


def test_agreement_numbers_are_sequential(db, seed, generator):
    admin = caller(seed.admin, UserRole.ADMIN)
    numbers = []
    for property_id, unit_id in ((seed.property, seed.unit_a), (seed.property, seed.unit_b), (seed.other_property, seed.unit_d)):
        result = LeaseService.move_in(db, admin, property_id, unit_id, move_in_request(seed.tenant), generator)
        db.commit()
        numbers.append(result.lease.agreement_number)

    assert numbers == ["LA-000001", "LA-000002", "LA-000003"]


def test_generator_failure_leaves_nothing_behind(db, seed, generator):
    generator.fail = True
    with pytest.raises(RuntimeError):
        LeaseService.move_in(
            db, caller(seed.owner, UserRole.OWNER), seed.property, seed.unit_a, move_in_request(seed.tenant), generator
        )
    db.rollback()

    assert db.query(Lease).count() == 0
    assert db.query(Payment).count() == 0
    unit = _unit(db, seed.unit_a)
    assert unit.status == UnitStatus.AVAILABLE
    assert unit.tenant_id is None


def test_schedule_failure_removes_generated_agreement(db, seed, generator, monkeypatch):
    def broken_schedule(*args, **kwargs):
        raise RuntimeError("insert failed")

    monkeypatch.setattr("services.lease_service.generate_rent_payments", broken_schedule)
    with pytest.raises(RuntimeError):
        LeaseService.move_in(
            db, caller(seed.owner, UserRole.OWNER), seed.property, seed.unit_a, move_in_request(seed.tenant), generator
        )
    db.rollback()

    assert len(generator.removed) == 1
    assert generator.removed[0] is generator.generated[0][1]
    assert db.query(Lease).count() == 0
    assert _unit(db, seed.unit_a).status == UnitStatus.AVAILABLE


def test_documents_are_stored_on_the_lease(db, seed, generator):
    documents = {
        "signed_lease": {
            "url": "/uploads/documents/2-abc.pdf",
            "filename": "lease.pdf",
            "size": 1024,
            "type": "application/pdf",
        }
    }
    request = move_in_request(seed.tenant, documents=documents)
    result = LeaseService.move_in(db, caller(seed.owner, UserRole.OWNER), seed.property, seed.unit_a, request, generator)

    stored = result.lease.documents["signed_lease"]
    assert stored["url"] == "/uploads/documents/2-abc.pdf"
    assert stored["filename"] == "lease.pdf"


def test_unknown_document_key_is_rejected(seed):
    with pytest.raises(ValueError):
        move_in_request(seed.tenant, documents={"passport_scan": {"url": "/x", "filename": "x.pdf"}})
