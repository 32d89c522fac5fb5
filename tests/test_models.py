"""
Unit tests for SQLModel database models.
"""

from datetime import datetime, timezone

import pytest
from sqlalchemy import text
from sqlalchemy.exc import IntegrityError
from sqlmodel import Session, select

from academy.models import (
    Membership,
    MembershipRole,
    MembershipStatus,
    MasterRoleRequest,
    RequestStatus,
    StaffRequest,
    UTCDateTime,
)
from conftest import MASTER_EXPERIENCE, MASTER_PLANS, MASTER_REASON


def master_request(mentor, status=RequestStatus.PENDING):
    return MasterRoleRequest(
        mentor_id=mentor.id,
        reason=MASTER_REASON,
        experience=MASTER_EXPERIENCE,
        planned_classrooms=MASTER_PLANS,
        status=status,
    )


class TestActor:
    def test_defaults(self, make_actor):
        """Test actor defaults and display fields."""
        actor = make_actor("student", first_name="Kim", last_name="Lee", username="kimlee")

        assert actor.is_master is False
        assert actor.created_at is not None
        assert actor.display_fields == ("kimlee", "Kim", "Lee", actor.email)


class TestRequestTables:
    def test_status_stored_by_value(self, db: Session, mentor):
        """Test enums are persisted as their lowercase values."""
        db.add(master_request(mentor))
        db.commit()

        stored = db.connection().execute(text("SELECT status FROM master_role_request")).one()
        assert stored[0] == "pending"

    def test_one_pending_master_request_per_mentor(self, db: Session, mentor):
        db.add(master_request(mentor))
        db.commit()

        db.add(master_request(mentor))
        with pytest.raises(IntegrityError):
            db.commit()
        db.rollback()

    def test_decided_requests_do_not_block(self, db: Session, mentor):
        """Test the partial index only covers pending rows."""
        db.add(master_request(mentor, RequestStatus.REJECTED))
        db.add(master_request(mentor, RequestStatus.REJECTED))
        db.add(master_request(mentor))
        db.commit()

        rows = db.exec(select(MasterRoleRequest).where(MasterRoleRequest.mentor_id == mentor.id)).all()
        assert len(rows) == 3

    def test_pending_staff_requests_are_per_classroom(
        self, db: Session, mentor, make_classroom, master
    ):
        first = make_classroom(master)
        second = make_classroom(master)

        db.add(StaffRequest(mentor_id=mentor.id, classroom_id=first.id, message="Let me help out"))
        db.add(StaffRequest(mentor_id=mentor.id, classroom_id=second.id, message="Let me help out"))
        db.commit()

        db.add(StaffRequest(mentor_id=mentor.id, classroom_id=first.id, message="Once more please"))
        with pytest.raises(IntegrityError):
            db.commit()
        db.rollback()


class TestMembership:
    def test_one_row_per_pair(self, db: Session, student, classroom):
        db.add(Membership(actor_id=student.id, classroom_id=classroom.id))
        db.commit()

        db.add(
            Membership(
                actor_id=student.id,
                classroom_id=classroom.id,
                membership_role=MembershipRole.STAFF,
                status=MembershipStatus.ACTIVE,
            )
        )
        with pytest.raises(IntegrityError):
            db.commit()
        db.rollback()

    def test_defaults(self, db: Session, student, classroom):
        membership = Membership(actor_id=student.id, classroom_id=classroom.id)
        db.add(membership)
        db.commit()
        db.refresh(membership)

        assert membership.membership_role == MembershipRole.STUDENT
        assert membership.status == MembershipStatus.PENDING
        assert membership.reviewed_by is None


class TestTimestamps:
    def test_defaults_are_aware(self, student, classroom, mentor):
        """Test new rows carry UTC-aware timestamps before any flush."""
        membership = Membership(actor_id=student.id, classroom_id=classroom.id)
        request = master_request(mentor)

        assert membership.joined_at.tzinfo is not None
        assert request.created_at.utcoffset().total_seconds() == 0

    def test_aware_after_round_trip(self, db: Session, mentor):
        request = master_request(mentor)
        db.add(request)
        db.commit()
        db.expire_all()

        stored = db.get(MasterRoleRequest, request.id)
        assert stored.created_at.tzinfo is not None
        assert stored.created_at.utcoffset().total_seconds() == 0

    def test_naive_values_are_taken_as_utc(self):
        column_type = UTCDateTime()
        naive = datetime(2024, 3, 1, 12, 30)

        bound = column_type.process_bind_param(naive, None)
        loaded = column_type.process_result_value(naive, None)

        assert bound == datetime(2024, 3, 1, 12, 30, tzinfo=timezone.utc)
        assert loaded.tzinfo == timezone.utc
        assert column_type.process_bind_param(None, None) is None
