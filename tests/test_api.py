from uuid import uuid4

from academy.models import MembershipStatus
from conftest import MASTER_EXPERIENCE, MASTER_PLANS, MASTER_REASON, auth


def master_body(mentor, **overrides):
    body = {
        "kind": "master_role",
        "mentorId": str(mentor.id),
        "reason": MASTER_REASON,
        "experience": MASTER_EXPERIENCE,
        "plannedClassrooms": MASTER_PLANS,
    }
    body.update(overrides)
    return body


class TestMasterRoleApi:
    def test_submit_and_approve(self, client, db, mentor, admin, notifier):
        """Test the full master-role round trip over HTTP."""
        response = client.post(
            "/api/v1/master-role-requests", json=master_body(mentor), headers=auth(mentor)
        )
        assert response.status_code == 201
        created = response.json()
        assert created["status"] == "pending"
        assert created["mentorId"] == str(mentor.id)
        assert created["kind"] == "master_role"

        response = client.patch(
            f"/api/v1/master-role-requests/{created['id']}/status",
            json={"status": "approved", "reviewedBy": str(admin.id), "notes": "Welcome"},
            headers=auth(admin),
        )
        assert response.status_code == 200
        assert response.json()["adminNotes"] == "Welcome"

        me = client.get("/api/v1/me", headers=auth(mentor)).json()
        assert me["isMaster"] is True
        assert len(notifier.events) == 1

    def test_duplicate_is_conflict(self, client, mentor):
        client.post("/api/v1/master-role-requests", json=master_body(mentor), headers=auth(mentor))

        response = client.post(
            "/api/v1/master-role-requests", json=master_body(mentor), headers=auth(mentor)
        )

        assert response.status_code == 409
        assert response.json()["error"] == "conflict"

    def test_validation_errors(self, client, mentor):
        """Test field-level 422 responses for short and unknown fields."""
        response = client.post(
            "/api/v1/master-role-requests",
            json=master_body(mentor, reason="short"),
            headers=auth(mentor),
        )
        assert response.status_code == 422
        body = response.json()
        assert body["error"] == "validation_error"
        assert body["detail"][0]["loc"][-1] == "reason"

        response = client.post(
            "/api/v1/master-role-requests",
            json=master_body(mentor, shoeSize=42),
            headers=auth(mentor),
        )
        assert response.status_code == 422

    def test_anonymous_is_401(self, client, mentor):
        response = client.post("/api/v1/master-role-requests", json=master_body(mentor))

        assert response.status_code == 401
        assert response.json()["error"] == "unauthenticated"

    def test_bad_token_is_401(self, client, mentor):
        response = client.get("/api/v1/me", headers={"Authorization": "Bearer not-a-jwt"})
        assert response.status_code == 401

    def test_reviewed_by_must_be_caller(self, client, mentor, admin, make_actor):
        other_admin = make_actor("admin")
        created = client.post(
            "/api/v1/master-role-requests", json=master_body(mentor), headers=auth(mentor)
        ).json()

        response = client.patch(
            f"/api/v1/master-role-requests/{created['id']}/status",
            json={"status": "approved", "reviewedBy": str(other_admin.id)},
            headers=auth(admin),
        )

        assert response.status_code == 403
        assert response.json()["error"] == "forbidden"

    def test_non_admin_decision_forbidden(self, client, mentor, master):
        created = client.post(
            "/api/v1/master-role-requests", json=master_body(mentor), headers=auth(mentor)
        ).json()

        response = client.patch(
            f"/api/v1/master-role-requests/{created['id']}/status",
            json={"status": "approved"},
            headers=auth(master),
        )

        assert response.status_code == 403

    def test_second_decision_already_reviewed(self, client, mentor, admin):
        created = client.post(
            "/api/v1/master-role-requests", json=master_body(mentor), headers=auth(mentor)
        ).json()
        path = f"/api/v1/master-role-requests/{created['id']}/status"
        client.patch(path, json={"status": "rejected"}, headers=auth(admin))

        response = client.patch(path, json={"status": "approved"}, headers=auth(admin))

        assert response.status_code == 409
        assert response.json()["error"] == "already_reviewed"

    def test_pending_is_not_a_decision(self, client, mentor, admin):
        created = client.post(
            "/api/v1/master-role-requests", json=master_body(mentor), headers=auth(mentor)
        ).json()

        response = client.patch(
            f"/api/v1/master-role-requests/{created['id']}/status",
            json={"status": "pending"},
            headers=auth(admin),
        )

        assert response.status_code == 422

    def test_decision_accepts_admin_notes(self, client, mentor, admin):
        """Test the decision body takes adminNotes."""
        created = client.post(
            "/api/v1/master-role-requests", json=master_body(mentor), headers=auth(mentor)
        ).json()

        response = client.patch(
            f"/api/v1/master-role-requests/{created['id']}/status",
            json={"status": "approved", "adminNotes": "Welcome"},
            headers=auth(admin),
        )

        assert response.status_code == 200
        assert response.json()["adminNotes"] == "Welcome"

    def test_decision_rejects_other_note_names(self, client, mentor, admin):
        created = client.post(
            "/api/v1/master-role-requests", json=master_body(mentor), headers=auth(mentor)
        ).json()

        response = client.patch(
            f"/api/v1/master-role-requests/{created['id']}/status",
            json={"status": "approved", "masterNotes": "Welcome"},
            headers=auth(admin),
        )

        assert response.status_code == 422

    def test_unknown_request_is_404(self, client, admin):
        response = client.patch(
            f"/api/v1/master-role-requests/{uuid4()}/status",
            json={"status": "approved"},
            headers=auth(admin),
        )
        assert response.status_code == 404
        assert response.json()["error"] == "not_found"

    def test_admin_board_and_list(self, client, make_actor, admin):
        alice = make_actor("mentor", first_name="Alice", last_name="Smith")
        bob = make_actor("mentor", first_name="Bob", last_name="Jones")
        for applicant in (alice, bob):
            client.post(
                "/api/v1/master-role-requests", json=master_body(applicant), headers=auth(applicant)
            )

        board = client.get(
            "/api/v1/master-role-requests/board", params={"search": "smith"}, headers=auth(admin)
        ).json()
        assert board["counts"] == {"pending": 1, "approved": 0, "rejected": 0}
        assert board["pending"][0]["applicant"]["firstName"] == "Alice"

        listed = client.get(
            "/api/v1/master-role-requests", params={"status": "pending"}, headers=auth(admin)
        ).json()
        assert len(listed) == 2

    def test_board_is_admin_only(self, client, master):
        response = client.get("/api/v1/master-role-requests/board", headers=auth(master))
        assert response.status_code == 403

    def test_mentor_sees_own_requests_only(self, client, mentor, make_actor):
        other = make_actor("mentor")
        client.post("/api/v1/master-role-requests", json=master_body(mentor), headers=auth(mentor))

        own = client.get(f"/api/v1/mentors/{mentor.id}/master-role-requests", headers=auth(mentor))
        assert own.status_code == 200
        assert len(own.json()) == 1

        theirs = client.get(f"/api/v1/mentors/{mentor.id}/master-role-requests", headers=auth(other))
        assert theirs.status_code == 403


class TestClassroomApi:
    def test_staff_request_round_trip(self, client, mentor, master, classroom):
        response = client.post(
            "/api/v1/staff-requests",
            json={
                "kind": "staff",
                "mentorId": str(mentor.id),
                "classroomId": str(classroom.id),
                "message": "I can take the Friday labs.",
            },
            headers=auth(mentor),
        )
        assert response.status_code == 201
        request_id = response.json()["id"]

        board = client.get(
            f"/api/v1/classrooms/{classroom.id}/requests",
            params={"kind": "staff"},
            headers=auth(master),
        ).json()
        assert board["kind"] == "staff"
        assert [item["id"] for item in board["pending"]] == [request_id]

        response = client.patch(
            f"/api/v1/staff-requests/{request_id}/status",
            json={"status": "approved"},
            headers=auth(master),
        )
        assert response.status_code == 200

        listed = client.get(f"/api/v1/mentors/{mentor.id}/staff-requests", headers=auth(mentor)).json()
        assert listed[0]["status"] == "approved"

    def test_resignation_round_trip(self, client, db, mentor, master, classroom, add_staff):
        add_staff(mentor, classroom)
        response = client.post(
            "/api/v1/resignation-requests",
            json={
                "kind": "resignation",
                "mentorId": str(mentor.id),
                "classroomId": str(classroom.id),
                "reason": "Starting a PhD elsewhere.",
            },
            headers=auth(mentor),
        )
        assert response.status_code == 201
        request_id = response.json()["id"]

        response = client.patch(
            f"/api/v1/resignation-requests/{request_id}/status",
            json={"status": "approved", "notes": "Best of luck"},
            headers=auth(master),
        )
        assert response.status_code == 200
        assert response.json()["masterNotes"] == "Best of luck"

        listed = client.get(
            f"/api/v1/mentors/{mentor.id}/resignation-requests", headers=auth(mentor)
        ).json()
        assert listed[0]["status"] == "approved"

    def test_enrollment_board_search(self, client, make_actor, master, classroom):
        """Test the enrollment board buckets and free-text search."""
        jane = make_actor("student", first_name="Jane", last_name="Doe")
        john = make_actor("student", first_name="John", last_name="Roe")
        ids = {}
        for student in (jane, john):
            response = client.post(
                "/api/v1/classroom-memberships",
                json={"kind": "enrollment", "actorId": str(student.id), "classroomId": str(classroom.id)},
                headers=auth(student),
            )
            assert response.status_code == 201
            ids[student.id] = response.json()["id"]

        response = client.patch(
            f"/api/v1/classroom-memberships/{ids[jane.id]}/status",
            json={"status": MembershipStatus.ACTIVE.value},
            headers=auth(master),
        )
        assert response.status_code == 200

        board = client.get(
            f"/api/v1/classrooms/{classroom.id}/requests", headers=auth(master)
        ).json()
        assert board["kind"] == "enrollment"
        assert board["counts"] == {"pending": 1, "approved": 1, "rejected": 0}

        board = client.get(
            f"/api/v1/classrooms/{classroom.id}/requests",
            params={"search": "ROE"},
            headers=auth(master),
        ).json()
        assert board["counts"] == {"pending": 1, "approved": 0, "rejected": 0}
        assert board["pending"][0]["applicant"]["username"] == john.username

    def test_board_owner_only(self, client, classroom, make_actor):
        other_master = make_actor("mentor", is_master=True)

        response = client.get(
            f"/api/v1/classrooms/{classroom.id}/requests", headers=auth(other_master)
        )

        assert response.status_code == 403

    def test_decision_note_aliases(self, client, mentor, make_actor, master, classroom, add_staff):
        """Test staff decisions take adminNotes and resignations take masterNotes."""
        applicant = make_actor("mentor")
        staff = client.post(
            "/api/v1/staff-requests",
            json={
                "kind": "staff",
                "mentorId": str(applicant.id),
                "classroomId": str(classroom.id),
                "message": "I can cover the Monday tutorials.",
            },
            headers=auth(applicant),
        ).json()
        add_staff(mentor, classroom)
        resignation = client.post(
            "/api/v1/resignation-requests",
            json={
                "kind": "resignation",
                "mentorId": str(mentor.id),
                "classroomId": str(classroom.id),
                "reason": "Starting a PhD elsewhere.",
            },
            headers=auth(mentor),
        ).json()

        response = client.patch(
            f"/api/v1/staff-requests/{staff['id']}/status",
            json={"status": "rejected", "adminNotes": "Team is full"},
            headers=auth(master),
        )
        assert response.status_code == 200
        assert response.json()["adminNotes"] == "Team is full"

        response = client.patch(
            f"/api/v1/resignation-requests/{resignation['id']}/status",
            json={"status": "approved", "masterNotes": "Best of luck"},
            headers=auth(master),
        )
        assert response.status_code == 200
        assert response.json()["masterNotes"] == "Best of luck"

    def test_unknown_ids_checked_after_caller(self, client, student):
        """Test anonymous and non-master callers never see a 404."""
        paths = [
            f"/api/v1/staff-requests/{uuid4()}/status",
            f"/api/v1/resignation-requests/{uuid4()}/status",
        ]
        for path in paths:
            response = client.patch(path, json={"status": "approved"})
            assert response.status_code == 401

            response = client.patch(path, json={"status": "approved"}, headers=auth(student))
            assert response.status_code == 403

        path = f"/api/v1/classroom-memberships/{uuid4()}/status"
        assert client.patch(path, json={"status": "active"}).status_code == 401
        assert client.patch(path, json={"status": "active"}, headers=auth(student)).status_code == 403


class TestMembershipApi:
    def test_staff_roster(self, client, mentor, student, master, classroom, add_staff):
        add_staff(mentor, classroom)
        client.post(
            "/api/v1/classroom-memberships",
            json={"kind": "enrollment", "actorId": str(student.id), "classroomId": str(classroom.id)},
            headers=auth(student),
        )

        response = client.get(
            "/api/v1/classroom-memberships",
            params={"classroomId": str(classroom.id), "role": "staff"},
            headers=auth(master),
        )

        assert response.status_code == 200
        roster = response.json()
        assert [m["actorId"] for m in roster] == [str(mentor.id)]
        assert roster[0]["applicant"]["lastName"] == "Tutor"

        everyone = client.get(
            "/api/v1/classroom-memberships",
            params={"classroomId": str(classroom.id)},
            headers=auth(mentor),
        ).json()
        assert {m["actorId"] for m in everyone} == {str(mentor.id), str(student.id)}

    def test_roster_hidden_from_outsiders(self, client, student, make_actor, classroom):
        outsider = make_actor("mentor", is_master=True)
        params = {"classroomId": str(classroom.id)}

        assert client.get("/api/v1/classroom-memberships", params=params).status_code == 401
        response = client.get("/api/v1/classroom-memberships", params=params, headers=auth(outsider))
        assert response.status_code == 403
        response = client.get("/api/v1/classroom-memberships", params=params, headers=auth(student))
        assert response.status_code == 403

    def test_own_memberships(self, client, student, make_actor, make_classroom, master, classroom):
        other = make_classroom(master, title="Geometry")
        for target in (classroom, other):
            client.post(
                "/api/v1/classroom-memberships",
                json={"kind": "enrollment", "actorId": str(student.id), "classroomId": str(target.id)},
                headers=auth(student),
            )

        response = client.get(
            "/api/v1/classroom-memberships", params={"userId": str(student.id)}, headers=auth(student)
        )
        assert response.status_code == 200
        assert {m["classroomId"] for m in response.json()} == {str(classroom.id), str(other.id)}

        narrowed = client.get(
            "/api/v1/classroom-memberships",
            params={"userId": str(student.id), "classroomId": str(other.id)},
            headers=auth(student),
        ).json()
        assert [m["classroomId"] for m in narrowed] == [str(other.id)]

        stranger = make_actor("student")
        response = client.get(
            "/api/v1/classroom-memberships", params={"userId": str(student.id)}, headers=auth(stranger)
        )
        assert response.status_code == 403

    def test_filter_required(self, client, student):
        response = client.get("/api/v1/classroom-memberships", headers=auth(student))

        assert response.status_code == 422
        assert response.json()["error"] == "validation_error"

    def test_staff_classrooms(self, client, mentor, make_actor, master, classroom, make_classroom, add_staff):
        """Test a mentor lists the classrooms they could resign from."""
        add_staff(mentor, classroom)
        make_classroom(master, title="Not staffed")

        response = client.get(f"/api/v1/mentors/{mentor.id}/staff-classrooms", headers=auth(mentor))

        assert response.status_code == 200
        assert [c["title"] for c in response.json()] == ["Physics 101"]
        assert response.json()[0]["ownerId"] == str(master.id)

        other = make_actor("mentor")
        response = client.get(f"/api/v1/mentors/{mentor.id}/staff-classrooms", headers=auth(other))
        assert response.status_code == 403


class TestAccessApi:
    def test_anonymous_state(self, client):
        body = client.get("/api/v1/access/admin-panel").json()
        assert body["state"] == "unauthenticated"

    def test_capabilities(self, client, admin, master, mentor):
        assert client.get("/api/v1/access/admin-panel", headers=auth(admin)).json()["state"] == "allowed"
        assert client.get("/api/v1/access/admin-panel", headers=auth(mentor)).json()["state"] == "forbidden"
        assert client.get("/api/v1/access/master-dashboard", headers=auth(master)).json()["state"] == "allowed"
        assert client.get("/api/v1/access/classroom-create", headers=auth(master)).json()["state"] == "allowed"
        assert client.get("/api/v1/access/classroom-create", headers=auth(mentor)).json()["state"] == "forbidden"

    def test_unknown_capability(self, client, admin):
        response = client.get("/api/v1/access/launch-rockets", headers=auth(admin))
        assert response.status_code == 404

    def test_health(self, client):
        assert client.get("/health").status_code == 200
