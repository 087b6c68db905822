"""Tests for group creation, management and member lifecycle."""
import pytest

from studygroup.errors import InvalidGroupName
from studygroup.models.group import Group, GroupPurpose, Membership, MembershipStatus
from studygroup.models.membership_request import MembershipRequest, RequestStatus
from studygroup.models.user import User
from studygroup.services import membership_service
from tests.conftest import create_test_group, error_code, join_group, register_user, send_request


class TestCreateGroup:

    def test_create_group(self, client, db):
        leader = register_user(client, db, name="Leader")
        group = create_test_group(client, leader, name="Algorithms Club", max_members=5, purpose="PROJECT")
        assert group["name"] == "Algorithms Club"
        assert group["leader_id"] == leader["user_id"]
        assert group["purpose"] == "PROJECT"
        assert group["max_members"] == 5
        assert group["member_count"] == 1  # leader is implicitly a member

    def test_leader_membership_created_with_group(self, client, db):
        leader = register_user(client, db, name="Leader")
        group = create_test_group(client, leader)
        rows = db.query(Membership).filter(Membership.group_id == group["group_id"]).all()
        assert len(rows) == 1
        assert rows[0].user_id == leader["user_id"]
        assert rows[0].status == MembershipStatus.ACTIVE

    def test_leader_cannot_create_second_group(self, client, db):
        leader = register_user(client, db, name="Leader")
        create_test_group(client, leader, name="First")
        resp = client.post("/api/groups/", headers=leader["headers"], json={
            "name": "Second", "purpose": "LEARNING", "max_members": 3,
        })
        assert resp.status_code == 409
        assert error_code(resp) == "ALREADY_LEADER"

    def test_member_cannot_create_group(self, client, db):
        leader = register_user(client, db, name="Leader")
        member = register_user(client, db, name="Member")
        group = create_test_group(client, leader)
        join_group(client, leader, member, group["group_id"])

        resp = client.post("/api/groups/", headers=member["headers"], json={
            "name": "Breakaway", "purpose": "OTHER", "max_members": 3,
        })
        assert resp.status_code == 409
        assert error_code(resp) == "ALREADY_MEMBER"

    def test_name_taken(self, client, db):
        first = register_user(client, db, name="First")
        second = register_user(client, db, name="Second")
        create_test_group(client, first, name="Rustaceans")
        resp = client.post("/api/groups/", headers=second["headers"], json={
            "name": "Rustaceans", "purpose": "LEARNING", "max_members": 3,
        })
        assert resp.status_code == 409
        assert error_code(resp) == "NAME_TAKEN"

    def test_max_members_bounds(self, client, db):
        leader = register_user(client, db, name="Leader")
        for bad in (1, 11):
            resp = client.post("/api/groups/", headers=leader["headers"], json={
                "name": f"Bad {bad}", "purpose": "LEARNING", "max_members": bad,
            })
            assert resp.status_code == 422
            assert error_code(resp) == "VALIDATION_FAILED"

    def test_unknown_purpose_rejected(self, client, db):
        leader = register_user(client, db, name="Leader")
        resp = client.post("/api/groups/", headers=leader["headers"], json={
            "name": "Party", "purpose": "PARTY", "max_members": 3,
        })
        assert resp.status_code == 422

    def test_blank_name_rejected(self, client, db):
        leader = register_user(client, db, name="Leader")
        for bad in ("    ", "  a  "):
            resp = client.post("/api/groups/", headers=leader["headers"], json={
                "name": bad, "purpose": "LEARNING", "max_members": 3,
            })
            assert resp.status_code == 422
            assert error_code(resp) == "VALIDATION_FAILED"
        assert db.query(Group).count() == 0

    def test_name_is_trimmed(self, client, db):
        leader = register_user(client, db, name="Leader")
        group = create_test_group(client, leader, name="  Compilers  ")
        assert group["name"] == "Compilers"

    def test_service_rechecks_trimmed_name(self, client, db):
        leader = register_user(client, db, name="Leader")
        with pytest.raises(InvalidGroupName):
            membership_service.create_group(
                db, db.get(User, leader["user_id"]), "   ", GroupPurpose.LEARNING, 3,
            )
        assert db.query(Group).count() == 0

    def test_create_requires_auth(self, client):
        resp = client.post("/api/groups/", json={"name": "Anon", "purpose": "LEARNING", "max_members": 3})
        assert resp.status_code == 401


class TestReadGroups:

    def test_get_group(self, client, db):
        leader = register_user(client, db, name="Leader")
        group = create_test_group(client, leader)
        resp = client.get(f"/api/groups/{group['group_id']}", headers=leader["headers"])
        assert resp.status_code == 200
        assert resp.json()["name"] == "Test Group"

    def test_get_group_not_found(self, client, db):
        user = register_user(client, db, name="User")
        resp = client.get("/api/groups/00000000-0000-0000-0000-000000000000", headers=user["headers"])
        assert resp.status_code == 404
        assert error_code(resp) == "GROUP_NOT_FOUND"

    def test_list_and_filter(self, client, db):
        a = register_user(client, db, name="Alpha")
        b = register_user(client, db, name="Beta")
        create_test_group(client, a, name="Graph Theory", purpose="LEARNING")
        create_test_group(client, b, name="Hackathon Team", purpose="PROJECT")

        resp = client.get("/api/groups/", headers=a["headers"])
        assert {g["name"] for g in resp.json()} == {"Graph Theory", "Hackathon Team"}

        resp = client.get("/api/groups/", headers=a["headers"], params={"purpose": "PROJECT"})
        assert [g["name"] for g in resp.json()] == ["Hackathon Team"]

        resp = client.get("/api/groups/", headers=a["headers"], params={"q": "graph"})
        assert [g["name"] for g in resp.json()] == ["Graph Theory"]

    def test_search_matches_wildcards_literally(self, client, db):
        a = register_user(client, db, name="Alpha")
        b = register_user(client, db, name="Beta")
        c = register_user(client, db, name="Gamma")
        create_test_group(client, a, name="100% Focus")
        create_test_group(client, b, name="1000 Problems")
        create_test_group(client, c, name="C_Lang")

        resp = client.get("/api/groups/", headers=a["headers"], params={"q": "100%"})
        assert [g["name"] for g in resp.json()] == ["100% Focus"]

        resp = client.get("/api/groups/", headers=a["headers"], params={"q": "c_l"})
        assert [g["name"] for g in resp.json()] == ["C_Lang"]

        resp = client.get("/api/groups/", headers=a["headers"], params={"q": "_"})
        assert [g["name"] for g in resp.json()] == ["C_Lang"]

    def test_list_members(self, client, db):
        leader = register_user(client, db, name="Leader")
        member = register_user(client, db, name="Member")
        group = create_test_group(client, leader)
        join_group(client, leader, member, group["group_id"])

        resp = client.get(f"/api/groups/{group['group_id']}/members", headers=member["headers"])
        assert resp.status_code == 200
        members = {m["display_name"]: m for m in resp.json()}
        assert set(members) == {"Leader", "Member"}
        assert members["Leader"]["is_leader"] is True
        assert members["Member"]["is_leader"] is False


class TestUpdateGroup:

    def test_leader_updates_group(self, client, db):
        leader = register_user(client, db, name="Leader")
        group = create_test_group(client, leader)
        resp = client.patch(f"/api/groups/{group['group_id']}", headers=leader["headers"], json={
            "name": "Renamed", "description": "Weekly paper reading", "max_members": 8,
        })
        assert resp.status_code == 200, resp.text
        body = resp.json()
        assert body["name"] == "Renamed"
        assert body["description"] == "Weekly paper reading"
        assert body["max_members"] == 8

    def test_non_leader_cannot_update(self, client, db):
        leader = register_user(client, db, name="Leader")
        member = register_user(client, db, name="Member")
        group = create_test_group(client, leader)
        join_group(client, leader, member, group["group_id"])
        resp = client.patch(f"/api/groups/{group['group_id']}", headers=member["headers"], json={"name": "Mine"})
        assert resp.status_code == 403
        assert error_code(resp) == "NOT_LEADER"

    def test_capacity_cannot_drop_below_member_count(self, client, db):
        leader = register_user(client, db, name="Leader")
        group = create_test_group(client, leader, max_members=4)
        for name in ("M1", "M2"):
            join_group(client, leader, register_user(client, db, name=name), group["group_id"])

        resp = client.patch(f"/api/groups/{group['group_id']}", headers=leader["headers"], json={"max_members": 2})
        assert resp.status_code == 409
        assert error_code(resp) == "CAPACITY_BELOW_MEMBERS"

    def test_rename_to_taken_name(self, client, db):
        a = register_user(client, db, name="Alpha")
        b = register_user(client, db, name="Beta")
        create_test_group(client, a, name="Taken")
        group = create_test_group(client, b, name="Free")
        resp = client.patch(f"/api/groups/{group['group_id']}", headers=b["headers"], json={"name": "Taken"})
        assert resp.status_code == 409
        assert error_code(resp) == "NAME_TAKEN"

    def test_rename_to_blank_rejected(self, client, db):
        leader = register_user(client, db, name="Leader")
        group = create_test_group(client, leader, name="Original")
        for bad in ("   ", "   a  "):
            resp = client.patch(f"/api/groups/{group['group_id']}", headers=leader["headers"], json={"name": bad})
            assert resp.status_code == 422
            assert error_code(resp) == "VALIDATION_FAILED"
        db.expire_all()
        assert db.get(Group, group["group_id"]).name == "Original"


class TestMemberLifecycle:

    def test_member_leaves(self, client, db):
        leader = register_user(client, db, name="Leader")
        member = register_user(client, db, name="Member")
        group = create_test_group(client, leader)
        join_group(client, leader, member, group["group_id"])

        resp = client.post(f"/api/groups/{group['group_id']}/leave", headers=member["headers"])
        assert resp.status_code == 200
        assert resp.json()["status"] == "LEFT"
        assert resp.json()["ended_at"] is not None

        # Leaving frees the user to found their own group
        create_test_group(client, member, name="Fresh Start")

    def test_leader_cannot_leave(self, client, db):
        leader = register_user(client, db, name="Leader")
        group = create_test_group(client, leader)
        resp = client.post(f"/api/groups/{group['group_id']}/leave", headers=leader["headers"])
        assert resp.status_code == 409
        assert error_code(resp) == "LEADER_CANNOT_LEAVE"

    def test_outsider_cannot_leave(self, client, db):
        leader = register_user(client, db, name="Leader")
        outsider = register_user(client, db, name="Outsider")
        group = create_test_group(client, leader)
        resp = client.post(f"/api/groups/{group['group_id']}/leave", headers=outsider["headers"])
        assert resp.status_code == 403
        assert error_code(resp) == "NOT_A_MEMBER"

    def test_leader_removes_member(self, client, db):
        leader = register_user(client, db, name="Leader")
        member = register_user(client, db, name="Member")
        group = create_test_group(client, leader)
        join_group(client, leader, member, group["group_id"])

        resp = client.delete(
            f"/api/groups/{group['group_id']}/members/{member['user_id']}", headers=leader["headers"]
        )
        assert resp.status_code == 200
        assert resp.json()["status"] == "REMOVED"

        group_now = client.get(f"/api/groups/{group['group_id']}", headers=leader["headers"]).json()
        assert group_now["member_count"] == 1

    def test_remove_requires_leader(self, client, db):
        leader = register_user(client, db, name="Leader")
        member = register_user(client, db, name="Member")
        group = create_test_group(client, leader)
        join_group(client, leader, member, group["group_id"])
        resp = client.delete(
            f"/api/groups/{group['group_id']}/members/{leader['user_id']}", headers=member["headers"]
        )
        assert resp.status_code == 403
        assert error_code(resp) == "NOT_LEADER"

    def test_remove_non_member(self, client, db):
        leader = register_user(client, db, name="Leader")
        outsider = register_user(client, db, name="Outsider")
        group = create_test_group(client, leader)
        resp = client.delete(
            f"/api/groups/{group['group_id']}/members/{outsider['user_id']}", headers=leader["headers"]
        )
        assert resp.status_code == 404
        assert error_code(resp) == "MEMBERSHIP_NOT_FOUND"

    def test_leader_cannot_remove_self(self, client, db):
        leader = register_user(client, db, name="Leader")
        group = create_test_group(client, leader)
        resp = client.delete(
            f"/api/groups/{group['group_id']}/members/{leader['user_id']}", headers=leader["headers"]
        )
        assert resp.status_code == 409
        assert error_code(resp) == "LEADER_CANNOT_LEAVE"


class TestDisbandGroup:

    def test_disband_releases_members_and_requests(self, client, db):
        leader = register_user(client, db, name="Leader")
        member = register_user(client, db, name="Member")
        applicant = register_user(client, db, name="Applicant")
        group = create_test_group(client, leader, name="Short Lived")
        join_group(client, leader, member, group["group_id"])
        pending = send_request(client, applicant, group["group_id"]).json()

        resp = client.delete(f"/api/groups/{group['group_id']}", headers=leader["headers"])
        assert resp.status_code == 204

        assert client.get(f"/api/groups/{group['group_id']}", headers=leader["headers"]).status_code == 404
        statuses = {
            m.user_id: m.status
            for m in db.query(Membership).filter(Membership.group_id == group["group_id"]).all()
        }
        assert statuses == {
            leader["user_id"]: MembershipStatus.REMOVED,
            member["user_id"]: MembershipStatus.REMOVED,
        }
        request = db.get(MembershipRequest, pending["request_id"])
        assert request.status == RequestStatus.REJECTED

        # Name and people are free again
        create_test_group(client, member, name="Short Lived")
        create_test_group(client, leader, name="Second Life")

    def test_only_leader_disbands(self, client, db):
        leader = register_user(client, db, name="Leader")
        member = register_user(client, db, name="Member")
        group = create_test_group(client, leader)
        join_group(client, leader, member, group["group_id"])
        resp = client.delete(f"/api/groups/{group['group_id']}", headers=member["headers"])
        assert resp.status_code == 403
        assert error_code(resp) == "NOT_LEADER"
