"""
Minimal RBAC tests: role-based access control.
- Login returns tokens for a valid user, 401 for a wrong password
- Instructor token may read the ledger but gets 403 on manager mutations
- Manager token may mutate
"""
from django.test import TestCase
from rest_framework.test import APIClient
from rest_framework_simplejwt.tokens import AccessToken

from accounts.models import User
from cycles.models import Meeting
from tests.factories import make_cycle


class RBACTests(TestCase):
    def setUp(self):
        self.client = APIClient()

        self.manager = User.objects.create_user(
            email="manager@test.local",
            password="pass123",
            full_name="Manager",
            role=User.ROLE_MANAGER,
        )
        self.instructor = User.objects.create_user(
            email="instructor@test.local",
            password="pass123",
            full_name="Instructor",
            role=User.ROLE_INSTRUCTOR,
        )
        self.cycle = make_cycle(total_meetings=2)
        self.meeting = Meeting.objects.filter(cycle=self.cycle).first()

    def _auth_header(self, user: User) -> dict:
        token = str(AccessToken.for_user(user))
        return {"HTTP_AUTHORIZATION": f"Bearer {token}"}

    def test_login_returns_tokens(self):
        response = self.client.post(
            "/api/auth/login", {"email": "manager@test.local", "password": "pass123"}, format="json"
        )
        self.assertEqual(response.status_code, 200)
        self.assertIn("accessToken", response.data)
        self.assertEqual(response.data["user"]["role"], User.ROLE_MANAGER)

    def test_login_wrong_password(self):
        response = self.client.post(
            "/api/auth/login", {"email": "manager@test.local", "password": "nope"}, format="json"
        )
        self.assertEqual(response.status_code, 401)
        self.assertEqual(response.data["code"], "invalid_credentials")

    def test_me(self):
        response = self.client.get("/api/auth/me", **self._auth_header(self.instructor))
        self.assertEqual(response.status_code, 200)
        self.assertEqual(response.data["fullName"], "Instructor")

    def test_instructor_reads_meetings(self):
        response = self.client.get(f"/api/cycles/{self.cycle.id}/meetings/", **self._auth_header(self.instructor))
        self.assertEqual(response.status_code, 200)

    def test_instructor_cannot_mutate(self):
        header = self._auth_header(self.instructor)
        checks = [
            self.client.post(f"/api/cycles/{self.cycle.id}/cancel/", {}, format="json", **header),
            self.client.post(f"/api/meetings/{self.meeting.id}/postpone/", {}, format="json", **header),
            self.client.post(
                "/api/meetings/bulk-update/", {"ids": [self.meeting.id], "data": {"status": "cancelled"}},
                format="json", **header,
            ),
            self.client.get("/api/notifications/", **header),
        ]
        for response in checks:
            self.assertEqual(response.status_code, 403)
        self.assertEqual(Meeting.objects.get(pk=self.meeting.pk).status, Meeting.STATUS_SCHEDULED)

    def test_manager_can_mutate(self):
        response = self.client.post(
            f"/api/meetings/{self.meeting.id}/postpone/", {}, format="json", **self._auth_header(self.manager)
        )
        self.assertEqual(response.status_code, 200)
