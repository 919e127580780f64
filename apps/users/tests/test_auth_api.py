"""API tests for authentication endpoints and principal derivation."""

from __future__ import annotations

from django.test import override_settings
from django.urls import reverse
from rest_framework import status
from rest_framework.test import APITestCase

from apps.users.models import User
from apps.users.services import principal_from_user


class AuthAPITests(APITestCase):
    def setUp(self) -> None:
        self.member = User.objects.create_user(
            email="member@example.com",
            password="StrongPass123",
            username="Member One",
        )

    def test_token_pair_by_email(self) -> None:
        response = self.client.post(
            reverse("auth:token_obtain_pair"),
            {"email": "member@example.com", "password": "StrongPass123"},
            format="json",
        )
        self.assertEqual(response.status_code, status.HTTP_200_OK, response.data)
        self.assertIn("access", response.data)
        self.assertIn("refresh", response.data)

    def test_token_refresh(self) -> None:
        tokens = self.client.post(
            reverse("auth:token_obtain_pair"),
            {"email": "member@example.com", "password": "StrongPass123"},
            format="json",
        ).data
        response = self.client.post(
            reverse("auth:token_refresh"), {"refresh": tokens["refresh"]}, format="json"
        )
        self.assertEqual(response.status_code, status.HTTP_200_OK, response.data)
        self.assertIn("access", response.data)

    def test_wrong_password_rejected(self) -> None:
        response = self.client.post(
            reverse("auth:token_obtain_pair"),
            {"email": "member@example.com", "password": "wrong"},
            format="json",
        )
        self.assertEqual(response.status_code, status.HTTP_401_UNAUTHORIZED)

    def test_me_returns_principal(self) -> None:
        self.client.force_authenticate(self.member)
        response = self.client.get(reverse("auth:me"))
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data["uid"], str(self.member.pk))
        self.assertEqual(response.data["display_name"], "Member One")
        self.assertFalse(response.data["is_privileged"])

    def test_me_requires_authentication(self) -> None:
        response = self.client.get(reverse("auth:me"))
        self.assertEqual(response.status_code, status.HTTP_401_UNAUTHORIZED)

    def test_me_honours_privileged_allow_list(self) -> None:
        booking_settings = {"PRIVILEGED_UIDS": [str(self.member.pk)]}
        self.client.force_authenticate(self.member)
        with override_settings(CUBICLE_BOOKING=booking_settings):
            response = self.client.get(reverse("auth:me"))
        self.assertTrue(response.data["is_privileged"])


class PrincipalFromUserTests(APITestCase):
    def test_admin_role_is_privileged(self) -> None:
        admin = User.objects.create_user(
            email="admin@example.com", password="x", role=User.RoleChoices.ADMIN
        )
        principal = principal_from_user(admin)
        self.assertTrue(principal.is_privileged)
        self.assertEqual(principal.email, "admin@example.com")

    def test_display_name_falls_back_to_email_local_part(self) -> None:
        user = User.objects.create_user(email="jane.doe@example.com", password="x")
        principal = principal_from_user(user)
        self.assertEqual(principal.display_name, "jane.doe")
        self.assertFalse(principal.is_privileged)

    def test_snapshot_copies_identity(self) -> None:
        user = User.objects.create_user(email="snap@example.com", password="x", username="Snap")
        snapshot = principal_from_user(user).snapshot()
        self.assertEqual(snapshot.uid, str(user.pk))
        self.assertEqual(str(snapshot), "Snap")
