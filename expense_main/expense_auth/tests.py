from django.contrib.auth.models import User
from django.test import TestCase


class AuthViewTests(TestCase):

    def post(self, url, data):
        return self.client.post(url, data=data, content_type="application/json")

    def test_signup_logs_in(self):
        response = self.post("/api/auth/signup/", {
            "username": "alice", "email": "Alice@Example.com", "name": "Alice",
            "password": "s3cret-pass", "confirm_password": "s3cret-pass",
        })
        self.assertEqual(response.status_code, 201)
        self.assertEqual(response.json()["email"], "alice@example.com")

        profile = self.client.get("/api/auth/profile/").json()
        self.assertEqual(profile["name"], "Alice")

    def test_signup_rejects_taken_email(self):
        User.objects.create_user("bob", email="bob@example.com", password="pw")
        response = self.post("/api/auth/signup/", {
            "username": "bobby", "email": "BOB@example.com", "name": "Bob", "password": "pw12345678",
        })
        self.assertEqual(response.status_code, 409)
        self.assertEqual(response.json()["error"]["code"], "CONFLICT")

    def test_login_and_logout(self):
        User.objects.create_user("carol", password="pw12345678")

        bad = self.post("/api/auth/login/", {"username": "carol", "password": "nope"})
        self.assertEqual(bad.status_code, 401)

        good = self.post("/api/auth/login/", {"username": "carol", "password": "pw12345678"})
        self.assertEqual(good.status_code, 200)
        self.assertEqual(self.client.get("/api/auth/profile/").status_code, 200)

        self.post("/api/auth/logout/", {})
        self.assertEqual(self.client.get("/api/auth/profile/").status_code, 401)

    def test_profile_update(self):
        User.objects.create_user("erin", email="erin@example.com", password="pw")
        dave = User.objects.create_user("dave", email="dave@example.com", password="pw")
        self.client.force_login(dave)

        response = self.post("/api/auth/profile/update/", {"name": "David", "email": "david@example.com"})
        self.assertEqual(response.status_code, 200)
        dave.refresh_from_db()
        self.assertEqual(dave.first_name, "David")
        self.assertEqual(dave.email, "david@example.com")

        clash = self.post("/api/auth/profile/update/", {"email": "erin@example.com"})
        self.assertEqual(clash.status_code, 409)

        unknown = self.post("/api/auth/profile/update/", {"is_staff": True})
        self.assertEqual(unknown.status_code, 400)

    def test_signup_rejects_malformed_email(self):
        for email in ("a@b@c", "x@ y", "nobody", "@example.com"):
            response = self.post("/api/auth/signup/", {
                "username": "frank", "email": email, "name": "Frank", "password": "s3cret-pass",
            })
            self.assertEqual(response.status_code, 400, email)
            self.assertEqual(response.json()["error"]["details"]["field"], "email")
        self.assertFalse(User.objects.filter(username="frank").exists())

    def test_signup_applies_password_validators(self):
        for password in ("x", "password"):
            response = self.post("/api/auth/signup/", {
                "username": "gina", "email": "gina@example.com", "name": "Gina", "password": password,
            })
            self.assertEqual(response.status_code, 400, password)
            self.assertEqual(response.json()["error"]["details"]["field"], "password")
        self.assertFalse(User.objects.filter(username="gina").exists())

    def test_profile_update_rejects_malformed_email(self):
        user = User.objects.create_user("hank", email="hank@example.com", password="pw")
        self.client.force_login(user)
        response = self.post("/api/auth/profile/update/", {"email": "hank@@example.com"})
        self.assertEqual(response.status_code, 400)
        user.refresh_from_db()
        self.assertEqual(user.email, "hank@example.com")

    def test_user_list_is_staff_only(self):
        User.objects.create_user("ivy", email="ivy@example.com", password="pw")
        admin = User.objects.create_user("root", password="pw", is_staff=True)

        self.assertEqual(self.client.get("/api/auth/users/").status_code, 401)

        self.client.force_login(User.objects.get(username="ivy"))
        forbidden = self.client.get("/api/auth/users/")
        self.assertEqual(forbidden.status_code, 403)
        self.assertEqual(forbidden.json()["error"]["code"], "FORBIDDEN")

        self.client.force_login(admin)
        body = self.client.get("/api/auth/users/").json()
        self.assertEqual(sorted(u["username"] for u in body), ["ivy", "root"])
        self.assertNotIn("password", body[0])
