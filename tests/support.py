import os
import shutil
import tempfile
import unittest
from functools import lru_cache

from fastapi.testclient import TestClient
from sqlmodel import Session

from lifevault.auth.otp import LocalOTPProvider
from lifevault.core.crypto import generate_rsa_keypair
from lifevault.core.settings import Settings
from lifevault.main import create_app

DEFAULT_PIN = "123456"


@lru_cache(maxsize=1)
def server_keys() -> tuple[str, str]:
    # 2048 bits keeps the suite fast; production keys are 4096
    private_pem, public_pem = generate_rsa_keypair(2048)
    return private_pem.decode("utf-8"), public_pem.decode("utf-8")


def make_settings(tmpdir: str, **overrides) -> Settings:
    private_key, public_key = server_keys()
    values = dict(
        ENVIRONMENT="test",
        LOG_LEVEL="WARNING",
        DATABASE_URL=f"sqlite:///{os.path.join(tmpdir, 'lifevault.db')}",
        SERVER_PRIVATE_KEY=private_key,
        SERVER_PUBLIC_KEY=public_key,
        PIN_PEPPER="test-pepper",
        STORAGE_DIR=os.path.join(tmpdir, "storage"),
        PUBLIC_BASE_URL="http://testserver",
        RATE_LIMIT_ENABLED=False,
    )
    values.update(overrides)
    return Settings(_env_file=None, **values)


class CapturingDelivery:
    """Stands in for the email channel; remembers the last code per address."""

    def __init__(self):
        self.codes: dict[str, str] = {}

    def __call__(self, email: str, code: str) -> None:
        self.codes[email] = code


class APITestCase(unittest.TestCase):
    settings_overrides: dict = {}
    raise_server_exceptions = True

    def setUp(self):
        self.tmpdir = tempfile.mkdtemp(prefix="lifevault-")
        self.addCleanup(shutil.rmtree, self.tmpdir, ignore_errors=True)

        self.settings = make_settings(self.tmpdir, **self.settings_overrides)
        self.delivery = CapturingDelivery()
        self.app = create_app(self.settings, otp_provider=LocalOTPProvider(self.settings, self.delivery))

        self.client = TestClient(self.app, raise_server_exceptions=self.raise_server_exceptions)
        self.client.__enter__()
        self.addCleanup(self.client.__exit__, None, None, None)

    def db(self) -> Session:
        return Session(self.app.state.engine)

    @staticmethod
    def auth(token: str) -> dict[str, str]:
        return {"Authorization": f"Bearer {token}"}

    def setup_token(self, email: str) -> str:
        response = self.client.post("/auth/send-otp", json={"email": email})
        self.assertEqual(response.status_code, 200, response.text)
        code = self.delivery.codes[email.lower()]

        response = self.client.post("/auth/verify-otp", json={"email": email, "otp": code})
        self.assertEqual(response.status_code, 200, response.text)
        return response.json()["data"]["tempToken"]

    def register(self, email: str, role: str, pin: str = DEFAULT_PIN) -> dict:
        token = self.setup_token(email)
        response = self.client.post("/auth/set-pin", json={"pin": pin, "role": role}, headers=self.auth(token))
        self.assertEqual(response.status_code, 201, response.text)
        return response.json()["data"]

    def login(self, email: str, pin: str = DEFAULT_PIN) -> str:
        response = self.client.post("/auth/login-pin", json={"email": email, "pin": pin})
        self.assertEqual(response.status_code, 200, response.text)
        return response.json()["data"]["token"]

    def register_and_login(self, email: str, role: str, pin: str = DEFAULT_PIN) -> tuple[str, str]:
        user = self.register(email, role, pin)
        return self.login(email, pin), user["userId"]

    def create_asset(self, token: str, title: str = "Policy", category: str = "Legal") -> str:
        response = self.client.post("/assets", json={"title": title, "category": category}, headers=self.auth(token))
        self.assertEqual(response.status_code, 201, response.text)
        return response.json()["data"]["asset"]["id"]

    def upload(self, token: str, asset_id: str, content: bytes = b"x" * 10240, filename: str = "will.pdf"):
        return self.client.post(
            f"/assets/{asset_id}/documents",
            files={"file": (filename, content, "application/pdf")},
            headers=self.auth(token),
        )

    def nominee_id_for(self, owner_token: str, user_id: str) -> str:
        response = self.client.get("/nominees", headers=self.auth(owner_token))
        self.assertEqual(response.status_code, 200, response.text)
        for nominee in response.json()["data"]:
            if nominee["user_id"] == user_id:
                return nominee["id"]
        self.fail(f"No nominee record for user {user_id}")

    def link(self, owner_token: str, asset_id: str, nominee_id: str):
        return self.client.post(
            "/nominees/link",
            json={"assetId": asset_id, "nomineeId": nominee_id},
            headers=self.auth(owner_token),
        )
