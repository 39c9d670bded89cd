from datetime import datetime, timedelta, timezone

import jwt
import pytest

from config import settings
from utils.auth_dependencies import AuthenticationError, TokenUser, extract_bearer_token
from utils.jwt_utils import JWTManager, jwt_manager


class TestJWTManager:
    def test_token_carries_user_id_and_role(self):
        payload = jwt_manager.decode(jwt_manager.create_access_token(7, "profesor"))

        assert payload["userId"] == 7
        assert payload["rol"] == "profesor"
        assert payload["exp"] - payload["iat"] == settings.JWT_EXPIRES_MINUTES * 60

    def test_expired_token_is_rejected(self):
        token = jwt_manager.create_access_token(7, "profesor", expires_minutes=-1)

        with pytest.raises(jwt.ExpiredSignatureError):
            jwt_manager.decode(token)

    def test_token_signed_with_other_secret_is_rejected(self):
        token = JWTManager(secret="another-secret").create_access_token(7, "admin")

        with pytest.raises(jwt.InvalidTokenError):
            jwt_manager.decode(token)

    @pytest.mark.parametrize(
        "payload,expected",
        [
            ({"userId": 1, "rol": "profesor"}, (1, "profesor")),
            ({"userID": 2, "role": "admin"}, (2, "admin")),
            ({"id": 3, "rol_usuario": "profesor"}, (3, "profesor")),
            ({"id_profesor": 4, "rol": "profesor"}, (4, "profesor")),
            ({"id_admin": 5, "rol": "admin"}, (5, "admin")),
            ({"rol": "admin"}, (None, "admin")),
            ({}, (None, None)),
        ],
    )
    def test_identity_accepts_legacy_claim_names(self, payload, expected):
        assert JWTManager.identity(payload) == expected

    def test_legacy_token_round_trip(self):
        now = datetime.now(timezone.utc)
        token = jwt.encode(
            {"id_profesor": 9, "role": "profesor", "exp": now + timedelta(minutes=5)},
            settings.JWT_SECRET,
            algorithm=settings.JWT_ALGORITHM,
        )

        assert JWTManager.identity(jwt_manager.decode(token)) == (9, "profesor")


class TestBearerExtraction:
    def test_token_after_scheme(self):
        assert extract_bearer_token("Bearer abc.def.ghi") == "abc.def.ghi"

    @pytest.mark.parametrize("header", [None, ""])
    def test_missing_header(self, header):
        with pytest.raises(AuthenticationError, match="No Authorization header"):
            extract_bearer_token(header)

    @pytest.mark.parametrize("header", ["Bearer", "Bearer ", "abc.def.ghi"])
    def test_missing_token(self, header):
        with pytest.raises(AuthenticationError, match="No token"):
            extract_bearer_token(header)


def test_token_user_roles():
    assert TokenUser(user_id=1, role="admin").is_admin
    assert not TokenUser(user_id=1, role="profesor").is_admin
