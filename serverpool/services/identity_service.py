import hashlib
from datetime import datetime, timedelta, timezone
from typing import Dict, Any, Optional

import jwt

from serverpool import config
from serverpool.database import models
from serverpool.repositories.interfaces import (
    IUserRepository, IProfileRepository, IPoolRepository, IAssignmentRepository
)
from serverpool.services import policy
from serverpool.services.serializers import serialize_profile
from serverpool.services.validation import require
from serverpool.services.visibility import load_membership_snapshot, MembershipSnapshot
from serverpool.services.exceptions import (
    UserCreationError, ProfileNotFoundError, PermissionDeniedError,
    AuthenticationError, TokenInvalidError
)


def _hash_password(password: str) -> str:
    return hashlib.sha256(password.encode('utf-8')).hexdigest()


class IdentityService:
    """사용자 생성, 인증 토큰 발급/검증, 프로필 조회/수정 등 신원 관리 서비스를 제공합니다."""

    def __init__(
        self,
        user_repo: IUserRepository,
        profile_repo: IProfileRepository,
        pool_repo: IPoolRepository,
        assignment_repo: IAssignmentRepository,
        secret: Optional[str] = None,
        algorithm: Optional[str] = None,
        token_ttl: Optional[timedelta] = None,
    ):
        """
        IdentityService를 초기화합니다.

        Args:
            user_repo: 사용자 데이터에 접근하기 위한 리포지토리.
            profile_repo: 프로필 데이터에 접근하기 위한 리포지토리.
            pool_repo: 풀 멤버십 조회용 리포지토리 (프로필 가시성 판정).
            assignment_repo: 서버-풀 할당 조회용 리포지토리 (프로필 가시성 판정).
            secret, algorithm, token_ttl: 토큰 서명 설정. 생략하면 config 값을 사용합니다.
        """
        self.user_repo = user_repo
        self.profile_repo = profile_repo
        self.pool_repo = pool_repo
        self.assignment_repo = assignment_repo
        self.secret = secret or config.JWT_SECRET
        self.algorithm = algorithm or config.JWT_ALGORITHM
        self.token_ttl = token_ttl or timedelta(hours=config.TOKEN_TTL_HOURS)

    def create_user(self, email: str, password: str, display_name: Optional[str] = None) -> Dict[str, Any]:
        """
        새로운 사용자를 생성하고, 프로필을 함께 만듭니다. 비밀번호는 해시하여 저장합니다.

        Raises:
            ValidationError: email 또는 password가 없을 때.
            UserCreationError: 동일한 이메일의 사용자가 이미 존재할 때.
        """
        require(email, "email")
        require(password, "password")
        if self.user_repo.find_by_email(email):
            raise UserCreationError(f"User with email '{email}' already exists.")

        user = self.user_repo.create(models.User(email=email, password_hash=_hash_password(password)))
        self.profile_repo.create(models.Profile(user_id=user.id, display_name=display_name))
        return {"id": user.id, "email": user.email, "display_name": display_name}

    def authenticate(self, email: str, password: str) -> Dict[str, str]:
        """
        자격증명을 검증하고, 성공 시 서명된 베어러 토큰을 발급합니다.

        Raises:
            AuthenticationError: 이메일 또는 비밀번호가 올바르지 않을 때.
        """
        user = self.user_repo.find_by_email(email) if email else None
        if not user or not password or user.password_hash != _hash_password(password):
            raise AuthenticationError("Invalid email or password.")

        expires_at = datetime.now(timezone.utc) + self.token_ttl
        token = jwt.encode({"sub": user.id, "exp": expires_at}, self.secret, algorithm=self.algorithm)
        return {"token": token, "expires_at": expires_at.isoformat(), "user_id": user.id}

    def validate_token(self, token: str) -> Dict[str, Any]:
        """
        베어러 토큰을 검증하고, 유효하면 토큰 데이터(user_id)를 반환합니다.

        Raises:
            TokenInvalidError: 토큰이 없거나, 만료되었거나, 서명이 올바르지 않을 때.
        """
        if not token:
            raise TokenInvalidError("Missing authorization header")
        try:
            payload = jwt.decode(token, self.secret, algorithms=[self.algorithm])
        except jwt.ExpiredSignatureError:
            raise TokenInvalidError("Invalid or expired token")
        except jwt.InvalidTokenError:
            raise TokenInvalidError("Invalid or expired token")

        user_id = payload.get("sub")
        if not user_id:
            raise TokenInvalidError("Invalid or expired token")
        return {"user_id": user_id, "expires_at": payload.get("exp")}

    def membership_snapshot(self, viewer_id: str) -> MembershipSnapshot:
        return load_membership_snapshot(viewer_id, self.pool_repo, self.assignment_repo)

    def get_profile(self, viewer_id: str, target_user_id: str) -> Dict[str, Any]:
        """
        프로필을 조회합니다. 본인 또는 풀 관계를 공유하는 사용자의 프로필만 볼 수 있습니다.

        Raises:
            ProfileNotFoundError: 프로필이 없거나 호출자에게 공개되지 않았을 때.
        """
        profile = self.profile_repo.find_by_user_id(target_user_id)
        if not profile:
            raise ProfileNotFoundError("Profile not found")
        if viewer_id != target_user_id:
            snapshot = self.membership_snapshot(viewer_id)
            if not policy.can_read_profile(viewer_id, profile, snapshot):
                raise ProfileNotFoundError("Profile not found")
        return serialize_profile(profile)

    def update_profile(
        self, user_id: str, target_user_id: str, display_name: Optional[str] = None, avatar_url: Optional[str] = None
    ) -> Dict[str, Any]:
        """
        프로필을 수정합니다. 본인만 수정할 수 있습니다.

        Raises:
            ProfileNotFoundError: 프로필이 없을 때.
            PermissionDeniedError: 다른 사용자의 프로필을 수정하려고 할 때.
        """
        profile = self.profile_repo.find_by_user_id(target_user_id)
        if not profile:
            raise ProfileNotFoundError("Profile not found")
        if not policy.can_update_profile(user_id, profile):
            if not policy.can_read_profile(user_id, profile, self.membership_snapshot(user_id)):
                raise ProfileNotFoundError("Profile not found")
            raise PermissionDeniedError("You can only update your own profile")

        if display_name is not None:
            profile.display_name = display_name
        if avatar_url is not None:
            profile.avatar_url = avatar_url
        return serialize_profile(self.profile_repo.update(profile))
