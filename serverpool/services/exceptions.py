# serverpool/services/exceptions.py

# --- Not Found Exceptions ---
class PoolNotFoundError(Exception):
    """풀을 찾을 수 없거나, 호출자가 볼 수 없는 풀일 때"""
    pass

class ContributorNotFoundError(Exception):
    """기여자 레코드를 찾을 수 없거나, 호출자 소유가 아닐 때"""
    pass

class InviteCodeNotFoundError(Exception):
    """초대 코드에 해당하는 풀이 없을 때"""
    pass

class ServerNotFoundError(Exception):
    """서버를 찾을 수 없거나, 호출자 소유가 아닐 때"""
    pass

class AssignmentNotFoundError(Exception):
    """서버-풀 할당을 찾을 수 없을 때"""
    pass

class ProfileNotFoundError(Exception):
    """프로필이 없거나, 호출자에게 공개되지 않은 프로필일 때"""
    pass

# --- Creation/Validation Exceptions ---
class ValidationError(Exception):
    """필수 필드가 없거나 값이 올바르지 않을 때"""
    pass

class UserCreationError(Exception):
    """동일한 이메일의 사용자가 이미 존재할 때"""
    pass

class PoolCreationError(Exception):
    """풀 생성 실패 시 (초대 코드 충돌 등)"""
    pass

class ContributorAlreadyExistsError(Exception):
    """(pool_id, user_id) 쌍의 기여자 레코드가 이미 존재할 때"""
    pass

class AssignmentAlreadyExistsError(Exception):
    """(server_id, pool_id) 쌍의 할당이 이미 존재할 때"""
    pass

# --- Auth Exceptions ---
class TokenInvalidError(Exception):
    """토큰이 유효하지 않거나, 만료되었거나, 없을 때"""
    pass

class AuthenticationError(Exception):
    """사용자 자격 증명 실패 시"""
    pass

class PermissionDeniedError(Exception):
    """볼 수는 있지만 변경 권한이 없는 리소스를 수정하려고 할 때"""
    pass
