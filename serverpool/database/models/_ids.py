import uuid


def new_id() -> str:
    """기본 키로 사용할 UUID 문자열을 생성합니다."""
    return str(uuid.uuid4())
