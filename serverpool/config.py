# serverpool/config.py
import os

# 모든 설정은 환경 변수로 덮어쓸 수 있습니다.
DATABASE_URL = os.environ.get("SERVERPOOL_DATABASE_URL", "sqlite:///serverpool.db")

HOST = os.environ.get("SERVERPOOL_HOST", "")
PORT = int(os.environ.get("SERVERPOOL_PORT", "8000"))

# 베어러 토큰(JWT) 서명 설정
JWT_SECRET = os.environ.get("SERVERPOOL_JWT_SECRET", "serverpool-local-development-secret-change-me")
JWT_ALGORITHM = os.environ.get("SERVERPOOL_JWT_ALGORITHM", "HS256")
TOKEN_TTL_HOURS = int(os.environ.get("SERVERPOOL_TOKEN_TTL_HOURS", "1"))

LOG_LEVEL = os.environ.get("SERVERPOOL_LOG_LEVEL", "INFO")

# 에이전트 API 요청 경로에서 제거되는 접두사
AGENT_API_PREFIX = os.environ.get("SERVERPOOL_AGENT_API_PREFIX", "/agent-api")
