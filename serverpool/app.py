# serverpool/app.py
from wsgiref.simple_server import make_server
import json
import logging
import re
import sys

from serverpool import config
from serverpool.database.database import SessionLocal
from serverpool.repositories.sqlalchemy.sqlalchemy_user_repository import SqlalchemyUserRepository
from serverpool.repositories.sqlalchemy.sqlalchemy_profile_repository import SqlalchemyProfileRepository
from serverpool.repositories.sqlalchemy.sqlalchemy_server_repository import SqlalchemyServerRepository
from serverpool.repositories.sqlalchemy.sqlalchemy_pool_repository import SqlalchemyPoolRepository
from serverpool.repositories.sqlalchemy.sqlalchemy_contributor_repository import SqlalchemyContributorRepository
from serverpool.repositories.sqlalchemy.sqlalchemy_assignment_repository import SqlalchemyAssignmentRepository
from serverpool.services.aggregator import PoolTotalsAggregator
from serverpool.services.agent_service import AgentService
from serverpool.services.identity_service import IdentityService
from serverpool.services.pool_service import PoolService
from serverpool.services.server_service import ServerService
from serverpool.services.validation import RESOURCE_FIELDS
from serverpool.services.exceptions import *

logger = logging.getLogger(__name__)

CORS_HEADERS = [
    ("Access-Control-Allow-Origin", "*"),
    ("Access-Control-Allow-Headers", "authorization, x-client-info, apikey, content-type"),
]

AGENT_ENDPOINTS = [
    "POST /register - Register agent to pool",
    "POST /heartbeat - Send heartbeat",
    "POST /disconnect - Disconnect agent",
    "GET /pools - Get user pools",
    "GET /pool/:id - Get pool details",
    "POST /join/:invite_code - Lookup pool by invite code",
]

# --------------------------------------------------------------------------
## 요청 처리 유틸리티 함수
# --------------------------------------------------------------------------

def get_request_data(environ):
    try:
        content_length = int(environ.get("CONTENT_LENGTH") or 0)
        data = json.loads(environ["wsgi.input"].read(content_length)) if content_length > 0 else {}
    except (ValueError, json.JSONDecodeError):
        raise ValidationError("Invalid or missing JSON body.")
    if not isinstance(data, dict):
        raise ValidationError("JSON body must be an object.")
    return data

def authorize_and_get_token_data(environ):
    auth_header = environ.get('HTTP_AUTHORIZATION')
    if not auth_header:
        raise TokenInvalidError("Missing authorization header")
    scheme, _, token = auth_header.strip().partition(' ')
    if scheme.lower() != 'bearer' or not token.strip():
        raise TokenInvalidError("Invalid authorization header")
    token = token.strip()
    return environ['services']['identity'].validate_token(token)

def handle_exception(e):
    error_map = {
        TokenInvalidError: "401 Unauthorized",
        AuthenticationError: "401 Unauthorized",
        PermissionDeniedError: "403 Forbidden",
        PoolNotFoundError: "404 Not Found",
        ContributorNotFoundError: "404 Not Found",
        InviteCodeNotFoundError: "404 Not Found",
        ServerNotFoundError: "404 Not Found",
        AssignmentNotFoundError: "404 Not Found",
        ProfileNotFoundError: "404 Not Found",
        ValidationError: "400 Bad Request",
        UserCreationError: "400 Bad Request",
        PoolCreationError: "400 Bad Request",
        ContributorAlreadyExistsError: "400 Bad Request",
        AssignmentAlreadyExistsError: "400 Bad Request",
    }
    status = error_map.get(type(e))
    if status is None:
        # 내부 오류 내용은 호출자에게 노출하지 않습니다.
        logger.exception("Unhandled error while processing request")
        return "500 Internal Server Error", json.dumps({"error": "Internal server error"})
    return status, json.dumps({"error": str(e)})

def build_services(db_session):
    """요청 범위의 세션으로 리포지토리와 서비스를 생성합니다."""
    user_repo = SqlalchemyUserRepository(db_session)
    profile_repo = SqlalchemyProfileRepository(db_session)
    server_repo = SqlalchemyServerRepository(db_session)
    pool_repo = SqlalchemyPoolRepository(db_session)
    contributor_repo = SqlalchemyContributorRepository(db_session)
    assignment_repo = SqlalchemyAssignmentRepository(db_session)

    aggregator = PoolTotalsAggregator(pool_repo, contributor_repo)
    return {
        'identity': IdentityService(user_repo, profile_repo, pool_repo, assignment_repo),
        'agent': AgentService(pool_repo, contributor_repo, aggregator),
        'pool': PoolService(pool_repo, contributor_repo, profile_repo, aggregator),
        'server': ServerService(server_repo, pool_repo, contributor_repo, assignment_repo),
    }

def match_route(routes, method, path):
    for route_method, pattern, route_handler in routes:
        if method == route_method and (match := re.match(pattern, path)):
            return route_handler, match.groups()
    return None, ()

# --------------------------------------------------------------------------
## WSGI 애플리케이션 (의존성 주입 및 라우팅)
# --------------------------------------------------------------------------

def application(environ, start_response):
    method = environ.get("REQUEST_METHOD", "")
    path = environ.get("PATH_INFO", "")

    # CORS preflight는 인증 없이 응답합니다.
    if method == "OPTIONS":
        start_response("200 OK", CORS_HEADERS + [("Content-Length", "0")])
        return [b""]

    db_session = SessionLocal()
    try:
        # 1. 의존성 생성 (Repositories -> Services)
        environ['services'] = build_services(db_session)

        # 2. 라우팅 및 핸들러 실행
        prefix = config.AGENT_API_PREFIX
        if path == prefix or path.startswith(prefix + "/"):
            status, response_body = dispatch_agent_api(environ, method, path[len(prefix):] or "/")
        else:
            handler, path_args = match_route(ROUTES, method, path)
            if handler:
                status, response_body = handler(environ, *path_args)
            else:
                status, response_body = '404 Not Found', json.dumps({'error': 'Not Found'})

    except Exception as e:
        status, response_body = handle_exception(e)
    finally:
        db_session.close()

    start_response(status, [("Content-Type", "application/json")] + CORS_HEADERS)
    return [response_body.encode("utf-8")]

def dispatch_agent_api(environ, method, path):
    """에이전트 API는 경로와 무관하게 인증을 먼저 검사한 뒤 라우팅합니다."""
    user_id = authorize_and_get_token_data(environ)['user_id']
    logger.info("Agent API request: %s %s by user %s", method, path, user_id)

    handler, path_args = match_route(AGENT_ROUTES, method, path)
    if not handler:
        return '404 Not Found', json.dumps({'error': 'Not found', 'available_endpoints': AGENT_ENDPOINTS})
    return handler(environ, user_id, *path_args)

# --------------------------------------------------------------------------
## 에이전트 API 핸들러
# --------------------------------------------------------------------------

def agent_register_handler(environ, user_id):
    data = get_request_data(environ)
    result = environ['services']['agent'].register(
        user_id,
        data.get('pool_id'),
        cpu_cores=data.get('cpu_cores'),
        ram_gb=data.get('ram_gb'),
        storage_gb=data.get('storage_gb'),
    )
    return '200 OK', json.dumps(result)

def agent_heartbeat_handler(environ, user_id):
    data = get_request_data(environ)
    # 요청에 실제로 포함된 리소스 필드만 전달합니다 (부분 갱신).
    resources = {name: data[name] for name in RESOURCE_FIELDS if name in data}
    result = environ['services']['agent'].heartbeat(
        user_id, data.get('contributor_id'), status=data.get('status'), **resources
    )
    return '200 OK', json.dumps(result)

def agent_disconnect_handler(environ, user_id):
    data = get_request_data(environ)
    result = environ['services']['agent'].disconnect(user_id, data.get('contributor_id'))
    return '200 OK', json.dumps(result)

def agent_list_pools_handler(environ, user_id):
    return '200 OK', json.dumps(environ['services']['agent'].list_pools(user_id))

def agent_get_pool_handler(environ, user_id, pool_id):
    return '200 OK', json.dumps(environ['services']['agent'].get_pool(user_id, pool_id))

def agent_join_handler(environ, user_id, invite_code):
    return '200 OK', json.dumps(environ['services']['agent'].lookup_invite(invite_code))

# --------------------------------------------------------------------------
## 웹 API 핸들러
# --------------------------------------------------------------------------

def signup_handler(environ, *args):
    data = get_request_data(environ)
    user = environ['services']['identity'].create_user(
        data.get('email'), data.get('password'), data.get('display_name')
    )
    return '201 Created', json.dumps(user)

def auth_tokens_handler(environ, *args):
    data = get_request_data(environ)
    token = environ['services']['identity'].authenticate(data.get('email'), data.get('password'))
    return '201 Created', json.dumps(token)

def get_profile_handler(environ, user_id):
    token_data = authorize_and_get_token_data(environ)
    profile = environ['services']['identity'].get_profile(token_data['user_id'], user_id)
    return '200 OK', json.dumps(profile)

def update_profile_handler(environ, user_id):
    token_data = authorize_and_get_token_data(environ)
    data = get_request_data(environ)
    profile = environ['services']['identity'].update_profile(
        token_data['user_id'], user_id,
        display_name=data.get('display_name'), avatar_url=data.get('avatar_url')
    )
    return '200 OK', json.dumps(profile)

def list_pools_handler(environ, *args):
    token_data = authorize_and_get_token_data(environ)
    pools = environ['services']['pool'].list_visible_pools(token_data['user_id'])
    return '200 OK', json.dumps({"pools": pools})

def create_pool_handler(environ, *args):
    token_data = authorize_and_get_token_data(environ)
    data = get_request_data(environ)
    pool = environ['services']['pool'].create_pool(
        token_data['user_id'], data.get('name'),
        description=data.get('description'), is_public=data.get('is_public', False)
    )
    return '201 Created', json.dumps(pool)

def delete_pool_handler(environ, pool_id):
    token_data = authorize_and_get_token_data(environ)
    environ['services']['pool'].delete_pool(token_data['user_id'], pool_id)
    return '204 No Content', ''

def list_contributors_handler(environ, pool_id):
    token_data = authorize_and_get_token_data(environ)
    contributors = environ['services']['pool'].list_contributors(token_data['user_id'], pool_id)
    return '200 OK', json.dumps({"contributors": contributors})

def join_pool_handler(environ, invite_code):
    token_data = authorize_and_get_token_data(environ)
    result = environ['services']['pool'].join_by_invite(token_data['user_id'], invite_code)
    return '201 Created', json.dumps(result)

def remove_contributor_handler(environ, contributor_id):
    token_data = authorize_and_get_token_data(environ)
    environ['services']['pool'].remove_contributor(token_data['user_id'], contributor_id)
    return '204 No Content', ''

def list_servers_handler(environ, *args):
    token_data = authorize_and_get_token_data(environ)
    servers = environ['services']['server'].list_servers(token_data['user_id'])
    return '200 OK', json.dumps({"servers": servers})

def create_server_handler(environ, *args):
    token_data = authorize_and_get_token_data(environ)
    data = get_request_data(environ)
    server = environ['services']['server'].create_server(
        token_data['user_id'], data.get('name'), data.get('game_type'),
        description=data.get('description'),
        max_players=data.get('max_players'),
        port=data.get('port'),
        mc_server_type=data.get('mc_server_type'),
        mc_version=data.get('mc_version'),
    )
    return '201 Created', json.dumps(server)

def update_server_handler(environ, server_id):
    token_data = authorize_and_get_token_data(environ)
    data = get_request_data(environ)
    server = environ['services']['server'].update_status(
        token_data['user_id'], server_id, data.get('status'), current_players=data.get('current_players')
    )
    return '200 OK', json.dumps(server)

def delete_server_handler(environ, server_id):
    token_data = authorize_and_get_token_data(environ)
    environ['services']['server'].delete_server(token_data['user_id'], server_id)
    return '204 No Content', ''

def list_assignments_handler(environ, server_id):
    token_data = authorize_and_get_token_data(environ)
    assignments = environ['services']['server'].list_assignments(token_data['user_id'], server_id)
    return '200 OK', json.dumps({"assignments": assignments})

def create_assignment_handler(environ, server_id):
    token_data = authorize_and_get_token_data(environ)
    data = get_request_data(environ)
    assignment = environ['services']['server'].assign_to_pool(
        token_data['user_id'], server_id, data.get('pool_id'),
        allocated_cpu=data.get('allocated_cpu'),
        allocated_ram_gb=data.get('allocated_ram_gb'),
        allocated_storage_gb=data.get('allocated_storage_gb'),
    )
    return '201 Created', json.dumps(assignment)

def delete_assignment_handler(environ, assignment_id):
    token_data = authorize_and_get_token_data(environ)
    environ['services']['server'].unassign(token_data['user_id'], assignment_id)
    return '204 No Content', ''

# --------------------------------------------------------------------------
## 라우팅 테이블
# --------------------------------------------------------------------------

_ID = r'([A-Za-z0-9_-]+)'

AGENT_ROUTES = [
    ('POST', r'^/register$', agent_register_handler),
    ('POST', r'^/heartbeat$', agent_heartbeat_handler),
    ('POST', r'^/disconnect$', agent_disconnect_handler),
    ('GET', r'^/pools$', agent_list_pools_handler),
    ('GET', rf'^/pool/{_ID}$', agent_get_pool_handler),
    ('POST', rf'^/join/{_ID}$', agent_join_handler),
]

ROUTES = [
    ('POST', r'^/v1/auth/signup$', signup_handler),
    ('POST', r'^/v1/auth/tokens$', auth_tokens_handler),
    ('GET', rf'^/v1/profiles/{_ID}$', get_profile_handler),
    ('PATCH', rf'^/v1/profiles/{_ID}$', update_profile_handler),
    ('GET', r'^/v1/pools$', list_pools_handler),
    ('POST', r'^/v1/pools$', create_pool_handler),
    ('DELETE', rf'^/v1/pools/{_ID}$', delete_pool_handler),
    ('GET', rf'^/v1/pools/{_ID}/contributors$', list_contributors_handler),
    ('POST', rf'^/v1/invites/{_ID}/join$', join_pool_handler),
    ('DELETE', rf'^/v1/contributors/{_ID}$', remove_contributor_handler),
    ('GET', r'^/v1/servers$', list_servers_handler),
    ('POST', r'^/v1/servers$', create_server_handler),
    ('PATCH', rf'^/v1/servers/{_ID}$', update_server_handler),
    ('DELETE', rf'^/v1/servers/{_ID}$', delete_server_handler),
    ('GET', rf'^/v1/servers/{_ID}/assignments$', list_assignments_handler),
    ('POST', rf'^/v1/servers/{_ID}/assignments$', create_assignment_handler),
    ('DELETE', rf'^/v1/assignments/{_ID}$', delete_assignment_handler),
]

# --------------------------------------------------------------------------
## 서버 실행
# --------------------------------------------------------------------------

def main():
    from serverpool.database.db_init import initialize_db

    logging.basicConfig(
        level=config.LOG_LEVEL,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
    initialize_db()
    try:
        with make_server(config.HOST, config.PORT, application) as httpd:
            logger.info("Serving ServerPool on port %d...", config.PORT)
            httpd.serve_forever()
    except Exception:
        logger.exception("Error starting server")
        sys.exit(1)

if __name__ == "__main__":
    main()
