# authz.py：统一鉴权，所有受保护接口只经过 authorize() 这一处判断
from enum import Enum
from functools import wraps

from flask import request
from flask_babel import lazy_gettext as _l

from errors import Unauthorized, Forbidden
from security import verify_token


class Decision(Enum):
    ALLOW = 'allow'
    UNAUTHORIZED = 'unauthorized'
    FORBIDDEN = 'forbidden'


class Session:
    """当前请求的身份，显式传给视图函数"""

    def __init__(self, user_id: int, email: str, role: str, username: str):
        self.user_id = user_id
        self.email = email
        self.role = role
        self.username = username

    @property
    def is_admin(self) -> bool:
        return self.role == 'admin'

    def __repr__(self):
        return f'<Session {self.user_id} {self.role}>'


def authorize(session, required_role=None) -> Decision:
    if session is None:
        return Decision.UNAUTHORIZED
    if required_role is not None and session.role != required_role:
        return Decision.FORBIDDEN
    return Decision.ALLOW


def load_session():
    """从 Authorization: Bearer <token> 读取身份；缺失/无效/过期时抛 Unauthorized"""
    scheme, _, token = request.headers.get('Authorization', '').partition(' ')
    token = token.strip()
    if scheme.lower() != 'bearer' or not token:
        raise Unauthorized(_l('Missing or malformed Authorization header'))
    claims = verify_token(token)
    return Session(claims['id'], claims['email'], claims['role'], claims['username'])


def login_required(role=None):
    def decorator(fn):
        @wraps(fn)
        def wrapper(*args, **kwargs):
            try:
                session, reason = load_session(), None
            except Unauthorized as e:
                session, reason = None, e.message
            decision = authorize(session, role)
            if decision is Decision.UNAUTHORIZED:
                raise Unauthorized(reason)
            if decision is Decision.FORBIDDEN:
                raise Forbidden(_l("Forbidden: need role '%(role)s'", role=role))
            return fn(session, *args, **kwargs)
        return wrapper
    return decorator


def admin_required(fn):
    return login_required('admin')(fn)
