# security.py：密码哈希 + 令牌签发/校验
from datetime import timedelta

from flask import current_app
from flask_babel import lazy_gettext as _l
from flask_jwt_extended import create_access_token, decode_token
from flask_jwt_extended.exceptions import JWTExtendedException
from jwt.exceptions import ExpiredSignatureError, PyJWTError
from werkzeug.security import generate_password_hash, check_password_hash

from errors import Unauthorized

TOKEN_LIFETIME = timedelta(hours=24)

# 查无此人时也跑一遍校验，使两种登录失败耗时相近
_dummy_hashes = {}


def hash_password(password: str) -> str:
    method = current_app.config.get('PASSWORD_HASH_METHOD', 'scrypt')
    return generate_password_hash(password, method=method)


def verify_password(password: str, pwhash) -> bool:
    """格式错误的摘要一律视为不匹配，不向调用方抛异常"""
    if not pwhash or not isinstance(pwhash, str):
        return False
    try:
        return check_password_hash(pwhash, password or '')
    except (ValueError, TypeError):
        return False


def burn_password_check(password: str) -> None:
    method = current_app.config.get('PASSWORD_HASH_METHOD', 'scrypt')
    if method not in _dummy_hashes:
        _dummy_hashes[method] = generate_password_hash('not-a-real-password', method=method)
    verify_password(password, _dummy_hashes[method])


def issue_token(user) -> str:
    return create_access_token(
        identity=str(user.id),
        additional_claims={
            'email': user.email,
            'role': user.role,
            'username': user.username
        },
        expires_delta=current_app.config.get('JWT_ACCESS_TOKEN_EXPIRES', TOKEN_LIFETIME)
    )


def verify_token(token: str) -> dict:
    """返回令牌中的身份声明；过期或无效时抛 Unauthorized"""
    try:
        claims = decode_token(token)
    except ExpiredSignatureError:
        raise Unauthorized(_l('Token expired'))
    except (PyJWTError, JWTExtendedException, ValueError):
        raise Unauthorized(_l('Invalid token'))
    return claims_from_jwt(claims)


def claims_from_jwt(jwt_data: dict) -> dict:
    try:
        user_id = int(jwt_data['sub'])
    except (KeyError, TypeError, ValueError):
        raise Unauthorized(_l('Invalid token'))
    return {
        'id': user_id,
        'email': jwt_data.get('email'),
        'role': jwt_data.get('role'),
        'username': jwt_data.get('username')
    }
