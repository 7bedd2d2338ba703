# accounts.py：用户注册 / 登录 / 管理员用户管理
import logging

from flask import current_app
from flask_babel import lazy_gettext as _l
from sqlalchemy import desc, or_
from sqlalchemy.exc import IntegrityError

from errors import InvalidInput, InvalidCredentials, Conflict, NotFound
from inbox import append_admin_log
from models import db, User, ROLES, too_long
from security import hash_password, verify_password, burn_password_check, issue_token

logger = logging.getLogger(__name__)


def register(username: str, email: str, password: str, phone: str = None, role: str = 'user') -> int:
    """用户名、邮箱精确匹配（区分大小写）判重"""
    if not username or not email or not password:
        raise InvalidInput(_l('Username, email, and password are required'))
    min_len = current_app.config.get('PASSWORD_MIN_LENGTH', 6)
    if len(password) < min_len:
        raise InvalidInput(_l('Password must be at least %(n)d characters long', n=min_len))
    if role not in ROLES:
        raise InvalidInput(_l('Invalid role'))
    cols = User.__table__.c
    for field, value in (('username', username), ('email', email), ('phone', phone)):
        if too_long(value, cols[field]):
            raise InvalidInput(_l('%(field)s is too long (max %(n)d)', field=field, n=cols[field].type.length))

    existing = User.query.filter(or_(User.email == email, User.username == username)).first()
    if existing:
        raise Conflict(_l('User already exists with this email or username'))

    u = User(username=username, email=email, phone=phone or None, role=role)
    u.password_hash = hash_password(password)
    db.session.add(u)
    try:
        db.session.commit()
    except IntegrityError:
        # 并发注册撞上唯一约束
        db.session.rollback()
        raise Conflict(_l('User already exists with this email or username'))
    logger.info('registered user %s (%s)', u.id, role)
    return u.id


def authenticate(email: str, password: str) -> dict:
    """查无此人与密码错误返回同一个错误"""
    if not email or not password:
        raise InvalidInput(_l('Email and password are required'))
    user = User.query.filter_by(email=email).first()
    if user is None:
        burn_password_check(password)
        logger.info('login failed')
        raise InvalidCredentials()
    if not verify_password(password, user.password_hash):
        logger.info('login failed')
        raise InvalidCredentials()
    logger.info('login ok for user %s', user.id)
    return {'token': issue_token(user), 'user': user.to_dict()}


def list_users(excluding_id: int = None) -> list:
    query = User.query
    if excluding_id is not None:
        query = query.filter(User.id != excluding_id)
    return query.order_by(desc(User.created_at), desc(User.id)).all()


def update_role(admin_id: int, user_id: int, new_role: str) -> User:
    if new_role not in ROLES:
        raise InvalidInput(_l('Invalid role'))
    u = db.session.get(User, user_id)
    if u is None:
        raise NotFound(_l('User not found'))
    old_role = u.role
    u.role = new_role
    append_admin_log(admin_id, 'UPDATE_ROLE', 'user', u.id, f'Role changed from {old_role} to {new_role}')
    db.session.commit()
    logger.info('admin %s changed role of user %s: %s -> %s', admin_id, u.id, old_role, new_role)
    return u


def delete_user(admin_id: int, user_id: int) -> None:
    """删除用户；其报修和通知由外键级联一并删除"""
    u = db.session.get(User, user_id)
    if u is None:
        raise NotFound(_l('User not found'))
    username = u.username
    db.session.delete(u)
    append_admin_log(admin_id, 'DELETE_USER', 'user', user_id, f'Deleted user: {username}')
    db.session.commit()
    logger.info('admin %s deleted user %s', admin_id, user_id)


def ensure_admin(username: str, email: str, password: str) -> bool:
    """启动时的管理员种子账号；未配置邮箱/密码，或用户名/邮箱已被普通账号占用时不创建"""
    if not email or not password:
        logger.warning('ADMIN_EMAIL/ADMIN_PASSWORD not set; no admin account seeded')
        return False
    username = username or 'admin'
    existing = User.query.filter(or_(User.email == email, User.username == username)).all()
    for u in existing:
        if u.email == email and u.role == 'admin':
            logger.info('admin account already exists')
            return True
    if existing:
        # 不提权、不报成功：交给运维处理
        logger.error('admin seed skipped: username %r or email %s is held by non-admin account(s) %s',
                     username, email, [u.id for u in existing])
        return False
    a = User(username=username, email=email, role='admin')
    a.password_hash = hash_password(password)
    db.session.add(a)
    db.session.commit()
    logger.info('admin account created: %s', email)
    return True
