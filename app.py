# app.py
import logging
import os
from datetime import datetime

from flask import Flask, Blueprint, request, jsonify
from flask_jwt_extended import JWTManager

import accounts
import inbox
import lifecycle
from authz import login_required, admin_required
from config import Config
from errors import register_error_handlers, Forbidden
from i18n import init_i18n, set_language
from models import db

logger = logging.getLogger(__name__)

api = Blueprint('api', __name__)


# ============ 工具函数 ============
def _body() -> dict:
    # 非 JSON 请求按空体处理；JSON 格式错误交给 400 处理器
    if not request.is_json:
        return {}
    data = request.get_json()
    return data if isinstance(data, dict) else {}


def _text(data: dict, key: str) -> str:
    val = data.get(key)
    return val.strip() if isinstance(val, str) else ''


def _raw(data: dict, key: str) -> str:
    # 密码不做 strip
    val = data.get(key)
    return val if isinstance(val, str) else ''


# ============ 认证 ============
@api.route('/auth/register', methods=['POST'])
def register():
    data = _body()
    user_id = accounts.register(
        username=_text(data, 'username'),
        email=_text(data, 'email'),
        password=_raw(data, 'password'),
        phone=_text(data, 'phone') or None
    )
    return jsonify({"msg": "User created successfully", "userId": user_id}), 201


@api.route('/auth/login', methods=['POST'])
def login():
    data = _body()
    result = accounts.authenticate(_text(data, 'email'), _raw(data, 'password'))
    return jsonify({"msg": "Login successful", **result}), 200


@api.route('/auth/logout', methods=['POST'])
def logout():
    # 令牌无状态，客户端丢弃即可；服务端不维护吊销列表
    return jsonify({"msg": "Logout successful"}), 200


# ============ 报修 ============
@api.route('/reports', methods=['GET'])
@admin_required
def list_reports(session):
    reports = lifecycle.list_all()
    return jsonify({"reports": [r.to_dict(with_owner=True) for r in reports]}), 200


@api.route('/reports/my-reports', methods=['GET'])
@login_required()
def my_reports(session):
    reports = lifecycle.list_for_owner(session.user_id)
    return jsonify({"reports": [r.to_dict() for r in reports]}), 200


@api.route('/reports', methods=['POST'])
@login_required()
def create_report(session):
    data = _body()
    r = lifecycle.create(
        owner_id=session.user_id,
        problem_type=_text(data, 'problem_type'),
        location=_text(data, 'location'),
        issue=_text(data, 'issue'),
        priority=_text(data, 'priority') or None,
        photo_data=_raw(data, 'photo_data') or None
    )
    resp = jsonify({
        "msg": "Report created successfully",
        "reportId": r.id,
        "status": r.status,
        "priority": r.priority
    })
    resp.headers['Location'] = f"{request.script_root}{request.path.rstrip('/')}/{r.id}"
    return resp, 201


@api.route('/reports/<int:report_id>', methods=['GET'])
@login_required()
def get_report(session, report_id):
    r = lifecycle.get(report_id)
    if not session.is_admin and r.user_id != session.user_id:
        raise Forbidden()
    return jsonify(r.to_dict()), 200


@api.route('/reports/<int:report_id>/status', methods=['PUT'])
@admin_required
def update_report_status(session, report_id):
    status = _text(_body(), 'status')
    r = lifecycle.set_status(session.user_id, report_id, status)
    return jsonify({"msg": "Report status updated successfully", "status": r.status}), 200


@api.route('/reports/<int:report_id>', methods=['DELETE'])
@admin_required
def delete_report(session, report_id):
    lifecycle.delete(session.user_id, report_id)
    return jsonify({"msg": "Report deleted successfully"}), 200


# ============ 用户管理 ============
@api.route('/users', methods=['GET'])
@admin_required
def list_users(session):
    users = accounts.list_users(excluding_id=session.user_id)
    return jsonify({"users": [u.to_dict() for u in users]}), 200


@api.route('/users/<int:user_id>/role', methods=['PUT'])
@admin_required
def update_user_role(session, user_id):
    role = _text(_body(), 'role')
    u = accounts.update_role(session.user_id, user_id, role)
    return jsonify({"msg": "User role updated successfully", "role": u.role}), 200


@api.route('/users/<int:user_id>', methods=['DELETE'])
@admin_required
def delete_user(session, user_id):
    accounts.delete_user(session.user_id, user_id)
    return jsonify({"msg": "User deleted successfully"}), 200


# ============ 通知 ============
@api.route('/notifications', methods=['GET'])
@login_required()
def list_notifications(session):
    items = inbox.list_for_user(session.user_id)
    return jsonify({
        "notifications": [n.to_dict() for n in items],
        "unread": inbox.unread_count(session.user_id)
    }), 200


@api.route('/notifications/read', methods=['PUT'])
@login_required()
def mark_notifications_read(session):
    changed = inbox.mark_all_read(session.user_id)
    return jsonify({"msg": "Notifications marked as read", "updated": changed}), 200


@api.route('/admin/logs', methods=['GET'])
@admin_required
def admin_logs(session):
    limit = request.args.get('limit', 100, type=int)
    limit = max(1, min(limit, 500))
    return jsonify({"logs": [e.to_dict() for e in inbox.list_admin_logs(limit)]}), 200


# ============ 其他 ============
@api.route('/health', methods=['GET'])
def health():
    return jsonify({
        "status": "OK",
        "message": "CommunityCare API is running",
        "database": db.engine.url.get_backend_name(),
        "timestamp": datetime.utcnow().isoformat()
    }), 200


api.add_url_rule('/lang/<lang>', view_func=set_language, methods=['GET'])


def _security_headers(resp):
    resp.headers['X-Content-Type-Options'] = 'nosniff'
    resp.headers['X-Frame-Options'] = 'DENY'
    resp.headers['X-XSS-Protection'] = '1; mode=block'
    return resp


# ============ 应用工厂 ============
def create_app(overrides=None):
    app = Flask(__name__)
    app.config.from_object(Config)
    if overrides:
        app.config.update(overrides)

    if not app.config.get('JWT_SECRET_KEY'):
        raise RuntimeError('JWT_SECRET_KEY must be configured')

    logging.basicConfig(
        level=app.config['LOG_LEVEL'],
        format='%(asctime)s %(levelname)s %(name)s: %(message)s'
    )
    app.logger.setLevel(app.config['LOG_LEVEL'])

    # 路由末尾斜杠兼容
    app.url_map.strict_slashes = False

    db.init_app(app)
    JWTManager(app)
    init_i18n(app)
    register_error_handlers(app)
    app.after_request(_security_headers)
    app.register_blueprint(api, url_prefix=app.config['API_PREFIX'] or None)

    with app.app_context():
        db.create_all()
        accounts.ensure_admin(
            app.config.get('ADMIN_USERNAME'),
            app.config.get('ADMIN_EMAIL'),
            app.config.get('ADMIN_PASSWORD')
        )

    logger.info('CommunityCare API ready (prefix %s)', app.config['API_PREFIX'])
    return app


if __name__ == "__main__":
    create_app().run(host="0.0.0.0", port=int(os.environ.get('PORT', 3000)), debug=False, threaded=True)
