# models.py
from datetime import datetime

from flask_sqlalchemy import SQLAlchemy
from sqlalchemy import event
from sqlalchemy.engine import Engine

db = SQLAlchemy()

ROLES = ('user', 'admin')
PRIORITIES = ('Low', 'Medium', 'High', 'Emergency')
STATUSES = ('Pending', 'In Progress', 'Resolved')


@event.listens_for(Engine, 'connect')
def _enable_sqlite_foreign_keys(dbapi_connection, connection_record):
    """SQLite 默认不检查外键，级联删除依赖它"""
    if type(dbapi_connection).__module__.startswith('sqlite3'):
        cursor = dbapi_connection.cursor()
        cursor.execute('PRAGMA foreign_keys=ON')
        cursor.close()


def _iso(value):
    return value.isoformat() if value else None


def too_long(value, column) -> bool:
    """是否超过列定义的长度"""
    limit = getattr(column.type, 'length', None)
    return bool(value) and limit is not None and len(value) > limit


class User(db.Model):
    __tablename__ = 'users'
    id = db.Column(db.Integer, primary_key=True)
    username = db.Column(db.String(80), unique=True, nullable=False, index=True)
    email = db.Column(db.String(120), unique=True, nullable=False, index=True)
    phone = db.Column(db.String(20), nullable=True)
    password_hash = db.Column(db.String(255), nullable=False)
    role = db.Column(db.String(20), nullable=False, default='user')  # 'user' | 'admin'
    created_at = db.Column(db.DateTime, default=datetime.utcnow, index=True)

    reports = db.relationship(
        'Report', backref='owner', lazy=True,
        cascade='all, delete-orphan', passive_deletes=True
    )
    notifications = db.relationship(
        'Notification', backref='recipient', lazy=True,
        cascade='all, delete-orphan', passive_deletes=True
    )

    def to_dict(self) -> dict:
        # 公开视图：不含密码哈希
        return {
            'id': self.id,
            'username': self.username,
            'email': self.email,
            'phone': self.phone,
            'role': self.role,
            'created_at': _iso(self.created_at)
        }


class Report(db.Model):
    __tablename__ = 'reports'
    id = db.Column(db.Integer, primary_key=True)
    user_id = db.Column(
        db.Integer, db.ForeignKey('users.id', ondelete='CASCADE'),
        nullable=False, index=True
    )
    # 创建时冗余保存上报人名称，之后改名不影响历史记录
    name = db.Column(db.String(80), nullable=False)

    problem_type = db.Column(db.String(100), nullable=False)
    location = db.Column(db.String(255), nullable=False)
    issue = db.Column(db.Text, nullable=False)
    priority = db.Column(db.String(20), nullable=False, default='Medium')
    status = db.Column(db.String(20), nullable=False, default='Pending', index=True)
    photo_data = db.Column(db.Text, nullable=True)

    created_at = db.Column(db.DateTime, default=datetime.utcnow, index=True)

    notifications = db.relationship(
        'Notification', backref='report', lazy=True,
        cascade='all, delete-orphan', passive_deletes=True
    )

    def to_dict(self, with_owner: bool = False) -> dict:
        data = {
            'id': self.id,
            'user_id': self.user_id,
            'name': self.name,
            'problem_type': self.problem_type,
            'location': self.location,
            'issue': self.issue,
            'priority': self.priority,
            'status': self.status,
            'photo_data': self.photo_data,
            'created_at': _iso(self.created_at)
        }
        if with_owner:
            data['users'] = {
                'username': self.owner.username,
                'email': self.owner.email
            } if self.owner else None
        return data


class Notification(db.Model):
    __tablename__ = 'notifications'
    id = db.Column(db.Integer, primary_key=True)
    user_id = db.Column(
        db.Integer, db.ForeignKey('users.id', ondelete='CASCADE'),
        nullable=False, index=True
    )
    report_id = db.Column(
        db.Integer, db.ForeignKey('reports.id', ondelete='CASCADE'),
        nullable=False, index=True
    )
    message = db.Column(db.String(255), nullable=False)
    type = db.Column(db.String(50), nullable=False, default='status_update')
    is_read = db.Column(db.Boolean, nullable=False, default=False, index=True)
    created_at = db.Column(db.DateTime, default=datetime.utcnow, index=True)

    def to_dict(self) -> dict:
        return {
            'id': self.id,
            'user_id': self.user_id,
            'report_id': self.report_id,
            'message': self.message,
            'type': self.type,
            'is_read': self.is_read,
            'created_at': _iso(self.created_at)
        }


class AdminLog(db.Model):
    """只追加的审计流水；admin_id 不设外键，删除管理员后流水仍保留"""
    __tablename__ = 'admin_logs'
    id = db.Column(db.Integer, primary_key=True)
    admin_id = db.Column(db.Integer, nullable=False, index=True)
    action = db.Column(db.String(50), nullable=False)   # UPDATE_STATUS | DELETE | UPDATE_ROLE | DELETE_USER
    target_type = db.Column(db.String(20), nullable=False)   # report | user
    target_id = db.Column(db.Integer, nullable=False)
    details = db.Column(db.String(255))
    created_at = db.Column(db.DateTime, default=datetime.utcnow, nullable=False, index=True)

    def to_dict(self) -> dict:
        return {
            'id': self.id,
            'admin_id': self.admin_id,
            'action': self.action,
            'target_type': self.target_type,
            'target_id': self.target_id,
            'details': self.details,
            'created_at': _iso(self.created_at)
        }
