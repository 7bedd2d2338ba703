# inbox.py：通知与管理员审计流水（只追加）
from sqlalchemy import desc

from models import db, Notification, AdminLog


def append_notification(user_id: int, report_id: int, message: str, type_: str = 'status_update') -> Notification:
    """只加入会话，由调用方统一提交"""
    n = Notification(user_id=user_id, report_id=report_id, message=message[:255], type=type_)
    db.session.add(n)
    return n


def append_admin_log(admin_id: int, action: str, target_type: str, target_id: int, details: str) -> AdminLog:
    """同上，随所在事务一起提交"""
    entry = AdminLog(
        admin_id=admin_id,
        action=action,
        target_type=target_type,
        target_id=target_id,
        details=(details or '')[:255] or None
    )
    db.session.add(entry)
    return entry


def list_for_user(user_id: int) -> list:
    return (Notification.query
            .filter_by(user_id=user_id)
            .order_by(desc(Notification.created_at), desc(Notification.id))
            .all())


def unread_count(user_id: int) -> int:
    return Notification.query.filter_by(user_id=user_id, is_read=False).count()


def mark_all_read(user_id: int) -> int:
    """幂等：只翻转未读的；返回本次翻转的条数"""
    changed = (Notification.query
               .filter_by(user_id=user_id, is_read=False)
               .update({Notification.is_read: True}, synchronize_session=False))
    db.session.commit()
    return changed


def list_admin_logs(limit: int = 100) -> list:
    return (AdminLog.query
            .order_by(desc(AdminLog.created_at), desc(AdminLog.id))
            .limit(limit)
            .all())
