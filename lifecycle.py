# lifecycle.py：报修的状态机与管理员操作
import logging

from flask_babel import lazy_gettext as _l
from sqlalchemy import desc

from errors import InvalidInput, NotFound, Unauthorized
from inbox import append_notification, append_admin_log
from models import db, Report, User, PRIORITIES, STATUSES, too_long

logger = logging.getLogger(__name__)

# Pending 可以跳过 In Progress 直接 Resolved；Resolved 为终态
TRANSITIONS = {
    'Pending': {'In Progress', 'Resolved'},
    'In Progress': {'Resolved'},
    'Resolved': set(),
}


def can_transition(old: str, new: str) -> bool:
    return new in TRANSITIONS.get(old, set())


def create(owner_id: int, problem_type: str, location: str, issue: str,
           priority: str = None, photo_data: str = None) -> Report:
    if not problem_type or not location or not issue:
        raise InvalidInput(_l('Problem type, location, and issue are required'))
    priority = priority or 'Medium'
    if priority not in PRIORITIES:
        raise InvalidInput(_l('Invalid priority'))
    cols = Report.__table__.c
    for field, value in (('problem_type', problem_type), ('location', location)):
        if too_long(value, cols[field]):
            raise InvalidInput(_l('%(field)s is too long (max %(n)d)', field=field, n=cols[field].type.length))

    owner = db.session.get(User, owner_id)
    if owner is None:
        # 令牌仍在有效期内，但账号已被删除
        raise Unauthorized(_l('Account no longer exists'))

    r = Report(
        user_id=owner.id,
        name=owner.username,
        problem_type=problem_type,
        location=location,
        issue=issue,
        priority=priority,
        status='Pending',
        photo_data=photo_data or None
    )
    db.session.add(r)
    db.session.commit()
    logger.info('user %s created report %s (%s)', owner.id, r.id, priority)
    return r


def get(report_id: int) -> Report:
    r = db.session.get(Report, report_id)
    if r is None:
        raise NotFound(_l('Report not found'))
    return r


def set_status(admin_id: int, report_id: int, new_status: str) -> Report:
    """状态、通知、审计三者同一事务提交"""
    if new_status not in STATUSES:
        raise InvalidInput(_l('Invalid status'))
    r = get(report_id)
    if not can_transition(r.status, new_status):
        raise InvalidInput(_l('Illegal status transition %(old)s -> %(new)s',
                              old=r.status, new=new_status))

    old_status = r.status
    r.status = new_status
    append_notification(
        r.user_id, r.id,
        f'Your report status has been updated to {new_status}',
        'status_update'
    )
    append_admin_log(admin_id, 'UPDATE_STATUS', 'report', r.id, f'Status changed to {new_status}')
    db.session.commit()
    logger.info('admin %s moved report %s: %s -> %s', admin_id, r.id, old_status, new_status)
    return r


def delete(admin_id: int, report_id: int) -> None:
    r = get(report_id)
    details = f'Deleted: {r.problem_type} - {r.location}'
    db.session.delete(r)
    append_admin_log(admin_id, 'DELETE', 'report', report_id, details)
    db.session.commit()
    logger.info('admin %s deleted report %s', admin_id, report_id)


def list_all() -> list:
    return Report.query.order_by(desc(Report.created_at), desc(Report.id)).all()


def list_for_owner(owner_id: int) -> list:
    return (Report.query
            .filter_by(user_id=owner_id)
            .order_by(desc(Report.created_at), desc(Report.id))
            .all())
