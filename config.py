# config.py

import os
from datetime import timedelta

BASE_DIR = os.path.abspath(os.path.dirname(__file__))


class Config:
    # 没有默认值：缺失时 create_app 直接拒绝启动
    SECRET_KEY = os.environ.get('SECRET_KEY')
    JWT_SECRET_KEY = os.environ.get('JWT_SECRET_KEY')
    JWT_ACCESS_TOKEN_EXPIRES = timedelta(hours=24)
    JWT_TOKEN_LOCATION = ['headers']

    # 数据库配置
    SQLALCHEMY_DATABASE_URI = os.environ.get(
        'DATABASE_URL',
        f"sqlite:///{os.path.join(BASE_DIR, 'app.db')}"
    )
    SQLALCHEMY_TRACK_MODIFICATIONS = False

    # 照片以编码后的字符串随 JSON 上传
    MAX_CONTENT_LENGTH = 50 * 1024 * 1024  # 50 MB
    JSON_AS_ASCII = False

    API_PREFIX = os.environ.get('API_PREFIX', '/api')
    LOG_LEVEL = os.environ.get('LOG_LEVEL', 'INFO')

    # werkzeug 哈希方法（盐与成本参数都嵌在摘要里）
    PASSWORD_HASH_METHOD = os.environ.get('PASSWORD_HASH_METHOD', 'scrypt')
    PASSWORD_MIN_LENGTH = 6

    # 管理员种子账号：只有同时配置了邮箱与密码才会创建
    ADMIN_USERNAME = os.environ.get('ADMIN_USERNAME', 'admin')
    ADMIN_EMAIL = os.environ.get('ADMIN_EMAIL')
    ADMIN_PASSWORD = os.environ.get('ADMIN_PASSWORD')

    # i18n
    BABEL_DEFAULT_LOCALE = 'en'
    BABEL_SUPPORTED_LOCALES = ['en', 'zh']
    BABEL_TRANSLATION_DIRECTORIES = 'translations'
