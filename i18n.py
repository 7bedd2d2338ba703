# i18n.py
from flask import current_app, request, jsonify, g
from flask_babel import Babel, get_locale

LANG_COOKIE_MAX_AGE = 30 * 24 * 3600


def init_i18n(app):
    """错误提示的语言：?lang= → Cookie → 浏览器 → 默认 en"""
    app.config.setdefault('BABEL_DEFAULT_LOCALE', 'en')
    app.config.setdefault('BABEL_SUPPORTED_LOCALES', ['en', 'zh'])
    app.config.setdefault('BABEL_TRANSLATION_DIRECTORIES', 'translations')

    def _select_locale():
        supported = app.config['BABEL_SUPPORTED_LOCALES']
        url_lang = request.args.get('lang')
        if url_lang in supported:
            g._lang_from_url = url_lang
            return url_lang

        cookie_lang = request.cookies.get('lang')
        if cookie_lang in supported:
            return cookie_lang

        return (
            request.accept_languages.best_match(supported)
            or app.config['BABEL_DEFAULT_LOCALE']
        )

    Babel(app, locale_selector=_select_locale)

    @app.after_request
    def _persist_lang_cookie(resp):
        lang = getattr(g, '_lang_from_url', None)
        if lang:
            resp.set_cookie('lang', lang, max_age=LANG_COOKIE_MAX_AGE)
        return resp


def set_language(lang):
    """GET /lang/<lang>：写入语言 Cookie"""
    if lang not in current_app.config['BABEL_SUPPORTED_LOCALES']:
        lang = current_app.config['BABEL_DEFAULT_LOCALE']
    resp = jsonify({"lang": lang, "current": str(get_locale())})
    resp.set_cookie('lang', lang, max_age=LANG_COOKIE_MAX_AGE)
    return resp
