"""面向用户的固定文案。

按语言(locale) 提供会话问候语与通用错误提示，支持 en / zh / ja，
未知语言回退到 en。错误提示不包含任何底层错误细节。
"""

from typing import Dict

DEFAULT_LOCALE = "en"

GREETINGS: Dict[str, str] = {
    "en": "Hello! How can I assist you today?",
    "zh": "你好！今天有什么可以帮您？",
    "ja": "こんにちは！今日はどのようにお手伝いできますか？",
}

ERROR_NOTICES: Dict[str, str] = {
    "en": "Sorry, an error occurred. Please try again later.",
    "zh": "抱歉，发生了错误，请稍后再试。",
    "ja": "申し訳ありません。エラーが発生しました。しばらくしてからもう一度お試しください。",
}

SUPPORTED_LOCALES = tuple(GREETINGS)


def normalize_locale(locale: str) -> str:
    key = (locale or "").lower()
    return key if key in SUPPORTED_LOCALES else DEFAULT_LOCALE


def greeting(locale: str = DEFAULT_LOCALE) -> str:
    """新会话的助手问候语。"""
    return GREETINGS[normalize_locale(locale)]


def error_notice(locale: str = DEFAULT_LOCALE) -> str:
    """请求失败时追加到会话中的助手提示。"""
    return ERROR_NOTICES[normalize_locale(locale)]
