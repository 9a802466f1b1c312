"""Тексты бота"""

TEXTS = {
    "en": {
        "start_welcome": (
            "👋 Welcome to the Workplace Preference Quiz!\n\n"
            "Ask your presenter for a session code and send /join CODE, "
            "or open the invite link they shared."
        ),
        "help_text": (
            "ℹ️ Commands\n\n"
            "/join CODE — join a quiz session\n"
            "/status — your progress\n"
            "/presenter — commands for presenters"
        ),
        "join_usage": "Send the session code like this: /join ABCD1234",
        "session_not_found": "❌ Session {code} was not found. Check the code and try again.",
        "session_closed": "🔒 Session {code} is closed and no longer accepts answers.",
        "joined": "✅ You joined «{name}».\n\nHow should we call you? Send your name or press Skip.",
        "welcome_back": "👋 Welcome back to «{name}»! Let's continue.",
        "name_saved": "Nice to meet you, {name}!",
        "progress": "Question {current} of {total}",
        "already_completed": "You have already completed this quiz. Here is your result:",
        "already_answered": "Your answers are already submitted.",
        "invalid_answer": "⚠️ This option is not valid, please choose again.",
        "not_joined": "Join a session first: /join CODE",
        "status_info": "📊 Answered {answered} of {total} questions. Remaining: {remaining}.",
        "status_completed": "✅ You have completed the quiz.",
        "survey_completed": "🎉 Thank you! Your answers have been recorded.",
        "result_title": "🧭 Your workplace DNA: {dna}\n\n",
        "btn_skip": "Skip ➡️",
    },
}

DEFAULT_LANG = "en"


def get_text(lang: str, key: str, **kwargs) -> str:
    """Получить текст по ключу (с подстановкой параметров)"""
    texts = TEXTS.get(lang) or TEXTS[DEFAULT_LANG]
    text = texts.get(key) or TEXTS[DEFAULT_LANG].get(key, key)
    return text.format(**kwargs) if kwargs else text
