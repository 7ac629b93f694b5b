# config.example.py

"""
Documentation-only module (safe to commit).

Configuration is read from environment variables, optionally via a local .env
file (gitignored). Matrix credentials belong in .env, never in the repo.
"""

ENV_VARS = {
    # App / logging
    "VITA_APP_NAME": "App display name (default: Vita Streak).",
    "VITA_LOG_LEVEL": "Console logging level (default: INFO).",
    # Paths (gitignored)
    "VITA_DATA_DIR": "Local data directory (default: .local/vita).",
    "VITA_STORE_DB_PATH": "Key-value store SQLite path (default: <data_dir>/store.sqlite3).",
    "VITA_ALARMS_DB_PATH": "Alarm registry SQLite path (default: <data_dir>/alarms.sqlite3).",
    # Daily reminder
    "VITA_REMINDERS_ENABLED": "Register the daily reminder (true/false, default: true).",
    "VITA_REMINDER_HOUR": "Reminder hour, local time, 0-23 (default: 9).",
    "VITA_REMINDER_MINUTE": "Reminder minute, 0-59 (default: 0).",
    "VITA_REMINDER_TITLE": "Reminder title (default: Vita Streak).",
    "VITA_REMINDER_BODY": "Reminder text.",
    # Loops
    "VITA_TICK_SECONDS": "How often the day rollover is checked (default: 60).",
    "VITA_ALARM_POLL_SECONDS": "How often due reminders are checked (default: 15).",
    "VITA_ALARM_RETRY_SECONDS": "Retry delay after a failed delivery (default: 60).",
    # Connectors
    "VITA_CONSOLE_ENABLED": "Interactive console checklist (true/false, default: true).",
    "VITA_MATRIX_ENABLED": "Deliver reminders to Matrix (true/false, default: false).",
    # Matrix
    "VITA_MATRIX_HOMESERVER": "Matrix homeserver URL.",
    "VITA_MATRIX_USER_ID": "Matrix user ID of the reminder bot.",
    "VITA_MATRIX_PASSWORD": "Password for first login (session stored locally).",
    "VITA_MATRIX_ROOMS": "Rooms to post reminders to (empty => first joined room).",
    "VITA_MATRIX_STORE_PATH": "Matrix session directory (default: <data_dir>/matrix_store).",
}
