"""Vita Streak: daily vitamin checklist with streaks and one daily reminder."""

__version__ = "0.1.0"
