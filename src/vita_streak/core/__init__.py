"""
Core logic.

Components:
- dates.py: calendar-day keys (local time)
- streaks.py: consecutive-day streak calculation
- tracker.py: item collection owner, "mark complete for today"
- reminder.py: one-time daily reminder registration
- ticker.py: midnight tick while the app is open
"""
