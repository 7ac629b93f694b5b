"""
Local notification delivery.

Components:
- alarm_store.py: SQLite registry of recurring alarms + remembered permission
- center.py: permission flow and alarm registration
- dispatcher.py: polling loop that fires due alarms through a deliverer
"""
