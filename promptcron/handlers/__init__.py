"""Lambda entry points for promptcron.

- executor: runs one job attempt per trigger event
- schedule_manager: creates, updates and deletes job triggers
"""
