"""Helpdesk notification service.

Keeping this file makes ``app`` a regular package, so imports never resolve
to an unrelated namespace package of the same name.
"""
