"""Akademik: command-line client for the academic administration backend.

This package contains the configuration, API client, and services used to
manage block-course schedules (kuliah besar, agenda khusus, praktikum, PBL,
jurnal reading) and to operate the super-admin console (dashboard, system
monitoring, backup/restore, report export).
"""
