"""
UNMUTE - Crisis Signal Detection & Escalation Pipeline

This package provides the backend core of the UNMUTE student
peer-support platform: it reads free-text messages, classifies
crisis risk, tracks each student's risk stage, alerts staff in
real time and drives the counsellor assignment workflow.

IMPORTANT: This is a safety-critical system.
A flagged message must never fail to send because alerting failed.
"""

__version__ = "0.1.0"
__author__ = "UNMUTE Engineering Team"
