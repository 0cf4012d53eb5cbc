"""Runtime configuration for the chat Cloud Functions.

Values are read once from environment variables at import time, with
defaults suitable for local development and tests.
"""
import os

PROJECT_ID = os.environ.get('GOOGLE_CLOUD_PROJECT', '')

# Base URL of the web client, used for push notification deep links.
# Leave empty to send notifications without a web link.
WEB_APP_URL = os.environ.get('WEB_APP_URL', '').rstrip('/')

# FCM HTTP v1 API
FCM_API_URL = os.environ.get(
    'FCM_API_URL',
    'https://fcm.googleapis.com/v1/projects/{project_id}/messages:send')
FCM_SCOPES = ['https://www.googleapis.com/auth/firebase.messaging']
FCM_TIMEOUT_SECONDS = float(os.environ.get('FCM_TIMEOUT_SECONDS', '10'))

NOTIFICATION_BODY_MAX_LENGTH = int(
    os.environ.get('NOTIFICATION_BODY_MAX_LENGTH', '100'))
DEFAULT_NOTIFICATION_TITLE = 'New message'
DEFAULT_GROUP_NAME = 'Group'

# Direct chats are keyed "{uid_a}{SEP}{uid_b}"
DIRECT_THREAD_SEPARATOR = os.environ.get('DIRECT_THREAD_SEPARATOR', '_')

LOG_LEVEL = os.environ.get('LOG_LEVEL', 'INFO').upper()

CORS_MAX_AGE = os.environ.get('CORS_MAX_AGE', '3600')

# Firestore collections
USERS_COLLECTION = 'users'
CONVERSATIONS_COLLECTION = 'conversations'
GROUPS_COLLECTION = 'groups'
MESSAGES_COLLECTION = 'messages'
