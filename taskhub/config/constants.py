"""
Application constants
"""

# Task fields
TASK_INITIAL_VERSION = 1
TASK_CLOSED_STATUS = "Done"  # Tasks in this status don't count towards user load

# Realtime events (server -> client)
EVENT_ACTION_LOGGED = "actionLogged"
EVENT_TASK_UPDATED = "taskUpdated"
EVENT_RESOLVE_CONFLICT = "resolveConflict"
EVENT_CONNECTED = "connected"  # sent once to a session after it is registered

# Realtime events (client -> server), mapped to the event re-emitted to peers
CLIENT_EVENT_RELAYS = {
    "taskUpdate": EVENT_TASK_UPDATED,
    "actionLog": EVENT_ACTION_LOGGED,
    "conflictDetected": EVENT_RESOLVE_CONFLICT,
}

# Policy violation close code for rejected websocket sessions
WS_POLICY_VIOLATION = 1008

# HTTP
USER_ID_HEADER = "X-User-Id"
UNASSIGNED_LABEL = "Unassigned"

# Audit log
ACTIONS_MAX_LIMIT = 500

# Logging
LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"
LOG_DATE_FORMAT = "%Y-%m-%d %H:%M:%S"
