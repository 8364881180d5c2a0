from enum import Enum

class ConnectionState(str, Enum):
    UNINITIALIZED = "uninitialized"
    CONNECTING = "connecting"
    READY = "ready"
    ERROR = "error"
    RETRYING = "retrying"
    CLOSED = "closed"
