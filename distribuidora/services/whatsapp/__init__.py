from .credentials import CredentialStore, FileCredentialStore, MongoCredentialStore
from .errors import (
    ConcurrentConnectRejected,
    InvalidRecipient,
    NotConnected,
    PersistenceError,
    TransportError,
    WhatsAppSessionError,
)
from .phone import normalize_recipient
from .session import ConnectionState, ReconnectPolicy, SendResult, SessionManager, SessionStatus
from .transport import (
    Closed,
    CredentialsRotated,
    DisconnectReason,
    Opened,
    PairingCodeAvailable,
    Transport,
    TransportEvent,
    TransportFactory,
)
