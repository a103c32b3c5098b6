# distribuidora/services/whatsapp/errors.py


class WhatsAppSessionError(Exception):
    """Base das falhas da sessão WhatsApp. `code` é exposto na API."""

    code = "session_error"


class NotConnected(WhatsAppSessionError):
    code = "not_connected"


class TransportError(WhatsAppSessionError):
    code = "transport_error"


class PersistenceError(WhatsAppSessionError):
    code = "persistence_error"


class ConcurrentConnectRejected(WhatsAppSessionError):
    code = "concurrent_connect_rejected"


class InvalidRecipient(WhatsAppSessionError):
    code = "invalid_recipient"
