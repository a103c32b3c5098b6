# distribuidora/services/zapi_client.py

import json
from typing import Any, Dict, Optional

import httpx
from loguru import logger

from distribuidora.core.config import settings
from distribuidora.core.logging_config import trace_id_var
from distribuidora.modules.whatsapp.models import WhatsAppConfigInDB
from distribuidora.services.whatsapp.errors import InvalidRecipient, NotConnected, TransportError
from distribuidora.services.whatsapp.phone import normalize_recipient
from distribuidora.services.whatsapp.session import SendResult


class ZapiClient:
    """Envio HTTP sem sessão via Z-API (`/instances/{id}/token/{token}/send-text`)."""

    def __init__(
        self,
        base_url: Optional[str] = None,
        country_prefix: Optional[str] = None,
        timeout: float = 25.0,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        self.base_url = (base_url or settings.ZAPI_BASE_URL).rstrip("/")
        self.country_prefix = country_prefix or settings.DEFAULT_COUNTRY_PREFIX
        self.timeout = timeout
        self._transport = transport  # injetável nos testes (httpx.MockTransport)

    async def send_text(self, config: Optional[WhatsAppConfigInDB], phone: str, message: str) -> SendResult:
        log = logger.bind(trace_id=trace_id_var.get(), service="ZapiClient")

        if config is None or not config.account_sid or not config.auth_token:
            return SendResult(error=NotConnected("WhatsApp não configurado. Configure em Configurações."))
        if not config.active:
            return SendResult(error=NotConnected("WhatsApp está desativado nas configurações."))

        try:
            recipient = normalize_recipient(phone, self.country_prefix)
        except InvalidRecipient as e:
            return SendResult(error=e)

        api_url = f"{self.base_url}/instances/{config.account_sid}/token/{config.auth_token}/send-text"
        payload = {"phone": recipient, "message": message}
        log.info(f"Sending WhatsApp message via Z-API to {recipient}...")

        try:
            async with httpx.AsyncClient(timeout=self.timeout, transport=self._transport) as client:
                response = await client.post(api_url, json=payload)
        except httpx.TimeoutException:
            log.error("Timeout sending message via Z-API.")
            return SendResult(error=TransportError("Tempo esgotado ao enviar mensagem."))
        except httpx.RequestError as e:
            log.error(f"HTTP request error sending message via Z-API: {e}")
            return SendResult(error=TransportError(f"Erro ao enviar mensagem: {e}"))

        result: Dict[str, Any] = {}
        try:
            body = response.json()
            if isinstance(body, dict):
                result = body
        except json.JSONDecodeError:
            log.warning(f"Z-API returned non-JSON response (status {response.status_code}): {response.text[:200]}")

        if not response.is_success:
            error_message = result.get("message") or result.get("error") or "Erro ao enviar mensagem"
            log.error(f"Z-API rejected message. Status={response.status_code}, Error='{error_message}'")
            return SendResult(error=TransportError(str(error_message)))

        message_id = result.get("messageId") or result.get("id") or "sent"
        log.success(f"Message accepted by Z-API. id={message_id}")
        return SendResult(message_id=str(message_id))
