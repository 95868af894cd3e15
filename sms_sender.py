# sms_sender.py
"""Outbound text delivery."""

import logging
from typing import Dict, List, Optional, Tuple

import requests

from config import SMS_GATEWAY_TIMEOUT, SMS_GATEWAY_TOKEN, SMS_GATEWAY_URL, SMS_MAX_LENGTH

logger = logging.getLogger(__name__)


class SMSSendError(Exception):
    pass


def segment(text: str, max_length: Optional[int]) -> List[str]:
    """Split text into chunks of at most max_length characters (no limit if falsy)."""
    if not max_length or len(text) <= max_length:
        return [text]
    return [text[i:i + max_length] for i in range(0, len(text), max_length)]


class SMSSender:
    def __init__(self, max_length: Optional[int] = None):
        self.max_length = max_length

    def send(self, phone_number: str, text: str) -> None:
        raise NotImplementedError

    def send_with_cutoff(self, phone_number: str, text: str) -> None:
        for part in segment(text, self.max_length):
            self.send(phone_number, part)


class OutboxSender(SMSSender):
    """Keeps messages in memory instead of delivering them."""

    def __init__(self, max_length: Optional[int] = None):
        super().__init__(max_length)
        self.sent: List[Tuple[str, str]] = []

    def send(self, phone_number: str, text: str) -> None:
        logger.info("[outbox] to %s: %s", phone_number, text)
        self.sent.append((phone_number, text))

    def pop(self, phone_number: str) -> List[str]:
        """Remove and return everything queued for phone_number."""
        mine = [t for p, t in self.sent if p == phone_number]
        self.sent = [(p, t) for p, t in self.sent if p != phone_number]
        return mine


class HttpSMSSender(SMSSender):
    """POSTs {"to", "message"} as JSON to an SMS gateway."""

    def __init__(self, url: str, token: str = "", timeout: float = 10.0, max_length: Optional[int] = None):
        super().__init__(max_length)
        self.url = url
        self.token = token
        self.timeout = timeout

    def _headers(self) -> Dict[str, str]:
        headers = {"Content-Type": "application/json"}
        if self.token:
            headers["Authorization"] = f"Bearer {self.token}"
        return headers

    def send(self, phone_number: str, text: str) -> None:
        try:
            resp = requests.post(
                self.url,
                json={"to": phone_number, "message": text},
                headers=self._headers(),
                timeout=self.timeout,
            )
            resp.raise_for_status()
        except requests.RequestException as e:
            raise SMSSendError(f"gateway rejected message to {phone_number}: {e}") from e


def build_sender() -> SMSSender:
    """Gateway sender when SMS_GATEWAY_URL is set, in-memory outbox otherwise."""
    if SMS_GATEWAY_URL:
        return HttpSMSSender(
            SMS_GATEWAY_URL,
            token=SMS_GATEWAY_TOKEN,
            timeout=SMS_GATEWAY_TIMEOUT,
            max_length=SMS_MAX_LENGTH,
        )
    return OutboxSender()
