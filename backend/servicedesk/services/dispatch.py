from __future__ import annotations
"""Outbound notification dispatchers.

The lifecycle engine only depends on ``send(to, subject, html)`` returning a
``DispatchResult``; delivery is never guaranteed. ``MAIL_BACKEND`` selects:

  smtp    deliver through an SMTP relay (MAIL_HOST / MAIL_PORT / MAIL_USE_TLS ...)
  memory  keep messages in ``outbox`` (tests, local development)
  null    accept and drop everything
"""
import smtplib
from concurrent.futures import ThreadPoolExecutor, TimeoutError as FutureTimeout
from dataclasses import dataclass, field
from email.message import EmailMessage
from email.utils import formataddr, make_msgid
from typing import Any, Dict, List, Mapping, Optional
from servicedesk import config_flag


@dataclass
class DispatchResult:
    success: bool
    id: Optional[str] = None
    error: Optional[str] = None


class NotificationDispatcher:
    def send(self, to: str, subject: str, html: str, sender_name: Optional[str] = None) -> DispatchResult:
        raise NotImplementedError


class NullDispatcher(NotificationDispatcher):
    def send(self, to, subject, html, sender_name=None):
        return DispatchResult(success=True)


@dataclass
class MemoryDispatcher(NotificationDispatcher):
    outbox: List[Dict[str, Any]] = field(default_factory=list)
    fail_with: Optional[str] = None

    def send(self, to, subject, html, sender_name=None):
        if self.fail_with:
            return DispatchResult(success=False, error=self.fail_with)
        msg_id = f"mem-{len(self.outbox) + 1}"
        self.outbox.append({'id': msg_id, 'to': to, 'subject': subject, 'html': html, 'sender_name': sender_name})
        return DispatchResult(success=True, id=msg_id)

    def clear(self):
        self.outbox.clear()
        self.fail_with = None


class SmtpDispatcher(NotificationDispatcher):
    def __init__(self, host: str, port: int, username: str = '', password: str = '',
                 use_tls: bool = True, default_sender: str = '', timeout: float = 10.0):
        self.host = host
        self.port = port
        self.username = username
        self.password = password
        self.use_tls = use_tls
        self.default_sender = default_sender or username
        self.timeout = timeout

    def build_message(self, to: str, subject: str, html: str, sender_name: Optional[str] = None) -> EmailMessage:
        msg = EmailMessage()
        msg['Subject'] = subject
        msg['From'] = formataddr((sender_name, self.default_sender)) if sender_name else self.default_sender
        msg['To'] = to
        msg['Message-ID'] = make_msgid()
        msg.set_content('This message requires an HTML capable mail client.')
        msg.add_alternative(html, subtype='html')
        return msg

    def send(self, to, subject, html, sender_name=None):
        msg = self.build_message(to, subject, html, sender_name)
        try:
            with smtplib.SMTP(self.host, self.port, timeout=self.timeout) as server:
                if self.use_tls:
                    server.starttls()
                if self.username:
                    server.login(self.username, self.password)
                server.send_message(msg)
        except (smtplib.SMTPException, OSError) as e:
            return DispatchResult(success=False, error=f"{e.__class__.__name__}: {e}")
        return DispatchResult(success=True, id=msg['Message-ID'])


def build_dispatcher(config: Mapping[str, Any]) -> NotificationDispatcher:
    backend = (config.get('MAIL_BACKEND') or 'null').lower()
    if backend == 'smtp':
        return SmtpDispatcher(
            host=config.get('MAIL_HOST', 'localhost'),
            port=int(config.get('MAIL_PORT', 587)),
            username=config.get('MAIL_USERNAME', ''),
            password=config.get('MAIL_PASSWORD', ''),
            use_tls=config_flag(config.get('MAIL_USE_TLS'), True),
            default_sender=config.get('MAIL_DEFAULT_SENDER', ''),
            timeout=float(config.get('NOTIFY_TIMEOUT_SECONDS', 10)),
        )
    if backend == 'memory':
        return MemoryDispatcher()
    if backend == 'null':
        return NullDispatcher()
    raise ValueError(f"Unknown MAIL_BACKEND '{backend}'")


def send_with_timeout(dispatcher: NotificationDispatcher, timeout: float, to: str, subject: str,
                      html: str, sender_name: Optional[str] = None) -> DispatchResult:
    """Run ``dispatcher.send`` bounded by ``timeout`` seconds.

    Exceptions and expiry are folded into a failed DispatchResult. On expiry the
    worker thread is abandoned, not joined.
    """
    executor = ThreadPoolExecutor(max_workers=1, thread_name_prefix='notify')
    future = executor.submit(dispatcher.send, to, subject, html, sender_name)
    try:
        result = future.result(timeout=timeout)
    except FutureTimeout:
        return DispatchResult(success=False, error=f'timed out after {timeout:g}s')
    except Exception as e:
        return DispatchResult(success=False, error=f"{e.__class__.__name__}: {e}")
    finally:
        executor.shutdown(wait=False)
    if not isinstance(result, DispatchResult):
        return DispatchResult(success=False, error='dispatcher returned no result')
    return result


__all__ = [
    'DispatchResult', 'NotificationDispatcher', 'NullDispatcher', 'MemoryDispatcher',
    'SmtpDispatcher', 'build_dispatcher', 'send_with_timeout',
]
