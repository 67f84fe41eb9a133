import smtplib
import time
import pytest
from servicedesk.services import dispatch
from servicedesk.services.dispatch import (
    DispatchResult, MemoryDispatcher, NullDispatcher, SmtpDispatcher, build_dispatcher, send_with_timeout,
)


class FakeSMTP:
    instances = []

    def __init__(self, host, port, timeout=None):
        self.host, self.port, self.timeout = host, port, timeout
        self.sent = []
        self.calls = []
        FakeSMTP.instances.append(self)

    def __enter__(self):
        return self

    def __exit__(self, *exc):
        return False

    def starttls(self):
        self.calls.append('starttls')

    def login(self, username, password):
        self.calls.append(('login', username))

    def send_message(self, msg):
        self.sent.append(msg)


class RefusingSMTP(FakeSMTP):
    def send_message(self, msg):
        raise smtplib.SMTPRecipientsRefused({msg['To']: (550, b'no such user')})


def test_build_dispatcher_backends():
    assert isinstance(build_dispatcher({'MAIL_BACKEND': 'memory'}), MemoryDispatcher)
    assert isinstance(build_dispatcher({}), NullDispatcher)
    smtp = build_dispatcher({'MAIL_BACKEND': 'SMTP', 'MAIL_HOST': 'mail.example.com', 'MAIL_PORT': '2525',
                             'MAIL_USERNAME': 'bot@example.com', 'NOTIFY_TIMEOUT_SECONDS': 3})
    assert isinstance(smtp, SmtpDispatcher)
    assert (smtp.host, smtp.port, smtp.timeout) == ('mail.example.com', 2525, 3.0)
    assert smtp.default_sender == 'bot@example.com'
    with pytest.raises(ValueError):
        build_dispatcher({'MAIL_BACKEND': 'pigeon'})


def test_smtp_message_headers():
    d = SmtpDispatcher('localhost', 25, default_sender='desk@example.com')
    msg = d.build_message('pat@example.com', 'Repair Update: REP-000001', '<p>Hello</p>', sender_name='Acme Repairs')
    assert msg['To'] == 'pat@example.com'
    assert msg['From'] == 'Acme Repairs <desk@example.com>'
    assert msg['Subject'] == 'Repair Update: REP-000001'
    assert msg['Message-ID']
    html_part = msg.get_body(preferencelist=('html',))
    assert '<p>Hello</p>' in html_part.get_content()


def test_smtp_send_success(monkeypatch):
    FakeSMTP.instances = []
    monkeypatch.setattr(dispatch.smtplib, 'SMTP', FakeSMTP)
    d = SmtpDispatcher('mail.example.com', 587, username='bot@example.com', password='secret', use_tls=True)
    result = d.send('pat@example.com', 'Subject', '<p>x</p>')
    assert result.success
    assert result.id
    server = FakeSMTP.instances[-1]
    assert server.calls == ['starttls', ('login', 'bot@example.com')]
    assert len(server.sent) == 1


def test_smtp_send_failure_is_reported(monkeypatch):
    monkeypatch.setattr(dispatch.smtplib, 'SMTP', RefusingSMTP)
    d = SmtpDispatcher('mail.example.com', 25, use_tls=False, default_sender='desk@example.com')
    result = d.send('ghost@example.com', 'Subject', '<p>x</p>')
    assert not result.success
    assert 'SMTPRecipientsRefused' in result.error


def test_smtp_connection_error_is_reported(monkeypatch):
    def refuse(*a, **k):
        raise ConnectionRefusedError('connection refused')

    monkeypatch.setattr(dispatch.smtplib, 'SMTP', refuse)
    result = SmtpDispatcher('localhost', 25).send('pat@example.com', 'Subject', '<p>x</p>')
    assert not result.success
    assert 'ConnectionRefusedError' in result.error


def test_memory_dispatcher_records_and_fails_on_demand():
    d = MemoryDispatcher()
    ok = d.send('a@example.com', 'S', '<p/>', sender_name='Acme')
    assert ok == DispatchResult(success=True, id='mem-1')
    assert d.outbox[0]['sender_name'] == 'Acme'
    d.fail_with = 'boom'
    assert d.send('b@example.com', 'S', '<p/>') == DispatchResult(success=False, error='boom')
    assert len(d.outbox) == 1
    d.clear()
    assert d.outbox == [] and d.fail_with is None


def test_send_with_timeout_passes_result_through():
    d = MemoryDispatcher()
    result = send_with_timeout(d, 1, 'a@example.com', 'S', '<p/>')
    assert result.success and result.id == 'mem-1'


def test_send_with_timeout_folds_errors():
    class Raising(NullDispatcher):
        def send(self, to, subject, html, sender_name=None):
            raise OSError('network down')

    class Slow(NullDispatcher):
        def send(self, to, subject, html, sender_name=None):
            time.sleep(0.3)
            return DispatchResult(success=True)

    class Silent(NullDispatcher):
        def send(self, to, subject, html, sender_name=None):
            return None

    raised = send_with_timeout(Raising(), 1, 'a@example.com', 'S', '<p/>')
    assert not raised.success and 'network down' in raised.error
    slow = send_with_timeout(Slow(), 0.05, 'a@example.com', 'S', '<p/>')
    assert not slow.success and slow.error == 'timed out after 0.05s'
    silent = send_with_timeout(Silent(), 1, 'a@example.com', 'S', '<p/>')
    assert not silent.success


def test_tls_flag_accepts_strings():
    base = {'MAIL_BACKEND': 'smtp', 'MAIL_HOST': 'mail.example.com'}
    assert build_dispatcher({**base, 'MAIL_USE_TLS': 'false'}).use_tls is False
    assert build_dispatcher({**base, 'MAIL_USE_TLS': '0'}).use_tls is False
    assert build_dispatcher({**base, 'MAIL_USE_TLS': 'True'}).use_tls is True
    assert build_dispatcher({**base, 'MAIL_USE_TLS': False}).use_tls is False
    assert build_dispatcher(base).use_tls is True
