"""SendGrid email adapter — production email delivery over the v3 Web API.

SendGrid answers 202 when a message is accepted for delivery; any other
status is reported as a failed send. Transport errors are retried a bounded
number of times before being reported as failed.
"""

import requests
import structlog
from tenacity import retry, retry_if_exception_type, stop_after_attempt, wait_exponential

from notifications.channel.email_port import EmailMessage, EmailPort, SendResult

logger = structlog.get_logger(__name__)

SENDGRID_API_URL = "https://api.sendgrid.com/v3/mail/send"
_TRANSIENT_ERRORS = (requests.ConnectionError, requests.Timeout)


class SendGridEmailAdapter(EmailPort):
    def __init__(
        self,
        api_key: str,
        from_email: str,
        from_name: str,
        timeout: float = 10.0,
        max_attempts: int = 3,
        session: requests.Session | None = None,
        retry_wait=None,
    ):
        self.api_key = api_key
        self.from_email = from_email
        self.from_name = from_name
        self.timeout = timeout
        self.max_attempts = max_attempts
        self.session = session or requests.Session()
        self.retry_wait = retry_wait or wait_exponential(multiplier=1, min=1, max=8)

    def _post(self, payload: dict) -> requests.Response:
        @retry(
            stop=stop_after_attempt(self.max_attempts),
            wait=self.retry_wait,
            retry=retry_if_exception_type(_TRANSIENT_ERRORS),
            reraise=True,
        )
        def _attempt():
            return self.session.post(
                SENDGRID_API_URL,
                json=payload,
                headers={"Authorization": f"Bearer {self.api_key}"},
                timeout=self.timeout,
            )

        return _attempt()

    def send(self, message: EmailMessage) -> SendResult:
        if not self.api_key:
            return SendResult(success=False, error="SendGrid API key not configured")

        to = message.to
        content = [{"type": "text/plain", "value": message.body}]
        if message.html_body:
            content.append({"type": "text/html", "value": message.html_body})
        payload = {
            "personalizations": [{"to": [{"email": to}]}],
            "from": {"email": self.from_email, "name": self.from_name},
            "subject": message.subject,
            "content": content,
        }

        try:
            response = self._post(payload)
        except _TRANSIENT_ERRORS as exc:
            logger.error("SendGrid request failed", to=to, error=str(exc))
            return SendResult(success=False, error=str(exc))

        if response.status_code == 202:
            logger.info("Email accepted by SendGrid", to=to, subject=message.subject)
            return SendResult(success=True, message_id=response.headers.get("X-Message-Id"))

        logger.error("SendGrid rejected email", to=to, status_code=response.status_code, body=response.text)
        return SendResult(success=False, error=f"SendGrid error {response.status_code}: {response.text}")
